from esp_analyzer import log_utils


def test_log_respects_flags(monkeypatch, capsys):
    monkeypatch.setattr(log_utils, "_LOG_FILE", None)
    log_utils.log(False, "hidden")
    log_utils.log_debug(False, "hidden")
    log_utils.log(True, "shown")
    log_utils.log_debug(True, "details")
    err = capsys.readouterr().err
    assert "hidden" not in err
    assert " UTC] shown" in err
    assert "[DEBUG] details" in err


def test_log_file_receives_lines(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(log_utils, "_LOG_FILE", None)
    path = tmp_path / "esp.log"
    log_utils.set_log_file(str(path))
    log_utils.log_warning("cannot read x")
    assert "[WARN] cannot read x" in path.read_text(encoding="utf-8")
    assert capsys.readouterr().err == ""


def test_log_file_parent_is_created_and_none_restores_stderr(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(log_utils, "_LOG_FILE", None)
    path = tmp_path / "logs" / "nested" / "esp.log"
    log_utils.set_log_file(str(path))
    log_utils.log(True, "to file")
    log_utils.set_log_file(None)
    log_utils.log(True, "to stderr")
    assert "to file" in path.read_text(encoding="utf-8")
    assert "to stderr" in capsys.readouterr().err
