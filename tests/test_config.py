import os

from esp_analyzer.config import DEFAULT_RELIABLE_CONFIDENCE, AnalyzerConfig, _load_dotenv


ENV_KEYS = ("ESP_PROVIDER_TABLE", "ESP_RELIABLE_CONFIDENCE", "ESP_LOG_FILE", "ESP_DEBUG")


def _clear(monkeypatch):
    # setenv first so monkeypatch also removes values written by _load_dotenv
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_defaults(tmp_path, monkeypatch):
    _clear(monkeypatch)
    monkeypatch.chdir(tmp_path)
    config = AnalyzerConfig.from_env()
    assert config == AnalyzerConfig()
    assert config.reliable_confidence == DEFAULT_RELIABLE_CONFIDENCE


def test_reads_environment(tmp_path, monkeypatch):
    _clear(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ESP_PROVIDER_TABLE", "/etc/esp/providers.yaml")
    monkeypatch.setenv("ESP_RELIABLE_CONFIDENCE", "0.75")
    monkeypatch.setenv("ESP_DEBUG", "yes")
    config = AnalyzerConfig.from_env()
    assert config.provider_table_path == "/etc/esp/providers.yaml"
    assert config.reliable_confidence == 0.75
    assert config.debug is True


def test_bad_threshold_falls_back(tmp_path, monkeypatch):
    _clear(monkeypatch)
    monkeypatch.chdir(tmp_path)
    for raw in ("high", "1.5", "-0.1"):
        monkeypatch.setenv("ESP_RELIABLE_CONFIDENCE", raw)
        assert AnalyzerConfig.from_env().reliable_confidence == DEFAULT_RELIABLE_CONFIDENCE


def test_dotenv_does_not_override_environment(tmp_path, monkeypatch):
    _clear(monkeypatch)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# local settings\nESP_LOG_FILE='esp.log'\nESP_RELIABLE_CONFIDENCE=0.8\nnot a pair\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ESP_RELIABLE_CONFIDENCE", "0.7")
    _load_dotenv(env_file)
    monkeypatch.chdir(tmp_path)
    config = AnalyzerConfig.from_env()
    assert config.log_file == "esp.log"
    assert config.reliable_confidence == 0.7


def test_dotenv_reads_only_esp_keys(tmp_path, monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("OTHER_TOOL_TOKEN", "keep")
    monkeypatch.delenv("OTHER_TOOL_TOKEN")
    env_file = tmp_path / ".env"
    env_file.write_text(
        "OTHER_TOOL_TOKEN=secret\n"
        "export ESP_PROVIDER_TABLE=providers.yaml  # local table\n"
        'ESP_LOG_FILE="logs/esp #1.log"\n',
        encoding="utf-8",
    )
    _load_dotenv(env_file)
    monkeypatch.chdir(tmp_path)
    config = AnalyzerConfig.from_env()
    assert config.provider_table_path == "providers.yaml"
    assert config.log_file == "logs/esp #1.log"
    assert "OTHER_TOOL_TOKEN" not in os.environ
