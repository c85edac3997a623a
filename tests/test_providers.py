import json

import pytest

from esp_analyzer.providers import (
    DEFAULT_PROVIDERS,
    ProviderTable,
    ProviderTableError,
    load_provider_table,
    provider_table_from_dict,
)


def test_default_table_lookups():
    assert DEFAULT_PROVIDERS.provider_for("amazonses.com") == "Amazon SES"
    assert DEFAULT_PROVIDERS.provider_for(" SendGrid.NET ") == "SendGrid"
    assert DEFAULT_PROVIDERS.provider_for("example.com") is None
    assert DEFAULT_PROVIDERS.provider_for(None) is None
    assert DEFAULT_PROVIDERS.family_for("X-SES-Outgoing").provider == "Amazon SES"
    assert DEFAULT_PROVIDERS.family_for("x-mailer") is None


def test_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_PROVIDERS.domains["evil.example"] = "Evil"


def test_build_keeps_insertion_order():
    table = ProviderTable.build([("b.example", "B"), ("A.example", "A")])
    assert list(table.domains) == ["b.example", "a.example"]


def test_load_yaml_table(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text(
        "domains:\n"
        "  Mail.Acme.test: Acme Mail\n"
        "x_headers:\n"
        "  - {prefix: X-Acme-, provider: Acme Mail}\n",
        encoding="utf-8",
    )
    table = load_provider_table(path)
    assert table.provider_for("mail.acme.test") == "Acme Mail"
    assert table.provider_for("amazonses.com") is None
    family = table.family_for("x-acme-id")
    assert family.label == "X-ACME"
    assert family.provider == "Acme Mail"


def test_load_json_table_keeps_default_x_headers(tmp_path):
    path = tmp_path / "providers.json"
    path.write_text(json.dumps({"domains": {"relay.test": "Relay"}}), encoding="utf-8")
    table = load_provider_table(str(path))
    assert table.provider_for("relay.test") == "Relay"
    assert table.family_for("x-sg-eid").provider == "SendGrid"


def test_missing_or_empty_file_gives_default(tmp_path):
    assert load_provider_table(None) is DEFAULT_PROVIDERS
    assert load_provider_table(tmp_path / "missing.yaml") is DEFAULT_PROVIDERS
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_provider_table(empty) is DEFAULT_PROVIDERS


def test_malformed_tables_raise(tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("domains: [unclosed\n", encoding="utf-8")
    with pytest.raises(ProviderTableError):
        load_provider_table(broken)
    with pytest.raises(ProviderTableError):
        provider_table_from_dict(["not", "a", "mapping"])
    with pytest.raises(ProviderTableError):
        provider_table_from_dict({"domains": ["a.test"]})
    with pytest.raises(ProviderTableError):
        provider_table_from_dict({"domains": {}, "x_headers": [{"label": "X"}]})
