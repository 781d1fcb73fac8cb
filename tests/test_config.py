import logging

import yaml

from finance_tracker.config import DEFAULT_CONFIG, configure_logging, load_config, save_config


def test_missing_file_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("FINANCE_TRACKER_DATABASE_URL", raising=False)
    monkeypatch.delenv("FINANCE_TRACKER_LOG_LEVEL", raising=False)

    cfg = load_config(tmp_path / "absent.yaml")

    assert cfg == DEFAULT_CONFIG
    assert cfg["categories"] is not DEFAULT_CONFIG["categories"]


def test_yaml_values_override_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("FINANCE_TRACKER_DATABASE_URL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump({"port": 8080, "categories": {"Pets": ["vet", "petco"]}})
    )

    cfg = load_config(path)

    assert cfg["port"] == 8080
    assert cfg["host"] == DEFAULT_CONFIG["host"]
    # a custom category map replaces the defaults rather than merging into them
    assert cfg["categories"] == {"Pets": ["vet", "petco"]}


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path)["api_prefix"] == "/api"


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"database_url": "sqlite:///from-file.db"}))
    monkeypatch.setenv("FINANCE_TRACKER_DATABASE_URL", "sqlite:///from-env.db")
    monkeypatch.setenv("FINANCE_TRACKER_LOG_LEVEL", "debug")

    cfg = load_config(path)

    assert cfg["database_url"] == "sqlite:///from-env.db"
    assert cfg["log_level"] == "debug"


def test_save_config_round_trip(tmp_path, monkeypatch):
    monkeypatch.delenv("FINANCE_TRACKER_DATABASE_URL", raising=False)
    monkeypatch.delenv("FINANCE_TRACKER_LOG_LEVEL", raising=False)
    path = tmp_path / "out" / "config.yaml"

    save_config({**DEFAULT_CONFIG, "port": 9000}, path)

    assert load_config(path)["port"] == 9000


def test_configure_logging_accepts_lowercase_names(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

    configure_logging("debug")

    assert calls["level"] == "DEBUG"
