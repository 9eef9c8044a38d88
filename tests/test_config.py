from pathlib import Path

import pytest

from utils.config import load_settings


def test_database_dir_is_required(monkeypatch):
    monkeypatch.delenv("DATABASE_DIR", raising=False)
    with pytest.raises(RuntimeError):
        load_settings()


def test_defaults_and_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    monkeypatch.setenv("DB_MAX_CONNECTIONS", "3")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("RECORD_LIST_LIMIT", raising=False)
    settings = load_settings()
    assert settings.db_path == Path(tmp_path) / "records.db"
    assert settings.max_connections == 3
    assert settings.list_limit == 100
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("name, value", [("DB_MAX_CONNECTIONS", "ten"), ("DB_MAX_CONNECTIONS", "0"), ("RECORD_LIST_LIMIT", "5000")])
def test_bad_values_fail_fast(monkeypatch, tmp_path, name, value):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        load_settings()


def test_setup_logging_installs_one_handler():
    import logging

    from utils import logging_config

    root = logging.getLogger()
    before = list(root.handlers)
    try:
        logging_config.setup_logging("INFO")
        logging_config.setup_logging("DEBUG")
        added = [h for h in root.handlers if h not in before]
        assert len(added) <= 1
        assert logging_config._handler in root.handlers
        assert root.level == logging.DEBUG
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
