# tests/managers/test_config_manager.py
import json
import logging

import pytest

from a11y_auditor.managers.config_manager import ConfigManager
from a11y_auditor.model import AuditSettings
from a11y_auditor.utils.configure_logging import LogWithTqdm, configure_from_config, configure_logger
from a11y_auditor.utils.path_utils import PathUtils

# Een standaard, voorspelbare configuratie voor onze tests
MOCK_SETTINGS_CONTENT = {
    "debug": {
        "level": "WARNING",
        "module_levels": {"a11y_auditor.dom.qngine": "DEBUG"},
        "silenced_loggers": {"concurrent.futures": "ERROR"}
    },
    "auditor": {
        "disabled_rules": [],
        "severity_overrides": {"img-alt-meaningful": "info"},
        "include_warnings": True,
        "include_info": True,
        "top_violations": 10,
        "workers": 1
    }
}


@pytest.fixture
def config_manager(tmp_path, monkeypatch):
    """
    Een fixture die een geïsoleerde testomgeving opzet voor de ConfigManager:
    - Plaatst een nep 'settings.json' bestand in een tijdelijke map.
    - Monkeypatched PathUtils om naar dit bestand te wijzen.
    """
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    monkeypatch.setattr(PathUtils, 'get_settings_file', lambda: settings_file)

    # De singleton kan al geladen zijn, dus forceer herladen vanuit ons nep-bestand
    manager = ConfigManager()
    manager.reset()
    yield manager

    monkeypatch.undo()
    manager.reset()


@pytest.fixture
def restore_logging():
    """Bewaart de root logger zodat configure_logger andere tests niet beïnvloedt."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    touched = ["a11y_auditor.dom.qngine", "concurrent.futures"]
    levels = {name: logging.getLogger(name).level for name in touched}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, old_level in levels.items():
        logging.getLogger(name).setLevel(old_level)


def test_config_manager_is_singleton(config_manager):
    assert ConfigManager() is config_manager


def test_config_manager_load(config_manager):
    """Test of de manager de configuratie correct laadt."""
    config = config_manager.get_all()
    assert config["debug"]["level"] == "WARNING"
    assert config["auditor"]["top_violations"] == 10


def test_config_manager_get_nested(config_manager):
    """Test het ophalen van geneste waarden."""
    assert config_manager.get_nested("auditor.workers") == 1
    assert config_manager.get_nested("non.existent.key", "default") == "default"
    assert config_manager.get_nested("auditor.workers.deeper", "default") == "default"


def test_config_manager_set_nested_casts(config_manager):
    """Nieuwe waarden krijgen het type van de bestaande waarde."""
    config_manager.set_nested("auditor.workers", "4")
    assert config_manager.get_nested("auditor.workers") == 4

    config_manager.set_nested("auditor.include_info", "false")
    assert config_manager.get_nested("auditor.include_info") is False

    config_manager.set_nested("auditor.disabled_rules", "img-alt, link-text")
    assert config_manager.get_nested("auditor.disabled_rules") == ["img-alt", "link-text"]

    # Een nieuwe sleutel wordt ongewijzigd opgeslagen
    config_manager.set_nested("reporting.format", "csv")
    assert config_manager.get_nested("reporting.format") == "csv"


def test_config_manager_set_nested_uncastable(config_manager, caplog):
    """Buiten de auditor-sectie wordt een niet te casten waarde als string bewaard."""
    config_manager.set_nested("reporting.max_rows", 500)
    with caplog.at_level(logging.WARNING):
        assert config_manager.set_nested("reporting.max_rows", "veel")
    assert config_manager.get_nested("reporting.max_rows") == "veel"
    assert "Could not cast" in caplog.text


@pytest.mark.parametrize("key_path,value", [
    ("auditor.top_violations", "veel"),
    ("auditor.workers", "0"),
    ("auditor.severity_overrides", "fataal"),
])
def test_config_manager_rejects_invalid_auditor_values(config_manager, caplog, key_path, value):
    """Een wijziging die de auditor-sectie ongeldig maakt wordt teruggedraaid."""
    before = config_manager.get_nested(key_path)
    with caplog.at_level(logging.ERROR):
        assert not config_manager.set_nested(key_path, value)
    assert config_manager.get_nested(key_path) == before
    assert "Rejected" in caplog.text


def test_config_manager_rejected_new_key_is_removed(config_manager):
    """Een afgewezen sleutel die nog niet bestond verdwijnt weer."""
    config_manager.get_all()["auditor"].pop("workers")
    assert not config_manager.set_nested("auditor.workers", 0)
    assert "workers" not in config_manager.get_all()["auditor"]

    assert not config_manager.set_nested("auditor.severity_overrides", {"img-alt": "fataal"})
    assert config_manager.get_nested("auditor.severity_overrides") == {"img-alt-meaningful": "info"}


def test_config_manager_user_overrides(config_manager, tmp_path, monkeypatch):
    """Een gebruikersbestand overschrijft de standaardwaarden per sleutel."""
    user_file = tmp_path / "user.json"
    user_file.write_text(json.dumps({"auditor": {"workers": 4}, "debug": {"level": "DEBUG"}}))
    monkeypatch.setattr(PathUtils, 'get_user_settings_file', lambda: user_file)

    config_manager.reset()
    assert config_manager.get_nested("auditor.workers") == 4
    assert config_manager.get_nested("debug.level") == "DEBUG"
    # Niet genoemde sleutels blijven staan
    assert config_manager.get_nested("auditor.top_violations") == 10
    assert config_manager.get_nested("debug.module_levels") == {"a11y_auditor.dom.qngine": "DEBUG"}


def test_config_manager_ignores_non_object_user_file(config_manager, tmp_path, monkeypatch, caplog):
    user_file = tmp_path / "user.json"
    user_file.write_text(json.dumps(["geen", "object"]))
    monkeypatch.setattr(PathUtils, 'get_user_settings_file', lambda: user_file)

    with caplog.at_level(logging.ERROR):
        config_manager.reset()
    assert config_manager.get_nested("auditor.workers") == 1
    assert "top level must be an object" in caplog.text


def test_config_manager_set_nested_refuses_non_dict(config_manager):
    assert not config_manager.set_nested("auditor.workers.max", 3)


def test_config_manager_reset(config_manager):
    """Test of de reset-functie de configuratie herlaadt vanaf schijf."""
    config_manager.set_nested("debug.level", "DEBUG")
    config_manager.reset()
    assert config_manager.get_nested("debug.level") == "WARNING"


def test_config_manager_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(PathUtils, 'get_settings_file', lambda: tmp_path / "missing.json")
    manager = ConfigManager()
    manager.reset()
    assert manager.get_all() == {}

    monkeypatch.undo()
    manager.reset()


def test_config_manager_invalid_json(tmp_path, monkeypatch):
    broken = tmp_path / "settings.json"
    broken.write_text("{ niet: geldig")
    monkeypatch.setattr(PathUtils, 'get_settings_file', lambda: broken)
    manager = ConfigManager()
    manager.reset()
    assert manager.get_all() == {}

    monkeypatch.undo()
    manager.reset()


def test_audit_settings_from_config(config_manager):
    config_manager.set_nested("auditor.disabled_rules", "duplicate-id")
    settings = AuditSettings.from_config(config_manager)

    assert settings.disabled_rules == ["duplicate-id"]
    assert settings.severity_overrides == {"img-alt-meaningful": "info"}
    assert settings.workers == 1


def test_audit_settings_validation():
    with pytest.raises(ValueError):
        AuditSettings(workers=0)
    with pytest.raises(ValueError):
        AuditSettings(severity_overrides={"img-alt": "fatal"})


def test_packaged_settings_file_is_valid():
    """Het meegeleverde settings.json is geldig en bevat een 'auditor'-sectie."""
    packaged = json.loads(PathUtils.get_settings_file().read_text(encoding="utf-8"))
    assert AuditSettings.model_validate(packaged["auditor"]) == AuditSettings()


def test_configure_from_config(config_manager, restore_logging):
    configure_from_config(config_manager)

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert [type(handler) for handler in root.handlers] == [LogWithTqdm]
    assert logging.getLogger("a11y_auditor.dom.qngine").level == logging.DEBUG
    assert logging.getLogger("concurrent.futures").level == logging.ERROR


def test_configure_logger_is_repeatable(restore_logging):
    """Herhaald configureren stapelt geen handlers op."""
    configure_logger("INFO")
    configure_logger("INFO")
    assert len(logging.getLogger().handlers) == 1
