# tests/conftest.py
import pytest

from a11y_auditor.dom.qngine import QNGINE
from a11y_auditor.dom.registry import RuleRegistry
from a11y_auditor.utils.path_utils import PathUtils


@pytest.fixture
def registry():
    """Een registry met alle ingebouwde regels, zonder instellingen."""
    return RuleRegistry.discover()


@pytest.fixture
def engine(registry):
    """Een QNGINE die tegen de volledige registry audit."""
    return QNGINE(registry=registry)


@pytest.fixture
def audit(engine):
    """Voert de audit uit op een boom en geeft de violations terug."""
    def _audit(tree):
        return engine.run_audit(tree)
    return _audit


@pytest.fixture
def rule_ids(engine):
    """Voert de audit uit en geeft alleen de rule ids terug, in volgorde."""
    def _rule_ids(tree):
        return [v.rule_id for v in engine.run_audit(tree)]
    return _rule_ids


@pytest.fixture(autouse=True)
def no_user_settings(tmp_path, monkeypatch):
    """Houdt een eventueel ~/.a11y_auditor/settings.json buiten de tests."""
    monkeypatch.setattr(PathUtils, "get_user_settings_file", lambda: tmp_path / "geen-gebruiker" / "settings.json")
