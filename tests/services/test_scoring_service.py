# tests/services/test_scoring_service.py
import pytest

from a11y_auditor.dom.core import Violation
from a11y_auditor.services.scoring_service import ScoringService


def violation(rule_id, severity, index=None, line=None):
    return Violation(
        rule_id=rule_id,
        severity=severity,
        message="test",
        element_tag="div",
        location={"line": line} if line is not None else None,
        element_index=index,
    )


# --- Componentscore ---

def test_empty_component_scores_100():
    assert ScoringService.calculate_component_score(0, [violation("img-alt", "error", 0)]) == 100


def test_clean_component_scores_100():
    assert ScoringService.calculate_component_score(5, []) == 100


@pytest.mark.parametrize("element_count,violations,expected", [
    # 9/10 schoon = 90, straf 2 * 10 = 20
    (10, [violation("img-alt", "error", 0)], 70),
    # twee violations op hetzelfde element: 90 - 2 * 15 = 60
    (10, [violation("img-alt", "error", 0), violation("aria-empty-value", "warning", 0)], 60),
    # info weegt 1: 75 - 2 = 73
    (4, [violation("fieldset-legend", "info", 1)], 73),
    # straf is begrensd op 50: 50 - 50 = 0
    (2, [violation("img-alt", "error", 0)] * 3, 0),
    # zonder index telt (tag, regel) als element
    (4, [violation("img-alt", "error", line=3), violation("link-text", "error", line=3)], 35),
])
def test_component_score(element_count, violations, expected):
    assert ScoringService.calculate_component_score(element_count, violations) == expected


def test_component_score_is_bounded():
    """De score blijft altijd tussen 0 en 100."""
    many = [violation("img-alt", "error", i) for i in range(40)]
    for count in (1, 3, 40, 500):
        assert 0 <= ScoringService.calculate_component_score(count, many) <= 100


def test_overall_score_is_rounded_mean():
    assert ScoringService.calculate_overall_score([100, 70]) == 85
    assert ScoringService.calculate_overall_score([100, 70, 0]) == 57
    assert ScoringService.calculate_overall_score([]) == 100


# --- Compliance-ladder ---

@pytest.mark.parametrize("violations,expected", [
    ([], "AAA"),
    # warning op een A-regel: geen AA-warning, dus AAA
    ([violation("img-alt-meaningful", "warning")], "AAA"),
    ([violation("fieldset-legend", "info")], "AAA"),
    ([violation("heading-hierarchy-skip", "warning")], "AA"),
    ([violation("link-text-descriptive", "warning"), violation("img-alt-meaningful", "warning")], "AA"),
    ([violation("img-alt", "error")], "none"),
    ([violation("img-alt", "error"), violation("heading-hierarchy-start", "warning")], "none"),
    # errors, maar geen enkele op A-niveau
    ([violation("heading-hierarchy-start", "error")], "A"),
    # onbekende regels tellen nooit als A-niveau
    ([violation("ghost-rule", "error")], "A"),
    ([violation("ghost-rule", "error"), violation("duplicate-id", "error")], "none"),
])
def test_compliance_ladder(registry, violations, expected):
    assert ScoringService.determine_compliance_level(violations, registry) == expected
