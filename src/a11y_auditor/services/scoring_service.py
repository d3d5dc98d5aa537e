# src/a11y_auditor/services/scoring_service.py
import logging
from typing import Iterable, List, Optional, Set, Tuple, Union

from a11y_auditor.dom.constants import SEVERITY_WEIGHTS
from a11y_auditor.dom.core import Violation
from a11y_auditor.dom.registry import RuleRegistry
from a11y_auditor.model import ComplianceVerdict

logger = logging.getLogger(__name__)

# Penalty points per severity weight, capped
PENALTY_FACTOR = 2
MAX_PENALTY = 50


def _element_key(violation: Violation) -> Union[int, Tuple[str, Optional[int]]]:
    if violation.element_index is not None:
        return violation.element_index
    line = violation.location.line if violation.location else None
    return violation.element_tag, line


class ScoringService:
    """
    Scores components and derives the compliance verdict.

    score = round(clean-element ratio * 100 - min(2 * sum(weights), 50)),
    clamped to 0-100. An empty component scores 100.
    """

    @staticmethod
    def calculate_component_score(element_count: int, violations: List[Violation]) -> int:
        if element_count <= 0:
            return 100

        violating: Set = {_element_key(v) for v in violations}
        clean = max(element_count - len(violating), 0)
        base = clean / element_count * 100

        weight = sum(SEVERITY_WEIGHTS.get(v.severity, 0) for v in violations)
        penalty = min(PENALTY_FACTOR * weight, MAX_PENALTY)

        return max(0, min(100, round(base - penalty)))

    @staticmethod
    def calculate_overall_score(scores: Iterable[int]) -> int:
        scores = list(scores)
        if not scores:
            return 100
        return round(sum(scores) / len(scores))

    @staticmethod
    def determine_compliance_level(violations: List[Violation], registry: RuleRegistry) -> ComplianceVerdict:
        """
        Ladder, evaluated in order:
        no errors and no AA-level warnings -> AAA; no errors -> AA;
        no A-level errors -> A; otherwise none.
        """
        errors = [v for v in violations if v.severity == "error"]
        aa_warnings = [
            v for v in violations
            if v.severity == "warning" and ScoringService._level_of(v, registry) == "AA"
        ]

        if not errors and not aa_warnings:
            return "AAA"
        if not errors:
            return "AA"
        # Unknown rule ids have no level and never count as A-level
        if not any(ScoringService._level_of(v, registry) == "A" for v in errors):
            return "A"
        return "none"

    @staticmethod
    def _level_of(violation: Violation, registry: RuleRegistry) -> Optional[str]:
        rule = registry.get(violation.rule_id)
        return rule.level if rule else None
