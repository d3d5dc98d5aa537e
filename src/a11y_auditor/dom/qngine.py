# src/a11y_auditor/dom/qngine.py
import logging
from typing import Iterable, List, Optional, Union

from .core import Element, Violation, flatten
from .matcher import ElementMatcher
from .registry import RuleRegistry
from ..model import AuditSettings, ComponentReport
from ..services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

ElementTree = Union[Element, Iterable[Element], None]


class QNGINE:
    """
    Quality Engine (QNGINE) for auditing the element tree of one component.

    It flattens the tree in document order, dispatches every matching
    single-element rule, runs the multi-element checks once over the whole
    collection, and scores the result. The engine holds no mutable state
    between runs.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None, settings: Optional[AuditSettings] = None):
        """
        Args:
            registry: Rule registry to audit against; discovered when omitted.
            settings: Audit settings controlling which severities are reported.
        """
        self.registry = registry if registry is not None else RuleRegistry.discover(settings)
        self.matcher = ElementMatcher(self.registry)
        self.include_warnings = settings.include_warnings if settings else True
        self.include_info = settings.include_info if settings else True

    def run_audit(self, tree: ElementTree) -> List[Violation]:
        """
        Runs the full rule suite on a component tree.

        Args:
            tree: Root element, list of root elements, or None for an empty tree.

        Returns:
            List[Violation]: Deduplicated violations, single-element findings first.
        """
        return self._audit_elements(flatten(tree))

    def audit_component(self, component_id: str, path: str, tree: ElementTree) -> ComponentReport:
        elements = flatten(tree)
        violations = self._audit_elements(elements)
        score = ScoringService.calculate_component_score(len(elements), violations)
        logger.debug(f"Audited {component_id}: {len(elements)} elements, {len(violations)} violations, score {score}")

        return ComponentReport(
            component_id=component_id,
            path=path,
            elements=elements,
            violations=violations,
            score=score,
        )

    def _audit_elements(self, elements: List[Element]) -> List[Violation]:
        findings: List[Violation] = []

        # --- Single-element rules ---
        for match in self.matcher.optimized_matches(elements):
            rule = match.rule
            if rule.is_multi_element:
                continue
            try:
                violation = rule.validator(match.element, elements)
            except Exception as e:
                logger.error(f"Validator for rule '{rule.id}' failed on <{match.element.tag}>: {e}")
                continue
            if violation is not None:
                findings.append(violation.model_copy(update={"element_index": match.index}))

        # --- Multi-element checks ---
        for check in self.registry.multi_element_checks():
            try:
                findings.extend(check(elements))
            except Exception as e:
                logger.error(f"Multi-element check '{check.__name__}' failed: {e}")

        return self._finalize(findings)

    def _finalize(self, findings: List[Violation]) -> List[Violation]:
        """Drops disabled or filtered findings, applies severity overrides and removes duplicates."""
        seen = set()
        violations = []
        for violation in findings:
            if violation.rule_id not in self.registry:
                continue

            severity = self.registry.severity_for(violation.rule_id, violation.severity)
            if severity != violation.severity:
                violation = violation.model_copy(update={"severity": severity})
            if severity == "warning" and not self.include_warnings:
                continue
            if severity == "info" and not self.include_info:
                continue

            key = self._dedup_key(violation)
            if key is not None:
                if key in seen:
                    continue
                seen.add(key)
            violations.append(violation)
        return violations

    @staticmethod
    def _dedup_key(violation: Violation):
        """
        Two findings collapse only when they describe the same element: same
        rule and same element position, or same rule, tag and line when no
        position was stamped. Findings with neither are always kept.
        """
        if violation.element_index is not None:
            return violation.rule_id, violation.element_index
        rule_id, tag, line = violation.identity
        if line is not None:
            return rule_id, tag, line
        return None
