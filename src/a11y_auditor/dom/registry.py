# src/a11y_auditor/dom/registry.py
import importlib
import pkgutil
import logging
from typing import Dict, List, Iterable, Optional, TYPE_CHECKING

from .core import Rule, RuleDefinition, MultiElementCheck, ComplianceLevel, Severity

if TYPE_CHECKING:
    from ..model import AuditSettings

logger = logging.getLogger(__name__)

ELEMENTS_PACKAGE = "a11y_auditor.dom.elements"


class RuleRegistry:
    """
    Registry of accessibility rules and the multi-element checks serving them.

    Rules are discovered from the RuleDefinition modules of the
    'a11y_auditor.dom.elements' package. A registry is a plain object: build one
    per configuration and hand it to the engine.
    """

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        self._rules: Dict[str, Rule] = {}
        self._multi_element_checks: Dict[str, MultiElementCheck] = {}
        self._severity_overrides: Dict[str, Severity] = {}
        for rule in rules or []:
            self.register(rule)

    @classmethod
    def discover(cls, settings: Optional["AuditSettings"] = None) -> "RuleRegistry":
        """
        Builds a registry from all element definitions found in the elements package.

        Each module exposing a `DEFINITION` (instance of `RuleDefinition`)
        contributes its rules and multi-element checks. Settings may disable
        rules or override their severity.
        """
        registry = cls()
        elements_pkg = importlib.import_module(ELEMENTS_PACKAGE)

        for _, name, _ in pkgutil.iter_modules(elements_pkg.__path__):
            full_name = f"{ELEMENTS_PACKAGE}.{name}"
            try:
                module = importlib.import_module(full_name)
            except ImportError as e:
                logger.error(f"Error loading rule module {name}: {e}")
                continue

            defn = getattr(module, "DEFINITION", None)
            if not isinstance(defn, RuleDefinition):
                continue
            for rule in defn.rules:
                registry.register(rule, defn.multi_element_checks.get(rule.id))
            logger.debug(f"Rule module loaded: {name} ({', '.join(defn.codes)})")

        if settings is not None:
            registry.apply_settings(settings)
        logger.debug("RuleRegistry discovered %d rules.", len(registry))
        return registry

    def register(self, rule: Rule, multi_element_check: Optional[MultiElementCheck] = None) -> None:
        if rule.id in self._rules:
            logger.warning("Rule '%s' registered twice; keeping the latest definition.", rule.id)
        self._rules[rule.id] = rule
        if multi_element_check is not None:
            self._multi_element_checks[rule.id] = multi_element_check

    def apply_settings(self, settings: "AuditSettings") -> None:
        for rule_id in settings.disabled_rules:
            if self._rules.pop(rule_id, None) is None:
                logger.warning("Cannot disable unknown rule '%s'.", rule_id)
            self._multi_element_checks.pop(rule_id, None)

        for rule_id, severity in settings.severity_overrides.items():
            rule = self._rules.get(rule_id)
            if rule is None:
                logger.warning("Cannot override severity of unknown rule '%s'.", rule_id)
                continue
            self._rules[rule_id] = rule.model_copy(update={"severity": severity})
            self._severity_overrides[rule_id] = severity

    def severity_for(self, rule_id: str, emitted: Severity) -> Severity:
        """Severity of a violation after configured overrides."""
        return self._severity_overrides.get(rule_id, emitted)

    # --- LOOKUPS ---

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def all_rules(self) -> List[Rule]:
        """Returns all rules in registration order."""
        return list(self._rules.values())

    def rules_for_tag(self, tag: str) -> List[Rule]:
        """Rules whose selector names the tag explicitly."""
        tag = tag.lower()
        return [rule for rule in self._rules.values() if tag in rule.selector.tag_names()]

    def rules_for_props(self, names: Iterable[str]) -> List[Rule]:
        """Rules whose required or optional selector properties intersect `names`."""
        wanted = set(names)
        matched = []
        for rule in self._rules.values():
            selector_props = set(rule.selector.has_props or ()) | set(rule.selector.has_any_prop or ())
            if selector_props & wanted:
                matched.append(rule)
        return matched

    def rules_by_level(self, level: ComplianceLevel) -> List[Rule]:
        return [rule for rule in self._rules.values() if rule.level == level]

    def rules_by_severity(self, severity: Severity) -> List[Rule]:
        return [rule for rule in self._rules.values() if rule.severity == severity]

    def rules_by_category(self, category: str) -> List[Rule]:
        return [rule for rule in self._rules.values() if rule.category == category]

    def is_multi_element(self, rule_id: str) -> bool:
        rule = self._rules.get(rule_id)
        return rule is not None and rule.is_multi_element

    def multi_element_checks(self) -> List[MultiElementCheck]:
        """Distinct multi-element checks of enabled rules, in registration order."""
        checks: List[MultiElementCheck] = []
        for rule_id, check in self._multi_element_checks.items():
            if rule_id in self._rules and check not in checks:
                checks.append(check)
        return checks

    def get_all_codes(self) -> List[str]:
        return sorted(self._rules)
