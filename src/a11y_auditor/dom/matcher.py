# src/a11y_auditor/dom/matcher.py
import logging
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional, Set, Tuple

from .constants import HTML_TAGS
from .core import Element, Rule, Selector, is_component, is_html_element
from .registry import RuleRegistry

logger = logging.getLogger(__name__)


class RuleMatch(NamedTuple):
    rule: Rule
    element: Element
    # Position of the element in the component's collection
    index: int


def matches_selector(element: Element, selector: Selector, rule_id: Optional[str] = None) -> bool:
    """
    Evaluates the selector predicates in a fixed order (tag, tags, has_props,
    has_any_prop, custom) and stops at the first failing one.

    A custom predicate that raises is logged and counts as no match.
    """
    if selector.tag and element.tag != selector.tag:
        return False
    if selector.tags and element.tag not in selector.tags:
        return False
    if selector.has_props and not all(name in element.properties for name in selector.has_props):
        return False
    if selector.has_any_prop and not any(name in element.properties for name in selector.has_any_prop):
        return False
    if selector.custom is not None:
        try:
            return bool(selector.custom(element))
        except Exception as e:
            logger.error(f"Selector for rule '{rule_id or '<anonymous>'}' failed on <{element.tag}>: {e}")
            return False
    return True


class ElementMatcher:
    """
    Matches elements of a component against the rules of a RuleRegistry.
    """

    def __init__(self, registry: RuleRegistry):
        self.registry = registry

    def applicable_rules(self, element: Element) -> List[Rule]:
        """All rules whose selector matches the element, in registry order."""
        return [rule for rule in self.registry.all_rules() if matches_selector(element, rule.selector, rule.id)]

    def create_rule_matches(self, elements: List[Element]) -> List[RuleMatch]:
        """Naive matching: every rule against every element."""
        return [
            RuleMatch(rule, element, index)
            for index, element in enumerate(elements)
            for rule in self.applicable_rules(element)
        ]

    def optimized_matches(self, elements: List[Element]) -> List[RuleMatch]:
        """
        Bulk matching producing the same (rule, element) pairs as the naive pass.

        Elements are grouped by tag so tag-keyed rules are only evaluated against
        their own tags; remaining rules (property-keyed, custom or unconstrained)
        are evaluated per element. The result is ordered by element position,
        then rule registration order.
        """
        rules = self.registry.all_rules()
        rule_order = {rule.id: position for position, rule in enumerate(rules)}
        untagged_rules = [rule for rule in rules if not rule.selector.is_tag_keyed]

        # --- Group element positions by tag ---
        positions_by_tag: Dict[str, List[int]] = defaultdict(list)
        for index, element in enumerate(elements):
            positions_by_tag[element.tag].append(index)

        seen: Set[Tuple[str, int]] = set()
        matches: List[RuleMatch] = []

        def add(rule: Rule, index: int) -> None:
            key = (rule.id, index)
            if key not in seen:
                seen.add(key)
                matches.append(RuleMatch(rule, elements[index], index))

        # --- Tag-keyed rules ---
        for tag, positions in positions_by_tag.items():
            tag_rules = self.registry.rules_for_tag(tag)
            for index in positions:
                for rule in tag_rules:
                    if matches_selector(elements[index], rule.selector, rule.id):
                        add(rule, index)

        # --- Property-keyed and custom rules ---
        for index, element in enumerate(elements):
            for rule in untagged_rules:
                if matches_selector(element, rule.selector, rule.id):
                    add(rule, index)

        matches.sort(key=lambda match: (match.index, rule_order[match.rule.id]))
        return matches

    # --- COVERAGE HELPERS ---

    def find_elements_for_rule(self, elements: List[Element], rule_id: str) -> List[Element]:
        rule = self.registry.get(rule_id)
        if rule is None:
            return []
        return [element for element in elements if matches_selector(element, rule.selector, rule.id)]

    def has_elements_for_rule(self, elements: List[Element], rule_id: str) -> bool:
        rule = self.registry.get(rule_id)
        return rule is not None and any(matches_selector(element, rule.selector, rule.id) for element in elements)

    def find_unused_rules(self, elements: List[Element]) -> List[Rule]:
        return [
            rule for rule in self.registry.all_rules()
            if not any(matches_selector(element, rule.selector, rule.id) for element in elements)
        ]

    def rule_coverage(self, elements: List[Element]) -> Dict[str, object]:
        total = len(self.registry)
        unused = self.find_unused_rules(elements)
        applicable = total - len(unused)
        return {
            "total_rules": total,
            "applicable_rules": applicable,
            "coverage_percentage": (applicable / total) * 100 if total else 0.0,
            "unused_rules": [rule.id for rule in unused],
        }

    @staticmethod
    def group_matches_by_rule(matches: List[RuleMatch]) -> Dict[str, List[RuleMatch]]:
        grouped: Dict[str, List[RuleMatch]] = defaultdict(list)
        for match in matches:
            grouped[match.rule.id].append(match)
        return dict(grouped)

    @staticmethod
    def group_matches_by_element(matches: List[RuleMatch]) -> Dict[int, List[RuleMatch]]:
        """Groups by element position; elements are compared by identity, not value."""
        grouped: Dict[int, List[RuleMatch]] = defaultdict(list)
        for match in matches:
            grouped[match.index].append(match)
        return dict(grouped)

    @staticmethod
    def filter_elements_by_type(elements: List[Element], kind: str) -> List[Element]:
        """Filters native HTML elements ('html') or components ('component')."""
        if kind == "html":
            return [element for element in elements if is_html_element(element)]
        if kind == "component":
            return [element for element in elements if is_component(element)]
        raise ValueError(f"Unknown element type filter: {kind}")

    def html_element_rules(self) -> List[Rule]:
        return [
            rule for rule in self.registry.all_rules()
            if any(tag in HTML_TAGS for tag in rule.selector.tag_names())
        ]

    def component_rules(self) -> List[Rule]:
        """Rules that can apply to components: property-keyed, custom or unconstrained selectors."""
        return [rule for rule in self.registry.all_rules() if not rule.selector.is_tag_keyed
                or rule.selector.is_property_keyed]
