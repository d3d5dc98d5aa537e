from typing import List, Optional

from ..constants import (
    ARIA_LABELING_ATTRIBUTES,
    CLICK_HANDLERS,
    INTERACTIVE_ARIA_ROLES,
    INTERACTIVE_EVENT_HANDLERS,
    INTERACTIVE_HTML_ELEMENTS,
    KEYBOARD_HANDLERS,
)
from ..context import ContextAnalyzer, has_label_value
from ..core import (
    Element,
    RuleDefinition,
    Selector,
    Violation,
    audit_rule,
    get_property,
    get_string_value,
    has_any_property,
    has_property,
    is_component,
)
from ..text_extractor import TextContentExtractor


def _has_aria_labeling(node: Element) -> bool:
    return any(has_label_value(get_property(node, name)) for name in ARIA_LABELING_ATTRIBUTES)


def _missing_text(node: Element, rule_id: str, kind: str) -> Optional[Violation]:
    """
    Shared accessible-text check of buttons and links.

    Icon-only controls need explicit labeling; for anything else text that is
    likely rendered at runtime is enough.
    """
    if ContextAnalyzer.is_icon_only_element(node):
        if ContextAnalyzer.has_explicit_labeling(node):
            return None
        return Violation.for_element(
            rule_id, "error",
            f"Icon-only {kind} must have aria-label or aria-labelledby for accessibility",
            node,
        )

    if TextContentExtractor.likely_has_text(node) or _has_aria_labeling(node):
        return None

    severity = ContextAnalyzer.determine_severity(node, has_issue=True) or "error"
    message = f"{kind.capitalize()} must have accessible text content or aria-label"
    if severity == "warning":
        message += f". Note: {kind.capitalize()} uses spread props which may contain accessibility attributes."
    return Violation.for_element(rule_id, severity, message, node)


# --- RULES ---

@audit_rule(
    "button-text",
    name="Buttons must have accessible text",
    description="Button elements must have text content or ARIA labeling",
    severity="error",
    selector=Selector(tag="button"),
    level="A",
    criterion="4.1.2",
    category="INTERACTIVE",
)
def check_button_text(node: Element, scope: List[Element]) -> Optional[Violation]:
    return _missing_text(node, "button-text", "button")


@audit_rule(
    "link-text",
    name="Links must have accessible text",
    description="Link elements must have text content or ARIA labeling",
    severity="error",
    selector=Selector(tag="a"),
    level="A",
    criterion="4.1.2",
    category="INTERACTIVE",
)
def check_link_text(node: Element, scope: List[Element]) -> Optional[Violation]:
    return _missing_text(node, "link-text", "link")


@audit_rule(
    "link-text-descriptive",
    name="Link text should be descriptive",
    description="Link text should describe the destination or purpose of the link",
    severity="warning",
    selector=Selector(tag="a"),
    level="AA",
    criterion="2.4.4",
    category="INTERACTIVE",
)
def check_link_descriptive(node: Element, scope: List[Element]) -> Optional[Violation]:
    """Only concrete text is judged; inferred text is unknown and passes."""
    text = TextContentExtractor.extract_accessible_text(node)
    if not text or ContextAnalyzer.has_descriptive_link_text(node):
        return None
    return Violation.for_element(
        "link-text-descriptive", "warning",
        f'Link text "{text}" is not descriptive. Use text that describes the destination or purpose.',
        node,
    )


@audit_rule(
    "interactive-role",
    name="Interactive elements need proper roles",
    description="Non-interactive elements with click handlers need an interactive ARIA role and keyboard support",
    severity="warning",
    selector=Selector(has_any_prop=INTERACTIVE_EVENT_HANDLERS),
    level="A",
    criterion="4.1.2",
    category="INTERACTIVE",
)
def check_interactive_role(node: Element, scope: List[Element]) -> Optional[Violation]:
    if not has_any_property(node, CLICK_HANDLERS):
        return None
    # Natively interactive, or a component whose handler is just a prop
    if node.tag in INTERACTIVE_HTML_ELEMENTS or is_component(node):
        return None
    if get_string_value(node, "role") in INTERACTIVE_ARIA_ROLES:
        return None

    message = f"Interactive {node.tag} should have appropriate ARIA role (button, link, etc.)"
    if not has_property(node, "tabIndex") and not has_any_property(node, KEYBOARD_HANDLERS):
        message += " and keyboard accessibility (tabIndex, onKeyDown)"
    if ContextAnalyzer.has_spread_props(node):
        message += ". Note: Element uses spread props which may handle accessibility."
    return Violation.for_element("interactive-role", "warning", message, node)


# --- DEFINITION ---
DEFINITION = RuleDefinition(
    category="INTERACTIVE",
    validators=[check_button_text, check_link_text, check_link_descriptive, check_interactive_role],
)
