from typing import List, Optional

from ..constants import ARIA_LABELING_ATTRIBUTES
from ..context import ContextAnalyzer, has_label_value
from ..core import Element, RuleDefinition, Selector, Violation, audit_rule, get_property


# --- RULES ---

@audit_rule(
    "input-label",
    name="Form inputs must have labels",
    description="All form inputs must have associated labels or ARIA labeling",
    severity="error",
    selector=Selector(tags=("input", "select", "textarea")),
    level="A",
    criterion="1.3.1",
    category="FORMS",
)
def check_input_label(node: Element, scope: List[Element]) -> Optional[Violation]:
    """
    Rule: a form control needs an accessible label.

    Placeholder-only labeling suppresses the error but is reported as a warning.
    Spread props may inject labeling at runtime and demote the error to a warning.
    """
    labeling = ContextAnalyzer.resolve_labeling(node, scope)

    if not labeling.is_labeled:
        suggestions = ContextAnalyzer.get_suggestions(node, scope)
        severity = ContextAnalyzer.determine_severity(node, has_issue=True) or "error"
        message = "Form input must have accessible labeling."
        if suggestions:
            message += " " + ". ".join(suggestions)
        if severity == "warning":
            message += ". Note: Input uses spread props which may contain accessibility attributes."
        return Violation.for_element("input-label", severity, message, node)

    if labeling.is_weak:
        return Violation.for_element(
            "input-label", "warning",
            "Relying only on placeholder text for labeling is not sufficient. "
            "Consider adding aria-label or a label element.",
            node,
        )
    return None


@audit_rule(
    "fieldset-legend",
    name="Fieldsets should have legends",
    description="Fieldset elements should contain a legend element to describe the group",
    severity="warning",
    selector=Selector(tag="fieldset"),
    level="A",
    criterion="1.3.1",
    category="FORMS",
)
def check_fieldset_legend(node: Element, scope: List[Element]) -> Optional[Violation]:
    if any(child.tag == "legend" for child in node.children):
        return None

    if any(has_label_value(get_property(node, name)) for name in ARIA_LABELING_ATTRIBUTES):
        return Violation.for_element(
            "fieldset-legend", "info",
            "Fieldset has ARIA labeling but would benefit from a legend element for better semantic structure.",
            node,
        )
    return Violation.for_element(
        "fieldset-legend", "warning",
        "Fieldset should contain a legend element for better accessibility and form structure.",
        node,
    )


# --- DEFINITION ---
DEFINITION = RuleDefinition(
    category="FORMS",
    validators=[check_input_label, check_fieldset_legend],
)
