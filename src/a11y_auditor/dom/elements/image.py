from typing import List, Optional

from ..constants import FILE_EXTENSION_PATTERN, MEANINGLESS_ALT_TERMS
from ..core import Element, PropType, RuleDefinition, Selector, Violation, audit_rule, get_property
from ..text_extractor import is_single_literal, strip_parens


def _static_alt(node: Element) -> Optional[str]:
    """Alt text when it is known statically: a string value or a string literal expression."""
    prop = get_property(node, "alt")
    if prop is None:
        return None
    if prop.type == PropType.STRING:
        return prop.value
    if prop.type == PropType.EXPRESSION:
        raw = strip_parens(prop.raw_value or "")
        if raw[:1] in ("'", '"') and is_single_literal(raw):
            return raw[1:-1]
    return None


# --- RULES ---

@audit_rule(
    "img-alt",
    name="Images must have alt text",
    description="All img elements must have an alt attribute describing the image or alt=\"\" if decorative",
    severity="error",
    selector=Selector(tag="img"),
    level="A",
    criterion="1.1.1",
    category="IMAGES",
)
def check_alt_present(node: Element, scope: List[Element]) -> Optional[Violation]:
    # alt={undefined} renders no attribute at all
    prop = get_property(node, "alt")
    if prop is None or prop.type == PropType.UNDEFINED:
        return Violation.for_element("img-alt", "error", "img element must have an alt attribute", node)
    return None


@audit_rule(
    "img-alt-meaningful",
    name="Image alt text should be meaningful",
    description="Alt text should describe the image content instead of generic terms or file names",
    severity="warning",
    selector=Selector(tag="img", has_props=("alt",)),
    level="A",
    criterion="1.1.1",
    category="IMAGES",
)
def check_alt_meaningful(node: Element, scope: List[Element]) -> Optional[Violation]:
    """
    Rule: alt text must say something about the image.
    alt="" marks a decorative image and is valid.
    """
    alt = _static_alt(node)
    if not alt:
        return None

    alt_text = alt.strip().lower()
    if alt_text in MEANINGLESS_ALT_TERMS:
        return Violation.for_element(
            "img-alt-meaningful", "warning",
            f'Alt text "{alt_text}" is not descriptive. Use text that describes the image content or purpose.',
            node,
        )
    if FILE_EXTENSION_PATTERN.search(alt_text):
        return Violation.for_element(
            "img-alt-meaningful", "warning",
            "Alt text should not contain file extensions. Describe the image content instead.",
            node,
        )
    return None


# --- DEFINITION ---
DEFINITION = RuleDefinition(
    category="IMAGES",
    validators=[check_alt_present, check_alt_meaningful],
)
