import re
from typing import List, Optional

from ..core import Element, PropType, RuleDefinition, Selector, Violation, audit_rule, get_property
from ..text_extractor import is_single_literal, split_ternary, strip_parens

# Basic ISO 639 / BCP 47 shapes: "en", "eng", "en-US", "zh-Hans", "en-US-posix"
LANGUAGE_CODE_PATTERNS = [
    re.compile(r"^[a-z]{2,3}$"),
    re.compile(r"^[a-z]{2,3}-[A-Z]{2}$"),
    re.compile(r"^[a-z]{2,3}-[A-Z][a-z]{3}$"),
    re.compile(r"^[a-z]{2}-[A-Z]{2}-[a-zA-Z]+$"),
]


def is_valid_language_code(value: str) -> bool:
    return any(pattern.match(value) for pattern in LANGUAGE_CODE_PATTERNS)


def _string_literal(expr: str) -> Optional[str]:
    expr = strip_parens(expr)
    if expr[:1] in ("'", '"') and is_single_literal(expr):
        return expr[1:-1]
    return None


def _static_lang_values(raw: str) -> List[str]:
    """
    Literal lang values of an expression. Variables, member access and calls
    (`locale`, `router.locale`, `getLocale()`) are trusted and yield nothing.
    """
    literal = _string_literal(raw)
    if literal is not None:
        return [literal]
    ternary = split_ternary(strip_parens(raw))
    if ternary is not None:
        return [value for value in map(_string_literal, ternary[1:]) if value is not None]
    return []


@audit_rule(
    "html-lang",
    name="HTML must have lang attribute",
    description="The html element must have a lang attribute identifying the page language",
    severity="error",
    selector=Selector(tag="html"),
    level="A",
    criterion="3.1.1",
    category="DOCUMENT",
)
def check_html_lang(node: Element, scope: List[Element]) -> Optional[Violation]:
    prop = get_property(node, "lang")
    if prop is None or prop.type == PropType.UNDEFINED or (prop.type == PropType.STRING and not prop.value.strip()):
        return Violation.for_element(
            "html-lang", "error",
            'html element must have a lang attribute to identify the page language (e.g., lang="en")',
            node,
        )

    if prop.type == PropType.STRING:
        values = [prop.value.strip()]
    elif prop.type == PropType.EXPRESSION:
        values = _static_lang_values(prop.raw_value or "")
    else:
        values = [prop.as_string()]

    for value in values:
        if not is_valid_language_code(value):
            return Violation.for_element(
                "html-lang", "warning",
                f'lang attribute value "{value}" should follow ISO language codes (e.g., "en", "en-US", "fr", "es")',
                node,
            )
    return None


# --- DEFINITION ---
DEFINITION = RuleDefinition(
    category="DOCUMENT",
    validators=[check_html_lang],
)
