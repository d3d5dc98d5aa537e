# src/a11y_auditor/dom/text_extractor.py
"""
Static resolution of the accessible text of an element.

Nothing is evaluated: dynamic expressions are classified by their lexical
shape only. The result is three-valued. CONFIRMED carries concrete text,
INFERRED means text is very likely rendered at runtime but unknown, ABSENT
means no text could be found.

Validators treat INFERRED as sufficient to suppress "missing text" errors.
This biases the engine towards false negatives on dynamic content instead of
flooding reports with false positives.
"""
import logging
import re
from enum import Enum
from typing import Callable, List, Optional, Tuple, Iterator

from pydantic import BaseModel, ConfigDict

from .constants import (
    ARIA_LABELING_ATTRIBUTES,
    DECORATIVE_CLASS_PATTERNS,
    DECORATIVE_COMPONENT_FRAGMENTS,
    DECORATIVE_TAGS,
    ICON_COMPONENT_PATTERNS,
    PRESENTATION_ROLES,
    TEXT_BEARING_PROPS,
)
from .core import Element, PropType, PropValue, get_class_name, get_property, get_string_value

logger = logging.getLogger(__name__)


class TextKind(str, Enum):
    ABSENT = "absent"
    INFERRED = "inferred"
    CONFIRMED = "confirmed"


class TextResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TextKind
    text: Optional[str] = None

    @classmethod
    def absent(cls) -> "TextResolution":
        return _ABSENT

    @classmethod
    def inferred(cls) -> "TextResolution":
        return _INFERRED

    @classmethod
    def confirmed(cls, text: str) -> "TextResolution":
        return cls(kind=TextKind.CONFIRMED, text=text)

    @classmethod
    def from_text(cls, text: Optional[str]) -> "TextResolution":
        """CONFIRMED for non-blank text, ABSENT otherwise."""
        if text and text.strip():
            return cls.confirmed(" ".join(text.split()))
        return _ABSENT

    @property
    def is_confirmed(self) -> bool:
        return self.kind == TextKind.CONFIRMED

    @property
    def is_inferred(self) -> bool:
        return self.kind == TextKind.INFERRED

    @property
    def is_absent(self) -> bool:
        return self.kind == TextKind.ABSENT

    @property
    def is_likely(self) -> bool:
        return self.kind != TextKind.ABSENT


_ABSENT = TextResolution(kind=TextKind.ABSENT)
_INFERRED = TextResolution(kind=TextKind.INFERRED)


# --- LEXICAL SCANNING ---

_QUOTES = "\"'`"
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}


def _skip_string(expr: str, start: int) -> int:
    """Returns the index just past the string literal opening at `start`."""
    quote = expr[start]
    i = start + 1
    while i < len(expr):
        ch = expr[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        i += 1
    return len(expr)


def _iter_top_level(expr: str) -> Iterator[Tuple[int, str]]:
    """Yields (index, char) for characters outside string literals and brackets."""
    depth = 0
    i = 0
    while i < len(expr):
        ch = expr[i]
        if ch in _QUOTES:
            i = _skip_string(expr, i)
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif depth == 0:
            yield i, ch
        i += 1


def split_top_level(expr: str, operator: str) -> Optional[Tuple[str, str]]:
    """Splits at the first top-level occurrence of a binary operator."""
    for i, _ in _iter_top_level(expr):
        if expr.startswith(operator, i):
            # '|' of '||' or '&' of '&&' must not match a longer operator
            if operator == "?" and (expr.startswith("??", i) or expr.startswith("?.", i)):
                continue
            if operator == "?" and i > 0 and expr[i - 1] == "?":
                continue
            return expr[:i].strip(), expr[i + len(operator):].strip()
    return None


def split_ternary(expr: str) -> Optional[Tuple[str, str, str]]:
    """Splits `cond ? a : b` at top level, honouring nested ternaries in either branch."""
    head = split_top_level(expr, "?")
    if head is None:
        return None
    condition, rest = head
    pending = 0
    for i, ch in _iter_top_level(rest):
        if ch == "?" and not rest.startswith("??", i) and not rest.startswith("?.", i) \
                and not (i > 0 and rest[i - 1] == "?"):
            pending += 1
        elif ch == ":":
            if pending == 0:
                return condition, rest[:i].strip(), rest[i + 1:].strip()
            pending -= 1
    return None


def strip_parens(expr: str) -> str:
    expr = expr.strip()
    while expr.startswith("(") and expr.endswith(")"):
        depth = 0
        wraps = True
        for i, ch in enumerate(expr):
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0 and i != len(expr) - 1:
                    wraps = False
                    break
        if not wraps:
            break
        expr = expr[1:-1].strip()
    return expr


def iter_brace_segments(text: str) -> Iterator[Tuple[bool, str, int]]:
    """
    Splits text into static and `{expression}` segments.
    Yields (is_expression, content, start_index).
    """
    i = 0
    static_start = 0
    while i < len(text):
        if text[i] != "{":
            i += 1
            continue
        depth = 0
        j = i
        while j < len(text):
            ch = text[j]
            if ch in _QUOTES:
                j = _skip_string(text, j)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    break
            j += 1
        if j >= len(text):
            # Unbalanced: treat the remainder as static text
            break
        if i > static_start:
            yield False, text[static_start:i], static_start
        yield True, text[i + 1:j], i
        i = j + 1
        static_start = i
    if static_start < len(text):
        yield False, text[static_start:], static_start


def is_single_literal(expr: str) -> bool:
    return len(expr) >= 2 and expr[0] in _QUOTES and _skip_string(expr, 0) == len(expr)


def child_expressions(source: str) -> List[str]:
    """
    Expression segments of a markup snippet in child position, i.e. not
    attribute values (`attr={...}`), spreads or comments.
    """
    found = []
    for is_expr, content, start in iter_brace_segments(source):
        if not is_expr:
            continue
        before = source[:start].rstrip()
        if before.endswith("=") or before.endswith("$"):
            continue
        stripped = content.strip()
        if not stripped or stripped.startswith("...") or stripped.startswith("/*"):
            continue
        found.append(stripped)
    return found


# --- EXPRESSION STRATEGIES ---

TRANSLATION_FUNCTIONS = frozenset([
    "t", "i18n", "translate", "_", "__", "tr", "gettext", "getText", "formatMessage", "$t",
])
TRANSLATION_SUFFIXES = ("translate", "translation", "formatmessage", "gettext")

_CALL_RE = re.compile(r"^(?P<callee>[A-Za-z_$][\w$]*(?:\??\.[A-Za-z_$][\w$]*)*)\s*\(")
_MEMBER_RE = re.compile(r"^[A-Za-z_$][\w$]*(?:\??\.[A-Za-z_$][\w$]*|\[\s*(?:\d+|\"[^\"]*\"|'[^']*')\s*\])*$")
_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_TEXT_HELPER_RE = re.compile(
    r"^(?:get[A-Z][\w$]*(?:Text|Label|Title|Message)|format[A-Z][\w$]*|[\w$.]+\.(?:getText|getLabel))$"
)
_MARKUP_RE = re.compile(r"^<[A-Za-z>]")
_TAG_RE = re.compile(r"<[^>]*>")

TEXT_NAME_TOKENS = ("text", "label", "title", "message", "content", "children")

Resolver = Callable[[str], TextResolution]
Strategy = Callable[[str, Resolver], Optional[TextResolution]]


def _first_likely(resolve: Resolver, *branches: str) -> TextResolution:
    for branch in branches:
        result = resolve(branch)
        if result.is_likely:
            return result
    return TextResolution.absent()


def resolve_string_literal(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    if expr[:1] in ("'", '"') and is_single_literal(expr):
        return TextResolution.from_text(expr[1:-1])
    return None


def resolve_template_literal(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    if not (expr[:1] == "`" and is_single_literal(expr)):
        return None
    content = expr[1:-1]
    if "${" not in content:
        return TextResolution.from_text(content)
    static = [segment.strip() for segment in re.split(r"\$\{[^}]*\}", content)]
    static = [segment for segment in static if segment]
    if static:
        return TextResolution.confirmed(" ".join(static))
    # Interpolation only: rendered text, value unknown
    return TextResolution.inferred()


def resolve_number_literal(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    if _NUMBER_RE.match(expr):
        return TextResolution.confirmed(expr)
    return None


def resolve_ternary(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    parts = split_ternary(expr)
    if parts is None:
        return None
    _, when_true, when_false = parts
    return _first_likely(resolve, when_true, when_false)


def resolve_logical_or(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    for operator in ("||", "??"):
        parts = split_top_level(expr, operator)
        if parts is not None:
            return _first_likely(resolve, *parts)
    return None


def resolve_logical_and(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    parts = split_top_level(expr, "&&")
    if parts is None:
        return None
    return resolve(parts[1])


def resolve_markup(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    if not _MARKUP_RE.match(expr):
        return None
    inner = _TAG_RE.sub(" ", expr)
    return resolve_mixed_text(inner, resolve)


def resolve_i18n_call(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    match = _CALL_RE.match(expr)
    if not match or not expr.endswith(")"):
        return None
    name = re.split(r"\??\.", match.group("callee"))[-1]
    if name in TRANSLATION_FUNCTIONS or name.lower().endswith(TRANSLATION_SUFFIXES):
        return TextResolution.inferred()
    return None


def resolve_text_helper_call(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    match = _CALL_RE.match(expr)
    if match and expr.endswith(")") and _TEXT_HELPER_RE.match(match.group("callee")):
        return TextResolution.inferred()
    return None


def resolve_text_identifier(expr: str, resolve: Resolver) -> Optional[TextResolution]:
    if _MEMBER_RE.match(expr) and any(token in expr.lower() for token in TEXT_NAME_TOKENS):
        return TextResolution.inferred()
    return None


# Ordered (pattern kind -> strategy) table; the first applicable strategy decides.
# Ternary precedes the logical operators because it binds loosest.
EXPRESSION_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("string-literal", resolve_string_literal),
    ("template-literal", resolve_template_literal),
    ("number-literal", resolve_number_literal),
    ("ternary", resolve_ternary),
    ("logical-or", resolve_logical_or),
    ("logical-and", resolve_logical_and),
    ("markup", resolve_markup),
    ("i18n-call", resolve_i18n_call),
    ("text-helper-call", resolve_text_helper_call),
    ("text-identifier", resolve_text_identifier),
]


def resolve_expression(expr: Optional[str], depth: int = 0) -> TextResolution:
    """Resolves raw expression source text through the strategy table."""
    if not expr or depth > 25:
        return TextResolution.absent()
    cleaned = strip_parens(expr)
    if not cleaned:
        return TextResolution.absent()

    def recurse(sub_expr: str) -> TextResolution:
        return resolve_expression(sub_expr, depth + 1)

    for _kind, strategy in EXPRESSION_STRATEGIES:
        result = strategy(cleaned, recurse)
        if result is not None:
            return result
    return TextResolution.absent()


def resolve_mixed_text(text: Optional[str], resolve: Resolver = resolve_expression) -> TextResolution:
    """Resolves text holding static parts and embedded `{expression}` segments."""
    if not text:
        return TextResolution.absent()
    parts: List[str] = []
    inferred = False
    for is_expr, content, _ in iter_brace_segments(text):
        result = resolve(content) if is_expr else TextResolution.from_text(content)
        if result.is_confirmed:
            parts.append(result.text)
        elif result.is_inferred:
            inferred = True
    if parts:
        return TextResolution.confirmed(" ".join(parts))
    return TextResolution.inferred() if inferred else TextResolution.absent()


def resolve_prop(prop: Optional[PropValue]) -> TextResolution:
    if prop is None:
        return TextResolution.absent()
    if prop.type == PropType.EXPRESSION:
        return resolve_expression(prop.raw_value)
    return TextResolution.from_text(prop.as_string())


class TextContentExtractor:
    """
    Resolves the accessible text of elements.

    Order: ARIA labeling properties, then static text of the element and its
    non-decorative descendants, then embedded dynamic expressions. The first
    CONFIRMED result wins; an INFERRED result is kept as fallback.
    """

    @classmethod
    def resolve(cls, element: Element) -> TextResolution:
        inferred = False

        # 1. ARIA labeling (alt acts as the label of images)
        label_props = ARIA_LABELING_ATTRIBUTES
        if element.tag in ("img", "area"):
            label_props = label_props + ("alt",)
        for name in label_props:
            result = resolve_prop(get_property(element, name))
            if result.is_confirmed:
                return result
            inferred = inferred or result.is_inferred

        # 2. Static content of the element and its descendants
        parts: List[str] = []
        for is_expr, content, _ in iter_brace_segments(element.text or ""):
            if not is_expr and content.strip():
                parts.append(" ".join(content.split()))
        for child in element.children:
            if cls.is_non_text_element(child):
                continue
            result = cls.resolve(child)
            if result.is_confirmed:
                parts.append(result.text)
            inferred = inferred or result.is_inferred
        if parts:
            return TextResolution.confirmed(" ".join(parts))

        # 3. Dynamic expressions
        expressions = [content for is_expr, content, _ in iter_brace_segments(element.text or "") if is_expr]
        for name in TEXT_BEARING_PROPS:
            prop = get_property(element, name)
            if prop is None:
                continue
            if prop.type == PropType.EXPRESSION:
                expressions.append(prop.raw_value or "")
            elif name == "children":
                result = TextResolution.from_text(prop.as_string())
                if result.is_confirmed:
                    parts.append(result.text)
            elif TextResolution.from_text(prop.as_string()).is_confirmed:
                # Component props like label="Save" are usually rendered
                inferred = True
        if not expressions and not parts and element.source_context:
            expressions.extend(child_expressions(element.source_context))

        for expr in expressions:
            result = resolve_expression(expr)
            if result.is_confirmed:
                parts.append(result.text)
            inferred = inferred or result.is_inferred
        if parts:
            return TextResolution.confirmed(" ".join(parts))

        return TextResolution.inferred() if inferred else TextResolution.absent()

    @classmethod
    def extract_accessible_text(cls, element: Element) -> Optional[str]:
        """Concrete accessible text, or None when absent or only inferred."""
        result = cls.resolve(element)
        return result.text if result.is_confirmed else None

    @classmethod
    def has_accessible_text(cls, element: Element) -> bool:
        return cls.resolve(element).is_confirmed

    @classmethod
    def likely_has_text(cls, element: Element) -> bool:
        return cls.resolve(element).is_likely

    # --- ELEMENT CLASSIFICATION ---

    @staticmethod
    def is_non_text_element(element: Element) -> bool:
        """
        Structurally non-text elements, skipped during text aggregation.
        Screen-reader-only content is visually hidden but still counts as text.
        """
        if get_string_value(element, "aria-hidden") == "true":
            return True
        if get_string_value(element, "role") in PRESENTATION_ROLES:
            return True
        if element.tag in DECORATIVE_TAGS:
            return True
        if element.tag == "img":
            return get_string_value(element, "alt") == ""
        return False

    @classmethod
    def is_decorative_element(cls, element: Element) -> bool:
        """Non-text elements plus icon and loader components."""
        if cls.is_non_text_element(element):
            return True
        if any(pattern.search(element.source_tag) for pattern in ICON_COMPONENT_PATTERNS):
            return True
        if element.tag not in ("img",) and any(fragment in element.tag for fragment in DECORATIVE_COMPONENT_FRAGMENTS):
            return True
        class_name = get_class_name(element)
        if class_name and any(pattern.search(class_name) for pattern in DECORATIVE_CLASS_PATTERNS):
            return not cls.resolve(element).is_confirmed
        return False
