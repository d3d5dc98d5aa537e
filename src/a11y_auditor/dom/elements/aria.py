import re
from typing import List, Optional, Tuple

from ..constants import (
    ARIA_ATTRIBUTE_VALUES,
    KNOWN_ARIA_TOKENS,
    VALID_ARIA_ROLES,
    VALID_ARIA_ROLES_ORDERED,
)
from ..core import (
    Element,
    PropType,
    Rule,
    RuleDefinition,
    Selector,
    Violation,
    audit_rule,
    get_property,
)
from ..text_extractor import is_single_literal, split_ternary, split_top_level, strip_parens

ARIA_LABEL_PROPS = ("aria-label", "aria-labelledby", "aria-describedby", "aria-description")

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
_MEMBER_OR_CALL = re.compile(r"^[A-Za-z_$][\w$.?]*(\(.*\))?$", re.DOTALL)
_COMPARISON = re.compile(r"(===|!==|==|!=|<=|>=|<|>)")
_NULLISH = frozenset(["undefined", "null", "''", '""'])


def _literal(expr: str) -> Optional[str]:
    """Content of a single quoted string literal, None for anything else."""
    expr = strip_parens(expr)
    if expr[:1] in ("'", '"', "`") and is_single_literal(expr) and "${" not in expr:
        return expr[1:-1]
    return None


# --- ROLE ---

def _invalid_role(value: str) -> Optional[str]:
    for role in value.split():
        if role not in VALID_ARIA_ROLES:
            return role
    return None


def _role_candidates(raw: str) -> List[str]:
    """
    Statically known role values of an expression. Ternary branches and the
    right operand of `&&` are checked independently; anything dynamic is skipped.
    """
    expr = strip_parens(raw)
    ternary = split_ternary(expr)
    if ternary is not None:
        return _role_candidates(ternary[1]) + _role_candidates(ternary[2])
    for operator in ("||", "??"):
        parts = split_top_level(expr, operator)
        if parts is not None:
            return _role_candidates(parts[0]) + _role_candidates(parts[1])
    parts = split_top_level(expr, "&&")
    if parts is not None:
        return _role_candidates(parts[1])
    literal = _literal(expr)
    return [literal] if literal else []


@audit_rule(
    "aria-role-valid",
    name="ARIA roles must be valid",
    description="Role attributes must contain valid ARIA role values",
    severity="error",
    selector=Selector(has_props=("role",)),
    level="A",
    criterion="4.1.2",
    category="ARIA",
)
def check_role_valid(node: Element, scope: List[Element]) -> Optional[Violation]:
    prop = get_property(node, "role")
    if prop.type == PropType.STRING:
        candidates = [prop.value]
    elif prop.type == PropType.EXPRESSION and prop.raw_value:
        candidates = _role_candidates(prop.raw_value)
    else:
        return None

    for value in candidates:
        invalid = _invalid_role(value)
        if invalid:
            return Violation.for_element(
                "aria-role-valid", "error",
                f'Invalid ARIA role "{invalid}". Must be a valid ARIA role: '
                f'{", ".join(VALID_ARIA_ROLES_ORDERED[:10])}...',
                node,
            )
    return None


# --- ATTRIBUTE VALUES ---

def is_boolean_like_expression(expr: str) -> bool:
    """Variables, negations, comparisons, ternaries, calls and property access: unresolvable, assumed valid."""
    expr = strip_parens(expr)
    if expr.startswith("!"):
        return True
    if _IDENTIFIER.match(expr) or _MEMBER_OR_CALL.match(expr):
        return True
    if split_ternary(expr) is not None:
        return True
    if any(split_top_level(expr, op) is not None for op in ("&&", "||", "??")):
        return True
    return bool(_COMPARISON.search(expr))


def is_obviously_invalid_literal(expr: str) -> bool:
    """A leading quoted literal whose first word is no ARIA value at all."""
    match = re.match(r"^[\"']([^\"']*)", expr.strip())
    if not match:
        return False
    words = match.group(1).split()
    return not words or words[0] not in KNOWN_ARIA_TOKENS


class AriaValueValidator:
    """Validator of one `aria-*` attribute against its allowed values."""

    def __init__(self, attribute: str, allowed: Tuple[str, ...]):
        self.attribute = attribute
        self.allowed = allowed
        self.rule_id = f"{attribute}-value"

    def __call__(self, node: Element, scope: List[Element]) -> Optional[Violation]:
        value = self.static_value(node)
        if value is None or value in self.allowed:
            return None
        return Violation.for_element(
            self.rule_id, "error",
            f'{self.attribute} must be one of: {", ".join(self.allowed)}. Current value: "{value}"',
            node,
        )

    def static_value(self, node: Element) -> Optional[str]:
        prop = get_property(node, self.attribute)
        if prop is None or prop.type in (PropType.UNDEFINED, PropType.NUMBER):
            return None
        if prop.type != PropType.EXPRESSION:
            return prop.as_string()

        raw = (prop.raw_value or "").strip()
        if not raw or raw in _NULLISH:
            return None
        literal = _literal(raw)
        if literal is not None:
            return literal
        if is_boolean_like_expression(raw):
            return None
        return raw if is_obviously_invalid_literal(raw) else None

    def __eq__(self, other):
        return isinstance(other, AriaValueValidator) and other.rule_id == self.rule_id

    def __hash__(self):
        return hash(self.rule_id)


def build_value_rules() -> List[Rule]:
    """One `<attribute>-value` rule per entry of the ARIA value map."""
    return [
        Rule(
            id=f"{attribute}-value",
            name=f"{attribute} must have valid value",
            description=f'{attribute} attribute must be one of: {", ".join(allowed)}',
            severity="error",
            level="A",
            criterion="4.1.2",
            category="ARIA",
            selector=Selector(has_props=(attribute,)),
            validator=AriaValueValidator(attribute, allowed),
        )
        for attribute, allowed in ARIA_ATTRIBUTE_VALUES.items()
    ]


# --- EMPTY LABELS ---

@audit_rule(
    "aria-empty-value",
    name="ARIA labels should not be empty",
    description="ARIA labeling attributes should have meaningful values",
    severity="warning",
    selector=Selector(has_any_prop=ARIA_LABEL_PROPS),
    level="A",
    criterion="4.1.2",
    category="ARIA",
)
def check_empty_labels(node: Element, scope: List[Element]) -> Optional[Violation]:
    # Only explicit empty strings; expressions are unknown
    for name in ARIA_LABEL_PROPS:
        prop = get_property(node, name)
        if prop is not None and prop.type == PropType.STRING and not prop.value.strip():
            return Violation.for_element(
                "aria-empty-value", "warning",
                f"{name} should not be empty. Provide meaningful text for screen readers.",
                node,
            )
    return None


# --- DEFINITION ---
DEFINITION = RuleDefinition(
    category="ARIA",
    validators=[check_role_valid, check_empty_labels],
    rules=build_value_rules(),
)
