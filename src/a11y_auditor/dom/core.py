# src/a11y_auditor/dom/core.py
from enum import Enum
from typing import Dict, Any, List, Callable, Optional, Tuple, Union, Iterator, Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import HTML_TAGS, HIDDEN_CLASS_PATTERNS, HIDDEN_STYLE_PATTERNS, SCREEN_READER_ONLY_PATTERNS

Severity = Literal["error", "warning", "info"]
ComplianceLevel = Literal["A", "AA", "AAA"]

# Properties carrying a CSS class list (React spelling first)
CLASS_PROPS = ("className", "class")
# Properties on <label> pointing at the labelled control
LABEL_TARGET_PROPS = ("htmlFor", "for")


class PropType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EXPRESSION = "expression"
    UNDEFINED = "undefined"


class PropValue(BaseModel):
    """
    Tagged value of a single element property.

    Static values (string, number, boolean) carry `value`. Dynamic values are
    never evaluated: an `expression` only carries the original source text in
    `raw_value`, which may be syntactically incomplete.
    """
    model_config = ConfigDict(frozen=True)

    type: PropType
    value: Union[bool, int, float, str, None] = None
    raw_value: Optional[str] = None

    @model_validator(mode='after')
    def check_variant(self):
        static = self.type in (PropType.STRING, PropType.NUMBER, PropType.BOOLEAN)
        if static and self.value is None:
            raise ValueError(f"'{self.type.value}' property requires a value")
        if not static and self.value is not None:
            raise ValueError(f"'{self.type.value}' property must not carry a static value")
        return self

    @classmethod
    def string(cls, value: str) -> "PropValue":
        return cls(type=PropType.STRING, value=value)

    @classmethod
    def number(cls, value: Union[int, float]) -> "PropValue":
        return cls(type=PropType.NUMBER, value=value)

    @classmethod
    def boolean(cls, value: bool) -> "PropValue":
        return cls(type=PropType.BOOLEAN, value=value)

    @classmethod
    def expression(cls, raw_value: str) -> "PropValue":
        return cls(type=PropType.EXPRESSION, raw_value=raw_value)

    @classmethod
    def undefined(cls) -> "PropValue":
        return cls(type=PropType.UNDEFINED)

    @classmethod
    def coerce(cls, value: Any) -> "PropValue":
        """Maps a plain Python value (or an already typed payload) onto the variant."""
        if isinstance(value, PropValue):
            return value
        if isinstance(value, dict) and "type" in value:
            return cls.model_validate(value)
        if value is None:
            return cls.undefined()
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, (int, float)):
            return cls.number(value)
        return cls.string(str(value))

    def as_string(self) -> Optional[str]:
        """String coalescing: literal, stringified scalar, raw expression text, or None."""
        if self.type == PropType.STRING:
            return self.value
        if self.type == PropType.BOOLEAN:
            return "true" if self.value else "false"
        if self.type == PropType.NUMBER:
            return str(self.value)
        if self.type == PropType.EXPRESSION:
            return self.raw_value
        return None


class SourceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: Optional[int] = None
    column: Optional[int] = None


class Element(BaseModel):
    """
    Data model representing one markup element of a component.

    The tag is stored lowercased; `source_tag` keeps the spelling used in the
    source so component names (e.g. `FaTrash`) stay recognisable. Children are
    owned by their parent and kept in document order.
    """
    model_config = ConfigDict(frozen=True)

    tag: str
    source_tag: str = ""
    properties: Dict[str, PropValue] = Field(default_factory=dict)
    children: List['Element'] = Field(default_factory=list)
    text: Optional[str] = None
    location: Optional[SourceLocation] = None
    source_context: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def normalize_tag(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("tag"), str):
            data = dict(data)
            data.setdefault("source_tag", data["tag"])
            data["tag"] = data["tag"].lower()
        return data

    @field_validator('properties', mode='before')
    @classmethod
    def coerce_properties(cls, v: Any) -> Dict[str, PropValue]:
        if not v:
            return {}
        return {str(name): PropValue.coerce(value) for name, value in dict(v).items()}


Element.model_rebuild()


class Violation(BaseModel):
    """A single accessibility finding. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: Severity
    message: str
    element_tag: str
    location: Optional[SourceLocation] = None
    source_context: Optional[str] = None
    # Position of the offending element in the component's collection; set by the engine.
    element_index: Optional[int] = Field(default=None, exclude=True)

    @property
    def identity(self) -> Tuple[str, str, Optional[int]]:
        line = self.location.line if self.location else None
        return self.rule_id, self.element_tag, line

    @classmethod
    def for_element(
            cls, rule_id: str, severity: Severity, message: str, element: Element, element_index: Optional[int] = None
    ) -> "Violation":
        return cls(
            rule_id=rule_id,
            severity=severity,
            message=message,
            element_tag=element.tag,
            location=element.location,
            source_context=element.source_context,
            element_index=element_index,
        )


# Validators receive the element and the ordered element collection of its component.
Validator = Callable[[Element, List[Element]], Optional[Violation]]
MultiElementCheck = Callable[[List[Element]], List[Violation]]


def handled_by_multi_element_check(node: Element, scope: List[Element]) -> Optional[Violation]:
    """Marker validator for rules served by a multi-element check of the same id."""
    return None


class Selector(BaseModel):
    """
    Conjunction of predicates describing which elements a rule applies to.
    Every predicate that is set must hold; an empty selector matches everything.
    """
    model_config = ConfigDict(frozen=True)

    tag: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None
    has_props: Optional[Tuple[str, ...]] = None
    has_any_prop: Optional[Tuple[str, ...]] = None
    custom: Optional[Callable[[Element], bool]] = None

    @property
    def is_tag_keyed(self) -> bool:
        return bool(self.tag or self.tags)

    @property
    def is_property_keyed(self) -> bool:
        return bool(self.has_props or self.has_any_prop or self.custom)

    def tag_names(self) -> Tuple[str, ...]:
        names = tuple(self.tags or ())
        return (self.tag,) + names if self.tag else names


class Rule(BaseModel):
    """Static description of an accessibility rule plus the function validating it."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    severity: Severity
    level: Optional[ComplianceLevel] = None
    criterion: Optional[str] = None
    category: str = "GENERAL"
    selector: Selector = Field(default_factory=Selector)
    validator: Validator = handled_by_multi_element_check

    @property
    def is_multi_element(self) -> bool:
        return self.validator is handled_by_multi_element_check


def audit_rule(
        rule_id: str,
        name: str,
        description: str,
        severity: Severity,
        selector: Selector,
        level: Optional[ComplianceLevel] = None,
        criterion: Optional[str] = None,
        category: str = "GENERAL",
):
    """
    Decorator binding rule metadata to its validator function.
    The resulting Rule is exposed as `func.rule` for discovery by the RuleRegistry.
    """
    def decorator(func):
        func.rule = Rule(
            id=rule_id,
            name=name,
            description=description,
            severity=severity,
            level=level,
            criterion=criterion,
            category=category,
            selector=selector,
            validator=func,
        )
        return func
    return decorator


def audit_spec(codes: List[str]):
    """
    Decorator to declare which rule ids a multi-element check emits.
    Facilitates auto-discovery by the RuleRegistry.
    """
    def decorator(func):
        func.defined_codes = codes
        return func
    return decorator


class RuleDefinition:
    """
    Configuration object grouping the rules of one rule family.
    """

    def __init__(
            self,
            category: str,
            validators: Optional[List[Callable]] = None,
            rules: Optional[List[Rule]] = None,
            multi_element_checks: Optional[List[MultiElementCheck]] = None,
    ):
        self.category = category
        self.rules: List[Rule] = [func.rule for func in (validators or [])]
        self.rules.extend(rules or [])

        # --- Auto-Discovery of multi-element rule ids ---
        self.multi_element_checks: Dict[str, MultiElementCheck] = {}
        for check in multi_element_checks or []:
            for code in getattr(check, 'defined_codes', []):
                self.multi_element_checks[code] = check

        self.codes = sorted(rule.id for rule in self.rules)


# --- PROPERTY HELPERS ---

def has_property(element: Element, name: str) -> bool:
    return name in element.properties


def has_any_property(element: Element, names: Iterable[str]) -> bool:
    return any(name in element.properties for name in names)


def get_property(element: Element, name: str) -> Optional[PropValue]:
    return element.properties.get(name)


def get_string_value(element: Element, name: str) -> Optional[str]:
    """Best-effort string view of a property; None when absent or undefined."""
    prop = element.properties.get(name)
    return prop.as_string() if prop else None


def get_first_string_value(element: Element, names: Iterable[str]) -> Optional[str]:
    for name in names:
        value = get_string_value(element, name)
        if value:
            return value
    return None


def get_class_name(element: Element) -> Optional[str]:
    return get_first_string_value(element, CLASS_PROPS)


def iter_tree(roots: Iterable[Element]) -> Iterator[Element]:
    """Pre-order traversal, preserving document order."""
    for root in roots:
        yield root
        yield from iter_tree(root.children)


def flatten(tree: Union[Element, Iterable[Element], None]) -> List[Element]:
    """Returns the element collection of a component tree in document order."""
    if tree is None:
        return []
    if isinstance(tree, Element):
        return list(iter_tree([tree]))
    return list(iter_tree(tree))


# --- ELEMENT CLASSIFICATION ---

def is_html_element(element: Element) -> bool:
    return element.tag in HTML_TAGS


def is_component(element: Element) -> bool:
    """Capitalized source tags denote components rather than native elements."""
    return element.source_tag[:1].isupper()


def is_screen_reader_only(element: Element) -> bool:
    class_name = get_class_name(element)
    return bool(class_name) and any(p.search(class_name) for p in SCREEN_READER_ONLY_PATTERNS)


def is_hidden_by_class(element: Element) -> bool:
    class_name = get_class_name(element)
    return bool(class_name) and any(p.search(class_name) for p in HIDDEN_CLASS_PATTERNS)


def is_hidden_by_style(element: Element) -> bool:
    style = get_string_value(element, "style")
    return bool(style) and any(p.search(style) for p in HIDDEN_STYLE_PATTERNS)


def is_hidden_element(element: Element) -> bool:
    """Hidden from assistive technology: type=hidden, aria-hidden, hiding class or style."""
    if get_string_value(element, "type") == "hidden":
        return True
    if get_string_value(element, "aria-hidden") == "true":
        return True
    return is_hidden_by_class(element) or is_hidden_by_style(element)
