# src/a11y_auditor/dom/context.py
import logging
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .constants import (
    EXPLICIT_LABELING_ATTRIBUTES,
    ICON_CLASS_PATTERNS,
    INPUT_TYPES_WITHOUT_LABELS,
    LABELING_PROP_NAMES,
    NON_DESCRIPTIVE_LINK_PATTERNS,
    SPREAD_PROP_NAMES,
)
from .core import (
    LABEL_TARGET_PROPS,
    Element,
    PropType,
    PropValue,
    Severity,
    get_class_name,
    get_first_string_value,
    get_property,
    get_string_value,
    is_hidden_element,
    iter_tree,
)
from .text_extractor import TextContentExtractor, child_expressions, resolve_expression

logger = logging.getLogger(__name__)

# `<Button ...><TrashIcon /></Button>`: a single self-closing component child and nothing else
ICON_ONLY_SHAPE = re.compile(r"^<(\w+)[^>]*>\s*<[A-Z][\w.]*(\s+[^>]*)?/>\s*</\1>$", re.DOTALL)

_EMPTY_EXPRESSIONS = frozenset(["", "undefined", "null", "''", '""', "``"])


class LabelingSource(str, Enum):
    EXEMPT = "exempt"
    HIDDEN = "hidden"
    ARIA = "aria"
    LABEL_ELEMENT = "label_element"
    WRAPPING_LABEL = "wrapping_label"
    PLACEHOLDER = "placeholder"
    LABEL_PROP = "label_prop"
    NONE = "none"


class LabelingResolution(BaseModel):
    """Outcome of the form control labeling lookup. Placeholder labeling is weak."""
    model_config = ConfigDict(frozen=True)

    source: LabelingSource

    @property
    def is_labeled(self) -> bool:
        return self.source != LabelingSource.NONE

    @property
    def is_weak(self) -> bool:
        return self.source == LabelingSource.PLACEHOLDER


def has_label_value(prop: Optional[PropValue]) -> bool:
    """True for non-blank static text or any expression that is not an empty literal."""
    if prop is None or prop.type == PropType.UNDEFINED:
        return False
    if prop.type == PropType.EXPRESSION:
        return (prop.raw_value or "").strip() not in _EMPTY_EXPRESSIONS
    value = prop.as_string()
    return bool(value and value.strip())


class ContextAnalyzer:
    """
    Resolves accessibility semantics that depend on more than the element itself:
    label/control association, icon-only detection, spread props and severity.
    """

    # --- LABELING ---

    @staticmethod
    def has_explicit_labeling(element: Element) -> bool:
        """Explicit labeling required by icon-only controls: aria-label, aria-labelledby or title."""
        return any(has_label_value(get_property(element, name)) for name in EXPLICIT_LABELING_ATTRIBUTES)

    @staticmethod
    def find_associated_label(element: Element, scope: List[Element]) -> Optional[Element]:
        """Returns the `<label>` whose for/htmlFor reference matches the id of the element."""
        element_id = get_string_value(element, "id")
        if not element_id:
            return None
        for candidate in scope:
            if candidate.tag != "label" or candidate is element:
                continue
            if get_first_string_value(candidate, LABEL_TARGET_PROPS) == element_id:
                return candidate
        return None

    @staticmethod
    def find_wrapping_label(element: Element, scope: List[Element]) -> Optional[Element]:
        for candidate in scope:
            if candidate.tag != "label":
                continue
            if any(node is element for node in iter_tree(candidate.children)):
                return candidate
        return None

    @classmethod
    def resolve_labeling(cls, element: Element, scope: List[Element]) -> LabelingResolution:
        """
        Determines how a form control is labeled. The first matching source wins.

        Args:
            element: The form control.
            scope: The ordered element collection of the component.

        Returns:
            LabelingResolution: The labeling source, NONE when unlabeled.
        """
        if get_string_value(element, "type") in INPUT_TYPES_WITHOUT_LABELS:
            return LabelingResolution(source=LabelingSource.EXEMPT)
        if is_hidden_element(element):
            return LabelingResolution(source=LabelingSource.HIDDEN)
        if cls.has_explicit_labeling(element):
            return LabelingResolution(source=LabelingSource.ARIA)
        if cls.find_associated_label(element, scope) is not None:
            return LabelingResolution(source=LabelingSource.LABEL_ELEMENT)
        if cls.find_wrapping_label(element, scope) is not None:
            return LabelingResolution(source=LabelingSource.WRAPPING_LABEL)
        if has_label_value(get_property(element, "placeholder")):
            return LabelingResolution(source=LabelingSource.PLACEHOLDER)
        if any(has_label_value(get_property(element, name)) for name in LABELING_PROP_NAMES):
            return LabelingResolution(source=LabelingSource.LABEL_PROP)
        return LabelingResolution(source=LabelingSource.NONE)

    @classmethod
    def has_form_input_labeling(cls, element: Element, scope: List[Element]) -> bool:
        return cls.resolve_labeling(element, scope).is_labeled

    # --- ICON-ONLY ---

    @staticmethod
    def _has_inline_content(element: Element) -> bool:
        if element.text and element.text.strip():
            return True
        if element.source_context:
            return any(resolve_expression(expr).is_likely for expr in child_expressions(element.source_context))
        return False

    @classmethod
    def is_icon_only_element(cls, element: Element) -> bool:
        """
        An element whose visible content is an icon: every child is decorative,
        the class name follows an icon-library convention, or the source has the
        shape of a single self-closing component child.
        """
        if TextContentExtractor.resolve(element).is_confirmed:
            return False

        if element.children and not cls._has_inline_content(element):
            if all(TextContentExtractor.is_decorative_element(child) for child in element.children):
                return True

        class_name = get_class_name(element)
        if class_name and any(pattern.search(class_name) for pattern in ICON_CLASS_PATTERNS):
            if not cls._has_inline_content(element):
                return True

        if element.source_context and ICON_ONLY_SHAPE.match(element.source_context.strip()):
            return True
        return False

    # --- SPREAD PROPS & SEVERITY ---

    @staticmethod
    def has_spread_props(element: Element) -> bool:
        """Spread attributes may inject accessibility properties at runtime."""
        for name, prop in element.properties.items():
            if name.startswith("...") or name in SPREAD_PROP_NAMES:
                return True
            if prop.type == PropType.EXPRESSION and "..." in (prop.raw_value or ""):
                return True
        return False

    @classmethod
    def determine_severity(
            cls, element: Element, has_issue: bool, has_partial_support: bool = False
    ) -> Optional[Severity]:
        if not has_issue:
            return None
        if has_partial_support or cls.has_spread_props(element):
            return "warning"
        return "error"

    # --- LINKS & SUGGESTIONS ---

    @staticmethod
    def has_descriptive_link_text(element: Element) -> bool:
        text = TextContentExtractor.extract_accessible_text(element)
        if not text:
            return False
        return not any(pattern.match(text.strip()) for pattern in NON_DESCRIPTIVE_LINK_PATTERNS)

    @classmethod
    def get_suggestions(cls, element: Element, scope: Optional[List[Element]] = None) -> List[str]:
        suggestions = []
        if element.tag == "input" and not cls.has_form_input_labeling(element, scope or []):
            suggestions.append("Add aria-label or associate with a label element")
        if element.tag == "button" and cls.is_icon_only_element(element) and not cls.has_explicit_labeling(element):
            suggestions.append("Icon-only buttons should have aria-label")
        if element.tag == "a":
            text = TextContentExtractor.extract_accessible_text(element)
            if text and not cls.has_descriptive_link_text(element):
                suggestions.append("Use more descriptive link text")
        return suggestions
