# src/a11y_auditor/dom/builder.py
import logging
import re
from typing import Any, Dict, List

from bs4 import BeautifulSoup, NavigableString, Tag
from pydantic import ValidationError

from .core import Element, PropValue, SourceLocation

logger = logging.getLogger(__name__)

# html.parser lowercases attribute names; these are restored to their JSX spelling.
REACT_PROPS = (
    "className", "htmlFor", "tabIndex", "readOnly", "autoFocus", "autoComplete", "srcSet",
    "onClick", "onPress", "onTap", "onKeyDown", "onKeyPress", "onKeyUp",
    "onChange", "onSubmit", "onFocus", "onBlur", "onMouseDown", "onMouseUp",
)
REACT_PROP_NAMES = {name.lower(): name for name in REACT_PROPS}

EXPRESSION_VALUE = re.compile(r"^\{(.*)\}$", re.DOTALL)
OPENING_TAG = re.compile(r"<([A-Za-z][\w.:-]*)")


class DOMBuilder:
    """
    Builder responsible for turning raw payloads into Element trees.
    It accepts JSON-like dicts (as produced by an external source parser) and
    static markup, which is parsed with BeautifulSoup.
    """

    @classmethod
    def from_dict(cls, payload: Any) -> List[Element]:
        """
        Builds the root elements of a component from a dict payload.

        Recognized keys per node: `tag`, `props`, `children`, `text`,
        `location` ({line, column} or a line number) and `context`.
        A list of payloads yields several roots.

        Returns:
            List[Element]: The roots, or an empty list for empty or invalid input.
        """
        if not payload:
            return []
        nodes = payload if isinstance(payload, list) else [payload]
        try:
            return [cls._element_from_dict(node) for node in nodes]
        except (ValidationError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Could not build element tree from payload: {e}")
            return []

    @classmethod
    def _element_from_dict(cls, node: Dict[str, Any]) -> Element:
        location = node.get("location")
        if isinstance(location, int):
            location = SourceLocation(line=location)

        return Element(
            tag=node["tag"],
            properties=node.get("props") or node.get("properties") or {},
            children=[cls._element_from_dict(child) for child in node.get("children") or []],
            text=node.get("text"),
            location=location,
            source_context=node.get("context") or node.get("source_context"),
        )

    @classmethod
    def from_markup(cls, markup: str) -> List[Element]:
        """
        Parses static markup into root elements with html.parser.

        Attribute values written as `{...}` become expressions, and the
        original spelling of tag names is recovered from the source so
        components stay recognizable.
        """
        if not markup or not markup.strip():
            return []

        clean_markup = markup.replace('\ufeff', '')
        try:
            soup = BeautifulSoup(clean_markup, 'html.parser', multi_valued_attributes=None)
            lines = clean_markup.splitlines()
            return [cls._build_tree(tag, lines) for tag in soup.children if isinstance(tag, Tag)]
        except (ValidationError, ValueError, AssertionError) as e:
            logger.warning(f"Could not parse markup: {e}")
            return []

    @classmethod
    def _build_tree(cls, tag: Tag, lines: List[str]) -> Element:
        """Recursively builds an Element from a BeautifulSoup Tag."""
        children = []
        text_parts = []
        for child in tag.children:
            if isinstance(child, Tag):
                children.append(cls._build_tree(child, lines))
            elif type(child) is NavigableString:
                # Comments, doctypes and CDATA are NavigableString subclasses
                text_parts.append(str(child))

        text = " ".join(" ".join(text_parts).split())
        location = None
        if tag.sourceline is not None:
            location = SourceLocation(line=tag.sourceline, column=tag.sourcepos)

        return Element(
            tag=cls._source_tag(tag, lines),
            properties={cls._prop_name(name): cls._prop_value(value) for name, value in tag.attrs.items()},
            children=children,
            text=text or None,
            location=location,
        )

    @staticmethod
    def _source_tag(tag: Tag, lines: List[str]) -> str:
        """Tag name as spelled in the source; html.parser only reports it lowercased."""
        if tag.sourceline is None or tag.sourceline > len(lines):
            return tag.name
        match = OPENING_TAG.match(lines[tag.sourceline - 1], tag.sourcepos or 0)
        if match and match.group(1).lower() == tag.name:
            return match.group(1)
        return tag.name

    @staticmethod
    def _prop_name(name: str) -> str:
        return REACT_PROP_NAMES.get(name, name)

    @staticmethod
    def _prop_value(value: Any) -> PropValue:
        if isinstance(value, list):
            value = " ".join(value)
        if value is None:
            return PropValue.string("")
        match = EXPRESSION_VALUE.match(value.strip())
        if match:
            return PropValue.expression(match.group(1).strip())
        return PropValue.string(value)
