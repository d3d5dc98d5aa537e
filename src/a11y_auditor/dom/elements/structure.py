from collections import defaultdict
from typing import Dict, List, Tuple

from ..constants import HEADING_TAGS
from ..core import (
    Element,
    Rule,
    RuleDefinition,
    Selector,
    Violation,
    audit_spec,
    get_string_value,
    handled_by_multi_element_check,
)
from ..text_extractor import TextContentExtractor


# --- MULTI-ELEMENT CHECKS ---

@audit_spec(codes=["heading-hierarchy-start", "heading-hierarchy-skip"])
def check_heading_hierarchy(elements: List[Element]) -> List[Violation]:
    """
    Rule: headings start at h1 and never skip a level going down.
    Headings are taken in document order; moving back up any number of levels is fine.
    """
    violations = []
    headings = [(index, element) for index, element in enumerate(elements) if element.tag in HEADING_TAGS]

    previous_level = 0
    for position, (index, heading) in enumerate(headings):
        level = int(heading.tag[1])
        heading_text = TextContentExtractor.extract_accessible_text(heading) or "[No text content]"

        if position == 0 and level != 1:
            violations.append(Violation.for_element(
                "heading-hierarchy-start", "warning",
                f'Page should start with an h1 heading, but found {heading.tag}. Current text: "{heading_text}"',
                heading, element_index=index,
            ))

        if previous_level > 0 and level > previous_level + 1:
            violations.append(Violation.for_element(
                "heading-hierarchy-skip", "warning",
                f"Heading level skipped: {heading.tag} follows h{previous_level}. "
                f'Consider using h{previous_level + 1} instead. Current text: "{heading_text}"',
                heading, element_index=index,
            ))

        previous_level = level

    return violations


@audit_spec(codes=["duplicate-id"])
def check_duplicate_ids(elements: List[Element]) -> List[Violation]:
    """Rule: ids are unique within the component. Every member of a duplicate group is reported."""
    violations = []
    by_id: Dict[str, List[Tuple[int, Element]]] = defaultdict(list)
    for index, element in enumerate(elements):
        element_id = get_string_value(element, "id")
        if element_id and element_id.strip():
            by_id[element_id].append((index, element))

    for element_id, members in by_id.items():
        if len(members) < 2:
            continue
        for occurrence, (index, element) in enumerate(members, start=1):
            violations.append(Violation.for_element(
                "duplicate-id", "error",
                f'Duplicate ID "{element_id}" found on {element.tag} element '
                f"(occurrence {occurrence} of {len(members)}). IDs must be unique within the document.",
                element, element_index=index,
            ))

    return violations


# --- RULES ---
STRUCTURE_RULES = [
    Rule(
        id="heading-hierarchy-start",
        name="Page should start with h1",
        description="The first heading should be an h1 element",
        severity="warning",
        level="AA",
        criterion="1.3.1",
        category="STRUCTURE",
        selector=Selector(tags=HEADING_TAGS),
        validator=handled_by_multi_element_check,
    ),
    Rule(
        id="heading-hierarchy-skip",
        name="Do not skip heading levels",
        description="Heading levels should increase by one; do not skip from h1 to h3",
        severity="warning",
        level="AA",
        criterion="1.3.1",
        category="STRUCTURE",
        selector=Selector(tags=HEADING_TAGS),
        validator=handled_by_multi_element_check,
    ),
    Rule(
        id="duplicate-id",
        name="IDs must be unique",
        description="Element IDs must be unique within the component",
        severity="error",
        level="A",
        criterion="4.1.1",
        category="STRUCTURE",
        selector=Selector(has_props=("id",)),
        validator=handled_by_multi_element_check,
    ),
]

# --- DEFINITION ---
DEFINITION = RuleDefinition(
    category="STRUCTURE",
    rules=STRUCTURE_RULES,
    multi_element_checks=[check_heading_hierarchy, check_duplicate_ids],
)
