# tests/dom/test_matcher.py
import logging

import pytest

from a11y_auditor.dom.core import Element, PropValue, Selector, flatten
from a11y_auditor.dom.matcher import ElementMatcher, matches_selector


@pytest.fixture
def elements():
    """Een gemengde componentboom, platgeslagen in documentvolgorde."""
    return flatten(Element(tag="main", children=[
        Element(tag="h1", text="Dashboard"),
        Element(tag="img", properties={"src": "a.png", "alt": "Grafiek"}),
        Element(tag="Button", properties={"onClick": PropValue.expression("save")}, text="Opslaan"),
        Element(tag="div", properties={"role": "region", "aria-hidden": "false", "id": "panel"}),
        Element(tag="input", properties={"aria-label": "Zoeken"}),
        Element(tag="CustomWidget"),
    ]))


@pytest.fixture
def matcher(registry):
    return ElementMatcher(registry)


def pairs(matches):
    return [(match.rule.id, match.index) for match in matches]


def test_matches_selector_predicates():
    img = Element(tag="img", properties={"alt": "Logo"})
    assert matches_selector(img, Selector())
    assert matches_selector(img, Selector(tag="img", has_props=("alt",)))
    assert not matches_selector(img, Selector(tag="img", has_props=("alt", "src")))
    assert matches_selector(img, Selector(tags=("img", "area"), has_any_prop=("alt", "title")))
    assert not matches_selector(img, Selector(has_any_prop=("title",)))
    assert matches_selector(img, Selector(custom=lambda element: element.tag == "img"))
    assert not matches_selector(img, Selector(tag="a"))


def test_failing_custom_predicate_counts_as_no_match(caplog):
    """Een custom predicate die een fout gooit levert 'geen match' op en wordt gelogd."""
    def broken(element):
        raise KeyError("role")

    with caplog.at_level(logging.ERROR):
        assert not matches_selector(Element(tag="div"), Selector(custom=broken), "custom-role")
    assert "custom-role" in caplog.text


def test_optimized_matches_equal_naive_matches(matcher, elements):
    """De geoptimaliseerde matching levert exact dezelfde paren, in dezelfde volgorde."""
    assert pairs(matcher.optimized_matches(elements)) == pairs(matcher.create_rule_matches(elements))


def test_optimized_matches_on_empty_collection(matcher):
    assert matcher.optimized_matches([]) == []


def test_find_elements_for_rule(matcher, elements):
    found = matcher.find_elements_for_rule(elements, "img-alt")
    assert [element.tag for element in found] == ["img"]
    assert matcher.has_elements_for_rule(elements, "button-text")
    assert not matcher.has_elements_for_rule(elements, "html-lang")
    assert matcher.find_elements_for_rule(elements, "no-such-rule") == []


def test_rule_coverage(matcher, elements, registry):
    coverage = matcher.rule_coverage(elements)
    assert coverage["total_rules"] == len(registry)
    assert "html-lang" in coverage["unused_rules"]
    assert coverage["applicable_rules"] == len(registry) - len(coverage["unused_rules"])
    assert 0 < coverage["coverage_percentage"] < 100


def test_group_matches(matcher, elements):
    matches = matcher.optimized_matches(elements)
    by_rule = ElementMatcher.group_matches_by_rule(matches)
    by_element = ElementMatcher.group_matches_by_element(matches)

    assert [match.index for match in by_rule["interactive-role"]] == [3]
    assert {match.rule.id for match in by_element[2]} == {"img-alt", "img-alt-meaningful"}


def test_filter_elements_by_type(elements):
    components = ElementMatcher.filter_elements_by_type(elements, "component")
    native = ElementMatcher.filter_elements_by_type(elements, "html")

    assert [element.source_tag for element in components] == ["Button", "CustomWidget"]
    assert "customwidget" not in [element.tag for element in native]
    with pytest.raises(ValueError):
        ElementMatcher.filter_elements_by_type(elements, "svg")


def test_rule_families(matcher):
    html_rule_ids = {rule.id for rule in matcher.html_element_rules()}
    component_rule_ids = {rule.id for rule in matcher.component_rules()}

    assert {"img-alt", "html-lang", "button-text"} <= html_rule_ids
    assert {"aria-role-valid", "interactive-role", "duplicate-id"} <= component_rule_ids
    assert "img-alt" not in component_rule_ids
