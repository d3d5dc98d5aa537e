# tests/dom/test_qngine.py
import logging

from a11y_auditor.dom.builder import DOMBuilder
from a11y_auditor.dom.core import Element, Rule, Selector, Violation, handled_by_multi_element_check
from a11y_auditor.dom.elements.image import check_alt_present
from a11y_auditor.dom.qngine import QNGINE
from a11y_auditor.dom.registry import RuleRegistry
from a11y_auditor.model import AuditSettings


# Nep-validators op moduleniveau voor de isolatietests
def exploding_validator(node, scope):
    raise RuntimeError("kapot")


def exploding_check(elements):
    raise ValueError("multi-element check kapot")


def ghost_validator(node, scope):
    return Violation.for_element("ghost-rule", "error", "Onbekende regel", node)


def exploding_selector(node):
    raise RuntimeError("selector kapot")


def echo_check(elements):
    return [
        Violation.for_element("img-alt", "error", "Nogmaals gemeld", element, element_index=index)
        for index, element in enumerate(elements) if element.tag == "img"
    ]


def build_engine(*rules, settings=None):
    return QNGINE(registry=RuleRegistry(rules), settings=settings)


def sample_tree():
    return Element(tag="div", children=[
        Element(tag="h2", text="Intro"),
        Element(tag="img", properties={"src": "a.png"}),
        Element(tag="button"),
        Element(tag="span", properties={"id": "x"}),
        Element(tag="span", properties={"id": "x"}),
    ])


def test_empty_tree(engine):
    """Een lege boom levert geen violations en een score van 100."""
    assert engine.run_audit(None) == []
    assert engine.run_audit([]) == []

    report = engine.audit_component("Empty", "src/Empty.tsx", None)
    assert report.element_count == 0
    assert report.score == 100
    assert not report.has_issues


def test_audit_is_idempotent(engine):
    """Twee keer auditen van dezelfde boom geeft identieke resultaten."""
    tree = sample_tree()
    assert engine.run_audit(tree) == engine.run_audit(tree)


def test_single_element_violations_precede_multi_element(engine):
    """Eerst de enkelvoudige regels in documentvolgorde, daarna de multi-element checks."""
    rule_ids = [v.rule_id for v in engine.run_audit(sample_tree())]
    assert rule_ids == ["img-alt", "button-text", "heading-hierarchy-start", "duplicate-id", "duplicate-id"]


def test_element_index_is_stamped(engine):
    """De positie in de platgeslagen collectie wordt op elke violation gezet."""
    violations = engine.run_audit(sample_tree())
    by_rule = {v.rule_id: v.element_index for v in violations}
    assert by_rule["img-alt"] == 2
    assert by_rule["button-text"] == 3
    assert by_rule["heading-hierarchy-start"] == 1


def test_validator_exception_is_isolated(caplog):
    """Een crashende validator breekt de analyse niet af en wordt gelogd."""
    boom = Rule(
        id="boom", name="Boom", description="Gooit altijd een fout", severity="error",
        selector=Selector(tag="img"), validator=exploding_validator,
    )
    engine = build_engine(boom, check_alt_present.rule)

    with caplog.at_level(logging.ERROR):
        violations = engine.run_audit(Element(tag="img"))

    assert [v.rule_id for v in violations] == ["img-alt"]
    assert "boom" in caplog.text


def test_selector_exception_is_isolated(caplog):
    """Een crashende custom selector telt als 'geen match'; de andere regels draaien door."""
    custom = Rule(
        id="custom-x", name="Custom", description="Selector gooit altijd een fout", severity="error",
        selector=Selector(custom=exploding_selector), validator=ghost_validator,
    )
    engine = build_engine(custom, check_alt_present.rule)

    with caplog.at_level(logging.ERROR):
        violations = engine.run_audit(Element(tag="img"))

    assert [v.rule_id for v in violations] == ["img-alt"]
    assert "custom-x" in caplog.text
    assert "selector kapot" in caplog.text


def test_multi_element_check_exception_is_isolated(caplog):
    """Ook een crashende multi-element check wordt geïsoleerd."""
    registry = RuleRegistry()
    registry.register(
        Rule(id="broken", name="Broken", description="Kapotte check", severity="warning",
             validator=handled_by_multi_element_check),
        multi_element_check=exploding_check,
    )
    registry.register(check_alt_present.rule)
    engine = QNGINE(registry=registry)

    with caplog.at_level(logging.ERROR):
        violations = engine.run_audit([Element(tag="img"), Element(tag="p")])

    assert [v.rule_id for v in violations] == ["img-alt"]
    assert "exploding_check" in caplog.text


def test_unknown_rule_ids_are_dropped():
    """Violations met een niet-geregistreerde rule id worden genegeerd."""
    emitter = Rule(id="emitter", name="Emitter", description="Meldt onbekende id",
                   severity="error", selector=Selector(tag="div"), validator=ghost_validator)
    assert build_engine(emitter).run_audit(Element(tag="div")) == []


def test_disabled_rules_never_fire():
    """Uitgeschakelde regels, ook multi-element regels, leveren niets op."""
    settings = AuditSettings(disabled_rules=["img-alt", "duplicate-id"])
    registry = RuleRegistry.discover(settings)
    engine = QNGINE(registry=registry, settings=settings)

    tree = [Element(tag="img", properties={"id": "a"}), Element(tag="img", properties={"id": "a", "alt": "Kaart"})]
    assert engine.run_audit(tree) == []
    assert "img-alt" not in registry


def test_disabling_one_code_of_a_shared_check():
    """Een check met meerdere codes blijft draaien voor de codes die aan staan."""
    settings = AuditSettings(disabled_rules="heading-hierarchy-skip")
    engine = QNGINE(settings=settings)

    rule_ids = [v.rule_id for v in engine.run_audit([Element(tag="h2"), Element(tag="h4")])]
    assert rule_ids == ["heading-hierarchy-start"]


def test_severity_override():
    """Een severity override vervangt de severity van elke violation van die regel."""
    settings = AuditSettings(severity_overrides={"img-alt": "warning"})
    engine = QNGINE(settings=settings)

    violations = engine.run_audit(Element(tag="img"))
    assert [(v.rule_id, v.severity) for v in violations] == [("img-alt", "warning")]
    assert engine.registry.get("img-alt").severity == "warning"


def test_include_flags_filter_severities():
    """include_warnings/include_info filteren op de uiteindelijke severity."""
    settings = AuditSettings(include_warnings=False, include_info=False)
    engine = QNGINE(settings=settings)

    tree = [
        Element(tag="img", properties={"alt": "image"}),
        Element(tag="fieldset", properties={"aria-label": "Adres"}),
        Element(tag="img"),
    ]
    assert [v.rule_id for v in engine.run_audit(tree)] == ["img-alt"]


def test_elements_on_same_line_stay_distinct(engine):
    """Twee verschillende elementen op dezelfde regel leveren elk een violation op."""
    tree = Element(tag="div", children=[
        Element(tag="img", location={"line": 3, "column": 4}),
        Element(tag="img", location={"line": 3, "column": 30}),
    ])
    assert [v.rule_id for v in engine.run_audit(tree)] == ["img-alt", "img-alt"]


def test_duplicate_ids_on_one_line_report_every_member(engine):
    """Markup op één regel: elk lid van de duplicaatgroep krijgt zijn eigen violation."""
    tree = DOMBuilder.from_markup('<div><span id="x">a</span><span id="x">b</span></div>')
    violations = [v for v in engine.run_audit(tree) if v.rule_id == "duplicate-id"]

    assert len(violations) == 2
    assert "occurrence 1 of 2" in violations[0].message
    assert "occurrence 2 of 2" in violations[1].message


def test_heading_skips_on_one_line_are_all_reported(engine):
    tree = DOMBuilder.from_markup("<h1>A</h1><h3>B</h3><h5>C</h5>")
    skips = [v for v in engine.run_audit(tree) if v.rule_id == "heading-hierarchy-skip"]
    assert [v.element_index for v in skips] == [1, 2]


def test_same_element_reported_twice_is_collapsed():
    """Een tweede melding van dezelfde regel op hetzelfde element telt één keer."""
    registry = RuleRegistry()
    registry.register(check_alt_present.rule)
    registry.register(
        Rule(id="echo", name="Echo", description="Meldt img-alt opnieuw", severity="error",
             validator=handled_by_multi_element_check),
        multi_element_check=echo_check,
    )
    violations = QNGINE(registry=registry).run_audit([Element(tag="img"), Element(tag="p")])

    assert [(v.rule_id, v.element_index) for v in violations] == [("img-alt", 0)]


def test_without_location_elements_stay_distinct(engine):
    """Zonder regelnummer worden violations op elementpositie onderscheiden."""
    tree = [Element(tag="img"), Element(tag="img")]
    assert [v.rule_id for v in engine.run_audit(tree)] == ["img-alt", "img-alt"]


def test_audit_component_score(engine):
    """Score: 1 van 2 elementen schoon (50) min 2 * 10 strafpunten = 30."""
    tree = Element(tag="div", children=[Element(tag="img")])
    report = engine.audit_component("Avatar", "src/components/Avatar.tsx", tree)

    assert report.component_id == "Avatar"
    assert report.element_count == 2
    assert report.count("error") == 1
    assert report.score == 30
