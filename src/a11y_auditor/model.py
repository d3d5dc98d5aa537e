from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from a11y_auditor.dom.core import ComplianceLevel, Element, Severity, Violation

ComplianceVerdict = Literal["A", "AA", "AAA", "none"]


class ComponentReport(BaseModel):
    """
    Audit result of a single component (one unit of UI code).
    Elements are kept in document order; they are not part of the serialized report.
    """
    component_id: str
    path: str
    elements: List[Element] = Field(default_factory=list, exclude=True)
    violations: List[Violation] = Field(default_factory=list)
    score: int = 100

    @property
    def element_count(self) -> int:
        return len(self.elements)

    @property
    def has_issues(self) -> bool:
        return bool(self.violations)

    def count(self, severity: Severity) -> int:
        return sum(1 for v in self.violations if v.severity == severity)


class Summary(BaseModel):
    total_violations: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    components_with_issues: int = 0
    total_components_analyzed: int = 0
    overall_score: int = 100


class RuleBreakdown(BaseModel):
    rule_name: str
    severity: Severity
    description: str
    violation_count: int = 0
    affected_components: List[str] = Field(default_factory=list)
    level: Optional[ComplianceLevel] = None
    criterion: Optional[str] = None


class ComponentBreakdown(BaseModel):
    path: str
    violation_count: int
    score: int
    violations: List[Violation] = Field(default_factory=list)


class ViolationPattern(BaseModel):
    rule_id: str
    count: int
    percentage: int


class Patterns(BaseModel):
    most_common_violations: List[ViolationPattern] = Field(default_factory=list)
    violations_by_directory: Dict[str, int] = Field(default_factory=dict)
    violations_by_severity: Dict[str, int] = Field(default_factory=dict)
    compliance_level: ComplianceVerdict = "AAA"


class AnalysisResult(BaseModel):
    """Aggregated accessibility report over all analyzed components."""
    summary: Summary = Field(default_factory=Summary)
    rule_breakdown: Dict[str, RuleBreakdown] = Field(default_factory=dict)
    component_breakdown: Dict[str, ComponentBreakdown] = Field(default_factory=dict)
    patterns: Patterns = Field(default_factory=Patterns)


class AuditSettings(BaseModel):
    """
    Audit configuration, read from the 'auditor' section of settings.json.
    """
    disabled_rules: List[str] = Field(default_factory=list)
    severity_overrides: Dict[str, Severity] = Field(default_factory=dict)
    include_warnings: bool = True
    include_info: bool = True
    top_violations: int = Field(default=10, ge=0)
    workers: int = Field(default=1, ge=1)

    @field_validator('disabled_rules', mode='before')
    @classmethod
    def parse_disabled_rules(cls, v: Any) -> List[str]:
        """Accepts a comma-separated string of rule ids."""
        if isinstance(v, str):
            return [code.strip() for code in v.split(",") if code.strip()]
        return v or []

    @classmethod
    def from_config(cls, config_manager: Any) -> "AuditSettings":
        return cls.model_validate(config_manager.get_nested("auditor", {}) or {})
