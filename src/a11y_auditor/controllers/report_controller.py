import logging
from collections import Counter
from typing import Dict, List, Optional

import pandas as pd

from a11y_auditor.dom.registry import RuleRegistry
from a11y_auditor.model import (
    AnalysisResult,
    AuditSettings,
    ComponentBreakdown,
    ComponentReport,
    Patterns,
    RuleBreakdown,
    Summary,
    ViolationPattern,
)
from a11y_auditor.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

SEVERITIES = ("error", "warning", "info")


def directory_of(path: str) -> str:
    """Parent directory of a component path; '/' for top-level files."""
    parts = path.replace("\\", "/").split("/")
    directory = "/".join(parts[:-1])
    return directory or "/"


class ReportController:
    """
    Controller responsible for aggregating component reports into an AnalysisResult.
    Rule metadata comes from the RuleRegistry; violations of unknown rules are
    left out of every rule-keyed breakdown.
    """

    def __init__(self, registry: RuleRegistry, settings: Optional[AuditSettings] = None):
        self.registry = registry
        self.settings = settings or AuditSettings()

    def generate_report(self, reports: List[ComponentReport]) -> AnalysisResult:
        """
        Builds the summary, rule and component breakdowns and violation patterns.

        Args:
            reports: One report per analyzed component.

        Returns:
            AnalysisResult: The aggregated, deterministic report.
        """
        all_violations = [v for report in reports for v in report.violations]

        return AnalysisResult(
            summary=self._build_summary(reports),
            rule_breakdown=self._build_rule_breakdown(reports),
            component_breakdown=self._build_component_breakdown(reports),
            patterns=Patterns(
                most_common_violations=self._most_common(reports, self.settings.top_violations),
                violations_by_directory=self._by_directory(reports),
                violations_by_severity=self._by_severity(reports),
                compliance_level=ScoringService.determine_compliance_level(all_violations, self.registry),
            ),
        )

    # --- SECTIONS ---

    @staticmethod
    def _build_summary(reports: List[ComponentReport]) -> Summary:
        severity_counts = ReportController._by_severity(reports)
        return Summary(
            total_violations=sum(len(report.violations) for report in reports),
            error_count=severity_counts["error"],
            warning_count=severity_counts["warning"],
            info_count=severity_counts["info"],
            components_with_issues=sum(1 for report in reports if report.has_issues),
            total_components_analyzed=len(reports),
            overall_score=ScoringService.calculate_overall_score(report.score for report in reports),
        )

    def _build_rule_breakdown(self, reports: List[ComponentReport]) -> Dict[str, RuleBreakdown]:
        breakdown: Dict[str, RuleBreakdown] = {}
        for report in reports:
            for violation in report.violations:
                rule = self.registry.get(violation.rule_id)
                if rule is None:
                    logger.debug("Skipping violation of unknown rule '%s' in %s", violation.rule_id, report.path)
                    continue

                entry = breakdown.get(rule.id)
                if entry is None:
                    entry = breakdown[rule.id] = RuleBreakdown(
                        rule_name=rule.name,
                        severity=rule.severity,
                        description=rule.description,
                        level=rule.level,
                        criterion=rule.criterion,
                    )
                entry.violation_count += 1
                if report.component_id not in entry.affected_components:
                    entry.affected_components.append(report.component_id)
        return breakdown

    @staticmethod
    def _build_component_breakdown(reports: List[ComponentReport]) -> Dict[str, ComponentBreakdown]:
        return {
            report.component_id: ComponentBreakdown(
                path=report.path,
                violation_count=len(report.violations),
                score=report.score,
                violations=list(report.violations),
            )
            for report in reports
            if report.has_issues
        }

    # --- PATTERNS ---

    def _most_common(self, reports: List[ComponentReport], top_n: int) -> List[ViolationPattern]:
        total = sum(len(report.violations) for report in reports)
        counts: Counter = Counter()
        for report in reports:
            for violation in report.violations:
                if violation.rule_id in self.registry:
                    counts[violation.rule_id] += 1

        # Stable sort: ties keep first-seen order
        ranked = sorted(counts.items(), key=lambda item: -item[1])[:top_n]
        return [
            ViolationPattern(rule_id=rule_id, count=count, percentage=round(count / total * 100))
            for rule_id, count in ranked
        ]

    @staticmethod
    def _by_directory(reports: List[ComponentReport]) -> Dict[str, int]:
        by_directory: Dict[str, int] = {}
        for report in reports:
            directory = directory_of(report.path)
            by_directory[directory] = by_directory.get(directory, 0) + len(report.violations)
        return by_directory

    @staticmethod
    def _by_severity(reports: List[ComponentReport]) -> Dict[str, int]:
        counts = {severity: 0 for severity in SEVERITIES}
        for report in reports:
            for violation in report.violations:
                counts[violation.severity] += 1
        return counts

    # --- FRAMES ---

    @staticmethod
    def rule_breakdown_frame(result: AnalysisResult) -> pd.DataFrame:
        """Rule breakdown as a DataFrame, most frequent rules first."""
        columns = ["Rule", "Name", "Severity", "Level", "Criterion", "Count", "Components"]
        rows = [
            {
                "Rule": rule_id,
                "Name": entry.rule_name,
                "Severity": entry.severity,
                "Level": entry.level,
                "Criterion": entry.criterion,
                "Count": entry.violation_count,
                "Components": len(entry.affected_components),
            }
            for rule_id, entry in result.rule_breakdown.items()
        ]
        if not rows:
            return pd.DataFrame(columns=columns)

        severity_order = {'error': 1, 'warning': 2, 'info': 3}
        df = pd.DataFrame(rows, columns=columns)
        df['SevRank'] = df['Severity'].map(severity_order)
        return df.sort_values(by=['Count', 'SevRank'], ascending=[False, True], kind="stable").drop(
            columns=['SevRank']
        ).reset_index(drop=True)
