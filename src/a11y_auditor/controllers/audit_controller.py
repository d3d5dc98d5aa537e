import logging
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import pandas as pd
from tqdm.auto import tqdm

from a11y_auditor.controllers.report_controller import ReportController
from a11y_auditor.dom.builder import DOMBuilder
from a11y_auditor.dom.core import Violation
from a11y_auditor.dom.qngine import QNGINE
from a11y_auditor.dom.registry import RuleRegistry
from a11y_auditor.managers.config_manager import ConfigManager, config_manager
from a11y_auditor.model import AnalysisResult, AuditSettings, ComponentReport
from a11y_auditor.utils.configure_logging import configure_from_config
from a11y_auditor.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

# (component_id, path, tree); tree is an Element, a list of Elements, None,
# a dict payload or a markup string.
ComponentTask = Tuple[str, str, Any]
ProgressCallback = Callable[[int, int], None]


def _as_tree(tree: Any) -> Any:
    """Builds raw payloads (dict or markup) into Elements; Element trees pass through."""
    if isinstance(tree, dict):
        return DOMBuilder.from_dict(tree)
    if isinstance(tree, str):
        return DOMBuilder.from_markup(tree)
    return tree


def _worker_audit_component(
        task: ComponentTask,
        registry: RuleRegistry,
        settings: AuditSettings
) -> ComponentReport:
    """
    Worker function to audit a single component in a separate process.
    A failing component yields an empty report instead of aborting the run.
    """
    component_id, path, tree = task
    try:
        engine = QNGINE(registry=registry, settings=settings)
        return engine.audit_component(component_id, path, _as_tree(tree))
    except Exception as e:
        logger.error(f"Worker failed on {component_id} ({path}): {e}")
        return ComponentReport(component_id=component_id, path=path)


class AuditController:
    """
    Orchestrates the accessibility audit over many components, managing
    parallel execution, collection of component reports and aggregation.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None, settings: Optional[AuditSettings] = None):
        self.settings = settings or AuditSettings()
        self.registry = registry if registry is not None else RuleRegistry.discover(self.settings)
        self.report_controller = ReportController(self.registry, self.settings)

        # Results Buffers
        self.reports: Dict[str, ComponentReport] = {}
        self.result: Optional[AnalysisResult] = None

    @classmethod
    def from_config(cls, manager: Optional[ConfigManager] = None) -> "AuditController":
        """Builds a controller from settings.json and applies its logging section."""
        manager = manager or config_manager
        configure_from_config(manager)
        return cls(settings=AuditSettings.from_config(manager))

    def run_audit(
            self,
            components: Iterable[ComponentTask],
            workers: Optional[int] = None,
            progress_callback: Optional[ProgressCallback] = None,
            show_progress: bool = False
    ) -> AnalysisResult:
        """
        Audits every component and aggregates the reports.

        Args:
            components: (component_id, path, tree) tuples.
            workers: Worker processes; defaults to the configured amount. 1 runs serially.
            progress_callback: Called as (completed, total) after each component.
            show_progress: Display a tqdm progress bar.

        Returns:
            AnalysisResult: The aggregated report.
        """
        tasks = list(components)
        total = len(tasks)
        workers = workers or self.settings.workers

        # Reset Buffers
        self.reports = {}
        self.result = None

        func = partial(_worker_audit_component, registry=self.registry, settings=self.settings)

        pbar = tqdm(total=total, desc="Auditing", unit="component") if show_progress else None
        try:
            if workers > 1 and total > 1:
                with ProcessPoolExecutor(max_workers=workers) as executor:
                    self._collect(executor.map(func, tasks), total, progress_callback, pbar)
            else:
                self._collect(map(func, tasks), total, progress_callback, pbar)
        finally:
            if pbar is not None:
                pbar.close()

        self.result = self.report_controller.generate_report(list(self.reports.values()))
        summary = self.result.summary
        logger.info(
            f"✅ Audit finished: {summary.total_components_analyzed} components, "
            f"{summary.total_violations} violations, score {summary.overall_score}"
        )
        return self.result

    def _collect(
            self,
            results: Iterable[ComponentReport],
            total: int,
            progress_callback: Optional[ProgressCallback],
            pbar: Optional[tqdm]
    ) -> None:
        # map() keeps input order, so a repeated id is overwritten by the later component
        for i, report in enumerate(results):
            if report.component_id in self.reports:
                logger.warning(f"Duplicate component id '{report.component_id}'; keeping the later one.")
                del self.reports[report.component_id]
            self.reports[report.component_id] = report

            if progress_callback:
                progress_callback(i + 1, total)
            if pbar is not None:
                pbar.update(1)

    # --- Result Getters ---
    def get_component_info(self, component_id: str) -> Optional[ComponentReport]:
        return self.reports.get(component_id)

    def get_violations_for_rule(self, rule_id: str) -> List[Tuple[str, Violation]]:
        """All violations of one rule as (component_id, violation) pairs."""
        return [
            (report.component_id, violation)
            for report in self.reports.values()
            for violation in report.violations
            if violation.rule_id == rule_id
        ]

    def get_clean_components(self) -> List[str]:
        return [report.component_id for report in self.reports.values() if not report.has_issues]

    def get_results_for_export(self) -> List[Dict[str, Any]]:
        rows = []
        for report in self.reports.values():
            for violation in report.violations:
                rule = self.registry.get(violation.rule_id)
                rows.append({
                    "Component": report.component_id,
                    "Path": report.path,
                    "Rule": violation.rule_id,
                    "Category": rule.category if rule else None,
                    "Level": rule.level if rule else None,
                    "Criterion": rule.criterion if rule else None,
                    "Element": violation.element_tag,
                    "Line": violation.location.line if violation.location else None,
                    "Severity": violation.severity,
                    "Message": violation.message,
                })
        return rows

    def get_results_frame(self) -> pd.DataFrame:
        columns = ["Component", "Path", "Rule", "Category", "Level", "Criterion",
                   "Element", "Line", "Severity", "Message"]
        return pd.DataFrame(self.get_results_for_export(), columns=columns)

    def export_results(self, filename: Optional[str] = None) -> Path:
        """Writes the violation rows to a CSV file in the export directory."""
        target = PathUtils.get_export_dir() / (filename or "a11y_violations.csv")
        self.get_results_frame().to_csv(target, index=False)
        logger.info(f"Exported {len(self.get_results_for_export())} violations to {target}")
        return target
