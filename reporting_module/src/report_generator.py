"""
Report Generator for Fairness Audits

Renders FairnessReports as text tables and writes Markdown reports with
an accompanying PNG chart and JSON dump. Writing never aborts the pipeline:
I/O errors are logged and handed back in the WriteResult.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from shared.constants import FAIRNESS_METRICS, FOUR_FIFTHS_THRESHOLD
from shared.exceptions import ReportWriteError
from shared.logging import get_logger
from shared.schemas import FairnessReport

from .visualization import render_plot

logger = get_logger(__name__)


def ratio_table(report: FairnessReport) -> pd.DataFrame:
    """Ratios pivoted to rows (model, group) and one column per metric."""
    frame = report.to_frame()
    if frame.empty:
        return pd.DataFrame()

    table = frame.pivot_table(
        index=["model", "group"],
        columns="metric",
        values="ratio",
        aggfunc="first",
        sort=False,
    )
    table.columns.name = None
    return table


def _not_evaluated(report: FairnessReport) -> List[str]:
    """One line per failed (model, metric) and per failed (model, group, metric)."""
    entries = [
        f"{model_id} / {metric}: {error}"
        for (model_id, metric), error in report.metric_failures.items()
    ]
    entries.extend(
        f"{model_id} / {group} / {metric}: {error}"
        for (model_id, group, metric), error in report.failures.items()
    )
    return entries


def render_table(report: FairnessReport, float_format: str = "{:.3f}") -> str:
    """
    Render ratios as plain text.

    Groups and whole metrics that could not be evaluated are listed
    beneath the table with the reason.
    """
    header = (
        f"Fairness ratios (privileged group: {report.privileged_group}, "
        f"cutoff: {report.cutoff})"
    )
    table = ratio_table(report)

    if table.empty:
        body = "(no ratios computed)"
    else:
        body = table.to_string(float_format=float_format.format, na_rep="-")

    lines = [header, body]
    not_evaluated = _not_evaluated(report)
    if not_evaluated:
        lines.append("")
        lines.append("Not evaluated:")
        lines.extend(f"  {entry}" for entry in not_evaluated)

    return "\n".join(lines)


@dataclass
class ReportSection:
    """A section of the report."""

    title: str
    content: str
    level: int = 2  # Heading level (1-6)


@dataclass
class WriteResult:
    """Outcome of writing report artifacts."""

    paths: Dict[str, Path] = field(default_factory=dict)
    errors: List[ReportWriteError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class ReportGenerator:
    """
    Generator for fairness audit reports.

    Creates Markdown reports with:
    - Run header and configuration
    - Ratio table
    - Four-fifths band check
    - Failures that were isolated during evaluation
    """

    def __init__(
        self,
        output_dir: Path = Path("reports"),
        threshold: float = FOUR_FIFTHS_THRESHOLD,
    ):
        """
        Initialize report generator.

        Args:
            output_dir: Directory for saving reports (created on write)
            threshold: Lower edge of the acceptable ratio band
        """
        self.output_dir = Path(output_dir)
        self.threshold = threshold
        self.sections: List[ReportSection] = []

    def build_markdown(
        self,
        report: FairnessReport,
        checks: Optional[pd.DataFrame] = None,
        metadata: Optional[Dict[str, Any]] = None,
        plot_filename: Optional[str] = None,
    ) -> str:
        """Assemble the Markdown body of a report."""
        self.sections = []
        self._add_header(report, metadata)
        self._add_ratio_table(report)
        if checks is not None:
            self._add_band_check(checks)
        self._add_failures(report)
        if plot_filename:
            self.sections.append(ReportSection(
                title="Chart",
                content=f"## Chart\n\n![Fairness ratios]({plot_filename})\n",
            ))
        return "\n".join(section.content for section in self.sections)

    def write(
        self,
        report: FairnessReport,
        name: str = "fairness_report",
        checks: Optional[pd.DataFrame] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> WriteResult:
        """
        Write the Markdown report, PNG chart and JSON ratios.

        Returns:
            WriteResult; failures are recorded there rather than raised
        """
        result = WriteResult()
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        stem = f"{name}_{timestamp}"

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            error = ReportWriteError(f"Cannot create report directory {self.output_dir}: {e}")
            logger.error(str(error))
            result.errors.append(error)
            return result

        plot_path = self.output_dir / f"{stem}.png"
        try:
            plot_path.write_bytes(render_plot(report, threshold=self.threshold))
            result.paths["plot"] = plot_path
            logger.info(f"Plot saved to {plot_path}")
        except OSError as e:
            error = ReportWriteError(f"Failed to write plot {plot_path}: {e}")
            logger.error(str(error))
            result.errors.append(error)

        json_path = self.output_dir / f"{stem}.json"
        try:
            with open(json_path, 'w') as f:
                json.dump(report.to_dict(), f, indent=2, default=str)
            result.paths["json"] = json_path
            logger.info(f"Saved JSON report to {json_path}")
        except OSError as e:
            error = ReportWriteError(f"Failed to write JSON {json_path}: {e}")
            logger.error(str(error))
            result.errors.append(error)

        markdown_path = self.output_dir / f"{stem}.md"
        content = self.build_markdown(
            report,
            checks=checks,
            metadata=metadata,
            plot_filename=plot_path.name if "plot" in result.paths else None,
        )
        try:
            with open(markdown_path, 'w', encoding='utf-8') as f:
                f.write(content)
            result.paths["markdown"] = markdown_path
            logger.info(f"Report saved to {markdown_path}")
        except OSError as e:
            error = ReportWriteError(f"Failed to write report {markdown_path}: {e}")
            logger.error(str(error))
            result.errors.append(error)

        return result

    def _add_header(self, report: FairnessReport, metadata: Optional[Dict[str, Any]]):
        """Add report header."""
        generated = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        content = f"""# Fairness Audit Report

**Generated:** {generated}
**Privileged group:** {report.privileged_group}
**Decision cutoff:** {report.cutoff}
**Acceptable band:** [{self.threshold:.2f}, {1 / self.threshold:.2f}]
"""

        if metadata:
            content += "\n**Run Details:**\n"
            for key, value in metadata.items():
                content += f"- **{key}:** {value}\n"

        content += "\n---\n"

        self.sections.append(ReportSection(title="Header", content=content, level=1))

    def _add_ratio_table(self, report: FairnessReport):
        """Add the ratio table as a Markdown table."""
        content = "## Group Ratios\n\n"
        table = ratio_table(report)

        if table.empty:
            content += "*No ratios computed.*\n\n"
        else:
            metrics = list(table.columns)
            names = [FAIRNESS_METRICS.get(m, {}).get("name", m) for m in metrics]
            content += "| Model | Group | " + " | ".join(names) + " |\n"
            content += "|-------|-------|" + "|".join("---" for _ in metrics) + "|\n"
            for (model_id, group), row in table.iterrows():
                cells = ["-" if pd.isna(row[m]) else f"{row[m]:.3f}" for m in metrics]
                content += f"| {model_id} | {group} | " + " | ".join(cells) + " |\n"

        content += "\n---\n"
        self.sections.append(ReportSection(title="Group Ratios", content=content))

    def _add_band_check(self, checks: pd.DataFrame):
        """Add four-fifths band check results."""
        content = "## Four-Fifths Check\n\n"

        failed = checks[~checks["passed"].astype(bool)] if not checks.empty else checks
        content += f"- **Checks:** {len(checks)}\n"
        content += f"- **Outside band:** {len(failed)}\n\n"

        for _, row in failed.iterrows():
            content += (
                f"- {row['model']} / {row['group']} / {row['metric']}: "
                f"{row['ratio']:.3f}\n"
            )

        content += "\n---\n"
        self.sections.append(ReportSection(title="Four-Fifths Check", content=content))

    def _add_failures(self, report: FairnessReport):
        """List metrics and groups that could not be evaluated."""
        not_evaluated = _not_evaluated(report)
        if not not_evaluated:
            return

        content = "## Not Evaluated\n\n"
        for entry in not_evaluated:
            content += f"- {entry}\n"
        content += "\n"

        self.sections.append(ReportSection(title="Not Evaluated", content=content))
