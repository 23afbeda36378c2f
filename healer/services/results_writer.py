"""
Results Writer
==============
Serializes a finalized OrchestrationReport to
``error-resolution-report.json`` and, optionally, a Markdown summary.
"""
import json
import logging
import os

from healer.core.constants import ARROW
from healer.core.errors import HealerError
from healer.core.output_formatter import format_result
from healer.models.report import OrchestrationReport

logger = logging.getLogger(__name__)


class ResultsWriter:
    """
    Writes the run history to disk. Both writers refuse a report that was
    not finalized: a half-built report is never persisted.
    """

    @staticmethod
    def _require_final(report: OrchestrationReport) -> None:
        if not report.finalized:
            raise HealerError("Report must be finalized before it is written")

    @staticmethod
    def write_json(report: OrchestrationReport, output_path: str) -> str:
        ResultsWriter._require_final(report)
        abs_output = os.path.abspath(output_path)
        logger.info("Writing report to %s", abs_output)

        data = report.model_dump(mode="json")
        data["duration_seconds"] = report.duration_seconds
        with open(abs_output, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        return abs_output

    @staticmethod
    def render_markdown(report: OrchestrationReport) -> str:
        s = report.summary
        lines = [
            "# Type Error Resolution Report",
            "",
            f"- **Project:** `{report.project_root}`",
            f"- **Started:** {report.start_time.isoformat()}",
            f"- **Duration:** {report.duration_seconds:.1f}s",
            f"- **Status:** {report.status}" + (" (dry-run)" if report.dry_run else ""),
            f"- **Diagnostics:** {report.initial_total} {ARROW} {report.final_total}",
            f"- **Errors fixed:** {s.errors_fixed} ({s.success_rate:.1f}%)",
            "",
            "## Categories",
            "",
            "| Category | Count | Files | Priority |",
            "|---|---|---|---|",
        ]
        for c in report.categories:
            lines.append(f"| {c['key']} | {c['count']} | {c['file_count']} | {c['priority']:.2f} |")

        lines += ["", "## Strategy Runs", ""]
        if report.results:
            lines.extend(f"- {format_result(r)}" for r in report.results)
        else:
            lines.append("_No strategy was run._")

        if report.unhandled_categories:
            lines += ["", "## Unhandled Categories", ""]
            lines.extend(f"- {key}" for key in report.unhandled_categories)

        if report.suggestions:
            lines += ["", "## Next Steps", ""]
            lines.extend(f"{i}. {step}" for i, step in enumerate(report.suggestions, 1))

        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def write_markdown(report: OrchestrationReport, output_path: str) -> str:
        ResultsWriter._require_final(report)
        abs_output = os.path.abspath(output_path)
        logger.info("Writing Markdown report to %s", abs_output)
        with open(abs_output, "w", encoding="utf-8") as f:
            f.write(ResultsWriter.render_markdown(report))
        return abs_output
