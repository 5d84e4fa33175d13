"""
State persistence layer for composeport.

Saves the analysis result and the conversion report of a run under the state
directory so they can be inspected or reloaded later.
"""

import time
from pathlib import Path
from typing import Any

import orjson

from composeport.config.models import AnalysisResult, PorterConfig, ProjectReport

_DUMP_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS


class ConversionState:
    """
    Everything one conversion run produced.

    ``save`` writes a per-run file plus ``latest.json``; ``load_latest``
    restores the most recent run.
    """

    def __init__(self, config: PorterConfig, run_id: str | None = None):
        self.config = config
        self.run_id = run_id or f"run_{int(time.time())}"
        self.state_dir = config.project.state_dir
        self.created_at = time.time()
        self.analysis_result: AnalysisResult | None = None
        self.report: ProjectReport | None = None

    def set_analysis_result(self, result: AnalysisResult):
        self.analysis_result = result

    def set_report(self, report: ProjectReport):
        self.report = report

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self) -> Path:
        """
        Save the run to disk.

        Returns:
            Path to the saved state file
        """
        self.state_dir.mkdir(parents=True, exist_ok=True)
        state_file = self.state_dir / f"{self.run_id}.json"
        payload = orjson.dumps(self._to_dict(), option=_DUMP_OPTIONS)

        state_file.write_bytes(payload)
        (self.state_dir / "latest.json").write_bytes(payload)
        return state_file

    def _to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "created_at": self.created_at,
            "config": self.config.model_dump(mode="json"),
            "analysis_result": self.analysis_result.model_dump(mode="json") if self.analysis_result else None,
            "report": self.report.model_dump(mode="json") if self.report else None,
        }

    @classmethod
    def load(cls, state_file: Path) -> "ConversionState":
        state_dict = orjson.loads(state_file.read_bytes())
        instance = cls(config=PorterConfig(**state_dict["config"]), run_id=state_dict["run_id"])
        instance.created_at = state_dict["created_at"]
        if state_dict["analysis_result"]:
            instance.analysis_result = AnalysisResult(**state_dict["analysis_result"])
        if state_dict["report"]:
            instance.report = ProjectReport(**state_dict["report"])
        return instance

    @classmethod
    def load_latest(cls, state_dir: Path) -> "ConversionState":
        """
        Load the latest run from a directory.

        Raises:
            FileNotFoundError: If no state files exist
        """
        latest_file = state_dir / "latest.json"
        if latest_file.exists():
            return cls.load(latest_file)

        state_files = sorted(state_dir.glob("run_*.json"), reverse=True)
        if not state_files:
            raise FileNotFoundError(f"No state files found in {state_dir}")
        return cls.load(state_files[0])

    # =========================================================================
    # Reports
    # =========================================================================

    def export_report(self, output_path: Path):
        """Write a Markdown summary of the conversion report."""
        if self.report is None:
            raise ValueError("No conversion report to export")
        report = self.report
        stats = report.stats

        report_lines = [
            f"# Conversion Report: {self.config.project.name}",
            "",
            f"- Success: {'yes' if report.success else 'no'}",
            f"- Units: {stats.converted_units}/{stats.total_units} converted, {stats.failed_units} failed",
            f"- Lines: {stats.source_lines} source, {stats.generated_lines} generated "
            f"({stats.ai_assisted_lines} AI-assisted)",
            f"- Duration: {stats.duration_seconds:.2f}s",
            "",
            "## Outputs",
            "",
        ]
        for output in report.outputs:
            report_lines.append(
                f"- `{output.source_path}` -> `{output.target_path}` "
                f"({output.component_shape.value}, {output.method.value})"
            )

        if report.cycles:
            report_lines.extend(["", "## Dependency cycles", ""])
            for cycle in report.cycles:
                report_lines.append(f"- {' -> '.join(cycle)}")

        for title, issues in (("Errors", report.errors), ("Warnings", report.warnings)):
            if issues:
                report_lines.extend(["", f"## {title}", ""])
                for issue in issues:
                    report_lines.append(f"- [{issue.code}] {issue.unit_path or '-'}: {issue.message}")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text("\n".join(report_lines) + "\n", encoding="utf-8")
