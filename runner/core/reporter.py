"""Report rendering and persistence."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from common.models.metrics import AggregateStat, MetricKind
from common.models.report import Report
from common.utils import ensure_dir, format_duration, generate_timestamp

logger = logging.getLogger(__name__)

METRIC_COLUMNS = (
    (MetricKind.BANDWIDTH, "MB/s", 2),
    (MetricKind.IOPS, "IOPS", 0),
    (MetricKind.LATENCY, "Lat ms", 3),
)


def format_stat(stat: AggregateStat, precision: int) -> str:
    if not stat.available:
        return "n/a"
    return f"{stat.mean:.{precision}f} ± {stat.stddev:.{precision}f}"


def format_value(value: Optional[float], precision: int) -> str:
    if value is None:
        return "-"
    return f"{value:.{precision}f}"


def render_report(report: Report) -> str:
    """Render the report as plain text."""
    config = report.config
    lines = [
        f"Disk Benchmark Report - {report.started_at:%Y-%m-%d %H:%M:%S}",
        f"Runs per workload: {config.repetitions}",
        f"Output format: {config.output_format.value}",
        f"Duration: {format_duration(report.duration_seconds)}",
        "",
        f"{'Workload':<14} {'Mode':<10} {'BS':<5} "
        f"{'MB/s':<20} {'IOPS':<20} {'Lat ms':<20} {'OK/Fail':<8}",
    ]
    lines.append("-" * len(lines[-1]))

    for summary in report.workloads:
        spec = summary.workload
        cells = [format_stat(summary.stat(kind), p) for kind, _, p in METRIC_COLUMNS]
        lines.append(
            f"{spec.name:<14} {spec.rw.value:<10} {spec.block_size:<5} "
            f"{cells[0]:<20} {cells[1]:<20} {cells[2]:<20} "
            f"{summary.successful_runs}/{summary.failed_runs}"
        )

    lines.append("")
    lines.append("Raw per-run values:")
    for summary in report.workloads:
        lines.append(f"  {summary.name}:")
        for kind, label, precision in METRIC_COLUMNS:
            values = ", ".join(format_value(v, precision) for v in summary.series(kind))
            lines.append(f"    {label:<7} [{values}]")

    if report.failure_count:
        lines.append("")
        lines.append(f"Failed runs: {report.failure_count} of {report.total_runs}")
        for summary in report.workloads:
            for result in summary.results:
                if not result.success:
                    lines.append(f"  {summary.name} run #{result.run_index}: {result.error}")

    return "\n".join(lines) + "\n"


class ReportWriter:
    """Print the report and save it to a timestamped log file."""

    def __init__(
        self,
        log_dir: Path = Path("."),
        json_report: Optional[Path] = None,
        stream: Optional[TextIO] = None,
    ):
        self.log_dir = Path(log_dir)
        self.json_report = Path(json_report) if json_report else None
        self.stream = stream or sys.stdout

    def log_path(self, report: Report) -> Path:
        return self.log_dir / f"disk_benchmark_{generate_timestamp(report.started_at)}.log"

    def write(self, report: Report) -> Path:
        """Emit the report; returns the log file path."""
        text = render_report(report)
        self.stream.write(text)
        self.stream.flush()

        ensure_dir(self.log_dir)
        path = self.log_path(report)
        with open(path, "w") as f:
            f.write(text)
        logger.info(f"Results saved to {path}")

        if self.json_report:
            ensure_dir(self.json_report.parent)
            with open(self.json_report, "w") as f:
                f.write(report.model_dump_json(indent=2))
            logger.info(f"JSON report saved to {self.json_report}")

        return path
