"""Disk benchmark runner - wires settings to the orchestrator."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from pydantic import ValidationError

from common.exceptions import ConfigurationError
from common.models.metrics import RunResult
from common.models.report import BenchmarkConfig, Report
from common.models.workload import canonical_workloads, load_workloads
from runner.config import BenchSettings
from runner.core.executor import RunExecutor
from runner.core.orchestrator import BenchmarkOrchestrator, check_tool
from runner.core.reporter import ReportWriter

logger = logging.getLogger(__name__)


def configure_logging(settings: BenchSettings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=settings.log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def build_config(settings: BenchSettings) -> BenchmarkConfig:
    """Build the benchmark config from settings."""
    try:
        if settings.workloads_file:
            workloads = load_workloads(settings.workloads_file, settings.workload_defaults)
        else:
            workloads = canonical_workloads(**settings.workload_defaults)

        return BenchmarkConfig(
            repetitions=settings.number_of_tests,
            workloads=workloads,
            output_format=settings.output_format,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid benchmark configuration: {e}")


def print_progress(result: RunResult) -> None:
    status = "ok" if result.success else "FAILED"
    print(f"  run #{result.run_index} {result.workload}: {status}", flush=True)


async def run_benchmark(
    settings: BenchSettings,
    executor: Optional[RunExecutor] = None,
    writer: Optional[ReportWriter] = None,
) -> Report:
    """Run the full benchmark described by ``settings`` and write the report.

    Raises ConfigurationError or ToolUnavailableError before any run starts.
    """
    config = build_config(settings)

    if executor is None:
        check_tool(settings.fio_binary)
        executor = RunExecutor.from_settings(settings)

    print(
        f"Starting disk benchmark with {config.repetitions} runs per test...\n"
        f"Test file size: {settings.file_size}\n",
        flush=True,
    )

    orchestrator = BenchmarkOrchestrator(executor)
    orchestrator.set_result_callback(print_progress)
    report = await orchestrator.run(config)

    writer = writer or ReportWriter(log_dir=settings.log_dir, json_report=settings.json_report)
    path = writer.write(report)
    print(f"\nBenchmark finished. Results saved to {path}", flush=True)

    return report
