"""Benchmark orchestrator for sequencing repeated workload runs."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from common.exceptions import ExecutionError, ToolUnavailableError
from common.models.metrics import MetricKind, MetricSeries, RunResult
from common.models.report import BenchmarkConfig, Report, WorkloadSummary
from runner.core.aggregator import StatAggregator
from runner.core.executor import RunExecutor
from runner.core.parser import OutputParser, get_parser

logger = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    """Orchestrator lifecycle. Transitions only move forward."""
    IDLE = "idle"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    DONE = "done"


def check_tool(binary: str) -> str:
    """Resolve the fio binary or raise ToolUnavailableError."""
    path = shutil.which(binary)
    if path is None:
        raise ToolUnavailableError(f"Benchmark tool not found: {binary}")
    return path


class BenchmarkOrchestrator:
    """Run every workload ``repetitions`` times and build the report."""

    def __init__(
        self,
        executor: RunExecutor,
        parser: Optional[OutputParser] = None,
        aggregator: Optional[StatAggregator] = None,
    ):
        self.executor = executor
        self.parser = parser
        self.aggregator = aggregator or StatAggregator()

        self._state = OrchestratorState.IDLE
        self._run_index = 0
        self._workload_index = 0
        self._result_callback: Optional[Callable[[RunResult], None]] = None

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def position(self) -> tuple[int, int]:
        """Current (run_index, workload_index); run_index is 1-based."""
        return self._run_index, self._workload_index

    def set_result_callback(self, callback: Callable[[RunResult], None]) -> None:
        """Set callback invoked after every (run, workload) pair."""
        self._result_callback = callback

    async def run(self, config: BenchmarkConfig) -> Report:
        """Run the benchmark and return the report.

        Per-run failures are recorded and never raised; only
        ToolUnavailableError escapes.
        """
        if self._state != OrchestratorState.IDLE:
            raise RuntimeError(f"Orchestrator already used (state: {self._state.value})")

        parser = self.parser or get_parser(config.output_format)
        if parser.format != config.output_format:
            raise ValueError(
                f"Parser format {parser.format.value} does not match "
                f"output format {config.output_format.value}"
            )

        report = Report(config=config)
        results: dict[str, list[RunResult]] = {w.name: [] for w in config.workloads}

        logger.info(
            f"Starting benchmark: {config.repetitions} run(s) of "
            f"{len(config.workloads)} workload(s)"
        )
        self._state = OrchestratorState.RUNNING

        for run_index in range(1, config.repetitions + 1):
            logger.info(f"Run #{run_index}...")
            for workload_index, spec in enumerate(config.workloads):
                self._run_index = run_index
                self._workload_index = workload_index

                result = await self._run_one(spec, run_index, parser)
                results[spec.name].append(result)

                if self._result_callback:
                    self._result_callback(result)

        self._state = OrchestratorState.AGGREGATING
        report.workloads = [
            self._summarize(spec, results[spec.name]) for spec in config.workloads
        ]
        report.completed_at = datetime.now()
        self._state = OrchestratorState.DONE

        if report.failure_count:
            logger.warning(f"Benchmark finished with {report.failure_count} failed run(s)")
        else:
            logger.info("Benchmark finished")

        return report

    async def _run_one(self, spec, run_index: int, parser: OutputParser) -> RunResult:
        try:
            raw = await self.executor.execute(spec)
        except ExecutionError as e:
            logger.error(f"Run #{run_index} of {spec.name} failed: {e}")
            return RunResult.failed(
                error=str(e),
                raw_output=e.raw_output or None,
                workload=spec.name,
                run_index=run_index,
            )

        result = parser.parse(raw.stdout, spec.operation, workload=spec.name, run_index=run_index)
        if result.success:
            logger.info(
                f"{spec.name} run #{run_index}: "
                f"BW={result.bandwidth_mbps:.2f} MB/s, IOPS={result.iops}, "
                f"Lat={'n/a' if result.latency_ms is None else f'{result.latency_ms:.3f} ms'}"
            )
        return result

    def _summarize(self, spec, results: list[RunResult]) -> WorkloadSummary:
        series = {kind: MetricSeries(spec.name, kind) for kind in MetricKind}
        for result in results:
            if not result.success:
                continue
            for kind, s in series.items():
                value = result.value(kind)
                if value is not None:
                    s.append(value)

        return WorkloadSummary(
            workload=spec,
            results=results,
            bandwidth=self.aggregator.aggregate(series[MetricKind.BANDWIDTH]),
            iops=self.aggregator.aggregate(series[MetricKind.IOPS]),
            latency=self.aggregator.aggregate(series[MetricKind.LATENCY]),
        )
