"""Models and utilities shared by the runner and the CLI."""

from common.models.workload import WorkloadSpec, OutputFormat
from common.models.metrics import RunResult, AggregateStat
from common.models.report import BenchmarkConfig, Report

__all__ = [
    "WorkloadSpec",
    "OutputFormat",
    "RunResult",
    "AggregateStat",
    "BenchmarkConfig",
    "Report",
]
