"""Common data models for the disk benchmark."""

from common.models.workload import (
    WorkloadSpec,
    RWMode,
    Operation,
    OutputFormat,
    canonical_workloads,
    load_workloads,
)
from common.models.metrics import RunResult, MetricKind, MetricSeries, AggregateStat
from common.models.report import BenchmarkConfig, WorkloadSummary, Report

__all__ = [
    "WorkloadSpec",
    "RWMode",
    "Operation",
    "OutputFormat",
    "canonical_workloads",
    "load_workloads",
    "RunResult",
    "MetricKind",
    "MetricSeries",
    "AggregateStat",
    "BenchmarkConfig",
    "WorkloadSummary",
    "Report",
]
