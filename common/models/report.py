"""Benchmark configuration and final report models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from common.models.metrics import AggregateStat, MetricKind, RunResult
from common.models.workload import OutputFormat, WorkloadSpec


class BenchmarkConfig(BaseModel):
    """What the orchestrator runs."""
    repetitions: int = Field(default=3, ge=1, description="Runs per workload")
    workloads: tuple[WorkloadSpec, ...] = Field(..., min_length=1)
    output_format: OutputFormat = Field(default=OutputFormat.JSON)

    @field_validator("workloads")
    @classmethod
    def validate_unique_names(cls, v):
        names = [w.name for w in v]
        if len(set(names)) != len(names):
            raise ValueError("Workload names must be unique")
        return v


class WorkloadSummary(BaseModel):
    """Aggregated and raw results for a single workload."""
    workload: WorkloadSpec
    results: list[RunResult] = Field(default_factory=list)
    bandwidth: AggregateStat = Field(default_factory=AggregateStat)
    iops: AggregateStat = Field(default_factory=AggregateStat)
    latency: AggregateStat = Field(default_factory=AggregateStat)

    @property
    def name(self) -> str:
        return self.workload.name

    @property
    def successful_runs(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed_runs(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def stat(self, kind: MetricKind) -> AggregateStat:
        return {
            MetricKind.BANDWIDTH: self.bandwidth,
            MetricKind.IOPS: self.iops,
            MetricKind.LATENCY: self.latency,
        }[kind]

    def series(self, kind: MetricKind) -> list[Optional[float]]:
        """Raw per-run values in run order, None where unavailable."""
        return [r.value(kind) for r in self.results]


class Report(BaseModel):
    """Final benchmark report."""
    config: BenchmarkConfig
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    workloads: list[WorkloadSummary] = Field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return sum(w.failed_runs for w in self.workloads)

    @property
    def total_runs(self) -> int:
        return sum(len(w.results) for w in self.workloads)

    @property
    def every_workload_succeeded(self) -> bool:
        """True when each workload has at least one successful run."""
        return all(w.successful_runs > 0 for w in self.workloads)

    @property
    def duration_seconds(self) -> int:
        if self.completed_at is None:
            return 0
        return int((self.completed_at - self.started_at).total_seconds())

    def get(self, name: str) -> Optional[WorkloadSummary]:
        for summary in self.workloads:
            if summary.name == name:
                return summary
        return None
