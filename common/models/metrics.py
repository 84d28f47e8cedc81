"""Per-run results and aggregate statistics."""

from __future__ import annotations

from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


class MetricKind(str, Enum):
    """Metrics collected from each run."""
    BANDWIDTH = "bandwidth_mbps"
    IOPS = "iops"
    LATENCY = "latency_ms"


class RunResult(BaseModel):
    """Metrics of one (run, workload) pair.

    ``None`` means the metric is unknown or not reported by the output
    format, which is distinct from a measured zero.
    """
    model_config = ConfigDict(frozen=True)

    workload: str = Field(default="", description="Workload name")
    run_index: int = Field(default=0, ge=0, description="1-based run number")
    bandwidth_mbps: Optional[float] = Field(default=None, ge=0)
    iops: Optional[int] = Field(default=None, ge=0)
    latency_ms: Optional[float] = Field(default=None, ge=0)
    success: bool = Field(default=True)
    error: Optional[str] = Field(default=None)
    raw_output: Optional[str] = Field(default=None, description="Kept for diagnosis on failure")

    @classmethod
    def failed(
        cls,
        error: str,
        raw_output: Optional[str] = None,
        workload: str = "",
        run_index: int = 0,
    ) -> RunResult:
        """Unsuccessful result with every metric unknown."""
        return cls(
            workload=workload,
            run_index=run_index,
            success=False,
            error=error,
            raw_output=raw_output,
        )

    def value(self, kind: MetricKind) -> Optional[float]:
        return getattr(self, kind.value)


class MetricSeries:
    """Append-only values of one metric for one workload."""

    def __init__(self, workload: str, kind: MetricKind):
        self.workload = workload
        self.kind = kind
        self._values: list[float] = []
        self._frozen = False

    def append(self, value: float) -> None:
        if self._frozen:
            raise RuntimeError(f"Series {self.workload}/{self.kind.value} is read-only")
        self._values.append(value)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[float]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"MetricSeries({self.workload!r}, {self.kind.value}, {self._values!r})"


class AggregateStat(BaseModel):
    """Mean and population standard deviation of a series."""
    model_config = ConfigDict(frozen=True)

    mean: float = Field(default=0)
    stddev: float = Field(default=0, ge=0)
    count: int = Field(default=0, ge=0)

    @property
    def available(self) -> bool:
        """False when no run produced a value."""
        return self.count > 0
