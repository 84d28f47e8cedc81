"""Workload definition models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.exceptions import ConfigurationError
from common.utils import load_yaml, parse_size


class RWMode(str, Enum):
    """fio ``rw`` access modes supported by the benchmark."""
    READ = "read"
    WRITE = "write"
    RANDREAD = "randread"
    RANDWRITE = "randwrite"


class Operation(str, Enum):
    """Direction of I/O; also the key fio uses for the per-job stats block."""
    READ = "read"
    WRITE = "write"


class OutputFormat(str, Enum):
    """fio output formats the parsers understand."""
    JSON = "json"
    NORMAL = "normal"


class WorkloadSpec(BaseModel):
    """A single named fio workload."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Workload name")
    rw: RWMode = Field(..., description="fio rw mode")
    block_size: str = Field(default="4K", description="Block size (e.g., 4K, 1M)")
    file_size: str = Field(default="1G", description="Backing test file size")
    num_jobs: int = Field(default=1, ge=1, le=64, description="Number of parallel jobs")
    io_depth: int = Field(default=16, ge=1, le=1024, description="I/O queue depth")
    runtime: int = Field(default=30, ge=1, description="Run duration in seconds")
    direct_io: bool = Field(default=True, description="Bypass the page cache")

    @field_validator("block_size", "file_size")
    @classmethod
    def validate_size(cls, v: str) -> str:
        parse_size(v)
        return v

    @property
    def is_random(self) -> bool:
        return self.rw in (RWMode.RANDREAD, RWMode.RANDWRITE)

    @property
    def operation(self) -> Operation:
        """The stats block this workload is measured by."""
        if self.rw in (RWMode.READ, RWMode.RANDREAD):
            return Operation.READ
        return Operation.WRITE


# name, rw, block size of the fixed benchmark set, in execution order
CANONICAL_WORKLOADS = (
    ("seq_read", RWMode.READ, "1M"),
    ("seq_write", RWMode.WRITE, "1M"),
    ("rand_read", RWMode.RANDREAD, "4K"),
    ("rand_write", RWMode.RANDWRITE, "4K"),
)


def canonical_workloads(
    file_size: str = "1G",
    runtime: int = 30,
    io_depth: int = 16,
    num_jobs: int = 1,
    direct_io: bool = True,
) -> tuple[WorkloadSpec, ...]:
    """Build the four canonical workloads with shared parameters."""
    return tuple(
        WorkloadSpec(
            name=name,
            rw=rw,
            block_size=block_size,
            file_size=file_size,
            runtime=runtime,
            io_depth=io_depth,
            num_jobs=num_jobs,
            direct_io=direct_io,
        )
        for name, rw, block_size in CANONICAL_WORKLOADS
    )


def load_workloads(path: str | Path, defaults: Optional[dict] = None) -> tuple[WorkloadSpec, ...]:
    """Load workload definitions from a YAML file.

    The file holds a ``workloads`` list; fields a workload leaves out are
    taken from ``defaults``.
    """
    try:
        data = load_yaml(path)
    except FileNotFoundError:
        raise ConfigurationError(f"Workloads file not found: {path}")
    except Exception as e:
        raise ConfigurationError(f"Cannot read workloads file {path}: {e}")

    entries = data.get("workloads") if isinstance(data, dict) else None
    if not entries or not isinstance(entries, list):
        raise ConfigurationError(f"No workloads defined in {path}")

    workloads = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Invalid workload entry in {path}: {entry!r}")
        try:
            workloads.append(WorkloadSpec(**{**(defaults or {}), **entry}))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid workload {entry.get('name', '?')!r}: {e}")

    names = [w.name for w in workloads]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"Duplicate workload names in {path}")

    return tuple(workloads)
