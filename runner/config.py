"""Benchmark configuration settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from common.exceptions import ConfigurationError
from common.models.workload import OutputFormat
from common.utils import parse_size


class BenchSettings(BaseSettings):
    """Benchmark settings loaded from environment variables."""

    # fio binary (name on PATH or absolute path)
    fio_binary: str = "fio"

    # Repetitions of the full workload set
    number_of_tests: int = Field(default=3, ge=1)

    # Backing test file
    test_file: Path = Field(default=Path("/tmp/fio_testfile"))
    file_size: str = "1G"

    # Shared workload parameters
    runtime: int = Field(default=30, ge=1)  # seconds
    io_depth: int = Field(default=16, ge=1, le=1024)
    num_jobs: int = Field(default=1, ge=1, le=64)
    direct_io: bool = True

    # Custom workload definitions (YAML), replaces the canonical set
    workloads_file: Optional[Path] = None

    # Output parsing
    output_format: OutputFormat = OutputFormat.JSON

    # Extra seconds past runtime before an invocation is killed
    timeout_grace: float = Field(default=30.0, ge=0)

    # Report
    log_dir: Path = Field(default=Path("."))
    json_report: Optional[Path] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_prefix = "DISKBENCH_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("file_size")
    @classmethod
    def validate_file_size(cls, v: str) -> str:
        parse_size(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v

    @property
    def workload_defaults(self) -> dict:
        """Parameters shared by every workload unless overridden."""
        return {
            "file_size": self.file_size,
            "runtime": self.runtime,
            "io_depth": self.io_depth,
            "num_jobs": self.num_jobs,
            "direct_io": self.direct_io,
        }


# Global settings instance
_settings: Optional[BenchSettings] = None


def get_settings() -> BenchSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = init_settings()
    return _settings


def init_settings(**kwargs) -> BenchSettings:
    """Initialize settings with custom values."""
    global _settings
    try:
        _settings = BenchSettings(**kwargs)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
    return _settings
