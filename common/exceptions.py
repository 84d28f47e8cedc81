"""Error taxonomy shared by the runner and the CLI."""

from __future__ import annotations

from typing import Optional


class DiskBenchError(Exception):
    """Base class for all benchmark errors."""


class ConfigurationError(DiskBenchError):
    """Invalid user input or settings. Fatal, raised before any run starts."""


class ToolUnavailableError(DiskBenchError):
    """The benchmarking binary is missing or cannot be executed."""


class ExecutionError(DiskBenchError):
    """A single fio invocation failed or timed out."""

    def __init__(
        self,
        message: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code

    @property
    def raw_output(self) -> str:
        """Combined output kept for diagnostics."""
        parts = [p for p in (self.stdout, self.stderr) if p]
        return "\n".join(parts)


class ParseError(DiskBenchError):
    """Tool output could not be interpreted."""
