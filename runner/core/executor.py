"""Run executor: one fio invocation per workload."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from common.exceptions import ExecutionError, ParseError, ToolUnavailableError
from common.models.workload import OutputFormat, WorkloadSpec
from common.utils import Timer
from runner.core.parser import load_json_payload

logger = logging.getLogger(__name__)


@dataclass
class RawOutput:
    """Output of a finished fio invocation."""
    exit_code: int
    stdout: str
    stderr: str
    output_format: OutputFormat
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class RunExecutor:
    """Execute fio for a workload and capture its output."""

    def __init__(
        self,
        fio_binary: str = "fio",
        test_file: Path = Path("/tmp/fio_testfile"),
        output_format: OutputFormat = OutputFormat.JSON,
        timeout_grace: float = 30.0,
    ):
        self.fio_binary = fio_binary
        self.test_file = Path(test_file)
        self.output_format = OutputFormat(output_format)
        self.timeout_grace = timeout_grace

    @classmethod
    def from_settings(cls, settings) -> RunExecutor:
        return cls(
            fio_binary=settings.fio_binary,
            test_file=settings.test_file,
            output_format=settings.output_format,
            timeout_grace=settings.timeout_grace,
        )

    def build_command(self, spec: WorkloadSpec) -> list[str]:
        """Build the fio argv for a workload."""
        return [
            self.fio_binary,
            f"--name={spec.name}",
            f"--filename={self.test_file}",
            f"--size={spec.file_size}",
            f"--direct={1 if spec.direct_io else 0}",
            f"--rw={spec.rw.value}",
            f"--bs={spec.block_size}",
            f"--numjobs={spec.num_jobs}",
            f"--iodepth={spec.io_depth}",
            f"--runtime={spec.runtime}",
            "--time_based",
            "--group_reporting",
            f"--output-format={self.output_format.value}",
        ]

    def timeout_for(self, spec: WorkloadSpec) -> float:
        return spec.runtime + self.timeout_grace

    @contextmanager
    def test_file_scope(self) -> Iterator[Path]:
        """Hold the backing test file for one invocation, removing it afterwards."""
        self.test_file.parent.mkdir(parents=True, exist_ok=True)
        try:
            yield self.test_file
        finally:
            try:
                self.test_file.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove test file {self.test_file}: {e}")

    async def execute(self, spec: WorkloadSpec) -> RawOutput:
        """Run fio for ``spec`` and return its output.

        Raises ExecutionError on non-zero exit, timeout or undecodable JSON
        output, and ToolUnavailableError if fio cannot be started.
        """
        cmd = self.build_command(spec)
        timeout = self.timeout_for(spec)

        with self.test_file_scope():
            logger.info(f"Running FIO: {' '.join(cmd)}")

            with Timer() as timer:
                try:
                    process = await asyncio.create_subprocess_exec(
                        *cmd,
                        stdout=asyncio.subprocess.PIPE,
                        stderr=asyncio.subprocess.PIPE,
                    )
                except OSError as e:
                    raise ToolUnavailableError(f"Cannot execute {self.fio_binary}: {e}")

                try:
                    stdout_b, stderr_b = await asyncio.wait_for(
                        process.communicate(),
                        timeout=timeout,
                    )
                except asyncio.TimeoutError:
                    logger.error(f"FIO timed out after {timeout:.0f}s for {spec.name}, killing")
                    await self._kill(process)
                    raise ExecutionError(
                        f"{spec.name}: fio did not finish within {timeout:.0f}s",
                        exit_code=process.returncode,
                    )

        stdout = stdout_b.decode(errors="replace")
        stderr = stderr_b.decode(errors="replace")

        if process.returncode != 0:
            logger.error(f"FIO failed for {spec.name} with exit code {process.returncode}: {stderr.strip()}")
            raise ExecutionError(
                f"{spec.name}: fio exited with code {process.returncode}",
                stdout=stdout,
                stderr=stderr,
                exit_code=process.returncode,
            )

        if self.output_format == OutputFormat.JSON:
            try:
                load_json_payload(stdout)
            except ParseError as e:
                logger.error(f"FIO produced unusable JSON for {spec.name}: {e}")
                raise ExecutionError(
                    f"{spec.name}: {e}",
                    stdout=stdout,
                    stderr=stderr,
                    exit_code=process.returncode,
                )

        logger.debug(f"FIO finished {spec.name} in {timer.elapsed_seconds:.1f}s")

        return RawOutput(
            exit_code=process.returncode,
            stdout=stdout,
            stderr=stderr,
            output_format=self.output_format,
            duration_seconds=timer.elapsed_seconds,
        )

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        try:
            await asyncio.wait_for(process.wait(), timeout=5)
        except asyncio.TimeoutError:
            logger.error(f"FIO process {process.pid} did not exit after kill")
