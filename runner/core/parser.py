"""Parsers for fio output.

Two variants share the ``OutputParser`` interface: ``JsonOutputParser`` for
``--output-format=json`` and ``TextOutputParser`` for the default human
readable output. The variant is picked once from configuration with
``get_parser``; a parser never falls back to the other format.

Bandwidth is reported in MB/s where 1 MB = 1 MiB = 1024 KiB, latency in
milliseconds.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Optional

from common.exceptions import ParseError
from common.models.metrics import RunResult
from common.models.workload import Operation, OutputFormat

logger = logging.getLogger(__name__)

# Bandwidth unit -> factor to MB/s
BANDWIDTH_UNITS = {
    "B/s": 1 / (1024 * 1024),
    "KiB/s": 1 / 1024,
    "KB/s": 1 / 1024,
    "MiB/s": 1.0,
    "MB/s": 1.0,
    "GiB/s": 1024.0,
    "GB/s": 1024.0,
}

# Unit prefix in text output -> factor to MB/s. "" is a bare byte unit (B/s).
# A number with no unit at all passes through.
TEXT_BANDWIDTH_PREFIXES = {
    "": 1 / (1024 * 1024),
    "k": 1 / 1024,
    "m": 1.0,
    "g": 1024.0,
    "t": 1024.0 * 1024,
}

IOPS_SUFFIXES = {
    "": 1,
    "k": 1000,
    "m": 1000 * 1000,
}

NS_PER_MS = 1000 * 1000
US_PER_MS = 1000


def load_json_payload(raw: str) -> dict:
    """Decode fio's JSON document, skipping notes printed around it."""
    start = raw.find("{")
    if start < 0:
        raise ParseError("No JSON document in output")
    try:
        payload, _ = json.JSONDecoder().raw_decode(raw, start)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON output: {e}")
    if not isinstance(payload, dict):
        raise ParseError("JSON output is not an object")
    return payload


def _non_negative(name: str, value: float) -> float:
    if not math.isfinite(value):
        raise ParseError(f"Non-finite {name}: {value}")
    if value < 0:
        raise ParseError(f"Negative {name}: {value}")
    return value


class OutputParser:
    """Extract bandwidth, IOPS and mean latency from fio output."""

    format: OutputFormat

    def parse(
        self,
        raw: str,
        op: Operation,
        workload: str = "",
        run_index: int = 0,
    ) -> RunResult:
        """Parse ``raw`` for ``op``.

        Never raises on bad input: an unparseable payload yields an
        unsuccessful RunResult that keeps the raw text.
        """
        op = Operation(op)
        try:
            bandwidth, iops, latency = self._extract(raw, op)
        except ParseError as e:
            logger.warning(
                f"Failed to parse fio {self.format.value} output for "
                f"{workload or op.value}: {e}\n--- raw output ---\n{raw}"
            )
            return RunResult.failed(
                error=f"Parse error: {e}",
                raw_output=raw,
                workload=workload,
                run_index=run_index,
            )

        return RunResult(
            workload=workload,
            run_index=run_index,
            bandwidth_mbps=bandwidth,
            iops=iops,
            latency_ms=latency,
        )

    def _extract(self, raw: str, op: Operation) -> tuple[float, int, Optional[float]]:
        raise NotImplementedError


class JsonOutputParser(OutputParser):
    """Parser for ``--output-format=json``."""

    format = OutputFormat.JSON

    def _extract(self, raw: str, op: Operation) -> tuple[float, int, Optional[float]]:
        payload = load_json_payload(raw)

        jobs = payload.get("jobs")
        if not jobs or not isinstance(jobs, list):
            raise ParseError("No jobs in JSON output")

        job = jobs[0]
        if not isinstance(job, dict):
            raise ParseError("Malformed job entry")
        if job.get("error"):
            raise ParseError(f"fio reported job error {job['error']}")

        stats = job.get(op.value)
        if not isinstance(stats, dict):
            raise ParseError(f"No '{op.value}' stats in job")

        return (
            self._bandwidth(stats),
            self._iops(stats),
            self._latency(stats),
        )

    @staticmethod
    def _bandwidth(stats: dict) -> float:
        """Bandwidth in MB/s, using the unit the payload carries."""
        try:
            if "bw_bytes" in stats:
                value = float(stats["bw_bytes"]) * BANDWIDTH_UNITS["B/s"]
            elif "bw" in stats:
                # fio documents plain "bw" as KiB/s
                unit = stats.get("bw_unit", "KiB/s")
                if unit not in BANDWIDTH_UNITS:
                    raise ParseError(f"Unknown bandwidth unit: {unit}")
                value = float(stats["bw"]) * BANDWIDTH_UNITS[unit]
            else:
                raise ParseError("No bandwidth in stats")
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid bandwidth value: {e}")
        return _non_negative("bandwidth", value)

    @staticmethod
    def _iops(stats: dict) -> int:
        if "iops" not in stats:
            raise ParseError("No IOPS in stats")
        try:
            value = float(stats["iops"])
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid IOPS value: {e}")
        return int(round(_non_negative("IOPS", value)))

    @staticmethod
    def _latency(stats: dict) -> Optional[float]:
        """Mean total latency in ms; None if the payload has none."""
        try:
            if isinstance(stats.get("lat_ns"), dict) and "mean" in stats["lat_ns"]:
                value = float(stats["lat_ns"]["mean"]) / NS_PER_MS
            elif isinstance(stats.get("lat"), dict) and "mean" in stats["lat"]:
                # fio < 3.0 reported usec
                value = float(stats["lat"]["mean"]) / US_PER_MS
            else:
                return None
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid latency value: {e}")
        return _non_negative("latency", value)


class TextOutputParser(OutputParser):
    """Parser for fio's default human readable output.

    Handles both the fio 2.x style (``read : io=..., bw=942563KB/s,
    iops=28``) and fio 3.x (``read: IOPS=25.6k, BW=100MiB/s (105MB/s)``).
    Latency is not extracted in this mode and is reported as unavailable.
    """

    format = OutputFormat.NORMAL

    BW_RE = re.compile(
        r"\bbw\s*=\s*([0-9]+(?:\.[0-9]+)?)\s*([kmgt]?i?b(?:/s)?|[kmgt])?(?![0-9a-z])",
        re.IGNORECASE,
    )
    IOPS_RE = re.compile(r"\biops\s*=\s*([0-9]+(?:\.[0-9]+)?)\s*([km]?)\b", re.IGNORECASE)

    @staticmethod
    def _find_lines(raw: str, op: Operation) -> list[str]:
        """Per-job stats line first, then the aggregate run status line."""
        job_re = re.compile(rf"^\s*{op.value}\s*:")
        group_re = re.compile(rf"^\s*{op.value.upper()}\s*:")
        lines = raw.splitlines()
        # "(g=" / "(groupid=" mark job header lines of a job literally named read/write
        job_lines = [
            line for line in lines
            if job_re.match(line) and "(g=" not in line and "(groupid=" not in line
        ]
        group_lines = [line for line in lines if group_re.match(line)]
        return job_lines[:1] + group_lines[:1]

    @staticmethod
    def _bandwidth_factor(unit: Optional[str]) -> float:
        if unit is None:
            return 1.0
        prefix = unit[0].lower()
        return TEXT_BANDWIDTH_PREFIXES[prefix if prefix in "kmgt" else ""]

    def _extract(self, raw: str, op: Operation) -> tuple[float, int, Optional[float]]:
        lines = self._find_lines(raw, op)
        if not lines:
            raise ParseError(f"No '{op.value}:' line in output")

        bandwidth = None
        iops = None
        for line in lines:
            if bandwidth is None:
                match = self.BW_RE.search(line)
                if match:
                    bandwidth = float(match.group(1)) * self._bandwidth_factor(match.group(2))
            if iops is None:
                match = self.IOPS_RE.search(line)
                if match:
                    iops = int(round(float(match.group(1)) * IOPS_SUFFIXES[match.group(2).lower()]))

        if bandwidth is None:
            raise ParseError(f"No bandwidth on '{op.value}:' line")

        return (
            _non_negative("bandwidth", bandwidth),
            iops if iops is not None else 0,
            None,
        )


_PARSERS = {
    OutputFormat.JSON: JsonOutputParser,
    OutputFormat.NORMAL: TextOutputParser,
}


def get_parser(output_format: OutputFormat | str) -> OutputParser:
    """Return the parser for a configured output format."""
    return _PARSERS[OutputFormat(output_format)]()


def parse_output(
    raw: str,
    op: Operation | str,
    output_format: OutputFormat | str,
    workload: str = "",
    run_index: int = 0,
) -> RunResult:
    """Parse ``raw`` fio output of the given format for ``op``."""
    return get_parser(output_format).parse(raw, Operation(op), workload=workload, run_index=run_index)
