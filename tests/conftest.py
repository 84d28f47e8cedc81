"""Pytest configuration and shared fixtures."""

import json
import tempfile
import shutil
from pathlib import Path
from typing import Callable, Generator

import pytest

from common.models.workload import WorkloadSpec, RWMode, canonical_workloads


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def workloads() -> tuple:
    """The canonical workloads with a short runtime."""
    return canonical_workloads(runtime=1)


@pytest.fixture
def seq_read_spec() -> WorkloadSpec:
    """Sequential read workload."""
    return WorkloadSpec(name="seq_read", rw=RWMode.READ, block_size="1M", runtime=1)


@pytest.fixture
def fio_json() -> Callable[..., str]:
    """Factory for fio JSON output with one job."""

    def _make(
        op: str = "read",
        bw_kib: float = 102400,
        iops: float = 100.0,
        lat_ns: float = 1500000.0,
        error: int = 0,
        preamble: str = "",
    ) -> str:
        idle = {"bw_bytes": 0, "bw": 0, "iops": 0.0, "lat_ns": {"min": 0, "max": 0, "mean": 0.0}}
        stats = {
            "io_bytes": int(bw_kib * 1024 * 30),
            "bw_bytes": int(bw_kib * 1024),
            "bw": bw_kib,
            "iops": iops,
            "runtime": 30000,
            "lat_ns": {"min": 1000, "max": 9000000, "mean": lat_ns, "stddev": 100.0},
        }
        payload = {
            "fio version": "fio-3.28",
            "timestamp": 1700000000,
            "jobs": [
                {
                    "jobname": "test",
                    "groupid": 0,
                    "error": error,
                    "read": stats if op == "read" else idle,
                    "write": stats if op == "write" else idle,
                }
            ],
        }
        return preamble + json.dumps(payload, indent=2)

    return _make


@pytest.fixture
def fio3_text_read() -> str:
    """fio 3.x normal output for a sequential read."""
    return """seq_read: (g=0): rw=read, bs=(R) 1024KiB-1024KiB, (W) 1024KiB-1024KiB, (T) 1024KiB-1024KiB, ioengine=psync, iodepth=16
fio-3.28
Starting 1 process

seq_read: (groupid=0, jobs=1): err= 0: pid=4242: Mon Jan  8 10:00:00 2024
  read: IOPS=1600, BW=1600MiB/s (1678MB/s)(46.9GiB/30001msec)
    clat (usec): min=300, max=5000, avg=624.10, stdev=50.00
     lat (usec): min=301, max=5001, avg=625.00, stdev=50.00
   bw (  MiB/s): min= 1500, max= 1700, per=100.00%, avg=1600.00, stdev=20.00, samples=60
   iops        : min= 1500, max= 1700, avg=1600.00, stdev=20.00, samples=60

Run status group 0 (all jobs):
   READ: bw=1600MiB/s (1678MB/s), 1600MiB/s-1600MiB/s (1678MB/s-1678MB/s), io=46.9GiB (50.3GB), run=30001-30001msec
"""


@pytest.fixture
def fio3_text_randwrite() -> str:
    """fio 3.x normal output for a random write."""
    return """rand_write: (g=0): rw=randwrite, bs=(R) 4096B-4096B, (W) 4096B-4096B, (T) 4096B-4096B, ioengine=psync, iodepth=16
fio-3.28
Starting 1 process

rand_write: (groupid=0, jobs=1): err= 0: pid=4243: Mon Jan  8 10:01:00 2024
  write: IOPS=25.6k, BW=100MiB/s (105MB/s)(3000MiB/30001msec); 0 zone resets
    clat (usec): min=20, max=900, avg=38.20, stdev=5.00
     lat (usec): min=21, max=901, avg=39.00, stdev=5.00

Run status group 0 (all jobs):
  WRITE: bw=100MiB/s (105MB/s), 100MiB/s-100MiB/s (105MB/s-105MB/s), io=3000MiB (3146MB), run=30001-30001msec
"""


@pytest.fixture
def fio2_text_read() -> str:
    """fio 2.x normal output for a sequential read."""
    return """test: (g=0): rw=read, bs=1M-1M/1M-1M/1M-1M, ioengine=sync, iodepth=16
fio-2.2.10
Starting 1 process

test: (groupid=0, jobs=1): err= 0: pid=1200: Tue Mar  1 12:00:00 2016
  read : io=27616MB, bw=942563KB/s, iops=920, runt= 30002msec
    clat (usec): min=500, max=9000, avg=1085.20, stdev=120.00

Run status group 0 (all jobs):
   READ: io=27616MB, aggrb=942563KB/s, minb=942563KB/s, maxb=942563KB/s, mint=30002msec, maxt=30002msec
"""


@pytest.fixture
def fake_fio(temp_dir: Path) -> Callable[[str], Path]:
    """Write an executable stand-in for fio with the given shell body."""

    def _make(body: str) -> Path:
        path = temp_dir / "fake-fio"
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(0o755)
        return path

    return _make
