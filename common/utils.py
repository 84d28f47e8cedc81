"""Common utility functions."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml


def generate_timestamp(moment: Optional[datetime] = None) -> str:
    """Generate a filesystem-safe timestamp (e.g. '2024-01-31_13-05-09')."""
    moment = moment or datetime.now()
    return moment.strftime("%Y-%m-%d_%H-%M-%S")


def parse_size(size_str: str) -> int:
    """Parse a size string (e.g., '10G', '512M', '4k') to bytes."""
    size_str = size_str.strip().upper()

    units = {
        'B': 1,
        'K': 1024,
        'KB': 1024,
        'KIB': 1024,
        'M': 1024 ** 2,
        'MB': 1024 ** 2,
        'MIB': 1024 ** 2,
        'G': 1024 ** 3,
        'GB': 1024 ** 3,
        'GIB': 1024 ** 3,
        'T': 1024 ** 4,
        'TB': 1024 ** 4,
        'TIB': 1024 ** 4,
    }

    match = re.match(r'^(\d+(?:\.\d+)?)\s*([A-Z]*)$', size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")

    value = float(match.group(1))
    unit = match.group(2) or 'B'

    if unit not in units:
        raise ValueError(f"Unknown unit: {unit}")

    return int(value * units[unit])


def format_duration(seconds: int) -> str:
    """Format seconds to human-readable duration."""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        return f"{minutes}m {secs}s"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        secs = seconds % 60
        return f"{hours}h {minutes}m {secs}s"


def load_yaml(path: str | Path) -> dict:
    """Load a YAML file."""
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def ensure_dir(path: str | Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


class Timer:
    """Simple context manager for timing code blocks."""

    def __init__(self):
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None

    def __enter__(self):
        self.start_time = datetime.now()
        return self

    def __exit__(self, *args):
        self.end_time = datetime.now()

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None:
            return 0
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()
