"""Disk benchmark CLI - Command line interface."""

import argparse
import asyncio
import sys
from typing import Optional

from common.exceptions import ConfigurationError, ToolUnavailableError
from common.models.workload import OutputFormat
from runner.config import init_settings
from runner.main import configure_logging, run_benchmark

EXIT_OK = 0
EXIT_WORKLOAD_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_TOOL_UNAVAILABLE = 3


def parse_positive_int(value: str, flag: str) -> int:
    """Parse a strictly positive integer flag value."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{flag} must be a positive integer, got {value!r}")
    if number <= 0:
        raise ConfigurationError(f"{flag} must be a positive integer, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diskbench",
        description="Run sequential and random fio workloads and report mean ± stddev",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-n", "--number-of-tests", "--number-of-test",
        dest="number_of_tests",
        metavar="N",
        help="Repetitions of every workload (default: 3)",
    )
    parser.add_argument(
        "--output-format",
        choices=[f.value for f in OutputFormat],
        help="fio output format to request and parse (default: json)",
    )
    parser.add_argument("--workloads", dest="workloads_file", help="YAML file with workload definitions")
    parser.add_argument("--test-file", help="Backing test file (default: /tmp/fio_testfile)")
    parser.add_argument("--file-size", help="Test file size (default: 1G)")
    parser.add_argument("--runtime", metavar="SECONDS", help="Seconds per workload run (default: 30)")
    parser.add_argument("--io-depth", help="I/O queue depth (default: 16)")
    parser.add_argument("--log-dir", help="Directory for the report log file (default: .)")
    parser.add_argument("--json-report", help="Also write the full report as JSON to this path")
    parser.add_argument("--fio", dest="fio_binary", help="fio binary (default: fio)")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    return parser


def settings_overrides(args: argparse.Namespace) -> dict:
    """Collect explicitly given options as settings overrides."""
    overrides = {}

    for flag, name in (
        ("--number-of-tests", "number_of_tests"),
        ("--runtime", "runtime"),
        ("--io-depth", "io_depth"),
    ):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = parse_positive_int(value, flag)

    for name in (
        "output_format",
        "workloads_file",
        "test_file",
        "file_size",
        "log_dir",
        "json_report",
        "fio_binary",
        "log_level",
    ):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value

    return overrides


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = init_settings(**settings_overrides(args))
    except ConfigurationError as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(settings)

    try:
        report = asyncio.run(run_benchmark(settings))
    except ConfigurationError as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except ToolUnavailableError as e:
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return EXIT_TOOL_UNAVAILABLE

    if not report.every_workload_succeeded:
        print(f"{parser.prog}: some workloads had no successful run", file=sys.stderr)
        return EXIT_WORKLOAD_FAILED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
