"""Unit tests for fio output parsers."""

import json
import logging

import pytest

from common.exceptions import ParseError
from common.models.workload import Operation, OutputFormat
from runner.core.parser import (
    JsonOutputParser,
    TextOutputParser,
    get_parser,
    load_json_payload,
    parse_output,
)


class TestGetParser:
    """Tests for parser selection."""

    def test_json_format(self):
        assert isinstance(get_parser(OutputFormat.JSON), JsonOutputParser)

    def test_normal_format(self):
        assert isinstance(get_parser("normal"), TextOutputParser)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            get_parser("terse")


class TestLoadJsonPayload:
    """Tests for JSON document extraction."""

    def test_skips_leading_notes(self):
        raw = "note: both iodepth >= 1 and synchronous I/O engine are selected\n" + '{"jobs": []}'
        assert load_json_payload(raw) == {"jobs": []}

    def test_no_document(self):
        with pytest.raises(ParseError):
            load_json_payload("fio: pid=0, err=2/file:filesetup.c")

    def test_malformed_document(self):
        with pytest.raises(ParseError):
            load_json_payload('{"jobs": [')


class TestJsonOutputParser:
    """Tests for the structured parser."""

    @pytest.fixture
    def parser(self):
        return JsonOutputParser()

    def test_kib_bandwidth_converted(self, parser):
        """bw in KiB/s is divided by 1024."""
        raw = json.dumps({"jobs": [{"read": {"bw": 102400, "iops": 100, "lat_ns": {"mean": 0}}}]})

        result = parser.parse(raw, Operation.READ)

        assert result.success is True
        assert result.bandwidth_mbps == 100.0

    def test_mib_bandwidth_passthrough(self, parser):
        """A payload reporting MiB/s is passed through unchanged."""
        raw = json.dumps({"jobs": [{"read": {"bw": 250.5, "bw_unit": "MiB/s", "iops": 10}}]})

        result = parser.parse(raw, Operation.READ)

        assert result.bandwidth_mbps == 250.5

    def test_bw_bytes_preferred(self, parser, fio_json):
        result = parser.parse(fio_json(bw_kib=51200), Operation.READ)

        assert result.bandwidth_mbps == 50.0

    def test_unknown_bandwidth_unit(self, parser):
        raw = json.dumps({"jobs": [{"read": {"bw": 1, "bw_unit": "furlongs", "iops": 1}}]})

        result = parser.parse(raw, Operation.READ)

        assert result.success is False

    def test_latency_ns_to_ms(self, parser, fio_json):
        result = parser.parse(fio_json(lat_ns=1500000), Operation.READ)

        assert result.latency_ms == pytest.approx(1.5)

    def test_legacy_usec_latency(self, parser):
        raw = json.dumps({"jobs": [{"write": {"bw": 1024, "iops": 5, "lat": {"mean": 2500.0}}}]})

        result = parser.parse(raw, Operation.WRITE)

        assert result.latency_ms == pytest.approx(2.5)

    def test_missing_latency_is_unavailable(self, parser):
        raw = json.dumps({"jobs": [{"read": {"bw": 1024, "iops": 5}}]})

        result = parser.parse(raw, Operation.READ)

        assert result.success is True
        assert result.latency_ms is None

    def test_iops_rounded(self, parser, fio_json):
        result = parser.parse(fio_json(iops=25599.6), Operation.READ)

        assert result.iops == 25600

    def test_selects_operation(self, parser, fio_json):
        raw = fio_json(op="write", bw_kib=2048, iops=512)

        result = parser.parse(raw, Operation.WRITE, workload="seq_write", run_index=2)

        assert result.bandwidth_mbps == 2.0
        assert result.iops == 512
        assert result.workload == "seq_write"
        assert result.run_index == 2

    def test_job_error(self, parser, fio_json):
        result = parser.parse(fio_json(error=5), Operation.READ)

        assert result.success is False
        assert "error" in result.error

    def test_negative_metric_rejected(self, parser):
        raw = json.dumps({"jobs": [{"read": {"bw": -5, "iops": 10}}]})

        result = parser.parse(raw, Operation.READ)

        assert result.success is False
        assert result.bandwidth_mbps is None

    def test_non_finite_metric_rejected(self, parser):
        raw = json.dumps({"jobs": [{"read": {"bw": float("nan"), "iops": float("inf")}}]})

        result = parser.parse(raw, Operation.READ)

        assert result.success is False
        assert result.iops is None
        assert "Non-finite" in result.error

    def test_missing_operation_block(self, parser):
        raw = json.dumps({"jobs": [{"jobname": "x"}]})

        result = parser.parse(raw, Operation.READ)

        assert result.success is False

    def test_total_failure_keeps_raw_and_logs(self, parser, caplog):
        raw = "this is not fio output"

        with caplog.at_level(logging.WARNING, logger="runner.core.parser"):
            result = parser.parse(raw, Operation.READ, workload="seq_read", run_index=1)

        assert result.success is False
        assert result.bandwidth_mbps is None
        assert result.iops is None
        assert result.latency_ms is None
        assert result.raw_output == raw
        assert raw in caplog.text


class TestTextOutputParser:
    """Tests for the plain-text parser."""

    @pytest.fixture
    def parser(self):
        return TextOutputParser()

    def test_fio3_read(self, parser, fio3_text_read):
        result = parser.parse(fio3_text_read, Operation.READ)

        assert result.success is True
        assert result.bandwidth_mbps == 1600.0
        assert result.iops == 1600

    def test_latency_not_available(self, parser, fio3_text_read):
        """Text mode never reports a latency, not even zero."""
        result = parser.parse(fio3_text_read, Operation.READ)

        assert result.latency_ms is None

    def test_fio3_iops_k_suffix(self, parser, fio3_text_randwrite):
        result = parser.parse(fio3_text_randwrite, Operation.WRITE)

        assert result.bandwidth_mbps == 100.0
        assert result.iops == 25600

    def test_fio2_kb_bandwidth(self, parser, fio2_text_read):
        result = parser.parse(fio2_text_read, Operation.READ)

        assert result.bandwidth_mbps == pytest.approx(942563 / 1024)
        assert result.iops == 920

    def test_aggregate_line_fallback(self, parser):
        raw = "Run status group 0 (all jobs):\n  WRITE: bw=512KiB/s (524kB/s), io=15.0MiB\n"

        result = parser.parse(raw, Operation.WRITE)

        assert result.success is True
        assert result.bandwidth_mbps == 0.5
        assert result.iops == 0

    def test_gib_bandwidth(self, parser):
        result = parser.parse("  read: IOPS=2048, BW=2GiB/s (2147MB/s)\n", Operation.READ)

        assert result.bandwidth_mbps == 2048.0

    def test_byte_bandwidth(self, parser):
        result = parser.parse("  write: IOPS=1, BW=3000B/s (3000B/s)\n", Operation.WRITE)

        assert result.bandwidth_mbps == pytest.approx(3000 / (1024 * 1024))
        assert result.iops == 1

    def test_tib_bandwidth(self, parser):
        result = parser.parse("  read: IOPS=1500k, BW=1.5TiB/s (1649GB/s)\n", Operation.READ)

        assert result.bandwidth_mbps == 1.5 * 1024 * 1024
        assert result.iops == 1500000

    def test_unitless_bandwidth_passthrough(self, parser):
        result = parser.parse("  read: bw=75, iops=3\n", Operation.READ)

        assert result.bandwidth_mbps == 75.0
        assert result.iops == 3

    def test_wrong_operation(self, parser, fio3_text_read):
        result = parser.parse(fio3_text_read, Operation.WRITE)

        assert result.success is False
        assert result.raw_output == fio3_text_read

    def test_line_without_bandwidth(self, parser):
        result = parser.parse("  read: nothing useful here\n", Operation.READ)

        assert result.success is False


class TestParseOutput:
    """Tests for the module-level convenience."""

    def test_dispatches_on_format(self, fio_json, fio3_text_read):
        structured = parse_output(fio_json(bw_kib=102400), "read", OutputFormat.JSON)
        text = parse_output(fio3_text_read, "read", OutputFormat.NORMAL)

        assert structured.bandwidth_mbps == 100.0
        assert text.bandwidth_mbps == 1600.0

    def test_no_cross_format_fallback(self, fio3_text_read):
        """Text output handed to the JSON parser fails instead of being guessed."""
        result = parse_output(fio3_text_read, "read", OutputFormat.JSON)

        assert result.success is False
