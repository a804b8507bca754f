"""Unit tests for JSON and CSV rendering.

Tests for src/power_usage/render.py
"""

import math

import pytest

from power_usage.render import CSV_HEADER, format_number, render_csv, render_json
from power_usage.usage import PowerUsage, compute_usage


class TestFormatNumber:
    """Numbers are written in plain decimal notation."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (250.0, "250"),
            (-3.0, "-3"),
            (0.0, "0"),
            (41.67, "41.67"),
            (1234.5678, "1234.5678"),
            (0.1 + 0.2, "0.30000000000000004"),
            (1e-05, "0.00001"),
            (1e16, "10000000000000000"),
            (-0.0, "-0"),
        ],
    )
    def test_finite(self, value, expected):
        assert format_number(value) == expected

    def test_non_finite(self):
        assert format_number(math.nan) == "NaN"
        assert format_number(math.inf) == "inf"
        assert format_number(-math.inf) == "-inf"


class TestRenderCsv:
    """Tests for CSV output."""

    def test_header_and_rows(self):
        result = {"meter-1": [compute_usage(10.0, 4.0), compute_usage(30.0, 6.0)]}
        assert render_csv(result) == (
            f"{CSV_HEADER}\n"
            "meter-1,1,4,10,6,250\n"
            "meter-1,2,6,30,24,1000\n"
        )

    def test_zero_power_rows_omitted(self):
        """Zero rows are dropped but positions of the other rows are kept."""
        result = {
            "meter-1": [
                compute_usage(5.0, 5.0),
                compute_usage(10.0, 4.0),
            ]
        }
        assert render_csv(result) == f"{CSV_HEADER}\nmeter-1,2,4,10,6,250\n"

    def test_header_only_when_everything_filtered(self):
        result = {"meter-1": [compute_usage(5.0, 5.0)], "meter-2": []}
        assert render_csv(result) == f"{CSV_HEADER}\n"

    def test_empty_result(self):
        assert render_csv({}) == f"{CSV_HEADER}\n"

    def test_negative_usage_kept(self):
        result = {"m": [compute_usage(1.0, 25.0)]}
        assert render_csv(result).splitlines()[1] == "m,1,25,1,-24,-1000"

    def test_tiny_usage_rounding_to_zero_omitted(self):
        """Average power rounding to 0.00 W counts as zero."""
        result = {"m": [compute_usage(1.0000001, 1.0)]}
        assert render_csv(result) == f"{CSV_HEADER}\n"

    def test_instances_in_result_order(self):
        result = {"b": [compute_usage(2.0, 1.0)], "a": [compute_usage(3.0, 1.0)]}
        lines = render_csv(result).splitlines()
        assert [line.split(",")[0] for line in lines[1:]] == ["b", "a"]


class TestRenderJson:
    """Tests for structured output."""

    def test_records(self):
        result = {"meter-1": [compute_usage(10.0, 4.0)], "meter-2": []}
        assert render_json(result) == {
            "meter-1": [
                {"prev_kwh": 4.0, "curr_kwh": 10.0, "daily_kwh": 6.0, "avg_power_watt": 250.0}
            ],
            "meter-2": [],
        }

    def test_zero_power_records_kept(self):
        result = {"m": [compute_usage(5.0, 5.0)]}
        assert render_json(result)["m"][0]["avg_power_watt"] == 0.0

    def test_non_finite_become_null(self):
        usage = PowerUsage(prev_kwh=1.0, curr_kwh=math.inf, daily_kwh=math.inf, avg_power_watt=math.nan)
        record = render_json({"m": [usage]})["m"][0]
        assert record == {"prev_kwh": 1.0, "curr_kwh": None, "daily_kwh": None, "avg_power_watt": None}
