"""Tests for the shared dealer feed field parsers."""

from datetime import date

import pytest

from vehicle_data.utils.parsing import DEALER_ID_MAX, parse_dealer_id, parse_modified_date


class TestParseModifiedDate:
    def test_iso_date(self):
        assert parse_modified_date("2023-01-01") == date(2023, 1, 1)

    def test_iso_datetime_keeps_date(self):
        assert parse_modified_date("2023-01-01T13:45:00") == date(2023, 1, 1)

    def test_us_format(self):
        assert parse_modified_date("1/15/2023") == date(2023, 1, 15)

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_modified_date("yesterday")


class TestParseDealerId:
    def test_plain(self):
        assert parse_dealer_id(" 42 ") == 42

    def test_largest_storable(self):
        assert parse_dealer_id(str(DEALER_ID_MAX)) == DEALER_ID_MAX

    def test_too_large(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_dealer_id("99999999999999999999")

    def test_not_a_number(self):
        with pytest.raises(ValueError):
            parse_dealer_id("abc")
