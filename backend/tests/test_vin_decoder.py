"""Tests for VIN decoder service."""

import httpx
import pytest
import respx

from conftest import GOOD_VIN, NHTSA_URL, nhtsa_results
from vehicle_data.services.vin_decoder import (
    BENIGN_CHECK_DIGIT_TEXT,
    DecodeStatus,
    VINDecoder,
    is_decode_failure,
    parse_decode_response,
)


class TestIsDecodeFailure:
    def test_zero_code_is_success(self):
        assert is_decode_failure("0", "anything at all") is False

    def test_missing_code_is_success(self):
        assert is_decode_failure(None, None) is False
        assert is_decode_failure("", "VIN has errors") is False

    def test_nonzero_code_fails(self):
        assert is_decode_failure("7", "VIN has errors") is True

    def test_check_digit_warning_is_benign(self):
        assert is_decode_failure("6", BENIGN_CHECK_DIGIT_TEXT) is False

    def test_other_text_with_check_digit_prefix_fails(self):
        assert is_decode_failure("1", BENIGN_CHECK_DIGIT_TEXT + "; 5 - VIN has errors") is True


class TestParseDecodeResponse:
    def test_success(self):
        result = parse_decode_response(GOOD_VIN, nhtsa_results())
        assert result.status is DecodeStatus.OK
        assert result.make == "Ford"
        assert result.model == "F-150"
        assert result.year == 2021

    def test_zero_code_ignores_error_text(self):
        result = parse_decode_response(GOOD_VIN, nhtsa_results(error_code="0", error_text="VIN has errors"))
        assert result.ok

    def test_check_digit_warning_accepted(self):
        data = nhtsa_results(error_code="6", error_text=BENIGN_CHECK_DIGIT_TEXT)
        result = parse_decode_response(GOOD_VIN, data)
        assert result.ok
        assert result.make == "Ford"
        assert result.error_code == "6"

    def test_failure_keeps_code_and_text(self):
        result = parse_decode_response(GOOD_VIN, nhtsa_results(error_code="7", error_text="VIN has errors"))
        assert result.status is DecodeStatus.FAILED
        assert result.error_code == "7"
        assert result.error_text == "VIN has errors"
        assert result.make is None
        assert "Code=7" in result.message

    def test_unparsable_year_is_absent(self):
        result = parse_decode_response(GOOD_VIN, nhtsa_results(year="20X1"))
        assert result.ok
        assert result.year is None

    def test_missing_fields_are_absent(self):
        result = parse_decode_response(GOOD_VIN, {"Results": [{"Variable": "Error Code", "Value": "0"}]})
        assert result.ok
        assert (result.make, result.model, result.year) == (None, None, None)

    def test_blank_and_not_applicable_values_are_absent(self):
        result = parse_decode_response(GOOD_VIN, nhtsa_results(make="  ", model="Not Applicable", year=""))
        assert (result.make, result.model, result.year) == (None, None, None)

    def test_missing_results_raises(self):
        with pytest.raises(ValueError):
            parse_decode_response(GOOD_VIN, {"Message": "nope"})

    def test_non_string_variable_raises(self):
        with pytest.raises(ValueError, match="Malformed"):
            parse_decode_response(GOOD_VIN, {"Results": [{"Variable": {"name": "Make"}, "Value": "x"}]})


class TestVINDecoder:
    @respx.mock
    @pytest.mark.asyncio
    async def test_decode_success(self):
        route = respx.get(NHTSA_URL.format(vin=GOOD_VIN)).mock(
            return_value=httpx.Response(200, json=nhtsa_results())
        )

        result = await VINDecoder().decode(GOOD_VIN)

        assert route.called
        assert result.status is DecodeStatus.OK
        assert result.vin == GOOD_VIN
        assert (result.make, result.model, result.year) == ("Ford", "F-150", 2021)

    @respx.mock
    @pytest.mark.asyncio
    async def test_decode_failure(self):
        respx.get(NHTSA_URL.format(vin=GOOD_VIN)).mock(
            return_value=httpx.Response(200, json=nhtsa_results(error_code="7", error_text="VIN has errors"))
        )

        result = await VINDecoder().decode(GOOD_VIN)

        assert result.status is DecodeStatus.FAILED
        assert result.error_code == "7"

    @respx.mock
    @pytest.mark.asyncio
    async def test_http_error_is_service_error(self):
        respx.get(NHTSA_URL.format(vin=GOOD_VIN)).mock(return_value=httpx.Response(503))

        result = await VINDecoder().decode(GOOD_VIN)

        assert result.status is DecodeStatus.SERVICE_ERROR
        assert result.error
        assert "NHTSA" in result.message

    @respx.mock
    @pytest.mark.asyncio
    async def test_connection_error_is_service_error(self):
        respx.get(NHTSA_URL.format(vin=GOOD_VIN)).mock(side_effect=httpx.ConnectError("Connection refused"))

        result = await VINDecoder().decode(GOOD_VIN)

        assert result.status is DecodeStatus.SERVICE_ERROR
        assert "Connection refused" in result.error

    @respx.mock
    @pytest.mark.asyncio
    async def test_invalid_json_is_service_error(self):
        respx.get(NHTSA_URL.format(vin=GOOD_VIN)).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

        result = await VINDecoder().decode(GOOD_VIN)

        assert result.status is DecodeStatus.SERVICE_ERROR

    @respx.mock
    @pytest.mark.asyncio
    async def test_malformed_results_entry_is_service_error(self):
        respx.get(NHTSA_URL.format(vin=GOOD_VIN)).mock(
            return_value=httpx.Response(200, json={"Results": [{"Variable": ["Make"], "Value": "x"}]})
        )

        result = await VINDecoder().decode(GOOD_VIN)

        assert result.status is DecodeStatus.SERVICE_ERROR
        assert "Malformed" in result.message

    @respx.mock
    @pytest.mark.asyncio
    async def test_uses_shared_client(self):
        respx.get(NHTSA_URL.format(vin=GOOD_VIN)).mock(return_value=httpx.Response(200, json=nhtsa_results()))

        async with httpx.AsyncClient() as client:
            result = await VINDecoder(client=client).decode(f"  {GOOD_VIN} ")

        assert result.ok
        assert result.vin == GOOD_VIN
