"""Tests for the response envelope and the error taxonomy."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from krakenapi.envelope import Envelope, unwrap
from krakenapi.errors import KrakenAPIError, KrakenDecodeError, KrakenError
from krakenapi.models import TickerResponse


class TestEnvelope:

    def test_errors_are_surfaced_verbatim(self):
        with pytest.raises(KrakenAPIError) as exc:
            unwrap({"error": ["EGeneral:Invalid arguments"], "result": None})
        assert exc.value.errors == ["EGeneral:Invalid arguments"]
        assert exc.value.error_type == "general"
        assert "Invalid arguments" in str(exc.value)

    def test_result_is_not_touched_on_error(self):
        result = MagicMock()
        envelope = Envelope(errors=("EAPI:Invalid key",), result=result)
        with pytest.raises(KrakenAPIError):
            envelope.unwrap()
        assert result.mock_calls == []

    def test_errors_keep_order(self):
        with pytest.raises(KrakenAPIError) as exc:
            unwrap({"error": ["EOrder:Insufficient funds", "EGeneral:Internal error"]})
        assert exc.value.errors == ["EOrder:Insufficient funds", "EGeneral:Internal error"]
        assert exc.value.error_type == "order"

    def test_success_returns_result(self, ticker_payload):
        result = unwrap({"error": [], "result": {"XXBTZEUR": ticker_payload}})
        ticker = TickerResponse.from_json(result)
        assert ticker.get_pair("XXBTZEUR").opening_price == Decimal("30000.1")
        assert ticker.get_pair("XXBTZUSD") is None

    def test_missing_error_key_is_success(self):
        assert unwrap({"result": {"unixtime": 1}}) == {"unixtime": 1}

    def test_not_an_object(self):
        with pytest.raises(KrakenDecodeError, match="expected an object"):
            Envelope.from_json(["error"])

    def test_error_entries_must_be_strings(self):
        with pytest.raises(KrakenDecodeError) as exc:
            Envelope.from_json({"error": [42], "result": None})
        assert exc.value.field == "envelope.error[0]"

    def test_decode_error_is_distinct_from_api_error(self):
        assert not issubclass(KrakenDecodeError, KrakenAPIError)
        assert not issubclass(KrakenAPIError, KrakenDecodeError)
        assert issubclass(KrakenDecodeError, KrakenError)


class TestAPIErrorCategories:

    @pytest.mark.parametrize("error, category", [
        ("EAPI:Invalid nonce", "api"),
        ("EQuery:Unknown asset pair", "query"),
        ("EService:Unavailable", "service"),
        ("EFunding:Unknown withdraw key", "funding"),
        ("Something odd", "unknown"),
        ("EMystery:What", "unknown"),
    ])
    def test_category(self, error, category):
        assert KrakenAPIError.category_of(error) == category

    def test_rate_limit_flag(self):
        assert KrakenAPIError(["EAPI:Rate limit exceeded"]).is_rate_limit is True
        assert KrakenAPIError(["EGeneral:Invalid arguments"]).is_rate_limit is False

    def test_invalid_nonce_flag(self):
        assert KrakenAPIError(["EAPI:Invalid nonce"]).is_invalid_nonce is True
