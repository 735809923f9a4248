"""Tests for the PULSE Kraken adapter. All mocked — no real API calls."""

from unittest.mock import MagicMock

import pytest

pytest.importorskip("pulse")

from pulse.message import PulseMessage
from pulse.adapter import AdapterError, AdapterConnectionError

from krakenapi.models import AddOrderResponse
from krakenapi.pulse_adapter import KrakenAdapter


# --- Mock Helpers ---


def mock_response(result_data, errors=None):
    """Create a mock Kraken response."""
    mock = MagicMock()
    mock.status_code = 200
    mock.text = ""
    mock.json.return_value = {
        "error": errors or [],
        "result": result_data,
    }
    return mock


# --- Fixtures ---


@pytest.fixture
def adapter():
    a = KrakenAdapter(api_key="test-key", api_secret="dGVzdC1zZWNyZXQ=")  # base64("test-secret")
    a._client._session = MagicMock()
    a.connected = True
    return a


@pytest.fixture
def price_message():
    return PulseMessage(
        action="ACT.QUERY.DATA",
        parameters={"symbol": "XBTUSD"},
        sender="test-bot",
    )


@pytest.fixture
def buy_message():
    return PulseMessage(
        action="ACT.TRANSACT.REQUEST",
        parameters={"symbol": "XBTUSD", "side": "BUY", "quantity": 0.001},
        sender="test-bot",
        validate=False,
    )


# --- Test Initialization ---


class TestKrakenAdapterInit:

    def test_basic_init(self):
        adapter = KrakenAdapter(api_key="key", api_secret="secret")
        assert adapter.name == "kraken"
        assert adapter.base_url == "https://api.kraken.com"
        assert adapter.connected is False

    def test_repr(self):
        adapter = KrakenAdapter()
        assert "connected=False" in repr(adapter)

    def test_connect(self):
        adapter = KrakenAdapter()
        adapter._client._session = MagicMock()
        adapter._client._session.get.return_value = mock_response(
            {"unixtime": 1688669448, "rfc1123": "Thu, 06 Jul 23 18:50:48 +0000"}
        )
        adapter.connect()
        assert adapter.connected is True

    def test_connect_failure(self):
        adapter = KrakenAdapter()
        adapter._client._session = MagicMock()
        adapter._client._session.get.side_effect = ConnectionError("Network down")
        with pytest.raises(AdapterConnectionError, match="Cannot reach"):
            adapter.connect()


# --- Test to_native ---


class TestToNative:

    def test_price_query(self, adapter, price_message):
        native = adapter.to_native(price_message)
        assert native["operation"] == "ticker"
        assert native["args"] == ["XBTUSD"]

    def test_klines_query(self, adapter):
        msg = PulseMessage(
            action="ACT.QUERY.DATA",
            parameters={"symbol": "xbtusd", "type": "klines", "interval": 60},
        )
        native = adapter.to_native(msg)
        assert native["operation"] == "ohlc"
        assert native["args"] == ["XBTUSD"]
        assert native["kwargs"]["interval"] == 60

    def test_depth_query(self, adapter):
        msg = PulseMessage(action="ACT.QUERY.DATA", parameters={"symbol": "XBTUSD", "type": "depth"})
        native = adapter.to_native(msg)
        assert native["operation"] == "depth"
        assert native["kwargs"]["count"] == 20

    def test_unknown_query_type_raises(self, adapter):
        msg = PulseMessage(action="ACT.QUERY.DATA", parameters={"type": "invalid"})
        with pytest.raises(AdapterError, match="Unknown query type"):
            adapter.to_native(msg)

    def test_depth_no_symbol_raises(self, adapter):
        msg = PulseMessage(action="ACT.QUERY.DATA", parameters={"type": "depth"})
        with pytest.raises(AdapterError, match="Symbol required"):
            adapter.to_native(msg)

    def test_market_buy(self, adapter, buy_message):
        native = adapter.to_native(buy_message)
        assert native["operation"] == "add_order"
        assert native["kwargs"] == {
            "pair": "XBTUSD",
            "direction": "buy",
            "order_type": "market",
            "volume": "0.001",
        }

    def test_limit_no_price_raises(self, adapter):
        msg = PulseMessage(
            action="ACT.TRANSACT.REQUEST",
            parameters={"symbol": "XBTUSD", "side": "BUY", "quantity": 1, "order_type": "LIMIT"},
            validate=False,
        )
        with pytest.raises(AdapterError, match="Price required"):
            adapter.to_native(msg)

    def test_order_missing_field_raises(self, adapter):
        msg = PulseMessage(
            action="ACT.TRANSACT.REQUEST",
            parameters={"symbol": "XBTUSD", "side": "BUY"},
            validate=False,
        )
        with pytest.raises(AdapterError, match="Missing required field"):
            adapter.to_native(msg)

    def test_cancel_no_order_id_raises(self, adapter):
        msg = PulseMessage(action="ACT.CANCEL", parameters={}, validate=False)
        with pytest.raises(AdapterError, match="Order ID required"):
            adapter.to_native(msg)

    def test_order_status(self, adapter):
        msg = PulseMessage(
            action="ACT.QUERY.STATUS",
            parameters={"order_id": "OABC12-DEFGH-IJKLMN"},
            validate=False,
        )
        native = adapter.to_native(msg)
        assert native["operation"] == "query_orders"
        assert native["args"] == ["OABC12-DEFGH-IJKLMN"]

    def test_unsupported_action_raises(self, adapter):
        msg = PulseMessage(action="ACT.CREATE.TEXT", parameters={}, validate=False)
        with pytest.raises(AdapterError, match="Unsupported action"):
            adapter.to_native(msg)


# --- Test call_api ---


class TestCallAPI:

    def test_returns_typed_record(self, adapter):
        adapter._client._session.post.return_value = mock_response(
            {"descr": {"order": "buy 0.001 XBTUSD @ market"}, "txid": ["OABC12-DEFGH-IJKLMN"]}
        )
        result = adapter.call_api({
            "operation": "add_order",
            "kwargs": {"pair": "XBTUSD", "direction": "buy", "order_type": "market", "volume": "0.001"},
        })
        assert isinstance(result, AddOrderResponse)
        assert result.txid == ("OABC12-DEFGH-IJKLMN",)

    def test_api_error_response(self, adapter):
        adapter._client._session.get.return_value = mock_response(
            None, errors=["EGeneral:Invalid arguments"]
        )
        with pytest.raises(AdapterError, match="Invalid arguments"):
            adapter.call_api({"operation": "ticker", "args": ["INVALID"]})

    def test_connection_error(self, adapter):
        adapter._client._session.get.side_effect = ConnectionError("Network down")
        with pytest.raises(AdapterConnectionError, match="Cannot reach"):
            adapter.call_api({"operation": "ticker", "args": ["XBTUSD"]})

    def test_sign_without_key_raises(self):
        adapter = KrakenAdapter()
        adapter._client._session = MagicMock()
        with pytest.raises(AdapterError, match="API key and secret required"):
            adapter.call_api({"operation": "balance"})


# --- Test Full Pipeline ---


class TestFullPipeline:

    def test_price_query(self, adapter, price_message, ticker_payload):
        adapter._client._session.get.return_value = mock_response({"XXBTZUSD": ticker_payload})
        response = adapter.send(price_message)
        assert response.type == "RESPONSE"
        assert response.envelope["sender"] == "adapter:kraken"
        result = response.content["parameters"]["result"]
        assert result["XXBTZUSD"]["opening_price"] == "30000.1"

    def test_order_pipeline(self, adapter, buy_message):
        adapter._client._session.post.return_value = mock_response(
            {"descr": {"order": "buy"}, "txid": ["ORDER-123"]}
        )
        response = adapter.send(buy_message)
        assert response.content["parameters"]["result"]["txid"][0] == "ORDER-123"

    def test_pipeline_tracks_requests(self, adapter, price_message):
        adapter._client._session.get.return_value = mock_response({})
        adapter.send(price_message)
        adapter.send(price_message)
        assert adapter._request_count == 2


# --- Test Supported Actions ---


class TestSupportedActions:

    def test_supported_actions(self, adapter):
        actions = adapter.supported_actions
        assert "ACT.QUERY.DATA" in actions
        assert "ACT.TRANSACT.REQUEST" in actions
        assert "ACT.CANCEL" in actions
        assert len(actions) == 6

    def test_supports_check(self, adapter):
        assert adapter.supports("ACT.QUERY.DATA") is True
        assert adapter.supports("ACT.CREATE.TEXT") is False
