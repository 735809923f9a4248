"""Kraken adapter for PULSE Protocol.

Translates PULSE semantic messages into typed ``KrakenClient`` calls and
returns the decoded records as JSON-compatible PULSE responses.
Requires the ``pulse`` extra.

Example:
    >>> adapter = KrakenAdapter(api_key="...", api_secret="...")
    >>> msg = PulseMessage(
    ...     action="ACT.QUERY.DATA",
    ...     parameters={"symbol": "XBTUSD"}
    ... )
    >>> response = adapter.send(msg)
"""

from typing import Any, Callable, Dict, List, Optional

from pulse.message import PulseMessage
from pulse.adapter import PulseAdapter, AdapterError, AdapterConnectionError

from krakenapi.client import DEFAULT_CONFIG, KrakenClient
from krakenapi.errors import KrakenError, KrakenTransportError
from krakenapi.models import as_primitive


# Map PULSE actions to Kraken operations
ACTION_MAP = {
    "ACT.QUERY.DATA": "query",
    "ACT.QUERY.STATUS": "order_status",
    "ACT.TRANSACT.REQUEST": "place_order",
    "ACT.CANCEL": "cancel_order",
    "ACT.QUERY.LIST": "open_orders",
    "ACT.QUERY.BALANCE": "balance",
}


class KrakenAdapter(PulseAdapter):
    """PULSE adapter for Kraken exchange.

    Supported PULSE actions:
        - ACT.QUERY.DATA — ticker, OHLC candles or order book
        - ACT.QUERY.STATUS — check order status
        - ACT.QUERY.LIST — list open orders
        - ACT.QUERY.BALANCE — get account balance
        - ACT.TRANSACT.REQUEST — place an order (BUY/SELL)
        - ACT.CANCEL — cancel an order
    """

    BASE_URL = DEFAULT_CONFIG["base_url"]

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[KrakenClient] = None,
    ) -> None:
        super().__init__(
            name="kraken",
            base_url=(config or {}).get("base_url", self.BASE_URL),
            config=config or {},
        )
        self._client = client or KrakenClient(api_key, api_secret, config=config)

    def connect(self) -> None:
        """Verify connectivity with a server time request."""
        try:
            self._client.server_time()
        except KrakenError as e:
            raise AdapterConnectionError(f"Cannot reach Kraken API: {e}") from e
        self.connected = True

    def disconnect(self) -> None:
        self._client.close()
        self.connected = False

    def to_native(self, message: PulseMessage) -> Dict[str, Any]:
        """Convert PULSE message to a client call description."""
        action = message.content["action"]
        params = message.content.get("parameters", {})
        operation = ACTION_MAP.get(action)

        if not operation:
            raise AdapterError(
                f"Unsupported action '{action}'. Supported: {list(ACTION_MAP.keys())}"
            )

        if operation == "query":
            return self._build_query_request(params)
        elif operation == "place_order":
            return self._build_order_request(params)
        elif operation == "cancel_order":
            return self._build_cancel_request(params)
        elif operation == "order_status":
            return self._build_status_request(params)
        elif operation == "open_orders":
            return {"operation": "open_orders", "args": [], "kwargs": {}}
        elif operation == "balance":
            return {"operation": "balance", "args": [], "kwargs": {}}

        raise AdapterError(f"Unknown operation: {operation}")

    def call_api(self, native_request: Dict[str, Any]) -> Any:
        """Run the client call and return the decoded record."""
        operation = native_request["operation"]
        handler = self._operations().get(operation)
        if handler is None:
            raise AdapterError(f"Unknown operation: {operation}")

        try:
            return handler(*native_request.get("args", []), **native_request.get("kwargs", {}))
        except KrakenTransportError as e:
            raise AdapterConnectionError(str(e)) from e
        except KrakenError as e:
            raise AdapterError(str(e)) from e

    def from_native(self, native_response: Any) -> PulseMessage:
        """Convert a decoded record to a PULSE response message."""
        return PulseMessage(
            action="ACT.RESPOND",
            parameters={"result": as_primitive(native_response)},
            validate=False,
        )

    @property
    def supported_actions(self) -> List[str]:
        return list(ACTION_MAP.keys())

    def _operations(self) -> Dict[str, Callable[..., Any]]:
        return {
            "ticker": self._client.ticker,
            "ohlc": self._client.ohlc,
            "depth": self._client.depth,
            "add_order": self._client.add_order,
            "cancel_order": self._client.cancel_order,
            "query_orders": self._client.query_orders,
            "open_orders": self._client.open_orders,
            "balance": self._client.balance,
        }

    # --- Request Builders ---

    def _build_query_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Build market data query."""
        symbol = params.get("symbol")
        query_type = params.get("type", "price")

        if query_type in ("price", "24h"):
            return {
                "operation": "ticker",
                "args": [symbol.upper()] if symbol else [],
                "kwargs": {},
            }

        elif query_type == "klines":
            if not symbol:
                raise AdapterError("Symbol required for klines query.")
            return {
                "operation": "ohlc",
                "args": [symbol.upper()],
                "kwargs": {"interval": params.get("interval", 60)},
            }

        elif query_type == "depth":
            if not symbol:
                raise AdapterError("Symbol required for depth query.")
            return {
                "operation": "depth",
                "args": [symbol.upper()],
                "kwargs": {"count": params.get("limit", 20)},
            }

        raise AdapterError(
            f"Unknown query type '{query_type}'. Use: price, 24h, klines, depth."
        )

    def _build_order_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Build order placement request."""
        required = ["symbol", "side", "quantity"]
        for field in required:
            if field not in params:
                raise AdapterError(
                    f"Missing required field '{field}' for order placement."
                )

        kwargs = {
            "pair": params["symbol"].upper(),
            "direction": params["side"].lower(),
            "order_type": params.get("order_type", "market").lower(),
            "volume": str(params["quantity"]),
        }

        if kwargs["order_type"] == "limit":
            if "price" not in params:
                raise AdapterError("Price required for LIMIT orders.")
            kwargs["price"] = str(params["price"])

        return {"operation": "add_order", "args": [], "kwargs": kwargs}

    def _build_cancel_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Build order cancellation request."""
        if "order_id" not in params:
            raise AdapterError("Order ID required for cancellation.")
        return {"operation": "cancel_order", "args": [str(params["order_id"])], "kwargs": {}}

    def _build_status_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Build order status query."""
        if "order_id" not in params:
            raise AdapterError("Order ID required for status query.")
        return {"operation": "query_orders", "args": [str(params["order_id"])], "kwargs": {}}

    def __repr__(self) -> str:
        return f"KrakenAdapter(connected={self.connected})"
