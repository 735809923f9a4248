"""Kraken REST API client.

Signs and dispatches requests, unwraps the response envelope and decodes
``result`` into the records in ``krakenapi.models``.

Example:
    >>> client = KrakenClient()
    >>> ticker = client.ticker("XBTEUR")
    >>> info = ticker.get_pair("XXBTZEUR")
    >>> info.opening_price if info else None
    Decimal('30000.1')
"""

import base64
import binascii
import hashlib
import hmac
import logging
import os
import threading
import time
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, Union
from urllib.parse import urlencode

import requests

from krakenapi.envelope import Envelope
from krakenapi.errors import (
    KrakenAPIError,
    KrakenConnectionError,
    KrakenDecodeError,
    KrakenError,
    KrakenHTTPError,
    KrakenTimeoutError,
    KrakenTransportError,
)
from krakenapi.models import (
    AddOrderResponse,
    AssetPairsResponse,
    AssetsResponse,
    BalanceResponse,
    CancelOrderResponse,
    ClosedOrdersResponse,
    DepositAddress,
    DepthResponse,
    LedgersResponse,
    OHLCResponse,
    OpenOrdersResponse,
    OrderType,
    QueryOrdersResponse,
    TickerResponse,
    TimeResponse,
    TradeBalance,
    TradesHistoryResponse,
    TradesResponse,
    TradeVolumeResponse,
    WithdrawInfoResponse,
    WithdrawResponse,
)
from krakenapi.parsing import format_decimal
from krakenapi.version import __version__

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "base_url": "https://api.kraken.com",
    "api_version": "0",
    "timeout": 10,
    "user_agent": f"krakenapi/{__version__}",
}

API_KEY_ENV = "KRAKEN_API_KEY"
API_SECRET_ENV = "KRAKEN_API_SECRET"

ParamValue = Union[str, int, float, Decimal, bool, Iterable[str], None]


class NonceGenerator:
    """Strictly increasing millisecond nonces, safe to share between threads."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            nonce = max(int(self._clock() * 1000), self._last + 1)
            self._last = nonce
            return nonce


def sign_request(urlpath: str, nonce: Union[int, str], body: str, secret: str) -> str:
    """Generate the ``API-Sign`` header value.

    Algorithm:
    1. SHA256(nonce + urlencoded body)
    2. HMAC-SHA512(urlpath + sha256_digest, base64_decode(secret))
    3. Base64 encode result
    """
    sha256_hash = hashlib.sha256((str(nonce) + body).encode("utf-8")).digest()
    message = urlpath.encode("utf-8") + sha256_hash
    try:
        key = base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise KrakenError("API secret is not valid base64.", error_type="auth") from e
    signature = hmac.new(key, message, hashlib.sha512).digest()
    return base64.b64encode(signature).decode("utf-8")


def encode_params(params: Optional[Dict[str, ParamValue]]) -> Dict[str, str]:
    """Flatten call arguments into the string form Kraken expects.

    ``None`` values are dropped, sequences are comma-joined and booleans
    become ``true``/``false``.
    """
    encoded: Dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        elif isinstance(value, Decimal):
            encoded[key] = format_decimal(value)
        elif isinstance(value, (str, int, float)):
            encoded[key] = str(value)
        else:
            encoded[key] = ",".join(str(v) for v in value)
    return encoded


class KrakenClient:
    """Client for the Kraken REST API.

    Public endpoints need no credentials. Private endpoints need an API key
    and its base64 secret; calling one without them raises ``KrakenError``
    before any request is made.

    ``config`` overrides keys of ``DEFAULT_CONFIG``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        session: Optional[requests.Session] = None,
        nonce: Optional[Callable[[], int]] = None,
    ) -> None:
        self.config: Dict[str, Any] = {**DEFAULT_CONFIG, **(config or {})}
        self._api_key = api_key
        self._api_secret = api_secret
        self._session = session
        self._owns_session = session is None
        self._nonce = nonce or NonceGenerator()

    @classmethod
    def from_env(cls, config: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "KrakenClient":
        """Build a client with credentials from ``KRAKEN_API_KEY``/``KRAKEN_API_SECRET``."""
        return cls(
            api_key=os.environ.get(API_KEY_ENV),
            api_secret=os.environ.get(API_SECRET_ENV),
            config=config,
            **kwargs,
        )

    @property
    def base_url(self) -> str:
        return self.config["base_url"].rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key and self._api_secret)

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session and self._owns_session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "KrakenClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- Dispatch ---

    def query_public(self, method: str, params: Optional[Dict[str, ParamValue]] = None) -> Any:
        """Call a public endpoint and return the unwrapped ``result``."""
        urlpath = f"/{self.config['api_version']}/public/{method}"
        return self._dispatch("GET", method, urlpath, encode_params(params))

    def query_private(self, method: str, params: Optional[Dict[str, ParamValue]] = None) -> Any:
        """Call a private endpoint and return the unwrapped ``result``."""
        if not self.has_credentials:
            raise KrakenError(
                "API key and secret required for signed requests.",
                error_type="auth",
                details={"method": method},
            )
        urlpath = f"/{self.config['api_version']}/private/{method}"
        return self._dispatch("POST", method, urlpath, encode_params(params))

    def _ensure_session(self) -> requests.Session:
        if not self._session:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = self.config["user_agent"]
            self._owns_session = True
        return self._session

    def _dispatch(
        self, http_method: str, method: str, urlpath: str, params: Dict[str, str]
    ) -> Any:
        session = self._ensure_session()
        url = f"{self.base_url}{urlpath}"
        timeout = self.config["timeout"]
        details = {"method": method, "url": url}
        logger.debug("Kraken %s %s", http_method, urlpath)

        try:
            if http_method == "GET":
                resp = session.get(url, params=params, timeout=timeout)
            else:
                # Every POST goes to a private endpoint and is signed.
                nonce = self._nonce()
                body = urlencode({"nonce": str(nonce), **params})
                headers = {
                    "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
                    "API-Key": self._api_key,
                    "API-Sign": sign_request(urlpath, nonce, body, self._api_secret),
                }
                resp = session.post(url, data=body, headers=headers, timeout=timeout)
        except (requests.Timeout, TimeoutError) as e:
            logger.error("Kraken request timed out: %s %s", http_method, urlpath)
            raise KrakenTimeoutError(
                f"Kraken request timed out after {timeout}s for {method}: {e}",
                details={**details, "timeout": timeout},
            ) from e
        except (requests.ConnectionError, ConnectionError) as e:
            logger.error("Cannot reach Kraken: %s", e)
            raise KrakenConnectionError(f"Cannot reach Kraken for {method}: {e}", details=details) from e
        except requests.RequestException as e:
            logger.error("Kraken request failed: %s", e)
            raise KrakenTransportError(f"Kraken request failed for {method}: {e}", details=details) from e

        status = resp.status_code
        if status >= 400:
            logger.error("Kraken HTTP %s for %s", status, method)
            raise KrakenHTTPError(
                f"Kraken API returned HTTP {status} for {method}",
                status_code=status,
                details={**details, "response": (resp.text or "")[:500]},
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise KrakenDecodeError(
                f"Kraken response for {method} is not valid JSON",
                field="body",
                expected="json",
                actual=(resp.text or "")[:100],
            ) from e

        envelope = Envelope.from_json(payload)
        if not envelope.ok:
            logger.warning("Kraken error for %s: %s", method, "; ".join(envelope.errors))
            raise KrakenAPIError(envelope.errors, details=details)
        return envelope.result

    # --- Public market data ---

    def server_time(self) -> TimeResponse:
        return TimeResponse.from_json(self.query_public("Time"))

    def assets(self, *assets: str, aclass: Optional[str] = None) -> AssetsResponse:
        result = self.query_public("Assets", {"asset": assets or None, "aclass": aclass})
        return AssetsResponse.from_json(result, "assets")

    def asset_pairs(self, *pairs: str, info: Optional[str] = None) -> AssetPairsResponse:
        result = self.query_public("AssetPairs", {"pair": pairs or None, "info": info})
        return AssetPairsResponse.from_json(result, "asset_pairs")

    def ticker(self, *pairs: str) -> TickerResponse:
        """Ticker snapshots; look records up by the names Kraken returns.

        Without pairs Kraken returns every tradable pair.
        """
        result = self.query_public("Ticker", {"pair": [p.upper() for p in pairs] or None})
        return TickerResponse.from_json(result, "ticker")

    def ohlc(self, pair: str, interval: Optional[int] = None, since: Optional[int] = None) -> OHLCResponse:
        result = self.query_public(
            "OHLC", {"pair": pair.upper(), "interval": interval, "since": since}
        )
        return OHLCResponse.from_json(result)

    def depth(self, pair: str, count: Optional[int] = None) -> DepthResponse:
        result = self.query_public("Depth", {"pair": pair.upper(), "count": count})
        return DepthResponse.from_json(result, "depth")

    def trades(self, pair: str, since: Optional[int] = None, count: Optional[int] = None) -> TradesResponse:
        result = self.query_public(
            "Trades", {"pair": pair.upper(), "since": since, "count": count}
        )
        return TradesResponse.from_json(result)

    # --- Private account data ---

    def balance(self) -> BalanceResponse:
        return BalanceResponse.from_json(self.query_private("Balance"), "balance")

    def trade_balance(self, asset: Optional[str] = None) -> TradeBalance:
        return TradeBalance.from_json(self.query_private("TradeBalance", {"asset": asset}))

    def open_orders(self, trades: bool = False, userref: Optional[int] = None) -> OpenOrdersResponse:
        result = self.query_private("OpenOrders", {"trades": trades, "userref": userref})
        return OpenOrdersResponse.from_json(result)

    def closed_orders(
        self,
        trades: bool = False,
        userref: Optional[int] = None,
        start: Optional[Union[int, str]] = None,
        end: Optional[Union[int, str]] = None,
        ofs: Optional[int] = None,
        closetime: Optional[str] = None,
    ) -> ClosedOrdersResponse:
        result = self.query_private(
            "ClosedOrders",
            {
                "trades": trades,
                "userref": userref,
                "start": start,
                "end": end,
                "ofs": ofs,
                "closetime": closetime,
            },
        )
        return ClosedOrdersResponse.from_json(result)

    def query_orders(
        self, *txids: str, trades: bool = False, userref: Optional[int] = None
    ) -> QueryOrdersResponse:
        if not txids and userref is None:
            raise KrakenError("Order ID required for query.", error_type="argument")
        result = self.query_private(
            "QueryOrders", {"txid": txids or None, "trades": trades, "userref": userref}
        )
        return QueryOrdersResponse.from_json(result, "orders")

    def trades_history(
        self,
        type: Optional[str] = None,
        trades: bool = False,
        start: Optional[Union[int, str]] = None,
        end: Optional[Union[int, str]] = None,
        ofs: Optional[int] = None,
    ) -> TradesHistoryResponse:
        result = self.query_private(
            "TradesHistory",
            {"type": type, "trades": trades, "start": start, "end": end, "ofs": ofs},
        )
        return TradesHistoryResponse.from_json(result)

    def ledgers(
        self,
        *assets: str,
        aclass: Optional[str] = None,
        type: Optional[str] = None,
        start: Optional[Union[int, str]] = None,
        end: Optional[Union[int, str]] = None,
        ofs: Optional[int] = None,
    ) -> LedgersResponse:
        result = self.query_private(
            "Ledgers",
            {
                "asset": assets or None,
                "aclass": aclass,
                "type": type,
                "start": start,
                "end": end,
                "ofs": ofs,
            },
        )
        return LedgersResponse.from_json(result)

    def trade_volume(self, *pairs: str) -> TradeVolumeResponse:
        result = self.query_private("TradeVolume", {"pair": [p.upper() for p in pairs] or None})
        return TradeVolumeResponse.from_json(result)

    # --- Trading ---

    def add_order(
        self,
        pair: str,
        direction: str,
        order_type: Union[OrderType, str],
        volume: Union[str, Decimal, float],
        price: Union[str, Decimal, float, None] = None,
        price2: Union[str, Decimal, float, None] = None,
        leverage: Optional[str] = None,
        oflags: Optional[Iterable[str]] = None,
        userref: Optional[int] = None,
        validate: bool = False,
        **extra: ParamValue,
    ) -> AddOrderResponse:
        """Place an order.

        ``validate=True`` asks Kraken to check the order without placing it;
        the response then carries no ``txid``.
        """
        side = direction.lower()
        if side not in ("buy", "sell"):
            raise KrakenError(
                f"Unknown direction '{direction}'. Use: buy, sell.", error_type="argument"
            )
        try:
            kind = OrderType(order_type.lower() if isinstance(order_type, str) else order_type)
        except ValueError:
            raise KrakenError(
                f"Unknown order type '{order_type}'. Supported: {[t.value for t in OrderType]}",
                error_type="argument",
            ) from None
        if kind is not OrderType.MARKET and kind is not OrderType.SETTLE_POSITION and price is None:
            raise KrakenError(f"Price required for {kind.value} orders.", error_type="argument")

        params: Dict[str, ParamValue] = {
            "pair": pair.upper(),
            "type": side,
            "ordertype": kind.value,
            "volume": volume,
            "price": price,
            "price2": price2,
            "leverage": leverage,
            "oflags": oflags,
            "userref": userref,
        }
        if validate:
            params["validate"] = True
        params.update(extra)
        return AddOrderResponse.from_json(self.query_private("AddOrder", params))

    def cancel_order(self, txid: str) -> CancelOrderResponse:
        if not txid:
            raise KrakenError("Order ID required for cancellation.", error_type="argument")
        return CancelOrderResponse.from_json(self.query_private("CancelOrder", {"txid": txid}))

    # --- Funding ---

    def deposit_addresses(self, asset: str, method: str, new: bool = False) -> Tuple[DepositAddress, ...]:
        result = self.query_private(
            "DepositAddresses", {"asset": asset, "method": method, "new": True if new else None}
        )
        return DepositAddress.list_from_json(result)

    def withdraw(self, asset: str, key: str, amount: Union[str, Decimal]) -> WithdrawResponse:
        result = self.query_private("Withdraw", {"asset": asset, "key": key, "amount": amount})
        return WithdrawResponse.from_json(result)

    def withdraw_info(self, asset: str, key: str, amount: Union[str, Decimal]) -> WithdrawInfoResponse:
        result = self.query_private("WithdrawInfo", {"asset": asset, "key": key, "amount": amount})
        return WithdrawInfoResponse.from_json(result)

    def __repr__(self) -> str:
        return f"KrakenClient(authenticated={self.has_credentials})"
