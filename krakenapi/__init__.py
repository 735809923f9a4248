"""
Kraken REST API client with typed responses.

Signs and dispatches requests to the Kraken REST API and decodes every
response into immutable records with ``Decimal`` money fields.

Example:
    >>> from krakenapi import KrakenClient
    >>> client = KrakenClient(api_key="...", api_secret="...")
    >>> book = client.depth("XBTUSD", count=10).get_pair("XXBTZUSD")
    >>> book.best_bid.price
    Decimal('65000.10000')

The PULSE Protocol bridge lives in ``krakenapi.pulse_adapter`` and needs the
``pulse`` extra.
"""

from krakenapi.client import KrakenClient, NonceGenerator, sign_request
from krakenapi.envelope import Envelope, unwrap
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
    BUY,
    LIMIT,
    MARKET,
    SELL,
    AddOrderResponse,
    AssetInfo,
    AssetPairInfo,
    AssetPairsResponse,
    AssetsResponse,
    BalanceResponse,
    CancelOrderResponse,
    Candle,
    ClosedOrdersResponse,
    DepositAddress,
    DepthResponse,
    FeeInfo,
    LedgerInfo,
    LedgersResponse,
    OHLCResponse,
    OpenOrdersResponse,
    Order,
    OrderBook,
    OrderBookLevel,
    OrderDescription,
    OrderStatus,
    OrderType,
    QueryOrdersResponse,
    TickerInfo,
    TickerResponse,
    TimeResponse,
    TradeBalance,
    TradeHistoryInfo,
    TradeInfo,
    TradesHistoryResponse,
    TradesResponse,
    TradeVolumeResponse,
    WithdrawInfoResponse,
    WithdrawResponse,
    as_primitive,
)
from krakenapi.version import __version__

__all__ = [
    "KrakenClient",
    "NonceGenerator",
    "sign_request",
    "Envelope",
    "unwrap",
    "KrakenError",
    "KrakenTransportError",
    "KrakenConnectionError",
    "KrakenTimeoutError",
    "KrakenHTTPError",
    "KrakenAPIError",
    "KrakenDecodeError",
    "BUY",
    "SELL",
    "MARKET",
    "LIMIT",
    "AddOrderResponse",
    "AssetInfo",
    "AssetPairInfo",
    "AssetPairsResponse",
    "AssetsResponse",
    "BalanceResponse",
    "CancelOrderResponse",
    "Candle",
    "ClosedOrdersResponse",
    "DepositAddress",
    "DepthResponse",
    "FeeInfo",
    "LedgerInfo",
    "LedgersResponse",
    "OHLCResponse",
    "OpenOrdersResponse",
    "Order",
    "OrderBook",
    "OrderBookLevel",
    "OrderDescription",
    "OrderStatus",
    "OrderType",
    "QueryOrdersResponse",
    "TickerInfo",
    "TickerResponse",
    "TimeResponse",
    "TradeBalance",
    "TradeHistoryInfo",
    "TradeInfo",
    "TradesHistoryResponse",
    "TradesResponse",
    "TradeVolumeResponse",
    "WithdrawInfoResponse",
    "WithdrawResponse",
    "as_primitive",
    "__version__",
]
