"""Typed records for Kraken REST API responses.

Every record is immutable and built by a ``from_json`` classmethod that
takes the already unwrapped ``result`` value (see ``krakenapi.envelope``).
Positional arrays such as order book levels and OHLC candles are decoded
with a fixed-arity check first, then field by field.

Prices, volumes, costs, fees and balances are ``Decimal``; counts are
``int``; Kraken's fractional Unix times (``opentm``, ``time``) are
``float``.

Example:
    >>> level = OrderBookLevel.from_json(["30000.10000", "1.500", 1616663113])
    >>> level.price
    Decimal('30000.10000')
"""

from dataclasses import dataclass, fields, is_dataclass
from dataclasses import field as dataclass_field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, TypeVar

from krakenapi.errors import KrakenDecodeError
from krakenapi.parsing import (
    expect_array,
    expect_object,
    format_decimal,
    parse_bool,
    parse_decimal,
    parse_float,
    parse_int,
    parse_optional_decimal,
    parse_str,
    parse_timestamp,
    require,
)


# Trade direction / order kind markers used in public trades
BUY = "b"
SELL = "s"
MARKET = "m"
LIMIT = "l"


class OrderStatus(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"
    CANCELED = "canceled"
    EXPIRED = "expired"


class OrderType(str, Enum):
    """Order types accepted by AddOrder and reported in order descriptions.

    The comment on each member says what ``price`` and ``price2`` mean.
    """

    MARKET = "market"
    LIMIT = "limit"  # price = limit price
    STOP_LOSS = "stop-loss"  # price = stop loss price
    TAKE_PROFIT = "take-profit"  # price = take profit price
    STOP_LOSS_PROFIT = "stop-loss-profit"  # price = stop loss, price2 = take profit
    STOP_LOSS_PROFIT_LIMIT = "stop-loss-profit-limit"  # price = stop loss, price2 = take profit
    STOP_LOSS_LIMIT = "stop-loss-limit"  # price = trigger, price2 = triggered limit price
    TAKE_PROFIT_LIMIT = "take-profit-limit"  # price = trigger, price2 = triggered limit price
    TRAILING_STOP = "trailing-stop"  # price = trailing stop offset
    TRAILING_STOP_LIMIT = "trailing-stop-limit"  # price = offset, price2 = triggered limit offset
    STOP_LOSS_AND_LIMIT = "stop-loss-and-limit"  # price = stop loss, price2 = limit price
    SETTLE_POSITION = "settle-position"


def _parse_enum(enum_cls, value: Any, field: str):
    raw = parse_str(value, field)
    try:
        return enum_cls(raw)
    except ValueError:
        raise KrakenDecodeError(
            f"{field}: unknown value {raw!r}",
            field=field,
            expected=[m.value for m in enum_cls],
            actual=raw,
        ) from None


def _str_tuple(data: Mapping[str, Any], key: str, length: int, what: str) -> Tuple[str, ...]:
    field = f"{what}.{key}"
    items = expect_array(require(data, key, what), field, length)
    return tuple(parse_str(v, f"{field}[{i}]") for i, v in enumerate(items))


def _optional_str(data: Mapping[str, Any], key: str, what: str, default: Optional[str] = None):
    value = data.get(key)
    if value is None:
        return default
    return parse_str(value, f"{what}.{key}")


def _optional_int(data: Mapping[str, Any], key: str, what: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    return parse_int(value, f"{what}.{key}")


def _optional_float(data: Mapping[str, Any], key: str, what: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    return parse_float(value, f"{what}.{key}")


def _decimal(data: Mapping[str, Any], key: str, what: str) -> Decimal:
    return parse_decimal(require(data, key, what), f"{what}.{key}")


def _optional_decimal(data: Mapping[str, Any], key: str, what: str) -> Optional[Decimal]:
    return parse_optional_decimal(data.get(key), f"{what}.{key}")


T = TypeVar("T")


class RecordMapping(Mapping[str, T]):
    """Read-only mapping from a Kraken key (pair, asset, txid) to a record.

    ``get_pair`` is the found/not-found lookup: it returns ``None`` for a
    key the exchange did not return instead of raising.
    """

    def __init__(self, items: Optional[Dict[str, T]] = None) -> None:
        self._items: Dict[str, T] = dict(items or {})

    @classmethod
    def from_json(cls, result: Any, what: Optional[str] = None):
        what = what or cls.__name__
        data = expect_object(result, what)
        return cls(
            {key: cls._decode_value(value, f"{what}[{key}]") for key, value in data.items()}
        )

    @classmethod
    def _decode_value(cls, value: Any, what: str) -> T:
        raise NotImplementedError

    def get_pair(self, pair: str) -> Optional[T]:
        return self._items.get(pair)

    def __getitem__(self, key: str) -> T:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RecordMapping):
            return type(self) is type(other) and self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self), frozenset(self._items.items())))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"


# --- Server / reference data ---


@dataclass(frozen=True)
class TimeResponse:
    unixtime: int
    rfc1123: str

    @classmethod
    def from_json(cls, result: Any) -> "TimeResponse":
        data = expect_object(result, "time")
        return cls(
            unixtime=parse_int(require(data, "unixtime", "time"), "time.unixtime"),
            rfc1123=parse_str(require(data, "rfc1123", "time"), "time.rfc1123"),
        )


@dataclass(frozen=True)
class AssetInfo:
    altname: str
    aclass: str
    decimals: int
    display_decimals: int
    status: Optional[str] = None

    @classmethod
    def from_json(cls, value: Any, what: str = "asset") -> "AssetInfo":
        data = expect_object(value, what)
        return cls(
            altname=parse_str(require(data, "altname", what), f"{what}.altname"),
            aclass=parse_str(require(data, "aclass", what), f"{what}.aclass"),
            decimals=parse_int(require(data, "decimals", what), f"{what}.decimals"),
            display_decimals=parse_int(
                require(data, "display_decimals", what), f"{what}.display_decimals"
            ),
            status=_optional_str(data, "status", what),
        )


class AssetsResponse(RecordMapping[AssetInfo]):
    @classmethod
    def _decode_value(cls, value: Any, what: str) -> AssetInfo:
        return AssetInfo.from_json(value, what)


def _fee_schedule(data: Mapping[str, Any], key: str, what: str) -> Tuple[Tuple[Decimal, Decimal], ...]:
    field = f"{what}.{key}"
    tiers = expect_array(data.get(key) or [], field)
    schedule = []
    for i, tier in enumerate(tiers):
        volume, percent = expect_array(tier, f"{field}[{i}]", 2)
        schedule.append(
            (parse_decimal(volume, f"{field}[{i}][0]"), parse_decimal(percent, f"{field}[{i}][1]"))
        )
    return tuple(schedule)


def _leverage(data: Mapping[str, Any], key: str, what: str) -> Tuple[int, ...]:
    field = f"{what}.{key}"
    return tuple(
        parse_int(v, f"{field}[{i}]") for i, v in enumerate(expect_array(data.get(key) or [], field))
    )


@dataclass(frozen=True)
class AssetPairInfo:
    altname: str
    base: str
    quote: str
    pair_decimals: int
    lot_decimals: int
    wsname: Optional[str] = None
    aclass_base: Optional[str] = None
    aclass_quote: Optional[str] = None
    cost_decimals: Optional[int] = None
    lot_multiplier: Optional[int] = None
    leverage_buy: Tuple[int, ...] = ()
    leverage_sell: Tuple[int, ...] = ()
    # (volume, percent fee) tiers
    fees: Tuple[Tuple[Decimal, Decimal], ...] = ()
    fees_maker: Tuple[Tuple[Decimal, Decimal], ...] = ()
    fee_volume_currency: Optional[str] = None
    margin_call: Optional[int] = None
    margin_stop: Optional[int] = None
    ordermin: Optional[Decimal] = None
    costmin: Optional[Decimal] = None
    tick_size: Optional[Decimal] = None
    status: Optional[str] = None
    long_position_limit: Optional[int] = None
    short_position_limit: Optional[int] = None

    @classmethod
    def from_json(cls, value: Any, what: str = "asset_pair") -> "AssetPairInfo":
        data = expect_object(value, what)
        return cls(
            altname=parse_str(require(data, "altname", what), f"{what}.altname"),
            base=parse_str(require(data, "base", what), f"{what}.base"),
            quote=parse_str(require(data, "quote", what), f"{what}.quote"),
            pair_decimals=parse_int(require(data, "pair_decimals", what), f"{what}.pair_decimals"),
            lot_decimals=parse_int(require(data, "lot_decimals", what), f"{what}.lot_decimals"),
            wsname=_optional_str(data, "wsname", what),
            aclass_base=_optional_str(data, "aclass_base", what),
            aclass_quote=_optional_str(data, "aclass_quote", what),
            cost_decimals=_optional_int(data, "cost_decimals", what),
            lot_multiplier=_optional_int(data, "lot_multiplier", what),
            leverage_buy=_leverage(data, "leverage_buy", what),
            leverage_sell=_leverage(data, "leverage_sell", what),
            fees=_fee_schedule(data, "fees", what),
            fees_maker=_fee_schedule(data, "fees_maker", what),
            fee_volume_currency=_optional_str(data, "fee_volume_currency", what),
            margin_call=_optional_int(data, "margin_call", what),
            margin_stop=_optional_int(data, "margin_stop", what),
            ordermin=_optional_decimal(data, "ordermin", what),
            costmin=_optional_decimal(data, "costmin", what),
            tick_size=_optional_decimal(data, "tick_size", what),
            status=_optional_str(data, "status", what),
            long_position_limit=_optional_int(data, "long_position_limit", what),
            short_position_limit=_optional_int(data, "short_position_limit", what),
        )


class AssetPairsResponse(RecordMapping[AssetPairInfo]):
    @classmethod
    def _decode_value(cls, value: Any, what: str) -> AssetPairInfo:
        return AssetPairInfo.from_json(value, what)


# --- Market data ---


@dataclass(frozen=True)
class TickerInfo:
    """Ticker snapshot for one pair.

    Array fields keep Kraken's order:
        ask, bid: (price, whole lot volume, lot volume)
        close: (price, lot volume)
        volume, vwap, trades, low, high: (today, last 24 hours)
    """

    ask: Tuple[str, str, str]
    bid: Tuple[str, str, str]
    close: Tuple[str, str]
    volume: Tuple[str, str]
    vwap: Tuple[str, str]
    trades: Tuple[int, int]
    low: Tuple[str, str]
    high: Tuple[str, str]
    opening_price: Decimal

    @classmethod
    def from_json(cls, value: Any, what: str = "ticker") -> "TickerInfo":
        data = expect_object(value, what)
        trades = expect_array(require(data, "t", what), f"{what}.t", 2)
        return cls(
            ask=_str_tuple(data, "a", 3, what),
            bid=_str_tuple(data, "b", 3, what),
            close=_str_tuple(data, "c", 2, what),
            volume=_str_tuple(data, "v", 2, what),
            vwap=_str_tuple(data, "p", 2, what),
            trades=(parse_int(trades[0], f"{what}.t[0]"), parse_int(trades[1], f"{what}.t[1]")),
            low=_str_tuple(data, "l", 2, what),
            high=_str_tuple(data, "h", 2, what),
            opening_price=_decimal(data, "o", what),
        )

    @property
    def last_price(self) -> Decimal:
        return parse_decimal(self.close[0], "ticker.c[0]")


class TickerResponse(RecordMapping[TickerInfo]):
    """Ticker records keyed by the pair name Kraken returned (``XXBTZEUR``)."""

    @classmethod
    def _decode_value(cls, value: Any, what: str) -> TickerInfo:
        return TickerInfo.from_json(value, what)


@dataclass(frozen=True)
class OrderBookLevel:
    price: Decimal
    size: Decimal
    timestamp: int

    @classmethod
    def from_json(cls, value: Any, what: str = "level") -> "OrderBookLevel":
        price, size, timestamp = expect_array(value, what, 3)
        return cls(
            price=parse_decimal(price, f"{what}.price"),
            size=parse_decimal(size, f"{what}.size"),
            timestamp=parse_int(timestamp, f"{what}.timestamp"),
        )

    def to_json(self) -> List[Any]:
        return [format_decimal(self.price), format_decimal(self.size), self.timestamp]


def _levels(data: Mapping[str, Any], key: str, what: str) -> Tuple[OrderBookLevel, ...]:
    field = f"{what}.{key}"
    return tuple(
        OrderBookLevel.from_json(level, f"{field}[{i}]")
        for i, level in enumerate(expect_array(require(data, key, what), field))
    )


@dataclass(frozen=True)
class OrderBook:
    asks: Tuple[OrderBookLevel, ...]
    bids: Tuple[OrderBookLevel, ...]

    @classmethod
    def from_json(cls, value: Any, what: str = "book") -> "OrderBook":
        data = expect_object(value, what)
        return cls(asks=_levels(data, "asks", what), bids=_levels(data, "bids", what))

    @property
    def best_ask(self) -> Optional[OrderBookLevel]:
        return self.asks[0] if self.asks else None

    @property
    def best_bid(self) -> Optional[OrderBookLevel]:
        return self.bids[0] if self.bids else None


class DepthResponse(RecordMapping[OrderBook]):
    @classmethod
    def _decode_value(cls, value: Any, what: str) -> OrderBook:
        return OrderBook.from_json(value, what)


@dataclass(frozen=True)
class Candle:
    time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    vwap: Decimal
    volume: Decimal
    count: int

    @classmethod
    def from_json(cls, value: Any, what: str = "candle") -> "Candle":
        time, open_, high, low, close, vwap, volume, count = expect_array(value, what, 8)
        return cls(
            time=parse_timestamp(time, f"{what}.time"),
            open=parse_decimal(open_, f"{what}.open"),
            high=parse_decimal(high, f"{what}.high"),
            low=parse_decimal(low, f"{what}.low"),
            close=parse_decimal(close, f"{what}.close"),
            vwap=parse_decimal(vwap, f"{what}.vwap"),
            volume=parse_decimal(volume, f"{what}.volume"),
            count=parse_int(count, f"{what}.count"),
        )

    def to_json(self) -> List[Any]:
        return [
            int(self.time.timestamp()),
            format_decimal(self.open),
            format_decimal(self.high),
            format_decimal(self.low),
            format_decimal(self.close),
            format_decimal(self.vwap),
            format_decimal(self.volume),
            self.count,
        ]


def _single_pair_key(data: Mapping[str, Any], what: str) -> str:
    """Return the one pair key next to ``last`` in OHLC/Trades results.

    Kraken answers with its canonical pair name, which may differ from the
    name that was requested (``XBTUSD`` comes back as ``XXBTZUSD``).
    """
    keys = [k for k in data if k != "last"]
    if len(keys) != 1:
        raise KrakenDecodeError(
            f"{what}: expected exactly one pair key, got {keys}",
            field=what,
            expected=1,
            actual=len(keys),
        )
    return keys[0]


@dataclass(frozen=True)
class OHLCResponse:
    pair: str
    candles: Tuple[Candle, ...]
    last: float

    @classmethod
    def from_json(cls, result: Any) -> "OHLCResponse":
        data = expect_object(result, "ohlc")
        pair = _single_pair_key(data, "ohlc")
        field = f"ohlc[{pair}]"
        candles = tuple(
            Candle.from_json(c, f"{field}[{i}]")
            for i, c in enumerate(expect_array(data[pair], field))
        )
        return cls(pair=pair, candles=candles, last=parse_float(require(data, "last", "ohlc"), "ohlc.last"))


@dataclass(frozen=True)
class TradeInfo:
    """One public trade: ``[price, volume, time, side, kind, misc(, trade_id)]``."""

    price: Decimal
    volume: Decimal
    time: float
    side: str
    kind: str
    misc: str = ""
    trade_id: Optional[int] = None

    @classmethod
    def from_json(cls, value: Any, what: str = "trade") -> "TradeInfo":
        items = expect_array(value, what, (6, 7))
        side = parse_str(items[3], f"{what}.side")
        if side not in (BUY, SELL):
            raise KrakenDecodeError(
                f"{what}.side: unknown value {side!r}",
                field=f"{what}.side",
                expected=[BUY, SELL],
                actual=side,
            )
        kind = parse_str(items[4], f"{what}.kind")
        if kind not in (MARKET, LIMIT):
            raise KrakenDecodeError(
                f"{what}.kind: unknown value {kind!r}",
                field=f"{what}.kind",
                expected=[MARKET, LIMIT],
                actual=kind,
            )
        return cls(
            price=parse_decimal(items[0], f"{what}.price"),
            volume=parse_decimal(items[1], f"{what}.volume"),
            time=parse_float(items[2], f"{what}.time"),
            side=side,
            kind=kind,
            misc=parse_str(items[5], f"{what}.misc"),
            trade_id=parse_int(items[6], f"{what}.trade_id") if len(items) == 7 else None,
        )

    @property
    def is_buy(self) -> bool:
        return self.side == BUY

    @property
    def is_sell(self) -> bool:
        return self.side == SELL

    @property
    def is_market(self) -> bool:
        return self.kind == MARKET

    @property
    def is_limit(self) -> bool:
        return self.kind == LIMIT


@dataclass(frozen=True)
class TradesResponse:
    pair: str
    trades: Tuple[TradeInfo, ...]
    last: int

    @classmethod
    def from_json(cls, result: Any) -> "TradesResponse":
        data = expect_object(result, "trades")
        pair = _single_pair_key(data, "trades")
        field = f"trades[{pair}]"
        trades = tuple(
            TradeInfo.from_json(t, f"{field}[{i}]")
            for i, t in enumerate(expect_array(data[pair], field))
        )
        return cls(pair=pair, trades=trades, last=parse_int(require(data, "last", "trades"), "trades.last"))


# --- Account ---


class BalanceResponse(RecordMapping[Decimal]):
    """Asset balances keyed by Kraken asset name (``ZEUR``, ``XXBT``)."""

    @classmethod
    def _decode_value(cls, value: Any, what: str) -> Decimal:
        return parse_decimal(value, what)


@dataclass(frozen=True)
class TradeBalance:
    equivalent_balance: Decimal
    trade_balance: Decimal
    margin: Decimal
    unrealized_pnl: Decimal
    cost_basis: Decimal
    valuation: Decimal
    equity: Decimal
    free_margin: Decimal
    # only reported while positions are open
    margin_level: Optional[Decimal] = None

    @classmethod
    def from_json(cls, result: Any) -> "TradeBalance":
        what = "trade_balance"
        data = expect_object(result, what)
        return cls(
            equivalent_balance=_decimal(data, "eb", what),
            trade_balance=_decimal(data, "tb", what),
            margin=_decimal(data, "m", what),
            unrealized_pnl=_decimal(data, "n", what),
            cost_basis=_decimal(data, "c", what),
            valuation=_decimal(data, "v", what),
            equity=_decimal(data, "e", what),
            free_margin=_decimal(data, "mf", what),
            margin_level=_optional_decimal(data, "ml", what),
        )


@dataclass(frozen=True)
class FeeInfo:
    fee: Decimal
    minfee: Decimal
    maxfee: Decimal
    tiervolume: Decimal
    # null on the top fee tier
    nextfee: Optional[Decimal] = None
    nextvolume: Optional[Decimal] = None

    @classmethod
    def from_json(cls, value: Any, what: str = "fee") -> "FeeInfo":
        data = expect_object(value, what)
        return cls(
            fee=_decimal(data, "fee", what),
            minfee=_decimal(data, "minfee", what),
            maxfee=_decimal(data, "maxfee", what),
            tiervolume=_decimal(data, "tiervolume", what),
            nextfee=_optional_decimal(data, "nextfee", what),
            nextvolume=_optional_decimal(data, "nextvolume", what),
        )


class Fees(RecordMapping[FeeInfo]):
    @classmethod
    def _decode_value(cls, value: Any, what: str) -> FeeInfo:
        return FeeInfo.from_json(value, what)


@dataclass(frozen=True)
class TradeVolumeResponse:
    currency: str
    volume: Decimal
    fees: Fees = dataclass_field(default_factory=Fees)
    fees_maker: Fees = dataclass_field(default_factory=Fees)

    @classmethod
    def from_json(cls, result: Any) -> "TradeVolumeResponse":
        what = "trade_volume"
        data = expect_object(result, what)
        return cls(
            currency=parse_str(require(data, "currency", what), f"{what}.currency"),
            volume=_decimal(data, "volume", what),
            fees=Fees.from_json(data.get("fees") or {}, f"{what}.fees"),
            fees_maker=Fees.from_json(data.get("fees_maker") or {}, f"{what}.fees_maker"),
        )


# --- Orders ---


@dataclass(frozen=True)
class OrderDescription:
    pair: str
    type: str
    ordertype: OrderType
    price: Decimal
    price2: Decimal
    leverage: str
    order: str
    close: str = ""

    @classmethod
    def from_json(cls, value: Any, what: str = "descr") -> "OrderDescription":
        data = expect_object(value, what)
        side = parse_str(require(data, "type", what), f"{what}.type")
        if side not in ("buy", "sell"):
            raise KrakenDecodeError(
                f"{what}.type: unknown value {side!r}",
                field=f"{what}.type",
                expected=["buy", "sell"],
                actual=side,
            )
        return cls(
            pair=parse_str(require(data, "pair", what), f"{what}.pair"),
            type=side,
            ordertype=_parse_enum(OrderType, require(data, "ordertype", what), f"{what}.ordertype"),
            price=_decimal(data, "price", what),
            price2=_decimal(data, "price2", what),
            leverage=parse_str(require(data, "leverage", what), f"{what}.leverage"),
            order=parse_str(require(data, "order", what), f"{what}.order"),
            close=_optional_str(data, "close", what, default=""),
        )


@dataclass(frozen=True)
class Order:
    status: OrderStatus
    opentm: float
    starttm: float
    expiretm: float
    descr: OrderDescription
    vol: Decimal
    vol_exec: Decimal
    cost: Decimal
    fee: Decimal
    price: Decimal
    refid: Optional[str] = None
    userref: Optional[int] = None
    stopprice: Optional[Decimal] = None
    limitprice: Optional[Decimal] = None
    misc: str = ""
    oflags: str = ""
    # closed orders only
    closetm: Optional[float] = None
    reason: Optional[str] = None
    # present when trades=True was requested
    trades: Tuple[str, ...] = ()

    @classmethod
    def from_json(cls, value: Any, what: str = "order") -> "Order":
        data = expect_object(value, what)
        trades = expect_array(data.get("trades") or [], f"{what}.trades")
        return cls(
            status=_parse_enum(OrderStatus, require(data, "status", what), f"{what}.status"),
            opentm=parse_float(require(data, "opentm", what), f"{what}.opentm"),
            starttm=parse_float(require(data, "starttm", what), f"{what}.starttm"),
            expiretm=parse_float(require(data, "expiretm", what), f"{what}.expiretm"),
            descr=OrderDescription.from_json(require(data, "descr", what), f"{what}.descr"),
            vol=_decimal(data, "vol", what),
            vol_exec=_decimal(data, "vol_exec", what),
            cost=_decimal(data, "cost", what),
            fee=_decimal(data, "fee", what),
            price=_decimal(data, "price", what),
            refid=_optional_str(data, "refid", what),
            userref=_optional_int(data, "userref", what),
            stopprice=_optional_decimal(data, "stopprice", what),
            limitprice=_optional_decimal(data, "limitprice", what),
            misc=_optional_str(data, "misc", what, default=""),
            oflags=_optional_str(data, "oflags", what, default=""),
            closetm=_optional_float(data, "closetm", what),
            reason=_optional_str(data, "reason", what),
            trades=tuple(parse_str(t, f"{what}.trades[{i}]") for i, t in enumerate(trades)),
        )


class QueryOrdersResponse(RecordMapping[Order]):
    """Orders keyed by transaction id."""

    @classmethod
    def _decode_value(cls, value: Any, what: str) -> Order:
        return Order.from_json(value, what)


@dataclass(frozen=True)
class OpenOrdersResponse:
    open: QueryOrdersResponse

    @classmethod
    def from_json(cls, result: Any) -> "OpenOrdersResponse":
        data = expect_object(result, "open_orders")
        return cls(open=QueryOrdersResponse.from_json(require(data, "open", "open_orders"), "open"))


@dataclass(frozen=True)
class ClosedOrdersResponse:
    closed: QueryOrdersResponse
    count: int

    @classmethod
    def from_json(cls, result: Any) -> "ClosedOrdersResponse":
        data = expect_object(result, "closed_orders")
        return cls(
            closed=QueryOrdersResponse.from_json(require(data, "closed", "closed_orders"), "closed"),
            count=parse_int(require(data, "count", "closed_orders"), "closed_orders.count"),
        )


@dataclass(frozen=True)
class AddOrderResponse:
    description: str
    txid: Tuple[str, ...] = ()
    close: Optional[str] = None

    @classmethod
    def from_json(cls, result: Any) -> "AddOrderResponse":
        what = "add_order"
        data = expect_object(result, what)
        descr = expect_object(require(data, "descr", what), f"{what}.descr")
        # validate-only requests come back without txid
        txids = expect_array(data.get("txid") or [], f"{what}.txid")
        return cls(
            description=parse_str(require(descr, "order", f"{what}.descr"), f"{what}.descr.order"),
            txid=tuple(parse_str(t, f"{what}.txid[{i}]") for i, t in enumerate(txids)),
            close=_optional_str(descr, "close", f"{what}.descr"),
        )


@dataclass(frozen=True)
class CancelOrderResponse:
    count: int
    pending: bool = False

    @classmethod
    def from_json(cls, result: Any) -> "CancelOrderResponse":
        data = expect_object(result, "cancel_order")
        pending = data.get("pending")
        return cls(
            count=parse_int(require(data, "count", "cancel_order"), "cancel_order.count"),
            pending=False if pending is None else parse_bool(pending, "cancel_order.pending"),
        )


# --- History ---


@dataclass(frozen=True)
class TradeHistoryInfo:
    ordertxid: str
    pair: str
    time: float
    type: str
    ordertype: str
    price: Decimal
    cost: Decimal
    fee: Decimal
    vol: Decimal
    postxid: Optional[str] = None
    margin: Optional[Decimal] = None
    misc: str = ""

    @classmethod
    def from_json(cls, value: Any, what: str = "trade") -> "TradeHistoryInfo":
        data = expect_object(value, what)
        return cls(
            ordertxid=parse_str(require(data, "ordertxid", what), f"{what}.ordertxid"),
            pair=parse_str(require(data, "pair", what), f"{what}.pair"),
            time=parse_float(require(data, "time", what), f"{what}.time"),
            type=parse_str(require(data, "type", what), f"{what}.type"),
            ordertype=parse_str(require(data, "ordertype", what), f"{what}.ordertype"),
            price=_decimal(data, "price", what),
            cost=_decimal(data, "cost", what),
            fee=_decimal(data, "fee", what),
            vol=_decimal(data, "vol", what),
            postxid=_optional_str(data, "postxid", what),
            margin=_optional_decimal(data, "margin", what),
            misc=_optional_str(data, "misc", what, default=""),
        )


class _TradeHistoryMapping(RecordMapping[TradeHistoryInfo]):
    @classmethod
    def _decode_value(cls, value: Any, what: str) -> TradeHistoryInfo:
        return TradeHistoryInfo.from_json(value, what)


@dataclass(frozen=True)
class TradesHistoryResponse:
    trades: RecordMapping[TradeHistoryInfo]
    count: int

    @classmethod
    def from_json(cls, result: Any) -> "TradesHistoryResponse":
        data = expect_object(result, "trades_history")
        return cls(
            trades=_TradeHistoryMapping.from_json(require(data, "trades", "trades_history"), "trades"),
            count=parse_int(require(data, "count", "trades_history"), "trades_history.count"),
        )


@dataclass(frozen=True)
class LedgerInfo:
    refid: str
    time: float
    type: str
    aclass: str
    asset: str
    amount: Decimal
    fee: Decimal
    balance: Decimal
    subtype: str = ""

    @classmethod
    def from_json(cls, value: Any, what: str = "ledger") -> "LedgerInfo":
        data = expect_object(value, what)
        return cls(
            refid=parse_str(require(data, "refid", what), f"{what}.refid"),
            time=parse_float(require(data, "time", what), f"{what}.time"),
            type=parse_str(require(data, "type", what), f"{what}.type"),
            aclass=parse_str(require(data, "aclass", what), f"{what}.aclass"),
            asset=parse_str(require(data, "asset", what), f"{what}.asset"),
            amount=_decimal(data, "amount", what),
            fee=_decimal(data, "fee", what),
            balance=_decimal(data, "balance", what),
            subtype=_optional_str(data, "subtype", what, default=""),
        )


class _LedgerMapping(RecordMapping[LedgerInfo]):
    @classmethod
    def _decode_value(cls, value: Any, what: str) -> LedgerInfo:
        return LedgerInfo.from_json(value, what)


@dataclass(frozen=True)
class LedgersResponse:
    ledger: RecordMapping[LedgerInfo]
    count: Optional[int] = None

    @classmethod
    def from_json(cls, result: Any) -> "LedgersResponse":
        data = expect_object(result, "ledgers")
        return cls(
            ledger=_LedgerMapping.from_json(require(data, "ledger", "ledgers"), "ledger"),
            count=_optional_int(data, "count", "ledgers"),
        )


# --- Funding ---


@dataclass(frozen=True)
class DepositAddress:
    address: str
    expiretm: str
    new: bool = False

    @classmethod
    def from_json(cls, value: Any, what: str = "deposit_address") -> "DepositAddress":
        data = expect_object(value, what)
        new = data.get("new")
        expiretm = require(data, "expiretm", what)
        # expiretm arrives either as "0" or as a bare number
        if isinstance(expiretm, (int, float)) and not isinstance(expiretm, bool):
            expiretm = str(expiretm)
        return cls(
            address=parse_str(require(data, "address", what), f"{what}.address"),
            expiretm=parse_str(expiretm, f"{what}.expiretm"),
            new=False if new is None else parse_bool(new, f"{what}.new"),
        )

    @classmethod
    def list_from_json(cls, result: Any) -> Tuple["DepositAddress", ...]:
        return tuple(
            cls.from_json(v, f"deposit_addresses[{i}]")
            for i, v in enumerate(expect_array(result, "deposit_addresses"))
        )


@dataclass(frozen=True)
class WithdrawResponse:
    refid: str

    @classmethod
    def from_json(cls, result: Any) -> "WithdrawResponse":
        data = expect_object(result, "withdraw")
        return cls(refid=parse_str(require(data, "refid", "withdraw"), "withdraw.refid"))


@dataclass(frozen=True)
class WithdrawInfoResponse:
    method: str
    limit: Decimal
    amount: Decimal
    fee: Decimal

    @classmethod
    def from_json(cls, result: Any) -> "WithdrawInfoResponse":
        what = "withdraw_info"
        data = expect_object(result, what)
        return cls(
            method=parse_str(require(data, "method", what), f"{what}.method"),
            limit=_decimal(data, "limit", what),
            amount=_decimal(data, "amount", what),
            fee=_decimal(data, "fee", what),
        )


def as_primitive(value: Any) -> Any:
    """Convert a record into JSON-compatible builtins.

    Decimals become strings (no precision is lost), datetimes ISO 8601
    strings, enums their wire value.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return format_decimal(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: as_primitive(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {k: as_primitive(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [as_primitive(v) for v in value]
    return value
