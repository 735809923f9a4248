"""Conversion of raw JSON values into typed Python values.

Kraken sends most numbers as strings (``"30000.10000"``) and packs several
records into positional arrays. Every helper here either returns a fully
converted value or raises ``KrakenDecodeError`` naming the field that
failed; nothing falls back to a default.
"""

import math
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Collection, Dict, List, Mapping, Optional, Union

from krakenapi.errors import KrakenDecodeError

# Plain decimal notation only: no underscores, no surrounding whitespace.
# Non-finite spellings pass here so the finiteness check can name them.
_NUMBER_RE = re.compile(
    r"[+-]?((\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?|inf|infinity|nan)",
    re.IGNORECASE,
)
_INTEGER_RE = re.compile(r"[+-]?\d+")


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def expect_array(
    value: Any,
    what: str,
    length: Union[int, Collection[int], None] = None,
) -> List[Any]:
    """Return ``value`` if it is a JSON array of an accepted length.

    ``length`` is either one exact length or a collection of accepted ones.
    """
    if not isinstance(value, list):
        raise KrakenDecodeError(
            f"{what}: expected an array, got {_type_name(value)}",
            field=what,
            expected="array",
            actual=_type_name(value),
        )
    if length is None:
        return value
    accepted = (length,) if isinstance(length, int) else tuple(length)
    if len(value) not in accepted:
        expected = " or ".join(str(n) for n in accepted)
        raise KrakenDecodeError(
            f"{what}: the length is not {expected} but {len(value)}",
            field=what,
            expected=accepted[0] if len(accepted) == 1 else accepted,
            actual=len(value),
        )
    return value


def expect_object(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise KrakenDecodeError(
            f"{what}: expected an object, got {_type_name(value)}",
            field=what,
            expected="object",
            actual=_type_name(value),
        )
    return value


def require(data: Mapping[str, Any], key: str, what: str) -> Any:
    """Fetch a mandatory key from a decoded JSON object."""
    try:
        return data[key]
    except KeyError:
        raise KrakenDecodeError(
            f"{what}: missing field '{key}'",
            field=f"{what}.{key}",
            expected=key,
            actual=None,
        ) from None


def parse_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise KrakenDecodeError(
            f"{field}: expected a string, got {_type_name(value)}",
            field=field,
            expected="string",
            actual=_type_name(value),
        )
    return value


def parse_decimal(value: Any, field: str) -> Decimal:
    """Parse a numeric string (or JSON number) into a finite ``Decimal``."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise KrakenDecodeError(
            f"{field}: expected a numeric string, got {_type_name(value)}",
            field=field,
            expected="numeric string",
            actual=_type_name(value),
        )
    if isinstance(value, str) and not _NUMBER_RE.fullmatch(value):
        raise KrakenDecodeError(
            f"{field}: cannot parse {value!r} as a number",
            field=field,
            expected="numeric string",
            actual=value,
        )
    try:
        # str() on floats keeps the shortest repr instead of the binary expansion
        result = Decimal(value if isinstance(value, str) else str(value))
    except InvalidOperation:
        raise KrakenDecodeError(
            f"{field}: cannot parse {value!r} as a number",
            field=field,
            expected="numeric string",
            actual=value,
        ) from None
    if not result.is_finite():
        raise KrakenDecodeError(
            f"{field}: {value!r} is not a finite number",
            field=field,
            expected="finite number",
            actual=value,
        )
    return result


def parse_optional_decimal(value: Any, field: str) -> Optional[Decimal]:
    if value is None:
        return None
    return parse_decimal(value, field)


def parse_int(value: Any, field: str) -> int:
    """Parse an integer given as a JSON number or a string of digits."""
    if isinstance(value, bool):
        raise KrakenDecodeError(
            f"{field}: expected an integer, got boolean",
            field=field,
            expected="integer",
            actual="boolean",
        )
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INTEGER_RE.fullmatch(value):
        return int(value)
    raise KrakenDecodeError(
        f"{field}: cannot parse {value!r} as an integer",
        field=field,
        expected="integer",
        actual=value,
    )


def parse_float(value: Any, field: str) -> float:
    """Parse a JSON number or numeric string into a finite ``float``."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise KrakenDecodeError(
            f"{field}: expected a number, got {_type_name(value)}",
            field=field,
            expected="number",
            actual=_type_name(value),
        )
    if isinstance(value, str) and not _NUMBER_RE.fullmatch(value):
        raise KrakenDecodeError(
            f"{field}: cannot parse {value!r} as a number",
            field=field,
            expected="number",
            actual=value,
        )
    result = float(value)
    if not math.isfinite(result):
        raise KrakenDecodeError(
            f"{field}: {value!r} is not a finite number",
            field=field,
            expected="finite number",
            actual=value,
        )
    return result


def parse_timestamp(value: Any, field: str) -> datetime:
    """Convert epoch seconds into an aware UTC ``datetime``."""
    seconds = parse_float(value, field)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise KrakenDecodeError(
            f"{field}: {value!r} is out of range for a timestamp",
            field=field,
            expected="epoch seconds",
            actual=value,
        ) from None


def parse_bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise KrakenDecodeError(
            f"{field}: expected a boolean, got {_type_name(value)}",
            field=field,
            expected="boolean",
            actual=_type_name(value),
        )
    return value


def format_decimal(value: Decimal) -> str:
    """Render a ``Decimal`` the way Kraken writes numbers (no exponent)."""
    return format(value, "f")
