"""The ``{"error": [...], "result": ...}`` wrapper around every response."""

from dataclasses import dataclass
from typing import Any, Tuple

from krakenapi.errors import KrakenAPIError
from krakenapi.parsing import expect_array, expect_object, parse_str


@dataclass(frozen=True)
class Envelope:
    errors: Tuple[str, ...]
    result: Any = None

    @classmethod
    def from_json(cls, payload: Any) -> "Envelope":
        data = expect_object(payload, "envelope")
        raw_errors = data.get("error")
        if raw_errors is None:
            raw_errors = []
        errors = tuple(
            parse_str(e, f"envelope.error[{i}]")
            for i, e in enumerate(expect_array(raw_errors, "envelope.error"))
        )
        return cls(errors=errors, result=data.get("result"))

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> Any:
        """Return ``result``, or raise ``KrakenAPIError`` if errors were reported.

        ``result`` is never looked at when the error list is non-empty.
        """
        if self.errors:
            raise KrakenAPIError(self.errors)
        return self.result


def unwrap(payload: Any) -> Any:
    """Validate a raw response body and return its ``result``."""
    return Envelope.from_json(payload).unwrap()
