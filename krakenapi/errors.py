"""Exceptions raised by the Kraken client.

Three failure kinds are kept apart so callers can react to each:

- transport failures (``KrakenTransportError`` and subclasses),
- errors reported by the exchange inside the response envelope
  (``KrakenAPIError``),
- payloads that do not have the documented shape (``KrakenDecodeError``).
"""

from typing import Any, Dict, List, Optional, Sequence


class KrakenError(Exception):
    """Base exception for the Kraken client."""

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.details = details or {}


class KrakenTransportError(KrakenError):
    """Raised when the exchange could not be reached or answered badly."""

    def __init__(
        self,
        message: str,
        error_type: str = "transport",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, error_type=error_type, details=details)


class KrakenConnectionError(KrakenTransportError):
    """Raised when the connection to Kraken fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, error_type="connection", details=details)


class KrakenTimeoutError(KrakenTransportError):
    """Raised when a request times out."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, error_type="timeout", details=details)


class KrakenHTTPError(KrakenTransportError):
    """Raised on a non-2xx HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        if status_code == 429:
            error_type = "rate_limit"
        elif status_code is not None and status_code >= 500:
            error_type = "server_error"
        else:
            error_type = "http"
        super().__init__(message, error_type=error_type, details=details)
        self.status_code = status_code


# Kraken error strings look like "EGeneral:Invalid arguments" or
# "EAPI:Invalid nonce"; the prefix before the colon is the category.
ERROR_CATEGORIES = {
    "EAPI": "api",
    "EGeneral": "general",
    "EOrder": "order",
    "EQuery": "query",
    "EService": "service",
    "EFunding": "funding",
    "ETrade": "trade",
    "ESession": "session",
    "EDatabase": "database",
}


class KrakenAPIError(KrakenError):
    """Raised when the response envelope carries a non-empty error list.

    The messages are kept verbatim and in order in ``errors``.
    """

    def __init__(self, errors: Sequence[str], details: Optional[Dict[str, Any]] = None) -> None:
        self.errors: List[str] = list(errors)
        super().__init__(
            f"Kraken error: {'; '.join(self.errors)}",
            error_type=self.category_of(self.errors[0]) if self.errors else "unknown",
            details=details,
        )

    @staticmethod
    def category_of(error: str) -> str:
        prefix, sep, _ = error.partition(":")
        if not sep:
            return "unknown"
        return ERROR_CATEGORIES.get(prefix, "unknown")

    @property
    def is_rate_limit(self) -> bool:
        return any("Rate limit exceeded" in e for e in self.errors)

    @property
    def is_invalid_nonce(self) -> bool:
        return any(e.startswith("EAPI:Invalid nonce") for e in self.errors)


class KrakenDecodeError(KrakenError):
    """Raised when a payload does not match the documented response shape.

    ``field`` names the value that failed; ``expected`` and ``actual``
    describe the mismatch (a length, a type name or the offending value).
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        details = {"field": field, "expected": expected, "actual": actual}
        super().__init__(message, error_type="decode", details=details)
        self.field = field
        self.expected = expected
        self.actual = actual
