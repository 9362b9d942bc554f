"""Custom exception hierarchy for pystations."""

from __future__ import annotations

import enum
from collections.abc import Iterable


class StationsError(Exception):
    """Base exception for all pystations errors."""


class StationsConfigError(StationsError):
    """Invalid or missing configuration."""


class ValidationError(StationsError):
    """A write payload failed local validation.

    Raised before any request reaches the document store.  ``fields``
    names every offending field, in wire order.
    """

    def __init__(self, message: str, *, fields: Iterable[str] = ()) -> None:
        self.fields: tuple[str, ...] = tuple(fields)
        super().__init__(message)


class NotFoundError(StationsError):
    """Point read on a station id that does not exist."""

    def __init__(self, station_id: str) -> None:
        self.station_id = station_id
        super().__init__(f"Station {station_id!r} not found")


class StoreTransportError(StationsError):
    """Transport-level failure talking to the document store.

    Raised by transports only; the adapter maps it onto
    :class:`ReadError`, :class:`WriteError` or :class:`NotFoundError`.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ReadError(StoreTransportError):
    """A read or query failed (network, permission, malformed response)."""


class WriteError(StoreTransportError):
    """A create, update or delete was rejected or could not be delivered."""


class DecodeError(StationsError):
    """A remote record could not be decoded into a :class:`Station`.

    Never fatal: the offending record is logged and dropped.
    """

    def __init__(self, message: str, *, document_id: str | None = None) -> None:
        self.document_id = document_id
        super().__init__(message)


class StoreTimeoutError(StationsError, TimeoutError):
    """A CRUD call exceeded the configured request timeout."""

    def __init__(self, operation: str, timeout: float) -> None:
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout:g}s")


class AuthErrorCode(enum.StrEnum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_EXISTS = "account_exists"
    WEAK_CREDENTIAL = "weak_credential"
    UNKNOWN = "unknown"


class AuthError(StationsError):
    """Identity provider rejected a sign-in or sign-up."""

    def __init__(self, message: str, *, code: AuthErrorCode = AuthErrorCode.UNKNOWN) -> None:
        self.code = code
        super().__init__(message)
