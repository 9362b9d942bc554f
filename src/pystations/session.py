"""Operator session state and the identity provider boundary."""

from __future__ import annotations

import time
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from pystations.exceptions import AuthError, AuthErrorCode

#: Default operator token time-to-live in seconds (1 hour).
#: Identity provider ID tokens are issued for one hour.
DEFAULT_SESSION_TTL: float = 3600

_AUTH_CODES: dict[str, AuthErrorCode] = {
    "auth/wrong-password": AuthErrorCode.INVALID_CREDENTIALS,
    "auth/invalid-credential": AuthErrorCode.INVALID_CREDENTIALS,
    "auth/user-not-found": AuthErrorCode.INVALID_CREDENTIALS,
    "auth/invalid-email": AuthErrorCode.INVALID_CREDENTIALS,
    "auth/email-already-in-use": AuthErrorCode.ACCOUNT_EXISTS,
    "auth/weak-password": AuthErrorCode.WEAK_CREDENTIAL,
}

_AUTH_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_CREDENTIALS: "Invalid email or password",
    AuthErrorCode.ACCOUNT_EXISTS: "An account already exists for this email",
    AuthErrorCode.WEAK_CREDENTIAL: "Password is too weak",
    AuthErrorCode.UNKNOWN: "Authentication failed",
}


class OperatorSession(BaseModel):
    """An authenticated operator.

    Parameters
    ----------
    user_id : str
        Identity provider user id, stamped on created stations.
    display_name : str or None
        Name shown in the operator UI.
    email : str or None
        Sign-in email.
    id_token : str or None
        Bearer token sent to the document store.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session
        was created.
    ttl : float
        Seconds until ``id_token`` must be refreshed.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    user_id: str = Field(min_length=1)
    display_name: str | None = None
    email: str | None = None
    id_token: str | None = Field(default=None, repr=False)
    created_at: float = Field(default_factory=time.monotonic)
    ttl: float = DEFAULT_SESSION_TTL

    @property
    def is_expired(self) -> bool:
        """Whether the session has exceeded its TTL."""
        return (time.monotonic() - self.created_at) >= self.ttl


class IdentityProvider(Protocol):
    """External identity service.

    Implementations raise :class:`AuthError` (see
    :func:`auth_error_from_code`) when the provider rejects a request.
    """

    async def sign_in(self, email: str, password: str) -> OperatorSession: ...

    async def sign_up(self, email: str, password: str, *, display_name: str | None = None) -> OperatorSession: ...

    async def sign_out(self, session: OperatorSession) -> None: ...


def auth_error_code(provider_code: str | None) -> AuthErrorCode:
    """Map a raw provider error code (``auth/wrong-password`` ...) to :class:`AuthErrorCode`."""
    if not provider_code:
        return AuthErrorCode.UNKNOWN
    return _AUTH_CODES.get(provider_code.strip().lower(), AuthErrorCode.UNKNOWN)


def auth_error_from_code(provider_code: str | None, message: str | None = None) -> AuthError:
    code = auth_error_code(provider_code)
    return AuthError(message or _AUTH_MESSAGES[code], code=code)
