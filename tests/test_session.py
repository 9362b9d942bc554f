from __future__ import annotations

import time

import pytest

from pystations.exceptions import AuthError, AuthErrorCode
from pystations.session import OperatorSession, auth_error_code, auth_error_from_code


@pytest.mark.parametrize(
    ("provider_code", "expected"),
    [
        ("auth/wrong-password", AuthErrorCode.INVALID_CREDENTIALS),
        ("auth/invalid-credential", AuthErrorCode.INVALID_CREDENTIALS),
        ("auth/user-not-found", AuthErrorCode.INVALID_CREDENTIALS),
        ("auth/invalid-email", AuthErrorCode.INVALID_CREDENTIALS),
        ("auth/email-already-in-use", AuthErrorCode.ACCOUNT_EXISTS),
        ("auth/weak-password", AuthErrorCode.WEAK_CREDENTIAL),
        ("auth/network-request-failed", AuthErrorCode.UNKNOWN),
        ("", AuthErrorCode.UNKNOWN),
        (None, AuthErrorCode.UNKNOWN),
    ],
)
def test_auth_error_code_mapping(provider_code: str | None, expected: AuthErrorCode) -> None:
    assert auth_error_code(provider_code) is expected


def test_auth_error_from_code_builds_exception() -> None:
    error = auth_error_from_code("auth/weak-password")
    assert isinstance(error, AuthError)
    assert error.code is AuthErrorCode.WEAK_CREDENTIAL
    assert str(error) == "Password is too weak"

    custom = auth_error_from_code("auth/boom", "Provider exploded")
    assert custom.code is AuthErrorCode.UNKNOWN
    assert str(custom) == "Provider exploded"


def test_operator_session_expiry() -> None:
    fresh = OperatorSession(user_id="op-1", id_token="tok")
    stale = OperatorSession(user_id="op-1", created_at=time.monotonic() - 10, ttl=5)
    assert fresh.is_expired is False
    assert stale.is_expired is True
    assert "tok" not in repr(fresh)
