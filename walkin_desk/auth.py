"""
Bearer-token capability passed explicitly to everything that talks to the backend.
"""
import secrets
from typing import Optional

from fastapi import Header

from walkin_desk.errors import ConfigurationError


class AuthContext:
    """Holds the staff member's bearer token for backend calls."""

    def __init__(self, token: Optional[str] = None):
        self._token = token.strip() if token else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def bearer_token(self) -> str:
        """Return the token, or raise ConfigurationError when none was provided."""
        if not self._token:
            raise ConfigurationError()
        return self._token

    def authorization_header(self) -> dict:
        return {"Authorization": f"Bearer {self.bearer_token()}"}

    def same_principal(self, other: "AuthContext") -> bool:
        if not self._token or not other._token:
            return False
        return secrets.compare_digest(self._token, other._token)

    def __repr__(self) -> str:
        return f"AuthContext(authenticated={self.is_authenticated})"


def get_auth_context(authorization: Optional[str] = Header(default=None)) -> AuthContext:
    """
    FastAPI dependency: build an AuthContext from the incoming Authorization header.

    The token is forwarded to the backend unchanged; a missing or non-bearer
    header yields an unauthenticated context and fails on first use.
    """
    if not authorization:
        return AuthContext()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return AuthContext()
    return AuthContext(token)
