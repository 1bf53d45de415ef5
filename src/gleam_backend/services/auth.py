"""Bearer token authentication."""

from dataclasses import dataclass
from typing import Protocol

from gleam_backend.errors import Unauthorized


class TokenVerifier(Protocol):
    """Maps an identity token to a stable user id."""

    def verify(self, token: str) -> str | None:
        """Return the user id for a valid token, else None."""


@dataclass
class AuthService:
    """Resolves callers from bearer tokens."""

    verifier: TokenVerifier

    def authenticate(self, token: str | None) -> str:
        """Return the caller's user id or raise `Unauthorized`."""
        if not token or not token.strip():
            raise Unauthorized()
        user_id = self.verifier.verify(token.strip())
        if not user_id:
            raise Unauthorized()
        return user_id
