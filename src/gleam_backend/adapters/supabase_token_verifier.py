"""Supabase Auth token verification."""

import logging
from dataclasses import dataclass

import httpx
from supabase import Client
from supabase_auth.errors import AuthApiError, AuthError

from gleam_backend.errors import StorageError
from gleam_backend.services.auth import TokenVerifier

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseTokenVerifier(TokenVerifier):
    """Resolves access tokens through Supabase Auth."""

    client: Client

    def verify(self, token: str) -> str | None:
        """Return the Supabase user id for a token, or None if it is rejected.

        Auth server outages raise `StorageError` so callers see a retryable
        500 rather than a 401.
        """
        try:
            response = self.client.auth.get_user(token)
        except AuthApiError as exc:
            if exc.status is not None and exc.status >= 500:
                _logger.error(
                    "Supabase Auth unavailable", extra={"status": exc.status}
                )
                raise StorageError("verify_token") from exc
            _logger.warning("Token rejected", extra={"status": exc.status})
            return None
        except (AuthError, httpx.HTTPError) as exc:
            _logger.error("Supabase Auth call failed", extra={"error": str(exc)})
            raise StorageError("verify_token") from exc
        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            return None
        return str(user.id)
