"""
JWT Utility Functions

Helpers for generating short-lived JWTs used for server-to-server calls to
the storage backend. These are not user tokens.

Key characteristics:
- Short-lived (TTL configured in settings)
- Scoped to one owner's file prefix
- Signed with a dedicated storage secret
- Includes explicit issuer/audience claims
"""

from __future__ import annotations

import jwt
import time
from typing import List, Dict, Any

from ..config import settings


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

SERVICE_ISSUER = "tei-viewer-server"
STORAGE_AUDIENCE = "tei-viewer-storage"


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class JWTConfigurationError(RuntimeError):
    """Raised when JWT generation cannot proceed due to configuration issues."""


# ---------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------

def _get_current_timestamp() -> int:
    """Return current UNIX timestamp in UTC as integer seconds."""
    return int(time.time())


def _validate_jwt_config() -> None:
    if not settings.storage_jwt_secret:
        raise JWTConfigurationError(
            "storage_jwt_secret is not configured. Cannot generate JWT."
        )

    if settings.jwt_ttl_seconds <= 0:
        raise JWTConfigurationError(
            f"jwt_ttl_seconds must be a positive integer; got {settings.jwt_ttl_seconds}"
        )


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def create_storage_jwt(scopes: List[str], owner_id: str | None = None) -> str:
    """
    Generate a short-lived JWT for calls to the storage backend.

    Parameters
    ----------
    scopes : List[str]
        Granted operations, e.g. ["files_read"] or ["files_write"].

    owner_id : str | None
        Restricts the token to ``files/<owner_id>/``. None for requests that
        address objects by full URL.

    Returns
    -------
    str
        Encoded JWT for an ``Authorization: Bearer <token>`` header.

    Raises
    ------
    JWTConfigurationError
        If configuration is missing or invalid.
    """
    _validate_jwt_config()

    now = _get_current_timestamp()

    payload: Dict[str, Any] = {
        "iss": SERVICE_ISSUER,
        "aud": STORAGE_AUDIENCE,
        "iat": now,
        "exp": now + settings.jwt_ttl_seconds,
        "scope": scopes,
    }
    if owner_id is not None:
        payload["owner"] = owner_id

    secret = settings.storage_jwt_secret.get_secret_value()

    try:
        token = jwt.encode(payload, secret, algorithm=settings.jwt_algo)
    except Exception as exc:
        raise JWTConfigurationError(
            f"Failed to generate JWT: {type(exc).__name__}: {str(exc)}"
        ) from exc

    return token
