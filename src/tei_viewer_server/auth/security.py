"""
Identity Token Verification

This module verifies bearer tokens issued to the viewer frontend by the
external auth provider and turns them into a `UserContext`.

Security Model
--------------
- Tokens are HS256-signed with `auth_jwt_secret`.
- Issuer, audience, expiry and subject are mandatory.
- Outbound service tokens for the storage backend use a different secret
  (see `jwt_utils`).
"""

from __future__ import annotations

import jwt

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from .models import UserContext


# ---------------------------------------------------------------------
# Security Scheme
# ---------------------------------------------------------------------

security = HTTPBearer(auto_error=True)


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class JWTVerificationError(RuntimeError):
    """Raised internally when token verification cannot be configured."""


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _validate_jwt_config() -> None:
    if not settings.auth_jwt_secret:
        raise JWTVerificationError("Missing auth_jwt_secret in configuration.")
    if not settings.jwt_algo:
        raise JWTVerificationError("Missing jwt_algo in configuration.")


def _decode_identity_token(token: str) -> dict:
    """
    Decode and validate an identity token.

    Raises
    ------
    Various JWT-related exceptions, which the public wrapper handles.
    """
    _validate_jwt_config()

    return jwt.decode(
        token,
        settings.auth_jwt_secret.get_secret_value(),
        algorithms=[settings.jwt_algo],
        audience=settings.auth_jwt_audience,
        issuer=settings.auth_jwt_issuer,
        options={
            "require": ["iss", "aud", "iat", "exp", "sub"],
        },
    )


# ---------------------------------------------------------------------
# Public Authentication Dependency
# ---------------------------------------------------------------------

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(security),
) -> UserContext:
    """
    Verify the caller's identity token and construct a UserContext.

    Expected claims:
      - iss / aud: configured issuer and audience
      - sub: user identifier
      - name, email: optional profile fields

    Raises
    ------
    HTTPException(401) for invalid or expired tokens.
    """
    token = creds.credentials

    try:
        payload = _decode_identity_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired.",
        )
    except jwt.InvalidAudienceError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token audience.",
        )
    except jwt.InvalidIssuerError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token issuer.",
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or malformed token.",
        )
    except JWTVerificationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT verification configuration error.",
        )

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token 'sub' claim must be a non-empty string.",
        )

    return UserContext(
        user_id=user_id,
        display_name=payload.get("name"),
        email=payload.get("email"),
    )
