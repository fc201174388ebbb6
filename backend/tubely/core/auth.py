"""
Tubely Authentication Module

This module implements the identity verification step of every upload:

- Bearer token extraction from the Authorization header
- HS256 JWT validation (signature, expiry, issuer) against the server secret
- Access token issuance in the same format, for local development and tests
- A FastAPI dependency that resolves the caller identity for protected routes

The caller identity is the UUID carried in the token's ``sub`` claim. It is
recomputed for each request and never persisted. Validation has no side
effects: no user lookup, no session store.

Usage:
    ```python
    from uuid import UUID
    from fastapi import Depends
    from tubely.core.auth import get_current_user_id

    @router.post("/videos/{video_id}/thumbnail")
    async def upload_thumbnail(user_id: UUID = Depends(get_current_user_id)):
        ...
    ```
"""

import logging

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from uuid import UUID

from fastapi import Depends, Request
from jose import JWTError, jwt

from tubely.config import Settings, get_app_settings
from tubely.core.errors import UnauthenticatedError


# Configure module logger
logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


# =============================================================================
# Token Extraction
# =============================================================================


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """
    Extract the bearer token from request headers.

    Args:
        headers: Request headers. Lookup of ``Authorization`` must be
            case-insensitive, as it is for Starlette ``Headers``.

    Returns:
        str: The raw token string.

    Raises:
        UnauthenticatedError: If the header is missing, uses another scheme,
            or carries no token.
    """
    authorization = headers.get("authorization")
    if not authorization:
        raise UnauthenticatedError("Couldn't find JWT")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token or " " in token:
        raise UnauthenticatedError("Malformed authorization header")

    return token


# =============================================================================
# Local JWT Functions
# =============================================================================


def create_access_token(
    user_id: UUID,
    settings: Settings,
    expires_in: timedelta | None = None,
) -> str:
    """
    Create an access token for the given user.

    Token claims:
    - iss: The configured issuer (``tubely-access`` by default)
    - sub: User ID as a UUID string
    - iat: Issued at timestamp
    - exp: Expiration timestamp

    Args:
        user_id: The user's unique identifier.
        settings: Settings instance containing the secret, algorithm and issuer.
        expires_in: Token lifetime. Defaults to ``jwt_expiration_hours``.
            A negative value produces an already expired token.

    Returns:
        str: The encoded JWT token string.
    """
    now = datetime.now(UTC)
    if expires_in is None:
        expires_in = timedelta(hours=settings.jwt_expiration_hours)

    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_in,
    }

    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    logger.debug("Created access token for user: %s", user_id)
    return token


def validate_jwt(token: str, settings: Settings) -> UUID:
    """
    Validate an access token and return the caller identity.

    Verifies the signature with the server secret, the expiry and the issuer,
    then parses the subject as a UUID.

    Args:
        token: The JWT token string to validate.
        settings: Settings instance containing the secret, algorithm and issuer.

    Returns:
        UUID: The user ID carried in the ``sub`` claim.

    Raises:
        UnauthenticatedError: If the token is invalid, expired, issued by
            someone else, or carries no usable subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require_exp": True},
        )
    except jwt.ExpiredSignatureError as e:
        logger.warning("Access token has expired")
        raise UnauthenticatedError("Couldn't validate JWT") from e
    except JWTError as e:
        logger.warning("Access token validation failed: %s", str(e))
        raise UnauthenticatedError("Couldn't validate JWT") from e

    subject = payload.get("sub")
    if not subject:
        logger.warning("Access token missing 'sub' claim")
        raise UnauthenticatedError("Couldn't validate JWT")

    try:
        return UUID(str(subject))
    except ValueError as e:
        logger.warning("Access token subject is not a UUID: %s", subject)
        raise UnauthenticatedError("Couldn't validate JWT") from e


# =============================================================================
# Authentication Dependencies
# =============================================================================


async def get_current_user_id(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> UUID:
    """
    Resolve the caller identity for a protected route.

    Args:
        request: The incoming request carrying the Authorization header.
        settings: Application settings (injected via FastAPI dependency).

    Returns:
        UUID: The authenticated user's ID.

    Raises:
        UnauthenticatedError: If no valid bearer token is presented.
    """
    token = get_bearer_token(request.headers)
    return validate_jwt(token, settings)
