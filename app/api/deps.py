"""Request-scoped dependencies: caller identity resolution."""
import logging
from typing import Optional

from authlib.jose import JoseError, JsonWebToken
from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.services.errors import UnauthenticatedError

logger = logging.getLogger(__name__)


def get_caller_id(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """
    Resolve the verified caller id for the request.

    The auth provider issues signed bearer tokens; the caller id is the
    token's `sub` claim. Returns None when the request is unauthenticated,
    including when the token is malformed, expired or signed with the
    wrong key.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    if not settings.AUTH_SECRET_KEY:
        logger.warning("Bearer token received but AUTH_SECRET_KEY is not configured")
        return None

    token = auth_header.split(" ", 1)[1].strip()
    claims_options = {"sub": {"essential": True}}
    if settings.AUTH_ISSUER:
        claims_options["iss"] = {"essential": True, "value": settings.AUTH_ISSUER}

    try:
        jwt = JsonWebToken(settings.AUTH_ALGORITHMS)
        claims = jwt.decode(token, settings.AUTH_SECRET_KEY, claims_options=claims_options)
        claims.validate()
    except (JoseError, ValueError) as e:
        logger.warning(f"Rejected bearer token: {e}")
        return None

    return str(claims["sub"])


def require_caller_id(caller_id: Optional[str] = Depends(get_caller_id)) -> str:
    """Like get_caller_id, but fail with 401 when there is no caller."""
    if not caller_id:
        raise UnauthenticatedError("Authentication required")
    return caller_id
