import logging
from dataclasses import dataclass
from typing import Optional

from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt

from .config import AUTH_JWT_ALGORITHM, AUTH_JWT_AUDIENCE, AUTH_JWT_SECRET
from .domain.scheduling.errors import AuthenticationRequired

logger = logging.getLogger(__name__)

# auto_error=False so handlers can answer with their own JSON envelope
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller identity resolved from a bearer token"""

    user_id: str
    email: Optional[str] = None


def verify_access_token(token: str) -> Principal:
    """
    Verify an HS256 access token issued by the auth backend.
    The 'sub' claim is the stable user identity linked to Customer.auth_user_id.
    """
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise AuthenticationRequired("Invalid token format. Expected a valid JWT token.")

    options = {"verify_aud": AUTH_JWT_AUDIENCE is not None}
    try:
        payload = jose_jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=[AUTH_JWT_ALGORITHM],
            audience=AUTH_JWT_AUDIENCE,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"⚠️ Token verification failed: {e}")
        raise AuthenticationRequired("Invalid or expired session") from e

    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise AuthenticationRequired("Invalid token claims")

    logger.debug(f"✅ Token verified for user: {user_id}")
    return Principal(user_id=str(user_id), email=payload.get("email"))


def resolve_principal(
    credentials: Optional[HTTPAuthorizationCredentials], required: bool = True
) -> Optional[Principal]:
    """
    Resolve the caller from bearer credentials.

    Called inside the request handlers (not as a dependency) so that
    authentication failures are answered with the endpoint's own JSON envelope.
    """
    if not credentials or not credentials.credentials:
        if required:
            logger.warning("⚠️ No credentials provided")
            raise AuthenticationRequired("Authentication required")
        return None
    return verify_access_token(credentials.credentials)
