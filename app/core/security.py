"""
Security Module

Verification of session tokens issued by the identity provider.
Uses python-jose for JWT signature and expiry checks.

Token payload:
- sub: the provider's user id
- company_id: the tenant the session belongs to (claim name is configurable)
- exp / iat: expiry and issue time
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from app.config import get_settings

settings = get_settings()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed token the same way the identity provider does.

    Only used by tests, seed scripts and local tooling; production tokens
    come from the provider.
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=30))
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow()
    })
    if settings.AUTH_ISSUER:
        to_encode.setdefault("iss", settings.AUTH_ISSUER)

    return jwt.encode(
        to_encode,
        settings.AUTH_SECRET_KEY,
        algorithm=settings.AUTH_ALGORITHM
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a session token.

    Returns the payload if valid, None if invalid, expired or issued by
    someone else.
    """
    kwargs = {}
    if settings.AUTH_ISSUER:
        kwargs["issuer"] = settings.AUTH_ISSUER
    try:
        return jwt.decode(
            token,
            settings.AUTH_SECRET_KEY,
            algorithms=[settings.AUTH_ALGORITHM],
            **kwargs
        )
    except JWTError:
        return None


def extract_principal(payload: Dict[str, Any]) -> Optional[Dict[str, str]]:
    """Pull the user id and company id out of a verified payload."""
    user_id = payload.get("sub")
    company_id = payload.get(settings.AUTH_COMPANY_CLAIM)
    if not user_id or not company_id:
        return None
    return {"user_id": str(user_id), "company_id": str(company_id)}
