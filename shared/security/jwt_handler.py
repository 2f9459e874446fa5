"""
Customer access tokens.

Tokens are minted by the hosted auth provider and signed with the project's
shared secret; this service only verifies them. create_access_token mints the
same shape (sub, aud, role) for local tooling and tests.
"""
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from shared.config import settings

if not settings.JWT_SECRET_KEY:
    raise ValueError("FATAL ERROR: JWT_SECRET_KEY is not set in the environment!")

TOKEN_TTL = timedelta(hours=1)


def create_access_token(claims: dict, ttl: timedelta = TOKEN_TTL) -> str:
    now = datetime.now(timezone.utc)
    payload = {"aud": settings.JWT_AUDIENCE, "role": "authenticated", "iat": now, **claims, "exp": now + ttl}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Claims of a valid, unexpired token; None for anything else."""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE or None,
            options={"verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except JWTError:
        return None


def user_id_from_token(token: str | None) -> str | None:
    if not token:
        return None
    claims = decode_access_token(token)
    return claims.get("sub") if claims else None
