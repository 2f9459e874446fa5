"""
Request guards.

Customers authenticate with the auth provider's bearer token. Admin tooling and
service-to-service calls (shipments, invoices, status changes) send the shared
X-Internal-API-Key header instead.
"""
import secrets
import warnings

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from shared.config import settings
from .jwt_handler import user_id_from_token

INTERNAL_API_KEY = settings.INTERNAL_API_KEY
if not INTERNAL_API_KEY:
    warnings.warn(
        "INTERNAL_API_KEY is not set. Using an insecure default. Set this env var in production!",
        stacklevel=2,
    )
    INTERNAL_API_KEY = "insecure-default-change-me"

bearer_scheme = HTTPBearer(auto_error=False)
internal_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)


def verify_api_key(provided_key: str | None) -> bool:
    if not provided_key:
        return False
    # Constant-time; bytes so non-ASCII input is compared instead of raising
    return secrets.compare_digest(provided_key.encode(), INTERNAL_API_KEY.encode())


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """The customer's user id (the token's sub claim)."""
    user_id = user_id_from_token(credentials.credentials if credentials else None)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.user_id = user_id
    return user_id


async def verify_internal_api_key(api_key: str | None = Depends(internal_key_header)) -> bool:
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header",
        )
    return True
