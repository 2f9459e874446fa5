from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from .jwt_handler import user_id_from_token


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop (the platform proxy appends to it), else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request) or "unknown"


def user_id_or_ip(request: Request) -> str:
    """Budget signed-in customers per user id, everyone else per IP."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer":
        user_id = user_id_from_token(token.strip())
        if user_id:
            return f"user:{user_id}"
    return f"ip:{client_ip(request)}"


def webhook_source_key(request: Request) -> str:
    """Payment providers are unauthenticated callers; budget them per source IP."""
    return f"webhook-{client_ip(request)}"


limiter = Limiter(key_func=user_id_or_ip)
