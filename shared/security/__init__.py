from .jwt_handler import create_access_token, decode_access_token, user_id_from_token
from .dependencies import get_current_user, verify_api_key, verify_internal_api_key
from .rate_limiter import limiter, user_id_or_ip, webhook_source_key, client_ip

__all__ = [
    "create_access_token",
    "decode_access_token",
    "user_id_from_token",
    "get_current_user",
    "verify_api_key",
    "verify_internal_api_key",
    "limiter",
    "user_id_or_ip",
    "webhook_source_key",
    "client_ip",
]
