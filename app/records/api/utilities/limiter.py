# app/records/api/utilities/limiter.py

from fastapi import Request
import jwt

from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config.config import settings

def get_limiter_key(request: Request) -> str:
    """
    Returns the rate limit key for a request.

    Authenticated requests are limited per user id taken from the bearer
    token; everything else falls back to the client's IP address.
    """
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer ") and settings.SECRET_KEY:
        token = auth_header.split(" ", 1)[1]
        try:
            # Only the identity is needed here; expiry is checked by get_current_user.
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM],
                options={"verify_exp": False}
            )
            user_id = payload.get("sub")
            if user_id:
                return str(user_id)
        except jwt.PyJWTError:
            pass

    return get_remote_address(request)

limiter = Limiter(
    key_func=get_limiter_key,
    storage_uri=settings.RATE_LIMITER_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)
