"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from askinbio.core.config import get_settings

settings = get_settings()


def get_real_client_ip(request: Request) -> str:
    """Get the real client IP address, handling proxies.

    Checks X-Forwarded-For and X-Real-IP headers before falling back
    to the direct client address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs: client, proxy1, proxy2
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=["1000/hour"],
    storage_uri=settings.rate_limit_storage_uri,  # redis:// in production
    strategy="fixed-window",
)

# Click tracking is on the public profile hot path
RATE_LIMIT_TRACK_CLICK = "600/minute"

# Sign-in: 5 attempts per 15 minutes per IP
RATE_LIMIT_SIGN_IN = "5 per 15 minutes"

# Sign-up is stricter
RATE_LIMIT_SIGN_UP = "3 per 15 minutes"

# Password recovery emails
RATE_LIMIT_PASSWORD_RESET = "5/hour"

# General API endpoints - moderate limit
RATE_LIMIT_API = "100/minute"
