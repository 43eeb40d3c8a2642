"""
Per-client request limiting for the API routes.

Clients are keyed by remote address. Counters live in process memory unless
RATE_LIMIT_STORAGE_URI points at a shared store such as redis://.
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config import Config


def default_rate_limit() -> str:
    # Evaluated per request so the budget follows Config
    return f"{Config.RATE_LIMIT_REQUESTS} per {Config.RATE_LIMIT_WINDOW_SECONDS} seconds"


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[default_rate_limit],
    headers_enabled=True,
    storage_uri=Config.RATE_LIMIT_STORAGE_URI,
)


@limiter.request_filter
def rate_limit_disabled() -> bool:
    return not Config.RATE_LIMIT_ENABLED
