"""Rate limiting of the hook endpoints"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from qpy_submission.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def hook_rate() -> str:
    # Read per request so the limit follows the current settings
    return f"{settings.RATE_LIMIT_PER_MINUTE}/minute"


# Decorator for hook routes; the route must take a `request: Request` argument
hook_limit = limiter.limit(hook_rate)
