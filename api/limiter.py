"""
api/limiter.py -- slowapi rate limiter construction.

One Limiter is built per application in create_app() and attached to
app.state.limiter, where SlowAPIMiddleware looks for it. The default limit
(Settings.rate_limit, e.g. "100/900 seconds") applies to every route, keyed
by client IP.

Building it per app rather than at import time keeps the in-memory counters
scoped to one application instance, so separate apps (one per test, for
example) never share hit counts.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import Settings

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later"


def build_limiter(settings: Settings) -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        storage_uri="memory://",
    )
