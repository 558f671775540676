"""Rate limiting using slowapi.

A module-level Limiter keyed on client IP, wired into the app in main.py.
Heavy endpoints such as the employee import add their own
``@limiter.limit`` on top of the default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from hrdesk.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
