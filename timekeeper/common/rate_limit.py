"""Rate limiting configuration using slowapi.

Provides a module-level Limiter instance imported by routers for
per-endpoint limits (punches, verification codes) and wired into the
FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

PUNCH_RATE_LIMIT = "10/minute"
VERIFICATION_RATE_LIMIT = "5/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
)
