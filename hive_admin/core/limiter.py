"""Rate limiter instance for SlowAPI.

Shared so main (app.state.limiter) and endpoint modules use the same
instance without circular imports.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

WRITE_ENDPOINT_LIMIT = "120/minute"

limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
