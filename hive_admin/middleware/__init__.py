"""HTTP middleware: request timeout and request ID (first added = outermost)."""

from hive_admin.middleware.request_id import RequestIDMiddleware
from hive_admin.middleware.timeout import TimeoutMiddleware

__all__ = ["RequestIDMiddleware", "TimeoutMiddleware"]
