"""Request ID middleware (raw ASGI).

Forwards a well-formed client X-Request-ID or generates one, exposes it on
request.state.request_id, and echoes it on the response.
"""

import re
import uuid
from collections.abc import Callable

REQUEST_ID_MAX_LENGTH = 64
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,%d}" % REQUEST_ID_MAX_LENGTH)


def header_value(scope: dict, name: str) -> str | None:
    """Return the first value of header name (case-insensitive), or None."""
    wanted = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            return value.decode("utf-8", errors="replace")
    return None


def sanitize_request_id(raw: str | None) -> str:
    """Keep raw only if it is safe to log; otherwise mint a new UUID4."""
    candidate = (raw or "").strip()
    if _REQUEST_ID_RE.fullmatch(candidate):
        return candidate
    return str(uuid.uuid4())


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = sanitize_request_id(header_value(scope, header_name))
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_name.lower().encode(), request_id.encode()),
                ]
            await send(message)

        await app(scope, receive, send_with_id)

    return asgi_app
