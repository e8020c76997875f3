"""Response hardening headers.

Implemented as a plain ASGI middleware so the live event stream passes
through chunk by chunk; only the ``http.response.start`` message is touched.
"""

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from format_poker.core.config import get_settings

# Vote counts change constantly; nothing here is worth caching
NO_STORE = "no-store, max-age=0"

EVENT_STREAM = "text/event-stream"


class SecurityHeadersMiddleware:
    """Add security headers and the catalog cache policy to every response.

    JSON responses get ``Cache-Control: no-store`` unless the endpoint set its
    own. Event streams keep the headers sse-starlette chose for them.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        hsts = get_settings().is_production

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["X-Content-Type-Options"] = "nosniff"
                headers["X-Frame-Options"] = "DENY"
                headers["Referrer-Policy"] = "no-referrer"
                if not headers.get("content-type", "").startswith(EVENT_STREAM):
                    headers.setdefault("Cache-Control", NO_STORE)
                if hsts:
                    headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
            await send(message)

        await self.app(scope, receive, send_with_headers)
