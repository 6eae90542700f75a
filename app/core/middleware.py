from typing import Iterable, List, Tuple

# Applied to every HTTP response
SECURITY_HEADERS: List[Tuple[bytes, bytes]] = [
    (b"X-Content-Type-Options", b"nosniff"),
    (b"X-Frame-Options", b"DENY"),
    (b"X-XSS-Protection", b"1; mode=block"),
    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
]


class SecurityHeadersMiddleware:
    """Pure ASGI middleware; streaming responses pass through untouched."""

    def __init__(self, app, headers: Iterable[Tuple[bytes, bytes]] = SECURITY_HEADERS):
        self.app = app
        self.headers = list(headers)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                existing = {name.lower() for name, _ in message.get("headers", [])}
                message["headers"] = list(message.get("headers", [])) + [
                    (name, value) for name, value in self.headers if name.lower() not in existing
                ]
            await send(message)

        await self.app(scope, receive, send_wrapper)
