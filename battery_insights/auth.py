"""
Authentication and request middleware for the Battery Insights service.

Handles API key validation, request id propagation and security headers.
"""
import logging
import secrets
import uuid

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from battery_insights.services.error_handler import unauthorized_error

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"

api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


async def require_api_key(
    request: Request,
    provided_key: str = Security(api_key_header),
) -> str:
    """
    Check the x-api-key header against the configured API key.

    Args:
        request: FastAPI request object
        provided_key: Value of the x-api-key header, if any

    Returns:
        The accepted API key

    Raises:
        ApiError: 401 if no key is configured, or the key is missing or wrong
    """
    configured_key = request.app.state.settings.api_key
    if not configured_key:
        logger.error("API_KEY environment variable is not configured")
        raise unauthorized_error()

    if not provided_key or not secrets.compare_digest(provided_key, configured_key):
        raise unauthorized_error("Invalid API key")

    return provided_key


class RequestIdMiddleware:
    """Middleware that propagates or assigns a request id header."""

    def __init__(self, app, header_name: str = "x-request-id"):
        self.app = app
        self.header_name = header_name.lower()

    async def __call__(self, scope, receive, send):
        """
        ASGI middleware that reuses the caller's request id or generates one.

        The id is stored in the request state and echoed on the response.
        """
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        header_key = self.header_name.encode("latin-1")
        request_id = None
        for name, value in scope.get("headers", []):
            if name.lower() == header_key:
                request_id = value.decode("latin-1")
                break
        if not request_id:
            request_id = str(uuid.uuid4())

        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((header_key, request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        return await self.app(scope, receive, send_with_request_id)


SECURITY_HEADERS = (
    ("x-content-type-options", "nosniff"),
    ("x-frame-options", "SAMEORIGIN"),
    ("referrer-policy", "no-referrer"),
    ("strict-transport-security", "max-age=15552000; includeSubDomains"),
    ("cross-origin-opener-policy", "same-origin"),
    ("cross-origin-resource-policy", "same-origin"),
    ("x-dns-prefetch-control", "off"),
    ("x-download-options", "noopen"),
    ("x-permitted-cross-domain-policies", "none"),
    ("origin-agent-cluster", "?1"),
)


class SecurityHeadersMiddleware:
    """Middleware that adds standard security headers to every HTTP response."""

    def __init__(self, app, headers=SECURITY_HEADERS):
        self.app = app
        self.headers = [(name.encode("latin-1"), value.encode("latin-1")) for name, value in headers]

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        async def send_with_security_headers(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                present = {name.lower() for name, _ in headers}
                headers.extend(header for header in self.headers if header[0] not in present)
                message["headers"] = headers
            await send(message)

        return await self.app(scope, receive, send_with_security_headers)
