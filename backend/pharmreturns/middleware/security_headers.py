"""
Security headers middleware.

Hardening headers go on every response. Responses under /api/ carry pricing
and credit figures, so they are also marked non-cacheable.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

API_CACHE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}


def headers_for(path: str) -> dict[str, str]:
    if path.startswith("/api/"):
        return {**SECURITY_HEADERS, **API_CACHE_HEADERS}
    return SECURITY_HEADERS


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in headers_for(request.url.path).items():
            response.headers.setdefault(header, value)
        return response
