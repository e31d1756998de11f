"""Security headers middleware.

Learn: Adds standard security headers to every response. The session
lives in a cookie, so on top of the usual set:
- X-Content-Type-Options: prevents MIME-type sniffing
- X-Frame-Options: prevents clickjacking of cookie-authenticated pages
- Referrer-Policy: limits referrer info leakage
- Cache-Control: no-store on auth routes and on any response that sets
  or clears a cookie, so tokens never land in a shared cache
- Strict-Transport-Security: only on HTTPS (the cookie is Secure anyway)
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, no_store_prefixes: tuple[str, ...] = ("/api/v1/auth",)):
        super().__init__(app)
        self.no_store_prefixes = no_store_prefixes

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        sets_cookie = "set-cookie" in response.headers
        if sets_cookie or request.url.path.startswith(self.no_store_prefixes):
            response.headers["Cache-Control"] = "no-store"

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
