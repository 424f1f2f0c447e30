"""Security Middleware

Boundary protections applied to every request: a per-client request ceiling
and a fixed set of security response headers.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.exceptions import RateLimitError
from core.logging_config import get_logger
from core.middleware import create_error_response
from core.rate_limiter import MemoryRateLimiter

logger = get_logger(__name__)

# Health probes are never throttled
EXEMPT_PATHS = {"/health", "/health/detailed"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiting middleware"""

    def __init__(self, app, limiter: MemoryRateLimiter, rule_key: str = "default"):
        super().__init__(app)
        self.limiter = limiter
        self.rule_key = rule_key

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = self.get_client_ip(request)
        allowed, info = self.limiter.check_rate_limit(client_ip, self.rule_key)

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {client_ip} on {request.url.path}",
                extra={"client_ip": client_ip, "retry_after": info["retry_after"]},
            )
            error = RateLimitError(info["retry_after"])
            return create_error_response(
                type(error).__name__,
                error.error_code,
                error.message,
                error.status_code,
                details=error.details,
                headers={
                    "Retry-After": str(info["retry_after"]),
                    "RateLimit-Limit": str(info["limit"]),
                    "RateLimit-Remaining": "0",
                    "RateLimit-Reset": str(info["retry_after"]),
                },
            )

        response = await call_next(request)

        if info.get("limit") is not None:
            response.headers["RateLimit-Limit"] = str(info["limit"])
            response.headers["RateLimit-Remaining"] = str(info["remaining"])
        return response

    def get_client_ip(self, request: Request) -> str:
        """Get client IP address"""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Security headers middleware"""

    def __init__(self, app):
        super().__init__(app)
        self.security_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
            "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
            "Referrer-Policy": "no-referrer",
            "Cross-Origin-Resource-Policy": "same-origin",
            "X-DNS-Prefetch-Control": "off",
        }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        for header, value in self.security_headers.items():
            response.headers.setdefault(header, value)

        return response
