from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ..core.cache import RateLimiter
from ..core.config import CORS_ORIGINS, RATE_LIMIT_DEFAULT_PER_MINUTE, RATE_LIMIT_ENABLED

rate_limiter = RateLimiter()


def add_cors_headers(response: JSONResponse, request: Request) -> JSONResponse:
    """Add CORS headers to error responses."""
    origin = request.headers.get("origin", "")
    if origin in CORS_ORIGINS or "*" in CORS_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        limiter: RateLimiter = rate_limiter,
        limit: int = RATE_LIMIT_DEFAULT_PER_MINUTE,
        enabled: bool = RATE_LIMIT_ENABLED,
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.limit = limit
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        # Preflight requests are never counted
        if not self.enabled or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        allowed = self.limiter.check(
            f"{client_ip}:{request.url.path}",
            self.limit,
            window_seconds=60,
        )
        if not allowed:
            response = JSONResponse(
                status_code=429,
                content={"detail": "Too many requests"},
            )
            return add_cors_headers(response, request)

        return await call_next(request)
