"""Per-client rate limits (slowapi), keyed on the remote address."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import settings
from core.exceptions import ErrorCode

READ_LIMIT = settings.rate_limit_read
WRITE_LIMIT = settings.rate_limit_write
BULK_ACTION_LIMIT = settings.rate_limit_bulk

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a 429 in the same error shape as application errors."""
    limit = exc.detail if isinstance(exc, RateLimitExceeded) else str(exc)
    return JSONResponse(
        status_code=429,
        content={
            "error_code": ErrorCode.RATE_LIMIT_EXCEEDED.value,
            "message": "Too many requests, slow down and retry shortly",
            "details": {"limit": limit, "path": request.url.path},
        },
    )
