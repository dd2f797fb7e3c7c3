from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from fledgely_forensics.config import settings

# The service only returns JSON and image bytes -- nothing is ever rendered.
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


def _apply_security_headers(response: Response) -> None:
    for name, value in _SECURITY_HEADERS.items():
        response.headers[name] = value


def _declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Rejects oversized bodies and adds security headers to every response.

    Watermarked screenshots must never be cached by intermediaries, hence
    ``Cache-Control: no-store``.
    """

    async def dispatch(self, request: Request, call_next):
        length = _declared_length(request)
        if length is not None and length > settings.MAX_REQUEST_BYTES:
            response: Response = JSONResponse(
                status_code=413,
                content={"detail": "Request body too large"},
            )
        else:
            response = await call_next(request)
        _apply_security_headers(response)
        return response
