import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


def client_ip(request: Request) -> str:
    """First hop of x-forwarded-for, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug-level access log, enabled with REQUEST_DEBUG."""

    def __init__(self, app, logger_name: str = "whenworks.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        line = f"method={request.method} path={request.url.path} client={client_ip(request)}"
        try:
            response = await call_next(request)
        except Exception as e:
            self._logger.warning("http.error %s dur_ms=%d err=%r", line, _elapsed_ms(started), e)
            raise
        self._logger.debug("http.done %s status=%d dur_ms=%d", line, response.status_code, _elapsed_ms(started))
        return response


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
