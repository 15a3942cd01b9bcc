"""Request logging middleware.

Every request gets a short request_id in request.state (echoed back in the
ApiResponse envelope and the X-Request-ID header) and one access log line:

    INFO [POST] /api/v1/markets/7/join → 200 (23ms) wallet=3Wsd58mf… req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("bm.request")

_WALLET_PREFIX = 8


def _wallet_tag(request: Request) -> str:
    wallet = (request.headers.get("x-wallet-public-key") or "").strip()
    if not wallet:
        return "-"
    return wallet[:_WALLET_PREFIX] + "…" if len(wallet) > _WALLET_PREFIX else wallet


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "[%s] %s → %d (%.0fms) wallet=%s %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            _wallet_tag(request),
            request_id,
        )
        return response
