from __future__ import annotations

import time
from typing import Optional

from fastapi import Request

from librarydesk.core.events import EventLogger
from librarydesk.core.trace import new_trace_id, trace_context


def _client_ip(request: Request) -> Optional[str]:
    return getattr(getattr(request, "client", None), "host", None)


class TraceMiddleware:
    """
    Assigns a trace id per request (or adopts X-Trace-Id), binds it to the
    trace context for everything downstream, and logs the request outcome.
    """

    def __init__(self, *, event_logger: EventLogger, logger):  # noqa: ANN001
        self.event_logger = event_logger
        self.logger = logger

    async def __call__(self, request: Request, call_next):  # noqa: ANN001
        trace_id = request.headers.get("X-Trace-Id", "")[:64] or new_trace_id()
        request.state.trace_id = trace_id
        path = request.url.path
        method = request.method
        t0 = time.time()
        with trace_context(trace_id):
            response = await call_next(request)
        elapsed_ms = int((time.time() - t0) * 1000)
        response.headers["X-Trace-Id"] = trace_id
        try:
            self.event_logger.log(
                trace_id,
                "web.request",
                {"path": path, "method": method, "status": response.status_code, "elapsed_ms": elapsed_ms, "client_host": _client_ip(request)},
            )
        except OSError as e:
            self.logger.warning(f"Event log write failed: {e}")
        return response
