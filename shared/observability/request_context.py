import uuid

import structlog
from fastapi import Request


def trace_id_middleware(service_name: str):
    """
    Builds an HTTP middleware that tags every request with "<service>-<uuid4>".

    The id is bound into structlog's contextvars (so every log line of the request
    carries it), kept on request.state for error bodies and echoed as X-Trace-Id.
    """
    async def bind_trace_id(request: Request, call_next):
        trace_id = f"{service_name}-{uuid.uuid4()}"
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=trace_id)
        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    return bind_trace_id


def get_trace_id(request: Request) -> str | None:
    return getattr(request.state, "trace_id", None)
