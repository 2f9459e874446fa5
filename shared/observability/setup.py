"""
Process-wide observability for the cluster app: JSON logs through structlog,
Prometheus on /metrics and, when a collector is configured, OpenTelemetry spans
for inbound requests and outbound provider calls.
"""
import logging
import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from shared.config import settings

logger = structlog.get_logger(__name__)


def add_span_context(logger, log_method, event_dict):
    """OTel ids sit next to our own request trace_id, they never replace it."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["otel_trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def configure_logging(level: str = settings.LOG_LEVEL):
    # One JSON object per line: {timestamp, level, trace_id, message, ...fields}
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            add_span_context,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str, endpoint: str = settings.OTLP_ENDPOINT):
    if not endpoint:
        logger.info("Tracing disabled", reason="OTLP_ENDPOINT not set")
        return

    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name, "deployment.environment": settings.ENVIRONMENT})
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics,health")
    HTTPXClientInstrumentor().instrument()
    logger.info("Tracing enabled", endpoint=endpoint)


def configure_metrics(app: FastAPI):
    # Domain counters from metrics.py share the default registry and land on the same endpoint
    Instrumentator(
        should_group_status_codes=False,
        excluded_handlers=["/metrics", ".*/health"],
    ).instrument(app).expose(app, include_in_schema=False)


def setup_observability(app: FastAPI, service_name: str):
    """Call once, on the outermost app: the tracer provider and /metrics are process-wide."""
    configure_logging()
    configure_tracing(app, service_name)
    configure_metrics(app)
