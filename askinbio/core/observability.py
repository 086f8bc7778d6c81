"""Observability setup: logging, tracing, metrics, and error tracking."""

import logging
import time
import uuid
from contextvars import ContextVar

import sentry_sdk
import structlog
from fastapi import FastAPI, Request, Response
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from askinbio.core.config import get_settings

settings = get_settings()

# Set per request by RequestIDMiddleware; read by the error handlers
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# -----------------------------------------------------------------------------
# HTTP metrics
# -----------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# -----------------------------------------------------------------------------
# Click path metrics
# -----------------------------------------------------------------------------

CLICKS_RECORDED = Counter(
    "clicks_recorded_total",
    "Click events persisted",
)

CLICKS_FAILED = Counter(
    "clicks_failed_total",
    "Click events that could not be persisted",
    ["reason"],  # not_found, timeout, datastore
)

# One UPDATE plus one INSERT; buckets start at 1 ms
CLICK_RECORD_LATENCY = Histogram(
    "click_record_duration_seconds",
    "Time spent persisting a click event",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# -----------------------------------------------------------------------------
# Dashboard and auth metrics
# -----------------------------------------------------------------------------

LINK_OPERATIONS = Counter(
    "link_operations_total",
    "Link changes made from the dashboard",
    ["operation"],  # create, update, delete, reorder, toggle
)

SESSION_REFRESHES = Counter(
    "session_refreshes_total",
    "Near-expiry session refresh attempts",
    ["outcome"],  # success, failed
)


def get_request_id() -> str | None:
    """Request ID of the request being served, or None outside one."""
    return request_id_ctx.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID for log correlation.

    An ``X-Request-ID`` sent by a proxy is reused, otherwise one is minted.
    The ID is echoed back in the response header and bound into the structlog
    context, so every log line of the request carries it.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)

        # Drop anything bound by the previous request on this task
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


def _normalize_endpoint(path: str) -> str:
    """Collapse path parameters to keep metric label cardinality low."""
    if path.startswith("/api/v1/links/"):
        return "/api/v1/links/{id}"
    if path.startswith("/api/v1/themes/"):
        return "/api/v1/themes/{id}"
    if path.startswith("/api/v1/profiles/"):
        return "/api/v1/profiles/{username}"
    return path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its timing and feed the HTTP metrics."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        logger = structlog.get_logger()
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent"),
        )

        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # 5xx at error level
        log = logger.error if response.status_code >= 500 else logger.info
        log(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        endpoint = _normalize_endpoint(request.url.path)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


def configure_structlog() -> None:
    """Configure structlog: JSON lines in production, console output in debug."""
    renderer = structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # structlog hands finished lines to stdlib logging, which only prints them
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if settings.debug else logging.INFO,
    )


def setup_opentelemetry(app: FastAPI) -> None:
    """Export request traces over OTLP when an endpoint is configured."""
    if not settings.otlp_endpoint:
        structlog.get_logger().info("OpenTelemetry disabled (no OTLP endpoint configured)")
        return

    resource = Resource(
        attributes={
            SERVICE_NAME: "askinbio-api",
            SERVICE_VERSION: settings.app_version,
        }
    )
    provider = TracerProvider(resource=resource)

    # Plaintext gRPC to a collector sidecar
    exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)

    structlog.get_logger().info(
        "OpenTelemetry configured",
        otlp_endpoint=settings.otlp_endpoint,
        service_version=settings.app_version,
    )


def setup_sentry() -> None:
    """Report unhandled errors to Sentry when a DSN is configured."""
    if not settings.sentry_dsn:
        structlog.get_logger().info("Sentry disabled (no DSN configured)")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
        release=f"askinbio@{settings.app_version}",
        traces_sample_rate=0.1,
        profiles_sample_rate=0.1,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        # Click context carries visitor IPs and User-Agents
        send_default_pii=False,
    )

    structlog.get_logger().info("Sentry configured")


def get_prometheus_metrics() -> bytes:
    """Prometheus text exposition of the default registry."""
    return generate_latest()


def setup_observability(app: FastAPI) -> None:
    """Wire logging, Sentry, tracing and the ``/metrics`` endpoint into ``app``.

    The request ID and request logging middlewares are added by the app
    factory, since their order relative to the other middlewares matters.
    """
    # Logging first so the integrations below log through structlog
    configure_structlog()

    setup_sentry()
    setup_opentelemetry(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus scrape target."""
        return Response(
            content=get_prometheus_metrics(),
            media_type="text/plain; charset=utf-8",
        )

    structlog.get_logger().info("Observability setup complete")


# Recording helpers used by the services and routes
def record_click(duration: float) -> None:
    CLICKS_RECORDED.inc()
    CLICK_RECORD_LATENCY.observe(duration)


def record_click_failed(reason: str) -> None:
    CLICKS_FAILED.labels(reason=reason).inc()


def record_link_operation(operation: str) -> None:
    """Count a dashboard change to a link."""
    LINK_OPERATIONS.labels(operation=operation).inc()


def record_session_refresh(outcome: str) -> None:
    SESSION_REFRESHES.labels(outcome=outcome).inc()
