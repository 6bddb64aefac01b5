import re
import time
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from fastapi import Response
from companion.core.logging import get_logger

logger = get_logger("monitoring")

# Create a custom registry for better control
REGISTRY = CollectorRegistry()

# HTTP Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently in progress',
    registry=REGISTRY
)

# Application Metrics
entity_totals = Gauge(
    'entities_total',
    'Number of rows per entity table',
    ['entity'],
    registry=REGISTRY
)

llm_requests_total = Counter(
    'llm_requests_total',
    'Total requests to the completion API',
    ['kind', 'status'],
    registry=REGISTRY
)

llm_request_duration_seconds = Histogram(
    'llm_request_duration_seconds',
    'Completion API request duration in seconds',
    ['kind'],
    registry=REGISTRY
)

image_uploads_total = Counter(
    'image_uploads_total',
    'Image uploads by outcome',
    ['source', 'status'],
    registry=REGISTRY
)

storage_compensations_total = Counter(
    'storage_compensations_total',
    'Stored objects removed after a failed metadata insert',
    ['status'],
    registry=REGISTRY
)

# Database Metrics
database_connections = Gauge(
    'database_connections_active',
    'Active database connections',
    registry=REGISTRY
)

database_queries_total = Counter(
    'database_queries_total',
    'Total database queries',
    ['operation'],
    registry=REGISTRY
)

database_query_duration_seconds = Histogram(
    'database_query_duration_seconds',
    'Database query duration in seconds',
    ['operation'],
    registry=REGISTRY
)

# Authentication Metrics
auth_attempts_total = Counter(
    'auth_attempts_total',
    'Total authentication attempts',
    ['status'],
    registry=REGISTRY
)

# Error Metrics
errors_total = Counter(
    'errors_total',
    'Total application errors',
    ['error_type', 'endpoint'],
    registry=REGISTRY
)

_ID_SEGMENT = r'[0-9a-fA-F-]{8,}'


class MetricsMiddleware:
    """Middleware to collect HTTP metrics"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        path = scope["path"]

        # Skip metrics collection for metrics endpoint itself
        if path == "/metrics":
            await self.app(scope, receive, send)
            return

        normalized_path = self._normalize_path(path)

        start_time = time.time()
        http_requests_in_progress.inc()

        status_code = 500  # Default to error

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            errors_total.labels(
                error_type=type(e).__name__,
                endpoint=normalized_path
            ).inc()
            logger.error("Request error", path=path, error=str(e))
            raise
        finally:
            duration = time.time() - start_time
            http_requests_in_progress.dec()

            http_requests_total.labels(
                method=method,
                endpoint=normalized_path,
                status_code=status_code
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=normalized_path
            ).observe(duration)

    def _normalize_path(self, path: str) -> str:
        """Normalize path for metrics to avoid cardinality explosion"""
        for resource in ("chats", "ai-models", "workspaces"):
            path = re.sub(rf'/{resource}/{_ID_SEGMENT}', f'/{resource}/{{id}}', path)
        return path


def record_llm_request(duration: float, success: bool = True, kind: str = "chat"):
    """Record completion API request metrics"""
    status = "success" if success else "error"
    llm_requests_total.labels(kind=kind, status=status).inc()
    llm_request_duration_seconds.labels(kind=kind).observe(duration)


def record_image_upload(source: str, success: bool = True):
    """Record an image upload outcome (source: upload or generated)"""
    status = "success" if success else "error"
    image_uploads_total.labels(source=source, status=status).inc()


def record_storage_compensation(success: bool = True):
    status = "removed" if success else "failed"
    storage_compensations_total.labels(status=status).inc()


def record_auth_attempt(success: bool = True):
    """Record authentication attempt"""
    status = "success" if success else "failure"
    auth_attempts_total.labels(status=status).inc()


def record_database_operation(operation: str, duration: float):
    """Record database operation metrics"""
    database_queries_total.labels(operation=operation).inc()
    database_query_duration_seconds.labels(operation=operation).observe(duration)


def update_application_metrics(counts: dict):
    """Update per-entity row gauges"""
    for entity, count in counts.items():
        entity_totals.labels(entity=entity).set(count)


async def get_metrics() -> Response:
    """Endpoint to expose Prometheus metrics"""
    try:
        metrics_data = generate_latest(REGISTRY)
        return Response(
            content=metrics_data,
            media_type=CONTENT_TYPE_LATEST
        )
    except Exception as e:
        logger.error("Failed to generate metrics", error=str(e))
        return Response(
            content="Error generating metrics",
            status_code=500
        )


class DatabaseMetricsCollector:
    """Collect database-related metrics"""

    @staticmethod
    async def collect_from_db(db_session) -> dict:
        """Count rows per entity and publish them as gauges"""
        from companion.models import User, Workspace, AIModel, Chat, Message, Image

        counts = {}
        try:
            for entity in (User, Workspace, AIModel, Chat, Message, Image):
                counts[entity.__tablename__] = db_session.query(entity).count()
            update_application_metrics(counts)
        except Exception as e:
            logger.error("Failed to collect database metrics", error=str(e))
        return counts


# Health check metrics
health_check_status = Gauge(
    'health_check_status',
    'Health check status (1 = healthy, 0 = unhealthy)',
    ['service'],
    registry=REGISTRY
)


def update_health_status(service: str, is_healthy: bool):
    """Update health status for a service"""
    health_check_status.labels(service=service).set(1 if is_healthy else 0)
