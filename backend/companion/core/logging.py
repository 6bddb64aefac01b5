import logging
import sys
import time
import uuid
from typing import Optional

import structlog
from structlog.types import Processor

REQUEST_ID_HEADER = b"x-request-id"


def _renderer(log_format: Optional[str]) -> Processor:
    """Console output on a terminal or when asked for, JSON lines otherwise"""
    if log_format:
        use_console = log_format == "console"
    else:
        use_console = sys.stderr.isatty()
    if use_console:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(log_level: str = "INFO", log_format: Optional[str] = None) -> None:
    """Route structlog through the stdlib root logger.

    ``log_format`` is "json" or "console"; left empty the choice follows whether
    stderr is a terminal.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors: list[Processor] = [
        # request_id and user_id bound by the middleware and the auth dependency
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_user(user_id: str) -> None:
    """Tag every later log line of the current request with the caller"""
    structlog.contextvars.bind_contextvars(user_id=user_id)


def _request_id(scope) -> str:
    for name, value in scope.get("headers") or []:
        if name == REQUEST_ID_HEADER and value:
            return value.decode("latin-1")
    return uuid.uuid4().hex


class LoggingMiddleware:
    """Logs one line per request outcome and echoes an ``X-Request-ID`` header"""

    def __init__(self, app, logger_name: str = "api"):
        self.app = app
        self.logger = get_logger(logger_name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _request_id(scope)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        request_logger = self.logger.bind(
            method=scope["method"],
            path=scope["path"],
            client=(scope.get("client") or [None, None])[0]
        )
        start_time = time.time()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"] = list(message["headers"]) + [
                    (REQUEST_ID_HEADER, request_id.encode("latin-1"))
                ]
                request_logger.info(
                    "Request completed",
                    status_code=message["status"],
                    duration_ms=round((time.time() - start_time) * 1000, 1),
                )
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            request_logger.error("Request failed", error=str(exc), error_type=type(exc).__name__)
            raise
        finally:
            structlog.contextvars.clear_contextvars()


# Application loggers
security_logger = get_logger("security")
chat_logger = get_logger("chat")
llm_logger = get_logger("llm")
db_logger = get_logger("database")
auth_logger = get_logger("auth")
storage_logger = get_logger("storage")
onboarding_logger = get_logger("onboarding")
