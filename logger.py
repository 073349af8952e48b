import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str = "lessons_shop", level: str = "INFO") -> logging.Logger:
    """Configure the application logger once and return it."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers on reload
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One line per request: METHOD path status - duration ms."""

    def __init__(self, app, logger: logging.Logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        self.logger.info(
            "%s %s %s - %.3f ms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response
