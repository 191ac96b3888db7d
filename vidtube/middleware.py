import time
import logging
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every HTTP request and its response status/duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        method = request.method
        url = str(request.url)
        client_host = request.client.host if request.client else "unknown"

        log_msg = f"→ {method} {url}"
        range_header = request.headers.get("range")
        if range_header:
            log_msg += f" | Range: {range_header}"
        log_msg += f" | Client: {client_host}"
        logger.info(log_msg)

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"✗ {method} {url} | Error: {str(e)} | Time: {process_time:.3f}s",
                exc_info=True
            )
            raise

        process_time = time.time() - start_time
        status_code = response.status_code

        log_level = logging.INFO
        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING
        # Streaming bodies are still being sent at this point; the time covers headers only
        logger.log(log_level, f"← {method} {url} | Status: {status_code} | Time: {process_time:.3f}s")

        response.headers["X-Process-Time"] = str(process_time)
        return response
