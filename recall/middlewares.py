import logging
import time

from fastapi import Request

logger = logging.getLogger(__name__)


def log_request(method: str, path: str) -> None:
    """Simple request logging"""
    logger.info(f"{method} {path}")


def log_error(error: str, method: str, path: str) -> None:
    """Simple error logging"""
    logger.error(f"Error in {method} {path}: {error}")


async def request_logging_middleware(request: Request, call_next):
    log_request(request.method, request.url.path)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        log_error(str(e), request.method, request.url.path)
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response
