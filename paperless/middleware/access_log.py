import logging
import time
from fastapi import Request

log = logging.getLogger("paperless.access")

QUIET_PATHS = ["/health", "/favicon.ico"]

async def access_log_middleware(request: Request, call_next):
    path = request.url.path
    if any(path == p for p in QUIET_PATHS):
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    log.info("%s %s %s %.1fms", request.method, path, response.status_code, elapsed_ms)
    return response
