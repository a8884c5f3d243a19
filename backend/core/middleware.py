import time
import asyncio
from fastapi import Request
from fastapi.responses import JSONResponse
from core.logging import logger, request_logger

async def request_timing_middleware(request: Request, call_next):
    """Log each request with its duration, and cut off requests that hang."""
    started = time.perf_counter()
    try:
        response = await asyncio.wait_for(call_next(request), timeout=30.0)
    except asyncio.TimeoutError:
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Request timeout from {client} for {request.url.path}")
        return JSONResponse(
            status_code=504,
            content={"error": "Gateway Timeout"}
        )
    duration_ms = (time.perf_counter() - started) * 1000
    request_logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)")
    return response

async def add_no_cache_headers(request: Request, call_next):
    """Add no-cache headers to API responses; reconciliation output is time-dependent."""
    response = await call_next(request)
    if str(request.url.path).startswith("/api/"):
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    return response
