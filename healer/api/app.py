"""
HTTP control surface: FastAPI app factory with request logging,
a health check and the run/status/results routers.
"""
import time
import logging
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from healer.api.run_agent import router as run_agent_router
from healer.api.status import router as status_router
from healer.api.results import router as results_router
from healer.state.run_tracker import RunTracker

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info("Incoming: %s %s from %s", request.method, request.url.path, client_host)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("Request failed: %s %s - Error: %s", request.method, request.url.path, e)
            raise

        process_time = (time.time() - start_time) * 1000
        logger.info(
            "Outgoing: %s %s - Status: %d - Time: %.2fms",
            request.method, request.url.path, response.status_code, process_time,
        )
        return response


def create_app(tracker: Optional[RunTracker] = None) -> FastAPI:
    app = FastAPI(title="TypeScript Error Healer API")
    app.state.tracker = tracker or RunTracker()
    app.add_middleware(LoggingMiddleware)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(run_agent_router, tags=["Agent"])
    app.include_router(status_router, tags=["Agent"])
    app.include_router(results_router, tags=["Agent"])
    return app
