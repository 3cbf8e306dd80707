"""
HTTP entry point. Run with `python -m src.api.main` or `uvicorn src.api.main:app`.
"""
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.api.endpoints import sms
from src.common.config import ScannerSettings, load_settings
from src.common.logging_config import get_logger, scan_context, setup_logging

SCAN_ID_HEADER = "X-Scan-ID"

# Local front-end dev servers
DEV_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]

logger = get_logger("api.main")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def log_requests(request: Request, call_next):
    """Give each request its own scan id and log how it ended."""
    route = f"{request.method} {request.url.path}"
    with scan_context() as scan_id:
        started = time.perf_counter()
        logger.info(
            f"{route} started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else "unknown",
        )
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{route} failed: {e}", elapsed_ms=_elapsed_ms(started), exc_info=True)
            raise

        logger.info(
            f"{route} -> {response.status_code}",
            status_code=response.status_code,
            elapsed_ms=_elapsed_ms(started),
        )
        response.headers[SCAN_ID_HEADER] = scan_id
        return response


def create_app(settings: ScannerSettings) -> FastAPI:
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title="SMS Transaction Scanner API", version="1.0.0")
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=DEV_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(sms.router, prefix="/api/sms", tags=["SMS"])
    app.dependency_overrides[sms.get_settings] = lambda: settings

    @app.get("/api/health")
    def health_check():
        return {"status": "ok", "app": "SMS Transaction Scanner"}

    return app


app = create_app(load_settings())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8010)
