from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from printrelay.config import Settings, get_settings
from printrelay.errors import InvalidRequest, MissingInput, PayloadTooLarge, PrintRelayError
from printrelay.routers import config, health, jobs, printers
from printrelay.services.advertiser import ServiceAdvertiser
from printrelay.services.config_store import ConfigStore

logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

# Room for multipart boundaries and form fields on top of the file itself
_MULTIPART_OVERHEAD = 1024 * 1024


def _validation_error(request: Request, exc: RequestValidationError) -> PrintRelayError:
    """Map FastAPI request validation failures onto the JSON error bodies."""
    errors = exc.errors()
    summary = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in errors
    )
    fields = {str(err["loc"][-1]) for err in errors if err.get("loc")}
    path = request.url.path
    if path == "/api/print" and "file" in fields:
        return MissingInput()
    if path == "/api/config":
        return InvalidRequest("printerName is required", detail=summary)
    return InvalidRequest(detail=summary)


def _mount_web_client(app: FastAPI, static_dir: Path) -> None:
    """Serve the built web client, falling back to index.html for client routes."""
    root = static_dir.resolve()
    index = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def web_client(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            return JSONResponse(status_code=404, content={"error": "Not found"})
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_relative_to(root) and candidate.is_file():
            return FileResponse(candidate)
        return FileResponse(index)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    logger.info("=== PrintRelay settings ===")
    logger.info("  environment:  %s", settings.environment)
    logger.info("  cups_server:  %r", settings.cups_server)
    logger.info("  config_dir:   %s", settings.config_dir)
    logger.info("  upload_dir:   %s", settings.upload_dir)
    logger.info("  print_timeout: %r", settings.print_timeout_s)

    advertiser = ServiceAdvertiser(settings.service_name, settings.port, settings.service_version)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("PrintRelay server running on port %d", settings.port)
        if settings.mdns_enabled:
            await advertiser.start()
        try:
            yield
        finally:
            if settings.mdns_enabled:
                await advertiser.stop()

    app = FastAPI(title="PrintRelay", version=settings.service_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.config_store = ConfigStore(settings.config_dir)
    app.state.started_at = time.monotonic()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        response = await call_next(request)
        return response

    @app.middleware("http")
    async def limit_upload_size(request: Request, call_next):
        if request.method == "POST" and request.url.path == "/api/print":
            length = request.headers.get("content-length", "")
            if length.isdigit() and int(length) > settings.max_upload_bytes + _MULTIPART_OVERHEAD:
                logger.warning("Rejecting %s byte upload before reading it", length)
                error = PayloadTooLarge(detail=f"Maximum upload size is {settings.max_upload_bytes} bytes")
                return JSONResponse(status_code=error.status_code, content=error.to_dict())
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = _validation_error(request, exc)
        logger.warning("Invalid request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(PrintRelayError)
    async def print_relay_error_handler(request: Request, exc: PrintRelayError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc)},
        )

    app.include_router(health.router)
    app.include_router(config.router)
    app.include_router(printers.router)
    app.include_router(jobs.router)

    if (settings.static_path / "index.html").is_file():
        _mount_web_client(app, settings.static_path)
    else:
        logger.info("No web client at %s, serving API only", settings.static_path)

    return app


app = create_app()


def run() -> None:
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
