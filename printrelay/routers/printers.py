from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from printrelay.services.print_service import PrinterListError, get_available_printers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/printers", tags=["printers"])


@router.get("")
def list_printers(request: Request):
    settings = request.app.state.settings
    logger.info("Listing printers (cups_server=%r)", settings.cups_server)
    try:
        printers = get_available_printers(
            cups_server=settings.cups_server, timeout=settings.lpstat_timeout_s
        )
    except PrinterListError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to retrieve printers", "message": str(e), "printers": []},
        )
    logger.info("Found %d printer(s): %s", len(printers), [p["name"] for p in printers])
    return {"printers": printers, "default": request.app.state.config_store.get_printer()}
