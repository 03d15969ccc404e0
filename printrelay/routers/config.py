from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/config", tags=["config"])


class ConfigPayload(BaseModel):
    printerName: Optional[str] = None


@router.get("")
def read_config(request: Request):
    store = request.app.state.config_store
    try:
        printer_name = store.get_printer()
    except Exception as e:
        logger.exception("Error retrieving printer config")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to retrieve printer configuration", "message": str(e)},
        )
    return {"configured": printer_name is not None, "printerName": printer_name}


@router.post("")
def save_config(request: Request, payload: ConfigPayload):
    printer_name = (payload.printerName or "").strip()
    if not printer_name:
        return JSONResponse(status_code=400, content={"error": "printerName is required"})

    store = request.app.state.config_store
    try:
        store.set_printer(printer_name)
    except Exception as e:
        logger.exception("Error saving printer config")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to save printer configuration", "message": str(e)},
        )

    logger.info("Default printer set to %r", printer_name)
    return {
        "success": True,
        "message": f'Printer "{printer_name}" saved successfully',
        "printerName": printer_name,
    }
