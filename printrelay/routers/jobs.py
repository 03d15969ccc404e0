from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile

from printrelay.errors import MissingInput
from printrelay.services.submission import submit_document
from printrelay.services.uploads import receive_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["print"])


@router.post("/print")
async def print_document(
    request: Request,
    file: Optional[UploadFile] = File(None),
    copies: Optional[str] = Form(None),
):
    """Print an uploaded file on the configured printer."""
    if file is None:
        raise MissingInput()

    settings = request.app.state.settings
    document = await receive_upload(file, settings.upload_dir, settings.max_upload_bytes)
    result = await submit_document(
        document,
        copies,
        store=request.app.state.config_store,
        settings=settings,
    )
    logger.info("Printed %s x%d on %s (job %s)",
                result.file_name, result.copies, result.printer, result.job_id)
    return result.model_dump(by_alias=True)
