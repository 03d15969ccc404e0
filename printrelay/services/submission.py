"""Turn one uploaded document into one CUPS print job."""
from __future__ import annotations

import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from printrelay.config import Settings
from printrelay.errors import InternalError, InvalidCopies, NotConfigured, PrintRelayError
from printrelay.services.config_store import ConfigStore
from printrelay.services.print_service import parse_job_id, submit_print_job
from printrelay.services.uploads import UploadedDocument

logger = logging.getLogger(__name__)

MIN_COPIES = 1
MAX_COPIES = 999
UNKNOWN_JOB_ID = "unknown"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class PrintSubmissionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Print job submitted successfully"
    job_id: str = Field(alias="jobId")
    printer: str
    copies: int
    file_name: str = Field(alias="fileName")


def parse_copies(raw: Optional[str]) -> int:
    """Read the copies form field, falling back to 1.

    Leading integer digits are honoured ("3 copies" -> 3); anything without
    them, or a zero, means one copy.
    """
    if raw is None:
        return 1
    match = _LEADING_INT.match(str(raw))
    if not match:
        return 1
    return int(match.group(1)) or 1


def validate_copies(copies: int) -> int:
    if not MIN_COPIES <= copies <= MAX_COPIES:
        raise InvalidCopies()
    return copies


async def submit_document(
    document: UploadedDocument,
    copies_raw: Optional[str],
    store: ConfigStore,
    settings: Settings,
) -> PrintSubmissionResult:
    """Validate, resolve the printer, run lp and report the job.

    The document's temporary file is removed on every exit path.
    """
    with document:
        try:
            copies = validate_copies(parse_copies(copies_raw))

            printer_name = store.get_printer()
            if not printer_name:
                raise NotConfigured()

            output = await submit_print_job(
                document.path,
                printer_name,
                copies,
                cups_server=settings.cups_server,
                timeout=settings.print_timeout_s,
            )
        except PrintRelayError as e:
            logger.warning("Print of %s rejected: %s", document.original_name, e)
            raise
        except Exception as e:
            logger.exception("Print of %s failed", document.original_name)
            raise InternalError("Failed to print document", detail=str(e)) from e

    job_id = parse_job_id(output.stdout)
    if job_id is None:
        logger.info("No request id in lp output, reporting %r", UNKNOWN_JOB_ID)
        job_id = UNKNOWN_JOB_ID

    return PrintSubmissionResult(
        job_id=job_id,
        printer=printer_name,
        copies=copies,
        file_name=document.original_name,
    )
