"""Receive uploaded documents into the temporary uploads directory."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import UploadFile

from printrelay.errors import PayloadTooLarge

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


@dataclass
class UploadedDocument:
    """An upload stored on disk for the lifetime of one request.

    Use it as a context manager: the file is removed when the block exits,
    whatever the outcome.
    """

    path: Path
    original_name: str
    size: int
    _removed: bool = field(default=False, repr=False)

    @property
    def removed(self) -> bool:
        return self._removed

    def discard(self) -> None:
        """Remove the temporary file. Calling this again is a no-op.

        A failure to delete is logged and swallowed so it never replaces the
        error being reported for the request.
        """
        if self._removed:
            return
        self._removed = True
        try:
            if self.path.exists():
                self.path.unlink()
                logger.info("Removed upload %s", self.path.name)
        except OSError:
            logger.warning("Failed to remove upload %s", self.path, exc_info=True)

    def __enter__(self) -> "UploadedDocument":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.discard()


async def receive_upload(upload: UploadFile, upload_dir: Path, max_bytes: int) -> UploadedDocument:
    """Copy an incoming file part to ``upload_dir`` under a generated name.

    Raises :class:`PayloadTooLarge` (after deleting the partial copy) once
    more than ``max_bytes`` have been read.
    """
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / uuid.uuid4().hex
    size = 0
    try:
        with path.open("wb") as out:
            while chunk := await upload.read(_CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    raise PayloadTooLarge(detail=f"Maximum upload size is {max_bytes} bytes")
                out.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    name = upload.filename or "upload"
    logger.info("Received %s (%d bytes) as %s", name, size, path.name)
    return UploadedDocument(path=path, original_name=name, size=size)
