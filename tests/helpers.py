from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock


class FakeProcess:
    """Stands in for the asyncio subprocess running lp."""

    def __init__(self, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0, hang: bool = False,
                 gate: Optional[asyncio.Event] = None):
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self._gate = gate
        self.returncode = None if hang else returncode
        self.killed = False

    async def communicate(self):
        if self._hang:
            await asyncio.sleep(60)
        if self._gate is not None:
            await self._gate.wait()
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        return self.returncode


def fake_exec(process: FakeProcess) -> AsyncMock:
    return AsyncMock(return_value=process)


def leftover_uploads(upload_dir: Path) -> list[Path]:
    if not upload_dir.exists():
        return []
    return list(upload_dir.iterdir())
