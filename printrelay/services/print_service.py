"""Talk to CUPS through its command-line tools (``lpstat`` and ``lp``)."""
from __future__ import annotations

import asyncio
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from printrelay.errors import ExecutionFailed

logger = logging.getLogger(__name__)

_PRINTER_LINE = re.compile(r"^printer\s+(\S+)\s+(.*)")
_REQUEST_ID = re.compile(r"request id is (.+)")


class PrinterListError(Exception):
    """lpstat could not be run or exited with an error."""


@dataclass
class LpOutput:
    stdout: str
    stderr: str


def _cups_env(server: Optional[str]) -> Optional[dict]:
    """Environment for CUPS tools, pointed at a remote server if given."""
    if not server:
        return None
    # CUPS_SERVER is read by libcups inside lp and lpstat
    env = dict(os.environ)
    env["CUPS_SERVER"] = server
    return env


def parse_lpstat(output: str) -> list[dict]:
    """Turn ``lpstat -p`` output into printer records.

    Lines look like ``printer HP_LaserJet is idle.  enabled since ...``.
    A printer counts as enabled when it is idle or printing.
    """
    printers = []
    for line in output.splitlines():
        if not line.strip():
            continue
        match = _PRINTER_LINE.match(line)
        if not match:
            continue
        name, status = match.group(1), match.group(2)
        enabled = "idle" in status or "printing" in status
        printers.append({
            "name": name,
            "status": "enabled" if enabled else "disabled",
            "rawStatus": status,
        })
    return printers


def get_available_printers(cups_server: Optional[str] = None, timeout: float = 5.0) -> list[dict]:
    """List printers from CUPS."""
    try:
        result = subprocess.run(
            ["lpstat", "-p"],
            capture_output=True, text=True, timeout=timeout, env=_cups_env(cups_server),
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.exception("Failed to run lpstat")
        raise PrinterListError(str(e)) from e
    if result.returncode != 0:
        logger.error("lpstat failed: %s", result.stderr.strip())
        raise PrinterListError(result.stderr.strip() or f"lpstat exited with {result.returncode}")
    return parse_lpstat(result.stdout)


def parse_job_id(stdout: str) -> Optional[str]:
    """Best-effort extraction of the job id from ``lp`` output.

    lp prints ``request id is <job>`` on success, but the wording is not a
    stable interface, so a missing marker yields None rather than an error.
    """
    match = _REQUEST_ID.search(stdout)
    if not match:
        return None
    job_id = match.group(1).strip()
    return job_id or None


async def submit_print_job(
    file_path: Path,
    printer_name: str,
    copies: int,
    cups_server: Optional[str] = None,
    timeout: Optional[float] = None,
) -> LpOutput:
    """Run ``lp`` for one file and return its captured output.

    Arguments go straight to the process (no shell), so printer names and
    paths need no quoting. Spawn errors, timeouts and non-zero exits raise
    :class:`ExecutionFailed` with the error text.
    """
    argv = ["lp", "-d", printer_name, "-n", str(copies), str(file_path)]
    logger.info("Executing print command: %s", argv)

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=_cups_env(cups_server),
        )
    except OSError as e:
        logger.error("Could not start lp: %s", e)
        raise ExecutionFailed(detail=str(e)) from e

    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            # lp exited between the timeout and the kill
            pass
        await proc.wait()
        logger.error("lp timed out after %ss", timeout)
        raise ExecutionFailed(detail=f"lp timed out after {timeout}s")

    stdout = out.decode(errors="replace")
    stderr = err.decode(errors="replace")
    if proc.returncode != 0:
        logger.error("lp failed (exit %s): %s", proc.returncode, stderr.strip())
        raise ExecutionFailed(detail=stderr.strip() or f"lp exited with {proc.returncode}")

    logger.info("lp job submitted to %s: %s", printer_name, stdout.strip())
    return LpOutput(stdout=stdout, stderr=stderr)
