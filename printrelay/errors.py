"""Error taxonomy for the print relay.

Every condition is raised as a :class:`PrintRelayError` subclass and turned
into a JSON body by the handler registered in :mod:`printrelay.main`.
"""
from __future__ import annotations

from typing import Optional


class PrintRelayError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message if detail is None else f"{self.message}: {detail}")

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.detail:
            body["message"] = self.detail
        return body


class MissingInput(PrintRelayError):
    status_code = 400
    default_message = "No file uploaded"


class PayloadTooLarge(PrintRelayError):
    status_code = 413
    default_message = "File too large"


class InvalidCopies(PrintRelayError):
    status_code = 400
    default_message = "Copies must be between 1 and 999"


class NotConfigured(PrintRelayError):
    status_code = 400
    default_message = "No printer configured. Please configure a printer first using /api/config"


class ExecutionFailed(PrintRelayError):
    status_code = 500
    default_message = "Failed to print document"


class InternalError(PrintRelayError):
    status_code = 500
    default_message = "Internal server error"


class InvalidRequest(PrintRelayError):
    status_code = 400
    default_message = "Invalid request"
