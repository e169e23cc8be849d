"""Error taxonomy for attachment retrieval.

Each error carries the dialog title and message shown to the user when the
workflow reports it; ``offer_download`` marks errors where switching to an
explicit download is a sensible alternative.
"""

from __future__ import annotations

from typing import Any, Dict


class RetrievalError(Exception):
    """Base exception for all retrieval failures."""

    title = "Error"
    user_message = "Something went wrong"
    offer_download = False

    def __init__(self, message: str | None = None, details: Dict[str, Any] | None = None) -> None:
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)


class MissingFileError(RetrievalError):
    user_message = "File URL not available"


class PermissionDeniedError(RetrievalError):
    title = "Permission Denied"
    user_message = "Storage permission is required to access files"


class AuthRequiredError(RetrievalError):
    title = "Sign In Required"
    user_message = "Please sign in again to access this file"


class TransferError(RetrievalError):
    user_message = "Failed to download file"
    offer_download = True


class OpenFailedError(RetrievalError):
    title = "Cannot Open File"
    user_message = "No app found to open this file type"
    offer_download = True


class OperationInProgressError(RetrievalError):
    title = "Please Wait"
    user_message = "This file is already being retrieved"


class ApiError(Exception):
    """Non-success response from the school API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")
