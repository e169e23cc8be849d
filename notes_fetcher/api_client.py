"""School API helper focused on notes listing and usage telemetry."""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests import Response

from .config import Settings
from .errors import ApiError
from .models import NoteRecord
from .session_store import CredentialProvider

logger = logging.getLogger(__name__)


class SchoolApiClient:
    """Thin wrapper around the notes endpoints of the school backend."""

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialProvider,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.credentials = credentials
        self.session = session or requests.Session()
        self.base_url = settings.api_root
        self.session.headers.update({"Cache-Control": "no-cache", "Pragma": "no-cache"})

    def get_notes(self, class_id: str | None = None, subject: str | None = None) -> list[NoteRecord]:
        """Notes uploaded by the signed-in teacher."""
        params: dict[str, Any] = {}
        if class_id:
            params["classId"] = class_id
        if subject:
            params["subject"] = subject
        response = self._request("GET", "/teacher/notes", params=params)
        return [self._to_note(raw) for raw in self._data(response)]

    def get_student_notes(self, class_id: str, subject: str | None = None) -> list[NoteRecord]:
        """Notes visible to the signed-in student for one enrolled class."""
        params: dict[str, Any] = {"classId": class_id}
        if subject:
            params["subject"] = subject
        response = self._request("GET", "/student/notes", params=params)
        return [self._to_note(raw) for raw in self._data(response)]

    def list_notes(self, class_id: str | None = None, subject: str | None = None) -> list[NoteRecord]:
        if self.settings.api_role == "student":
            if not class_id:
                raise ValueError("class_id is required to list student notes")
            return self.get_student_notes(class_id, subject)
        return self.get_notes(class_id, subject)

    # Usage counters only exist under the teacher routes; students report through them too.
    def record_note_view(self, note_id: str) -> None:
        self._request("POST", f"/teacher/notes/{note_id}/view")

    def record_note_download(self, note_id: str) -> None:
        self._request("POST", f"/teacher/notes/{note_id}/download")

    def _request(self, method: str, path: str, params: dict | None = None) -> Response:
        url = f"{self.base_url}{path}"
        headers = {}
        token = self.credentials.get_auth_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        logger.debug("%s %s", method, url)
        resp = self.session.request(
            method, url, headers=headers, params=params, timeout=self.settings.request_timeout
        )
        if resp.status_code >= 400:
            message = self._error_message(resp)
            logger.error("API request %s %s failed (%s): %s", method, path, resp.status_code, message)
            raise ApiError(resp.status_code, message)
        return resp

    @staticmethod
    def _data(response: Response) -> list[dict]:
        payload = response.json()
        if isinstance(payload, dict):
            return payload.get("data") or []
        return []

    @staticmethod
    def _error_message(response: Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        return response.text

    @staticmethod
    def _to_note(raw: dict) -> NoteRecord:
        return NoteRecord(
            note_id=str(raw["id"]),
            title=raw.get("title") or "",
            subject=raw.get("subject") or "",
            description=raw.get("description") or "",
            file_type=raw.get("fileType") or "",
            file_name=raw.get("fileName"),
            file_size=raw.get("fileSize"),
            file_url=raw.get("fileUrl"),
            uploaded_by=raw.get("uploadedBy") or "",
            upload_date=raw.get("uploadDate") or "",
            downloads=int(raw.get("downloads") or 0),
            views=int(raw.get("views") or 0),
            class_name=raw.get("className"),
            raw=raw,
        )
