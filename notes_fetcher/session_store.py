"""Credential providers that hand bearer tokens to the API and transfer clients."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from .config import Settings

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    def get_auth_token(self) -> Optional[str]: ...


class StaticTokenProvider:
    """Fixed token, typically from API_TOKEN."""

    def __init__(self, token: Optional[str]) -> None:
        self._token = token

    def get_auth_token(self) -> Optional[str]:
        return self._token


class FileSessionStore:
    """JSON session file holding the signed-in user's token and profile."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text())
        except ValueError:
            logger.warning("Session file %s is not valid JSON; ignoring it", self.path)
            return {}
        return payload if isinstance(payload, dict) else {}

    def get_auth_token(self) -> Optional[str]:
        token = self._load().get("token")
        return token or None

    def get_user(self) -> Optional[dict[str, Any]]:
        return self._load().get("user")

    def save(self, token: str, user: dict[str, Any] | None = None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token, "user": user or {}}))

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


def credential_provider_from_settings(settings: Settings) -> CredentialProvider:
    if settings.api_token:
        return StaticTokenProvider(settings.api_token)
    return FileSessionStore(settings.session_file)
