"""Authenticated, streamed file transfer to a local path."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import requests

from .config import Settings
from .errors import AuthRequiredError, TransferError
from .session_store import CredentialProvider

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class TransferClient:
    """Stream remote bytes to disk with a bearer token from the session."""

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialProvider,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.credentials = credentials
        self.session = session or requests.Session()

    def fetch_to_path(
        self, url: str, destination: Path, progress: Optional[ProgressCallback] = None
    ) -> Path:
        """Download ``url`` into ``destination``; a partial file never survives a failure."""
        token = self.credentials.get_auth_token()
        if not token:
            raise AuthRequiredError(details={"url": url})

        headers = {"Authorization": f"Bearer {token}"}
        destination.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Downloading %s to %s", url, destination)

        try:
            received = self._stream(url, headers, destination, progress)
        except (requests.RequestException, OSError) as exc:
            self._discard(destination)
            raise TransferError(f"Failed to download file: {exc}", details={"url": url}) from exc
        except BaseException:
            self._discard(destination)
            raise

        logger.info("Saved %s bytes to %s", received, destination)
        return destination

    def _stream(
        self,
        url: str,
        headers: dict[str, str],
        destination: Path,
        progress: Optional[ProgressCallback],
    ) -> int:
        with self.session.get(
            url, headers=headers, stream=True, timeout=self.settings.request_timeout
        ) as resp:
            if resp.status_code >= 400:
                logger.error("File request failed (%s) for %s", resp.status_code, url)
                raise TransferError(
                    f"Server responded with status {resp.status_code}",
                    details={"url": url, "status_code": resp.status_code},
                )
            total = int(resp.headers.get("Content-Length") or 0)
            received = 0
            with open(destination, "wb") as fh:
                for chunk in resp.iter_content(chunk_size=self.settings.download_chunk_size):
                    if not chunk:
                        continue
                    fh.write(chunk)
                    received += len(chunk)
                    if progress:
                        progress(received, total)
        return received

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove partial file %s: %s", path, exc)
