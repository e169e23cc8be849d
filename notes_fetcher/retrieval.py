"""View and download workflow for note attachments."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from .api_client import SchoolApiClient
from .config import Settings
from .errors import (
    MissingFileError,
    OpenFailedError,
    OperationInProgressError,
    PermissionDeniedError,
    RetrievalError,
    TransferError,
)
from .models import AttachmentRef, RetrievalResult
from .providers import (
    BrowserLauncher,
    ConsolePrompter,
    DefaultPathResolver,
    IntentDispatcher,
    PathResolver,
    PermissionGate,
    Prompter,
    StoragePermissionGate,
    SystemBrowserLauncher,
    SystemIntentDispatcher,
)
from .session_store import credential_provider_from_settings
from .transfer import ProgressCallback, TransferClient
from .utils import derive_extension, format_percentage, mime_type_for, sanitize_title, timestamp_millis

logger = logging.getLogger(__name__)

DOWNLOAD_OPTION = "Download"
OPEN_OPTION = "Open"


class AttachmentRetriever:
    """Open note files transiently or save them to the downloads folder."""

    def __init__(
        self,
        settings: Settings,
        api: SchoolApiClient,
        transfer: TransferClient,
        permissions: PermissionGate,
        paths: PathResolver,
        intents: IntentDispatcher,
        browser: BrowserLauncher,
        prompter: Prompter,
        clock: Callable[[], int] = timestamp_millis,
    ) -> None:
        self.settings = settings
        self.api = api
        self.transfer = transfer
        self.permissions = permissions
        self.paths = paths
        self.intents = intents
        self.browser = browser
        self.prompter = prompter
        self.clock = clock
        self._lock = threading.Lock()
        self._active: dict[str, str] = {}

    def view_file(self, ref: AttachmentRef) -> RetrievalResult:
        """Fetch into the cache directory and hand the file to the default app."""
        return self._run("view", ref, self._view)

    def download_file(self, ref: AttachmentRef) -> RetrievalResult:
        """Save a durable copy into the downloads folder and record the download."""
        return self._run("download", ref, self._download)

    def temp_path(self, ref: AttachmentRef) -> Path:
        extension = derive_extension(ref.source_file_name, ref.declared_type)
        return self.paths.cache_dir() / f"{sanitize_title(ref.title)}_{self.clock()}.{extension}"

    def download_path(self, ref: AttachmentRef) -> Path:
        extension = derive_extension(ref.source_file_name, ref.declared_type)
        return self.paths.downloads_dir() / f"{sanitize_title(ref.title)}.{extension}"

    def _run(
        self,
        action: str,
        ref: AttachmentRef,
        operation: Callable[[AttachmentRef], RetrievalResult],
    ) -> RetrievalResult:
        try:
            with self._in_flight(ref, action):
                return operation(ref)
        except RetrievalError as exc:
            logger.warning("%s of note %s failed: %s", action.capitalize(), ref.id, exc.message)
            return self._report_failure(action, ref, exc)
        except Exception as exc:
            logger.exception("Unexpected error during %s of note %s", action, ref.id)
            return self._report_failure(action, ref, RetrievalError(str(exc) or None))

    @contextmanager
    def _in_flight(self, ref: AttachmentRef, action: str) -> Iterator[None]:
        with self._lock:
            running = self._active.get(ref.id)
            if running:
                raise OperationInProgressError(details={"id": ref.id, "running": running})
            self._active[ref.id] = action
        try:
            yield
        finally:
            with self._lock:
                self._active.pop(ref.id, None)

    def _view(self, ref: AttachmentRef) -> RetrievalResult:
        self._check_ready(ref, "view")
        self._record("view", ref)

        mime_type = mime_type_for(ref.declared_type)
        path = self.transfer.fetch_to_path(ref.remote_url, self.temp_path(ref))
        if not path.exists():
            raise TransferError("File download failed - file not found", details={"path": str(path)})

        try:
            self.intents.open(path, mime_type)
        except OpenFailedError as exc:
            logger.warning("No app could open %s (%s): %s", path.name, mime_type, exc.message)
            try:
                self.browser.open_url(ref.remote_url)
            except OpenFailedError as browser_exc:
                raise OpenFailedError(details={"mime_type": mime_type}) from browser_exc
            self.prompter.notify("File opened in your default browser")
            return RetrievalResult("view", True, path=path, mime_type=mime_type, opened_with="browser")

        self.prompter.notify(f"{ref.declared_type.upper()} file opened in default app")
        return RetrievalResult("view", True, path=path, mime_type=mime_type, opened_with="app")

    def _download(self, ref: AttachmentRef) -> RetrievalResult:
        self._check_ready(ref, "download")

        mime_type = mime_type_for(ref.declared_type)
        destination = self.download_path(ref)
        path = self.transfer.fetch_to_path(
            ref.remote_url, destination, progress=self._progress(destination.name)
        )
        self._record("download", ref)

        choice = self.prompter.choose(
            "Download Complete",
            f"File saved to: {self.settings.downloads_label}",
            [OPEN_OPTION],
        )
        opened_with = None
        if choice == OPEN_OPTION:
            try:
                self.intents.open(path, mime_type)
                opened_with = "app"
            except OpenFailedError as exc:
                logger.error("Open file error for %s: %s", path, exc.message)
        return RetrievalResult("download", True, path=path, mime_type=mime_type, opened_with=opened_with)

    def _check_ready(self, ref: AttachmentRef, verb: str) -> None:
        if not ref.remote_url:
            raise MissingFileError(details={"id": ref.id})
        if not self.permissions.request():
            raise PermissionDeniedError(f"Storage permission is required to {verb} files")

    def _record(self, action: str, ref: AttachmentRef) -> None:
        try:
            if action == "view":
                self.api.record_note_view(ref.id)
            else:
                self.api.record_note_download(ref.id)
        except Exception as exc:
            logger.warning("Failed to record %s for note %s: %s", action, ref.id, exc)

    def _progress(self, label: str) -> ProgressCallback:
        def report(received: int, total: int) -> None:
            percent = format_percentage(received, total)
            if percent is None:
                return
            logger.debug("Download progress for %s: %s%%", label, percent)
            if self.settings.download_notifications:
                self.prompter.progress(label, percent)

        return report

    def _report_failure(self, action: str, ref: AttachmentRef, exc: RetrievalError) -> RetrievalResult:
        result = RetrievalResult(action, False, error=exc)
        if action == "view" and exc.offer_download:
            choice = self.prompter.choose(
                exc.title,
                f"{exc.message.rstrip('.')}. Would you like to download it instead?",
                [DOWNLOAD_OPTION],
            )
            if choice == DOWNLOAD_OPTION:
                result.follow_up = "download"
                result.follow_up_result = self.download_file(ref)
            return result
        self.prompter.alert(exc.title, exc.message)
        return result


def build_retriever(settings: Settings, prompter: Prompter | None = None) -> AttachmentRetriever:
    """Wire the retriever with the default host providers."""
    prompter = prompter or ConsolePrompter()
    credentials = credential_provider_from_settings(settings)
    return AttachmentRetriever(
        settings=settings,
        api=SchoolApiClient(settings, credentials),
        transfer=TransferClient(settings, credentials),
        permissions=StoragePermissionGate(settings, prompter),
        paths=DefaultPathResolver(settings),
        intents=SystemIntentDispatcher(),
        browser=SystemBrowserLauncher(settings),
        prompter=prompter,
    )
