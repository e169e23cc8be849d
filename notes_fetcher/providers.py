"""Platform capabilities consumed by the retrieval workflow.

The workflow only talks to the small protocols declared here, so the
permission prompt, directory layout, file opening and user dialogs can be
swapped for fakes in tests or for a different front-end.
"""

from __future__ import annotations

import logging
import os
import platform
import subprocess
import tempfile
import webbrowser
from pathlib import Path
from typing import Optional, Protocol, Sequence
from urllib.parse import urlparse

from .config import Settings
from .errors import OpenFailedError

logger = logging.getLogger(__name__)


class Prompter(Protocol):
    def alert(self, title: str, message: str) -> None: ...

    def choose(self, title: str, message: str, options: Sequence[str]) -> Optional[str]: ...

    def notify(self, message: str) -> None: ...

    def progress(self, label: str, percent: int) -> None: ...


class PermissionGate(Protocol):
    def request(self) -> bool: ...


class PathResolver(Protocol):
    def cache_dir(self) -> Path: ...

    def downloads_dir(self) -> Path: ...


class IntentDispatcher(Protocol):
    def open(self, path: Path, mime_type: str) -> None: ...


class BrowserLauncher(Protocol):
    def open_url(self, url: str) -> None: ...


class ConsolePrompter:
    """Dialogs rendered on stdin/stdout for the command-line client."""

    CANCEL = "Cancel"

    def __init__(self, assume_yes: bool = False) -> None:
        self.assume_yes = assume_yes
        self._last_percent: Optional[int] = None

    def alert(self, title: str, message: str) -> None:
        print(f"{title}: {message}")

    def choose(self, title: str, message: str, options: Sequence[str]) -> Optional[str]:
        if self.assume_yes:
            return options[0] if options else None
        print(f"{title}: {message}")
        choices = list(options) + [self.CANCEL]
        for index, option in enumerate(choices, start=1):
            print(f"  {index}) {option}")
        answer = input("> ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        for option in options:
            if answer.lower() == option.lower():
                return option
        return None

    def notify(self, message: str) -> None:
        print(message)

    def progress(self, label: str, percent: int) -> None:
        if percent == self._last_percent:
            return
        self._last_percent = percent
        end = ""
        if percent >= 100:
            # Next download starts from scratch.
            self._last_percent = None
            end = "\n"
        print(f"\r{label}: {percent}%", end=end, flush=True)


class StoragePermissionGate:
    """Interactive storage prompt on legacy Android, pre-granted elsewhere."""

    def __init__(self, settings: Settings, prompter: Prompter) -> None:
        self.settings = settings
        self.prompter = prompter

    def request(self) -> bool:
        if not self.settings.legacy_storage_permissions:
            return True
        answer = self.prompter.choose(
            "Storage Permission",
            "App needs access to your storage to download files",
            ["OK"],
        )
        granted = answer == "OK"
        logger.debug("Storage permission %s", "granted" if granted else "denied")
        return granted


class DefaultPathResolver:
    """Cache and downloads locations, overridable through settings."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def cache_dir(self) -> Path:
        if self.settings.cache_dir:
            return self.settings.cache_dir
        return Path(tempfile.gettempdir()) / "notes_fetcher"

    def downloads_dir(self) -> Path:
        if self.settings.downloads_dir:
            return self.settings.downloads_dir
        return Path.home() / self.settings.downloads_label


class SystemIntentDispatcher:
    """Open local files with the default application of the host OS."""

    def open(self, path: Path, mime_type: str) -> None:
        logger.debug("Opening %s as %s", path, mime_type)
        system = platform.system()
        try:
            if system == "Darwin":
                subprocess.run(["open", str(path)], check=True)
            elif system == "Windows":
                os.startfile(str(path))  # type: ignore[attr-defined]
            else:
                subprocess.run(["xdg-open", str(path)], check=True)
        except subprocess.CalledProcessError as exc:
            raise OpenFailedError(f"Failed to open {path.name}", details={"mime_type": mime_type}) from exc
        except OSError as exc:
            raise OpenFailedError(
                f"No application found to open {path.name}", details={"mime_type": mime_type}
            ) from exc
        logger.info("Opened %s", path)


class SystemBrowserLauncher:
    """Open remote URLs in the default web browser."""

    def __init__(self, settings: Settings) -> None:
        self.allowed_schemes = settings.browser_url_schemes

    def can_open(self, url: str) -> bool:
        return urlparse(url).scheme.lower() in self.allowed_schemes

    def open_url(self, url: str) -> None:
        if not self.can_open(url):
            raise OpenFailedError(f"Cannot open URL with scheme '{urlparse(url).scheme}'")
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as exc:
            raise OpenFailedError("No browser available") from exc
        if not opened:
            raise OpenFailedError("No browser available")
        logger.info("Opened %s in browser", url)
