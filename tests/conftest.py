"""
Shared test fixtures and fakes for pytest
"""
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from notes_fetcher.config import Settings
from notes_fetcher.models import AttachmentRef
from notes_fetcher.providers import DefaultPathResolver
from notes_fetcher.retrieval import AttachmentRetriever

FIXED_MILLIS = 1700000000000


class FakePrompter:
    """Records every dialog and replays scripted answers to choices."""

    def __init__(self, answers=None, events=None):
        self.answers = list(answers or [])
        self.events = events if events is not None else []
        self.alerts = []
        self.choices = []
        self.notices = []
        self.progress_updates = []

    def alert(self, title, message):
        self.events.append("alert")
        self.alerts.append((title, message))

    def choose(self, title, message, options):
        self.events.append("choose")
        self.choices.append((title, message, list(options)))
        return self.answers.pop(0) if self.answers else None

    def notify(self, message):
        self.notices.append(message)

    def progress(self, label, percent):
        self.progress_updates.append((label, percent))


class FakeTransfer:
    """Writes canned bytes to the requested destination."""

    def __init__(self, content=b"%PDF-1.4 test", error=None, write=True, on_fetch=None):
        self.content = content
        self.error = error
        self.write = write
        self.on_fetch = on_fetch
        self.calls = []

    def fetch_to_path(self, url, destination, progress=None):
        self.calls.append((url, Path(destination)))
        if self.on_fetch:
            self.on_fetch()
        if self.error:
            raise self.error
        if self.write:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(self.content)
        if progress:
            progress(len(self.content) // 2, len(self.content))
            progress(len(self.content), len(self.content))
        return destination


@pytest.fixture
def settings(tmp_path):
    return Settings(
        API_BASE_URL="https://api.test/api",
        API_TOKEN="secret-token",
        PLATFORM="desktop",
        CACHE_DIR=str(tmp_path / "cache"),
        DOWNLOADS_DIR=str(tmp_path / "Downloads"),
    )


@pytest.fixture
def algebra_ref():
    return AttachmentRef(
        id="n1",
        title="Algebra Notes",
        declared_type="pdf",
        source_file_name="f.pdf",
        remote_url="https://x/f.pdf",
        size_hint="1.2 MB",
    )


@pytest.fixture
def prompter():
    return FakePrompter()


@pytest.fixture
def make_retriever(settings, prompter):
    """Build a retriever with mocked collaborators; returns (retriever, deps)."""

    def _make(**overrides):
        permissions = MagicMock()
        permissions.request.return_value = True
        deps = {
            "settings": settings,
            "api": MagicMock(),
            "transfer": FakeTransfer(),
            "permissions": permissions,
            "paths": DefaultPathResolver(settings),
            "intents": MagicMock(),
            "browser": MagicMock(),
            "prompter": prompter,
            "clock": lambda: FIXED_MILLIS,
        }
        deps.update(overrides)
        return AttachmentRetriever(**deps), deps

    return _make
