"""Typed containers shared across the client."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .errors import RetrievalError

DECLARED_TYPES = ("pdf", "doc", "ppt", "img", "link")


@dataclass(frozen=True)
class AttachmentRef:
    """Description of a remote note file handed to the retrieval workflow."""

    id: str
    title: str
    declared_type: str
    source_file_name: Optional[str] = None
    remote_url: Optional[str] = None
    size_hint: Optional[str] = None


@dataclass
class NoteRecord:
    """A note as listed by the teacher or student notes endpoints."""

    note_id: str
    title: str
    subject: str
    description: str
    file_type: str
    file_name: Optional[str]
    file_size: Optional[str]
    file_url: Optional[str]
    uploaded_by: str
    upload_date: str
    downloads: int
    views: int
    class_name: Optional[str]
    raw: dict[str, Any]

    def to_attachment(self) -> AttachmentRef:
        return AttachmentRef(
            id=self.note_id,
            title=self.title,
            declared_type=self.file_type,
            source_file_name=self.file_name,
            remote_url=self.file_url,
            size_hint=self.file_size,
        )


@dataclass
class RetrievalResult:
    """Outcome of a single view or download action."""

    action: str
    ok: bool
    path: Optional[Path] = None
    mime_type: Optional[str] = None
    opened_with: Optional[str] = None
    error: Optional["RetrievalError"] = None
    follow_up: Optional[str] = None
    follow_up_result: Optional["RetrievalResult"] = None
