"""Utility helpers shared across modules."""

from __future__ import annotations

import re
import time
from typing import Optional

_UNSAFE_TITLE_CHARS = re.compile(r"[^A-Za-z0-9]")

DEFAULT_EXTENSIONS = {
    "pdf": "pdf",
    "doc": "docx",
    "ppt": "pptx",
    "img": "jpg",
}

MIME_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "ppt": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "img": "image/*",
}


def sanitize_title(title: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_TITLE_CHARS.sub("_", title or "")


def derive_extension(source_file_name: Optional[str], declared_type: str) -> str:
    """Prefer the extension embedded in the file name, else a type-keyed default."""
    file_name = source_file_name or "file"
    if "." in file_name:
        ext = file_name.rsplit(".", 1)[-1].lower()
        if ext and "/" not in ext and "\\" not in ext:
            return ext
    return DEFAULT_EXTENSIONS.get(declared_type, "file")


def mime_type_for(declared_type: str) -> str:
    return MIME_TYPES.get(declared_type, "*/*")


def timestamp_millis() -> int:
    return int(time.time() * 1000)


def format_percentage(received: int, total: int) -> Optional[int]:
    """Whole-number progress, or None when the server sent no length."""
    if total <= 0:
        return None
    return min(100, (received * 100) // total)
