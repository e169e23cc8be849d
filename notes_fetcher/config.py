"""Configuration management for the notes attachment client."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal, Sequence

from dotenv import load_dotenv
from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env early so BaseSettings can pick values up seamlessly.
load_dotenv()

# First Android API level where downloads no longer need WRITE_EXTERNAL_STORAGE.
SCOPED_STORAGE_API_LEVEL = 33


def _split_list(value: str | Sequence[str] | None, coerce_lower: bool = True) -> list[str]:
    """Turn delimiter-separated env strings into cleaned lists."""
    if value is None:
        return []
    if isinstance(value, str):
        items = re.split(r"[;,]", value)
    else:
        items = list(value)
    cleaned: list[str] = []
    for item in items:
        trimmed = item.strip()
        if not trimmed:
            continue
        cleaned.append(trimmed.lower() if coerce_lower else trimmed)
    return cleaned


class Settings(BaseSettings):
    """App configuration derived from environment variables."""

    api_base_url: HttpUrl = Field(
        "https://school-backend-rosy.vercel.app/api", alias="API_BASE_URL"
    )
    api_token: str | None = Field(None, alias="API_TOKEN")
    api_role: Literal["teacher", "student"] = Field("teacher", alias="API_ROLE")
    session_file: Path = Field(Path("data/session.json"), alias="SESSION_FILE")

    platform: Literal["android", "ios", "desktop"] = Field("desktop", alias="PLATFORM")
    android_api_level: int = Field(SCOPED_STORAGE_API_LEVEL, alias="ANDROID_API_LEVEL")
    cache_dir: Path | None = Field(None, alias="CACHE_DIR")
    downloads_dir: Path | None = Field(None, alias="DOWNLOADS_DIR")

    request_timeout: int = Field(30, alias="REQUEST_TIMEOUT")
    download_chunk_size: int = Field(64 * 1024, alias="DOWNLOAD_CHUNK_SIZE")
    download_notifications: bool = Field(True, alias="DOWNLOAD_NOTIFICATIONS")
    browser_url_schemes_raw: str = Field("https;http", alias="BROWSER_URL_SCHEMES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "api_token",
        "cache_dir",
        "downloads_dir",
        mode="before",
    )
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("download_chunk_size", "request_timeout")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @property
    def api_root(self) -> str:
        return str(self.api_base_url).rstrip("/")

    @property
    def legacy_storage_permissions(self) -> bool:
        """True when the OS still gates writes behind an interactive storage prompt."""
        return self.platform == "android" and self.android_api_level < SCOPED_STORAGE_API_LEVEL

    @property
    def browser_url_schemes(self) -> list[str]:
        schemes = _split_list(self.browser_url_schemes_raw, coerce_lower=True)
        return schemes or ["https"]

    @property
    def downloads_label(self) -> str:
        """Folder name shown to the user after a download."""
        return "Documents" if self.platform == "ios" else "Downloads"
