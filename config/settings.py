# config/settings.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
import tempfile
from dotenv import load_dotenv

load_dotenv()

@dataclass(frozen=True)
class Settings:
    # SMTP (solo local: no se entrega nada)
    SMTP_HOST: str = os.getenv("SMTP_HOST", "localhost")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", 1025))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "username")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "password")
    SMTP_AUTH_REQUIRED: bool = os.getenv("SMTP_AUTH_REQUIRED", "false").lower() == "true"
    SMTP_READ_TIMEOUT: int = int(os.getenv("SMTP_READ_TIMEOUT", 10))
    SMTP_MAX_MESSAGE_BYTES: int = int(os.getenv("SMTP_MAX_MESSAGE_BYTES", 1024 * 1024))
    SMTP_MAX_RECIPIENTS: int = int(os.getenv("SMTP_MAX_RECIPIENTS", 50))

    # Preview
    PREVIEW_DIR: str = os.getenv("PREVIEW_DIR", tempfile.gettempdir())
    PREVIEW_CONTENT_TYPES: str = os.getenv("PREVIEW_CONTENT_TYPES", "")  # p.ej.: text/html,text/plain
    PREVIEW_OPEN: bool = os.getenv("PREVIEW_OPEN", "true").lower() == "true"

    # ───────── helpers ─────────
    def addr(self) -> str:
        return f"{self.SMTP_HOST}:{self.SMTP_PORT}"

    def preview_dir_path(self) -> Path:
        return Path(self.PREVIEW_DIR).expanduser().resolve()

    def content_types(self) -> list[str]:
        raw = (self.PREVIEW_CONTENT_TYPES or "").strip()
        return [s.strip().lower() for s in raw.split(",") if s.strip()]
