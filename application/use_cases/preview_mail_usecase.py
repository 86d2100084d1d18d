# application/use_cases/preview_mail_usecase.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Literal

from application.services.attachment_materializer import materialize_attachments
from application.services.email_parser import parse_email
from application.services.preview_renderer import PreviewRenderer
from domain.errors import MailParseError, MailPreviewError
from domain.models import Email
from infrastructure.filesystem.storage import PreviewStorage

logger = logging.getLogger(__name__)

Outcome = Literal["rendered", "parse_error", "render_error"]


class PreviewMailUseCase:
    """
    Un mensaje capturado: parse → adjuntos a disco → previews → visor.
    Cada llamada trabaja sobre su propio Email; nada se comparte entre sesiones.
    """
    def __init__(self, *, storage: PreviewStorage, renderer: PreviewRenderer) -> None:
        self.storage = storage
        self.renderer = renderer

    def process_mail(self, email: Email) -> dict[str, Any]:
        """
        Devuelve: {
            "outcome": "rendered" | "parse_error" | "render_error",
            "artifacts": [Path, ...],   # previews escritas
            "error": str | None,
        }
        """
        # 1) Parse
        try:
            parse_email(email)
        except MailParseError as exc:
            logger.error("Email descartado (parse): %s", exc)
            return {"outcome": "parse_error", "artifacts": [], "error": str(exc)}

        # 2) Adjuntos + render (sin cuerpos no se escribe nada)
        artifacts: list[Path] = []
        try:
            self.renderer.require_bodies(email)
            materialize_attachments(email.attachments, self.storage)
            artifacts = self.renderer.render(email)
        except MailPreviewError as exc:
            logger.error("Preview no generada: %s", exc)
            return {"outcome": "render_error", "artifacts": artifacts, "error": str(exc)}

        logger.info("Preview OK: %d fichero(s), %d adjunto(s)", len(artifacts), len(email.attachments))
        return {"outcome": "rendered", "artifacts": artifacts, "error": None}
