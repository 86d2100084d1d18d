# application/services/preview_renderer.py
# Cuerpos del Email → ficheros de preview (HTML / texto) a partir de plantillas con placeholders nombrados.
from __future__ import annotations
import html
import logging
import mimetypes
from pathlib import Path
from string import Template
from typing import Callable, Iterable

from domain.errors import NoBodiesError, RenderError
from domain.models import TEXT_HTML, TEXT_PLAIN, Body, Email
from infrastructure.filesystem.storage import PreviewStorage

logger = logging.getLogger(__name__)

Launcher = Callable[[Path], None]

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>${subject}</title>
<style>
  body { font-family: sans-serif; margin: 0; }
  table.headers { border-collapse: collapse; width: 100%; background: #f4f4f4; }
  table.headers th { text-align: right; padding: 4px 8px; width: 80px; color: #555; }
  table.headers td { padding: 4px 8px; }
  .content { padding: 16px; }
  ul.attachments { padding: 8px 32px; border-top: 1px solid #ddd; }
</style>
</head>
<body>
<table class="headers">
  <tr><th>From</th><td>${from_}</td></tr>
  <tr><th>To</th><td>${to}</td></tr>
  <tr><th>Cc</th><td>${cc}</td></tr>
  <tr><th>Bcc</th><td>${bcc}</td></tr>
  <tr><th>Subject</th><td>${subject}</td></tr>
</table>
<div class="content">
${body}
</div>
${attachments}
</body>
</html>
"""

TEXT_TEMPLATE = """From: ${from_}
To: ${to}
Cc: ${cc}
Bcc: ${bcc}
Subject: ${subject}

${body}
${attachments}"""

DEFAULT_TEMPLATES: dict[str, str] = {
    TEXT_HTML: HTML_TEMPLATE,
    TEXT_PLAIN: TEXT_TEMPLATE,
}


def artifact_extension(content_type: str) -> str:
    if content_type == TEXT_HTML:
        return ".html"
    if content_type == TEXT_PLAIN:
        return ".txt"
    return mimetypes.guess_extension(content_type) or ".txt"


def _attachments_html(email: Email) -> str:
    if not email.attachments:
        return ""
    items = []
    for att in email.attachments:
        label = html.escape(att.name or "(sin nombre)")
        if att.path:
            href = html.escape(Path(att.path).resolve().as_uri(), quote=True)
            items.append(f'  <li><a href="{href}">{label}</a> ({html.escape(att.content_type)})</li>')
        else:
            items.append(f"  <li>{label} ({html.escape(att.content_type)})</li>")
    return '<ul class="attachments">\n' + "\n".join(items) + "\n</ul>"


def _attachments_text(email: Email) -> str:
    if not email.attachments:
        return ""
    lines = ["", "Attachments:"]
    for att in email.attachments:
        lines.append(f"  - {att.name} ({att.content_type}) {att.path}".rstrip())
    return "\n".join(lines) + "\n"


class PreviewRenderer:
    def __init__(
        self,
        *,
        storage: PreviewStorage,
        templates: dict[str, str] | None = None,
        allowed_types: Iterable[str] = (),
        launcher: Launcher | None = None,
    ) -> None:
        self.storage = storage
        self.templates = dict(DEFAULT_TEMPLATES if templates is None else templates)
        self.allowed_types = [t.strip().lower() for t in allowed_types if t.strip()]
        self.launcher = launcher

    @staticmethod
    def require_bodies(email: Email) -> None:
        if not email.bodies:
            raise NoBodiesError("no se encontraron cuerpos en el email")

    def select_bodies(self, email: Email) -> list[Body]:
        if not self.allowed_types:
            return list(email.bodies)
        return [b for b in email.bodies if b.content_type in self.allowed_types]

    def fill(self, email: Email, body: Body) -> str:
        try:
            source = self.templates[body.content_type]
        except KeyError:
            raise RenderError(f"no hay plantilla para '{body.content_type}'") from None

        if body.content_type == TEXT_HTML:
            esc: Callable[[str], str] = html.escape
            attachments = _attachments_html(email)
        else:
            esc = str
            attachments = _attachments_text(email)

        try:
            return Template(source).substitute(
                from_=esc(email.from_),
                to=esc(", ".join(email.to)),
                cc=esc(", ".join(email.cc)),
                bcc=esc(", ".join(email.bcc)),
                subject=esc(email.subject),
                body=body.content,
                attachments=attachments,
            )
        except (KeyError, ValueError) as exc:
            raise RenderError(f"plantilla de '{body.content_type}' inválida: {exc}") from exc

    def render(self, email: Email) -> list[Path]:
        """
        Escribe un fichero por cada cuerpo permitido y lo abre con el visor.
        Sin cuerpos → NoBodiesError sin tocar disco.
        """
        self.require_bodies(email)
        bodies = self.select_bodies(email)
        # todas las plantillas se resuelven antes de escribir nada
        rendered = [(body, self.fill(email, body)) for body in bodies]

        paths: list[Path] = []
        for body, content in rendered:
            stem = body.content_type.replace("/", "-")
            try:
                fp = self.storage.save_bytes(stem, artifact_extension(body.content_type), content.encode("utf-8"))
            except (OSError, ValueError) as exc:
                raise RenderError(f"no se pudo escribir la preview {body.content_type}: {exc}") from exc
            logger.info("Preview %s escrita en %s", body.content_type, fp)
            paths.append(fp)
            self._launch(fp)
        return paths

    def _launch(self, fp: Path) -> None:
        if self.launcher is None:
            return
        try:
            self.launcher(fp)
        except Exception:
            logger.exception("No se pudo abrir la preview %s", fp)
