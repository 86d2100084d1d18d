# domain/errors.py
from __future__ import annotations


class MailPreviewError(Exception):
    """Raíz de los errores del pipeline de captura/preview."""


# ── entrada mal formada: se descarta el mensaje ──
class MailParseError(MailPreviewError):
    pass


class HeaderDecodeError(MailParseError):
    pass


class TransferDecodeError(MailParseError):
    pass


class AlreadyParsedError(MailParseError):
    pass


# ── recursos / render ──
class MaterializeError(MailPreviewError):
    pass


class RenderError(MailPreviewError):
    pass


class NoBodiesError(RenderError):
    pass
