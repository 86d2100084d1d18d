# domain/models.py
from __future__ import annotations
from dataclasses import dataclass, field

from domain.errors import AlreadyParsedError

TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"


@dataclass
class Body:
    content_type: str
    content: str  # ya decodificado (transfer-encoding resuelto)


@dataclass
class Attachment:
    name: str
    content_type: str
    data: bytes
    path: str = ""  # vacío hasta que se escribe a disco


@dataclass
class Email:
    """
    Agregado mutable de un mensaje capturado.
    Ciclo de vida: se crea vacío por sesión → se rellena con el sobre SMTP y el DATA →
    parse_email() lo completa UNA vez → el renderer lo lee → reset() para reutilizarlo.
    """
    from_: str = ""
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    subject: str = ""
    raw_body: bytes = b""
    bodies: list[Body] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    parsed: bool = False

    def mark_parsed(self) -> None:
        if self.parsed:
            raise AlreadyParsedError("el email ya fue parseado; llama a reset() antes de volver a parsear")
        self.parsed = True

    def reset(self) -> None:
        self.from_ = ""
        self.to = []
        self.cc = []
        self.bcc = []
        self.subject = ""
        self.raw_body = b""
        self.bodies = []
        self.attachments = []
        self.parsed = False
