# application/services/multipart_walker.py
# Recorre las partes de un cuerpo multipart y las clasifica en cuerpos alternativos o adjuntos.
from __future__ import annotations
import logging
from email import errors as email_errors
from email.message import Message

from application.services.header_decoder import decode_filename, header_value
from application.services.transfer_decoder import decode_transfer, read_part_content
from domain.errors import MailParseError, TransferDecodeError
from domain.models import TEXT_HTML, TEXT_PLAIN, Attachment, Body, Email

logger = logging.getLogger(__name__)

_BOUNDARY_DEFECTS = (
    email_errors.NoBoundaryInMultipartDefect,
    email_errors.StartBoundaryNotFoundDefect,
    email_errors.CloseBoundaryNotFoundDefect,
    email_errors.MultipartInvariantViolationDefect,
)

# adjuntos sin Content-Transfer-Encoding declarado: los clientes siempre mandan base64
ATTACHMENT_DEFAULT_ENCODING = "base64"


def payload_bytes(part: Message) -> bytes:
    """Bytes tal cual llegaron por la red (aún con el transfer-encoding aplicado)."""
    payload = part.get_payload()
    if payload is None:
        return b""
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, list):
        # message/rfc822: el payload es el mensaje interno ya parseado; se vuelve a serializar
        return b"".join(sub.as_bytes() for sub in payload)
    # compat32 guarda los bytes no-ASCII como surrogates
    return str(payload).encode("utf-8", errors="surrogateescape")


def _check_boundary(container: Message) -> None:
    for defect in container.defects:
        if isinstance(defect, _BOUNDARY_DEFECTS):
            raise MailParseError(
                f"multipart mal formado ({container.get_content_type()}, "
                f"boundary={container.get_boundary()!r}): {type(defect).__name__}"
            )
    if not container.is_multipart():
        raise MailParseError(f"multipart sin partes ({container.get_content_type()})")


def _read_body(part: Message, content_type: str) -> Body:
    return Body(
        content_type=content_type,
        content=read_part_content(
            payload_bytes(part),
            part.get("Content-Transfer-Encoding"),
            part.get_content_charset(),
        ),
    )


def _read_attachment(part: Message, index: int) -> Attachment:
    content_type = part.get_content_type()
    name = decode_filename(part.get_filename())
    encoding = part.get("Content-Transfer-Encoding")
    if not encoding and part.get_content_maintype() != "message":
        encoding = ATTACHMENT_DEFAULT_ENCODING
    try:
        data = decode_transfer(payload_bytes(part), encoding)
    except TransferDecodeError as exc:
        raise MailParseError(f"adjunto #{index} '{name}' ({content_type}) no decodificable: {exc}") from exc
    return Attachment(name=name, content_type=content_type, data=data)


def walk_multipart(container: Message, email: Email) -> None:
    """
    Añade a `email` los cuerpos text/html, text/plain y los adjuntos en orden de aparición.
    Partes sin Content-Type se ignoran; contenedores multipart anidados se recorren.
    Cualquier error aborta el recorrido entero.
    """
    _check_boundary(container)

    for index, part in enumerate(container.get_payload()):
        raw_type = part.get("Content-Type")
        if not raw_type:
            logger.debug("Parte #%d sin Content-Type; se ignora", index)
            continue

        if part.get_content_maintype() == "multipart":
            walk_multipart(part, email)
            continue

        lowered = header_value(part, "Content-Type").lower()
        if TEXT_HTML in lowered:
            email.bodies.append(_read_body(part, TEXT_HTML))
        elif TEXT_PLAIN in lowered:
            email.bodies.append(_read_body(part, TEXT_PLAIN))
        else:
            email.attachments.append(_read_attachment(part, index))
