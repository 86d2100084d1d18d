# application/services/email_parser.py
# Bytes RFC 5322/MIME → agregado Email (cabeceras, cuerpos, adjuntos).
from __future__ import annotations
import logging
import re
from email import errors as email_errors
from email import message_from_bytes
from email.message import Message
from email.utils import collapse_rfc2231_value

from application.services.header_decoder import decode_headers, header_value
from application.services.multipart_walker import payload_bytes, walk_multipart
from application.services.transfer_decoder import read_part_content
from domain.errors import HeaderDecodeError, MailParseError
from domain.models import Body, Email

logger = logging.getLogger(__name__)

_TOKEN = r"[!#$%&'*+\-.^_`|~0-9a-z]+"
_MEDIA_TYPE = re.compile(rf"{_TOKEN}/{_TOKEN}")


def parse_media_type(value: str | None) -> tuple[str, dict[str, str]]:
    """
    "multipart/mixed; boundary=B" → ("multipart/mixed", {"boundary": "B"}).
    Tipo ausente o sin forma tipo/subtipo → MailParseError.
    """
    media_type = (value or "").partition(";")[0].strip().lower()
    if not media_type:
        raise MailParseError("Content-Type ausente")
    if not _MEDIA_TYPE.fullmatch(media_type):
        raise MailParseError(f"Content-Type inválido: {value!r}")

    holder = Message()
    holder["Content-Type"] = value
    params: dict[str, str] = {}
    for key, val in (holder.get_params() or [])[1:]:
        params[key.lower()] = collapse_rfc2231_value(val)
    return media_type, params


def _read_message(raw: bytes) -> Message:
    if not raw.strip():
        raise MailParseError("mensaje vacío")
    message = message_from_bytes(raw)
    for defect in message.defects:
        if isinstance(defect, email_errors.MissingHeaderBodySeparatorDefect):
            raise MailParseError("bloque de cabeceras mal formado")
    return message


def parse_email(email: Email) -> Email:
    """
    Rellena cabeceras, cuerpos y adjuntos desde email.raw_body.
    Solo una vez por agregado (AlreadyParsedError si no hubo reset()).
    Ante error el agregado puede quedar a medias: hay que descartarlo.
    """
    email.mark_parsed()
    message = _read_message(email.raw_body)

    try:
        headers = decode_headers(message)
    except HeaderDecodeError as exc:
        raise HeaderDecodeError(f"no se pudo decodificar el Subject: {exc}") from exc

    email.from_ = headers.from_
    email.to = headers.to
    email.cc = headers.cc
    email.bcc = headers.bcc
    email.subject = headers.subject

    media_type, params = parse_media_type(header_value(message, "Content-Type"))

    if "multipart" in media_type:
        if not params.get("boundary"):
            raise MailParseError(f"{media_type} sin parámetro boundary")
        try:
            walk_multipart(message, email)
        except MailParseError as exc:
            raise MailParseError(f"no se pudo recorrer {media_type}: {exc}") from exc
    else:
        email.bodies.append(Body(
            content_type=media_type,
            content=read_part_content(
                payload_bytes(message),
                message.get("Content-Transfer-Encoding"),
                message.get_content_charset(),
            ),
        ))

    logger.info(
        "Email parseado: asunto=%r cuerpos=%d adjuntos=%d",
        email.subject, len(email.bodies), len(email.attachments),
    )
    return email
