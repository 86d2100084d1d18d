# application/services/header_decoder.py
# Cabeceras From/To/Cc/Bcc/Subject y nombres de adjunto con encoded-words RFC 2047 (=?charset?B?...?=).
from __future__ import annotations
import base64
import binascii
import logging
import re
from dataclasses import dataclass
from email.header import Header, decode_header
from email.message import Message

from domain.errors import HeaderDecodeError

logger = logging.getLogger(__name__)

_ENCODED_WORD = re.compile(r"=\?([^?\s]+)\?([A-Za-z])\?([^?\s]*)\?=")
# el valor completo debe ser una o varias encoded-words separadas por espacios
_ONLY_ENCODED_WORDS = re.compile(r"\s*(?:=\?[^?\s]+\?[A-Za-z]\?[^?\s]*\?=\s*)+")
_FOLD = re.compile(r"\r?\n(?=[ \t])")


@dataclass(frozen=True)
class DecodedHeaders:
    from_: str
    to: list[str]
    cc: list[str]
    bcc: list[str]
    subject: str


def decode_encoded_word(value: str | None) -> str:
    """
    Decodifica un valor formado por encoded-words 'B'. Cualquier otra cosa
    (texto plano, variante 'Q', mezcla de texto y encoded-words) se devuelve tal cual.
    Un payload base64 o un charset inválidos son error duro.
    """
    if not value:
        return ""
    if not _ONLY_ENCODED_WORDS.fullmatch(value):
        return value

    words = _ENCODED_WORD.findall(value)
    if any(enc.upper() != "B" for _, enc, _ in words):
        logger.debug("Encoded-word no soportada, se deja literal: %r", value)
        return value

    out: list[str] = []
    for charset, _, payload in words:
        # RFC 2231 permite sufijo de idioma: UTF-8*es
        charset = charset.split("*", 1)[0]
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HeaderDecodeError(f"encoded-word con base64 inválido: {value!r}") from exc
        try:
            out.append(raw.decode(charset))
        except (LookupError, UnicodeDecodeError) as exc:
            raise HeaderDecodeError(f"encoded-word con charset '{charset}' inválido: {value!r}") from exc
    return "".join(out)


def decode_filename(value: str | None) -> str:
    # el nombre puede venir sin envoltorio; los delimitadores se localizan por regex, no por offset
    return decode_encoded_word((value or "").strip())


def split_addresses(value: str | None) -> list[str]:
    # cabecera vacía → [""]; se conserva a propósito
    return (value or "").split(",")


def _header_text(value: Header) -> str:
    # compat32 envuelve las cabeceras con bytes 8-bit crudos en un Header unknown-8bit
    out: list[str] = []
    for chunk, charset in decode_header(value):
        if isinstance(chunk, str):
            out.append(chunk)
            continue
        if not charset or charset == "unknown-8bit":
            charset = "utf-8"
        try:
            out.append(chunk.decode(charset, errors="replace"))
        except LookupError:
            out.append(chunk.decode("utf-8", errors="replace"))
    return "".join(out)


def header_value(message: Message, name: str) -> str:
    value = message.get(name)
    if value is None:
        return ""
    if isinstance(value, Header):
        return _FOLD.sub("", _header_text(value))
    return _FOLD.sub("", str(value))


def decode_headers(message: Message) -> DecodedHeaders:
    return DecodedHeaders(
        from_=header_value(message, "From"),
        to=split_addresses(header_value(message, "To")),
        cc=split_addresses(header_value(message, "Cc")),
        bcc=split_addresses(header_value(message, "Bcc")),
        subject=decode_encoded_word(header_value(message, "Subject")),
    )
