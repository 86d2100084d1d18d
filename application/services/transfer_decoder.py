# application/services/transfer_decoder.py
# Deshace el Content-Transfer-Encoding de una parte: identidad, base64 o quoted-printable.
from __future__ import annotations
import base64
import binascii
import codecs
import io
import logging
import quopri
from typing import BinaryIO

from domain.errors import TransferDecodeError

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"


def _read_all(data: bytes | bytearray | BinaryIO) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return data.read()


def decode_transfer(data: bytes | bytearray | BinaryIO, encoding: str | None) -> bytes:
    """
    Devuelve los bytes crudos de la parte.
    - sin encoding / desconocido → tal cual
    - "base64" (contiene, sensible a mayúsculas) → decodificado; si falla → TransferDecodeError
    - "quoted-printable" (contiene) → se copia a través de un decodificador QP
    """
    raw = _read_all(data)
    enc = encoding or ""

    if "base64" in enc:
        try:
            # los saltos de línea del cuerpo no forman parte del alfabeto
            return base64.b64decode(b"".join(raw.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise TransferDecodeError(f"base64 inválido ({len(raw)} bytes): {exc}") from exc

    if "quoted-printable" in enc:
        out = io.BytesIO()
        quopri.decode(io.BytesIO(raw), out)
        return out.getvalue()

    return raw


def bytes_to_text(data: bytes, charset: str | None = None) -> str:
    name = charset or DEFAULT_CHARSET
    try:
        codecs.lookup(name)
    except LookupError:
        logger.warning("Charset desconocido '%s'; se usa %s", name, DEFAULT_CHARSET)
        name = DEFAULT_CHARSET
    return data.decode(name, errors="replace")


def read_part_content(
    data: bytes | bytearray | BinaryIO,
    encoding: str | None,
    charset: str | None = None,
) -> str:
    """
    Contenido de texto de una parte ya decodificado.
    Un base64 corrupto degrada a cadena vacía (se registra, no se propaga).
    """
    try:
        decoded = decode_transfer(data, encoding)
    except TransferDecodeError:
        logger.warning("No se pudo decodificar el cuerpo (%s); se deja vacío", encoding, exc_info=True)
        return ""
    return bytes_to_text(decoded, charset)
