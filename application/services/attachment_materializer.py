# application/services/attachment_materializer.py
from __future__ import annotations
import logging
import mimetypes
import re
from pathlib import PurePosixPath

from domain.errors import MaterializeError
from domain.models import Attachment
from infrastructure.filesystem.storage import PreviewStorage

logger = logging.getLogger(__name__)

MAX_NAME_LEN = 50
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def extension_for(content_type: str) -> str:
    ext = mimetypes.guess_extension(content_type)
    if not ext:
        raise MaterializeError(f"sin extensión conocida para '{content_type}'")
    return ext


def safe_name(name: str) -> str:
    # solo el último componente: un nombre tipo "../x" no puede salir del directorio
    base = PurePosixPath(name.replace("\\", "/")).name
    # NUL y demás caracteres de control no son válidos en un nombre de fichero
    return _CONTROL_CHARS.sub("", base)[:MAX_NAME_LEN]


def materialize_attachments(attachments: list[Attachment], storage: PreviewStorage) -> None:
    """
    Escribe cada adjunto como <nombre[:50]><id><ext> y guarda la ruta en attachment.path.
    El primer fallo aborta el resto.
    """
    for att in attachments:
        name = safe_name(att.name)
        ext = extension_for(att.content_type)
        try:
            fp = storage.save_bytes(name, ext, att.data)
        except (OSError, ValueError) as exc:
            raise MaterializeError(f"no se pudo escribir el adjunto '{name}': {exc}") from exc
        att.path = str(fp)
        logger.info("Adjunto guardado: %s (%d bytes)", fp, len(att.data))
