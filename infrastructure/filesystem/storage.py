# infrastructure/filesystem/storage.py
from __future__ import annotations
from pathlib import Path
from typing import Callable
import secrets


def new_id() -> str:
    # 128 bits aleatorios en hex; secrets es seguro entre hilos
    return secrets.token_hex(16)


class PreviewStorage:
    """
    Directorio donde se escriben previews y adjuntos.
    Cada fichero lleva un sufijo aleatorio: nunca se sobrescribe ni se limpia nada.
    """
    def __init__(self, base: Path, id_factory: Callable[[], str] = new_id) -> None:
        self.base = base.resolve()
        self.base.mkdir(parents=True, exist_ok=True)
        self.id_factory = id_factory

    def save_bytes(self, stem: str, ext: str, data: bytes) -> Path:
        fname = f"{stem}{self.id_factory()}{ext}"
        fp = self.base / fname
        fp.write_bytes(data)
        return fp
