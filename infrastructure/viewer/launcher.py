# infrastructure/viewer/launcher.py
from __future__ import annotations
import logging
import webbrowser
from pathlib import Path

logger = logging.getLogger(__name__)


def open_in_browser(path: Path) -> None:
    """Abre el fichero con el visor por defecto. Best-effort: el que llama registra el fallo."""
    uri = Path(path).resolve().as_uri()
    if not webbrowser.open(uri):
        raise RuntimeError(f"ningún navegador aceptó {uri}")
    logger.info("Preview abierta: %s", uri)


def noop_launcher(path: Path) -> None:
    logger.info("Preview disponible en %s (apertura desactivada)", path)
