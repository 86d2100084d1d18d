# main.py
# Punto de entrada: servidor SMTP local -> parsea cada correo -> preview en el navegador
from __future__ import annotations
import argparse
import dataclasses
import logging
import time
from config.settings import Settings
from interface_adapters.controllers.smtp_controller import SmtpController

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def build_settings(argv: list[str] | None = None) -> Settings:
    parser = argparse.ArgumentParser(description="Captura SMTP local con preview de los correos")
    parser.add_argument("--host", help="dirección de escucha")
    parser.add_argument("--port", type=int, help="puerto SMTP")
    parser.add_argument("--dir", help="directorio de previews y adjuntos")
    parser.add_argument("--no-open", action="store_true", help="no abrir el navegador")
    args = parser.parse_args(argv)

    overrides: dict[str, object] = {}
    if args.host:
        overrides["SMTP_HOST"] = args.host
    if args.port:
        overrides["SMTP_PORT"] = args.port
    if args.dir:
        overrides["PREVIEW_DIR"] = args.dir
    if args.no_open:
        overrides["PREVIEW_OPEN"] = False
    return dataclasses.replace(Settings(), **overrides)


def main(argv: list[str] | None = None) -> None:
    settings = build_settings(argv)
    controller = SmtpController(settings=settings)

    logger.info("=== Mail Preview SMTP ===")
    controller.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Interrumpido por el usuario")
    finally:
        controller.stop()


if __name__ == "__main__":
    main()
