# interface_adapters/controllers/smtp_controller.py
from __future__ import annotations
import logging

from aiosmtpd.controller import Controller

from application.services.preview_renderer import Launcher, PreviewRenderer
from application.use_cases.preview_mail_usecase import PreviewMailUseCase
from config.settings import Settings
from infrastructure.filesystem.storage import PreviewStorage
from infrastructure.smtp.capture_handler import CaptureHandler, PlainAuthenticator
from infrastructure.viewer.launcher import noop_launcher, open_in_browser

logger = logging.getLogger(__name__)


class SmtpController:
    """Monta storage + renderer + caso de uso y los sirve con el Controller de aiosmtpd."""
    def __init__(self, settings: Settings, launcher: Launcher | None = None) -> None:
        self.settings = settings
        self.storage = PreviewStorage(base=settings.preview_dir_path())
        if launcher is None:
            launcher = open_in_browser if settings.PREVIEW_OPEN else noop_launcher
        self.renderer = PreviewRenderer(
            storage=self.storage,
            allowed_types=settings.content_types(),
            launcher=launcher,
        )
        self.uc = PreviewMailUseCase(storage=self.storage, renderer=self.renderer)
        self.handler = CaptureHandler(self.uc, max_recipients=settings.SMTP_MAX_RECIPIENTS)

        self.controller = Controller(
            self.handler,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            server_hostname=settings.SMTP_HOST,
            data_size_limit=settings.SMTP_MAX_MESSAGE_BYTES,
            timeout=settings.SMTP_READ_TIMEOUT,
            authenticator=PlainAuthenticator(settings.SMTP_USERNAME, settings.SMTP_PASSWORD),
            auth_required=settings.SMTP_AUTH_REQUIRED,
            auth_require_tls=False,
            auth_exclude_mechanism=["LOGIN"],
        )

    def start(self) -> None:
        self.controller.start()
        logger.info("Servidor SMTP escuchando en %s (previews en %s)", self.settings.addr(), self.storage.base)

    def stop(self) -> None:
        self.controller.stop()
        logger.info("Servidor SMTP detenido")

    def __enter__(self) -> "SmtpController":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
