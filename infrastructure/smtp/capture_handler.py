# infrastructure/smtp/capture_handler.py
# Frontera con aiosmtpd: sobre + DATA de cada sesión → un Email nuevo → caso de uso.
from __future__ import annotations
import asyncio
import hmac
import logging

from aiosmtpd.smtp import AuthResult, Envelope, LoginPassword

from application.use_cases.preview_mail_usecase import PreviewMailUseCase
from domain.models import Email

logger = logging.getLogger(__name__)

_REPLIES = {
    "rendered": "250 Message accepted for delivery",
    "parse_error": "554 5.6.0 Message could not be parsed",
    "render_error": "451 4.3.0 Preview could not be generated",
}


class PlainAuthenticator:
    """Authenticator de aiosmtpd: usuario/contraseña fijos, solo PLAIN."""
    def __init__(self, username: str, password: str) -> None:
        self.username = username.encode("utf-8")
        self.password = password.encode("utf-8")

    def __call__(self, server, session, envelope, mechanism, auth_data) -> AuthResult:
        if mechanism != "PLAIN" or not isinstance(auth_data, LoginPassword):
            return AuthResult(success=False, handled=False)
        ok = hmac.compare_digest(auth_data.login, self.username) and hmac.compare_digest(
            auth_data.password, self.password
        )
        if not ok:
            logger.warning("AUTH fallido para %r", auth_data.login)
            return AuthResult(success=False, handled=False)
        return AuthResult(success=True)


class CaptureHandler:
    def __init__(self, usecase: PreviewMailUseCase, max_recipients: int = 50) -> None:
        self.usecase = usecase
        self.max_recipients = max_recipients

    async def handle_RCPT(self, server, session, envelope: Envelope, address: str, rcpt_options):
        if len(envelope.rcpt_tos) >= self.max_recipients:
            return "452 4.5.3 Too many recipients"
        envelope.rcpt_tos.append(address)
        return "250 OK"

    async def handle_DATA(self, server, session, envelope: Envelope):
        raw = envelope.original_content or envelope.content or b""
        if isinstance(raw, str):
            raw = raw.encode("utf-8", errors="replace")

        # el Envelope es por sesión, así que el Email también
        email = Email(from_=envelope.mail_from or "", to=list(envelope.rcpt_tos), raw_body=raw)
        logger.info("Mensaje recibido de %s para %s (%d bytes)", email.from_, email.to, len(raw))

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, self.usecase.process_mail, email)
        except Exception:
            logger.exception("Error inesperado procesando el mensaje de %s", email.from_)
            return "451 4.3.0 Internal error"

        return _REPLIES.get(result.get("outcome"), "451 4.3.0 Internal error")
