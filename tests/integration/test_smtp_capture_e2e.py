"""
End-to-end: servidor aiosmtpd real en localhost, mensajes enviados con smtplib,
y previews y adjuntos comprobados en disco.
"""
import smtplib
import socket
from email.message import EmailMessage
from unittest.mock import MagicMock

import pytest

from config.settings import Settings
from interface_adapters.controllers.smtp_controller import SmtpController


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        SMTP_HOST="127.0.0.1",
        SMTP_PORT=_free_port(),
        SMTP_USERNAME="username",
        SMTP_PASSWORD="password",
        SMTP_AUTH_REQUIRED=False,
        PREVIEW_DIR=str(tmp_path / "previews"),
        PREVIEW_CONTENT_TYPES="",
        PREVIEW_OPEN=False,
    )


@pytest.fixture
def launcher():
    return MagicMock()


@pytest.fixture
def server(settings, launcher):
    with SmtpController(settings=settings, launcher=launcher) as controller:
        yield controller


def _message() -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = "alice@example.com"
    msg["To"] = "bob@example.com"
    msg["Subject"] = "Factura de marzo"
    msg.set_content("Hola Bob, adjunto la factura.")
    msg.add_alternative("<p>Hola <b>Bob</b>, adjunto la factura.</p>", subtype="html")
    msg.add_attachment(b"%PDF-1.4 factura", maintype="application", subtype="pdf", filename="factura.pdf")
    return msg


def test_message_is_captured_and_previewed(server, settings, launcher):
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as client:
        client.send_message(_message())

    files = sorted(settings.preview_dir_path().iterdir())
    names = [f.name for f in files]
    assert len(files) == 3
    assert any(n.startswith("factura") and n.endswith(".pdf") for n in names)
    assert any(n.startswith("text-html") and n.endswith(".html") for n in names)
    assert any(n.startswith("text-plain") and n.endswith(".txt") for n in names)

    pdf = next(f for f in files if f.suffix == ".pdf")
    assert pdf.read_bytes() == b"%PDF-1.4 factura"

    html = next(f for f in files if f.suffix == ".html").read_text(encoding="utf-8")
    assert "Factura de marzo" in html
    assert "<b>Bob</b>" in html
    assert pdf.as_uri() in html

    assert launcher.call_count == 2


def test_authenticated_session(server, settings):
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as client:
        client.login("username", "password")
        client.send_message(_message())
    assert len(list(settings.preview_dir_path().iterdir())) == 3


def test_wrong_credentials_rejected(server, settings):
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as client:
        with pytest.raises(smtplib.SMTPAuthenticationError):
            client.login("username", "nope")


def test_unparseable_message_is_rejected(server, settings):
    raw = b"From: a@example.com\r\nTo: b@example.com\r\n\r\nno content type"
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as client:
        with pytest.raises(smtplib.SMTPDataError) as excinfo:
            client.sendmail("a@example.com", ["b@example.com"], raw)
    assert excinfo.value.smtp_code == 554
    assert list(settings.preview_dir_path().iterdir()) == []
