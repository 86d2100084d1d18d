"""
Fixtures compartidas por la batería de tests de la preview de correo.
"""
import base64
from itertools import count

import pytest

from infrastructure.filesystem.storage import PreviewStorage


def crlf(*lines: str) -> bytes:
    return "\r\n".join(lines).encode("utf-8")


def b_word(text: str, charset: str = "UTF-8") -> str:
    return f"=?{charset}?B?{base64.b64encode(text.encode(charset)).decode()}?="


# ==========================================================================
# Storage
# ==========================================================================

@pytest.fixture
def preview_dir(tmp_path):
    return tmp_path / "previews"


@pytest.fixture
def storage(preview_dir):
    return PreviewStorage(base=preview_dir)


@pytest.fixture
def sequential_storage(preview_dir):
    """Storage con ids predecibles: id0, id1, ..."""
    ids = count()
    return PreviewStorage(base=preview_dir, id_factory=lambda: f"id{next(ids)}")


# ==========================================================================
# Mensajes crudos
# ==========================================================================

@pytest.fixture
def report_message():
    """multipart/mixed con un cuerpo HTML y un PDF cuyo nombre viene como encoded-word."""
    return crlf(
        "From: alice@example.com",
        "To: bob@example.com,carol@example.com",
        f"Subject: {b_word('Informe mensual')}",
        "MIME-Version: 1.0",
        'Content-Type: multipart/mixed; boundary="B"',
        "",
        "--B",
        "Content-Type: text/html; charset=utf-8",
        "",
        "<p>hi</p>",
        "--B",
        'Content-Type: application/pdf; name="=?UTF-8?B?cmVwb3J0?="',
        'Content-Disposition: attachment; filename="=?UTF-8?B?cmVwb3J0?="',
        "Content-Transfer-Encoding: base64",
        "",
        "JVBERi0xLjQ=",
        "--B--",
        "",
    )


@pytest.fixture
def plain_message():
    return crlf(
        "From: alice@example.com",
        "To: bob@example.com",
        "Subject: Hello",
        "Content-Type: text/plain; charset=utf-8",
        "",
        "Hello world",
    )

