"""
Tests unitarios del render de previews a partir de un Email.
"""
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from application.services.preview_renderer import PreviewRenderer, artifact_extension
from domain.errors import NoBodiesError, RenderError
from domain.models import Attachment, Body, Email


@pytest.fixture
def email():
    return Email(
        from_="Alice <alice@example.com>",
        to=["bob@example.com", "carol@example.com"],
        cc=[""],
        bcc=[""],
        subject="<b>Presupuesto</b> & más",
        bodies=[
            Body(content_type="text/plain", content="Hola Bob"),
            Body(content_type="text/html", content="<p>Hola <b>Bob</b></p>"),
        ],
    )


class TestRender:
    def test_one_artifact_per_body(self, sequential_storage, email):
        paths = PreviewRenderer(storage=sequential_storage).render(email)

        assert [p.name for p in paths] == ["text-plainid0.txt", "text-htmlid1.html"]
        assert all(p.parent == sequential_storage.base for p in paths)

    def test_html_escapes_headers_but_not_body(self, storage, email):
        email.bodies = [Body(content_type="text/html", content="<p>Hola <b>Bob</b></p>")]
        [path] = PreviewRenderer(storage=storage).render(email)
        html = path.read_text(encoding="utf-8")

        assert "&lt;b&gt;Presupuesto&lt;/b&gt; &amp; más" in html
        assert "Alice &lt;alice@example.com&gt;" in html
        assert "bob@example.com, carol@example.com" in html
        assert "<p>Hola <b>Bob</b></p>" in html

    def test_plain_text_is_not_escaped(self, storage, email):
        email.bodies = [Body(content_type="text/plain", content="Hola Bob")]
        [path] = PreviewRenderer(storage=storage).render(email)
        text = path.read_text(encoding="utf-8")

        assert "Subject: <b>Presupuesto</b> & más" in text
        assert "From: Alice <alice@example.com>" in text
        assert "Hola Bob" in text

    def test_allow_list_filters_bodies(self, storage, email):
        paths = PreviewRenderer(storage=storage, allowed_types=["text/html"]).render(email)
        assert len(paths) == 1
        assert paths[0].suffix == ".html"

    def test_attachments_are_linked_in_html(self, storage, email, tmp_path):
        pdf = tmp_path / "report.pdf"
        pdf.write_bytes(b"%PDF")
        email.attachments = [Attachment(name="report", content_type="application/pdf", data=b"%PDF", path=str(pdf))]
        email.bodies = [Body(content_type="text/html", content="<p>x</p>")]

        [path] = PreviewRenderer(storage=storage).render(email)
        html = path.read_text(encoding="utf-8")
        assert pdf.resolve().as_uri() in html
        assert ">report</a>" in html

    def test_custom_named_placeholders(self, storage, email):
        renderer = PreviewRenderer(storage=storage, templates={"text/plain": "[${subject}] ${body}"})
        email.bodies = [Body(content_type="text/plain", content="cuerpo")]
        [path] = renderer.render(email)
        assert path.read_text(encoding="utf-8") == "[<b>Presupuesto</b> & más] cuerpo"


class TestRenderErrors:
    def test_no_bodies_fails_without_writing(self, storage):
        with pytest.raises(NoBodiesError):
            PreviewRenderer(storage=storage).render(Email())
        assert list(storage.base.iterdir()) == []

    def test_missing_template_fails_without_writing(self, storage, email):
        email.bodies.append(Body(content_type="text/calendar", content="BEGIN:VCALENDAR"))
        with pytest.raises(RenderError, match="text/calendar"):
            PreviewRenderer(storage=storage).render(email)
        assert list(storage.base.iterdir()) == []

    def test_unknown_placeholder_is_render_error(self, storage, email):
        renderer = PreviewRenderer(storage=storage, templates={"text/plain": "${nope}", "text/html": ""})
        with pytest.raises(RenderError):
            renderer.render(email)


class TestLauncher:
    def test_launcher_receives_each_path(self, storage, email):
        launcher = MagicMock()
        paths = PreviewRenderer(storage=storage, launcher=launcher).render(email)
        assert [c.args[0] for c in launcher.call_args_list] == paths

    def test_launcher_failure_is_not_propagated(self, storage, email):
        launcher = MagicMock(side_effect=RuntimeError("no browser"))
        paths = PreviewRenderer(storage=storage, launcher=launcher).render(email)
        assert len(paths) == 2
        assert all(Path(p).exists() for p in paths)


@pytest.mark.parametrize(
    "content_type, expected",
    [("text/html", ".html"), ("text/plain", ".txt"), ("application/x-unknown-thing", ".txt")],
)
def test_artifact_extension(content_type, expected):
    assert artifact_extension(content_type) == expected
