"""Unit tests for the Word serializer."""

import io

from docx import Document

from app.images.fit import fit
from app.pipeline.assemble import DocumentMetadata, assemble
from app.render.docx_writer import EMU_PER_PIXEL, render_docx

from tests.conftest import make_image_bytes

META = DocumentMetadata(title="Acme 4.2 Release Notes", author="Docs Team", version="4.2.0")


def _reopen(data: bytes):
    return Document(io.BytesIO(data))


def test_body_layout(fixed_day):
    document = assemble(
        ["[bugfix] Login no longer crashes", "[feature] Export to CSV", "[feature] ★"],
        META,
        today=fixed_day,
    )
    doc = _reopen(render_docx(document))

    texts = [p.text for p in doc.paragraphs if p.text]
    assert texts[0] == "Acme 4.2 Release Notes"
    assert texts.index("New Features") < texts.index("Bug Fixes")
    assert "Export to CSV" in texts
    assert texts[-1] == "Generated by PhosDocs"

    [table] = doc.tables
    assert [[c.text for c in row.cells] for row in table.rows] == [
        ["Version", "4.2.0"],
        ["Release Date", "14/03/2025"],
        ["Author", "Docs Team"],
    ]


def test_placeholder_bullet_is_styled(fixed_day):
    document = assemble(["[feature] ★★"], META, today=fixed_day)
    doc = _reopen(render_docx(document))
    [para] = [p for p in doc.paragraphs if p.style.name == "List Bullet"]
    [run] = para.runs
    assert run.italic
    assert "Invalid entry" in run.text


def test_logo_in_header_at_fitted_size(fixed_day):
    logo = fit(make_image_bytes(400, 200), 120, 100)
    document = assemble(["[feature] x"], META, logo=logo, today=fixed_day)
    doc = _reopen(render_docx(document))

    header_xml = doc.sections[0].header.paragraphs[0]._p.xml
    assert "pic:pic" in header_xml
    assert f'cx="{120 * EMU_PER_PIXEL}"' in header_xml
    assert f'cy="{60 * EMU_PER_PIXEL}"' in header_xml


def test_no_logo_leaves_header_empty(fixed_day):
    document = assemble(["[feature] x"], META, today=fixed_day)
    doc = _reopen(render_docx(document))
    header = doc.sections[0].header
    assert "pic:pic" not in header.paragraphs[0]._p.xml


def test_empty_document_still_renders(fixed_day):
    data = render_docx(assemble([], META, today=fixed_day))
    assert data[:2] == b"PK"
    doc = _reopen(data)
    assert not [p for p in doc.paragraphs if p.style.name == "List Bullet"]


def test_control_characters_never_reach_the_xml(fixed_day):
    document = assemble(
        ["[feature] export\x0bto pdf", "[bugfix] crash\x1con save"],
        DocumentMetadata(title="R\x0c", author="A\x1f"),
        today=fixed_day,
    )
    doc = _reopen(render_docx(document))
    texts = [p.text for p in doc.paragraphs if p.text]
    assert texts[0] == "R"
    assert "exportto pdf" in texts
    assert "crashon save" in texts
