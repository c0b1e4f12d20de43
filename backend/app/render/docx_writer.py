"""
PhosDocs — Word (.docx) serializer.

Writes a DocumentModel with python-docx:

  header   : centered logo at its fitted size (or an empty paragraph)
  body     : title, metadata table, one heading + bullet list per section
  footer   : generator line

Placeholder bullets are kept and styled so missing content is visible.
"""

from __future__ import annotations

import io

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Emu, Pt, RGBColor

from app.models.document import DocumentModel, FittedImage
from app.utils.logging import logger, step_timer

EMU_PER_PIXEL = 9525  # 96 dpi

TITLE_COLOR = RGBColor(0x1A, 0x1A, 0x2E)
PLACEHOLDER_COLOR = RGBColor(0xCC, 0x00, 0x00)
MUTED_COLOR = RGBColor(0x99, 0x99, 0x99)


def _px(value: int) -> Emu:
    return Emu(value * EMU_PER_PIXEL)


def _write_header(doc, logo: FittedImage | None) -> None:
    header = doc.sections[0].header
    para = header.paragraphs[0]
    para.alignment = WD_ALIGN_PARAGRAPH.CENTER
    para.paragraph_format.space_after = Pt(10)
    if logo is None:
        return
    run = para.add_run()
    run.add_picture(io.BytesIO(logo.data), width=_px(logo.width), height=_px(logo.height))


def _write_metadata(doc, document: DocumentModel) -> None:
    table = doc.add_table(rows=0, cols=2)
    table.style = "Light Grid Accent 1"
    for row in document.metadata:
        cells = table.add_row().cells
        cells[0].text = row.label
        cells[1].text = row.value
    doc.add_paragraph("")


def _write_sections(doc, document: DocumentModel) -> None:
    for section in document.sections:
        doc.add_heading(section.heading, level=1)
        for bullet in section.bullets:
            para = doc.add_paragraph(style="List Bullet")
            run = para.add_run(bullet.text)
            if bullet.placeholder:
                run.italic = True
                run.font.color.rgb = PLACEHOLDER_COLOR
        doc.add_paragraph("")


def render_docx(document: DocumentModel) -> bytes:
    """Serialize ``document`` to .docx bytes."""
    with step_timer("Render Word document"):
        doc = Document()

        style = doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

        _write_header(doc, document.logo)

        title = doc.add_heading(level=0)
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title.add_run(document.title)
        run.font.size = Pt(22)
        run.font.color.rgb = TITLE_COLOR

        _write_metadata(doc, document)
        _write_sections(doc, document)

        footer_para = doc.add_paragraph()
        footer_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = footer_para.add_run("Generated by PhosDocs")
        run.font.size = Pt(8)
        run.font.color.rgb = MUTED_COLOR

        buf = io.BytesIO()
        doc.save(buf)
        data = buf.getvalue()

    logger.info("  Word document: %d sections, %d bytes", len(document.sections), len(data))
    return data
