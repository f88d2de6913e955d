"""Render tailored resume markdown to PDF bytes with fpdf2."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fpdf import FPDF
from fpdf.errors import FPDFException

from cv_tailor.errors import RenderError
from cv_tailor.export.layout import (
    FONT_FAMILY,
    STYLE_CODES,
    BoxOp,
    LineOp,
    PageGeometry,
    PageLayout,
    TextOp,
    TypeScale,
    layout_document,
    pdf_safe,
)
from cv_tailor.export.markdown_blocks import parse_document

logger = logging.getLogger(__name__)

# Fixed metadata timestamp keeps output byte-identical across runs
_CREATION_DATE = datetime(2000, 1, 1, tzinfo=timezone.utc)


def render_layout(
    resume_markdown: str,
    *,
    headline: str = "",
    generated_on: str = "",
    geometry: PageGeometry | None = None,
    scale: TypeScale | None = None,
) -> PageLayout:
    """Parse and paginate markdown without producing PDF bytes."""
    document = parse_document(resume_markdown)
    return layout_document(
        document,
        headline=headline,
        generated_on=generated_on,
        geometry=geometry,
        scale=scale,
    )


def write_pdf(layout: PageLayout, geometry: PageGeometry, title: str = "Resume") -> bytes:
    """Paint a finished layout onto PDF pages.

    Layout coordinates have their origin at the bottom-left; fpdf2 measures
    from the top-left, so every ``y`` is flipped against the page height.
    """
    try:
        pdf = FPDF(unit="pt", format=(geometry.width, geometry.height))
        pdf.set_auto_page_break(False)
        pdf.set_creation_date(_CREATION_DATE)
        pdf.set_title(pdf_safe(title))
        pdf.set_creator("cv-tailor")

        height = geometry.height
        for ops in layout.pages:
            pdf.add_page()
            for op in ops:
                if isinstance(op, TextOp):
                    pdf.set_font(FONT_FAMILY, style=STYLE_CODES[op.style], size=op.size)
                    pdf.set_text_color(*op.color)
                    pdf.text(op.x, height - op.y, op.text)
                elif isinstance(op, LineOp):
                    pdf.set_draw_color(*op.color)
                    pdf.set_line_width(op.thickness)
                    pdf.line(op.x1, height - op.y, op.x2, height - op.y)
                elif isinstance(op, BoxOp):
                    pdf.set_fill_color(*op.color)
                    pdf.rect(op.x, height - op.y - op.size, op.size, op.size, style="F")
        return bytes(pdf.output())
    except (FPDFException, UnicodeEncodeError) as exc:
        logger.error("PDF writer failed", exc_info=True)
        raise RenderError(f"PDF writer failed: {exc}") from exc


def document_title(resume_markdown: str) -> str:
    """PDF title: the candidate name from the header, or a generic label."""
    header = parse_document(resume_markdown).header
    return header.name if header and header.name else "Resume"


def render_pdf(
    resume_markdown: str,
    *,
    headline: str = "",
    generated_on: str = "",
    geometry: PageGeometry | None = None,
    scale: TypeScale | None = None,
) -> bytes:
    """Convert constrained resume markdown to PDF bytes.

    The output depends only on the arguments: the same markdown, headline,
    date string and geometry always produce the same bytes.
    """
    geometry = geometry or PageGeometry()
    layout = render_layout(
        resume_markdown,
        headline=headline,
        generated_on=generated_on,
        geometry=geometry,
        scale=scale,
    )
    title = document_title(resume_markdown)
    logger.debug("Rendering %d page(s) for %r", layout.page_count, title)
    return write_pdf(layout, geometry, title=title)
