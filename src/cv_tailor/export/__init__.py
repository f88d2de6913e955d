"""PDF export module for cv-tailor."""
from cv_tailor.export.layout import PageGeometry, PageLayout, TypeScale
from cv_tailor.export.markdown_blocks import LayoutDocument, parse_document
from cv_tailor.export.pdf_renderer import render_layout, render_pdf

__all__ = [
    "LayoutDocument",
    "PageGeometry",
    "PageLayout",
    "TypeScale",
    "parse_document",
    "render_layout",
    "render_pdf",
]
