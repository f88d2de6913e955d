"""Paginate a LayoutDocument into positioned drawing operations.

Coordinates follow the PDF page space: origin at the bottom-left corner,
``y`` growing upwards. The cursor ``y`` is the top of the next line; a line
is committed only if its full height fits above the bottom margin,
otherwise a new page is started first.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from fpdf import FPDF

from cv_tailor.export.markdown_blocks import (
    Blank,
    Block,
    Bullet,
    LayoutDocument,
    NameHeader,
    Paragraph,
    Rule,
    SectionHeading,
    Span,
    SpanStyle,
    parse_spans,
)

logger = logging.getLogger(__name__)

FONT_FAMILY = "helvetica"

STYLE_CODES = {
    SpanStyle.PLAIN: "",
    SpanStyle.BOLD: "B",
    SpanStyle.ITALIC: "I",
}

# Core PDF fonts only cover Latin-1
_TRANSLITERATIONS = str.maketrans({
    "\u2022": "\u00b7",
    "\u2013": "-",
    "\u2014": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2026": "...",
    "\u00a0": " ",
    "\t": " ",
})

_TOKEN_PATTERN = re.compile(r"\S+|\s+")


def pdf_safe(text: str) -> str:
    """Map ``text`` onto characters the core fonts can draw."""
    text = text.translate(_TRANSLITERATIONS)
    return text.encode("latin-1", errors="replace").decode("latin-1")


@dataclass(frozen=True)
class PageGeometry:
    width: float = 612.0
    height: float = 792.0
    margin: float = 56.0
    line_gap: float = 5.0

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def top(self) -> float:
        return self.height - self.margin


@dataclass(frozen=True)
class TypeScale:
    name: float = 20.0
    headline: float = 11.0
    contact: float = 9.0
    heading: float = 12.0
    subheading: float = 11.0
    body: float = 10.0
    footer: float = 8.0


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float  # baseline
    text: str
    style: SpanStyle
    size: float
    width: float
    color: tuple[int, int, int] = (33, 33, 33)


@dataclass(frozen=True)
class LineOp:
    x1: float
    x2: float
    y: float
    thickness: float
    color: tuple[int, int, int] = (27, 54, 93)


@dataclass(frozen=True)
class BoxOp:
    x: float
    y: float  # bottom edge
    size: float
    color: tuple[int, int, int] = (27, 54, 93)


DrawOp = TextOp | LineOp | BoxOp


@dataclass
class Cursor:
    page_index: int
    x: float
    y: float


@dataclass
class PageLayout:
    pages: list[list[DrawOp]] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def text_ops(self, page: int | None = None) -> list[TextOp]:
        pages = self.pages if page is None else [self.pages[page]]
        return [op for ops in pages for op in ops if isinstance(op, TextOp)]


class FontMetrics:
    """Measures text widths in points using the core font metrics."""

    def __init__(self, family: str = FONT_FAMILY):
        self.family = family
        self._pdf = FPDF(unit="pt")
        self._cache: dict[tuple[str, SpanStyle, float], float] = {}

    def width(self, text: str, style: SpanStyle, size: float) -> float:
        key = (text, style, size)
        cached = self._cache.get(key)
        if cached is None:
            self._pdf.set_font(self.family, style=STYLE_CODES[style], size=size)
            cached = self._pdf.get_string_width(text)
            self._cache[key] = cached
        return cached


HEADER_COLOR = (27, 54, 93)
MUTED_COLOR = (96, 96, 96)

SECTION_GAP = 8.0
RULE_GAP = 6.0
BLANK_GAP = 4.0
BULLET_INDENT = 14.0
BULLET_SIZE = 3.0


class LayoutEngine:
    """Greedy word-wrapping, paginating layout pass.

    One engine instance lays out one document; the cursor is owned by
    the pass and reset to the top margin on each new page.
    """

    def __init__(
        self,
        geometry: PageGeometry | None = None,
        scale: TypeScale | None = None,
        metrics: FontMetrics | None = None,
    ):
        self.geometry = geometry or PageGeometry()
        self.scale = scale or TypeScale()
        self.metrics = metrics or FontMetrics()
        self.layout = PageLayout()
        self.cursor = Cursor(page_index=-1, x=self.geometry.margin, y=self.geometry.top)

    # -- page handling -----------------------------------------------------

    def _new_page(self, indent: float | None = None) -> None:
        self.layout.pages.append([])
        self.cursor = Cursor(
            page_index=len(self.layout.pages) - 1,
            x=self.geometry.margin if indent is None else indent,
            y=self.geometry.top,
        )

    def _ensure_room(self, height: float, indent: float | None = None) -> None:
        if self.cursor.y - height < self.geometry.margin:
            self._new_page(indent)

    def _emit(self, op: DrawOp) -> None:
        self.layout.pages[self.cursor.page_index].append(op)

    def _line_height(self, size: float) -> float:
        return size + self.geometry.line_gap

    # -- primitives ----------------------------------------------------------

    def _advance(self, dy: float) -> None:
        """Move down without starting a page; the next line breaks if needed."""
        self.cursor.y = max(self.cursor.y - dy, self.geometry.margin)

    def _rule(self, thickness: float = 1.0, offset: float = 3.0) -> None:
        g = self.geometry
        self._ensure_room(offset)
        self._emit(LineOp(g.margin, g.width - g.margin, self.cursor.y - offset, thickness))
        self._advance(offset + RULE_GAP)

    def _commit_line(
        self,
        tokens: list[tuple[str, SpanStyle, float]],
        indent: float,
        size: float,
        color: tuple[int, int, int],
    ) -> None:
        while tokens and tokens[-1][0].isspace():
            tokens.pop()
        if not tokens:
            return

        line_height = self._line_height(size)
        if self.cursor.y - line_height < self.geometry.margin:
            self._new_page(indent)

        baseline = self.cursor.y - size
        x = indent
        run_text, run_style, run_width = "", tokens[0][1], 0.0
        for text, style, width in tokens:
            if style is not run_style:
                self._emit(TextOp(x, baseline, run_text, run_style, size, run_width, color))
                x += run_width
                run_text, run_style, run_width = "", style, 0.0
            run_text += text
            run_width += width
        self._emit(TextOp(x, baseline, run_text, run_style, size, run_width, color))
        self.cursor.y -= line_height
        self.cursor.x = indent

    def _split_long_token(
        self, text: str, style: SpanStyle, size: float, limit: float
    ) -> list[str]:
        chunks: list[str] = []
        current = ""
        for ch in text:
            if current and self.metrics.width(current + ch, style, size) > limit:
                chunks.append(current)
                current = ch
            else:
                current += ch
        if current:
            chunks.append(current)
        return chunks

    def draw_spans(
        self,
        spans: tuple[Span, ...],
        size: float,
        indent: float | None = None,
        color: tuple[int, int, int] = (33, 33, 33),
    ) -> None:
        """Render styled text, wrapping greedily; continuation lines start at ``indent``."""
        g = self.geometry
        indent = g.margin if indent is None else indent
        limit = g.content_width - (indent - g.margin)

        line: list[tuple[str, SpanStyle, float]] = []
        self.cursor.x = indent
        for span in spans:
            for token in _TOKEN_PATTERN.findall(pdf_safe(span.text)):
                if token.isspace() and not line:
                    continue
                width = self.metrics.width(token, span.style, size)
                if self.cursor.x - g.margin + width > g.content_width and line:
                    self._commit_line(line, indent, size, color)
                    line = []
                    if token.isspace():
                        continue
                if width > limit:
                    pieces = self._split_long_token(token, span.style, size, limit)
                    for piece in pieces[:-1]:
                        self._commit_line(
                            [(piece, span.style, self.metrics.width(piece, span.style, size))],
                            indent, size, color,
                        )
                    token = pieces[-1]
                    width = self.metrics.width(token, span.style, size)
                line.append((token, span.style, width))
                self.cursor.x += width
        self._commit_line(line, indent, size, color)

    # -- blocks -------------------------------------------------------------

    def _draw_header(self, block: NameHeader, headline: str) -> None:
        s = self.scale
        if block.name:
            self.draw_spans((Span(block.name, SpanStyle.BOLD),), s.name, color=HEADER_COLOR)
        if headline:
            self.draw_spans((Span(headline, SpanStyle.BOLD),), s.headline)
        if block.contact_line:
            self.draw_spans(parse_spans(block.contact_line), s.contact, color=MUTED_COLOR)
        self._rule(thickness=1.2)

    def _draw_heading(self, block: SectionHeading) -> None:
        s = self.scale
        size = s.heading if block.level == 2 else s.subheading
        text = block.text.upper() if block.level == 2 else block.text
        self._advance(SECTION_GAP)
        # keep the heading and its rule together with the first body line
        self._ensure_room(self._line_height(size) + RULE_GAP + self._line_height(s.body))
        self.draw_spans((Span(text, SpanStyle.BOLD),), size, color=HEADER_COLOR)
        self._rule(thickness=0.8 if block.level == 2 else 0.4, offset=1.0)

    def _draw_bullet(self, block: Bullet) -> None:
        g, s = self.geometry, self.scale
        indent = g.margin + BULLET_INDENT
        self._ensure_room(self._line_height(s.body), indent)
        box_bottom = self.cursor.y - s.body + (s.body * 0.7 - BULLET_SIZE) / 2
        self._emit(BoxOp(g.margin + 3.0, box_bottom, BULLET_SIZE))
        if block.spans:
            self.draw_spans(block.spans, s.body, indent)
        else:
            self.cursor.y -= self._line_height(s.body)

    def _draw_block(self, block: Block, headline: str) -> None:
        if isinstance(block, NameHeader):
            self._draw_header(block, headline)
        elif isinstance(block, SectionHeading):
            self._draw_heading(block)
        elif isinstance(block, Rule):
            self._advance(RULE_GAP)
            self._rule(thickness=0.5, offset=0.0)
        elif isinstance(block, Bullet):
            self._draw_bullet(block)
        elif isinstance(block, Paragraph):
            self.draw_spans(block.spans, self.scale.body)
        elif isinstance(block, Blank):
            self._advance(BLANK_GAP)

    def _draw_footers(self, generated_on: str) -> None:
        g, s = self.geometry, self.scale
        baseline = g.margin / 2
        total = len(self.layout.pages)
        for index, ops in enumerate(self.layout.pages):
            label = pdf_safe(f"Page {index + 1} of {total}")
            width = self.metrics.width(label, SpanStyle.ITALIC, s.footer)
            ops.append(TextOp(
                g.width - g.margin - width, baseline, label,
                SpanStyle.ITALIC, s.footer, width, MUTED_COLOR,
            ))
            if generated_on:
                text = pdf_safe(f"Generated on {generated_on}")
                ops.append(TextOp(
                    g.margin, baseline, text, SpanStyle.ITALIC, s.footer,
                    self.metrics.width(text, SpanStyle.ITALIC, s.footer), MUTED_COLOR,
                ))

    def run(self, document: LayoutDocument, headline: str = "", generated_on: str = "") -> PageLayout:
        self._new_page()
        for block in document.blocks:
            self._draw_block(block, headline)
        self._draw_footers(generated_on)
        logger.debug(
            "Laid out %d blocks on %d page(s)", len(document.blocks), self.layout.page_count
        )
        return self.layout


def layout_document(
    document: LayoutDocument,
    *,
    headline: str = "",
    generated_on: str = "",
    geometry: PageGeometry | None = None,
    scale: TypeScale | None = None,
    metrics: FontMetrics | None = None,
) -> PageLayout:
    """Lay out ``document`` onto fixed-size pages."""
    engine = LayoutEngine(geometry=geometry, scale=scale, metrics=metrics)
    return engine.run(document, headline=headline, generated_on=generated_on)
