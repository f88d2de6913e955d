"""Tests for the pagination and word-wrapping layout pass."""

from __future__ import annotations

import math

import pytest

from cv_tailor.export.layout import (
    BULLET_INDENT,
    BoxOp,
    FontMetrics,
    LineOp,
    PageGeometry,
    PageLayout,
    TextOp,
    TypeScale,
    layout_document,
    pdf_safe,
)
from cv_tailor.export.markdown_blocks import SpanStyle, parse_document

GEOMETRY = PageGeometry()
SCALE = TypeScale()

LOREM = (
    "Delivered resilient payment services for enterprise customers while mentoring "
    "engineers and coordinating releases across several product teams in three regions"
)


def _body_lines(layout: PageLayout) -> dict[tuple[int, float], list[TextOp]]:
    """Group non-footer text ops into visual lines keyed by (page, baseline)."""
    lines: dict[tuple[int, float], list[TextOp]] = {}
    for page, ops in enumerate(layout.pages):
        for op in ops:
            if isinstance(op, TextOp) and op.size != SCALE.footer:
                lines.setdefault((page, op.y), []).append(op)
    for ops in lines.values():
        ops.sort(key=lambda op: op.x)
    return lines


def _layout(markdown: str, **kwargs) -> PageLayout:
    return layout_document(parse_document(markdown), geometry=GEOMETRY, **kwargs)


class TestWrapping:
    def test_short_paragraph_is_one_line(self):
        layout = _layout("## Summary\nShort line.")
        texts = [op.text for op in layout.text_ops() if op.size == SCALE.body]
        assert texts == ["Short line."]

    def test_wrapped_line_count_and_width(self):
        text = " ".join([LOREM] * 3)
        metrics = FontMetrics()
        total_width = metrics.width(text, SpanStyle.PLAIN, SCALE.body)
        content_width = GEOMETRY.content_width

        layout = _layout(f"## Summary\n{text}")
        body = [ops for ops in _body_lines(layout).values() if ops[0].size == SCALE.body]

        drawn_width = sum(op.width for ops in body for op in ops)
        assert len(body) >= math.ceil(drawn_width / content_width)
        assert len(body) <= math.ceil(total_width / content_width) + 1
        for ops in body:
            right_edge = ops[-1].x + ops[-1].width
            assert right_edge <= GEOMETRY.margin + content_width + 1e-6

    def test_no_text_is_lost_when_wrapping(self):
        text = " ".join([LOREM] * 2)
        layout = _layout(f"## Summary\n{text}")
        words = [
            op.text for op in layout.text_ops() if op.size == SCALE.body
        ]
        assert " ".join(words).split() == text.split()

    def test_lines_never_start_with_whitespace(self):
        layout = _layout("## Summary\n" + " ".join([LOREM] * 4))
        for ops in _body_lines(layout).values():
            assert not ops[0].text[:1].isspace()

    def test_styles_keep_their_own_runs(self):
        layout = _layout("## Summary\nUsed **Python** and *Go* daily")
        body = [op for op in layout.text_ops() if op.size == SCALE.body]
        assert [(op.text, op.style) for op in body] == [
            ("Used ", SpanStyle.PLAIN),
            ("Python", SpanStyle.BOLD),
            (" and ", SpanStyle.PLAIN),
            ("Go", SpanStyle.ITALIC),
            (" daily", SpanStyle.PLAIN),
        ]
        for left, right in zip(body, body[1:]):
            assert right.x == pytest.approx(left.x + left.width)

    def test_unbreakable_token_is_split_to_fit(self):
        token = "x" * 400
        layout = _layout(f"## Links\n{token}")
        body = [op for op in layout.text_ops() if op.size == SCALE.body]
        assert len(body) > 1
        assert "".join(op.text for op in body) == token
        assert all(op.width <= GEOMETRY.content_width + 1e-6 for op in body)


class TestBullets:
    def test_hanging_indent(self):
        layout = _layout("## Experience\n- " + " ".join([LOREM] * 2))
        body = [ops for ops in _body_lines(layout).values() if ops[0].size == SCALE.body]
        assert len(body) > 1
        indent = GEOMETRY.margin + BULLET_INDENT
        assert all(ops[0].x == pytest.approx(indent) for ops in body)

    def test_marker_is_drawn_at_margin(self):
        layout = _layout("## Experience\n- one\n- two")
        boxes = [op for op in layout.pages[0] if isinstance(op, BoxOp)]
        assert len(boxes) == 2
        assert all(GEOMETRY.margin <= box.x < GEOMETRY.margin + BULLET_INDENT for box in boxes)


class TestHeaderAndHeadings:
    def test_header_draws_name_headline_contact_and_rule(self):
        layout = _layout(
            "**Jane Doe**\njane@example.com\n\n## Summary\nHello there",
            headline="Backend Engineer | Acme",
        )
        ops = layout.text_ops(0)
        assert (ops[0].text, ops[0].style, ops[0].size) == ("Jane Doe", SpanStyle.BOLD, SCALE.name)
        assert (ops[1].text, ops[1].style) == ("Backend Engineer | Acme", SpanStyle.BOLD)
        assert ops[2].text == "jane@example.com"
        assert ops[2].size == SCALE.contact
        assert any(isinstance(op, LineOp) for op in layout.pages[0])

    def test_level_two_heading_is_uppercased(self):
        layout = _layout("## Key Skills\n- Python")
        assert "KEY SKILLS" in [op.text for op in layout.text_ops()]

    def test_level_three_heading_keeps_case(self):
        layout = _layout("### Senior Engineer\n- Python")
        assert "Senior Engineer" in [op.text for op in layout.text_ops()]

    def test_rule_spans_content_width(self):
        layout = _layout("## A\nx\n---\ny")
        rules = [op for op in layout.pages[0] if isinstance(op, LineOp)]
        assert any(
            op.x1 == GEOMETRY.margin and op.x2 == GEOMETRY.width - GEOMETRY.margin for op in rules
        )


class TestPagination:
    def _long_markdown(self, sections: int = 12) -> str:
        parts = ["Jane Doe", "jane@example.com", ""]
        for i in range(sections):
            parts.append(f"### Role {i}")
            parts.extend(f"- {LOREM}" for _ in range(4))
            parts.append("")
        return "\n".join(parts)

    def test_long_document_spans_pages(self):
        layout = _layout(self._long_markdown())
        assert layout.page_count > 1

    def test_baselines_stay_above_bottom_margin(self):
        layout = _layout(self._long_markdown())
        for (_, baseline), _ops in _body_lines(layout).items():
            assert baseline >= GEOMETRY.margin
        for ops in layout.pages:
            for op in ops:
                if isinstance(op, BoxOp):
                    assert op.y >= GEOMETRY.margin

    def test_page_count_is_monotonic(self):
        counts = [_layout(self._long_markdown(n)).page_count for n in range(0, 16, 3)]
        assert counts == sorted(counts)

    def test_footer_on_every_page(self):
        layout = _layout(self._long_markdown(), generated_on="2025-01-31")
        total = layout.page_count
        for index in range(total):
            texts = [op.text for op in layout.text_ops(index)]
            assert f"Page {index + 1} of {total}" in texts
            assert "Generated on 2025-01-31" in texts

    def test_layout_is_deterministic(self):
        markdown = self._long_markdown()
        assert _layout(markdown, headline="X | Y") == _layout(markdown, headline="X | Y")

    def test_blank_lines_never_add_pages(self):
        assert _layout("## A\nx" + "\n" * 500).page_count == 1


class TestPdfSafe:
    def test_transliterates_typographic_characters(self):
        assert pdf_safe("\u201cquoted\u201d \u2013 it\u2019s\u2026") == '"quoted" - it\'s...'

    def test_replaces_characters_outside_latin1(self):
        assert pdf_safe("\u4e2d") == "?"
