"""Tests for markdown sanitization before rendering."""

import unicodedata

from cv_tailor.export.layout import pdf_safe
from cv_tailor.parsers.sanitizer import sanitize


class TestSanitize:
    def test_composes_to_nfc(self):
        decomposed = "Jose\u0301"
        result = sanitize(decomposed)
        assert result == "Jos\u00e9"
        assert unicodedata.is_normalized("NFC", result)

    def test_keeps_tab_and_newline(self):
        assert sanitize("a\tb\nc") == "a\tb\nc"

    def test_normalizes_line_endings(self):
        assert sanitize("a\r\nb\rc") == "a\nb\nc"

    def test_strips_control_characters(self):
        assert sanitize("Jane\x00 Doe\x07\x1b\x7f") == "Jane Doe"

    def test_strips_zero_width_and_bom(self):
        assert sanitize("\ufeffJa\u200bne\u00ad Doe") == "Jane Doe"

    def test_strips_contact_icons(self):
        assert sanitize("\U0001f4e7 jane@example.com \u260e 555") == "jane@example.com 555"

    def test_markdown_is_untouched(self, sample_tailored_markdown):
        assert sanitize(sample_tailored_markdown) == sample_tailored_markdown

    def test_idempotent(self):
        text = "Re\u0144e\r\n\x01\u200b**Bold**"
        assert sanitize(sanitize(text)) == sanitize(text)

    def test_strips_bidi_and_format_characters(self):
        text = "\u202aJane\u202c \u202eDoe\u202c \u2066Acme\u2069 \u200eCorp\u200f"
        result = sanitize(text)
        assert result == "Jane Doe Acme Corp"
        assert not any(unicodedata.category(ch) == "Cf" for ch in result)

    def test_format_characters_do_not_reach_the_pdf_as_question_marks(self):
        assert "?" not in pdf_safe(sanitize("Jane \u202eDoe\u202c\u2067"))
