"""Parse constrained resume markdown into layout blocks.

The dialect is small: a name/contact block before the first heading, then
one block per line. Headings are ``##``/``###`` lines (optionally wrapped in
``**``) or a bare known section title; bullets start with ``-``, ``*`` or a
bullet character; ``---`` is a rule; everything else is a paragraph.
Inline ``**bold**`` and ``*italic*`` runs become styled spans.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class SpanStyle(str, Enum):
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"


@dataclass(frozen=True)
class Span:
    text: str
    style: SpanStyle = SpanStyle.PLAIN


@dataclass(frozen=True)
class NameHeader:
    name: str
    contact_line: str


@dataclass(frozen=True)
class SectionHeading:
    text: str
    level: int


@dataclass(frozen=True)
class Rule:
    pass


@dataclass(frozen=True)
class Bullet:
    spans: tuple[Span, ...]


@dataclass(frozen=True)
class Paragraph:
    spans: tuple[Span, ...]


@dataclass(frozen=True)
class Blank:
    pass


Block = NameHeader | SectionHeading | Rule | Bullet | Paragraph | Blank


@dataclass(frozen=True)
class LayoutDocument:
    blocks: tuple[Block, ...]

    @property
    def header(self) -> NameHeader | None:
        for block in self.blocks:
            if isinstance(block, NameHeader):
                return block
        return None


SECTION_TITLES = frozenset({
    "professional summary",
    "summary",
    "key skills",
    "skills",
    "professional experience",
    "experience",
    "education",
    "certifications",
    "projects",
    "references",
})

CONTACT_SEPARATOR = " \u2022 "

_H3_PATTERN = re.compile(r"^###\s+(.+)$")
_H2_PATTERN = re.compile(r"^##\s+(.+)$")
_BULLET_PATTERN = re.compile(r"^(?:[-*]|\u2022)\s+(.*)$")
_BOLD_WRAPPED = re.compile(r"^\*\*(.+)\*\*$")
_INLINE_PATTERN = re.compile(r"\*\*(.+?)\*\*|\*(.+?)\*")


def _unwrap_bold(text: str) -> str:
    text = text.strip()
    match = _BOLD_WRAPPED.match(text)
    return match.group(1).strip() if match else text


def _is_heading_line(line: str) -> bool:
    stripped = line.strip()
    if _H3_PATTERN.match(stripped) or _H2_PATTERN.match(stripped):
        return True
    return _unwrap_bold(stripped).lower() in SECTION_TITLES


def parse_spans(text: str) -> tuple[Span, ...]:
    """Split ``text`` into plain, bold and italic spans in reading order."""
    spans: list[Span] = []

    def _add(chunk: str, style: SpanStyle) -> None:
        if not chunk:
            return
        if spans and spans[-1].style is style:
            spans[-1] = Span(spans[-1].text + chunk, style)
        else:
            spans.append(Span(chunk, style))

    pos = 0
    for match in _INLINE_PATTERN.finditer(text):
        _add(text[pos:match.start()], SpanStyle.PLAIN)
        if match.group(1) is not None:
            _add(match.group(1), SpanStyle.BOLD)
        else:
            _add(match.group(2), SpanStyle.ITALIC)
        pos = match.end()
    _add(text[pos:], SpanStyle.PLAIN)
    return tuple(spans)


def classify_line(line: str) -> Block:
    """Classify one body line. Every line maps to exactly one block."""
    stripped = line.strip()
    if not stripped:
        return Blank()
    if stripped == "---":
        return Rule()

    match = _H3_PATTERN.match(stripped)
    if match:
        return SectionHeading(_unwrap_bold(match.group(1)), 3)
    match = _H2_PATTERN.match(stripped)
    if match:
        return SectionHeading(_unwrap_bold(match.group(1)), 2)
    title = _unwrap_bold(stripped)
    if title.lower() in SECTION_TITLES:
        return SectionHeading(title, 2)

    match = _BULLET_PATTERN.match(stripped)
    if match:
        return Bullet(parse_spans(match.group(1).strip()))
    return Paragraph(parse_spans(stripped))


def _clean_name(line: str) -> str:
    return _unwrap_bold(line.strip().lstrip("#").strip())


def parse_document(markdown: str) -> LayoutDocument:
    lines = markdown.split("\n")

    first_heading = next(
        (i for i, line in enumerate(lines) if _is_heading_line(line)),
        len(lines),
    )
    preamble, body = lines[:first_heading], lines[first_heading:]

    blocks: list[Block] = []
    start = next((i for i, line in enumerate(preamble) if line.strip()), None)
    if start is not None:
        contact: list[str] = []
        end = start + 1
        while end < len(preamble) and preamble[end].strip():
            contact.append(preamble[end].strip())
            end += 1
        blocks.append(NameHeader(_clean_name(preamble[start]), CONTACT_SEPARATOR.join(contact)))
        # preamble text after the contact run is kept as ordinary body lines
        body = preamble[end:] + body

    blocks.extend(classify_line(line) for line in body)
    return LayoutDocument(tuple(blocks))
