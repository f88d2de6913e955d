"""Tailoring adapter - rewrites the extracted resume for one job in Markdown."""

from __future__ import annotations

import logging

import anthropic

from cv_tailor.clients.llm_client import LLMClient, as_service_error
from cv_tailor.errors import TailoringEmptyError
from cv_tailor.models.tailoring import TailoredDocument, TailoringContext
from cv_tailor.templates.loader import ResumeTemplate

logger = logging.getLogger(__name__)

DEFAULT_MIN_LENGTH = 50

SYSTEM_PROMPT = """\
You are an expert resume writer. You tailor an existing resume to a specific job
and return it as Markdown in a fixed structure.

Rules:
1. Keep every fact from the original resume. Never invent roles, employers, dates,
   degrees, certifications or metrics.
2. Restructure and reorder content so the most relevant experience comes first.
3. Use keywords from the job description only where they fit the candidate's real
   experience. Do not stuff keywords.
4. Follow the template structure exactly: its header layout, its section headings
   in the given order, and its Markdown conventions.
5. Markdown conventions: the candidate name alone on the first line, contact lines
   directly below it, `## ` for section headings, `### ` for role or project titles,
   `- ` for bullet points, `**bold**` and `*italic*` for emphasis, `---` for a rule.
   No tables, links, images or HTML.
6. Respond with the resume Markdown only. No code fences, no preamble, no notes."""


def _strip_code_fences(text: str) -> str:
    """Remove an enclosing markdown code fence, if the model added one."""
    lines = text.strip().split("\n")
    if not lines or not lines[0].strip().startswith("```"):
        return text.strip()
    lines = lines[1:]
    while lines and lines[-1].strip() in ("```", ""):
        lines = lines[:-1]
    return "\n".join(lines).strip()


class ResumeWriter:
    stage = "tailoring"

    def __init__(
        self,
        llm: LLMClient,
        template: ResumeTemplate,
        *,
        model: str = "claude-sonnet-4-5-20250929",
        temperature: float = 0.3,
        max_tokens: int = 8192,
        min_length: int = DEFAULT_MIN_LENGTH,
    ):
        self.llm = llm
        self.template = template
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.min_length = min_length

    async def write(self, resume_text: str, context: TailoringContext) -> TailoredDocument:
        """Generate a tailored resume for ``context`` from ``resume_text``."""
        prompt = f"""Tailor the resume below for this position.

## Template structure (follow this order and these headings)
{self._format_template(self.template)}

## Target position
Job title: {context.job_title}
Company: {context.company_name}

## Job description
{context.job_description or "Not provided."}

## Original resume
{resume_text}

Return the tailored resume as Markdown only."""

        try:
            response = await self.llm.generate(
                prompt=prompt,
                system=SYSTEM_PROMPT,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except anthropic.APIError as e:
            raise as_service_error(self.stage, e) from e

        markdown = _strip_code_fences(response.text or "")
        if len(markdown) < self.min_length:
            raise TailoringEmptyError(
                f"tailoring returned {len(markdown)} characters (minimum {self.min_length})"
            )
        logger.debug("Tailored resume: %d chars", len(markdown))
        return TailoredDocument(markdown=markdown)

    def _format_template(self, template: ResumeTemplate) -> str:
        lines = [
            f"Template: {template.name}",
            f"- Header line 1: {template.header.name_line}",
            f"- Header lines 2+: {template.header.contact_lines}",
        ]
        for s in template.sections:
            req = "required" if s.required else "optional, omit if the resume has none"
            line = f"- ## {s.label} ({req})"
            if s.content_type:
                line += f" | format: {s.content_type}"
            if s.fields:
                line += f" | fields: {', '.join(s.fields)}"
            if s.sort_order:
                line += f" | order: {s.sort_order}"
            if s.max_length:
                line += f" | max {s.max_length} characters"
            lines.append(line)
        return "\n".join(lines)
