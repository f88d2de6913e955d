"""Keyword-coverage score for a tailored resume."""

from __future__ import annotations

import re

DEFAULT_SCORE = 75

_WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9+#.\-]*[a-z0-9+#]|[a-z0-9]")

_STOPWORDS = frozenset("""
a about above after all also an and any are as at be been being both but by can
could did do does doing for from had has have having he her here hers him his how
i if in into is it its itself just may me more most must my no nor not of off on
once only or other our ours out over own per same she should so some such than
that the their theirs them then there these they this those through to too under
until up very was we were what when where which while who whom why will with
within without would you your yours able across etc including like looking new
role team work working years year strong experience using use well join
responsibilities requirements required preferred plus skills ability candidate
""".split())


def keywords(text: str) -> set[str]:
    """Distinct lower-cased content words of at least three characters."""
    return {
        word
        for word in _WORD_PATTERN.findall(text.lower())
        if len(word) >= 3 and word not in _STOPWORDS and not word.isdigit()
    }


def score_tailoring(tailored_markdown: str, job_description: str) -> int:
    """Share (0-100) of job-description keywords present in the tailored resume."""
    wanted = keywords(job_description)
    if not wanted:
        return DEFAULT_SCORE
    present = keywords(tailored_markdown)
    return round(100 * len(wanted & present) / len(wanted))
