import re
import unicodedata

# Icons LLM output and Google Docs exports like to sprinkle into contact lines
EMOJI_PATTERN = (
    r"[\U0001f4e7\U0001f4de\U0001f4cd\U0001f4bc\U0001f4c5\U0001f393"
    r"\U0001f3e2\U0001f4dd\U0001f4c4\U0001f517\U0001f310\U0001f4f1"
    r"\u260e\u2709\u2706\u2702]\s*"
)

# Zero-width spaces/joiners, soft hyphen, word joiner, BOM
_INVISIBLE_PATTERN = r"[\u200b\u200c\u200d\u00ad\u2060\ufeff]"

_KEEP_CONTROLS = {"\t", "\n"}

# Control (Cc) and format (Cf) characters: C0/C1 controls, bidi overrides and isolates
_DROPPED_CATEGORIES = {"Cc", "Cf"}


def sanitize(markdown: str) -> str:
    """Normalize tailored markdown before it reaches the renderer.

    Composes the text to NFC, unifies line endings, drops zero-width and
    soft-hyphen artifacts and icon emoji, removes every control
    character except tab and newline, and drops format characters such as
    bidi overrides, which the core PDF fonts cannot draw.
    """
    text = unicodedata.normalize("NFC", markdown)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(_INVISIBLE_PATTERN, "", text)
    text = re.sub(EMOJI_PATTERN, "", text)
    return "".join(
        ch for ch in text
        if ch in _KEEP_CONTROLS or unicodedata.category(ch) not in _DROPPED_CATEGORIES
    )
