"""Small text helpers shared by the generation and clustering stages."""

import re
from typing import List, Sequence

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")

STOPWORDS = frozenset(
    """a about after all also an and any are as at be been but by can could did do
    does for from had has have how in into is it its just more most new not now of
    on one or our out over says than that the their them then there these they this
    to up was we were what when which who why will with would you your""".split()
)


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens without stopwords or very short words."""
    return [t for t in _TOKEN_RE.findall(text.lower()) if len(t) > 2 and t not in STOPWORDS]


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_END_RE.split(text) if s.strip()]


def truncate_text(text: str, max_length: int) -> str:
    """Truncate at a word boundary, appending an ellipsis."""
    if len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."


def first_sentence(text: str) -> str:
    """First sentence of ``text``, or its first 100 characters."""
    text = " ".join(text.split())
    match = re.search(r"[.!?](\s|$)", text)
    if match:
        return text[: match.start() + 1]
    return truncate_text(text, 100)


def excerpt_words(text: str, max_words: int) -> str:
    """First ``max_words`` words of ``text``."""
    words = text.split()
    if len(words) <= max_words:
        return " ".join(words)
    return " ".join(words[:max_words]) + "..."


def join_with_and(items: Sequence[str]) -> str:
    """Join items as an English list: "a", "a and b", "a, b, and c"."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + ", and " + items[-1]
