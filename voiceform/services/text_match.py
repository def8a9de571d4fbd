"""
Whole-word phrase matching over transcripts.

Labels, synonyms and option phrases come from caller-supplied (often
LLM-generated) schemas, so they are compared token by token and never
compiled into regular expressions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from voiceform.schemas.extraction import Span

_TOKEN_RE = re.compile(r"\w+(?:['’]\w+)*")

# Words allowed between a label and its value ("email is ...", "age to 30")
COPULA_WORDS = frozenset({"is", "to", "as"})
SEPARATOR_CHARS = ":="
LABEL_CLOSERS = ")]}\"”"


@dataclass(frozen=True)
class Token:
    text: str
    start: int
    end: int

    @property
    def norm(self) -> str:
        return self.text.casefold().replace("’", "'")


def tokenize(text: str) -> list[Token]:
    return [Token(m.group(0), m.start(), m.end()) for m in _TOKEN_RE.finditer(text)]


def words(text: str) -> list[str]:
    """Normalized word tokens of ``text``."""
    return [t.norm for t in tokenize(text)]


def _gap(source: str, left: Token, right: Token) -> str:
    # Whitespace-insensitive, so "New  York" matches "New York"
    return "".join(source[left.end:right.start].split())


def find_phrase(
    text: str,
    phrase: str,
    tokens: Optional[Sequence[Token]] = None,
) -> Iterator[Span]:
    """
    Yield every whole-word, case-insensitive occurrence of ``phrase``.

    Punctuation between the phrase's words must match the transcript's
    (so "e-mail" does not match "e mail").
    """
    needle = tokenize(phrase)
    if not needle:
        return
    hay = tokens if tokens is not None else tokenize(text)
    gaps = [_gap(phrase, a, b) for a, b in zip(needle, needle[1:])]
    n = len(needle)

    for i in range(len(hay) - n + 1):
        if hay[i].norm != needle[0].norm:
            continue
        if all(hay[i + k].norm == needle[k].norm for k in range(1, n)) and all(
            _gap(text, hay[i + k], hay[i + k + 1]) == gaps[k] for k in range(n - 1)
        ):
            yield Span(hay[i].start, hay[i + n - 1].end)


def contains_phrase(text: str, phrase: str, tokens: Optional[Sequence[Token]] = None) -> bool:
    return next(find_phrase(text, phrase, tokens), None) is not None


def contains_all_words(text: str, phrase: str, tokens: Optional[Sequence[Token]] = None) -> bool:
    """True when every word of ``phrase`` appears somewhere in ``text``, in any order."""
    needle = words(phrase)
    if not needle:
        return False
    present = {t.norm for t in (tokens if tokens is not None else tokenize(text))}
    return all(w in present for w in needle)


@dataclass(frozen=True)
class Clause:
    """Value clause read after a label."""
    text: str
    end: int  # End offset of the clause in the transcript, trailing space excluded


def _is_terminator(text: str, i: int) -> bool:
    ch = text[i]
    if ch in ",;\n":
        return True
    # A period ends the clause only at a sentence boundary, so "3.5" and
    # "alex@example.com" stay intact
    return ch == "." and (i + 1 == len(text) or text[i + 1].isspace())


def read_clause(text: str, pos: int) -> Optional[Clause]:
    """
    Read ``[separator] value`` starting right after a label at ``pos``.

    The separator is an optional copula word (is/to/as) and/or a ``:`` or
    ``=``. The value runs up to the next comma, semicolon, newline or
    sentence-ending period. Returns None when the value is empty.
    """
    n = len(text)
    i = pos
    # Closing punctuation belongs to the label ("Name (legal): ...")
    while i < n and (text[i].isspace() or text[i] in LABEL_CLOSERS):
        i += 1

    m = _TOKEN_RE.match(text, i)
    if m and m.group(0).casefold() in COPULA_WORDS:
        i = m.end()
        while i < n and text[i].isspace():
            i += 1
    if i < n and text[i] in SEPARATOR_CHARS:
        i += 1

    start = i
    while i < n and not _is_terminator(text, i):
        i += 1

    raw = text[start:i]
    value = raw.strip()
    if not value:
        return None
    return Clause(text=value, end=start + len(raw.rstrip()))
