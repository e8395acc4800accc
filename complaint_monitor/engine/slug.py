"""URL slug normalisation for company names."""

from __future__ import annotations

import re
import unicodedata

_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Turn ``"Banco do Brasil"`` into ``"banco-do-brasil"``.

    Lowercases, strips diacritics, drops anything that is neither a word
    character nor whitespace, then joins whitespace runs with hyphens.
    """

    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = _NON_WORD.sub("", stripped)
    return _WHITESPACE.sub("-", cleaned.strip())


__all__ = ["slugify"]
