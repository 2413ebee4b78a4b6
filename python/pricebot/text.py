from __future__ import annotations

import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """
    Folds text for lexical matching.
    Examples:
      "Sapatênis Azul!" -> "sapatenis azul"
      "  Calça  Jeans-Slim " -> "calca jeans slim"
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = _NON_ALNUM.sub(" ", stripped)
    return _WHITESPACE.sub(" ", stripped).strip()


def tokenize(text: Optional[str]) -> list[str]:
    return [token for token in normalize(text).split(" ") if token]
