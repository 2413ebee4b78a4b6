from __future__ import annotations

import enum
import re
from typing import List, Optional, Sequence

from .catalog import Product
from .text import normalize

NOT_FOUND_MESSAGE = "Não achei esse item agora no catálogo público da diRavena."
LISTING_LIMIT = 3

PRICE_QUERY_PATTERN = re.compile(r"\b(?:quant|preco|custa|valor)")
CHEAPEST_PATTERN = re.compile(r"\bmais\s*barat|\bminim|\bmenor\s*preco")
MOST_EXPENSIVE_PATTERN = re.compile(r"\bmais\s*car[oa]s?\b|\bmaior\s*preco")


class Intent(enum.Enum):
    MOST_EXPENSIVE = "most_expensive"
    CHEAPEST = "cheapest"
    PRICE_QUERY = "price_query"
    NONE = "none"


def classify_intent(question: str) -> Intent:
    text = normalize(question)
    if MOST_EXPENSIVE_PATTERN.search(text):
        return Intent.MOST_EXPENSIVE
    if CHEAPEST_PATTERN.search(text):
        return Intent.CHEAPEST
    if PRICE_QUERY_PATTERN.search(text):
        return Intent.PRICE_QUERY
    return Intent.NONE


def pick(matches: Sequence[Product], intent: Intent) -> Optional[Product]:
    if not matches or intent is Intent.NONE:
        return None
    chosen = matches[0]
    for product in matches[1:]:
        if intent is Intent.MOST_EXPENSIVE:
            if product.price_value > chosen.price_value:
                chosen = product
        elif product.price_value < chosen.price_value:
            chosen = product
    return chosen


def compose(question: str, matches: Sequence[Product]) -> str:
    if not matches:
        return NOT_FOUND_MESSAGE

    intent = classify_intent(question)
    chosen = pick(matches, intent)
    if chosen is not None:
        header = (
            "Encontrei algumas opções. A mais cara é:"
            if intent is Intent.MOST_EXPENSIVE
            else "Encontrei algumas opções. A mais barata é:"
        )
        return "\n".join([header, f"{chosen.name} — {chosen.price}", chosen.url])

    lines: List[str] = [f"Encontrei {len(matches)} opções:"]
    for product in matches[:LISTING_LIMIT]:
        lines.append(f"{product.name} — {product.price}\n{product.url}")
    return "\n".join(lines)
