from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence

from .catalog import Product
from .text import normalize

MAX_MATCHES = 8

STOPWORDS = {
    "o",
    "a",
    "os",
    "as",
    "um",
    "uma",
    "de",
    "da",
    "do",
    "das",
    "dos",
    "que",
    "qual",
    "quais",
    "quanto",
    "quanta",
    "preco",
    "custa",
    "custam",
    "tem",
    "e",
    "ou",
    "mais",
}

# Footwear first: "sapatenis" and "mocatenis" both contain "tenis".
FOOTWEAR_FILTERS = ["sapatenis", "mocatenis", "mocassim", "bota", "sandalia", "tenis"]
GARMENT_FILTERS = ["camiseta", "camisa", "polo", "regata", "bermuda", "calca"]
HARD_FILTERS = FOOTWEAR_FILTERS + GARMENT_FILTERS
# Whole words only, plural allowed: "botas" is a bota, "botao" is not.
HARD_FILTER_PATTERNS = [(keyword, re.compile(rf"\b{keyword}s?\b")) for keyword in HARD_FILTERS]

SYNONYMS: Dict[str, str] = {
    "sapatenis": "sapatennis",
    "mocatenis": "mocatennis",
    "calca": "calça",
}


def query_tokens(question: str) -> List[str]:
    return [token for token in normalize(question).split(" ") if token and token not in STOPWORDS]


def detect_hard_filter(normalized_question: str) -> Optional[str]:
    for keyword, pattern in HARD_FILTER_PATTERNS:
        if pattern.search(normalized_question):
            return keyword
    return None


def passes_hard_filter(product: Product, keyword: str) -> bool:
    variant = SYNONYMS.get(keyword, keyword)
    return keyword in product.normalized_name or variant in product.normalized_name


def score_product(product: Product, tokens: Sequence[str]) -> int:
    score = 0
    for token in tokens:
        if token in product.normalized_name:
            score += 2
        variant = SYNONYMS.get(token)
        if variant and variant != token and variant in product.normalized_name:
            score += 1
    return score


def match(question: str, products: Iterable[Product], limit: int = MAX_MATCHES) -> List[Product]:
    """
    Ranks catalog products against a free-text question.
    Highest score first; equal scores are ordered cheapest first.
    """
    normalized_question = normalize(question)
    tokens = query_tokens(question)
    candidates = list(products)

    keyword = detect_hard_filter(normalized_question)
    if keyword:
        candidates = [product for product in candidates if passes_hard_filter(product, keyword)]

    scored = [(score_product(product, tokens), product) for product in candidates]
    scored = [(score, product) for score, product in scored if score > 0]
    scored.sort(key=lambda item: (-item[0], item[1].price_value))
    return [product for _, product in scored[:limit]]
