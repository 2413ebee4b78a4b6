from __future__ import annotations

import enum
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Comment, Tag

from .prices import coerce_amount, find_text_prices, format_price, minor_units_to_amount

logger = logging.getLogger(__name__)

PRODUCT_PATH_PATTERN = re.compile(r"^/products/[^/?#]+", re.IGNORECASE)
LISTING_INSTALLMENT_PATTERN = re.compile(r"\b\d+\s*x\s*R\$\s*[\d.,]+", re.IGNORECASE)
PROMO_BANNER_PATTERN = re.compile(r"\s*\bPROMO(?:ÇÃO|CAO)?\b!?\s*", re.IGNORECASE)
NAME_DELIMITER_PATTERN = re.compile(r"—|\|")
WHITESPACE_PATTERN = re.compile(r"\s+")

PRICE_META_PROPERTIES = ("og:price:amount", "product:price:amount")
SALE_PRICE_SELECTORS = (".price-item--sale", "[data-sale-price]")
HIDDEN_TAGS = {"script", "style", "noscript", "template", "head", "title", "[document]"}


class PriceTier(enum.Enum):
    SALE = "sale"
    GENERAL = "general"


@dataclass(frozen=True)
class PriceCandidate:
    value: float
    tier: PriceTier


@dataclass(frozen=True)
class ListingEntry:
    name: str
    url: str


@dataclass(frozen=True)
class ProductDetails:
    url: str
    name: Optional[str]
    price: Optional[str]
    price_value: Optional[float]


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def visible_text(soup: BeautifulSoup) -> str:
    chunks = [
        str(node)
        for node in soup.find_all(string=True)
        if not isinstance(node, Comment) and node.parent is not None and node.parent.name not in HIDDEN_TAGS
    ]
    return WHITESPACE_PATTERN.sub(" ", " ".join(chunks)).strip()


def canonical_url(href: str, base_url: str) -> Optional[str]:
    try:
        parts = urlsplit(urljoin(base_url, href))
    except ValueError:
        return None
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def is_product_href(href: str, base_url: str) -> bool:
    try:
        parts = urlsplit(urljoin(base_url, href))
    except ValueError:
        logger.debug("skipping malformed href: %r", href)
        return False
    if parts.netloc and parts.netloc != urlsplit(base_url).netloc:
        return False
    return bool(PRODUCT_PATH_PATTERN.match(parts.path))


def clean_listing_name(text: str) -> str:
    """
    Strips card noise from an anchor's text.
    Examples:
      "Sapatênis Azul 10x R$ 13,99 PROMOÇÃO!" -> "Sapatênis Azul"
      "Bota Couro — Frete grátis" -> "Bota Couro"
    """
    name = LISTING_INSTALLMENT_PATTERN.sub("", text)
    name = PROMO_BANNER_PATTERN.sub(" ", name)
    name = NAME_DELIMITER_PATTERN.split(name)[0]
    return WHITESPACE_PATTERN.sub(" ", name).strip()


def extract_listing_entries(html: str, base_url: str) -> List[ListingEntry]:
    soup = make_soup(html)
    entries: List[ListingEntry] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not is_product_href(href, base_url):
            continue
        for hidden in anchor(["script", "style"]):
            hidden.decompose()
        name = clean_listing_name(anchor.get_text(" "))
        url = canonical_url(href, base_url)
        if not name or url is None:
            continue
        entries.append(ListingEntry(name=name, url=url))
    return entries


# ---------------------------------------------------------------------------
# Price strategies
# ---------------------------------------------------------------------------

def _json_blocks(soup: BeautifulSoup, predicate: Callable[[Any], bool]) -> Iterator[Tuple[Tag, Any]]:
    for script in soup.find_all("script", type=predicate):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            yield script, json.loads(raw.strip())
        except ValueError:
            logger.debug("skipping unparsable structured data block (%s chars)", len(raw))


def _is_product_json(script) -> bool:
    if script.has_attr("data-product-json"):
        return True
    return (script.get("id") or "").startswith("ProductJson")


def product_json_candidates(soup: BeautifulSoup) -> List[PriceCandidate]:
    candidates: List[PriceCandidate] = []
    blocks = _json_blocks(soup, lambda t: bool(t) and t.lower() == "application/json")
    for script, data in blocks:
        if not _is_product_json(script) or not isinstance(data, dict):
            continue
        product = data.get("product") if isinstance(data.get("product"), dict) else data
        variants = product.get("variants") or []
        if not isinstance(variants, list):
            continue
        for variant in variants:
            if not isinstance(variant, dict):
                continue
            sale = minor_units_to_amount(variant.get("price"))
            if sale is not None:
                candidates.append(PriceCandidate(sale, PriceTier.SALE))
            compare_at = minor_units_to_amount(variant.get("compare_at_price"))
            if compare_at is not None:
                candidates.append(PriceCandidate(compare_at, PriceTier.GENERAL))
    return candidates


def _walk_offers(node: Any, out: List[PriceCandidate]) -> None:
    if isinstance(node, list):
        for item in node:
            _walk_offers(item, out)
        return
    if not isinstance(node, dict):
        return
    for key, tier in (("price", PriceTier.SALE), ("lowPrice", PriceTier.SALE), ("highPrice", PriceTier.GENERAL)):
        if key in node and not isinstance(node[key], (dict, list)):
            value = coerce_amount(node[key])
            if value is not None:
                out.append(PriceCandidate(value, tier))
    for value in node.values():
        if isinstance(value, (dict, list)):
            _walk_offers(value, out)


def linked_data_candidates(soup: BeautifulSoup) -> List[PriceCandidate]:
    candidates: List[PriceCandidate] = []
    blocks = _json_blocks(soup, lambda t: bool(t) and "ld+json" in t.lower())
    for _, data in blocks:
        _walk_offers(data, candidates)
    return candidates


def meta_tag_candidates(soup: BeautifulSoup) -> List[PriceCandidate]:
    candidates: List[PriceCandidate] = []
    for prop in PRICE_META_PROPERTIES:
        tag = soup.find("meta", attrs={"property": prop})
        if tag is None:
            continue
        value = coerce_amount(tag.get("content"))
        if value is not None:
            candidates.append(PriceCandidate(value, PriceTier.GENERAL))
    return candidates


def sale_class_candidates(soup: BeautifulSoup) -> List[PriceCandidate]:
    candidates: List[PriceCandidate] = []
    for selector in SALE_PRICE_SELECTORS:
        for node in soup.select(selector):
            text = node.get_text(" ", strip=True)
            values = find_text_prices(text)
            if not values and node.has_attr("data-sale-price"):
                value = coerce_amount(node["data-sale-price"])
                values = [value] if value is not None else []
            candidates.extend(PriceCandidate(value, PriceTier.SALE) for value in values)
    return candidates


def text_candidates(soup: BeautifulSoup) -> List[PriceCandidate]:
    return [PriceCandidate(value, PriceTier.GENERAL) for value in find_text_prices(visible_text(soup))]


PRICE_STRATEGIES: List[Callable[[BeautifulSoup], List[PriceCandidate]]] = [
    product_json_candidates,
    linked_data_candidates,
    meta_tag_candidates,
    sale_class_candidates,
    text_candidates,
]


def collect_price_candidates(soup: BeautifulSoup, strategies=None) -> List[PriceCandidate]:
    candidates: List[PriceCandidate] = []
    for strategy in strategies or PRICE_STRATEGIES:
        try:
            candidates.extend(strategy(soup))
        except Exception:
            logger.exception("price strategy failed: %s", getattr(strategy, "__name__", strategy))
    return candidates


def resolve_price(candidates: Iterable[PriceCandidate]) -> Optional[float]:
    """
    Lowest sale-tier value when any sale candidate exists, otherwise the
    lowest general value. No sale/general plausibility check is applied.
    """
    candidates = list(candidates)
    sale = [c.value for c in candidates if c.tier is PriceTier.SALE]
    general = [c.value for c in candidates if c.tier is PriceTier.GENERAL]
    if sale:
        best = min(sale)
        if general and best > min(general):
            logger.debug("sale price %.2f above cheapest general price %.2f", best, min(general))
        return best
    if general:
        return min(general)
    return None


def extract_product_name(soup: BeautifulSoup) -> Optional[str]:
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and (og_title.get("content") or "").strip():
        return og_title["content"].strip()
    heading = soup.find("h1")
    if heading:
        name = WHITESPACE_PATTERN.sub(" ", heading.get_text(" ")).strip()
        if name:
            return name
    return None


def extract_product_details(html: str, url: str) -> ProductDetails:
    soup = make_soup(html)
    name = extract_product_name(soup)
    price_value = resolve_price(collect_price_candidates(soup))
    return ProductDetails(
        url=url,
        name=name,
        price=format_price(price_value) if price_value is not None else None,
        price_value=price_value,
    )
