from __future__ import annotations

import math
import re
from typing import Any, List, Optional

CURRENCY_PREFIX = "R$"

# "1.299,90", "139,90", "1299,90"
PRICE_TOKEN = r"\d{1,3}(?:\.\d{3})+,\d{2}|\d+,\d{2}"
LOCALIZED_PRICE_PATTERN = re.compile(rf"^\s*(?:R\$\s*)?({PRICE_TOKEN})\s*$", re.IGNORECASE)
CURRENCY_PRICE_PATTERN = re.compile(rf"R\$\s*({PRICE_TOKEN})", re.IGNORECASE)
INSTALLMENT_PATTERN = re.compile(r"\d+\s*x\s*$", re.IGNORECASE)
INSTALLMENT_LOOKBEHIND = 8


def parse_localized_price(text: Optional[str]) -> Optional[float]:
    """
    Converts a decimal-comma price token to float.
    Examples:
      "139,90" -> 139.9
      "R$ 1.299,90" -> 1299.9
      "139.90" -> None
    """
    if not text:
        return None
    match = LOCALIZED_PRICE_PATTERN.match(text)
    if not match:
        return None
    value = float(match.group(1).replace(".", "").replace(",", "."))
    if not math.isfinite(value):
        return None
    return value


def format_price(value: float) -> str:
    grouped = f"{value:,.2f}"
    return f"{CURRENCY_PREFIX} " + grouped.replace(",", "_").replace(".", ",").replace("_", ".")


def is_installment_context(text: str, index: int) -> bool:
    before = text[max(0, index - INSTALLMENT_LOOKBEHIND):index]
    return bool(INSTALLMENT_PATTERN.search(before))


def find_text_prices(text: str) -> List[float]:
    """Every currency price in rendered text, skipping "10x R$ 15,99" installment fragments."""
    values: List[float] = []
    for match in CURRENCY_PRICE_PATTERN.finditer(text or ""):
        if is_installment_context(text, match.start()):
            continue
        value = parse_localized_price(match.group(1))
        if value is not None:
            values.append(value)
    return values


def coerce_amount(value: Any) -> Optional[float]:
    """Machine-format amounts from structured data: 139.9, "139.90", "139,90"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        raw = str(value).strip()
        if not raw:
            return None
        localized = parse_localized_price(raw)
        if localized is not None:
            amount = localized
        else:
            try:
                amount = float(raw.replace(",", "."))
            except ValueError:
                return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return amount


def minor_units_to_amount(value: Any) -> Optional[float]:
    """Product JSON blocks store variant prices as integer cents (13990 -> 139.9)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return coerce_amount(value / 100) if value >= 0 else None
    return coerce_amount(value)
