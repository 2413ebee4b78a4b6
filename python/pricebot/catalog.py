from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .extract import extract_listing_entries, extract_product_details
from .fetcher import Fetch
from .prices import format_price, parse_localized_price
from .text import normalize

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SEC = 60 * 60
DEFAULT_BATCH_SIZE = 6


@dataclass(frozen=True)
class Product:
    name: str
    url: str
    price: str
    price_value: float
    normalized_name: str = ""

    def public_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("normalized_name")
        return data


@dataclass(frozen=True)
class CatalogSnapshot:
    products: Tuple[Product, ...] = ()
    refreshed_at: float = 0.0

    def __len__(self) -> int:
        return len(self.products)


@dataclass
class RefreshReport:
    forced: bool = False
    listing_ok: int = 0
    listing_failed: int = 0
    detail_ok: int = 0
    detail_failed: int = 0
    discovered: int = 0
    retained: int = 0
    elapsed: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FetchResult:
    url: str
    html: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.html is not None


@dataclass
class _ProductDraft:
    url: str
    name: str = ""
    price: Optional[str] = None
    price_value: Optional[float] = None

    def to_product(self) -> Optional[Product]:
        name = (self.name or "").strip()
        value = self.price_value
        if value is None and self.price:
            value = parse_localized_price(self.price)
        if not name or value is None or not math.isfinite(value) or value < 0:
            return None
        return Product(
            name=name,
            url=self.url,
            price=self.price or format_price(value),
            price_value=value,
            normalized_name=normalize(name),
        )


class CatalogCache:
    """
    Owns the in-memory catalog. Readers always see a complete snapshot: a
    refresh cycle builds a new product map and swaps it in only at the end.
    """

    def __init__(
        self,
        fetch: Fetch,
        listing_urls: Sequence[str],
        *,
        base_url: str,
        max_age_sec: float = DEFAULT_MAX_AGE_SEC,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetch = fetch
        self.listing_urls = list(listing_urls)
        self.base_url = base_url
        self.max_age_sec = max_age_sec
        self.batch_size = max(1, batch_size)
        self._clock = clock
        self._snapshot = CatalogSnapshot()
        self._generation = 0
        self._snapshot_lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    def snapshot(self) -> CatalogSnapshot:
        with self._snapshot_lock:
            return self._snapshot

    def is_fresh(self) -> bool:
        snapshot = self.snapshot()
        if not snapshot.products:
            return False
        return (self._clock() - snapshot.refreshed_at) <= self.max_age_sec

    def ensure_fresh(self, force: bool = False) -> Optional[RefreshReport]:
        """Runs a refresh cycle unless the catalog is fresh; returns its report, or None when skipped."""
        if not force and self.is_fresh():
            return None
        seen_generation = self._generation
        with self._refresh_lock:
            if self._generation != seen_generation and self.is_fresh():
                logger.debug("refresh skipped: a concurrent cycle just completed")
                return None
            return self._refresh(force)

    def _fetch_one(self, url: str) -> FetchResult:
        try:
            return FetchResult(url=url, html=self._fetch(url))
        except Exception as exc:
            return FetchResult(url=url, error=exc)

    def _fetch_batched(self, urls: List[str]) -> Iterable[FetchResult]:
        if not urls:
            return []
        results: List[FetchResult] = []
        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for start in range(0, len(urls), self.batch_size):
                batch = urls[start:start + self.batch_size]
                futures = [executor.submit(self._fetch_one, url) for url in batch]
                for future in as_completed(futures):
                    results.append(future.result())
        return results

    def _collect_listings(self, report: RefreshReport) -> Dict[str, _ProductDraft]:
        found: Dict[str, _ProductDraft] = {}
        for url in self.listing_urls:
            result = self._fetch_one(url)
            if not result.ok:
                report.listing_failed += 1
                logger.warning("listing fetch failed: %s (%s)", url, result.error)
                continue
            try:
                entries = extract_listing_entries(result.html, self.base_url)
            except Exception:
                report.listing_failed += 1
                logger.exception("listing parse failed: %s", url)
                continue
            report.listing_ok += 1
            for entry in entries:
                draft = found.setdefault(entry.url, _ProductDraft(url=entry.url))
                draft.name = entry.name
        return found

    def _apply_details(self, found: Dict[str, _ProductDraft], report: RefreshReport) -> None:
        for result in self._fetch_batched(list(found)):
            if not result.ok:
                report.detail_failed += 1
                logger.debug("detail fetch failed: %s (%s)", result.url, result.error)
                continue
            try:
                details = extract_product_details(result.html, result.url)
            except Exception:
                report.detail_failed += 1
                logger.exception("detail parse failed: %s", result.url)
                continue
            report.detail_ok += 1
            draft = found[result.url]
            if details.name:
                draft.name = details.name
            if details.price:
                draft.price = details.price
            if details.price_value is not None:
                draft.price_value = details.price_value

    def _refresh(self, force: bool) -> RefreshReport:
        started = time.perf_counter()
        report = RefreshReport(forced=force)

        found = self._collect_listings(report)
        self._apply_details(found, report)

        products = [p for p in (draft.to_product() for draft in found.values()) if p is not None]
        snapshot = CatalogSnapshot(products=tuple(products), refreshed_at=self._clock())
        with self._snapshot_lock:
            self._snapshot = snapshot
            self._generation += 1

        report.discovered = len(found)
        report.retained = len(products)
        report.elapsed = round(time.perf_counter() - started, 3)
        logger.info(
            "catalog refreshed: %s/%s products kept in %.2fs (listings ok=%s failed=%s, details ok=%s failed=%s)",
            report.retained,
            report.discovered,
            report.elapsed,
            report.listing_ok,
            report.listing_failed,
            report.detail_ok,
            report.detail_failed,
        )
        return report
