"""
Pytest fixtures for catalog and query tests.

Pages are served by an in-memory fetcher so refresh cycles never touch the network.
"""

import threading
import time

import pytest

from pricebot.catalog import CatalogCache, Product
from pricebot.prices import format_price
from pricebot.text import normalize

BASE_URL = "https://loja.example"
LISTING_URL = f"{BASE_URL}/collections/mais-vendidos"
AZUL_URL = f"{BASE_URL}/products/sapatenis-azul"
VERDE_URL = f"{BASE_URL}/products/sapatenis-verde"
BOTA_URL = f"{BASE_URL}/products/bota-sem-preco"

LISTING_HTML = """
<html><body>
  <div class="card"><a href="/products/sapatenis-azul?variant=1">Sapatênis Azul 10x R$ 10,00 PROMOÇÃO!</a></div>
  <div class="card"><a href="/products/sapatenis-verde">Sapatênis Verde — Frete grátis</a></div>
  <div class="card"><a href="/products/bota-sem-preco">Bota Sem Preço</a></div>
  <a href="/products/sapatenis-verde#reviews"><img src="/verde.jpg"></a>
  <a href="/collections/all">Ver tudo</a>
  <a href="https://outra.example/products/alheio">Produto alheio</a>
</body></html>
"""


def product_page(name, price_text):
    return f"""
<html><head><meta property="og:title" content="{name}"></head>
<body><h1>{name}</h1><span class="price-item price-item--sale">{price_text}</span></body></html>
"""


DETAIL_PAGES = {
    AZUL_URL: product_page("Sapatênis Azul", "R$ 100,00"),
    VERDE_URL: product_page("Sapatênis Verde", "R$ 80,00"),
    BOTA_URL: "<html><body><h1>Bota Sem Preço</h1><p>Esgotado</p></body></html>",
}


class FakeFetcher:
    """Serves canned HTML; values that are exceptions are raised instead."""

    def __init__(self, pages, delay=0.0):
        self.pages = dict(pages)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def __call__(self, url):
        with self._lock:
            self.calls.append(url)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            page = self.pages.get(url)
            if page is None:
                raise RuntimeError(f"HTTP 404 ao baixar {url}")
            if isinstance(page, Exception):
                raise page
            return page
        finally:
            with self._lock:
                self.in_flight -= 1

    def count(self, url):
        return self.calls.count(url)


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_product(name, price_value, url=None):
    return Product(
        name=name,
        url=url or f"{BASE_URL}/products/{normalize(name).replace(' ', '-')}",
        price=format_price(price_value),
        price_value=price_value,
        normalized_name=normalize(name),
    )


@pytest.fixture
def store_pages():
    pages = {LISTING_URL: LISTING_HTML}
    pages.update(DETAIL_PAGES)
    return pages


@pytest.fixture
def fetcher(store_pages):
    return FakeFetcher(store_pages)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(fetcher, clock):
    return CatalogCache(fetcher, [LISTING_URL], base_url=BASE_URL, max_age_sec=3600, clock=clock)


@pytest.fixture
def sapatenis_catalog():
    return [make_product("Sapatênis Azul", 100.0), make_product("Sapatênis Verde", 80.0)]
