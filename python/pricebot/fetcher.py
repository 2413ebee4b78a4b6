from __future__ import annotations

from typing import Callable, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError, sync_playwright

from .config import DEFAULT_USER_AGENT

Fetch = Callable[[str], str]


class FetchError(Exception):
    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else (reason or "fetch failed")
        super().__init__(f"{detail} ao baixar {url}")


class PlaywrightFetcher:
    """
    Downloads raw HTML. By default uses Playwright's HTTP request context;
    with ``render=True`` the page is loaded in headless Chromium and the
    rendered DOM is returned. Safe to call from worker threads: every call
    owns its own Playwright instance.
    """

    def __init__(
        self,
        *,
        timeout_ms: int = 15000,
        user_agent: str = DEFAULT_USER_AGENT,
        render: bool = False,
        headless: bool = True,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.user_agent = user_agent
        self.render = render
        self.headless = headless

    def __call__(self, url: str) -> str:
        try:
            if self.render:
                return self._fetch_rendered(url)
            return self._fetch_raw(url)
        except TimeoutError as exc:
            raise FetchError(url, reason="timeout") from exc
        except PlaywrightError as exc:
            raise FetchError(url, reason=str(exc)) from exc

    def _fetch_raw(self, url: str) -> str:
        with sync_playwright() as playwright:
            context = playwright.request.new_context(
                user_agent=self.user_agent,
                extra_http_headers={"Accept-Language": "pt-BR,pt;q=0.9"},
            )
            try:
                response = context.get(url, timeout=self.timeout_ms)
                if not response.ok:
                    raise FetchError(url, status=response.status)
                return response.text()
            finally:
                context.dispose()

    def _fetch_rendered(self, url: str) -> str:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=self.headless)
            context = browser.new_context(
                viewport={"width": 1400, "height": 900},
                locale="pt-BR",
                user_agent=self.user_agent,
                extra_http_headers={"Accept-Language": "pt-BR,pt;q=0.9"},
            )
            page = context.new_page()
            try:
                response = page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                if response is not None and not response.ok:
                    raise FetchError(url, status=response.status)
                return page.content()
            finally:
                page.close()
                context.close()
                browser.close()
