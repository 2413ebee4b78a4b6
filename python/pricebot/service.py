from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .answer import compose
from .catalog import CatalogCache
from .config import Settings, load_settings
from .fetcher import PlaywrightFetcher
from .matcher import match
from .rewrite import OpenAIRewriter

logger = logging.getLogger(__name__)

Rewriter = Callable[[str, str], str]


class EmptyQuestionError(ValueError):
    pass


class Assistant:
    def __init__(self, cache: CatalogCache, *, rewriter: Optional[Rewriter] = None, max_question_length: int = 300):
        self.cache = cache
        self.rewriter = rewriter
        self.max_question_length = max_question_length

    def refresh(self, force: bool = False) -> Dict[str, Any]:
        self.cache.ensure_fresh(force)
        snapshot = self.cache.snapshot()
        return {
            "ok": True,
            "product_count": len(snapshot.products),
            "last_refreshed_at": snapshot.refreshed_at,
        }

    def ask(self, question: str) -> Dict[str, Any]:
        question = " ".join((question or "").split())[: self.max_question_length]
        if not question:
            raise EmptyQuestionError("Pergunta vazia.")

        self.cache.ensure_fresh(False)
        snapshot = self.cache.snapshot()
        matches = match(question, snapshot.products)
        baseline = compose(question, matches)

        answer = baseline
        if self.rewriter is not None and matches:
            try:
                answer = self.rewriter(baseline, question) or baseline
            except Exception:
                logger.warning("answer rewrite failed, using baseline", exc_info=True)
                answer = baseline

        return {
            "answer": answer,
            "matches": [product.public_dict() for product in matches],
            "last_refreshed_at": snapshot.refreshed_at,
        }


def build_assistant(settings: Optional[Settings] = None) -> Assistant:
    settings = settings or load_settings()
    fetcher = PlaywrightFetcher(
        timeout_ms=settings.fetch_timeout_ms,
        user_agent=settings.user_agent,
        render=settings.render,
        headless=settings.headless,
    )
    cache = CatalogCache(
        fetcher,
        settings.listing_urls,
        base_url=settings.base_url,
        max_age_sec=settings.max_age_sec,
        batch_size=settings.detail_batch_size,
    )
    rewriter = None
    if settings.openai_api_key:
        rewriter = OpenAIRewriter(settings.openai_api_key, model=settings.openai_model)
    return Assistant(cache, rewriter=rewriter, max_question_length=settings.max_question_length)
