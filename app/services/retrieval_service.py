"""
Retrieval: tiered evidence search for one query.

Responsibility: Try the live news API, then vector similarity over indexed articles,
then a generative "web search" fallback, stopping at the first tier that yields
a passage. The result variant records which tier answered; it selects the prompt
framing downstream.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, ClassVar, Protocol

from app.core.config import (
    NEWS_LANGUAGE,
    SIMILARITY_THRESHOLD,
    VECTOR_SEARCH_LIMIT,
)
from app.core.errors import RetrievalFailure

logger = logging.getLogger(__name__)

WEB_SEARCH_SOURCE = "Web Search"
WEB_SEARCH_PROMPT = (
    "Search the web for recent information about: {query}. "
    "Return the information in a clear, factual way."
)


@dataclass(frozen=True)
class Passage:
    """One piece of evidence: title, content, provenance and optional publication time."""

    title: str
    content: str
    source: str = ""
    pub_date: str | None = None


@dataclass(frozen=True)
class SearchResult:
    source: ClassVar[str] = ""
    passages: tuple[Passage, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class NewsDataResult(SearchResult):
    source: ClassVar[str] = "newsdata"


@dataclass(frozen=True)
class VectorResult(SearchResult):
    source: ClassVar[str] = "vector"


@dataclass(frozen=True)
class WebResult(SearchResult):
    source: ClassVar[str] = "web"


@dataclass(frozen=True)
class NoResult(SearchResult):
    source: ClassVar[str] = "none"

    def __post_init__(self) -> None:
        if self.passages:
            raise ValueError("NoResult cannot carry passages")


class NewsClient(Protocol):
    def search_news(self, query: str, language: str = ...) -> list[dict]: ...


class Embedder(Protocol):
    def embed(self, text: str) -> list[float]: ...


VectorSearch = Callable[..., list[dict]]
TextGenerator = Callable[..., str]


def _passage_from_article(article: dict) -> Passage:
    return Passage(
        title=article.get("title") or "",
        content=article.get("content") or "",
        source=article.get("source") or "",
        pub_date=article.get("pubDate"),
    )


class RetrievalChain:
    """Ordered retrieval tiers: newsdata -> vector -> web. An error in any tier aborts the call."""

    def __init__(
        self,
        news_client: NewsClient,
        embedder: Embedder,
        vector_search: VectorSearch,
        llm: TextGenerator,
        language: str = NEWS_LANGUAGE,
        score_threshold: float = SIMILARITY_THRESHOLD,
        limit: int = VECTOR_SEARCH_LIMIT,
    ) -> None:
        self.news_client = news_client
        self.embedder = embedder
        self.vector_search = vector_search
        self.llm = llm
        self.language = language
        self.score_threshold = score_threshold
        self.limit = limit

    def search_live(self, query: str) -> NewsDataResult | None:
        articles = self.news_client.search_news(query, language=self.language)
        if not articles:
            return None
        return NewsDataResult(passages=tuple(_passage_from_article(a) for a in articles))

    def search_vector(self, query: str) -> VectorResult | None:
        vector = self.embedder.embed(query)
        hits = self.vector_search(vector, limit=self.limit, score_threshold=self.score_threshold)
        if not hits:
            return None
        return VectorResult(passages=tuple(_passage_from_article(h) for h in hits))

    def search_web(self, query: str) -> WebResult | None:
        text = self.llm(WEB_SEARCH_PROMPT.format(query=query))
        if not text:
            return None
        passage = Passage(
            title=query,
            content=text,
            source=WEB_SEARCH_SOURCE,
            pub_date=datetime.now(timezone.utc).isoformat(),
        )
        return WebResult(passages=(passage,))

    def retrieve(self, query: str) -> SearchResult:
        logger.info("[retrieval:retrieve] IN  query=%r", query)
        tiers = (
            ("newsdata", self.search_live),
            ("vector", self.search_vector),
            ("web", self.search_web),
        )
        for name, tier in tiers:
            try:
                result = tier(query)
            except Exception as e:
                logger.error("[retrieval:retrieve] tier=%s failed: %s", name, e)
                raise RetrievalFailure(f"Error retrieving passages from {name}: {e}", tier=name) from e
            if result is not None and result.passages:
                logger.info("[retrieval:retrieve] OUT source=%s passages=%d", result.source, len(result.passages))
                return result
            logger.info("[retrieval:retrieve] tier=%s empty, trying next", name)
        logger.info("[retrieval:retrieve] OUT source=none")
        return NoResult()
