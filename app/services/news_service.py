"""
Live news search (NewsData.io).

Responsibility: Query the real-time news API and map articles to plain dicts.
An empty list means "no results"; anything but a success status raises.
"""

import logging

import httpx

from app.core.config import NEWS_API_TIMEOUT, NEWS_LANGUAGE, NEWSDATA_API_KEY, NEWSDATA_URL
from app.core.errors import NewsServiceError

logger = logging.getLogger(__name__)


def _map_article(article: dict) -> dict:
    return {
        "id": article.get("article_id"),
        "title": article.get("title") or "",
        "content": article.get("content") or article.get("description") or "",
        "source": article.get("link") or "",
        "pubDate": article.get("pubDate"),
        "sourceId": article.get("source_id"),
        "imageUrl": article.get("image_url"),
    }


class NewsDataService:
    """Thin client over the NewsData.io /news endpoint."""

    def __init__(
        self,
        api_key: str = NEWSDATA_API_KEY,
        base_url: str = NEWSDATA_URL,
        timeout: float = NEWS_API_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    def search_news(self, query: str, language: str = NEWS_LANGUAGE) -> list[dict]:
        logger.info("[news:search_news] IN  query=%r language=%s", query, language)
        params = {"apikey": self.api_key, "q": query, "language": language}
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(self.base_url, params=params)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("[news:search_news] request failed: %s", e)
            raise NewsServiceError(f"Failed to fetch news: {e}") from e

        if response.status_code != 200 or data.get("status") != "success":
            logger.error("[news:search_news] API error %s: %s", response.status_code, str(data)[:200])
            raise NewsServiceError("Failed to fetch news", status_code=response.status_code)

        articles = [_map_article(a) for a in (data.get("results") or [])]
        logger.info("[news:search_news] OUT articles=%d", len(articles))
        return articles
