#!/usr/bin/env python3
"""
Index news articles into the Milvus collection used by the similarity tier.

Fetches articles from NewsData.io for each query, embeds them (title + content)
and inserts them with their payload (title, content, source, pubDate). Articles
indexed today are what the chat later answers from as "historical news".

Run from project root:

    python scripts/index_news.py "election results" "climate summit"
    python scripts/index_news.py --language fr "élections"
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.core.config import NEWS_LANGUAGE
from app.services.news_service import NewsDataService
from app.services.vector_store import get_collection_stats, store_articles


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch live news and index it into Milvus.")
    parser.add_argument("queries", nargs="+", help="Search queries to fetch articles for.")
    parser.add_argument("--language", default=NEWS_LANGUAGE, help="Article language (default: %(default)s).")
    args = parser.parse_args()

    news = NewsDataService()
    total = 0
    for query in args.queries:
        articles = news.search_news(query, language=args.language)
        stored = store_articles(articles)
        total += stored
        print(f"  {query!r}: fetched {len(articles)}, indexed {stored}")

    stats = get_collection_stats()
    print(f"Done. Indexed {total} articles; {stats['collection_name']} now holds {stats['total_articles']}.")


if __name__ == "__main__":
    main()
