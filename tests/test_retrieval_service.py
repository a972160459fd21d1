"""
Unit tests for the retrieval tier chain: order, short-circuit and failure handling.
"""

from unittest.mock import MagicMock

import pytest

from app.core.errors import EmbeddingFailure, RetrievalFailure
from app.services.retrieval_service import (
    WEB_SEARCH_SOURCE,
    NewsDataResult,
    NoResult,
    Passage,
    RetrievalChain,
    VectorResult,
    WebResult,
)

ARTICLE = {
    "title": "Results are in",
    "content": "Candidate A won the election.",
    "source": "https://news.example/a",
    "pubDate": "2024-11-06 08:00:00",
}


def make_chain(articles=None, hits=None, web_text="", news_error=None, embed_error=None):
    news = MagicMock()
    if news_error:
        news.search_news.side_effect = news_error
    else:
        news.search_news.return_value = articles or []
    embedder = MagicMock()
    if embed_error:
        embedder.embed.side_effect = embed_error
    else:
        embedder.embed.return_value = [0.1, 0.2, 0.3]
    vector_search = MagicMock(return_value=hits or [])
    llm = MagicMock(return_value=web_text)
    chain = RetrievalChain(news, embedder, vector_search, llm)
    return chain, news, embedder, vector_search, llm


def test_live_results_short_circuit_other_tiers() -> None:
    chain, news, embedder, vector_search, llm = make_chain(articles=[ARTICLE])

    result = chain.retrieve("election results today")

    assert isinstance(result, NewsDataResult)
    assert result.source == "newsdata"
    assert result.passages == (
        Passage(title="Results are in", content="Candidate A won the election.",
                source="https://news.example/a", pub_date="2024-11-06 08:00:00"),
    )
    news.search_news.assert_called_once_with("election results today", language="en")
    embedder.embed.assert_not_called()
    vector_search.assert_not_called()
    llm.assert_not_called()


def test_vector_tier_when_no_live_results() -> None:
    hit = {**ARTICLE, "score": 0.82}
    chain, _, embedder, vector_search, llm = make_chain(hits=[hit])

    result = chain.retrieve("who won?")

    assert isinstance(result, VectorResult)
    assert len(result.passages) == 1
    assert result.passages[0].content == ARTICLE["content"]
    embedder.embed.assert_called_once_with("who won?")
    vector_search.assert_called_once_with([0.1, 0.2, 0.3], limit=1, score_threshold=0.7)
    llm.assert_not_called()


def test_web_fallback_when_no_vector_match() -> None:
    chain, _, _, _, llm = make_chain(web_text="Some factual summary.")

    result = chain.retrieve("obscure topic")

    assert isinstance(result, WebResult)
    (passage,) = result.passages
    assert passage.title == "obscure topic"
    assert passage.content == "Some factual summary."
    assert passage.source == WEB_SEARCH_SOURCE
    assert passage.pub_date
    prompt = llm.call_args.args[0]
    assert "Search the web for recent information about: obscure topic." in prompt


def test_all_tiers_empty_returns_none() -> None:
    chain, *_ = make_chain()
    result = chain.retrieve("nothing")
    assert isinstance(result, NoResult)
    assert result.source == "none"
    assert result.passages == ()


def test_error_in_first_tier_aborts_chain() -> None:
    chain, _, embedder, vector_search, llm = make_chain(news_error=RuntimeError("503"))

    with pytest.raises(RetrievalFailure) as exc:
        chain.retrieve("q")

    assert exc.value.tier == "newsdata"
    embedder.embed.assert_not_called()
    vector_search.assert_not_called()
    llm.assert_not_called()


def test_embedding_failure_aborts_before_web_tier() -> None:
    chain, _, _, vector_search, llm = make_chain(embed_error=EmbeddingFailure("down"))

    with pytest.raises(RetrievalFailure) as exc:
        chain.retrieve("q")

    assert exc.value.tier == "vector"
    assert isinstance(exc.value.__cause__, EmbeddingFailure)
    vector_search.assert_not_called()
    llm.assert_not_called()


def test_no_result_cannot_carry_passages() -> None:
    with pytest.raises(ValueError):
        NoResult(passages=(Passage(title="t", content="c"),))
