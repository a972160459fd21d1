"""
Unit tests for prompt selection and answer generation.
"""

from unittest.mock import MagicMock

import pytest

from app.core.errors import GenerationFailure
from app.services.response_service import (
    APOLOGY,
    NO_RELEVANT_INFO,
    ResponseGenerator,
    build_context,
    build_prompt,
)
from app.services.retrieval_service import NewsDataResult, NoResult, Passage, VectorResult, WebResult

PASSAGES = (
    Passage(title="Headline one", content="First body."),
    Passage(title="Headline two", content="Second body."),
)


def test_context_joins_title_and_content_per_line() -> None:
    assert build_context(NewsDataResult(passages=PASSAGES)) == "Headline one: First body.\nHeadline two: Second body."


def test_newsdata_prompt() -> None:
    prompt = build_prompt("who won?", NewsDataResult(passages=PASSAGES[:1]))
    assert prompt == 'Based on this recent news: "Headline one: First body." - who won? Answer in 1-2 sentences.'


def test_vector_prompt_carries_staleness_caveat() -> None:
    prompt = build_prompt("who won?", VectorResult(passages=PASSAGES[:1]))
    assert prompt.startswith("Based on this historical news:")
    assert "noting this may not be the most recent information" in prompt


def test_web_prompt() -> None:
    prompt = build_prompt("who won?", WebResult(passages=PASSAGES[:1]))
    assert prompt.startswith("Based on this web search result:")


def test_no_result_has_no_template() -> None:
    llm = MagicMock()
    with pytest.raises(TypeError):
        ResponseGenerator(llm).generate("q", NoResult())
    llm.assert_not_called()


def test_generate_uses_fixed_decoding_params() -> None:
    llm = MagicMock(return_value="Candidate A won.")
    answer = ResponseGenerator(llm).generate("who won?", NewsDataResult(passages=PASSAGES))
    assert answer == "Candidate A won."
    assert llm.call_args.kwargs == {"temperature": 0.3, "top_p": 0.8, "max_tokens": 150}


def test_model_error_returns_apology() -> None:
    llm = MagicMock(side_effect=GenerationFailure("timeout"))
    assert ResponseGenerator(llm).generate("q", WebResult(passages=PASSAGES)) == APOLOGY


def test_unexpected_model_error_returns_apology() -> None:
    llm = MagicMock(side_effect=RuntimeError("boom"))
    assert ResponseGenerator(llm).generate("q", WebResult(passages=PASSAGES)) == APOLOGY


def test_empty_model_text_returns_fallback() -> None:
    llm = MagicMock(return_value="")
    assert ResponseGenerator(llm).generate("q", VectorResult(passages=PASSAGES)) == NO_RELEVANT_INFO
