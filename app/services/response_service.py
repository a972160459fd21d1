"""
Answer generation: build a source-specific prompt from retrieved passages and call the LLM.
"""

import logging

from app.core.config import GENERATION_MAX_TOKENS, GENERATION_TEMPERATURE, GENERATION_TOP_P
from app.services.retrieval_service import (
    NewsDataResult,
    SearchResult,
    TextGenerator,
    VectorResult,
    WebResult,
)

logger = logging.getLogger(__name__)

NO_RELEVANT_INFO = "I couldn't find relevant information to answer your question."
APOLOGY = "I'm sorry, I couldn't process your query at this time."


def build_context(result: SearchResult) -> str:
    return "\n".join(f"{p.title}: {p.content}" for p in result.passages)


def build_prompt(query: str, result: SearchResult) -> str:
    """Prompt framing per result variant. Raises TypeError for NoResult or an unknown variant."""
    context = build_context(result)
    if isinstance(result, NewsDataResult):
        return f'Based on this recent news: "{context}" - {query} Answer in 1-2 sentences.'
    if isinstance(result, VectorResult):
        return (
            f'Based on this historical news: "{context}" - {query} Answer in 1-2 sentences, '
            "noting this may not be the most recent information."
        )
    if isinstance(result, WebResult):
        return f'Based on this web search result: "{context}" - {query} Answer in 1-2 sentences.'
    raise TypeError(f"No prompt template for search result source {result.source!r}")


class ResponseGenerator:
    def __init__(
        self,
        llm: TextGenerator,
        temperature: float = GENERATION_TEMPERATURE,
        top_p: float = GENERATION_TOP_P,
        max_tokens: int = GENERATION_MAX_TOKENS,
    ) -> None:
        self.llm = llm
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens

    def generate(self, query: str, result: SearchResult) -> str:
        """
        Answer the query from the result's passages.

        Model failures are recovered here: an exception yields the apology string and
        an empty completion yields NO_RELEVANT_INFO. Passing NoResult is a caller
        error and raises TypeError before the model is called.
        """
        prompt = build_prompt(query, result)
        logger.info("[response:generate] IN  source=%s passages=%d", result.source, len(result.passages))
        try:
            text = self.llm(
                prompt,
                temperature=self.temperature,
                top_p=self.top_p,
                max_tokens=self.max_tokens,
            )
        except Exception:
            logger.exception("[response:generate] error generating response")
            return APOLOGY
        if not text:
            logger.warning("[response:generate] model returned no text")
            return NO_RELEVANT_INFO
        logger.info("[response:generate] OUT answer_len=%d", len(text))
        return text
