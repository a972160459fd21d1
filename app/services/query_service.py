"""
Query processing: retrieval -> answer generation, with a hard no-raise boundary.

This is the only pipeline entry point the real-time channel depends on.
"""

import logging
from typing import Protocol

from app.core.errors import RetrievalFailure
from app.services.response_service import APOLOGY, ResponseGenerator
from app.services.retrieval_service import RetrievalChain

logger = logging.getLogger(__name__)

INSUFFICIENT_INFO = "I don't have enough information to answer that question."
UNAVAILABLE = "I'm sorry, the knowledge base is currently unavailable. Please try again later."


class Processor(Protocol):
    def process_query(self, query: str) -> str: ...


class QueryProcessor:
    def __init__(self, retriever: RetrievalChain, responder: ResponseGenerator) -> None:
        self.retriever = retriever
        self.responder = responder

    def process_query(self, query: str) -> str:
        """Return answer text for the query. Never raises."""
        logger.info("[query:process_query] IN  query=%r", query)
        try:
            result = self.retriever.retrieve(query)
            if not result.passages:
                logger.info("[query:process_query] OUT no passages")
                return INSUFFICIENT_INFO
            answer = self.responder.generate(query, result)
        except RetrievalFailure as e:
            logger.error("[query:process_query] retrieval failed tier=%s: %s", e.tier, e.message)
            return APOLOGY
        except Exception:
            logger.exception("[query:process_query] error processing query")
            return APOLOGY
        logger.info("[query:process_query] OUT source=%s answer_len=%d", result.source, len(answer))
        return answer


class UnavailableProcessor:
    """Stand-in used when the pipeline could not be built at startup."""

    def process_query(self, query: str) -> str:
        logger.warning("[query:process_query] pipeline unavailable; query=%r", query)
        return UNAVAILABLE
