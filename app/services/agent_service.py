"""
Pipeline wiring: build the query processor from its collaborators.

Responsibility: Connect to the vector store, create the embedding cache and
generator, and assemble retrieval -> answer generation. Called once at app
startup; no HTTP here.
"""

import logging

from app.agent.llm import generate_text
from app.services.embedding_cache import EmbeddingCache
from app.services.news_service import NewsDataService
from app.services.query_service import QueryProcessor
from app.services.response_service import ResponseGenerator
from app.services.retrieval_service import RetrievalChain
from app.services.vector_store import EmbeddingGenerator, get_milvus_client, search_similar

logger = logging.getLogger(__name__)


def build_query_processor(cache: EmbeddingCache | None = None) -> QueryProcessor:
    """
    Assemble the retrieval-and-response pipeline.

    Checks the Milvus connection first so a misconfigured vector store fails here,
    at startup, rather than on the first query.
    """
    logger.info("Setting up RAG pipeline...")
    get_milvus_client()
    cache = cache if cache is not None else EmbeddingCache()
    retriever = RetrievalChain(
        news_client=NewsDataService(),
        embedder=EmbeddingGenerator(cache),
        vector_search=search_similar,
        llm=generate_text,
    )
    processor = QueryProcessor(retriever, ResponseGenerator(generate_text))
    logger.info("RAG pipeline initialized successfully")
    return processor
