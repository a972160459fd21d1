"""
Vector store client: Milvus Cloud connection, embeddings (HF Inference API), and article storage.

Responsibility: Connect to Milvus, embed texts via all-MiniLM-L6-v2 (with a bounded
prefix-keyed cache for queries), run top-k similarity search, store news articles.
"""

import logging
from functools import lru_cache
from typing import Any, Callable

import httpx

from app.core.config import (
    COLLECTION_NAME,
    EMBED_API_TIMEOUT,
    EMBED_BATCH_SIZE,
    EMBED_CACHE_KEY_CHARS,
    HF_API_KEY,
    HF_EMBED_MODEL,
    MILVUS_TOKEN,
    MILVUS_URI,
    SIMILARITY_THRESHOLD,
    VECTOR_DIM,
    VECTOR_SEARCH_LIMIT,
)
from app.core.errors import EmbeddingFailure, ServiceUnavailableError
from app.services.embedding_cache import EmbeddingCache

logger = logging.getLogger(__name__)

HF_API_URL = (
    "https://router.huggingface.co/hf-inference/models/"
    f"{HF_EMBED_MODEL}/pipeline/feature-extraction"
)

# Payload fields stored next to each article vector
PAYLOAD_FIELDS = ["title", "content", "source", "pubDate"]


def _normalize(vec: list[float]) -> list[float]:
    norm = sum(x * x for x in vec) ** 0.5
    if norm == 0:
        norm = 1.0
    return [x / norm for x in vec]


def _mean_pool(item: Any) -> list[float]:
    """Reduce a token-level output ([[f, ...], ...]) to one sentence vector."""
    if item and isinstance(item[0], list):
        dim = len(item[0])
        return [sum(tok[i] for tok in item) / len(item) for i in range(dim)]
    return [float(x) for x in item]


def embed_texts(
    texts: list[str], batch_size: int | None = None
) -> list[list[float]]:
    """
    Batch embed texts using Hugging Face Inference API (all-MiniLM-L6-v2).

    Returns list of 384-dim vectors, mean-pooled and L2-normalized for cosine similarity.
    Raises EmbeddingFailure when the API cannot produce vectors.
    """
    batch_size = batch_size if batch_size is not None else EMBED_BATCH_SIZE
    if not texts:
        return []
    if not HF_API_KEY:
        raise ServiceUnavailableError(
            "HF_API_KEY must be set in .env. Get a token from https://huggingface.co/settings/tokens"
        )

    headers = {
        "Authorization": f"Bearer {HF_API_KEY}",
        "Content-Type": "application/json",
    }
    all_embeddings: list[list[float]] = []

    with httpx.Client(timeout=EMBED_API_TIMEOUT) as client:
        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            payload = {"inputs": batch, "options": {"wait_for_model": True}}
            try:
                response = client.post(HF_API_URL, json=payload, headers=headers)
            except httpx.HTTPError as e:
                raise EmbeddingFailure(f"HF API request failed: {e}") from e

            if response.status_code != 200:
                if response.status_code == 503:
                    raise EmbeddingFailure(f"HF model is loading. Retry later. {response.text}")
                if response.status_code == 401:
                    raise EmbeddingFailure(
                        "Invalid HF API key. Check HF_API_KEY at https://huggingface.co/settings/tokens"
                    )
                raise EmbeddingFailure(f"HF API error ({response.status_code}): {response.text}")

            result = response.json()
            if not isinstance(result, list) or len(result) != len(batch):
                raise EmbeddingFailure(
                    f"HF API returned {type(result).__name__} for a batch of {len(batch)}"
                )
            for item in result:
                all_embeddings.append(_normalize(_mean_pool(item)))

    return all_embeddings


class EmbeddingGenerator:
    """
    Turn text into a vector, consulting the cache first.

    The cache key is the first 100 characters of the text, so two texts that only
    differ after that prefix share one vector.
    """

    def __init__(
        self,
        cache: EmbeddingCache,
        embed_fn: Callable[[list[str]], list[list[float]]] = embed_texts,
        key_chars: int = EMBED_CACHE_KEY_CHARS,
    ) -> None:
        self.cache = cache
        self.embed_fn = embed_fn
        self.key_chars = key_chars

    def cache_key(self, text: str) -> str:
        return text[: self.key_chars]

    def embed(self, text: str) -> list[float]:
        key = self.cache_key(text)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("[embeddings:embed] cache hit key_len=%d", len(key))
            return cached

        try:
            vectors = self.embed_fn([text])
        except EmbeddingFailure:
            raise
        except Exception as e:
            logger.error("[embeddings:embed] feature extraction failed: %s", e)
            raise EmbeddingFailure(f"Error generating embedding: {e}") from e
        if not vectors or not vectors[0]:
            raise EmbeddingFailure("Feature extraction returned no vector")

        vector = vectors[0]
        self.cache.put(key, vector)
        logger.info("[embeddings:embed] cache miss stored dim=%d cache_size=%d", len(vector), len(self.cache))
        return vector


@lru_cache(maxsize=1)
def get_milvus_client() -> Any:
    """
    Connect to Milvus Cloud and return a client. Creates the article collection
    if it does not exist (dim 384 for all-MiniLM-L6-v2, COSINE metric).
    """
    if not MILVUS_URI or not MILVUS_TOKEN:
        raise ServiceUnavailableError("MILVUS_URI and MILVUS_TOKEN must be set in .env")

    from pymilvus import MilvusClient

    client = MilvusClient(uri=MILVUS_URI, token=MILVUS_TOKEN)
    logger.info("Milvus connection established")

    if not client.has_collection(COLLECTION_NAME):
        client.create_collection(
            collection_name=COLLECTION_NAME,
            dimension=VECTOR_DIM,
            primary_field_name="id",
            vector_field_name="vector",
            metric_type="COSINE",
            auto_id=True,
            enable_dynamic_field=True,
        )
        logger.info("Collection %s created (dim=%s)", COLLECTION_NAME, VECTOR_DIM)
    return client


def search_similar(
    vector: list[float],
    limit: int = VECTOR_SEARCH_LIMIT,
    score_threshold: float = SIMILARITY_THRESHOLD,
    collection_name: str = COLLECTION_NAME,
) -> list[dict]:
    """
    Nearest-neighbour search. Returns stored payloads (title, content, source, pubDate)
    plus their cosine score, best first, dropping hits below score_threshold.
    """
    logger.info("[vector_store:search_similar] IN  limit=%d threshold=%.2f", limit, score_threshold)
    client = get_milvus_client()
    results = client.search(
        collection_name=collection_name,
        data=[vector],
        limit=limit,
        output_fields=PAYLOAD_FIELDS,
        search_params={"metric_type": "COSINE"},
    )

    # results: list of list of hits (one list per query vector)
    hits = results[0] if results else []
    payloads = []
    for h in hits:
        score = float(h.get("distance", h.get("score", 0.0)))
        if score < score_threshold:
            continue
        entity = h.get("entity") or h
        payload = {field: entity.get(field) for field in PAYLOAD_FIELDS}
        payload["score"] = score
        payloads.append(payload)
    logger.info("[vector_store:search_similar] OUT hits=%d kept=%d scores=%s",
                len(hits), len(payloads), [round(p["score"], 4) for p in payloads])
    return payloads


def store_articles(articles: list[dict]) -> int:
    """
    Embed each article (title + content) and insert it into Milvus with its payload,
    then flush the collection. Returns the number of rows inserted.
    """
    rows_in = [a for a in articles if (a.get("content") or a.get("title"))]
    if not rows_in:
        return 0

    texts = [f"{a.get('title') or ''}\n{a.get('content') or ''}".strip() for a in rows_in]
    embeddings = embed_texts(texts)

    client = get_milvus_client()
    rows = []
    for a, emb in zip(rows_in, embeddings):
        rows.append({
            "vector": emb,
            "title": a.get("title") or "",
            "content": a.get("content") or "",
            "source": a.get("source") or "",
            "pubDate": a.get("pubDate") or "",
        })

    client.insert(collection_name=COLLECTION_NAME, data=rows)
    client.flush(collection_name=COLLECTION_NAME)
    logger.info("Embedded and stored %d articles", len(rows))
    return len(rows)


def get_collection_stats() -> dict:
    """Return collection name and number of stored articles."""
    client = get_milvus_client()
    if not client.has_collection(COLLECTION_NAME):
        return {"collection_name": COLLECTION_NAME, "total_articles": 0}
    stats = client.get_collection_stats(collection_name=COLLECTION_NAME)
    return {
        "collection_name": COLLECTION_NAME,
        "total_articles": int(stats.get("row_count", 0)),
    }
