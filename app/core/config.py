"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Redis (chat history). Every write resets the key's TTL.
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0").strip()
REDIS_TTL: int = int(os.getenv("REDIS_TTL", "3600"))
CHAT_KEY_PREFIX: str = "chat:"

# Milvus Cloud (from env)
MILVUS_URI: str = os.getenv("MILVUS_URI", "").strip()
MILVUS_TOKEN: str = os.getenv("MILVUS_TOKEN", "").strip()

# Vector collection: default embedding dim (sentence-transformers/all-MiniLM-L6-v2 = 384)
COLLECTION_NAME: str = os.getenv("COLLECTION_NAME", "news_articles").strip() or "news_articles"
VECTOR_DIM: int = 384

# Similarity tier: top-1 match at or above this cosine score
SIMILARITY_THRESHOLD: float = 0.7
VECTOR_SEARCH_LIMIT: int = 1

# Hugging Face (embeddings / inference)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_EMBED_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
EMBED_BATCH_SIZE: int = 32

# Embedding cache: bounded, FIFO eviction, keyed on a text prefix
EMBED_CACHE_SIZE: int = 1000
EMBED_CACHE_KEY_CHARS: int = 100

# NewsData.io (live-source tier)
NEWSDATA_API_KEY: str = os.getenv("NEWSDATA_API_KEY", "").strip()
NEWSDATA_URL: str = "https://newsdata.io/api/1/news"
NEWS_LANGUAGE: str = "en"

# API timeouts (seconds)
EMBED_API_TIMEOUT: float = 30.0
LLM_API_TIMEOUT: float = 60.0
NEWS_API_TIMEOUT: float = 15.0

# Hugging Face chat (fallback LLM)
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"

# Decoding parameters for answer generation
GENERATION_TEMPERATURE: float = 0.3
GENERATION_TOP_P: float = 0.8
GENERATION_MAX_TOKENS: int = 150

# Real-time channel: delay before the "this might take a moment" notice
PROCESSING_NOTICE_DELAY: float = float(os.getenv("PROCESSING_NOTICE_DELAY", "3.0"))

# Seconds to wait on shutdown for in-flight message tasks before closing Redis
SHUTDOWN_DRAIN_TIMEOUT: float = float(os.getenv("SHUTDOWN_DRAIN_TIMEOUT", "5.0"))

# OpenAI (generative model). When set, OpenAI is used instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# HF LLM (fallback when OPENAI_API_KEY is not set). Router chat completions require a chat model.
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

REQUIRED_ENV_VARS: tuple[str, ...] = (
    "REDIS_URL",
    "MILVUS_URI",
    "MILVUS_TOKEN",
    "HF_API_KEY",
    "NEWSDATA_API_KEY",
)


def warn_missing_env() -> list[str]:
    """Log a warning for each required variable that is unset. Returns the missing names."""
    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    if missing:
        logger.warning("Missing environment variables: %s", ", ".join(missing))
        logger.warning("Some features may not work correctly without these variables")
    return missing
