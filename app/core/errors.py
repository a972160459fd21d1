"""
Application errors for the retrieval-and-response pipeline.

EmbeddingFailure and RetrievalFailure abort a retrieval call; GenerationFailure is
recovered inside the response generator. Use ServiceUnavailableError when a
dependency (vector store, embeddings, LLM, news API) is misconfigured.
"""


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. vector store, embeddings API) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmbeddingFailure(Exception):
    """Raised when the feature-extraction model call fails or returns no vector."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RetrievalFailure(Exception):
    """Raised when any retrieval tier's external call fails. Later tiers are not tried."""

    def __init__(self, message: str, tier: str = "") -> None:
        self.message = message
        self.tier = tier
        super().__init__(message)


class GenerationFailure(Exception):
    """Raised when the generative model call fails (transport or HTTP error)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NewsServiceError(Exception):
    """Raised when the live news search API does not report success."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)
