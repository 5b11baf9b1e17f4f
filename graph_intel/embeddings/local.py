"""
Local Embedding Provider (Ollama)
"""

import logging
from typing import Optional

import httpx

from graph_intel.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Ollama local embedding model provider."""

    DEFAULT_MODEL = "nomic-embed-text"
    DEFAULT_BASE_URL = "http://localhost:11434"

    def __init__(
        self,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """Initialize Ollama provider.

        Args:
            model: Model name (default: nomic-embed-text)
            base_url: Ollama API URL (default: http://localhost:11434)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
            **kwargs: Additional configuration
        """
        super().__init__(model=model or self.DEFAULT_MODEL, **kwargs)
        self.base_url = base_url or self.DEFAULT_BASE_URL
        self.timeout = timeout
        self.transport = transport

    @property
    def provider_name(self) -> str:
        return "ollama"

    async def embed(self, text: str) -> list[float]:
        """Embed text using the Ollama embeddings API."""
        url = f"{self.base_url}/api/embeddings"
        payload = {"model": self.model, "prompt": text}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPError as e:
            logger.error(f"Ollama embedding error: {e}")
            raise

        embedding = data.get("embedding")
        if not embedding:
            raise ValueError(f"Ollama returned no embedding for model {self.model}")
        return [float(v) for v in embedding]
