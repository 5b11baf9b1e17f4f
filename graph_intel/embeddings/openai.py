"""
OpenAI Embedding Provider
"""

import logging
import os
from typing import Optional

import openai

from graph_intel.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings API provider."""

    DEFAULT_MODEL = "text-embedding-3-large"

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        api_key_env: str = "OPENAI_API_KEY",
        dimensions: Optional[int] = None,
        **kwargs
    ):
        """Initialize OpenAI provider.

        Args:
            model: Model name (default: text-embedding-3-large)
            api_key: API key (default: from environment)
            api_key_env: Environment variable name for API key
            dimensions: Optional output dimensionality
            **kwargs: Additional configuration
        """
        super().__init__(model=model or self.DEFAULT_MODEL, **kwargs)

        self.api_key = api_key or os.environ.get(api_key_env)
        if not self.api_key:
            raise ValueError(
                f"OpenAI API key not found. Set {api_key_env} environment variable "
                "or pass api_key argument."
            )

        self.dimensions = dimensions
        self.client = openai.AsyncOpenAI(api_key=self.api_key)

    @property
    def provider_name(self) -> str:
        return "openai"

    async def embed(self, text: str) -> list[float]:
        """Embed text using the OpenAI embeddings endpoint."""
        params = {"model": self.model, "input": text}
        if self.dimensions:
            params["dimensions"] = self.dimensions

        try:
            response = await self.client.embeddings.create(**params)
            return list(response.data[0].embedding)

        except openai.APIError as e:
            logger.error(f"OpenAI embedding error: {e}")
            raise
