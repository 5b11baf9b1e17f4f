"""
Embedding Provider Base

Usage:
    from graph_intel.embeddings import get_provider

    provider = get_provider("openai")
    vector = await provider.embed("fintech infrastructure founders")
"""

import importlib
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm."""
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Vectors must have the same length ({a.shape[0]} != {b.shape[0]})")
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return 0.0
    return float(np.dot(a, b) / denominator)


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    def __init__(self, model: str, **kwargs):
        self.model = model
        self.config = kwargs

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'openai', 'ollama')."""
        pass

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        pass


def get_provider(
    provider_name: str,
    model: Optional[str] = None,
    **kwargs
) -> EmbeddingProvider:
    """Factory function to get the appropriate embedding provider.

    Args:
        provider_name: One of 'openai', 'ollama'
        model: Model name (provider default if not specified)
        **kwargs: Additional provider-specific configuration

    Returns:
        Configured EmbeddingProvider instance

    Raises:
        ValueError: If provider_name is not recognized
    """
    providers = {
        "openai": "graph_intel.embeddings.openai.OpenAIEmbeddingProvider",
        "ollama": "graph_intel.embeddings.local.OllamaEmbeddingProvider",
    }

    if provider_name not in providers:
        raise ValueError(
            f"Unknown embedding provider: {provider_name}. "
            f"Available: {list(providers.keys())}"
        )

    # Dynamic import to avoid loading unused client libraries
    module_path, class_name = providers[provider_name].rsplit(".", 1)
    module = importlib.import_module(module_path)
    provider_class = getattr(module, class_name)

    return provider_class(model=model, **kwargs)
