"""
Embedding Provider Abstraction Layer

Optional clients used to embed a query context for semantic path scoring:
- OpenAI (text-embedding-3 models)
- Ollama (local embedding models)
"""

from graph_intel.embeddings.base import EmbeddingProvider, cosine_similarity, get_provider

__all__ = ["EmbeddingProvider", "cosine_similarity", "get_provider"]
