"""
Path Scorer

One scoring formula for every strategy:

    score = strength * hop_decay(hop_count) * type_weight + semantic_bonus

    strength       product of per-edge strengths (missing -> neutral 0.5)
    hop_decay(h)   decay_factor ** (max(h, 1) - 1)
    type_weight    average of per-kind relationship weights along the path
    semantic_bonus semantic_weight * mean cosine similarity between a context
                   embedding and the path's entity embeddings (0 without one)
"""

import logging
from typing import Iterable, Optional

from graph_intel.embeddings.base import cosine_similarity
from graph_intel.models.entities import Path
from graph_intel.models.index import NetworkIndex

logger = logging.getLogger(__name__)


class PathScorer:
    """Scores, deduplicates and ranks paths."""

    DEFAULT_RELATIONSHIP_WEIGHTS = {
        "founder": 0.95,
        "ceo": 0.90,
        "cto": 0.85,
        "cfo": 0.85,
        "director": 0.80,
        "manager": 0.75,
        "employee": 0.70,
        "colleague": 0.65,
        "portfolio": 0.90,
        "portfolio_company_of": 0.90,
        "deal_team": 0.80,
        "owner": 0.85,
    }

    def __init__(
        self,
        index: Optional[NetworkIndex] = None,
        decay_factor: float = 0.8,
        default_type_weight: float = 0.5,
        semantic_weight: float = 0.4,
        relationship_weights: Optional[dict[str, float]] = None,
    ):
        """Initialize scorer.

        Args:
            index: Index used to look up entity embeddings for the semantic bonus
            decay_factor: Per-hop decay, must be in (0, 1)
            default_type_weight: Weight for relationship kinds not in the table
            semantic_weight: Multiplier applied to the semantic similarity
            relationship_weights: Overrides merged into the default weight table
        """
        if not 0.0 < decay_factor < 1.0:
            raise ValueError(f"decay_factor must be in (0, 1), got {decay_factor}")

        self.index = index
        self.decay_factor = decay_factor
        self.default_type_weight = default_type_weight
        self.semantic_weight = semantic_weight

        self.weights = self.DEFAULT_RELATIONSHIP_WEIGHTS.copy()
        if relationship_weights:
            self.weights.update({k.lower(): v for k, v in relationship_weights.items()})

    def hop_decay(self, hop_count: int) -> float:
        return self.decay_factor ** (max(hop_count, 1) - 1)

    def relationship_type_weight(self, kinds: list[str]) -> float:
        """Average weight of the relationship kinds along a path."""
        if not kinds:
            return self.default_type_weight
        values = [self.weights.get(k.lower(), self.default_type_weight) for k in kinds]
        return sum(values) / len(values)

    def semantic_similarity(
        self,
        path: Path,
        context_embedding: Optional[list[float]],
    ) -> float:
        """Mean similarity of path entities to the context, clamped to [0, 1]."""
        if not context_embedding or self.index is None:
            return 0.0

        similarities = []
        for entity_id in path.entity_ids:
            entity = self.index.get_entity(entity_id)
            if entity is None or not entity.embedding:
                continue
            if len(entity.embedding) != len(context_embedding):
                logger.debug(f"Embedding size mismatch for {entity_id}, skipping")
                continue
            similarities.append(cosine_similarity(context_embedding, entity.embedding))

        if not similarities:
            return 0.0
        mean = sum(similarities) / len(similarities)
        return min(max(mean, 0.0), 1.0)

    def score_path(
        self,
        path: Path,
        context_embedding: Optional[list[float]] = None,
    ) -> float:
        base = (
            path.strength
            * self.hop_decay(path.hop_count)
            * self.relationship_type_weight(path.kinds)
        )
        bonus = self.semantic_weight * self.semantic_similarity(path, context_embedding)
        return base + bonus

    def score(
        self,
        paths: Iterable[Path],
        context_embedding: Optional[list[float]] = None,
    ) -> list[Path]:
        """Return copies of the paths with their score set."""
        return [
            p.model_copy(update={"score": self.score_path(p, context_embedding)})
            for p in paths
        ]

    @staticmethod
    def sort_key(path: Path) -> tuple:
        return (-path.score, path.hop_count, path.entity_ids)

    @staticmethod
    def deduplicate(paths: Iterable[Path], key=None) -> list[Path]:
        """Keep the highest-scored path per key (default: the id sequence).

        On equal scores the first occurrence wins.
        """
        key = key or (lambda p: p.key)
        best: dict = {}
        for path in paths:
            k = key(path)
            current = best.get(k)
            if current is None or path.score > current.score:
                best[k] = path
        return list(best.values())

    def rank(
        self,
        paths: Iterable[Path],
        max_paths: Optional[int] = None,
        context_embedding: Optional[list[float]] = None,
    ) -> list[Path]:
        """Score, deduplicate, sort descending and truncate."""
        scored = self.score(paths, context_embedding)
        unique = self.deduplicate(scored)
        unique.sort(key=self.sort_key)
        if max_paths is not None:
            unique = unique[:max_paths]
        return unique
