"""
Analysis Session

One loaded snapshot plus everything derived from it: the network index, the
path finder, scorer, influence analyzer, result cache and introduction path
service. Rebuild the session when the snapshot goes stale.
"""

import logging
from typing import Optional

from graph_intel.embeddings.base import EmbeddingProvider, get_provider
from graph_intel.models.entities import GraphSnapshot
from graph_intel.models.index import NetworkIndex
from graph_intel.models.influence import InfluenceAnalyzer
from graph_intel.models.introductions import IntroductionPathService
from graph_intel.models.path_finder import PathFinder
from graph_intel.models.scoring import PathScorer
from graph_intel.pipeline.loader import GraphStore, SnapshotFilter, SnapshotLoader
from graph_intel.utils.cache import ResultCache
from graph_intel.utils.config import Config

logger = logging.getLogger(__name__)


def create_embedding_provider(config: Config) -> Optional[EmbeddingProvider]:
    """Embedding provider named in the config, or None when not configured."""
    settings = config.embeddings
    if not settings.provider:
        return None

    kwargs = {}
    if settings.provider == "openai":
        kwargs["api_key_env"] = settings.api_key_env.get("openai", "OPENAI_API_KEY")
    elif settings.provider == "ollama":
        kwargs["base_url"] = settings.ollama_base_url

    return get_provider(settings.provider, model=settings.get_model(), **kwargs)


class AnalysisSession:
    """Components built over one immutable snapshot."""

    def __init__(
        self,
        snapshot: GraphSnapshot,
        config: Optional[Config] = None,
        cache: Optional[ResultCache] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
    ):
        self.snapshot = snapshot
        self.config = config or Config()
        cfg = self.config

        self.index = NetworkIndex.from_snapshot(
            snapshot,
            neutral_strength=cfg.scoring.neutral_strength,
        )
        self.finder = PathFinder(
            self.index,
            max_hops=cfg.paths.max_hops,
            max_paths=cfg.paths.max_paths,
            hub_candidates=cfg.paths.hub_candidates,
            time_budget_seconds=cfg.paths.time_budget_seconds,
        )
        self.scorer = PathScorer(
            self.index,
            decay_factor=cfg.scoring.decay_factor,
            default_type_weight=cfg.scoring.default_type_weight,
            semantic_weight=cfg.scoring.semantic_weight,
            relationship_weights=cfg.scoring.relationship_weights,
        )
        self.analyzer = InfluenceAnalyzer(
            self.index,
            well_connected_threshold=cfg.influence.well_connected_threshold,
            influential_threshold=cfg.influence.influential_threshold,
            max_score=cfg.influence.max_score,
            reach_hops=cfg.influence.reach_hops,
            top_k=cfg.influence.top_k,
        )
        self.cache = cache or ResultCache(
            backend=cfg.cache.backend,
            cache_path=cfg.cache.path,
            ttl_days=cfg.cache.ttl_days,
            max_size_mb=cfg.cache.max_size_mb,
            enabled=cfg.cache.enabled,
        )
        self.service = IntroductionPathService(
            self.index,
            finder=self.finder,
            scorer=self.scorer,
            cache=self.cache,
            analyzer=self.analyzer,
            embedding_provider=embedding_provider,
            warm_max_hops=cfg.warm_introductions.max_hops,
            warm_paths_per_seed=cfg.warm_introductions.paths_per_seed,
            warm_min_path_strength=cfg.warm_introductions.min_path_strength,
            warm_strategies=cfg.warm_introductions.strategies,
            well_connected_seeds_only=cfg.warm_introductions.well_connected_seeds_only,
        )

        logger.info(
            f"Session ready for snapshot {snapshot.snapshot_id[:8]}: "
            f"{self.index.entity_count} entities, {self.index.edge_count} indexed edges"
        )

    @classmethod
    async def load(
        cls,
        store: GraphStore,
        config: Optional[Config] = None,
        filter: Optional[SnapshotFilter] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
    ) -> "AnalysisSession":
        """Load a snapshot from a store and build a session over it.

        Raises:
            SnapshotUnavailable: If the store cannot be read
        """
        config = config or Config()
        loader = SnapshotLoader(
            store,
            page_size=config.store.page_size,
            max_concurrency=config.store.max_concurrency,
        )
        snapshot = await loader.load(filter)
        return cls(snapshot, config=config, embedding_provider=embedding_provider)

    def close(self) -> None:
        self.cache.close()
