"""
Introduction Path Service

Finds and ranks introduction paths: explicit source/target queries and
"warm introductions" from internal people to an external target.
"""

import logging
from typing import Iterable, Optional

from graph_intel.embeddings.base import EmbeddingProvider
from graph_intel.models.entities import (
    ALL_STRATEGIES,
    Entity,
    Path,
    PathQueryOptions,
    PathStrategy,
    WarmIntroductionReport,
)
from graph_intel.models.index import NetworkIndex
from graph_intel.models.influence import InfluenceAnalyzer
from graph_intel.models.path_finder import PathFinder
from graph_intel.models.scoring import PathScorer
from graph_intel.utils.cache import ResultCache, make_cache_key

logger = logging.getLogger(__name__)


def warm_introduction_key(path: Path) -> tuple[str, ...]:
    """Identity of a warm introduction across seeds.

    Multi-hop introductions that share every entity after the originating
    seed are the same request to the same intermediaries. Direct paths keep
    their full sequence so each seed that knows the target stays listed.
    """
    if path.hop_count >= 2:
        return tuple(path.entity_ids[1:])
    return path.key


class IntroductionPathService:
    """Orchestrates path finding, scoring and caching over one index."""

    def __init__(
        self,
        index: NetworkIndex,
        finder: Optional[PathFinder] = None,
        scorer: Optional[PathScorer] = None,
        cache: Optional[ResultCache] = None,
        analyzer: Optional[InfluenceAnalyzer] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        warm_max_hops: int = 3,
        warm_paths_per_seed: int = 3,
        warm_min_path_strength: float = 0.1,
        warm_strategies: Optional[list[PathStrategy]] = None,
        well_connected_seeds_only: bool = False,
    ):
        """Initialize service.

        Args:
            index: Network index for this analysis session
            finder: Path finder (default: one over the index)
            scorer: Path scorer (default: one over the index)
            cache: Result cache, bound to the index version
            analyzer: Influence analyzer used for seed selection
            embedding_provider: Optional provider for context embeddings
            warm_max_hops: Hop budget per seed for warm introductions
            warm_paths_per_seed: Paths kept per seed before cross-seed ranking
            warm_min_path_strength: Minimum cumulative strength for a warm path
            warm_strategies: Strategies used per seed (default: shortest, strongest)
            well_connected_seeds_only: Restrict seeds to well-connected entities
        """
        self.index = index
        self.finder = finder or PathFinder(index)
        self.scorer = scorer or PathScorer(index)
        self.analyzer = analyzer or InfluenceAnalyzer(index)
        self.embedding_provider = embedding_provider

        self.cache = cache if cache is not None else ResultCache()
        self.cache.bind(index)

        self.warm_max_hops = warm_max_hops
        self.warm_paths_per_seed = warm_paths_per_seed
        self.warm_min_path_strength = warm_min_path_strength
        self.warm_strategies = warm_strategies or [PathStrategy.SHORTEST, PathStrategy.STRONGEST]
        self.well_connected_seeds_only = well_connected_seeds_only

    async def embed_context(self, text: str) -> Optional[list[float]]:
        """Embed a query context with the configured provider, if any."""
        if self.embedding_provider is None:
            logger.debug("No embedding provider configured, semantic bonus disabled")
            return None
        return await self.embedding_provider.embed(text)

    def find_optimal_paths(
        self,
        source_id: str,
        target_id: str,
        strategies: Optional[Iterable[PathStrategy]] = None,
        max_hops: Optional[int] = None,
        max_paths: Optional[int] = None,
        min_path_strength: float = 0.0,
        context_embedding: Optional[list[float]] = None,
    ) -> list[Path]:
        """Ranked, deduplicated paths between two entities.

        Args:
            source_id: Starting entity
            target_id: Target entity
            strategies: Strategy mix (default: all)
            max_hops: Hop budget (default: finder default)
            max_paths: Maximum paths returned (default: finder default)
            min_path_strength: Drop paths whose cumulative strength is lower
            context_embedding: Optional context vector for the semantic bonus

        Returns:
            Paths sorted by score, best first; empty for unknown entities
        """
        strategies = list(strategies) if strategies is not None else list(ALL_STRATEGIES)
        max_hops = self.finder.max_hops if max_hops is None else max_hops
        max_paths = self.finder.max_paths if max_paths is None else max_paths

        if not (self.index.has_entity(source_id) and self.index.has_entity(target_id)):
            return []

        # Context-dependent scores are not cached
        key = make_cache_key(source_id, target_id, strategies, max_hops, max_paths, min_path_strength)
        if context_embedding is None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        raw = self.finder.find_paths(
            source_id,
            target_id,
            strategies=strategies,
            max_hops=max_hops,
            max_paths=max_paths,
        )
        eligible = [p for p in raw if p.strength >= min_path_strength]
        ranked = self.scorer.rank(eligible, max_paths=max_paths, context_embedding=context_embedding)

        if context_embedding is None:
            self.cache.set(key, ranked)

        logger.debug(
            f"{len(ranked)} paths from {source_id} to {target_id} "
            f"({len(raw)} found, {len(raw) - len(eligible)} below strength threshold)"
        )
        return ranked

    def find_introduction_paths(
        self,
        source_id: str,
        target_id: str,
        options: Optional[PathQueryOptions] = None,
    ) -> list[Path]:
        """Explicit single-pair query."""
        options = options or PathQueryOptions()
        return self.find_optimal_paths(
            source_id,
            target_id,
            strategies=options.strategies,
            max_hops=options.max_hops,
            max_paths=options.max_paths,
            min_path_strength=options.min_path_strength,
            context_embedding=options.context_embedding,
        )

    def select_seeds(self, seed_ids: Optional[Iterable[str]] = None) -> list[Entity]:
        """Seed entities for warm introductions.

        Defaults to internal people. Unknown ids in an explicit list are ignored.
        """
        if seed_ids is not None:
            seeds = [self.index.get_entity(i) for i in seed_ids]
            seeds = [s for s in seeds if s is not None]
        else:
            seeds = self.index.internal_people()

        if self.well_connected_seeds_only:
            seeds = [s for s in seeds if self.analyzer.is_well_connected(s.id)]
        return seeds

    def warm_introduction_report(
        self,
        target_id: str,
        max_results: int = 5,
        seed_ids: Optional[Iterable[str]] = None,
        max_hops: Optional[int] = None,
        context_embedding: Optional[list[float]] = None,
    ) -> WarmIntroductionReport:
        """Warm introductions to a target with per-seed diagnostics."""
        report = WarmIntroductionReport(target_id=target_id)

        if not self.index.has_entity(target_id):
            logger.info(f"Unknown target entity {target_id}, no warm introductions")
            report.unknown_target = True
            return report

        seeds = [s for s in self.select_seeds(seed_ids) if s.id != target_id]
        report.seeds_considered = len(seeds)
        if not seeds:
            logger.warning(f"No internal seeds available for warm introductions to {target_id}")
            report.empty_seed_set = True
            return report

        max_hops = self.warm_max_hops if max_hops is None else max_hops
        candidates: list[Path] = []

        for seed in seeds:
            try:
                paths = self.find_optimal_paths(
                    seed.id,
                    target_id,
                    strategies=self.warm_strategies,
                    max_hops=max_hops,
                    max_paths=self.warm_paths_per_seed,
                    min_path_strength=self.warm_min_path_strength,
                    context_embedding=context_embedding,
                )
            except Exception as e:
                logger.warning(f"Warm introduction search failed for seed {seed.id}: {e}")
                report.seed_failures[seed.id] = str(e)
                continue

            if paths:
                report.seeds_with_paths += 1
                candidates.extend(paths)

        unique = PathScorer.deduplicate(candidates, key=warm_introduction_key)
        unique.sort(key=PathScorer.sort_key)
        report.paths = unique[:max_results]

        logger.info(
            f"Found {len(report.paths)} warm introductions to {self.index.name_of(target_id)} "
            f"from {report.seeds_with_paths}/{report.seeds_considered} seeds"
        )
        return report

    def find_warm_introductions(
        self,
        target_id: str,
        max_results: int = 5,
        seed_ids: Optional[Iterable[str]] = None,
        max_hops: Optional[int] = None,
        context_embedding: Optional[list[float]] = None,
    ) -> list[Path]:
        """Top warm introduction paths from internal seeds to a target."""
        return self.warm_introduction_report(
            target_id,
            max_results=max_results,
            seed_ids=seed_ids,
            max_hops=max_hops,
            context_embedding=context_embedding,
        ).paths

    def find_warm_introductions_batch(
        self,
        target_ids: Iterable[str],
        max_results: int = 5,
        max_hops: Optional[int] = None,
        context_embedding: Optional[list[float]] = None,
        progress_callback: Optional[callable] = None,
    ) -> dict[str, WarmIntroductionReport]:
        """Warm introductions for many targets.

        A failure for one target is recorded on its report and does not stop
        the batch.
        """
        target_ids = list(target_ids)
        reports: dict[str, WarmIntroductionReport] = {}

        for i, target_id in enumerate(target_ids, 1):
            try:
                reports[target_id] = self.warm_introduction_report(
                    target_id,
                    max_results=max_results,
                    max_hops=max_hops,
                    context_embedding=context_embedding,
                )
            except Exception as e:
                logger.warning(f"Warm introduction batch failed for target {target_id}: {e}")
                reports[target_id] = WarmIntroductionReport(target_id=target_id, error=str(e))

            if progress_callback:
                progress_callback(i, len(target_ids))

        with_paths = sum(1 for r in reports.values() if r.has_paths)
        logger.info(f"Warm introductions found for {with_paths}/{len(target_ids)} targets")
        return reports
