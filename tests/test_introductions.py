"""
Tests for Introduction Path Service
"""

import asyncio

import pytest

from graph_intel.models.entities import PathQueryOptions, PathStrategy
from graph_intel.models.index import NetworkIndex
from graph_intel.models.introductions import IntroductionPathService, warm_introduction_key
from graph_intel.models.path_finder import PathFinder
from graph_intel.utils.cache import ResultCache


class FailingFinder(PathFinder):
    """Path finder that breaks for one source entity."""

    def __init__(self, index, failing_source):
        super().__init__(index)
        self.failing_source = failing_source

    def find_paths(self, source_id, target_id, **kwargs):
        if source_id == self.failing_source:
            raise RuntimeError("traversal exploded")
        return super().find_paths(source_id, target_id, **kwargs)


class StaticEmbeddingProvider:
    """Returns a fixed vector for any text."""

    def __init__(self, vector):
        self.vector = vector
        self.calls = []

    async def embed(self, text):
        self.calls.append(text)
        return self.vector


class TestWarmIntroductions:
    """Tests for warm introduction search from internal seeds."""

    def test_shared_chain_listed_once(self, warm_service):
        """Test that two seeds reaching the target through the same intermediary collapse."""
        paths = warm_service.find_warm_introductions("t")

        through_x = [p for p in paths if p.entity_ids[1:] == ["x", "t"]]
        assert len(through_x) == 1
        assert through_x[0].source_id == "o1"
        assert through_x[0].score == pytest.approx(0.9 * 0.8 * 0.8 * 0.65)

    def test_results_ranked_by_score(self, warm_service):
        paths = warm_service.find_warm_introductions("t")

        assert [p.source_id for p in paths] == ["d", "o1", "o3"]
        assert [p.score for p in paths] == sorted((p.score for p in paths), reverse=True)

    def test_hop_budget_prunes_distant_seed(self, warm_service):
        """Test that a seed three hops away contributes nothing with a two hop budget."""
        report = warm_service.warm_introduction_report("t", max_hops=2)

        assert "o3" not in {p.source_id for p in report.paths}
        assert {p.source_id for p in report.paths} == {"d", "o1"}
        assert report.seeds_considered == 4
        assert report.seeds_with_paths == 3

        assert warm_service.find_warm_introductions("t", seed_ids=["o3"], max_hops=2) == []

    def test_max_results(self, warm_service):
        assert len(warm_service.find_warm_introductions("t", max_results=1)) == 1

    def test_unknown_target(self, warm_service):
        report = warm_service.warm_introduction_report("nobody")

        assert report.unknown_target is True
        assert report.paths == []

    def test_empty_seed_set(self, chain_index):
        """Test that a graph with no internal people reports an empty seed set."""
        report = IntroductionPathService(chain_index).warm_introduction_report("c")

        assert report.empty_seed_set is True
        assert report.paths == []
        assert report.has_paths is False

    def test_explicit_seed_ids(self, warm_service):
        """Test that explicit seeds override the internal default and unknown ids are ignored."""
        seeds = warm_service.select_seeds(["d", "ghost"])
        assert [s.id for s in seeds] == ["d"]

        paths = warm_service.find_warm_introductions("t", seed_ids=["d"])
        assert [p.entity_ids for p in paths] == [["d", "t"]]

    def test_seed_failure_does_not_abort(self, seeds_index):
        """Test that one failing seed is recorded while others still contribute."""
        service = IntroductionPathService(seeds_index, finder=FailingFinder(seeds_index, "d"))
        report = service.warm_introduction_report("t")

        assert "d" in report.seed_failures
        assert "traversal exploded" in report.seed_failures["d"]
        assert {p.source_id for p in report.paths} == {"o1", "o3"}

    def test_min_strength_filter(self, seeds_index):
        service = IntroductionPathService(seeds_index, warm_min_path_strength=0.71)
        paths = service.find_warm_introductions("t")

        assert [p.source_id for p in paths] == ["o1", "o3"]
        assert all(p.strength >= 0.71 for p in paths)

    def test_batch(self, warm_service):
        """Test warm introductions for several targets with progress callbacks."""
        progress = []
        reports = warm_service.find_warm_introductions_batch(
            ["t", "nobody"],
            progress_callback=lambda current, total: progress.append((current, total)),
        )

        assert reports["t"].has_paths
        assert reports["nobody"].unknown_target
        assert progress == [(1, 2), (2, 2)]


class TestWarmIntroductionKey:
    """Tests for cross-seed identity."""

    def test_multi_hop_key_ignores_seed(self, warm_service):
        paths = warm_service.find_warm_introductions("t")
        by_source = {p.source_id: p for p in paths}

        assert warm_introduction_key(by_source["o1"]) == ("x", "t")
        assert warm_introduction_key(by_source["d"]) == ("d", "t")


class TestExplicitQueries:
    """Tests for source/target path queries."""

    def test_find_introduction_paths(self, mediated_index):
        service = IntroductionPathService(mediated_index)
        paths = service.find_introduction_paths(
            "s", "t",
            PathQueryOptions(strategies=[PathStrategy.ORGANIZATION], max_hops=2),
        )

        assert [p.key for p in paths] == [("s", "org", "t")]

    def test_unknown_endpoints(self, mediated_index):
        service = IntroductionPathService(mediated_index)
        assert service.find_optimal_paths("s", "nobody") == []

    def test_repeated_query_hits_cache(self, mediated_index):
        """Test that the second identical query is served from the cache."""
        cache = ResultCache()
        service = IntroductionPathService(mediated_index, cache=cache)

        first = service.find_optimal_paths("s", "t")
        second = service.find_optimal_paths(
            "s", "t",
            strategies=list(reversed(list(PathStrategy))),
        )

        assert cache.hits == 1
        assert [p.key for p in first] == [p.key for p in second]

    def test_context_queries_bypass_cache(self, mediated_index):
        cache = ResultCache()
        service = IntroductionPathService(mediated_index, cache=cache)

        service.find_optimal_paths("s", "t", context_embedding=[1.0, 0.0])
        service.find_optimal_paths("s", "t", context_embedding=[1.0, 0.0])

        assert cache.hits == 0
        assert cache.stats()["count"] == 0

    def test_new_index_does_not_see_old_results(self, mediated_index, chain_index):
        """Test that a cache shared across sessions is scoped to the index version."""
        cache = ResultCache()
        IntroductionPathService(mediated_index, cache=cache).find_optimal_paths("s", "t")
        assert cache.stats()["count"] == 1

        IntroductionPathService(chain_index, cache=cache)
        assert cache.stats()["count"] == 0
        assert cache.scope == chain_index.version


class TestContextEmbedding:
    """Tests for the optional embedding provider."""

    def test_embed_context_without_provider(self, warm_service):
        assert asyncio.run(warm_service.embed_context("fintech")) is None

    def test_embed_context_with_provider(self, seeds_index):
        provider = StaticEmbeddingProvider([0.1, 0.2])
        service = IntroductionPathService(seeds_index, embedding_provider=provider)

        assert asyncio.run(service.embed_context("fintech")) == [0.1, 0.2]
        assert provider.calls == ["fintech"]


def test_semantic_context_changes_ranking():
    """Test that a matching context lifts the path through the relevant intermediary."""
    index = NetworkIndex.build(
        [
            {"id": "o", "type": "person", "is_internal": True},
            {"id": "m1", "embedding": [0.0, 1.0]},
            {"id": "m2", "embedding": [1.0, 0.0]},
            {"id": "t"},
        ],
        [
            {"source": "o", "target": "m1", "strength_score": 0.9},
            {"source": "m1", "target": "t", "strength_score": 0.9},
            {"source": "o", "target": "m2", "strength_score": 0.6},
            {"source": "m2", "target": "t", "strength_score": 0.6},
        ],
    )
    service = IntroductionPathService(index)

    plain = service.find_optimal_paths("o", "t")
    assert [p.key for p in plain] == [("o", "m1", "t"), ("o", "m2", "t")]

    contextual = service.find_optimal_paths("o", "t", context_embedding=[1.0, 0.0])
    assert [p.key for p in contextual] == [("o", "m2", "t"), ("o", "m1", "t")]
    assert contextual[0].score == pytest.approx(0.36 * 0.8 * 0.5 + 0.4)
