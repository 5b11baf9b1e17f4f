"""
Tests for Path Result Cache
"""

import pytest

from graph_intel.models.entities import Path, PathStrategy
from graph_intel.utils.cache import ResultCache, make_cache_key


@pytest.fixture
def sample_paths() -> list[Path]:
    return [
        Path(
            entity_ids=["a", "b", "c"],
            strategy=PathStrategy.STRONGEST,
            strength=0.72,
            hop_count=2,
            kinds=["founder", "colleague"],
            names=["Ann", "Ben", "Cat"],
            score=0.4608,
        )
    ]


class TestCacheKey:
    """Tests for canonical cache keys."""

    def test_strategy_order_ignored(self):
        forward = make_cache_key("a", "c", [PathStrategy.SHORTEST, PathStrategy.HUB], 4, 10)
        backward = make_cache_key("a", "c", [PathStrategy.HUB, PathStrategy.SHORTEST], 4, 10)
        assert forward == backward

    def test_parameters_distinguish_keys(self):
        base = make_cache_key("a", "c", [PathStrategy.SHORTEST], 4, 10)

        assert base != make_cache_key("a", "c", [PathStrategy.SHORTEST], 3, 10)
        assert base != make_cache_key("c", "a", [PathStrategy.SHORTEST], 4, 10)
        assert base != make_cache_key("a", "c", [PathStrategy.SHORTEST], 4, 10, 0.2)

    def test_accepts_strategy_values(self):
        assert make_cache_key("a", "b", ["hub"], 2) == make_cache_key("a", "b", [PathStrategy.HUB], 2)


class TestMemoryCache:
    """Tests for the in-memory backend."""

    def test_unbound_cache_never_hits(self, sample_paths):
        """Test that nothing is stored before the cache is bound to an index."""
        cache = ResultCache()
        key = make_cache_key("a", "c", [PathStrategy.SHORTEST], 4)

        cache.set(key, sample_paths)
        assert cache.get(key) is None

    def test_set_and_get(self, sample_paths):
        cache = ResultCache(scope="v1")
        key = make_cache_key("a", "c", [PathStrategy.SHORTEST], 4)

        assert cache.get(key) is None
        cache.set(key, sample_paths)

        assert cache.get(key) == sample_paths
        assert cache.hits == 1
        assert cache.misses == 1

    def test_cached_paths_are_isolated_from_callers(self, sample_paths):
        """Test that editing stored or returned paths leaves later hits intact."""
        cache = ResultCache(scope="v1")
        key = make_cache_key("a", "c", [PathStrategy.SHORTEST], 4)
        cache.set(key, sample_paths)

        sample_paths[0].score = 0.0
        returned = cache.get(key)
        returned[0].score = 0.1
        returned[0].entity_ids.append("z")

        again = cache.get(key)
        assert again[0].score == 0.4608
        assert again[0].entity_ids == ["a", "b", "c"]

    def test_bind_new_version_clears(self, sample_paths):
        """Test that rebinding to another snapshot drops cached results."""
        cache = ResultCache(scope="v1")
        key = make_cache_key("a", "c", [PathStrategy.SHORTEST], 4)
        cache.set(key, sample_paths)

        cache.bind("v1")
        assert cache.get(key) == sample_paths

        cache.bind("v2")
        assert cache.get(key) is None
        assert cache.scope == "v2"

    def test_bind_accepts_index(self, chain_index):
        cache = ResultCache()
        cache.bind(chain_index)
        assert cache.scope == chain_index.version

    def test_disabled(self, sample_paths):
        cache = ResultCache(enabled=False, scope="v1")
        key = make_cache_key("a", "c", [PathStrategy.SHORTEST], 4)
        cache.set(key, sample_paths)

        assert cache.get(key) is None
        assert cache.stats() == {"enabled": False}

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            ResultCache(backend="redis")


class TestDiskCache:
    """Tests for the diskcache backend."""

    def test_round_trip(self, tmp_path, sample_paths):
        cache = ResultCache(backend="disk", cache_path=str(tmp_path / "paths"), scope="v1")
        key = make_cache_key("a", "c", [PathStrategy.STRONGEST], 4, 10)

        cache.set(key, sample_paths)
        cached = cache.get(key)

        assert [p.entity_ids for p in cached] == [["a", "b", "c"]]
        assert cached[0].strategy == PathStrategy.STRONGEST
        assert cached[0].score == pytest.approx(0.4608)
        assert cache.stats()["count"] == 1
        cache.close()

    def test_other_scope_unreachable(self, tmp_path, sample_paths):
        """Test that entries written for one snapshot are not returned for another."""
        cache = ResultCache(backend="disk", cache_path=str(tmp_path / "paths"), scope="v1")
        key = make_cache_key("a", "c", [PathStrategy.STRONGEST], 4, 10)
        cache.set(key, sample_paths)

        cache.bind("v2")
        assert cache.get(key) is None
        cache.close()

    def test_clear(self, tmp_path, sample_paths):
        cache = ResultCache(backend="disk", cache_path=str(tmp_path / "paths"), scope="v1")
        key = make_cache_key("a", "c", [PathStrategy.STRONGEST], 4, 10)
        cache.set(key, sample_paths)

        cache.clear()
        assert cache.get(key) is None
        cache.close()
