"""
Tests for Path Finder
"""

import pytest

from graph_intel.models.entities import PathStrategy
from graph_intel.models.index import NetworkIndex
from graph_intel.models import path_finder
from graph_intel.models.path_finder import PathFinder, describe_hops


@pytest.fixture
def detour_index() -> NetworkIndex:
    """x and y are linked weakly, and strongly through m."""
    return NetworkIndex.build(
        [{"id": "x"}, {"id": "y"}, {"id": "m"}],
        [
            {"source": "x", "target": "y", "strength_score": 0.2},
            {"source": "x", "target": "m", "strength_score": 0.9},
            {"source": "m", "target": "y", "strength_score": 0.9},
        ],
    )


class TestShortestPath:
    """Tests for breadth-first search."""

    def test_two_hop_chain(self, chain_index):
        """Test the shortest path along a simple chain."""
        paths = PathFinder(chain_index).find_shortest_path("a", "c", max_hops=3)

        assert len(paths) == 1
        path = paths[0]
        assert path.entity_ids == ["a", "b", "c"]
        assert path.hop_count == 2
        assert path.strategy == PathStrategy.SHORTEST
        assert path.kinds == ["founder", "colleague"]
        assert path.names == ["Ann", "Ben", "Cat"]
        assert path.strength == pytest.approx(0.9 * 0.8)

    def test_respects_hop_budget(self, chain_index):
        """Test that a target beyond max_hops is not found."""
        finder = PathFinder(chain_index)

        assert finder.find_shortest_path("a", "c", max_hops=1) == []
        assert len(finder.find_shortest_path("a", "b", max_hops=1)) == 1

    def test_traverses_edges_against_direction(self, chain_index):
        """Test that stored direction does not restrict traversal."""
        paths = PathFinder(chain_index).find_shortest_path("c", "a")
        assert paths[0].entity_ids == ["c", "b", "a"]

    def test_same_source_and_target(self, chain_index):
        """Test that a path to oneself is a single entity."""
        paths = PathFinder(chain_index).find_shortest_path("a", "a")

        assert paths[0].entity_ids == ["a"]
        assert paths[0].hop_count == 0
        assert paths[0].strength == 1.0

    def test_unknown_entities(self, chain_index):
        """Test that unknown ids yield no paths instead of raising."""
        finder = PathFinder(chain_index)

        assert finder.find_shortest_path("a", "nobody") == []
        assert finder.find_shortest_path("nobody", "a") == []
        assert finder.find_paths("nobody", "a") == []

    def test_unreachable_target(self):
        index = NetworkIndex.build([{"id": "a"}, {"id": "b"}], [])
        assert PathFinder(index).find_shortest_path("a", "b") == []

    def test_deterministic_tie_break(self):
        """Test that equal-length paths resolve the same way regardless of input order."""
        entities = [{"id": "s"}, {"id": "m1"}, {"id": "m2"}, {"id": "t"}]
        edges = [
            {"source": "s", "target": "m2"},
            {"source": "m2", "target": "t"},
            {"source": "s", "target": "m1"},
            {"source": "m1", "target": "t"},
        ]
        forward = PathFinder(NetworkIndex.build(entities, edges))
        backward = PathFinder(NetworkIndex.build(entities[::-1], edges[::-1]))

        assert forward.find_shortest_path("s", "t")[0].entity_ids == ["s", "m1", "t"]
        assert backward.find_shortest_path("s", "t")[0].entity_ids == ["s", "m1", "t"]


class TestStrongestPath:
    """Tests for best-first search by cumulative strength."""

    def test_two_hop_chain(self, chain_index):
        """Test that the only available path is also the strongest."""
        paths = PathFinder(chain_index).find_strongest_path("a", "c")

        assert paths[0].entity_ids == ["a", "b", "c"]
        assert paths[0].strategy == PathStrategy.STRONGEST

    def test_prefers_stronger_detour(self, detour_index):
        """Test that a longer but stronger path beats a weak direct edge."""
        finder = PathFinder(detour_index)

        strongest = finder.find_strongest_path("x", "y")[0]
        shortest = finder.find_shortest_path("x", "y")[0]

        assert strongest.entity_ids == ["x", "m", "y"]
        assert strongest.strength == pytest.approx(0.81)
        assert shortest.entity_ids == ["x", "y"]

    def test_detour_pruned_by_hop_budget(self, detour_index):
        paths = PathFinder(detour_index).find_strongest_path("x", "y", max_hops=1)
        assert paths[0].entity_ids == ["x", "y"]

    def test_zero_strength_edges_are_not_followed(self):
        """Test that an edge with zero strength does not make a strongest path."""
        index = NetworkIndex.build(
            [{"id": "a"}, {"id": "b"}],
            [{"source": "a", "target": "b", "strength_score": 0.0}],
        )
        finder = PathFinder(index)

        assert finder.find_strongest_path("a", "b") == []
        assert finder.find_shortest_path("a", "b")[0].strength == 0.0

    def test_deep_cheap_route_does_not_block_shallow_route(self):
        """Test that a node reached cheaply at the hop limit can still be expanded from a shallower route."""
        index = NetworkIndex.build(
            [{"id": "a"}, {"id": "b"}, {"id": "c"}, {"id": "t"}],
            [
                {"source": "a", "target": "b", "strength_score": 0.99},
                {"source": "b", "target": "c", "strength_score": 0.99},
                {"source": "a", "target": "c", "strength_score": 0.5},
                {"source": "c", "target": "t", "strength_score": 0.9},
            ],
        )
        finder = PathFinder(index)

        assert finder.find_shortest_path("a", "t", max_hops=2)[0].entity_ids == ["a", "c", "t"]
        paths = finder.find_strongest_path("a", "t", max_hops=2)
        assert [p.entity_ids for p in paths] == [["a", "c", "t"]]
        assert paths[0].strength == pytest.approx(0.45)

        assert finder.find_strongest_path("a", "t", max_hops=3)[0].entity_ids == ["a", "b", "c", "t"]


class TestMediatedPaths:
    """Tests for hub and organization strategies."""

    def test_hub_path(self, finder):
        """Test routing through the best connected person."""
        paths = finder.find_hub_paths("s", "t")

        assert len(paths) == 1
        assert paths[0].entity_ids == ["s", "hub", "t"]
        assert paths[0].via == "hub"
        assert paths[0].description == "Through Hana"
        assert paths[0].strength == pytest.approx(0.81)

    def test_hub_paths_never_repeat_entities(self, finder):
        """Test that concatenations revisiting a node are discarded."""
        for path in finder.find_hub_paths("s", "t"):
            assert len(set(path.entity_ids)) == len(path.entity_ids)

    def test_organization_path(self, finder):
        """Test routing through a shared organization."""
        assert finder.shared_organizations("s", "t") == ["org"]

        paths = finder.find_organization_paths("s", "t")
        assert len(paths) == 1
        assert paths[0].entity_ids == ["s", "org", "t"]
        assert paths[0].strategy == PathStrategy.ORGANIZATION
        assert paths[0].description == "Through Acme"
        assert paths[0].strength == pytest.approx(0.25)

    def test_mediated_paths_respect_hop_budget(self, finder):
        assert finder.find_hub_paths("s", "t", max_hops=1) == []
        assert finder.find_organization_paths("s", "t", max_hops=1) == []

    def test_find_paths_runs_requested_strategies(self, finder):
        """Test that the union contains each requested strategy in enum order."""
        paths = finder.find_paths("s", "t")
        assert [p.strategy for p in paths] == [
            PathStrategy.SHORTEST,
            PathStrategy.STRONGEST,
            PathStrategy.HUB,
            PathStrategy.ORGANIZATION,
        ]

        only_org = finder.find_paths("s", "t", strategies=[PathStrategy.ORGANIZATION])
        assert [p.key for p in only_org] == [("s", "org", "t")]

    def test_hop_bound_holds_for_every_strategy(self, finder):
        for max_hops in (1, 2, 3):
            for path in finder.find_paths("s", "t", max_hops=max_hops):
                assert path.hop_count <= max_hops


class TestDescribeHops:
    """Tests for separation descriptions."""

    def test_descriptions(self):
        assert describe_hops(0) == "Same entity"
        assert describe_hops(1) == "Direct connection"
        assert describe_hops(2) == "One degree of separation"
        assert describe_hops(4) == "3 degrees of separation"


class _Clock:
    """Stand-in for the time module with a settable monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def monotonic(self) -> float:
        return self.now


@pytest.fixture
def two_hub_index() -> NetworkIndex:
    """s reaches t through h1 or h2; h1 has more connections than h2."""
    return NetworkIndex.build(
        [{"id": i, "type": "person"} for i in ("s", "t", "h1", "h2", "l1", "l2", "l3")],
        [
            {"source": "s", "target": "h1", "strength_score": 0.9},
            {"source": "h1", "target": "t", "strength_score": 0.9},
            {"source": "s", "target": "h2", "strength_score": 0.8},
            {"source": "h2", "target": "t", "strength_score": 0.8},
            {"source": "h1", "target": "l1", "strength_score": 0.5},
            {"source": "h1", "target": "l2", "strength_score": 0.5},
            {"source": "h2", "target": "l3", "strength_score": 0.5},
        ],
    )


class TestTimeBudget:
    """Tests for the wall-clock budget on each strategy run."""

    def test_zero_budget_returns_nothing(self, finder):
        """Test that an already expired budget yields empty results instead of raising."""
        expired = PathFinder(finder.index, time_budget_seconds=0)

        assert expired.find_shortest_path("s", "t") == []
        assert expired.find_strongest_path("s", "t") == []
        assert expired.find_hub_paths("s", "t") == []
        assert expired.find_organization_paths("s", "t") == []
        assert expired.find_paths("s", "t") == []

    def test_unbounded_by_default(self, finder):
        assert finder.time_budget_seconds is None
        assert len(finder.find_paths("s", "t")) == 4

    def test_keeps_paths_found_before_expiry(self, two_hub_index, monkeypatch):
        """Test that a budget running out mid-run keeps the paths already built."""
        clock = _Clock()
        monkeypatch.setattr(path_finder, "time", clock)

        unbounded = PathFinder(two_hub_index, time_budget_seconds=10.0)
        assert [p.via for p in unbounded.find_hub_paths("s", "t")] == ["h1", "h2"]

        original = PathFinder._make_path

        def make_then_expire(self, *args, **kwargs):
            path = original(self, *args, **kwargs)
            clock.now += 100.0
            return path

        monkeypatch.setattr(PathFinder, "_make_path", make_then_expire)
        paths = PathFinder(two_hub_index, time_budget_seconds=10.0).find_hub_paths("s", "t")

        assert [p.entity_ids for p in paths] == [["s", "h1", "t"]]


class TestDeterminism:
    """Tests that repeated runs return identical ordered results."""

    @staticmethod
    def _signature(paths):
        return [(p.strategy, p.entity_ids, p.kinds, p.strength, p.via) for p in paths]

    def test_repeated_runs_match(self, finder, two_hub_index):
        for index_finder in (finder, PathFinder(two_hub_index)):
            first = index_finder.find_paths("s", "t", strategies=list(PathStrategy))
            second = index_finder.find_paths("s", "t", strategies=list(PathStrategy))
            assert first
            assert self._signature(first) == self._signature(second)

    def test_input_order_does_not_change_results(self, two_hub_index):
        """Test that rebuilding from reversed records yields the same paths."""
        entities = two_hub_index.entities()
        edges = two_hub_index.edges
        reversed_finder = PathFinder(NetworkIndex.build(entities[::-1], edges[::-1]))

        assert self._signature(PathFinder(two_hub_index).find_paths("s", "t")) == (
            self._signature(reversed_finder.find_paths("s", "t"))
        )
