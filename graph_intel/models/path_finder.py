"""
Path Finder

Traversal strategies over a NetworkIndex:

    shortest      breadth-first search, fewest hops
    strongest     best-first search maximizing the product of edge strengths
    hub           source -> well-connected person -> target
    organization  source -> shared organization -> target

All strategies are bounded by max_hops and an optional time budget, never
perform I/O, and return the same paths in the same order for the same index
and parameters.
"""

import heapq
import logging
import math
import time
from collections import deque
from typing import Iterable, Optional

from graph_intel.models.entities import ALL_STRATEGIES, Path, PathStrategy
from graph_intel.models.index import NetworkIndex

logger = logging.getLogger(__name__)

def describe_hops(hop_count: int) -> str:
    """Human-readable separation for a path with the given hop count."""
    if hop_count <= 0:
        return "Same entity"
    if hop_count == 1:
        return "Direct connection"
    if hop_count == 2:
        return "One degree of separation"
    return f"{hop_count - 1} degrees of separation"

class _Deadline:
    """Wall-clock budget shared by one strategy run."""

    def __init__(self, seconds: Optional[float]):
        self._expires = time.monotonic() + seconds if seconds is not None else None

    @property
    def expired(self) -> bool:
        return self._expires is not None and time.monotonic() >= self._expires

class PathFinder:
    """Finds paths between entities of one NetworkIndex."""

    def __init__(
        self,
        index: NetworkIndex,
        max_hops: int = 4,
        max_paths: int = 10,
        hub_candidates: int = 5,
        time_budget_seconds: Optional[float] = None,
    ):
        """Initialize path finder.

        Args:
            index: Network index to traverse
            max_hops: Default hop budget per path
            max_paths: Default cap on paths returned by a strategy
            hub_candidates: Number of hub persons tried by the hub strategy
            time_budget_seconds: Wall-clock budget per strategy run (None = unbounded)
        """
        self.index = index
        self.max_hops = max_hops
        self.max_paths = max_paths
        self.hub_candidates = hub_candidates
        self.time_budget_seconds = time_budget_seconds

        self._hubs: Optional[list[str]] = None

    # -- path construction -----------------------------------------------

    def _make_path(
        self,
        entity_ids: list[str],
        strategy: PathStrategy,
        description: Optional[str] = None,
        via: Optional[str] = None,
    ) -> Path:
        """Build a Path record, resolving kinds and strength from the index."""
        kinds: list[str] = []
        strength = 1.0
        for a, b in zip(entity_ids, entity_ids[1:]):
            edge = self.index.edge_between(a, b)
            if edge is None:
                kinds.append("unknown")
                strength *= self.index.neutral_strength
            else:
                kinds.append(edge.kind)
                strength *= edge.strength

        hop_count = len(entity_ids) - 1
        return Path(
            entity_ids=list(entity_ids),
            strategy=strategy,
            strength=strength,
            hop_count=hop_count,
            description=description or describe_hops(hop_count),
            kinds=kinds,
            names=[self.index.name_of(i) for i in entity_ids],
            via=via,
        )

    def _resolve(self, max_hops: Optional[int], max_paths: Optional[int]) -> tuple[int, int]:
        return (
            self.max_hops if max_hops is None else max_hops,
            self.max_paths if max_paths is None else max_paths,
        )

    def _endpoints_known(self, source_id: str, target_id: str) -> bool:
        if not self.index.has_entity(source_id):
            logger.debug(f"Unknown source entity: {source_id}")
            return False
        if not self.index.has_entity(target_id):
            logger.debug(f"Unknown target entity: {target_id}")
            return False
        return True

    # -- strategy 1: breadth-first ----------------------------------------

    def _bfs(
        self,
        source_id: str,
        target_id: str,
        max_hops: int,
        deadline: _Deadline,
    ) -> Optional[list[str]]:
        """Fewest-hop id sequence, or None.

        Ties go to the first discovered path. Neighbor lists are sorted by
        id, so discovery order is stable for a given index.
        """
        if source_id == target_id:
            return [source_id]

        parents: dict[str, Optional[str]] = {source_id: None}
        queue: deque[tuple[str, int]] = deque([(source_id, 0)])

        while queue:
            if deadline.expired:
                logger.debug(f"Time budget exhausted searching {source_id} -> {target_id}")
                return None

            current, depth = queue.popleft()
            if depth >= max_hops:
                continue

            for neighbor in self.index.neighbors_of(current):
                next_id = neighbor.neighbor_id
                if next_id in parents:
                    continue
                parents[next_id] = current
                if next_id == target_id:
                    path = [next_id]
                    while parents[path[-1]] is not None:
                        path.append(parents[path[-1]])
                    return path[::-1]
                queue.append((next_id, depth + 1))

        return None

    def find_shortest_path(
        self,
        source_id: str,
        target_id: str,
        max_hops: Optional[int] = None,
    ) -> list[Path]:
        """Shortest path by hop count.

        Returns:
            A list with at most one Path; empty when the target is not
            reachable within max_hops.
        """
        max_hops, _ = self._resolve(max_hops, None)
        if not self._endpoints_known(source_id, target_id):
            return []

        ids = self._bfs(source_id, target_id, max_hops, _Deadline(self.time_budget_seconds))
        if ids is None:
            return []
        return [self._make_path(ids, PathStrategy.SHORTEST)]

    # -- strategy 2: best-first by strength ------------------------------

    def find_strongest_path(
        self,
        source_id: str,
        target_id: str,
        max_hops: Optional[int] = None,
    ) -> list[Path]:
        """Path maximizing the product of edge strengths.

        Dijkstra over edge cost -log(strength), with the hop count as part
        of the search state: a node reached cheaply but deep does not block
        a costlier route that still has hops left. Nodes at max_hops depth
        are not expanded. Equal costs are ordered by hop count and then by
        the id sequence. Zero-strength edges carry no strength and are never
        followed.
        """
        max_hops, _ = self._resolve(max_hops, None)
        if not self._endpoints_known(source_id, target_id):
            return []
        if source_id == target_id:
            return [self._make_path([source_id], PathStrategy.STRONGEST)]

        deadline = _Deadline(self.time_budget_seconds)
        best_cost: dict[tuple[str, int], float] = {(source_id, 0): 0.0}
        finalized: set[tuple[str, int]] = set()
        heap: list[tuple[float, int, tuple[str, ...]]] = [(0.0, 0, (source_id,))]

        while heap:
            if deadline.expired:
                logger.debug(f"Time budget exhausted searching {source_id} -> {target_id}")
                return []

            cost, hops, ids = heapq.heappop(heap)
            current = ids[-1]
            if current == target_id:
                return [self._make_path(list(ids), PathStrategy.STRONGEST)]
            if (current, hops) in finalized:
                continue
            finalized.add((current, hops))
            if hops >= max_hops:
                continue

            for neighbor in self.index.neighbors_of(current):
                next_id = neighbor.neighbor_id
                if next_id in ids or neighbor.strength <= 0.0:
                    continue
                state = (next_id, hops + 1)
                next_cost = cost - math.log(neighbor.strength)
                if next_cost > best_cost.get(state, math.inf):
                    continue
                best_cost[state] = next_cost
                heapq.heappush(heap, (next_cost, hops + 1, ids + (next_id,)))

        return []

    # -- strategies 3 and 4: mediated paths ------------------------------

    def _hub_ids(self) -> list[str]:
        """Person ids ordered by degree (descending), then id."""
        if self._hubs is None:
            people = self.index.entities_of_type("person")
            ranked = sorted(people, key=lambda e: (-self.index.degree(e.id), e.id))
            self._hubs = [e.id for e in ranked if self.index.degree(e.id) > 0]
        return self._hubs

    def _concatenate(
        self,
        source_id: str,
        via_id: str,
        target_id: str,
        max_hops: int,
        deadline: _Deadline,
    ) -> Optional[list[str]]:
        """source -> via -> target as one simple path within max_hops."""
        first = self._bfs(source_id, via_id, max_hops, deadline)
        if first is None:
            return None
        second = self._bfs(via_id, target_id, max_hops, deadline)
        if second is None:
            return None

        combined = first + second[1:]
        if len(combined) - 1 > max_hops:
            return None
        if len(set(combined)) != len(combined):
            return None
        return combined

    def find_hub_paths(
        self,
        source_id: str,
        target_id: str,
        max_hops: Optional[int] = None,
        max_paths: Optional[int] = None,
    ) -> list[Path]:
        """Paths routed through highly connected people.

        The combined strength is the product over both segments, the same
        as for any other path.
        """
        max_hops, max_paths = self._resolve(max_hops, max_paths)
        if not self._endpoints_known(source_id, target_id) or source_id == target_id:
            return []

        deadline = _Deadline(self.time_budget_seconds)
        hubs = [h for h in self._hub_ids() if h not in (source_id, target_id)]
        paths: list[Path] = []

        for hub_id in hubs[:self.hub_candidates]:
            if len(paths) >= max_paths or deadline.expired:
                break
            ids = self._concatenate(source_id, hub_id, target_id, max_hops, deadline)
            if ids is None:
                continue
            paths.append(self._make_path(
                ids,
                PathStrategy.HUB,
                description=f"Through {self.index.name_of(hub_id)}",
                via=hub_id,
            ))

        return paths

    def shared_organizations(self, source_id: str, target_id: str) -> list[str]:
        """Organizations adjacent to both entities, sorted by id."""
        def orgs(entity_id: str) -> set[str]:
            found = set()
            for neighbor_id in self.index.neighbor_ids(entity_id):
                entity = self.index.get_entity(neighbor_id)
                if entity is not None and entity.is_organization:
                    found.add(neighbor_id)
            return found

        common = orgs(source_id) & orgs(target_id)
        common.discard(source_id)
        common.discard(target_id)
        return sorted(common)

    def find_organization_paths(
        self,
        source_id: str,
        target_id: str,
        max_hops: Optional[int] = None,
        max_paths: Optional[int] = None,
    ) -> list[Path]:
        """Paths routed through an organization both entities connect to."""
        max_hops, max_paths = self._resolve(max_hops, max_paths)
        if not self._endpoints_known(source_id, target_id) or source_id == target_id:
            return []

        deadline = _Deadline(self.time_budget_seconds)
        paths: list[Path] = []

        for org_id in self.shared_organizations(source_id, target_id):
            if len(paths) >= max_paths or deadline.expired:
                break
            ids = self._concatenate(source_id, org_id, target_id, max_hops, deadline)
            if ids is None:
                continue
            paths.append(self._make_path(
                ids,
                PathStrategy.ORGANIZATION,
                description=f"Through {self.index.name_of(org_id)}",
                via=org_id,
            ))

        return paths

    # -- combined --------------------------------------------------------

    def find_paths(
        self,
        source_id: str,
        target_id: str,
        strategies: Optional[Iterable[PathStrategy]] = None,
        max_hops: Optional[int] = None,
        max_paths: Optional[int] = None,
    ) -> list[Path]:
        """Run several strategies and return their raw, unscored union.

        Strategies run in enum order regardless of the order requested.
        """
        requested = set(strategies) if strategies is not None else set(ALL_STRATEGIES)

        runners = {
            PathStrategy.SHORTEST: lambda: self.find_shortest_path(source_id, target_id, max_hops),
            PathStrategy.STRONGEST: lambda: self.find_strongest_path(source_id, target_id, max_hops),
            PathStrategy.HUB: lambda: self.find_hub_paths(source_id, target_id, max_hops, max_paths),
            PathStrategy.ORGANIZATION: lambda: self.find_organization_paths(
                source_id, target_id, max_hops, max_paths
            ),
        }

        paths: list[Path] = []
        for strategy in ALL_STRATEGIES:
            if strategy in requested:
                paths.extend(runners[strategy]())
        return paths
