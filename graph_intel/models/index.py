"""
Network Index

In-memory graph built once per snapshot on a networkx MultiDiGraph. Every
traversal and metric reads from it; nothing writes to it after construction.
"""

import logging
import uuid
from collections import Counter
from typing import Any, NamedTuple, Optional, Union

import networkx as nx
from pydantic import BaseModel, ValidationError

from graph_intel.models.entities import Edge, Entity, EntityType

logger = logging.getLogger(__name__)

# Stored strength used when an edge carries none.
NEUTRAL_STRENGTH = 0.5


class Neighbor(NamedTuple):
    """An edge seen from one of its endpoints."""
    neighbor_id: str
    kind: str
    strength: float
    weight: float
    direction: str  # "out" when the stored edge starts here, "in" otherwise
    edge: Edge


class IndexDiagnostics(BaseModel):
    """Counters for records skipped while building the index."""
    total_entities: int = 0
    total_edges_input: int = 0
    indexed_edges: int = 0
    duplicate_entities: int = 0
    duplicate_edges: int = 0
    invalid_records: int = 0
    dropped_unknown_entity: int = 0
    dropped_out_of_range: int = 0
    dropped_self_loop: int = 0

    @property
    def dropped_edges(self) -> int:
        return (
            self.dropped_unknown_entity
            + self.dropped_out_of_range
            + self.dropped_self_loop
            + self.duplicate_edges
        )


def _in_unit_range(value: Optional[float]) -> bool:
    return value is None or 0.0 <= value <= 1.0


def _coerce(record: Union[Entity, Edge, dict], model: type) -> Any:
    if isinstance(record, model):
        return record
    return model.model_validate(record)


def _sorted_neighbors(graph: nx.MultiDiGraph, node: str) -> list[Neighbor]:
    neighbors = [
        Neighbor(target, kind, data["strength"], data["weight"], "out", data["edge"])
        for _, target, kind, data in graph.out_edges(node, keys=True, data=True)
    ]
    neighbors.extend(
        Neighbor(source, kind, data["strength"], data["weight"], "in", data["edge"])
        for source, _, kind, data in graph.in_edges(node, keys=True, data=True)
    )
    neighbors.sort(key=lambda n: (n.neighbor_id, n.kind, n.direction, -n.strength))
    return neighbors


class NetworkIndex:
    """Graph and lookup tables over one snapshot.

    Use ``NetworkIndex.build`` to construct. Nodes carry the Entity under
    ``entity``; edges are keyed by kind and carry ``strength``, ``weight``
    and the source ``edge`` record. Neighbor lists are sorted by neighbor id
    and kind so traversal order does not depend on the order records arrived
    from the store.
    """

    def __init__(
        self,
        graph: nx.MultiDiGraph,
        diagnostics: IndexDiagnostics,
        version: str,
        neutral_strength: float = NEUTRAL_STRENGTH,
    ):
        self.graph = graph
        self.diagnostics = diagnostics
        self.version = version
        self.neutral_strength = neutral_strength

        self._neighbors: dict[str, list[Neighbor]] = {
            node: _sorted_neighbors(graph, node) for node in graph.nodes
        }

    @classmethod
    def build(
        cls,
        entities: Union[list, tuple],
        edges: Union[list, tuple],
        version: Optional[str] = None,
        neutral_strength: float = NEUTRAL_STRENGTH,
    ) -> "NetworkIndex":
        """Build an index from entity and edge records.

        Args:
            entities: Entity models or dicts
            edges: Edge models or dicts
            version: Snapshot identifier (random if not given)
            neutral_strength: Strength assumed for edges without one

        Returns:
            A new NetworkIndex

        Raises:
            TypeError: If entities or edges is not a list or tuple
        """
        if not isinstance(entities, (list, tuple)):
            raise TypeError(f"entities must be a list, got {type(entities).__name__}")
        if not isinstance(edges, (list, tuple)):
            raise TypeError(f"edges must be a list, got {type(edges).__name__}")

        diagnostics = IndexDiagnostics(total_edges_input=len(edges))
        graph = nx.MultiDiGraph()

        for record in entities:
            try:
                entity = _coerce(record, Entity)
            except ValidationError as e:
                diagnostics.invalid_records += 1
                logger.warning(f"Skipping invalid entity record: {e.error_count()} error(s)")
                continue
            if entity.id in graph:
                diagnostics.duplicate_entities += 1
                continue
            graph.add_node(entity.id, entity=entity)
        diagnostics.total_entities = graph.number_of_nodes()

        for record in edges:
            try:
                edge = _coerce(record, Edge)
            except ValidationError as e:
                diagnostics.invalid_records += 1
                logger.warning(f"Skipping invalid edge record: {e.error_count()} error(s)")
                continue

            if edge.source not in graph or edge.target not in graph:
                diagnostics.dropped_unknown_entity += 1
                continue
            if edge.source == edge.target:
                diagnostics.dropped_self_loop += 1
                continue
            if not (_in_unit_range(edge.strength_score) and _in_unit_range(edge.confidence_score)):
                diagnostics.dropped_out_of_range += 1
                continue

            strength = (
                edge.strength_score
                if edge.strength_score is not None
                else neutral_strength
            )

            # One edge per (source, target, kind); the stronger record wins
            existing = graph.get_edge_data(edge.source, edge.target, key=edge.kind)
            if existing is not None:
                diagnostics.duplicate_edges += 1
                if existing["strength"] >= strength:
                    continue

            graph.add_edge(
                edge.source,
                edge.target,
                key=edge.kind,
                strength=strength,
                weight=float(edge.interaction_count or 1),
                edge=edge,
            )

        diagnostics.indexed_edges = graph.number_of_edges()

        if diagnostics.dropped_edges:
            logger.info(
                f"Dropped {diagnostics.dropped_edges} edges while indexing "
                f"({diagnostics.dropped_unknown_entity} unknown entity, "
                f"{diagnostics.dropped_out_of_range} out of range, "
                f"{diagnostics.dropped_self_loop} self loops, "
                f"{diagnostics.duplicate_edges} duplicates)"
            )
        logger.debug(
            f"Indexed {graph.number_of_nodes()} entities and {graph.number_of_edges()} edges"
        )

        return cls(
            graph=graph,
            diagnostics=diagnostics,
            version=version or uuid.uuid4().hex,
            neutral_strength=neutral_strength,
        )

    @classmethod
    def from_snapshot(cls, snapshot, neutral_strength: float = NEUTRAL_STRENGTH) -> "NetworkIndex":
        """Build an index versioned by the snapshot it came from."""
        index = cls.build(
            snapshot.entities,
            snapshot.edges,
            version=snapshot.snapshot_id,
            neutral_strength=neutral_strength,
        )
        index.diagnostics.invalid_records += snapshot.skipped_records
        return index

    # -- lookups ---------------------------------------------------------

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self.graph

    @property
    def entity_count(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    @property
    def edges(self) -> list[Edge]:
        return [data["edge"] for _, _, data in self.graph.edges(data=True)]

    def entities(self) -> list[Entity]:
        """All entities ordered by id."""
        return [self.graph.nodes[k]["entity"] for k in sorted(self.graph.nodes)]

    def has_entity(self, entity_id: str) -> bool:
        return entity_id in self.graph

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        if entity_id not in self.graph:
            return None
        return self.graph.nodes[entity_id]["entity"]

    def name_of(self, entity_id: str) -> str:
        entity = self.get_entity(entity_id)
        return entity.display_name if entity else entity_id

    def neighbors_of(self, entity_id: str) -> list[Neighbor]:
        """Adjacent edges from both directions; empty for unknown ids."""
        return list(self._neighbors.get(entity_id, ()))

    def neighbor_ids(self, entity_id: str) -> list[str]:
        """Distinct neighbor ids in sorted order."""
        seen: dict[str, None] = {}
        for n in self._neighbors.get(entity_id, ()):
            seen.setdefault(n.neighbor_id, None)
        return list(seen)

    def edge_strength(self, source: str, target: str) -> Optional[float]:
        """Strongest stored strength between two entities, either direction."""
        strengths = []
        for u, v in ((source, target), (target, source)):
            data = self.graph.get_edge_data(u, v)
            if data:
                strengths.extend(attrs["strength"] for attrs in data.values())
        return max(strengths) if strengths else None

    def edge_between(self, source: str, target: str) -> Optional[Neighbor]:
        """Strongest edge linking two entities, ties broken by kind."""
        best: Optional[Neighbor] = None
        for n in self._neighbors.get(source, ()):
            if n.neighbor_id != target:
                continue
            if best is None or n.strength > best.strength:
                best = n
        return best

    def out_degree(self, entity_id: str) -> int:
        return self.graph.out_degree(entity_id) if entity_id in self.graph else 0

    def in_degree(self, entity_id: str) -> int:
        return self.graph.in_degree(entity_id) if entity_id in self.graph else 0

    def degree(self, entity_id: str) -> int:
        return self.graph.degree(entity_id) if entity_id in self.graph else 0

    def entities_of_type(self, entity_type: Union[str, EntityType]) -> list[Entity]:
        value = entity_type.value if isinstance(entity_type, EntityType) else entity_type
        return [e for e in self.entities() if e.type == value]

    def internal_people(self) -> list[Entity]:
        """Internal person entities, the default warm introduction seeds."""
        return [e for e in self.entities() if e.is_internal and e.is_person]

    def kind_counts(self) -> dict[str, int]:
        return dict(Counter(kind for _, _, kind in self.graph.edges(keys=True)))
