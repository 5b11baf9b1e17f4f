"""
Influence and Connectivity Analyzer

Per-entity connectivity metrics, a bounded influence score, and a
snapshot-level insights report. Read-only over the NetworkIndex.
"""

import logging
from collections import Counter
from typing import Optional

import networkx as nx

from graph_intel.models.entities import (
    ConnectivitySummary,
    Entity,
    InfluencerEntry,
    NetworkInsights,
)
from graph_intel.models.index import NetworkIndex

logger = logging.getLogger(__name__)


class InfluenceAnalyzer:
    """Computes influence scores and connectivity summaries.

    Influence score (bounded to [0, max_score]):
        internal +10, portfolio +8, pipeline +6, professional network link +4
        connectivity  0.5 per connection, capped at 10
        industry      0.1 per entity sharing the industry, capped at 5
    """

    FLAG_WEIGHTS = {
        "is_internal": 10.0,
        "is_portfolio": 8.0,
        "is_pipeline": 6.0,
    }
    NETWORK_LINK_BONUS = 4.0
    CONNECTION_WEIGHT = 0.5
    CONNECTIVITY_CAP = 10.0
    INDUSTRY_WEIGHT = 0.1
    INDUSTRY_CAP = 5.0

    def __init__(
        self,
        index: NetworkIndex,
        well_connected_threshold: int = 5,
        influential_threshold: float = 10.0,
        max_score: float = 20.0,
        reach_hops: int = 2,
        top_k: int = 10,
    ):
        """Initialize analyzer.

        Args:
            index: Network index to analyze
            well_connected_threshold: Connections above which an entity is well connected
            influential_threshold: Influence score above which an entity is influential
            max_score: Upper bound for the influence score
            reach_hops: Hop radius for the reachability count
            top_k: Size of the top influencer ranking
        """
        self.index = index
        self.well_connected_threshold = well_connected_threshold
        self.influential_threshold = influential_threshold
        self.max_score = max_score
        self.reach_hops = reach_hops
        self.top_k = top_k

        self._industry_sizes = Counter(
            e.industry for e in index.entities() if e.industry
        )
        self._centrality: Optional[dict[str, float]] = None

    def _score_entity(self, entity: Entity) -> float:
        score = 0.0
        for flag, weight in self.FLAG_WEIGHTS.items():
            if getattr(entity, flag):
                score += weight
        if entity.has_professional_network_link:
            score += self.NETWORK_LINK_BONUS

        connections = self.index.degree(entity.id)
        score += min(connections * self.CONNECTION_WEIGHT, self.CONNECTIVITY_CAP)

        if entity.industry:
            score += min(
                self._industry_sizes[entity.industry] * self.INDUSTRY_WEIGHT,
                self.INDUSTRY_CAP,
            )

        return min(score, self.max_score)

    def influence_score(self, entity_id: str) -> float:
        """Bounded influence score; 0.0 for unknown entities."""
        entity = self.index.get_entity(entity_id)
        if entity is None:
            return 0.0
        return self._score_entity(entity)

    def is_well_connected(self, entity_id: str) -> bool:
        return self.index.degree(entity_id) > self.well_connected_threshold

    def is_influential(self, entity_id: str) -> bool:
        return self.influence_score(entity_id) > self.influential_threshold

    def reachable_count(self, entity_id: str, max_hops: Optional[int] = None) -> int:
        """Number of other entities within max_hops (undirected)."""
        max_hops = self.reach_hops if max_hops is None else max_hops
        if not self.index.has_entity(entity_id):
            return 0

        lengths = nx.single_source_shortest_path_length(
            self.index.graph.to_undirected(as_view=True),
            entity_id,
            cutoff=max_hops,
        )
        return len(lengths) - 1

    def _density(self, entity_id: str) -> float:
        # degree / (|V| - 1); networkx reports 1.0 for a lone node
        if self.index.entity_count < 2:
            return 0.0
        if self._centrality is None:
            self._centrality = nx.degree_centrality(self.index.graph)
        return self._centrality.get(entity_id, 0.0)

    def analyze_connectivity(
        self,
        entity_id: str,
        include_reach: bool = True,
    ) -> Optional[ConnectivitySummary]:
        """Connectivity summary for one entity, or None if unknown."""
        entity = self.index.get_entity(entity_id)
        if entity is None:
            return None

        outgoing = self.index.out_degree(entity_id)
        incoming = self.index.in_degree(entity_id)
        total = outgoing + incoming
        influence = self._score_entity(entity)

        return ConnectivitySummary(
            entity_id=entity_id,
            entity_name=entity.display_name,
            total_connections=total,
            outgoing_connections=outgoing,
            incoming_connections=incoming,
            unique_neighbors=len(self.index.neighbor_ids(entity_id)),
            reachable_entities=self.reachable_count(entity_id) if include_reach else 0,
            influence_score=influence,
            network_density=self._density(entity_id),
            is_well_connected=total > self.well_connected_threshold,
            is_influential=influence > self.influential_threshold,
        )

    def top_influencers(self, k: Optional[int] = None) -> list[InfluencerEntry]:
        """Highest influence scores, ties broken by entity id."""
        k = self.top_k if k is None else k
        ranked = sorted(
            (InfluencerEntry(
                id=e.id,
                name=e.display_name,
                type=e.type,
                influence_score=self._score_entity(e),
            ) for e in self.index.entities()),
            key=lambda entry: (-entry.influence_score, entry.id),
        )
        return ranked[:k]

    def compute_network_insights(self) -> NetworkInsights:
        """Aggregate report over the whole snapshot."""
        entities = self.index.entities()
        total_entities = len(entities)
        total_connections = self.index.edge_count

        well_connected = 0
        influential = 0
        for entity in entities:
            if self.index.degree(entity.id) > self.well_connected_threshold:
                well_connected += 1
            if self._score_entity(entity) > self.influential_threshold:
                influential += 1

        density = nx.density(self.index.graph)

        insights = NetworkInsights(
            snapshot_version=self.index.version,
            total_entities=total_entities,
            total_connections=total_connections,
            well_connected_entities=well_connected,
            influential_entities=influential,
            network_density=density,
            top_influencers=self.top_influencers(),
            industry_distribution=dict(self._industry_sizes),
            connection_types=self.index.kind_counts(),
            entity_types=dict(Counter(e.type for e in entities)),
            dropped_edges=self.index.diagnostics.dropped_edges,
        )

        logger.info(
            f"Network insights: {total_entities} entities, {total_connections} connections, "
            f"{well_connected} well connected, {influential} influential, "
            f"density {density:.4%}"
        )
        return insights
