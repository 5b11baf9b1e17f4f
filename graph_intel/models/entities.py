"""
Core Data Models

Pydantic models for graph entities, relationship edges and the paths and
reports derived from them.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EntityType(str, Enum):
    """Well-known entity types. Other type strings are accepted as-is."""
    PERSON = "person"
    ORGANIZATION = "organization"
    FUND = "fund"
    DEAL = "deal"


class PathStrategy(str, Enum):
    """Traversal strategies offered by the path finder."""
    SHORTEST = "shortest"
    STRONGEST = "strongest"
    HUB = "hub"
    ORGANIZATION = "organization"


ALL_STRATEGIES: tuple[PathStrategy, ...] = tuple(PathStrategy)


class EntityEnrichment(BaseModel):
    """Optional enrichment attached to an entity by the ingestion pipeline."""
    model_config = ConfigDict(frozen=True)

    linkedin_url: Optional[str] = None
    headline: Optional[str] = None
    summary: Optional[str] = None


class Entity(BaseModel):
    """A node in the relationship graph."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    type: str = EntityType.PERSON.value
    is_internal: bool = False
    is_portfolio: bool = False
    is_pipeline: bool = False
    importance: float = Field(default=0.0, ge=0.0, le=1.0)
    industry: Optional[str] = None
    domain: Optional[str] = None
    linkedin_first_degree: bool = False
    embedding: Optional[list[float]] = None
    enrichment: EntityEnrichment = Field(default_factory=EntityEnrichment)
    metadata: dict = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def is_person(self) -> bool:
        return self.type == EntityType.PERSON.value

    @property
    def is_organization(self) -> bool:
        return self.type == EntityType.ORGANIZATION.value

    @property
    def has_professional_network_link(self) -> bool:
        """Whether the entity has a known professional network connection."""
        return self.linkedin_first_degree or self.enrichment.linkedin_url is not None


class Edge(BaseModel):
    """A directed, typed relationship between two entities.

    Range checks on the scores happen when the network index is built so
    that one bad edge is dropped instead of failing the whole snapshot.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    kind: str = "contact"
    strength_score: Optional[float] = None
    interaction_count: int = Field(default=0, ge=0)
    confidence_score: Optional[float] = None


class GraphSnapshot(BaseModel):
    """Point-in-time copy of entities and edges for one analysis session."""
    snapshot_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    loaded_at: datetime = Field(default_factory=datetime.now)
    source: Optional[str] = None
    entities: list[Entity] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    skipped_records: int = 0

    @property
    def entity_count(self) -> int:
        return len(self.entities)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


class Path(BaseModel):
    """An ordered sequence of entities connecting a source to a target."""
    entity_ids: list[str] = Field(min_length=1)
    strategy: PathStrategy
    strength: float = 1.0
    hop_count: int = 0
    description: str = ""
    kinds: list[str] = Field(default_factory=list)
    names: list[str] = Field(default_factory=list)
    via: Optional[str] = None
    score: float = 0.0

    @property
    def source_id(self) -> str:
        return self.entity_ids[0]

    @property
    def target_id(self) -> str:
        return self.entity_ids[-1]

    @property
    def key(self) -> tuple[str, ...]:
        """Structural identity used for deduplication."""
        return tuple(self.entity_ids)

    @property
    def explanation(self) -> str:
        """Human-readable chain, e.g. ``Ann → Acme (Founder) → Bob``."""
        labels = self.names or self.entity_ids
        if len(labels) < 2:
            return labels[0] if labels else ""
        parts = [labels[0]]
        for i, label in enumerate(labels[1:]):
            kind = self.kinds[i] if i < len(self.kinds) else ""
            relationship = kind.replace("_", " ").title()
            parts.append(f"{label} ({relationship})" if relationship else label)
        return " → ".join(parts)


class PathQueryOptions(BaseModel):
    """Bounds and strategy mix for a single source/target query."""
    strategies: list[PathStrategy] = Field(default_factory=lambda: list(ALL_STRATEGIES))
    max_hops: int = Field(default=4, ge=1)
    max_paths: int = Field(default=10, ge=1)
    min_path_strength: float = Field(default=0.0, ge=0.0, le=1.0)
    context_embedding: Optional[list[float]] = None


class ConnectivitySummary(BaseModel):
    """Connectivity and influence metrics for one entity."""
    entity_id: str
    entity_name: str
    total_connections: int
    outgoing_connections: int
    incoming_connections: int
    unique_neighbors: int
    reachable_entities: int = 0
    influence_score: float
    network_density: float
    is_well_connected: bool
    is_influential: bool


class InfluencerEntry(BaseModel):
    """One row of the top-influencer ranking."""
    id: str
    name: str
    type: str
    influence_score: float


class NetworkInsights(BaseModel):
    """Snapshot-level report over the whole graph."""
    generated_at: datetime = Field(default_factory=datetime.now)
    snapshot_version: Optional[str] = None
    total_entities: int = 0
    total_connections: int = 0
    well_connected_entities: int = 0
    influential_entities: int = 0
    network_density: float = 0.0
    top_influencers: list[InfluencerEntry] = Field(default_factory=list)
    industry_distribution: dict[str, int] = Field(default_factory=dict)
    connection_types: dict[str, int] = Field(default_factory=dict)
    entity_types: dict[str, int] = Field(default_factory=dict)
    dropped_edges: int = 0


class WarmIntroductionReport(BaseModel):
    """Warm introduction candidates for one target plus search diagnostics."""
    target_id: str
    paths: list[Path] = Field(default_factory=list)
    seeds_considered: int = 0
    seeds_with_paths: int = 0
    seed_failures: dict[str, str] = Field(default_factory=dict)
    empty_seed_set: bool = False
    unknown_target: bool = False
    error: Optional[str] = None

    @property
    def has_paths(self) -> bool:
        return len(self.paths) > 0
