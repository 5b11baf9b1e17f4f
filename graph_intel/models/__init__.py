"""
Data Models and Graph Analytics

Pydantic records for the relationship graph and the index, traversal,
scoring and influence components built on top of them.
"""

from graph_intel.models.entities import (
    ALL_STRATEGIES,
    ConnectivitySummary,
    Edge,
    Entity,
    EntityEnrichment,
    EntityType,
    GraphSnapshot,
    InfluencerEntry,
    NetworkInsights,
    Path,
    PathQueryOptions,
    PathStrategy,
    WarmIntroductionReport,
)
from graph_intel.models.index import IndexDiagnostics, Neighbor, NetworkIndex
from graph_intel.models.path_finder import PathFinder
from graph_intel.models.scoring import PathScorer
from graph_intel.models.influence import InfluenceAnalyzer
from graph_intel.models.introductions import IntroductionPathService

__all__ = [
    "ALL_STRATEGIES",
    "ConnectivitySummary",
    "Edge",
    "Entity",
    "EntityEnrichment",
    "EntityType",
    "GraphSnapshot",
    "InfluencerEntry",
    "NetworkInsights",
    "Path",
    "PathQueryOptions",
    "PathStrategy",
    "WarmIntroductionReport",
    "IndexDiagnostics",
    "Neighbor",
    "NetworkIndex",
    "PathFinder",
    "PathScorer",
    "InfluenceAnalyzer",
    "IntroductionPathService",
]
