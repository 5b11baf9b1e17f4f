"""
Pytest Configuration and Shared Fixtures
"""

import pytest

from graph_intel.models.entities import Edge, Entity, GraphSnapshot
from graph_intel.models.index import NetworkIndex
from graph_intel.models.path_finder import PathFinder
from graph_intel.models.scoring import PathScorer
from graph_intel.models.introductions import IntroductionPathService


def person(entity_id: str, name: str = "", **kwargs) -> Entity:
    return Entity(id=entity_id, name=name or entity_id.title(), type="person", **kwargs)


def organization(entity_id: str, name: str = "", **kwargs) -> Entity:
    return Entity(id=entity_id, name=name or entity_id.title(), type="organization", **kwargs)


def edge(source: str, target: str, strength=None, kind: str = "colleague", **kwargs) -> Edge:
    return Edge(source=source, target=target, kind=kind, strength_score=strength, **kwargs)


@pytest.fixture
def chain_entities() -> list[Entity]:
    """Three people in a line."""
    return [person("a", "Ann"), person("b", "Ben"), person("c", "Cat")]


@pytest.fixture
def chain_edges() -> list[Edge]:
    """Ann founded something with Ben, Ben works with Cat."""
    return [
        edge("a", "b", 0.9, kind="founder"),
        edge("b", "c", 0.8, kind="colleague"),
    ]


@pytest.fixture
def chain_index(chain_entities, chain_edges) -> NetworkIndex:
    return NetworkIndex.build(chain_entities, chain_edges)


@pytest.fixture
def mediated_index() -> NetworkIndex:
    """Source and target joined through a hub person and a shared organization.

    The hub also knows two other people, which makes it the best connected
    person in the graph.
    """
    entities = [
        person("s", "Sam"),
        person("t", "Tia"),
        person("hub", "Hana"),
        person("p1", "Pia"),
        person("p2", "Paz"),
        organization("org", "Acme"),
    ]
    edges = [
        edge("s", "hub", 0.9),
        edge("hub", "t", 0.9),
        edge("hub", "p1", 0.6),
        edge("hub", "p2", 0.6),
        edge("s", "org", 0.5, kind="employee"),
        edge("t", "org", 0.5, kind="employee"),
    ]
    return NetworkIndex.build(entities, edges)


@pytest.fixture
def seeds_index() -> NetworkIndex:
    """Internal people reaching an external target.

    o1 and o2 both reach t through x. o3 is three hops away through p and q.
    d knows t directly.
    """
    entities = [
        person("o1", "Olga", is_internal=True),
        person("o2", "Omar", is_internal=True),
        person("o3", "Otto", is_internal=True),
        person("d", "Dana", is_internal=True),
        person("x", "Xia"),
        person("p", "Pat"),
        person("q", "Quinn"),
        person("t", "Tess"),
    ]
    edges = [
        edge("o1", "x", 0.9),
        edge("o2", "x", 0.6),
        edge("x", "t", 0.8),
        edge("o3", "p", 0.9),
        edge("p", "q", 0.9),
        edge("q", "t", 0.9),
        edge("d", "t", 0.7, kind="manager"),
    ]
    return NetworkIndex.build(entities, edges)


@pytest.fixture
def finder(mediated_index) -> PathFinder:
    return PathFinder(mediated_index)


@pytest.fixture
def scorer(chain_index) -> PathScorer:
    return PathScorer(chain_index)


@pytest.fixture
def warm_service(seeds_index) -> IntroductionPathService:
    return IntroductionPathService(seeds_index)


@pytest.fixture
def sample_snapshot(chain_entities, chain_edges) -> GraphSnapshot:
    return GraphSnapshot(
        source="test",
        entities=chain_entities + [person("ext", "Eve", is_internal=True)],
        edges=chain_edges + [edge("ext", "a", 0.7)],
    )
