"""
Graph Snapshot Loader

Fetches entities and edges from a backing store into a GraphSnapshot. This is
the only I/O in an analysis session: entities and edges are fetched
concurrently, and paginated stores are read in waves of parallel page
requests until a short page marks the end.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Optional

import httpx
import pandas as pd
from pydantic import BaseModel, ValidationError

from graph_intel.errors import SnapshotUnavailable
from graph_intel.models.entities import Edge, Entity, GraphSnapshot

logger = logging.getLogger(__name__)

# Columns stored as JSON text in CSV exports
_JSON_COLUMNS = ("embedding", "enrichment", "metadata")
_ID_COLUMNS = ("id", "name", "type", "source", "target", "kind")


class SnapshotFilter(BaseModel):
    """Restricts a snapshot to a subset of entities and edges."""
    entity_types: Optional[list[str]] = None
    is_internal: Optional[bool] = None
    is_portfolio: Optional[bool] = None
    is_pipeline: Optional[bool] = None
    edge_kinds: Optional[list[str]] = None
    min_strength: Optional[float] = None

    def entity_matches(self, record: dict) -> bool:
        if self.entity_types is not None and record.get("type") not in self.entity_types:
            return False
        for flag in ("is_internal", "is_portfolio", "is_pipeline"):
            wanted = getattr(self, flag)
            if wanted is not None and bool(record.get(flag, False)) != wanted:
                return False
        return True

    def edge_matches(self, record: dict) -> bool:
        if self.edge_kinds is not None and record.get("kind") not in self.edge_kinds:
            return False
        if self.min_strength is not None:
            strength = record.get("strength_score")
            if strength is None or strength < self.min_strength:
                return False
        return True

    def entity_params(self) -> dict[str, str]:
        """PostgREST query parameters for the entity filter."""
        params = {}
        if self.entity_types is not None:
            params["type"] = f"in.({','.join(self.entity_types)})"
        for flag in ("is_internal", "is_portfolio", "is_pipeline"):
            wanted = getattr(self, flag)
            if wanted is not None:
                params[flag] = f"eq.{str(wanted).lower()}"
        return params

    def edge_params(self) -> dict[str, str]:
        """PostgREST query parameters for the edge filter."""
        params = {}
        if self.edge_kinds is not None:
            params["kind"] = f"in.({','.join(self.edge_kinds)})"
        if self.min_strength is not None:
            params["strength_score"] = f"gte.{self.min_strength}"
        return params


class GraphStore(ABC):
    """Read-only source of entity and edge records."""

    @abstractmethod
    async def list_entities(
        self,
        filter: Optional[SnapshotFilter] = None,
        offset: int = 0,
        limit: int = 1000,
    ) -> list[dict]:
        """Return one page of entity records."""
        pass

    @abstractmethod
    async def list_edges(
        self,
        filter: Optional[SnapshotFilter] = None,
        offset: int = 0,
        limit: int = 1000,
    ) -> list[dict]:
        """Return one page of edge records."""
        pass

    def describe(self) -> str:
        return type(self).__name__


class FileGraphStore(GraphStore):
    """Entities and edges exported as JSON or CSV files in one directory.

    Looks for ``entities.json`` / ``entities.csv`` and ``edges.json`` /
    ``edges.csv``. JSON files hold a list of records.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._records: dict[str, list[dict]] = {}

    def describe(self) -> str:
        return f"file:{self.directory}"

    def _find_file(self, name: str) -> Path:
        for suffix in (".json", ".csv"):
            candidate = self.directory / f"{name}{suffix}"
            if candidate.exists():
                return candidate
        raise FileNotFoundError(f"No {name}.json or {name}.csv in {self.directory}")

    @staticmethod
    def _read_csv(filepath: Path) -> list[dict]:
        df = pd.read_csv(filepath, dtype={c: str for c in _ID_COLUMNS})
        df.columns = [col.strip().lower().replace(" ", "_") for col in df.columns]
        df = df.astype(object).where(pd.notna(df), None)

        records = []
        # Empty cells fall back to model defaults
        for row in df.to_dict(orient="records"):
            record = {k: v for k, v in row.items() if v is not None}
            for column in _JSON_COLUMNS:
                value = record.get(column)
                if isinstance(value, str) and value.strip():
                    record[column] = json.loads(value)
            records.append(record)
        return records

    def _load(self, name: str) -> list[dict]:
        if name not in self._records:
            filepath = self._find_file(name)
            if filepath.suffix == ".csv":
                records = self._read_csv(filepath)
            else:
                with open(filepath) as f:
                    records = json.load(f)
                if not isinstance(records, list):
                    raise ValueError(f"{filepath} must contain a JSON list of records")
            self._records[name] = records
            logger.debug(f"Read {len(records)} records from {filepath}")
        return self._records[name]

    async def list_entities(self, filter=None, offset=0, limit=1000) -> list[dict]:
        records = await asyncio.to_thread(self._load, "entities")
        if filter is not None:
            records = [r for r in records if filter.entity_matches(r)]
        return records[offset:offset + limit]

    async def list_edges(self, filter=None, offset=0, limit=1000) -> list[dict]:
        records = await asyncio.to_thread(self._load, "edges")
        if filter is not None:
            records = [r for r in records if filter.edge_matches(r)]
        return records[offset:offset + limit]


class RestGraphStore(GraphStore):
    """PostgREST-style HTTP API (e.g. Supabase) exposing entity and edge tables."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        schema_name: str = "graph",
        entities_table: str = "entities",
        edges_table: str = "edges",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize REST store.

        Args:
            base_url: Service root URL (the ``/rest/v1`` prefix is appended)
            api_key: Service key sent as ``apikey`` and bearer token
            schema_name: Database schema selected via Accept-Profile
            entities_table: Entity table name
            edges_table: Edge table name
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not base_url:
            raise ValueError("RestGraphStore requires a base_url")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.schema_name = schema_name
        self.entities_table = entities_table
        self.edges_table = edges_table
        self.timeout = timeout
        self.transport = transport

    def describe(self) -> str:
        return f"rest:{self.base_url}/{self.schema_name}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept-Profile": self.schema_name}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_page(
        self,
        table: str,
        params: dict[str, str],
        order: str,
        offset: int,
        limit: int,
    ) -> list[dict]:
        url = f"{self.base_url}/rest/v1/{table}"
        query = {"select": "*", "order": order, "offset": str(offset), "limit": str(limit), **params}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(url, params=query, headers=self._headers())
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, list):
            raise ValueError(f"Unexpected response shape from {table}: {type(data).__name__}")
        return data

    async def list_entities(self, filter=None, offset=0, limit=1000) -> list[dict]:
        params = filter.entity_params() if filter else {}
        return await self._get_page(self.entities_table, params, "id", offset, limit)

    async def list_edges(self, filter=None, offset=0, limit=1000) -> list[dict]:
        params = filter.edge_params() if filter else {}
        return await self._get_page(self.edges_table, params, "source,target,kind", offset, limit)


PageFetcher = Callable[[int, int], Awaitable[list[dict]]]


async def _gather_or_cancel(*aws: Awaitable) -> list:
    """asyncio.gather that cancels the remaining awaitables when one fails."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class SnapshotLoader:
    """Loads a complete GraphSnapshot from a GraphStore."""

    def __init__(
        self,
        store: GraphStore,
        page_size: int = 1000,
        max_concurrency: int = 4,
    ):
        """Initialize loader.

        Args:
            store: Backing store
            page_size: Records requested per page
            max_concurrency: Pages requested in parallel per wave
        """
        if page_size < 1 or max_concurrency < 1:
            raise ValueError("page_size and max_concurrency must be positive")
        self.store = store
        self.page_size = page_size
        self.max_concurrency = max_concurrency

    async def _fetch_all(
        self,
        fetch_page: PageFetcher,
        label: str,
        semaphore: asyncio.Semaphore,
    ) -> list[dict]:
        """Exhaust pagination in waves of parallel page requests."""
        records: list[dict] = []
        offset = 0

        async def bounded(page_offset: int) -> list[dict]:
            async with semaphore:
                return await fetch_page(page_offset, self.page_size)

        while True:
            offsets = [offset + i * self.page_size for i in range(self.max_concurrency)]
            pages = await _gather_or_cancel(*(bounded(o) for o in offsets))

            exhausted = False
            for page in pages:
                records.extend(page)
                if len(page) < self.page_size:
                    exhausted = True
                    break
            if exhausted:
                break
            offset += self.page_size * self.max_concurrency

        logger.debug(f"Fetched {len(records)} {label} records")
        return records

    @staticmethod
    def _validate(records: list[dict], model: type, label: str) -> tuple[list, int]:
        valid = []
        skipped = 0
        for record in records:
            try:
                valid.append(model.model_validate(record))
            except ValidationError as e:
                skipped += 1
                logger.warning(f"Skipping invalid {label} record: {e.error_count()} error(s)")
        return valid, skipped

    async def load(self, filter: Optional[SnapshotFilter] = None) -> GraphSnapshot:
        """Fetch entities and edges concurrently.

        Raises:
            SnapshotUnavailable: If the store cannot be read
        """
        # Shared by both tables so at most max_concurrency pages are in flight
        semaphore = asyncio.Semaphore(self.max_concurrency)
        try:
            # A failed table cancels the other one instead of leaving it fetching
            entity_records, edge_records = await _gather_or_cancel(
                self._fetch_all(
                    lambda offset, limit: self.store.list_entities(filter, offset, limit),
                    "entity",
                    semaphore,
                ),
                self._fetch_all(
                    lambda offset, limit: self.store.list_edges(filter, offset, limit),
                    "edge",
                    semaphore,
                ),
            )
        except (httpx.HTTPError, OSError, ValueError) as e:
            raise SnapshotUnavailable(
                f"Could not load snapshot from {self.store.describe()}: {e}"
            ) from e

        entities, skipped_entities = self._validate(entity_records, Entity, "entity")
        edges, skipped_edges = self._validate(edge_records, Edge, "edge")

        snapshot = GraphSnapshot(
            source=self.store.describe(),
            entities=entities,
            edges=edges,
            skipped_records=skipped_entities + skipped_edges,
        )
        logger.info(
            f"Loaded snapshot {snapshot.snapshot_id[:8]}: "
            f"{snapshot.entity_count} entities, {snapshot.edge_count} edges"
            + (f", {snapshot.skipped_records} invalid records skipped" if snapshot.skipped_records else "")
        )
        return snapshot


async def load_snapshot(
    store: GraphStore,
    filter: Optional[SnapshotFilter] = None,
    page_size: int = 1000,
    max_concurrency: int = 4,
) -> GraphSnapshot:
    """Convenience wrapper around SnapshotLoader.load."""
    loader = SnapshotLoader(store, page_size=page_size, max_concurrency=max_concurrency)
    return await loader.load(filter)


def create_store(config) -> GraphStore:
    """Build the store described by a StoreConfig."""
    if config.kind == "file":
        return FileGraphStore(config.directory)
    if config.kind == "rest":
        return RestGraphStore(
            base_url=config.base_url,
            api_key=config.get_api_key(),
            schema_name=config.schema_name,
            entities_table=config.entities_table,
            edges_table=config.edges_table,
            timeout=config.timeout_seconds,
        )
    raise ValueError(f"Unknown store kind: {config.kind}. Available: ['file', 'rest']")
