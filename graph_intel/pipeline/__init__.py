"""
Analysis Pipeline

Components for loading graph snapshots, building analysis sessions over them,
and writing reports.
"""

from graph_intel.pipeline.loader import (
    FileGraphStore,
    GraphStore,
    RestGraphStore,
    SnapshotFilter,
    SnapshotLoader,
    create_store,
    load_snapshot,
)
from graph_intel.pipeline.session import AnalysisSession, create_embedding_provider
from graph_intel.pipeline.outputs import (
    OutputGenerator,
    introduction_path_records,
    network_insights_record,
)

__all__ = [
    "FileGraphStore",
    "GraphStore",
    "RestGraphStore",
    "SnapshotFilter",
    "SnapshotLoader",
    "create_store",
    "load_snapshot",
    "AnalysisSession",
    "create_embedding_provider",
    "OutputGenerator",
    "introduction_path_records",
    "network_insights_record",
]
