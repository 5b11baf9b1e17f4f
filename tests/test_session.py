"""
Tests for Analysis Session and CLI
"""

import asyncio
import json

import pytest
from click.testing import CliRunner

from graph_intel.main import cli
from graph_intel.pipeline.loader import FileGraphStore
from graph_intel.pipeline.session import AnalysisSession, create_embedding_provider
from graph_intel.utils.config import Config


@pytest.fixture
def export_dir(tmp_path):
    """Warm introduction scenario exported as JSON files."""
    entities = [
        {"id": "me", "name": "Mia", "type": "person", "is_internal": True},
        {"id": "x", "name": "Xavi", "type": "person"},
        {"id": "t", "name": "Tara", "type": "person"},
    ]
    edges = [
        {"source": "me", "target": "x", "kind": "colleague", "strength_score": 0.9},
        {"source": "x", "target": "t", "kind": "founder", "strength_score": 0.8},
        {"source": "x", "target": "ghost", "kind": "founder", "strength_score": 0.8},
    ]
    (tmp_path / "entities.json").write_text(json.dumps(entities))
    (tmp_path / "edges.json").write_text(json.dumps(edges))
    return tmp_path


class TestAnalysisSession:
    """Tests for wiring components over one snapshot."""

    def test_from_snapshot(self, sample_snapshot):
        session = AnalysisSession(sample_snapshot)

        assert session.index.version == sample_snapshot.snapshot_id
        assert session.cache.scope == sample_snapshot.snapshot_id
        assert [p.entity_ids for p in session.service.find_warm_introductions("c")] == [
            ["ext", "a", "b", "c"]
        ]

    def test_config_flows_into_components(self, sample_snapshot):
        config = Config()
        config.warm_introductions.max_hops = 2
        config.scoring.decay_factor = 0.5
        config.paths.hub_candidates = 1

        session = AnalysisSession(sample_snapshot, config=config)

        assert session.service.warm_max_hops == 2
        assert session.scorer.decay_factor == 0.5
        assert session.finder.hub_candidates == 1
        assert session.service.find_warm_introductions("c") == []

    def test_load(self, export_dir):
        session = asyncio.run(AnalysisSession.load(FileGraphStore(export_dir)))

        assert session.index.entity_count == 3
        assert session.index.diagnostics.dropped_unknown_entity == 1
        assert session.analyzer.compute_network_insights().total_connections == 2
        session.close()

    def test_no_embedding_provider_by_default(self):
        assert create_embedding_provider(Config()) is None

    def test_embedding_provider_from_config(self):
        config = Config()
        config.embeddings.provider = "ollama"

        provider = create_embedding_provider(config)
        assert provider.provider_name == "ollama"
        assert provider.base_url == config.embeddings.ollama_base_url


class TestCli:
    """Tests for the command-line interface."""

    def test_version(self):
        result = CliRunner().invoke(cli, ["version"], obj={})

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_paths(self, export_dir):
        result = CliRunner().invoke(
            cli,
            ["paths", "--source", "me", "--target", "t", "--input", str(export_dir)],
            obj={},
        )

        assert result.exit_code == 0, result.output
        assert "Paths from Mia to Tara" in result.output

    def test_paths_unknown_entity(self, export_dir):
        result = CliRunner().invoke(
            cli,
            ["paths", "--source", "me", "--target", "nobody", "--input", str(export_dir)],
            obj={},
        )
        assert result.exit_code == 1

    def test_warm_intros_writes_reports(self, export_dir, tmp_path):
        output_dir = tmp_path / "reports"
        result = CliRunner().invoke(
            cli,
            [
                "warm-intros", "--target", "t",
                "--input", str(export_dir),
                "--output", str(output_dir),
                "--format", "json",
            ],
            obj={},
        )

        assert result.exit_code == 0, result.output
        reports = list(output_dir.glob("introductions_tara*.json"))
        assert len(reports) == 1
        data = json.loads(reports[0].read_text())
        assert data["records"][0]["source_entity_id"] == "me"

    def test_insights(self, export_dir):
        result = CliRunner().invoke(cli, ["insights", "--input", str(export_dir)], obj={})

        assert result.exit_code == 0, result.output
        assert "Network Insights" in result.output

    def test_missing_export(self, tmp_path):
        result = CliRunner().invoke(cli, ["insights", "--input", str(tmp_path)], obj={})
        assert result.exit_code == 1
