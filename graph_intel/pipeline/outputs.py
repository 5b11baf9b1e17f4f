"""
Output Generation

Generates CSV, Markdown and JSON reports from introduction paths and network
insights, plus upsert-ready records for persisting them.
"""

import json
import logging
from datetime import datetime
from pathlib import Path as FilePath
from typing import Optional

from graph_intel.models.entities import NetworkInsights, Path, WarmIntroductionReport

logger = logging.getLogger(__name__)


def _path_data(path: Path) -> dict:
    return {
        "path": path.entity_ids,
        "names": path.names,
        "kinds": path.kinds,
        "strategy": path.strategy.value,
        "hop_count": path.hop_count,
        "description": path.description,
        "explanation": path.explanation,
        "via": path.via,
    }


def introduction_path_records(
    target_id: str,
    paths: list[Path],
    calculated_at: Optional[datetime] = None,
) -> list[dict]:
    """Upsert rows keyed by (source_entity_id, target_entity_id).

    Only the best scoring path per source is kept, so each warm introduction
    seed maps to one row for the target.

    Args:
        target_id: Target entity the paths lead to
        paths: Ranked paths (best first)
        calculated_at: Timestamp for the rows (default: now)

    Returns:
        List of row dicts ready for an upsert
    """
    calculated_at = calculated_at or datetime.now()
    best: dict[str, Path] = {}
    for path in paths:
        current = best.get(path.source_id)
        if current is None or path.score > current.score:
            best[path.source_id] = path

    return [
        {
            "source_entity_id": source_id,
            "target_entity_id": target_id,
            "path_data": _path_data(path),
            "path_strength": path.strength,
            "quality_score": path.score,
            "calculated_at": calculated_at.isoformat(),
        }
        for source_id, path in best.items()
    ]


def network_insights_record(insights: NetworkInsights) -> dict:
    """Singleton row holding the latest network insights."""
    return {
        "id": "current",
        "insights_data": insights.model_dump(mode="json", exclude={"generated_at"}),
        "calculated_at": insights.generated_at.isoformat(),
    }


class OutputGenerator:
    """Writes introduction path and network insight reports."""

    def __init__(
        self,
        output_dir: str | FilePath = "./outputs",
        formats: Optional[list[str]] = None,
        timestamp_filenames: bool = True,
        max_items_per_section: int = 20,
    ):
        """Initialize output generator.

        Args:
            output_dir: Directory for output files
            formats: List of formats to generate (csv, markdown, json)
            timestamp_filenames: Whether to include timestamp in filenames
            max_items_per_section: Maximum items per report section
        """
        self.output_dir = FilePath(output_dir)
        self.formats = formats or ["csv", "markdown", "json"]
        self.timestamp_filenames = timestamp_filenames
        self.max_items_per_section = max_items_per_section

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _get_filename(self, base_name: str, extension: str) -> FilePath:
        """Generate output filename."""
        if self.timestamp_filenames:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{base_name}_{timestamp}.{extension}"
        else:
            filename = f"{base_name}.{extension}"
        return self.output_dir / filename

    @staticmethod
    def _safe_name(value: str) -> str:
        return "".join(c if c.isalnum() else "_" for c in value.lower())

    def _paths_to_csv(self, paths: list[Path]) -> str:
        """Convert paths to CSV format."""
        lines = ["rank,source,target,strategy,hop_count,strength,score,path"]

        for i, p in enumerate(paths, 1):
            names = p.names or p.entity_ids
            lines.append(
                f"{i},"
                f'"{names[0]}",'
                f'"{names[-1]}",'
                f"{p.strategy.value},"
                f"{p.hop_count},"
                f"{p.strength:.3f},"
                f"{p.score:.4f},"
                f'"{p.explanation}"'
            )

        return "\n".join(lines)

    def _generate_paths_md(self, target_name: str, report: WarmIntroductionReport) -> str:
        """Generate introduction paths markdown report."""
        lines = [f"# Introduction Paths to {target_name}\n"]

        lines.extend([
            f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*\n",
            "\n## Summary\n",
            f"- **Seeds considered**: {report.seeds_considered}",
            f"- **Seeds with paths**: {report.seeds_with_paths}",
            f"- **Paths found**: {len(report.paths)}\n",
        ])

        if report.unknown_target:
            lines.append("\n*Target entity is not in the network.*\n")
            return "\n".join(lines)
        if report.empty_seed_set:
            lines.append("\n*No internal people available to start an introduction.*\n")
            return "\n".join(lines)
        if not report.paths:
            lines.append("\n*No introduction paths found within the hop budget.*\n")
            return "\n".join(lines)

        lines.append("\n## Best Paths\n")
        for i, p in enumerate(report.paths[:self.max_items_per_section], 1):
            lines.extend([
                f"\n### {i}. {p.explanation}\n",
                f"**Strategy**: {p.strategy.value}",
                f"**Hops**: {p.hop_count} ({p.description})",
                f"**Strength**: {p.strength:.3f}",
                f"**Score**: {p.score:.4f}\n",
            ])

        if report.seed_failures:
            lines.append("\n## Seed Failures\n")
            for seed_id, error in report.seed_failures.items():
                lines.append(f"- `{seed_id}`: {error}")

        return "\n".join(lines)

    def _generate_insights_md(self, insights: NetworkInsights) -> str:
        """Generate network insights markdown report."""
        lines = ["# Network Insights\n"]

        lines.extend([
            f"*Generated: {insights.generated_at.strftime('%Y-%m-%d %H:%M')}*\n",
            "\n## Network Overview\n",
            f"- **Entities**: {insights.total_entities}",
            f"- **Connections**: {insights.total_connections}",
            f"- **Network density**: {insights.network_density:.4f}",
            f"- **Well connected entities**: {insights.well_connected_entities}",
            f"- **Influential entities**: {insights.influential_entities}",
        ])
        if insights.dropped_edges:
            lines.append(f"- **Edges dropped as invalid**: {insights.dropped_edges}")

        if insights.top_influencers:
            lines.extend([
                "\n## Top Influencers\n",
                "| Rank | Name | Type | Influence |",
                "|------|------|------|-----------|",
            ])
            for i, entry in enumerate(insights.top_influencers[:self.max_items_per_section], 1):
                lines.append(f"| {i} | {entry.name} | {entry.type} | {entry.influence_score:.1f} |")

        for title, distribution in (
            ("Connection Types", insights.connection_types),
            ("Entity Types", insights.entity_types),
            ("Industries", insights.industry_distribution),
        ):
            if not distribution:
                continue
            lines.append(f"\n## {title}\n")
            ordered = sorted(distribution.items(), key=lambda kv: (-kv[1], kv[0]))
            for name, count in ordered[:self.max_items_per_section]:
                lines.append(f"- **{name}**: {count}")

        return "\n".join(lines)

    def generate_introduction_paths(
        self,
        report: WarmIntroductionReport,
        target_name: Optional[str] = None,
    ) -> dict[str, FilePath]:
        """Generate introduction path reports for one target.

        Returns:
            Dictionary of format -> filepath
        """
        generated = {}
        target_name = target_name or report.target_id
        base_name = f"introductions_{self._safe_name(target_name)}"

        if "csv" in self.formats:
            filepath = self._get_filename(base_name, "csv")
            filepath.write_text(self._paths_to_csv(report.paths))
            generated["csv"] = filepath

        if "markdown" in self.formats:
            filepath = self._get_filename(base_name, "md")
            filepath.write_text(self._generate_paths_md(target_name, report))
            generated["markdown"] = filepath

        if "json" in self.formats:
            json_data = {
                "target_id": report.target_id,
                "report": report.model_dump(mode="json", exclude={"paths"}),
                "records": introduction_path_records(report.target_id, report.paths),
            }
            filepath = self._get_filename(base_name, "json")
            filepath.write_text(json.dumps(json_data, indent=2, default=str))
            generated["json"] = filepath

        logger.info(f"Generated introduction path reports for {target_name}: {list(generated.keys())}")
        return generated

    def generate_network_insights(self, insights: NetworkInsights) -> dict[str, FilePath]:
        """Generate network insight reports. CSV is not produced for insights."""
        generated = {}

        if "markdown" in self.formats:
            filepath = self._get_filename("network_insights", "md")
            filepath.write_text(self._generate_insights_md(insights))
            generated["markdown"] = filepath

        if "json" in self.formats:
            filepath = self._get_filename("network_insights", "json")
            filepath.write_text(json.dumps(network_insights_record(insights), indent=2, default=str))
            generated["json"] = filepath

        logger.info(f"Generated network insight reports: {list(generated.keys())}")
        return generated
