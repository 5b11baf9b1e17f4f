"""
Configuration Management

Loads configuration from YAML files with environment variable resolution.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from graph_intel.models.entities import PathStrategy


class StoreConfig(BaseModel):
    """Snapshot store configuration."""
    kind: str = "file"
    directory: str = "./data"
    base_url: Optional[str] = None
    api_key_env: str = "SUPABASE_SERVICE_ROLE_KEY"
    schema_name: str = "graph"
    entities_table: str = "entities"
    edges_table: str = "edges"
    page_size: int = 1000
    max_concurrency: int = 4
    timeout_seconds: float = 30.0

    def get_api_key(self) -> Optional[str]:
        """Get API key from environment variable."""
        return os.environ.get(self.api_key_env)


class PathsConfig(BaseModel):
    """Path finder configuration."""
    max_hops: int = 4
    max_paths: int = 10
    hub_candidates: int = 5
    time_budget_seconds: Optional[float] = Field(default=5.0, gt=0)
    strategies: list[PathStrategy] = Field(default_factory=lambda: list(PathStrategy))


class WarmIntroductionsConfig(BaseModel):
    """Warm introduction search configuration."""
    max_hops: int = 3
    max_results: int = 5
    paths_per_seed: int = 3
    min_path_strength: float = 0.1
    strategies: list[PathStrategy] = Field(default_factory=lambda: [
        PathStrategy.SHORTEST,
        PathStrategy.STRONGEST,
    ])
    well_connected_seeds_only: bool = False


class ScoringConfig(BaseModel):
    """Path scoring configuration."""
    decay_factor: float = 0.8
    neutral_strength: float = 0.5
    default_type_weight: float = 0.5
    semantic_weight: float = 0.4
    relationship_weights: dict[str, float] = Field(default_factory=dict)


class InfluenceConfig(BaseModel):
    """Influence analyzer configuration."""
    well_connected_threshold: int = 5
    influential_threshold: float = 10.0
    max_score: float = 20.0
    reach_hops: int = 2
    top_k: int = 10


class CacheConfig(BaseModel):
    """Path result caching configuration."""
    enabled: bool = True
    backend: str = "memory"
    path: str = ".cache/path_results"
    ttl_days: int = 1
    max_size_mb: int = 200


class EmbeddingsConfig(BaseModel):
    """Embedding provider configuration."""
    provider: Optional[str] = None
    models: dict[str, str] = Field(default_factory=lambda: {
        "openai": "text-embedding-3-large",
        "ollama": "nomic-embed-text",
    })
    api_key_env: dict[str, str] = Field(default_factory=lambda: {
        "openai": "OPENAI_API_KEY",
    })
    ollama_base_url: str = "http://localhost:11434"

    def get_model(self, provider: Optional[str] = None) -> Optional[str]:
        """Get model name for provider."""
        provider = provider or self.provider
        return self.models.get(provider) if provider else None


class OutputConfig(BaseModel):
    """Output generation configuration."""
    directory: str = "./outputs"
    formats: list[str] = Field(default_factory=lambda: ["csv", "markdown", "json"])
    timestamp_filenames: bool = True
    max_items_per_section: int = 20


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseModel):
    """Root configuration object."""
    store: StoreConfig = Field(default_factory=StoreConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    warm_introductions: WarmIntroductionsConfig = Field(default_factory=WarmIntroductionsConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    influence: InfluenceConfig = Field(default_factory=InfluenceConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    embeddings: EmbeddingsConfig = Field(default_factory=EmbeddingsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _resolve_env_vars(data: Any) -> Any:
    """Recursively resolve environment variables in config values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.
    """
    if isinstance(data, str):
        if data.startswith("${") and data.endswith("}"):
            var_expr = data[2:-1]
            if ":-" in var_expr:
                var_name, default = var_expr.split(":-", 1)
                return os.environ.get(var_name, default)
            return os.environ.get(var_expr, data)
        return data
    elif isinstance(data, dict):
        return {k: _resolve_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars(item) for item in data]
    return data


def load_config(
    config_path: Optional[Path] = None,
    local_config_path: Optional[Path] = None,
) -> Config:
    """Load configuration from YAML files.

    Args:
        config_path: Path to main config file (default: config.yaml)
        local_config_path: Path to local overrides (default: config.local.yaml)

    Returns:
        Merged and validated Config object
    """
    project_root = Path(__file__).parent.parent.parent

    if config_path is None:
        config_path = project_root / "config.yaml"
    if local_config_path is None:
        local_config_path = project_root / "config.local.yaml"

    config_data: dict[str, Any] = {}

    if Path(config_path).exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    if Path(local_config_path).exists():
        with open(local_config_path) as f:
            local_data = yaml.safe_load(f) or {}
            config_data = _deep_merge(config_data, local_data)

    config_data = _resolve_env_vars(config_data)

    return Config(**config_data)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
