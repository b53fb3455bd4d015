"""Configuration management using Pydantic for validation."""

from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionConfig(BaseSettings):
    """Pattern extraction configuration."""

    gazetteer_file: str | None = None
    max_people: int = 100
    max_locations: int = 50
    max_dates: int = 100
    max_flights: int = 50
    max_phones: int = 50
    max_money: int = 50
    max_addresses: int = 30
    context_window: int = 100
    flight_date_window: int = 100


class EnrichmentConfig(BaseSettings):
    """Optional LLM enrichment for documents where local extraction finds little."""

    enabled: bool = False
    provider: Literal["openai"] = "openai"
    model: str = "gpt-4.1-mini"
    temperature: float = 0.0
    timeout: float = 30.0
    base_url: str | None = None
    api_key: str | None = None
    prompt_file: str = "config/enrichment_prompt.yaml"
    max_summary_chars: int = 2000
    max_summary_lines: int = 50
    # Delegation gate thresholds
    min_text_length: int = 500
    long_text_length: int = 5000
    sparse_entity_count: int = 3
    rich_entity_count: int = 10

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature is between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError("Temperature must be between 0 and 1")
        return v


class AggregationConfig(BaseSettings):
    """Corpus aggregation configuration."""

    min_name_length: int = 2
    skip_reprocessed_documents: bool = False


class GraphConfig(BaseSettings):
    """Co-occurrence graph configuration."""

    max_people_per_document: int = Field(default=20, ge=2)


class DiscoveryConfig(BaseSettings):
    """Discovery heuristics configuration."""

    cluster_min_strength: int = 3
    cluster_min_size: int = 3
    cluster_discovery_limit: int = 5
    cluster_discovery_min_size: int = 5
    cluster_critical_size: int = 10
    geographic_min_people: int = 3
    pattern_discovery_limit: int = 3
    pattern_discovery_min_people: int = 5
    pattern_high_people: int = 10
    anomaly_candidate_pool: int = 100
    anomaly_top_n: int = 10
    anomaly_min_strength: int = 5
    anomaly_high_strength: int = 10
    most_connected_limit: int = 20


class MetricsConfig(BaseSettings):
    """Corpus metrics configuration."""

    cache_ttl_seconds: float = 60.0


class PipelineConfig(BaseSettings):
    """Pipeline configuration."""

    max_workers: int = 4
    text_suffixes: list[str] = [".txt", ".md"]


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"
    file: str | None = None
    max_size_mb: int = 100
    backup_count: int = 5


class Config(BaseSettings):
    """Main configuration class."""

    model_config = SettingsConfigDict(
        env_prefix="CORPUSGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Data paths
    documents_path: Path = Field(default=Path("data/documents"))
    records_path: Path = Field(default=Path("data/entities"))
    reports_path: Path = Field(default=Path("data/reports"))

    @staticmethod
    def _deep_merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two dicts (overrides win).

        This is used to apply environment-derived overrides on top of YAML defaults.
        """
        merged: Dict[str, Any] = dict(base)
        for key, value in overrides.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge_dict(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file and environment variables.

        Precedence (highest to lowest):
        1) Environment variables / .env
        2) YAML file
        3) Model defaults

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If the YAML root is not a mapping
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"YAML config root must be a mapping/dict: {yaml_path}")

        # Only non-default env values are layered over the YAML file.
        env_overrides = cls().model_dump(exclude_defaults=True)
        merged = cls._deep_merge_dict(yaml_config, env_overrides)

        return cls(**merged)

    def validate_config(self) -> None:
        """Validate configuration settings.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.pipeline.max_workers < 1:
            raise ValueError("pipeline.max_workers must be at least 1")
        if self.metrics.cache_ttl_seconds < 0:
            raise ValueError("metrics.cache_ttl_seconds must not be negative")
        if self.extraction.gazetteer_file and not Path(self.extraction.gazetteer_file).exists():
            raise ValueError(f"Gazetteer file not found: {self.extraction.gazetteer_file}")


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Raises:
        RuntimeError: If configuration hasn't been initialized
    """
    global _config
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call load_config() first.")
    return _config


def load_config(yaml_path: str | Path = "config/config.yaml") -> Config:
    """Load and validate configuration."""
    global _config
    _config = Config.from_yaml(yaml_path)
    _config.validate_config()
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
