"""Tests for configuration loading and override behavior."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from corpusgraph.utils.config import get_config, load_config, reset_config


@pytest.fixture(autouse=True)
def _reset_global_config() -> None:
    """Ensure config singleton doesn't leak between tests."""
    reset_config()
    yield
    reset_config()


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_yaml_values_override_defaults(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(
        cfg_path,
        {
            "graph": {"max_people_per_document": 5},
            "discovery": {"cluster_min_strength": 2},
        },
    )

    cfg = load_config(cfg_path)

    assert cfg.graph.max_people_per_document == 5
    assert cfg.discovery.cluster_min_strength == 2
    # Untouched sections keep their defaults.
    assert cfg.discovery.cluster_min_size == 3
    assert cfg.metrics.cache_ttl_seconds == 60.0
    assert get_config() is cfg


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"pipeline": {"max_workers": 2}})

    monkeypatch.setenv("CORPUSGRAPH_PIPELINE__MAX_WORKERS", "8")

    cfg = load_config(cfg_path)

    assert cfg.pipeline.max_workers == 8


def test_invalid_yaml_root_type_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump(["not", "a", "mapping"]), encoding="utf-8")

    with pytest.raises(ValueError, match="YAML config root must be a mapping"):
        load_config(cfg_path)


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_validate_rejects_zero_workers(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"pipeline": {"max_workers": 0}})

    with pytest.raises(ValueError, match="max_workers"):
        load_config(cfg_path)


def test_get_config_requires_load() -> None:
    with pytest.raises(RuntimeError):
        get_config()


def test_shipped_config_file_loads() -> None:
    cfg = load_config(Path(__file__).resolve().parents[1] / "config" / "config.yaml")

    assert cfg.enrichment.enabled is False
    assert cfg.graph.max_people_per_document == 20
    assert cfg.pipeline.text_suffixes == [".txt", ".md"]
