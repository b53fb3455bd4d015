from __future__ import annotations

import math
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Tuple

import pytest
import yaml

from corpusgraph.extraction.enrichment import LLMEnricher
from corpusgraph.extraction.models import ExtractionResult, PersonMention
from corpusgraph.utils.config import EnrichmentConfig

LONG_TEXT = "this line has nothing of interest at all\n" * 200


def _enricher(tmp_path: Path, **overrides) -> LLMEnricher:
    config = EnrichmentConfig(
        enabled=True,
        prompt_file=str(tmp_path / "missing_prompt.yaml"),
        **overrides,
    )
    return LLMEnricher(config, client=object())


def test_enrich_merges_new_entities(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    enricher = _enricher(tmp_path)
    calls: Dict[str, str] = {}

    def fake_call(*, system: str, user: str) -> Tuple[str, int]:
        calls["system"] = system
        calls["user"] = user
        return (
            """
            {
              "people": [{"name": "John Roe", "role": "pilot", "context": "flew the plane"}],
              "locations": [{"name": "Stanley", "type": "city"}],
              "organizations": [{"name": "Acme Aviation"}]
            }
            """,
            42,
        )

    monkeypatch.setattr(enricher, "_call_llm", fake_call)
    local = ExtractionResult(people=[PersonMention(name="Jane Doe", confidence=0.7)])

    outcome = enricher.enrich("doc-1", LONG_TEXT, local)

    assert outcome.succeeded
    assert outcome.tokens_used == 42
    merged = outcome.result
    assert merged.enriched is True
    assert [p.name for p in merged.people] == ["Jane Doe", "John Roe"]
    added = merged.people[1]
    assert added.source == "enrichment"
    assert added.role == "pilot"
    assert added.confidence == pytest.approx(0.6)
    assert [(loc.name, loc.kind) for loc in merged.locations] == [("Stanley", "city")]
    assert [org.name for org in merged.organizations] == ["Acme Aviation"]

    # The local result is left untouched.
    assert local.enriched is False
    assert len(local.people) == 1

    assert "Document: doc-1" in calls["user"]
    assert "Already found: 1 entities" in calls["user"]
    # Only a de-duplicated summary is sent, never the full text.
    assert calls["user"].count("nothing of interest") == 1


def test_enrich_failure_keeps_local_result(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    enricher = _enricher(tmp_path)

    def failing_call(*, system: str, user: str) -> Tuple[str, int]:
        raise RuntimeError("service unavailable")

    monkeypatch.setattr(enricher, "_call_llm", failing_call)
    local = ExtractionResult()

    outcome = enricher.enrich("doc-2", LONG_TEXT, local)

    assert outcome.attempted is True
    assert outcome.succeeded is False
    assert "service unavailable" in (outcome.error or "")
    assert outcome.result is local
    assert outcome.result.enriched is False


def test_enrich_rejects_non_object_response(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    enricher = _enricher(tmp_path)
    monkeypatch.setattr(enricher, "_call_llm", lambda *, system, user: ("[1, 2, 3]", 10))

    outcome = enricher.enrich("doc-3", LONG_TEXT, ExtractionResult())

    assert outcome.attempted is True
    assert outcome.error is not None
    assert outcome.result.enriched is False


def test_lenient_json_extraction(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    enricher = _enricher(tmp_path)
    response = 'Sure, here it is:\n```json\n{"people": [{"name": "Ann Lee"}]}\n```'
    monkeypatch.setattr(enricher, "_call_llm", lambda *, system, user: (response, 5))

    outcome = enricher.enrich("doc-4", LONG_TEXT, ExtractionResult())

    assert outcome.succeeded
    assert [p.name for p in outcome.result.people] == ["Ann Lee"]


def test_disabled_enricher_never_calls_model(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = EnrichmentConfig(enabled=False, prompt_file=str(tmp_path / "missing.yaml"))
    enricher = LLMEnricher(config, client=object())

    def unexpected_call(*, system: str, user: str) -> Tuple[str, int]:
        raise AssertionError("model must not be called")

    monkeypatch.setattr(enricher, "_call_llm", unexpected_call)

    outcome = enricher.enrich("doc-5", LONG_TEXT, ExtractionResult())

    assert outcome.attempted is False
    assert outcome.tokens_saved == math.ceil(len(LONG_TEXT) / 4)


def test_short_or_rich_documents_skip_enrichment(tmp_path: Path) -> None:
    enricher = _enricher(tmp_path)
    rich = ExtractionResult(people=[PersonMention(name=f"Person {i}") for i in range(11)])

    assert enricher.should_enrich(ExtractionResult(), 100) is False
    assert enricher.should_enrich(rich, len(LONG_TEXT)) is False
    assert enricher.should_enrich(ExtractionResult(), len(LONG_TEXT)) is True


def test_summary_is_bounded(tmp_path: Path) -> None:
    enricher = _enricher(tmp_path, max_summary_lines=2, max_summary_chars=30)
    text = "short\n" + "\n".join(f"line number {i} with enough characters" for i in range(5))

    summary = enricher.build_summary(text)

    assert len(summary) <= 30
    assert summary.startswith("line number 0")
    assert "short" not in summary


def test_prompt_file_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    prompt_path = tmp_path / "prompt.yaml"
    prompt_path.write_text(
        yaml.safe_dump(
            {
                "enrichment": {
                    "system": "custom system",
                    "user_template": "Doc {document_id} ({already_found}): {summary}",
                }
            }
        ),
        encoding="utf-8",
    )
    enricher = LLMEnricher(
        EnrichmentConfig(enabled=True, prompt_file=str(prompt_path)), client=object()
    )
    calls: Dict[str, str] = {}

    def fake_call(*, system: str, user: str) -> Tuple[str, int]:
        calls["system"] = system
        calls["user"] = user
        return "{}", 1

    monkeypatch.setattr(enricher, "_call_llm", fake_call)

    enricher.enrich("doc-6", LONG_TEXT, ExtractionResult())

    assert calls["system"] == "custom system"
    assert calls["user"].startswith("Doc doc-6 (0): ")


def test_client_is_created_once_across_threads(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    created: List[object] = []

    def slow_factory(**kwargs) -> object:
        time.sleep(0.05)
        client = object()
        created.append(client)
        return client

    monkeypatch.setattr("corpusgraph.extraction.enrichment.create_openai_client", slow_factory)
    enricher = LLMEnricher(EnrichmentConfig(enabled=True, prompt_file=str(tmp_path / "missing.yaml")))

    with ThreadPoolExecutor(max_workers=8) as executor:
        clients = list(executor.map(lambda _: enricher.client, range(8)))

    assert len(created) == 1
    assert all(client is created[0] for client in clients)
