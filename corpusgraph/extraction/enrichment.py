"""Optional LLM enrichment for sparsely extracted documents.

Only a compact summary of the document is sent, never the full text. The call
is best-effort: any failure leaves the local extraction result untouched.
"""

from __future__ import annotations

import json
import math
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict

from corpusgraph.errors import EnrichmentError
from corpusgraph.extraction.models import (
    ExtractionResult,
    LocationMention,
    OrganizationMention,
    PersonMention,
)
from corpusgraph.extraction.pattern_extractor import needs_external_analysis
from corpusgraph.utils.config import EnrichmentConfig
from corpusgraph.utils.llm_client import create_openai_client

ENRICHMENT_CONFIDENCE = 0.6

DEFAULT_SYSTEM_PROMPT = "You extract named entities from document summaries. Reply with JSON only."
DEFAULT_USER_TEMPLATE = """Analyze this document summary and extract any ADDITIONAL entities not already found. Return ONLY JSON.

Already found: {already_found} entities
Document: {document_id}

Summary:
{summary}

Return JSON with ONLY NEW entities not in the "already found" list:
{{"people": [{{"name": "", "role": "", "context": ""}}], "locations": [{{"name": "", "type": ""}}], "organizations": [{{"name": ""}}]}}"""


class EnrichmentOutcome(BaseModel):
    """What happened to one document at the enrichment step."""

    model_config = ConfigDict(frozen=True)

    result: ExtractionResult
    attempted: bool = False
    tokens_used: int = 0
    tokens_saved: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.attempted and self.error is None


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


class LLMEnricher:
    """Delegates sparse documents to an OpenAI-compatible chat model."""

    def __init__(self, config: Optional[EnrichmentConfig] = None, *, client: Any = None) -> None:
        self.config = config or EnrichmentConfig()
        self._client = client
        self._client_lock = threading.Lock()
        self.system_prompt, self.user_template = self._load_prompt(Path(self.config.prompt_file))

        logger.info(
            "Initialized LLMEnricher (provider={}, model={}, enabled={})",
            self.config.provider,
            self.config.model,
            self.config.enabled,
        )

    # -----------------------
    # Public API
    # -----------------------
    def should_enrich(self, result: ExtractionResult, text_length: int) -> bool:
        if not self.config.enabled:
            return False
        return needs_external_analysis(
            result.core_entity_count(),
            text_length,
            rich_entity_count=self.config.rich_entity_count,
            min_text_length=self.config.min_text_length,
            long_text_length=self.config.long_text_length,
            sparse_entity_count=self.config.sparse_entity_count,
        )

    def enrich(self, document_id: str, text: str, result: ExtractionResult) -> EnrichmentOutcome:
        """Merge model-found people, locations and organizations into ``result``.

        Never raises; on failure the local result is returned unchanged.
        """
        if not self.should_enrich(result, len(text)):
            return EnrichmentOutcome(result=result, tokens_saved=estimate_tokens(text))

        logger.info("Document {} needs enrichment (local entities: {})", document_id, result.core_entity_count())
        summary = self.build_summary(text)
        user = self.user_template.format(
            document_id=document_id,
            already_found=result.core_entity_count(),
            summary=summary,
        )

        try:
            raw_response, tokens_used = self._call_llm(system=self.system_prompt, user=user)
            payload = self._parse_response(raw_response)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Enrichment failed for {}: {}", document_id, exc)
            return EnrichmentOutcome(result=result, attempted=True, error=str(exc))

        merged = self._merge(result, payload)
        logger.info(
            "Enrichment added {} people, {} locations, {} organizations to {}",
            len(merged.people) - len(result.people),
            len(merged.locations) - len(result.locations),
            len(merged.organizations) - len(result.organizations),
            document_id,
        )
        return EnrichmentOutcome(result=merged, attempted=True, tokens_used=tokens_used)

    def build_summary(self, text: str) -> str:
        """First unique lines longer than 20 characters, truncated to the summary budget."""
        lines = [line for line in text.split("\n") if len(line.strip()) > 20]
        unique = list(dict.fromkeys(lines))[: self.config.max_summary_lines]
        return "\n".join(unique)[: self.config.max_summary_chars]

    # -----------------------
    # Prompt handling
    # -----------------------
    def _load_prompt(self, path: Path) -> Tuple[str, str]:
        if not path.exists():
            logger.debug("Enrichment prompt file {} not found; using built-in prompt", path)
            return DEFAULT_SYSTEM_PROMPT, DEFAULT_USER_TEMPLATE

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Prompt template root must be a mapping/dict: {path}")
        prompt = data.get("enrichment") or {}
        system = str(prompt.get("system", DEFAULT_SYSTEM_PROMPT)).strip()
        user_template = str(prompt.get("user_template", DEFAULT_USER_TEMPLATE))
        return system, user_template

    # -----------------------
    # LLM invocation
    # -----------------------
    @property
    def client(self) -> Any:
        """OpenAI client, created once even when workers ask for it together."""
        with self._client_lock:
            if self._client is None:
                self._client = create_openai_client(
                    api_key=self.config.api_key,
                    base_url=self.config.base_url,
                    timeout=self.config.timeout,
                )
            return self._client

    def _call_llm(self, *, system: str, user: str) -> Tuple[str, int]:
        if self.config.provider != "openai":
            raise EnrichmentError(f"Unsupported LLM provider: {self.config.provider}")

        response = self.client.chat.completions.create(
            model=self.config.model,
            temperature=self.config.temperature,
            timeout=self.config.timeout,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        content = response.choices[0].message.content
        usage = getattr(response, "usage", None)
        tokens = 0
        if usage is not None:
            tokens = (getattr(usage, "prompt_tokens", 0) or 0) + (
                getattr(usage, "completion_tokens", 0) or 0
            )
        return str(content or ""), tokens

    # -----------------------
    # Parsing helpers
    # -----------------------
    def _parse_response(self, response_text: str) -> Dict[str, Any]:
        data = self._extract_json(response_text)
        if not isinstance(data, dict):
            raise EnrichmentError("Enrichment response is not a JSON object")
        return data

    def _extract_json(self, text: str) -> Any:
        if not text:
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        match = re.search(r"(\{.*\}|\[.*\])", text, flags=re.DOTALL)
        if not match:
            return None

        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            return None

    def _merge(self, result: ExtractionResult, payload: Dict[str, Any]) -> ExtractionResult:
        merged = result.model_copy(deep=True)
        merged.enriched = True

        for item in self._items(payload, "people"):
            name = str(item.get("name") or "").strip()
            if name:
                merged.people.append(
                    PersonMention(
                        name=name,
                        confidence=ENRICHMENT_CONFIDENCE,
                        context=str(item.get("context") or ""),
                        role=str(item["role"]) if item.get("role") else None,
                        source="enrichment",
                    )
                )
        for item in self._items(payload, "locations"):
            name = str(item.get("name") or "").strip()
            if name:
                merged.locations.append(
                    LocationMention(
                        name=name,
                        kind=str(item.get("type") or "location"),
                        confidence=ENRICHMENT_CONFIDENCE,
                        source="enrichment",
                    )
                )
        for item in self._items(payload, "organizations"):
            name = str(item.get("name") or "").strip()
            if name:
                merged.organizations.append(
                    OrganizationMention(name=name, confidence=ENRICHMENT_CONFIDENCE, source="enrichment")
                )
        return merged

    @staticmethod
    def _items(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        raw = payload.get(key) or []
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]
