"""Curated name lists used for high-confidence matching."""

from __future__ import annotations

from pathlib import Path
from typing import List

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Gazetteer(BaseModel):
    """Known people, places and airport codes, plus a stoplist of false person names.

    Defaults ship in code; a YAML file may replace any list.
    """

    model_config = ConfigDict(extra="ignore")

    known_people: List[str] = Field(
        default_factory=lambda: [
            "Jeffrey Epstein",
            "Ghislaine Maxwell",
            "Les Wexner",
            "Leslie Wexner",
            "Alan Dershowitz",
            "Prince Andrew",
            "Bill Clinton",
            "Donald Trump",
            "Jean-Luc Brunel",
            "Sarah Kellen",
            "Nadia Marcinkova",
            "Lesley Groff",
            "Virginia Giuffre",
            "Virginia Roberts",
            "Courtney Wild",
            "Annie Farmer",
            "Maria Farmer",
            "Johanna Sjoberg",
            "Haley Robson",
            "Adriana Ross",
            "Eva Andersson Dubin",
            "Glenn Dubin",
            "Mort Zuckerman",
            "Ehud Barak",
            "Bill Richardson",
            "George Mitchell",
            "Marvin Minsky",
            "Stephen Hawking",
            "Kevin Spacey",
            "Chris Tucker",
            "Naomi Campbell",
            "Heidi Klum",
        ]
    )
    known_locations: List[str] = Field(
        default_factory=lambda: [
            "Little St. James",
            "Little Saint James",
            "Epstein Island",
            "Zorro Ranch",
            "New Mexico Ranch",
            "Palm Beach",
            "358 El Brillo Way",
            "9 East 71st Street",
            "New York Mansion",
            "Paris Apartment",
            "Avenue Foch",
            "Teterboro",
            "LaGuardia",
            "Miami",
            "Columbus",
            "Santa Fe",
        ]
    )
    airport_codes: List[str] = Field(
        default_factory=lambda: [
            "TEB", "JFK", "LGA", "MIA", "PBI", "SJU", "STT", "EIS", "SAF", "ABQ",
            "CMH", "BED", "HPN", "FLL", "MCO", "ATL", "LAX", "SFO", "ORD", "DFW",
            "LHR", "CDG", "FCO", "NRT", "HND", "DXB", "SIN", "HKG", "SYD", "AKL",
        ]
    )
    person_stoplist: List[str] = Field(
        default_factory=lambda: [
            "the court",
            "new york",
            "united states",
            "los angeles",
            "san francisco",
            "the defendant",
            "the plaintiff",
            "your honor",
            "the witness",
            "page number",
            "exhibit number",
            "case number",
            "file number",
            "palm beach",
            "santa fe",
        ]
    )

    @field_validator("airport_codes")
    @classmethod
    def _upper_codes(cls, value: List[str]) -> List[str]:
        return [code.strip().upper() for code in value if code.strip()]

    @field_validator("person_stoplist")
    @classmethod
    def _lower_stoplist(cls, value: List[str]) -> List[str]:
        return [phrase.strip().lower() for phrase in value if phrase.strip()]

    @classmethod
    def from_yaml(cls, path: str | Path | None) -> Gazetteer:
        """Load a gazetteer, falling back to the built-in lists for missing keys."""
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Gazetteer file not found: {path}")

        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError("Gazetteer file must be a mapping/dict.")

        gazetteer = cls(**{k: v for k, v in loaded.items() if k in cls.model_fields})
        logger.info(
            "Loaded gazetteer from {} ({} people, {} locations, {} airport codes)",
            path,
            len(gazetteer.known_people),
            len(gazetteer.known_locations),
            len(gazetteer.airport_codes),
        )
        return gazetteer

    def is_airport(self, code: str) -> bool:
        return code.upper() in set(self.airport_codes)

    def is_stop_phrase(self, name: str) -> bool:
        return name.strip().lower() in set(self.person_stoplist)


def guess_location_kind(name: str) -> str:
    lowered = name.lower()
    if "island" in lowered or "st." in lowered or "saint" in lowered:
        return "island"
    if "ranch" in lowered:
        return "property"
    if "mansion" in lowered or "apartment" in lowered:
        return "residence"
    if any(token in lowered for token in ("street", "avenue", " way")):
        return "address"
    return "location"
