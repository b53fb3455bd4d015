from __future__ import annotations

import pytest

from corpusgraph.extraction.gazetteer import Gazetteer
from corpusgraph.extraction.pattern_extractor import PatternExtractor, needs_external_analysis
from corpusgraph.utils.config import ExtractionConfig


@pytest.fixture
def extractor() -> PatternExtractor:
    return PatternExtractor(ExtractionConfig())


def test_gazetteer_people_take_precedence(extractor: PatternExtractor) -> None:
    text = "Flight logs show Jeffrey Epstein and Ghislaine Maxwell departed together."

    result = extractor.extract(text)

    assert [p.name for p in result.people] == ["Jeffrey Epstein", "Ghislaine Maxwell"]
    assert all(p.source == "gazetteer" for p in result.people)
    assert all(p.confidence == 0.95 for p in result.people)
    assert "departed" in result.people[1].context


def test_gazetteer_match_is_case_insensitive() -> None:
    gazetteer = Gazetteer(
        known_people=["Alice Example"],
        known_locations=[],
        airport_codes=["AAA"],
        person_stoplist=[],
    )
    extractor = PatternExtractor(gazetteer=gazetteer)

    result = extractor.extract("a note mentioning alice example in lower case")

    assert [p.name for p in result.people] == ["Alice Example"]


def test_stoplist_phrases_are_not_people(extractor: PatternExtractor) -> None:
    result = extractor.extract("The hearing in New York was adjourned. Your Honor said so.")

    assert result.people == []


def test_pattern_person_is_deduplicated(extractor: PatternExtractor) -> None:
    text = "Mary Smith testified and later Mary Smith returned."

    result = extractor.extract(text)

    names = [p.name for p in result.people]
    assert names.count("Mary Smith") == 1
    person = next(p for p in result.people if p.name == "Mary Smith")
    assert person.source == "pattern"
    assert person.confidence == 0.7


def test_dates_are_normalized(extractor: PatternExtractor) -> None:
    text = "Meeting on March 3, 2008 and again on 03/04/2008. Filed 2008-03-05."

    result = extractor.extract(text)

    by_raw = {d.raw: d.date for d in result.dates}
    assert by_raw == {
        "March 3, 2008": "2008-03-03",
        "03/04/2008": "2008-03-04",
        "2008-03-05": "2008-03-05",
    }


def test_impossible_dates_are_dropped(extractor: PatternExtractor) -> None:
    result = extractor.extract("Dated 02/30/2008.")

    assert result.dates == []


def test_money_multiplier(extractor: PatternExtractor) -> None:
    result = extractor.extract("The payment of $2.5 million was wired.")

    assert len(result.money) == 1
    assert result.money[0].amount == "$2,500,000.00"
    assert result.money[0].value == 2_500_000


def test_flight_requires_known_airport_and_picks_nearby_date(extractor: PatternExtractor) -> None:
    text = "On 07/04/2002 the plane flew TEB to PBI with passengers."

    result = extractor.extract(text)

    assert len(result.flights) == 1
    flight = result.flights[0]
    assert (flight.origin, flight.destination, flight.date) == ("TEB", "PBI", "2002-07-04")
    airports = {loc.name for loc in result.locations if loc.kind == "airport"}
    assert airports == {"TEB", "PBI"}


def test_flight_without_date_is_unknown(extractor: PatternExtractor) -> None:
    result = extractor.extract("Route JFK -> MIA was logged.")

    assert [(f.origin, f.destination, f.date) for f in result.flights] == [("JFK", "MIA", "unknown")]


def test_phones_and_emails_are_deduplicated(extractor: PatternExtractor) -> None:
    text = (
        "Call 212-555-0100 or (212) 555-0100, "
        "email Jane.Doe@Example.com or jane.doe@example.com."
    )

    result = extractor.extract(text)

    assert len(result.phones) == 1
    assert [e.email for e in result.emails] == ["jane.doe@example.com"]


def test_city_state_location(extractor: PatternExtractor) -> None:
    result = extractor.extract("She moved to Palm Beach, FL in 2005.")

    kinds = {loc.name: loc.kind for loc in result.locations}
    assert kinds["Palm Beach, FL"] == "city"
    assert "Palm Beach" in kinds


def test_caps_limit_people() -> None:
    extractor = PatternExtractor(ExtractionConfig(max_people=1))

    result = extractor.extract("Jeffrey Epstein met Ghislaine Maxwell.")

    assert len(result.people) == 1


def test_empty_text_returns_empty_result(extractor: PatternExtractor) -> None:
    result = extractor.extract("")

    assert result.core_entity_count() == 0


@pytest.mark.parametrize(
    ("found", "length", "expected"),
    [
        (11, 10_000, False),
        (0, 400, False),
        (2, 6_000, True),
        (5, 6_000, False),
        (2, 3_000, False),
    ],
)
def test_needs_external_analysis(found: int, length: int, expected: bool) -> None:
    assert needs_external_analysis(found, length) is expected
