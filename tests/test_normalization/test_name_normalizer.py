from __future__ import annotations

import pytest

from corpusgraph.normalization.name_normalizer import NameNormalizer
from corpusgraph.schemas import EntityType


@pytest.fixture
def normalizer() -> NameNormalizer:
    return NameNormalizer()


def test_person_keys_have_no_prefix(normalizer: NameNormalizer) -> None:
    assert normalizer.normalize("Jeffrey Epstein", EntityType.PERSON) == "jeffrey_epstein"


def test_keys_are_namespaced_by_type(normalizer: NameNormalizer) -> None:
    assert normalizer.normalize("Jeffrey Epstein", EntityType.LOCATION) == "loc_jeffrey_epstein"
    assert normalizer.normalize("Acme Corp.", "organization") == "org_acme_corp"
    assert normalizer.normalize("2008-03-04", EntityType.DATE) == "date_20080304"


def test_punctuation_and_whitespace_are_collapsed(normalizer: NameNormalizer) -> None:
    assert normalizer.normalize("  Jean-Luc   Brunel ", EntityType.PERSON) == "jeanluc_brunel"
    assert normalizer.normalize_name("Little St. James") == "little st james"


def test_empty_names_produce_empty_keys(normalizer: NameNormalizer) -> None:
    assert normalizer.normalize("", EntityType.PERSON) == ""
    assert normalizer.normalize(None, EntityType.PERSON) == ""
    assert normalizer.normalize("...", EntityType.LOCATION) == ""


def test_flight_key(normalizer: NameNormalizer) -> None:
    assert normalizer.flight_key("TEB", "PBI", "2002-07-04") == "flight_teb_pbi_20020704"
    assert normalizer.flight_key("TEB", "PBI", None) == "flight_teb_pbi_unknown"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Loc Nguyen", "person_loc_nguyen"),
        ("Date Palmer", "person_date_palmer"),
        ("Person Smith", "person_person_smith"),
        ("Locke Nguyen", "locke_nguyen"),
    ],
)
def test_person_keys_never_take_another_type_prefix(
    normalizer: NameNormalizer, raw: str, expected: str
) -> None:
    assert normalizer.normalize(raw, EntityType.PERSON) == expected
    assert normalizer.normalize("Nguyen", EntityType.LOCATION) != normalizer.normalize(
        "Loc Nguyen", EntityType.PERSON
    )
