"""Shared data models for extraction modules."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class PersonMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    confidence: float = 0.0
    context: str = ""
    role: str | None = None
    source: str = "pattern"


class LocationMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    kind: str = "location"
    confidence: float = 0.0
    source: str = "pattern"


class OrganizationMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    confidence: float = 0.0
    source: str = "pattern"


class DateMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: str
    raw: str
    confidence: float = 0.0


class FlightMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    origin: str
    destination: str
    date: str = "unknown"
    passengers: List[str] = Field(default_factory=list)
    confidence: float = 0.0

    @property
    def label(self) -> str:
        return f"{self.origin} → {self.destination}"


class PhoneMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    number: str
    confidence: float = 0.0


class EmailMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    confidence: float = 0.0


class MoneyMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: str
    value: float
    raw: str
    confidence: float = 0.0


class AddressMention(BaseModel):
    model_config = ConfigDict(extra="forbid")

    address: str
    confidence: float = 0.0


class ExtractionResult(BaseModel):
    """Everything extracted from one document's text."""

    model_config = ConfigDict(extra="forbid")

    people: List[PersonMention] = Field(default_factory=list)
    locations: List[LocationMention] = Field(default_factory=list)
    organizations: List[OrganizationMention] = Field(default_factory=list)
    dates: List[DateMention] = Field(default_factory=list)
    flights: List[FlightMention] = Field(default_factory=list)
    phones: List[PhoneMention] = Field(default_factory=list)
    emails: List[EmailMention] = Field(default_factory=list)
    money: List[MoneyMention] = Field(default_factory=list)
    addresses: List[AddressMention] = Field(default_factory=list)
    enriched: bool = False

    def core_entity_count(self) -> int:
        """People + locations + dates + flights, the count used by the delegation gate."""
        return len(self.people) + len(self.locations) + len(self.dates) + len(self.flights)

    def counts(self) -> Dict[str, int]:
        return {
            "people": len(self.people),
            "locations": len(self.locations),
            "organizations": len(self.organizations),
            "dates": len(self.dates),
            "flights": len(self.flights),
            "phones": len(self.phones),
            "emails": len(self.emails),
            "money": len(self.money),
            "addresses": len(self.addresses),
        }
