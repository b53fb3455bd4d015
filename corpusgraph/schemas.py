"""Shared enumerations for entity and discovery records."""

from enum import Enum


class EntityType(str, Enum):
    PERSON = "person"
    LOCATION = "location"
    ORGANIZATION = "organization"
    DATE = "date"
    FLIGHT = "flight"


class DiscoveryType(str, Enum):
    NETWORK_CLUSTER = "network_cluster"
    GEOGRAPHIC_PATTERN = "geographic_pattern"
    STRONG_CONNECTION = "strong_connection"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}
