"""
Catalog entities as seen by the globe.

This module implements:
- The GeoEntity record (camelCase catalog keys accepted)
- Risk / type filters and the research network toggle
- Globe point styling by risk level
"""

from enum import Enum
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

RESEARCH_CATEGORY = "Research Network"
ALL = "all"


class RiskLevel(str, Enum):
    """Catalog risk levels."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class EntityType(str, Enum):
    """Catalog entity types."""

    PRIVATE = "Private"
    GOVERNMENT = "Government"
    PUBLIC = "Public"
    MILITARY = "Military"


class GeoEntity(BaseModel):
    """A catalog entity with a location."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: Optional[str] = Field(None, description="Entity id")
    name: str = Field("", description="Display name")
    category: Optional[str] = Field(None, description="State, Vendor, Research Network, ...")
    country: Optional[str] = Field(None, description="Country of the headquarters")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")
    description: Optional[str] = Field(None, description="Free text description")
    type: Optional[EntityType] = Field(None, description="Ownership type")
    headquarters: Optional[str] = Field(None, description="Headquarters location")
    founded: Optional[str] = Field(None, description="Founding year")
    employees: Optional[str] = Field(None, description="Headcount range")
    risk_level: Optional[RiskLevel] = Field(None, alias="riskLevel", description="Risk level")
    tags: List[str] = Field(default_factory=list, description="Free form tags")
    source_links: List[str] = Field(default_factory=list, alias="sourceLinks", description="Source URLs")
    logo: Optional[str] = Field(None, description="Logo URL")

    @property
    def is_research(self) -> bool:
        return self.category == RESEARCH_CATEGORY


class GlobePoint(BaseModel):
    """A styled marker for the globe's point layer."""

    lat: float
    lng: float
    size: float
    color: str
    entity_id: Optional[str] = None
    label: str = ""


def split_research_entities(entities: Sequence[GeoEntity]) -> Tuple[List[GeoEntity], List[GeoEntity]]:
    """Return (regular, research) entities."""
    regular = [e for e in entities if not e.is_research]
    research = [e for e in entities if e.is_research]
    return regular, research


def filter_entities(
    entities: Sequence[GeoEntity],
    risk_level: str = ALL,
    entity_type: str = ALL,
    include_research: bool = True,
) -> List[GeoEntity]:
    """
    Select the entities shown on the globe.

    Risk and type filters apply to regular entities only. Research network
    entities bypass them and are appended after the regular ones when
    ``include_research`` is set.
    """
    regular, research = split_research_entities(entities)
    selected = [
        e for e in regular
        if (risk_level == ALL or e.risk_level == risk_level)
        and (entity_type == ALL or e.type == entity_type)
    ]
    if include_research:
        selected.extend(research)
    return selected


def point_size(entity: GeoEntity) -> float:
    if entity.risk_level == RiskLevel.CRITICAL:
        return 0.6
    if entity.risk_level == RiskLevel.HIGH:
        return 0.5
    return 0.4


def point_color(entity: GeoEntity) -> str:
    if entity.is_research:
        return "#00d4ff"
    return {
        RiskLevel.CRITICAL.value: "#ff006e",
        RiskLevel.HIGH.value: "#ff6b35",
        RiskLevel.MEDIUM.value: "#f7b801",
    }.get(entity.risk_level, "#00ff00")


def to_globe_points(entities: Sequence[GeoEntity]) -> List[GlobePoint]:
    return [
        GlobePoint(
            lat=e.latitude,
            lng=e.longitude,
            size=point_size(e),
            color=point_color(e),
            entity_id=e.id,
            label=e.name,
        )
        for e in entities
    ]


def count_critical(entities: Sequence[GeoEntity]) -> int:
    return sum(1 for e in entities if e.risk_level == RiskLevel.CRITICAL)
