"""
Pydantic models for Overpass API responses
Matches the JSON emitted by [out:json]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .query.bounding_box import BoundingBox, Coordinate


ADDRESS_PREFIX = "addr:"


# ============================================================
# Element Models
# ============================================================

class ElementType(str, Enum):
    NODE = "node"
    WAY = "way"
    RELATION = "relation"


class SearchType(str, Enum):
    """Kinds of searches a SearchSession runs"""
    TOILETS = "toilets"
    RESTAURANTS = "restaurants"
    CAFES = "cafes"
    HOTELS = "hotels"
    SHOPS = "shops"
    PARKS = "parks"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Member(BaseModel):
    """Member reference of a way or relation"""
    model_config = ConfigDict(frozen=True)

    type: str
    ref: int
    role: Optional[str] = None


class GeometryPoint(BaseModel):
    """One vertex of an 'out geom' geometry"""
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)


@dataclass(frozen=True)
class Address:
    """Structured address assembled from addr:* tags"""
    house_number: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_fields(cls, fields: Dict[str, str]) -> "Address":
        """Build from addr:* tags with the prefix already stripped"""
        return cls(
            house_number=fields.get("housenumber"),
            street=fields.get("street"),
            city=fields.get("city"),
            state=fields.get("state"),
            postcode=fields.get("postcode"),
            country=fields.get("country"),
        )

    @classmethod
    def from_tags(cls, tags: Dict[str, str]) -> Optional["Address"]:
        """None when no addr:* tag is present"""
        fields = {
            key[len(ADDRESS_PREFIX):]: value
            for key, value in tags.items()
            if key.startswith(ADDRESS_PREFIX)
        }
        if not fields:
            return None
        return cls.from_fields(fields)

    @property
    def parts(self) -> List[str]:
        values = [self.house_number, self.street, self.city, self.state, self.postcode, self.country]
        return [v for v in values if v]

    @property
    def full_address(self) -> Optional[str]:
        """Present fields joined with ", ", or None when every field is absent"""
        parts = self.parts
        return ", ".join(parts) if parts else None


class FrozenTags(dict):
    """Read-only tag map; decoded responses are shared through the cache"""

    def _readonly(self, *args, **kwargs):
        raise TypeError("Element tags are read-only")

    __setitem__ = _readonly
    __delitem__ = _readonly
    __ior__ = _readonly
    clear = _readonly
    pop = _readonly
    popitem = _readonly
    setdefault = _readonly
    update = _readonly

    def __reduce__(self):
        return (FrozenTags, (dict(self),))


class Element(BaseModel):
    """Represents one OSM node, way or relation"""
    model_config = ConfigDict(frozen=True)

    id: int
    type: ElementType
    lat: Optional[float] = None
    lon: Optional[float] = None
    tags: Dict[str, str] = Field(default_factory=dict, validate_default=True)
    members: Optional[Tuple[Member, ...]] = None
    nodes: Optional[Tuple[int, ...]] = None
    geometry: Optional[Tuple[GeometryPoint, ...]] = None

    @field_validator("tags", mode="after")
    @classmethod
    def _freeze_tags(cls, value: Dict[str, str]) -> "FrozenTags":
        return FrozenTags(value)

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.lat is None or self.lon is None:
            return None
        return Coordinate(self.lat, self.lon)

    # Common tags

    @property
    def name(self) -> Optional[str]:
        return self.tags.get("name")

    @property
    def description(self) -> Optional[str]:
        return self.tags.get("description")

    @property
    def amenity(self) -> Optional[str]:
        return self.tags.get("amenity")

    @property
    def shop(self) -> Optional[str]:
        return self.tags.get("shop")

    @property
    def leisure(self) -> Optional[str]:
        return self.tags.get("leisure")

    @property
    def tourism(self) -> Optional[str]:
        return self.tags.get("tourism")

    @property
    def highway(self) -> Optional[str]:
        return self.tags.get("highway")

    @property
    def building(self) -> Optional[str]:
        return self.tags.get("building")

    @property
    def landuse(self) -> Optional[str]:
        return self.tags.get("landuse")

    @property
    def natural(self) -> Optional[str]:
        return self.tags.get("natural")

    @property
    def water(self) -> Optional[str]:
        return self.tags.get("water")

    @property
    def address(self) -> Optional[Address]:
        return Address.from_tags(self.tags)

    def get_tag(self, key: str) -> Optional[str]:
        return self.tags.get(key)

    def has_tag(self, key: str, value: Optional[str] = None) -> bool:
        """Key present, and equal to value when one is given"""
        if key not in self.tags:
            return False
        return value is None or self.tags[key] == value

    def is_within(self, bounding_box: BoundingBox) -> bool:
        coordinate = self.coordinate
        if coordinate is None:
            return False
        return bounding_box.contains(coordinate)

    def __str__(self) -> str:
        coord = f" at ({self.lat}, {self.lon})" if self.coordinate else ""
        name = f" ({self.name})" if self.name else ""
        return f"{self.type.value} {self.id}{coord}{name}"


# ============================================================
# Response Models
# ============================================================

class OSM3S(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp_osm_base: Optional[str] = None
    copyright: Optional[str] = None


def normalize_version(value: Any) -> Optional[str]:
    """
    Render the version field as text

    Strings pass through, integers and integral floats render without a
    fraction (1.0 -> "1"), other floats in decimal form (0.6 -> "0.6").
    Anything else is treated as absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return None


class OverpassResponse(BaseModel):
    """Decoded Overpass response: ordered elements plus server metadata"""
    model_config = ConfigDict(frozen=True)

    elements: Tuple[Element, ...]
    remark: Optional[str] = None
    copyright: Optional[str] = None
    generator: Optional[str] = None
    version: Optional[str] = None
    osm3s: Optional[OSM3S] = None

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, value: Any) -> Optional[str]:
        return normalize_version(value)

    @property
    def is_empty(self) -> bool:
        return not self.elements

    def elements_of_type(self, element_type: ElementType) -> List[Element]:
        element_type = ElementType(element_type)
        return [e for e in self.elements if e.type == element_type]

    @property
    def nodes(self) -> List[Element]:
        return self.elements_of_type(ElementType.NODE)

    @property
    def ways(self) -> List[Element]:
        return self.elements_of_type(ElementType.WAY)

    @property
    def relations(self) -> List[Element]:
        return self.elements_of_type(ElementType.RELATION)

    def elements_with_tag(self, key: str, value: Optional[str] = None) -> List[Element]:
        return [e for e in self.elements if e.has_tag(key, value)]

    @property
    def named_elements(self) -> List[Element]:
        return [e for e in self.elements if e.name is not None]

    @property
    def described_elements(self) -> List[Element]:
        return [e for e in self.elements if e.description is not None]

    @property
    def addressed_elements(self) -> List[Element]:
        return [e for e in self.elements if e.address is not None]

    def elements_within(self, bounding_box: BoundingBox) -> List[Element]:
        return [e for e in self.elements if e.is_within(bounding_box)]

    def elements_within_radius(self, radius_m: float, center: Coordinate) -> List[Element]:
        from .analysis.element_utils import ElementUtils
        return ElementUtils.filter_within(self.elements, radius_m, center)

    def sorted_by_distance(self, center: Coordinate) -> List[Element]:
        from .analysis.element_utils import ElementUtils
        return ElementUtils.sort_by_distance(self.elements, center)

    def summary(self) -> str:
        return (
            f"OverpassResponse({len(self.elements)} elements: {len(self.nodes)} nodes, "
            f"{len(self.ways)} ways, {len(self.relations)} relations)"
        )
