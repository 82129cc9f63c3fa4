"""
Overpass QL query construction

Translates element filters plus a bounding box into Overpass QL text:

    [out:json][timeout:20];(node["amenity"="toilets"](s,w,n,e););out body;>;out skel qt;

The fully formatted text (directives included) is what the client sends
and what the response cache is keyed by.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..config import OutputFormat
from ..exceptions import QueryError
from .bounding_box import BoundingBox


# Appended to every filter group: full bodies, then recurse down and print skeletons
OUTPUT_STATEMENTS = "out body;>;out skel qt;"


class ElementKind(str, Enum):
    """OSM element kinds a filter can select"""
    NODE = "node"
    WAY = "way"
    RELATION = "relation"


@dataclass(frozen=True)
class QueryTimeout:
    """
    Server and client side timeouts

    The client timeout must exceed the server timeout so the server gets
    the chance to answer (or report its own timeout) before we give up.
    """
    server_timeout: int = 20
    client_timeout: float = 22.0

    def __post_init__(self):
        if self.server_timeout <= 0:
            raise QueryError(f"Server timeout must be positive, got {self.server_timeout}")
        if self.client_timeout <= self.server_timeout:
            raise QueryError(
                f"Client timeout {self.client_timeout}s must exceed server timeout {self.server_timeout}s"
            )


@dataclass(frozen=True)
class ElementFilter:
    """
    One element selector: a kind plus tag constraints

    A tag value of None matches any element carrying the key.
    """
    kind: ElementKind
    tags: Optional[Dict[str, Optional[str]]] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", ElementKind(self.kind))
        if self.tags is not None:
            object.__setattr__(self, "tags", dict(self.tags))

    def __hash__(self):
        tags = tuple(sorted((self.tags or {}).items(), key=lambda kv: kv[0]))
        return hash((self.kind, tags))

    @classmethod
    def node(cls, tags: Optional[Mapping[str, Optional[str]]] = None) -> "ElementFilter":
        return cls(ElementKind.NODE, tags)

    @classmethod
    def way(cls, tags: Optional[Mapping[str, Optional[str]]] = None) -> "ElementFilter":
        return cls(ElementKind.WAY, tags)

    @classmethod
    def relation(cls, tags: Optional[Mapping[str, Optional[str]]] = None) -> "ElementFilter":
        return cls(ElementKind.RELATION, tags)

    # Node helpers

    @classmethod
    def amenity(cls, amenity: str) -> "ElementFilter":
        return cls.node({"amenity": amenity})

    @classmethod
    def shop(cls, shop: str) -> "ElementFilter":
        return cls.node({"shop": shop})

    @classmethod
    def leisure(cls, leisure: str) -> "ElementFilter":
        return cls.node({"leisure": leisure})

    @classmethod
    def tourism(cls, tourism: str) -> "ElementFilter":
        return cls.node({"tourism": tourism})

    # Way helpers

    @classmethod
    def highway(cls, highway: str) -> "ElementFilter":
        return cls.way({"highway": highway})

    @classmethod
    def building(cls, building: str) -> "ElementFilter":
        return cls.way({"building": building})

    @classmethod
    def landuse(cls, landuse: str) -> "ElementFilter":
        return cls.way({"landuse": landuse})

    @classmethod
    def natural(cls, natural: str) -> "ElementFilter":
        return cls.way({"natural": natural})

    @classmethod
    def water(cls, water: str) -> "ElementFilter":
        return cls.way({"water": water})

    @classmethod
    def custom(cls, kind: str, tags: Mapping[str, Optional[str]]) -> "ElementFilter":
        """Filter for an arbitrary kind name; unknown kinds fall back to node"""
        try:
            element_kind = ElementKind(kind.lower())
        except ValueError:
            element_kind = ElementKind.NODE
        return cls(element_kind, tags)

    def to_overpass(self, bounding_box: BoundingBox) -> str:
        """<kind>[tag filters]<bbox>"""
        tag_filters = "".join(_tag_clause(k, v) for k, v in (self.tags or {}).items())
        return f"{self.kind.value}{tag_filters}{bounding_box.to_overpass()}"


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _tag_clause(key: str, value: Optional[str]) -> str:
    if value is None:
        return f'["{_escape(key)}"]'
    return f'["{_escape(key)}"="{_escape(value)}"]'


def build_query_body(filters: Sequence[ElementFilter], bounding_box: BoundingBox) -> str:
    """Union of filters followed by the standard output statements"""
    if not filters:
        raise QueryError("At least one element filter is required")
    joined = ";".join(f.to_overpass(bounding_box) for f in filters)
    return f"({joined};);{OUTPUT_STATEMENTS}"


def format_query(query_string: str, output_format: OutputFormat, timeout: QueryTimeout) -> str:
    """Prefix a query body with its [out:...][timeout:...] directives"""
    return f"[out:{OutputFormat(output_format).value}][timeout:{timeout.server_timeout}];{query_string}"


class OverpassQuery:
    """
    Immutable Overpass QL query

    Either wraps a raw query body or builds one from element filters and a
    bounding box. formatted_query is computed once at construction and is
    the cache key.
    """

    __slots__ = ("query_string", "formatted_query", "bounding_box", "filters", "output_format", "timeout")

    def __init__(
        self,
        query_string: Optional[str] = None,
        *,
        bounding_box: Optional[BoundingBox] = None,
        filters: Optional[Sequence[ElementFilter]] = None,
        output_format: Union[OutputFormat, str] = OutputFormat.JSON,
        timeout: Optional[QueryTimeout] = None,
    ):
        if query_string is None and filters is None:
            raise QueryError("Either a query string or element filters are required")
        if query_string is not None and filters is not None:
            raise QueryError("Pass either a query string or element filters, not both")

        try:
            fmt = OutputFormat(output_format)
        except ValueError as e:
            raise QueryError(f"Unsupported output format {output_format!r}") from e
        timeout = timeout if timeout is not None else QueryTimeout()

        if filters is not None:
            if bounding_box is None:
                raise QueryError("Element filters need a bounding box")
            filters = tuple(filters)
            query_string = build_query_body(filters, bounding_box)
        elif not query_string.strip():
            raise QueryError("Query string is empty")

        object.__setattr__(self, "query_string", query_string)
        object.__setattr__(self, "bounding_box", bounding_box)
        object.__setattr__(self, "filters", filters)
        object.__setattr__(self, "output_format", fmt)
        object.__setattr__(self, "timeout", timeout)
        object.__setattr__(self, "formatted_query", format_query(query_string, fmt, timeout))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other):
        if not isinstance(other, OverpassQuery):
            return NotImplemented
        return self.formatted_query == other.formatted_query

    def __hash__(self):
        return hash(self.formatted_query)

    def __repr__(self) -> str:
        return f"OverpassQuery({self.formatted_query!r})"

    def __str__(self) -> str:
        return f"OverpassQuery: {self.formatted_query}"

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    @classmethod
    def from_filters(
        cls,
        bounding_box: BoundingBox,
        filters: List[ElementFilter],
        output_format: Union[OutputFormat, str] = OutputFormat.JSON,
        timeout: Optional[QueryTimeout] = None,
    ) -> "OverpassQuery":
        return cls(bounding_box=bounding_box, filters=filters, output_format=output_format, timeout=timeout)

    @classmethod
    def toilets(cls, bounding_box: BoundingBox, output_format=OutputFormat.JSON, timeout=None) -> "OverpassQuery":
        return cls.from_filters(bounding_box, [ElementFilter.amenity("toilets")], output_format, timeout)

    @classmethod
    def restaurants(cls, bounding_box: BoundingBox, output_format=OutputFormat.JSON, timeout=None) -> "OverpassQuery":
        return cls.from_filters(bounding_box, [ElementFilter.amenity("restaurant")], output_format, timeout)

    @classmethod
    def cafes(cls, bounding_box: BoundingBox, output_format=OutputFormat.JSON, timeout=None) -> "OverpassQuery":
        return cls.from_filters(bounding_box, [ElementFilter.amenity("cafe")], output_format, timeout)

    @classmethod
    def hotels(cls, bounding_box: BoundingBox, output_format=OutputFormat.JSON, timeout=None) -> "OverpassQuery":
        return cls.from_filters(bounding_box, [ElementFilter.tourism("hotel")], output_format, timeout)

    @classmethod
    def shops(
        cls,
        bounding_box: BoundingBox,
        shop_type: Optional[str] = None,
        output_format=OutputFormat.JSON,
        timeout=None,
    ) -> "OverpassQuery":
        """
        Shops of one type, or any node carrying a shop tag when shop_type is None
        """
        if shop_type is not None:
            return cls.from_filters(bounding_box, [ElementFilter.shop(shop_type)], output_format, timeout)
        return cls.from_filters(bounding_box, [ElementFilter.node({"shop": None})], output_format, timeout)

    @classmethod
    def parks(cls, bounding_box: BoundingBox, output_format=OutputFormat.JSON, timeout=None) -> "OverpassQuery":
        return cls.from_filters(bounding_box, [ElementFilter.leisure("park")], output_format, timeout)
