"""
Element filtering, grouping and sorting helpers

Operates on decoded Elements only; no I/O.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from ..models import Address, Element
from ..query.bounding_box import Coordinate
from .geometry_utils import GeoUtils


UNKNOWN_ADDRESS = "Unknown address"


class ElementUtils:
    """Collection helpers over Overpass elements"""

    @staticmethod
    def filter_within(elements: Iterable[Element], max_distance: float, center: Coordinate) -> List[Element]:
        """Elements within max_distance meters of center; elements without a coordinate are dropped"""
        result = []
        for element in elements:
            coordinate = element.coordinate
            if coordinate is None:
                continue
            if GeoUtils.distance(center, coordinate) <= max_distance:
                result.append(element)
        return result

    @staticmethod
    def sort_by_distance(elements: Iterable[Element], center: Coordinate) -> List[Element]:
        """
        Nearest first

        Stable; elements without a coordinate keep their relative order and
        go after every located element.
        """
        def sort_key(element: Element):
            coordinate = element.coordinate
            if coordinate is None:
                return (1, 0.0)
            return (0, GeoUtils.distance(center, coordinate))

        return sorted(elements, key=sort_key)

    @staticmethod
    def group_by(elements: Iterable[Element], tag_key: str) -> Dict[str, List[Element]]:
        """tag value -> elements carrying it; elements without the tag are left out"""
        grouped: Dict[str, List[Element]] = {}
        for element in elements:
            value = element.get_tag(tag_key)
            if value is None:
                continue
            grouped.setdefault(value, []).append(element)
        return grouped

    @staticmethod
    def unique_tag_values(elements: Iterable[Element], tag_key: str) -> List[str]:
        values = {e.get_tag(tag_key) for e in elements}
        values.discard(None)
        return sorted(values)

    @staticmethod
    def find_matching_all_tags(elements: Iterable[Element], tags: Mapping[str, str]) -> List[Element]:
        """Elements carrying every key/value pair in tags"""
        return [
            e for e in elements
            if all(e.has_tag(key, value) for key, value in tags.items())
        ]

    @staticmethod
    def find_matching_any_of_tag_values(
        elements: Iterable[Element],
        tag_key: str,
        candidate_values: Iterable[str],
    ) -> List[Element]:
        """Elements whose tag_key value is one of candidate_values"""
        candidates = set(candidate_values)
        return [e for e in elements if e.get_tag(tag_key) in candidates]

    @staticmethod
    def extract_address(element: Element) -> Optional[Address]:
        """Structured address from addr:* tags, None when there are none"""
        return Address.from_tags(element.tags)

    @staticmethod
    def format_address(address: Address) -> str:
        return address.full_address or UNKNOWN_ADDRESS
