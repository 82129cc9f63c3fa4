"""
Tests for Overpass QL query construction
"""

import pytest

from overpasskit.config import OutputFormat
from overpasskit.exceptions import QueryError
from overpasskit.query import BoundingBox, ElementFilter, ElementKind, OverpassQuery, QueryTimeout


UNIT_BOX = BoundingBox.create(0, 0, 1, 1)


def test_toilets_query_text():
    query = OverpassQuery.from_filters(UNIT_BOX, [ElementFilter.amenity("toilets")])
    assert query.formatted_query == (
        '[out:json][timeout:20];(node["amenity"="toilets"](0,0,1,1););out body;>;out skel qt;'
    )


def test_preset_matches_manual_filter():
    assert OverpassQuery.toilets(UNIT_BOX) == OverpassQuery.from_filters(UNIT_BOX, [ElementFilter.amenity("toilets")])


def test_filters_are_joined_into_one_union():
    query = OverpassQuery.from_filters(
        UNIT_BOX,
        [ElementFilter.amenity("cafe"), ElementFilter.highway("footway")],
    )
    assert query.query_string == (
        '(node["amenity"="cafe"](0,0,1,1);way["highway"="footway"](0,0,1,1););out body;>;out skel qt;'
    )


@pytest.mark.parametrize(
    "factory,clause",
    [
        (OverpassQuery.restaurants, 'node["amenity"="restaurant"]'),
        (OverpassQuery.cafes, 'node["amenity"="cafe"]'),
        (OverpassQuery.hotels, 'node["tourism"="hotel"]'),
        (OverpassQuery.parks, 'node["leisure"="park"]'),
    ],
)
def test_presets(factory, clause):
    assert f"({clause}(0,0,1,1););" in factory(UNIT_BOX).query_string


def test_shops_with_and_without_type():
    assert 'node["shop"="bakery"](0,0,1,1)' in OverpassQuery.shops(UNIT_BOX, "bakery").query_string
    assert 'node["shop"](0,0,1,1)' in OverpassQuery.shops(UNIT_BOX).query_string


def test_multiple_tags_render_in_insertion_order():
    element_filter = ElementFilter.node({"amenity": "cafe", "cuisine": "coffee_shop"})
    assert element_filter.to_overpass(UNIT_BOX) == 'node["amenity"="cafe"]["cuisine"="coffee_shop"](0,0,1,1)'


def test_filter_without_tags():
    assert ElementFilter.relation().to_overpass(UNIT_BOX) == "relation(0,0,1,1)"


def test_quotes_in_tag_values_are_escaped():
    element_filter = ElementFilter.node({"name": 'The "Bar"'})
    assert element_filter.to_overpass(UNIT_BOX) == 'node["name"="The \\"Bar\\""](0,0,1,1)'


def test_way_helpers_select_ways():
    for helper in (ElementFilter.building, ElementFilter.landuse, ElementFilter.natural, ElementFilter.water):
        assert helper("x").kind == ElementKind.WAY
    for helper in (ElementFilter.amenity, ElementFilter.shop, ElementFilter.leisure, ElementFilter.tourism):
        assert helper("x").kind == ElementKind.NODE


def test_custom_filter_kind_falls_back_to_node():
    assert ElementFilter.custom("Way", {"a": "b"}).kind == ElementKind.WAY
    assert ElementFilter.custom("area", {"a": "b"}).kind == ElementKind.NODE


def test_equal_filters_hash_equal():
    a = ElementFilter.node({"amenity": "cafe", "wifi": None})
    b = ElementFilter.node({"wifi": None, "amenity": "cafe"})
    assert a == b
    assert len({a, b}) == 1


def test_raw_query_gets_directives():
    query = OverpassQuery('node["amenity"="bench"](0,0,1,1);out;')
    assert query.formatted_query == '[out:json][timeout:20];node["amenity"="bench"](0,0,1,1);out;'


def test_output_format_and_timeout_directives():
    query = OverpassQuery("out;", output_format=OutputFormat.XML, timeout=QueryTimeout(60, 65))
    assert query.formatted_query == "[out:xml][timeout:60];out;"
    assert OverpassQuery("out;", output_format="csv").formatted_query.startswith("[out:csv]")


def test_unsupported_output_format():
    with pytest.raises(QueryError):
        OverpassQuery("out;", output_format="yaml")


@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"query_string": "   "},
        {"filters": []},
        {"filters": [ElementFilter.amenity("cafe")]},
        {"query_string": "out;", "filters": [ElementFilter.amenity("cafe")], "bounding_box": UNIT_BOX},
    ],
)
def test_invalid_query_construction(kwargs):
    with pytest.raises(QueryError):
        OverpassQuery(**kwargs)


@pytest.mark.parametrize("server,client", [(0, 5), (20, 20), (30, 25)])
def test_client_timeout_must_exceed_server_timeout(server, client):
    with pytest.raises(QueryError):
        QueryTimeout(server, client)


def test_queries_are_immutable_values():
    a = OverpassQuery.cafes(UNIT_BOX)
    b = OverpassQuery.cafes(UNIT_BOX)
    assert a == b
    assert hash(a) == hash(b)
    assert a != OverpassQuery.cafes(BoundingBox.create(0, 0, 2, 2))
    with pytest.raises(AttributeError):
        a.query_string = "out;"


def test_query_keeps_its_inputs():
    query = OverpassQuery.toilets(UNIT_BOX)
    assert query.bounding_box == UNIT_BOX
    assert query.filters == (ElementFilter.amenity("toilets"),)
    assert query.output_format == OutputFormat.JSON
    assert query.timeout == QueryTimeout()
