#!/usr/bin/env python
"""
Command-line interface for overpasskit

Usage:
    python cli.py search --lat 37.7749 --lon -122.4194 --radius 1000 --type toilets
    python cli.py query --bbox "37.77,-122.43,37.78,-122.41" 'node["amenity"="cafe"];out;'
    python cli.py favorites add --name "Home" --lat 51.5074 --lon -0.1276 --type cafes
"""

import sys
import json
import argparse

from loguru import logger

from overpasskit.config import Endpoint, get_config, load_config_from_env, validate_config
from overpasskit.exceptions import OverpassError
from overpasskit.favorites import FavoriteLocation, FavoritesStore
from overpasskit.models import SearchType
from overpasskit.query import BoundingBox, Coordinate, OverpassQuery, QueryTimeout
from overpasskit.search import SearchSession
from overpasskit.analysis import GeoUtils


ENDPOINT_CHOICES = {e.name.lower(): e.value for e in Endpoint}
PRESET_TYPES = [t.value for t in SearchType if t != SearchType.CUSTOM]


def setup_logging(verbose: bool = False):
    """Configure logging"""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=level
    )


def load_config(args):
    """Global config with environment and --endpoint overrides applied"""
    config = load_config_from_env(get_config())
    endpoint = getattr(args, "endpoint", None)
    if endpoint:
        config.api.overpass_url = ENDPOINT_CHOICES.get(endpoint, endpoint)
    validate_config(config)
    return config


def write_response(response, output_path=None):
    """Write the response JSON to output_path, or stdout when not given"""
    text = json.dumps(response.model_dump(mode="json", exclude_none=True), indent=2, ensure_ascii=False)
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info(f"✓ Saved: {output_path}")
    else:
        print(text)


def cmd_search(args):
    """Run a preset search around a point"""
    setup_logging(args.verbose)

    try:
        config = load_config(args)
        center = Coordinate(args.lat, args.lon)
        bbox = BoundingBox.from_center_radius(center, args.radius)
    except (OverpassError, ValueError) as e:
        logger.error(f"Invalid search: {e}")
        return 1

    logger.info(f"Searching {args.type} within {GeoUtils.format_distance(args.radius)} of {GeoUtils.format_coordinate(center)}")

    with SearchSession(config=config) as session:
        result = session.search(SearchType(args.type), bbox, shop_type=args.shop_type)

    if not result.is_success:
        logger.error(f"Search failed: {result.error}")
        return 1

    response = result.response
    logger.info(f"Found {result.element_count} elements")

    if args.summary:
        for element in response.sorted_by_distance(center)[:args.summary]:
            coordinate = element.coordinate
            distance = GeoUtils.format_distance(GeoUtils.distance(center, coordinate)) if coordinate else "?"
            print(f"{distance:>8}  {element}")
        return 0

    write_response(response, args.output)
    return 0


def cmd_query(args):
    """Execute a raw Overpass QL body"""
    setup_logging(args.verbose)

    try:
        config = load_config(args)
        if args.bbox:
            bbox = BoundingBox.parse(args.bbox)
        else:
            bbox = None
        query_text = args.query
        if query_text == "-":
            query_text = sys.stdin.read()
        query = OverpassQuery(
            query_text,
            bounding_box=bbox,
            output_format=config.api.output_format,
            timeout=QueryTimeout(config.api.server_timeout, config.api.client_timeout),
        )
    except (OverpassError, ValueError) as e:
        logger.error(f"Invalid query: {e}")
        return 1

    with SearchSession(config=config) as session:
        result = session.perform_custom_search(query)

    if not result.is_success:
        logger.error(f"Query failed: {result.error}")
        return 1

    response = result.response
    if bbox is not None:
        logger.info(f"{len(response.elements_within(bbox))} elements located inside {bbox}")

    logger.info(response.summary())
    write_response(response, args.output)
    return 0


def cmd_favorites(args):
    """List, add or remove favorite locations"""
    setup_logging(args.verbose)

    config = load_config_from_env(get_config())
    store = FavoritesStore.at_path(args.store or config.favorites_path)

    if args.action == "list":
        if not store.favorites:
            logger.info("No favorites saved")
            return 0
        for favorite in store.favorites:
            print(
                f"{favorite.id}  {favorite.type.display_name:<12} {favorite.name}  "
                f"({GeoUtils.format_coordinate(favorite.coordinate)})"
            )
        return 0

    if args.action == "add":
        try:
            coordinate = Coordinate(args.lat, args.lon)
            favorite = FavoriteLocation.create(args.name, coordinate, SearchType(args.type))
        except ValueError as e:
            logger.error(f"Invalid favorite: {e}")
            return 1
        store.add(favorite)
        print(favorite.id)
        return 0

    if not store.remove(args.id):
        logger.error(f"No favorite with id {args.id}")
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Query the OpenStreetMap Overpass API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Search command
    search_parser = subparsers.add_parser("search", help="Preset search around a point")
    search_parser.add_argument("--lat", type=float, required=True, help="Latitude")
    search_parser.add_argument("--lon", type=float, required=True, help="Longitude")
    search_parser.add_argument("--radius", type=float, default=1000.0, help="Search radius in meters")
    search_parser.add_argument("--type", choices=PRESET_TYPES, default="toilets", help="What to search for")
    search_parser.add_argument("--shop-type", help="Shop type for --type shops (e.g. bakery)")
    search_parser.add_argument("--endpoint", help=f"Endpoint URL or one of: {', '.join(ENDPOINT_CHOICES)}")
    search_parser.add_argument("--output", "-o", help="Write response JSON here instead of stdout")
    search_parser.add_argument("--summary", type=int, metavar="N", help="Print the N nearest elements instead of JSON")
    search_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    search_parser.set_defaults(func=cmd_search)

    # Query command
    query_parser = subparsers.add_parser("query", help="Execute a raw Overpass QL body")
    query_parser.add_argument("query", help="Query body without directives, or - to read stdin")
    query_parser.add_argument("--bbox", help="Bounding box south,west,north,east for filtering")
    query_parser.add_argument("--endpoint", help=f"Endpoint URL or one of: {', '.join(ENDPOINT_CHOICES)}")
    query_parser.add_argument("--output", "-o", help="Write response JSON here instead of stdout")
    query_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    query_parser.set_defaults(func=cmd_query)

    # Favorites command
    favorites_parser = subparsers.add_parser("favorites", help="Manage favorite locations")
    favorites_parser.add_argument("--store", help="Path of the favorites store")
    favorites_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    favorites_sub = favorites_parser.add_subparsers(dest="action", required=True)

    favorites_sub.add_parser("list", help="List favorites")

    add_parser = favorites_sub.add_parser("add", help="Add a favorite")
    add_parser.add_argument("--name", required=True, help="Display name")
    add_parser.add_argument("--lat", type=float, required=True, help="Latitude")
    add_parser.add_argument("--lon", type=float, required=True, help="Longitude")
    add_parser.add_argument("--type", choices=[t.value for t in SearchType], default="custom", help="Category")

    remove_parser = favorites_sub.add_parser("remove", help="Remove a favorite")
    remove_parser.add_argument("id", help="Favorite id")

    favorites_parser.set_defaults(func=cmd_favorites)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
