#!/usr/bin/env python
"""
Command-line interface for the OSM tile renderer

Usage:
    python cli.py import --input moldova-latest.osm --output osm.snapshot.json.gz
    python cli.py extract --input moldova-latest.osm --output parks.osm --filter leisure=park
    python cli.py render --zoom 13 --x 4753 --y 2881 --output tile.png
    python cli.py render-area --input parks.osm --zoom 16 --output parks.png
    python cli.py serve --dataset osm.snapshot.json.gz --port 4000
"""

import os
import sys
import argparse
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import mercantile
from loguru import logger

from osm_tiles.config import get_config, validate_config
from osm_tiles.loaders import load_dataset, save_dataset
from osm_tiles.loaders.extract import TagFilter, extract_dataset
from osm_tiles.models import DatasetLoadError
from osm_tiles.rendering import AreaRenderer
from osm_tiles.server import make_server
from osm_tiles.service import TileService


def setup_logging(verbose: bool = False):
    """Configure logging"""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=level
    )


def _load(path: str):
    """Load a dataset, logging the failure; None means the command must stop"""
    try:
        return load_dataset(path)
    except DatasetLoadError as e:
        logger.error(f"Failed to load dataset: {e}")
        return None


def cmd_import(args):
    """Convert an OSM XML file into a compact snapshot"""
    setup_logging(args.verbose)

    dataset = _load(args.input)
    if dataset is None:
        return 1

    save_dataset(dataset, args.output)
    logger.info(f"✓ Imported {dataset.summary()} into {args.output}")
    return 0


def cmd_extract(args):
    """Extract relations matching a tag filter with their ways and nodes"""
    setup_logging(args.verbose)

    try:
        tag_filter = TagFilter.parse(args.filter) if args.filter else TagFilter.default()
    except ValueError as e:
        logger.error(str(e))
        return 1

    dataset = _load(args.input)
    if dataset is None:
        return 1

    extracted = extract_dataset(dataset, tag_filter)
    if not extracted.relations:
        logger.warning(f"No relations matched {tag_filter}")

    save_dataset(extracted, args.output)
    logger.info(f"✓ Extracted {extracted.summary()} into {args.output}")
    return 0


def cmd_render(args):
    """Render a single tile to a PNG file"""
    setup_logging(args.verbose)

    if args.lat is not None and args.lon is not None:
        tile = mercantile.tile(args.lon, args.lat, args.zoom)
        x, y = tile.x, tile.y
    elif args.x is not None and args.y is not None:
        x, y = args.x, args.y
    else:
        logger.error("Either --x/--y or --lat/--lon is required")
        return 1

    config = get_config()
    dataset = _load(args.dataset or config.paths.dataset)
    if dataset is None:
        return 1

    service = TileService(dataset, config, cache_dir=None)
    try:
        data = service.render_tile(args.zoom, x, y)
    except ValueError as e:
        logger.error(str(e))
        return 1

    output_path = args.output or f"tile_{args.zoom}_{x}_{y}.png"
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Path(output_path).write_bytes(data)
    logger.info(f"✓ Rendered tile {args.zoom}/{x}/{y} to {output_path}")
    return 0


def cmd_render_area(args):
    """Render every relation of a dataset into one framed image"""
    setup_logging(args.verbose)

    dataset = _load(args.input)
    if dataset is None:
        return 1

    try:
        data = AreaRenderer().render(dataset, args.zoom)
    except ValueError as e:
        logger.error(f"Nothing to render: {e}")
        return 1

    Path(args.output).parent.mkdir(parents=True, exist_ok=True)
    Path(args.output).write_bytes(data)
    logger.info(f"✓ Rendered {len(dataset.relations)} relations to {args.output}")
    return 0


def cmd_serve(args):
    """Load the dataset and serve tiles over HTTP"""
    setup_logging(args.verbose)

    config = get_config()
    try:
        validate_config(config)
    except ValueError as e:
        logger.error(str(e))
        return 1

    # Refuse to serve without a complete dataset
    dataset = _load(args.dataset or config.paths.dataset)
    if dataset is None:
        return 1

    cache_dir = None if args.no_disk_cache else (args.cache_dir or config.paths.cache_dir)
    service = TileService(dataset, config, cache_dir=cache_dir)
    server = make_server(
        service,
        host=args.host,
        port=args.port,
        static_dir=args.static_dir,
        config=config
    )

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="OSM tile renderer CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert an extract to a snapshot:
    python cli.py import --input moldova-latest.osm --output osm.snapshot.json.gz

  Extract city parks:
    python cli.py extract -i moldova-latest.osm -o parks.osm --filter leisure=park --filter "addr:city=Chișinău"

  Render one tile:
    python cli.py render --zoom 16 --lat 47.0105 --lon 28.8638 --output tile.png

  Serve tiles:
    python cli.py serve --dataset osm.snapshot.json.gz --port 4000
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Import command
    import_parser = subparsers.add_parser("import", help="Convert OSM XML to a snapshot")
    import_parser.add_argument("--input", "-i", required=True, help="Input .osm file")
    import_parser.add_argument("--output", "-o", default="osm.snapshot.json.gz", help="Output snapshot file")
    import_parser.set_defaults(func=cmd_import)

    # Extract command
    extract_parser = subparsers.add_parser("extract", help="Extract relations matching a tag filter")
    extract_parser.add_argument("--input", "-i", required=True, help="Input .osm file or snapshot")
    extract_parser.add_argument("--output", "-o", required=True, help="Output .osm file or snapshot")
    extract_parser.add_argument(
        "--filter", "-f", action="append",
        help="Tag filter key=value[,value] (repeatable, default leisure=park)"
    )
    extract_parser.set_defaults(func=cmd_extract)

    # Render command
    render_parser = subparsers.add_parser("render", help="Render a single tile")
    render_parser.add_argument("--dataset", "-d", help="Dataset file (default from config)")
    render_parser.add_argument("--zoom", "-z", type=int, required=True, help="Zoom level")
    render_parser.add_argument("--x", type=int, help="Tile column")
    render_parser.add_argument("--y", type=int, help="Tile row")
    render_parser.add_argument("--lat", type=float, help="Latitude inside the tile")
    render_parser.add_argument("--lon", type=float, help="Longitude inside the tile")
    render_parser.add_argument("--output", "-o", help="Output PNG file")
    render_parser.set_defaults(func=cmd_render)

    # Render-area command
    area_parser = subparsers.add_parser("render-area", help="Render all relations of a dataset into one image")
    area_parser.add_argument("--input", "-i", required=True, help="Input .osm file or snapshot")
    area_parser.add_argument("--zoom", "-z", type=int, default=16, help="Zoom level")
    area_parser.add_argument("--output", "-o", default="render-area.png", help="Output PNG file")
    area_parser.set_defaults(func=cmd_render_area)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Serve tiles over HTTP")
    serve_parser.add_argument("--dataset", "-d", help="Dataset file (default from config)")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", "-p", type=int, help="Bind port")
    serve_parser.add_argument("--cache-dir", help="Directory for rendered tiles")
    serve_parser.add_argument("--no-disk-cache", action="store_true", help="Do not store rendered tiles on disk")
    serve_parser.add_argument("--static-dir", help="Directory served for non-tile paths")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
