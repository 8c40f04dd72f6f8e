"""
OSM tile renderer

Renders raster map tiles from a regional OpenStreetMap extract:
- loaders: OSM XML / snapshot loading, tag-filtered extraction
- indexing: projection, classification, ring reconstruction, per-zoom tile index and cache
- rendering: Pillow rasterization of a tile's features
- service / server: render request boundary, disk tile cache, HTTP server
"""

from .models import Category, Dataset, DatasetLoadError, Member, MemberKind, Node, Relation, Ring, Tag, Way
from .service import TileService

__version__ = "0.1.0"

__all__ = [
    "Category",
    "Dataset",
    "DatasetLoadError",
    "Member",
    "MemberKind",
    "Node",
    "Relation",
    "Ring",
    "Tag",
    "Way",
    "TileService",
]
