"""
Spatial indexing

- projection: lat/lon -> pixel plane -> tile coordinates
- classifier: tags -> rendering category
- rings: relation member ways -> closed rings
- builder: per-zoom tile buckets
- cache: per-zoom index memo with single-flight builds
"""

from .projection import project, locate, normalize
from .classifier import classify, classify_way, classify_relation
from .rings import RingReconstructor, extract_rings
from .builder import DatasetLookup, TileFeatures, TileIndex, TileIndexBuilder, build_tile_index
from .cache import TileCache

__all__ = [
    "project",
    "locate",
    "normalize",
    "classify",
    "classify_way",
    "classify_relation",
    "RingReconstructor",
    "extract_rings",
    "DatasetLookup",
    "TileFeatures",
    "TileIndex",
    "TileIndexBuilder",
    "build_tile_index",
    "TileCache",
]
