"""
Tile index construction

Buckets every way and relation of a dataset into the tiles its nodes fall
into at one zoom level. Above the neighbor threshold an entry is also copied
into the 8 surrounding tiles, since strokes and labels near a tile edge bleed
into the adjacent tile.

Ways referenced by a relation are drawn through that relation and are left
out of the standalone way buckets.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from loguru import logger

from ..config import TilesConfig, get_config
from ..models import Category, Dataset, MemberKind, Relation, Way
from .classifier import classify_relation, classify_way
from .projection import locate, normalize, scale

TileKey = Tuple[int, int]
Coordinate = Tuple[float, float]

NEIGHBOR_OFFSETS = (
    (1, 1), (1, 0), (0, 1), (1, -1),
    (-1, -1), (-1, 0), (0, -1), (-1, 1),
)


@dataclass
class DatasetLookup:
    """
    Zoom-independent tables derived once from a dataset and shared by every
    per-zoom index.
    """
    normalized: Dict[int, Coordinate]
    ways_by_id: Dict[int, Way]
    relations_by_id: Dict[int, Relation]
    way_categories: Dict[int, Category]
    relation_categories: Dict[int, Category]
    relation_way_ids: FrozenSet[int]
    standalone_ways: List[Way]
    relations: List[Relation]

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "DatasetLookup":
        relation_way_ids = frozenset(
            ref for relation in dataset.relations for ref in relation.way_refs()
        )
        return cls(
            normalized={node.id: normalize(node.lat, node.lon) for node in dataset.nodes},
            ways_by_id={way.id: way for way in dataset.ways},
            relations_by_id={relation.id: relation for relation in dataset.relations},
            way_categories={way.id: classify_way(way) for way in dataset.ways},
            relation_categories={r.id: classify_relation(r) for r in dataset.relations},
            relation_way_ids=relation_way_ids,
            standalone_ways=[way for way in dataset.ways if way.id not in relation_way_ids],
            relations=list(dataset.relations),
        )


@dataclass
class TileFeatures:
    """Features of one tile grouped by category, ordered by ID"""
    ways: Dict[Category, List[Way]] = field(default_factory=dict)
    relations: Dict[Category, List[Relation]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.ways and not self.relations


@dataclass
class TileIndex:
    """Spatial buckets for one zoom level; read-only once built"""
    zoom: int
    tile_size: int
    coordinates: Dict[int, Coordinate]
    ways_by_tile: Dict[TileKey, Set[int]]
    relations_by_tile: Dict[TileKey, Set[int]]
    lookup: DatasetLookup

    @property
    def ways_by_id(self) -> Dict[int, Way]:
        return self.lookup.ways_by_id

    @property
    def relations_by_id(self) -> Dict[int, Relation]:
        return self.lookup.relations_by_id

    def ways_in_tile(self, x: int, y: int) -> FrozenSet[int]:
        return frozenset(self.ways_by_tile.get((x, y), ()))

    def relations_in_tile(self, x: int, y: int) -> FrozenSet[int]:
        return frozenset(self.relations_by_tile.get((x, y), ()))

    def features_for_tile(self, x: int, y: int) -> TileFeatures:
        features = TileFeatures()
        for way_id in sorted(self.ways_in_tile(x, y)):
            category = self.lookup.way_categories[way_id]
            features.ways.setdefault(category, []).append(self.lookup.ways_by_id[way_id])
        for relation_id in sorted(self.relations_in_tile(x, y)):
            category = self.lookup.relation_categories[relation_id]
            features.relations.setdefault(category, []).append(self.lookup.relations_by_id[relation_id])
        return features


class TileIndexBuilder:
    """Builds a TileIndex for one zoom level"""

    def __init__(self, config: Optional[TilesConfig] = None):
        self.config = config or get_config()
        self.tile_size = self.config.tiles.tile_size
        self.neighbor_zoom_threshold = self.config.tiles.neighbor_zoom_threshold

    def build(self, dataset: Dataset, zoom: int, lookup: Optional[DatasetLookup] = None) -> TileIndex:
        """
        Build the index for a zoom level.

        Pure with respect to (dataset, zoom): no I/O, and the same inputs always
        yield an equivalent index.

        Args:
            dataset: Loaded map graph
            zoom: Zoom level
            lookup: Precomputed zoom-independent tables (derived from dataset if omitted)

        Returns:
            TileIndex for the zoom level
        """
        lookup = lookup or DatasetLookup.from_dataset(dataset)
        spread = zoom > self.neighbor_zoom_threshold

        logger.info(f"Building tile index for zoom {zoom}")

        coordinates = {
            node_id: scale(point, zoom, self.tile_size)
            for node_id, point in lookup.normalized.items()
        }

        missing = 0
        ways_by_tile: Dict[TileKey, Set[int]] = defaultdict(set)
        for way in lookup.standalone_ways:
            missing += self._bucket(ways_by_tile, way.id, way.node_ids, coordinates, spread)

        relations_by_tile: Dict[TileKey, Set[int]] = defaultdict(set)
        for relation in lookup.relations:
            for member in relation.members:
                if member.kind is not MemberKind.WAY:
                    continue
                way = lookup.ways_by_id.get(member.ref)
                if way is None:
                    continue
                missing += self._bucket(relations_by_tile, relation.id, way.node_ids, coordinates, spread)

        if missing:
            logger.debug(f"Zoom {zoom}: skipped {missing} unresolved node references")

        logger.info(
            f"Tile index for zoom {zoom}: {len(ways_by_tile)} way tiles, "
            f"{len(relations_by_tile)} relation tiles"
        )

        return TileIndex(
            zoom=zoom,
            tile_size=self.tile_size,
            coordinates=coordinates,
            ways_by_tile=dict(ways_by_tile),
            relations_by_tile=dict(relations_by_tile),
            lookup=lookup,
        )

    def _bucket(
        self,
        buckets: Dict[TileKey, Set[int]],
        entity_id: int,
        node_ids: Iterable[int],
        coordinates: Dict[int, Coordinate],
        spread: bool
    ) -> int:
        """Add entity_id to the tile of every node; returns the number of unresolved nodes"""
        missing = 0
        for node_id in node_ids:
            point = coordinates.get(node_id)
            if point is None:
                missing += 1
                continue
            tile_x, tile_y = locate(point[0], point[1], self.tile_size)
            buckets[(tile_x, tile_y)].add(entity_id)
            if spread:
                for dx, dy in NEIGHBOR_OFFSETS:
                    buckets[(tile_x + dx, tile_y + dy)].add(entity_id)
        return missing


def build_tile_index(
    dataset: Dataset,
    zoom: int,
    config: Optional[TilesConfig] = None,
    lookup: Optional[DatasetLookup] = None
) -> TileIndex:
    """Build the tile index of a dataset for one zoom level"""
    return TileIndexBuilder(config).build(dataset, zoom, lookup)
