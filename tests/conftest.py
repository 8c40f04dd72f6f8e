"""
Shared fixtures: small hand-built datasets placed at known tile positions
"""

import math
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from osm_tiles.config import TilesConfig
from osm_tiles.models import Dataset, Member, MemberKind, Node, Relation, Tag, Way

SAMPLE_OSM = """<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6" generator="test">
  <bounds minlat="46.9" minlon="28.7" maxlat="47.1" maxlon="29.0"/>
  <node id="1" lat="47.0105" lon="28.8638"/>
  <node id="2" lat="47.0110" lon="28.8640">
    <tag k="amenity" v="bench"/>
  </node>
  <node id="3" lat="47.0120" lon="28.8650"/>
  <way id="10">
    <nd ref="1"/>
    <nd ref="2"/>
    <nd ref="3"/>
    <nd ref="1"/>
    <tag k="building" v="yes"/>
    <tag k="addr:housenumber" v="7"/>
  </way>
  <way id="11">
    <nd ref="2"/>
    <nd ref="3"/>
  </way>
  <relation id="100">
    <member type="way" ref="10" role="outer"/>
    <member type="node" ref="2" role=""/>
    <tag k="leisure" v="park"/>
    <tag k="name" v="Parcul Valea Morilor"/>
  </relation>
</osm>
"""


def make_tags(tags: Dict[str, str]):
    return tuple(Tag(key=k, value=v) for k, v in tags.items()) or None


def lat_lon_for_pixel(px: float, py: float, zoom: int, tile_size: int = 256) -> Tuple[float, float]:
    """Inverse web-mercator: pixel-plane coordinate -> (lat, lon)"""
    size = tile_size * 2 ** zoom
    lon = px / size * 360.0 - 180.0
    lat = math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * py / size))))
    return lat, lon


class DatasetBuilder:
    """Builds datasets with nodes placed by tile-local pixel position"""

    def __init__(self, zoom: int, tile: Tuple[int, int], tile_size: int = 256):
        self.zoom = zoom
        self.tile = tile
        self.tile_size = tile_size
        self.nodes: List[Node] = []
        self.ways: List[Way] = []
        self.relations: List[Relation] = []

    def node(self, node_id: int, local_x: float, local_y: float) -> int:
        px = self.tile[0] * self.tile_size + local_x
        py = self.tile[1] * self.tile_size + local_y
        lat, lon = lat_lon_for_pixel(px, py, self.zoom, self.tile_size)
        self.nodes.append(Node(id=node_id, lat=lat, lon=lon))
        return node_id

    def way(self, way_id: int, node_ids: Iterable[int], tags: Dict[str, str] = None) -> Way:
        way = Way(id=way_id, node_ids=tuple(node_ids), tags=make_tags(tags or {}))
        self.ways.append(way)
        return way

    def relation(self, relation_id: int, way_ids: Iterable[int], tags: Dict[str, str] = None) -> Relation:
        members = tuple(Member(kind=MemberKind.WAY, ref=way_id, role="outer") for way_id in way_ids)
        relation = Relation(id=relation_id, members=members, tags=make_tags(tags or {}))
        self.relations.append(relation)
        return relation

    def square(self, first_node_id: int, left: float, top: float, right: float, bottom: float) -> List[int]:
        """Four corner nodes, clockwise from top-left"""
        return [
            self.node(first_node_id, left, top),
            self.node(first_node_id + 1, right, top),
            self.node(first_node_id + 2, right, bottom),
            self.node(first_node_id + 3, left, bottom),
        ]

    def build(self) -> Dataset:
        return Dataset(nodes=list(self.nodes), ways=list(self.ways), relations=list(self.relations))


@pytest.fixture
def config() -> TilesConfig:
    return TilesConfig()


@pytest.fixture
def park_line_dataset() -> Dataset:
    """One park-tagged way W1 from (0, 0) to (0, 1) and no relations"""
    return Dataset(
        nodes=[Node(id=1, lat=0.0, lon=0.0), Node(id=2, lat=0.0, lon=1.0)],
        ways=[Way(id=1, node_ids=(1, 2), tags=make_tags({"leisure": "park"}))],
        relations=[],
    )


@pytest.fixture
def builder_factory():
    def factory(zoom: int = 14, tile: Tuple[int, int] = (9000, 5000)) -> DatasetBuilder:
        return DatasetBuilder(zoom, tile)
    return factory


@pytest.fixture
def osm_file(tmp_path):
    path = tmp_path / "sample.osm"
    path.write_text(SAMPLE_OSM, encoding="utf-8")
    return path
