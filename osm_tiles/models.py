"""
OSM data models

Immutable data classes for the loaded map graph (nodes, ways, relations)
plus the derived values computed from it (categories, rings).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Tag:
    """A key/value pair; keys are not unique within an entity"""
    key: str
    value: str


Tags = Optional[Tuple[Tag, ...]]


def tag_value(tags: Tags, key: str) -> Optional[str]:
    """Value of the last tag with the given key, or None"""
    if not tags:
        return None
    value = None
    for tag in tags:
        if tag.key == key:
            value = tag.value
    return value


@dataclass(frozen=True)
class Node:
    """Represents an OSM node (point)"""
    id: int
    lat: float
    lon: float
    tags: Tags = None


@dataclass(frozen=True)
class Way:
    """Represents an OSM way (ordered chain of node references)"""
    id: int
    node_ids: Tuple[int, ...]
    tags: Tags = None

    @property
    def first_node(self) -> int:
        return self.node_ids[0]

    @property
    def last_node(self) -> int:
        return self.node_ids[-1]

    @property
    def is_closed(self) -> bool:
        return len(self.node_ids) > 1 and self.node_ids[0] == self.node_ids[-1]


class MemberKind(Enum):
    """Kind of entity a relation member points at"""
    NODE = "node"
    WAY = "way"
    RELATION = "relation"


@dataclass(frozen=True)
class Member:
    """A relation member"""
    kind: MemberKind
    ref: int
    role: str = ""
    tags: Tags = None


@dataclass(frozen=True)
class Relation:
    """Represents an OSM relation (named grouping of members with roles)"""
    id: int
    members: Tuple[Member, ...]
    tags: Tags = None

    def way_refs(self) -> List[int]:
        """IDs referenced by 'way' members, in member order"""
        return [m.ref for m in self.members if m.kind is MemberKind.WAY]


@dataclass
class Dataset:
    """The loaded map graph; read-only once loaded"""
    nodes: List[Node] = field(default_factory=list)
    ways: List[Way] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)

    def summary(self) -> str:
        return f"{len(self.nodes)} nodes, {len(self.ways)} ways, {len(self.relations)} relations"


class Category(Enum):
    """Semantic category derived from tags"""
    PARK = "park"
    FOREST = "forest"
    BUILDING = "building"
    WATER = "water"
    WATER_RIVER = "water_river"
    GENERIC = "generic"


# Back to front: later categories are drawn on top of earlier ones
RENDER_ORDER = (
    Category.FOREST,
    Category.PARK,
    Category.WATER_RIVER,
    Category.WATER,
    Category.GENERIC,
    Category.BUILDING,
)

FILL_CATEGORIES = frozenset({Category.FOREST, Category.PARK, Category.BUILDING, Category.WATER})


@dataclass
class Ring:
    """
    A direction-consistent chain of node IDs stitched from one or more ways.

    way_id is set only when the ring is a single, unmodified way.
    """
    category: Category
    node_ids: List[int]
    way_id: Optional[int] = None

    @property
    def is_closed(self) -> bool:
        return len(self.node_ids) > 1 and self.node_ids[0] == self.node_ids[-1]


class DatasetLoadError(RuntimeError):
    """A dataset file is missing, unreadable or malformed"""
