"""
Compact dataset snapshot

Gzip-compressed JSON form of a Dataset, validated on load with pydantic.
Loading a snapshot is much faster than re-parsing the source .osm file.
"""

import gzip
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal, Optional, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from ..models import Dataset, DatasetLoadError, Member, MemberKind, Node, Relation, Tag, Tags, Way

SNAPSHOT_VERSION = 1

PathLike = Union[str, Path]


# ============================================================
# Snapshot schema
# ============================================================

class TagModel(BaseModel):
    k: str
    v: str


class NodeModel(BaseModel):
    id: int
    lat: float
    lon: float
    tags: Optional[List[TagModel]] = None


class WayModel(BaseModel):
    id: int
    nodes: List[int]
    tags: Optional[List[TagModel]] = None


class MemberModel(BaseModel):
    type: Literal["node", "way", "relation"]
    ref: int
    role: str = ""


class RelationModel(BaseModel):
    id: int
    members: List[MemberModel]
    tags: Optional[List[TagModel]] = None


class SnapshotModel(BaseModel):
    version: int = SNAPSHOT_VERSION
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    nodes: List[NodeModel] = Field(default_factory=list)
    ways: List[WayModel] = Field(default_factory=list)
    relations: List[RelationModel] = Field(default_factory=list)


# ============================================================
# Conversion
# ============================================================

def _tags_to_model(tags: Tags) -> Optional[List[TagModel]]:
    if tags is None:
        return None
    return [TagModel(k=t.key, v=t.value) for t in tags]


def _tags_from_model(tags: Optional[List[TagModel]]) -> Tags:
    if tags is None:
        return None
    return tuple(Tag(key=t.k, value=t.v) for t in tags)


def to_snapshot(dataset: Dataset) -> SnapshotModel:
    return SnapshotModel(
        nodes=[
            NodeModel(id=n.id, lat=n.lat, lon=n.lon, tags=_tags_to_model(n.tags))
            for n in dataset.nodes
        ],
        ways=[
            WayModel(id=w.id, nodes=list(w.node_ids), tags=_tags_to_model(w.tags))
            for w in dataset.ways
        ],
        relations=[
            RelationModel(
                id=r.id,
                members=[MemberModel(type=m.kind.value, ref=m.ref, role=m.role) for m in r.members],
                tags=_tags_to_model(r.tags),
            )
            for r in dataset.relations
        ],
    )


def from_snapshot(snapshot: SnapshotModel) -> Dataset:
    return Dataset(
        nodes=[Node(id=n.id, lat=n.lat, lon=n.lon, tags=_tags_from_model(n.tags)) for n in snapshot.nodes],
        ways=[Way(id=w.id, node_ids=tuple(w.nodes), tags=_tags_from_model(w.tags)) for w in snapshot.ways],
        relations=[
            Relation(
                id=r.id,
                members=tuple(Member(kind=MemberKind(m.type), ref=m.ref, role=m.role) for m in r.members),
                tags=_tags_from_model(r.tags),
            )
            for r in snapshot.relations
        ],
    )


class DatasetStore:
    """Saves and loads dataset snapshots"""

    def save(self, dataset: Dataset, path: PathLike) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = to_snapshot(dataset).model_dump_json()
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(payload)
        logger.info(f"Saved snapshot with {dataset.summary()} to {path}")
        return path

    def load(self, path: PathLike) -> Dataset:
        """
        Load a snapshot.

        Raises:
            DatasetLoadError: If the file is missing, corrupt or of another version
        """
        path = Path(path)
        if not path.is_file():
            raise DatasetLoadError(f"Snapshot not found: {path}")

        try:
            with gzip.open(path, "rt", encoding="utf-8") as f:
                snapshot = SnapshotModel.model_validate_json(f.read())
        except (OSError, EOFError, UnicodeDecodeError) as e:
            raise DatasetLoadError(f"Failed to read snapshot {path}: {e}") from e
        except ValidationError as e:
            raise DatasetLoadError(f"Invalid snapshot {path}: {e}") from e

        if snapshot.version != SNAPSHOT_VERSION:
            raise DatasetLoadError(
                f"Snapshot {path} has version {snapshot.version}, expected {SNAPSHOT_VERSION}"
            )

        dataset = from_snapshot(snapshot)
        logger.info(f"Loaded snapshot with {dataset.summary()} from {path} (created {snapshot.created_at})")
        return dataset
