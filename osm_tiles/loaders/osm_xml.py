"""
OSM XML reader and writer

Streams <node>, <way> and <relation> elements from an .osm file into the
dataset model, and writes a dataset back out in the same format.
"""

from pathlib import Path
from typing import Optional, Union

from loguru import logger
from lxml import etree

from ..models import Dataset, DatasetLoadError, Member, MemberKind, Node, Relation, Tag, Tags, Way

PathLike = Union[str, Path]


class OSMXmlReader:
    """Parses OSM XML files into a Dataset"""

    def read(self, path: PathLike) -> Dataset:
        """
        Read an .osm file.

        Args:
            path: Path to the OSM XML file

        Returns:
            Dataset with every node, way and relation of the file

        Raises:
            DatasetLoadError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.is_file():
            raise DatasetLoadError(f"OSM file not found: {path}")

        logger.info(f"Reading OSM XML from {path}")
        dataset = Dataset()

        try:
            for _, element in etree.iterparse(str(path), events=("end",), tag=("node", "way", "relation")):
                if element.tag == "node":
                    dataset.nodes.append(self._parse_node(element))
                elif element.tag == "way":
                    dataset.ways.append(self._parse_way(element))
                else:
                    dataset.relations.append(self._parse_relation(element))

                # Drop parsed elements so large extracts stream in bounded memory
                element.clear(keep_tail=True)
                while element.getprevious() is not None:
                    del element.getparent()[0]
        except etree.XMLSyntaxError as e:
            raise DatasetLoadError(f"Malformed OSM XML in {path}: {e}") from e
        except (TypeError, ValueError) as e:
            raise DatasetLoadError(f"Invalid OSM element in {path}: {e}") from e

        logger.info(f"Loaded {dataset.summary()} from {path}")
        return dataset

    @staticmethod
    def _parse_tags(element) -> Tags:
        tags = tuple(Tag(key=t.get("k"), value=t.get("v")) for t in element.iterchildren("tag"))
        return tags or None

    def _parse_node(self, element) -> Node:
        return Node(
            id=int(element.get("id")),
            lat=float(element.get("lat")),
            lon=float(element.get("lon")),
            tags=self._parse_tags(element),
        )

    def _parse_way(self, element) -> Way:
        return Way(
            id=int(element.get("id")),
            node_ids=tuple(int(nd.get("ref")) for nd in element.iterchildren("nd")),
            tags=self._parse_tags(element),
        )

    def _parse_relation(self, element) -> Relation:
        members = tuple(
            Member(
                kind=MemberKind(member.get("type")),
                ref=int(member.get("ref")),
                role=member.get("role") or "",
            )
            for member in element.iterchildren("member")
        )
        return Relation(
            id=int(element.get("id")),
            members=members,
            tags=self._parse_tags(element),
        )


class OSMXmlWriter:
    """Writes a Dataset as OSM XML"""

    def __init__(self, generator: Optional[str] = "osm-tiles"):
        self.generator = generator

    def write(self, dataset: Dataset, path: PathLike) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        root = etree.Element("osm", version="0.6")
        if self.generator:
            root.set("generator", self.generator)

        for node in dataset.nodes:
            element = etree.SubElement(root, "node", id=str(node.id), lat=repr(node.lat), lon=repr(node.lon))
            self._add_tags(element, node.tags)

        for way in dataset.ways:
            element = etree.SubElement(root, "way", id=str(way.id))
            for node_id in way.node_ids:
                etree.SubElement(element, "nd", ref=str(node_id))
            self._add_tags(element, way.tags)

        for relation in dataset.relations:
            element = etree.SubElement(root, "relation", id=str(relation.id))
            for member in relation.members:
                etree.SubElement(element, "member", type=member.kind.value, ref=str(member.ref), role=member.role)
            self._add_tags(element, relation.tags)

        etree.ElementTree(root).write(str(path), xml_declaration=True, encoding="utf-8", pretty_print=True)
        logger.info(f"Wrote {dataset.summary()} to {path}")
        return path

    @staticmethod
    def _add_tags(element, tags: Tags):
        for tag in tags or ():
            etree.SubElement(element, "tag", k=tag.key, v=tag.value)
