"""
Dataset extraction by tag filter

Cuts a dataset down to the relations matching a tag filter plus the ways and
nodes needed to draw them.
"""

from typing import Dict, Iterable, List, Mapping, Set

from loguru import logger

from ..models import Dataset, Node, Relation, Tags, Way

DEFAULT_FILTER = {"leisure": {"park"}}


class TagFilter:
    """
    Tag key -> accepted values.

    An entity matches when it carries every key of the filter with one of
    that key's accepted values.
    """

    def __init__(self, accepted: Mapping[str, Iterable[str]]):
        self.accepted: Dict[str, Set[str]] = {key: set(values) for key, values in accepted.items()}

    @classmethod
    def parse(cls, expressions: Iterable[str]) -> "TagFilter":
        """
        Build a filter from "key=value[,value...]" expressions.

        Repeating a key adds to its accepted values.
        """
        accepted: Dict[str, Set[str]] = {}
        for expression in expressions:
            key, sep, values = expression.partition("=")
            key = key.strip()
            if not sep or not key or not values:
                raise ValueError(f"Invalid filter expression '{expression}', expected key=value[,value]")
            accepted.setdefault(key, set()).update(v.strip() for v in values.split(",") if v.strip())
        return cls(accepted)

    @classmethod
    def default(cls) -> "TagFilter":
        return cls(DEFAULT_FILTER)

    def matches(self, tags: Tags) -> bool:
        if not tags:
            return False
        return all(
            any(tag.key == key and tag.value in values for tag in tags)
            for key, values in self.accepted.items()
        )

    def __repr__(self) -> str:
        parts = [f"{key}={','.join(sorted(values))}" for key, values in sorted(self.accepted.items())]
        return f"TagFilter({' '.join(parts)})"


def filter_relations(dataset: Dataset, tag_filter: TagFilter) -> List[Relation]:
    """Relations whose tags match the filter"""
    return [relation for relation in dataset.relations if tag_filter.matches(relation.tags)]


def ways_from_relations(dataset: Dataset, relations: Iterable[Relation]) -> List[Way]:
    """Ways referenced by 'way' members of the given relations, in dataset order"""
    wanted = {ref for relation in relations for ref in relation.way_refs()}
    return [way for way in dataset.ways if way.id in wanted]


def nodes_for_ways(dataset: Dataset, ways: Iterable[Way]) -> List[Node]:
    """Nodes referenced by the given ways, in dataset order"""
    wanted = {node_id for way in ways for node_id in way.node_ids}
    return [node for node in dataset.nodes if node.id in wanted]


def extract_dataset(dataset: Dataset, tag_filter: TagFilter) -> Dataset:
    """
    Extract matching relations together with their ways and nodes.

    Args:
        dataset: Full dataset
        tag_filter: Filter applied to relation tags

    Returns:
        New dataset containing only what is needed to draw the matches
    """
    relations = filter_relations(dataset, tag_filter)
    ways = ways_from_relations(dataset, relations)
    nodes = nodes_for_ways(dataset, ways)

    extracted = Dataset(nodes=nodes, ways=ways, relations=relations)
    logger.info(f"Extracted {extracted.summary()} with {tag_filter}")
    return extracted
