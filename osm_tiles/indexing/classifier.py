"""
Feature classification

Maps the tag set of a way or relation to a rendering category.
"""

from typing import Optional

from ..models import Category, Relation, Tags, Way, tag_value


def classify(tags: Tags) -> Category:
    """
    Classify a tag set.

    Checked in priority order, first match wins:
    leisure=park, landuse=forest, any building, natural=water, any waterway.
    """
    if not tags:
        return Category.GENERIC

    if any(t.key == "leisure" and t.value == "park" for t in tags):
        return Category.PARK
    elif any(t.key == "landuse" and t.value == "forest" for t in tags):
        return Category.FOREST
    elif any(t.key == "building" for t in tags):
        return Category.BUILDING
    elif any(t.key == "natural" and t.value == "water" for t in tags):
        return Category.WATER
    elif any(t.key == "waterway" for t in tags):
        return Category.WATER_RIVER
    return Category.GENERIC


def classify_way(way: Way) -> Category:
    return classify(way.tags)


def classify_relation(relation: Relation) -> Category:
    return classify(relation.tags)


def house_number(tags: Tags) -> Optional[str]:
    """addr:housenumber of a building, if tagged"""
    return tag_value(tags, "addr:housenumber")
