"""
Dataset loading and persistence

- osm_xml: OSM XML reader/writer
- snapshot: compact gzip+JSON snapshot
- extract: tag-filtered extraction
"""

from pathlib import Path
from typing import Union

from ..models import Dataset
from .osm_xml import OSMXmlReader, OSMXmlWriter
from .snapshot import DatasetStore
from .extract import TagFilter, extract_dataset

XML_SUFFIXES = (".osm", ".xml")


def is_xml_path(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() in XML_SUFFIXES


def load_dataset(path: Union[str, Path]) -> Dataset:
    """Load a dataset from .osm/.xml or a snapshot, chosen by file suffix"""
    if is_xml_path(path):
        return OSMXmlReader().read(path)
    return DatasetStore().load(path)


def save_dataset(dataset: Dataset, path: Union[str, Path]) -> Path:
    """Save a dataset as .osm/.xml or a snapshot, chosen by file suffix"""
    if is_xml_path(path):
        return OSMXmlWriter().write(dataset, path)
    return DatasetStore().save(dataset, path)


__all__ = [
    "OSMXmlReader",
    "OSMXmlWriter",
    "DatasetStore",
    "TagFilter",
    "extract_dataset",
    "load_dataset",
    "save_dataset",
]
