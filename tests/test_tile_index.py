"""
Tests for tile index construction
"""

from conftest import make_tags
from osm_tiles.indexing.builder import NEIGHBOR_OFFSETS, DatasetLookup, TileIndexBuilder, build_tile_index
from osm_tiles.indexing.projection import locate, project
from osm_tiles.models import Category, Dataset, Member, MemberKind, Node, Relation, Way


def _tiles_of(buckets, entity_id):
    return {tile for tile, ids in buckets.items() if entity_id in ids}


def _node_tile(node, zoom):
    return locate(*project(node.lat, node.lon, zoom))


def _sample_dataset():
    nodes = [
        Node(id=1, lat=47.0105, lon=28.8638),
        Node(id=2, lat=47.0200, lon=28.8400),
        Node(id=3, lat=46.9900, lon=28.9000),
        Node(id=4, lat=47.0500, lon=28.8000),
        Node(id=5, lat=47.0010, lon=28.8700),
    ]
    ways = [
        Way(id=10, node_ids=(1, 2, 3), tags=make_tags({"highway": "residential"})),
        Way(id=11, node_ids=(3, 4, 5, 3), tags=make_tags({"building": "yes"})),
        Way(id=12, node_ids=(4, 5)),
    ]
    relations = [
        Relation(
            id=100,
            members=(Member(kind=MemberKind.WAY, ref=12, role="outer"),),
            tags=make_tags({"leisure": "park"}),
        )
    ]
    return Dataset(nodes=nodes, ways=ways, relations=relations)


def test_every_node_tile_contains_its_way(config):
    dataset = _sample_dataset()
    nodes = {node.id: node for node in dataset.nodes}

    for zoom in (5, 12, 15, 17):
        index = build_tile_index(dataset, zoom, config)
        for way_id in (10, 11):
            way = index.ways_by_id[way_id]
            for node_id in way.node_ids:
                assert way_id in index.ways_in_tile(*_node_tile(nodes[node_id], zoom))


def test_every_node_tile_contains_its_relation(config):
    dataset = _sample_dataset()
    nodes = {node.id: node for node in dataset.nodes}

    index = build_tile_index(dataset, 14, config)
    for node_id in (4, 5):
        assert 100 in index.relations_in_tile(*_node_tile(nodes[node_id], 14))


def test_relation_ways_are_not_indexed_standalone(config):
    index = build_tile_index(_sample_dataset(), 14, config)
    assert not _tiles_of(index.ways_by_tile, 12)
    assert _tiles_of(index.relations_by_tile, 100)


def test_neighbor_tiles_only_above_threshold(config):
    dataset = Dataset(
        nodes=[Node(id=1, lat=47.0105, lon=28.8638), Node(id=2, lat=47.0105, lon=28.8638)],
        ways=[Way(id=1, node_ids=(1, 2))],
    )

    index_15 = build_tile_index(dataset, 15, config)
    home_15 = _node_tile(dataset.nodes[0], 15)
    assert _tiles_of(index_15.ways_by_tile, 1) == {home_15}

    index_16 = build_tile_index(dataset, 16, config)
    home_x, home_y = _node_tile(dataset.nodes[0], 16)
    expected = {(home_x, home_y)} | {(home_x + dx, home_y + dy) for dx, dy in NEIGHBOR_OFFSETS}
    assert len(expected) == 9
    assert _tiles_of(index_16.ways_by_tile, 1) == expected


def test_relation_neighbor_tiles_only_above_threshold(config):
    dataset = Dataset(
        nodes=[Node(id=1, lat=47.0105, lon=28.8638), Node(id=2, lat=47.0105, lon=28.8638)],
        ways=[Way(id=7, node_ids=(1, 2))],
        relations=[
            Relation(
                id=70,
                members=(Member(kind=MemberKind.WAY, ref=7, role="outer"),),
                tags=make_tags({"leisure": "park"}),
            )
        ],
    )

    index_15 = build_tile_index(dataset, 15, config)
    assert _tiles_of(index_15.relations_by_tile, 70) == {_node_tile(dataset.nodes[0], 15)}

    index_16 = build_tile_index(dataset, 16, config)
    home_x, home_y = _node_tile(dataset.nodes[0], 16)
    expected = {(home_x, home_y)} | {(home_x + dx, home_y + dy) for dx, dy in NEIGHBOR_OFFSETS}
    assert _tiles_of(index_16.relations_by_tile, 70) == expected
    assert not _tiles_of(index_16.ways_by_tile, 7)


def test_missing_nodes_are_skipped(config):
    dataset = Dataset(
        nodes=[Node(id=1, lat=10.0, lon=10.0)],
        ways=[Way(id=1, node_ids=(1, 999))],
        relations=[Relation(id=5, members=(Member(kind=MemberKind.WAY, ref=404),))],
    )
    index = build_tile_index(dataset, 8, config)

    assert _tiles_of(index.ways_by_tile, 1) == {_node_tile(dataset.nodes[0], 8)}
    assert not index.relations_by_tile


def test_build_is_repeatable(config):
    dataset = _sample_dataset()
    builder = TileIndexBuilder(config)
    first = builder.build(dataset, 13)
    second = builder.build(dataset, 13)

    assert first.ways_by_tile == second.ways_by_tile
    assert first.relations_by_tile == second.relations_by_tile
    assert first.coordinates == second.coordinates


def test_shared_lookup_matches_fresh_build(config):
    dataset = _sample_dataset()
    lookup = DatasetLookup.from_dataset(dataset)
    assert lookup.relation_way_ids == frozenset({12})
    assert [way.id for way in lookup.standalone_ways] == [10, 11]

    builder = TileIndexBuilder(config)
    assert builder.build(dataset, 11, lookup).ways_by_tile == builder.build(dataset, 11).ways_by_tile


def test_features_are_grouped_by_category(config):
    dataset = _sample_dataset()
    index = build_tile_index(dataset, 6, config)
    tile = _node_tile(dataset.nodes[0], 6)

    features = index.features_for_tile(*tile)
    assert not features.is_empty()
    assert [w.id for w in features.ways[Category.GENERIC]] == [10]
    assert [w.id for w in features.ways[Category.BUILDING]] == [11]
    assert [r.id for r in features.relations[Category.PARK]] == [100]


def test_unknown_tile_has_no_features(config):
    index = build_tile_index(_sample_dataset(), 6, config)
    assert index.features_for_tile(0, 0).is_empty()
    assert index.ways_in_tile(0, 0) == frozenset()
