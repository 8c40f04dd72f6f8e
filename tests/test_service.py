"""
Tests for the tile rendering service and its disk cache
"""

import pytest

from osm_tiles.indexing.builder import TileIndexBuilder
from osm_tiles.indexing.cache import TileCache
from osm_tiles.service import TileService, TileStore

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_render_without_disk_cache(config, park_line_dataset):
    service = TileService(park_line_dataset, config)
    data = service.render_tile(10, 512, 512)
    assert data.startswith(PNG_SIGNATURE)
    assert service.store.get_path(10, 512, 512) is None


def test_rendered_tile_is_written_to_disk(config, park_line_dataset, tmp_path):
    service = TileService(park_line_dataset, config, cache_dir=str(tmp_path))
    data = service.render_tile(10, 512, 512)

    path = tmp_path / "10" / "512" / "512.png"
    assert path.read_bytes() == data
    assert not list(path.parent.glob("*.tmp"))


def test_disk_cache_is_served_without_building(config, park_line_dataset, tmp_path):
    builds = []
    builder = TileIndexBuilder(config)

    def factory(dataset, zoom, lookup):
        builds.append(zoom)
        return builder.build(dataset, zoom, lookup)

    cached = tmp_path / "7" / "3" / "5.png"
    cached.parent.mkdir(parents=True)
    cached.write_bytes(PNG_SIGNATURE + b"stored")

    tile_cache = TileCache(park_line_dataset, config, factory=factory)
    service = TileService(park_line_dataset, config, cache_dir=str(tmp_path), tile_cache=tile_cache)

    assert service.render_tile(7, 3, 5) == PNG_SIGNATURE + b"stored"
    assert builds == []

    service.render_tile(7, 3, 6)
    assert builds == [7]


@pytest.mark.parametrize("zoom", [-1, 256, 1000])
def test_zoom_out_of_range(config, park_line_dataset, zoom):
    service = TileService(park_line_dataset, config)
    with pytest.raises(ValueError, match="Zoom"):
        service.render_tile(zoom, 0, 0)


def test_tiles_far_outside_the_plane_render_blank(config, park_line_dataset):
    service = TileService(park_line_dataset, config)
    assert service.render_tile(2, -5, 2 ** 31 - 1).startswith(PNG_SIGNATURE)


def test_store_paths_and_missing_entries(tmp_path):
    store = TileStore(str(tmp_path))
    path = store.get_path(3, 1, 2)
    assert path == tmp_path / "3" / "1" / "2.png"
    assert store.load(path) is None

    store.save(path, b"tile")
    assert store.load(path) == b"tile"
