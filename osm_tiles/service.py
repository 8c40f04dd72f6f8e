"""
Tile rendering service

Ties the per-zoom index cache, the renderer and the on-disk PNG cache
together behind a single render_tile(zoom, x, y) call.
"""

import os
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import TilesConfig, get_config
from .indexing.cache import TileCache
from .models import Dataset
from .rendering.renderer import TileRenderer


class TileStore:
    """Handles caching of rendered tiles to disk; the cache only grows"""

    def __init__(self, cache_dir: Optional[str] = None):
        self.cache_dir = cache_dir

    def get_path(self, zoom: int, x: int, y: int) -> Optional[Path]:
        """Get cache file path for a tile"""
        if not self.cache_dir:
            return None
        return Path(self.cache_dir) / str(zoom) / str(x) / f"{y}.png"

    def load(self, path: Path) -> Optional[bytes]:
        """Load tile bytes from cache if present"""
        if path.is_file():
            try:
                return path.read_bytes()
            except OSError as e:
                logger.warning(f"Failed to read cached tile {path}: {e}")
        return None

    def save(self, path: Path, data: bytes):
        """Save tile bytes to cache"""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Readers never see a partially written file
            tmp_path = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
            logger.debug(f"Saved tile to cache: {path}")
        except OSError as e:
            logger.warning(f"Failed to save cached tile {path}: {e}")


class TileService:
    """
    Renders map tiles for a loaded dataset.

    Usage:
        service = TileService(dataset, cache_dir="cached")
        png = service.render_tile(13, 4753, 2881)
    """

    def __init__(
        self,
        dataset: Dataset,
        config: Optional[TilesConfig] = None,
        cache_dir: Optional[str] = None,
        tile_cache: Optional[TileCache] = None
    ):
        self.config = config or get_config()
        self.tile_cache = tile_cache or TileCache(dataset, self.config)
        self.renderer = TileRenderer(self.config)
        self.store = TileStore(cache_dir)

    def render_tile(self, zoom: int, x: int, y: int) -> bytes:
        """
        Render a tile, serving it from the disk cache when already rendered.

        Args:
            zoom: Zoom level (0..max_zoom)
            x: Tile column
            y: Tile row

        Returns:
            PNG bytes of a tile_size x tile_size image

        Raises:
            ValueError: If zoom is out of range
        """
        max_zoom = self.config.tiles.max_zoom
        if not 0 <= zoom <= max_zoom:
            raise ValueError(f"Zoom must be between 0 and {max_zoom}, got {zoom}")

        cache_path = self.store.get_path(zoom, x, y)
        if cache_path:
            cached = self.store.load(cache_path)
            if cached is not None:
                return cached

        index = self.tile_cache.get_or_build(zoom)
        data = self.renderer.render(index, x, y)

        if cache_path:
            self.store.save(cache_path, data)
        return data
