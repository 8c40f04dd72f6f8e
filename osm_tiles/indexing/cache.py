"""
Per-zoom tile index cache

Builds each zoom's TileIndex at most once and hands the same read-only
instance to every caller. Concurrent requests for a zoom that is still being
built wait for that build instead of starting their own; requests for zooms
that are already built, or for other zooms, never wait on it.
"""

import threading
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional

from loguru import logger

from ..config import TilesConfig, get_config
from ..models import Dataset
from .builder import DatasetLookup, TileIndex, TileIndexBuilder

IndexFactory = Callable[[Dataset, int, DatasetLookup], TileIndex]


class TileCache:
    """
    Zoom -> TileIndex memo with single-flight builds. No eviction.

    Usage:
        cache = TileCache(dataset)
        index = cache.get_or_build(14)
    """

    def __init__(
        self,
        dataset: Dataset,
        config: Optional[TilesConfig] = None,
        factory: Optional[IndexFactory] = None
    ):
        self.config = config or get_config()
        self.dataset = dataset
        self.lookup = DatasetLookup.from_dataset(dataset)
        self._factory = factory or TileIndexBuilder(self.config).build
        self._lock = threading.Lock()
        self._indexes: Dict[int, TileIndex] = {}
        self._pending: Dict[int, Future] = {}

        logger.info(f"Tile cache ready for dataset with {dataset.summary()}")

    def get_or_build(self, zoom: int) -> TileIndex:
        """Return the index for a zoom level, building it on first request"""
        with self._lock:
            index = self._indexes.get(zoom)
            if index is not None:
                return index
            future = self._pending.get(zoom)
            owner = future is None
            if owner:
                future = Future()
                self._pending[zoom] = future

        if not owner:
            logger.debug(f"Waiting for in-flight build of zoom {zoom}")
            return future.result()

        try:
            index = self._factory(self.dataset, zoom, self.lookup)
        except BaseException as e:
            # Waiters must never be left on an unresolved build
            with self._lock:
                del self._pending[zoom]
            future.set_exception(e)
            raise

        with self._lock:
            self._indexes[zoom] = index
            del self._pending[zoom]
        future.set_result(index)
        return index

    def cached_zooms(self) -> List[int]:
        with self._lock:
            return sorted(self._indexes)

    def __contains__(self, zoom: int) -> bool:
        with self._lock:
            return zoom in self._indexes
