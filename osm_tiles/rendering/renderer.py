"""
Tile rasterization

Draws the features of one tile (or of a whole extracted area) with Pillow.
Categories are painted back to front in RENDER_ORDER; within a category,
standalone ways come first, then relations expanded into rings.
"""

import math
from io import BytesIO
from typing import Dict, List, Mapping, Optional, Tuple

from loguru import logger
from PIL import Image, ImageDraw, ImageFont

from ..config import CategoryStyle, RenderSettings, TilesConfig, get_config
from ..indexing.builder import Coordinate, DatasetLookup, TileIndex
from ..indexing.classifier import house_number
from ..indexing.projection import scale
from ..indexing.rings import RingReconstructor
from ..models import FILL_CATEGORIES, RENDER_ORDER, Category, Dataset, Relation, Tags, Way
from .labels import label_anchor
from .styles import StyleBook

Point = Tuple[float, float]


class Canvas:
    """Pillow surface addressed in pixel-plane coordinates shifted by an origin"""

    def __init__(self, width: int, height: int, origin: Point, settings: RenderSettings):
        self.width = width
        self.height = height
        self.origin = origin
        self.settings = settings
        self.image = Image.new("RGB", (width, height), settings.background)
        self.draw = ImageDraw.Draw(self.image, "RGBA")
        self.font = ImageFont.load_default()

    def local_points(self, node_ids, coordinates: Mapping[int, Coordinate]) -> List[Point]:
        """Canvas-local points of a node chain; unknown and non-finite nodes are skipped"""
        origin_x, origin_y = self.origin
        points = []
        for node_id in node_ids:
            point = coordinates.get(node_id)
            if point is None:
                continue
            x, y = point[0] - origin_x, point[1] - origin_y
            if math.isfinite(x) and math.isfinite(y):
                points.append((x, y))
        return points

    def stroke(self, points: List[Point], style: CategoryStyle):
        if len(points) >= 2:
            self.draw.line(points, fill=style.color, width=style.width, joint="curve")

    def fill(self, points: List[Point], style: CategoryStyle):
        if len(points) >= 3:
            self.draw.polygon(points, fill=style.color)

    def text(self, anchor: Point, text: str):
        self.draw.text(anchor, text, fill=self.settings.label, font=self.font)

    def border(self):
        # Top and left edges only; neighbors supply the other two
        self.draw.line(
            [(self.width, 0), (0, 0), (0, self.height)],
            fill=self.settings.border,
            width=1,
        )

    def to_png(self) -> bytes:
        buffer = BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()


class FeaturePainter:
    """Emits draw calls for ways and relations onto a Canvas"""

    def __init__(
        self,
        canvas: Canvas,
        coordinates: Mapping[int, Coordinate],
        ways_by_id: Mapping[int, Way],
        zoom: int,
        config: TilesConfig,
        styles: Optional[StyleBook] = None
    ):
        self.canvas = canvas
        self.coordinates = coordinates
        self.ways_by_id = ways_by_id
        self.zoom = zoom
        self.config = config
        self.styles = styles or StyleBook(config.render)
        self.reconstructor = RingReconstructor(ways_by_id)

    def draw_way(self, way: Way, category: Category):
        style = self.styles.for_category(category)
        points = self.canvas.local_points(way.node_ids, self.coordinates)

        self.canvas.stroke(points, style)
        if category in FILL_CATEGORIES:
            self.canvas.fill(points, style)
            if category is Category.BUILDING:
                self._draw_house_number(way.tags, points)

    def draw_relation(self, relation: Relation, category: Category):
        relation_style = self.styles.for_category(category)
        building_style = self.styles.for_category(Category.BUILDING)

        for ring in self.reconstructor.reconstruct(relation):
            style = building_style if ring.category is Category.BUILDING else relation_style
            points = self.canvas.local_points(ring.node_ids, self.coordinates)

            self.canvas.stroke(points, style)
            if ring.category in FILL_CATEGORIES:
                self.canvas.fill(points, style)
                if ring.category is Category.BUILDING and ring.way_id is not None:
                    self._draw_house_number(self.ways_by_id[ring.way_id].tags, points)
            elif category in FILL_CATEGORIES and category is not Category.BUILDING:
                self.canvas.fill(points, style)

    def _draw_house_number(self, tags: Tags, points: List[Point]):
        if self.zoom <= self.config.tiles.label_zoom_threshold:
            return
        number = house_number(tags)
        if not number:
            return
        anchor = label_anchor(points, self.config.render.polylabel_tolerance)
        if anchor is not None:
            self.canvas.text(anchor, number)


class TileRenderer:
    """
    Renders one tile of a TileIndex to PNG bytes.

    Usage:
        renderer = TileRenderer()
        png = renderer.render(index, x=4753, y=2881)
    """

    def __init__(self, config: Optional[TilesConfig] = None):
        self.config = config or get_config()
        self.styles = StyleBook(self.config.render)

    def render(self, index: TileIndex, x: int, y: int) -> bytes:
        tile_size = index.tile_size
        features = index.features_for_tile(x, y)

        canvas = Canvas(tile_size, tile_size, (x * tile_size, y * tile_size), self.config.render)
        painter = FeaturePainter(canvas, index.coordinates, index.ways_by_id, index.zoom, self.config, self.styles)

        for category in RENDER_ORDER:
            for way in features.ways.get(category, ()):
                painter.draw_way(way, category)
            for relation in features.relations.get(category, ()):
                painter.draw_relation(relation, category)

        canvas.border()
        logger.debug(
            f"Rendered tile {index.zoom}/{x}/{y}: "
            f"{sum(len(v) for v in features.ways.values())} ways, "
            f"{sum(len(v) for v in features.relations.values())} relations"
        )
        return canvas.to_png()


class AreaRenderer:
    """
    Renders every relation of a dataset into one image framed around the
    relations' geometry, with padding on each side.
    """

    def __init__(self, config: Optional[TilesConfig] = None):
        self.config = config or get_config()
        self.styles = StyleBook(self.config.render)

    def render(self, dataset: Dataset, zoom: int) -> bytes:
        """
        Render all relations of a dataset at a zoom level.

        Raises:
            ValueError: If no relation has any resolvable geometry
        """
        lookup = DatasetLookup.from_dataset(dataset)
        tile_size = self.config.tiles.tile_size
        coordinates: Dict[int, Coordinate] = {
            node_id: scale(point, zoom, tile_size) for node_id, point in lookup.normalized.items()
        }

        points = [
            coordinates[node_id]
            for relation in lookup.relations
            for way_id in relation.way_refs()
            if way_id in lookup.ways_by_id
            for node_id in lookup.ways_by_id[way_id].node_ids
            if node_id in coordinates
        ]
        points = [p for p in points if math.isfinite(p[0]) and math.isfinite(p[1])]
        if not points:
            raise ValueError("No relation geometry to render")

        padding = self.config.render.area_padding
        min_x = min(p[0] for p in points) - padding
        min_y = min(p[1] for p in points) - padding
        max_x = max(p[0] for p in points) + padding
        max_y = max(p[1] for p in points) + padding
        width = max(1, int(max_x - min_x))
        height = max(1, int(max_y - min_y))

        logger.info(f"Rendering {len(lookup.relations)} relations at zoom {zoom} into {width}x{height}px")

        canvas = Canvas(width, height, (min_x, min_y), self.config.render)
        painter = FeaturePainter(canvas, coordinates, lookup.ways_by_id, zoom, self.config, self.styles)

        for category in RENDER_ORDER:
            for relation in lookup.relations:
                if lookup.relation_categories[relation.id] is category:
                    painter.draw_relation(relation, category)

        canvas.border()
        return canvas.to_png()
