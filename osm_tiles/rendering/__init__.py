"""
Rendering of indexed features to PNG
"""

from .renderer import AreaRenderer, Canvas, FeaturePainter, TileRenderer
from .styles import StyleBook
from .labels import label_anchor

__all__ = [
    "AreaRenderer",
    "Canvas",
    "FeaturePainter",
    "TileRenderer",
    "StyleBook",
    "label_anchor",
]
