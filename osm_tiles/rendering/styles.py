"""
Category styles
"""

from typing import Dict, Optional

from ..config import CategoryStyle, RenderSettings, get_config
from ..models import Category


class StyleBook:
    """Resolves the stroke/fill style of each category from render settings"""

    def __init__(self, settings: Optional[RenderSettings] = None):
        self.settings = settings or get_config().render
        self._styles: Dict[Category, CategoryStyle] = {
            category: self.settings.styles[category.value] for category in Category
        }

    def for_category(self, category: Category) -> CategoryStyle:
        return self._styles[category]
