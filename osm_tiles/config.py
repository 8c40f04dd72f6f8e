"""
Configuration settings for the OSM tile renderer
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import os
from pathlib import Path

from dotenv import load_dotenv


RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]


@dataclass
class TileSettings:
    """Tile pyramid settings"""
    # Edge length of a square tile (pixels)
    tile_size: int = 256

    # Ways/relations are also bucketed into the 8 neighbor tiles when zoom > this
    neighbor_zoom_threshold: int = 15

    # House numbers are drawn on buildings when zoom > this
    label_zoom_threshold: int = 16

    # Requests outside 0..max_zoom are rejected
    max_zoom: int = 255


@dataclass
class CategoryStyle:
    """Stroke color and width for one feature category; fills reuse the color"""
    color: RGBA
    width: int = 1


@dataclass
class RenderSettings:
    """Rasterizer colors and drawing parameters"""
    background: RGB = (51, 51, 51)
    border: RGB = (179, 179, 179)
    label: RGBA = (230, 230, 230, 255)

    # Keyed by Category.value
    styles: Dict[str, CategoryStyle] = field(default_factory=lambda: {
        "forest": CategoryStyle(color=(69, 122, 98, 255)),
        "park": CategoryStyle(color=(113, 163, 141, 255)),
        "water_river": CategoryStyle(color=(73, 103, 130, 255), width=3),
        "water": CategoryStyle(color=(73, 103, 130, 255), width=3),
        "generic": CategoryStyle(color=(128, 128, 128, 255)),
        "building": CategoryStyle(color=(128, 128, 128, 51)),
    })

    # Extra pixels around the framed features (area renderer)
    area_padding: float = 100.0

    # Precision of the pole-of-inaccessibility search for labels (pixels)
    polylabel_tolerance: float = 0.01


@dataclass
class ServerSettings:
    """HTTP tile server settings"""
    host: str = "0.0.0.0"
    port: int = 4000
    cache_max_age: int = 604800  # one week
    static_dir: Optional[str] = None


@dataclass
class PathSettings:
    """Filesystem locations"""
    dataset: str = "osm.snapshot.json.gz"
    cache_dir: Optional[str] = "cached"


@dataclass
class TilesConfig:
    """Top-level configuration"""
    tiles: TileSettings = field(default_factory=TileSettings)
    render: RenderSettings = field(default_factory=RenderSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    paths: PathSettings = field(default_factory=PathSettings)

    # Environment values that could not be parsed; reported by validate_config
    env_errors: List[str] = field(default_factory=list)


def load_config() -> TilesConfig:
    """
    Build configuration from defaults plus environment overrides.

    A .env file in the project root or the working directory is loaded
    first; variables that are already set in the environment win.
    """
    env_paths = [
        Path(__file__).parent.parent / ".env",  # Project root
        Path.cwd() / ".env",  # Current working directory
    ]
    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path, override=False)  # Don't override existing env vars
            break

    config = TilesConfig()
    config.paths.dataset = os.getenv("OSM_TILES_DATASET", config.paths.dataset)
    config.paths.cache_dir = os.getenv("OSM_TILES_CACHE_DIR", config.paths.cache_dir)
    config.server.host = os.getenv("OSM_TILES_HOST", config.server.host)
    port = os.getenv("OSM_TILES_PORT")
    if port is not None:
        try:
            config.server.port = int(port)
        except ValueError:
            config.env_errors.append(f"OSM_TILES_PORT must be an integer, got {port!r}")
    config.server.static_dir = os.getenv("OSM_TILES_STATIC_DIR", config.server.static_dir)
    return config


# Global config instance
config = load_config()


def get_config() -> TilesConfig:
    """Get global configuration"""
    return config


def validate_config(config: TilesConfig) -> None:
    """
    Validate that all required configuration values are set.
    Raises ValueError if any required value is missing or invalid.
    """
    errors = list(config.env_errors)

    if config.tiles.tile_size is None or config.tiles.tile_size <= 0:
        errors.append(f"tiles.tile_size must be positive, got {config.tiles.tile_size}")

    if config.tiles.max_zoom is None or not 0 <= config.tiles.max_zoom <= 255:
        errors.append(f"tiles.max_zoom must be between 0 and 255, got {config.tiles.max_zoom}")

    if config.tiles.neighbor_zoom_threshold is None:
        errors.append("tiles.neighbor_zoom_threshold is required but not set")

    if config.tiles.label_zoom_threshold is None:
        errors.append("tiles.label_zoom_threshold is required but not set")

    # Every category needs a style
    for category in ("forest", "park", "water_river", "water", "generic", "building"):
        if category not in config.render.styles:
            errors.append(f"render.styles is missing a style for '{category}'")

    if config.render.area_padding < 0:
        errors.append(f"render.area_padding must not be negative, got {config.render.area_padding}")

    if not 0 < config.server.port < 65536:
        errors.append(f"server.port must be between 1 and 65535, got {config.server.port}")

    if not config.paths.dataset:
        errors.append("paths.dataset is required but not set")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)
