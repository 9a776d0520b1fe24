from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")
    allowed_origins: str = Field(default="*", description="CORS allowed origins, comma separated")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (e.g., plain, json)")

    # Texture Configuration
    texture_width: int = Field(default=2048, gt=0, description="Globe texture width in pixels")
    texture_height: int = Field(default=1024, gt=0, description="Globe texture height in pixels")
    raster_backend: str = Field(default="pillow", description="Raster surface backend: pillow, buffer or none")
    overlay_count: int = Field(default=30, ge=0, description="Number of radial variation patches")

    # Country borders
    geojson_url: str = Field(
        default="https://raw.githubusercontent.com/holtzy/D3-graph-gallery/master/DATA/world.geojson",
        description="Country border FeatureCollection used for the globe texture",
    )
    geojson_timeout_seconds: float = Field(default=10.0, gt=0, description="Download timeout for border data")

    # Arc Configuration
    arc_max_distance: float = Field(default=100.0, gt=0, description="Max planar degree distance for arcs")
    arc_min_neighbors: int = Field(default=2, ge=0, description="Lower bound of the random neighbor count")
    arc_max_neighbors: int = Field(default=4, ge=0, description="Upper bound of the random neighbor count")
    arc_keep_threshold: float = Field(default=0.25, ge=0, le=1, description="Edges are kept when a uniform draw exceeds this")

    # Randomness
    random_seed: Optional[str] = Field(default=None, description="Fixed seed for reproducible output")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
