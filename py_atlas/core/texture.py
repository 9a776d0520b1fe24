"""
Procedural globe texture synthesis.

This module implements:
- Per-pixel ocean depth shading from layered sine/cosine noise plus jitter
- Land and desert tone ramps
- Randomized soft radial patches over the finished raster
- A flat fallback texture for environments without raster drawing

Ocean jitter and the patch layout come from the random source passed in, so
two calls with unseeded generators give similar but not identical images.
"""

import base64
import io
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import structlog
from PIL import Image

from .biomes import Biome, BiomeClassifier
from .geo_features import GeoFeature
from .membership import MembershipIndex, MembershipOptions, build_membership_index
from .projection import pixel_grid, pixel_to_lonlat
from .raster_surface import RasterSurface, RasterUnavailableError, create_surface
from ..utils.random import ensure_rng

logger = structlog.get_logger()

FALLBACK_COLOR = (0, 45, 77)  # #002d4d

# (start rgb, delta rgb) for the tiers below 0.4, 0.4-0.7 and above 0.7
OCEAN_TIERS = (
    ((0, 26, 51), (13, 21, 29)),
    ((13, 47, 80), (32, 43, 55)),
    ((45, 90, 135), (29, 43, 30)),
)
LAND_TIERS = (
    ((100, 100, 90), (30, 35, 25)),
    ((130, 135, 115), (-40, 30, -20)),
    ((90, 165, 95), (-30, -50, -30)),
)
DESERT_RAMP = ((160, 130, 90), (40, 30, 25))

DEEP_PATCH = ((0, 26, 51), 0.4)
SHALLOW_PATCH = ((45, 90, 135), 0.3)


@dataclass
class TextureOptions:
    """Texture synthesis options."""

    width: int = 2048
    height: int = 1024
    backend: str = "pillow"  # Raster surface backend
    overlay_count: int = 30  # Radial variation patches
    overlay_min_radius: float = 150.0
    overlay_max_radius: float = 400.0
    subtract_holes: bool = False  # Passed through to the membership index

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Texture size must be positive, got {self.width}x{self.height}")
        if self.overlay_max_radius < self.overlay_min_radius:
            raise ValueError("overlay_max_radius must not be below overlay_min_radius")

    @classmethod
    def from_settings(cls, settings, **overrides) -> "TextureOptions":
        values = dict(
            width=settings.texture_width,
            height=settings.texture_height,
            backend=settings.raster_backend,
            overlay_count=settings.overlay_count,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class RasterImage:
    """An (height, width, 4) uint8 RGBA texture."""

    pixels: np.ndarray
    is_fallback: bool = False

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def to_png_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.to_pil().save(buf, "PNG")
        return buf.getvalue()

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.to_png_bytes()).decode("ascii")

    def save(self, path) -> None:
        self.to_pil().save(path, "PNG")


def fallback_texture(width: int = 2048, height: int = 1024) -> RasterImage:
    """Flat opaque #002d4d texture used when nothing can be drawn."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = FALLBACK_COLOR
    pixels[..., 3] = 255
    return RasterImage(pixels, is_fallback=True)


def _tiered_ramp(tone: np.ndarray, tiers: Sequence[Tuple[Tuple[int, int, int], Tuple[int, int, int]]]) -> np.ndarray:
    """Interpolate a three tier colour ramp split at 0.4 and 0.7."""
    rgb = np.empty(tone.shape + (3,), dtype=np.float64)
    masks = (tone < 0.4, (tone >= 0.4) & (tone < 0.7), tone >= 0.7)
    lows = (0.0, 0.4, 0.7)
    spans = (0.4, 0.3, 0.3)
    for mask, low, span, (start, delta) in zip(masks, lows, spans, tiers):
        t = (tone[mask] - low) / span
        rgb[mask] = np.floor(np.asarray(start) + t[:, None] * np.asarray(delta))
    return rgb


def ocean_depth(xs: np.ndarray, ys: np.ndarray, jitter: np.ndarray) -> np.ndarray:
    """Normalized ocean depth; ``jitter`` is uniform in [0, 1)."""
    depth = (np.sin(xs * 0.01) * np.cos(ys * 0.01) * 0.3
             + np.sin(xs * 0.03) * np.cos(ys * 0.03) * 0.2
             + np.sin(xs * 0.05) * np.cos(ys * 0.05) * 0.1
             + (jitter - 0.5) * 0.2)
    return (depth + 1) / 2


def land_tone(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    return (np.sin(xs * 0.015) * np.cos(ys * 0.015) * 0.4 + 1) / 2


def desert_tone(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    return (np.sin(xs * 0.02) * np.cos(ys * 0.02) * 0.3 + 1) / 2


def shade_pixels(biomes: np.ndarray, xs: np.ndarray, ys: np.ndarray, jitter: np.ndarray) -> np.ndarray:
    """Base RGB colour for every pixel before the patch overlay."""
    rgb = np.zeros(biomes.shape + (3,), dtype=np.float64)

    ocean = biomes == Biome.OCEAN
    depth = np.clip(ocean_depth(xs[ocean], ys[ocean], jitter[ocean]), 0.0, 1.0)
    rgb[ocean] = _tiered_ramp(depth, OCEAN_TIERS)

    land = biomes == Biome.LAND
    rgb[land] = _tiered_ramp(np.clip(land_tone(xs[land], ys[land]), 0.0, 1.0), LAND_TIERS)

    desert = biomes == Biome.DESERT
    tone = desert_tone(xs[desert], ys[desert])
    start, delta = DESERT_RAMP
    rgb[desert] = np.floor(np.asarray(start) + tone[:, None] * np.asarray(delta))

    return rgb


def apply_radial_patch(rgb: np.ndarray, cx: float, cy: float, radius: float,
                       color: Tuple[int, int, int], alpha: float) -> None:
    """
    Composite one soft circular patch in place.

    Opacity falls linearly from ``alpha`` at the centre to 0 at ``radius``
    and is blended source-over onto whatever is underneath.
    """
    height, width = rgb.shape[:2]
    r0, r1 = max(0, int(np.floor(cy - radius))), min(height, int(np.ceil(cy + radius)))
    c0, c1 = max(0, int(np.floor(cx - radius))), min(width, int(np.ceil(cx + radius)))
    if r0 >= r1 or c0 >= c1:
        return

    rows = np.arange(r0, r1, dtype=np.float64)[:, None] + 0.5
    cols = np.arange(c0, c1, dtype=np.float64)[None, :] + 0.5
    dist = np.sqrt((cols - cx) ** 2 + (rows - cy) ** 2)
    weight = (alpha * np.clip(1.0 - dist / radius, 0.0, 1.0))[..., None]

    window = rgb[r0:r1, c0:c1]
    window *= 1.0 - weight
    window += weight * np.asarray(color, dtype=np.float64)


def overlay_patches(rgb: np.ndarray, rng: np.random.Generator, options: TextureOptions) -> None:
    """Scatter deep and shallow patches over the whole raster, land included."""
    height, width = rgb.shape[:2]
    spread = options.overlay_max_radius - options.overlay_min_radius
    for _ in range(options.overlay_count):
        cx = rng.random() * width
        cy = rng.random() * height
        radius = options.overlay_min_radius + rng.random() * spread
        color, alpha = DEEP_PATCH if rng.random() > 0.5 else SHALLOW_PATCH
        apply_radial_patch(rgb, cx, cy, radius, color, alpha)


def synthesize_texture(
    index: MembershipIndex,
    rng: Optional[np.random.Generator] = None,
    options: Optional[TextureOptions] = None,
    surface: Optional[RasterSurface] = None,
    classifier: Optional[BiomeClassifier] = None,
) -> RasterImage:
    """
    Paint the globe texture.

    Args:
        index: Country membership index
        rng: Random source for ocean jitter and patches
        options: Texture options
        surface: Surface receiving the finished pixels, created from options.backend if omitted
        classifier: Biome classifier

    Returns:
        Opaque RasterImage of options.width x options.height
    """
    options = options or TextureOptions()
    rng = ensure_rng(rng)
    classifier = classifier or BiomeClassifier()
    width, height = options.width, options.height
    start = time.perf_counter()

    xs, ys = pixel_grid(width, height)
    lons, lats = pixel_to_lonlat(xs, ys, width, height)
    if index.grid.shape == (height, width):
        ids = index.grid
    else:
        ids = index.lookup_ids(lons, lats)

    biomes = classifier.classify_grid(ids, index.names, lons, lats)
    jitter = rng.random((height, width))
    rgb = shade_pixels(biomes, xs, ys, jitter)
    overlay_patches(rgb, rng, options)

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    pixels[..., 3] = 255

    if surface is None:
        surface = create_surface(width, height, options.backend)
    surface.put_pixels(pixels)
    image = RasterImage(surface.to_array())

    logger.info(
        "Texture synthesized",
        width=width,
        height=height,
        overlays=options.overlay_count,
        elapsed_seconds=round(time.perf_counter() - start, 3),
    )
    return image


def render_globe_texture(
    features: Sequence[GeoFeature],
    rng: Optional[np.random.Generator] = None,
    options: Optional[TextureOptions] = None,
    classifier: Optional[BiomeClassifier] = None,
) -> RasterImage:
    """
    Build the membership index and synthesize the texture in one go.

    Returns the flat fallback texture when the configured backend cannot
    draw (RasterUnavailableError).
    """
    options = options or TextureOptions()
    try:
        index_surface = create_surface(options.width, options.height, options.backend)
        texture_surface = create_surface(options.width, options.height, options.backend)
    except RasterUnavailableError as e:
        logger.warning("Raster drawing unavailable, using fallback texture", error=str(e))
        return fallback_texture(options.width, options.height)

    index = build_membership_index(
        features,
        surface=index_surface,
        options=MembershipOptions(backend=options.backend, subtract_holes=options.subtract_holes),
    )
    return synthesize_texture(index, rng=rng, options=options, surface=texture_surface, classifier=classifier)
