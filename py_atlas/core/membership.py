"""
Country membership index.

Each country feature is painted into an offscreen index buffer with a unique
colour key (its feature id bit-packed into RGB). Reading a pixel back and
unpacking the key tells which country covers that pixel; id 0 (untouched
buffer) is ocean.

Only exterior rings are filled unless MembershipOptions.subtract_holes is
set, so enclaves and lakes inside a country polygon resolve to that country.
With it set, a hole only removes coverage of the feature that owns it; an
enclave painted earlier keeps its pixels.
Features are painted in input order and the last one painted wins where
polygons overlap or share a boundary.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import structlog

from .geo_features import GeoFeature, Ring
from .projection import lonlat_to_cell, lonlat_to_pixel
from .raster_surface import RasterSurface, create_surface

logger = structlog.get_logger()

OCEAN_ID = 0
MAX_FEATURE_ID = (1 << 24) - 1
_MASK_ON = (255, 255, 255, 255)
_MASK_OFF = (0, 0, 0, 0)


def encode_id(feature_id: int) -> tuple:
    """Pack a feature id into an opaque RGBA colour key."""
    if not 0 <= feature_id <= MAX_FEATURE_ID:
        raise ValueError(f"Feature id {feature_id} does not fit in 24 bits")
    return (feature_id & 0xFF, (feature_id >> 8) & 0xFF, (feature_id >> 16) & 0xFF, 255)


def decode_ids(pixels: np.ndarray) -> np.ndarray:
    """Unpack colour keys from an (..., 4) uint8 array into integer ids."""
    rgb = pixels[..., :3].astype(np.int32)
    return rgb[..., 0] | (rgb[..., 1] << 8) | (rgb[..., 2] << 16)


@dataclass
class MembershipOptions:
    """Membership index options."""

    backend: str = "pillow"  # Raster surface used when none is passed in
    subtract_holes: bool = False  # Cut interior rings out of their own feature


class MembershipIndex:
    """Maps raster pixels / lon-lat points to the country covering them."""

    def __init__(self, grid: np.ndarray, names: Dict[int, str]):
        """
        Initialize membership index.

        Args:
            grid: (height, width) integer array of feature ids, 0 for ocean
            names: Feature id to country name
        """
        self.grid = grid
        self.names = dict(names)

    @classmethod
    def build(cls, features: Sequence[GeoFeature], width: int = 2048, height: int = 1024,
              surface: Optional[RasterSurface] = None,
              options: Optional[MembershipOptions] = None) -> "MembershipIndex":
        return build_membership_index(features, width, height, surface=surface, options=options)

    @property
    def width(self) -> int:
        return self.grid.shape[1]

    @property
    def height(self) -> int:
        return self.grid.shape[0]

    @property
    def country_names(self) -> List[str]:
        return sorted(set(self.names.values()))

    def name_for(self, feature_id: int) -> Optional[str]:
        if feature_id == OCEAN_ID:
            return None
        return self.names.get(int(feature_id))

    def lookup_id(self, lon: float, lat: float) -> int:
        col, row = lonlat_to_cell(lon, lat, self.width, self.height)
        return int(self.grid[row, col])

    def lookup(self, lon: float, lat: float) -> Optional[str]:
        """Return the country name at (lon, lat), or None for ocean."""
        return self.name_for(self.lookup_id(lon, lat))

    def lookup_ids(self, lons: np.ndarray, lats: np.ndarray) -> np.ndarray:
        """Vectorized lookup_id over arrays of coordinates."""
        cols, rows = lonlat_to_cell(lons, lats, self.width, self.height)
        return self.grid[rows, cols]

    def coverage(self) -> float:
        """Fraction of pixels that belong to some country."""
        return float(np.count_nonzero(self.grid)) / self.grid.size


def _project_ring(ring: Ring, width: int, height: int) -> List[tuple]:
    coords = np.asarray(ring, dtype=np.float64)
    xs, ys = lonlat_to_pixel(coords[:, 0], coords[:, 1], width, height)
    return list(zip(xs.tolist(), ys.tolist()))


def _feature_mask(feature: GeoFeature, scratch: RasterSurface) -> np.ndarray:
    """Pixels covered by one feature with its interior rings cut out.

    Holes are cleared on a scratch surface so they never erase features
    painted earlier into the shared index.
    """
    width, height = scratch.width, scratch.height
    for polygon in feature.polygons:
        scratch.fill_polygon(_project_ring(polygon[0], width, height), _MASK_ON)
        for hole in polygon[1:]:
            scratch.fill_polygon(_project_ring(hole, width, height), _MASK_OFF)
    return scratch.to_array()[..., 3] > 0


def build_membership_index(
    features: Sequence[GeoFeature],
    width: int = 2048,
    height: int = 1024,
    surface: Optional[RasterSurface] = None,
    options: Optional[MembershipOptions] = None,
) -> MembershipIndex:
    """
    Rasterize country features into a membership index.

    Args:
        features: Parsed country features
        width: Index width in pixels (ignored when a surface is given)
        height: Index height in pixels (ignored when a surface is given)
        surface: Blank surface to draw on, created from options.backend if omitted
        options: Membership options

    Returns:
        MembershipIndex

    Raises:
        RasterUnavailableError: If no surface is given and the backend is "none"
    """
    options = options or MembershipOptions()
    if surface is None:
        surface = create_surface(width, height, options.backend)
    width, height = surface.width, surface.height

    names: Dict[int, str] = {}
    for feature in features:
        color = encode_id(feature.feature_id)
        names[feature.feature_id] = feature.name
        if options.subtract_holes and any(len(polygon) > 1 for polygon in feature.polygons):
            mask = _feature_mask(feature, type(surface)(width, height))
            pixels = surface.to_array()
            pixels[mask] = color
            surface.put_pixels(pixels)
        else:
            for ring in feature.exterior_rings:
                surface.fill_polygon(_project_ring(ring, width, height), color)

    grid = decode_ids(surface.to_array())
    index = MembershipIndex(grid, names)
    logger.info(
        "Membership index built",
        features=len(names),
        countries=len(index.country_names),
        width=width,
        height=height,
        land_fraction=round(index.coverage(), 4),
    )
    return index
