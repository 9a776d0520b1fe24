"""Equirectangular projection between lon/lat and raster pixels."""

from typing import Tuple

import numpy as np


def pixel_to_lonlat(x, y, width: int, height: int) -> Tuple:
    """Map raster coordinates to (longitude, latitude). Works on scalars and arrays."""
    lon = x / width * 360.0 - 180.0
    lat = 90.0 - y / height * 180.0
    return lon, lat


def lonlat_to_pixel(lon, lat, width: int, height: int) -> Tuple:
    """Map (longitude, latitude) to continuous raster coordinates."""
    x = (lon + 180.0) / 360.0 * width
    y = (90.0 - lat) / 180.0 * height
    return x, y


def lonlat_to_cell(lon, lat, width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """Map (longitude, latitude) to integer pixel indices clamped to the raster."""
    x, y = lonlat_to_pixel(np.asarray(lon, dtype=np.float64), np.asarray(lat, dtype=np.float64), width, height)
    cols = np.clip(np.floor(x), 0, width - 1).astype(np.int64)
    rows = np.clip(np.floor(y), 0, height - 1).astype(np.int64)
    return cols, rows


def pixel_grid(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return (xs, ys) index grids of shape (height, width)."""
    return np.meshgrid(np.arange(width, dtype=np.float64), np.arange(height, dtype=np.float64))
