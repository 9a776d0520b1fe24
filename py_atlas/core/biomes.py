"""
Biome classification for globe texture pixels.

This module implements:
- Ocean / land / desert classification from country membership
- Desert detection from a desert-prone country allow-list and named boxes
- A vectorized classifier for whole rasters

The classifier is deliberately coarse: it only has to look plausible at
texture resolution, not match real aridity maps.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, FrozenSet, Mapping, Optional

import numpy as np
import structlog

from ..config.desert_regions import (
    CATCH_ALL_DESERT_COUNTRIES,
    DESERT_BOXES,
    DESERT_COUNTRIES,
    DesertBox,
)

logger = structlog.get_logger()


class Biome(IntEnum):
    """Coarse visual classification of a raster point."""

    OCEAN = 0
    LAND = 1
    DESERT = 2


BIOME_NAMES = {
    Biome.OCEAN: "Ocean",
    Biome.LAND: "Land",
    Biome.DESERT: "Desert",
}


@dataclass
class BiomeOptions:
    """Desert lookup tables, overridable for tests or other datasets."""

    desert_countries: FrozenSet[str] = field(default_factory=lambda: DESERT_COUNTRIES)
    catch_all_countries: FrozenSet[str] = field(default_factory=lambda: CATCH_ALL_DESERT_COUNTRIES)
    desert_boxes: Dict[str, DesertBox] = field(default_factory=lambda: dict(DESERT_BOXES))


class BiomeClassifier:
    """Decides whether a point renders as ocean, desert or land."""

    def __init__(self, options: Optional[BiomeOptions] = None):
        self.options = options or BiomeOptions()

    def is_desert_country(self, country_name: str) -> bool:
        return (country_name in self.options.desert_countries
                or country_name in self.options.catch_all_countries)

    def in_desert_box(self, lon: float, lat: float) -> bool:
        return any(box.contains(lon, lat) for box in self.options.desert_boxes.values())

    def classify(self, country_name: Optional[str], lon: float, lat: float) -> Biome:
        """
        Classify one point.

        Args:
            country_name: Country covering the point, None for ocean
            lon: Longitude in degrees
            lat: Latitude in degrees

        Returns:
            Biome of the point
        """
        if country_name is None:
            return Biome.OCEAN
        if country_name in self.options.catch_all_countries:
            return Biome.DESERT
        if country_name in self.options.desert_countries and self.in_desert_box(lon, lat):
            return Biome.DESERT
        return Biome.LAND

    def desert_box_mask(self, lons: np.ndarray, lats: np.ndarray) -> np.ndarray:
        """Boolean mask of points inside any desert box."""
        mask = np.zeros(np.shape(lons), dtype=bool)
        for box in self.options.desert_boxes.values():
            mask |= ((lats >= box.lat_min) & (lats <= box.lat_max)
                     & (lons >= box.lon_min) & (lons <= box.lon_max))
        return mask

    def classify_grid(
        self,
        ids: np.ndarray,
        names: Mapping[int, str],
        lons: np.ndarray,
        lats: np.ndarray,
    ) -> np.ndarray:
        """
        Classify every pixel of a raster at once.

        Args:
            ids: Feature id per pixel, 0 for ocean
            names: Feature id to country name
            lons: Longitude per pixel
            lats: Latitude per pixel

        Returns:
            uint8 array of Biome values, same shape as ids
        """
        max_id = int(ids.max()) if ids.size else 0
        desert_ok = np.zeros(max_id + 1, dtype=bool)
        catch_all = np.zeros(max_id + 1, dtype=bool)
        for feature_id, name in names.items():
            if feature_id > max_id:
                continue
            desert_ok[feature_id] = name in self.options.desert_countries
            catch_all[feature_id] = name in self.options.catch_all_countries

        biomes = np.full(ids.shape, Biome.OCEAN, dtype=np.uint8)
        land = ids != 0
        biomes[land] = Biome.LAND

        desert = land & (catch_all[ids] | (desert_ok[ids] & self.desert_box_mask(lons, lats)))
        biomes[desert] = Biome.DESERT

        logger.debug(
            "Classified raster biomes",
            ocean=int(np.count_nonzero(biomes == Biome.OCEAN)),
            land=int(np.count_nonzero(biomes == Biome.LAND)),
            desert=int(np.count_nonzero(biomes == Biome.DESERT)),
        )
        return biomes
