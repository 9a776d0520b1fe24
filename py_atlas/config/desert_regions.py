"""
Desert regions used by the biome classifier.

Bounding boxes are coarse (lat_min, lat_max, lon_min, lon_max) rectangles,
inclusive on every edge. A country must be on DESERT_COUNTRIES for its
pixels inside a box to render as desert. Countries on CATCH_ALL_DESERT_COUNTRIES
render as desert everywhere; they are small, almost entirely arid states that
no box is drawn for. Names cover the spellings used by the common world
GeoJSON datasets (Natural Earth NAME / NAME_LONG and the D3 gallery file).
"""

from typing import Dict, FrozenSet, NamedTuple


class DesertBox(NamedTuple):
    """Latitude/longitude rectangle of a named desert."""

    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, lon: float, lat: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lon_min <= lon <= self.lon_max


DESERT_BOXES: Dict[str, DesertBox] = {
    "sahara": DesertBox(10, 30, -15, 40),
    "arabian": DesertBox(12, 30, 35, 60),
    "gobi": DesertBox(40, 50, 90, 120),
    "australian": DesertBox(-30, -15, 110, 150),
    "kalahari": DesertBox(-25, -20, 19, 25),
    "atacama": DesertBox(-30, -15, -75, -70),
    "sonoran_mojave": DesertBox(25, 40, -120, -110),
    "thar": DesertBox(24, 30, 68, 75),
    "patagonian": DesertBox(-50, -40, -75, -65),
    "namib": DesertBox(-25, -15, 12, 20),
    "taklamakan": DesertBox(37, 42, 75, 90),
    "karakum": DesertBox(37, 42, 55, 65),
    "syrian": DesertBox(32, 37, 37, 42),
    "great_basin": DesertBox(35, 42, -120, -110),
    "chihuahuan": DesertBox(25, 35, -110, -100),
}

DESERT_COUNTRIES: FrozenSet[str] = frozenset({
    # North Africa / Sahel
    "Algeria", "Libya", "Egypt", "Mali", "Niger", "Chad", "Sudan", "Mauritania",
    "Morocco", "Tunisia", "Western Sahara", "W. Sahara",
    # Arabian peninsula and the Levant
    "Saudi Arabia", "Yemen", "Oman", "Jordan", "Iraq", "Syria", "Israel",
    "United Arab Emirates", "Qatar", "Kuwait", "Bahrain",
    # Central and East Asia
    "Mongolia", "China", "Turkmenistan", "Uzbekistan", "Kazakhstan",
    "India", "Pakistan",
    # Southern Africa
    "Botswana", "Namibia", "South Africa",
    # Oceania
    "Australia",
    # Americas
    "Chile", "Peru", "Argentina", "Mexico",
    "United States", "United States of America", "USA",
})

CATCH_ALL_DESERT_COUNTRIES: FrozenSet[str] = frozenset({
    "Western Sahara", "W. Sahara", "Qatar", "Kuwait", "Bahrain", "United Arab Emirates",
})
