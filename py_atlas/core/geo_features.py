"""
GeoJSON country border loading.

This module implements:
- Parsing of Polygon / MultiPolygon FeatureCollections into GeoFeature records
- Country name resolution from feature properties
- Loading border data from disk or over HTTP
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests
import structlog

logger = structlog.get_logger()

NAME_KEYS = ("NAME", "name", "NAME_LONG")
UNKNOWN_NAME = "Unknown"

Ring = Tuple[Tuple[float, float], ...]
Polygon = Tuple[Ring, ...]


class GeoDataError(Exception):
    """Raised when country border data cannot be read."""


@dataclass(frozen=True)
class GeoFeature:
    """One country feature.

    Every accepted feature gets its own id, even when several share a
    display name, so unnamed features never merge into one country.
    """

    feature_id: int
    name: str
    polygons: Tuple[Polygon, ...]  # polygon -> rings -> (lon, lat); ring 0 is exterior

    @property
    def exterior_rings(self) -> List[Ring]:
        return [polygon[0] for polygon in self.polygons]


def feature_name(properties: Optional[Dict[str, Any]]) -> str:
    """Resolve a country name, first present key wins."""
    if not properties:
        return UNKNOWN_NAME
    for key in NAME_KEYS:
        value = properties.get(key)
        if value is not None:
            return str(value)
    return UNKNOWN_NAME


def _parse_ring(raw_ring: Sequence[Any]) -> Optional[Ring]:
    points = []
    for vertex in raw_ring:
        if not isinstance(vertex, (list, tuple)) or len(vertex) < 2:
            raise ValueError(f"Invalid vertex {vertex!r}")
        lon, lat = float(vertex[0]), float(vertex[1])
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise ValueError(f"Non-finite vertex {vertex!r}")
        points.append((lon, lat))
    if len(points) < 3:
        return None
    return tuple(points)


def _parse_polygon(raw_polygon: Sequence[Any]) -> Optional[Polygon]:
    if not isinstance(raw_polygon, (list, tuple)) or not raw_polygon:
        raise ValueError("Polygon must be a non-empty list of rings")
    exterior = _parse_ring(raw_polygon[0])
    if exterior is None:
        return None
    holes = [ring for ring in (_parse_ring(r) for r in raw_polygon[1:]) if ring is not None]
    return (exterior, *holes)


def parse_geometry(geometry: Optional[Dict[str, Any]]) -> Tuple[Polygon, ...]:
    """
    Convert a GeoJSON geometry into polygons.

    Args:
        geometry: GeoJSON geometry object

    Returns:
        Tuple of polygons (rings of lon/lat pairs)

    Raises:
        ValueError: If the geometry is missing, of an unsupported type or malformed
    """
    if not isinstance(geometry, dict):
        raise ValueError("Missing geometry")

    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, (list, tuple)):
        raise ValueError("Missing coordinates")

    if geom_type == "Polygon":
        raw_polygons = [coordinates]
    elif geom_type == "MultiPolygon":
        raw_polygons = coordinates
    else:
        raise ValueError(f"Unsupported geometry type {geom_type!r}")

    polygons = tuple(p for p in (_parse_polygon(raw) for raw in raw_polygons) if p is not None)
    if not polygons:
        raise ValueError("Geometry has no usable rings")
    return polygons


def parse_feature_collection(data: Dict[str, Any]) -> List[GeoFeature]:
    """
    Parse a GeoJSON FeatureCollection.

    Features with missing or malformed geometry are skipped; parsing never
    aborts because of a single bad feature.

    Args:
        data: Decoded FeatureCollection

    Returns:
        List of GeoFeature with ids 1..n in input order
    """
    if not isinstance(data, dict):
        raise GeoDataError("GeoJSON root must be an object")

    raw_features = data.get("features")
    if not isinstance(raw_features, list):
        raise GeoDataError("GeoJSON has no 'features' list")

    features: List[GeoFeature] = []
    skipped = 0
    for position, raw in enumerate(raw_features):
        if not isinstance(raw, dict):
            skipped += 1
            logger.warning("Skipping non-object feature", position=position)
            continue
        name = feature_name(raw.get("properties"))
        try:
            polygons = parse_geometry(raw.get("geometry"))
        except (ValueError, TypeError) as e:
            skipped += 1
            logger.warning("Skipping feature with bad geometry", position=position, name=name, error=str(e))
            continue
        features.append(GeoFeature(feature_id=len(features) + 1, name=name, polygons=polygons))

    logger.info("Parsed country features", accepted=len(features), skipped=skipped)
    return features


def load_feature_collection(path: Union[str, Path]) -> List[GeoFeature]:
    """Read and parse a GeoJSON file from disk."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise GeoDataError(f"Cannot read {path}: {e}") from e
    return parse_feature_collection(data)


def fetch_feature_collection(url: str, timeout: float = 10.0) -> List[GeoFeature]:
    """
    Download and parse a GeoJSON FeatureCollection.

    Args:
        url: Location of the FeatureCollection
        timeout: Request timeout in seconds

    Returns:
        Parsed features

    Raises:
        GeoDataError: On transport errors, non-2xx responses or invalid JSON
    """
    logger.info("Fetching country borders", url=url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Failed to fetch country borders", url=url, error=str(e))
        raise GeoDataError(f"Cannot fetch {url}: {e}") from e
    return parse_feature_collection(data)
