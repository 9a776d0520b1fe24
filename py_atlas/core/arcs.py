"""
Connection arcs between entity locations.

For every entity the nearest other entities (planar distance in degrees, no
great-circle correction) are candidates; a random 2-4 of the nearest are
taken and each is kept with probability 0.75. Edges come out in
entity-then-candidate order and A->B / B->A are not deduplicated.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..utils.random import ensure_rng

logger = structlog.get_logger()


@dataclass(frozen=True)
class ArcEdge:
    """Connector between two entity locations."""

    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "startLat": self.start_lat,
            "startLng": self.start_lng,
            "endLat": self.end_lat,
            "endLng": self.end_lng,
        }


@dataclass
class ArcOptions:
    """Arc sampling options."""

    max_distance: float = 100.0  # Degrees; candidates must be strictly closer
    min_neighbors: int = 2  # Random neighbour count lower bound (inclusive)
    max_neighbors: int = 4  # Random neighbour count upper bound and hard cap
    keep_threshold: float = 0.25  # Edge kept when a uniform draw exceeds this

    def __post_init__(self):
        if self.min_neighbors > self.max_neighbors:
            raise ValueError("min_neighbors must not exceed max_neighbors")

    @classmethod
    def from_settings(cls, settings) -> "ArcOptions":
        return cls(
            max_distance=settings.arc_max_distance,
            min_neighbors=settings.arc_min_neighbors,
            max_neighbors=settings.arc_max_neighbors,
            keep_threshold=settings.arc_keep_threshold,
        )


def entity_coordinates(entity: Any) -> Tuple[float, float]:
    """Return (latitude, longitude) of a mapping or attribute-style entity."""
    if isinstance(entity, dict):
        return float(entity["latitude"]), float(entity["longitude"])
    return float(entity.latitude), float(entity.longitude)


def iter_arcs(
    entities: Sequence[Any],
    rng: Optional[np.random.Generator] = None,
    options: Optional[ArcOptions] = None,
) -> Iterator[ArcEdge]:
    """
    Lazily yield connection arcs.

    Args:
        entities: Records with latitude and longitude
        rng: Random source for neighbour counts and edge inclusion
        options: Arc options

    Yields:
        ArcEdge in entity-then-candidate order
    """
    if len(entities) < 2:
        return

    options = options or ArcOptions()
    rng = ensure_rng(rng)
    coords = np.array([entity_coordinates(e) for e in entities], dtype=np.float64)
    lats, lngs = coords[:, 0], coords[:, 1]

    for i in range(len(coords)):
        dist = np.sqrt((lats[i] - lats) ** 2 + (lngs[i] - lngs) ** 2)
        candidates = np.flatnonzero(dist < options.max_distance)
        candidates = candidates[candidates != i]
        candidates = candidates[np.argsort(dist[candidates], kind="stable")]

        count = min(options.max_neighbors,
                    int(rng.integers(options.min_neighbors, options.max_neighbors + 1)))
        for j in candidates[:count]:
            if rng.random() > options.keep_threshold:
                yield ArcEdge(
                    start_lat=float(lats[i]),
                    start_lng=float(lngs[i]),
                    end_lat=float(lats[j]),
                    end_lng=float(lngs[j]),
                )


def generate_arcs(
    entities: Sequence[Any],
    rng: Optional[np.random.Generator] = None,
    options: Optional[ArcOptions] = None,
) -> List[ArcEdge]:
    """Collect iter_arcs into a list."""
    arcs = list(iter_arcs(entities, rng=rng, options=options))
    logger.info("Generated arcs", entities=len(entities), arcs=len(arcs))
    return arcs


def arcs_to_dicts(arcs: Sequence[ArcEdge]) -> List[Dict[str, float]]:
    return [arc.to_dict() for arc in arcs]
