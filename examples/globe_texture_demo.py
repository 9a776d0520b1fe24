#!/usr/bin/env python3
"""
Demo script rendering a globe texture and a set of connection arcs.
"""

import sys

import numpy as np

from py_atlas.config import settings
from py_atlas.core import (
    Biome,
    BiomeClassifier,
    TextureOptions,
    build_membership_index,
    fetch_feature_collection,
    generate_arcs,
    load_feature_collection,
    synthesize_texture,
)
from py_atlas.core.projection import pixel_grid, pixel_to_lonlat
from py_atlas.utils.random import get_rng

SAMPLE_ENTITIES = [
    {"name": "Tel Aviv", "latitude": 32.08, "longitude": 34.78},
    {"name": "London", "latitude": 51.51, "longitude": -0.13},
    {"name": "Paris", "latitude": 48.86, "longitude": 2.35},
    {"name": "Berlin", "latitude": 52.52, "longitude": 13.40},
    {"name": "Washington", "latitude": 38.91, "longitude": -77.04},
    {"name": "Beijing", "latitude": 39.90, "longitude": 116.40},
]


def main():
    """Render world_texture.png from a local or remote FeatureCollection."""
    print("Py-Atlas Globe Texture Demo")
    print("=" * 40)

    if len(sys.argv) > 1:
        print(f"\nLoading borders from {sys.argv[1]}...")
        features = load_feature_collection(sys.argv[1])
    else:
        print(f"\nDownloading borders from {settings.geojson_url}...")
        features = fetch_feature_collection(settings.geojson_url)
    print(f"Loaded {len(features)} countries")

    options = TextureOptions(width=1024, height=512, backend="buffer")
    index = build_membership_index(features, width=options.width, height=options.height)
    print(f"Land coverage: {index.coverage() * 100:.1f}%")

    for lon, lat in [(2.35, 48.86), (3.0, 25.0), (-30.0, 0.0)]:
        print(f"  ({lon}, {lat}) -> {index.lookup(lon, lat) or 'ocean'}")

    xs, ys = pixel_grid(options.width, options.height)
    lons, lats = pixel_to_lonlat(xs, ys, options.width, options.height)
    biomes = BiomeClassifier().classify_grid(index.grid, index.names, lons, lats)
    for biome in Biome:
        print(f"  {biome.name.lower()}: {np.mean(biomes == biome) * 100:.1f}%")

    image = synthesize_texture(index, rng=get_rng("demo"), options=options)
    image.save("world_texture.png")
    print("\nSaved world_texture.png")

    arcs = generate_arcs(SAMPLE_ENTITIES, rng=get_rng("demo"))
    print(f"\nGenerated {len(arcs)} arcs between {len(SAMPLE_ENTITIES)} entities")
    for arc in arcs:
        print(f"  ({arc.start_lat}, {arc.start_lng}) -> ({arc.end_lat}, {arc.end_lng})")


if __name__ == "__main__":
    main()
