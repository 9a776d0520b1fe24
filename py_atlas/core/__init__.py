"""
Core globe rendering-data functionality.
"""

from .geo_features import GeoFeature, GeoDataError, parse_feature_collection, load_feature_collection, fetch_feature_collection
from .raster_surface import RasterSurface, BufferSurface, PillowSurface, RasterUnavailableError, create_surface
from .membership import MembershipIndex, MembershipOptions, build_membership_index
from .biomes import Biome, BiomeClassifier, BiomeOptions
from .texture import RasterImage, TextureOptions, synthesize_texture, render_globe_texture, fallback_texture
from .arcs import ArcEdge, ArcOptions, iter_arcs, generate_arcs
from .entities import GeoEntity, GlobePoint, filter_entities, to_globe_points, count_critical

__all__ = ['GeoFeature', 'GeoDataError', 'parse_feature_collection', 'load_feature_collection',
           'fetch_feature_collection',
           'RasterSurface', 'BufferSurface', 'PillowSurface', 'RasterUnavailableError', 'create_surface',
           'MembershipIndex', 'MembershipOptions', 'build_membership_index',
           'Biome', 'BiomeClassifier', 'BiomeOptions',
           'RasterImage', 'TextureOptions', 'synthesize_texture', 'render_globe_texture', 'fallback_texture',
           'ArcEdge', 'ArcOptions', 'iter_arcs', 'generate_arcs',
           'GeoEntity', 'GlobePoint', 'filter_entities', 'to_globe_points', 'count_critical']
