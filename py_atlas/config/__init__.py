"""
Configuration modules for texture and arc generation.
"""

from .config import settings, Settings
from .desert_regions import DESERT_BOXES, DESERT_COUNTRIES, CATCH_ALL_DESERT_COUNTRIES, DesertBox

__all__ = ['settings', 'Settings', 'DESERT_BOXES', 'DESERT_COUNTRIES',
           'CATCH_ALL_DESERT_COUNTRIES', 'DesertBox']
