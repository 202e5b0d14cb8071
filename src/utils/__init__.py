"""
Shared Utilities

Common functions used across all modules.
"""

from src.utils.io import load_raster, save_raster
from src.utils.visualization import draw_corner_overlay

__all__ = [
    "load_raster",
    "save_raster",
    "draw_corner_overlay",
]
