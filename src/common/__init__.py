"""
Common types shared across all modules.

This module provides standardized data types for the document rectification
pipeline, ensuring consistency between the estimator, editor, engine, filters,
and the camera/OCR collaborators.
"""

from src.common.types import BBox, Point, Raster

__all__ = ["Raster", "BBox", "Point"]
