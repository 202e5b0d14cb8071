"""
I/O Utilities

Reading and writing rasters as image files.
"""

from pathlib import Path

import numpy as np
from PIL import Image

from src.common.types import Raster


def load_raster(file_path: Path) -> Raster:
    """Load an image file as an RGBA raster."""
    if not file_path.exists():
        raise FileNotFoundError(f"Image not found: {file_path}")
    with Image.open(file_path) as img:
        return Raster(data=np.array(img.convert('RGBA')))


def save_raster(raster: Raster, file_path: Path):
    """
    Save a raster to disk.

    Formats without alpha (JPEG) get the RGB channels only.
    """
    if raster.is_empty:
        raise ValueError(f"Cannot save empty raster to {file_path}")

    file_path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.fromarray(raster.data)
    if file_path.suffix.lower() in ('.jpg', '.jpeg', '.bmp'):
        img = img.convert('RGB')
    img.save(file_path)
