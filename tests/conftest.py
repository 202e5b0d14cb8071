"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import numpy as np
import pytest


@pytest.fixture
def white_raster():
    """Fixture providing an all-white 200x100 raster."""
    from src.common.types import Raster

    return Raster.from_array(np.full((100, 200, 3), 255, dtype=np.uint8))


@pytest.fixture
def document_raster():
    """Fixture providing a white 200x100 raster with a black 100x50 'document'."""
    from src.common.types import Raster

    image = np.full((100, 200, 3), 255, dtype=np.uint8)
    image[25:75, 50:150] = 0
    return Raster.from_array(image)


@pytest.fixture
def patterned_raster():
    """Fixture providing an 80x60 raster whose pixels encode their coordinates."""
    from src.common.types import Raster

    height, width = 60, 80
    ys, xs = np.mgrid[0:height, 0:width]
    data = np.zeros((height, width, 4), dtype=np.uint8)
    data[:, :, 0] = xs
    data[:, :, 1] = ys
    data[:, :, 2] = (xs * 3 + ys * 7) % 256
    data[:, :, 3] = 255
    return Raster(data=data)


@pytest.fixture
def default_config():
    """Fixture providing the bundled rectification configuration."""
    from src.rectification.config_loader import load_config

    return load_config()


@pytest.fixture
def margin10_config(default_config):
    """Bundled configuration with a 10px fixed-margin estimator."""
    from dataclasses import replace

    return replace(
        default_config,
        estimator=replace(default_config.estimator, margin_px=10),
    )
