"""
CornerEstimator - Initial corner guess for a captured still.

Two strategies are available:

- FIXED_MARGIN: a rectangle inset by a fixed margin from the image border.
- EDGE_BOUNDING_BOX: the bounding box of strong Sobel edges, inset by a
  (smaller) margin. This is a bounding-box heuristic only; the corners are
  always axis-aligned and no rotated quadrilateral is fitted.

Estimation never fails: a blank image falls back to the full-image box.
"""

import logging
from typing import Optional, Union

import cv2
import numpy as np

from src.common.types import BBox, Point, Raster
from src.rectification.types import CornerSet, EstimationStrategy, EstimatorConfig

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def to_luma(raster: Union[Raster, np.ndarray]) -> np.ndarray:
    """
    Luminance of an RGB(A) image as float64, ``0.299R + 0.587G + 0.114B``.

    Args:
        raster: Raster or (H, W, 3|4) uint8 array.

    Returns:
        (H, W) float64 array in [0, 255].
    """
    data = raster.data if isinstance(raster, Raster) else np.asarray(raster)
    return data[:, :, :3].astype(np.float64) @ LUMA_WEIGHTS


def fixed_margin_corners(bbox: BBox, margin: int) -> CornerSet:
    """
    Corners inset by ``margin`` from each side of ``bbox``.

    When an axis is too short for the inset (length <= 2 * margin) the
    margin on that axis is dropped so the rectangle keeps a positive size.

    Example:
        >>> fixed_margin_corners(BBox.full_image(200, 100), 10).to_list()
        [[10.0, 10.0], [190.0, 10.0], [190.0, 90.0], [10.0, 90.0]]
    """
    margin_x = margin if bbox.width > 2 * margin else 0
    margin_y = margin if bbox.height > 2 * margin else 0

    if (margin_x, margin_y) != (margin, margin):
        logger.debug(
            f"Box {bbox.width}x{bbox.height} too small for margin {margin}, "
            f"using ({margin_x}, {margin_y})"
        )

    left = float(bbox.x1 + margin_x)
    top = float(bbox.y1 + margin_y)
    right = float(bbox.x2 - margin_x)
    bottom = float(bbox.y2 - margin_y)

    return CornerSet(
        [
            Point(x=left, y=top),
            Point(x=right, y=top),
            Point(x=right, y=bottom),
            Point(x=left, y=bottom),
        ]
    )


def edge_strength(raster: Raster) -> np.ndarray:
    """Sobel gradient magnitude of the raster's luma channel."""
    luma = to_luma(raster).astype(np.float32)
    grad_x = cv2.Sobel(luma, cv2.CV_32F, 1, 0, ksize=3)
    grad_y = cv2.Sobel(luma, cv2.CV_32F, 0, 1, ksize=3)
    return cv2.magnitude(grad_x, grad_y)


def edge_bounding_box(raster: Raster, threshold: float) -> Optional[BBox]:
    """
    Bounding box of pixels whose edge strength exceeds ``threshold``.

    Returns:
        BBox with exclusive right/bottom edges, or None if no pixel qualifies.
    """
    if raster.is_empty:
        return None

    ys, xs = np.nonzero(edge_strength(raster) > threshold)
    if xs.size == 0:
        return None

    return BBox(
        x1=int(xs.min()),
        y1=int(ys.min()),
        x2=int(xs.max()) + 1,
        y2=int(ys.max()) + 1,
    )


class CornerEstimator:
    """
    Derives an initial CornerSet from a captured raster.

    Example:
        >>> estimator = CornerEstimator(config.estimator)
        >>> corners = estimator.estimate(raster)
        >>> corners.top_left
        Point(x=40, y=40)
    """

    def __init__(self, config: EstimatorConfig):
        self.config = config

    def estimate(
        self, raster: Raster, strategy: Optional[EstimationStrategy] = None
    ) -> CornerSet:
        """
        Estimate the four document corners.

        Args:
            raster: Captured still.
            strategy: Override for the configured strategy.

        Returns:
            CornerSet ordered [TL, TR, BR, BL]. Always four points.
        """
        strategy = strategy or self.config.strategy
        full = BBox.full_image(raster.width, raster.height)

        if strategy == EstimationStrategy.EDGE_BOUNDING_BOX:
            bbox = edge_bounding_box(raster, self.config.edge_threshold)
            if bbox is None:
                logger.info("No edges above threshold, falling back to full image")
                bbox = full
            corners = fixed_margin_corners(bbox, self.config.edge_margin_px)
        else:
            corners = fixed_margin_corners(full, self.config.margin_px)

        logger.info(f"Estimated corners ({strategy.value}): {corners.to_list()}")
        return corners
