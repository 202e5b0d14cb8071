"""
Geometry utilities for the Rectification module.

Edge lengths, output dimensions, and the bilinear corner mapping used to
flatten a quadrilateral selection into a rectangle.
"""

import logging
import math
from typing import Tuple, Union

import numpy as np

from src.rectification.types import CornerSet

logger = logging.getLogger(__name__)

CornerLike = Union[CornerSet, np.ndarray, list]


def _as_array(corners: CornerLike) -> np.ndarray:
    if isinstance(corners, CornerSet):
        return corners.to_numpy()

    corners = np.array(corners, dtype=np.float64)
    if corners.shape != (4, 2):
        raise ValueError(f"Expected 4 corners with shape (4, 2), got {corners.shape}")
    return corners


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def calculate_edge_lengths(
    corners: CornerLike,
) -> Tuple[float, float, float, float]:
    """
    Calculate the length of all 4 edges of the quadrilateral.

    Args:
        corners: 4 corner points in order [TL, TR, BR, BL].

    Returns:
        Tuple of (top_edge, right_edge, bottom_edge, left_edge) lengths.

    Example:
        >>> top, right, bottom, left = calculate_edge_lengths(
        ...     [[0, 0], [300, 0], [300, 100], [0, 100]]
        ... )
        >>> print(f"Width: {top:.0f}, Height: {right:.0f}")
        Width: 300, Height: 100
    """
    tl, tr, br, bl = _as_array(corners)

    top_edge = float(np.linalg.norm(tr - tl))
    right_edge = float(np.linalg.norm(br - tr))
    bottom_edge = float(np.linalg.norm(br - bl))
    left_edge = float(np.linalg.norm(bl - tl))

    logger.debug(
        f"Edge lengths - Top: {top_edge:.1f}, Right: {right_edge:.1f}, "
        f"Bottom: {bottom_edge:.1f}, Left: {left_edge:.1f}"
    )

    return top_edge, right_edge, bottom_edge, left_edge


def calculate_output_dimensions(corners: CornerLike) -> Tuple[int, int]:
    """
    Calculate the pixel size of the rectified output.

    Takes the longer of each pair of opposing edges so a trapezoid skewed by
    perspective is not under-sized, then rounds to whole pixels.

    Args:
        corners: 4 corner points in order [TL, TR, BR, BL].

    Returns:
        Tuple of (output_width, output_height).

    Example:
        >>> calculate_output_dimensions([[10, 10], [110, 20], [100, 120], [20, 110]])
        (100, 100)
    """
    top, right, bottom, left = calculate_edge_lengths(corners)

    width = round_half_up(max(top, bottom))
    height = round_half_up(max(left, right))

    logger.debug(f"Output dimensions: {width} x {height}")

    return width, height


def bilinear_map(
    corners: CornerLike, u: np.ndarray, v: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map normalized destination coordinates onto the quadrilateral.

    Each source coordinate is a weighted blend of the four corners:
    ``tl*(1-u)(1-v) + tr*u(1-v) + br*u*v + bl*(1-u)*v``. This is exact for
    parallelograms only; strong perspective skew shows as curved content.

    Args:
        corners: 4 corner points in order [TL, TR, BR, BL].
        u: Normalized horizontal position(s) in [0, 1].
        v: Normalized vertical position(s) in [0, 1].

    Returns:
        Tuple of (src_x, src_y) arrays broadcast from u and v.
    """
    tl, tr, br, bl = _as_array(corners)
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)

    w_tl = (1 - u) * (1 - v)
    w_tr = u * (1 - v)
    w_br = u * v
    w_bl = (1 - u) * v

    src_x = tl[0] * w_tl + tr[0] * w_tr + br[0] * w_br + bl[0] * w_bl
    src_y = tl[1] * w_tl + tr[1] * w_tr + br[1] * w_br + bl[1] * w_bl

    return src_x, src_y


def is_convex_quadrilateral(corners: CornerLike) -> bool:
    """
    Check if 4 ordered points form a convex quadrilateral.

    Convex when the 2D cross products of all consecutive edge pairs share a
    sign. Mixed signs indicate concavity or self-intersection.
    """
    rect = _as_array(corners)
    cross_products = []

    for i in range(4):
        p1 = rect[i]
        p2 = rect[(i + 1) % 4]
        p3 = rect[(i + 2) % 4]

        v1 = p2 - p1
        v2 = p3 - p2

        cross_products.append(v1[0] * v2[1] - v1[1] * v2[0])

    # Allow small numerical errors near zero
    signs = [cp > 1e-6 for cp in cross_products]
    is_convex = all(signs) or not any(signs)

    if not is_convex:
        logger.debug(f"Non-convex quadrilateral. Cross products: {cross_products}")

    return is_convex
