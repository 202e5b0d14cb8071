"""
Image Rectification Engine

Resamples the quadrilateral selection of a source raster into an
axis-aligned rectangle.

The default BILINEAR strategy blends the four corner positions with the
normalized destination coordinates (u, v). It is only exact for
parallelograms; strong perspective skew bends straight content. The
HOMOGRAPHY strategy uses a true projective mapping under the same contract.

Both strategies sample nearest-neighbour, leave destination pixels whose
source falls outside the raster at zero (transparent), and force alpha to
255 on every written pixel. Degenerate quadrilaterals are not rejected here:
they produce an empty or tiny raster.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

import cv2
import numpy as np

from src.common.types import Raster
from src.rectification.geometry import bilinear_map, calculate_output_dimensions
from src.rectification.types import CornerSet, WarpStrategy

logger = logging.getLogger(__name__)

SourceMap = Tuple[np.ndarray, np.ndarray]


def _destination_grid(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """Integer destination coordinates as (H, W) float arrays."""
    ys, xs = np.mgrid[0:height, 0:width]
    return xs.astype(np.float64), ys.astype(np.float64)


def bilinear_source_map(corners: CornerSet, width: int, height: int) -> SourceMap:
    """Source coordinates of every destination pixel via bilinear corner blending."""
    xs, ys = _destination_grid(width, height)
    return bilinear_map(corners, xs / width, ys / height)


def homography_source_map(corners: CornerSet, width: int, height: int) -> SourceMap:
    """
    Source coordinates of every destination pixel via a projective transform.

    The destination rectangle corners are (0,0), (W,0), (W,H), (0,H), matching
    the u = x / W, v = y / H convention of the bilinear strategy.
    """
    dst = np.array(
        [[0, 0], [width, 0], [width, height], [0, height]], dtype=np.float32
    )
    src = corners.to_numpy(np.float32)

    # dst -> src
    matrix = cv2.getPerspectiveTransform(dst, src).astype(np.float64)

    xs, ys = _destination_grid(width, height)
    ones = np.ones_like(xs)
    homogeneous = np.stack([xs, ys, ones], axis=-1) @ matrix.T

    with np.errstate(divide="ignore", invalid="ignore"):
        src_x = homogeneous[..., 0] / homogeneous[..., 2]
        src_y = homogeneous[..., 1] / homogeneous[..., 2]

    return src_x, src_y


WARP_STRATEGIES: Dict[WarpStrategy, Callable[[CornerSet, int, int], SourceMap]] = {
    WarpStrategy.BILINEAR: bilinear_source_map,
    WarpStrategy.HOMOGRAPHY: homography_source_map,
}


def sample_nearest(source: Raster, src_x: np.ndarray, src_y: np.ndarray) -> Raster:
    """
    Nearest-neighbour sampling of ``source`` at the given coordinates.

    Coordinates are rounded half up. Samples outside
    [0, source.width) x [0, source.height) leave the destination pixel at
    zero; in-bounds samples copy R, G, B and set alpha to 255.
    """
    height, width = src_x.shape
    output = np.zeros((height, width, 4), dtype=np.uint8)

    finite = np.isfinite(src_x) & np.isfinite(src_y)
    sx = np.zeros(src_x.shape, dtype=np.int64)
    sy = np.zeros(src_y.shape, dtype=np.int64)
    sx[finite] = np.floor(src_x[finite] + 0.5).astype(np.int64)
    sy[finite] = np.floor(src_y[finite] + 0.5).astype(np.int64)

    in_bounds = (
        finite
        & (sx >= 0)
        & (sx < source.width)
        & (sy >= 0)
        & (sy < source.height)
    )

    output[in_bounds, :3] = source.data[sy[in_bounds], sx[in_bounds], :3]
    output[in_bounds, 3] = 255

    skipped = int(in_bounds.size - np.count_nonzero(in_bounds))
    if skipped:
        logger.debug(f"{skipped} destination pixels sampled outside the source")

    return Raster(data=output)


def rectify(
    source: Raster,
    corners: CornerSet,
    strategy: WarpStrategy = WarpStrategy.BILINEAR,
    output_size: Optional[Tuple[int, int]] = None,
) -> Raster:
    """
    Flatten the quadrilateral ``corners`` of ``source`` into a rectangle.

    Args:
        source: Raster the corners were placed on.
        corners: Selection ordered [TL, TR, BR, BL]. Not validated: concave
            or self-intersecting selections yield folded output.
        strategy: Quad-to-rectangle mapping.
        output_size: Optional (width, height) override. Defaults to the
            longer of each pair of opposing edges, rounded.

    Returns:
        New Raster of the output size. Empty when the quad is degenerate.

    Example:
        >>> corners = CornerSet.from_list([[10, 10], [190, 10], [190, 90], [10, 90]])
        >>> flat = rectify(raster, corners)
        >>> flat.width, flat.height
        (180, 80)
    """
    width, height = output_size or calculate_output_dimensions(corners)
    width, height = max(int(width), 0), max(int(height), 0)

    if width == 0 or height == 0:
        logger.warning(
            f"Degenerate quadrilateral gives empty output ({width}x{height})"
        )
        return Raster.blank(width, height)

    src_x, src_y = WARP_STRATEGIES[strategy](corners, width, height)
    rectified = sample_nearest(source, src_x, src_y)

    logger.info(
        f"Rectified {source.width}x{source.height} source to {width}x{height} "
        f"({strategy.value})"
    )

    return rectified
