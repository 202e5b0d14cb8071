"""
Visualization Utilities

Overlay drawing for the corner editor: polygon outline plus numbered
corner handles, rendered onto a copy of the raster.
"""

from typing import TYPE_CHECKING, Optional, Tuple

import cv2
import numpy as np

from src.common.types import Raster

if TYPE_CHECKING:
    from src.rectification.types import CornerSet

OUTLINE_COLOR = (0, 255, 0, 255)
HANDLE_COLOR = (255, 0, 0, 255)
ACTIVE_HANDLE_COLOR = (255, 255, 0, 255)
LABEL_COLOR = (255, 255, 255, 255)


def draw_corner_overlay(
    raster: Raster,
    corners: "CornerSet",
    active_index: Optional[int] = None,
    handle_radius: int = 8,
    line_thickness: int = 2,
) -> Raster:
    """
    Draw the selection polygon and numbered handles over a raster copy.

    The polygon follows corner index order, so a bow-tie selection is drawn
    as a bow-tie.

    Args:
        raster: Image the corners live on (not modified).
        corners: Selection ordered [TL, TR, BR, BL].
        active_index: Corner being dragged, highlighted if given.
        handle_radius: Handle circle radius in pixels.
        line_thickness: Outline thickness in pixels.

    Returns:
        New raster with the overlay.
    """
    canvas = np.ascontiguousarray(raster.data.copy())
    if raster.is_empty:
        return Raster(data=canvas)

    pts = np.round(corners.to_numpy()).astype(np.int32)
    cv2.polylines(canvas, [pts.reshape(-1, 1, 2)], True, OUTLINE_COLOR, line_thickness)

    for i, (x, y) in enumerate(pts):
        color = ACTIVE_HANDLE_COLOR if i == active_index else HANDLE_COLOR
        cv2.circle(canvas, (int(x), int(y)), handle_radius, color, -1)
        cv2.putText(
            canvas,
            str(i + 1),
            _label_origin(int(x), int(y), handle_radius),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.5,
            LABEL_COLOR,
            1,
        )

    return Raster(data=canvas)


def _label_origin(x: int, y: int, handle_radius: int) -> Tuple[int, int]:
    # Baseline-left origin that roughly centers a single digit on the handle
    return x - handle_radius // 2, y + handle_radius // 2
