"""
CornerEditor - Interactive hit-test and drag protocol over a CornerSet.

State machine over {Idle, Dragging(index)}:

- press:   Idle -> Dragging(i) when corner i is within the hit radius
- drag:    Dragging(i) -> Dragging(i), corner i follows the pointer (clamped)
- release: any -> Idle

Pointer and touch events feed the same state machine; only one gesture is
active at a time. Malformed input is ignored rather than raised.
"""

import logging
from typing import Callable, Optional, Sequence, Tuple

from src.common.types import Point
from src.rectification.types import (
    CornerSet,
    DisplayRect,
    DragState,
    EditorConfig,
    InputSource,
)

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[CornerSet], None]


def hit_test(corners: CornerSet, point: Point, radius: float) -> Optional[int]:
    """
    Index of the first corner strictly within ``radius`` of ``point``.

    Corners are scanned in index order, so overlapping handles resolve to
    the lowest index.
    """
    for i, corner in enumerate(corners):
        if corner.distance_to(point) < radius:
            return i
    return None


class CornerEditor:
    """
    Drag-to-adjust editor for the four selection corners.

    The editor mutates the CornerSet it was given in place and calls
    ``on_change`` after every corner update so the presentation layer can
    redraw the overlay.

    Args:
        corners: Corner selection to edit (mutated in place).
        raster_width: Width of the raster the corners live in.
        raster_height: Height of the raster the corners live in.
        config: Hit radii for mouse and touch.
        on_change: Optional redraw callback.
        display: On-screen rectangle of the surface. None means client
            coordinates already are raster coordinates.
    """

    def __init__(
        self,
        corners: CornerSet,
        raster_width: int,
        raster_height: int,
        config: EditorConfig,
        on_change: Optional[ChangeCallback] = None,
        display: Optional[DisplayRect] = None,
    ):
        self.corners = corners
        self.raster_width = raster_width
        self.raster_height = raster_height
        self.config = config
        self.on_change = on_change
        self.display = display
        self.state = DragState()

    @property
    def is_dragging(self) -> bool:
        return self.state.is_dragging

    @property
    def active_corner_index(self) -> Optional[int]:
        return self.state.active_corner_index

    def set_display(self, display: Optional[DisplayRect]) -> None:
        """Update the on-screen rectangle after a layout change."""
        self.display = display

    def hit_radius(self, source: InputSource) -> float:
        if source == InputSource.TOUCH:
            return self.config.touch_hit_radius
        return self.config.mouse_hit_radius

    def to_raster_coords(self, client_x: float, client_y: float) -> Point:
        """
        Map client coordinates to raster coordinates.

        Offsets by the display origin and scales each axis by
        ``raster_dim / displayed_dim``.
        """
        display = self.display
        if display is None or display.width <= 0 or display.height <= 0:
            return Point(x=client_x, y=client_y)

        scale_x = self.raster_width / display.width
        scale_y = self.raster_height / display.height
        return Point(
            x=(client_x - display.left) * scale_x,
            y=(client_y - display.top) * scale_y,
        )

    # ------------------------------------------------------------------
    # Core transitions (raster coordinates)
    # ------------------------------------------------------------------

    def press(self, point: Point, source: InputSource = InputSource.POINTER) -> bool:
        """
        Start a drag if ``point`` hits a corner.

        Returns:
            True if a corner was picked up.
        """
        if self.state.is_dragging:
            logger.debug(
                f"Ignoring {source.value} press while corner "
                f"{self.state.active_corner_index} is being dragged"
            )
            return False

        index = hit_test(self.corners, point, self.hit_radius(source))
        if index is None:
            return False

        self.state.active_corner_index = index
        self.state.source = source
        logger.debug(f"Picked up corner {index} via {source.value}")
        return True

    def drag(self, point: Point) -> bool:
        """
        Move the active corner to ``point``, clamped to the raster bounds.

        Moves while idle (including stray moves after a release) are ignored.

        Returns:
            True if a corner was updated.
        """
        index = self.state.active_corner_index
        if index is None:
            return False

        if not 0 <= index < len(self.corners):
            logger.warning(f"Active corner index {index} out of range, releasing")
            self.state.reset()
            return False

        self.corners[index] = point.clamped(self.raster_width, self.raster_height)

        if self.on_change is not None:
            self.on_change(self.corners)
        return True

    def release(self) -> None:
        """End the gesture. Always returns the editor to Idle."""
        if self.state.is_dragging:
            logger.debug(f"Released corner {self.state.active_corner_index}")
        self.state.reset()

    # ------------------------------------------------------------------
    # Event adapters (client coordinates)
    # ------------------------------------------------------------------

    def pointer_down(self, client_x: float, client_y: float) -> bool:
        return self.press(self.to_raster_coords(client_x, client_y), InputSource.POINTER)

    def pointer_move(self, client_x: float, client_y: float) -> bool:
        return self.drag(self.to_raster_coords(client_x, client_y))

    def pointer_up(self) -> None:
        self.release()

    def touch_start(self, touches: Sequence[Tuple[float, float]]) -> bool:
        """Press with the first touch point. No touch points is a no-op."""
        first = _first_touch(touches)
        if first is None:
            return False
        return self.press(self.to_raster_coords(*first), InputSource.TOUCH)

    def touch_move(self, touches: Sequence[Tuple[float, float]]) -> bool:
        first = _first_touch(touches)
        if first is None:
            return False
        return self.drag(self.to_raster_coords(*first))

    def touch_end(self) -> None:
        self.release()


def _first_touch(
    touches: Optional[Sequence[Tuple[float, float]]],
) -> Optional[Tuple[float, float]]:
    if not touches:
        return None
    first = touches[0]
    if first is None or len(first) != 2:
        return None
    return float(first[0]), float(first[1])
