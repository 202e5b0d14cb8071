"""
Data types and structures for the Rectification module.

Provides type-safe containers for configuration, the corner selection,
editor state, and pipeline results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence

import numpy as np

from src.common.types import Point, Raster

CORNER_LABELS = ["Top-Left", "Top-Right", "Bottom-Right", "Bottom-Left"]


class EstimationStrategy(Enum):
    """How the initial corner guess is derived from a captured still."""

    FIXED_MARGIN = "fixed_margin"
    EDGE_BOUNDING_BOX = "edge_bounding_box"


class WarpStrategy(Enum):
    """Quad-to-rectangle mapping used by the rectification engine."""

    BILINEAR = "bilinear"  # Bilinear blend of corner positions (exact for parallelograms)
    HOMOGRAPHY = "homography"  # True projective mapping


class DegeneratePolicy(Enum):
    """What the processor does with crops whose output would be (near) empty."""

    REJECT = "reject"
    ALLOW = "allow"


class FilterType(Enum):
    """Post-processing filters. Selection is exclusive."""

    ORIGINAL = "original"
    GRAYSCALE = "grayscale"
    BLACK_WHITE = "black_white"
    ENHANCE = "enhance"
    OCR = "ocr"


class InputSource(Enum):
    """Event source feeding the corner editor."""

    POINTER = "pointer"
    TOUCH = "touch"


class DecisionStatus(Enum):
    """Pipeline decision outcomes."""

    PASS = "PASS"
    REJECT = "REJECT"


class RejectionReason(Enum):
    """Specific reasons for rejection."""

    DEGENERATE_QUAD = "Degenerate Quadrilateral"  # Output side below minimum
    NO_SOURCE = "No Source Raster"  # Nothing captured yet
    NONE = "None"  # No rejection


@dataclass
class EstimatorConfig:
    """Configuration for the corner estimator."""

    strategy: EstimationStrategy
    margin_px: int  # Inset used by the fixed-margin strategy
    edge_margin_px: int  # Inset applied to the edge bounding box
    edge_threshold: float  # Minimum gradient magnitude counted as an edge


@dataclass
class EditorConfig:
    """Configuration for the interactive corner editor."""

    mouse_hit_radius: float
    touch_hit_radius: float


@dataclass
class EngineConfig:
    """Configuration for the rectification engine and crop validation."""

    warp_strategy: WarpStrategy
    degenerate_policy: DegeneratePolicy
    min_side_px: int


@dataclass
class RectificationConfig:
    """Complete rectification module configuration."""

    estimator: EstimatorConfig
    editor: EditorConfig
    engine: EngineConfig


class CornerSet:
    """
    The four selection corners, ordered [Top-Left, Top-Right, Bottom-Right, Bottom-Left].

    Order is trusted by index: it is set once at construction (by the estimator
    or the caller) and never re-derived from geometry. Corners may be dragged
    into concave or self-intersecting layouts; nothing here repairs that.

    Example:
        >>> corners = CornerSet.from_list([[10, 10], [190, 10], [190, 90], [10, 90]])
        >>> corners[1]
        Point(x=190, y=10)
        >>> corners[1] = Point(x=195, y=5)
    """

    def __init__(self, points: Sequence[Point]):
        points = list(points)
        if len(points) != 4:
            raise ValueError(f"Expected exactly 4 corners, got {len(points)}")
        self._points: List[Point] = points

    @classmethod
    def from_list(cls, coords) -> "CornerSet":
        """
        Build a CornerSet from [[x, y], ...] or an array of shape (4, 2).

        Raises:
            ValueError: If input does not contain exactly 4 points.
        """
        arr = np.asarray(coords, dtype=np.float64)
        if arr.shape != (4, 2):
            raise ValueError(
                f"Expected exactly 4 points with shape (4, 2), got shape {arr.shape}"
            )
        return cls([Point(x=float(x), y=float(y)) for x, y in arr])

    @property
    def top_left(self) -> Point:
        return self._points[0]

    @property
    def top_right(self) -> Point:
        return self._points[1]

    @property
    def bottom_right(self) -> Point:
        return self._points[2]

    @property
    def bottom_left(self) -> Point:
        return self._points[3]

    def to_numpy(self, dtype: type = np.float64) -> np.ndarray:
        """Corner coordinates as an array of shape (4, 2)."""
        return np.array([p.to_tuple() for p in self._points], dtype=dtype)

    def to_list(self) -> List[List[float]]:
        return [list(p.to_tuple()) for p in self._points]

    def copy(self) -> "CornerSet":
        return CornerSet([Point(x=p.x, y=p.y) for p in self._points])

    def __getitem__(self, index: int) -> Point:
        return self._points[index]

    def __setitem__(self, index: int, point: Point) -> None:
        self._points[index] = point

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __len__(self) -> int:
        return 4

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CornerSet):
            return NotImplemented
        return self.to_list() == other.to_list()

    def __repr__(self) -> str:
        return f"CornerSet({self.to_list()})"


@dataclass
class DragState:
    """Transient state of one drag gesture."""

    active_corner_index: Optional[int] = None
    source: Optional[InputSource] = None

    @property
    def is_dragging(self) -> bool:
        return self.active_corner_index is not None

    def reset(self) -> None:
        self.active_corner_index = None
        self.source = None


@dataclass
class DisplayRect:
    """
    On-screen rectangle of the interactive surface in client coordinates.

    Used to map client input to raster coordinates when the surface is shown
    scaled (responsive layout) or offset within the page.
    """

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class RectificationResult:
    """
    Output from the rectification pipeline.

    Attributes:
        decision: PASS or REJECT status.
        rectified_image: The flattened raster (None if rejected).
        rejection_reason: Specific reason if rejected, NONE otherwise.
        output_width: Computed output width in pixels.
        output_height: Computed output height in pixels.
        is_convex: Whether the corner polygon was convex in its given order.
    """

    decision: DecisionStatus
    rectified_image: Optional[Raster]
    rejection_reason: RejectionReason
    output_width: int
    output_height: int
    is_convex: bool = True
    warnings: List[str] = field(default_factory=list)

    def is_pass(self) -> bool:
        """Check if the pipeline passed."""
        return self.decision == DecisionStatus.PASS

    def get_error_message(self) -> str:
        """Get human-readable error message."""
        if self.is_pass():
            return "Rectification succeeded"

        reason_messages = {
            RejectionReason.DEGENERATE_QUAD: (
                f"Selected area too small: {self.output_width}x{self.output_height}px"
            ),
            RejectionReason.NO_SOURCE: "Please capture an image first",
        }

        return reason_messages.get(
            self.rejection_reason, f"Rejected: {self.rejection_reason.value}"
        )
