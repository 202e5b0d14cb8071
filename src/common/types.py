"""
Shared value types for the document scanner.

Pydantic models for the RGBA raster every stage passes around, the
real-valued points corners are made of, and the integer boxes produced by
the edge estimator. Rasters wrap a numpy array so OpenCV and Pillow calls
can take the data directly.
"""

from typing import Tuple

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator


class Raster(BaseModel):
    """
    Type-safe wrapper for RGBA pixel grids.

    Every raster in the pipeline (camera frame, captured still, rectified or
    filtered image) is stored as an (H, W, 4) uint8 array. Zero-sized rasters
    are valid: a degenerate crop produces one.

    Attributes:
        data: The underlying numpy array, shape (H, W, 4), dtype uint8.

    Example:
        >>> raster = Raster.blank(320, 240)
        >>> print(raster.width, raster.height)  # 320, 240
        >>> rgba = Raster.from_array(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
    """

    data: np.ndarray = Field(..., description="RGBA pixel data as numpy array")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _validate_rgba(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array is an RGBA byte grid.

        Raises:
            ValueError: If array is not (H, W, 4) uint8.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.ndim != 3 or v.shape[2] != 4:
            raise ValueError(f"Expected RGBA array of shape (H, W, 4), got {v.shape}")

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for raster, got {v.dtype}. "
                "Channels should be in range [0, 255]"
            )

        return v

    @classmethod
    def blank(cls, width: int, height: int) -> "Raster":
        """
        Create a fully transparent (all-zero) raster.

        Args:
            width: Raster width in pixels (may be 0).
            height: Raster height in pixels (may be 0).
        """
        return cls(data=np.zeros((max(height, 0), max(width, 0), 4), dtype=np.uint8))

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Raster":
        """
        Create a Raster from a grayscale, RGB or RGBA uint8 array.

        Grayscale is replicated to R, G, B; missing alpha is set to 255.

        Args:
            arr: Array of shape (H, W), (H, W, 1), (H, W, 3) or (H, W, 4).

        Returns:
            Raster instance owning a copy of the pixel data.

        Raises:
            ValueError: If the array shape or dtype is unsupported.
        """
        arr = np.asarray(arr)
        if arr.dtype != np.uint8:
            raise ValueError(f"Expected uint8 dtype for image, got {arr.dtype}")

        if arr.ndim == 3 and arr.shape[2] == 1:
            arr = arr[:, :, 0]

        if arr.ndim == 2:
            rgba = np.empty(arr.shape + (4,), dtype=np.uint8)
            rgba[:, :, :3] = arr[:, :, np.newaxis]
            rgba[:, :, 3] = 255
            return cls(data=rgba)

        if arr.ndim == 3 and arr.shape[2] == 3:
            rgba = np.empty(arr.shape[:2] + (4,), dtype=np.uint8)
            rgba[:, :, :3] = arr
            rgba[:, :, 3] = 255
            return cls(data=rgba)

        if arr.ndim == 3 and arr.shape[2] == 4:
            return cls(data=arr.copy())

        raise ValueError(f"Unsupported image shape {arr.shape}")

    @property
    def width(self) -> int:
        """Get raster width in pixels."""
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        """Get raster height in pixels."""
        return int(self.data.shape[0])

    @property
    def shape(self) -> Tuple[int, ...]:
        """Get raster shape (H, W, 4)."""
        return self.data.shape

    @property
    def is_empty(self) -> bool:
        """Check whether the raster has no pixels."""
        return self.data.size == 0

    def rgb(self) -> np.ndarray:
        """Return a view of the R, G, B channels."""
        return self.data[:, :, :3]

    def copy(self) -> "Raster":
        """Create a deep copy of the raster."""
        return Raster(data=self.data.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return False
        return self.data.shape == other.data.shape and bool(
            np.array_equal(self.data, other.data)
        )

    def __repr__(self) -> str:
        return f"Raster(width={self.width}, height={self.height})"


class Point(BaseModel):
    """
    A 2D point (x, y) in source-raster pixel coordinates.

    Coordinates are real-valued: corner handles are dragged with sub-pixel
    precision and only rounded when sampling.

    Example:
        >>> point = Point(x=10.5, y=20)
        >>> point.distance_to(Point(x=13.5, y=24))  # 5.0
    """

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    def to_tuple(self) -> Tuple[float, float]:
        """Convert Point to tuple (x, y)."""
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        dx = self.x - other.x
        dy = self.y - other.y
        return float(np.sqrt(dx * dx + dy * dy))

    def clamped(self, width: float, height: float) -> "Point":
        """Return a copy clamped component-wise to [0, width] x [0, height]."""
        return Point(x=min(max(self.x, 0.0), width), y=min(max(self.y, 0.0), height))

    def __repr__(self) -> str:
        return f"Point(x={self.x:g}, y={self.y:g})"


class BBox(BaseModel):
    """
    Axis-aligned box in pixel coordinates, (x1, y1) inclusive, (x2, y2) exclusive.

    Example:
        >>> box = BBox(x1=0, y1=0, x2=200, y2=100)
        >>> box.width, box.height  # 200, 100
    """

    x1: int = Field(..., description="Left edge")
    y1: int = Field(..., description="Top edge")
    x2: int = Field(..., description="Right edge (exclusive)")
    y2: int = Field(..., description="Bottom edge (exclusive)")

    @model_validator(mode="after")
    def _validate_bbox(self) -> "BBox":
        if self.x2 < self.x1 or self.y2 < self.y1:
            raise ValueError(
                f"Invalid bbox: ({self.x1}, {self.y1}, {self.x2}, {self.y2})"
            )
        return self

    @classmethod
    def full_image(cls, width: int, height: int) -> "BBox":
        """Box covering the whole image."""
        return cls(x1=0, y1=0, x2=width, y2=height)

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    def to_tuple(self) -> Tuple[int, int, int, int]:
        """Convert BBox to tuple (x1, y1, x2, y2)."""
        return (self.x1, self.y1, self.x2, self.y2)

    def __repr__(self) -> str:
        return f"BBox({self.x1}, {self.y1}, {self.x2}, {self.y2})"
