"""
Camera frame source.

Opens a video device with OpenCV and hands out single frames as RGBA
rasters. The preferred device (typically the rear, document-facing camera)
is tried first; when it cannot be opened the fallback device is used.

Captured frames are independent copies, so a raster stays usable after the
camera has been released.
"""

import logging
from typing import Optional, Tuple

import cv2
from pydantic import BaseModel, Field

from src.common.types import Raster

logger = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """Camera could not be opened or did not deliver a frame."""


class CameraConfig(BaseModel):
    """Camera configuration.

    Attributes:
        device_index: Preferred device (rear camera where available)
        fallback_index: Device tried when the preferred one fails (None disables)
        resolution: Requested (width, height); the driver may pick another
    """

    device_index: int = Field(default=0, ge=0)
    fallback_index: Optional[int] = Field(default=0, ge=0)
    resolution: Tuple[int, int] = (1280, 720)


class CameraSource:
    """
    Single-frame camera access.

    Example:
        >>> with CameraSource(CameraConfig(device_index=1)) as camera:
        ...     still = camera.capture_frame()
        >>> still.width, still.height
        (1280, 720)
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self.capture: Optional[cv2.VideoCapture] = None
        self.active_index: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.capture is not None and self.capture.isOpened()

    def _try_open(self, index: int) -> bool:
        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            logger.warning(f"Could not open camera {index}")
            return False

        width, height = self.config.resolution
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        self.capture = capture
        self.active_index = index
        logger.info(
            f"Camera {index} opened at "
            f"{capture.get(cv2.CAP_PROP_FRAME_WIDTH):.0f}x"
            f"{capture.get(cv2.CAP_PROP_FRAME_HEIGHT):.0f}"
        )
        return True

    def open(self) -> None:
        """
        Open the preferred device, falling back to the fallback device.

        Raises:
            CameraError: If no device could be opened.
        """
        if self.is_open:
            return

        if self._try_open(self.config.device_index):
            return

        fallback = self.config.fallback_index
        if fallback is not None and fallback != self.config.device_index:
            logger.info(f"Falling back to camera {fallback}")
            if self._try_open(fallback):
                return

        raise CameraError(
            "Error accessing camera: check that a camera is connected and that "
            "this application has permission to use it"
        )

    def capture_frame(self) -> Raster:
        """
        Grab one frame as an RGBA raster, opening the device if needed.

        Raises:
            CameraError: If the device cannot be opened or returns no frame.
        """
        self.open()

        ok, frame = self.capture.read()
        if not ok or frame is None:
            raise CameraError(f"Could not read frame from camera {self.active_index}")

        raster = Raster(data=cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA))
        logger.debug(f"Captured {raster.width}x{raster.height} frame")
        return raster

    def release(self) -> None:
        if self.capture is not None:
            self.capture.release()
            logger.info(f"Camera {self.active_index} released")
        self.capture = None
        self.active_index = None

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
