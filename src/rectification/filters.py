"""
Post-processing filters for rectified rasters.

Each filter is a stateless per-pixel transform returning a new Raster; the
input is never modified and alpha is carried over unchanged. Values are
written back like a byte-clamped canvas buffer: rounded half-to-even, then
clamped to [0, 255].

FilterPipeline enforces exclusive selection: every filter starts from the
rectified base raster, so filters never stack.
"""

import logging
from typing import Callable, Dict, Optional

import numpy as np

from src.common.types import Raster
from src.rectification.corner_estimator import to_luma
from src.rectification.types import FilterType

logger = logging.getLogger(__name__)

BLACK_WHITE_THRESHOLD = 128
OCR_THRESHOLD = 180
ENHANCE_FACTOR = 1.5


def _to_bytes(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def _with_rgb(raster: Raster, rgb: np.ndarray) -> Raster:
    """New raster with ``rgb`` (H, W) or (H, W, 3) and the original alpha."""
    output = raster.data.copy()
    if rgb.ndim == 2:
        rgb = rgb[:, :, np.newaxis]
    output[:, :, :3] = rgb
    return Raster(data=output)


def grayscale(raster: Raster) -> Raster:
    """R = G = B = 0.299R + 0.587G + 0.114B."""
    return _with_rgb(raster, _to_bytes(to_luma(raster)))


def black_and_white(raster: Raster) -> Raster:
    """R = G = B = 255 where luma > 128, else 0."""
    binary = np.where(to_luma(raster) > BLACK_WHITE_THRESHOLD, 255, 0)
    return _with_rgb(raster, binary.astype(np.uint8))


def enhance(raster: Raster) -> Raster:
    """Contrast stretch around mid-gray, ``(c - 128) * 1.5 + 128`` per channel."""
    rgb = raster.rgb().astype(np.float64)
    return _with_rgb(raster, _to_bytes((rgb - 128) * ENHANCE_FACTOR + 128))


def ocr_preprocess(raster: Raster) -> Raster:
    """Average-gray binarization tuned for text recognition: 255 where mean > 180."""
    average = raster.rgb().astype(np.float64).sum(axis=2) / 3
    binary = np.where(average > OCR_THRESHOLD, 255, 0)
    return _with_rgb(raster, binary.astype(np.uint8))


FILTERS: Dict[FilterType, Callable[[Raster], Raster]] = {
    FilterType.ORIGINAL: Raster.copy,
    FilterType.GRAYSCALE: grayscale,
    FilterType.BLACK_WHITE: black_and_white,
    FilterType.ENHANCE: enhance,
    FilterType.OCR: ocr_preprocess,
}


def apply_filter(raster: Optional[Raster], filter_type: FilterType) -> Optional[Raster]:
    """
    Apply one filter. A missing raster is a no-op and returns None.

    Example:
        >>> bw = apply_filter(rectified, FilterType.BLACK_WHITE)
    """
    if raster is None:
        logger.debug(f"No raster to apply {filter_type.value} to")
        return None
    return FILTERS[filter_type](raster)


class FilterPipeline:
    """
    Exclusive filter selection over a rectified base raster.

    Selecting a filter always starts from the base, never from the previous
    filter's output; selecting ORIGINAL restores the base exactly.

    Example:
        >>> pipeline = FilterPipeline(rectified)
        >>> pipeline.select(FilterType.GRAYSCALE)
        >>> enhanced = pipeline.select(FilterType.ENHANCE)  # not grayscale + enhance
    """

    def __init__(self, base: Optional[Raster] = None):
        self._base = base
        self.active = FilterType.ORIGINAL
        self._current = base

    @property
    def base(self) -> Optional[Raster]:
        return self._base

    @property
    def current(self) -> Optional[Raster]:
        """Result of the active filter (the base itself for ORIGINAL)."""
        return self._current

    def set_base(self, base: Optional[Raster]) -> None:
        """Install a new rectified raster and reset the selection to ORIGINAL."""
        self._base = base
        self.active = FilterType.ORIGINAL
        self._current = base

    def select(self, filter_type: FilterType) -> Optional[Raster]:
        """Apply ``filter_type`` to the base. No base is a no-op returning None."""
        if self._base is None:
            logger.debug("No rectified raster, filter selection ignored")
            return None

        self.active = filter_type
        if filter_type == FilterType.ORIGINAL:
            self._current = self._base
        else:
            self._current = apply_filter(self._base, filter_type)

        logger.info(f"Applied filter: {filter_type.value}")
        return self._current
