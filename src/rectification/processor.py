"""
Main processor for the Rectification module.

Runs a crop commit:
1. Output size estimate from the corner geometry
2. Degenerate-quad policy check
3. Rectification (quad to rectangle)

Implements fail-fast strategy: a rejected crop never reaches the engine.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from src.common.types import Raster
from src.rectification.config_loader import load_config
from src.rectification.geometry import (
    calculate_output_dimensions,
    is_convex_quadrilateral,
)
from src.rectification.image_rectification import rectify
from src.rectification.types import (
    CornerSet,
    DecisionStatus,
    DegeneratePolicy,
    RectificationConfig,
    RectificationResult,
    RejectionReason,
)

logger = logging.getLogger(__name__)


class RectificationProcessor:
    """
    Validates a corner selection and flattens it into a rectangle.

    Example:
        >>> processor = RectificationProcessor()
        >>> corners = CornerSet.from_list([[10, 10], [190, 10], [190, 90], [10, 90]])
        >>> result = processor.process(raster, corners)
        >>> if result.is_pass():
        ...     save_raster(result.rectified_image, Path("scan.png"))
    """

    def __init__(
        self,
        config: Optional[RectificationConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the rectification processor.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def process(
        self,
        raster: Optional[Raster],
        corners: Union[CornerSet, np.ndarray, list],
    ) -> RectificationResult:
        """
        Rectify ``corners`` of ``raster`` according to the configured policy.

        Args:
            raster: Captured still the corners were placed on.
            corners: 4 corner points [TL, TR, BR, BL].

        Returns:
            RectificationResult with the flattened raster if accepted.
        """
        if not isinstance(corners, CornerSet):
            corners = CornerSet.from_list(corners)

        engine_config = self.config.engine
        output_width, output_height = calculate_output_dimensions(corners)
        is_convex = is_convex_quadrilateral(corners)

        logger.info(f"Starting Rectification ({output_width}x{output_height})")

        if raster is None:
            logger.warning("Rectification REJECTED: no source raster")
            return RectificationResult(
                decision=DecisionStatus.REJECT,
                rectified_image=None,
                rejection_reason=RejectionReason.NO_SOURCE,
                output_width=output_width,
                output_height=output_height,
                is_convex=is_convex,
            )

        warnings = []
        if not is_convex:
            warnings.append("Corner polygon is concave or self-intersecting")
            logger.warning(
                "Corner polygon is concave or self-intersecting; output will be folded"
            )

        too_small = min(output_width, output_height) < engine_config.min_side_px
        if too_small and engine_config.degenerate_policy == DegeneratePolicy.REJECT:
            logger.warning(
                f"Rectification REJECTED: output {output_width}x{output_height} "
                f"below minimum side {engine_config.min_side_px}px"
            )
            return RectificationResult(
                decision=DecisionStatus.REJECT,
                rectified_image=None,
                rejection_reason=RejectionReason.DEGENERATE_QUAD,
                output_width=output_width,
                output_height=output_height,
                is_convex=is_convex,
                warnings=warnings,
            )
        if too_small:
            warnings.append(f"Output {output_width}x{output_height} is degenerate")

        rectified = rectify(raster, corners, engine_config.warp_strategy)

        logger.info("Rectification PASSED")

        return RectificationResult(
            decision=DecisionStatus.PASS,
            rectified_image=rectified,
            rejection_reason=RejectionReason.NONE,
            output_width=output_width,
            output_height=output_height,
            is_convex=is_convex,
            warnings=warnings,
        )


def process_rectification(
    raster: Raster,
    corners: Union[CornerSet, np.ndarray, list],
    config: Optional[RectificationConfig] = None,
) -> RectificationResult:
    """
    Convenience function for one-shot rectification.

    Example:
        >>> result = process_rectification(raster, [[0, 0], [99, 0], [99, 49], [0, 49]])
        >>> result.rectified_image.width
        99
    """
    processor = RectificationProcessor(config=config)
    return processor.process(raster, corners)
