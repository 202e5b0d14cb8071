"""
Document Rectification

Turns a four-corner selection over a captured still into a flat,
axis-aligned document image ready for text recognition.

Pipeline stages:
1. Corner estimation (fixed margin or edge bounding box)
2. Interactive corner adjustment (pointer / touch drag)
3. Rectification (quadrilateral to rectangle resampling)
4. Post-processing filters (grayscale, black & white, enhance, OCR)
"""

from src.rectification.config_loader import load_config
from src.rectification.corner_editor import CornerEditor, hit_test
from src.rectification.corner_estimator import CornerEstimator
from src.rectification.filters import FilterPipeline, apply_filter
from src.rectification.geometry import (
    calculate_edge_lengths,
    calculate_output_dimensions,
)
from src.rectification.image_rectification import rectify
from src.rectification.processor import RectificationProcessor, process_rectification
from src.rectification.session import RectificationSession
from src.rectification.types import (
    CornerSet,
    DecisionStatus,
    DisplayRect,
    EstimationStrategy,
    FilterType,
    RectificationConfig,
    RectificationResult,
    RejectionReason,
    WarpStrategy,
)

__all__ = [
    "RectificationProcessor",
    "RectificationSession",
    "process_rectification",
    "load_config",
    "rectify",
    "calculate_edge_lengths",
    "calculate_output_dimensions",
    "CornerEstimator",
    "CornerEditor",
    "hit_test",
    "FilterPipeline",
    "apply_filter",
    "CornerSet",
    "DecisionStatus",
    "DisplayRect",
    "EstimationStrategy",
    "FilterType",
    "RectificationConfig",
    "RectificationResult",
    "RejectionReason",
    "WarpStrategy",
]
