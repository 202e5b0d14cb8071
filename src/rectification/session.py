"""
RectificationSession - explicit owner of one scan's state.

Holds the captured still, the corner selection and its editor, the rectified
raster and the filter selection, and talks to the camera and text
recognition collaborators. The surrounding UI creates one session and drives
it through:

    capture -> (edit corners) -> commit_crop -> apply_filter -> recognize_text

After a successful commit the corner selection is dropped: it described the
pre-crop raster, which is no longer the one on screen.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Protocol

from src.common.types import Raster
from src.ocr.config_loader import OCREngineConfig
from src.ocr.types import RecognitionResult, TextRecognizer
from src.rectification.corner_editor import CornerEditor
from src.rectification.corner_estimator import CornerEstimator
from src.rectification.filters import FilterPipeline, apply_filter
from src.rectification.processor import RectificationProcessor
from src.rectification.types import (
    CornerSet,
    DecisionStatus,
    DisplayRect,
    EstimationStrategy,
    FilterType,
    RectificationConfig,
    RectificationResult,
    RejectionReason,
)
from src.utils.io import save_raster
from src.utils.visualization import draw_corner_overlay

logger = logging.getLogger(__name__)

RenderCallback = Callable[[Raster], None]


class FrameSource(Protocol):
    def capture_frame(self) -> Raster: ...


class RectificationSession:
    """
    One capture-crop-filter-recognize cycle.

    Args:
        config: Rectification configuration. Loaded from file if None.
        camera: Frame source used by ``capture()`` when no frame is given.
        recognizer: Text recognition engine.
        on_render: Called with the raster to display after every change.
        ocr_filter: Filter applied to the copy handed to the recognizer.
        language: Default language hint for recognition ("eng+chi_tra" if None).

    Example:
        >>> session = RectificationSession(config, camera=camera, recognizer=engine)
        >>> session.capture()
        >>> session.editor.pointer_down(42, 40)
        >>> session.editor.pointer_move(60, 55)
        >>> session.editor.pointer_up()
        >>> result = session.commit_crop()
        >>> session.apply_filter(FilterType.BLACK_WHITE)
        >>> text = asyncio.run(session.recognize_text())
    """

    def __init__(
        self,
        config: Optional[RectificationConfig] = None,
        camera: Optional[FrameSource] = None,
        recognizer: Optional[TextRecognizer] = None,
        on_render: Optional[RenderCallback] = None,
        ocr_filter: FilterType = FilterType.ORIGINAL,
        language: Optional[str] = None,
    ):
        self.processor = RectificationProcessor(config=config)
        self.config = self.processor.config
        self.estimator = CornerEstimator(self.config.estimator)
        self.camera = camera
        self.recognizer = recognizer
        self.on_render = on_render
        self.ocr_filter = ocr_filter
        self.language = language or OCREngineConfig().lang

        self.captured: Optional[Raster] = None
        self.corners: Optional[CornerSet] = None
        self.editor: Optional[CornerEditor] = None
        self.filters = FilterPipeline()
        self.display: Optional[DisplayRect] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def rectified(self) -> Optional[Raster]:
        return self.filters.base

    @property
    def current_raster(self) -> Optional[Raster]:
        """What the user currently sees: filtered crop, or the captured still."""
        if self.filters.base is not None:
            return self.filters.current
        return self.captured

    @property
    def has_capture(self) -> bool:
        return self.captured is not None

    def set_display(self, display: Optional[DisplayRect]) -> None:
        """Record the on-screen size of the editing surface."""
        self.display = display
        if self.editor is not None:
            self.editor.set_display(display)

    # ------------------------------------------------------------------
    # Capture and corner selection
    # ------------------------------------------------------------------

    def capture(
        self,
        frame: Optional[Raster] = None,
        strategy: Optional[EstimationStrategy] = None,
    ) -> CornerSet:
        """
        Freeze a still and estimate its corners.

        Args:
            frame: Raster to use. If None, one is taken from the camera.
            strategy: Override for the configured estimation strategy.

        Returns:
            The estimated CornerSet (also held by the session).

        Raises:
            RuntimeError: If no frame is given and no camera is attached.
        """
        if frame is None:
            if self.camera is None:
                raise RuntimeError("No camera attached and no frame given")
            frame = self.camera.capture_frame()

        self.captured = frame.copy()
        self.filters.set_base(None)
        logger.info(f"Captured {self.captured.width}x{self.captured.height} still")

        self._start_editing(self.estimator.estimate(self.captured, strategy))
        return self.corners

    def set_corners(self, corners: CornerSet) -> None:
        """Replace the estimated corners with a caller-supplied selection."""
        if self.captured is None:
            logger.warning("Ignoring corners: nothing captured")
            return
        self._start_editing(corners.copy())

    def _start_editing(self, corners: CornerSet) -> None:
        self.corners = corners
        self.editor = CornerEditor(
            corners,
            self.captured.width,
            self.captured.height,
            self.config.editor,
            on_change=self._on_corners_changed,
            display=self.display,
        )
        self.render()

    def _on_corners_changed(self, corners: CornerSet) -> None:
        self.render()

    def render(self) -> Optional[Raster]:
        """Build the current view and hand it to ``on_render``."""
        if self.filters.base is not None:
            view = self.filters.current
        elif self.captured is not None and self.corners is not None:
            active = self.editor.active_corner_index if self.editor else None
            view = draw_corner_overlay(self.captured, self.corners, active)
        else:
            view = self.captured

        if view is not None and self.on_render is not None:
            self.on_render(view)
        return view

    # ------------------------------------------------------------------
    # Crop
    # ------------------------------------------------------------------

    def commit_crop(self) -> RectificationResult:
        """
        Rectify the captured still with the current corners.

        On success the corners and editor are invalidated and filters start
        from the new crop. On rejection the selection stays editable.
        """
        if self.captured is None or self.corners is None:
            logger.warning("Crop requested without a captured still")
            return RectificationResult(
                decision=DecisionStatus.REJECT,
                rectified_image=None,
                rejection_reason=RejectionReason.NO_SOURCE,
                output_width=0,
                output_height=0,
            )

        result = self.processor.process(self.captured, self.corners)
        if not result.is_pass():
            logger.warning(f"Crop rejected: {result.get_error_message()}")
            return result

        if self.editor is not None:
            self.editor.release()
        self.corners = None
        self.editor = None
        self.filters.set_base(result.rectified_image)
        self.render()
        return result

    def revert_crop(self) -> Optional[CornerSet]:
        """Discard the crop and edit the captured still again with fresh corners."""
        if self.captured is None:
            return None
        self.filters.set_base(None)
        self._start_editing(self.estimator.estimate(self.captured))
        return self.corners

    def retake(self) -> None:
        """Forget the still, the selection and any crop."""
        self.captured = None
        self.corners = None
        self.editor = None
        self.filters.set_base(None)
        logger.info("Session reset for retake")

    # ------------------------------------------------------------------
    # Filters, recognition, export
    # ------------------------------------------------------------------

    def apply_filter(self, filter_type: FilterType) -> Optional[Raster]:
        """Select a filter over the rectified crop. No crop is a no-op."""
        filtered = self.filters.select(filter_type)
        if filtered is not None:
            self.render()
        return filtered

    async def recognize_text(self, language: Optional[str] = None) -> RecognitionResult:
        """
        Run text recognition on the current raster.

        With ``ocr_filter`` set, the recognizer gets that filter applied to
        the unfiltered crop (or the captured still before any commit) rather
        than to what is on screen. The displayed raster is never modified,
        whatever the outcome.

        Args:
            language: Language hint. Defaults to the session's ``language``.
        """
        lang = language or self.language
        raster = self.current_raster

        if raster is None:
            return RecognitionResult.failure(lang, "Please capture an image first")
        if self.recognizer is None:
            return RecognitionResult.failure(lang, "No text recognizer configured")

        if self.ocr_filter != FilterType.ORIGINAL:
            base = self.rectified if self.rectified is not None else self.captured
            raster = apply_filter(base, self.ocr_filter)

        try:
            result = await self.recognizer.recognize_async(raster, lang)
        except Exception as e:
            logger.error(f"Text recognition failed: {e}", exc_info=True)
            return RecognitionResult.failure(lang, str(e))

        if not result.success:
            logger.warning(f"Text recognition unsuccessful: {result.error}")
        return result

    def export(self, file_path: Path) -> Path:
        """
        Save the current raster.

        Raises:
            ValueError: If there is nothing to export.
        """
        raster = self.current_raster
        if raster is None:
            raise ValueError("Nothing to export: capture an image first")
        save_raster(raster, file_path)
        logger.info(f"Exported {raster.width}x{raster.height} image to {file_path}")
        return file_path
