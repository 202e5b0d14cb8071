"""
Unit tests for RectificationSession.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest

from src.common.types import Raster
from src.ocr.types import RecognitionResult
from src.rectification.filters import black_and_white, enhance, grayscale
from src.rectification.session import RectificationSession
from src.rectification.types import (
    CornerSet,
    DisplayRect,
    EstimationStrategy,
    FilterType,
    RejectionReason,
)
from src.utils.io import load_raster


@pytest.fixture
def session(margin10_config):
    return RectificationSession(margin10_config)


@pytest.fixture
def gradient_raster():
    """200x100 horizontal gradient, so crops and filters are distinguishable."""
    row = np.linspace(0, 255, 200).astype(np.uint8)
    data = np.repeat(row[np.newaxis, :], 100, axis=0)
    return Raster.from_array(np.stack([data, data // 2, 255 - data], axis=2))


class TestCapture:
    """Tests for capture and corner selection."""

    def test_capture_estimates_corners(self, session, white_raster):
        """Capture freezes the still and places the default corners."""
        corners = session.capture(white_raster)

        assert corners.to_list() == [
            [10, 10],
            [190, 10],
            [190, 90],
            [10, 90],
        ], "Corners should sit 10px inside each edge"
        assert session.corners is corners
        assert session.editor is not None
        assert session.has_capture
        assert session.current_raster == white_raster

    def test_capture_copies_frame(self, session, white_raster):
        """The session keeps its own copy of the frame."""
        session.capture(white_raster)
        white_raster.data[:] = 0

        assert np.all(
            session.captured.data == 255
        ), "Captured still should not alias the caller's frame"

    def test_capture_strategy_override(self, session, document_raster):
        """A per-call strategy overrides the configured one."""
        corners = session.capture(document_raster, EstimationStrategy.EDGE_BOUNDING_BOX)
        assert corners.to_list() == [[59, 34], [141, 34], [141, 66], [59, 66]]

    def test_capture_from_camera(self, margin10_config, white_raster):
        """Without a frame argument the camera is asked for one."""
        camera = Mock()
        camera.capture_frame.return_value = white_raster
        session = RectificationSession(margin10_config, camera=camera)

        session.capture()

        camera.capture_frame.assert_called_once()
        assert session.captured == white_raster

    def test_capture_without_camera(self, session):
        """No frame and no camera is an error."""
        with pytest.raises(RuntimeError, match="No camera"):
            session.capture()

    def test_render_draws_overlay_while_editing(self, margin10_config, white_raster):
        """While editing, the render callback gets the overlay, not the still."""
        rendered = []
        session = RectificationSession(margin10_config, on_render=rendered.append)

        session.capture(white_raster)

        assert len(rendered) == 1
        assert rendered[0].shape == white_raster.shape
        assert rendered[0] != white_raster, "Overlay should be drawn while editing"
        assert session.captured == white_raster

    def test_drag_triggers_render(self, margin10_config, white_raster):
        """Every corner move re-renders."""
        rendered = []
        session = RectificationSession(margin10_config, on_render=rendered.append)
        session.capture(white_raster)

        session.editor.pointer_down(10, 10)
        session.editor.pointer_move(30, 30)

        assert len(rendered) == 2
        assert session.corners.top_left.to_tuple() == (30, 30)

    def test_display_is_passed_to_editor(self, session, white_raster):
        """Display geometry set before capture reaches the new editor."""
        session.set_display(DisplayRect(left=0, top=0, width=100, height=50))
        session.capture(white_raster)

        assert session.editor.to_raster_coords(5, 5).to_tuple() == (10, 10)

    def test_set_corners(self, session, white_raster):
        """Manual corners are copied into the session."""
        session.capture(white_raster)
        manual = CornerSet.from_list([[0, 0], [100, 0], [100, 50], [0, 50]])

        session.set_corners(manual)

        assert session.corners == manual
        assert session.corners is not manual

    def test_set_corners_without_capture_is_ignored(self, session):
        """Corners cannot be set before a capture."""
        session.set_corners(CornerSet.from_list([[0, 0], [1, 0], [1, 1], [0, 1]]))
        assert session.corners is None


class TestCommitCrop:
    """Tests for commit_crop, revert_crop and retake."""

    def test_commit(self, session, white_raster):
        """A passing commit replaces the selection with the rectified crop."""
        session.capture(white_raster)
        result = session.commit_crop()

        assert result.is_pass()
        assert session.rectified.shape == (80, 180, 4), "Crop should be 180x80"
        assert session.current_raster is session.rectified
        assert session.corners is None
        assert session.editor is None

    def test_commit_without_capture(self, session):
        """Committing with nothing captured is rejected."""
        result = session.commit_crop()

        assert not result.is_pass()
        assert result.rejection_reason == RejectionReason.NO_SOURCE

    def test_second_commit_does_not_reuse_corners(self, session, white_raster):
        """Corners are dropped after a commit, so a second commit has no source."""
        session.capture(white_raster)
        session.commit_crop()

        result = session.commit_crop()

        assert result.rejection_reason == RejectionReason.NO_SOURCE
        assert session.rectified.shape == (80, 180, 4)

    def test_rejected_commit_keeps_selection(self, session, white_raster):
        """A rejected crop leaves the selection editable."""
        session.capture(white_raster)
        session.set_corners(CornerSet.from_list([[10, 10], [12, 10], [12, 12], [10, 12]]))

        result = session.commit_crop()

        assert result.rejection_reason == RejectionReason.DEGENERATE_QUAD
        assert session.corners is not None, "Selection should survive a rejection"
        assert session.rectified is None

    def test_revert_crop(self, session, white_raster):
        """Reverting restores the still and re-estimates corners."""
        session.capture(white_raster)
        session.commit_crop()

        corners = session.revert_crop()

        assert session.rectified is None
        assert corners.to_list() == [[10, 10], [190, 10], [190, 90], [10, 90]]
        assert session.current_raster is session.captured

    def test_retake(self, session, white_raster):
        """Retake clears everything."""
        session.capture(white_raster)
        session.commit_crop()

        session.retake()

        assert not session.has_capture
        assert session.rectified is None
        assert session.current_raster is None
        assert session.revert_crop() is None


class TestFilters:
    """Tests for filter selection through the session."""

    def test_filter_before_crop_is_noop(self, session, white_raster):
        """Filters need a rectified crop."""
        session.capture(white_raster)
        assert session.apply_filter(FilterType.GRAYSCALE) is None
        assert session.current_raster is session.captured

    def test_filters_are_exclusive(self, session, gradient_raster):
        """Selecting a filter replaces the previous one."""
        session.capture(gradient_raster)
        session.commit_crop()
        crop = session.rectified

        session.apply_filter(FilterType.BLACK_WHITE)
        result = session.apply_filter(FilterType.ENHANCE)

        assert result == enhance(crop), "ENHANCE should run on the unfiltered crop"
        assert session.current_raster == enhance(crop)

        session.apply_filter(FilterType.ORIGINAL)
        assert session.current_raster is crop

    def test_new_crop_resets_filter(self, session, gradient_raster):
        """A new crop starts unfiltered."""
        session.capture(gradient_raster)
        session.commit_crop()
        session.apply_filter(FilterType.GRAYSCALE)

        session.revert_crop()
        session.commit_crop()

        assert session.filters.active == FilterType.ORIGINAL


class TestRecognizeText:
    """Tests for recognize_text."""

    def _recognizer(self, result=None, error=None):
        recognizer = Mock()
        recognizer.recognize_async = AsyncMock(return_value=result, side_effect=error)
        return recognizer

    def _empty_result(self):
        return RecognitionResult(text="", confidence=0.0, language="eng")

    def test_success(self, margin10_config, white_raster):
        """The displayed raster and the language hint reach the recognizer."""
        expected = RecognitionResult(text="hello", confidence=0.9, language="eng")
        recognizer = self._recognizer(result=expected)
        session = RectificationSession(margin10_config, recognizer=recognizer)
        session.capture(white_raster)
        session.commit_crop()

        result = asyncio.run(session.recognize_text("eng"))

        assert result is expected, "Recognizer result should be returned as is"
        raster, language = recognizer.recognize_async.call_args.args
        assert raster is session.current_raster, "Displayed raster should be sent"
        assert language == "eng"

    def test_without_capture(self, margin10_config):
        """Nothing captured yet is reported, not raised."""
        session = RectificationSession(margin10_config, recognizer=self._recognizer())

        result = asyncio.run(session.recognize_text())

        assert not result.success
        assert result.error == "Please capture an image first"

    def test_failure_reports_default_language(self, margin10_config):
        """Without an explicit hint, failures carry the configured default."""
        session = RectificationSession(margin10_config, recognizer=self._recognizer())

        result = asyncio.run(session.recognize_text())

        assert (
            result.language == "eng+chi_tra"
        ), "Failure should report the default language, not an empty string"

    def test_session_language_is_forwarded(self, margin10_config, white_raster):
        """The session's language is used when the call gives none."""
        recognizer = self._recognizer(result=self._empty_result())
        session = RectificationSession(
            margin10_config, recognizer=recognizer, language="chi_tra"
        )
        session.capture(white_raster)

        asyncio.run(session.recognize_text())

        _, language = recognizer.recognize_async.call_args.args
        assert language == "chi_tra", "Session language should reach the recognizer"

    def test_without_recognizer(self, session, white_raster):
        """A session with no engine reports the missing recognizer."""
        session.capture(white_raster)

        result = asyncio.run(session.recognize_text())

        assert not result.success
        assert "recognizer" in result.error
        assert result.language == "eng+chi_tra"

    def test_recognizer_error_is_captured(self, margin10_config, gradient_raster):
        """An engine exception becomes a failed result; the raster is untouched."""
        recognizer = self._recognizer(error=RuntimeError("engine crashed"))
        session = RectificationSession(margin10_config, recognizer=recognizer)
        session.capture(gradient_raster)
        session.commit_crop()
        before = session.current_raster.copy()

        result = asyncio.run(session.recognize_text("eng"))

        assert not result.success
        assert result.error == "engine crashed"
        assert result.language == "eng"
        assert session.current_raster == before, "Displayed raster should not change"

    def test_ocr_filter_applies_to_copy_only(self, margin10_config, gradient_raster):
        """The recognition filter runs on a copy; the display filter is unchanged."""
        recognizer = self._recognizer(result=self._empty_result())
        session = RectificationSession(
            margin10_config, recognizer=recognizer, ocr_filter=FilterType.BLACK_WHITE
        )
        session.capture(gradient_raster)
        session.commit_crop()
        shown = session.current_raster

        asyncio.run(session.recognize_text())

        sent = recognizer.recognize_async.call_args.args[0]
        assert sent == black_and_white(shown), "Recognizer should get the B&W copy"
        assert session.current_raster is shown
        assert session.filters.active == FilterType.ORIGINAL

    def test_ocr_filter_does_not_stack_on_display_filter(
        self, margin10_config, gradient_raster
    ):
        """With ENHANCE on screen, the recognizer still gets grayscale(crop)."""
        recognizer = self._recognizer(result=self._empty_result())
        session = RectificationSession(
            margin10_config, recognizer=recognizer, ocr_filter=FilterType.GRAYSCALE
        )
        session.capture(gradient_raster)
        session.commit_crop()
        session.apply_filter(FilterType.ENHANCE)
        shown = session.current_raster

        asyncio.run(session.recognize_text())

        sent = recognizer.recognize_async.call_args.args[0]
        assert sent == grayscale(
            session.rectified
        ), "Recognition filter should run on the unfiltered crop"
        assert sent != grayscale(shown), "Filters should not stack"
        assert session.current_raster is shown, "Display filter should stay ENHANCE"

    def test_ocr_filter_before_commit_uses_capture(
        self, margin10_config, gradient_raster
    ):
        """Before any commit the recognition filter runs on the captured still."""
        recognizer = self._recognizer(result=self._empty_result())
        session = RectificationSession(
            margin10_config, recognizer=recognizer, ocr_filter=FilterType.GRAYSCALE
        )
        session.capture(gradient_raster)

        asyncio.run(session.recognize_text())

        sent = recognizer.recognize_async.call_args.args[0]
        assert sent == grayscale(gradient_raster), "Captured still should be filtered"


class TestExport:
    """Tests for export."""

    def test_export_png(self, session, gradient_raster, tmp_path):
        """Export writes what is on screen."""
        session.capture(gradient_raster)
        session.commit_crop()

        path = session.export(tmp_path / "scan.png")

        assert path.exists()
        assert load_raster(path) == session.current_raster, "File should match"

    def test_export_nothing(self, session, tmp_path):
        """Exporting with nothing captured is an error."""
        with pytest.raises(ValueError, match="Nothing to export"):
            session.export(tmp_path / "scan.png")
