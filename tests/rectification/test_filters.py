"""
Unit tests for post-processing filters.
"""

import numpy as np
import pytest

from src.common.types import Raster
from src.rectification.filters import (
    FilterPipeline,
    apply_filter,
    black_and_white,
    enhance,
    grayscale,
    ocr_preprocess,
)
from src.rectification.types import FilterType


def _pixels(*rgba):
    """Single-row raster from RGBA tuples."""
    return Raster(data=np.array([list(rgba)], dtype=np.uint8))


@pytest.fixture
def colourful_raster():
    return _pixels((200, 50, 100, 255), (10, 250, 128, 255), (90, 90, 90, 77))


class TestGrayscale:
    """Tests for grayscale."""

    def test_weights(self):
        """Primary colours map to their luma weights, replicated into R, G and B."""
        result = grayscale(_pixels((255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)))

        # 76.245 -> 76, 149.685 -> 150, 29.07 -> 29
        np.testing.assert_array_equal(
            result.data[0, :, 0], [76, 150, 29], err_msg="Luma should round to nearest"
        )
        assert np.all(result.data[0, :, 0] == result.data[0, :, 1])
        assert np.all(result.data[0, :, 1] == result.data[0, :, 2])

    def test_alpha_preserved(self, colourful_raster):
        """Alpha is carried over unchanged."""
        result = grayscale(colourful_raster)
        np.testing.assert_array_equal(
            result.data[:, :, 3],
            colourful_raster.data[:, :, 3],
            err_msg="Alpha should be unchanged",
        )


class TestBlackAndWhite:
    """Tests for black_and_white."""

    def test_threshold(self):
        """Luma above 128 is white; 128 and below is black. Alpha is kept."""
        result = black_and_white(
            _pixels((127, 127, 127, 255), (129, 129, 129, 255), (255, 255, 255, 9))
        )

        np.testing.assert_array_equal(
            result.data[0, :, 0], [0, 255, 255], err_msg="Luma threshold is 128"
        )
        assert result.data[0, 2, 3] == 9, "Alpha should be unchanged"

    def test_uses_luma_not_average(self):
        """Pure green is bright in luma (150) though its mean is only 85."""
        result = black_and_white(_pixels((0, 255, 0, 255)))
        assert tuple(result.data[0, 0]) == (255, 255, 255, 255)


class TestEnhance:
    """Tests for enhance."""

    def test_contrast_stretch(self):
        """Each channel is stretched around 128 and clamped to [0, 255]."""
        result = enhance(_pixels((200, 128, 100, 255), (10, 250, 0, 255)))

        assert tuple(result.data[0, 0, :3]) == (236, 128, 86), "Stretch factor is 1.5"
        # -49 and 311 clamp to the byte range
        assert tuple(result.data[0, 1, :3]) == (0, 255, 0)

    def test_rounds_half_to_even(self):
        """(129 - 128) * 1.5 + 128 = 129.5 -> 130, (127 - 128) * 1.5 + 128 = 126.5 -> 126."""
        result = enhance(_pixels((129, 127, 128, 255)))
        assert tuple(result.data[0, 0, :3]) == (130, 126, 128)


class TestOcrPreprocess:
    """Tests for ocr_preprocess."""

    def test_threshold_on_average(self):
        """The OCR filter thresholds the plain channel mean at 180."""
        result = ocr_preprocess(
            _pixels(
                (200, 200, 200, 255),
                (180, 180, 180, 255),
                (255, 255, 0, 255),
                (255, 255, 43, 255),
            )
        )

        # Means: 200, 180 (not above), 170, 184.3
        np.testing.assert_array_equal(
            result.data[0, :, 0], [255, 0, 0, 255], err_msg="Mean threshold is 180"
        )


class TestApplyFilter:
    """Tests for apply_filter."""

    @pytest.mark.parametrize("filter_type", list(FilterType))
    def test_input_not_modified(self, colourful_raster, filter_type):
        """Every filter returns a new raster and leaves its input alone."""
        before = colourful_raster.copy()
        result = apply_filter(colourful_raster, filter_type)

        assert colourful_raster == before, f"{filter_type} should not modify its input"
        assert result is not colourful_raster
        assert result.shape == colourful_raster.shape, "Shape should be preserved"

    def test_original_is_a_copy(self, colourful_raster):
        """ORIGINAL returns an equal copy."""
        assert apply_filter(colourful_raster, FilterType.ORIGINAL) == colourful_raster

    def test_none_is_noop(self):
        """No raster in, no raster out."""
        assert apply_filter(None, FilterType.GRAYSCALE) is None

    def test_empty_raster(self):
        """Filtering a zero-sized raster gives a zero-sized raster."""
        result = apply_filter(Raster.blank(0, 0), FilterType.ENHANCE)
        assert result.is_empty


class TestFilterPipeline:
    """Tests for exclusive filter selection."""

    def test_filters_do_not_stack(self, colourful_raster):
        """Each selection runs on the base, not on the previous result."""
        pipeline = FilterPipeline(colourful_raster)

        pipeline.select(FilterType.GRAYSCALE)
        result = pipeline.select(FilterType.ENHANCE)

        assert result == enhance(colourful_raster), "ENHANCE should run on the base"
        assert result != enhance(grayscale(colourful_raster)), "No stacking"
        assert pipeline.active == FilterType.ENHANCE

    def test_original_restores_base(self, colourful_raster):
        """ORIGINAL hands back the base raster itself."""
        pipeline = FilterPipeline(colourful_raster)

        pipeline.select(FilterType.BLACK_WHITE)
        restored = pipeline.select(FilterType.ORIGINAL)

        assert restored is colourful_raster
        assert pipeline.current is colourful_raster

    def test_no_base_is_noop(self):
        """Without a base, selection does nothing."""
        pipeline = FilterPipeline()

        assert pipeline.select(FilterType.GRAYSCALE) is None
        assert pipeline.active == FilterType.ORIGINAL
        assert pipeline.current is None

    def test_set_base_resets_selection(self, colourful_raster):
        """A new base starts at ORIGINAL."""
        pipeline = FilterPipeline(colourful_raster)
        pipeline.select(FilterType.OCR)

        other = Raster.blank(2, 2)
        pipeline.set_base(other)

        assert pipeline.active == FilterType.ORIGINAL
        assert pipeline.current is other
        assert pipeline.base is other
