"""Tesseract engine wrapper for recognizing text in rectified documents.

This module provides a high-level interface to Tesseract OCR. It handles:

- Engine availability check at construction
- Conversion of RGBA rasters to the RGB input Tesseract expects
- Word-level extraction with confidence scores, grouped back into lines
- Error handling and logging

Recognition failures never raise: they come back as an unsuccessful
RecognitionResult so the caller can surface them while the raster stays as is.

Example:
    >>> from src.ocr import TesseractEngine, OCREngineConfig
    >>> engine = TesseractEngine(OCREngineConfig())
    >>> result = engine.recognize(raster)
    >>> print(result.text, result.confidence)
"""

import asyncio
import logging
from collections import OrderedDict
from typing import List, Optional

import numpy as np
import pytesseract

from src.common.types import Raster

from .config_loader import OCREngineConfig
from .types import RecognitionResult, RecognizedWord

logger = logging.getLogger(__name__)


class TesseractEngine:
    """Wrapper for Tesseract OCR.

    Args:
        config: OCR engine configuration.

    Raises:
        RuntimeError: If the Tesseract binary is not available.

    Example:
        >>> engine = TesseractEngine(config)
        >>> result = engine.recognize(raster, language="eng")
        >>> if result.success:
        ...     print(result.text)
    """

    def __init__(self, config: OCREngineConfig):
        self.config = config

        if config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = config.tesseract_cmd

        # Verify Tesseract is available
        try:
            version = pytesseract.get_tesseract_version()
            logger.info(f"Tesseract engine initialized: version {version}")
        except Exception as e:
            logger.error(f"Tesseract not found or not properly configured: {e}")
            raise RuntimeError(
                "Tesseract not available. Please install Tesseract OCR.\n"
                "Linux: sudo apt-get install tesseract-ocr tesseract-ocr-chi-tra\n"
                "MacOS: brew install tesseract tesseract-lang"
            ) from e

    def recognize(
        self, raster: Raster, language: Optional[str] = None
    ) -> RecognitionResult:
        """Recognize text in a raster.

        Args:
            raster: Rectified (and optionally filtered) raster.
            language: "+"-joined Tesseract language hint. Defaults to config.

        Returns:
            RecognitionResult; ``success`` is False on any failure.
        """
        language = language or self.config.lang

        if raster is None or raster.is_empty:
            logger.error("Invalid raster: empty or None")
            return RecognitionResult.failure(language, "Empty image")

        tesseract_config = f"--psm {self.config.psm} --oem {self.config.oem}"
        logger.debug(f"Running Tesseract lang={language}, config: {tesseract_config}")

        try:
            data = pytesseract.image_to_data(
                np.ascontiguousarray(raster.rgb()),
                lang=language,
                config=tesseract_config,
                output_type=pytesseract.Output.DICT,
                timeout=self.config.timeout_s,
            )
        except Exception as e:
            logger.error(f"Tesseract recognition failed: {e}", exc_info=True)
            return RecognitionResult.failure(language, str(e))

        words = _parse_words(data)
        if not words:
            logger.warning("Tesseract returned no text")
            return RecognitionResult(
                text="", confidence=0.0, language=language, words=[], success=True
            )

        text = _join_lines(words)
        confidence = float(np.mean([w.confidence for w in words]))

        logger.info(
            f"Recognized {len(words)} words, confidence={confidence:.2f}"
        )

        return RecognitionResult(
            text=text, confidence=confidence, language=language, words=words
        )

    async def recognize_async(
        self, raster: Raster, language: Optional[str] = None
    ) -> RecognitionResult:
        """Run ``recognize`` on a worker thread."""
        return await asyncio.to_thread(self.recognize, raster, language)


def _parse_words(data: dict) -> List[RecognizedWord]:
    """Collect non-empty words with a valid confidence from image_to_data output."""
    words = []
    for i in range(len(data["text"])):
        text = str(data["text"][i]).strip()
        conf = float(data["conf"][i])

        # conf < 0 marks layout rows (blocks, lines) rather than words
        if not text or conf < 0:
            continue

        left, top = int(data["left"][i]), int(data["top"][i])
        words.append(
            RecognizedWord(
                text=text,
                confidence=conf / 100.0,
                bbox=(
                    left,
                    top,
                    left + int(data["width"][i]),
                    top + int(data["height"][i]),
                ),
                line=(
                    int(data["block_num"][i]),
                    int(data["par_num"][i]),
                    int(data["line_num"][i]),
                ),
            )
        )
    return words


def _join_lines(words: List[RecognizedWord]) -> str:
    lines: "OrderedDict[tuple, List[str]]" = OrderedDict()
    for word in words:
        lines.setdefault(word.line, []).append(word.text)
    return "\n".join(" ".join(parts) for parts in lines.values())
