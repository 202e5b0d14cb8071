"""Type definitions for OCR module.

This module defines the data structures returned by the text recognition
collaborator.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from src.common.types import Raster


@dataclass
class RecognizedWord:
    """Single word reported by the engine.

    Attributes:
        text: Recognized word
        confidence: Engine confidence (0.0-1.0)
        bbox: (x1, y1, x2, y2) in raster coordinates
        line: (block, paragraph, line) key the word belongs to
    """

    text: str
    confidence: float
    bbox: Tuple[int, int, int, int]
    line: Tuple[int, int, int]


@dataclass
class RecognitionResult:
    """Result from text recognition.

    A failed recognition never affects the raster it was run on; the caller
    decides how to surface ``error`` to the user.

    Attributes:
        text: Recognized text, lines joined with newlines
        confidence: Average word confidence (0.0-1.0)
        language: Language hint the engine ran with
        words: Per-word detail
        success: Whether recognition completed
        error: Failure description if not successful
    """

    text: str
    confidence: float
    language: str
    words: List[RecognizedWord] = field(default_factory=list)
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failure(cls, language: str, error: str) -> "RecognitionResult":
        """Build an unsuccessful result."""
        return cls(
            text="",
            confidence=0.0,
            language=language,
            words=[],
            success=False,
            error=error,
        )


class TextRecognizer(Protocol):
    """Anything that turns a raster into text without blocking the caller.

    ``language`` is a "+"-joined hint such as ``"eng+chi_tra"``; None lets
    the engine use its configured default. Failures come back as an
    unsuccessful RecognitionResult.
    """

    async def recognize_async(
        self, raster: Raster, language: Optional[str] = None
    ) -> RecognitionResult: ...
