"""Text recognition collaborator.

Runs an external OCR engine on rectified document rasters. The engine is a
black box: the rectification core only hands it a raster and a language hint.

Core Components:
    - types: Data structures (RecognitionResult, RecognizedWord) and the
      TextRecognizer protocol the session depends on
    - config_loader: Configuration loading with Pydantic validation
    - engine: Tesseract wrapper

Example:
    >>> from src.ocr import TesseractEngine, get_default_config
    >>> engine = TesseractEngine(get_default_config().ocr.engine)
    >>> result = engine.recognize(raster)
    >>> if result.success:
    ...     print(result.text)
"""

from .config_loader import (
    Config,
    OCREngineConfig,
    OCRModuleConfig,
    PreprocessingConfig,
    get_default_config,
    load_config,
)
from .engine import TesseractEngine
from .types import RecognitionResult, RecognizedWord, TextRecognizer

__all__ = [
    # Types
    "RecognitionResult",
    "RecognizedWord",
    "TextRecognizer",
    # Configuration
    "Config",
    "OCRModuleConfig",
    "OCREngineConfig",
    "PreprocessingConfig",
    "load_config",
    "get_default_config",
    # Engine
    "TesseractEngine",
]
