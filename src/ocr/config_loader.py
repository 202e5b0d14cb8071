"""Pydantic settings for the text recognition collaborator.

Settings live in a small YAML file next to this module; every field has a
default, so a missing or partial file still yields a usable configuration.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

FilterName = Literal["original", "grayscale", "black_white", "enhance", "ocr"]


class OCREngineConfig(BaseModel):
    """Tesseract settings.

    Attributes:
        type: Engine name (only "tesseract" is wired up)
        lang: "+"-joined language hint, Latin plus Traditional Chinese by default
        psm: Page segmentation mode passed as --psm
        oem: Engine mode passed as --oem
        tesseract_cmd: Explicit tesseract binary, None to use PATH
        timeout_s: Per-call timeout in seconds, 0 for none
    """

    type: str = "tesseract"
    lang: str = "eng+chi_tra"
    psm: int = Field(default=3, ge=0, le=13)
    oem: int = Field(default=3, ge=0, le=3)
    tesseract_cmd: Optional[str] = None
    timeout_s: float = Field(default=0.0, ge=0.0)


class PreprocessingConfig(BaseModel):
    """How the raster is prepared before it reaches the engine.

    Attributes:
        filter: Filter run on a copy of the raster ("original" sends it as is)
    """

    filter: FilterName = "original"


class OCRModuleConfig(BaseModel):
    """Engine plus preprocessing settings."""

    engine: OCREngineConfig = OCREngineConfig()
    preprocessing: PreprocessingConfig = PreprocessingConfig()


class Config(BaseModel):
    """Top-level settings object, keyed by module."""

    ocr: OCRModuleConfig = OCRModuleConfig()


def load_config(config_path: Path) -> Config:
    """Read OCR settings from ``config_path``.

    The file holds the ``engine`` and ``preprocessing`` sections directly;
    they are placed under ``ocr`` in the returned object.

    Raises:
        FileNotFoundError: If ``config_path`` is missing
        yaml.YAMLError: If the file is not valid YAML
        pydantic.ValidationError: If a value is out of range or of the wrong type

    Example:
        >>> settings = load_config(DEFAULT_CONFIG_PATH)
        >>> settings.ocr.engine.lang
        'eng+chi_tra'
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        sections = yaml.safe_load(f) or {}

    return Config(ocr=OCRModuleConfig(**sections))


def get_default_config() -> Config:
    """Settings from the bundled config.yaml, or built-in defaults without it."""
    if not DEFAULT_CONFIG_PATH.exists():
        return Config()
    return load_config(DEFAULT_CONFIG_PATH)
