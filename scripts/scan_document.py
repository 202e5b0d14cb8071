#!/usr/bin/env python3
"""
Document Scan Script

Captures a camera frame (or loads an image file), estimates the document
corners, flattens the selection, applies an optional filter and writes the
result. Text recognition runs when --ocr is given.

Usage:
    python scripts/scan_document.py --image photo.jpg --output scan.png
    python scripts/scan_document.py --camera 1 --filter black_white --ocr
    python scripts/scan_document.py --image photo.jpg \\
        --corners 120,80 900,95 910,1200 100,1180 --output scan.png
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.camera import CameraConfig, CameraError, CameraSource
from src.ocr import TesseractEngine, get_default_config
from src.rectification import (
    CornerSet,
    EstimationStrategy,
    FilterType,
    RectificationSession,
    load_config,
)
from src.rectification.config_loader import DEFAULT_CONFIG_PATH
from src.utils.io import load_raster

logger = logging.getLogger(__name__)


def parse_corners(values: Optional[List[str]]) -> Optional[CornerSet]:
    """Parse ["x,y", ...] into a CornerSet (TL, TR, BR, BL)."""
    if not values:
        return None
    try:
        coords = [[float(c) for c in value.split(",")] for value in values]
        return CornerSet.from_list(coords)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"--corners expects 4 points as x,y (TL TR BR BL): {e}"
        ) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Flatten a photographed document and optionally read its text",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--image", type=str, help="Input image file")
    source.add_argument(
        "--camera", type=int, default=0, help="Preferred camera device index"
    )
    parser.add_argument(
        "--fallback-camera",
        type=int,
        default=0,
        help="Camera tried when the preferred one cannot be opened",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to rectification config",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in EstimationStrategy],
        default=None,
        help="Corner estimation strategy (defaults to config)",
    )
    parser.add_argument(
        "--corners",
        nargs=4,
        metavar="X,Y",
        help="Explicit corners TL TR BR BL, overriding estimation",
    )
    parser.add_argument(
        "--filter",
        choices=[f.value for f in FilterType],
        default=FilterType.ORIGINAL.value,
        help="Post-processing filter",
    )
    parser.add_argument("--ocr", action="store_true", help="Run text recognition")
    parser.add_argument("--lang", type=str, default=None, help="OCR language hint")
    parser.add_argument(
        "--output", type=str, default="scan.png", help="Output image path"
    )
    return parser


def main() -> int:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = build_parser()
    args = parser.parse_args()

    try:
        corners = parse_corners(args.corners)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    config = load_config(Path(args.config))
    ocr_config = get_default_config().ocr

    recognizer = None
    if args.ocr:
        try:
            recognizer = TesseractEngine(ocr_config.engine)
        except RuntimeError as e:
            logger.error(str(e))
            return 1

    session = RectificationSession(
        config,
        recognizer=recognizer,
        ocr_filter=FilterType(ocr_config.preprocessing.filter),
        language=ocr_config.engine.lang,
    )
    strategy = EstimationStrategy(args.strategy) if args.strategy else None

    if args.image:
        session.capture(load_raster(Path(args.image)), strategy)
    else:
        camera = CameraSource(
            CameraConfig(device_index=args.camera, fallback_index=args.fallback_camera)
        )
        try:
            with camera:
                session.capture(camera.capture_frame(), strategy)
        except CameraError as e:
            logger.error(str(e))
            return 1

    if corners is not None:
        session.set_corners(corners)

    result = session.commit_crop()
    if not result.is_pass():
        logger.error(result.get_error_message())
        return 2

    session.apply_filter(FilterType(args.filter))
    output_path = session.export(Path(args.output))
    print(f"Saved {result.output_width}x{result.output_height} scan to {output_path}")

    if recognizer is not None:
        recognition = asyncio.run(session.recognize_text(args.lang))
        if not recognition.success:
            logger.error(f"Text recognition failed: {recognition.error}")
            return 3
        print(recognition.text)

    return 0


if __name__ == "__main__":
    sys.exit(main())
