"""
Camera collaborator: supplies still frames for rectification.
"""

from src.camera.source import CameraConfig, CameraError, CameraSource

__all__ = ["CameraSource", "CameraConfig", "CameraError"]
