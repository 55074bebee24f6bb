"""
Debug Display Sinks

Fire-and-forget image display used for corner overlays and disparity previews.
"""

import cv2
import numpy as np
import logging
from typing import Optional

from .config_manager import ConfigManager


class NullDisplay:
    """Display sink that discards every frame."""

    enabled = False

    def show(self, window_name: str, image: np.ndarray) -> None:
        pass


class OpenCVDisplay:
    """Shows frames in named OpenCV windows."""

    enabled = True

    def __init__(self, wait_ms: int = 1):
        """
        Initialize OpenCV display sink.

        Args:
            wait_ms: Milliseconds passed to cv2.waitKey after each frame
        """
        self.wait_ms = wait_ms
        self.logger = logging.getLogger(__name__)

    def show(self, window_name: str, image: np.ndarray) -> None:
        """
        Show an image without ever failing the caller.

        Args:
            window_name: Name of the target window
            image: Image to display
        """
        try:
            cv2.imshow(window_name, image)
            cv2.waitKey(self.wait_ms)
        except cv2.error as e:
            self.logger.warning(f"Display of '{window_name}' failed: {e}")


def create_display(config_manager: Optional[ConfigManager] = None):
    """
    Build the display sink selected by the `display` config section.

    Args:
        config_manager: Configuration manager instance

    Returns:
        OpenCVDisplay when display is enabled, otherwise NullDisplay
    """
    config = config_manager or ConfigManager()
    display_config = config.get_display_params()

    if display_config.get('enabled', False):
        return OpenCVDisplay(wait_ms=display_config.get('wait_ms', 1))
    return NullDisplay()
