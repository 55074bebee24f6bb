"""
Chessboard Corner Detector

Wraps OpenCV chessboard detection and renders optional corner overlays.
"""

import cv2
import numpy as np
from typing import Tuple, Optional
import logging

from ..utils.config_manager import ConfigManager
from ..utils.visualization import create_display


class ChessboardFinder:
    """OpenCV chessboard finder with sub-pixel refinement."""

    def __init__(self,
                 adaptive_thresh: bool = True,
                 filter_quads: bool = True,
                 subpix_window: int = 11,
                 subpix_max_iter: int = 30,
                 subpix_epsilon: float = 0.1):
        self.flags = 0
        if adaptive_thresh:
            self.flags |= cv2.CALIB_CB_ADAPTIVE_THRESH
        if filter_quads:
            self.flags |= cv2.CALIB_CB_FILTER_QUADS

        self.subpix_window = (subpix_window, subpix_window)
        self.subpix_criteria = (
            cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER,
            subpix_max_iter,
            subpix_epsilon
        )

    def find(self, gray: np.ndarray, pattern_size: Tuple[int, int]) -> Optional[np.ndarray]:
        """
        Find the inner chessboard corners.

        Args:
            gray: Single channel 8-bit image
            pattern_size: Inner corners per row and per column (nx, ny)

        Returns:
            Nx1x2 float32 corners in row-major board order, or None if not found
        """
        found, corners = cv2.findChessboardCorners(gray, pattern_size, flags=self.flags)
        if not found or corners is None:
            return None
        return corners.reshape(-1, 1, 2)

    def refine(self, gray: np.ndarray, corners: np.ndarray) -> np.ndarray:
        """Return a sub-pixel refined copy of the corners."""
        return cv2.cornerSubPix(
            gray, corners.copy(), self.subpix_window, (-1, -1), self.subpix_criteria
        )


class CornerDetector:
    """Detects chessboard corners on one camera image of a stereo pair."""

    def __init__(self,
                 config_manager: Optional[ConfigManager] = None,
                 finder: Optional[ChessboardFinder] = None,
                 display=None):
        """
        Initialize corner detector.

        Args:
            config_manager: Configuration manager instance
            finder: Chessboard finder strategy. Built from config if None.
            display: Display sink for corner overlays. Built from config if None.
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        if finder is None:
            board_config = self.config.get_chessboard_params()
            finder = ChessboardFinder(
                adaptive_thresh=board_config.get('adaptive_thresh', True),
                filter_quads=board_config.get('filter_quads', True),
                subpix_window=board_config.get('subpix_window', 11),
                subpix_max_iter=board_config.get('subpix_max_iter', 30),
                subpix_epsilon=board_config.get('subpix_epsilon', 0.1)
            )
        self.finder = finder
        self.display = display if display is not None else create_display(self.config)

        self.logger.info(f"Corner detector initialized (display={'on' if self.display.enabled else 'off'})")

    def detect(self,
               image: np.ndarray,
               is_grayscale: bool,
               pattern_size: Tuple[int, int],
               window_name: str = "Corners") -> Optional[np.ndarray]:
        """
        Detect chessboard corners in one image.

        Args:
            image: Input image, BGR unless is_grayscale is set
            is_grayscale: Whether the image is already single channel
            pattern_size: Inner corners per row and per column (nx, ny)
            window_name: Display window for the corner overlay

        Returns:
            Raw Nx1x2 detected corners, or None if the pattern was not found
            or the finder returned a corner count other than nx*ny
        """
        gray = image if is_grayscale else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        corners = self.finder.find(gray, pattern_size)
        if corners is not None:
            corners = np.asarray(corners, dtype=np.float32).reshape(-1, 1, 2)
            expected = pattern_size[0] * pattern_size[1]
            if len(corners) != expected:
                self.logger.debug(f"{window_name}: {len(corners)} corners found, expected {expected}")
                corners = None

        if self.display.enabled:
            self._show_overlay(gray, pattern_size, corners, window_name)

        if corners is None:
            self.logger.debug(f"{window_name}: chessboard {pattern_size} not found")
            return None

        self.logger.debug(f"{window_name}: {len(corners)} corners detected")
        return corners

    def _show_overlay(self,
                      gray: np.ndarray,
                      pattern_size: Tuple[int, int],
                      corners: Optional[np.ndarray],
                      window_name: str) -> None:
        try:
            overlay = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
            if corners is not None:
                refined = self.finder.refine(gray, corners)
                cv2.drawChessboardCorners(overlay, pattern_size, refined, True)
        except cv2.error as e:
            self.logger.warning(f"{window_name}: corner overlay failed: {e}")
            return
        self.display.show(window_name, overlay)
