"""
Stereo Rectifier

Applies stored remap tables to live image pairs and previews their disparity.
"""

import cv2
import numpy as np
from typing import Tuple, Optional
import logging

from ..data_models import CalibrationResult
from ..exceptions import NotCalibratedError, SizeMismatchError
from ..calibration.parameter_store import ParameterStore
from ..disparity.bm_estimator import BMEstimator
from ..utils.config_manager import ConfigManager
from ..utils.visualization import create_display


class StereoRectifier:
    """Rectifies image pairs with the parameter store's current calibration."""

    def __init__(self,
                 store: ParameterStore,
                 config_manager: Optional[ConfigManager] = None,
                 estimator: Optional[BMEstimator] = None,
                 display=None):
        """
        Initialize stereo rectifier.

        Args:
            store: Parameter store holding the calibration result
            config_manager: Configuration manager instance
            estimator: Disparity estimator. Built from config if None.
            display: Display sink for disparity previews. Built from config if None.
        """
        self.store = store
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.estimator = estimator or BMEstimator(self.config)
        self.display = display if display is not None else create_display(self.config)

    def _require_result(self) -> CalibrationResult:
        if self.store.result is None:
            raise NotCalibratedError("Rectification needs a solved or loaded calibration")
        return self.store.result

    def rectify(self, image1: np.ndarray, image2: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Rectify a stereo image pair.

        Args:
            image1: Camera 1 image
            image2: Camera 2 image

        Returns:
            Tuple of (rectified_1, rectified_2)
        """
        result = self._require_result()
        width, height = result.image_size

        for label, image in (("camera 1", image1), ("camera 2", image2)):
            if image.shape[:2] != (height, width):
                raise SizeMismatchError(
                    f"{label} image is {image.shape[1]}x{image.shape[0]}, "
                    f"calibration is {width}x{height}"
                )

        rectified1 = cv2.remap(image1, result.map_x1, result.map_y1, cv2.INTER_LINEAR,
                               borderMode=cv2.BORDER_CONSTANT, borderValue=0)
        rectified2 = cv2.remap(image2, result.map_x2, result.map_y2, cv2.INTER_LINEAR,
                               borderMode=cv2.BORDER_CONSTANT, borderValue=0)

        return rectified1, rectified2

    def compute_disparity(self, rectified_left: np.ndarray, rectified_right: np.ndarray) -> np.ndarray:
        """
        Compute a display-ready disparity map of a rectified pair.

        Args:
            rectified_left: Rectified camera 1 image
            rectified_right: Rectified camera 2 image

        Returns:
            8-bit disparity image normalized to 0-255
        """
        disparity = self.estimator.compute_disparity(rectified_left, rectified_right)
        return self.estimator.create_disparity_visualization(disparity)

    def transform(self, image1: np.ndarray, image2: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Rectify a pair and preview its disparity.

        Args:
            image1: Camera 1 image
            image2: Camera 2 image

        Returns:
            Tuple of (rectified_1, rectified_2, disparity_visualization)
        """
        rectified1, rectified2 = self.rectify(image1, image2)
        disparity_vis = self.compute_disparity(rectified1, rectified2)

        if self.display.enabled:
            self.display.show("Disparity", disparity_vis)

        return rectified1, rectified2, disparity_vis
