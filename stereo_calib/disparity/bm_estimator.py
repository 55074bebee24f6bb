"""
Block Matching (BM) Disparity Estimator

Computes a debug disparity map from a rectified pair with a fixed StereoBM profile.
"""

import cv2
import numpy as np
from typing import Optional, Tuple, Dict, Any
import logging

from ..utils.config_manager import ConfigManager


class BMEstimator:
    """StereoBM disparity estimator for inspecting rectification quality."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize BM estimator.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        bm_config = self.config.get_stereo_bm_params()

        self.min_disparity = bm_config.get('min_disparity', 0)
        self.num_disparities = bm_config.get('num_disparities', 64)  # Must be divisible by 16
        self.block_size = bm_config.get('block_size', 65)

        self.pre_filter_size = bm_config.get('pre_filter_size', 5)
        self.pre_filter_cap = bm_config.get('pre_filter_cap', 10)

        # Zero texture threshold and speckle window keep every raw match
        self.texture_threshold = bm_config.get('texture_threshold', 0)
        self.uniqueness_ratio = bm_config.get('uniqueness_ratio', 5)
        self.speckle_window_size = bm_config.get('speckle_window_size', 0)
        self.speckle_range = bm_config.get('speckle_range', 0)

        self._create_bm_matcher()

        self.logger.info(f"BM estimator initialized: {self.num_disparities} disparities, block_size={self.block_size}")

    def _create_bm_matcher(self) -> None:
        """Create StereoBM matcher with configured parameters."""
        self.bm = cv2.StereoBM_create(
            numDisparities=self.num_disparities,
            blockSize=self.block_size
        )
        self.bm.setPreFilterType(cv2.StereoBM_PREFILTER_NORMALIZED_RESPONSE)
        self.bm.setPreFilterSize(self.pre_filter_size)
        self.bm.setPreFilterCap(self.pre_filter_cap)
        self.bm.setMinDisparity(self.min_disparity)
        self.bm.setTextureThreshold(self.texture_threshold)
        self.bm.setUniquenessRatio(self.uniqueness_ratio)
        self.bm.setSpeckleWindowSize(self.speckle_window_size)
        self.bm.setSpeckleRange(self.speckle_range)

    def compute_disparity(self, left_image: np.ndarray, right_image: np.ndarray) -> np.ndarray:
        """
        Compute disparity map using StereoBM.

        Args:
            left_image: Left rectified image
            right_image: Right rectified image

        Returns:
            Disparity map (16-bit fixed point, divide by 16 for actual disparity)
        """
        if left_image.shape != right_image.shape:
            raise ValueError("Left and right images must have same dimensions")

        # StereoBM only accepts 8-bit single channel input
        if len(left_image.shape) == 3:
            left_gray = cv2.cvtColor(left_image, cv2.COLOR_BGR2GRAY)
            right_gray = cv2.cvtColor(right_image, cv2.COLOR_BGR2GRAY)
        else:
            left_gray = left_image
            right_gray = right_image

        disparity = self.bm.compute(left_gray, right_gray)

        self.logger.debug(f"Computed disparity map: {np.count_nonzero(disparity > 0)} positive pixels")

        return disparity

    def create_disparity_visualization(self, disparity: np.ndarray) -> np.ndarray:
        """
        Stretch raw disparity to the 0-255 display range.

        Args:
            disparity: Disparity map (16-bit fixed point)

        Returns:
            8-bit disparity image
        """
        return cv2.normalize(disparity, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_8U)

    def get_disparity_range(self) -> Tuple[int, int]:
        """
        Get the current disparity range.

        Returns:
            Tuple of (min_disparity, max_disparity)
        """
        return self.min_disparity, self.min_disparity + self.num_disparities

    def validate_disparity_map(self, disparity: np.ndarray) -> Dict[str, Any]:
        """
        Summarize disparity map coverage.

        Args:
            disparity: Disparity map (16-bit fixed point)

        Returns:
            Validation metrics
        """
        disp_float = disparity.astype(np.float32) / 16.0
        valid_disparities = disp_float[disparity > self.min_disparity * 16]

        metrics = {
            'valid_pixel_ratio': valid_disparities.size / disparity.size,
            'total_pixels': int(disparity.size),
            'valid_pixels': int(valid_disparities.size),
            'mean_disparity': 0.0,
            'min_disparity': 0.0,
            'max_disparity': 0.0
        }

        if valid_disparities.size > 0:
            metrics.update({
                'mean_disparity': float(np.mean(valid_disparities)),
                'min_disparity': float(np.min(valid_disparities)),
                'max_disparity': float(np.max(valid_disparities))
            })

        return metrics
