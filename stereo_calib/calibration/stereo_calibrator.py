"""
Stereo Camera Calibrator

Jointly solves both cameras' intrinsics and the rig extrinsics from chessboard
observations, then derives rectification transforms and remap tables.
"""

import cv2
import numpy as np
from typing import List, Tuple, Optional
import logging

from ..data_models import CalibrationResult
from ..exceptions import SolverDivergenceError
from ..utils.config_manager import ConfigManager


class OpenCVStereoBackend:
    """Camera model operations backed by OpenCV calib3d."""

    def stereo_calibrate(self,
                         object_points: List[np.ndarray],
                         image_points1: List[np.ndarray],
                         image_points2: List[np.ndarray],
                         image_size: Tuple[int, int],
                         criteria: Tuple[int, int, float],
                         flags: int) -> Tuple:
        """
        Returns:
            Tuple of (rms, K1, D1, K2, D2, R, T, E, F)
        """
        return cv2.stereoCalibrate(
            object_points,
            image_points1,
            image_points2,
            None, None, None, None,
            image_size,
            criteria=criteria,
            flags=flags
        )

    def stereo_rectify(self,
                       camera_matrix1: np.ndarray,
                       dist_coeffs1: np.ndarray,
                       camera_matrix2: np.ndarray,
                       dist_coeffs2: np.ndarray,
                       image_size: Tuple[int, int],
                       R: np.ndarray,
                       T: np.ndarray) -> Tuple:
        """
        Returns:
            Tuple of (R1, R2, P1, P2, Q)
        """
        R1, R2, P1, P2, Q, _, _ = cv2.stereoRectify(
            camera_matrix1, dist_coeffs1,
            camera_matrix2, dist_coeffs2,
            image_size, R, T
        )
        return R1, R2, P1, P2, Q

    def init_rectify_map(self,
                         camera_matrix: np.ndarray,
                         dist_coeffs: np.ndarray,
                         R: np.ndarray,
                         P: np.ndarray,
                         image_size: Tuple[int, int]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns:
            Tuple of (map_x, map_y) float32 tables of shape (height, width)
        """
        return cv2.initUndistortRectifyMap(
            camera_matrix, dist_coeffs, R, P, image_size, cv2.CV_32FC1
        )


class StereoCalibrator:
    """Solves stereo calibration and rectification from accumulated observations."""

    def __init__(self,
                 config_manager: Optional[ConfigManager] = None,
                 backend: Optional[OpenCVStereoBackend] = None):
        """
        Initialize stereo calibrator.

        Args:
            config_manager: Configuration manager instance
            backend: Camera model backend. Uses OpenCV if None.
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.backend = backend or OpenCVStereoBackend()

        calib_config = self.config.get_calibration_params()

        # Stopping criteria: whichever of iteration count or epsilon comes first
        self.max_iterations = int(calib_config.get('max_iterations', 100))
        self.epsilon = float(calib_config.get('epsilon', 1e-5))
        self.criteria = (
            cv2.TERM_CRITERIA_COUNT + cv2.TERM_CRITERIA_EPS,
            self.max_iterations,
            self.epsilon
        )

        self.flags = 0
        if calib_config.get('same_focal_length', True):
            self.flags |= cv2.CALIB_SAME_FOCAL_LENGTH
        if calib_config.get('zero_tangent_dist', True):
            self.flags |= cv2.CALIB_ZERO_TANGENT_DIST

        self.max_rms_error = float(calib_config.get('max_rms_error', 1.0))
        self.last_rms_error: Optional[float] = None

        self.logger.info(f"Stereo calibrator initialized: max {self.max_iterations} iterations, eps={self.epsilon}")

    def solve(self,
              object_points: List[np.ndarray],
              image_points1: List[np.ndarray],
              image_points2: List[np.ndarray],
              image_size: Tuple[int, int]) -> CalibrationResult:
        """
        Calibrate the stereo rig and build its rectification maps.

        Args:
            object_points: Board points for each observation
            image_points1: Detected corners in camera 1 for each observation
            image_points2: Detected corners in camera 2 for each observation
            image_size: Calibrated image size as (width, height)

        Returns:
            Complete calibration result
        """
        if not (len(object_points) == len(image_points1) == len(image_points2)):
            raise ValueError("Object and image point sequences must have equal length")

        if len(object_points) == 0:
            raise ValueError("At least one observation is required")

        image_size = (int(image_size[0]), int(image_size[1]))
        self.logger.info(f"Starting stereo calibration with {len(object_points)} image pairs")

        try:
            rms, K1, D1, K2, D2, R, T, E, F = self.backend.stereo_calibrate(
                [np.asarray(p, dtype=np.float32) for p in object_points],
                [np.asarray(p, dtype=np.float32) for p in image_points1],
                [np.asarray(p, dtype=np.float32) for p in image_points2],
                image_size,
                self.criteria,
                self.flags
            )
        except cv2.error as e:
            raise SolverDivergenceError(f"Stereo calibration failed: {e}") from e

        if rms is None or not np.isfinite(rms):
            raise SolverDivergenceError(f"Stereo calibration diverged: rms = {rms}")

        self._validate_camera_matrix(K1, "camera 1")
        self._validate_camera_matrix(K2, "camera 2")

        self.last_rms_error = float(rms)
        self.logger.info(f"Stereo calibration completed: RMS error = {rms:.4f} pixels, "
                         f"baseline = {np.linalg.norm(T):.4f}")

        if rms > self.max_rms_error:
            self.logger.warning(f"High stereo reprojection error: {rms:.4f} > {self.max_rms_error}")

        try:
            R1, R2, P1, P2, Q = self.backend.stereo_rectify(K1, D1, K2, D2, image_size, R, T)
            map_x1, map_y1 = self.backend.init_rectify_map(K1, D1, R1, P1, image_size)
            map_x2, map_y2 = self.backend.init_rectify_map(K2, D2, R2, P2, image_size)
        except cv2.error as e:
            raise SolverDivergenceError(f"Stereo rectification failed: {e}") from e

        self.logger.info("Rectification maps computed successfully")

        return CalibrationResult(
            camera_matrix1=K1,
            dist_coeffs1=D1,
            camera_matrix2=K2,
            dist_coeffs2=D2,
            rotation=R,
            translation=T,
            essential=E,
            fundamental=F,
            rect_rotation1=R1,
            rect_rotation2=R2,
            projection1=P1,
            projection2=P2,
            disparity_to_depth=Q,
            image_size=image_size,
            map_x1=map_x1,
            map_y1=map_y1,
            map_x2=map_x2,
            map_y2=map_y2
        )

    def _validate_camera_matrix(self, K: np.ndarray, name: str) -> None:
        """
        Reject non-finite or singular intrinsic matrices.

        Args:
            K: 3x3 intrinsic matrix
            name: Camera label used in the error message
        """
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (3, 3) or not np.all(np.isfinite(K)):
            raise SolverDivergenceError(f"Degenerate intrinsics for {name}")

        det_K = np.linalg.det(K)
        if abs(det_K) < 1e-9 or K[0, 0] <= 0 or K[1, 1] <= 0:
            raise SolverDivergenceError(f"Singular intrinsics for {name}: det(K) = {det_K:.3g}")

        self.logger.debug(f"{name}: fx={K[0, 0]:.2f}, fy={K[1, 1]:.2f}, cx={K[0, 2]:.2f}, cy={K[1, 2]:.2f}")
