"""
Stereo Observation Accumulator

Runs a start / compute ... compute / end calibration session: collects chessboard
correspondences from image pairs and hands them to the stereo solver.
"""

import cv2
import numpy as np
from typing import Tuple, Optional
import logging

from ..data_models import CalibrationSession, CalibrationResult
from ..exceptions import InsufficientDataError, SessionStateError
from ..utils.config_manager import ConfigManager
from .corner_detector import CornerDetector
from .stereo_calibrator import StereoCalibrator
from .parameter_store import ParameterStore
from .calibration_validator import CalibrationValidator


def build_object_points(nx: int, ny: int, square_size: float = 1.0, scale: bool = True) -> np.ndarray:
    """
    Build the canonical chessboard geometry in detector corner order.

    Args:
        nx: Inner corners along a row
        ny: Inner corners along a column
        square_size: Physical square edge length
        scale: Multiply grid indices by square_size

    Returns:
        (nx*ny)x3 float32 points on the z=0 plane, row-major
    """
    points = np.zeros((nx * ny, 3), dtype=np.float32)
    points[:, :2] = np.mgrid[0:nx, 0:ny].T.reshape(-1, 2)
    if scale:
        points[:, :2] *= square_size
    return points


class ObservationAccumulator:
    """Owns the calibration session lifecycle for one stereo rig."""

    def __init__(self,
                 config_manager: Optional[ConfigManager] = None,
                 detector: Optional[CornerDetector] = None,
                 calibrator: Optional[StereoCalibrator] = None,
                 store: Optional[ParameterStore] = None,
                 validator: Optional[CalibrationValidator] = None):
        """
        Initialize observation accumulator.

        Args:
            config_manager: Configuration manager instance
            detector: Corner detector applied to each image
            calibrator: Solver run when the session ends
            store: Parameter store receiving the solved result
            validator: Quality validator run after the solve
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        self.detector = detector or CornerDetector(self.config)
        self.calibrator = calibrator or StereoCalibrator(self.config)
        self.store = store or ParameterStore(self.config)
        self.validator = validator or CalibrationValidator()

        calib_config = self.config.get_calibration_params()
        self.scale_object_points = calib_config.get('scale_object_points', False)
        self.min_pairs = int(calib_config.get('min_pairs', 10))

        self.session: Optional[CalibrationSession] = None

    @property
    def is_accumulating(self) -> bool:
        return self.session is not None

    @property
    def success_count(self) -> int:
        return self.session.success_count if self.session is not None else 0

    def start(self, nx: int, ny: int, square_size: float, image_size: Tuple[int, int]) -> None:
        """
        Begin a new session, discarding any observations collected so far.

        Args:
            nx: Inner corners along a row
            ny: Inner corners along a column
            square_size: Physical square edge length
            image_size: Calibration image size as (width, height)
        """
        if nx <= 0 or ny <= 0:
            raise ValueError(f"Pattern size must be positive, got {nx}x{ny}")
        if square_size <= 0:
            raise ValueError(f"Square size must be positive, got {square_size}")

        if self.session is not None:
            self.logger.warning(f"Restarting session, dropping {self.session.success_count} observations")

        self.session = CalibrationSession(
            nx=nx,
            ny=ny,
            square_size=square_size,
            image_size=(int(image_size[0]), int(image_size[1]))
        )

        self.logger.info(f"Calibration session started: {nx}x{ny} board, square {square_size}, "
                         f"image {image_size[0]}x{image_size[1]}")

    def compute(self, image1: np.ndarray, image2: np.ndarray, is_grayscale: bool = False) -> bool:
        """
        Detect the chessboard in an image pair and record it if both views see it.

        Args:
            image1: Camera 1 image
            image2: Camera 2 image
            is_grayscale: Whether both images are already single channel

        Returns:
            True if the pair was added to the session
        """
        session = self._require_session("compute")

        corners1 = self.detector.detect(image1, is_grayscale, session.pattern_size, "Left")
        corners2 = self.detector.detect(image2, is_grayscale, session.pattern_size, "Right")

        if corners1 is None or corners2 is None:
            self.logger.debug("Pair rejected: chessboard not found in both images")
            return False

        session.image_points1.append(corners1)
        session.image_points2.append(corners2)
        session.object_points.append(
            build_object_points(session.nx, session.ny, session.square_size, self.scale_object_points)
        )
        session.success_count += 1

        self.logger.debug(f"Pair accepted: {session.success_count} observations")
        return True

    def end(self) -> CalibrationResult:
        """
        Solve the calibration from all accumulated observations.

        Returns:
            Calibration result, also stored in the parameter store
        """
        session = self._require_session("end")

        if session.success_count == 0:
            raise InsufficientDataError("Cannot calibrate without any successful observation")

        if session.success_count < self.min_pairs:
            self.logger.warning(f"Only {session.success_count} observations, "
                                f"{self.min_pairs} recommended for a stable solve")

        result = self.calibrator.solve(
            session.object_points,
            session.image_points1,
            session.image_points2,
            session.image_size
        )

        try:
            self.validator.compute_epipolar_error(result, session.image_points1, session.image_points2)
        except (cv2.error, ValueError) as e:
            self.logger.warning(f"Epipolar check skipped: {e}")

        self.store.result = result
        self.session = None

        self.logger.info(f"Calibration session finished with {session.success_count} observations")

        return result

    def _require_session(self, operation: str) -> CalibrationSession:
        if self.session is None:
            raise SessionStateError(f"Cannot {operation}: no calibration session started")
        return self.session
