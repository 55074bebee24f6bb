"""
Data Models for Stereo Calibration

Defines the session state and the persisted calibration result.
"""

from dataclasses import dataclass, field
from typing import Tuple, List
import numpy as np


@dataclass
class CalibrationSession:
    """Mutable observation state for one calibration run."""
    nx: int  # inner corners along a row
    ny: int  # inner corners along a column
    square_size: float
    image_size: Tuple[int, int]  # (width, height)
    success_count: int = 0
    object_points: List[np.ndarray] = field(default_factory=list)  # Nx3 per pair
    image_points1: List[np.ndarray] = field(default_factory=list)  # Nx1x2 per pair
    image_points2: List[np.ndarray] = field(default_factory=list)

    @property
    def pattern_size(self) -> Tuple[int, int]:
        return self.nx, self.ny


@dataclass
class CalibrationResult:
    """
    Stereo rig parameters produced by a solve or read from storage.

    All arrays are 2-D. A 1-D vector handed to the parameter store is saved
    and loaded back as an Nx1 column.
    """
    camera_matrix1: np.ndarray  # 3x3 intrinsic matrix
    dist_coeffs1: np.ndarray  # 1xN or Nx1, N in (4, 5, 8, 12, 14)
    camera_matrix2: np.ndarray
    dist_coeffs2: np.ndarray
    rotation: np.ndarray  # 3x3 rotation from camera 1 to camera 2
    translation: np.ndarray  # 3x1 translation from camera 1 to camera 2
    essential: np.ndarray  # 3x3
    fundamental: np.ndarray  # 3x3
    rect_rotation1: np.ndarray  # 3x3 rectifying rotation
    rect_rotation2: np.ndarray
    projection1: np.ndarray  # 3x4 rectified projection matrix
    projection2: np.ndarray
    disparity_to_depth: np.ndarray  # 4x4 Q matrix
    image_size: Tuple[int, int]  # (width, height)
    map_x1: np.ndarray  # HxW float32 remap tables
    map_y1: np.ndarray
    map_x2: np.ndarray
    map_y2: np.ndarray

    @property
    def baseline(self) -> float:
        """Distance between camera centres, in object point units."""
        return float(np.linalg.norm(self.translation))
