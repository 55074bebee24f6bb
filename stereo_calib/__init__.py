"""
Stereo Camera Calibration Toolkit

Calibrates a two-camera rig from chessboard image pairs and rectifies live pairs.

This package implements:
- Chessboard corner detection with optional overlay display
- Session-based accumulation of stereo correspondences
- Joint stereo calibration, rectification and remap table generation
- FileStorage persistence of the complete parameter set
- Rectification of live pairs with a block-matching disparity preview
"""

__version__ = "1.0.0"
__author__ = "Stereo Calibration Team"

from .calibration import (
    ChessboardFinder, CornerDetector, OpenCVStereoBackend, StereoCalibrator,
    ParameterStore, ObservationAccumulator, CalibrationValidator
)
from .disparity import BMEstimator
from .rectification import StereoRectifier
from .stereo_camera import StereoCamera
from .data_models import CalibrationSession, CalibrationResult
from .exceptions import (
    CalibrationError, CalibrationIOError, FormatError, InsufficientDataError,
    SolverDivergenceError, SizeMismatchError, NotCalibratedError, SessionStateError
)

__all__ = [
    # Calibration
    'ChessboardFinder', 'CornerDetector', 'OpenCVStereoBackend', 'StereoCalibrator',
    'ParameterStore', 'ObservationAccumulator', 'CalibrationValidator',
    # Disparity and rectification
    'BMEstimator', 'StereoRectifier',
    # Session facade
    'StereoCamera',
    # Data Models
    'CalibrationSession', 'CalibrationResult',
    # Errors
    'CalibrationError', 'CalibrationIOError', 'FormatError', 'InsufficientDataError',
    'SolverDivergenceError', 'SizeMismatchError', 'NotCalibratedError', 'SessionStateError'
]
