"""
Camera Calibration Module

Implements chessboard-based stereo calibration, rectification and parameter storage.
"""

from .corner_detector import ChessboardFinder, CornerDetector
from .stereo_calibrator import OpenCVStereoBackend, StereoCalibrator
from .parameter_store import ParameterStore
from .observation_accumulator import ObservationAccumulator, build_object_points
from .calibration_validator import CalibrationValidator

__all__ = [
    'ChessboardFinder', 'CornerDetector',
    'OpenCVStereoBackend', 'StereoCalibrator',
    'ParameterStore',
    'ObservationAccumulator', 'build_object_points',
    'CalibrationValidator'
]
