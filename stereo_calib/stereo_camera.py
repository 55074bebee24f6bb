"""
Stereo Camera Session

Single entry point tying together calibration, parameter storage and rectification.
"""

import numpy as np
from typing import Tuple, Optional
import logging

from .data_models import CalibrationResult
from .calibration.corner_detector import CornerDetector
from .calibration.stereo_calibrator import StereoCalibrator
from .calibration.parameter_store import ParameterStore
from .calibration.observation_accumulator import ObservationAccumulator
from .rectification.stereo_rectifier import StereoRectifier
from .utils.config_manager import ConfigManager
from .utils.visualization import create_display


class StereoCamera:
    """Calibrates a stereo rig and rectifies its image pairs."""

    def __init__(self,
                 config_manager: Optional[ConfigManager] = None,
                 detector: Optional[CornerDetector] = None,
                 calibrator: Optional[StereoCalibrator] = None,
                 display=None):
        """
        Initialize stereo camera session.

        Args:
            config_manager: Configuration manager instance
            detector: Corner detector. Built from config if None.
            calibrator: Stereo solver. Built from config if None.
            display: Shared display sink. Built from config if None.
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        display = display if display is not None else create_display(self.config)

        self.store = ParameterStore(self.config)
        self.accumulator = ObservationAccumulator(
            self.config,
            detector=detector or CornerDetector(self.config, display=display),
            calibrator=calibrator,
            store=self.store
        )
        self.rectifier = StereoRectifier(self.store, self.config, display=display)

    @property
    def result(self) -> Optional[CalibrationResult]:
        return self.store.result

    @property
    def success_count(self) -> int:
        return self.accumulator.success_count

    def start(self, nx: int, ny: int, square_size: float, image_size: Tuple[int, int]) -> None:
        self.accumulator.start(nx, ny, square_size, image_size)

    def compute(self, image1: np.ndarray, image2: np.ndarray, is_grayscale: bool = False) -> bool:
        return self.accumulator.compute(image1, image2, is_grayscale)

    def end(self) -> CalibrationResult:
        return self.accumulator.end()

    def load(self, path: str) -> bool:
        self.store.load(path)
        return True

    def save(self, path: str) -> bool:
        self.store.save(path)
        return True

    def rectify(self, image1: np.ndarray, image2: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        return self.rectifier.rectify(image1, image2)

    def transform(self, image1: np.ndarray, image2: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.rectifier.transform(image1, image2)
