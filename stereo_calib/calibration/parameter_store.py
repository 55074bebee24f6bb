"""
Calibration Parameter Store

Persists the stereo calibration result as an OpenCV FileStorage document
(YAML, XML or JSON, chosen by file extension).
"""

import cv2
import numpy as np
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..data_models import CalibrationResult
from ..exceptions import CalibrationIOError, FormatError, NotCalibratedError
from ..utils.config_manager import ConfigManager


# Persisted field name -> (CalibrationResult attribute, expected shape)
MATRIX_FIELDS: Dict[str, Tuple[str, Optional[Tuple[int, int]]]] = {
    'CM1': ('camera_matrix1', (3, 3)),
    'CM2': ('camera_matrix2', (3, 3)),
    'D1': ('dist_coeffs1', None),
    'D2': ('dist_coeffs2', None),
    'R': ('rotation', (3, 3)),
    'T': ('translation', None),
    'E': ('essential', (3, 3)),
    'F': ('fundamental', (3, 3)),
    'R1': ('rect_rotation1', (3, 3)),
    'R2': ('rect_rotation2', (3, 3)),
    'P1': ('projection1', (3, 4)),
    'P2': ('projection2', (3, 4)),
    'Q': ('disparity_to_depth', (4, 4)),
}

REMAP_FIELDS: Dict[str, str] = {
    'MX1': 'map_x1',
    'MX2': 'map_x2',
    'MY1': 'map_y1',
    'MY2': 'map_y2',
}

# Distortion vector lengths OpenCV models can produce
DISTORTION_SIZES = (4, 5, 8, 12, 14)


class ParameterStore:
    """Holds the current calibration result and moves it to and from disk."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize parameter store.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        storage_config = self.config.get_storage_params()
        self.debug_dump = storage_config.get('debug_dump', False)
        self.debug_dump_path = storage_config.get('debug_dump_path', 'tmp.xml')

        self.result: Optional[CalibrationResult] = None

    @property
    def is_calibrated(self) -> bool:
        return self.result is not None

    def load(self, path: str) -> CalibrationResult:
        """
        Load a calibration result and make it the current one.

        Args:
            path: Parameter file path

        Returns:
            Loaded calibration result
        """
        if not Path(path).is_file():
            raise CalibrationIOError(f"Calibration file not found: {path}")

        try:
            fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_READ)
        except cv2.error as e:
            raise FormatError(f"Cannot parse calibration file {path}: {e}") from e

        if not fs.isOpened():
            raise CalibrationIOError(f"Cannot open calibration file: {path}")

        try:
            width = self._read_scalar(fs, 'W')
            height = self._read_scalar(fs, 'H')
            fields = {}
            for name, (attribute, shape) in MATRIX_FIELDS.items():
                fields[attribute] = self._read_matrix(fs, name, shape)
            for name, attribute in REMAP_FIELDS.items():
                fields[attribute] = self._read_matrix(fs, name, (height, width))
        finally:
            fs.release()

        for name in ('D1', 'D2'):
            size = fields[MATRIX_FIELDS[name][0]].size
            if size not in DISTORTION_SIZES:
                raise FormatError(f"Field {name} has {size} coefficients")
        if fields['translation'].size != 3:
            raise FormatError("Field T must hold 3 values")

        result = CalibrationResult(image_size=(width, height), **fields)
        self.result = result
        self.logger.info(f"Loaded calibration from {path}: image size {width}x{height}")

        if self.debug_dump:
            self._write_remap_dump(result)

        return result

    def save(self, path: str, result: Optional[CalibrationResult] = None) -> None:
        """
        Save a calibration result.

        Args:
            path: Output parameter file path
            result: Result to save. If None, saves the current result.
        """
        if result is None:
            result = self.result
        if result is None:
            raise NotCalibratedError("No calibration result to save")

        fs = self._open_for_write(path)
        try:
            for name, (attribute, _) in MATRIX_FIELDS.items():
                fs.write(name, self._as_matrix(getattr(result, attribute)))
            fs.write('W', int(result.image_size[0]))
            fs.write('H', int(result.image_size[1]))
            for name, attribute in REMAP_FIELDS.items():
                fs.write(name, np.asarray(getattr(result, attribute)))
        finally:
            fs.release()

        self.logger.info(f"Saved calibration to {path}")

    @staticmethod
    def _as_matrix(value) -> np.ndarray:
        """Vectors are stored as Nx1 columns, the shape FileStorage reads back."""
        matrix = np.asarray(value)
        if matrix.ndim == 1:
            matrix = matrix.reshape(-1, 1)
        return matrix

    def _open_for_write(self, path: str) -> cv2.FileStorage:
        try:
            fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_WRITE)
        except cv2.error as e:
            raise CalibrationIOError(f"Cannot write calibration file {path}: {e}") from e

        if not fs.isOpened():
            raise CalibrationIOError(f"Cannot write calibration file: {path}")
        return fs

    def _read_scalar(self, fs: cv2.FileStorage, name: str) -> int:
        node = fs.getNode(name)
        if node.empty() or not (node.isInt() or node.isReal()):
            raise FormatError(f"Missing or non-numeric field: {name}")

        value = int(node.real())
        if value <= 0:
            raise FormatError(f"Field {name} must be positive, got {value}")
        return value

    def _read_matrix(self,
                     fs: cv2.FileStorage,
                     name: str,
                     shape: Optional[Tuple[int, int]]) -> np.ndarray:
        node = fs.getNode(name)
        if node.empty():
            raise FormatError(f"Missing field: {name}")

        if not node.isMap():
            raise FormatError(f"Field {name} is not a matrix")

        try:
            matrix = node.mat()
        except cv2.error as e:
            raise FormatError(f"Field {name} is not a readable matrix: {e}") from e

        if matrix is None or matrix.size == 0:
            raise FormatError(f"Field {name} is empty")

        if shape is not None and matrix.shape != shape:
            raise FormatError(f"Field {name} has shape {matrix.shape}, expected {shape}")

        return matrix

    def _write_remap_dump(self, result: CalibrationResult) -> None:
        """Write the four remap tables to the debug dump path."""
        fs = self._open_for_write(self.debug_dump_path)
        try:
            for name, attribute in REMAP_FIELDS.items():
                fs.write(name, getattr(result, attribute))
        finally:
            fs.release()

        self.logger.debug(f"Remap tables dumped to {self.debug_dump_path}")
