"""
Pytest configuration and fixtures for stereo calibration tests.
"""

import pytest
import numpy as np
import cv2

from stereo_calib.calibration.corner_detector import CornerDetector
from stereo_calib.calibration.observation_accumulator import build_object_points
from stereo_calib.data_models import CalibrationResult
from stereo_calib.utils.config_manager import ConfigManager
from stereo_calib.utils.visualization import NullDisplay


class ScriptedFinder:
    """Chessboard finder returning prepared corner sets in call order."""

    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def find(self, gray, pattern_size):
        result = self.results[self.calls]
        self.calls += 1
        return result

    def refine(self, gray, corners):
        return corners.copy()


class RecordingDisplay:
    """Display sink that keeps every frame it is shown."""

    enabled = True

    def __init__(self):
        self.frames = []

    def show(self, window_name, image):
        self.frames.append((window_name, image))


@pytest.fixture
def config_manager():
    """Fixture providing a configuration manager instance."""
    return ConfigManager()


@pytest.fixture(scope="session")
def scripted_detector():
    """Factory for corner detectors driven by a scripted finder."""
    config = ConfigManager()

    def _make(results):
        return CornerDetector(config, finder=ScriptedFinder(results), display=NullDisplay())
    return _make


@pytest.fixture(scope="session")
def stereo_rig():
    """Fixture providing a known synthetic stereo rig."""
    camera_matrix = np.array([
        [500.0, 0, 320.0],
        [0, 500.0, 240.0],
        [0, 0, 1]
    ])
    rotation, _ = cv2.Rodrigues(np.array([0.0, 0.02, 0.0]))
    translation = np.array([-10.0, 0.0, 0.0])

    return {
        'camera_matrix': camera_matrix,
        'dist_coeffs': np.zeros(5),
        'rotation': rotation,
        'translation': translation,
        'image_size': (640, 480)
    }


def project_board_views(rig, nx, ny, square_size, count):
    """Project chessboard poses into both rig cameras."""
    object_points = build_object_points(nx, ny, square_size).astype(np.float64)
    center = object_points.mean(axis=0)
    zero = np.zeros(3)

    views = []
    for i in range(count):
        rvec = np.array([0.35 * np.sin(i * 1.3), 0.35 * np.cos(i * 0.9), 0.1 * np.sin(i * 0.7)])
        board_rotation, _ = cv2.Rodrigues(rvec)
        target = np.array([(i % 3 - 1) * 3.0, (i % 2) * 2.0 - 1.0, 40.0 + (i % 4) * 3.0])

        points_cam1 = object_points @ board_rotation.T + (target - board_rotation @ center)
        points_cam2 = points_cam1 @ rig['rotation'].T + rig['translation']

        corners1, _ = cv2.projectPoints(points_cam1, zero, zero, rig['camera_matrix'], rig['dist_coeffs'])
        corners2, _ = cv2.projectPoints(points_cam2, zero, zero, rig['camera_matrix'], rig['dist_coeffs'])
        views.append((corners1.astype(np.float32), corners2.astype(np.float32)))

    return views


@pytest.fixture(scope="session")
def board_views(stereo_rig):
    """Fixture providing 15 projected 7x5 board views with square size 2.5."""
    return project_board_views(stereo_rig, 7, 5, 2.5, 15)


def make_calibration_result(width=64, height=48, seed=0):
    """Build a calibration result with distinct values in every field."""
    rng = np.random.default_rng(seed)

    camera_matrix1 = np.array([[500.0, 0, width / 2], [0, 500.0, height / 2], [0, 0, 1]])
    camera_matrix2 = camera_matrix1.copy()
    camera_matrix2[0, 2] += 1.5
    rotation, _ = cv2.Rodrigues(np.array([0.0, 0.02, 0.0]))

    projection1 = np.hstack([camera_matrix1, np.zeros((3, 1))])
    projection2 = projection1.copy()
    projection2[0, 3] = -5000.0

    return CalibrationResult(
        camera_matrix1=camera_matrix1,
        dist_coeffs1=rng.normal(0, 0.1, (1, 5)),
        camera_matrix2=camera_matrix2,
        dist_coeffs2=rng.normal(0, 0.1, (1, 5)),
        rotation=rotation,
        translation=np.array([[-10.0], [0.1], [0.05]]),
        essential=rng.normal(size=(3, 3)),
        fundamental=rng.normal(size=(3, 3)),
        rect_rotation1=np.eye(3),
        rect_rotation2=rotation.T.copy(),
        projection1=projection1,
        projection2=projection2,
        disparity_to_depth=rng.normal(size=(4, 4)),
        image_size=(width, height),
        map_x1=rng.uniform(0, width, (height, width)).astype(np.float32),
        map_y1=rng.uniform(0, height, (height, width)).astype(np.float32),
        map_x2=rng.uniform(0, width, (height, width)).astype(np.float32),
        map_y2=rng.uniform(0, height, (height, width)).astype(np.float32)
    )


@pytest.fixture
def sample_calibration_result():
    """Fixture providing a small calibration result."""
    return make_calibration_result()


def identity_maps(width, height):
    """Remap tables that leave an image unchanged."""
    map_x = np.tile(np.arange(width, dtype=np.float32), (height, 1))
    map_y = np.tile(np.arange(height, dtype=np.float32)[:, None], (1, width))
    return map_x, map_y


def render_chessboard(nx, ny, square=40, margin=60):
    """Render a chessboard with nx by ny inner corners on a white margin."""
    rows, cols = ny + 1, nx + 1
    image = np.full((rows * square + 2 * margin, cols * square + 2 * margin), 255, dtype=np.uint8)

    for r in range(rows):
        for c in range(cols):
            if (r + c) % 2 == 0:
                y0, x0 = margin + r * square, margin + c * square
                image[y0:y0 + square, x0:x0 + square] = 0

    return cv2.GaussianBlur(image, (3, 3), 0)


@pytest.fixture(scope="session")
def calibration_result_factory():
    """Fixture providing the calibration result builder."""
    return make_calibration_result


@pytest.fixture(scope="session")
def view_projector():
    """Fixture providing the board view projector."""
    return project_board_views


@pytest.fixture
def identity_calibration_result():
    """Fixture providing a 640x480 calibration whose remap tables are the identity."""
    result = make_calibration_result(640, 480)
    result.map_x1, result.map_y1 = identity_maps(640, 480)
    result.map_x2, result.map_y2 = identity_maps(640, 480)
    return result


@pytest.fixture
def chessboard_image():
    """Fixture providing a rendered 7x5 inner-corner chessboard."""
    return render_chessboard(7, 5)


@pytest.fixture
def textured_stereo_pair():
    """Fixture providing a 640x480 random texture pair with an 8 pixel shift."""
    rng = np.random.default_rng(7)
    left = rng.integers(0, 256, (480, 640), dtype=np.uint8)
    left = cv2.GaussianBlur(left, (3, 3), 0)
    right = np.zeros_like(left)
    right[:, :-8] = left[:, 8:]
    return left, right


@pytest.fixture
def recording_display():
    """Fixture providing a display sink that records frames."""
    return RecordingDisplay()
