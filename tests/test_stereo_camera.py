"""
Tests for the Stereo Camera session facade and the command line entry point.
"""

import pytest
import numpy as np
import cv2

from stereo_calib.calibration.parameter_store import ParameterStore
from stereo_calib.exceptions import CalibrationIOError, InsufficientDataError, SessionStateError
from stereo_calib.main import main
from stereo_calib.stereo_camera import StereoCamera
from stereo_calib.utils.visualization import NullDisplay


class TestStereoCamera:
    """Test suite for the session facade."""

    @pytest.fixture
    def camera(self, config_manager, scripted_detector):
        return StereoCamera(config_manager, detector=scripted_detector([None, None]), display=NullDisplay())

    def test_initial_state(self, camera):
        assert camera.result is None
        assert camera.success_count == 0
        assert camera.rectifier.store is camera.store
        assert camera.accumulator.store is camera.store

    def test_compute_before_start(self, camera):
        image = np.zeros((480, 640), dtype=np.uint8)

        with pytest.raises(SessionStateError):
            camera.compute(image, image, True)

    def test_end_without_detections(self, camera):
        image = np.zeros((480, 640), dtype=np.uint8)
        camera.start(7, 5, 2.5, (640, 480))

        assert camera.compute(image, image, True) is False
        with pytest.raises(InsufficientDataError):
            camera.end()
        assert camera.result is None

    def test_save_load_and_rectify(self, camera, identity_calibration_result, textured_stereo_pair, tmp_path):
        camera.store.result = identity_calibration_result
        path = tmp_path / "calibration.xml"

        assert camera.save(str(path)) is True
        camera.store.result = None
        assert camera.load(str(path)) is True

        left, right = textured_stereo_pair
        rect_left, rect_right, disparity = camera.transform(left, right)
        np.testing.assert_array_equal(rect_left, left)
        assert disparity.dtype == np.uint8

    def test_load_missing_file(self, camera, tmp_path):
        with pytest.raises(CalibrationIOError):
            camera.load(str(tmp_path / "absent.yml"))


class TestCommandLine:
    """Test suite for the console entry point."""

    def test_rectify_command(self, config_manager, identity_calibration_result, textured_stereo_pair, tmp_path):
        store = ParameterStore(config_manager)
        calibration_path = tmp_path / "calibration.yml"
        store.save(str(calibration_path), identity_calibration_result)

        left, right = textured_stereo_pair
        cv2.imwrite(str(tmp_path / "left.png"), left)
        cv2.imwrite(str(tmp_path / "right.png"), right)
        output_dir = tmp_path / "out"

        exit_code = main([
            "rectify",
            "--calibration", str(calibration_path),
            "--left", str(tmp_path / "left.png"),
            "--right", str(tmp_path / "right.png"),
            "--output-dir", str(output_dir),
            "--disparity"
        ])

        assert exit_code == 0
        assert (output_dir / "left_rectified.png").exists()
        assert (output_dir / "right_rectified.png").exists()
        assert (output_dir / "disparity.png").exists()

    def test_rectify_size_mismatch(self, config_manager, calibration_result_factory, textured_stereo_pair, tmp_path):
        store = ParameterStore(config_manager)
        calibration_path = tmp_path / "calibration.yml"
        store.save(str(calibration_path), calibration_result_factory(64, 48))

        left, right = textured_stereo_pair
        cv2.imwrite(str(tmp_path / "left.png"), left)
        cv2.imwrite(str(tmp_path / "right.png"), right)

        exit_code = main([
            "rectify",
            "--calibration", str(calibration_path),
            "--left", str(tmp_path / "left.png"),
            "--right", str(tmp_path / "right.png"),
            "--output-dir", str(tmp_path / "out")
        ])

        assert exit_code == 1

    def test_calibrate_unmatched_folders(self, tmp_path):
        left_dir = tmp_path / "left"
        right_dir = tmp_path / "right"
        left_dir.mkdir()
        right_dir.mkdir()
        cv2.imwrite(str(left_dir / "0001.png"), np.zeros((48, 64), dtype=np.uint8))

        exit_code = main([
            "calibrate",
            "--left-dir", str(left_dir),
            "--right-dir", str(right_dir),
            "--output", str(tmp_path / "calibration.yml")
        ])

        assert exit_code == 1

    def test_calibrate_without_detections(self, tmp_path):
        """Folders with no visible board end in a reported failure."""
        left_dir = tmp_path / "left"
        right_dir = tmp_path / "right"
        left_dir.mkdir()
        right_dir.mkdir()
        for name in ("0001.png", "0002.png"):
            cv2.imwrite(str(left_dir / name), np.zeros((48, 64), dtype=np.uint8))
            cv2.imwrite(str(right_dir / name), np.zeros((48, 64), dtype=np.uint8))

        exit_code = main([
            "calibrate",
            "--left-dir", str(left_dir),
            "--right-dir", str(right_dir),
            "--output", str(tmp_path / "calibration.yml"),
            "--grayscale"
        ])

        assert exit_code == 1
        assert not (tmp_path / "calibration.yml").exists()
