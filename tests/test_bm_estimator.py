"""
Tests for BM Disparity Estimator
"""

import pytest
import numpy as np

from stereo_calib.disparity.bm_estimator import BMEstimator


class TestBMEstimator:
    """Test suite for BM disparity estimator."""

    @pytest.fixture
    def estimator(self, config_manager):
        """Fixture providing a BM estimator instance."""
        return BMEstimator(config_manager)

    def test_estimator_initialization(self, estimator):
        """The default profile matches the inspection settings."""
        assert estimator.min_disparity == 0
        assert estimator.num_disparities == 64
        assert estimator.block_size == 65
        assert estimator.pre_filter_size == 5
        assert estimator.pre_filter_cap == 10
        assert estimator.texture_threshold == 0
        assert estimator.uniqueness_ratio == 5
        assert estimator.speckle_window_size == 0
        assert estimator.speckle_range == 0
        assert estimator.bm is not None

    def test_matcher_configured(self, estimator):
        assert estimator.bm.getNumDisparities() == 64
        assert estimator.bm.getBlockSize() == 65
        assert estimator.bm.getSpeckleWindowSize() == 0
        assert estimator.bm.getUniquenessRatio() == 5

    def test_get_disparity_range(self, estimator):
        assert estimator.get_disparity_range() == (0, 64)

    def test_compute_disparity_basic(self, estimator, textured_stereo_pair):
        left, right = textured_stereo_pair

        disparity = estimator.compute_disparity(left, right)

        assert disparity.shape == left.shape
        assert disparity.dtype == np.int16

    def test_recovers_constant_shift(self, estimator, textured_stereo_pair):
        """The dominant disparity of a shifted texture is the shift."""
        left, right = textured_stereo_pair

        disparity = estimator.compute_disparity(left, right)
        metrics = estimator.validate_disparity_map(disparity)

        valid = disparity[disparity > 0].astype(np.float32) / 16.0
        assert metrics['valid_pixels'] > 0
        assert abs(np.median(valid) - 8.0) < 1.0

    def test_compute_disparity_color_images(self, estimator):
        rng = np.random.default_rng(3)
        left = rng.integers(0, 255, (240, 320, 3), dtype=np.uint8)
        right = rng.integers(0, 255, (240, 320, 3), dtype=np.uint8)

        disparity = estimator.compute_disparity(left, right)

        assert disparity.shape == (240, 320)

    def test_shape_mismatch(self, estimator):
        with pytest.raises(ValueError):
            estimator.compute_disparity(np.zeros((100, 200), np.uint8), np.zeros((100, 201), np.uint8))

    def test_visualization_range(self, estimator):
        disparity = np.array([[-16, 0], [160, 320]], dtype=np.int16)

        vis = estimator.create_disparity_visualization(disparity)

        assert vis.dtype == np.uint8
        assert vis.min() == 0
        assert vis.max() == 255

    def test_validate_empty_map(self, estimator):
        metrics = estimator.validate_disparity_map(np.full((10, 10), -16, dtype=np.int16))

        assert metrics['valid_pixels'] == 0
        assert metrics['mean_disparity'] == 0.0
