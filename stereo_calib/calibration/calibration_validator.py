"""
Calibration Quality Validator

Checks a stereo calibration result for degenerate geometry and measures how
well rectification aligns corresponding corners.
"""

import cv2
import numpy as np
import logging
from typing import Dict, Any, List, Optional

from ..data_models import CalibrationResult


class CalibrationValidator:
    """Validates calibration results and produces a readable quality report."""

    def __init__(self):
        """Initialize calibration validator."""
        self.logger = logging.getLogger(__name__)

        # Quality thresholds
        self.max_aspect_deviation = 0.1
        self.max_principal_offset = 0.2  # fraction of half image size
        self.max_distortion_k1 = 1.0
        self.max_rotation_degrees = 45
        self.max_epipolar_error = 1.0  # pixels

        self.logger.info("Calibration validator initialized")

    def validate_result(self, result: CalibrationResult) -> Dict[str, Any]:
        """
        Validate a calibration result.

        Args:
            result: Calibration result to validate

        Returns:
            Dictionary with validation results and quality metrics
        """
        results = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'quality_score': 0.0,
            'metrics': {}
        }

        for index, (K, D) in enumerate(((result.camera_matrix1, result.dist_coeffs1),
                                        (result.camera_matrix2, result.dist_coeffs2)), start=1):
            self._check_intrinsics(results, index, K, D, result.image_size)

        # Extrinsics
        R = result.rotation
        det_R = float(np.linalg.det(R))
        results['metrics']['rotation_determinant'] = det_R
        if abs(det_R - 1.0) > 0.01:
            results['errors'].append(f"Invalid rotation matrix: det(R) = {det_R:.4f}")
            results['is_valid'] = False
        else:
            rotation_angle = np.arccos(np.clip((np.trace(R) - 1) / 2, -1.0, 1.0))
            rotation_degrees = float(np.degrees(rotation_angle))
            results['metrics']['rotation_angle_degrees'] = rotation_degrees
            if rotation_degrees > self.max_rotation_degrees:
                results['warnings'].append(f"Large rotation: {rotation_degrees:.1f} degrees")

        results['metrics']['baseline'] = result.baseline
        if result.baseline <= 0:
            results['errors'].append("Zero baseline between cameras")
            results['is_valid'] = False

        # Remap tables must match the calibrated size
        width, height = result.image_size
        for name in ('map_x1', 'map_y1', 'map_x2', 'map_y2'):
            shape = getattr(result, name).shape[:2]
            if shape != (height, width):
                results['errors'].append(f"Remap table {name} has shape {shape}, expected {(height, width)}")
                results['is_valid'] = False

        quality_score = 100.0
        quality_score -= len(results['warnings']) * 5
        quality_score -= len(results['errors']) * 20
        results['quality_score'] = max(0.0, min(100.0, quality_score))

        if results['is_valid']:
            self.logger.info(f"Stereo calibration valid: quality={results['quality_score']:.1f}%")
        else:
            self.logger.error(f"Stereo calibration invalid: {len(results['errors'])} errors")

        for warning in results['warnings']:
            self.logger.warning(warning)

        return results

    def _check_intrinsics(self,
                          results: Dict[str, Any],
                          index: int,
                          K: np.ndarray,
                          D: np.ndarray,
                          image_size: tuple) -> None:
        fx, fy = float(K[0, 0]), float(K[1, 1])
        cx, cy = float(K[0, 2]), float(K[1, 2])

        results['metrics'][f'focal_length_{index}'] = (fx, fy)
        results['metrics'][f'principal_point_{index}'] = (cx, cy)

        if abs(np.linalg.det(K)) < 1e-9 or fx <= 0 or fy <= 0:
            results['errors'].append(f"Camera {index} intrinsic matrix is singular")
            results['is_valid'] = False
            return

        aspect_ratio = fx / fy
        if abs(aspect_ratio - 1.0) > self.max_aspect_deviation:
            results['warnings'].append(f"Camera {index} unusual aspect ratio: {aspect_ratio:.3f}")

        half_width = image_size[0] / 2
        half_height = image_size[1] / 2
        cx_offset = abs(cx - half_width) / half_width
        cy_offset = abs(cy - half_height) / half_height
        if cx_offset > self.max_principal_offset or cy_offset > self.max_principal_offset:
            results['warnings'].append(
                f"Camera {index} principal point far from center: ({cx_offset:.2%}, {cy_offset:.2%})"
            )

        coeffs = np.ravel(D)
        if coeffs.size > 0 and abs(coeffs[0]) > self.max_distortion_k1:
            results['warnings'].append(f"Camera {index} high radial distortion k1: {coeffs[0]:.4f}")

    def compute_epipolar_error(self,
                               result: CalibrationResult,
                               image_points1: List[np.ndarray],
                               image_points2: List[np.ndarray]) -> float:
        """
        Measure vertical disagreement of corresponding corners after rectification.

        Args:
            result: Calibration result with rectification transforms
            image_points1: Corners detected in camera 1
            image_points2: Corners detected in camera 2

        Returns:
            Mean absolute row difference in pixels
        """
        deviations = []

        for points1, points2 in zip(image_points1, image_points2):
            rectified1 = cv2.undistortPoints(
                np.asarray(points1, dtype=np.float32).reshape(-1, 1, 2),
                result.camera_matrix1, result.dist_coeffs1,
                R=result.rect_rotation1, P=result.projection1
            )
            rectified2 = cv2.undistortPoints(
                np.asarray(points2, dtype=np.float32).reshape(-1, 1, 2),
                result.camera_matrix2, result.dist_coeffs2,
                R=result.rect_rotation2, P=result.projection2
            )
            deviations.append(np.abs(rectified1[:, 0, 1] - rectified2[:, 0, 1]))

        if not deviations:
            self.logger.warning("No correspondences available for epipolar validation")
            return float('inf')

        error = float(np.mean(np.concatenate(deviations)))
        self.logger.info(f"Epipolar alignment: {error:.3f} pixels average deviation")

        if error > self.max_epipolar_error:
            self.logger.warning(f"Poor epipolar alignment: {error:.3f} > {self.max_epipolar_error} pixels")

        return error

    def generate_calibration_report(self,
                                    result: CalibrationResult,
                                    validation_results: Dict[str, Any],
                                    rms_error: Optional[float] = None) -> str:
        """
        Generate a calibration quality report.

        Args:
            result: Calibration result
            validation_results: Output of validate_result
            rms_error: Stereo RMS reprojection error, if known

        Returns:
            Formatted calibration report
        """
        report = []
        report.append("=" * 60)
        report.append("STEREO CALIBRATION QUALITY REPORT")
        report.append("=" * 60)

        status = "VALID" if validation_results['is_valid'] else "INVALID"
        report.append(f"Status: {status}")
        report.append(f"Quality Score: {validation_results['quality_score']:.1f}/100")
        report.append("")

        report.append("CAMERA PARAMETERS")
        report.append("-" * 30)
        report.append(f"Image size: {result.image_size[0]}x{result.image_size[1]} pixels")
        report.append(f"Camera 1 focal length: {result.camera_matrix1[0, 0]:.1f} x {result.camera_matrix1[1, 1]:.1f} pixels")
        report.append(f"Camera 2 focal length: {result.camera_matrix2[0, 0]:.1f} x {result.camera_matrix2[1, 1]:.1f} pixels")
        if rms_error is not None:
            report.append(f"Stereo reprojection error: {rms_error:.4f} pixels")
        report.append("")

        report.append("STEREO GEOMETRY")
        report.append("-" * 30)
        report.append(f"Baseline: {result.baseline:.4f} (board units)")
        if 'rotation_angle_degrees' in validation_results['metrics']:
            rotation = validation_results['metrics']['rotation_angle_degrees']
            report.append(f"Camera rotation: {rotation:.2f} degrees")
        report.append("")

        if validation_results['errors']:
            report.append("ERRORS")
            report.append("-" * 30)
            for error in validation_results['errors']:
                report.append(f"  - {error}")
            report.append("")

        if validation_results['warnings']:
            report.append("WARNINGS")
            report.append("-" * 30)
            for warning in validation_results['warnings']:
                report.append(f"  - {warning}")
            report.append("")

        report.append("=" * 60)

        return "\n".join(report)
