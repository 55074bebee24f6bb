"""
Disparity Estimation Module

Block matching disparity for inspecting rectified stereo pairs.
"""

from .bm_estimator import BMEstimator

__all__ = ['BMEstimator']
