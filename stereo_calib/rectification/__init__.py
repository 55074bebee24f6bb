"""
Rectification Module

Applies calibrated remap tables to live stereo pairs.
"""

from .stereo_rectifier import StereoRectifier

__all__ = ['StereoRectifier']
