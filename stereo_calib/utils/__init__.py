"""
Utility Functions and Helpers

Configuration and debug display helpers for the calibration toolkit.
"""

from .config_manager import ConfigManager
from .visualization import NullDisplay, OpenCVDisplay, create_display

__all__ = ['ConfigManager', 'NullDisplay', 'OpenCVDisplay', 'create_display']
