"""
Configuration Management System

Handles loading, validation, and management of calibration parameters.
"""

import yaml
from typing import Dict, Any, Optional
from pathlib import Path


class ConfigManager:
    """Manages configuration parameters for the stereo calibration toolkit."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses default config.
        """
        self.config_path = config_path or self._get_default_config_path()
        self.config = self._load_config()
        self._validate_config()

    def _get_default_config_path(self) -> str:
        """Get path to default configuration file."""
        current_dir = Path(__file__).parent.parent
        return str(current_dir / "config" / "default_config.yaml")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r') as file:
                config = yaml.safe_load(file)
            return config or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing configuration file: {e}")

    def _validate_config(self) -> None:
        """Validate configuration parameters for consistency and feasibility."""
        # Validate chessboard geometry
        board = self.config.get('chessboard', {})
        if board.get('nx', 7) <= 0 or board.get('ny', 5) <= 0:
            raise ValueError("Chessboard nx and ny must be positive")
        if float(board.get('square_size', 1.0)) <= 0:
            raise ValueError("Chessboard square_size must be positive")

        # Validate solver stopping criteria
        calib = self.config.get('calibration', {})
        if int(calib.get('max_iterations', 100)) <= 0:
            raise ValueError("Calibration max_iterations must be positive")
        if float(calib.get('epsilon', 1e-5)) <= 0:
            raise ValueError("Calibration epsilon must be positive")

        # Validate block matcher parameters
        bm = self.config.get('stereo_bm', {})
        num_disparities = bm.get('num_disparities', 64)
        if num_disparities <= 0 or num_disparities % 16 != 0:
            raise ValueError("StereoBM num_disparities must be a positive multiple of 16")
        block_size = bm.get('block_size', 65)
        if block_size < 5 or block_size % 2 == 0:
            raise ValueError("StereoBM block_size must be odd and >= 5")
        pre_filter_size = bm.get('pre_filter_size', 5)
        if not 5 <= pre_filter_size <= 255 or pre_filter_size % 2 == 0:
            raise ValueError("StereoBM pre_filter_size must be odd and within 5..255")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'stereo_bm.block_size')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'display.enabled')
            value: Value to set
        """
        keys = key.split('.')
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref:
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value
        self._validate_config()

    def save(self, output_path: Optional[str] = None) -> None:
        """
        Save current configuration to file.

        Args:
            output_path: Path to save configuration. If None, overwrites current file.
        """
        save_path = output_path or self.config_path

        with open(save_path, 'w') as file:
            yaml.dump(self.config, file, default_flow_style=False, indent=2)

    def get_chessboard_params(self) -> Dict[str, Any]:
        """Get chessboard detection parameters as a dictionary."""
        return self.config.get('chessboard', {})

    def get_calibration_params(self) -> Dict[str, Any]:
        """Get stereo solver parameters as a dictionary."""
        return self.config.get('calibration', {})

    def get_stereo_bm_params(self) -> Dict[str, Any]:
        """Get block matcher parameters as a dictionary."""
        return self.config.get('stereo_bm', {})

    def get_display_params(self) -> Dict[str, Any]:
        """Get debug display parameters as a dictionary."""
        return self.config.get('display', {})

    def get_storage_params(self) -> Dict[str, Any]:
        """Get parameter file storage options as a dictionary."""
        return self.config.get('storage', {})
