"""
Calibration error taxonomy.

Corner detection misses are not errors and never appear here.
"""


class CalibrationError(Exception):
    """Base class for all calibration toolkit failures."""


class CalibrationIOError(CalibrationError, IOError):
    """Parameter file could not be opened for reading or writing."""


class FormatError(CalibrationError, ValueError):
    """Parameter file is missing a field or a field is malformed."""


class InsufficientDataError(CalibrationError, ValueError):
    """A session was ended without any successful observation."""


class SolverDivergenceError(CalibrationError, RuntimeError):
    """Stereo solve failed or produced degenerate camera parameters."""


class SizeMismatchError(CalibrationError, ValueError):
    """Image size differs from the calibrated image size."""


class NotCalibratedError(CalibrationError, RuntimeError):
    """Operation needs a solved or loaded calibration result."""


class SessionStateError(CalibrationError, RuntimeError):
    """Session operation called in the wrong accumulator state."""
