# ebunfold/errors.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Exception classes raised by ebunfold.

ConfigurationError and DimensionError derive from ValueError, and
SingularMatrixError from numpy.linalg.LinAlgError, so that callers
catching the usual NumPy/SciPy exceptions keep working.
"""
import numpy


class UnfoldingError(Exception):
    """Base class of all ebunfold errors."""


class ConfigurationError(UnfoldingError, ValueError):
    """Malformed regularization setup or missing required argument."""


class DimensionError(UnfoldingError, ValueError):
    """Shape mismatch between kernel, data, data errors and omegas."""


class SingularMatrixError(UnfoldingError, numpy.linalg.LinAlgError):
    """A matrix that must be inverted is numerically singular."""
