# ebunfold/__init__.py

from . import config
from . import num
from . import core
from . import selection
from . import basis
from . import mcmc
from . import plot
from .core import ContinuousUnfolder, MatrixUnfolder, RegularizationSpec, SolveResult
from .errors import (
    ConfigurationError,
    DimensionError,
    SingularMatrixError,
    UnfoldingError,
)

__version__ = config.__version__

__all__ = [
    "num",
    "core",
    "selection",
    "basis",
    "mcmc",
    "plot",
    "RegularizationSpec",
    "MatrixUnfolder",
    "ContinuousUnfolder",
    "SolveResult",
    "UnfoldingError",
    "ConfigurationError",
    "DimensionError",
    "SingularMatrixError",
    "__version__",
]
