# ebunfold/config.py
import os
import logging
import weakref

# Read version from VERSION file
_version_file = os.path.join(os.path.dirname(__file__), "..", "VERSION")
try:
    with open(os.path.abspath(_version_file), "r") as f:
        __version__ = f.read().strip()
except FileNotFoundError:
    __version__ = "0.0.0"

_BACKENDS = ("numpy",)


class _EBUnfoldConfig:
    def __init__(self):
        self.version = __version__
        self.backend = None
        self.dtype = float  # read once, when ebunfold.num is imported
        self.seed = 1234
        self.caches = {}
        # numerical tolerances
        self.singular_rcond = None  # None -> machine epsilon of dtype
        self.alpha_fallback = 0.05
        self.alpha_min = 1e-6
        self.alpha_max = 1e3
        self.x_tol = 1e-8
        self.g_tol = 1e-6
        # gradient tolerance, relative to max(1, |criterion|), for stalled line searches
        self.stall_g_tol = 1e-4
        # logger lives in config
        self.logger = logging.getLogger("ebunfold")
        if not self.logger.handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
            self.logger.addHandler(h)
        self.logger.setLevel(logging.INFO)

    def __str__(self):
        return (
            f"EBUnfoldConfig("
            f"version={self.version}, "
            f"backend={self.backend}, "
            f"dtype={self.dtype}, "
            f"seed={self.seed}, "
            f"caches={list(self.caches.keys())})"
        )

    def __repr__(self):
        return (
            f"<EBUnfoldConfig "
            f"version={self.version!r}, "
            f"backend={self.backend!r}, "
            f"dtype={self.dtype!r}, "
            f"seed={self.seed!r}, "
            f"caches={list(self.caches.keys())}>"
        )

    def update(self, **kwargs):
        for k, v in kwargs.items():
            if not hasattr(self, k):
                raise AttributeError(f"unknown configuration entry {k!r}")
            setattr(self, k, v)
        return self

    def clear_caches(self, name=None):
        if name is None:
            self.caches.clear()
        else:
            self.caches.pop(name, None)

    def weak_cache(self, name):
        """Return the cache `name`, a WeakKeyDictionary created on first use."""
        cache = self.caches.get(name)
        if cache is None:
            cache = weakref.WeakKeyDictionary()
            self.caches[name] = cache
        return cache


_config = _EBUnfoldConfig()


def get_config():
    return _config


def _detect_backend():
    env = os.environ.get("EBUNFOLD_BACKEND")
    if env is None:
        return "numpy"
    if env not in _BACKENDS:
        raise ValueError(f"EBUNFOLD_BACKEND must be one of {_BACKENDS}, got {env!r}")
    return env


def init_backend():
    """Idempotent. Detect and store backend, set env for downstream imports."""
    if _config.backend is None:
        backend = _detect_backend()
        _config.backend = backend
        os.environ["EBUNFOLD_BACKEND"] = backend
    return _config.backend


def set_backend(backend: str):
    """Force a backend before importing ebunfold.num."""
    if backend not in _BACKENDS:
        raise ValueError(f"backend must be one of {_BACKENDS}")
    _config.backend = backend
    os.environ["EBUNFOLD_BACKEND"] = backend


def get_backend():
    """Return current backend; triggers detection if not set."""
    return _config.backend or init_backend()


def clear_caches(name=None):
    _config.clear_caches(name)


def get_logger():
    return _config.logger


def set_log_level(level):
    _config.logger.setLevel(level)
