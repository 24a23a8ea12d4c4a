import logging

import numpy as np
import pytest

import ebunfold
import ebunfold.num as enp
from ebunfold import config


def test_version():
    assert isinstance(ebunfold.__version__, str)
    assert ebunfold.__version__ == config.get_config().version


def test_backend():
    assert config.get_backend() == "numpy"
    with pytest.raises(ValueError):
        config.set_backend("torch")


def test_detect_backend_from_environment(monkeypatch):
    monkeypatch.setenv("EBUNFOLD_BACKEND", "jax")
    with pytest.raises(ValueError):
        config._detect_backend()
    monkeypatch.delenv("EBUNFOLD_BACKEND")
    assert config._detect_backend() == "numpy"


def test_logger():
    logger = config.get_logger()
    assert logger.name == "ebunfold"
    level = logger.level
    try:
        config.set_log_level(logging.WARNING)
        assert logger.level == logging.WARNING
    finally:
        config.set_log_level(level)


def test_update():
    cfg = config.get_config()
    previous = cfg.alpha_fallback
    try:
        cfg.update(alpha_fallback=0.1)
        assert cfg.alpha_fallback == 0.1
    finally:
        cfg.update(alpha_fallback=previous)
    with pytest.raises(AttributeError):
        cfg.update(not_an_option=1)


def test_weak_cache():
    class Key:
        pass

    cfg = config.get_config()
    cache = cfg.weak_cache("test_cache")
    assert cfg.weak_cache("test_cache") is cache
    key = Key()
    cache[key] = 1
    assert len(cache) == 1
    del key
    assert len(cache) == 0
    config.clear_caches("test_cache")
    assert "test_cache" not in cfg.caches


def test_frozen_multivariate_normal():
    dist = enp.multivariate_normal.frozen(0.0, 2.0 * np.eye(2))
    assert np.array_equal(dist.mean, [0.0, 0.0])
    assert np.isclose(dist.logpdf([0.0, 0.0]), -np.log(2 * np.pi * 2.0))
    with pytest.raises(ValueError):
        enp.multivariate_normal.frozen(0.0, np.ones(3))
    with pytest.raises(ValueError):
        enp.multivariate_normal.frozen([0.0, 1.0, 2.0], np.eye(2))
