# ebunfold/selection/parameter_selection.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Empirical-Bayes selection of the regularization weights.
"""

import time
import numpy as np
from scipy.optimize import minimize, OptimizeResult
import ebunfold.num as enp
from ebunfold.config import get_config, get_logger

from ebunfold.core.likelihood import make_log_alpha_criterion

_logger = get_logger()


# ------------------------------ optimizer -----------------------------
def autoselect_alphas(
    x0,
    criterion,
    gradient=None,
    silent=True,
    info=False,
    method="BFGS",
    method_options=None,
):
    """
    Minimize a scalar criterion of x = log(alpha) with SciPy.

    Parameters
    ----------
    x0 : array_like
        Initial point in log-alpha space.
    criterion : callable
        Objective function ``criterion(x) -> scalar``.
    gradient : callable, optional
        Gradient function ``gradient(x) -> array_like``. SciPy finite
        differences are used when None.
    silent : bool, default=True
        If False, enable solver output.
    info : bool, default=False
        If True, return the full SciPy result object.
    method : {"BFGS", "L-BFGS-B"}, default="BFGS"
        Optimization method. The problem is unconstrained in log-alpha
        space, so no bounds are passed.
    method_options : dict, optional
        Additional options passed to SciPy ``minimize``.

    Returns
    -------
    x_opt : ndarray
        Best point found.
    info_ret : scipy.optimize.OptimizeResult or None
        Optimization diagnostics if ``info=True``, else None.

    Notes
    -----
    Linear-algebra failures raised by the criterion (a singular
    B + A(alpha) at a trial point) are mapped to ``+inf`` so that the line
    search moves away from that point. Other exceptions are re-raised.

    The full optimization history is recorded. If the final SciPy result
    is worse than the best visited point, the best point is returned
    instead and ``best_value_returned`` is set to False.

    Convergence is decided by `has_converged` from the returned result.
    BFGS stops on the gradient norm (``gtol``) or on the relative
    parameter step (``xrtol``).
    """
    if method_options is None:
        method_options = {}
    tic = time.time()

    history_params, history_criterion = [], []
    history_iterates = [np.array(x0, dtype=float, copy=True)]
    best_params, best_criterion = None, float("inf")

    def record(x, J):
        nonlocal best_params, best_criterion
        history_params.append(np.array(x, copy=True))
        history_criterion.append(J)
        if J < best_criterion:
            best_criterion, best_params = J, np.array(x, copy=True)

    def criterion_with_history(x):
        try:
            J = float(criterion(x))
        except Exception as exc:
            if enp._is_linalg_exception(exc):
                J = np.inf
            else:
                raise
        record(x, J)
        return J

    def record_iterate(xk):
        history_iterates.append(np.array(xk, copy=True))

    jac = None
    if gradient is not None:

        def jac(x):
            try:
                return np.asarray(gradient(x), dtype=float)
            except Exception as exc:
                if enp._is_linalg_exception(exc):
                    return np.zeros_like(np.asarray(x, dtype=float))
                raise

    config = get_config()
    if method == "BFGS":
        options = dict(
            disp=not silent, gtol=config.g_tol, xrtol=config.x_tol, maxiter=15000
        )
    elif method == "L-BFGS-B":
        options = dict(
            maxcor=20,
            ftol=1e-12,
            gtol=config.g_tol,
            maxfun=15000,
            maxiter=15000,
            maxls=40,
        )
    else:
        raise ValueError("Optimization method not implemented.")
    options.update(method_options)

    r = minimize(
        criterion_with_history,
        np.asarray(x0, dtype=float),
        method=method,
        jac=jac,
        callback=record_iterate,
        options=options,
    )

    # ensure returning best seen
    if best_params is not None and r.fun > best_criterion:
        r.x, r.fun, r.best_value_returned = best_params, best_criterion, False
        if jac is not None:
            r.jac = jac(r.x)
    else:
        r.best_value_returned = True

    r.history_params = history_params
    r.history_criterion = history_criterion
    r.history_iterates = history_iterates
    r.initial_params = x0
    r.final_params = r.x
    r.selection_criterion = criterion
    r.total_time = time.time() - tic

    return (r.x, r) if info else (r.x, None)


def has_converged(r):
    """Decide convergence of an `autoselect_alphas` result.

    A run flagged ``success`` has converged. SciPy also stops with
    status 2 when the line search cannot decrease the criterion any
    further, for instance because rounding in the inverses makes the
    gradient noisy below ``gtol``. Such a run is accepted when the last
    iterate step is within ``config.x_tol`` relative to the iterate, or
    when the gradient at the returned point is below
    ``config.stall_g_tol * max(1, |criterion|)``.
    """
    if r.success:
        return True
    if r.status != 2 or not np.isfinite(r.fun):
        return False
    config = get_config()

    iterates = getattr(r, "history_iterates", [])
    if len(iterates) >= 2:
        step = np.linalg.norm(iterates[-1] - iterates[-2])
        if step <= config.x_tol * max(1.0, np.linalg.norm(iterates[-1])):
            return True

    g = getattr(r, "jac", None)
    if g is None:
        return False
    g = np.asarray(g, dtype=float)
    if not np.all(np.isfinite(g)):
        return False
    return bool(np.max(np.abs(g)) <= config.stall_g_tol * max(1.0, abs(r.fun)))


def _apply_fallback(x_opt, converged, k):
    """Map the optimizer output to weights, applying the fallback policy.

    Returns
    -------
    alphas : ndarray, shape (k,)
    fallback : bool
        True if at least one weight was replaced by the fallback value.
    """
    config = get_config()
    alpha_fallback = config.alpha_fallback

    x_opt = np.asarray(x_opt, dtype=float).reshape(-1)
    if not converged or x_opt.shape[0] != k or not np.all(np.isfinite(x_opt)):
        _logger.warning(
            "Minimization did not succeed, falling back to alpha = %g", alpha_fallback
        )
        return enp.full(k, alpha_fallback), True

    alphas = enp.exp(x_opt)
    out_of_range = (alphas < config.alpha_min) | (alphas > config.alpha_max)
    if np.any(out_of_range):
        _logger.warning(
            "Incorrect alpha %s outside [%g, %g], falling back to alpha = %g",
            alphas,
            config.alpha_min,
            config.alpha_max,
            alpha_fallback,
        )
        alphas = np.where(out_of_range, alpha_fallback, alphas)
        return alphas, True
    return alphas, False


# -------------------- high-level weight selection procedure  ------------
def select_alphas(
    B,
    b,
    omegas,
    *,
    minimizer=None,
    method="BFGS",
    method_options=None,
    info=False,
    verbosity=0,
):
    """
    Estimate the regularization weights by maximizing the marginal
    log-likelihood.

    Parameters
    ----------
    B : ndarray, shape (n, n)
        K^T Sigma^{-1} K.
    b : ndarray, shape (n,)
        K^T Sigma^{-1} d.
    omegas : sequence of ndarray, shape (n, n)
        Regularization matrices.
    minimizer : callable, optional
        Replaces SciPy. Called as ``minimizer(criterion, x0)`` and must
        return ``(x_opt, converged)``, where x is log(alpha).
    method : str, default "BFGS"
        SciPy method, see `autoselect_alphas`.
    method_options : dict, optional
        Extra options passed to SciPy ``minimize``.
    info : bool, default False
        If True, return optimization diagnostics.
    verbosity : int, default 0
        0: silent, 2: SciPy solver output.

    Returns
    -------
    alphas : ndarray, shape (k,)
        Selected weights, all positive.
    info_ret : scipy.optimize.OptimizeResult or None
        Diagnostics if ``info=True``, else None. Besides the SciPy fields,
        it holds ``alphas``, ``converged`` and ``fallback``.

    Notes
    -----
    The criterion -L(exp(x)) is minimized from x0 = 0 (alpha = 1). If the
    optimizer does not converge (see `has_converged`), every weight is set to
    ``config.alpha_fallback`` (0.05). If it converges to a weight below
    ``config.alpha_min`` or above ``config.alpha_max``, that weight is
    set to the fallback value. The function is a pure function of its
    inputs.
    """
    k = len(omegas)
    x0 = enp.zeros(k)
    crit, crit_grad = make_log_alpha_criterion(B, b, omegas)

    tic = time.time()
    if minimizer is None:
        x_opt, info_ret = autoselect_alphas(
            x0,
            crit,
            crit_grad,
            silent=not (verbosity == 2),
            info=True,
            method=method,
            method_options=method_options,
        )
        converged = has_converged(info_ret)
    else:
        x_opt, converged = minimizer(crit, x0)
        converged = bool(converged)
        info_ret = OptimizeResult(
            x=x_opt,
            success=converged,
            initial_params=x0,
            final_params=x_opt,
            selection_criterion=crit,
            total_time=time.time() - tic,
        )

    alphas, fallback = _apply_fallback(x_opt, converged, k)
    _logger.info("Selected alphas: %s", alphas)

    info_ret.alphas = alphas
    info_ret.converged = converged
    info_ret.fallback = fallback
    return (alphas, info_ret) if info else (alphas, None)


class HyperparameterEstimator:
    """Empirical-Bayes estimator of the regularization weights.

    Stores the optimizer configuration; each call is independent of the
    previous ones.

    Parameters
    ----------
    method : str, default "BFGS"
    method_options : dict, optional
    minimizer : callable, optional
        See `select_alphas`.
    """

    def __init__(self, method="BFGS", method_options=None, minimizer=None):
        self.method = method
        self.method_options = method_options
        self.minimizer = minimizer

    def __call__(self, B, b, omegas):
        """Return (alphas, info) for the normal-equation terms (B, b)."""
        return select_alphas(
            B,
            b,
            omegas,
            minimizer=self.minimizer,
            method=self.method,
            method_options=self.method_options,
            info=True,
        )

    def __repr__(self):
        return (
            f"HyperparameterEstimator(method={self.method!r}, "
            f"method_options={self.method_options!r}, "
            f"minimizer={self.minimizer!r})"
        )
