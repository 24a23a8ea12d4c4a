# ebunfold/plot/plotutils.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
import numpy as np
import matplotlib.pyplot as plt


def _axes(ax, figsize=(8, 4)):
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    return fig, ax


def plot_marginal_likelihood_scan(scan, ax=None, show=False):
    """Plot a marginal log-likelihood scan against alpha (log scale).

    Parameters
    ----------
    scan : iterable of (alpha, value)
        For instance the generator `ebunfold.core.marginal_likelihood_scan`.
        Non-finite values are skipped.
    ax : matplotlib Axes, optional

    Returns
    -------
    fig, ax
    """
    points = np.array([(a, v) for a, v in scan], dtype=float).reshape(-1, 2)
    finite = np.isfinite(points[:, 1])
    fig, ax = _axes(ax)
    ax.plot(points[finite, 0], points[finite, 1])
    if np.any(finite):
        i = np.argmax(np.where(finite, points[:, 1], -np.inf))
        ax.axvline(points[i, 0], color="red", linestyle="--", label=f"max at {points[i, 0]:.3g}")
        ax.legend(loc="best")
    ax.set_xscale("log")
    ax.set_xlabel("alpha")
    ax.set_ylabel("marginal log-likelihood")
    if show:
        plt.show()
    return fig, ax


def plot_unfolded(basis, result, x, truth=None, ax=None, show=False):
    """Plot an unfolded function with a one-sigma band.

    Parameters
    ----------
    basis : ebunfold.basis.Basis
    result : SolveResult
    x : array_like
        Evaluation points.
    truth : callable, optional
        Reference function, plotted dashed.
    """
    x = np.asarray(x, dtype=float)
    f = basis.evaluate(result.coeff, x)
    s = basis.evaluate_errors(result.covariance, x)
    fig, ax = _axes(ax)
    ax.plot(x, f, label="unfolded")
    ax.fill_between(x, f - s, f + s, alpha=0.3)
    if truth is not None:
        ax.plot(x, truth(x), "k--", label="truth")
    ax.set_xlabel("x")
    ax.legend(loc="best")
    if show:
        plt.show()
    return fig, ax


def plot_chains(sampler, burnin=None, parameter_indices=None, show=False):
    """Trace plots of the chains of a MetropolisHastings sampler."""
    if sampler.x is None:
        raise ValueError("No chain data.")
    if burnin is None:
        burnin = sampler.burnin_period
    n_chains = sampler.x.shape[0]
    pidx = parameter_indices or list(range(sampler.dim))
    fig, axes = plt.subplots(len(pidx), 1, figsize=(10, 3 * len(pidx)), sharex=True)
    axes = np.atleast_1d(axes)
    for i, param in enumerate(pidx):
        for c in range(n_chains):
            axes[i].plot(sampler.x[c, : sampler.global_total, param], label=f"Chain {c + 1}")
        axes[i].set_ylabel(f"phi_{param}")
        if burnin > 0:
            axes[i].axvline(
                burnin,
                color="red",
                linestyle="--",
                label="End Burn-in" if i == 0 else None,
            )
        axes[i].legend(loc="best")
    axes[-1].set_xlabel("Iteration")
    fig.tight_layout()
    if show:
        plt.show()
    return fig, axes
