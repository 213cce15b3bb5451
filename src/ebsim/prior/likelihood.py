"""Beta-binomial marginal likelihood and optimiser helpers."""

from __future__ import annotations

import logging
from typing import Callable, Tuple

import numpy as np
from scipy.optimize import OptimizeResult
from scipy.special import betaln, digamma


logger = logging.getLogger(__name__)

# Largest |gradient| of the per-player mean objective accepted after a
# precision-loss stop.
_ACCEPTABLE_GRADIENT = 1e-4


class PriorFitError(ValueError):
    """Raised when a prior cannot be fitted to the supplied counts."""


def validate_counts(hits, at_bats) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(hits, at_bats)`` as float arrays, rejecting unusable data."""

    hits = np.asarray(hits, dtype=float)
    at_bats = np.asarray(at_bats, dtype=float)
    if hits.shape != at_bats.shape or hits.ndim != 1:
        raise PriorFitError("hits and at_bats must be one-dimensional and the same length")
    if hits.size < 2:
        raise PriorFitError(f"need at least two players to fit a prior, got {hits.size}")
    if not np.all(np.isfinite(hits)) or not np.all(np.isfinite(at_bats)):
        raise PriorFitError("hits and at_bats must be finite")
    if np.any(at_bats <= 0):
        raise PriorFitError("every player needs a positive number of at-bats")
    if np.any(hits < 0) or np.any(hits > at_bats):
        raise PriorFitError("hits must lie between 0 and at_bats")
    if np.all(hits == 0):
        raise PriorFitError("degenerate data: no player has a hit")
    if np.all(hits == at_bats):
        raise PriorFitError("degenerate data: every at-bat is a hit")
    return hits, at_bats


def log_likelihood_terms(hits, at_bats, alpha, beta) -> np.ndarray:
    """Per-player log marginal likelihood, without the binomial coefficient."""

    return betaln(hits + alpha, at_bats - hits + beta) - betaln(alpha, beta)


def log_likelihood_gradient(hits, at_bats, alpha, beta) -> Tuple[np.ndarray, np.ndarray]:
    """Per-player partial derivatives of the log likelihood in alpha and beta."""

    total = digamma(at_bats + alpha + beta)
    shared = digamma(alpha + beta) - total
    d_alpha = digamma(hits + alpha) - digamma(alpha) + shared
    d_beta = digamma(at_bats - hits + beta) - digamma(beta) + shared
    return d_alpha, d_beta


def numerical_hessian(gradient: Callable[[np.ndarray], np.ndarray], x: np.ndarray) -> np.ndarray:
    """Central-difference Hessian from an analytic gradient."""

    x = np.asarray(x, dtype=float)
    size = x.size
    hessian = np.empty((size, size))
    for i in range(size):
        step = 1e-5 * max(1.0, abs(x[i]))
        shift = np.zeros(size)
        shift[i] = step
        hessian[:, i] = (gradient(x + shift) - gradient(x - shift)) / (2 * step)
    return (hessian + hessian.T) / 2


def standard_errors(hessian: np.ndarray) -> np.ndarray:
    """Square roots of the diagonal of the inverse observed information."""

    try:
        covariance = np.linalg.inv(hessian)
    except np.linalg.LinAlgError:
        logger.warning("Observed information is singular; standard errors unavailable")
        return np.full(hessian.shape[0], np.nan)
    variances = np.diag(covariance)
    with np.errstate(invalid="ignore"):
        return np.where(variances > 0, np.sqrt(np.abs(variances)), np.nan)


def check_converged(result: OptimizeResult, *, label: str) -> None:
    """Raise PriorFitError unless the optimiser reached a stationary point."""

    if not np.all(np.isfinite(result.x)) or not np.isfinite(result.fun):
        raise PriorFitError(f"{label} fit produced non-finite parameters")
    if result.success:
        return
    jac = getattr(result, "jac", None)
    if jac is not None and np.max(np.abs(jac)) <= _ACCEPTABLE_GRADIENT:
        logger.warning(
            "%s optimiser stopped early (%s) with max |gradient| %.2e; accepting",
            label,
            result.message,
            float(np.max(np.abs(jac))),
        )
        return
    raise PriorFitError(f"{label} fit did not converge: {result.message}")
