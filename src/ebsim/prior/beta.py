"""Fit a single Beta prior shared by every player."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Tuple

import numpy as np
from scipy.optimize import minimize
from scipy.special import polygamma

from .likelihood import (
    PriorFitError,
    check_converged,
    log_likelihood_gradient,
    log_likelihood_terms,
    standard_errors,
    validate_counts,
)


logger = logging.getLogger(__name__)

# Concentration used when every qualifying player has the same rate.
_IDENTICAL_RATE_CONCENTRATION = 1_000.0


@dataclass(frozen=True)
class BetaPrior:
    alpha: float
    beta: float
    alpha_se: float = float("nan")
    beta_se: float = float("nan")
    method: str = "mle"
    n_players: int = 0
    log_likelihood: float = float("nan")

    @property
    def mean(self) -> float:
        return self.alpha / (self.alpha + self.beta)

    @property
    def concentration(self) -> float:
        return self.alpha + self.beta

    def parameters(self, at_bats) -> Tuple[np.ndarray, np.ndarray]:
        """Per-player (alpha, beta); constant for a shared prior."""

        shape = np.shape(at_bats)
        return np.full(shape, self.alpha, dtype=float), np.full(shape, self.beta, dtype=float)

    def to_dict(self) -> dict:
        return {
            "model": "flat",
            "method": self.method,
            "alpha": self.alpha,
            "beta": self.beta,
            "alpha_se": self.alpha_se,
            "beta_se": self.beta_se,
            "mean": self.mean,
            "n_players": self.n_players,
            "log_likelihood": self.log_likelihood,
        }


def fit_beta_moments(hits, at_bats, *, min_at_bats: int = 500) -> BetaPrior:
    """Method-of-moments Beta fit on the raw rates of well-sampled players.

    Players with fewer than ``min_at_bats`` are ignored because their raw
    rates are dominated by binomial noise; if fewer than two players qualify
    every player is used instead.
    """

    hits, at_bats = validate_counts(hits, at_bats)
    mask = at_bats >= min_at_bats
    if mask.sum() < 2:
        logger.debug("Only %s players reach %s at-bats; using all players", mask.sum(), min_at_bats)
        mask = np.ones_like(at_bats, dtype=bool)

    rates = hits[mask] / at_bats[mask]
    mu = float(np.mean(rates))
    var = float(np.var(rates, ddof=1))
    if not 0.0 < mu < 1.0:
        raise PriorFitError(f"mean rate {mu:.4f} leaves no room for a Beta prior")

    if var <= 0.0:
        common = _IDENTICAL_RATE_CONCENTRATION
    elif var >= mu * (1 - mu):
        raise PriorFitError("rate variance exceeds what any Beta distribution allows")
    else:
        common = mu * (1 - mu) / var - 1

    return BetaPrior(
        alpha=mu * common,
        beta=(1 - mu) * common,
        method="moments",
        n_players=int(mask.sum()),
    )


def _trigamma(values):
    return polygamma(1, values)


def _hessian(hits: np.ndarray, at_bats: np.ndarray, alpha: float, beta: float) -> np.ndarray:
    """Observed information of the total negative log likelihood in (alpha, beta)."""

    shared = _trigamma(alpha + beta) - _trigamma(at_bats + alpha + beta)
    d_aa = np.sum(_trigamma(hits + alpha) - _trigamma(alpha) + shared)
    d_bb = np.sum(_trigamma(at_bats - hits + beta) - _trigamma(beta) + shared)
    d_ab = np.sum(shared)
    return -np.array([[d_aa, d_ab], [d_ab, d_bb]])


def fit_beta_prior(
    hits,
    at_bats,
    *,
    method: Literal["mle", "moments"] = "mle",
    min_at_bats: int = 500,
) -> BetaPrior:
    """Fit Beta(alpha, beta) by maximum beta-binomial marginal likelihood."""

    start = fit_beta_moments(hits, at_bats, min_at_bats=min_at_bats)
    if method == "moments":
        return start
    if method != "mle":
        raise ValueError(f"unknown fitting method {method!r}")

    hits, at_bats = validate_counts(hits, at_bats)
    n_players = hits.size

    def objective(x: np.ndarray) -> float:
        alpha, beta = np.exp(x)
        return -float(np.sum(log_likelihood_terms(hits, at_bats, alpha, beta))) / n_players

    def gradient(x: np.ndarray) -> np.ndarray:
        alpha, beta = np.exp(x)
        d_alpha, d_beta = log_likelihood_gradient(hits, at_bats, alpha, beta)
        return -np.array([np.sum(d_alpha) * alpha, np.sum(d_beta) * beta]) / n_players

    x0 = np.log([start.alpha, start.beta])
    result = minimize(
        objective,
        x0,
        jac=gradient,
        method="L-BFGS-B",
        options={"maxiter": 1000, "ftol": 1e-12, "gtol": 1e-9},
    )
    check_converged(result, label="Beta prior")

    alpha, beta = (float(value) for value in np.exp(result.x))
    alpha_se, beta_se = standard_errors(_hessian(hits, at_bats, alpha, beta))
    prior = BetaPrior(
        alpha=alpha,
        beta=beta,
        alpha_se=float(alpha_se),
        beta_se=float(beta_se),
        method="mle",
        n_players=n_players,
        log_likelihood=-float(result.fun) * n_players,
    )
    logger.info(
        "Fitted Beta prior alpha=%.2f beta=%.2f (mean %.4f) on %s players",
        prior.alpha,
        prior.beta,
        prior.mean,
        n_players,
    )
    return prior
