import math

import numpy as np
import pytest
from scipy.special import expit

from ebsim.prior import (
    BetaPrior,
    PriorFitError,
    RegressionPrior,
    fit_beta_moments,
    fit_beta_prior,
    fit_beta_regression,
    fit_prior,
)
from ebsim.prior.likelihood import log_likelihood_terms


def _flat_population(n: int, *, alpha: float = 78.0, beta: float = 220.0, seed: int = 1):
    rng = np.random.default_rng(seed)
    at_bats = np.clip(np.round(rng.lognormal(6.0, 1.2, size=n)), 1, 15_000).astype(int)
    hits = rng.binomial(at_bats, rng.beta(alpha, beta, size=n))
    return hits, at_bats


def _ab_population(n: int, *, intercept: float, slope: float, sigma: float, seed: int = 2):
    rng = np.random.default_rng(seed)
    at_bats = np.clip(np.round(rng.lognormal(6.0, 1.4, size=n)), 1, 15_000).astype(int)
    mu = expit(intercept + slope * np.log(at_bats))
    hits = rng.binomial(at_bats, rng.beta(mu / sigma, (1 - mu) / sigma))
    return hits, at_bats


def test_fit_beta_moments_uses_well_sampled_players():
    hits = np.array([250, 300, 200, 1])
    at_bats = np.array([1000, 1000, 1000, 2])

    prior = fit_beta_moments(hits, at_bats, min_at_bats=500)

    rates = np.array([0.25, 0.3, 0.2])
    mu = rates.mean()
    common = mu * (1 - mu) / rates.var(ddof=1) - 1
    assert prior.method == "moments"
    assert prior.n_players == 3
    assert prior.alpha == pytest.approx(mu * common)
    assert prior.beta == pytest.approx((1 - mu) * common)


def test_fit_beta_moments_falls_back_to_all_players():
    prior = fit_beta_moments([2, 5, 3], [10, 12, 9], min_at_bats=500)
    assert prior.n_players == 3
    assert 0 < prior.mean < 1


def test_fit_beta_prior_recovers_hyperparameters():
    hits, at_bats = _flat_population(20_000)

    prior = fit_beta_prior(hits, at_bats)

    assert isinstance(prior, BetaPrior)
    assert prior.method == "mle"
    assert prior.mean == pytest.approx(78 / 298, abs=0.003)
    assert prior.alpha == pytest.approx(78, rel=0.2)
    assert prior.beta == pytest.approx(220, rel=0.2)
    assert math.isfinite(prior.alpha_se) and prior.alpha_se > 0
    assert math.isfinite(prior.beta_se) and prior.beta_se > 0
    assert prior.log_likelihood < 0


def test_fit_beta_prior_mle_beats_moments_likelihood():
    hits, at_bats = _flat_population(3_000, seed=5)

    mle = fit_beta_prior(hits, at_bats)
    moments = fit_beta_prior(hits, at_bats, method="moments")

    moments_ll = float(np.sum(log_likelihood_terms(hits, at_bats, moments.alpha, moments.beta)))
    assert mle.log_likelihood >= moments_ll - 1e-6 * abs(moments_ll)


@pytest.mark.parametrize(
    "hits, at_bats, message",
    [
        ([0, 0, 0], [10, 20, 30], "no player has a hit"),
        ([10, 20, 30], [10, 20, 30], "every at-bat is a hit"),
        ([1, 2], [10, 0], "positive number of at-bats"),
        ([1, 2], [10, -3], "positive number of at-bats"),
        ([5], [10], "at least two players"),
        ([11, 2], [10, 5], "between 0 and at_bats"),
    ],
)
def test_fit_beta_prior_rejects_degenerate_data(hits, at_bats, message):
    with pytest.raises(PriorFitError, match=message):
        fit_beta_prior(hits, at_bats)


def test_fit_beta_prior_unknown_method():
    with pytest.raises(ValueError):
        fit_beta_prior([1, 2, 3], [10, 10, 10], method="bayes")  # type: ignore[arg-type]


def test_fit_beta_regression_recovers_ab_trend():
    hits, at_bats = _ab_population(20_000, intercept=-1.6, slope=0.07, sigma=0.002)

    prior = fit_beta_regression(hits, at_bats)

    assert isinstance(prior, RegressionPrior)
    assert prior.mu_log_ab == pytest.approx(0.07, abs=0.02)
    assert prior.mu_intercept == pytest.approx(-1.6, abs=0.15)
    assert prior.sigma == pytest.approx(0.002, rel=0.35)
    assert math.isfinite(prior.mu_log_ab_se) and prior.mu_log_ab_se > 0
    assert math.isfinite(prior.sigma_se) and prior.sigma_se > 0


def test_fit_beta_regression_flat_data_has_no_trend():
    hits, at_bats = _flat_population(10_000, seed=3)

    prior = fit_beta_regression(hits, at_bats)

    assert abs(prior.mu_log_ab) < 3 * prior.mu_log_ab_se + 0.01


def test_regression_prior_parameters_follow_at_bats():
    prior = RegressionPrior(mu_intercept=-1.6, mu_log_ab=0.07, sigma=0.002)

    alpha, beta = prior.parameters(np.array([10, 10_000]))

    means = alpha / (alpha + beta)
    assert means[1] > means[0]
    assert alpha + beta == pytest.approx(np.full(2, 500.0))


def test_fit_prior_dispatches_on_model():
    hits, at_bats = _flat_population(2_000, seed=4)

    assert isinstance(fit_prior(hits, at_bats, model="flat"), BetaPrior)
    assert isinstance(fit_prior(hits, at_bats, model="ab_dependent"), RegressionPrior)
    with pytest.raises(KeyError):
        fit_prior(hits, at_bats, model="mixture")
