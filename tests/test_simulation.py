import numpy as np
import pandas as pd
import pytest

from ebsim.prior import BetaPrior, RegressionPrior
from ebsim.simulate import SIMULATED_COLUMNS, replicate_players, simulate_players


def _players(n: int = 5_000, seed: int = 9) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    at_bats = np.clip(np.round(rng.lognormal(5.5, 1.5, size=n)), 1, 15_000).astype(int)
    return pd.DataFrame(
        {
            "player_id": [f"p{i}" for i in range(n)],
            "hits": np.zeros(n, dtype=int),
            "at_bats": at_bats,
        }
    )


def test_simulate_players_invariants():
    players = _players()

    simulated = simulate_players(players, BetaPrior(alpha=78.0, beta=220.0), seed=2017)

    assert list(simulated.columns) == list(SIMULATED_COLUMNS)
    assert (simulated["at_bats"] == players["at_bats"]).all()
    assert (simulated["player_id"] == players["player_id"]).all()
    assert (simulated["hits"] >= 0).all()
    assert (simulated["hits"] <= simulated["at_bats"]).all()
    assert ((simulated["true_p"] > 0) & (simulated["true_p"] < 1)).all()
    assert simulated["true_p"].mean() == pytest.approx(78 / 298, abs=0.005)


def test_simulate_players_is_reproducible_under_seed():
    players = _players(1_000)
    prior = BetaPrior(alpha=78.0, beta=220.0)

    first = simulate_players(players, prior, seed=123)
    second = simulate_players(players, prior, seed=123)
    other = simulate_players(players, prior, seed=124)

    pd.testing.assert_frame_equal(first, second)
    assert not np.array_equal(first["true_p"], other["true_p"])


def test_simulate_players_keeps_true_p_open_for_extreme_priors():
    players = _players(2_000)

    simulated = simulate_players(players, BetaPrior(alpha=0.01, beta=0.01), seed=1)

    assert ((simulated["true_p"] > 0) & (simulated["true_p"] < 1)).all()
    assert (simulated["hits"] <= simulated["at_bats"]).all()


def test_simulate_players_uses_per_player_prior():
    players = _players(20_000)
    prior = RegressionPrior(mu_intercept=-1.6, mu_log_ab=0.07, sigma=0.002)

    simulated = simulate_players(players, prior, seed=5)

    low = simulated[simulated["at_bats"] < 20]["true_p"].mean()
    high = simulated[simulated["at_bats"] > 2_000]["true_p"].mean()
    assert high > low + 0.03


def test_simulate_players_rejects_non_positive_at_bats():
    players = _players(3)
    players.loc[0, "at_bats"] = 0

    with pytest.raises(ValueError):
        simulate_players(players, BetaPrior(alpha=2.0, beta=5.0), seed=0)


def test_replicate_players_stacks_independent_draws():
    players = _players(500)
    prior = BetaPrior(alpha=78.0, beta=220.0)

    stacked = replicate_players(players, prior, seed=7, replications=3)
    again = replicate_players(players, prior, seed=7, replications=3)

    assert len(stacked) == 1_500
    assert sorted(stacked["replication"].unique()) == [1, 2, 3]
    pd.testing.assert_frame_equal(stacked, again)
    first = stacked[stacked["replication"] == 1]["true_p"].to_numpy()
    second = stacked[stacked["replication"] == 2]["true_p"].to_numpy()
    assert not np.array_equal(first, second)

    with pytest.raises(ValueError):
        replicate_players(players, prior, seed=7, replications=0)
