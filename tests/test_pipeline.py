import csv
import json

import numpy as np
import pandas as pd
import pytest

from ebsim.config import SimulationSettings
from ebsim.models import ESTIMATE_COLUMNS, PlayerRecord
from ebsim.pipeline import run_replications, run_study
from ebsim.prior import BetaPrior, RegressionPrior
from ebsim.report import export_estimates_to_csv, write_summary_json
from ebsim.simulate import simulate_players


def _league(n: int, *, prior=None, log_mean: float = 6.0, seed: int = 11) -> pd.DataFrame:
    """Players whose hits come from a known prior, standing in for real totals."""

    rng = np.random.default_rng(seed)
    at_bats = np.clip(np.round(rng.lognormal(log_mean, 1.2, size=n)), 1, 15_000).astype(int)
    base = pd.DataFrame({"player_id": [f"p{i:05d}" for i in range(n)], "at_bats": at_bats})
    drawn = simulate_players(base, prior or BetaPrior(alpha=78.0, beta=220.0), seed=seed + 1)
    return drawn[["player_id", "hits", "at_bats"]]


@pytest.fixture(scope="module")
def study():
    return run_study(_league(10_000), SimulationSettings(seed=42))


def test_shrinkage_beats_raw_averages(study):
    errors = dict(zip(study.mse["method"], study.mse["mse"]))

    assert errors["shrunken"] < errors["raw"]
    low_bin = study.mse_by_bin[study.mse_by_bin["ab_bin"] == 10]
    by_method = dict(zip(low_bin["method"], low_bin["mse"]))
    assert by_method["shrunken"] < by_method["raw"]


def test_credible_intervals_are_calibrated(study):
    table = study.coverage.set_index("level")["coverage"]

    for level in (0.5, 0.7, 0.9, 0.95):
        assert table[level] == pytest.approx(level, abs=0.02)


def test_simulated_table_respects_counts(study):
    simulated = study.simulated

    assert (simulated["hits"] <= simulated["at_bats"]).all()
    assert ((simulated["true_p"] > 0) & (simulated["true_p"] < 1)).all()
    assert study.fitted_prior.mean == pytest.approx(78 / 298, abs=0.005)


def test_shrunken_estimates_flatten_in_small_bins(study):
    raw = study.bias_by_bin[
        (study.bias_by_bin["method"] == "raw") & (study.bias_by_bin["ab_bin"] == 10)
    ]
    shrunken = study.bias_by_bin[
        (study.bias_by_bin["method"] == "shrunken") & (study.bias_by_bin["ab_bin"] == 10)
    ]

    assert shrunken["slope"].iloc[0] < raw["slope"].iloc[0]


def test_study_is_reproducible_under_seed():
    players = _league(1_500, seed=3)
    settings = SimulationSettings(seed=99)

    first = run_study(players, settings)
    second = run_study(players, settings)

    pd.testing.assert_frame_equal(first.estimates, second.estimates)
    assert first.summary()["mse"] == second.summary()["mse"]


def test_study_accepts_player_records():
    players = _league(800, seed=4)
    records = [PlayerRecord(**row) for row in players.to_dict(orient="records")]

    result = run_study(records, SimulationSettings(seed=1, refit_prior=False))

    assert len(result.estimates) == 800
    assert result.fitted_prior is result.real_prior


def test_q_values_control_false_discoveries():
    result = run_study(_league(20_000, log_mean=6.5, seed=21), SimulationSettings(seed=8))

    row = result.fdr[result.fdr["q_cutoff"] == 0.1].iloc[0]
    assert row["admitted"] > 50
    assert row["fdp"] == pytest.approx(0.1, abs=0.05)
    assert len(result.discoveries) == row["admitted"]
    assert result.discoveries["qvalue"].is_monotonic_increasing


def test_ab_dependent_study_recovers_trend():
    truth = RegressionPrior(mu_intercept=-1.6, mu_log_ab=0.07, sigma=0.002)
    players = _league(10_000, prior=truth, seed=31)

    result = run_study(players, SimulationSettings(seed=5, prior_model="ab_dependent"))

    assert isinstance(result.fitted_prior, RegressionPrior)
    assert result.fitted_prior.mu_log_ab > 0.03
    errors = dict(zip(result.mse["method"], result.mse["mse"]))
    assert errors["shrunken"] < errors["raw"]


def test_run_replications_summarises_refits():
    players = _league(2_000, seed=17)

    replicated = run_replications(players, SimulationSettings(seed=6), replications=3)

    assert replicated.fits["replication"].tolist() == [1, 2, 3]
    assert {"alpha", "beta", "mse_raw", "mse_shrunken", "coverage"} <= set(replicated.fits.columns)
    assert replicated.recovery["parameter"].tolist() == ["alpha", "beta"]
    assert (replicated.fits["mse_shrunken"] < replicated.fits["mse_raw"]).all()

    with pytest.raises(ValueError):
        run_replications(players, replications=0)


def test_exports_write_estimates_and_summary(tmp_path):
    result = run_study(_league(500, seed=2), SimulationSettings(seed=3))
    csv_path = tmp_path / "estimates.csv"
    json_path = tmp_path / "summary.json"

    written = export_estimates_to_csv(result.estimates, csv_path)
    write_summary_json(result.summary(), json_path)

    with csv_path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = list(reader)
    assert written == 500 == len(rows)
    assert reader.fieldnames == [*ESTIMATE_COLUMNS, "true_p"]
    assert 0.0 < float(rows[0]["shrunken"]) < 1.0

    summary = json.loads(json_path.read_text(encoding="utf-8"))
    assert summary["players"] == 500
    assert summary["fitted_prior"]["model"] == "flat"
    assert set(summary["mse"]) == {"raw", "shrunken"}
