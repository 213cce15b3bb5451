import csv
import json

import numpy as np
import pytest

from ebsim.cli import main
from ebsim.config_loader import RunProfile


def _write_batting(path, players: int = 1_500, seed: int = 13) -> None:
    rng = np.random.default_rng(seed)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["playerID", "yearID", "H", "AB"])
        for index in range(players):
            true_p = rng.beta(78, 220)
            seasons = int(rng.integers(1, 4))
            for year in range(seasons):
                at_bats = int(np.clip(rng.lognormal(5.0, 1.2), 1, 700))
                hits = int(rng.binomial(at_bats, true_p))
                writer.writerow([f"player{index:04d}", 2000 + year, hits, at_bats])
        writer.writerow(["pitcher01", 2000, "", 0])


def test_cli_runs_study_and_writes_outputs(tmp_path, capsys):
    batting = tmp_path / "Batting.csv"
    _write_batting(batting)
    output = tmp_path / "estimates.csv"
    summary = tmp_path / "summary.json"
    plots = tmp_path / "plots"
    profile = tmp_path / "profile.json"

    main(
        [
            str(batting),
            "--seed",
            "7",
            "--exclude",
            "player0000",
            "--output",
            str(output),
            "--summary",
            str(summary),
            "--plots-dir",
            str(plots),
            "--save-profile",
            str(profile),
        ]
    )

    out = capsys.readouterr().out
    assert "Loaded 1499/1500 players" in out
    assert "MSE shrunken" in out
    assert "Coverage at 95%" in out
    assert f"Wrote 1499 estimates to {output}" in out

    with output.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1_499
    assert "player0000" not in {row["player_id"] for row in rows}

    payload = json.loads(summary.read_text(encoding="utf-8"))
    assert payload["settings"]["seed"] == 7
    assert payload["players"] == 1_499

    assert sorted(path.name for path in plots.iterdir()) == [
        "coverage.png",
        "fdr_calibration.png",
        "mse_by_bin.png",
        "shrinkage.png",
    ]
    assert RunProfile.load(profile).to_settings().seed == 7


def test_cli_reports_replications_from_profile(tmp_path, capsys):
    batting = tmp_path / "batting.csv"
    _write_batting(batting, players=800, seed=3)
    profile = tmp_path / "profile.json"
    RunProfile(column_mapping={}, settings={"seed": 21, "credible_level": 0.9}).save(profile)

    main(
        [
            str(batting),
            "--load-profile",
            str(profile),
            "--replications",
            "2",
            "--output",
            str(tmp_path / "out.csv"),
        ]
    )

    out = capsys.readouterr().out
    assert "Coverage at 90%" in out
    assert "Recovered alpha" in out
    assert "Recovered beta" in out


def test_cli_rejects_unknown_mapping_key(tmp_path):
    batting = tmp_path / "batting.csv"
    _write_batting(batting, players=10)

    with pytest.raises(ValueError, match="Unknown mapping key"):
        main([str(batting), "--column", "walks=BB", "--output", str(tmp_path / "out.csv")])
