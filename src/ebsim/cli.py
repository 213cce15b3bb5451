"""Command-line interface for running the shrinkage simulation study."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from ebsim.config import SimulationSettings, iter_prior_models, settings_from_env
from ebsim.config_loader import RunProfile
from ebsim.ingest import DEFAULT_BATTING_MAPPING, load_player_ids, load_players_from_csv
from ebsim.pipeline import run_replications, run_study
from ebsim.report import export_estimates_to_csv, save_study_figures, write_summary_json


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate empirical-Bayes batting average estimates by simulation"
    )
    parser.add_argument("batting", type=Path, help="Path to batting CSV (one row per player-season)")
    parser.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for batting CSV columns (e.g., hits=H, player_id=playerID)",
    )
    parser.add_argument("--load-profile", type=Path, help="Load run profile JSON", default=None)
    parser.add_argument("--save-profile", type=Path, help="Save run profile JSON", default=None)
    parser.add_argument(
        "--exclude",
        nargs="*",
        default=None,
        help="Player IDs to remove from consideration",
    )
    parser.add_argument(
        "--exclude-file",
        type=Path,
        default=None,
        help="CSV whose player id column lists players to remove (e.g. a pitching table)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the simulation")
    parser.add_argument(
        "--prior-model",
        choices=[spec.key for spec in iter_prior_models()],
        default=None,
        help="Prior shared by all players (flat) or depending on at-bats (ab_dependent)",
    )
    parser.add_argument(
        "--credible-level",
        type=float,
        default=None,
        help="Credible interval level in (0, 1), default 0.95",
    )
    parser.add_argument(
        "--fdr-threshold",
        type=float,
        default=None,
        help="Batting average the proportion test tries to beat, default 0.3",
    )
    parser.add_argument(
        "--target-fdr",
        type=float,
        default=None,
        help="q-value cutoff for the discovery list, default 0.1",
    )
    parser.add_argument(
        "--min-at-bats",
        type=int,
        default=None,
        help="Drop players with fewer career at-bats",
    )
    parser.add_argument(
        "--no-refit",
        action="store_true",
        help="Estimate with the prior fitted on real data instead of re-fitting on simulated data",
    )
    parser.add_argument(
        "--replications",
        type=int,
        default=0,
        help="Also run this many replicated simulations to check hyperparameter recovery",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("estimates.csv"),
        help="Output CSV path for per-player estimates",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional path to write study summary JSON",
    )
    parser.add_argument(
        "--plots-dir",
        type=Path,
        default=None,
        help="Optional directory for PNG figures",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (e.g., INFO, DEBUG)")
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        key = key.strip()
        if key not in DEFAULT_BATTING_MAPPING:
            raise ValueError(f"Unknown mapping key '{key}'")
        mapping[key] = value.strip()
    return mapping


def _resolve_settings(args: argparse.Namespace, profile: RunProfile | None) -> SimulationSettings:
    base = profile.to_settings() if profile else SimulationSettings()
    base = settings_from_env(base)
    overrides = {
        "seed": args.seed,
        "prior_model": args.prior_model,
        "credible_level": args.credible_level,
        "fdr_threshold": args.fdr_threshold,
        "target_fdr": args.target_fdr,
        "min_at_bats": args.min_at_bats,
        "refit_prior": False if args.no_refit else None,
    }
    payload = base.model_dump()
    payload.update({key: value for key, value in overrides.items() if value is not None})
    return SimulationSettings.model_validate(payload)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    column_mapping = _parse_mapping(args.column)
    profile = None
    if args.load_profile:
        profile = RunProfile.load(args.load_profile)
        column_mapping = profile.column_mapping | column_mapping

    settings = _resolve_settings(args, profile)
    mapping = DEFAULT_BATTING_MAPPING | column_mapping

    excluded = set(args.exclude or [])
    if args.exclude_file:
        excluded |= load_player_ids(args.exclude_file, column=mapping["player_id"])

    records, report = load_players_from_csv(
        args.batting,
        mapping=mapping,
        min_at_bats=settings.min_at_bats,
        exclude_player_ids=excluded,
    )
    print(
        f"Loaded {report.players_kept}/{report.players_total} players from {report.rows_read} rows"
    )
    if report.players_excluded:
        print(f"Excluded {len(report.players_excluded)} players")
    if report.players_below_min_at_bats:
        preview = ", ".join(report.players_below_min_at_bats[:5])
        more = len(report.players_below_min_at_bats) - 5
        suffix = f", +{more} more" if more > 0 else ""
        print(f"Players below {settings.min_at_bats} at-bats: {preview}{suffix}")

    if args.save_profile:
        RunProfile.from_settings(settings, column_mapping).save(args.save_profile)
        print(f"Saved run profile to {args.save_profile}")

    result = run_study(records, settings)

    prior = result.fitted_prior.to_dict()
    parameters = ", ".join(
        f"{key}={prior[key]:.4f}"
        for key in ("alpha", "beta", "mu_intercept", "mu_log_ab", "sigma")
        if key in prior
    )
    print(f"Prior ({prior['model']}): {parameters}")
    for row in result.mse.itertuples(index=False):
        print(f"MSE {row.method}: {row.mse:.6f}")
    for row in result.coverage.itertuples(index=False):
        print(f"Coverage at {row.level:.0%}: {row.coverage:.3f}")
    found = result.discoveries
    if len(found):
        false_share = float((found["true_p"] < settings.fdr_threshold).mean())
        print(
            "Discoveries at q<={:.2f}: {} (false discovery proportion {:.3f})".format(
                settings.target_fdr, len(found), false_share
            )
        )
    else:
        print(f"No discoveries at q<={settings.target_fdr:.2f}")

    written = export_estimates_to_csv(result.estimates, args.output)
    print(f"Wrote {written} estimates to {args.output}")

    summary = result.summary()
    if args.replications > 0:
        replicated = run_replications(records, settings, replications=args.replications)
        for row in replicated.recovery.itertuples(index=False):
            print(
                f"Recovered {row.parameter}: true={row.true:.4f} "
                f"mean={row.mean_estimate:.4f} rmse={row.rmse:.4f}"
            )
        summary["replications"] = {
            "count": args.replications,
            "recovery": replicated.recovery.to_dict(orient="records"),
            "fits": replicated.fits.to_dict(orient="records"),
        }

    if args.summary:
        write_summary_json(summary, args.summary)
        print(f"Wrote study summary to {args.summary}")

    if args.plots_dir:
        paths = save_study_figures(result, args.plots_dir)
        print(f"Saved {len(paths)} figures to {args.plots_dir}")


if __name__ == "__main__":
    main()
