"""Human-facing outputs: estimate tables, JSON summaries and figures."""

from .export import export_estimates_to_csv, write_summary_json
from .plots import (
    plot_coverage,
    plot_fdr_calibration,
    plot_mse_by_bin,
    plot_shrinkage,
    save_study_figures,
)

__all__ = [
    "export_estimates_to_csv",
    "plot_coverage",
    "plot_fdr_calibration",
    "plot_mse_by_bin",
    "plot_shrinkage",
    "save_study_figures",
    "write_summary_json",
]
