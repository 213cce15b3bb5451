"""CSV and JSON export helpers for study results."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from ebsim.estimate import estimate_records
from ebsim.models import ESTIMATE_COLUMNS


def export_estimates_to_csv(
    estimates: pd.DataFrame,
    path: Path,
    *,
    extra_columns: Sequence[str] = ("true_p",),
) -> int:
    """Write validated estimate rows to ``path`` and return the row count.

    Columns listed in ``extra_columns`` are appended when present.
    """

    records = estimate_records(estimates)
    extras = [column for column in extra_columns if column in estimates.columns]
    header = [*ESTIMATE_COLUMNS, *extras]
    extra_values = estimates[extras].to_numpy() if extras else None

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for index, record in enumerate(records):
            row = [getattr(record, column) for column in ESTIMATE_COLUMNS]
            if extra_values is not None:
                row.extend(extra_values[index].tolist())
            writer.writerow(["" if value is None else value for value in row])
    return len(records)


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def write_summary_json(summary: dict, path: Path) -> None:
    path.write_text(json.dumps(summary, indent=2, default=_json_default), encoding="utf-8")
