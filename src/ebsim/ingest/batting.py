"""Helpers to load batting CSVs and emit per-player career totals."""

from __future__ import annotations

import csv
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel

from ebsim.models import PlayerRecord


logger = logging.getLogger(__name__)

# Lahman-style Batting.csv headers.
DEFAULT_BATTING_MAPPING = {
    "player_id": "playerID",
    "hits": "H",
    "at_bats": "AB",
}

PLAYER_COLUMNS: Tuple[str, ...] = ("player_id", "hits", "at_bats")


class BattingRow(BaseModel):
    raw_id: str
    raw_hits: str
    raw_at_bats: str

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str]) -> "BattingRow":
        def extract(spec: Optional[str | Sequence[str]], *, default: str = "") -> str:
            if spec is None:
                return default
            if isinstance(spec, str):
                value = row.get(spec)
                return value.strip() if value is not None else default
            parts = [row.get(col, "").strip() for col in spec if row.get(col)]
            return " ".join(parts) if parts else default

        def parse_spec(key: str) -> Optional[str | Sequence[str]]:
            spec = mapping.get(key, DEFAULT_BATTING_MAPPING[key])
            if isinstance(spec, str) and "|" in spec:
                return tuple(part.strip() for part in spec.split("|"))
            return spec

        return cls(
            raw_id=extract(parse_spec("player_id")),
            raw_hits=extract(parse_spec("hits"), default="0"),
            raw_at_bats=extract(parse_spec("at_bats"), default="0"),
        )


@dataclass(frozen=True)
class IngestReport:
    rows_read: int
    rows_without_at_bats: int
    players_total: int
    players_kept: int
    players_below_min_at_bats: List[str]
    players_excluded: List[str]


def _parse_count(raw: str, *, column: str) -> int:
    text = raw.strip().replace(",", "")
    if not text or text.upper() in {"NA", "N/A"}:
        return 0
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"{column} '{raw}' is not numeric") from None
    if value < 0 or value != int(value):
        raise ValueError(f"{column} '{raw}' is not a non-negative whole number")
    return int(value)


def load_batting_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[BattingRow]:
    mapping = mapping or DEFAULT_BATTING_MAPPING
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = [BattingRow.from_mapping(row, mapping) for row in reader]
    return rows


def load_player_ids(path: Path, *, column: str = DEFAULT_BATTING_MAPPING["player_id"]) -> set[str]:
    """Read a set of player ids from one column of a CSV (e.g. a pitching table)."""

    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or column not in reader.fieldnames:
            raise ValueError(f"column {column!r} not found in {path}")
        return {row[column].strip() for row in reader if row.get(column)}


def rows_to_records(
    rows: Sequence[BattingRow],
    *,
    min_at_bats: int = 1,
    exclude_player_ids: Collection[str] | None = None,
) -> Tuple[List[PlayerRecord], IngestReport]:
    """Sum rows into career totals per player and drop unusable players."""

    hits_by_player: dict[str, int] = defaultdict(int)
    at_bats_by_player: dict[str, int] = defaultdict(int)
    rows_without_at_bats = 0
    for row in rows:
        if not row.raw_id:
            raise ValueError("batting row is missing a player id")
        hits = _parse_count(row.raw_hits, column="hits")
        at_bats = _parse_count(row.raw_at_bats, column="at_bats")
        if at_bats == 0:
            rows_without_at_bats += 1
            continue
        if hits > at_bats:
            raise ValueError(
                f"player {row.raw_id!r} has {hits} hits in {at_bats} at-bats on one row"
            )
        hits_by_player[row.raw_id] += hits
        at_bats_by_player[row.raw_id] += at_bats

    excluded = set(exclude_player_ids or ())
    records: List[PlayerRecord] = []
    below_min: List[str] = []
    dropped_excluded: List[str] = []
    for player_id, at_bats in at_bats_by_player.items():
        if player_id in excluded:
            dropped_excluded.append(player_id)
            continue
        if at_bats < min_at_bats:
            below_min.append(player_id)
            continue
        records.append(
            PlayerRecord(player_id=player_id, hits=hits_by_player[player_id], at_bats=at_bats)
        )

    report = IngestReport(
        rows_read=len(rows),
        rows_without_at_bats=rows_without_at_bats,
        players_total=len(at_bats_by_player),
        players_kept=len(records),
        players_below_min_at_bats=below_min,
        players_excluded=dropped_excluded,
    )
    logger.info(
        "Aggregated %s rows into %s players (%s kept)",
        report.rows_read,
        report.players_total,
        report.players_kept,
    )
    return records, report


def load_players_from_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
    min_at_bats: int = 1,
    exclude_player_ids: Collection[str] | None = None,
) -> Tuple[List[PlayerRecord], IngestReport]:
    return rows_to_records(
        load_batting_csv(path, mapping=mapping),
        min_at_bats=min_at_bats,
        exclude_player_ids=exclude_player_ids,
    )


def records_to_frame(records: Iterable[PlayerRecord]) -> pd.DataFrame:
    """Tabulate player records with one row per player."""

    frame = pd.DataFrame(
        [record.model_dump() for record in records],
        columns=list(PLAYER_COLUMNS),
    )
    return frame.astype({"player_id": str, "hits": "int64", "at_bats": "int64"})
