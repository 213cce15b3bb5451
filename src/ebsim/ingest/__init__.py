"""Input adapters that normalize raw batting data."""

from .batting import (
    DEFAULT_BATTING_MAPPING,
    BattingRow,
    IngestReport,
    load_batting_csv,
    load_player_ids,
    load_players_from_csv,
    records_to_frame,
    rows_to_records,
)

__all__ = [
    "DEFAULT_BATTING_MAPPING",
    "BattingRow",
    "IngestReport",
    "load_batting_csv",
    "load_player_ids",
    "load_players_from_csv",
    "records_to_frame",
    "rows_to_records",
]
