"""
Loading, filtering, summarizing, and persisting Next Gen Stats tracking tables.

The workshop data follows the 2018 Big Data Bowl schema: one tracking file per
game (``tracking_gameId_<id>.csv``) plus ``games.csv`` and ``plays.csv``.
Missing cells are written as ``NA``. The football appears as its own entity
(``displayName == "football"``, ``team == "ball"``) with no ``nflId``; some
player rows have no coordinates. Both kinds of rows must be dropped before
player positions are handed to :mod:`ngs_tracking.nearest`.
"""

from __future__ import annotations

import csv
import io
import json
import urllib.request
from collections import Counter, defaultdict
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, TextIO, Tuple

from .data_structures import (
    GameInfo,
    NearestOpponentResult,
    PlayInfo,
    PositionRecord,
    TeamSide,
    TrackingRow,
)
from .nearest import InvalidRecordError, index_results

Source = str | Path

EXPECTED_PLAYERS_PER_PLAY = 22
NA_VALUES = {"", "NA", "NaN", "nan", "null", "NULL"}

# Raw column names, keyed by the TrackingRow field they populate. Later
# seasons renamed a few columns to camelCase; both spellings are accepted.
TRACKING_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "time": ("time",),
    "x": ("x",),
    "y": ("y",),
    "s": ("s",),
    "dis": ("dis",),
    "dir": ("dir",),
    "event": ("event",),
    "nfl_id": ("nflId",),
    "display_name": ("displayName",),
    "jersey_number": ("jerseyNumber",),
    "team": ("team",),
    "frame_id": ("frame.id", "frameId"),
    "game_id": ("gameId",),
    "play_id": ("playId",),
}
REQUIRED_TRACKING_FIELDS = ("x", "y", "nfl_id", "display_name", "team", "frame_id", "game_id", "play_id")

NEAREST_FIELDNAMES = [
    "game_id",
    "play_id",
    "frame_id",
    "player_id",
    "nearest_player_id",
    "nearest_display_name",
    "nearest_x",
    "nearest_y",
    "distance",
]


def _is_na(value: Optional[str]) -> bool:
    return value is None or value.strip() in NA_VALUES


def _opt_str(value: Optional[str]) -> Optional[str]:
    return None if _is_na(value) else value.strip()  # type: ignore[union-attr]


def _opt_float(value: Optional[str]) -> Optional[float]:
    return None if _is_na(value) else float(value)  # type: ignore[arg-type]


def _opt_int(value: Optional[str]) -> Optional[int]:
    # Integer columns are sometimes written as floats ("2495454.0").
    return None if _is_na(value) else int(float(value))  # type: ignore[arg-type]


def _req_int(row: Mapping[str, Optional[str]], column: str) -> int:
    value = row.get(column)
    if _is_na(value):
        raise ValueError(f"Column {column!r} is missing a value in row {dict(row)!r}.")
    return int(float(value))  # type: ignore[arg-type]


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


@contextmanager
def _open_source(source: Source) -> Iterator[TextIO]:
    """
    Open a local CSV path or an ``http(s)://`` URL as text.
    """
    text = str(source)
    if text.startswith(("http://", "https://")):
        with urllib.request.urlopen(text) as response:  # noqa: S310
            yield io.TextIOWrapper(response, encoding="utf-8", newline="")
        return
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Data file {path} not found.")
    with path.open("r", newline="", encoding="utf-8") as f:
        yield f


def _resolve_columns(fieldnames: Sequence[str], source: Source) -> Dict[str, Optional[str]]:
    resolved: Dict[str, Optional[str]] = {}
    for attr, candidates in TRACKING_COLUMNS.items():
        resolved[attr] = next((c for c in candidates if c in fieldnames), None)
    missing = [attr for attr in REQUIRED_TRACKING_FIELDS if resolved[attr] is None]
    if missing:
        expected = ", ".join(TRACKING_COLUMNS[attr][0] for attr in missing)
        raise ValueError(f"Tracking file {source} is missing required column(s): {expected}.")
    return resolved


def load_tracking_rows(source: Source) -> List[TrackingRow]:
    """
    Load every row of a tracking CSV, football and incomplete rows included.
    """
    rows: List[TrackingRow] = []
    with _open_source(source) as f:
        reader = csv.DictReader(f)
        columns = _resolve_columns(reader.fieldnames or [], source)

        def cell(raw: Mapping[str, Optional[str]], attr: str) -> Optional[str]:
            column = columns[attr]
            return raw.get(column) if column is not None else None

        for raw in reader:
            rows.append(
                TrackingRow(
                    game_id=_req_int(raw, columns["game_id"]),  # type: ignore[arg-type]
                    play_id=_req_int(raw, columns["play_id"]),  # type: ignore[arg-type]
                    frame_id=_req_int(raw, columns["frame_id"]),  # type: ignore[arg-type]
                    nfl_id=_opt_int(cell(raw, "nfl_id")),
                    display_name=_opt_str(cell(raw, "display_name")) or "",
                    jersey_number=_opt_int(cell(raw, "jersey_number")),
                    team=_opt_str(cell(raw, "team")) or "",
                    x=_opt_float(cell(raw, "x")),
                    y=_opt_float(cell(raw, "y")),
                    s=_opt_float(cell(raw, "s")),
                    dis=_opt_float(cell(raw, "dis")),
                    dir=_opt_float(cell(raw, "dir")),
                    event=_opt_str(cell(raw, "event")),
                    time=_opt_str(cell(raw, "time")),
                )
            )
    return rows


def load_games(source: Source) -> Dict[int, GameInfo]:
    """
    Load ``games.csv`` keyed by ``gameId``.
    """
    games: Dict[int, GameInfo] = {}
    with _open_source(source) as f:
        for raw in csv.DictReader(f):
            game_id = _req_int(raw, "gameId")
            games[game_id] = GameInfo(
                game_id=game_id,
                home_team_abbr=_opt_str(raw.get("homeTeamAbbr")) or "",
                visitor_team_abbr=_opt_str(raw.get("visitorTeamAbbr")) or "",
                season=_opt_int(raw.get("season")),
                week=_opt_int(raw.get("week")),
                game_date=_opt_str(raw.get("gameDate")),
            )
    return games


def load_plays(source: Source) -> Dict[Tuple[int, int], PlayInfo]:
    """
    Load ``plays.csv`` keyed by ``(gameId, playId)``.

    ``PassLength``/``PassResult`` are the 2018 column names; the later
    ``passLength``/``passResult`` spellings are read as a fallback.
    """
    plays: Dict[Tuple[int, int], PlayInfo] = {}
    with _open_source(source) as f:
        for raw in csv.DictReader(f):
            game_id = _req_int(raw, "gameId")
            play_id = _req_int(raw, "playId")
            plays[(game_id, play_id)] = PlayInfo(
                game_id=game_id,
                play_id=play_id,
                possession_team=_opt_str(raw.get("possessionTeam")) or "",
                play_description=_opt_str(raw.get("playDescription")) or "",
                pass_result=_opt_str(raw.get("PassResult", raw.get("passResult"))),
                pass_length=_opt_float(raw.get("PassLength", raw.get("passLength"))),
                quarter=_opt_int(raw.get("quarter")),
                down=_opt_int(raw.get("down")),
                yards_to_go=_opt_int(raw.get("yardsToGo")),
            )
    return plays


def filter_player_rows(rows: Sequence[TrackingRow]) -> List[TrackingRow]:
    """
    Keep only player rows that carry coordinates.
    """
    return [r for r in rows if r.is_player and r.has_coordinates]


def to_position_records(rows: Sequence[TrackingRow]) -> List[PositionRecord]:
    """
    Convert filtered player rows into :class:`PositionRecord` objects.

    Raises:
        InvalidRecordError: If a player row is not on the home or away side.
    """
    records: List[PositionRecord] = []
    for r in rows:
        try:
            side = TeamSide(r.team)
        except ValueError as exc:
            raise InvalidRecordError(
                f"Player {r.nfl_id} ({r.display_name}) in group {r.group_key} has team {r.team!r}; "
                "expected 'home' or 'away'."
            ) from exc
        records.append(
            PositionRecord(
                game_id=r.game_id,
                play_id=r.play_id,
                frame_id=r.frame_id,
                player_id=r.nfl_id,
                display_name=r.display_name,
                team_side=side,
                x=float(r.x),  # type: ignore[arg-type]
                y=float(r.y),  # type: ignore[arg-type]
            )
        )
    return records


def rows_for_play(rows: Sequence[TrackingRow], play_id: int, game_id: Optional[int] = None) -> List[TrackingRow]:
    return [r for r in rows if r.play_id == play_id and (game_id is None or r.game_id == game_id)]


def rows_for_event(rows: Sequence[TrackingRow], event: str, play_id: Optional[int] = None) -> List[TrackingRow]:
    """
    Rows tagged with ``event`` (e.g. ``kick_received``), optionally for one play.
    """
    return [r for r in rows if r.event == event and (play_id is None or r.play_id == play_id)]


def attach_nearest(
    rows: Sequence[TrackingRow],
    results: Sequence[NearestOpponentResult],
) -> List[Tuple[TrackingRow, Optional[NearestOpponentResult]]]:
    """
    Left-join nearest-opponent results onto tracking rows.

    Rows without a result (the football, rows without coordinates, or frames
    where the player had no opponent) are paired with ``None``.
    """
    index = index_results(results)
    joined: List[Tuple[TrackingRow, Optional[NearestOpponentResult]]] = []
    for r in rows:
        match = None
        if r.nfl_id is not None:
            match = index.get((r.game_id, r.play_id, r.frame_id, r.nfl_id))
        joined.append((r, match))
    return joined


@dataclass
class TrackingSummary:
    """
    Quick exploratory facts about a tracking table.

    Attributes:
        n_rows: Number of rows.
        n_columns: Number of raw columns represented by :class:`TrackingRow`.
        n_games: Unique games.
        n_plays: Unique (game, play) pairs.
        players_per_play: Unique ``nflId`` count per (game, play).
        short_plays: Plays whose player count differs from 22.
        event_counts: Event tag counts, ascending.
        missing_counts: Count of ``NA`` or empty cells per column, ascending.
            Text columns load missing cells as ``""``, so both are counted.
        non_player_names: Display names on rows with no ``nflId``.
    """

    n_rows: int
    n_columns: int
    n_games: int
    n_plays: int
    players_per_play: Dict[Tuple[int, int], int] = field(default_factory=dict)  # type: ignore[misc]
    short_plays: List[Tuple[int, int]] = field(default_factory=list)  # type: ignore[misc]
    event_counts: Dict[str, int] = field(default_factory=dict)  # type: ignore[misc]
    missing_counts: Dict[str, int] = field(default_factory=dict)  # type: ignore[misc]
    non_player_names: Dict[str, int] = field(default_factory=dict)  # type: ignore[misc]


def summarize_tracking(rows: Sequence[TrackingRow]) -> TrackingSummary:
    """
    Summarize row counts, plays, player counts per play, events, and missing values.
    """
    column_names = list(TRACKING_COLUMNS.keys())
    players: Dict[Tuple[int, int], set[int]] = defaultdict(set)
    plays = set()
    events: Counter[str] = Counter()
    missing: Counter[str] = Counter({name: 0 for name in column_names})
    non_players: Counter[str] = Counter()

    for r in rows:
        plays.add((r.game_id, r.play_id))
        if r.nfl_id is not None:
            players[(r.game_id, r.play_id)].add(r.nfl_id)
        else:
            non_players[r.display_name] += 1
        if r.event is not None:
            events[r.event] += 1
        for name in column_names:
            if getattr(r, name) in (None, ""):
                missing[name] += 1

    players_per_play = {key: len(players.get(key, ())) for key in sorted(plays)}
    return TrackingSummary(
        n_rows=len(rows),
        n_columns=len(column_names),
        n_games=len({game_id for game_id, _ in plays}),
        n_plays=len(plays),
        players_per_play=players_per_play,
        short_plays=[key for key, n in players_per_play.items() if n != EXPECTED_PLAYERS_PER_PLAY],
        event_counts=dict(sorted(events.items(), key=lambda kv: (kv[1], kv[0]))),
        missing_counts=dict(sorted(missing.items(), key=lambda kv: (kv[1], kv[0]))),
        non_player_names=dict(non_players.most_common()),
    )


@dataclass
class NearestOpponentStore:
    """
    Container for persisting a nearest-opponent table.

    The table only needs to be computed once per game and can then be stored
    in a flat file and joined back onto tracking rows.

    Attributes:
        source: Optional reference to the tracking file the table was built from.
        results: The nearest-opponent rows.
    """

    source: str | Path | None = None
    results: List[NearestOpponentResult] = field(default_factory=list)  # type: ignore[misc]

    def to_json(self, path: Path) -> None:
        _ensure_parent(path)
        payload: Dict[str, Any] = {
            "source": str(self.source) if self.source is not None else None,
            "results": [asdict(r) for r in sorted(self.results, key=lambda r: r.key)],
        }
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    @classmethod
    def from_json(cls, path: Path) -> "NearestOpponentStore":
        with path.open("r", encoding="utf-8") as f:
            data: Mapping[str, Any] = json.load(f)
        results = [_result_from_mapping(entry) for entry in data.get("results", [])]
        return cls(source=data.get("source"), results=results)

    def to_csv(self, path: Path) -> None:
        """
        Serialize results to CSV, one row per player per frame.
        """
        _ensure_parent(path)
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=NEAREST_FIELDNAMES)
            writer.writeheader()
            for r in sorted(self.results, key=lambda r: r.key):
                writer.writerow(asdict(r))

    @classmethod
    def from_csv(cls, path: Path, source: str | Path | None = None) -> "NearestOpponentStore":
        with path.open("r", newline="", encoding="utf-8") as f:
            results = [_result_from_mapping(row) for row in csv.DictReader(f)]
        return cls(source=source, results=results)


def _result_from_mapping(entry: Mapping[str, Any]) -> NearestOpponentResult:
    return NearestOpponentResult(
        game_id=int(entry["game_id"]),
        play_id=int(entry["play_id"]),
        frame_id=int(entry["frame_id"]),
        player_id=int(entry["player_id"]),
        nearest_player_id=int(entry["nearest_player_id"]),
        nearest_display_name=str(entry["nearest_display_name"]),
        nearest_x=float(entry["nearest_x"]),
        nearest_y=float(entry["nearest_y"]),
        distance=float(entry["distance"]),
    )
