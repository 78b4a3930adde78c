from pathlib import Path

import pytest

from ngs_tracking.data_structures import NearestOpponentResult, TeamSide, TrackingRow
from ngs_tracking.nearest import InvalidRecordError, NearestOpponentComputer
from ngs_tracking.tracking_data import (
    NearestOpponentStore,
    attach_nearest,
    filter_player_rows,
    load_games,
    load_plays,
    load_tracking_rows,
    rows_for_event,
    rows_for_play,
    summarize_tracking,
    to_position_records,
)


def test_load_tracking_rows_parses_na_cells(tracking_csv: Path):
    rows = load_tracking_rows(tracking_csv)
    assert len(rows) == 14

    gronk = rows[0]
    assert gronk.nfl_id == 10
    assert gronk.display_name == "Rob Gronkowski"
    assert gronk.jersey_number == 87
    assert gronk.team == "home"
    assert (gronk.game_id, gronk.play_id, gronk.frame_id) == (2017090700, 100, 1)
    assert gronk.event == "ball_snap"
    assert gronk.is_player

    ball = rows[4]
    assert ball.nfl_id is None
    assert ball.jersey_number is None
    assert ball.s is None
    assert not ball.is_player

    hill = rows[12]
    assert hill.x is None and hill.y is None
    assert not hill.has_coordinates


def test_load_tracking_rows_accepts_camel_case_frame_column(tmp_path: Path):
    path = tmp_path / "tracking.csv"
    path.write_text(
        "gameId,playId,nflId,displayName,frameId,team,x,y\n"
        "1,2,3,Someone,7,away,10.5,20.25\n",
        encoding="utf-8",
    )
    (row,) = load_tracking_rows(path)
    assert row.frame_id == 7
    assert row.team == "away"
    assert row.event is None
    assert (row.x, row.y) == (10.5, 20.25)


def test_load_tracking_rows_requires_core_columns(tmp_path: Path):
    path = tmp_path / "tracking.csv"
    path.write_text("gameId,playId,x,y\n1,2,3,4\n", encoding="utf-8")
    with pytest.raises(ValueError, match="nflId"):
        load_tracking_rows(path)


def test_load_tracking_rows_does_not_read_club_as_side(tmp_path: Path):
    path = tmp_path / "tracking.csv"
    path.write_text(
        "gameId,playId,nflId,displayName,frameId,club,x,y\n"
        "1,2,3,Someone,7,KC,10.5,20.25\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="team"):
        load_tracking_rows(path)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_tracking_rows(tmp_path / "nope.csv")


def test_filter_player_rows_drops_ball_and_missing_coordinates(tracking_csv: Path):
    players = filter_player_rows(load_tracking_rows(tracking_csv))
    assert len(players) == 10
    assert all(r.display_name != "football" for r in players)
    assert 41 not in {r.nfl_id for r in players}


def test_to_position_records(tracking_csv: Path):
    records = to_position_records(filter_player_rows(load_tracking_rows(tracking_csv)))
    assert {r.team_side for r in records} == {TeamSide.HOME, TeamSide.AWAY}
    first = records[0]
    assert first.player_id == 10
    assert first.group_key == (2017090700, 100, 1)


def test_to_position_records_rejects_unknown_team():
    row = TrackingRow(
        game_id=1, play_id=1, frame_id=1, nfl_id=5, display_name="X", jersey_number=1, team="ball", x=1.0, y=1.0
    )
    with pytest.raises(InvalidRecordError):
        to_position_records([row])


def test_summarize_tracking(tracking_csv: Path):
    summary = summarize_tracking(load_tracking_rows(tracking_csv))
    assert summary.n_rows == 14
    assert summary.n_games == 1
    assert summary.n_plays == 2
    assert summary.players_per_play == {(2017090700, 44): 3, (2017090700, 100): 4}
    assert summary.short_plays == [(2017090700, 44), (2017090700, 100)]
    assert list(summary.event_counts.items()) == [("kick_received", 4), ("ball_snap", 5), ("pass_forward", 5)]
    assert summary.missing_counts["nfl_id"] == 3
    assert summary.missing_counts["x"] == 1
    assert summary.missing_counts["s"] == 4
    assert summary.non_player_names == {"football": 3}


def test_summarize_tracking_counts_missing_text_cells(tmp_path: Path):
    path = tmp_path / "tracking.csv"
    path.write_text(
        "gameId,playId,nflId,displayName,frameId,team,x,y\n"
        "1,2,3,Someone,7,home,10.5,20.25\n"
        "1,2,4,NA,7,NA,11.0,21.0\n"
        "1,2,5,,7,,12.0,22.0\n",
        encoding="utf-8",
    )
    summary = summarize_tracking(load_tracking_rows(path))
    assert summary.missing_counts["display_name"] == 2
    assert summary.missing_counts["team"] == 2
    assert summary.missing_counts["nfl_id"] == 0


def test_selectors(tracking_csv: Path):
    rows = load_tracking_rows(tracking_csv)
    assert len(rows_for_play(rows, 44)) == 4
    assert len(rows_for_play(rows, 44, game_id=1)) == 0
    assert {r.frame_id for r in rows_for_event(rows, "pass_forward", play_id=100)} == {2}


def test_attach_nearest_left_joins(tracking_csv: Path):
    rows = load_tracking_rows(tracking_csv)
    results = NearestOpponentComputer().compute(to_position_records(filter_player_rows(rows)))
    joined = attach_nearest(rows, results)

    assert len(joined) == len(rows)
    matched = {row.nfl_id: result for row, result in joined if result is not None and row.frame_id == 2}
    assert matched[10].nearest_player_id == 20
    assert matched[10].distance == pytest.approx(3.0)
    unmatched = [row for row, result in joined if result is None]
    assert {r.display_name for r in unmatched} == {"football", "Tyreek Hill"}


def test_nearest_store_csv_and_json(tmp_path: Path):
    results = [
        NearestOpponentResult(1, 2, 3, 4, 5, "Someone, Jr.", 10.5, 20.0, 2.5),
        NearestOpponentResult(1, 2, 3, 5, 4, "Other", 9.0, 18.0, 2.5),
    ]
    store = NearestOpponentStore(source="tracking.csv", results=results)

    csv_path = tmp_path / "stats" / "nearest.csv"
    store.to_csv(csv_path)
    assert NearestOpponentStore.from_csv(csv_path).results == results

    json_path = tmp_path / "stats" / "nearest.json"
    store.to_json(json_path)
    loaded = NearestOpponentStore.from_json(json_path)
    assert loaded.source == "tracking.csv"
    assert loaded.results == results


def test_load_games_and_plays(games_csv: Path, plays_csv: Path):
    games = load_games(games_csv)
    game = games[2017090700]
    assert (game.home_team_abbr, game.visitor_team_abbr) == ("NE", "KC")
    assert (game.season, game.week) == (2017, 1)

    plays = load_plays(plays_csv)
    pass_play = plays[(2017090700, 100)]
    assert pass_play.possession_team == "NE"
    assert pass_play.pass_result == "C"
    assert pass_play.pass_length == 5.0
    assert "R.Gronkowski" in pass_play.play_description

    kickoff = plays[(2017090700, 44)]
    assert kickoff.pass_result is None
    assert kickoff.pass_length is None
