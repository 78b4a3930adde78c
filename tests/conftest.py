from pathlib import Path
from typing import List

import pytest

from ngs_tracking.data_structures import PositionRecord, TeamSide

TRACKING_HEADER = "time,x,y,s,dis,dir,event,nflId,displayName,jerseyNumber,team,frame.id,gameId,playId"


def record(player_id, side, x, y, frame_id=1, play_id=1, game_id=1, name=None) -> PositionRecord:
    return PositionRecord(
        game_id=game_id,
        play_id=play_id,
        frame_id=frame_id,
        player_id=player_id,
        display_name=name if name is not None else f"Player {player_id}",
        team_side=side,
        x=float(x),
        y=float(y),
    )


@pytest.fixture
def make_record():
    return record


@pytest.fixture
def scenario_records() -> List[PositionRecord]:
    return [
        record(1, TeamSide.HOME, 0, 0, name="A"),
        record(2, TeamSide.HOME, 10, 0, name="B"),
        record(3, TeamSide.AWAY, 1, 0, name="C"),
        record(4, TeamSide.AWAY, 20, 20, name="D"),
    ]


@pytest.fixture
def tracking_csv(tmp_path: Path) -> Path:
    """
    Two plays of one game: a pass play (1 frame before the throw, 1 at the throw)
    and a kickoff frame. Includes the football and a row without coordinates.
    """
    lines = [
        TRACKING_HEADER,
        # play 100, frame 1
        "t1,50.0,20.0,1.0,0.1,90,ball_snap,10,Rob Gronkowski,87,home,1,2017090700,100",
        "t1,52.0,20.0,1.0,0.1,90,ball_snap,11,Tom Brady,12,home,1,2017090700,100",
        "t1,51.0,23.0,1.0,0.1,90,ball_snap,20,Marcus Peters,22,away,1,2017090700,100",
        "t1,60.0,30.0,1.0,0.1,90,ball_snap,21,Eric Berry,29,away,1,2017090700,100",
        "t1,52.5,20.0,NA,NA,NA,ball_snap,NA,football,NA,ball,1,2017090700,100",
        # play 100, frame 2 (throw)
        "t2,55.0,20.0,1.0,0.1,90,pass_forward,10,Rob Gronkowski,87,home,2,2017090700,100",
        "t2,50.0,20.0,1.0,0.1,90,pass_forward,11,Tom Brady,12,home,2,2017090700,100",
        "t2,55.0,23.0,1.0,0.1,90,pass_forward,20,Marcus Peters,22,away,2,2017090700,100",
        "t2,60.0,30.0,1.0,0.1,90,pass_forward,21,Eric Berry,29,away,2,2017090700,100",
        "t2,50.5,20.0,NA,NA,NA,pass_forward,NA,football,NA,ball,2,2017090700,100",
        # play 44, frame 1 (kickoff received), one player without coordinates
        "t3,10.0,25.0,1.0,0.1,90,kick_received,30,Dion Lewis,33,home,1,2017090700,44",
        "t3,30.0,25.0,1.0,0.1,90,kick_received,40,Harrison Butker,7,away,1,2017090700,44",
        "t3,NA,NA,NA,NA,NA,kick_received,41,Tyreek Hill,10,away,1,2017090700,44",
        "t3,10.0,25.0,NA,NA,NA,kick_received,NA,football,NA,ball,1,2017090700,44",
    ]
    path = tmp_path / "tracking_gameId_2017090700.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def games_csv(tmp_path: Path) -> Path:
    path = tmp_path / "games.csv"
    path.write_text(
        "season,week,gameDate,gameId,gameTimeEastern,homeTeamAbbr,visitorTeamAbbr\n"
        "2017,1,09/07/2017,2017090700,20:30:00,NE,KC\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def plays_csv(tmp_path: Path) -> Path:
    path = tmp_path / "plays.csv"
    path.write_text(
        "gameId,playId,quarter,down,yardsToGo,possessionTeam,PassLength,PassResult,playDescription\n"
        '2017090700,100,1,1,10,NE,5,C,"(14:00) T.Brady pass short left to R.Gronkowski to KC 40 for 5 yards (M.Peters)."\n'
        '2017090700,44,1,0,0,KC,NA,NA,"H.Butker kicks 65 yards from KC 35 to NE 0. D.Lewis to NE 25 for 25 yards."\n',
        encoding="utf-8",
    )
    return path
