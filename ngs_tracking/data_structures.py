"""
Core data structures for player tracking, play metadata, and nearest-opponent results.

Coordinates follow the Next Gen Stats convention: ``x`` runs along the long
axis of the field (0-120 yards, end zones included) and ``y`` across it
(0-53.3 yards). Tracking is sampled at 10 frames per second. Rows for the
football carry ``team == "ball"`` and no ``nflId``; those rows are kept in
:class:`TrackingRow` but never become a :class:`PositionRecord`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from math import isnan
from typing import Optional, Tuple

GroupKey = Tuple[int, int, int]
PlayerKey = Tuple[int, int, int, int]


class TeamSide(str, Enum):
    """
    Which side of the game a player belongs to.
    """

    HOME = "home"
    AWAY = "away"


@dataclass(frozen=True)
class PositionRecord:
    """
    One player's position at one tracking instant.

    Attributes:
        game_id: Game identifier.
        play_id: Play identifier, unique within a game.
        frame_id: Frame index within the play (1-based in the raw data).
        player_id: ``nflId`` of the player; ``None`` for non-player entities.
        display_name: Player name as shown in the tracking feed.
        team_side: ``home`` or ``away``.
        x: Position along the field length in yards.
        y: Position across the field width in yards.
    """

    game_id: int
    play_id: int
    frame_id: int
    player_id: Optional[int]
    display_name: str
    team_side: TeamSide
    x: float
    y: float

    @property
    def group_key(self) -> GroupKey:
        return (self.game_id, self.play_id, self.frame_id)


@dataclass(frozen=True)
class NearestOpponentResult:
    """
    Nearest opposing player for one player at one frame.

    Attributes:
        game_id, play_id, frame_id, player_id: Key of the reference player row.
        nearest_player_id: ``nflId`` of the closest opponent.
        nearest_display_name: Name of the closest opponent.
        nearest_x, nearest_y: Position of the closest opponent in yards.
        distance: Euclidean distance to the closest opponent in yards.
    """

    game_id: int
    play_id: int
    frame_id: int
    player_id: int
    nearest_player_id: int
    nearest_display_name: str
    nearest_x: float
    nearest_y: float
    distance: float

    @property
    def key(self) -> PlayerKey:
        return (self.game_id, self.play_id, self.frame_id, self.player_id)


@dataclass
class TrackingRow:
    """
    A single raw row of the tracking table.

    Every measurement is optional because the raw feed contains ``NA`` cells
    (the football has no ``nflId``/``jerseyNumber`` and some frames have no
    coordinates).
    """

    game_id: int
    play_id: int
    frame_id: int
    nfl_id: Optional[int]
    display_name: str
    jersey_number: Optional[int]
    team: str
    x: Optional[float]
    y: Optional[float]
    s: Optional[float] = None
    dis: Optional[float] = None
    dir: Optional[float] = None
    event: Optional[str] = None
    time: Optional[str] = None

    @property
    def is_player(self) -> bool:
        return self.nfl_id is not None and self.display_name != "football"

    @property
    def has_coordinates(self) -> bool:
        if self.x is None or self.y is None:
            return False
        return not (isnan(self.x) or isnan(self.y))

    @property
    def group_key(self) -> GroupKey:
        return (self.game_id, self.play_id, self.frame_id)


@dataclass
class GameInfo:
    """
    Game-level metadata from ``games.csv``.
    """

    game_id: int
    home_team_abbr: str
    visitor_team_abbr: str
    season: Optional[int] = None
    week: Optional[int] = None
    game_date: Optional[str] = None


@dataclass
class PlayInfo:
    """
    Play-level metadata from ``plays.csv``.

    Attributes:
        pass_result: ``C`` (complete), ``I`` (incomplete), ``R`` (run),
            ``S`` (sack) or ``None`` for non-scrimmage plays.
        pass_length: Air yards of the pass, when recorded.
    """

    game_id: int
    play_id: int
    possession_team: str
    play_description: str
    pass_result: Optional[str] = None
    pass_length: Optional[float] = None
    quarter: Optional[int] = None
    down: Optional[int] = None
    yards_to_go: Optional[int] = None


@dataclass(frozen=True)
class FieldMeta:
    """
    Field layout in yards.

    Attributes:
        length_yd: Goal line to goal line plus both end zones.
        width_yd: Sideline to sideline (160 feet).
        end_zone_yd: Depth of each end zone.
        hash_marks_yd: Distance of the inbound lines from the near sideline.
    """

    length_yd: float = 120.0
    width_yd: float = 160.0 / 3.0
    end_zone_yd: float = 10.0
    hash_marks_yd: Tuple[float, float] = (23.36667, 29.96667)


NFL_FIELD = FieldMeta()
