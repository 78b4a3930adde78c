"""
Targeted-receiver separation at the time of throw.

Separation is the distance from the targeted receiver to the nearest
defender at the ``pass_forward`` frame. The targeted receiver is not a column
in the plays table; it is parsed from the play description
(``"T.Brady pass short left to R.Gronkowski to KC 20 ..."``) and matched
against the display names of the offensive players on the field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .data_structures import GameInfo, NearestOpponentResult, PlayInfo, TrackingRow
from .nearest import index_results

PASS_FORWARD_EVENT = "pass_forward"
PASS_RESULT_LABELS = {"C": "Complete", "I": "Incomplete"}

_TARGET_PATTERN = re.compile(r"pass.*to [A-Z]\.(\S*)")


@dataclass(frozen=True)
class ReceiverSeparation:
    """
    Separation of one targeted receiver at the moment the ball was thrown.
    """

    game_id: int
    play_id: int
    frame_id: int
    player_id: int
    display_name: str
    target: str
    pass_result: str
    pass_length: Optional[float]
    separation: float


@dataclass(frozen=True)
class SeparationSummary:
    """
    Distribution of separation (yards) for one pass result.
    """

    count: int
    mean: float
    median: float
    q1: float
    q3: float
    min: float
    max: float


def parse_target_name(description: str) -> Optional[str]:
    """
    Extract the targeted receiver's last name from a play description.

    The last ``"pass ... to X."`` in the text wins; the following token,
    with periods removed, is the name. Returns ``None`` when the play
    description names no target.
    """
    match = _TARGET_PATTERN.search(description or "")
    if match is None:
        return None
    name = match.group(1).replace(".", "")
    return name or None


def is_offense(team: str, possession_team: str, game: GameInfo) -> bool:
    """
    Whether a ``home``/``away`` row belongs to the team in possession.
    """
    if team == "home":
        return possession_team == game.home_team_abbr
    if team == "away":
        return possession_team == game.visitor_team_abbr
    return False


def receiver_separation(
    rows: Sequence[TrackingRow],
    results: Sequence[NearestOpponentResult],
    plays: Mapping[Tuple[int, int], PlayInfo],
    games: Mapping[int, GameInfo],
) -> List[ReceiverSeparation]:
    """
    Separation of the targeted receiver on every complete or incomplete pass.

    Only offensive rows at the ``pass_forward`` frame whose display name
    contains the parsed target are kept. Rows without a nearest-opponent
    result are dropped.
    """
    index = index_results(results)
    items: List[ReceiverSeparation] = []
    for r in rows:
        if r.event != PASS_FORWARD_EVENT or r.nfl_id is None:
            continue
        play = plays.get((r.game_id, r.play_id))
        game = games.get(r.game_id)
        if play is None or game is None or play.pass_result not in PASS_RESULT_LABELS:
            continue
        if not is_offense(r.team, play.possession_team, game):
            continue
        target = parse_target_name(play.play_description)
        if target is None or target not in r.display_name:
            continue
        nearest = index.get((r.game_id, r.play_id, r.frame_id, r.nfl_id))
        if nearest is None:
            continue
        items.append(
            ReceiverSeparation(
                game_id=r.game_id,
                play_id=r.play_id,
                frame_id=r.frame_id,
                player_id=r.nfl_id,
                display_name=r.display_name,
                target=target,
                pass_result=PASS_RESULT_LABELS[play.pass_result],  # type: ignore[index]
                pass_length=play.pass_length,
                separation=nearest.distance,
            )
        )
    return items


def summarize_separation(items: Sequence[ReceiverSeparation]) -> Dict[str, SeparationSummary]:
    """
    Per pass result, the five-number summary and mean of separation.
    """
    grouped: Dict[str, List[float]] = {}
    for item in items:
        grouped.setdefault(item.pass_result, []).append(item.separation)

    summaries: Dict[str, SeparationSummary] = {}
    for label in sorted(grouped):
        values = np.asarray(grouped[label], dtype=np.float64)
        q1, median, q3 = np.percentile(values, [25, 50, 75])
        summaries[label] = SeparationSummary(
            count=int(values.size),
            mean=float(values.mean()),
            median=float(median),
            q1=float(q1),
            q3=float(q3),
            min=float(values.min()),
            max=float(values.max()),
        )
    return summaries
