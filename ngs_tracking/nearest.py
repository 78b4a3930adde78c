"""
Nearest-opponent distance for every player at every tracking frame.

For each ``(game_id, play_id, frame_id)`` group the computer scans the
opposing side for every player and keeps the closest one. Within a group of
``n`` players this is O(n^2) time and O(n) space, with no intermediate
pairwise table. Groups hold about 22 players in this domain, which keeps the
scan cheap; the bound does not carry over to large groups, so groups larger
than ``large_group_threshold`` are logged as a warning.

Groups are independent of each other. With ``workers > 1`` they are handed to
a thread pool; the output is identical to the single-threaded output.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from math import isfinite, sqrt
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, overload

from .data_structures import GroupKey, NearestOpponentResult, PlayerKey, PositionRecord

logger = logging.getLogger(__name__)

EXPECTED_GROUP_SIZE = 22


class InvalidRecordError(ValueError):
    """
    Raised when input records violate the tracking data contract.
    """


class ComputationCancelled(RuntimeError):
    """
    Raised when the caller's cancel event is set between groups.
    """


@dataclass(frozen=True)
class NoOpponentCondition:
    """
    A frame group in which one side had no opponents on the field.

    This is a diagnostic, not an error: the records of ``team_side`` in the
    group produced no result.

    Attributes:
        game_id, play_id, frame_id: The affected group.
        team_side: The side whose records were skipped.
        record_count: Number of records skipped.
    """

    game_id: int
    play_id: int
    frame_id: int
    team_side: str
    record_count: int


@dataclass(frozen=True)
class NearestOpponentResults(Sequence):  # type: ignore[type-arg]
    """
    Results of one :meth:`NearestOpponentComputer.compute` call.

    Behaves as an immutable sequence of :class:`NearestOpponentResult` sorted by
    ``(game_id, play_id, frame_id, player_id)``; groups without opponents are
    listed on ``skipped``.
    """

    results: Tuple[NearestOpponentResult, ...] = ()
    skipped: Tuple[NoOpponentCondition, ...] = ()

    @overload
    def __getitem__(self, index: int) -> NearestOpponentResult: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[NearestOpponentResult, ...]: ...

    def __getitem__(self, index):  # type: ignore[no-untyped-def]
        return self.results[index]

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[NearestOpponentResult]:
        return iter(self.results)

    @property
    def skipped_count(self) -> int:
        """
        Total number of input records that produced no result.
        """
        return sum(c.record_count for c in self.skipped)

    def to_index(self) -> Dict[PlayerKey, NearestOpponentResult]:
        return index_results(self.results)


def index_results(results: Iterable[NearestOpponentResult]) -> Dict[PlayerKey, NearestOpponentResult]:
    """
    Map ``(game_id, play_id, frame_id, player_id)`` to its result for joining.
    """
    return {r.key: r for r in results}


def _squared_distance(a: PositionRecord, b: PositionRecord) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def group_records(records: Iterable[PositionRecord]) -> Dict[GroupKey, List[PositionRecord]]:
    """
    Partition records by ``(game_id, play_id, frame_id)``.

    Raises:
        InvalidRecordError: If a record has no ``player_id`` or non-finite coordinates.
    """
    groups: Dict[GroupKey, List[PositionRecord]] = defaultdict(list)
    for record in records:
        if record.player_id is None:
            raise InvalidRecordError(
                f"Record for {record.display_name!r} in group {record.group_key} has no player_id; "
                "filter non-player entities before computing distances."
            )
        if not (isfinite(record.x) and isfinite(record.y)):
            raise InvalidRecordError(
                f"Player {record.player_id} in group {record.group_key} has non-finite coordinates."
            )
        groups[record.group_key].append(record)
    return groups


def nearest_in_group(
    key: GroupKey,
    members: Sequence[PositionRecord],
) -> Tuple[List[NearestOpponentResult], List[NoOpponentCondition]]:
    """
    Resolve the nearest opponent for every member of one frame group.

    Ties on distance go to the candidate with the lowest ``player_id``.
    """
    sides: Dict[str, List[PositionRecord]] = defaultdict(list)
    seen_ids = set()
    for record in members:
        if record.player_id in seen_ids:
            raise InvalidRecordError(f"Player {record.player_id} appears more than once in group {key}.")
        seen_ids.add(record.player_id)
        sides[str(getattr(record.team_side, "value", record.team_side))].append(record)

    if len(sides) > 2:
        raise InvalidRecordError(
            f"Group {key} has {len(sides)} team sides ({sorted(sides)}); expected at most 2."
        )

    game_id, play_id, frame_id = key
    results: List[NearestOpponentResult] = []
    skipped: List[NoOpponentCondition] = []
    for side, own in sides.items():
        opponents = [r for other, recs in sides.items() if other != side for r in recs]
        if not opponents:
            skipped.append(
                NoOpponentCondition(
                    game_id=game_id,
                    play_id=play_id,
                    frame_id=frame_id,
                    team_side=side,
                    record_count=len(own),
                )
            )
            continue
        for record in own:
            best = min(opponents, key=lambda c: (_squared_distance(record, c), c.player_id))
            results.append(
                NearestOpponentResult(
                    game_id=game_id,
                    play_id=play_id,
                    frame_id=frame_id,
                    player_id=int(record.player_id),  # type: ignore[arg-type]
                    nearest_player_id=int(best.player_id),  # type: ignore[arg-type]
                    nearest_display_name=best.display_name,
                    nearest_x=best.x,
                    nearest_y=best.y,
                    distance=sqrt(_squared_distance(record, best)),
                )
            )
    return results, skipped


@dataclass
class NearestOpponentComputer:
    """
    Computes the nearest opposing player for each player row.

    Attributes:
        workers: Number of threads used across frame groups (1 = no pool).
        large_group_threshold: Group size above which a warning is logged.
    """

    workers: int = 1
    large_group_threshold: int = 64

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be >= 1")

    def compute(
        self,
        records: Iterable[PositionRecord],
        cancel_event: Optional[threading.Event] = None,
    ) -> NearestOpponentResults:
        """
        Compute one :class:`NearestOpponentResult` per qualifying record.

        Args:
            records: Player positions in any order. Non-player rows must be
                filtered out beforehand.
            cancel_event: Optional event checked between groups.

        Returns:
            Results sorted by ``(game_id, play_id, frame_id, player_id)``, plus
            the groups in which a side had no opponents.

        Raises:
            InvalidRecordError: On a null ``player_id``, a duplicated player in
                a group, or a group with more than two team sides.
            ComputationCancelled: If ``cancel_event`` is set.
        """
        groups = group_records(records)
        keys = sorted(groups)
        for key in keys:
            size = len(groups[key])
            if size > self.large_group_threshold:
                logger.warning(
                    "Group %s has %d players (expected about %d); nearest-opponent scan is quadratic in group size.",
                    key,
                    size,
                    EXPECTED_GROUP_SIZE,
                )

        def _run(key: GroupKey) -> Tuple[List[NearestOpponentResult], List[NoOpponentCondition]]:
            if cancel_event is not None and cancel_event.is_set():
                raise ComputationCancelled(f"Cancelled before group {key}.")
            return nearest_in_group(key, groups[key])

        if self.workers == 1 or len(keys) < 2:
            outputs = [_run(key) for key in keys]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                outputs = list(pool.map(_run, keys))

        results: List[NearestOpponentResult] = []
        skipped: List[NoOpponentCondition] = []
        for group_results, group_skipped in outputs:
            results.extend(group_results)
            skipped.extend(group_skipped)
        results.sort(key=lambda r: r.key)

        for condition in skipped:
            logger.info(
                "No opponents in game %d play %d frame %d; skipped %d %s record(s).",
                condition.game_id,
                condition.play_id,
                condition.frame_id,
                condition.record_count,
                condition.team_side,
            )
        return NearestOpponentResults(results=tuple(results), skipped=tuple(skipped))


def compute_nearest_opponents(
    records: Iterable[PositionRecord],
    workers: int = 1,
) -> NearestOpponentResults:
    """
    Convenience wrapper around :class:`NearestOpponentComputer`.
    """
    return NearestOpponentComputer(workers=workers).compute(records)
