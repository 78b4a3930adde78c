"""
Top-level package for the NGS tracking workshop toolkit.

This package provides a small pipeline for exploring NFL Next Gen Stats
player-tracking data:
- Loading tracking, games, and plays tables from CSV.
- Summarizing the tracking table and filtering it down to players.
- Computing the nearest opposing player (and distance) per player per frame.
- Measuring targeted-receiver separation at the time of throw.
- Rendering field snapshots, play animations, and Voronoi diagrams.

See individual submodules for more detailed documentation.
"""

from .data_structures import NearestOpponentResult, PositionRecord, TeamSide
from .nearest import (
    ComputationCancelled,
    InvalidRecordError,
    NearestOpponentComputer,
    NearestOpponentResults,
    NoOpponentCondition,
)

__all__ = [
    "ComputationCancelled",
    "InvalidRecordError",
    "NearestOpponentComputer",
    "NearestOpponentResult",
    "NearestOpponentResults",
    "NoOpponentCondition",
    "PositionRecord",
    "TeamSide",
]
