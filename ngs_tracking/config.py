"""
Configuration utilities for the tracking exploration pipeline.

This module centralizes configurable parameters such as:
- Paths to the tracking, games, and plays tables and the output directory.
- Which plays and frames to snapshot, animate, and tessellate.
- Nearest-opponent computation settings.

The default `Config` dataclass mirrors the workshop game (2017 season
opener, KC @ NE) and can be overridden from ``config.yaml`` or the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class Config:
    """
    High-level configuration for a single run.

    Attributes:
        tracking_file: Tracking CSV (path or URL) for one game.
        games_file: ``games.csv`` (path or URL); optional.
        plays_file: ``plays.csv`` (path or URL); optional.
        output_dir: Directory where outputs (stats, figures, animations) are stored.
        snapshot_play_id: Play rendered as a still with nearest-opponent links.
        snapshot_event: Event whose frame is used for the snapshot.
        animation_play_id: Play written out as a video.
        voronoi_play_id: Play used for the Voronoi diagram.
        voronoi_frame_id: Frame used for the Voronoi diagram.
        animation_fps: Output video frame rate (tracking is 10 Hz).
        px_per_yard: Rendering scale.
        workers: Threads used for the nearest-opponent computation.
        large_group_threshold: Frame group size that triggers a warning.
        write_animation: Whether to write the play video.
        write_voronoi: Whether to render the Voronoi diagram.
        write_separation: Whether to run the receiver separation analysis.
    """

    tracking_file: str = str(Path("data") / "tracking_gameId_2017090700.csv")
    games_file: str | None = str(Path("data") / "games.csv")
    plays_file: str | None = str(Path("data") / "plays.csv")
    output_dir: Path = Path("outputs")

    # Opening kickoff, at the frame the kick was received.
    snapshot_play_id: int = 44
    snapshot_event: str = "kick_received"
    animation_play_id: int = 44
    # Opening NE touchdown run, at the hand-off.
    voronoi_play_id: int = 345
    voronoi_frame_id: int = 28

    animation_fps: float = 10.0
    px_per_yard: float = 10.0

    workers: int = 1
    large_group_threshold: int = 64

    write_animation: bool = True
    write_voronoi: bool = True
    write_separation: bool = True

    def ensure_output_dirs(self) -> None:
        """
        Create output directories if they do not exist.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def stats_dir(self) -> Path:
        """
        Directory for nearest-opponent tables and separation stats.
        """
        path = self.output_dir / "stats"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def figures_dir(self) -> Path:
        path = self.output_dir / "figures"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def animations_dir(self) -> Path:
        path = self.output_dir / "animations"
        path.mkdir(parents=True, exist_ok=True)
        return path


DEFAULT_CONFIG = Config()
