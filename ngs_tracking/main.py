"""
Entry point for the tracking exploration pipeline.

This script wires together:
- Loading the tracking, games, and plays tables
- A quick exploratory summary of the tracking table
- Nearest-opponent distance per player per frame
- Targeted-receiver separation at the time of throw
- A field snapshot, a play animation, and a Voronoi diagram

It can be run from the command line, for example:

    python -m ngs_tracking.main \\
        --tracking_file data/tracking_gameId_2017090700.csv \\
        --games_file data/games.csv \\
        --plays_file data/plays.csv \\
        --output_dir outputs/

Defaults can also be configured via ``config.yaml``; see the comments there.
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, cast

import yaml

from .config import DEFAULT_CONFIG, Config
from .data_structures import GameInfo
from .nearest import NearestOpponentComputer
from .separation import receiver_separation, summarize_separation
from .tracking_data import (
    NearestOpponentStore,
    TrackingSummary,
    filter_player_rows,
    load_games,
    load_plays,
    load_tracking_rows,
    rows_for_event,
    rows_for_play,
    summarize_tracking,
    to_position_records,
)
from .visualization import (
    animate_play,
    plot_separation_boxplot,
    render_frame,
    render_voronoi,
    save_image,
)

logger = logging.getLogger(__name__)

# Config attributes that may be set from config.yaml, by section.
_YAML_SECTIONS: Dict[str, Dict[str, type]] = {
    "data": {"tracking_file": str, "games_file": str, "plays_file": str},
    "plays": {
        "snapshot_play_id": int,
        "snapshot_event": str,
        "animation_play_id": int,
        "voronoi_play_id": int,
        "voronoi_frame_id": int,
    },
    "rendering": {"animation_fps": float, "px_per_yard": float},
    "nearest": {"workers": int, "large_group_threshold": int},
}


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """
    Load a YAML configuration file if it exists.

    The file is optional; when missing, an empty dict is returned.
    """
    if not config_path.exists():
        return {}
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a top-level mapping.")
    return cast(Dict[str, Any], data)


def _apply_yaml_config(config: Config, yaml_cfg: Dict[str, Any]) -> None:
    """
    Copy recognized ``config.yaml`` values onto ``config``.
    """
    if yaml_cfg.get("output_dir"):
        config.output_dir = Path(str(yaml_cfg["output_dir"]))
    for section, fields in _YAML_SECTIONS.items():
        section_cfg = yaml_cfg.get(section) or {}
        if not isinstance(section_cfg, dict):
            raise ValueError(f"config.yaml section {section!r} must be a mapping.")
        for name, kind in fields.items():
            value = section_cfg.get(name)
            if value is not None:
                setattr(config, name, kind(value))


def build_config_from_args(args: argparse.Namespace) -> Config:
    """
    Construct a :class:`Config` instance from CLI arguments and optional YAML.
    """
    # Start from code defaults.
    config = Config()

    # Load optional YAML config near the project root.
    default_config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(args.config) if args.config is not None else default_config_path
    _apply_yaml_config(config, _load_yaml_config(config_path))

    # CLI > YAML > default.
    for name in (
        "tracking_file",
        "games_file",
        "plays_file",
        "snapshot_play_id",
        "snapshot_event",
        "animation_play_id",
        "voronoi_play_id",
        "voronoi_frame_id",
        "workers",
    ):
        value = getattr(args, name, None)
        if value is not None:
            setattr(config, name, value)
    if args.output_dir is not None:
        config.output_dir = Path(args.output_dir)
    config.workers = max(1, int(config.workers))
    if getattr(args, "no_animation", False):
        config.write_animation = False

    return config


def _print_tracking_summary(summary: TrackingSummary) -> None:
    print(f"Tracking rows: {summary.n_rows} x {summary.n_columns} columns")
    print(f"Games: {summary.n_games}, plays: {summary.n_plays}")
    for game_id, play_id in summary.short_plays:
        n = summary.players_per_play[(game_id, play_id)]
        print(f"  Play {play_id} (game {game_id}) has {n} players on the field")
    if summary.event_counts:
        events = ", ".join(f"{name}={count}" for name, count in summary.event_counts.items())
        print(f"Events: {events}")
    missing = {name: count for name, count in summary.missing_counts.items() if count}
    if missing:
        print("Missing values: " + ", ".join(f"{name}={count}" for name, count in missing.items()))
    if summary.non_player_names:
        names = ", ".join(f"{name or '?'}={count}" for name, count in summary.non_player_names.items())
        print(f"Rows without nflId: {names}")


def _write_rows(path: Path, rows: List[Dict[str, Any]]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


def run_pipeline(config: Config = DEFAULT_CONFIG) -> None:
    """
    Run loading, exploration, nearest-opponent, separation, and visualization steps.
    """
    config.ensure_output_dirs()

    tracking_full = load_tracking_rows(config.tracking_file)
    _print_tracking_summary(summarize_tracking(tracking_full))

    # Players only, and only rows with coordinates.
    tracking = filter_player_rows(tracking_full)
    records = to_position_records(tracking)

    computer = NearestOpponentComputer(
        workers=config.workers,
        large_group_threshold=config.large_group_threshold,
    )
    results = computer.compute(records)
    print(
        f"Nearest opponents: {len(results)} player-frames from {len(records)} records "
        f"({results.skipped_count} skipped without opponents)"
    )

    store = NearestOpponentStore(source=config.tracking_file, results=list(results))
    store.to_csv(config.stats_dir / "nearest_opponents.csv")
    store.to_json(config.stats_dir / "nearest_opponents.json")

    if config.write_separation and config.games_file and config.plays_file:
        games = load_games(config.games_file)
        plays = load_plays(config.plays_file)
        separations = receiver_separation(tracking, results, plays, games)
        if separations:
            _write_rows(config.stats_dir / "receiver_separation.csv", [asdict(s) for s in separations])
            summaries = summarize_separation(separations)
            with (config.stats_dir / "separation_summary.json").open("w", encoding="utf-8") as f:
                json.dump({label: asdict(s) for label, s in summaries.items()}, f, indent=2)
            title = _game_title(games, separations[0].game_id)
            plot_separation_boxplot(separations, config.figures_dir / "separation_boxplot.png", title=title)

            print("Targeted receiver separation at throw:")
            for label, s in summaries.items():
                print(
                    f"  {label}: n={s.count}, median {s.median:.2f} yd "
                    f"(IQR {s.q1:.2f}-{s.q3:.2f}), mean {s.mean:.2f} yd"
                )
        else:
            print("No targeted receivers found at pass_forward; skipping separation analysis.")

    snapshot_rows = rows_for_event(tracking, config.snapshot_event, play_id=config.snapshot_play_id)
    if snapshot_rows:
        frame_id = min(r.frame_id for r in snapshot_rows)
        snapshot_rows = [r for r in snapshot_rows if r.frame_id == frame_id]
        img = render_frame(
            snapshot_rows,
            results,
            title=f"play {config.snapshot_play_id} {config.snapshot_event} (frame {frame_id})",
        )
        save_image(config.figures_dir / f"play_{config.snapshot_play_id}_{config.snapshot_event}.png", img)
    else:
        logger.warning(
            "No %s event found on play %d; skipping snapshot.", config.snapshot_event, config.snapshot_play_id
        )

    if config.write_animation:
        play_rows = rows_for_play(tracking_full, config.animation_play_id)
        if play_rows:
            video_path = config.animations_dir / f"play_{config.animation_play_id}.mp4"
            n_frames = animate_play(play_rows, video_path, fps=config.animation_fps, px_per_yard=config.px_per_yard)
            print(f"Wrote {n_frames} frames to {video_path}")
        else:
            logger.warning("Play %d not found; skipping animation.", config.animation_play_id)

    if config.write_voronoi:
        voronoi_records = [
            r
            for r in records
            if r.play_id == config.voronoi_play_id and r.frame_id == config.voronoi_frame_id
        ]
        if voronoi_records:
            img = render_voronoi(voronoi_records)
            save_image(
                config.figures_dir / f"voronoi_play_{config.voronoi_play_id}_frame_{config.voronoi_frame_id}.png",
                img,
            )
        else:
            logger.warning(
                "No players on play %d frame %d; skipping Voronoi diagram.",
                config.voronoi_play_id,
                config.voronoi_frame_id,
            )


def _game_title(games: Dict[int, GameInfo], game_id: int) -> str:
    game = games.get(game_id)
    if game is None:
        return "Targeted receiver separation"
    parts = [f"{game.visitor_team_abbr} vs. {game.home_team_abbr}"]
    if game.season is not None:
        parts.append(str(game.season))
    if game.week is not None:
        parts.append(f"Week {game.week}")
    return " ".join(parts)


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entrypoint for running the full pipeline.

    Use ``python -m ngs_tracking.main --help`` for available options.
    """
    parser = argparse.ArgumentParser(
        description="NFL tracking data exploration: nearest opponents, separation, and play visuals.",
    )
    parser.add_argument("--tracking_file", type=str, help="Tracking CSV path or URL for one game.")
    parser.add_argument("--games_file", type=str, help="games.csv path or URL.")
    parser.add_argument("--plays_file", type=str, help="plays.csv path or URL.")
    parser.add_argument(
        "--output_dir",
        type=str,
        help="Directory for stats, figures, and animations.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help=(
            "Optional path to YAML config file "
            "(defaults to config.yaml in the project root)."
        ),
    )
    parser.add_argument("--snapshot_play_id", type=int, help="Play rendered as a still image.")
    parser.add_argument("--snapshot_event", type=str, help="Event whose frame is used for the still image.")
    parser.add_argument("--animation_play_id", type=int, help="Play written out as a video.")
    parser.add_argument("--voronoi_play_id", type=int, help="Play used for the Voronoi diagram.")
    parser.add_argument("--voronoi_frame_id", type=int, help="Frame used for the Voronoi diagram.")
    parser.add_argument(
        "--workers",
        type=int,
        help="Threads for the nearest-opponent computation (default 1).",
    )
    parser.add_argument(
        "--no_animation",
        action="store_true",
        help="Skip writing the play animation.",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = build_config_from_args(args)
    run_pipeline(config)


if __name__ == "__main__":
    main()
