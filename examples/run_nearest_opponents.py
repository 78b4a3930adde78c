"""
Demonstration of the data flow: tracking CSV -> player positions -> nearest opponents -> snapshot.

Assumptions:
- The 2017 opener tracking file is available at data/tracking_gameId_2017090700.csv
  (or pass the raw GitHub URL instead of the local path).
- Play 44 is the opening kickoff; its ``kick_received`` frame is rendered with
  each returner-side player linked to their nearest opponent.
"""

from __future__ import annotations

from pathlib import Path

from ngs_tracking.nearest import NearestOpponentComputer
from ngs_tracking.tracking_data import (
    NearestOpponentStore,
    filter_player_rows,
    load_tracking_rows,
    rows_for_event,
    to_position_records,
)
from ngs_tracking.visualization import render_frame, save_image


def main() -> None:
    tracking_path = Path("data/tracking_gameId_2017090700.csv")
    if not tracking_path.exists():
        raise FileNotFoundError(
            f"Expected tracking data at {tracking_path}. Download it from the Big Data Bowl repository."
        )

    # 1) Load the game and keep players with coordinates.
    tracking = filter_player_rows(load_tracking_rows(tracking_path))

    # 2) Start small: the opening kickoff at the moment it was received.
    kickoff = rows_for_event(tracking, "kick_received", play_id=44)
    sides = {r.team for r in kickoff}
    print(f"Kickoff frame: {len(kickoff)} players, sides {sorted(sides)}")

    computer = NearestOpponentComputer()
    kickoff_results = computer.compute(to_position_records(kickoff))
    for result in kickoff_results:
        print(
            f"  {result.player_id} -> {result.nearest_display_name} "
            f"({result.nearest_player_id}): {result.distance:.2f} yd"
        )

    # 3) Every frame of every play, stored once so it can be joined back later.
    results = computer.compute(to_position_records(tracking))
    NearestOpponentStore(source=tracking_path, results=list(results)).to_csv(
        Path("outputs/stats/nearest_opponents.csv")
    )
    print(f"Nearest opponents: {len(results)} rows, {results.skipped_count} skipped")

    # 4) Draw the kickoff frame with the receiving side linked to its nearest opponents.
    img = render_frame(kickoff, kickoff_results, link_side="home", title="play 44 kick_received")
    save_image(Path("outputs/figures/kickoff_nearest.png"), img)


if __name__ == "__main__":
    main()
