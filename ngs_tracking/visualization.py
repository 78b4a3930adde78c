"""
Visualization helpers for tracking frames, play animations, and analyses.

Field views are rendered top-down with OpenCV as BGR ``uint8`` images: the
field runs left to right (``x``), sidelines are the top and bottom edges.
Colors follow the workshop game (NE at home in navy, KC away in red, the
football in brown). The separation box plot uses matplotlib without pyplot
so nothing needs a display.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, cast

import cv2
import numpy as np
from matplotlib.figure import Figure

from .data_structures import NearestOpponentResult, PositionRecord, TrackingRow
from .nearest import index_results
from .separation import ReceiverSeparation
from .utils.geometry import FieldProjection, play_window
from .video_io import TRACKING_FPS, open_video_writer

Frame = np.ndarray[Any, np.dtype[np.uint8]]
BGR = Tuple[int, int, int]

FIELD_COLOR: BGR = (34, 139, 34)
END_ZONE_COLOR: BGR = (24, 110, 24)
LINE_COLOR: BGR = (255, 255, 255)

# fill, outline, radius in yards
TEAM_STYLES: Dict[str, Tuple[BGR, BGR, float]] = {
    "home": ((68, 34, 0), (48, 12, 198), 0.9),
    "away": ((55, 24, 227), (0, 0, 0), 0.9),
    "ball": ((33, 67, 101), (33, 67, 101), 0.5),
}
DEFAULT_STYLE: Tuple[BGR, BGR, float] = ((128, 128, 128), (0, 0, 0), 0.9)


def draw_field(projection: FieldProjection) -> Frame:
    """
    Draw the field background: end zones, yard lines, hash marks, and numbers.
    """
    field = projection.field
    canvas = np.full((projection.height_px, projection.width_px, 3), FIELD_COLOR, dtype=np.uint8)

    goal_left, goal_right = field.end_zone_yd, field.length_yd - field.end_zone_yd
    for start, end in ((0.0, goal_left), (goal_right, field.length_yd)):
        p1 = projection.to_px(start, field.width_yd)
        p2 = projection.to_px(end, 0.0)
        cv2.rectangle(canvas, p1, p2, END_ZONE_COLOR, -1)

    for yard in np.arange(goal_left, goal_right + 0.1, 5.0):
        if not projection.x_min <= yard <= projection.x_max:
            continue
        thickness = 2 if yard in (goal_left, goal_right) else 1
        cv2.line(canvas, projection.to_px(yard, 0.0), projection.to_px(yard, field.width_yd), LINE_COLOR, thickness)

    tick = max(1, int(round(0.7 * projection.px_per_yard)))
    hash_rows = (0.0, *field.hash_marks_yd, field.width_yd)
    for yard in range(int(goal_left) + 1, int(goal_right)):
        if yard % 5 == 0 or not projection.x_min <= yard <= projection.x_max:
            continue
        for y in hash_rows:
            u, v = projection.to_px(float(yard), y)
            direction = -1 if y > field.width_yd / 2 else 1
            cv2.line(canvas, (u, v), (u, v - direction * tick), LINE_COLOR, 1)

    font_scale = projection.px_per_yard / 20.0
    for yard in range(int(goal_left) + 10, int(goal_right), 10):
        if not projection.x_min <= yard <= projection.x_max:
            continue
        number = yard - 10 if yard <= 60 else 110 - yard
        text = str(number)
        (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1)
        for y in (12.0, field.width_yd - 12.0):
            u, v = projection.to_px(float(yard), y)
            cv2.putText(
                canvas,
                text,
                (u - tw // 2, v + th // 2),
                cv2.FONT_HERSHEY_SIMPLEX,
                font_scale,
                LINE_COLOR,
                1,
                cv2.LINE_AA,
            )
    return canvas


def draw_players(canvas: Frame, projection: FieldProjection, rows: Sequence[TrackingRow]) -> Frame:
    """
    Draw players (and the football) with jersey numbers; rows without coordinates are skipped.
    """
    vis = canvas.copy()
    # Ball last so it stays visible on top of the players.
    for row in sorted(rows, key=lambda r: r.team == "ball"):
        if not row.has_coordinates:
            continue
        fill, outline, radius_yd = TEAM_STYLES.get(row.team, DEFAULT_STYLE)
        center = projection.to_px(cast(float, row.x), cast(float, row.y))
        radius = max(2, int(round(radius_yd * projection.px_per_yard)))
        cv2.circle(vis, center, radius, fill, -1, cv2.LINE_AA)
        cv2.circle(vis, center, radius, outline, 1, cv2.LINE_AA)
        if row.jersey_number is not None:
            text = str(row.jersey_number)
            scale = projection.px_per_yard / 30.0
            (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, 1)
            cv2.putText(
                vis,
                text,
                (center[0] - tw // 2, center[1] + th // 2),
                cv2.FONT_HERSHEY_SIMPLEX,
                scale,
                (255, 255, 255),
                1,
                cv2.LINE_AA,
            )
    return vis


def draw_nearest_links(
    canvas: Frame,
    projection: FieldProjection,
    rows: Sequence[TrackingRow],
    results: Sequence[NearestOpponentResult],
    link_side: Optional[str] = None,
) -> Frame:
    """
    Draw a line from each player to their nearest opponent, labelled in yards.

    Args:
        link_side: Only draw links for players of this side (``home``/``away``);
            ``None`` draws links for both sides.
    """
    vis = canvas.copy()
    index = index_results(results)
    for row in rows:
        if row.nfl_id is None or not row.has_coordinates:
            continue
        if link_side is not None and row.team != link_side:
            continue
        nearest = index.get((row.game_id, row.play_id, row.frame_id, row.nfl_id))
        if nearest is None:
            continue
        p1 = projection.to_px(cast(float, row.x), cast(float, row.y))
        p2 = projection.to_px(nearest.nearest_x, nearest.nearest_y)
        cv2.line(vis, p1, p2, (0, 255, 255), 1, cv2.LINE_AA)
        mid = ((p1[0] + p2[0]) // 2, (p1[1] + p2[1]) // 2)
        cv2.putText(
            vis,
            f"{nearest.distance:.1f}",
            mid,
            cv2.FONT_HERSHEY_SIMPLEX,
            projection.px_per_yard / 30.0,
            (0, 255, 255),
            1,
            cv2.LINE_AA,
        )
    return vis


def render_frame(
    rows: Sequence[TrackingRow],
    results: Optional[Sequence[NearestOpponentResult]] = None,
    projection: Optional[FieldProjection] = None,
    link_side: Optional[str] = None,
    title: Optional[str] = None,
) -> Frame:
    """
    Render one tracking frame top-down, optionally with nearest-opponent links.

    When ``projection`` is omitted the view is framed around the rows.
    """
    if projection is None:
        x_min, x_max = play_window(r.x for r in rows if r.x is not None)
        projection = FieldProjection(x_min=x_min, x_max=x_max)
    vis = draw_field(projection)
    if results is not None:
        vis = draw_nearest_links(vis, projection, rows, results, link_side=link_side)
    vis = draw_players(vis, projection, rows)
    if title:
        cv2.putText(vis, title, (8, 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1, cv2.LINE_AA)
    return vis


def animate_play(
    rows: Sequence[TrackingRow],
    path: Path,
    fps: float = TRACKING_FPS,
    px_per_yard: float = 10.0,
    results: Optional[Sequence[NearestOpponentResult]] = None,
    codec: str = "mp4v",
) -> int:
    """
    Write a video of one play, one video frame per tracking frame.

    The view is fixed for the whole play so the field does not jump between
    frames. ``codec`` is the FourCC passed to the writer and must suit the
    container implied by ``path``. Returns the number of frames written.
    """
    if not rows:
        raise ValueError("Cannot animate a play without tracking rows.")
    frames: Dict[int, List[TrackingRow]] = defaultdict(list)
    for row in rows:
        frames[row.frame_id].append(row)

    x_min, x_max = play_window(r.x for r in rows if r.x is not None)
    projection = FieldProjection(x_min=x_min, x_max=x_max, px_per_yard=px_per_yard)
    with open_video_writer(path, frame_size=projection.size, fps=fps, codec=codec) as writer:
        for frame_id in sorted(frames):
            first = frames[frame_id][0]
            title = f"game {first.game_id} play {first.play_id} frame {frame_id}"
            writer.write(render_frame(frames[frame_id], results, projection=projection, title=title))
        return writer.frames_written


def render_voronoi(
    records: Sequence[PositionRecord],
    projection: Optional[FieldProjection] = None,
) -> Frame:
    """
    Render the Voronoi tessellation of one frame's player positions.

    Facets are drawn as paths; players are drawn on top, filled by side.
    """
    if projection is None:
        x_min, x_max = play_window(r.x for r in records)
        projection = FieldProjection(x_min=x_min, x_max=x_max)
    vis = draw_field(projection)

    visible = [r for r in records if projection.contains(r.x, r.y)]
    if len(visible) >= 2:
        subdiv = cv2.Subdiv2D((0, 0, projection.width_px + 1, projection.height_px + 1))
        for r in visible:
            u, v = projection.to_px(r.x, r.y)
            subdiv.insert((float(u), float(v)))
        facets, _centers = subdiv.getVoronoiFacetList([])
        for facet in facets:
            polygon = np.asarray(facet, dtype=np.int32).reshape(-1, 1, 2)
            cv2.polylines(vis, [polygon], True, (0, 0, 0), 1, cv2.LINE_AA)

    radius = max(2, int(round(0.6 * projection.px_per_yard)))
    for r in visible:
        side = str(getattr(r.team_side, "value", r.team_side))
        fill, _outline, _ = TEAM_STYLES.get(side, DEFAULT_STYLE)
        center = projection.to_px(r.x, r.y)
        cv2.circle(vis, center, radius, fill, -1, cv2.LINE_AA)
        cv2.circle(vis, center, radius, (0, 0, 0), 1, cv2.LINE_AA)
    return vis


def plot_separation_boxplot(
    items: Sequence[ReceiverSeparation],
    path: Path,
    title: str = "Targeted receiver separation",
) -> None:
    """
    Save a box plot of separation (yards) by pass result.
    """
    grouped: Dict[str, List[float]] = defaultdict(list)
    for item in items:
        grouped[item.pass_result].append(item.separation)
    labels = sorted(grouped)

    fig = Figure(figsize=(6, 4))
    ax = fig.subplots()
    if labels:
        ax.boxplot([grouped[label] for label in labels], patch_artist=True)
        ax.set_xticks(range(1, len(labels) + 1))
        ax.set_xticklabels(labels)
    ax.set_xlabel("Pass Result")
    ax.set_ylabel("Yards of Separation")
    ax.set_title(title)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(str(path), dpi=100, bbox_inches="tight")


def save_image(path: Path, img: Frame) -> None:
    """
    Save a rendered image to disk.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(str(path), img)
