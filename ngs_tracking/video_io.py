"""
Video writing utilities for play animations.

Wraps OpenCV's ``VideoWriter`` so the visualization code only deals with
frames. Tracking data is sampled at 10 Hz, so writing one rendered image per
tracking frame at 10 fps replays a play in real time.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any, Tuple

import cv2
import numpy as np

Frame = np.ndarray[Any, np.dtype[np.uint8]]

TRACKING_FPS = 10.0


@dataclass
class VideoWriter:
    """
    Simple OpenCV-based video writer.

    Attributes:
        path: Path to the output video file.
        fps: Target frames per second.
        frame_size: (width, height) in pixels.
        codec: FourCC codec string, e.g., "mp4v", "XVID".
    """

    path: Path
    fps: float = TRACKING_FPS
    frame_size: Tuple[int, int] = (1200, 533)
    codec: str = "mp4v"

    def __post_init__(self) -> None:
        if self.fps <= 0:
            raise ValueError("fps must be positive")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fourcc = cv2.VideoWriter_fourcc(*self.codec)  # type: ignore[attr-defined]
        w, h = self.frame_size
        self._writer = cv2.VideoWriter(str(self.path), fourcc, self.fps, (w, h))  # type: ignore[arg-type]
        if not self._writer.isOpened():
            raise IOError(f"Could not open video writer: {self.path}")
        self.frames_written = 0

    def write(self, frame: Frame) -> None:
        """
        Write a single BGR frame; it must match ``frame_size``.
        """
        h, w = frame.shape[:2]
        if (w, h) != tuple(self.frame_size):
            raise ValueError(f"Frame size {(w, h)} does not match writer size {tuple(self.frame_size)}.")
        self._writer.write(frame)
        self.frames_written += 1

    def release(self) -> None:
        """
        Release the underlying video writer.
        """
        self._writer.release()

    def __enter__(self) -> "VideoWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release()


def open_video_writer(
    path: Path,
    frame_size: Tuple[int, int],
    fps: float = TRACKING_FPS,
    codec: str = "mp4v",
) -> VideoWriter:
    """
    Convenience function to create a :class:`VideoWriter`.
    """
    return VideoWriter(path=path, fps=fps, frame_size=frame_size, codec=codec)
