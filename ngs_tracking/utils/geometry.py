"""
Geometry helpers for framing a play and projecting field coordinates.

This module contains the coordinate transforms shared between the
nearest-opponent analysis and the visualization components. Field
coordinates are in yards with ``x`` along the field length and ``y`` across
it; image coordinates are in pixels with the origin at the top-left.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from ..data_structures import NFL_FIELD, FieldMeta

PixelUV = Tuple[int, int]


def play_window(xs: Iterable[float], field: FieldMeta = NFL_FIELD, margin_yd: float = 10.0) -> Tuple[float, float]:
    """
    Yard range ``(x_min, x_max)`` that frames a play.

    The extent of the play is padded by ``margin_yd``, rounded to the nearest
    ten yards, and clamped to the field.
    """
    values = np.asarray([x for x in xs if x is not None], dtype=np.float64)
    values = values[~np.isnan(values)]
    if values.size == 0:
        return 0.0, field.length_yd
    x_min = max(float(np.round((values.min() - margin_yd) / 10.0) * 10.0), 0.0)
    x_max = min(float(np.round((values.max() + margin_yd) / 10.0) * 10.0), field.length_yd)
    if x_max <= x_min:
        return 0.0, field.length_yd
    return x_min, x_max


@dataclass
class FieldProjection:
    """
    Maps field coordinates (yards) to image pixels for a top-down view.

    The field is drawn horizontally: ``x`` grows to the right and ``y`` grows
    upward, so ``y = 0`` sits on the bottom edge of the image.

    Attributes:
        x_min: Leftmost yard line in view.
        x_max: Rightmost yard line in view.
        px_per_yard: Scale factor.
        field: Field dimensions.
    """

    x_min: float = 0.0
    x_max: float = NFL_FIELD.length_yd
    px_per_yard: float = 10.0
    field: FieldMeta = NFL_FIELD

    def __post_init__(self) -> None:
        if self.x_max <= self.x_min:
            raise ValueError("x_max must be greater than x_min")
        if self.px_per_yard <= 0:
            raise ValueError("px_per_yard must be positive")

    @property
    def width_px(self) -> int:
        return int(round((self.x_max - self.x_min) * self.px_per_yard))

    @property
    def height_px(self) -> int:
        return int(round(self.field.width_yd * self.px_per_yard))

    @property
    def size(self) -> Tuple[int, int]:
        """
        ``(width, height)`` in pixels, the order OpenCV video writers expect.
        """
        return self.width_px, self.height_px

    def to_px(self, x: float, y: float) -> PixelUV:
        u = (x - self.x_min) * self.px_per_yard
        v = (self.field.width_yd - y) * self.px_per_yard
        return int(round(u)), int(round(v))

    def contains(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and 0.0 <= y <= self.field.width_yd
