"""Bounding-box framing: base extent, zoom expansion and aspect-ratio reshape."""

from __future__ import annotations

import math
from typing import Any

from .errors import EmptySelection, InvalidAspectRatio, InvalidZoom
from .models import BoundingBox

ZOOM_MIN = 0.5
ZOOM_MAX = 1.0
ASPECT_RATIO_MIN = 0.5
ASPECT_RATIO_MAX = 2.0


def validate_zoom(zoom: float) -> float:
    if isinstance(zoom, bool) or not isinstance(zoom, (int, float)):
        raise InvalidZoom(f"The argument 'zoom' should be a number, got {zoom!r}")
    value = float(zoom)
    if not ZOOM_MIN <= value <= ZOOM_MAX:
        raise InvalidZoom(
            f"The argument 'zoom' should be between {ZOOM_MIN} and {ZOOM_MAX}, got {value}"
        )
    return value


def validate_aspect_ratio(aspect_ratio: float) -> float:
    if isinstance(aspect_ratio, bool) or not isinstance(aspect_ratio, (int, float)):
        raise InvalidAspectRatio(
            f"The argument 'aspect_ratio' should be a number, got {aspect_ratio!r}"
        )
    value = float(aspect_ratio)
    if not ASPECT_RATIO_MIN <= value <= ASPECT_RATIO_MAX:
        raise InvalidAspectRatio(
            "The argument 'aspect_ratio' should be between "
            f"{ASPECT_RATIO_MIN} and {ASPECT_RATIO_MAX}, got {value}"
        )
    return value


def create_bounding_box(geometries: Any) -> BoundingBox:
    """Return the minimal box around a GeoSeries/GeoDataFrame of geometries."""
    if geometries is None or len(geometries) == 0:
        raise EmptySelection("No border geometry available to frame the map")
    min_x, min_y, max_x, max_y = [float(item) for item in geometries.total_bounds]
    if not all(math.isfinite(value) for value in (min_x, min_y, max_x, max_y)):
        raise EmptySelection("Border geometry used for framing is empty")
    if max_x <= min_x or max_y <= min_y:
        raise EmptySelection("Border geometry used for framing has no area")
    return BoundingBox(xmin=min_x, xmax=max_x, ymin=min_y, ymax=max_y)


def expand_bounding_box(box: BoundingBox, zoom: float) -> BoundingBox:
    """Grow every side by `(1 - zoom)` times the box width.

    The width is treated as spanning one virtual pixel, so the margin is
    measured in projected units per pixel.
    """
    zoom = validate_zoom(zoom)
    units_per_px = box.width / 1.0
    margin = units_per_px * (1.0 - zoom)
    return BoundingBox(
        xmin=box.xmin - margin,
        xmax=box.xmax + margin,
        ymin=box.ymin - margin,
        ymax=box.ymax + margin,
    )


def axis_expansion(current: float, required: float) -> float:
    """Total amount an axis must grow to reach `required`; never negative."""
    return max(required - current, 0.0)


def fit_aspect_ratio(box: BoundingBox, aspect_ratio: float) -> BoundingBox:
    """Grow the box symmetrically until `width / height == aspect_ratio`.

    Both expansions are computed from the incoming box, so at most one axis
    grows and neither ever shrinks.
    """
    aspect_ratio = validate_aspect_ratio(aspect_ratio)
    grow_x = axis_expansion(box.width, box.height * aspect_ratio) / 2.0
    grow_y = axis_expansion(box.height, box.width / aspect_ratio) / 2.0
    return BoundingBox(
        xmin=box.xmin - grow_x,
        xmax=box.xmax + grow_x,
        ymin=box.ymin - grow_y,
        ymax=box.ymax + grow_y,
    )


def frame_bounding_box(
    geometries: Any,
    *,
    zoom: float,
    aspect_ratio: float | None = None,
) -> tuple[BoundingBox, float]:
    """Run base box, zoom and optional reshape; return box and effective ratio."""
    box = expand_bounding_box(create_bounding_box(geometries), zoom)
    if aspect_ratio is None:
        return (box, box.aspect_ratio)
    aspect_ratio = validate_aspect_ratio(aspect_ratio)
    return (fit_aspect_ratio(box, aspect_ratio), aspect_ratio)
