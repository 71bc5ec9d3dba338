"""Color literal normalization and ramp interpolation."""

from __future__ import annotations

import math
import numbers
import re
from functools import lru_cache
from typing import Any, Sequence

import numpy as np

from .errors import InvalidColor

_HEX_COLOR = re.compile(r"^#?(?P<digits>[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")


def convert_color(color: Any) -> str:
    """Return `color` as an 8-digit upper-case hex string with a leading `#`.

    Accepted forms are an RGB triple or RGBA quad with channels on either the
    [0, 1] scale (every channel <= 1) or the [0, 255] scale, and a hex string
    with 6 or 8 digits, with or without `#`. Channels may come as a numpy array.
    """
    if isinstance(color, str):
        return _convert_hex(color)
    if isinstance(color, np.ndarray):
        color = color.ravel().tolist()
    if isinstance(color, Sequence) and len(color) in (3, 4):
        return _convert_rgb(color)
    raise InvalidColor(
        "Expected an RGB color as 3 or 4 numbers or a hex color string, "
        f"got {color!r}"
    )


def color_ramp(anchors: Sequence[Any], count: int) -> tuple[str, ...]:
    """Sample `count` evenly spaced colors along a linear ramp through `anchors`.

    Interpolation happens channel-wise in RGBA, the output color space, and
    both endpoints are included.
    """
    if len(anchors) < 2:
        raise InvalidColor("A color ramp needs at least two anchor colors")
    if count < 2:
        raise ValueError("A color ramp needs at least two colors")
    mcolors = _require_matplotlib_colors()
    normalized = [convert_color(anchor) for anchor in anchors]
    cmap = mcolors.LinearSegmentedColormap.from_list("eumaps_ramp", normalized, N=count)
    return tuple(
        mcolors.to_hex(cmap(index), keep_alpha=True).upper() for index in range(count)
    )


def _convert_hex(color: str) -> str:
    match = _HEX_COLOR.match(color.strip())
    if match is None:
        raise InvalidColor(f"Please enter a valid RGB or hex color, got {color!r}")
    digits = match.group("digits").upper()
    if len(digits) == 6:
        digits += "FF"
    return f"#{digits}"


def _convert_rgb(color: Sequence[Any]) -> str:
    channels: list[float] = []
    for value in color:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidColor(f"RGB channels must be numbers, got {color!r}")
        channel = float(value)
        if not math.isfinite(channel) or channel < 0.0 or channel > 255.0:
            raise InvalidColor(f"RGB channels must lie in [0, 255], got {color!r}")
        channels.append(channel)

    if all(channel <= 1.0 for channel in channels):
        scaled = channels
    else:
        scaled = [channel / 255.0 for channel in channels]
    if len(scaled) == 3:
        scaled.append(1.0)
    return _require_matplotlib_colors().to_hex(tuple(scaled), keep_alpha=True).upper()


@lru_cache(maxsize=1)
def _require_matplotlib_colors() -> Any:
    try:
        import matplotlib.colors as mcolors
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for color conversion") from exc
    return mcolors
