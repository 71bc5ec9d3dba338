"""Palette binning: evenly spaced bins, interpolated ramp and override colors."""

from __future__ import annotations

import logging
import math
from typing import Any, Literal, Sequence

import numpy as np

from .colors import color_ramp, convert_color
from .errors import (
    DuplicateNames,
    InvalidColorCount,
    InvalidInput,
    LengthMismatch,
    ValueOutOfRange,
)
from .member_states import MemberStateTable, default_member_states
from .models import Bin, Palette

COUNT_COLORS_MIN = 2
COUNT_COLORS_MAX = 10

DEFAULT_COLOR_MISSING = (0.75, 0.75, 0.75)
DEFAULT_COLOR_NOT_APPLICABLE = (0.85, 0.85, 0.85)
DEFAULT_COLOR_NON_MEMBER_STATE = (0.95, 0.95, 0.95)
DEFAULT_LABEL_MISSING = "Missing"
DEFAULT_LABEL_NOT_APPLICABLE = "Not applicable"
DEFAULT_LABEL_NON_MEMBER_STATE = "Not a member state"

OutOfRangePolicy = Literal["missing", "error"]

_LOGGER = logging.getLogger("eumaps.palette")


def create_palette(
    member_states: Sequence[str],
    values: Sequence[float | None],
    value_min: float,
    value_max: float,
    count_colors: int,
    color_low: Any,
    color_high: Any,
    color_mid: Any | None = None,
    not_applicable: Sequence[str] | None = None,
    color_missing: Any = DEFAULT_COLOR_MISSING,
    color_not_applicable: Any = DEFAULT_COLOR_NOT_APPLICABLE,
    color_non_member_state: Any = DEFAULT_COLOR_NON_MEMBER_STATE,
    label_missing: str = DEFAULT_LABEL_MISSING,
    label_not_applicable: str = DEFAULT_LABEL_NOT_APPLICABLE,
    label_non_member_state: str = DEFAULT_LABEL_NON_MEMBER_STATE,
    out_of_range: OutOfRangePolicy = "missing",
    table: MemberStateTable | None = None,
) -> Palette:
    """Map member state values onto `count_colors` evenly spaced bins.

    Values that are missing, NaN, or outside `[value_min, value_max]` stay
    unassigned and are shaded as missing. Pass `out_of_range="error"` to
    reject out-of-range values instead.
    """
    names = [str(name) for name in member_states]
    values = list(values)
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise DuplicateNames(
            "The argument 'member_states' cannot include repeated member state names: "
            + ", ".join(duplicates)
        )
    if len(names) != len(values):
        raise LengthMismatch(
            "The arguments 'member_states' and 'values' need to have the same length "
            f"({len(names)} != {len(values)})"
        )
    count_colors = validate_count_colors(count_colors)
    lower, upper = _validate_value_range(value_min, value_max)
    if out_of_range not in ("missing", "error"):
        raise InvalidInput(f"out_of_range must be 'missing' or 'error', got {out_of_range!r}")

    table = default_member_states() if table is None else table
    not_applicable_names = frozenset(table.validate_names(not_applicable, "not_applicable"))

    anchors = [color_low, color_high] if color_mid is None else [color_low, color_mid, color_high]
    ramp = color_ramp(anchors, count_colors)

    breaks = make_breaks(lower, upper, count_colors)
    bins = make_bins(breaks)
    assignments: dict[str, int | None] = {}
    unassigned: list[str] = []
    for name, value, index in zip(names, values, assign_bins(values, breaks)):
        if index is None and _is_value(value):
            if out_of_range == "error":
                raise ValueOutOfRange(
                    f"Value {value!r} for '{name}' is outside [{lower:g}, {upper:g}]"
                )
            unassigned.append(name)
        assignments[name] = index
    if unassigned:
        _LOGGER.warning(
            "Values outside [%g, %g] are shaded as missing: %s",
            lower,
            upper,
            ", ".join(unassigned),
        )

    return Palette(
        assignments=assignments,
        bins=bins,
        color_ramp=ramp,
        color_missing=convert_color(color_missing),
        color_not_applicable=convert_color(color_not_applicable),
        color_non_member_state=convert_color(color_non_member_state),
        label_missing=str(label_missing),
        label_not_applicable=str(label_not_applicable),
        label_non_member_state=str(label_non_member_state),
        not_applicable=not_applicable_names,
    )


def validate_count_colors(count_colors: Any) -> int:
    if isinstance(count_colors, bool) or not isinstance(count_colors, (int, float)):
        raise InvalidColorCount(f"count_colors must be an integer, got {count_colors!r}")
    if isinstance(count_colors, float) and not count_colors.is_integer():
        raise InvalidColorCount(f"count_colors must be an integer, got {count_colors!r}")
    count = int(count_colors)
    if count < COUNT_COLORS_MIN:
        raise InvalidColorCount(f"The minimum value for 'count_colors' is {COUNT_COLORS_MIN}.")
    if count > COUNT_COLORS_MAX:
        raise InvalidColorCount(f"The maximum value for 'count_colors' is {COUNT_COLORS_MAX}.")
    return count


def make_breaks(value_min: float, value_max: float, count_colors: int) -> tuple[float, ...]:
    """Return `count_colors + 1` evenly spaced edges from min to max inclusive."""
    edges = np.linspace(value_min, value_max, count_colors + 1)
    return tuple(float(edge) for edge in edges)


def make_bins(breaks: Sequence[float]) -> tuple[Bin, ...]:
    edge_labels = format_breaks(breaks)
    last = len(breaks) - 2
    out: list[Bin] = []
    for idx in range(len(breaks) - 1):
        closing = "]" if idx == last else ")"
        out.append(
            Bin(
                index=idx,
                lower=breaks[idx],
                upper=breaks[idx + 1],
                label=f"[{edge_labels[idx]}, {edge_labels[idx + 1]}{closing}",
                closed_right=idx == last,
            )
        )
    return tuple(out)


def assign_bins(values: Sequence[Any], breaks: Sequence[float]) -> list[int | None]:
    """Index of the half-open bin holding each value; the last bin includes the max.

    Missing, NaN and out-of-range values map to None.
    """
    numbers = np.array(
        [float(value) if _is_value(value) else np.nan for value in values], dtype=float
    )
    edges = np.asarray(breaks, dtype=float)
    indexes = np.digitize(numbers, edges[1:-1], right=False)
    with np.errstate(invalid="ignore"):
        inside = (numbers >= edges[0]) & (numbers <= edges[-1])
    return [int(index) if ok else None for index, ok in zip(indexes, inside)]


def format_breaks(breaks: Sequence[float], min_digits: int = 3) -> tuple[str, ...]:
    """Format edges with the fewest significant digits that keep them distinct."""
    for digits in range(min_digits, 16):
        labels = tuple(_format_number(value, digits) for value in breaks)
        if len(set(labels)) == len(labels):
            return labels
    return tuple(repr(float(value)) for value in breaks)


def _format_number(value: float, digits: int) -> str:
    text = f"{value:.{digits}g}"
    return "0" if text == "-0" else text


def _is_value(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(number)


def _validate_value_range(value_min: Any, value_max: Any) -> tuple[float, float]:
    try:
        lower = float(value_min)
        upper = float(value_max)
    except (TypeError, ValueError) as exc:
        raise InvalidInput("value_min and value_max must be numbers") from exc
    if not (math.isfinite(lower) and math.isfinite(upper)):
        raise InvalidInput("value_min and value_max must be finite")
    if lower >= upper:
        raise InvalidInput(f"value_min ({lower:g}) must be less than value_max ({upper:g})")
    return (lower, upper)
