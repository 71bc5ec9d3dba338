"""Categorical overlay: fuse a geography and a palette into plot data."""

from __future__ import annotations

from typing import Any

from .models import (
    MISSING,
    NON_MEMBER,
    NOT_APPLICABLE,
    Category,
    CategoryKind,
    Geography,
    LegendEntry,
    Palette,
    PlotData,
)

# Override categories are appended after the bins in this order when present.
_OVERRIDE_ORDER = (MISSING, NOT_APPLICABLE, NON_MEMBER)


def classify_feature(name: str, *, member_state: bool, palette: Palette) -> Category:
    """Resolve one feature's category.

    Precedence: non-member > not applicable > missing > assigned bin.
    """
    if not member_state:
        return NON_MEMBER
    if name in palette.not_applicable:
        return NOT_APPLICABLE
    assigned = palette.bin_for(name)
    if assigned is None:
        return MISSING
    return Category.for_bin(assigned.index)


def build_legend(palette: Palette, present: set[Category]) -> tuple[LegendEntry, ...]:
    """All bins, then whichever override categories are present."""
    entries = [
        LegendEntry(category=Category.for_bin(item.index), label=item.label, color=color)
        for item, color in zip(palette.bins, palette.color_ramp)
    ]
    for category in _OVERRIDE_ORDER:
        if category in present:
            label, color = _override_style(category, palette)
            entries.append(LegendEntry(category=category, label=label, color=color))
    return tuple(entries)


def prepare_plot_data(geography: Geography, palette: Palette) -> PlotData:
    """Label every feature of `geography` and order the legend colors."""
    features = geography.features
    categories = [
        classify_feature(str(name), member_state=bool(member), palette=palette)
        for name, member in zip(features["country"], features["member_state"])
    ]
    legend = build_legend(palette, set(categories))
    position = {entry.category: idx for idx, entry in enumerate(legend)}

    labeled = features.copy()
    labeled["category"] = [category.kind.value for category in categories]
    labeled["bin_index"] = [category.bin_index for category in categories]
    labeled["label"] = [legend[position[category]].label for category in categories]
    labeled["color"] = [legend[position[category]].color for category in categories]
    labeled["_order"] = [position[category] for category in categories]
    labeled = (
        labeled.sort_values("_order", kind="stable")
        .drop(columns="_order")
        .reset_index(drop=True)
    )
    return PlotData(
        features=labeled,
        bounding_box=geography.bounding_box,
        legend=legend,
    )


def _override_style(category: Category, palette: Palette) -> tuple[str, str]:
    kind = category.kind
    if kind is CategoryKind.MISSING:
        return (palette.label_missing, palette.color_missing)
    if kind is CategoryKind.NOT_APPLICABLE:
        return (palette.label_not_applicable, palette.color_not_applicable)
    if kind is CategoryKind.NON_MEMBER:
        return (palette.label_non_member_state, palette.color_non_member_state)
    raise ValueError(f"Not an override category: {category!r}")


def features_for(plot_data: PlotData, entry: LegendEntry) -> Any:
    """Rows of `plot_data.features` belonging to one legend entry."""
    features = plot_data.features
    mask = features["category"] == entry.category.kind.value
    if entry.category.kind is CategoryKind.BIN:
        mask &= features["bin_index"] == entry.category.bin_index
    return features[mask]
