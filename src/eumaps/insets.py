"""Inset composition and the top-level compose call."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import Theme
from .errors import EmptySelection
from .geography import ReferenceData, create_geography
from .models import Geography, Inset, InsetPosition, MapComposition, Palette
from .plot_data import prepare_plot_data

_LOGGER = logging.getLogger("eumaps.insets")


@dataclass(frozen=True, slots=True)
class _InsetPolicy:
    aspect_ratio: float
    zoom: float
    resolution: str


_INSET_POLICY = _InsetPolicy(aspect_ratio=1.0, zoom=0.5, resolution="high")


def inset_positions(
    count: int,
    *,
    aspect_ratio: float,
    size_insets: float,
    space_between_insets: float,
) -> tuple[InsetPosition, ...]:
    """Stack `count` square insets top-to-bottom along the panel's right edge.

    Heights and gaps are fractions of the panel height; horizontal extents are
    divided by the map aspect ratio so the insets stay square.
    """
    if count < 1:
        return ()
    scale = 1.0 / aspect_ratio
    right = 1.0 - space_between_insets * scale
    left = 1.0 - (space_between_insets + size_insets) * scale
    step = space_between_insets + size_insets

    out: list[InsetPosition] = []
    for idx in range(count):
        out.append(
            InsetPosition(
                left=left,
                right=right,
                bottom=1.0 - (idx + 1) * step,
                top=1.0 - space_between_insets - idx * step,
            )
        )
    return tuple(out)


def compose_insets(
    reference: ReferenceData,
    geography: Geography,
    palette: Palette,
    theme: Theme,
) -> tuple[Inset, ...]:
    """Build the requested insets that are drawn as framed member states.

    Requested names that are not member states on the geography's date, or
    fall outside its framing subset, are skipped without error. Names with no
    border in the high resolution tier are skipped with a warning.
    """
    requested = geography.options.insets
    if not requested:
        return ()
    eligible = geography.inset_candidates()

    kept: list[tuple[str, Geography]] = []
    for name in requested:
        if name not in eligible:
            _LOGGER.debug("Skipping inset for %s: not a framed member state on the map", name)
            continue
        try:
            inset_geography = create_geography(
                reference,
                date=geography.options.date,
                subset=[name],
                aspect_ratio=_INSET_POLICY.aspect_ratio,
                zoom=_INSET_POLICY.zoom,
                show_non_member_states=geography.options.show_non_member_states,
                resolution=_INSET_POLICY.resolution,
            )
        except EmptySelection as exc:
            _LOGGER.warning("Skipping inset for %s: %s", name, exc)
            continue
        kept.append((name, inset_geography))

    positions = inset_positions(
        len(kept),
        aspect_ratio=geography.aspect_ratio,
        size_insets=theme.size_insets,
        space_between_insets=theme.space_between_insets,
    )
    return tuple(
        Inset(
            name=name,
            geography=inset_geography,
            plot_data=prepare_plot_data(inset_geography, palette),
            position=position,
        )
        for (name, inset_geography), position in zip(kept, positions)
    )


def compose_map(
    reference: ReferenceData,
    geography: Geography,
    palette: Palette,
    theme: Theme | None = None,
    title: str | None = None,
) -> MapComposition:
    """Fuse geography and palette into plot data for the map and its insets."""
    theme = Theme() if theme is None else theme
    plot_data = prepare_plot_data(geography, palette)
    insets = compose_insets(reference, geography, palette, theme)
    _LOGGER.debug(
        "Composed map: %d features, %d legend entries, %d insets",
        len(plot_data.features),
        len(plot_data.legend),
        len(insets),
    )
    return MapComposition(
        plot_data=plot_data,
        insets=insets,
        aspect_ratio=geography.aspect_ratio,
        title=title,
    )
