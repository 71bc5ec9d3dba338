"""Geography composition: membership, framing and border clipping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from .bbox import frame_bounding_box, validate_aspect_ratio, validate_zoom
from .io_borders import BorderData, BorderRepository, validate_resolution
from .member_states import MemberStateTable, load_member_states, resolve_membership
from .models import BoundingBox, Geography, GeographyOptions

DEFAULT_ZOOM = 0.9

_LOGGER = logging.getLogger("eumaps.geography")


@dataclass(frozen=True, slots=True)
class ReferenceData:
    """Read-only member state table and border datasets, loaded once."""

    member_states: MemberStateTable
    borders: BorderData

    @classmethod
    def load(
        cls,
        *,
        borders_high: Path,
        borders_low: Path,
        member_states: Path | None = None,
        name_column: str | None = None,
    ) -> ReferenceData:
        table = load_member_states(member_states)
        borders = BorderRepository(borders_high, borders_low, name_column=name_column).load()
        _LOGGER.info(
            "Loaded reference data: %d member states, %d high / %d low resolution features",
            len(table),
            len(borders.high),
            len(borders.low),
        )
        return cls(member_states=table, borders=borders)


def create_geography(
    reference: ReferenceData,
    date: Any = None,
    subset: Sequence[str] | None = None,
    aspect_ratio: float | None = None,
    zoom: float = DEFAULT_ZOOM,
    show_non_member_states: bool = True,
    insets: Sequence[str] | None = None,
    resolution: str = "high",
) -> Geography:
    """Build the geography for one map.

    The map is framed on every member state active on `date`, or on the
    members of `subset` active on that date. `subset` only affects framing;
    every feature inside the final box is drawn.
    """
    table = reference.member_states
    inset_names = table.validate_names(insets, "insets")
    resolution = validate_resolution(resolution)
    zoom = validate_zoom(zoom)
    if aspect_ratio is not None:
        aspect_ratio = validate_aspect_ratio(aspect_ratio)

    membership = resolve_membership(table, date, subset)
    borders = reference.borders.for_resolution(resolution)
    framing_names = sorted(membership.framing_names)

    framing_features = borders[borders["country"].isin(framing_names) & ~borders["outlying"]]
    bounding_box, effective_ratio = frame_bounding_box(
        framing_features.geometry,
        zoom=zoom,
        aspect_ratio=aspect_ratio,
    )

    features = clip_features(borders, bounding_box)
    features = tag_features(
        features,
        active_names=sorted(membership.active_names),
        framing_names=framing_names if subset is not None else None,
    )
    if not show_non_member_states:
        features = features[features["member_state"]].reset_index(drop=True)

    _LOGGER.debug(
        "Geography for %s: %d features, box=%s, aspect_ratio=%.3f",
        membership.date.isoformat(),
        len(features),
        bounding_box.to_dict(),
        effective_ratio,
    )
    options = GeographyOptions(
        date=membership.date,
        subset=tuple(table.validate_names(subset, "subset")) if subset is not None else None,
        aspect_ratio=effective_ratio,
        zoom=zoom,
        show_non_member_states=bool(show_non_member_states),
        insets=inset_names,
        resolution=resolution,
    )
    return Geography(
        features=features,
        bounding_box=bounding_box,
        aspect_ratio=effective_ratio,
        options=options,
        framing=frozenset(framing_names),
    )


def clip_features(features: Any, bounding_box: BoundingBox) -> Any:
    """Cut every feature at the box boundary and drop the ones left empty.

    Geometries are repaired with a zero-width buffer first so that
    self-intersecting rings do not break the clip.
    """
    clipped = features.copy()
    clipped["geometry"] = features.geometry.buffer(0).clip_by_rect(*bounding_box.as_bounds())
    keep = ~(clipped.geometry.isna() | clipped.geometry.is_empty)
    return clipped[keep].reset_index(drop=True)


def tag_features(
    features: Any,
    *,
    active_names: Sequence[str],
    framing_names: Sequence[str] | None,
) -> Any:
    """Add `member_state` and `subset` flags and drop the `outlying` column."""
    tagged = features.copy()
    tagged["member_state"] = tagged["country"].isin(list(active_names)) & ~tagged["outlying"]
    if framing_names is None:
        tagged["subset"] = tagged["member_state"].copy()
    else:
        tagged["subset"] = tagged["country"].isin(list(framing_names))
    return tagged[["country", "member_state", "subset", "geometry"]]
