"""Border dataset loading interfaces."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from .errors import InvalidResolution

SOURCE_CRS = "EPSG:4326"
# LAEA Europe, the single equal-area projection used for framing and clipping.
PROJECTION_CRS = "EPSG:3035"

RESOLUTIONS = ("high", "low")

_LOGGER = logging.getLogger("eumaps.io_borders")


def _first_existing_column(columns: Iterable[str], candidates: Sequence[str]) -> str | None:
    existing = {str(col).lower(): str(col) for col in columns}
    for candidate in candidates:
        match = existing.get(candidate.lower())
        if match:
            return match
    return None


def _to_flag(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().casefold() in {"1", "true", "yes", "y"}
    try:
        if value != value:  # NaN
            return False
    except (TypeError, ValueError):
        return False
    return bool(value)


def validate_resolution(resolution: str) -> str:
    if resolution not in RESOLUTIONS:
        raise InvalidResolution(
            f"The argument 'resolution' should be 'high' or 'low', got {resolution!r}"
        )
    return resolution


@dataclass(frozen=True, slots=True)
class BorderData:
    """Both border tiers, normalized and projected to EPSG:3035.

    Each frame has exactly the columns `country`, `outlying` and `geometry`.
    """

    high: Any
    low: Any

    NAME_COLUMNS = ("country", "member_state", "NAME", "NAME_EN", "ADMIN", "SOVEREIGNT")
    OUTLYING_COLUMNS = ("outlying", "is_outlying")

    @classmethod
    def from_frames(cls, high: Any, low: Any, *, name_column: str | None = None) -> BorderData:
        return cls(
            high=cls._normalize_frame(high, tier="high", name_column=name_column),
            low=cls._normalize_frame(low, tier="low", name_column=name_column),
        )

    def for_resolution(self, resolution: str) -> Any:
        return self.high if validate_resolution(resolution) == "high" else self.low

    @classmethod
    def _normalize_frame(cls, frame: Any, *, tier: str, name_column: str | None) -> Any:
        gpd = _require_geopandas()
        name_col = name_column or _first_existing_column(frame.columns, cls.NAME_COLUMNS)
        if name_col is None or name_col not in frame.columns:
            cols = ", ".join(str(c) for c in frame.columns)
            raise ValueError(
                f"Could not detect country name column in {tier} resolution border data. "
                f"Available columns: {cols}"
            )
        outlying_col = _first_existing_column(frame.columns, cls.OUTLYING_COLUMNS)
        if outlying_col is None:
            _LOGGER.debug("No outlying column in %s resolution border data; assuming 0", tier)

        if frame.crs is None:
            frame = frame.set_crs(SOURCE_CRS)
        countries = [str(value).strip() for value in frame[name_col]]
        outlying = (
            [_to_flag(value) for value in frame[outlying_col]]
            if outlying_col is not None
            else [False] * len(frame)
        )
        normalized = gpd.GeoDataFrame(
            {"country": countries, "outlying": outlying},
            geometry=list(frame.geometry),
            crs=frame.crs,
        )
        keep = ~(normalized.geometry.isna() | normalized.geometry.is_empty)
        normalized = normalized[keep].to_crs(PROJECTION_CRS).reset_index(drop=True)
        _LOGGER.debug("Prepared %d %s resolution border features", len(normalized), tier)
        return normalized


class BorderRepository:
    """Thin wrapper around border file access."""

    def __init__(self, high_path: Path, low_path: Path, *, name_column: str | None = None) -> None:
        self.high_path = high_path
        self.low_path = low_path
        self.name_column = name_column

    def load_tier(self, resolution: str) -> Any:
        """Load one raw border tier via GeoPandas."""
        path = self.high_path if validate_resolution(resolution) == "high" else self.low_path
        if not path.exists():
            raise FileNotFoundError(f"Border data file not found: {path}")
        gpd = _require_geopandas()
        return gpd.read_file(path)

    def load(self) -> BorderData:
        return BorderData.from_frames(
            self.load_tier("high"),
            self.load_tier("low"),
            name_column=self.name_column,
        )


def _require_geopandas() -> Any:
    try:
        import geopandas as gpd
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("geopandas is required for border data loading") from exc
    return gpd
