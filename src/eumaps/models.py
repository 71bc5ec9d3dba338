"""Domain models shared across the composition pipeline."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Literal, Mapping

from .errors import InvalidInput

Resolution = Literal["high", "low"]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _require_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        return date.fromisoformat(value.strip())
    raise ValueError(f"Expected YYYY-MM-DD date for '{field_name}'")


@dataclass(frozen=True, slots=True)
class MemberState:
    """One row of the member state table."""

    member_state_id: int
    name: str
    code: str
    start_date: date
    end_date: date | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MemberState:
        member_state_id = data.get("member_state_id")
        if not isinstance(member_state_id, int) or isinstance(member_state_id, bool):
            raise ValueError("Expected integer for 'member_state_id'")
        name = _require_str(data.get("member_state"), "member_state")
        code = _require_str(data.get("member_state_code"), "member_state_code").upper()
        start_date = _require_date(data.get("start_date"), "start_date")
        end_raw = data.get("end_date")
        end_date = None if end_raw is None else _require_date(end_raw, "end_date")
        if end_date is not None and end_date < start_date:
            raise ValueError(f"end_date precedes start_date for '{name}'")
        return cls(
            member_state_id=member_state_id,
            name=name,
            code=code,
            start_date=start_date,
            end_date=end_date,
        )

    def is_member_on(self, day: date) -> bool:
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned extent in projected coordinate units."""

    xmin: float
    xmax: float
    ymin: float
    ymax: float

    def __post_init__(self) -> None:
        values = (self.xmin, self.xmax, self.ymin, self.ymax)
        if not all(math.isfinite(value) for value in values):
            raise InvalidInput(f"Bounding box has non-finite bounds: {values}")
        if self.xmax <= self.xmin or self.ymax <= self.ymin:
            raise InvalidInput(f"Bounding box is degenerate: {values}")

    @classmethod
    def from_bounds(cls, bounds: Any) -> BoundingBox:
        """Build from shapely/geopandas order `(minx, miny, maxx, maxy)`."""
        min_x, min_y, max_x, max_y = [float(item) for item in bounds]
        return cls(xmin=min_x, xmax=max_x, ymin=min_y, ymax=max_y)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def as_bounds(self) -> tuple[float, float, float, float]:
        return (self.xmin, self.ymin, self.xmax, self.ymax)

    def contains(self, other: BoundingBox) -> bool:
        return (
            self.xmin <= other.xmin
            and self.xmax >= other.xmax
            and self.ymin <= other.ymin
            and self.ymax >= other.ymax
        )

    def to_dict(self) -> dict[str, float]:
        return {"xmin": self.xmin, "xmax": self.xmax, "ymin": self.ymin, "ymax": self.ymax}


@dataclass(frozen=True, slots=True)
class GeographyOptions:
    """Echo of the inputs a geography was built from."""

    date: date
    subset: tuple[str, ...] | None
    aspect_ratio: float
    zoom: float
    show_non_member_states: bool
    insets: tuple[str, ...]
    resolution: Resolution


@dataclass(frozen=True, slots=True)
class Geography:
    """Filtered and clipped border features plus their frame.

    `features` is a GeoDataFrame in EPSG:3035 with the columns `country`,
    `member_state`, `subset` and `geometry`.
    """

    features: Any
    bounding_box: BoundingBox
    aspect_ratio: float
    options: GeographyOptions
    framing: frozenset[str]

    def inset_candidates(self) -> frozenset[str]:
        """Names drawn as framed member states, i.e. eligible for insets."""
        features = self.features
        mask = features["member_state"] & features["subset"]
        return frozenset(str(name) for name in features.loc[mask, "country"])


@dataclass(frozen=True, slots=True)
class Bin:
    index: int
    lower: float
    upper: float
    label: str
    closed_right: bool = False

    def contains(self, value: float) -> bool:
        if self.closed_right:
            return self.lower <= value <= self.upper
        return self.lower <= value < self.upper


@dataclass(frozen=True, slots=True)
class Palette:
    """Mapping from member states to bins plus ramp and override colors."""

    assignments: Mapping[str, int | None]
    bins: tuple[Bin, ...]
    color_ramp: tuple[str, ...]
    color_missing: str
    color_not_applicable: str
    color_non_member_state: str
    label_missing: str
    label_not_applicable: str
    label_non_member_state: str
    not_applicable: frozenset[str] = frozenset()

    @property
    def count_colors(self) -> int:
        return len(self.bins)

    @property
    def breaks(self) -> tuple[float, ...]:
        """All `count_colors + 1` bin edges, from `value_min` to `value_max`."""
        return (self.bins[0].lower, *(item.upper for item in self.bins))

    @property
    def breakpoints(self) -> tuple[float, ...]:
        """The `count_colors - 1` interior edges between adjacent bins."""
        return tuple(item.upper for item in self.bins[:-1])

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(item.label for item in self.bins)

    def bin_for(self, name: str) -> Bin | None:
        index = self.assignments.get(name)
        return None if index is None else self.bins[index]


class CategoryKind(Enum):
    BIN = "bin"
    MISSING = "missing"
    NOT_APPLICABLE = "not_applicable"
    NON_MEMBER = "non_member"


@dataclass(frozen=True, slots=True)
class Category:
    """Classification of a feature, independent of its display label."""

    kind: CategoryKind
    bin_index: int | None = None

    def __post_init__(self) -> None:
        if (self.kind is CategoryKind.BIN) != (self.bin_index is not None):
            raise ValueError("bin_index is required for bin categories and only for them")

    @classmethod
    def for_bin(cls, index: int) -> Category:
        return cls(kind=CategoryKind.BIN, bin_index=index)


MISSING = Category(CategoryKind.MISSING)
NOT_APPLICABLE = Category(CategoryKind.NOT_APPLICABLE)
NON_MEMBER = Category(CategoryKind.NON_MEMBER)


@dataclass(frozen=True, slots=True)
class LegendEntry:
    category: Category
    label: str
    color: str


@dataclass(frozen=True, slots=True)
class PlotData:
    """Render-ready fusion of one geography and one palette."""

    features: Any
    bounding_box: BoundingBox
    legend: tuple[LegendEntry, ...]

    @property
    def colors(self) -> tuple[str, ...]:
        return tuple(entry.color for entry in self.legend)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(entry.label for entry in self.legend)

    def categories_present(self) -> frozenset[Category]:
        present: set[Category] = set()
        for kind, bin_index in zip(self.features["category"], self.features["bin_index"]):
            category_kind = CategoryKind(kind)
            if category_kind is CategoryKind.BIN:
                present.add(Category.for_bin(int(bin_index)))
            else:
                present.add(Category(category_kind))
        return frozenset(present)


@dataclass(frozen=True, slots=True)
class InsetPosition:
    """Inset frame as fractions of the main map panel."""

    left: float
    right: float
    bottom: float
    top: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    def as_axes_rect(self) -> tuple[float, float, float, float]:
        return (self.left, self.bottom, self.width, self.height)


@dataclass(frozen=True, slots=True)
class Inset:
    name: str
    geography: Geography
    plot_data: PlotData
    position: InsetPosition


@dataclass(frozen=True, slots=True)
class MapComposition:
    """Everything the renderer needs besides the theme."""

    plot_data: PlotData
    insets: tuple[Inset, ...]
    aspect_ratio: float
    title: str | None = None
