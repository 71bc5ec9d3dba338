"""Typed configuration loader for `config.yaml`, themes and map requests."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .colors import convert_color


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _optional_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    return {} if value is None else _mapping(value, field_name)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _optional_str(value: Any, field_name: str) -> str | None:
    return None if value is None else _str(value, field_name)


def _int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _optional_float(value: Any, field_name: str) -> float | None:
    return None if value is None else _float(value, field_name)


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _str_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_str(item, f"{field_name}[{idx}]"))
    return tuple(out)


def _optional_str_list(value: Any, field_name: str) -> tuple[str, ...] | None:
    return None if value is None else _str_list(value, field_name)


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


def _read_yaml(path: Path, what: str) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"{what} not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


@dataclass(frozen=True, slots=True)
class PathsConfig:
    borders_high: Path
    borders_low: Path
    output_dir: Path
    logs_dir: Path
    member_states: Path | None = None
    border_name_column: str | None = None

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        member_states_raw = raw.get("member_states")
        return cls(
            borders_high=_path_from_cfg(raw.get("borders_high"), "paths.borders_high", root_dir),
            borders_low=_path_from_cfg(raw.get("borders_low"), "paths.borders_low", root_dir),
            output_dir=_path_from_cfg(raw.get("output_dir", "build/maps"), "paths.output_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir", "build/logs"), "paths.logs_dir", root_dir),
            member_states=(
                None
                if member_states_raw is None
                else _path_from_cfg(member_states_raw, "paths.member_states", root_dir)
            ),
            border_name_column=_optional_str(
                raw.get("border_name_column"), "paths.border_name_column"
            ),
        )


@dataclass(frozen=True, slots=True)
class RenderImageConfig:
    width_px: int = 1600
    height_px: int = 1200
    dpi: int = 200
    format: str = "png"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderImageConfig:
        default = cls()
        cfg = cls(
            width_px=_int(raw.get("width_px", default.width_px), "render.image.width_px"),
            height_px=_int(raw.get("height_px", default.height_px), "render.image.height_px"),
            dpi=_int(raw.get("dpi", default.dpi), "render.image.dpi"),
            format=_str(raw.get("format", default.format), "render.image.format"),
        )
        if cfg.width_px < 1 or cfg.height_px < 1 or cfg.dpi < 1:
            raise ValueError("render.image width_px, height_px and dpi must be >= 1")
        return cfg


_THEME_COLOR_FIELDS = ("color_map_background", "color_map_border", "color_country_borders")
_THEME_FRACTION_FIELDS = ("size_insets", "space_between_insets")


@dataclass(frozen=True, slots=True)
class Theme:
    """Cosmetic styling handed to the renderer.

    Sizes are in points, except `size_insets` and `space_between_insets`,
    which are fractions of the map height. Colors accept anything
    `convert_color` accepts and are stored normalized.
    """

    # map
    color_map_background: Any = (1, 1, 1)
    color_map_border: Any = (0, 0, 0)
    width_map_border: float = 1.0
    space_around_map: float = 16.0
    # country borders
    color_country_borders: Any = (0, 0, 0)
    width_country_borders: float = 0.25
    # title
    size_title: float = 16.0
    space_under_title: float = 8.0
    # legend
    size_legend_keys: float = 22.0
    space_before_legend: float = 16.0
    space_between_legend_keys: float = 8.0
    size_legend_labels: float = 10.0
    space_before_legend_labels: float = 8.0
    # insets
    size_insets: float = 0.15
    space_between_insets: float = 0.03

    def __post_init__(self) -> None:
        for name in _THEME_COLOR_FIELDS:
            object.__setattr__(self, name, convert_color(getattr(self, name)))
        for item in fields(self):
            if item.name in _THEME_COLOR_FIELDS:
                continue
            value = _float(getattr(self, item.name), f"theme.{item.name}")
            if value < 0:
                raise ValueError(f"theme.{item.name} must be >= 0")
            if item.name in _THEME_FRACTION_FIELDS and not 0.0 < value < 1.0:
                raise ValueError(f"theme.{item.name} must be between 0 and 1")
            object.__setattr__(self, item.name, value)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Theme:
        known = {item.name for item in fields(cls)}
        unknown = sorted(str(key) for key in raw if key not in known)
        if unknown:
            raise ValueError("Unknown theme options: " + ", ".join(unknown))
        return cls(**{str(key): value for key, value in raw.items()})


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    image: RenderImageConfig
    theme: Theme

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        render = _optional_mapping(raw.get("render"), "render")
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            image=RenderImageConfig.from_mapping(
                _optional_mapping(render.get("image"), "render.image")
            ),
            theme=Theme.from_mapping(_optional_mapping(raw.get("theme"), "theme")),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    raw = _read_yaml(cfg_path, "Config file")
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)


@dataclass(frozen=True, slots=True)
class GeographyRequest:
    date: str | None = None
    subset: tuple[str, ...] | None = None
    aspect_ratio: float | None = None
    zoom: float = 0.9
    show_non_member_states: bool = True
    insets: tuple[str, ...] = ()
    resolution: str = "high"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> GeographyRequest:
        date_raw = raw.get("date")
        return cls(
            # YAML turns unquoted dates into date objects
            date=None if date_raw is None else str(date_raw),
            subset=_optional_str_list(raw.get("subset"), "geography.subset"),
            aspect_ratio=_optional_float(raw.get("aspect_ratio"), "geography.aspect_ratio"),
            zoom=_float(raw.get("zoom", 0.9), "geography.zoom"),
            show_non_member_states=_bool(
                raw.get("show_non_member_states", True), "geography.show_non_member_states"
            ),
            insets=_optional_str_list(raw.get("insets"), "geography.insets") or (),
            resolution=_str(raw.get("resolution", "high"), "geography.resolution"),
        )


@dataclass(frozen=True, slots=True)
class PaletteRequest:
    value_min: float
    value_max: float
    count_colors: int
    color_low: Any
    color_high: Any
    color_mid: Any | None = None
    not_applicable: tuple[str, ...] | None = None
    overrides: Mapping[str, Any] = field(default_factory=dict)

    _OVERRIDE_KEYS = (
        "color_missing",
        "color_not_applicable",
        "color_non_member_state",
        "label_missing",
        "label_not_applicable",
        "label_non_member_state",
        "out_of_range",
    )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PaletteRequest:
        for key in ("color_low", "color_high"):
            if raw.get(key) is None:
                raise ValueError(f"Expected color for 'palette.{key}'")
        return cls(
            value_min=_float(raw.get("value_min"), "palette.value_min"),
            value_max=_float(raw.get("value_max"), "palette.value_max"),
            count_colors=_int(raw.get("count_colors"), "palette.count_colors"),
            color_low=raw.get("color_low"),
            color_high=raw.get("color_high"),
            color_mid=raw.get("color_mid"),
            not_applicable=_optional_str_list(raw.get("not_applicable"), "palette.not_applicable"),
            overrides={key: raw[key] for key in cls._OVERRIDE_KEYS if raw.get(key) is not None},
        )


@dataclass(frozen=True, slots=True)
class MapRequest:
    """One map to compose: geography and palette options plus the data."""

    source_path: Path
    geography: GeographyRequest
    palette: PaletteRequest
    data: Mapping[str, float | None]
    title: str | None = None
    output: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> MapRequest:
        root_dir = source_path.parent.resolve()
        data_raw = raw.get("data")
        data_file_raw = raw.get("data_file")
        if data_raw is not None and data_file_raw is not None:
            raise ValueError("Use only one of 'data' or 'data_file' in a map request")
        if data_file_raw is not None:
            data_path = _path_from_cfg(data_file_raw, "data_file", root_dir)
            data_raw = _read_yaml(data_path, "Data file")
        output_raw = raw.get("output")
        return cls(
            source_path=source_path.resolve(),
            geography=GeographyRequest.from_mapping(
                _optional_mapping(raw.get("geography"), "geography")
            ),
            palette=PaletteRequest.from_mapping(_mapping(raw.get("palette"), "palette")),
            data=_parse_data(data_raw),
            title=_optional_str(raw.get("title"), "title"),
            output=None if output_raw is None else _path_from_cfg(output_raw, "output", root_dir),
        )


def _parse_data(raw: Any) -> dict[str, float | None]:
    values = _mapping(raw, "data")
    out: dict[str, float | None] = {}
    for key, value in values.items():
        name = _str(key, "data key")
        out[name] = None if value is None else _float(value, f"data.{name}")
    return out


def load_map_request(path: str | Path) -> MapRequest:
    """Load a map request file (YAML or JSON)."""
    request_path = Path(path).resolve()
    raw = _read_yaml(request_path, "Map request")
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level map request must be a mapping")
    return MapRequest.from_mapping(cast(Mapping[str, Any], raw), request_path)
