"""Matplotlib rendering of composed maps and the make-map pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

from .config import AppConfig, MapRequest, RenderImageConfig, Theme
from .errors import EumapsError
from .geography import ReferenceData, create_geography
from .insets import compose_map
from .models import Inset, MapComposition, PlotData
from .palette import create_palette
from .plot_data import features_for

_LOGGER = logging.getLogger("eumaps.render")

_POINTS_PER_INCH = 72.0


@dataclass(frozen=True, slots=True)
class _ZOrderPolicy:
    features: int
    frame: int
    inset_base: int


_ZORDER_POLICY = _ZOrderPolicy(features=2, frame=5, inset_base=20)


@dataclass(slots=True)
class MakeMapReport:
    output_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class MapRenderer:
    """Draws a map composition to an image file; the theme is only read here."""

    def __init__(self, image: RenderImageConfig, theme: Theme) -> None:
        self.image = image
        self.theme = theme

    def render(self, composition: MapComposition, output_path: Path) -> Path:
        plt = _require_matplotlib()
        dpi = self.image.dpi
        fig, ax = plt.subplots(
            figsize=(self.image.width_px / dpi, self.image.height_px / dpi),
            dpi=dpi,
        )
        try:
            fig.patch.set_facecolor("white")
            self._draw_panel(ax, composition.plot_data)
            self._draw_legend(ax, composition.plot_data)
            if composition.title:
                ax.set_title(
                    composition.title,
                    loc="left",
                    fontsize=self.theme.size_title,
                    pad=self.theme.space_under_title,
                )
            self._draw_insets(ax, composition.insets)

            output_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(
                output_path,
                dpi=dpi,
                format=self.image.format,
                bbox_inches="tight",
                pad_inches=self.theme.space_around_map / _POINTS_PER_INCH,
                facecolor=fig.get_facecolor(),
            )
            return output_path
        finally:
            plt.close(fig)

    def _draw_panel(self, ax: Any, plot_data: PlotData) -> None:
        theme = self.theme
        ax.set_facecolor(theme.color_map_background)
        present = plot_data.categories_present()
        for entry in plot_data.legend:
            if entry.category not in present:
                continue
            rows = features_for(plot_data, entry)
            rows.plot(
                ax=ax,
                color=entry.color,
                edgecolor=theme.color_country_borders,
                linewidth=theme.width_country_borders,
                zorder=_ZORDER_POLICY.features,
            )
        box = plot_data.bounding_box
        ax.set_xlim(box.xmin, box.xmax)
        ax.set_ylim(box.ymin, box.ymax)
        ax.set_aspect("equal", adjustable="box")
        ax.set_xticks([])
        ax.set_yticks([])
        self._style_frame(ax)

    def _style_frame(self, ax: Any) -> None:
        for spine in ax.spines.values():
            spine.set_visible(True)
            spine.set_linewidth(self.theme.width_map_border)
            spine.set_edgecolor(self.theme.color_map_border)
            spine.set_zorder(_ZORDER_POLICY.frame)

    def _draw_legend(self, ax: Any, plot_data: PlotData) -> None:
        patches = _require_matplotlib_patches()
        theme = self.theme
        font_size = max(theme.size_legend_labels, 1.0)
        handles = [
            patches.Patch(
                facecolor=entry.color,
                edgecolor=theme.color_country_borders,
                linewidth=theme.width_country_borders,
                label=entry.label,
            )
            for entry in plot_data.legend
        ]
        # Legend spacing is expressed in font-size units.
        ax.legend(
            handles=handles,
            loc="center left",
            bbox_to_anchor=(1.0, 0.5),
            frameon=False,
            fontsize=font_size,
            handlelength=theme.size_legend_keys / font_size,
            handleheight=theme.size_legend_keys / font_size,
            labelspacing=theme.space_between_legend_keys / font_size,
            handletextpad=theme.space_before_legend_labels / font_size,
            borderaxespad=theme.space_before_legend / font_size,
        )

    def _draw_insets(self, ax: Any, insets: Sequence[Inset]) -> None:
        for idx, inset in enumerate(insets):
            ax_inset = ax.inset_axes(
                list(inset.position.as_axes_rect()),
                zorder=_ZORDER_POLICY.inset_base + idx,
            )
            self._draw_panel(ax_inset, inset.plot_data)


def run_make_map(
    cfg: AppConfig,
    request: MapRequest,
    *,
    output_path: Path | None = None,
    reference: ReferenceData | None = None,
) -> MakeMapReport:
    """Compose and render one map request, collecting problems in a report."""
    report = MakeMapReport()
    t0 = time.perf_counter()
    if reference is None:
        try:
            reference = ReferenceData.load(
                borders_high=cfg.paths.borders_high,
                borders_low=cfg.paths.borders_low,
                member_states=cfg.paths.member_states,
                name_column=cfg.paths.border_name_column,
            )
        except (OSError, ValueError) as exc:
            report.add_error(f"Failed loading reference data: {exc}")
            return report
    report.add_info(f"Reference data: {len(reference.member_states)} member states")

    geo = request.geography
    pal = request.palette
    names = list(request.data)
    try:
        geography = create_geography(
            reference,
            date=geo.date,
            subset=geo.subset,
            aspect_ratio=geo.aspect_ratio,
            zoom=geo.zoom,
            show_non_member_states=geo.show_non_member_states,
            insets=geo.insets,
            resolution=geo.resolution,
        )
        palette = create_palette(
            names,
            [request.data[name] for name in names],
            value_min=pal.value_min,
            value_max=pal.value_max,
            count_colors=pal.count_colors,
            color_low=pal.color_low,
            color_high=pal.color_high,
            color_mid=pal.color_mid,
            not_applicable=pal.not_applicable,
            table=reference.member_states,
            **pal.overrides,
        )
        composition = compose_map(reference, geography, palette, cfg.theme, title=request.title)
    except EumapsError as exc:
        report.add_error(f"Map composition failed: {exc}")
        return report

    drawn = {inset.name for inset in composition.insets}
    skipped = [name for name in geography.options.insets if name not in drawn]
    if skipped:
        report.add_warning("Insets skipped (not framed member states): " + ", ".join(skipped))

    target = output_path or request.output or (
        cfg.paths.output_dir / f"{request.source_path.stem}.{cfg.image.format}"
    )
    try:
        MapRenderer(cfg.image, cfg.theme).render(composition, target)
    except (OSError, ValueError, RuntimeError) as exc:
        report.add_error(f"Render failed: {exc}")
        return report

    report.output_path = target
    report.summary = {
        "features": len(composition.plot_data.features),
        "legend_entries": len(composition.plot_data.legend),
        "insets": len(composition.insets),
        "insets_skipped": len(skipped),
    }
    _LOGGER.info("[render] built %s in %.2fs", target.name, time.perf_counter() - t0)
    report.add_info(f"Map written to {target}")
    return report


def format_render_lines(report: MakeMapReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Map rendering completed with no errors.")
    return lines


def _require_matplotlib() -> Any:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for map rendering") from exc
    return plt


@lru_cache(maxsize=1)
def _require_matplotlib_patches() -> Any:
    try:
        import matplotlib.patches as patches
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for legend rendering") from exc
    return patches
