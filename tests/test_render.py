"""Rendering smoke tests and the make-map pipeline."""

from pathlib import Path

import pytest

from conftest import MAP_DATE
from eumaps.config import (
    AppConfig,
    GeographyRequest,
    MapRequest,
    PaletteRequest,
    PathsConfig,
    RenderImageConfig,
    Theme,
)
from eumaps.geography import create_geography
from eumaps.insets import compose_map
from eumaps.palette import create_palette
from eumaps.render import MapRenderer, format_render_lines, run_make_map

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _app_config(tmp_path):
    return AppConfig(
        source_path=tmp_path / "config.yaml",
        paths=PathsConfig(
            borders_high=tmp_path / "missing_high.gpkg",
            borders_low=tmp_path / "missing_low.gpkg",
            output_dir=tmp_path / "maps",
            logs_dir=tmp_path / "logs",
        ),
        image=RenderImageConfig(width_px=400, height_px=300, dpi=50),
        theme=Theme(),
    )


def _request(tmp_path, **palette_kwargs):
    palette = {
        "value_min": 0,
        "value_max": 1,
        "count_colors": 3,
        "color_low": "#FFFFFF",
        "color_high": "#08306B",
    }
    palette.update(palette_kwargs)
    return MapRequest(
        source_path=tmp_path / "example.yaml",
        geography=GeographyRequest(date=MAP_DATE, insets=("Malta", "United Kingdom")),
        palette=PaletteRequest(**palette),
        data={"Germany": 0.2, "France": 0.7, "Malta": None},
        title="Example",
    )


class TestMapRenderer:
    def test_writes_png(self, reference, tmp_path):
        geography = create_geography(reference, date=MAP_DATE, insets=["Cyprus"])
        palette = create_palette(
            ["Germany", "Cyprus"],
            [0.1, 0.8],
            value_min=0,
            value_max=1,
            count_colors=2,
            color_low="#FFFFFF",
            color_high="#000000",
        )
        composition = compose_map(reference, geography, palette, title="Smoke")
        output = tmp_path / "nested" / "map.png"
        cfg = _app_config(tmp_path)
        written = MapRenderer(cfg.image, cfg.theme).render(composition, output)
        assert written == output
        assert output.read_bytes()[:8] == PNG_MAGIC

    def test_empty_bins_listed_but_not_drawn(self, reference, tmp_path):
        geography = create_geography(reference, date=MAP_DATE)
        palette = create_palette(
            ["Germany"],
            [0.1],
            value_min=0,
            value_max=1,
            count_colors=5,
            color_low="#FFFFFF",
            color_high="#000000",
        )
        composition = compose_map(reference, geography, palette)
        present = composition.plot_data.categories_present()
        drawn = [entry for entry in composition.plot_data.legend if entry.category in present]
        assert [entry.label for entry in drawn][0] == palette.labels[0]
        assert len(composition.plot_data.legend) > len(drawn)
        cfg = _app_config(tmp_path)
        output = MapRenderer(cfg.image, cfg.theme).render(composition, tmp_path / "map.png")
        assert output.read_bytes()[:8] == PNG_MAGIC


class TestRunMakeMap:
    def test_success(self, reference, tmp_path):
        cfg = _app_config(tmp_path)
        report = run_make_map(cfg, _request(tmp_path), reference=reference)
        assert report.ok, report.errors
        assert report.output_path == tmp_path / "maps" / "example.png"
        assert report.output_path.read_bytes()[:8] == PNG_MAGIC
        assert report.summary["insets"] == 1
        assert report.summary["insets_skipped"] == 1
        assert any("United Kingdom" in msg for msg in report.warnings)
        lines = format_render_lines(report)
        assert lines[-1].startswith("[OK]")

    def test_output_override(self, reference, tmp_path):
        target = tmp_path / "elsewhere.png"
        report = run_make_map(
            _app_config(tmp_path), _request(tmp_path), output_path=target, reference=reference
        )
        assert report.ok
        assert report.output_path == target

    def test_palette_overrides_applied(self, reference, tmp_path):
        request = _request(tmp_path)
        request = MapRequest(
            source_path=request.source_path,
            geography=request.geography,
            palette=PaletteRequest(
                value_min=0,
                value_max=1,
                count_colors=3,
                color_low="#FFFFFF",
                color_high="#08306B",
                overrides={"out_of_range": "error"},
            ),
            data={"Germany": 3.0},
        )
        report = run_make_map(_app_config(tmp_path), request, reference=reference)
        assert not report.ok
        assert "Germany" in report.errors[0]

    def test_composition_error_reported(self, reference, tmp_path):
        report = run_make_map(
            _app_config(tmp_path), _request(tmp_path, count_colors=20), reference=reference
        )
        assert not report.ok
        assert report.output_path is None
        assert "[ERROR]" in format_render_lines(report)[-1]

    def test_missing_border_files(self, tmp_path):
        report = run_make_map(_app_config(tmp_path), _request(tmp_path))
        assert not report.ok
        assert "reference data" in report.errors[0]
        assert not Path(tmp_path / "maps" / "example.png").exists()


@pytest.mark.parametrize("title", [None, "With title"])
def test_title_optional(reference, tmp_path, title):
    geography = create_geography(reference, date=MAP_DATE)
    palette = create_palette(
        ["Germany"],
        [0.5],
        value_min=0,
        value_max=1,
        count_colors=2,
        color_low="#FFFFFF",
        color_high="#000000",
    )
    composition = compose_map(reference, geography, palette, title=title)
    cfg = _app_config(tmp_path)
    output = MapRenderer(cfg.image, cfg.theme).render(composition, tmp_path / "map.png")
    assert output.exists()
