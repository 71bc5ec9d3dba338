"""Inset positions and composition."""

import pytest

from conftest import BORDER_BOXES, MAP_DATE, make_border_frame
from eumaps.config import Theme
from eumaps.geography import ReferenceData, create_geography
from eumaps.io_borders import BorderData
from eumaps.insets import compose_map, inset_positions
from eumaps.palette import create_palette


@pytest.fixture()
def palette():
    return create_palette(
        ["Germany", "Malta", "Cyprus"],
        [0.2, 0.5, 0.9],
        value_min=0,
        value_max=1,
        count_colors=5,
        color_low="#FFFFFF",
        color_high="#08306B",
    )


class TestPositions:
    def test_stack(self):
        first, second = inset_positions(
            2, aspect_ratio=2, size_insets=0.15, space_between_insets=0.03
        )
        assert first.right == pytest.approx(0.985)
        assert first.left == pytest.approx(0.91)
        assert first.top == pytest.approx(0.97)
        assert first.bottom == pytest.approx(0.82)
        assert second.top == pytest.approx(0.79)
        assert second.bottom == pytest.approx(0.64)
        assert (second.left, second.right) == (first.left, first.right)

    def test_square_on_panel(self):
        (only,) = inset_positions(1, aspect_ratio=1.6, size_insets=0.2, space_between_insets=0.05)
        # Width as a fraction of panel width times the aspect ratio equals the height fraction.
        assert only.width * 1.6 == pytest.approx(only.height)

    def test_none(self):
        assert inset_positions(0, aspect_ratio=1, size_insets=0.15, space_between_insets=0.03) == ()


class TestComposeMap:
    def test_without_insets(self, reference, palette):
        geography = create_geography(reference, date=MAP_DATE)
        composition = compose_map(reference, geography, palette, title="Example")
        assert composition.insets == ()
        assert composition.title == "Example"
        assert composition.aspect_ratio == geography.aspect_ratio

    def test_ineligible_insets_skipped(self, reference, palette):
        geography = create_geography(
            reference,
            date=MAP_DATE,
            insets=["Malta", "United Kingdom", "Cyprus"],
        )
        composition = compose_map(reference, geography, palette)
        assert [inset.name for inset in composition.insets] == ["Malta", "Cyprus"]
        expected = inset_positions(
            2,
            aspect_ratio=geography.aspect_ratio,
            size_insets=Theme().size_insets,
            space_between_insets=Theme().space_between_insets,
        )
        assert tuple(inset.position for inset in composition.insets) == expected

    def test_insets_outside_subset_skipped(self, reference, palette):
        geography = create_geography(
            reference,
            date=MAP_DATE,
            subset=["Germany", "France"],
            insets=["Malta"],
        )
        assert compose_map(reference, geography, palette).insets == ()

    def test_inset_without_high_resolution_border_skipped(self, table, palette, caplog):
        high = make_border_frame([row for row in BORDER_BOXES if row[0] != "Malta"])
        reference = ReferenceData(
            member_states=table, borders=BorderData.from_frames(high, make_border_frame())
        )
        geography = create_geography(
            reference, date=MAP_DATE, insets=["Malta", "Cyprus"], resolution="low"
        )
        with caplog.at_level("WARNING", logger="eumaps.insets"):
            composition = compose_map(reference, geography, palette)
        assert [inset.name for inset in composition.insets] == ["Cyprus"]
        assert "Malta" in caplog.text
        assert composition.insets[0].position == inset_positions(
            1,
            aspect_ratio=geography.aspect_ratio,
            size_insets=Theme().size_insets,
            space_between_insets=Theme().space_between_insets,
        )[0]

    def test_inset_geography_policy(self, reference, palette):
        geography = create_geography(
            reference,
            date=MAP_DATE,
            insets=["Malta"],
            resolution="low",
            show_non_member_states=False,
        )
        (inset,) = compose_map(reference, geography, palette).insets
        options = inset.geography.options
        assert options.subset == ("Malta",)
        assert options.zoom == 0.5
        assert options.resolution == "high"
        assert options.show_non_member_states is False
        assert options.date == geography.options.date
        assert inset.geography.aspect_ratio == 1
        assert inset.geography.bounding_box.aspect_ratio == pytest.approx(1)

    def test_inset_shares_palette(self, reference, palette):
        geography = create_geography(reference, date=MAP_DATE, insets=["Cyprus"])
        composition = compose_map(reference, geography, palette)
        (inset,) = composition.insets
        assert inset.plot_data.labels[: palette.count_colors] == palette.labels
        rows = dict(zip(inset.plot_data.features["country"], inset.plot_data.features["label"]))
        assert rows["Cyprus"] == palette.labels[4]

    def test_theme_controls_positions(self, reference, palette):
        geography = create_geography(reference, date=MAP_DATE, insets=["Malta"])
        theme = Theme(size_insets=0.3, space_between_insets=0.1)
        (inset,) = compose_map(reference, geography, palette, theme).insets
        assert inset.position.top == pytest.approx(0.9)
        assert inset.position.bottom == pytest.approx(0.6)
