"""Categorical overlay and legend ordering."""

import pytest

from conftest import MAP_DATE
from eumaps.geography import create_geography
from eumaps.models import MISSING, NON_MEMBER, NOT_APPLICABLE, Category, CategoryKind
from eumaps.palette import create_palette
from eumaps.plot_data import build_legend, classify_feature, features_for, prepare_plot_data


@pytest.fixture()
def palette():
    return create_palette(
        ["Germany", "France", "Italy", "Malta"],
        [0.1, 0.9, None, 0.6],
        value_min=0,
        value_max=1,
        count_colors=4,
        color_low=(1, 1, 1),
        color_high=(0, 0, 0.5),
        not_applicable=["Cyprus"],
    )


class TestClassify:
    def test_precedence(self, palette):
        assert classify_feature("Cyprus", member_state=False, palette=palette) == NON_MEMBER
        assert classify_feature("Cyprus", member_state=True, palette=palette) == NOT_APPLICABLE
        assert classify_feature("Italy", member_state=True, palette=palette) == MISSING
        assert classify_feature("Luxembourg", member_state=True, palette=palette) == MISSING
        assert classify_feature("Germany", member_state=True, palette=palette) == Category.for_bin(0)
        assert classify_feature("Germany", member_state=False, palette=palette) == NON_MEMBER

    def test_bin_matches_palette_lookup(self, palette):
        for name in ("Germany", "France", "Malta"):
            category = classify_feature(name, member_state=True, palette=palette)
            assert category.bin_index == palette.bin_for(name).index

    def test_category_requires_bin_index_only_for_bins(self):
        with pytest.raises(ValueError):
            Category(CategoryKind.BIN)
        with pytest.raises(ValueError):
            Category(CategoryKind.MISSING, bin_index=1)


class TestLegend:
    def test_bins_then_overrides_in_fixed_order(self, palette):
        legend = build_legend(palette, {NON_MEMBER, MISSING, NOT_APPLICABLE})
        assert legend[:4] == tuple(
            entry for entry in build_legend(palette, set())
        )
        assert [entry.category for entry in legend[4:]] == [MISSING, NOT_APPLICABLE, NON_MEMBER]
        assert [entry.label for entry in legend[4:]] == [
            "Missing",
            "Not applicable",
            "Not a member state",
        ]

    def test_only_missing_appended(self, reference):
        geography = create_geography(reference, date=MAP_DATE, show_non_member_states=False)
        palette = create_palette(
            ["Germany", "France"],
            [0.1, 0.9],
            value_min=0,
            value_max=1,
            count_colors=3,
            color_low="#FFFFFF",
            color_high="#000000",
        )
        plot_data = prepare_plot_data(geography, palette)
        assert plot_data.labels == palette.labels + (palette.label_missing,)
        assert plot_data.colors == palette.color_ramp + (palette.color_missing,)

    def test_custom_labels_do_not_change_categories(self, reference):
        geography = create_geography(reference, date=MAP_DATE)
        palette = create_palette(
            ["Germany"],
            [0.5],
            value_min=0,
            value_max=1,
            count_colors=2,
            color_low="#FFFFFF",
            color_high="#000000",
            label_missing="Not a member state",
        )
        plot_data = prepare_plot_data(geography, palette)
        kinds = [entry.category.kind for entry in plot_data.legend[2:]]
        assert kinds == [CategoryKind.MISSING, CategoryKind.NON_MEMBER]
        rows = dict(zip(plot_data.features["country"], plot_data.features["category"]))
        assert rows["Luxembourg"] == "missing"
        assert rows["Switzerland"] == "non_member"


class TestPreparePlotData:
    def test_feature_labels_and_colors(self, reference, palette):
        geography = create_geography(reference, date=MAP_DATE)
        plot_data = prepare_plot_data(geography, palette)
        features = plot_data.features
        by_country = {
            row.country: (row.category, row.label, row.color)
            for row in features[~features["country"].isin(["France"])].itertuples()
        }
        assert by_country["Germany"] == ("bin", palette.labels[0], palette.color_ramp[0])
        assert by_country["Malta"] == ("bin", palette.labels[2], palette.color_ramp[2])
        assert by_country["Italy"][0] == "missing"
        assert by_country["Cyprus"] == ("not_applicable", "Not applicable", palette.color_not_applicable)
        assert by_country["Switzerland"][0] == "non_member"
        assert plot_data.bounding_box == geography.bounding_box

    def test_features_sorted_by_legend_position(self, reference, palette):
        plot_data = prepare_plot_data(create_geography(reference, date=MAP_DATE), palette)
        position = {entry.label: idx for idx, entry in enumerate(plot_data.legend)}
        order = [position[label] for label in plot_data.features["label"]]
        assert order == sorted(order)

    def test_present_categories_are_in_legend(self, reference, palette):
        plot_data = prepare_plot_data(create_geography(reference, date=MAP_DATE), palette)
        legend_categories = {entry.category for entry in plot_data.legend}
        assert plot_data.categories_present() <= legend_categories
        assert {MISSING, NOT_APPLICABLE, NON_MEMBER} <= plot_data.categories_present()

    def test_features_for_entry(self, reference, palette):
        plot_data = prepare_plot_data(create_geography(reference, date=MAP_DATE), palette)
        total = sum(len(features_for(plot_data, entry)) for entry in plot_data.legend)
        assert total == len(plot_data.features)
        first_bin = features_for(plot_data, plot_data.legend[0])
        assert set(first_bin["country"]) == {"Germany"}

    def test_geography_and_palette_untouched(self, reference, palette):
        geography = create_geography(reference, date=MAP_DATE)
        columns = list(geography.features.columns)
        prepare_plot_data(geography, palette)
        assert list(geography.features.columns) == columns
