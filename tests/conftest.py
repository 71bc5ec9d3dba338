"""Shared fixtures: a packaged member state table and synthetic border data.

Borders are coarse lon/lat boxes; they only need to be in the right place
relative to each other for framing, clipping and inset tests.
"""

from __future__ import annotations

import geopandas as gpd
import pytest
from shapely.geometry import box

from eumaps.geography import ReferenceData
from eumaps.io_borders import BorderData
from eumaps.member_states import default_member_states

# (country, outlying, (min_lon, min_lat, max_lon, max_lat))
BORDER_BOXES = [
    ("Germany", False, (6.0, 47.3, 15.0, 55.0)),
    ("France", False, (-4.8, 42.3, 8.2, 51.1)),
    ("France", True, (-54.5, 2.1, -51.6, 5.8)),
    ("Italy", False, (6.6, 36.6, 18.5, 47.1)),
    ("Luxembourg", False, (5.7, 49.4, 6.5, 50.2)),
    ("Malta", False, (14.2, 35.8, 14.6, 36.1)),
    ("Cyprus", False, (32.2, 34.5, 34.6, 35.7)),
    ("United Kingdom", False, (-8.0, 50.0, 1.8, 58.7)),
    ("Switzerland", False, (6.0, 45.8, 10.5, 47.8)),
]

MAP_DATE = "2021-01-01"


def make_border_frame(rows=BORDER_BOXES, *, name_column="NAME", crs="EPSG:4326"):
    return gpd.GeoDataFrame(
        {
            name_column: [row[0] for row in rows],
            "outlying": [1 if row[1] else 0 for row in rows],
        },
        geometry=[box(*row[2]) for row in rows],
        crs=crs,
    )


@pytest.fixture(scope="session")
def table():
    return default_member_states()


@pytest.fixture(scope="session")
def borders():
    return BorderData.from_frames(make_border_frame(), make_border_frame())


@pytest.fixture(scope="session")
def reference(table, borders):
    return ReferenceData(member_states=table, borders=borders)
