"""Tests for the country membership index."""

import numpy as np
import pytest

from py_atlas.core.geo_features import GeoFeature
from py_atlas.core.membership import (
    MembershipIndex,
    MembershipOptions,
    build_membership_index,
    decode_ids,
    encode_id,
)
from py_atlas.core.projection import pixel_to_lonlat
from py_atlas.core.raster_surface import BufferSurface, RasterUnavailableError


def _box(lon0, lat0, lon1, lat1):
    return ((lon0, lat0), (lon1, lat0), (lon1, lat1), (lon0, lat1), (lon0, lat0))


def _feature(feature_id, name, *rings):
    return GeoFeature(feature_id=feature_id, name=name, polygons=(tuple(rings),))


class TestColourKeys:
    """Test id bit-packing."""

    def test_encode_decode(self):
        for feature_id in (1, 255, 256, 65535, 70000, (1 << 24) - 1):
            pixel = np.array([[encode_id(feature_id)]], dtype=np.uint8)
            assert decode_ids(pixel)[0, 0] == feature_id

    def test_encode_layout(self):
        assert encode_id(0x030201) == (0x01, 0x02, 0x03, 255)

    def test_ids_must_fit_24_bits(self):
        with pytest.raises(ValueError):
            encode_id(1 << 24)


class TestMembershipIndex:
    """Test rasterized country lookup (1 pixel per degree)."""

    @pytest.fixture(params=["buffer", "pillow"])
    def backend(self, request):
        return request.param

    @pytest.fixture
    def rectangle_index(self, backend):
        feature = _feature(1, "Rectland", _box(-10, -20, 30, 20))
        return build_membership_index([feature], 360, 180, options=MembershipOptions(backend=backend))

    def test_inside_and_outside(self, rectangle_index):
        assert rectangle_index.lookup(0, 0) == "Rectland"
        assert rectangle_index.lookup(25.5, -15.5) == "Rectland"
        assert rectangle_index.lookup(-50, 0) is None
        assert rectangle_index.lookup(0, 60) is None

    def test_every_pixel_resolves_by_box(self, rectangle_index):
        """Pixels well inside the box are land, pixels well outside are ocean."""
        xs, ys = np.meshgrid(np.arange(360) + 0.5, np.arange(180) + 0.5)
        lons, lats = pixel_to_lonlat(xs, ys, 360, 180)
        inside = (lons > -9) & (lons < 29) & (lats > -19) & (lats < 19)
        outside = (lons < -11) | (lons > 31) | (lats < -21) | (lats > 21)

        assert (rectangle_index.grid[inside] == 1).all()
        assert (rectangle_index.grid[outside] == 0).all()

    def test_dimensions(self, rectangle_index):
        assert rectangle_index.width == 360
        assert rectangle_index.height == 180
        assert rectangle_index.country_names == ["Rectland"]

    def test_last_rasterized_wins_on_overlap(self, backend):
        first = _feature(1, "First", _box(0, 0, 20, 20))
        second = _feature(2, "Second", _box(10, 10, 30, 30))
        index = build_membership_index([first, second], 360, 180, options=MembershipOptions(backend=backend))

        assert index.lookup(15, 15) == "Second"
        assert index.lookup(5, 5) == "First"
        assert index.lookup(25, 25) == "Second"

    def test_same_input_gives_same_grid(self, backend):
        features = [_feature(1, "A", _box(-40, -10, -20, 10)), _feature(2, "B", _box(50, 40, 80, 60))]
        options = MembershipOptions(backend=backend)

        first = build_membership_index(features, 360, 180, options=options)
        second = build_membership_index(features, 360, 180, options=options)

        assert np.array_equal(first.grid, second.grid)

    def test_unknown_features_stay_separate(self):
        features = [_feature(1, "Unknown", _box(0, 0, 10, 10)), _feature(2, "Unknown", _box(50, 0, 60, 10))]
        index = build_membership_index(features, 360, 180, surface=BufferSurface(360, 180))

        assert index.lookup_id(5, 5) == 1
        assert index.lookup_id(55, 5) == 2
        assert index.lookup(5, 5) == index.lookup(55, 5) == "Unknown"

    def test_holes_are_filled_by_default(self):
        feature = _feature(1, "Ringland", _box(0, 0, 40, 40), _box(10, 10, 30, 30))
        index = build_membership_index([feature], 360, 180, surface=BufferSurface(360, 180))

        assert index.lookup(20, 20) == "Ringland"

    def test_holes_can_be_subtracted(self):
        feature = _feature(1, "Ringland", _box(0, 0, 40, 40), _box(10, 10, 30, 30))
        index = build_membership_index(
            [feature], 360, 180,
            surface=BufferSurface(360, 180),
            options=MembershipOptions(subtract_holes=True),
        )

        assert index.lookup(20, 20) is None
        assert index.lookup(5, 5) == "Ringland"

    @pytest.mark.parametrize("backend", ["buffer", "pillow"])
    def test_subtracted_hole_keeps_earlier_enclave(self, backend):
        """Test that a host's hole does not erase an enclave listed before it."""
        enclave = _feature(1, "Lesotho", _box(10, 10, 30, 30))
        host = _feature(2, "South Africa", _box(0, 0, 40, 40), _box(10, 10, 30, 30))
        index = build_membership_index(
            [enclave, host], 360, 180,
            options=MembershipOptions(backend=backend, subtract_holes=True),
        )

        assert index.lookup(20, 20) == "Lesotho"
        assert index.lookup(5, 5) == "South Africa"
        assert index.lookup(35, 35) == "South Africa"
        assert index.lookup(60, 20) is None

    def test_subtracted_hole_over_ocean_stays_ocean(self):
        host = _feature(1, "South Africa", _box(0, 0, 40, 40), _box(10, 10, 30, 30))
        island = _feature(2, "Elsewhere", _box(100, 0, 110, 10))
        index = build_membership_index(
            [host, island], 360, 180,
            surface=BufferSurface(360, 180),
            options=MembershipOptions(subtract_holes=True),
        )

        assert index.lookup(20, 20) is None
        assert index.lookup(105, 5) == "Elsewhere"

    def test_vectorized_lookup_matches_scalar(self, rectangle_index):
        lons = np.array([0.0, -50.0, 25.5, 179.9, -180.0])
        lats = np.array([0.0, 0.0, -15.5, -89.9, 90.0])
        ids = rectangle_index.lookup_ids(lons, lats)

        assert list(ids) == [rectangle_index.lookup_id(lon, lat) for lon, lat in zip(lons, lats)]

    def test_edges_of_the_world_are_clamped(self, rectangle_index):
        assert rectangle_index.lookup(180, -90) is None
        assert rectangle_index.lookup(-180, 90) is None

    def test_classmethod_build(self):
        index = MembershipIndex.build([_feature(1, "A", _box(0, 0, 10, 10))], 360, 180,
                                      surface=BufferSurface(360, 180))
        assert index.lookup(5, 5) == "A"
        assert index.coverage() == pytest.approx(100 / (360 * 180))

    def test_no_raster_capability(self):
        with pytest.raises(RasterUnavailableError):
            build_membership_index([], 360, 180, options=MembershipOptions(backend="none"))
