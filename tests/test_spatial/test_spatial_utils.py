"""
Tests for spatial_utils module.
"""

import pytest
from shapely.geometry import GeometryCollection, LineString, MultiPolygon, Polygon

from kmlbuilder.models import PolygonShape
from kmlbuilder.spatial.spatial_utils import (
    buffer_in_meters,
    close_ring,
    exterior_shape,
    get_utm_transformers,
    is_closed,
    is_valid_ring,
    polygons_of,
    shape_to_polygon,
)


class TestRingClosure:
    """Test suite for ring closure helpers."""

    def test_close_open_ring(self):
        """Test the first point is appended to an open ring."""
        assert close_ring([(0, 0), (1, 0), (1, 1)]) == [(0, 0), (1, 0), (1, 1), (0, 0)]

    def test_closed_ring_unchanged(self):
        """Test a closed ring is not extended."""
        ring = [(0, 0), (1, 0), (1, 1), (0, 0)]
        assert close_ring(ring) == ring

    def test_within_tolerance_is_closed(self):
        """Test nearly coincident ends count as closed."""
        ring = [(0, 0), (1, 0), (1, 1), (0.00005, 0.00005)]
        assert is_closed(ring)
        assert close_ring(ring) == ring

    def test_outside_tolerance_is_open(self):
        """Test ends further apart than the tolerance are closed off."""
        ring = [(0, 0), (1, 0), (1, 1), (0.001, 0)]
        assert not is_closed(ring)
        assert len(close_ring(ring)) == 5

    def test_input_not_modified(self):
        """Test close_ring returns a copy."""
        ring = [(0, 0), (1, 0), (1, 1)]
        close_ring(ring)
        assert len(ring) == 3

    def test_empty(self):
        """Test an empty ring stays empty."""
        assert close_ring([]) == []
        assert not is_closed([])

    def test_valid_ring(self):
        """Test validity needs at least 4 points."""
        assert is_valid_ring([(0, 0), (1, 0), (1, 1), (0, 0)])
        assert not is_valid_ring([(0, 0), (1, 0), (0, 0)])


class TestShapelyConversion:
    """Test suite for PolygonShape and shapely conversions."""

    @pytest.fixture
    def holed(self):
        return PolygonShape(
            outer=((0, 0), (4, 0), (4, 4), (0, 4), (0, 0)),
            holes=(((1, 1), (2, 1), (2, 2), (1, 1)),),
        )

    def test_with_holes(self, holed):
        """Test holes become interior rings."""
        polygon = shape_to_polygon(holed)
        assert len(polygon.interiors) == 1
        assert polygon.area == pytest.approx(16 - 0.5)

    def test_without_holes(self, holed):
        """Test holes can be left out."""
        assert shape_to_polygon(holed, with_holes=False).area == 16

    def test_exterior_shape(self, holed):
        """Test the exterior ring comes back without holes."""
        shape = exterior_shape(shape_to_polygon(holed))
        assert shape.holes == ()
        assert shape.outer == ((0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0), (0.0, 0.0))

    def test_polygons_of(self):
        """Test every polygonal part is returned."""
        a = Polygon([(0, 0), (1, 0), (1, 1)])
        b = Polygon([(5, 5), (6, 5), (6, 6)])

        assert polygons_of(a) == [a]
        assert len(polygons_of(MultiPolygon([a, b]))) == 2
        assert len(polygons_of(GeometryCollection([a, LineString([(0, 0), (1, 1)])]))) == 1
        assert polygons_of(Polygon()) == []


class TestMetricBuffer:
    """Test suite for buffering in meters."""

    def test_utm_zone(self):
        """Test transformers project into the zone of the location."""
        to_utm, _ = get_utm_transformers(-105.3, 40.0)
        assert "zone=13" in to_utm.target_crs.to_proj4()

    def test_transformers_cached(self):
        """Test the same location reuses its transformers."""
        assert get_utm_transformers(10.0, 45.0) is get_utm_transformers(10.0, 45.0)

    def test_grow_and_shrink(self):
        """Test positive distances grow and negative distances shrink."""
        cell = Polygon([(0, 0), (0.01, 0), (0.01, 0.01), (0, 0.01)])

        assert buffer_in_meters(cell, 100).area > cell.area
        assert buffer_in_meters(cell, -100).area < cell.area
