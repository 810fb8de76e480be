"""
Tests for the extract module.
"""

import pytest

from kmlbuilder.models import PolygonShape
from kmlbuilder.spatial.extract import extract_polygons, ring_sets, valid_rings


@pytest.fixture
def square():
    return [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]


@pytest.fixture
def far_square():
    return [[10, 0], [11, 0], [11, 1], [10, 1], [10, 0]]


@pytest.fixture
def hole():
    return [[0.25, 0.25], [0.75, 0.25], [0.75, 0.75], [0.25, 0.25]]


class TestRingSets:
    """Test suite for ring-set traversal."""

    def test_polygon_yields_one_ring_set(self, square):
        """Test a Polygon is a single ring-set."""
        assert list(ring_sets({"type": "Polygon", "coordinates": [square]})) == [[square]]

    def test_multipolygon_yields_each_member(self, square, far_square):
        """Test each MultiPolygon member is visited in order."""
        geometry = {"type": "MultiPolygon", "coordinates": [[square], [far_square]]}
        assert list(ring_sets(geometry)) == [[square], [far_square]]

    def test_other_types_yield_nothing(self):
        """Test non-polygon geometries contribute nothing."""
        assert list(ring_sets({"type": "LineString", "coordinates": [[0, 0], [1, 1]]})) == []


class TestValidRings:
    """Test suite for degenerate ring filtering."""

    def test_short_rings_dropped(self, square):
        """Test rings under 4 points are removed."""
        assert valid_rings([square, [[0, 0], [1, 1], [0, 0]]]) == [square]


class TestExtractPolygons:
    """Test suite for polygon extraction."""

    def test_polygon_with_hole(self, square, hole):
        """Test outer ring and hole are both kept."""
        polygons = extract_polygons({"type": "Polygon", "coordinates": [square, hole]})

        assert len(polygons) == 1
        assert polygons[0].outer == tuple(tuple(c) for c in square)
        assert polygons[0].holes == (tuple(tuple(c) for c in hole),)

    def test_multipolygon_keeps_input_order(self, square, far_square):
        """Test extraction order follows the input, not size."""
        big = [[0, 0], [5, 0], [5, 5], [0, 5], [0, 0]]
        polygons = extract_polygons({"type": "MultiPolygon", "coordinates": [[square], [big], [far_square]]})

        assert [p.outer[1] for p in polygons] == [(1, 0), (5, 0), (11, 0)]

    def test_degenerate_hole_dropped(self, square):
        """Test a hole with fewer than 4 points is discarded."""
        polygons = extract_polygons({"type": "Polygon", "coordinates": [square, [[0.2, 0.2], [0.3, 0.3]]]})

        assert polygons == [PolygonShape.from_coordinates([square])]

    def test_degenerate_outer_promotes_next_ring(self, far_square):
        """Test the first surviving ring becomes the outer ring."""
        geometry = {"type": "Polygon", "coordinates": [[[0, 0], [1, 1], [0, 0]], far_square]}

        polygons = extract_polygons(geometry)

        assert polygons == [PolygonShape.from_coordinates([far_square])]

    def test_ring_set_without_valid_rings_dropped(self, far_square):
        """Test a ring-set is dropped only when none of its rings survive."""
        geometry = {
            "type": "MultiPolygon",
            "coordinates": [[[[0, 0], [1, 1], [0, 0]], [[2, 2], [3, 3]]], [far_square]],
        }

        polygons = extract_polygons(geometry)

        assert len(polygons) == 1
        assert polygons[0].outer[0] == (10, 0)

    def test_open_rings_closed(self):
        """Test rings missing their closing point are closed."""
        geometry = {
            "type": "Polygon",
            "coordinates": [
                [[0, 0], [4, 0], [4, 4], [0, 4]],
                [[1, 1], [2, 1], [2, 2], [1, 2]],
            ],
        }

        polygon = extract_polygons(geometry)[0]

        assert polygon.outer == ((0, 0), (4, 0), (4, 4), (0, 4), (0, 0))
        assert polygon.holes[0][0] == polygon.holes[0][-1]
        assert len(polygon.holes[0]) == 5

    def test_empty_multipolygon(self):
        """Test an empty MultiPolygon yields no polygons."""
        assert extract_polygons({"type": "MultiPolygon", "coordinates": []}) == []

    def test_empty_polygon(self):
        """Test a Polygon without rings yields no polygons."""
        assert extract_polygons({"type": "Polygon", "coordinates": []}) == []

    def test_feature_is_unwrapped(self, square):
        """Test a Feature's geometry is extracted."""
        feature = {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": [square]}}
        assert len(extract_polygons(feature)) == 1

    def test_feature_collection(self, square, far_square):
        """Test every feature of a collection contributes."""
        collection = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": [square]}},
                {"type": "Feature", "properties": {}, "geometry": {"type": "MultiPolygon", "coordinates": [[far_square]]}},
            ],
        }
        assert len(extract_polygons(collection)) == 2
