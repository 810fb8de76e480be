"""
Tests for the normalize module.
"""

import copy

from kmlbuilder.spatial.normalize import (
    normalize_geometry,
    truncate_coordinate,
    truncate_value,
)


class TestTruncateValue:
    """Test suite for decimal truncation."""

    def test_truncates_excess_digits(self):
        """Test digits past the tenth decimal are cut."""
        assert truncate_value(1.23456789012345) == 1.2345678901

    def test_truncates_toward_zero(self):
        """Test truncation never rounds up, on either side of zero."""
        assert truncate_value(0.12345678919) == 0.1234567891
        assert truncate_value(-1.23456789019) == -1.2345678901

    def test_short_values_unchanged(self):
        """Test values that already fit the precision are returned as-is."""
        for value in [0.1, 0.3, 1.15, -77.0365, 180.0, 0.0]:
            assert truncate_value(value) == value

    def test_repeated_truncation_is_stable(self):
        """Test truncating twice gives the same value as truncating once."""
        once = truncate_value(12.987654321987654)
        assert truncate_value(once) == once

    def test_custom_precision(self):
        """Test a coarser precision."""
        assert truncate_value(3.14159, 2) == 3.14

    def test_integer_input(self):
        """Test integers come back as floats."""
        assert truncate_value(5) == 5.0


class TestTruncateCoordinate:
    """Test suite for per-coordinate normalization."""

    def test_drops_altitude(self):
        """Test the third dimension is removed."""
        assert truncate_coordinate([10.5, 20.25, 300.0]) == [10.5, 20.25]

    def test_two_dimensional_input(self):
        """Test 2-D coordinates keep both values."""
        assert truncate_coordinate((1.0, 2.0)) == [1.0, 2.0]


class TestNormalizeGeometry:
    """Test suite for normalizing GeoJSON values."""

    def test_polygon_with_altitude(self):
        """Test a 3-D polygon becomes 2-D."""
        geometry = {
            "type": "Polygon",
            "coordinates": [[[0, 0, 5], [1, 0, 5], [1, 1, 5], [0, 0, 5]]],
        }

        result = normalize_geometry(geometry)

        assert result["type"] == "Polygon"
        assert result["coordinates"] == [[[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 0.0]]]

    def test_multipolygon(self):
        """Test every part of a MultiPolygon is normalized."""
        geometry = {
            "type": "MultiPolygon",
            "coordinates": [
                [[[0.123456789012, 0, 1], [1, 0], [1, 1], [0.123456789012, 0, 1]]],
                [[[5, 5, 2], [6, 5], [6, 6], [5, 5, 2]]],
            ],
        }

        result = normalize_geometry(geometry)

        assert result["coordinates"][0][0][0] == [0.1234567890, 0.0]
        assert all(len(c) == 2 for rings in result["coordinates"] for ring in rings for c in ring)

    def test_feature_collection_is_walked(self):
        """Test features inside a collection are normalized."""
        collection = {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "properties": {"name": "a"},
                    "geometry": {"type": "Polygon", "coordinates": [[[0, 0, 9], [1, 0, 9], [1, 1, 9], [0, 0, 9]]]},
                }
            ],
        }

        result = normalize_geometry(collection)

        feature = result["features"][0]
        assert feature["properties"] == {"name": "a"}
        assert feature["geometry"]["coordinates"][0][0] == [0.0, 0.0]

    def test_unsupported_type_passes_through(self):
        """Test geometry types other than polygons are untouched."""
        point = {"type": "Point", "coordinates": [1.123456789012, 2.0, 3.0]}
        assert normalize_geometry(point) is point

    def test_non_mapping_passes_through(self):
        """Test values that are not GeoJSON mappings are returned as-is."""
        assert normalize_geometry(None) is None

    def test_input_not_modified(self):
        """Test normalization builds a new value."""
        geometry = {"type": "Polygon", "coordinates": [[[0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 0, 1]]]}
        before = copy.deepcopy(geometry)

        normalize_geometry(geometry)

        assert geometry == before
