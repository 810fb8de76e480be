"""
Ring and polygon extraction.

Flattens a Polygon or MultiPolygon (optionally wrapped in a Feature,
FeatureCollection or GeometryCollection) into an ordered list of
PolygonShape records, discarding degenerate rings along the way.
"""

import logging
from typing import Any, Iterator, List

from kmlbuilder.models import GeometryType, PolygonShape
from kmlbuilder.spatial.spatial_utils import close_ring, is_valid_ring

logger = logging.getLogger(__name__)


def ring_sets(geojson: Any) -> Iterator[list]:
    """
    Yield the raw ring-set (outer ring followed by holes) of every polygon in
    'geojson', in traversal order.
    """
    if not isinstance(geojson, dict):
        return

    kind = geojson.get("type")
    if kind == GeometryType.POLYGON.value:
        yield geojson.get("coordinates") or []
    elif kind == GeometryType.MULTIPOLYGON.value:
        yield from geojson.get("coordinates") or []
    elif kind == "Feature":
        yield from ring_sets(geojson.get("geometry"))
    elif kind == "FeatureCollection":
        for f in geojson.get("features") or []:
            yield from ring_sets(f)
    elif kind == "GeometryCollection":
        for g in geojson.get("geometries") or []:
            yield from ring_sets(g)


def valid_rings(rings: list) -> list:
    """Drop rings with fewer than 4 points."""
    return [ring for ring in rings if ring is not None and is_valid_ring(ring)]


def extract_polygons(geojson: Any) -> List[PolygonShape]:
    """
    Extract every usable polygon from a GeoJSON value.

    Degenerate rings are dropped; the first surviving ring of a ring-set is
    its outer ring, and a ring-set with no surviving ring is dropped. Kept
    rings are closed. Order follows the input; nothing is sorted here.
    """
    polygons = []
    dropped = 0
    for rings in ring_sets(geojson):
        rings = valid_rings(list(rings or []))
        if not rings:
            dropped += 1
            continue
        polygons.append(PolygonShape.from_coordinates([close_ring(ring) for ring in rings]))

    if dropped:
        logger.debug(f"Dropped {dropped} degenerate ring-set(s)")

    return polygons
