"""
Area ranking of extracted polygons.

Only the outer ring counts toward a polygon's rank; holes are ignored.
"""

import math
from typing import List, Sequence

from pyproj import Geod
from shapely.geometry import Polygon

from kmlbuilder.constants import DEFAULT_AREA_METHOD, GEODESIC, PLANAR
from kmlbuilder.models import PolygonShape, RankedPolygon

WGS84 = Geod(ellps="WGS84")


def planar_area(ring: Sequence) -> float:
    """Shoelace area of a ring in squared coordinate units."""
    total = 0.0
    for (x1, y1, *_), (x2, y2, *_) in zip(ring, ring[1:]):
        total += x1 * y2 - x2 * y1
    return abs(total) / 2.0


def geodesic_area(ring: Sequence) -> float:
    """Area of a lon/lat ring on the WGS84 ellipsoid, in square meters."""
    area, _ = WGS84.geometry_area_perimeter(Polygon([(c[0], c[1]) for c in ring]))
    return abs(area)


def is_geographic(ring: Sequence) -> bool:
    """True if every point is a valid lon/lat pair in degrees."""
    return all(-180.0 <= c[0] <= 180.0 and -90.0 <= c[1] <= 90.0 for c in ring)


def ring_area(ring: Sequence, method: str = DEFAULT_AREA_METHOD) -> float:
    """
    Area of a ring by 'method'.

    Geodesic area only applies to lon/lat degrees; other rings, and rings the
    ellipsoid cannot measure, use the planar area instead.
    """
    if method == GEODESIC:
        if is_geographic(ring):
            area = geodesic_area(ring)
            if math.isfinite(area):
                return area
        return planar_area(ring)
    elif method == PLANAR:
        return planar_area(ring)
    raise ValueError(f"Unknown area method: {method}")


def rank_polygons(
    polygons: List[PolygonShape], method: str = DEFAULT_AREA_METHOD
) -> List[RankedPolygon]:
    """
    Pair each polygon with its outer-ring area and sort by descending area.

    The sort is stable, so polygons with equal areas keep their input order.
    Geodesic ranking falls back to planar for the whole list as soon as one
    outer ring lies outside the lon/lat range, so all areas share one unit.
    """
    if method == GEODESIC and not all(is_geographic(p.outer) for p in polygons):
        method = PLANAR
    ranked = [RankedPolygon(shape=p, area=ring_area(p.outer, method)) for p in polygons]
    return sorted(ranked, key=lambda r: r.area, reverse=True)
