"""
Utility functions for spatial geometry operations.

This module contains shared helpers used by the merge stages: ring closure,
conversion between PolygonShape records and shapely geometries, and metric
buffering of lon/lat geometries through a local UTM projection.
"""

import logging
from functools import lru_cache
from typing import List, Sequence

import pyproj
from funcy import first, last
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform

from kmlbuilder.constants import CLOSURE_TOLERANCE, MIN_RING_POINTS
from kmlbuilder.models import PolygonShape

logger = logging.getLogger(__name__)


def is_closed(ring: Sequence, tolerance: float = CLOSURE_TOLERANCE) -> bool:
    """True if the first and last points agree within 'tolerance' on both axes."""
    if not ring:
        return False
    head, tail = first(ring), last(ring)
    return abs(head[0] - tail[0]) <= tolerance and abs(head[1] - tail[1]) <= tolerance


def close_ring(points: Sequence, tolerance: float = CLOSURE_TOLERANCE) -> list:
    """
    Return a copy of the input points, extended if necessary so the first and
    last points have the same value. The original sequence is not modified.
    """
    ring = list(points)
    if ring and not is_closed(ring, tolerance):
        ring.append(first(ring))
    return ring


def is_valid_ring(ring: Sequence) -> bool:
    return len(ring) >= MIN_RING_POINTS


def shape_to_polygon(shape: PolygonShape, with_holes: bool = True) -> Polygon:
    """Build a shapely Polygon from a PolygonShape record."""
    holes = [list(h) for h in shape.holes] if with_holes else None
    return Polygon(list(shape.outer), holes)


def polygons_of(geom: BaseGeometry) -> List[Polygon]:
    """
    Flatten a shapely geometry into its non-empty Polygon parts.
    """
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, MultiPolygon):
        return [p for p in geom.geoms if not p.is_empty]
    if hasattr(geom, "geoms"):
        return [p for g in geom.geoms for p in polygons_of(g)]
    return []


def exterior_shape(polygon: Polygon) -> PolygonShape:
    """The exterior ring of a shapely Polygon as a hole-free PolygonShape."""
    return PolygonShape(outer=tuple((x, y) for x, y, *_ in polygon.exterior.coords))


@lru_cache(maxsize=128)
def get_utm_transformers(center_lon, center_lat):
    """
    Get cached UTM transformers for a given location.

    Parameters:
    -----------
    center_lon : float
        Center longitude for UTM zone calculation
    center_lat : float
        Center latitude for hemisphere determination

    Returns:
    --------
    tuple : (to_utm, to_wgs) transformer objects
    """
    utm_zone = min(60, max(1, int((center_lon + 180) / 6) + 1))

    if center_lat >= 0:
        proj_string = f"+proj=utm +zone={utm_zone} +north +datum=WGS84"
    else:
        proj_string = f"+proj=utm +zone={utm_zone} +south +datum=WGS84"

    to_utm = pyproj.Transformer.from_crs("EPSG:4326", proj_string, always_xy=True)
    to_wgs = pyproj.Transformer.from_crs(proj_string, "EPSG:4326", always_xy=True)

    return to_utm, to_wgs


def buffer_in_meters(geom: BaseGeometry, buffer_distance: float) -> BaseGeometry:
    """
    Buffer a lon/lat geometry by a distance in meters.

    The geometry is projected into the UTM zone of its centroid, buffered
    there (negative distances shrink it), and projected back.

    Parameters:
    -----------
    geom : shapely geometry
        Geometry to buffer, coordinates in degrees
    buffer_distance : float
        Buffer distance in meters

    Returns:
    --------
    buffered : shapely geometry
        Buffered geometry in lon/lat
    """
    center = geom.centroid
    # Round to 1 decimal place to improve cache hit rate
    to_utm, to_wgs = get_utm_transformers(round(center.x, 1), round(center.y, 1))

    geom_utm = transform(to_utm.transform, geom)
    buffered_utm = geom_utm.buffer(buffer_distance)
    return transform(to_wgs.transform, buffered_utm)
