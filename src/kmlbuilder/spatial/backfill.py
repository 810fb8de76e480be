"""
Approximate backfill of small gaps between polygons.

Classic expand-contract: grow every outer ring by a fixed metric distance,
union the grown shapes, shrink the union back by the same distance and
simplify the outline. Gaps narrower than twice the distance close up, so the
bridging stage afterwards has fewer (often zero) seams to cut.

The stage is best effort. Any failure leaves the caller's polygons untouched.
"""

import logging
from functools import reduce
from typing import List

from shapely.geometry.base import BaseGeometry

from kmlbuilder.constants import DEFAULT_BACKFILL_DISTANCE_KM, DEFAULT_BACKFILL_TOLERANCE
from kmlbuilder.models import PolygonShape
from kmlbuilder.spatial.spatial_utils import (
    buffer_in_meters,
    exterior_shape,
    is_valid_ring,
    polygons_of,
    shape_to_polygon,
)

logger = logging.getLogger(__name__)


class BackfillError(Exception):
    """Raised when the expand-contract pass produces no usable polygon."""

    pass


def union_all(shapes: List[BaseGeometry]) -> BaseGeometry:
    """Fold shapes together left to right: union(union(s0, s1), s2) ..."""
    return reduce(lambda combined, shape: combined.union(shape), shapes)


def expand_contract(
    polygons: List[PolygonShape],
    distance_km: float = DEFAULT_BACKFILL_DISTANCE_KM,
    tolerance: float = DEFAULT_BACKFILL_TOLERANCE,
) -> List[PolygonShape]:
    """
    Run the buffer, union, shrink and simplify steps.

    Returns the exterior rings of the resulting polygons in shapely's part
    order; ranking happens afterwards.

    Raises:
        BackfillError: If any step leaves nothing usable
    """
    distance_m = distance_km * 1000.0

    buffered = [buffer_in_meters(shape_to_polygon(p, with_holes=False), distance_m) for p in polygons]
    buffered = [b for b in buffered if not b.is_empty]
    if not buffered:
        raise BackfillError("Buffering produced an empty geometry")

    combined = union_all(buffered)
    shrunk = buffer_in_meters(combined, -distance_m)
    if shrunk.is_empty:
        raise BackfillError("Shrinking produced an empty geometry")

    simplified = shrunk.simplify(tolerance, preserve_topology=True)
    shapes = [exterior_shape(p) for p in polygons_of(simplified)]
    shapes = [s for s in shapes if is_valid_ring(s.outer)]
    if not shapes:
        raise BackfillError("Simplification left no valid ring")

    return shapes


def backfill_polygons(
    polygons: List[PolygonShape],
    distance_km: float = DEFAULT_BACKFILL_DISTANCE_KM,
    tolerance: float = DEFAULT_BACKFILL_TOLERANCE,
) -> List[PolygonShape]:
    """
    Close small gaps between 'polygons', falling back to the input on failure.

    Only outer rings take part; holes are reattached later from the dominant
    input polygon.
    """
    try:
        shapes = expand_contract(polygons, distance_km, tolerance)
    except Exception as e:
        logger.warning(f"Backfill failed, falling back to bridging: {e}")
        return polygons

    logger.debug(f"Backfill reduced {len(polygons)} polygons to {len(shapes)}")
    return shapes
