"""
Bridging of disjoint polygons into a single ring.

The outer ring of the largest polygon becomes the trunk. Every other outer
ring is spliced into it at its closest vertex pair, so the trunk walks to
the bridge point, goes once around the incoming ring and resumes. The result
touches itself along each seam but is always one closed ring.

Large rings are sampled with a fixed stride before the nearest-pair search,
which bounds a single search to roughly budget x budget comparisons no matter
how many vertices the inputs carry.
"""

import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from kmlbuilder.constants import DEFAULT_SAMPLE_BUDGET
from kmlbuilder.models import PolygonShape, RankedPolygon
from kmlbuilder.spatial.spatial_utils import close_ring, is_closed

logger = logging.getLogger(__name__)


def sample_stride(ring_length: int, budget: int = DEFAULT_SAMPLE_BUDGET) -> int:
    """
    Index stride used to scan a ring of 'ring_length' points.

    Rings at or below the budget are scanned exhaustively; longer rings never
    yield more than 'budget' samples.
    """
    if ring_length <= budget:
        return 1
    return math.ceil(ring_length / budget)


def ring_cycle(ring: Sequence) -> list:
    """The distinct vertices of a ring, without the closing duplicate."""
    ring = list(ring)
    if len(ring) > 1 and is_closed(ring):
        return ring[:-1]
    return ring


def closest_vertex_pair(
    trunk: Sequence, ring: Sequence, budget: int = DEFAULT_SAMPLE_BUDGET
) -> Tuple[int, int]:
    """
    Find indices (t, s) minimizing the squared distance trunk[t] to ring[s].

    Distances are planar in raw coordinates. Both rings are sampled with
    'sample_stride'. On ties the first minimum in scan order wins, scanning
    trunk indices in the outer loop and ring indices in the inner one.
    """
    t_idx = np.arange(0, len(trunk), sample_stride(len(trunk), budget))
    s_idx = np.arange(0, len(ring), sample_stride(len(ring), budget))

    t_pts = np.asarray([trunk[i][:2] for i in t_idx], dtype=float)
    s_pts = np.asarray([ring[i][:2] for i in s_idx], dtype=float)

    dx = t_pts[:, 0, np.newaxis] - s_pts[np.newaxis, :, 0]
    dy = t_pts[:, 1, np.newaxis] - s_pts[np.newaxis, :, 1]
    d2 = dx * dx + dy * dy

    # argmin returns the first occurrence in row-major order, i.e. scan order
    row, col = divmod(int(np.argmin(d2)), len(s_idx))
    return int(t_idx[row]), int(s_idx[col])


def splice_rings(trunk: Sequence, cycle: Sequence, t: int, s: int) -> list:
    """
    Splice 'cycle' into 'trunk' at the bridge (t, s).

    Walks trunk[0..t], jumps to cycle[s], goes all the way around the cycle
    back to cycle[s], then resumes the trunk from trunk[t].
    """
    trunk = list(trunk)
    cycle = list(cycle)
    return trunk[: t + 1] + cycle[s:] + cycle[: s + 1] + trunk[t:]


def bridge_polygons(
    ranked: List[RankedPolygon], budget: int = DEFAULT_SAMPLE_BUDGET
) -> PolygonShape:
    """
    Merge ranked polygons (largest first) into one PolygonShape.

    Only the largest polygon's holes survive; holes of the other polygons are
    discarded along with the rest of their ring-sets.

    Raises:
        ValueError: If 'ranked' is empty
    """
    if not ranked:
        raise ValueError("Need at least one polygon to bridge")

    largest = ranked[0].shape
    if len(ranked) == 1:
        return largest

    trunk = close_ring(largest.outer)
    for entry in ranked[1:]:
        cycle = ring_cycle(entry.shape.outer)
        t, s = closest_vertex_pair(trunk, cycle, budget)
        trunk = splice_rings(trunk, cycle, t, s)
        if entry.shape.holes:
            logger.debug(f"Discarding {len(entry.shape.holes)} hole(s) of a bridged polygon")

    logger.debug(f"Bridged {len(ranked)} polygons into a ring of {len(trunk)} points")
    return PolygonShape(outer=tuple(tuple(c) for c in trunk), holes=largest.holes)
