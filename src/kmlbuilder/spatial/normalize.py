"""
Coordinate normalization.

Drops any altitude dimension and truncates coordinate values to a fixed
number of decimal digits so floating noise from upstream sources does not
leak into the merge stages.
"""

import math
from decimal import ROUND_DOWN, Decimal, localcontext
from functools import lru_cache
from typing import Any

from kmlbuilder.constants import DEFAULT_PRECISION


@lru_cache(maxsize=32)
def _quantum(precision: int) -> Decimal:
    return Decimal(1).scaleb(-precision)


def truncate_value(value: float, precision: int = DEFAULT_PRECISION) -> float:
    """
    Truncate (toward zero, never round) a number to 'precision' decimals.

    Works on the shortest decimal representation of the float so values that
    already fit the precision come back unchanged.
    """
    value = float(value)
    if not math.isfinite(value):
        return value
    with localcontext() as ctx:
        ctx.prec = 64
        return float(Decimal(repr(value)).quantize(_quantum(precision), rounding=ROUND_DOWN))


def truncate_coordinate(coordinate, precision: int = DEFAULT_PRECISION) -> list:
    """Keep x and y only, truncated."""
    return [truncate_value(coordinate[0], precision), truncate_value(coordinate[1], precision)]


def _normalize_rings(rings, precision):
    return [[truncate_coordinate(c, precision) for c in ring] for ring in rings]


def normalize_geometry(geojson: Any, precision: int = DEFAULT_PRECISION) -> Any:
    """
    Return a 2-D, truncated copy of a GeoJSON value.

    Polygons and MultiPolygons are rewritten; Features, FeatureCollections and
    GeometryCollections are walked. Anything else is returned unchanged. The
    input is never modified.
    """
    if not isinstance(geojson, dict):
        return geojson

    kind = geojson.get("type")
    if kind == "Polygon":
        return {**geojson, "coordinates": _normalize_rings(geojson.get("coordinates") or [], precision)}
    if kind == "MultiPolygon":
        return {
            **geojson,
            "coordinates": [
                _normalize_rings(rings, precision) for rings in geojson.get("coordinates") or []
            ],
        }
    if kind == "Feature":
        return {**geojson, "geometry": normalize_geometry(geojson.get("geometry"), precision)}
    if kind == "FeatureCollection":
        return {
            **geojson,
            "features": [normalize_geometry(f, precision) for f in geojson.get("features") or []],
        }
    if kind == "GeometryCollection":
        return {
            **geojson,
            "geometries": [normalize_geometry(g, precision) for g in geojson.get("geometries") or []],
        }
    return geojson
