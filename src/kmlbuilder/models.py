"""
Data models for the kmlbuilder package.

This module contains the value types passed between the pipeline stages.
Geometries crossing the package boundary stay in their GeoJSON-style
mapping form; these dataclasses only live inside a single invocation.
"""

import dataclasses
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Coordinate = Tuple[float, float]
Ring = Tuple[Coordinate, ...]


class GeometryType(Enum):
    """GeoJSON geometry tags accepted and produced by the pipeline."""

    POLYGON = "Polygon"
    MULTIPOLYGON = "MultiPolygon"


class MergeMode(Enum):
    """How disjoint parts are merged into one polygon."""

    ACCURATE = "accurate"  # Bridging only
    APPROXIMATE = "approximate"  # Backfill, then bridging

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown merge mode {value!r}, expected one of "
                f"{', '.join(m.value for m in cls)}"
            )


@dataclasses.dataclass(frozen=True)
class PolygonShape:
    """
    One outer ring plus zero or more hole rings.

    Holes are assumed to lie inside the outer ring; nothing checks it.
    """

    outer: Ring
    holes: Tuple[Ring, ...] = ()

    @classmethod
    def from_coordinates(cls, rings) -> "PolygonShape":
        rings = [tuple(tuple(c) for c in ring) for ring in rings]
        return cls(outer=rings[0], holes=tuple(rings[1:]))

    def to_coordinates(self) -> List[List[List[float]]]:
        return [[list(c) for c in ring] for ring in (self.outer, *self.holes)]


@dataclasses.dataclass(frozen=True)
class RankedPolygon:
    """A polygon paired with the area of its outer ring."""

    shape: PolygonShape
    area: float


@dataclasses.dataclass(frozen=True)
class SearchResult:
    """
    A candidate boundary returned by the name-search service.

    Mirrors the fields of a Nominatim ``format=json`` search record that the
    builder cares about.
    """

    display_name: str
    lat: str
    lon: str
    osm_id: str
    geojson: Optional[Dict[str, Any]] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "SearchResult":
        return cls(
            display_name=record.get("display_name", ""),
            lat=str(record.get("lat", "")),
            lon=str(record.get("lon", "")),
            osm_id=str(record.get("osm_id", "")),
            geojson=record.get("geojson"),
        )


def empty_polygon() -> Dict[str, Any]:
    """The explicit empty result: a Polygon with no rings."""
    return {"type": GeometryType.POLYGON.value, "coordinates": []}


def polygon_geometry(shape: PolygonShape) -> Dict[str, Any]:
    return {"type": GeometryType.POLYGON.value, "coordinates": shape.to_coordinates()}


def feature(geometry: Dict[str, Any], properties: Optional[Dict] = None) -> Dict:
    return {
        "type": "Feature",
        "properties": dict(properties or {}),
        "geometry": geometry,
    }
