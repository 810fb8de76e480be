"""
KML boundary documents.

Converts Polygon and MultiPolygon features to KML 2.2 Placemarks and parses
them back. Parsing is lenient about coordinate tokens (non-numeric fields
read as zero) and about namespaces (documents without the KML namespace are
accepted), but a document that is not well-formed XML is rejected outright.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from lxml import etree

from kmlbuilder.constants import DEFAULT_KML_NAME, KML_NAMESPACE
from kmlbuilder.models import GeometryType, feature
from kmlbuilder.spatial.spatial_utils import close_ring

logger = logging.getLogger(__name__)

NSMAP = {None: KML_NAMESPACE}


class KMLFormatError(ValueError):
    """Raised when a KML document cannot be parsed."""

    pass


# -------------------------------------------------------------------
# Writing
# -------------------------------------------------------------------


def _element(parent, tag, text=None):
    el = etree.SubElement(parent, f"{{{KML_NAMESPACE}}}{tag}")
    if text is not None:
        el.text = text
    return el


def coordinate_string(ring) -> str:
    """Format a ring as whitespace-separated 'lon,lat,0' triples."""
    return " ".join(f"{c[0]},{c[1]},0" for c in ring)


def _add_ring(parent, boundary_tag, ring):
    boundary = _element(parent, boundary_tag)
    linear_ring = _element(boundary, "LinearRing")
    _element(linear_ring, "coordinates", coordinate_string(ring))


def _add_polygon(parent, rings):
    polygon = _element(parent, "Polygon")
    if rings:
        _add_ring(polygon, "outerBoundaryIs", rings[0])
        for hole in rings[1:]:
            _add_ring(polygon, "innerBoundaryIs", hole)
    return polygon


def _add_placemark(document, geojson: Dict[str, Any], name: str):
    placemark = _element(document, "Placemark")
    _element(placemark, "name", name)

    geometry = geojson.get("geometry") if geojson.get("type") == "Feature" else geojson
    kind = (geometry or {}).get("type")
    if kind == GeometryType.POLYGON.value:
        _add_polygon(placemark, geometry.get("coordinates") or [])
    elif kind == GeometryType.MULTIPOLYGON.value:
        multi = _element(placemark, "MultiGeometry")
        for rings in geometry.get("coordinates") or []:
            _add_polygon(multi, rings)
    else:
        logger.warning(f"Skipping unsupported geometry type {kind} in KML output")
    return placemark


def _feature_name(geojson: Dict[str, Any], default: str) -> str:
    properties = geojson.get("properties") or {}
    return properties.get("name") or default


def _to_text(root) -> str:
    return etree.tostring(
        root, xml_declaration=True, encoding="UTF-8", pretty_print=True
    ).decode("utf-8")


def features_to_kml(features: List[Dict[str, Any]], name: str = DEFAULT_KML_NAME) -> str:
    """
    Write several features into one KML Document, one Placemark each.
    """
    root = etree.Element(f"{{{KML_NAMESPACE}}}kml", nsmap=NSMAP)
    document = _element(root, "Document")
    _element(document, "name", name)
    for f in features:
        _add_placemark(document, f, _feature_name(f, name))
    return _to_text(root)


def to_kml(geojson: Dict[str, Any], name: Optional[str] = None) -> str:
    """
    Write a single Feature (or bare geometry) as a KML document.

    The document and Placemark are named 'name', falling back to the
    feature's ``name`` property and then to "Boundary".
    """
    name = name or _feature_name(geojson, DEFAULT_KML_NAME)
    root = etree.Element(f"{{{KML_NAMESPACE}}}kml", nsmap=NSMAP)
    document = _element(root, "Document")
    _element(document, "name", name)
    _add_placemark(document, geojson, name)
    return _to_text(root)


def to_geojson_text(value: Any) -> str:
    """Feature, FeatureCollection or list of Features as indented JSON."""
    if isinstance(value, list):
        value = {"type": "FeatureCollection", "features": value}
    return json.dumps(value, indent=2)


def export_filename(name: Optional[str], extension: str) -> str:
    """
    Download filename for a layer: the part of its name before the first
    comma, or "boundary".
    """
    stem = (name or "").split(",")[0].strip() or "boundary"
    return f"{stem}.{extension.lstrip('.')}"


# -------------------------------------------------------------------
# Reading
# -------------------------------------------------------------------


def _children(node, local_name):
    return node.xpath(f"./*[local-name()='{local_name}']")


def _descendants(node, local_name):
    return node.xpath(f".//*[local-name()='{local_name}']")


def _number(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


def parse_coordinates(text: Optional[str]) -> List[List[float]]:
    """
    Parse a KML <coordinates> body into [lon, lat] pairs.

    Altitude is dropped. Missing or non-numeric fields read as 0.
    """
    points = []
    for token in (text or "").split():
        fields = token.split(",")
        lon = _number(fields[0])
        lat = _number(fields[1]) if len(fields) > 1 else 0.0
        points.append([lon, lat])
    return points


def _ring(boundary) -> List[List[float]]:
    coordinates = _descendants(boundary, "coordinates")
    if not coordinates:
        return []
    return close_ring(parse_coordinates(coordinates[0].text))


def _polygon_rings(polygon) -> list:
    rings = []
    for outer in _children(polygon, "outerBoundaryIs"):
        rings.append(_ring(outer))
    for inner in _children(polygon, "innerBoundaryIs"):
        rings.append(_ring(inner))
    return [ring for ring in rings if ring]


def _placemark_geometry(placemark) -> Optional[Dict[str, Any]]:
    multi = _children(placemark, "MultiGeometry")
    if multi:
        parts = [_polygon_rings(p) for p in _descendants(multi[0], "Polygon")]
        return {"type": GeometryType.MULTIPOLYGON.value, "coordinates": [p for p in parts if p]}

    polygons = _children(placemark, "Polygon")
    if polygons:
        return {"type": GeometryType.POLYGON.value, "coordinates": _polygon_rings(polygons[0])}

    return None


def parse_kml(text) -> List[Dict[str, Any]]:
    """
    Parse a KML document into a list of Features.

    Each Placemark holding a Polygon or MultiGeometry becomes one Feature with
    its name in ``properties["name"]``. Placemarks without polygons are
    skipped; a document with none yields an empty list.

    Raises:
        KMLFormatError: If the document is not well-formed XML
    """
    if isinstance(text, str):
        text = text.encode("utf-8")

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(text, parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise KMLFormatError(f"Malformed KML document: {e}") from e
    if root is None:
        raise KMLFormatError("Malformed KML document: no root element")

    features = []
    for placemark in _descendants(root, "Placemark"):
        geometry = _placemark_geometry(placemark)
        if geometry is None:
            continue
        names = _children(placemark, "name")
        name = names[0].text.strip() if names and names[0].text else None
        features.append(feature(geometry, {"name": name}))

    logger.debug(f"Parsed {len(features)} feature(s) from KML")
    return features
