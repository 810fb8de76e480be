import configparser
import dataclasses
import json
import logging
import os.path
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from funcy import decorator, rcompose
from pyfiglet import Figlet
from rich.prompt import Confirm, Prompt

from kmlbuilder import config
from kmlbuilder import constants
from kmlbuilder import kml
from kmlbuilder.models import (
    MergeMode,
    SearchResult,
    empty_polygon,
    feature,
    polygon_geometry,
)
from kmlbuilder.spatial.area import rank_polygons
from kmlbuilder.spatial.backfill import backfill_polygons
from kmlbuilder.spatial.bridging import bridge_polygons
from kmlbuilder.spatial.extract import extract_polygons
from kmlbuilder.spatial.normalize import normalize_geometry
from kmlbuilder.spatial.spatial_utils import close_ring


CONSOLE_FORMAT = "%(message)s"
LOGFILE_FORMAT = "%(asctime)s|%(levelname)s|%(name)s|%(message)s"
LOGFILE_NAME = "kmlbuilder.log"


def init_logging(log_file: Optional[str] = LOGFILE_NAME):
    logger = logging.getLogger('kmlbuilder')
    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        logfile_handler = logging.FileHandler(log_file, "w")
        logfile_handler.setLevel(logging.DEBUG)
        logfile_handler.setFormatter(logging.Formatter(LOGFILE_FORMAT))
        logger.addHandler(logfile_handler)

@decorator
def log(call):
    logging.getLogger("kmlbuilder").debug(call._func.__name__)
    return call()

def banner():
    """
    Displays the name of this utility using incredible ASCII-art.
    """
    f = Figlet(font='slant')
    return f.renderText('kmlbuilder')

def init_config(configuration_file):
    """
    Prompts the user for configuration values and then creates a valid configuration file.
    """
    print("""This utility will create a KML Builder configuration file by prompting """
          """you for values for each of the configuration parameters.""")
    print()
    if not configuration_file:
        configuration_file = Prompt.ask("configuration file name", default="kmlbuilder.ini")
    else:
        print(f'Creating configuration file {configuration_file}')
        print()

    if os.path.exists(configuration_file):
        print(f'WARNING: The {configuration_file} already exists.')
        overwrite = Confirm.ask("Overwrite?")
        if not overwrite:
            print('Not overwriting existing file. Exiting.')
            sys.exit(1)

    cfg_parser = configparser.ConfigParser()

    print()
    print(f'{constants.PROCESSING_SECTION_NAME} Parameters')
    print('--------------------------------------------------')
    cfg_parser.add_section(constants.PROCESSING_SECTION_NAME)
    cfg_parser.set(constants.PROCESSING_SECTION_NAME, "mode", Prompt.ask("Merge mode", choices=[constants.ACCURATE, constants.APPROXIMATE], default=constants.DEFAULT_MODE))
    cfg_parser.set(constants.PROCESSING_SECTION_NAME, "precision", Prompt.ask("Coordinate precision (decimal digits)", default=str(constants.DEFAULT_PRECISION)))
    cfg_parser.set(constants.PROCESSING_SECTION_NAME, "area_method", Prompt.ask("Area method", choices=[constants.GEODESIC, constants.PLANAR], default=constants.DEFAULT_AREA_METHOD))

    print()
    print(f'{constants.BRIDGING_SECTION_NAME} Parameters')
    print('--------------------------------------------------')
    cfg_parser.add_section(constants.BRIDGING_SECTION_NAME)
    cfg_parser.set(constants.BRIDGING_SECTION_NAME, "sample_budget", Prompt.ask("Vertices sampled per ring", default=str(constants.DEFAULT_SAMPLE_BUDGET)))

    print()
    print(f'{constants.BACKFILL_SECTION_NAME} Parameters')
    print('--------------------------------------------------')
    cfg_parser.add_section(constants.BACKFILL_SECTION_NAME)
    cfg_parser.set(constants.BACKFILL_SECTION_NAME, "backfill_distance_km", Prompt.ask("Backfill distance (km)", default=str(constants.DEFAULT_BACKFILL_DISTANCE_KM)))
    cfg_parser.set(constants.BACKFILL_SECTION_NAME, "backfill_tolerance", Prompt.ask("Simplification tolerance (degrees)", default=str(constants.DEFAULT_BACKFILL_TOLERANCE)))

    print()
    print(f'{constants.SEARCH_SECTION_NAME} Parameters')
    print('--------------------------------------------------')
    cfg_parser.add_section(constants.SEARCH_SECTION_NAME)
    cfg_parser.set(constants.SEARCH_SECTION_NAME, "search_url", Prompt.ask("Search service URL", default=constants.DEFAULT_SEARCH_URL))
    cfg_parser.set(constants.SEARCH_SECTION_NAME, "user_agent", Prompt.ask("User agent", default=constants.DEFAULT_USER_AGENT))
    cfg_parser.set(constants.SEARCH_SECTION_NAME, "search_timeout", Prompt.ask("Search timeout (seconds)", default=str(constants.DEFAULT_SEARCH_TIMEOUT)))

    print()
    print(f'Saving new configuration: {configuration_file}')
    with open(configuration_file, "tw") as file:
        cfg_parser.write(file)

    return configuration_file

# -------------------------------------------------------------------
# Single-polygon pipeline
# -------------------------------------------------------------------

@log
def ensure_single_polygon(
    geojson: Any,
    mode=MergeMode.ACCURATE,
    configuration: Optional[config.Config] = None,
) -> Dict[str, Any]:
    """
    Reduce any Polygon/MultiPolygon value to exactly one Polygon.

    Coordinates are normalized, usable polygons extracted, optionally
    backfilled (approximate mode, two or more polygons), ranked by area and
    bridged. Only the holes of the largest input polygon are kept.

    Returns:
        A GeoJSON Polygon mapping; ``{"type": "Polygon", "coordinates": []}``
        when the input holds no usable ring.
    """
    configuration = configuration or config.default_configuration()
    mode = MergeMode.parse(mode)

    polygons = rcompose(
        lambda g: normalize_geometry(g, configuration.precision),
        extract_polygons,
    )(geojson)

    if not polygons:
        return empty_polygon()
    if len(polygons) == 1 and mode is MergeMode.ACCURATE:
        return polygon_geometry(polygons[0])

    dominant = rank_polygons(polygons, configuration.area_method)[0].shape

    working = polygons
    if mode is MergeMode.APPROXIMATE and len(polygons) > 1:
        working = backfill_polygons(
            polygons,
            configuration.backfill_distance_km,
            configuration.backfill_tolerance,
        )

    ranked = rank_polygons(working, configuration.area_method)
    merged = bridge_polygons(ranked, configuration.sample_budget)
    return polygon_geometry(dataclasses.replace(merged, holes=dominant.holes))

def process_feature(
    geojson: Dict[str, Any],
    mode=MergeMode.ACCURATE,
    configuration: Optional[config.Config] = None,
) -> Dict[str, Any]:
    """
    Return a new Feature whose geometry is the single-polygon form of
    'geojson'. The unprocessed input is kept under ``originalGeoJson`` so the
    feature can be reprocessed after a mode change.
    """
    properties = dict(geojson.get("properties") or {}) if geojson.get("type") == "Feature" else {}
    original = properties.get("originalGeoJson", geojson)
    properties["originalGeoJson"] = original
    return feature(ensure_single_polygon(original, mode, configuration), properties)

def reprocess_features(
    features: List[Dict[str, Any]],
    mode,
    configuration: Optional[config.Config] = None,
) -> List[Dict[str, Any]]:
    """Rebuild every feature from its ``originalGeoJson`` under 'mode'."""
    return [
        process_feature(f, mode, configuration)
        if (f.get("properties") or {}).get("originalGeoJson") else f
        for f in features
    ]

def feature_from_search_result(
    result: SearchResult,
    mode=MergeMode.ACCURATE,
    configuration: Optional[config.Config] = None,
) -> Optional[Dict[str, Any]]:
    """
    Build a processed Feature from a search candidate, or None when the
    candidate carries no boundary geometry.
    """
    if not result.geojson:
        return None
    return feature(
        ensure_single_polygon(result.geojson, mode, configuration),
        {
            "name": result.display_name,
            "originalGeoJson": result.geojson,
            "osm_id": result.osm_id,
        },
    )

def regenerate_polygon(points: Sequence) -> Dict[str, Any]:
    """
    Build a Polygon from an edited list of (lon, lat) points.

    The ring is closed when its ends differ by more than the closure
    tolerance.

    Raises:
        ValueError: If fewer than 3 points are given
    """
    if len(points) < constants.MIN_EDIT_POINTS:
        raise ValueError(
            f"Need at least {constants.MIN_EDIT_POINTS} points to create a polygon, got {len(points)}"
        )
    ring = [[float(p[0]), float(p[1])] for p in close_ring(points)]
    return {"type": "Polygon", "coordinates": [ring]}

# -------------------------------------------------------------------
# Files
# -------------------------------------------------------------------

def read_features(path) -> List[Dict[str, Any]]:
    """
    Read Features from a KML or GeoJSON file.

    GeoJSON may hold a FeatureCollection, a single Feature or a bare
    geometry.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".kml":
        return kml.parse_kml(text)

    value = json.loads(text)
    kind = value.get("type") if isinstance(value, dict) else None
    if kind == "FeatureCollection":
        return list(value.get("features") or [])
    if kind == "Feature":
        return [value]
    if kind in ("Polygon", "MultiPolygon"):
        return [feature(value, {"name": path.stem})]
    raise ValueError(f"Unsupported GeoJSON content in {path}")

def merge_file(
    path,
    configuration: config.Config,
    output_format: str = constants.KML_FORMAT,
) -> str:
    """
    Process every feature of a KML or GeoJSON file and render the result.
    """
    logger = logging.getLogger("kmlbuilder")
    features = read_features(path)
    if not features:
        raise ValueError(f"No valid features found in {path}")

    processed = [process_feature(f, configuration.merge_mode, configuration) for f in features]
    log_summary(features, processed)

    if output_format == constants.GEOJSON_FORMAT:
        # originalGeoJson is an in-memory aid, not part of the export
        exported = [
            feature(f["geometry"], {k: v for k, v in f["properties"].items() if k != "originalGeoJson"})
            for f in processed
        ]
        return kml.to_geojson_text(exported if len(exported) > 1 else exported[0])
    logger.debug(f"Writing {len(processed)} placemark(s) as KML")
    return kml.features_to_kml(processed, name=Path(path).stem)

def log_summary(originals: List[Dict[str, Any]], processed: List[Dict[str, Any]]) -> None:
    logger = logging.getLogger("kmlbuilder")
    logger.info("Processing Summary")
    logger.info("==================")
    logger.info(f"Features: {len(processed)}")
    for original, result in zip(originals, processed):
        name = (result.get("properties") or {}).get("name") or "(unnamed)"
        parts = len(extract_polygons(original))
        rings = result["geometry"]["coordinates"]
        points = len(rings[0]) if rings else 0
        logger.info(f"  {name}: {parts} part(s) -> 1 ring of {points} points, {max(len(rings) - 1, 0)} hole(s)")
