"""
Spatial merge stages for KML Builder.

The stages run in this order for every boundary:

1. **normalize.normalize_geometry**: drop altitude, truncate precision
2. **extract.extract_polygons**: flatten into PolygonShape records
3. **backfill.backfill_polygons**: optional expand-contract gap closing
   (approximate mode, two or more polygons only)
4. **area.rank_polygons**: order by outer-ring area, largest first
5. **bridging.bridge_polygons**: splice everything into one ring

Callers normally go through kmlbuilder.builder.ensure_single_polygon, which
wires the stages together and applies configuration.
"""

__all__ = ["area", "backfill", "bridging", "extract", "normalize", "spatial_utils"]
