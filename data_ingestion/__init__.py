"""
Data Ingestion Module for the globe vector rendering pipeline.

This module loads GeoJSON into the geometry tree the renderer consumes.
"""

from data_ingestion.geometry import (
    GeometryKind,
    Point,
    MultiPoint,
    LineString,
    MultiLineString,
    Polygon,
    MultiPolygon,
    GeometryCollection,
    Feature,
    FeatureCollection,
    GeometryVisitor,
    RingCollector,
    rings_of,
)

from data_ingestion.geojson_loader import (
    ErrorCategory,
    GeoJSONError,
    parse_geometry,
    parse_feature,
    load_geojson,
)

__all__ = [
    "GeometryKind",
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
    "Feature",
    "FeatureCollection",
    "GeometryVisitor",
    "RingCollector",
    "rings_of",
    "ErrorCategory",
    "GeoJSONError",
    "parse_geometry",
    "parse_feature",
    "load_geojson",
]
