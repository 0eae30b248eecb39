"""
GeoJSON Loader for the Geometry Tree.

This module turns GeoJSON (text or an already-decoded mapping) into the
geometry tree of `data_ingestion.geometry`. Validation follows RFC 7946 where
it matters to the projection pipeline: positions must be finite and in
range, lines need two positions and linear rings four, with the first and
last positions equal.

Partial Success
---------------
In a FeatureCollection each feature is parsed independently. A feature that
fails is skipped and its `GeoJSONError` collected on the result, so one bad
feature never prevents the rest of the map from loading. Errors at the
document level (bad JSON, unknown top-level type) are raised.

Error Paths
-----------
Every error carries a JSONPath-style location such as
``$.features[3].geometry.coordinates[0][2]``.

Units
-----
Positions are ``[longitude, latitude(, elevation)]`` in degrees. They are
converted to radians here, once, through the pint unit registry.
"""

import json
import math
from enum import Enum
from numbers import Real
from typing import Any, Callable, Dict, List, Mapping, Union

import numpy as np
from numpy.typing import NDArray

from common.logging_config import get_logger
from common.types import GeoCoordinate, Ring
from data_ingestion.geometry import (
    Feature,
    FeatureCollection,
    Geometry,
    GeometryCollection,
    GeometryKind,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)

logger = get_logger(__name__)

# Deepest GeometryCollection nesting accepted below a geometry
MAX_COLLECTION_DEPTH = 32


class ErrorCategory(Enum):
    """Why a piece of GeoJSON was rejected."""
    INVALID_JSON = "invalid_json"
    MISSING_FIELD = "missing_field"
    INVALID_TYPE = "invalid_type"
    INVALID_VALUE = "invalid_value"
    CONSTRAINT_VIOLATION = "constraint_violation"
    UNKNOWN_TYPE = "unknown_type"


class GeoJSONError(ValueError):
    """A GeoJSON validation failure at a specific location.

    Attributes
    ----------
    category : ErrorCategory
        Kind of failure.
    path : str
        JSONPath-style location of the offending value.
    message : str
        Human-readable detail.
    """

    def __init__(self, category: ErrorCategory, path: str, message: str):
        self.category = category
        self.path = path
        self.message = message
        super().__init__(f"{category.value} at {path}: {message}")


def _require(obj: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in obj:
        raise GeoJSONError(ErrorCategory.MISSING_FIELD, path, f"missing '{key}'")
    return obj[key]


def _require_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise GeoJSONError(
            ErrorCategory.INVALID_TYPE, path, f"expected an object, got {type(value).__name__}"
        )
    return value


def _require_list(value: Any, path: str) -> list:
    if not isinstance(value, (list, tuple)):
        raise GeoJSONError(
            ErrorCategory.INVALID_TYPE, path, f"expected an array, got {type(value).__name__}"
        )
    return list(value)


def _position_degrees(value: Any, path: str) -> List[float]:
    """Validate one position; returns ``[lon, lat(, elevation)]`` in degrees."""
    position = _require_list(value, path)
    if len(position) < 2:
        raise GeoJSONError(
            ErrorCategory.CONSTRAINT_VIOLATION, path,
            f"a position needs at least 2 elements, got {len(position)}"
        )

    numbers = []
    for i, element in enumerate(position[:3]):
        if isinstance(element, bool) or not isinstance(element, Real):
            raise GeoJSONError(
                ErrorCategory.INVALID_TYPE, f"{path}[{i}]",
                f"expected a number, got {type(element).__name__}"
            )
        try:
            number = float(element)
        except OverflowError as e:
            raise GeoJSONError(
                ErrorCategory.INVALID_VALUE, f"{path}[{i}]", "integer too large for a coordinate"
            ) from e
        if not math.isfinite(number):
            raise GeoJSONError(ErrorCategory.INVALID_VALUE, f"{path}[{i}]", f"{element} is not finite")
        numbers.append(number)

    lon, lat = numbers[0], numbers[1]
    if not -180.0 <= lon <= 180.0:
        raise GeoJSONError(
            ErrorCategory.CONSTRAINT_VIOLATION, f"{path}[0]", f"longitude {lon} outside [-180, 180]"
        )
    if not -90.0 <= lat <= 90.0:
        raise GeoJSONError(
            ErrorCategory.CONSTRAINT_VIOLATION, f"{path}[1]", f"latitude {lat} outside [-90, 90]"
        )
    return numbers


def _positions_degrees(value: Any, path: str) -> NDArray[np.float64]:
    """Validate an array of positions; returns ``(N, 2)`` lon/lat degrees."""
    positions = _require_list(value, path)
    lonlat = [_position_degrees(p, f"{path}[{i}]")[:2] for i, p in enumerate(positions)]
    return np.asarray(lonlat, dtype=np.float64).reshape(-1, 2)


def _parse_point(coordinates: Any, path: str) -> Point:
    numbers = _position_degrees(coordinates, path)
    elevation = numbers[2] if len(numbers) > 2 else 0.0
    return Point(GeoCoordinate.from_degrees(numbers[0], numbers[1], elevation))


def _parse_multi_point(coordinates: Any, path: str) -> MultiPoint:
    positions = _require_list(coordinates, path)
    points = [_parse_point(p, f"{path}[{i}]").coordinate for i, p in enumerate(positions)]
    return MultiPoint(tuple(points))


def _parse_line(coordinates: Any, path: str) -> Ring:
    lonlat = _positions_degrees(coordinates, path)
    if len(lonlat) < 2:
        raise GeoJSONError(
            ErrorCategory.CONSTRAINT_VIOLATION, path,
            f"a line needs at least 2 positions, got {len(lonlat)}"
        )
    return Ring.from_degrees(lonlat, closed=False)


def _parse_linear_ring(coordinates: Any, path: str) -> Ring:
    lonlat = _positions_degrees(coordinates, path)
    if len(lonlat) < 4:
        raise GeoJSONError(
            ErrorCategory.CONSTRAINT_VIOLATION, path,
            f"a linear ring needs at least 4 positions, got {len(lonlat)}"
        )
    if not np.array_equal(lonlat[0], lonlat[-1]):
        raise GeoJSONError(
            ErrorCategory.CONSTRAINT_VIOLATION, path,
            "a linear ring must end at its first position"
        )
    # Rings are implicitly closed; the repeated position is dropped
    return Ring.from_degrees(lonlat[:-1], closed=True)


def _parse_line_string(coordinates: Any, path: str) -> LineString:
    return LineString(_parse_line(coordinates, path))


def _parse_multi_line_string(coordinates: Any, path: str) -> MultiLineString:
    lines = _require_list(coordinates, path)
    return MultiLineString(tuple(
        LineString(_parse_line(line, f"{path}[{i}]")) for i, line in enumerate(lines)
    ))


def _parse_polygon(coordinates: Any, path: str) -> Polygon:
    rings = _require_list(coordinates, path)
    if not rings:
        raise GeoJSONError(ErrorCategory.CONSTRAINT_VIOLATION, path, "a polygon needs an exterior ring")
    return Polygon(tuple(_parse_linear_ring(r, f"{path}[{i}]") for i, r in enumerate(rings)))


def _parse_multi_polygon(coordinates: Any, path: str) -> MultiPolygon:
    polygons = _require_list(coordinates, path)
    return MultiPolygon(tuple(
        _parse_polygon(p, f"{path}[{i}]") for i, p in enumerate(polygons)
    ))


_COORDINATE_PARSERS: Dict[GeometryKind, Callable[[Any, str], Geometry]] = {
    GeometryKind.POINT: _parse_point,
    GeometryKind.MULTI_POINT: _parse_multi_point,
    GeometryKind.LINE_STRING: _parse_line_string,
    GeometryKind.MULTI_LINE_STRING: _parse_multi_line_string,
    GeometryKind.POLYGON: _parse_polygon,
    GeometryKind.MULTI_POLYGON: _parse_multi_polygon,
}


def _geometry_kind(obj: Mapping[str, Any], path: str) -> GeometryKind:
    type_name = _require(obj, "type", path)
    if not isinstance(type_name, str):
        raise GeoJSONError(ErrorCategory.INVALID_TYPE, f"{path}.type", "'type' must be a string")
    try:
        return GeometryKind(type_name)
    except ValueError as e:
        raise GeoJSONError(
            ErrorCategory.UNKNOWN_TYPE, f"{path}.type", f"unknown geometry type '{type_name}'"
        ) from e


def parse_geometry(value: Any, path: str = "$", depth: int = 0) -> Geometry:
    """Parse a GeoJSON geometry object.

    Parameters
    ----------
    value : Any
        Decoded JSON value.
    path : str
        Location of ``value`` in the document, for error messages.
    depth : int
        GeometryCollection nesting level of ``value``.

    Returns
    -------
    Geometry
        The corresponding geometry tree node.

    Raises
    ------
    GeoJSONError
        On the first validation failure.
    """
    obj = _require_mapping(value, path)
    kind = _geometry_kind(obj, path)

    if kind is GeometryKind.GEOMETRY_COLLECTION:
        if depth >= MAX_COLLECTION_DEPTH:
            raise GeoJSONError(
                ErrorCategory.CONSTRAINT_VIOLATION, path,
                f"GeometryCollection nested deeper than {MAX_COLLECTION_DEPTH} levels"
            )
        children = _require_list(_require(obj, "geometries", path), f"{path}.geometries")
        return GeometryCollection(tuple(
            parse_geometry(child, f"{path}.geometries[{i}]", depth + 1)
            for i, child in enumerate(children)
        ))

    coordinates = _require(obj, "coordinates", path)
    return _COORDINATE_PARSERS[kind](coordinates, f"{path}.coordinates")


def parse_feature(value: Any, path: str = "$") -> Feature:
    """Parse a GeoJSON Feature object. A null geometry is allowed."""
    obj = _require_mapping(value, path)
    type_name = _require(obj, "type", path)
    if type_name != "Feature":
        raise GeoJSONError(
            ErrorCategory.UNKNOWN_TYPE, f"{path}.type", f"expected 'Feature', got '{type_name}'"
        )

    geometry_value = _require(obj, "geometry", path)
    geometry = None if geometry_value is None else parse_geometry(geometry_value, f"{path}.geometry")

    properties = obj.get("properties")
    if properties is None:
        properties = {}
    elif not isinstance(properties, Mapping):
        raise GeoJSONError(
            ErrorCategory.INVALID_TYPE, f"{path}.properties", "'properties' must be an object or null"
        )

    feature_id = obj.get("id")
    if feature_id is not None and (isinstance(feature_id, bool) or not isinstance(feature_id, (str, int))):
        raise GeoJSONError(ErrorCategory.INVALID_TYPE, f"{path}.id", "'id' must be a string or number")

    return Feature(geometry=geometry, properties=dict(properties), id=feature_id)


def load_geojson(source: Union[str, bytes, Mapping[str, Any]]) -> FeatureCollection:
    """Load a GeoJSON document.

    Parameters
    ----------
    source : str, bytes or mapping
        GeoJSON text, or an already-decoded object. The top level may be a
        FeatureCollection, a Feature or a bare geometry.

    Returns
    -------
    FeatureCollection
        Parsed features; for a FeatureCollection, ``errors`` lists the
        features that were skipped.

    Raises
    ------
    GeoJSONError
        If the document as a whole cannot be used.
    """
    if isinstance(source, (str, bytes)):
        try:
            source = json.loads(source)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise GeoJSONError(ErrorCategory.INVALID_JSON, "$", str(e)) from e

    obj = _require_mapping(source, "$")
    type_name = _require(obj, "type", "$")

    if type_name == "FeatureCollection":
        raw_features = _require_list(_require(obj, "features", "$"), "$.features")
        collection = FeatureCollection()
        for i, raw in enumerate(raw_features):
            try:
                collection.features.append(parse_feature(raw, f"$.features[{i}]"))
            except GeoJSONError as e:
                logger.warning(f"Skipping feature {i}: {e}")
                collection.errors.append(e)
        logger.info(
            f"Loaded {len(collection.features)} features, skipped {len(collection.errors)}"
        )
        return collection

    if type_name == "Feature":
        return FeatureCollection(features=[parse_feature(obj, "$")])

    return FeatureCollection(features=[Feature(geometry=parse_geometry(obj, "$"))])
