"""
Geometry Tree for Geographic Vector Data.

This module defines the in-memory geometry tree handed to the projection
pipeline: one frozen dataclass per GeoJSON geometry type, each tagged with
a `GeometryKind`. Consumers walk the tree with a `GeometryVisitor`, which
dispatches on the tag.

Exhaustiveness
--------------
`GeometryVisitor` declares one abstract ``visit_*`` method per kind, so a
visitor that forgets a kind cannot be instantiated. The dispatch table is
checked against the enum at import time, so adding a kind without a visitor
method fails immediately.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Generic, List, Optional, Tuple, TypeVar, Union

import numpy as np

from common.types import GeoCoordinate, Ring


class GeometryKind(Enum):
    """GeoJSON geometry type tags."""
    POINT = "Point"
    MULTI_POINT = "MultiPoint"
    LINE_STRING = "LineString"
    MULTI_LINE_STRING = "MultiLineString"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"
    GEOMETRY_COLLECTION = "GeometryCollection"


@dataclass(frozen=True, eq=False)
class Point:
    """A single position."""
    coordinate: GeoCoordinate
    kind: ClassVar[GeometryKind] = GeometryKind.POINT


@dataclass(frozen=True, eq=False)
class MultiPoint:
    """Several unconnected positions."""
    coordinates: Tuple[GeoCoordinate, ...]
    kind: ClassVar[GeometryKind] = GeometryKind.MULTI_POINT


@dataclass(frozen=True, eq=False)
class LineString:
    """An open line; its ring has ``closed=False``."""
    line: Ring
    kind: ClassVar[GeometryKind] = GeometryKind.LINE_STRING


@dataclass(frozen=True, eq=False)
class MultiLineString:
    lines: Tuple[LineString, ...]
    kind: ClassVar[GeometryKind] = GeometryKind.MULTI_LINE_STRING


@dataclass(frozen=True, eq=False)
class Polygon:
    """Exterior ring first, then holes. All rings are closed."""
    rings: Tuple[Ring, ...]
    kind: ClassVar[GeometryKind] = GeometryKind.POLYGON

    @property
    def exterior(self) -> Ring:
        return self.rings[0]

    @property
    def holes(self) -> Tuple[Ring, ...]:
        return self.rings[1:]


@dataclass(frozen=True, eq=False)
class MultiPolygon:
    polygons: Tuple[Polygon, ...]
    kind: ClassVar[GeometryKind] = GeometryKind.MULTI_POLYGON


@dataclass(frozen=True, eq=False)
class GeometryCollection:
    geometries: Tuple['Geometry', ...]
    kind: ClassVar[GeometryKind] = GeometryKind.GEOMETRY_COLLECTION


Geometry = Union[
    Point, MultiPoint, LineString, MultiLineString,
    Polygon, MultiPolygon, GeometryCollection,
]


@dataclass
class Feature:
    """A geometry with its properties. ``geometry`` may be None (GeoJSON null)."""
    geometry: Optional[Geometry]
    properties: Dict[str, Any] = field(default_factory=dict)
    id: Optional[Union[str, int]] = None


@dataclass
class FeatureCollection:
    """Successfully parsed features plus the errors of the skipped ones."""
    features: List[Feature] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)


T = TypeVar('T')

_DISPATCH: Dict[GeometryKind, str] = {
    GeometryKind.POINT: "visit_point",
    GeometryKind.MULTI_POINT: "visit_multi_point",
    GeometryKind.LINE_STRING: "visit_line_string",
    GeometryKind.MULTI_LINE_STRING: "visit_multi_line_string",
    GeometryKind.POLYGON: "visit_polygon",
    GeometryKind.MULTI_POLYGON: "visit_multi_polygon",
    GeometryKind.GEOMETRY_COLLECTION: "visit_geometry_collection",
}

if set(_DISPATCH) != set(GeometryKind):
    raise RuntimeError(
        f"GeometryVisitor dispatch is missing {set(GeometryKind) - set(_DISPATCH)}"
    )


class GeometryVisitor(ABC, Generic[T]):
    """Visitor over the geometry tree.

    Subclasses implement every ``visit_*`` method; `visit` dispatches on
    ``geometry.kind``.
    """

    def visit(self, geometry: Geometry) -> T:
        return getattr(self, _DISPATCH[geometry.kind])(geometry)

    @abstractmethod
    def visit_point(self, geometry: Point) -> T:
        pass

    @abstractmethod
    def visit_multi_point(self, geometry: MultiPoint) -> T:
        pass

    @abstractmethod
    def visit_line_string(self, geometry: LineString) -> T:
        pass

    @abstractmethod
    def visit_multi_line_string(self, geometry: MultiLineString) -> T:
        pass

    @abstractmethod
    def visit_polygon(self, geometry: Polygon) -> T:
        pass

    @abstractmethod
    def visit_multi_polygon(self, geometry: MultiPolygon) -> T:
        pass

    @abstractmethod
    def visit_geometry_collection(self, geometry: GeometryCollection) -> T:
        pass


def _point_ring(coord: GeoCoordinate) -> Ring:
    return Ring(coordinates=np.array([[coord.longitude, coord.latitude]]), closed=False)


class RingCollector(GeometryVisitor[List[Ring]]):
    """Reduces any geometry to the list of rings it is drawn from.

    Points become single-position open rings; the pipeline drops those as
    too short to draw.
    """

    def visit_point(self, geometry: Point) -> List[Ring]:
        return [_point_ring(geometry.coordinate)]

    def visit_multi_point(self, geometry: MultiPoint) -> List[Ring]:
        return [_point_ring(c) for c in geometry.coordinates]

    def visit_line_string(self, geometry: LineString) -> List[Ring]:
        return [geometry.line]

    def visit_multi_line_string(self, geometry: MultiLineString) -> List[Ring]:
        return [line.line for line in geometry.lines]

    def visit_polygon(self, geometry: Polygon) -> List[Ring]:
        return list(geometry.rings)

    def visit_multi_polygon(self, geometry: MultiPolygon) -> List[Ring]:
        return [ring for polygon in geometry.polygons for ring in polygon.rings]

    def visit_geometry_collection(self, geometry: GeometryCollection) -> List[Ring]:
        return [ring for child in geometry.geometries for ring in self.visit(child)]


def rings_of(geometry: Optional[Geometry]) -> List[Ring]:
    """All rings of a geometry in document order; none for a null geometry."""
    if geometry is None:
        return []
    return RingCollector().visit(geometry)
