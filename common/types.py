"""
Type Definitions for the Globe Vector Pipeline.

This module defines the dataclasses and enums passed between pipeline stages.
Angles are always radians and sphere points are always unit vectors; both
invariants are checked when the types are constructed so that a bad value is
caught at the boundary instead of turning into NaNs in the vertex buffers.

Design Rationale
----------------
Scalar types (GeoCoordinate, SpherePoint) document the conventions and are
convenient at API edges. The per-frame hot path works on numpy arrays of the
same quantities: ``(N, 2)`` ``[longitude, latitude]`` rings and ``(N, 3)``
unit-vector arrays.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import GeometryConstants
from common.units import to_radians, to_degrees, warn_if_degrees


@dataclass
class GeoCoordinate:
    """A geographic coordinate on the unit sphere.

    Attributes
    ----------
    longitude : float
        Longitude λ in RADIANS. Normalized into (-π, π] on construction.
    latitude : float
        Latitude φ in RADIANS. Range: [-π/2, π/2].
    elevation : float, optional
        Third GeoJSON ordinate, carried through but not used for projection.

    Notes
    -----
    - Longitude comes first, matching GeoJSON position order.
    - Use `from_degrees` at ingestion; conversion happens exactly once.

    Examples
    --------
    >>> coord = GeoCoordinate.from_degrees(-80.1918, 25.7617)
    >>> lon_deg, lat_deg = coord.to_degrees()
    """
    longitude: float  # radians
    latitude: float  # radians
    elevation: float = 0.0

    def __post_init__(self):
        """Validate latitude and normalize longitude."""
        if not -np.pi / 2 - 1e-12 <= self.latitude <= np.pi / 2 + 1e-12:
            raise ValueError(
                f"Latitude {self.latitude} rad out of range [-π/2, π/2]. "
                f"Did you pass degrees instead of radians?"
            )
        self.latitude = float(np.clip(self.latitude, -np.pi / 2, np.pi / 2))
        self.longitude = GeometryConstants.normalize_longitude(self.longitude)

    def to_degrees(self) -> Tuple[float, float]:
        """Convert to degrees for display.

        Returns
        -------
        Tuple[float, float]
            (longitude_degrees, latitude_degrees)
        """
        lon_deg, lat_deg = to_degrees([self.longitude, self.latitude])
        return float(lon_deg), float(lat_deg)

    @classmethod
    def from_degrees(cls, lon_deg: float, lat_deg: float, elevation: float = 0.0) -> 'GeoCoordinate':
        """Create a coordinate from degrees (GeoJSON order: lon, lat)."""
        lon_rad, lat_rad = to_radians([lon_deg, lat_deg])
        return cls(longitude=float(lon_rad), latitude=float(lat_rad), elevation=elevation)


@dataclass
class SpherePoint:
    """A point on the unit sphere.

    Attributes
    ----------
    x, y, z : float
        Cartesian components. In view space, +z points at the viewer and the
        visible hemisphere is z > 0.

    Notes
    -----
    A norm within UNIT_NORM_TOLERANCE of 1 is accepted as is. Larger drift is
    renormalized; a vector with no direction raises ValueError.
    """
    x: float
    y: float
    z: float

    def __post_init__(self):
        norm = float(np.sqrt(self.x**2 + self.y**2 + self.z**2))
        if norm < GeometryConstants.ZERO_NORM_THRESHOLD.value:
            raise ValueError("SpherePoint has zero length and no direction")
        if abs(norm - 1.0) > GeometryConstants.UNIT_NORM_TOLERANCE.value:
            self.x /= norm
            self.y /= norm
            self.z /= norm

    @property
    def vector(self) -> NDArray[np.float64]:
        """Components as a length-3 array."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_vector(cls, v: NDArray[np.float64]) -> 'SpherePoint':
        return cls(float(v[0]), float(v[1]), float(v[2]))


@dataclass
class Ring:
    """An ordered sequence of geographic coordinates.

    A closed ring (polygon boundary) has an implicit edge from the last point
    back to the first; an open ring is a line. Rings never repeat their first
    point at the end.

    Attributes
    ----------
    coordinates : ndarray
        ``(N, 2)`` array of ``[longitude, latitude]`` in RADIANS.
    closed : bool
        True for polygon boundaries, False for lines.
    """
    coordinates: NDArray[np.float64]
    closed: bool = True

    def __post_init__(self):
        self.coordinates = np.asarray(self.coordinates, dtype=np.float64).reshape(-1, 2)
        warn_if_degrees(self.coordinates, "Ring coordinates")

    def __len__(self) -> int:
        return len(self.coordinates)

    @property
    def longitudes(self) -> NDArray[np.float64]:
        return self.coordinates[:, 0]

    @property
    def latitudes(self) -> NDArray[np.float64]:
        return self.coordinates[:, 1]

    @classmethod
    def from_degrees(cls, lonlat_deg, closed: bool = True) -> 'Ring':
        """Build a ring from ``[[lon, lat], ...]`` in degrees."""
        return cls(coordinates=to_radians(lonlat_deg), closed=closed)


class VisibilityClass(Enum):
    """Hemisphere classification of a ring in view space."""
    VISIBLE = "visible"
    PARTIAL = "partial"
    OCCLUDED = "occluded"


class ProjectionKind(Enum):
    """Supported map projections."""
    ORTHOGRAPHIC = "orthographic"
    EQUIRECTANGULAR = "equirectangular"

    @property
    def has_occlusion(self) -> bool:
        """Whether the projection shows only one hemisphere."""
        return self is ProjectionKind.ORTHOGRAPHIC


@dataclass(frozen=True)
class ProjectedPolyline:
    """Final 2D world-space polyline for one ring.

    Attributes
    ----------
    vertices : ndarray
        ``(K, 2)`` world coordinates.
    closed : bool
        Whether an edge joins the last vertex back to the first.
    """
    vertices: NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 2)))
    closed: bool = True

    @classmethod
    def empty(cls, closed: bool = True) -> 'ProjectedPolyline':
        return cls(vertices=np.empty((0, 2), dtype=np.float64), closed=closed)

    @property
    def is_empty(self) -> bool:
        return len(self.vertices) < 2

    def __len__(self) -> int:
        return len(self.vertices)

    def segments(self) -> NDArray[np.float64]:
        """Consecutive vertex pairs as an ``(S, 2, 2)`` array.

        Closed polylines include the wraparound segment.
        """
        if self.is_empty:
            return np.empty((0, 2, 2), dtype=np.float64)
        end = np.roll(self.vertices, -1, axis=0) if self.closed else self.vertices[1:]
        start = self.vertices if self.closed else self.vertices[:-1]
        return np.stack([start, end], axis=1)

    def fan(self, origin: Tuple[float, float] = (0.0, 0.0)) -> NDArray[np.float64]:
        """Triangle fan anchored at ``origin`` as a ``(T, 3, 2)`` array.

        Each segment of the closed outline forms one triangle with the
        anchor. Overlapping triangles are resolved by the renderer's stencil
        pass, so no triangulation is needed here.
        """
        if self.is_empty or not self.closed:
            return np.empty((0, 3, 2), dtype=np.float64)
        segments = self.segments()
        anchor = np.broadcast_to(np.asarray(origin, dtype=np.float64), (len(segments), 1, 2))
        return np.concatenate([anchor, segments], axis=1)
