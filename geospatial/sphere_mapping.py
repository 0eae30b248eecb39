"""
Geographic ↔ Unit-Sphere Mapping and View Rotation.

This module converts geographic coordinates to unit vectors and builds the
per-frame rotation that carries the chosen projection centre onto the view
pole (0, 0, 1). After rotation the visible hemisphere is simply z > 0, which
is what makes the classification and clipping stages cheap.

Frames
------
- Geographic frame: +x through (λ=0, φ=0), +y through (λ=90°E, φ=0),
  +z through the North Pole.
- View frame: +z toward the viewer (the projection centre), +y toward local
  north at the centre, +x toward local east.

The view rotation is the East-North-Up basis of the centre, stacked as rows.
The same basis is used for local tangent planes in geodesy; here it is
applied to the whole sphere.
"""

from dataclasses import dataclass
from typing import Optional, Union, overload
import numpy as np
from numpy.typing import NDArray

from common.constants import GeometryConstants
from common.logging_config import AuditLogger
from common.types import GeoCoordinate, SpherePoint


@dataclass(frozen=True)
class RotationMatrix:
    """A 3×3 orthonormal rotation into view space.

    Attributes
    ----------
    matrix : ndarray
        ``(3, 3)`` rotation; rows are the view-frame axes in geographic
        coordinates.
    centre : GeoCoordinate, optional
        The geographic point carried onto the view pole, if known.
    """
    matrix: NDArray[np.float64]
    centre: Optional[GeoCoordinate] = None

    @classmethod
    def identity(cls) -> 'RotationMatrix':
        return cls(matrix=np.eye(3, dtype=np.float64))

    def apply(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Rotate an ``(N, 3)`` array (or a single length-3 vector)."""
        return np.asarray(points, dtype=np.float64) @ self.matrix.T

    def inverse(self) -> 'RotationMatrix':
        """The inverse rotation, which for an orthonormal matrix is its transpose."""
        return RotationMatrix(matrix=self.matrix.T.copy())


def geo_to_sphere(coord: GeoCoordinate) -> SpherePoint:
    """Convert a geographic coordinate to a unit vector.

    Parameters
    ----------
    coord : GeoCoordinate
        Coordinate in radians.

    Returns
    -------
    SpherePoint
        x = cosλ·cosφ, y = sinλ·cosφ, z = sinφ.
    """
    cos_lat = np.cos(coord.latitude)
    return SpherePoint(
        x=float(np.cos(coord.longitude) * cos_lat),
        y=float(np.sin(coord.longitude) * cos_lat),
        z=float(np.sin(coord.latitude)),
    )


def sphere_to_geo(point: SpherePoint) -> GeoCoordinate:
    """Convert a unit vector back to a geographic coordinate.

    The latitude argument is clamped to [-1, 1] before asin, since a z that
    drifted to 1.0000000002 through rotation would otherwise raise a domain
    error. Longitude at the poles is undefined; atan2(0, 0) returns 0.
    """
    latitude = float(np.arcsin(np.clip(point.z, -1.0, 1.0)))
    longitude = float(np.arctan2(point.y, point.x))
    return GeoCoordinate(longitude=longitude, latitude=latitude)


# Vectorized versions for batch processing
def geo_to_sphere_batch(
    longitudes_rad: NDArray[np.float64],
    latitudes_rad: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Vectorized geographic to unit-vector conversion.

    Parameters
    ----------
    longitudes_rad, latitudes_rad : ndarray
        Arrays of the same length, in radians.

    Returns
    -------
    ndarray
        ``(N, 3)`` unit vectors.
    """
    longitudes_rad = np.asarray(longitudes_rad, dtype=np.float64)
    latitudes_rad = np.asarray(latitudes_rad, dtype=np.float64)
    cos_lat = np.cos(latitudes_rad)
    return np.column_stack((
        np.cos(longitudes_rad) * cos_lat,
        np.sin(longitudes_rad) * cos_lat,
        np.sin(latitudes_rad),
    ))


def sphere_to_geo_batch(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Vectorized unit-vector to geographic conversion.

    Returns
    -------
    ndarray
        ``(N, 2)`` array of ``[longitude, latitude]`` in radians.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    longitudes = np.arctan2(points[:, 1], points[:, 0])
    latitudes = np.arcsin(np.clip(points[:, 2], -1.0, 1.0))
    return np.column_stack((longitudes, latitudes))


def build_view_rotation(centre: GeoCoordinate) -> RotationMatrix:
    """Build the rotation that carries ``centre`` onto the view pole.

    Parameters
    ----------
    centre : GeoCoordinate
        The geographic point to face the viewer.

    Returns
    -------
    RotationMatrix
        Orthonormal matrix R with R · geo_to_sphere(centre) = (0, 0, 1),
        local north along +y and local east along +x.

    Notes
    -----
    Rows of R:
        East  = (-sinλ,        cosλ,        0   )
        North = (-sinφ·cosλ,  -sinφ·sinλ,   cosφ)
        Up    = ( cosφ·cosλ,   cosφ·sinλ,   sinφ)

    At the poles East is still well defined (it depends on λ only), so the
    basis never degenerates; the centre longitude picks which meridian
    points "down" on screen.

    Build once per frame and reuse for every ring.
    """
    sin_lat = np.sin(centre.latitude)
    cos_lat = np.cos(centre.latitude)
    sin_lon = np.sin(centre.longitude)
    cos_lon = np.cos(centre.longitude)

    matrix = np.array([
        [-sin_lon, cos_lon, 0.0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat],
    ], dtype=np.float64)

    return RotationMatrix(matrix=matrix, centre=centre)


@overload
def rotate(points: SpherePoint, matrix: RotationMatrix) -> SpherePoint: ...
@overload
def rotate(points: NDArray[np.float64], matrix: RotationMatrix) -> NDArray[np.float64]: ...


def rotate(
    points: Union[SpherePoint, NDArray[np.float64]],
    matrix: RotationMatrix
) -> Union[SpherePoint, NDArray[np.float64]]:
    """Apply a view rotation. Pure; the input is not modified."""
    if isinstance(points, SpherePoint):
        return SpherePoint.from_vector(matrix.apply(points.vector))
    return matrix.apply(points)


def ensure_unit_vectors(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Renormalize drifted vectors; reject vectors with no direction.

    Parameters
    ----------
    points : ndarray
        ``(N, 3)`` array, nominally unit vectors.

    Returns
    -------
    ndarray
        A copy in which every row satisfies ‖v‖ = 1 within tolerance.

    Raises
    ------
    ValueError
        If any row has (near) zero length.
    """
    points = np.array(points, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        return points

    norms = np.linalg.norm(points, axis=1)
    if np.any(norms < GeometryConstants.ZERO_NORM_THRESHOLD.value):
        raise ValueError("Cannot normalize a zero-length sphere point")

    drifted = np.abs(norms - 1.0) > GeometryConstants.UNIT_NORM_TOLERANCE.value
    if np.any(drifted):
        points[drifted] /= norms[drifted, np.newaxis]
        AuditLogger().log_numeric_guard("renormalized", count=int(np.sum(drifted)))

    return points
