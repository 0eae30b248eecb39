"""
Great-Circle Reference Calculations on the Sphere.

This module gives an independent reference for the great circles the
pipeline approximates. It wraps the `pyproj` geodesic solver (GeographicLib
algorithms by Charles Karney) configured for a sphere, where geodesics are
exactly great circles.

The pipeline itself never calls into this module per frame; validation
metrics and tests use it to check the slerp-based subdivision against a
solver that shares none of its code.

References
----------
- Karney, C.F.F. (2013). Algorithms for geodesics. Journal of Geodesy, 87(1), 43-55.
"""

import numpy as np
from numpy.typing import NDArray

from pyproj import Geod

from common.types import GeoCoordinate


# Spherical geodesic calculator; distances are divided by its radius
_sphere_geod = Geod(ellps='sphere')


def angular_distance(start: GeoCoordinate, end: GeoCoordinate) -> float:
    """Central angle between two coordinates.

    Parameters
    ----------
    start, end : GeoCoordinate
        Endpoints in radians.

    Returns
    -------
    float
        Angle in radians, in [0, π].
    """
    _, _, distance = _sphere_geod.inv(
        np.degrees(start.longitude), np.degrees(start.latitude),
        np.degrees(end.longitude), np.degrees(end.latitude)
    )
    return float(distance) / _sphere_geod.a


def angular_distance_batch(
    lon1_rad: NDArray[np.float64],
    lat1_rad: NDArray[np.float64],
    lon2_rad: NDArray[np.float64],
    lat2_rad: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Vectorized central angles for arrays of coordinate pairs."""
    _, _, distances = _sphere_geod.inv(
        np.degrees(lon1_rad), np.degrees(lat1_rad),
        np.degrees(lon2_rad), np.degrees(lat2_rad)
    )
    return np.asarray(distances, dtype=np.float64) / _sphere_geod.a


def great_circle_points(
    start: GeoCoordinate,
    end: GeoCoordinate,
    npts: int
) -> NDArray[np.float64]:
    """Equally spaced points along the great circle from start to end.

    Parameters
    ----------
    start, end : GeoCoordinate
        Endpoints in radians. Must not be antipodal.
    npts : int
        Number of intermediate points.

    Returns
    -------
    ndarray
        ``(npts + 2, 2)`` array of ``[longitude, latitude]`` in radians,
        endpoints included.
    """
    intermediate = _sphere_geod.npts(
        np.degrees(start.longitude), np.degrees(start.latitude),
        np.degrees(end.longitude), np.degrees(end.latitude),
        npts
    )
    lonlat_deg = np.array(
        [(np.degrees(start.longitude), np.degrees(start.latitude))]
        + [tuple(p) for p in intermediate]
        + [(np.degrees(end.longitude), np.degrees(end.latitude))],
        dtype=np.float64
    )
    return np.radians(lonlat_deg)
