"""
Approximation Metrics for Subdivided Great Circles.

This module measures how far a rendered polyline strays from the great
circle it is meant to approximate. The reference curve comes from the
`pyproj` geodesic solver (through `geospatial.geodesics`), not from the
slerp used by the subdivider, so the measurement does not share code with
the thing it measures.

Standard Metrics
----------------
- Max error: largest distance from a reference sample to the polyline
- Mean error: average of the same distances
Both in world units of the projection.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np
from numpy.typing import NDArray

from common.logging_config import get_logger
from common.types import GeoCoordinate
from geospatial.geodesics import great_circle_points
from geospatial.projections import ProjectionAdapter
from geospatial.sphere_mapping import RotationMatrix, geo_to_sphere_batch

logger = get_logger(__name__)


@dataclass
class ApproximationMetrics:
    """Deviation of a polyline from its reference great circle.

    Attributes
    ----------
    max_error : float
        Largest sample-to-polyline distance, in world units.
    mean_error : float
        Mean sample-to-polyline distance.
    num_samples : int
        Number of reference samples measured.
    tolerance : float, optional
        Tolerance the polyline was built for, if given.
    """
    max_error: float
    mean_error: float
    num_samples: int
    tolerance: Optional[float] = None

    @property
    def within_tolerance(self) -> bool:
        return self.tolerance is None or self.max_error < self.tolerance


def point_to_polyline_distance(
    points: NDArray[np.float64],
    vertices: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Distance from each 2D point to the nearest segment of an open polyline.

    Parameters
    ----------
    points : ndarray
        ``(M, 2)`` query points.
    vertices : ndarray
        ``(K, 2)`` polyline vertices, K >= 1.

    Returns
    -------
    ndarray
        ``(M,)`` distances.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 2)
    if len(vertices) == 1:
        return np.linalg.norm(points - vertices[0], axis=1)

    start = vertices[:-1]                      # (S, 2)
    direction = vertices[1:] - start           # (S, 2)
    length_sq = np.sum(direction**2, axis=1)   # (S,)

    offset = points[:, np.newaxis, :] - start[np.newaxis, :, :]   # (M, S, 2)
    safe_length = np.where(length_sq > 0.0, length_sq, 1.0)
    t = np.clip(np.sum(offset * direction, axis=2) / safe_length, 0.0, 1.0)
    t = np.where(length_sq > 0.0, t, 0.0)
    nearest = start[np.newaxis, :, :] + t[..., np.newaxis] * direction[np.newaxis, :, :]
    distances = np.linalg.norm(points[:, np.newaxis, :] - nearest, axis=2)
    return distances.min(axis=1)


def arc_approximation_error(
    start: GeoCoordinate,
    end: GeoCoordinate,
    vertices: NDArray[np.float64],
    projection: ProjectionAdapter,
    rotation: Optional[RotationMatrix] = None,
    num_samples: int = 128,
    tolerance: Optional[float] = None
) -> ApproximationMetrics:
    """Measure a projected polyline against the true projected great circle.

    Parameters
    ----------
    start, end : GeoCoordinate
        Endpoints of the great-circle arc.
    vertices : ndarray
        ``(K, 2)`` projected polyline from start to end (both included).
    projection : ProjectionAdapter
        Projection the polyline was built in.
    rotation : RotationMatrix, optional
        View rotation applied before projecting; identity if omitted.
    num_samples : int
        Number of intermediate reference points.
    tolerance : float, optional
        Tolerance to report against.

    Returns
    -------
    ApproximationMetrics
        Error statistics in world units.
    """
    lonlat = great_circle_points(start, end, num_samples)
    reference = geo_to_sphere_batch(lonlat[:, 0], lonlat[:, 1])
    if rotation is not None:
        reference = rotation.apply(reference)

    distances = point_to_polyline_distance(projection.project(reference), vertices)

    metrics = ApproximationMetrics(
        max_error=float(distances.max()),
        mean_error=float(distances.mean()),
        num_samples=len(distances),
        tolerance=tolerance,
    )
    if not metrics.within_tolerance:
        logger.warning(
            f"Arc approximation error {metrics.max_error:.3e} exceeds tolerance {tolerance:.3e}"
        )
    return metrics
