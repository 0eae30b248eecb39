"""
Adaptive Great-Circle Subdivision.

The renderer draws straight segments between projected vertices, but the
edges of a geographic ring are great-circle arcs. This module inserts
vertices along each arc until the straight-line rendering is within a
caller-supplied tolerance of the true projected curve.

Error Measure
-------------
For an arc a→b the projected great-circle midpoint is compared with the
midpoint of the projected chord. If they are closer than ``tolerance`` in
world units the arc is accepted as one segment; otherwise it is split at its
spherical midpoint and both halves are examined.

The measure is taken in projected space, not in angle, because projections
bend arcs unevenly. An arc hugging the orthographic silhouette collapses
into a tight curve that needs many more vertices than the same arc at the
centre of the disc.

Termination
-----------
Subdivision runs on an explicit work stack and stops splitting at
``max_depth``. Arcs that never flatten (near-antipodal endpoints, equirect-
angular edges crossing the antimeridian) are therefore bounded to
``max_depth`` levels rather than recursing without limit.
"""

from typing import List, Optional, Tuple, Union
import numpy as np
from numpy.typing import NDArray

from common.constants import GeometryConstants
from common.logging_config import AuditLogger
from geospatial.projections import ProjectionAdapter


def _antipodal_midway(a: NDArray[np.float64]) -> NDArray[np.float64]:
    """A unit vector perpendicular to ``a``, chosen deterministically.

    Uses the coordinate axis least aligned with ``a`` and removes its
    component along ``a``.
    """
    axis = np.zeros(3)
    axis[int(np.argmin(np.abs(a)))] = 1.0
    perpendicular = axis - np.dot(axis, a) * a
    return perpendicular / np.linalg.norm(perpendicular)


def slerp(
    a: NDArray[np.float64],
    b: NDArray[np.float64],
    t: Union[float, NDArray[np.float64]]
) -> NDArray[np.float64]:
    """Spherical linear interpolation along the great circle from a to b.

    Parameters
    ----------
    a, b : ndarray
        Unit vectors.
    t : float or ndarray
        Interpolation parameter(s) in [0, 1].

    Returns
    -------
    ndarray
        A unit vector of shape ``(3,)`` for scalar ``t``, else
        ``t.shape + (3,)``.

    Notes
    -----
    θ = acos(clamp(a·b, -1, 1)).

    - θ < SLERP_DEGENERATE_ANGLE: the points are near duplicates and
      sin θ ≈ 0; normalized linear interpolation is used instead.
    - π - θ < ANTIPODAL_ANGLE_MARGIN: every great circle through a passes
      through b, so the arc is undefined. The arc is taken through
      `_antipodal_midway(a)`, a fixed perpendicular to a, so the result is
      deterministic and never NaN.
    - otherwise: (sin((1-t)θ) a + sin(tθ) b) / sin θ.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    t_arr = np.asarray(t, dtype=np.float64)[..., np.newaxis]

    theta = float(np.arccos(np.clip(np.dot(a, b), -1.0, 1.0)))

    if theta < GeometryConstants.SLERP_DEGENERATE_ANGLE.value:
        blended = (1.0 - t_arr) * a + t_arr * b
        return blended / np.linalg.norm(blended, axis=-1, keepdims=True)

    if np.pi - theta < GeometryConstants.ANTIPODAL_ANGLE_MARGIN.value:
        AuditLogger().log_numeric_guard("slerp_antipodal")
        midway = _antipodal_midway(a)
        angle = t_arr * np.pi
        return np.cos(angle) * a + np.sin(angle) * midway

    sin_theta = np.sin(theta)
    return (np.sin((1.0 - t_arr) * theta) * a + np.sin(t_arr * theta) * b) / sin_theta


def arc_is_flat_enough(
    a: NDArray[np.float64],
    b: NDArray[np.float64],
    projection: ProjectionAdapter,
    tolerance: float,
    mid: Optional[NDArray[np.float64]] = None
) -> bool:
    """Whether the chord a→b is within ``tolerance`` of the projected arc.

    Parameters
    ----------
    a, b : ndarray
        Arc endpoints (unit vectors).
    projection : ProjectionAdapter
        Projection in which the error is measured.
    tolerance : float
        Maximum midpoint deviation, in world units.
    mid : ndarray, optional
        Precomputed ``slerp(a, b, 0.5)``.

    Returns
    -------
    bool
        True iff ‖P(mid) - (P(a) + P(b)) / 2‖² < tolerance².
    """
    if mid is None:
        mid = slerp(a, b, 0.5)
    pa, pb, pm = projection.project(np.vstack((a, b, mid)))
    deviation = pm - 0.5 * (pa + pb)
    return float(np.dot(deviation, deviation)) < tolerance * tolerance


def subdivide_arc(
    a: NDArray[np.float64],
    b: NDArray[np.float64],
    projection: ProjectionAdapter,
    tolerance: float,
    max_depth: int = GeometryConstants.DEFAULT_MAX_SUBDIVISION_DEPTH.value
) -> NDArray[np.float64]:
    """Subdivide the great-circle arc a→b to within a projected tolerance.

    Parameters
    ----------
    a, b : ndarray
        Arc endpoints (unit vectors).
    projection : ProjectionAdapter
        Projection in which the error is measured.
    tolerance : float
        Maximum midpoint deviation per accepted segment, in world units.
    max_depth : int
        Splitting stops at this depth; the leaf is accepted as it is.

    Returns
    -------
    ndarray
        ``(M, 3)`` vertices from ``a`` up to, but not including, ``b``:
        the left endpoint of each accepted segment, in arc order. The caller
        supplies ``b`` (as the start of the next arc or as the final point).
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    out: List[NDArray[np.float64]] = []
    stack: List[Tuple[NDArray[np.float64], NDArray[np.float64], int]] = [(a, b, 0)]
    depth_cap_hits = 0

    while stack:
        left, right, depth = stack.pop()
        mid = slerp(left, right, 0.5)

        if arc_is_flat_enough(left, right, projection, tolerance, mid=mid):
            out.append(left)
        elif depth >= max_depth:
            out.append(left)
            depth_cap_hits += 1
        else:
            # Right half first so the left half is popped next
            stack.append((mid, right, depth + 1))
            stack.append((left, mid, depth + 1))

    if depth_cap_hits:
        AuditLogger().log_numeric_guard(
            "depth_cap",
            count=depth_cap_hits,
            context={"max_depth": max_depth, "projection": projection.name}
        )

    return np.vstack(out)


def subdivide_polygon(
    points: NDArray[np.float64],
    projection: ProjectionAdapter,
    tolerance: float,
    max_depth: int = GeometryConstants.DEFAULT_MAX_SUBDIVISION_DEPTH.value
) -> NDArray[np.float64]:
    """Subdivide every edge of a closed ring, including the wraparound edge.

    Returns
    -------
    ndarray
        ``(M, 3)`` vertices in the original winding order. The ring stays
        implicitly closed; the first vertex is not repeated.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    n = len(points)
    if n < 2:
        return points.copy()

    pieces = [
        subdivide_arc(points[i], points[(i + 1) % n], projection, tolerance, max_depth)
        for i in range(n)
    ]
    return np.vstack(pieces)


def subdivide_polyline(
    points: NDArray[np.float64],
    projection: ProjectionAdapter,
    tolerance: float,
    max_depth: int = GeometryConstants.DEFAULT_MAX_SUBDIVISION_DEPTH.value
) -> NDArray[np.float64]:
    """Subdivide every edge of an open line; the last vertex is kept."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    n = len(points)
    if n < 2:
        return points.copy()

    pieces = [
        subdivide_arc(points[i], points[i + 1], projection, tolerance, max_depth)
        for i in range(n - 1)
    ]
    pieces.append(points[-1:])
    return np.vstack(pieces)
