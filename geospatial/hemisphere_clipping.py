"""
Hemisphere Clipping Against the View Horizon.

Sutherland–Hodgman clipping specialised to the single clip plane z = 0 in
view space. Walking the ring edge by edge, every visible vertex is kept and
every edge that crosses between the visible and hidden hemispheres
contributes one synthetic vertex exactly on the horizon circle
(z = 0, x² + y² = 1).

Horizon Vertices
----------------
The crossing is found on the straight chord between the endpoints and then
pushed radially out onto the horizon circle. The chord crossing lies inside
the disc; the renormalization puts it on the silhouette where the true
great-circle edge meets the horizon. Consecutive horizon vertices are later
joined by the arc subdivider, and since the horizon is itself a great
circle, the slerp between two horizon vertices follows the silhouette.

Limitations
-----------
One ring in, at most one ring out. A concave ring whose visible part falls
apart into several pieces is returned as a single ring that joins the pieces
along the horizon.
"""

from typing import List
import numpy as np
from numpy.typing import NDArray

from common.constants import GeometryConstants
from common.logging_config import AuditLogger
from geospatial.visibility import visible_mask

# Emitted vertices closer than this are treated as the same vertex
_DUPLICATE_TOLERANCE = 1e-12


def horizon_intersection(
    a: NDArray[np.float64],
    b: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Point where the edge a→b crosses the horizon, on the horizon circle.

    Parameters
    ----------
    a, b : ndarray
        View-space unit vectors. Exactly one of them must have z > 0.

    Returns
    -------
    ndarray
        ``(x, y, 0)`` with x² + y² = 1.

    Raises
    ------
    ValueError
        If both endpoints are on the same side of the horizon.

    Notes
    -----
    t = a.z / (a.z - b.z). Because one endpoint has z > 0 and the other
    z <= 0, the denominator is never zero; an endpoint lying exactly on the
    horizon gives t = 0 or t = 1 and is reproduced as is.

    If the chord passes through the sphere centre (antipodal endpoints) the
    crossing has no direction; the horizon point under the visible endpoint
    is used instead, and (1, 0, 0) if that endpoint sits on the view pole.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if (a[2] > 0.0) == (b[2] > 0.0):
        raise ValueError(
            f"Edge does not cross the horizon (a.z={a[2]:.3e}, b.z={b[2]:.3e})"
        )

    t = a[2] / (a[2] - b[2])
    xy = a[:2] + t * (b[:2] - a[:2])
    norm = np.hypot(xy[0], xy[1])

    if norm < GeometryConstants.ZERO_NORM_THRESHOLD.value:
        AuditLogger().log_numeric_guard("horizon_degenerate")
        visible = a if a[2] > 0.0 else b
        xy = visible[:2]
        norm = np.hypot(xy[0], xy[1])
        if norm < GeometryConstants.ZERO_NORM_THRESHOLD.value:
            return np.array([1.0, 0.0, 0.0])

    return np.array([xy[0] / norm, xy[1] / norm, 0.0])


def _append_vertex(out: List[NDArray[np.float64]], vertex: NDArray[np.float64]) -> None:
    if out and np.max(np.abs(out[-1] - vertex)) <= _DUPLICATE_TOLERANCE:
        return
    out.append(vertex)


def clip_to_hemisphere(
    points: NDArray[np.float64],
    closed: bool = True
) -> NDArray[np.float64]:
    """Clip a view-space ring to the visible hemisphere.

    Parameters
    ----------
    points : ndarray
        ``(N, 3)`` view-space unit vectors.
    closed : bool
        If True the edge from the last point back to the first is clipped
        too; if False the input is an open line.

    Returns
    -------
    ndarray
        ``(M, 3)`` ring with z >= 0 at every vertex and a horizon vertex
        at every visibility change. Empty if no point is visible.

    Examples
    --------
    >>> ring = np.array([[0.0, 0.6, 0.8], [0.0, 0.6, -0.8]])
    >>> clip_to_hemisphere(ring, closed=False)
    array([[0. , 0.6, 0.8],
           [0. , 1. , 0. ]])
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    n = len(points)
    if n == 0:
        return np.empty((0, 3), dtype=np.float64)

    inside = visible_mask(points)
    edge_count = n if closed else n - 1
    out: List[NDArray[np.float64]] = []

    for i in range(n):
        curr = points[i]
        if inside[i]:
            _append_vertex(out, curr)
        if i < edge_count:
            j = (i + 1) % n
            if inside[i] != inside[j]:
                _append_vertex(out, horizon_intersection(curr, points[j]))

    if closed and len(out) > 1 and np.max(np.abs(out[-1] - out[0])) <= _DUPLICATE_TOLERANCE:
        out.pop()

    if not out:
        return np.empty((0, 3), dtype=np.float64)
    return np.vstack(out)
