"""
Hemisphere Visibility Classification.

In view space the viewer looks down the -z axis at a unit sphere, so a point
is on the near (visible) hemisphere exactly when z > 0. A ring is classified
from the set of its per-point signs:

- every point visible      → VISIBLE   (no clipping needed)
- no point visible         → OCCLUDED  (dropped before any further work)
- anything in between      → PARTIAL   (sent to the hemisphere clipper)

The test is strict. A point lying exactly on the horizon (z == 0) counts as
not visible; the clipper reproduces such points on the horizon so that no
gap opens along the silhouette.
"""

import numpy as np
from numpy.typing import NDArray

from common.types import VisibilityClass


def visible_mask(points: NDArray[np.float64]) -> NDArray[np.bool_]:
    """Per-point visibility for an ``(N, 3)`` array of view-space points."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return points[:, 2] > 0.0


def classify_ring(points: NDArray[np.float64]) -> VisibilityClass:
    """Classify a rotated ring against the visible hemisphere.

    Parameters
    ----------
    points : ndarray
        ``(N, 3)`` view-space unit vectors forming one ring.

    Returns
    -------
    VisibilityClass
        VISIBLE, PARTIAL or OCCLUDED. An empty ring is OCCLUDED.
    """
    mask = visible_mask(points)
    if mask.size == 0 or not mask.any():
        return VisibilityClass.OCCLUDED
    if mask.all():
        return VisibilityClass.VISIBLE
    return VisibilityClass.PARTIAL
