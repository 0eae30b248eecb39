"""
Ring Processing: Geographic Ring → Projected Polyline.

This module runs one ring through the whole kernel:

    geographic ring
      → unit-sphere points
      → view-space points (rotation)
      → visibility class          (occluding projections only)
      → hemisphere clip           (PARTIAL rings only)
      → adaptive arc subdivision
      → 2D world coordinates

Degeneration, Not Errors
------------------------
A ring that is too short, fully occluded or empty after clipping becomes an
empty polyline and is left out of the frame. The reason is recorded in the
audit trail. Nothing here raises for bad geometry, so one malformed feature
cannot stop the rest of the map from rendering.

Equirectangular
---------------
Projections without occlusion skip visibility and clipping. They also skip
the view rotation: rotating and then flattening back to (λ, φ) would undo
the rotation, so the geographic sphere points are subdivided and projected
directly.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List
import numpy as np

from common.logging_config import AuditLogger, get_logger
from common.types import ProjectedPolyline, Ring, VisibilityClass
from geospatial.arc_subdivision import subdivide_polygon, subdivide_polyline
from geospatial.hemisphere_clipping import clip_to_hemisphere
from geospatial.sphere_mapping import ensure_unit_vectors, geo_to_sphere_batch, rotate
from geospatial.visibility import classify_ring
from rendering.context import FrameContext

logger = get_logger(__name__)


def _degenerate(reason: str, ring: Ring) -> ProjectedPolyline:
    AuditLogger().log_degeneration(reason, context={"points": len(ring), "closed": ring.closed})
    return ProjectedPolyline.empty(closed=ring.closed)


def process_ring(ring: Ring, context: FrameContext) -> ProjectedPolyline:
    """Project one ring for the current frame.

    Parameters
    ----------
    ring : Ring
        Geographic ring in radians.
    context : FrameContext
        Rotation, projection and subdivision settings for this frame.

    Returns
    -------
    ProjectedPolyline
        World-space vertices, or an empty polyline if nothing is drawn.
    """
    if len(ring) < 2:
        return _degenerate("too_few_points", ring)

    projection = context.projection
    sphere_pts = geo_to_sphere_batch(ring.longitudes, ring.latitudes)

    if projection.has_occlusion:
        view_pts = ensure_unit_vectors(rotate(sphere_pts, context.rotation))
        visibility = classify_ring(view_pts)
        if visibility is VisibilityClass.OCCLUDED:
            return _degenerate("occluded", ring)
        if visibility is VisibilityClass.PARTIAL:
            working = clip_to_hemisphere(view_pts, closed=ring.closed)
        else:
            working = view_pts
    else:
        working = sphere_pts

    if len(working) < 2:
        return _degenerate("empty_after_clip", ring)

    subdivide = subdivide_polygon if ring.closed else subdivide_polyline
    subdivided = subdivide(working, projection, context.tolerance, context.max_depth)
    if len(subdivided) < 2:
        return _degenerate("empty_after_subdivision", ring)

    vertices = projection.project(subdivided)
    if not np.all(np.isfinite(vertices)):
        return _degenerate("non_finite", ring)

    AuditLogger().log_ring_processed()
    return ProjectedPolyline(vertices=vertices, closed=ring.closed)


class RingProcessor:
    """Processes rings against a fixed frame context.

    Parameters
    ----------
    context : FrameContext
        The frame's rotation, projection and subdivision settings.
    workers : int
        Number of threads for `process_many`. Rings share no mutable state,
        so no synchronization is needed beyond gathering the results.
    """

    def __init__(self, context: FrameContext, workers: int = 1):
        self.context = context
        self.workers = workers

    def process(self, ring: Ring) -> ProjectedPolyline:
        return process_ring(ring, self.context)

    def process_many(self, rings: Iterable[Ring]) -> List[ProjectedPolyline]:
        """Process rings, returning polylines in input order."""
        rings = list(rings)
        if self.workers <= 1 or len(rings) < 2:
            return [self.process(ring) for ring in rings]

        logger.debug(f"Processing {len(rings)} rings on {self.workers} workers")
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            return list(executor.map(self.process, rings))
