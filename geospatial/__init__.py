"""
Geospatial Module for the globe vector rendering pipeline.

All spherical geometry used by the renderer originates from this module.
Rendering code composes these functions; it never re-derives them.

This module provides:
- Unit-sphere mapping and the per-frame view rotation
- Visibility classification against the viewer's hemisphere
- Hemisphere clipping with exact horizon intersections
- Adaptive great-circle subdivision
- Map projections (orthographic, equirectangular)
- Reference great-circle geodesics
"""

from geospatial.sphere_mapping import (
    RotationMatrix,
    geo_to_sphere,
    sphere_to_geo,
    geo_to_sphere_batch,
    sphere_to_geo_batch,
    build_view_rotation,
    rotate,
    ensure_unit_vectors,
)

from geospatial.visibility import visible_mask, classify_ring

from geospatial.hemisphere_clipping import horizon_intersection, clip_to_hemisphere

from geospatial.arc_subdivision import (
    slerp,
    arc_is_flat_enough,
    subdivide_arc,
    subdivide_polygon,
    subdivide_polyline,
)

from geospatial.projections import (
    ProjectionAdapter,
    OrthographicProjection,
    EquirectangularProjection,
    get_projection,
)

from geospatial.geodesics import (
    angular_distance,
    angular_distance_batch,
    great_circle_points,
)

__all__ = [
    # Sphere mapping
    "RotationMatrix",
    "geo_to_sphere",
    "sphere_to_geo",
    "geo_to_sphere_batch",
    "sphere_to_geo_batch",
    "build_view_rotation",
    "rotate",
    "ensure_unit_vectors",
    # Visibility and clipping
    "visible_mask",
    "classify_ring",
    "horizon_intersection",
    "clip_to_hemisphere",
    # Subdivision
    "slerp",
    "arc_is_flat_enough",
    "subdivide_arc",
    "subdivide_polygon",
    "subdivide_polyline",
    # Projections
    "ProjectionAdapter",
    "OrthographicProjection",
    "EquirectangularProjection",
    "get_projection",
    # Geodesics
    "angular_distance",
    "angular_distance_batch",
    "great_circle_points",
]
