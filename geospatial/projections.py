"""
Map Projections from View Space to 2D World Coordinates.

This module maps rotated unit-sphere points to the 2D world coordinates the
renderer draws. Each projection states whether it has occlusion: projections
that show a single hemisphere need the visibility and clipping stages,
projections of the whole sphere do not.

Projections
-----------
- Orthographic: the globe as seen from infinitely far away. World
  coordinates are the view-space (x, y); the visible disc has radius 1.
  Valid only for z >= 0, which the clipper guarantees.
- Equirectangular: longitude and latitude used directly as (x, y). No
  occlusion. The world rectangle is [-π, π] × [-π/2, π/2].

Distortion Matters for Subdivision
----------------------------------
The arc subdivider measures its error in these world coordinates rather than
in angles. The same 1° arc bends very differently near the orthographic
silhouette than near the disc centre, and very differently at high latitude
in equirectangular than at the equator.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Union
import numpy as np
from numpy.typing import NDArray

from common.types import ProjectionKind, SpherePoint
from geospatial.sphere_mapping import geo_to_sphere_batch, sphere_to_geo_batch


class ProjectionAdapter(ABC):
    """Abstract base class for map projections.

    All projections in this system must implement this interface so the
    arc subdivider and the ring processor can treat them uniformly.
    """

    @property
    @abstractmethod
    def kind(self) -> ProjectionKind:
        """Enum tag of this projection."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the projection."""
        pass

    @property
    def has_occlusion(self) -> bool:
        """Whether only the z > 0 hemisphere is drawn."""
        return self.kind.has_occlusion

    @property
    @abstractmethod
    def world_bounds(self) -> Tuple[float, float, float, float]:
        """Extent of the projected sphere as (min_x, max_x, min_y, max_y)."""
        pass

    @property
    def fan_origin(self) -> Tuple[float, float]:
        """Anchor point for stencil triangle fans."""
        return (0.0, 0.0)

    @abstractmethod
    def project(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Project sphere points to world coordinates.

        Parameters
        ----------
        points : ndarray
            ``(N, 3)`` unit vectors.

        Returns
        -------
        ndarray
            ``(N, 2)`` world coordinates.
        """
        pass

    @abstractmethod
    def unproject(self, world: NDArray[np.float64]) -> NDArray[np.float64]:
        """Map world coordinates back to sphere points.

        Parameters
        ----------
        world : ndarray
            ``(N, 2)`` world coordinates inside `world_bounds`.

        Returns
        -------
        ndarray
            ``(N, 3)`` unit vectors.
        """
        pass

    def project_point(self, point: Union[SpherePoint, NDArray[np.float64]]) -> Tuple[float, float]:
        """Project a single point."""
        vector = point.vector if isinstance(point, SpherePoint) else np.asarray(point)
        x, y = self.project(vector.reshape(1, 3))[0]
        return float(x), float(y)


class OrthographicProjection(ProjectionAdapter):
    """Orthographic (globe) projection: drop z."""

    @property
    def kind(self) -> ProjectionKind:
        return ProjectionKind.ORTHOGRAPHIC

    @property
    def name(self) -> str:
        return "Orthographic"

    @property
    def world_bounds(self) -> Tuple[float, float, float, float]:
        return (-1.0, 1.0, -1.0, 1.0)

    def project(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        return points[:, :2].copy()

    def unproject(self, world: NDArray[np.float64]) -> NDArray[np.float64]:
        world = np.asarray(world, dtype=np.float64).reshape(-1, 2)
        r2 = np.sum(world**2, axis=1)
        if np.any(r2 > 1.0 + 1e-12):
            raise ValueError("World point lies outside the orthographic disc")
        z = np.sqrt(np.clip(1.0 - r2, 0.0, 1.0))
        return np.column_stack((world, z))


class EquirectangularProjection(ProjectionAdapter):
    """Equirectangular (plate carrée) projection: (λ, φ) as (x, y)."""

    @property
    def kind(self) -> ProjectionKind:
        return ProjectionKind.EQUIRECTANGULAR

    @property
    def name(self) -> str:
        return "Equirectangular"

    @property
    def world_bounds(self) -> Tuple[float, float, float, float]:
        return (-np.pi, np.pi, -np.pi / 2, np.pi / 2)

    def project(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        return sphere_to_geo_batch(points)

    def unproject(self, world: NDArray[np.float64]) -> NDArray[np.float64]:
        world = np.asarray(world, dtype=np.float64).reshape(-1, 2)
        return geo_to_sphere_batch(world[:, 0], world[:, 1])


_PROJECTIONS: Dict[ProjectionKind, ProjectionAdapter] = {
    ProjectionKind.ORTHOGRAPHIC: OrthographicProjection(),
    ProjectionKind.EQUIRECTANGULAR: EquirectangularProjection(),
}


def get_projection(kind: Union[ProjectionKind, str]) -> ProjectionAdapter:
    """Look up the projection for a kind (enum or its string value).

    Projections are stateless, so a shared instance is returned.
    """
    if isinstance(kind, str):
        try:
            kind = ProjectionKind(kind.lower())
        except ValueError as e:
            raise ValueError(f"No such projection: {kind}") from e
    return _PROJECTIONS[kind]
