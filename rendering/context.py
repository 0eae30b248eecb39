"""
Pipeline Configuration and Per-Frame Context.

Everything a ring needs to be processed is bundled into one immutable
`FrameContext`: the view rotation, the projection and the subdivision
settings. The context is built once per frame and passed explicitly to every
pipeline call, so processing a ring is a pure function of (ring, context).
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Union

from common.constants import GeometryConstants
from common.types import GeoCoordinate, ProjectionKind
from geospatial.projections import ProjectionAdapter, get_projection
from geospatial.sphere_mapping import RotationMatrix, build_view_rotation


@dataclass
class PipelineConfig:
    """Configuration for the projection pipeline.

    Attributes
    ----------
    projection : ProjectionKind
        Map projection to render with.
    tolerance : float
        Maximum projected deviation of a subdivided arc, in world units.
    max_depth : int
        Subdivision depth cap per edge.
    workers : int
        Rings processed concurrently; 1 processes on the calling thread.
    fill : bool
        Whether polygons also emit stencil triangle fans.
    """
    projection: Union[ProjectionKind, str] = ProjectionKind.ORTHOGRAPHIC
    tolerance: float = GeometryConstants.DEFAULT_PROJECTED_TOLERANCE.value
    max_depth: int = GeometryConstants.DEFAULT_MAX_SUBDIVISION_DEPTH.value
    workers: int = 1
    fill: bool = True

    def __post_init__(self):
        if isinstance(self.projection, str):
            self.projection = get_projection(self.projection).kind
        self.validate()

    def validate(self) -> None:
        """Raise ValueError on settings the pipeline cannot honour."""
        if not self.tolerance > 0.0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form, used for the audit config hash."""
        config = asdict(self)
        config["projection"] = self.projection.value
        return config


@dataclass(frozen=True)
class FrameContext:
    """Immutable per-frame inputs shared by every ring.

    Attributes
    ----------
    rotation : RotationMatrix
        View rotation for this frame's centre.
    projection : ProjectionAdapter
        Projection to world coordinates.
    tolerance : float
        Projected subdivision tolerance.
    max_depth : int
        Subdivision depth cap.
    """
    rotation: RotationMatrix
    projection: ProjectionAdapter
    tolerance: float = GeometryConstants.DEFAULT_PROJECTED_TOLERANCE.value
    max_depth: int = GeometryConstants.DEFAULT_MAX_SUBDIVISION_DEPTH.value

    @property
    def kind(self) -> ProjectionKind:
        return self.projection.kind

    @classmethod
    def from_config(cls, config: PipelineConfig, centre: GeoCoordinate) -> 'FrameContext':
        """Build the context for one frame; the rotation is computed here, once."""
        return cls(
            rotation=build_view_rotation(centre),
            projection=get_projection(config.projection),
            tolerance=config.tolerance,
            max_depth=config.max_depth,
        )
