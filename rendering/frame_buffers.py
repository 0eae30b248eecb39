"""
Frame Vertex Buffers for the Stencil-and-Cover Renderer.

Each frame hands the renderer two flat vertex buffers and a matrix:

- line segments: pairs of 2D world coordinates, for outlines
- fan triangles: triples of 2D world coordinates, for the stencil pass that
  marks covered pixels before the cover pass fills them
- view-projection: a 4×4 matrix from world coordinates to clip space

All of this is regenerated whenever the view changes. The buffers therefore
live in `VertexArena`s that are reset at the start of a frame and keep their
capacity, instead of being reallocated for every ring.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from common.types import ProjectedPolyline
from geospatial.projections import ProjectionAdapter


class VertexArena:
    """Growable buffer of 2D vertices reused across frames.

    Parameters
    ----------
    capacity : int
        Initial number of vertices.

    Notes
    -----
    `view` returns a view into the arena's storage; it stays valid until the
    next `reset` or growth. Copy it if it must outlive the frame.
    """

    def __init__(self, capacity: int = 4096):
        self._data = np.empty((max(capacity, 1), 2), dtype=np.float64)
        self._size = 0

    def __len__(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return len(self._data)

    def reset(self) -> None:
        """Discard all vertices, keeping the allocated storage."""
        self._size = 0

    def extend(self, vertices: NDArray[np.float64]) -> None:
        """Append ``(K, 2)`` vertices, doubling storage as needed."""
        vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 2)
        needed = self._size + len(vertices)
        if needed > self.capacity:
            new_capacity = self.capacity
            while new_capacity < needed:
                new_capacity *= 2
            grown = np.empty((new_capacity, 2), dtype=np.float64)
            grown[:self._size] = self._data[:self._size]
            self._data = grown
        self._data[self._size:needed] = vertices
        self._size = needed

    def view(self) -> NDArray[np.float64]:
        return self._data[:self._size]


@dataclass
class FrameBuffers:
    """Everything the renderer needs for one frame.

    Attributes
    ----------
    line_segments : ndarray
        ``(S, 2, 2)`` segment endpoints in world coordinates.
    fan_triangles : ndarray
        ``(T, 3, 2)`` triangle vertices in world coordinates.
    view_projection : ndarray
        ``(4, 4)`` world-to-clip matrix (column-vector convention).
    """
    line_segments: NDArray[np.float64]
    fan_triangles: NDArray[np.float64]
    view_projection: NDArray[np.float64]

    @property
    def segment_count(self) -> int:
        return len(self.line_segments)

    @property
    def triangle_count(self) -> int:
        return len(self.fan_triangles)


def view_projection_matrix(
    projection: ProjectionAdapter,
    aspect: float,
    zoom: float = 1.0,
    pan: Tuple[float, float] = (0.0, 0.0)
) -> NDArray[np.float64]:
    """Orthographic world-to-clip matrix that fits the projection's extent.

    Parameters
    ----------
    projection : ProjectionAdapter
        Supplies the world bounds to fit.
    aspect : float
        Viewport width / height.
    zoom : float
        Magnification on top of the fit (1 = whole map visible).
    pan : tuple
        World-space offset of the view centre from the map centre.

    Returns
    -------
    ndarray
        ``(4, 4)`` matrix M with clip = M @ (x, y, 0, 1). World units are
        square on screen.
    """
    if aspect <= 0.0:
        raise ValueError(f"aspect must be positive, got {aspect}")
    if zoom <= 0.0:
        raise ValueError(f"zoom must be positive, got {zoom}")

    min_x, max_x, min_y, max_y = projection.world_bounds
    centre_x = 0.5 * (min_x + max_x) + pan[0]
    centre_y = 0.5 * (min_y + max_y) + pan[1]
    half_w = 0.5 * (max_x - min_x)
    half_h = 0.5 * (max_y - min_y)

    scale_y = zoom * min(1.0 / half_h, aspect / half_w)
    scale_x = scale_y / aspect

    return np.array([
        [scale_x, 0.0, 0.0, -scale_x * centre_x],
        [0.0, scale_y, 0.0, -scale_y * centre_y],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ], dtype=np.float64)


class FrameBuilder:
    """Accumulates projected polylines into per-frame vertex buffers.

    Parameters
    ----------
    projection : ProjectionAdapter
        Supplies the anchor point for triangle fans.
    """

    def __init__(self, projection: ProjectionAdapter):
        self.projection = projection
        self._lines = VertexArena()
        self._triangles = VertexArena()

    def begin_frame(self, projection: Optional[ProjectionAdapter] = None) -> None:
        """Reset the arenas; optionally switch projection for this frame."""
        if projection is not None:
            self.projection = projection
        self._lines.reset()
        self._triangles.reset()

    def add_polyline(self, polyline: ProjectedPolyline, fill: bool = True) -> None:
        """Emit a polyline's outline segments and, if filled, its fan."""
        if polyline.is_empty:
            return
        self._lines.extend(polyline.segments().reshape(-1, 2))
        if fill and polyline.closed:
            self._triangles.extend(polyline.fan(self.projection.fan_origin).reshape(-1, 2))

    def finish(self, view_projection: NDArray[np.float64]) -> FrameBuffers:
        """Package the accumulated vertices for the renderer."""
        return FrameBuffers(
            line_segments=self._lines.view().reshape(-1, 2, 2),
            fan_triangles=self._triangles.view().reshape(-1, 3, 2),
            view_projection=np.asarray(view_projection, dtype=np.float64),
        )
