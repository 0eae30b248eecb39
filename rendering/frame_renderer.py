"""
Per-Frame Rendering of a Geometry Document.

`FrameRenderer` is the entry point the surrounding application calls once per
frame: it builds the frame context for the current projection centre, reduces
every feature to rings, runs the rings through the kernel and packs the
resulting polylines into the frame's vertex buffers.

Only polygon rings emit stencil fans; lines emit outline segments only.
"""

from typing import Any, Dict, Optional, Tuple

from common.logging_config import AuditLogger, get_logger
from common.types import GeoCoordinate
from data_ingestion.geometry import FeatureCollection, rings_of
from geospatial.projections import get_projection
from rendering.context import FrameContext, PipelineConfig
from rendering.frame_buffers import FrameBuffers, FrameBuilder, view_projection_matrix
from rendering.ring_processor import RingProcessor

logger = get_logger(__name__)


class FrameRenderer:
    """Turns a document into frame buffers for a given view.

    Parameters
    ----------
    config : PipelineConfig
        Projection and subdivision settings. May be replaced between frames.

    Examples
    --------
    >>> renderer = FrameRenderer(PipelineConfig(projection="orthographic"))
    >>> buffers = renderer.render(document, GeoCoordinate.from_degrees(10.0, 45.0))
    >>> buffers.segment_count, buffers.triangle_count
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self._builder = FrameBuilder(get_projection(self.config.projection))
        self._frame_count = 0
        self.last_frame_summary: Optional[Dict[str, Any]] = None

    def render(
        self,
        document: FeatureCollection,
        centre: GeoCoordinate,
        aspect: float = 1.0,
        zoom: float = 1.0,
        pan: Tuple[float, float] = (0.0, 0.0),
        frame_id: Optional[str] = None
    ) -> FrameBuffers:
        """Render one frame.

        Parameters
        ----------
        document : FeatureCollection
            Features to draw.
        centre : GeoCoordinate
            Geographic point facing the viewer this frame.
        aspect, zoom, pan
            Viewport parameters for the view-projection matrix.
        frame_id : str, optional
            Audit identifier; generated if omitted.

        Returns
        -------
        FrameBuffers
            Vertex buffers valid until the next call to `render`.
        """
        self._frame_count += 1
        frame_id = frame_id or f"frame_{self._frame_count:06d}"

        context = FrameContext.from_config(self.config, centre)
        processor = RingProcessor(context, workers=self.config.workers)
        audit = AuditLogger()

        try:
            with audit.frame_context(frame_id, config=self.config.to_dict()):
                rings = [ring for feature in document.features for ring in rings_of(feature.geometry)]
                polylines = processor.process_many(rings)

                self._builder.begin_frame(context.projection)
                for polyline in polylines:
                    self._builder.add_polyline(polyline, fill=self.config.fill)

                buffers = self._builder.finish(
                    view_projection_matrix(context.projection, aspect, zoom, pan)
                )
            self.last_frame_summary = audit.get_frame_summary(frame_id)
        finally:
            audit.discard_frame(frame_id)

        logger.debug(
            f"{frame_id}: {len(rings)} rings -> "
            f"{buffers.segment_count} segments, {buffers.triangle_count} triangles"
        )
        return buffers


def render_frame(
    document: FeatureCollection,
    centre: GeoCoordinate,
    config: Optional[PipelineConfig] = None,
    aspect: float = 1.0
) -> FrameBuffers:
    """One-shot convenience wrapper around `FrameRenderer`."""
    return FrameRenderer(config).render(document, centre, aspect=aspect)
