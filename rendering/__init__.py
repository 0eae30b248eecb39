"""
Rendering Module for the globe vector rendering pipeline.

This module runs rings through the geospatial kernel for one frame and packs
the results into stencil-and-cover vertex buffers.
"""

from rendering.context import PipelineConfig, FrameContext
from rendering.ring_processor import process_ring, RingProcessor
from rendering.frame_buffers import (
    VertexArena,
    FrameBuffers,
    FrameBuilder,
    view_projection_matrix,
)
from rendering.frame_renderer import FrameRenderer, render_frame

__all__ = [
    "PipelineConfig",
    "FrameContext",
    "process_ring",
    "RingProcessor",
    "VertexArena",
    "FrameBuffers",
    "FrameBuilder",
    "view_projection_matrix",
    "FrameRenderer",
    "render_frame",
]
