"""
Validation Framework for the globe vector rendering pipeline.

This module provides invariant checks for pipeline products and accuracy
metrics for subdivided great circles.
"""

from validation.pipeline_checks import (
    ValidationResult,
    PipelineConsistencyChecker,
)

from validation.metrics import (
    ApproximationMetrics,
    point_to_polyline_distance,
    arc_approximation_error,
)

__all__ = [
    "ValidationResult",
    "PipelineConsistencyChecker",
    "ApproximationMetrics",
    "point_to_polyline_distance",
    "arc_approximation_error",
]
