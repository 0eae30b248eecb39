"""
Common utilities and infrastructure for the globe vector rendering pipeline.

This package provides foundational components used across all modules:
- Numeric tolerances with their provenance
- Unit registry for angle conversion at ingestion
- Core value types (coordinates, sphere points, rings, projected polylines)
- Logging and per-frame audit trail infrastructure
"""

from common.constants import Constant, GeometryConstants
from common.units import ureg, Q_, to_radians, to_degrees, warn_if_degrees
from common.types import (
    GeoCoordinate,
    SpherePoint,
    Ring,
    VisibilityClass,
    ProjectionKind,
    ProjectedPolyline,
)
from common.logging_config import get_logger, AuditLogger, FrameMetadata

__all__ = [
    "Constant",
    "GeometryConstants",
    "ureg",
    "Q_",
    "to_radians",
    "to_degrees",
    "warn_if_degrees",
    "GeoCoordinate",
    "SpherePoint",
    "Ring",
    "VisibilityClass",
    "ProjectionKind",
    "ProjectedPolyline",
    "get_logger",
    "AuditLogger",
    "FrameMetadata",
]
