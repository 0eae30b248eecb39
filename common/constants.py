"""
Numeric Constants for the Globe Vector Pipeline.

This module provides the tolerances and limits that govern the spherical
projection and hemisphere-clipping kernel. Every constant carries the unit it
is measured in and the reason its value was chosen, so that a change to any
threshold can be traced back to the invariant it protects.

Tolerance Families
------------------
1. Unit-sphere tolerances: how far a vector may drift from ‖v‖ = 1
2. Angular guards: thresholds below which spherical formulas degenerate
3. Subdivision limits: projected-error tolerance and recursion depth cap
"""

from dataclasses import dataclass
from typing import Final
import numpy as np


@dataclass(frozen=True)
class Constant:
    """A numeric constant with provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    unit : str
        The unit of the constant.
    source : str
        Where the value comes from (convention, derivation or measurement).
    description : str
        Human-readable description of the constant.
    """
    value: float
    unit: str
    source: str
    description: str


class GeometryConstants:
    """Registry of constants used throughout the pipeline.

    All constants are class attributes with full metadata. Code should
    read ``GeometryConstants.NAME.value`` rather than repeating literals.
    """

    # =========================================================================
    # Unit Sphere
    # =========================================================================

    UNIT_NORM_TOLERANCE: Final[Constant] = Constant(
        value=1e-5,
        unit="dimensionless",
        source="float64 accumulation over a per-frame rotate/clip/slerp chain",
        description="Maximum allowed deviation of ‖v‖ from 1 before renormalization"
    )

    ZERO_NORM_THRESHOLD: Final[Constant] = Constant(
        value=1e-12,
        unit="dimensionless",
        source="float64 epsilon headroom",
        description="Vectors shorter than this have no direction and are rejected"
    )

    # =========================================================================
    # Angular Guards
    # =========================================================================

    SLERP_DEGENERATE_ANGLE: Final[Constant] = Constant(
        value=1e-6,
        unit="rad",
        source="sin(θ) ≈ θ loses all significant digits below ~1e-8; 1e-6 leaves margin",
        description="Arc angle below which slerp falls back to linear interpolation"
    )

    ANTIPODAL_ANGLE_MARGIN: Final[Constant] = Constant(
        value=1e-6,
        unit="rad",
        source="same conditioning argument as SLERP_DEGENERATE_ANGLE, mirrored at π",
        description="Arcs within this margin of π have no unique great circle"
    )

    # =========================================================================
    # Adaptive Subdivision
    # =========================================================================

    DEFAULT_PROJECTED_TOLERANCE: Final[Constant] = Constant(
        value=1e-3,
        unit="world units",
        source="orthographic disc of radius 1; ~0.5 px on a 1000 px globe",
        description="Default maximum projected midpoint deviation per subdivided arc"
    )

    DEFAULT_MAX_SUBDIVISION_DEPTH: Final[Constant] = Constant(
        value=18,
        unit="levels",
        source="2^18 leaves per edge bounds worst-case work on pathological arcs",
        description="Depth at which an arc leaf is accepted regardless of flatness"
    )

    # =========================================================================
    # Angle Helpers
    # =========================================================================

    @staticmethod
    def normalize_longitude(longitude_rad: float) -> float:
        """Wrap a longitude into (-π, π].

        Parameters
        ----------
        longitude_rad : float
            Longitude in radians, any range.

        Returns
        -------
        float
            Equivalent longitude in (-π, π].
        """
        wrapped = float(np.arctan2(np.sin(longitude_rad), np.cos(longitude_rad)))
        # The antimeridian may come back as -π or within rounding of it
        if wrapped <= -np.pi + 1e-12:
            wrapped = np.pi
        return wrapped
