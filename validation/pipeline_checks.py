"""
Consistency Checks for the Projection Pipeline.

This module verifies that the intermediate products of the pipeline obey
the invariants downstream stages depend on. The checks are cheap enough to
run on sample frames in development builds and in tests; they are not part
of the per-frame hot path.

Check Categories
----------------
1. Unit sphere (every point has ‖v‖ = 1)
2. Rotation (orthonormal, right-handed, centre on the view pole)
3. Clipping (every vertex on the visible hemisphere, horizon vertices on
   the horizon circle)
4. Output (no NaN or infinity reaches the vertex buffers)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import numpy as np
from numpy.typing import NDArray

from common.constants import GeometryConstants
from common.logging_config import get_logger
from common.types import ProjectedPolyline
from geospatial.sphere_mapping import RotationMatrix, geo_to_sphere

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes
    ----------
    test_name : str
        Name of the check.
    passed : bool
        Whether the check passed.
    message : str
        Description of result.
    details : dict
        Additional details.
    """
    test_name: str
    passed: bool
    message: str
    details: Dict[str, Any]


class PipelineConsistencyChecker:
    """Checker for the geometric invariants of pipeline products."""

    def __init__(
        self,
        strict_mode: bool = False,
        log_violations: bool = True
    ):
        """Initialize the checker.

        Parameters
        ----------
        strict_mode : bool
            If True, raise AssertionError on the first failed check.
        log_violations : bool
            Whether to log failed checks.
        """
        self.strict_mode = strict_mode
        self.log_violations = log_violations
        self._logger = get_logger("PipelineConsistencyChecker")

    def _report(self, result: ValidationResult) -> ValidationResult:
        if not result.passed:
            if self.log_violations:
                self._logger.warning(f"{result.test_name}: {result.message}")
            if self.strict_mode:
                raise AssertionError(f"{result.test_name}: {result.message}")
        return result

    def check_all(
        self,
        view_points: NDArray[np.float64],
        rotation: RotationMatrix,
        clipped: Optional[NDArray[np.float64]] = None,
        polyline: Optional[ProjectedPolyline] = None
    ) -> List[ValidationResult]:
        """Run every applicable check.

        Parameters
        ----------
        view_points : ndarray
            Rotated ``(N, 3)`` points of one ring.
        rotation : RotationMatrix
            The frame's view rotation.
        clipped : ndarray, optional
            Output of the hemisphere clipper for the same ring.
        polyline : ProjectedPolyline, optional
            Final projected output for the same ring.

        Returns
        -------
        List[ValidationResult]
            Results of all checks run.
        """
        results = [
            self.check_unit_norm(view_points),
            self.check_rotation(rotation),
        ]
        if clipped is not None:
            results.append(self.check_clipped_ring(clipped))
        if polyline is not None:
            results.append(self.check_polyline_finite(polyline))
        return results

    def check_unit_norm(
        self,
        points: NDArray[np.float64],
        tolerance: float = GeometryConstants.UNIT_NORM_TOLERANCE.value
    ) -> ValidationResult:
        """Check that every point lies on the unit sphere."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        deviation = np.abs(np.linalg.norm(points, axis=1) - 1.0)
        num_violations = int(np.sum(deviation > tolerance))

        return self._report(ValidationResult(
            test_name="unit_norm",
            passed=num_violations == 0,
            message=f"Unit norm check: {num_violations} violations",
            details={
                'max_deviation': float(deviation.max()) if deviation.size else 0.0,
                'num_violations': num_violations,
                'tolerance': tolerance,
            }
        ))

    def check_rotation(
        self,
        rotation: RotationMatrix,
        tolerance: float = 1e-9
    ) -> ValidationResult:
        """Check orthonormality, handedness and the centre mapping."""
        m = rotation.matrix
        orthogonality_error = float(np.max(np.abs(m @ m.T - np.eye(3))))
        determinant = float(np.linalg.det(m))

        centre_error = 0.0
        if rotation.centre is not None:
            pole = rotation.apply(geo_to_sphere(rotation.centre).vector)
            centre_error = float(np.max(np.abs(pole - np.array([0.0, 0.0, 1.0]))))

        passed = (
            orthogonality_error <= tolerance
            and abs(determinant - 1.0) <= tolerance
            and centre_error <= GeometryConstants.UNIT_NORM_TOLERANCE.value
        )

        return self._report(ValidationResult(
            test_name="rotation",
            passed=passed,
            message=(
                f"Rotation check: |RRᵀ - I| = {orthogonality_error:.2e}, "
                f"det = {determinant:.6f}"
            ),
            details={
                'orthogonality_error': orthogonality_error,
                'determinant': determinant,
                'centre_error': centre_error,
            }
        ))

    def check_clipped_ring(
        self,
        clipped: NDArray[np.float64],
        tolerance: float = 1e-9
    ) -> ValidationResult:
        """Check the clipper's postconditions.

        The ring is non-empty, no vertex is below the horizon, and every
        vertex at z = 0 is on the horizon circle.
        """
        clipped = np.asarray(clipped, dtype=np.float64).reshape(-1, 3)
        if len(clipped) == 0:
            return self._report(ValidationResult(
                test_name="clipped_ring",
                passed=False,
                message="Clipped ring is empty",
                details={}
            ))

        below = int(np.sum(clipped[:, 2] < -tolerance))
        on_horizon = np.abs(clipped[:, 2]) <= tolerance
        radius_error = np.abs(np.hypot(clipped[on_horizon, 0], clipped[on_horizon, 1]) - 1.0)
        off_circle = int(np.sum(radius_error > GeometryConstants.UNIT_NORM_TOLERANCE.value))

        return self._report(ValidationResult(
            test_name="clipped_ring",
            passed=below == 0 and off_circle == 0,
            message=f"Clipped ring check: {below} below horizon, {off_circle} off the horizon circle",
            details={
                'num_vertices': len(clipped),
                'num_horizon_vertices': int(np.sum(on_horizon)),
                'below_horizon': below,
                'off_circle': off_circle,
            }
        ))

    def check_polyline_finite(self, polyline: ProjectedPolyline) -> ValidationResult:
        """Check that no NaN or infinity reaches the renderer."""
        num_bad = int(np.sum(~np.isfinite(polyline.vertices)))
        return self._report(ValidationResult(
            test_name="polyline_finite",
            passed=num_bad == 0,
            message=f"Finite output check: {num_bad} non-finite values",
            details={'num_vertices': len(polyline), 'num_non_finite': num_bad}
        ))
