import numpy as np
import pytest

from common.types import GeoCoordinate, ProjectedPolyline
from geospatial.hemisphere_clipping import clip_to_hemisphere
from geospatial.projections import get_projection
from geospatial.sphere_mapping import RotationMatrix, build_view_rotation, geo_to_sphere_batch
from validation.metrics import arc_approximation_error, point_to_polyline_distance
from validation.pipeline_checks import PipelineConsistencyChecker

VIEW = np.array([[0.0, 0.6, 0.8], [0.6, 0.0, -0.8], [0.0, -0.6, 0.8]])


def test_checks_pass_on_pipeline_products():
    rotation = build_view_rotation(GeoCoordinate.from_degrees(25.0, -40.0))
    clipped = clip_to_hemisphere(VIEW)
    polyline = ProjectedPolyline(get_projection("orthographic").project(clipped))

    results = PipelineConsistencyChecker(strict_mode=True).check_all(VIEW, rotation, clipped, polyline)

    assert [r.test_name for r in results] == ["unit_norm", "rotation", "clipped_ring", "polyline_finite"]
    assert all(r.passed for r in results)
    assert results[2].details["num_horizon_vertices"] == 2


def test_non_unit_points_fail():
    result = PipelineConsistencyChecker(log_violations=False).check_unit_norm(np.array([[0.0, 0.0, 1.1]]))
    assert not result.passed
    assert result.details["num_violations"] == 1


def test_strict_mode_raises():
    checker = PipelineConsistencyChecker(strict_mode=True, log_violations=False)
    with pytest.raises(AssertionError):
        checker.check_rotation(RotationMatrix(matrix=2.0 * np.eye(3)))


def test_clipped_ring_below_horizon_fails():
    checker = PipelineConsistencyChecker(log_violations=False)
    assert not checker.check_clipped_ring(VIEW).passed
    assert not checker.check_clipped_ring(np.empty((0, 3))).passed


def test_non_finite_polyline_fails():
    polyline = ProjectedPolyline(np.array([[0.0, 0.0], [np.nan, 1.0]]))
    result = PipelineConsistencyChecker(log_violations=False).check_polyline_finite(polyline)
    assert not result.passed
    assert result.details["num_non_finite"] == 1


def test_point_to_polyline_distance():
    vertices = np.array([[-1.0, 0.0], [1.0, 0.0]])
    points = np.array([[0.0, 1.0], [2.0, 0.0], [0.5, -0.25]])
    np.testing.assert_allclose(point_to_polyline_distance(points, vertices), [1.0, 1.0, 0.25])
    np.testing.assert_allclose(point_to_polyline_distance(points[:1], vertices[:1]), [np.sqrt(2.0)])


def test_unsubdivided_chord_exceeds_tolerance():
    start = GeoCoordinate.from_degrees(-60.0, 0.0)
    end = GeoCoordinate.from_degrees(0.0, 60.0)
    rotation = build_view_rotation(GeoCoordinate(0.0, 0.0))
    ortho = get_projection("orthographic")
    endpoints = rotation.apply(geo_to_sphere_batch(
        np.array([start.longitude, end.longitude]), np.array([start.latitude, end.latitude])
    ))
    metrics = arc_approximation_error(
        start, end, ortho.project(endpoints), ortho, rotation=rotation, tolerance=1e-3
    )
    assert metrics.max_error > 1e-2
    assert not metrics.within_tolerance
    assert metrics.num_samples == 130
