import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from common.types import GeoCoordinate
from geospatial.arc_subdivision import (
    arc_is_flat_enough,
    slerp,
    subdivide_arc,
    subdivide_polygon,
    subdivide_polyline,
)
from geospatial.projections import get_projection
from geospatial.sphere_mapping import geo_to_sphere
from validation.metrics import arc_approximation_error

ORTHO = get_projection("orthographic")
EQUIRECT = get_projection("equirectangular")


def test_slerp_endpoints_and_midpoint():
    a = np.array([1.0, 0.0, 0.0])
    b = np.array([0.0, 1.0, 0.0])
    assert_allclose(slerp(a, b, 0.0), a, atol=1e-15)
    assert_allclose(slerp(a, b, 1.0), b, atol=1e-15)
    assert_allclose(slerp(a, b, 0.5), [math.sqrt(0.5), math.sqrt(0.5), 0.0])


def test_slerp_array_parameter_stays_on_sphere():
    a = np.array([0.0, 0.6, 0.8])
    b = np.array([0.6, 0.0, -0.8])
    points = slerp(a, b, np.linspace(0.0, 1.0, 11))
    assert points.shape == (11, 3)
    assert_allclose(np.linalg.norm(points, axis=1), 1.0, atol=1e-12)


def test_slerp_near_duplicate_points():
    a = np.array([1.0, 0.0, 0.0])
    b = np.array([1.0, 1e-9, 0.0])
    b /= np.linalg.norm(b)
    mid = slerp(a, b, 0.5)
    assert np.all(np.isfinite(mid))
    assert np.linalg.norm(mid) == pytest.approx(1.0)


def test_slerp_antipodal_is_deterministic(audit_frame):
    audit, frame_id = audit_frame
    a = np.array([1.0, 0.0, 0.0])
    b = np.array([-1.0, 0.0, 0.0])
    mid = slerp(a, b, 0.5)
    assert np.all(np.isfinite(mid))
    assert_allclose(mid, [0.0, 1.0, 0.0], atol=1e-12)
    assert_allclose(slerp(a, b, 0.5), mid)
    assert_allclose(slerp(a, b, 1.0), b, atol=1e-12)
    assert audit.get_frame_summary(frame_id)["numeric_guards"]["slerp_antipodal"] == 3


def test_arc_through_disc_centre_is_flat():
    a = np.array([0.6, 0.0, 0.8])
    b = np.array([-0.6, 0.0, 0.8])
    assert arc_is_flat_enough(a, b, ORTHO, 1e-9)
    assert_allclose(subdivide_arc(a, b, ORTHO, 1e-6), [a])


def test_subdivide_arc_excludes_end_point():
    a = np.array([0.8, 0.0, 0.6])
    b = np.array([0.0, 0.8, 0.6])
    out = subdivide_arc(a, b, ORTHO, 1e-3)
    assert len(out) > 1
    assert_allclose(out[0], a)
    assert not np.any(np.all(np.isclose(out, b), axis=1))
    assert_allclose(np.linalg.norm(out, axis=1), 1.0, atol=1e-12)


def test_depth_cap_bounds_subdivision(audit_frame):
    audit, frame_id = audit_frame
    a = np.array([0.8, 0.0, 0.6])
    b = np.array([0.0, 0.8, 0.6])
    out = subdivide_arc(a, b, ORTHO, 1e-9, max_depth=0)
    assert_allclose(out, [a])
    assert audit.get_frame_summary(frame_id)["numeric_guards"]["depth_cap"] == 1

    out = subdivide_arc(a, b, ORTHO, 1e-12, max_depth=3)
    assert len(out) == 8


@pytest.mark.parametrize("tolerance", [1e-2, 1e-3, 1e-4])
def test_subdivided_arc_within_tolerance_of_true_great_circle(tolerance, origin_rotation):
    start = GeoCoordinate.from_degrees(-40.0, 10.0)
    end = GeoCoordinate.from_degrees(50.0, 35.0)
    a = origin_rotation.apply(geo_to_sphere(start).vector)
    b = origin_rotation.apply(geo_to_sphere(end).vector)

    arc = np.vstack([subdivide_arc(a, b, ORTHO, tolerance), b])
    metrics = arc_approximation_error(
        start, end, ORTHO.project(arc), ORTHO,
        rotation=origin_rotation, num_samples=256, tolerance=tolerance
    )

    assert metrics.max_error < tolerance
    assert metrics.within_tolerance


def test_tighter_tolerance_adds_vertices(origin_rotation):
    a = origin_rotation.apply(geo_to_sphere(GeoCoordinate.from_degrees(-70.0, 0.0)).vector)
    b = origin_rotation.apply(geo_to_sphere(GeoCoordinate.from_degrees(20.0, 60.0)).vector)
    counts = [len(subdivide_arc(a, b, ORTHO, tol)) for tol in (1e-2, 1e-3, 1e-4)]
    assert counts[0] < counts[1] < counts[2]


def _square():
    return np.array([
        [0.6, 0.0, 0.8],
        [0.0, 0.6, 0.8],
        [-0.6, 0.0, 0.8],
        [0.0, -0.6, 0.8],
    ])


def test_subdivide_polygon_keeps_original_vertices_in_order():
    square = _square()
    out = subdivide_polygon(square, ORTHO, 1e-4)
    indices = [int(np.flatnonzero(np.all(np.isclose(out, v), axis=1))[0]) for v in square]
    assert indices[0] == 0
    assert indices == sorted(indices)
    # Wraparound edge subdivided: vertices follow the last original vertex
    assert indices[-1] < len(out) - 1


def test_subdivide_polyline_keeps_last_vertex():
    square = _square()
    out = subdivide_polyline(square, ORTHO, 1e-4)
    assert_allclose(out[0], square[0])
    assert_allclose(out[-1], square[-1])


def test_subdivide_short_inputs_are_copied():
    single = np.array([[0.0, 0.0, 1.0]])
    assert_allclose(subdivide_polygon(single, ORTHO, 1e-3), single)
    assert_allclose(subdivide_polyline(single, ORTHO, 1e-3), single)


def test_equirectangular_meridian_needs_no_subdivision():
    a = geo_to_sphere(GeoCoordinate.from_degrees(10.0, -20.0)).vector
    b = geo_to_sphere(GeoCoordinate.from_degrees(10.0, 40.0)).vector
    assert len(subdivide_arc(a, b, EQUIRECT, 1e-6)) == 1
