import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from common.constants import GeometryConstants
from common.types import GeoCoordinate, SpherePoint
from geospatial.sphere_mapping import (
    RotationMatrix,
    build_view_rotation,
    ensure_unit_vectors,
    geo_to_sphere,
    geo_to_sphere_batch,
    rotate,
    sphere_to_geo,
    sphere_to_geo_batch,
)


def test_geo_to_sphere_axes():
    assert_allclose(geo_to_sphere(GeoCoordinate(0.0, 0.0)).vector, [1.0, 0.0, 0.0], atol=1e-12)
    assert_allclose(geo_to_sphere(GeoCoordinate(math.pi / 2, 0.0)).vector, [0.0, 1.0, 0.0], atol=1e-12)
    assert_allclose(geo_to_sphere(GeoCoordinate(0.0, math.pi / 2)).vector, [0.0, 0.0, 1.0], atol=1e-12)


def test_geo_to_sphere_unit_norm_over_grid():
    lon, lat = np.meshgrid(np.linspace(-math.pi, math.pi, 73), np.linspace(-math.pi / 2, math.pi / 2, 37))
    points = geo_to_sphere_batch(lon.ravel(), lat.ravel())
    assert points.shape == (73 * 37, 3)
    assert np.all(np.abs(np.linalg.norm(points, axis=1) - 1.0) < 1e-5)


def test_round_trip_away_from_poles(rng):
    lon = rng.uniform(-3.1, 3.1, 500)
    lat = rng.uniform(-1.5, 1.5, 500)
    lonlat = sphere_to_geo_batch(geo_to_sphere_batch(lon, lat))
    assert_allclose(lonlat[:, 0], lon, atol=1e-9)
    assert_allclose(lonlat[:, 1], lat, atol=1e-9)


def test_scalar_round_trip():
    coord = GeoCoordinate.from_degrees(-80.1918, 25.7617)
    back = sphere_to_geo(geo_to_sphere(coord))
    assert back.longitude == pytest.approx(coord.longitude, abs=1e-12)
    assert back.latitude == pytest.approx(coord.latitude, abs=1e-12)


def test_sphere_to_geo_clamps_drifted_z():
    # z slightly beyond 1 must not produce NaN latitude
    lonlat = sphere_to_geo_batch(np.array([[0.0, 0.0, 1.0 + 1e-12]]))
    assert lonlat[0, 1] == pytest.approx(math.pi / 2)


@pytest.mark.parametrize("lon_deg, lat_deg", [
    (0.0, 0.0), (37.0, -12.0), (-120.0, 65.0), (179.0, -89.0), (0.0, 90.0), (45.0, -90.0),
])
def test_view_rotation_is_orthonormal_and_faces_centre(lon_deg, lat_deg):
    centre = GeoCoordinate.from_degrees(lon_deg, lat_deg)
    rotation = build_view_rotation(centre)
    m = rotation.matrix
    assert_allclose(m @ m.T, np.eye(3), atol=1e-12)
    assert np.linalg.det(m) == pytest.approx(1.0, abs=1e-12)
    assert_allclose(rotation.apply(geo_to_sphere(centre).vector), [0.0, 0.0, 1.0], atol=1e-5)
    assert rotation.centre is centre


def test_north_pole_centre_maps_pole_to_view_pole():
    rotation = build_view_rotation(GeoCoordinate(0.0, math.pi / 2))
    pole = rotate(geo_to_sphere(GeoCoordinate(0.0, math.pi / 2)), rotation)
    assert isinstance(pole, SpherePoint)
    assert_allclose(pole.vector, [0.0, 0.0, 1.0], atol=1e-5)


def test_view_rotation_orientation(origin_rotation):
    north = origin_rotation.apply(geo_to_sphere(GeoCoordinate.from_degrees(0.0, 10.0)).vector)
    east = origin_rotation.apply(geo_to_sphere(GeoCoordinate.from_degrees(10.0, 0.0)).vector)
    assert north[1] > 0.0 and abs(north[0]) < 1e-12
    assert east[0] > 0.0 and abs(east[1]) < 1e-12


def test_rotate_then_transpose_is_identity(rng):
    rotation = build_view_rotation(GeoCoordinate.from_degrees(37.0, -12.0))
    points = geo_to_sphere_batch(rng.uniform(-3, 3, 100), rng.uniform(-1.5, 1.5, 100))
    back = rotate(rotate(points, rotation), rotation.inverse())
    assert_allclose(back, points, atol=1e-12)


def test_rotate_does_not_modify_input(origin_rotation):
    points = geo_to_sphere_batch(np.array([0.3, 1.0]), np.array([0.2, -0.4]))
    original = points.copy()
    rotate(points, origin_rotation)
    assert_allclose(points, original)


def test_identity_rotation():
    points = np.array([[0.0, 0.6, 0.8]])
    assert_allclose(RotationMatrix.identity().apply(points), points)


def test_ensure_unit_vectors_renormalizes_and_logs(audit_frame):
    audit, frame_id = audit_frame
    points = np.array([[2.0, 0.0, 0.0], [0.0, 0.6, 0.8]])
    fixed = ensure_unit_vectors(points)
    assert_allclose(fixed, [[1.0, 0.0, 0.0], [0.0, 0.6, 0.8]])
    assert points[0, 0] == 2.0
    assert audit.get_frame_summary(frame_id)["numeric_guards"] == {"renormalized": 1}


def test_ensure_unit_vectors_leaves_small_drift_alone():
    drift = 1.0 + 0.5 * GeometryConstants.UNIT_NORM_TOLERANCE.value
    points = np.array([[drift, 0.0, 0.0]])
    assert ensure_unit_vectors(points)[0, 0] == drift


def test_ensure_unit_vectors_rejects_zero_length():
    with pytest.raises(ValueError):
        ensure_unit_vectors(np.array([[0.0, 0.0, 0.0]]))


def test_sphere_point_validation():
    with pytest.raises(ValueError):
        SpherePoint(0.0, 0.0, 0.0)
    p = SpherePoint(3.0, 0.0, 4.0)
    assert_allclose(p.vector, [0.6, 0.0, 0.8])


def test_geo_coordinate_validation():
    with pytest.raises(ValueError):
        GeoCoordinate(0.0, 45.0)
    wrapped = GeoCoordinate(3 * math.pi / 2, 0.0)
    assert wrapped.longitude == pytest.approx(-math.pi / 2)
    assert GeometryConstants.normalize_longitude(-math.pi) == pytest.approx(math.pi)


def test_geo_coordinate_degrees_at_poles_are_accepted():
    coord = GeoCoordinate.from_degrees(180.0, -90.0)
    assert coord.latitude == pytest.approx(-math.pi / 2)
    assert coord.longitude == pytest.approx(math.pi)
    lon_deg, lat_deg = coord.to_degrees()
    assert lon_deg == pytest.approx(180.0)
    assert lat_deg == pytest.approx(-90.0)
