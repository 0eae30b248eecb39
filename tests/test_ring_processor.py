import numpy as np
from numpy.testing import assert_allclose

from common.types import GeoCoordinate, Ring
from geospatial.arc_subdivision import subdivide_polygon
from geospatial.sphere_mapping import geo_to_sphere_batch
from rendering.context import FrameContext, PipelineConfig
from rendering.ring_processor import RingProcessor, process_ring


def _context(projection="orthographic", lon_deg=0.0, lat_deg=0.0, tolerance=1e-3):
    config = PipelineConfig(projection=projection, tolerance=tolerance)
    return FrameContext.from_config(config, GeoCoordinate.from_degrees(lon_deg, lat_deg))


def _square(lon0, lat0, size):
    return Ring.from_degrees([
        [lon0, lat0], [lon0 + size, lat0], [lon0 + size, lat0 + size], [lon0, lat0 + size],
    ])


def test_visible_ring_projects_inside_disc(audit_frame):
    audit, frame_id = audit_frame
    polyline = process_ring(_square(-10, -10, 20), _context())
    assert polyline.closed
    assert len(polyline) >= 4
    assert np.all(np.hypot(polyline.vertices[:, 0], polyline.vertices[:, 1]) < 1.0)
    assert audit.get_frame_summary(frame_id)["rings_processed"] == 1


def test_occluded_ring_is_dropped(audit_frame):
    audit, frame_id = audit_frame
    polyline = process_ring(_square(170, -5, 5), _context())
    assert polyline.is_empty
    assert audit.get_frame_summary(frame_id)["degenerate_rings_by_reason"] == {"occluded": 1}


def test_single_point_is_dropped(audit_frame):
    audit, frame_id = audit_frame
    ring = Ring.from_degrees([[0.0, 0.0]], closed=False)
    assert process_ring(ring, _context()).is_empty
    assert audit.get_frame_summary(frame_id)["degenerate_rings_by_reason"] == {"too_few_points": 1}


def test_partial_ring_stays_on_visible_disc():
    polyline = process_ring(_square(45, -10, 90), _context())
    assert not polyline.is_empty
    radii = np.hypot(polyline.vertices[:, 0], polyline.vertices[:, 1])
    assert np.all(radii <= 1.0 + 1e-9)
    # The clipped edge runs along the silhouette
    assert np.sum(np.abs(radii - 1.0) < 1e-9) >= 2


def test_open_line_is_cut_at_horizon():
    line = Ring.from_degrees([[0.0, 0.0], [120.0, 0.0]], closed=False)
    polyline = process_ring(line, _context())
    assert not polyline.closed
    assert_allclose(polyline.vertices[0], [0.0, 0.0], atol=1e-12)
    assert_allclose(polyline.vertices[-1], [1.0, 0.0], atol=1e-12)
    assert len(polyline.fan()) == 0


def test_equirectangular_vertex_count_matches_subdivision_only():
    ring = _square(-30, 20, 40)
    context = _context("equirectangular", lon_deg=100.0, lat_deg=-40.0)
    polyline = process_ring(ring, context)

    expected = subdivide_polygon(
        geo_to_sphere_batch(ring.longitudes, ring.latitudes),
        context.projection, context.tolerance, context.max_depth
    )
    assert len(polyline) == len(expected)
    assert_allclose(polyline.vertices[0], ring.coordinates[0], atol=1e-12)


def test_equirectangular_ignores_view_centre():
    ring = _square(-30, 20, 40)
    a = process_ring(ring, _context("equirectangular", lon_deg=0.0))
    b = process_ring(ring, _context("equirectangular", lon_deg=150.0, lat_deg=60.0))
    assert_allclose(a.vertices, b.vertices)


def test_processing_is_pure():
    ring = _square(-10, -10, 20)
    before = ring.coordinates.copy()
    context = _context()
    first = process_ring(ring, context)
    second = process_ring(ring, context)
    assert_allclose(first.vertices, second.vertices)
    assert_allclose(ring.coordinates, before)


def test_process_many_preserves_order_with_workers():
    rings = [_square(lon, -5, 10) for lon in range(-80, 80, 10)] + [_square(170, -5, 5)]
    context = _context()
    sequential = RingProcessor(context, workers=1).process_many(rings)
    threaded = RingProcessor(context, workers=4).process_many(rings)
    assert len(threaded) == len(rings)
    for expected, actual in zip(sequential, threaded):
        assert_allclose(actual.vertices, expected.vertices)
    assert threaded[-1].is_empty
