import itertools

import numpy as np
import pytest

from common.logging_config import AuditLogger
from common.types import GeoCoordinate
from geospatial.sphere_mapping import build_view_rotation

_frame_ids = itertools.count()


@pytest.fixture
def audit_frame():
    """Open an audit frame for the duration of a test; yields (audit, frame_id)."""
    audit = AuditLogger()
    frame_id = f"test_frame_{next(_frame_ids)}"
    with audit.frame_context(frame_id, config={"test": True}):
        yield audit, frame_id
    audit.discard_frame(frame_id)


@pytest.fixture
def origin_rotation():
    """View rotation facing (λ=0, φ=0)."""
    return build_view_rotation(GeoCoordinate(0.0, 0.0))


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)
