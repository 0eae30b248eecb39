import math

import numpy as np
import pytest

from common.types import Ring
from common.units import Q_, to_degrees, to_radians, warn_if_degrees


def test_bare_numbers_are_degrees():
    assert float(to_radians(180.0)) == pytest.approx(math.pi)
    np.testing.assert_allclose(to_radians([90.0, -45.0]), [math.pi / 2, -math.pi / 4])


def test_quantities_keep_their_unit():
    assert float(to_radians(Q_(1.0, "radian"))) == pytest.approx(1.0)
    assert float(to_radians(Q_(30.0, "arcminute"))) == pytest.approx(math.radians(0.5))


def test_non_angle_quantity_is_rejected():
    with pytest.raises(ValueError):
        to_radians(Q_(3.0, "meter"))


def test_to_degrees():
    np.testing.assert_allclose(to_degrees([math.pi, -math.pi / 2]), [180.0, -90.0])


def test_degrees_passed_as_radians_warn():
    with pytest.warns(UserWarning):
        warn_if_degrees(np.array([10.0, 45.0]), "coords")
    with pytest.warns(UserWarning):
        Ring(coordinates=np.array([[100.0, 20.0], [110.0, 20.0]]))


def test_ring_from_degrees():
    ring = Ring.from_degrees([[0, 0], [90, 0], [90, 45]])
    assert ring.closed
    np.testing.assert_allclose(ring.longitudes, [0.0, math.pi / 2, math.pi / 2])
    np.testing.assert_allclose(ring.latitudes, [0.0, 0.0, math.pi / 4])
