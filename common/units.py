"""
Angle Units for Coordinate Ingestion.

This module provides the single place where geographic angles change units.
GeoJSON positions arrive in degrees; everything downstream of ingestion works
in radians. The conversion is done with the `pint` library so that a value
tagged with the wrong unit fails loudly instead of silently producing a map
that is off by a factor of 57.

Example Usage
-------------
>>> from common.units import Q_, to_radians
>>> to_radians(Q_(180.0, 'degree'))
array(3.14159265)
>>> to_radians([90.0, -45.0])
array([ 1.57079633, -0.78539816])
"""

from typing import Sequence, Union
import warnings

import numpy as np
from numpy.typing import NDArray
import pint

# Create the global unit registry
ureg = pint.UnitRegistry()

# Convenience alias for creating quantities
Q_ = ureg.Quantity

AngleInput = Union[float, Sequence[float], NDArray[np.float64], pint.Quantity]


def to_radians(values: AngleInput, default_unit: str = "degree") -> NDArray[np.float64]:
    """Convert angles to a float64 array of radians.

    Parameters
    ----------
    values : float, sequence, ndarray or pint.Quantity
        Angles to convert. Bare numbers are interpreted in ``default_unit``.
    default_unit : str
        Unit applied to bare numbers (default: degrees, the GeoJSON unit).

    Returns
    -------
    ndarray
        Angles in radians.

    Raises
    ------
    ValueError
        If a Quantity is passed whose units are not angular.
    """
    if isinstance(values, pint.Quantity):
        quantity = values
    else:
        quantity = Q_(np.asarray(values, dtype=np.float64), default_unit)

    try:
        return np.asarray(quantity.to(ureg.radian).magnitude, dtype=np.float64)
    except pint.DimensionalityError as e:
        raise ValueError(
            f"Expected an angle, got units of {quantity.units}"
        ) from e


def to_degrees(values: AngleInput) -> NDArray[np.float64]:
    """Convert radian angles back to degrees (display only)."""
    if isinstance(values, pint.Quantity):
        quantity = values
    else:
        quantity = Q_(np.asarray(values, dtype=np.float64), ureg.radian)
    return np.asarray(quantity.to(ureg.degree).magnitude, dtype=np.float64)


def warn_if_degrees(values: NDArray[np.float64], name: str) -> None:
    """Warn when values labelled as radians look like degrees.

    Any angle beyond 2π in magnitude cannot be a latitude or longitude in
    radians, so its presence almost always means a missed conversion.
    """
    if values.size and np.nanmax(np.abs(values)) > 2 * np.pi:
        warnings.warn(
            f"{name} contains values beyond 2π; were degrees passed as radians?",
            UserWarning,
            stacklevel=2
        )
