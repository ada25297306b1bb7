"""
Numerical integration over grids.

Provides per-point quadrature weights such that ``weights @ grid.values``
approximates the integral of the gridded function over the grid domain.
"""

from __future__ import annotations

from functools import reduce
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from pytargetdist.grid import Grid


def trapezoid_weights_1d(npoints: int, dx: float, periodic: bool) -> npt.NDArray[np.float64]:
    """
    Trapezoidal weights along one axis.

    Args:
        npoints: Number of points along the axis.
        dx: Grid spacing.
        periodic: Periodic axes weight every point equally.

    Returns:
        Array of ``npoints`` weights.
    """
    weights = np.full(npoints, dx)
    if not periodic:
        weights[0] *= 0.5
        weights[-1] *= 0.5
    return weights


def integration_weights(grid: Grid) -> npt.NDArray[np.float64]:
    """
    Trapezoidal integration weights for every point of a grid.

    The multidimensional weight is the product of the one-dimensional
    weights, flattened in the grid's point order (first argument fastest).

    Args:
        grid: Grid to integrate over.

    Returns:
        Array of ``grid.size`` weights.
    """
    axes = [
        trapezoid_weights_1d(npoints, dx, periodic)
        for npoints, dx, periodic in zip(grid.shape, grid.dx, grid.periodic, strict=True)
    ]
    # indexed like grid.shape, flattened in point order
    weights = reduce(np.multiply.outer, axes)
    return np.asarray(weights).reshape(-1, order="F")


def integrate(grid: Grid) -> float:
    """Integral of the grid values over the grid domain."""
    return float(np.dot(integration_weights(grid), grid.values))
