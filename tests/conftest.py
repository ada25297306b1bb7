from __future__ import annotations

import logging

import numpy as np
import pytest

from pytargetdist.bias import VesBias
from pytargetdist.grid import Grid

GRID_1D = {"arguments": ["s"], "minimum": [-3.0], "maximum": [3.0], "nbins": [120]}
GRID_2D = {
    "arguments": ["s1", "s2"],
    "minimum": [-3.0, -2.0],
    "maximum": [3.0, 2.0],
    "nbins": [60, 40],
}


@pytest.fixture
def grid_1d():
    """Grid parameters of a one-dimensional target distribution."""
    return dict(GRID_1D)


@pytest.fixture
def grid_2d():
    """Grid parameters of a two-dimensional target distribution."""
    return dict(GRID_2D)


@pytest.fixture
def ves_bias():
    """Bias owner at kBT = 2.5 without a bias cutoff."""
    return VesBias(kbt=2.5)


@pytest.fixture
def harmonic_fes():
    """
    Factory for a harmonic free energy surface F(s) = k/2 |s|^2 on a grid.
    """

    def _make(params, k=5.0, label="fes"):
        grid = Grid(label, **params)
        grid.set_values(0.5 * k * np.sum(grid.points**2, axis=1))
        return grid

    return _make


@pytest.fixture
def caplog_warnings(caplog):
    """caplog capturing warnings of all pytargetdist loggers."""
    caplog.set_level(logging.WARNING, logger="pytargetdist")
    return caplog
