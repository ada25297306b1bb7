"""
Copyright (c) 2025 Giordon Stark. All rights reserved.

pytargetdist: target distributions on grids for variationally enhanced sampling
"""

from __future__ import annotations

from pytargetdist._version import version as __version__
from pytargetdist.bias import VesBias
from pytargetdist.distributions import (
    ExpressionDist,
    GaussianDist,
    LinearCombinationDist,
    TargetDistribution,
    UniformDist,
    WellTemperedDist,
    build_target_distribution,
)
from pytargetdist.grid import Grid

__all__ = [
    "ExpressionDist",
    "GaussianDist",
    "Grid",
    "LinearCombinationDist",
    "TargetDistribution",
    "UniformDist",
    "VesBias",
    "WellTemperedDist",
    "__version__",
    "build_target_distribution",
]
