"""
Target distribution implementations.

Provides the static uniform and Gaussian distributions, distributions given
by an expression, the well-tempered distribution driven by the free energy,
and linear combinations of any of these.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import Field, TypeAdapter

# Import modules instead of individual classes
from pytargetdist.distributions import (
    basic,
    composite,
    dynamic,
    mathematical,
)
from pytargetdist.distributions.core import TargetDistribution
from pytargetdist.exceptions import custom_error_msg

# Basic distributions
UniformDist = basic.UniformDist
GaussianDist = basic.GaussianDist

# Dynamic distributions
WellTemperedDist = dynamic.WellTemperedDist

# Mathematical distributions
ExpressionDist = mathematical.ExpressionDist

# Composite distributions
LinearCombinationDist = composite.LinearCombinationDist

__all__ = [
    "ExpressionDist",
    "GaussianDist",
    "LinearCombinationDist",
    "TargetDistribution",
    "TargetDistributionType",
    "UniformDist",
    "WellTemperedDist",
    "build_target_distribution",
    "registered_distributions",
]

# Combine all distribution registries
registered_distributions: dict[str, type[TargetDistribution]] = {
    **basic.distributions,
    **dynamic.distributions,
    **mathematical.distributions,
    **composite.distributions,
}

# Type alias for all distribution types using discriminated union
TargetDistributionType = Annotated[
    basic.UniformDist
    | basic.GaussianDist
    | dynamic.WellTemperedDist
    | mathematical.ExpressionDist
    | composite.LinearCombinationDist,
    Field(discriminator="type"),
]

_adapter: TypeAdapter[TargetDistribution] = TypeAdapter(
    Annotated[
        TargetDistributionType,
        custom_error_msg(
            {
                "union_tag_invalid": "Unknown target distribution type '{tag}' does not match any of the expected target distributions: {expected_tags}"
            }
        ),
    ]
)


def build_target_distribution(
    config: Mapping[str, Any] | TargetDistribution,
) -> TargetDistribution:
    """
    Build a target distribution from its configuration.

    Args:
        config: Mapping with a ``type`` key naming the distribution and its
            options, or an already built distribution which is returned as is.

    Returns:
        TargetDistribution: The configured distribution.

    Raises:
        pydantic.ValidationError: If the configuration is invalid.
    """
    if isinstance(config, TargetDistribution):
        return config
    return _adapter.validate_python(dict(config))
