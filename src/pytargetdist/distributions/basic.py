"""
Basic target distribution implementations.

Provides static target distributions with a closed form: the uniform
distribution and sums of Gaussians.
"""

from __future__ import annotations

import math
from typing import Any, ClassVar, Literal

import numpy as np
import numpy.typing as npt
from pydantic import field_validator, model_validator

from pytargetdist.distributions.core import TargetDistribution


class UniformDist(TargetDistribution):
    r"""
    Uniform target distribution.

    .. math::

        p(\mathbf{s}) = \frac{1}{V}

    where :math:`V` is the volume of the grid domain. The constant is
    obtained by normalizing over the grid, which is done on every update.
    """

    type: Literal["uniform"] = "uniform"

    supported_options: ClassVar[frozenset[str]] = frozenset({"bias_cutoff"})
    normalized_by_default: ClassVar[bool] = True

    def get_value(self, point: npt.NDArray[np.float64]) -> float:  # noqa: ARG002
        return 1.0

    def get_values(self, points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        return np.ones(len(points))


class GaussianDist(TargetDistribution):
    r"""
    Weighted sum of Gaussians with diagonal covariance.

    .. math::

        p(\mathbf{s}) = \sum_k w_k \prod_i \frac{1}{\sigma_{k,i}\sqrt{2\pi}}
            \exp\left(-\frac{(s_i - \mu_{k,i})^2}{2\sigma_{k,i}^2}\right)

    Parameters:
        centers: Center vector :math:`\mu_k` of every Gaussian. A single
            flat list is taken as one center.
        sigmas: Widths :math:`\sigma_k`, same shape as ``centers``.
        weights: Relative weights, rescaled to sum to one (default: equal).
    """

    type: Literal["gaussian"] = "gaussian"
    centers: list[list[float]]
    sigmas: list[list[float]]
    weights: list[float] | None = None

    supported_options: ClassVar[frozenset[str]] = frozenset(
        {"bias_cutoff", "welltempered_factor", "shift_to_zero", "normalize"}
    )

    @field_validator("centers", "sigmas", mode="before")
    @classmethod
    def wrap_single_vector(cls, value: Any) -> Any:
        """Accept a single flat vector for a distribution with one Gaussian."""
        if isinstance(value, list | tuple) and value and not isinstance(value[0], list | tuple):
            return [list(value)]
        return value

    @model_validator(mode="after")
    def check_gaussians(self) -> GaussianDist:
        """Validate the shapes of the parameters and set the dimension."""
        if not self.centers:
            msg = f"{self.name}: at least one center is needed"
            raise ValueError(msg)
        if len(self.sigmas) != len(self.centers):
            msg = f"{self.name}: there are {len(self.centers)} centers but {len(self.sigmas)} sigmas"
            raise ValueError(msg)
        dimension = len(self.centers[0])
        if dimension == 0:
            msg = f"{self.name}: the centers cannot be empty"
            raise ValueError(msg)
        for center, sigma in zip(self.centers, self.sigmas, strict=True):
            if len(center) != dimension or len(sigma) != dimension:
                msg = f"{self.name}: every center and sigma needs {dimension} values"
                raise ValueError(msg)
            if any(value <= 0.0 for value in sigma):
                msg = f"{self.name}: the sigmas have to be positive"
                raise ValueError(msg)
        if self.weights is not None:
            if len(self.weights) != len(self.centers):
                msg = f"{self.name}: there has to be as many weights as centers"
                raise ValueError(msg)
            if any(weight < 0.0 for weight in self.weights) or sum(self.weights) <= 0.0:
                msg = f"{self.name}: the weights have to be non-negative with a positive sum"
                raise ValueError(msg)
        self.set_dimension(dimension)
        return self

    @property
    def normalized_weights(self) -> npt.NDArray[np.float64]:
        weights = np.ones(len(self.centers)) if self.weights is None else np.asarray(self.weights, dtype=float)
        return weights / weights.sum()

    def get_value(self, point: npt.NDArray[np.float64]) -> float:
        return float(self.get_values(np.atleast_2d(point))[0])

    def get_values(self, points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        points = np.asarray(points, dtype=float)
        values = np.zeros(len(points))
        for weight, center, sigma in zip(
            self.normalized_weights, self.centers, self.sigmas, strict=True
        ):
            mu = np.asarray(center)
            sd = np.asarray(sigma)
            norm = np.prod(1.0 / (math.sqrt(2.0 * math.pi) * sd))
            exponent = -0.5 * np.sum(((points - mu) / sd) ** 2, axis=1)
            values += weight * norm * np.exp(exponent)
        return values


# Registry of basic distributions
distributions: dict[str, type[TargetDistribution]] = {
    "uniform": UniformDist,
    "gaussian": GaussianDist,
}

__all__ = [
    "GaussianDist",
    "UniformDist",
    "distributions",
]
