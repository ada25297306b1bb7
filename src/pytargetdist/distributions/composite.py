"""
Composite target distribution implementations.

Provides target distributions that combine other target distributions,
which they own and update as part of their own update.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, ClassVar, Literal

import numpy as np
import numpy.typing as npt
from pydantic import field_validator, model_validator

from pytargetdist.bias import BiasOwner
from pytargetdist.distributions.core import TargetDistribution, negative_log
from pytargetdist.exceptions import GridError
from pytargetdist.grid import Grid


class LinearCombinationDist(TargetDistribution):
    r"""
    Linear combination of target distributions.

    .. math::

        p(\mathbf{s}) = \sum_i w_i \, p_i(\mathbf{s})

    The weights are rescaled to sum to one, so the combination is normalized
    whenever the children are. The combination is dynamic if any of the
    children is, and every grid or bias linked to it is passed on to the
    children.

    Parameters:
        distributions: At least two child distributions, as instances or
            configuration mappings.
        weights: Relative weights, one per child (default: equal).
    """

    type: Literal["linear_combination"] = "linear_combination"
    distributions: list[TargetDistribution]
    weights: list[float] | None = None

    supported_options: ClassVar[frozenset[str]] = frozenset(
        {"bias_cutoff", "welltempered_factor", "normalize"}
    )

    @field_validator("distributions", mode="before")
    @classmethod
    def build_children(cls, value: Any) -> Any:
        """Build child distributions given as configuration mappings."""
        # imported here as the registry includes this module
        from pytargetdist.distributions import build_target_distribution  # noqa: PLC0415

        if not isinstance(value, Sequence) or isinstance(value, str):
            return value
        return [
            build_target_distribution(child) if isinstance(child, Mapping) else child
            for child in value
        ]

    @model_validator(mode="after")
    def check_children(self) -> LinearCombinationDist:
        """Validate children and weights and inherit the needs of the children."""
        if len(self.distributions) < 2:
            msg = f"{self.name}: a linear combination needs at least two distributions"
            raise ValueError(msg)
        if self.weights is not None:
            if len(self.weights) != len(self.distributions):
                msg = f"{self.name}: there has to be as many weights given as distributions"
                raise ValueError(msg)
            if sum(self.weights) <= 0.0:
                msg = f"{self.name}: the sum of the weights has to be positive"
                raise ValueError(msg)

        for child in self.distributions:
            if child.is_dynamic:
                self.set_dynamic()
            if child.bias_grid_needed:
                self.set_bias_grid_needed()
            if child.bias_withoutcutoff_grid_needed:
                self.set_bias_withoutcutoff_grid_needed()
            if child.fes_grid_needed:
                self.set_fes_grid_needed()
        return self

    @property
    def normalized_weights(self) -> npt.NDArray[np.float64]:
        weights = (
            np.ones(len(self.distributions))
            if self.weights is None
            else np.asarray(self.weights, dtype=float)
        )
        return weights / weights.sum()

    def description(self) -> str:
        lines = [f"{super().description()}, combining {len(self.distributions)} distributions"]
        for weight, child in zip(self.normalized_weights, self.distributions, strict=True):
            lines.append(f"  {weight:.4f} x {child.description()}")
        return "\n".join(lines)

    def get_value(self, point: npt.NDArray[np.float64]) -> float:
        msg = f"get_value not implemented for {self.type}"
        raise NotImplementedError(msg)

    def setup_additional_grids(
        self,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None,
    ) -> None:
        for child in self.distributions:
            child.setup_grids(arguments, minimum, maximum, nbins, periodic)
            if child.dimension != self.dimension:
                msg = f"{self.name}: all target distributions given in the linear combination should have the same dimension"
                raise GridError(msg)

    def setup_additional_reweight_grids(
        self,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None,
    ) -> None:
        for child in self.distributions:
            child.setup_reweight_grids(arguments, minimum, maximum, nbins, periodic)
            if child.dimension != self.dimension:
                msg = f"{self.name}: all target distributions given in the linear combination should have the same dimension"
                raise GridError(msg)

    def update_grid(self) -> None:
        for child in self.distributions:
            if self.reweight_grid_active:
                child.set_reweight_grid_active()
            child.update()

        weights = self.normalized_weights
        for pair in self.grid_pairs():
            values = np.zeros(pair.values.size)
            for weight, child in zip(weights, self.distributions, strict=True):
                values += weight * child.value_grid(pair.reweight).values
            pair.values.set_values(values)
            pair.log_values.set_values(negative_log(values))
            pair.log_values.set_min_to_zero()

    def link_grid(self, kind: str, grid: Grid | None, reweight: bool = False) -> None:
        super().link_grid(kind, grid, reweight=reweight)
        for child in self.distributions:
            child.link_grid(kind, grid, reweight=reweight)

    def link_ves_bias(self, bias: BiasOwner | None) -> None:
        super().link_ves_bias(bias)
        for child in self.distributions:
            child.link_ves_bias(bias)


# Registry of composite distributions
distributions: dict[str, type[TargetDistribution]] = {
    "linear_combination": LinearCombinationDist,
}

__all__ = [
    "LinearCombinationDist",
    "distributions",
]
