"""
Target distributions updated from the free energy surface.
"""

from __future__ import annotations

from typing import ClassVar, Literal

import numpy as np
import numpy.typing as npt
from pydantic import model_validator

from pytargetdist.distributions.core import TargetDistribution
from pytargetdist.exceptions import NormalizationError
from pytargetdist.integration import integration_weights


class WellTemperedDist(TargetDistribution):
    r"""
    Well-tempered target distribution.

    .. math::

        p(\mathbf{s}) = \frac{e^{-(\beta/\gamma) F(\mathbf{s})}}
            {\int d\mathbf{s}\, e^{-(\beta/\gamma) F(\mathbf{s})}}

    where :math:`F` is the linked free energy surface and :math:`\gamma`
    the bias factor. The distribution is recomputed from :math:`F` on
    every update.

    Parameters:
        bias_factor: The bias factor :math:`\gamma`, larger than one.
    """

    type: Literal["well_tempered"] = "well_tempered"
    bias_factor: float

    supported_options: ClassVar[frozenset[str]] = frozenset({"bias_cutoff"})

    @model_validator(mode="after")
    def check_bias_factor(self) -> WellTemperedDist:
        """Validate the bias factor and mark the free energy as needed."""
        if self.bias_factor <= 1.0:
            msg = f"{self.name}: the value of the bias factor doesn't make sense, it should be larger than 1.0"
            raise ValueError(msg)
        self.set_dynamic()
        self.set_fes_grid_needed()
        return self

    def description(self) -> str:
        return f"{super().description()}, bias factor: {self.bias_factor}"

    def get_value(self, point: npt.NDArray[np.float64]) -> float:
        msg = f"get_value not implemented for {self.type}"
        raise NotImplementedError(msg)

    def update_grid(self) -> None:
        beta_prime = self.beta / self.bias_factor
        for pair in self.grid_pairs():
            fes = self.linked_grid("fes", reweight=pair.reweight, size=pair.values.size)
            log_values = beta_prime * fes.values
            values = np.exp(-log_values)
            norm = float(np.dot(integration_weights(pair.values), values))
            if not norm > 0.0:
                msg = f"{self.name}: the free energy gives a {pair.values.label} grid that cannot be normalized"
                raise NormalizationError(msg)
            pair.log_values.set_values(log_values)
            pair.values.set_values(values)
            pair.values.scale_all_values_and_derivatives(1.0 / norm)
            pair.log_values.set_min_to_zero()


# Registry of dynamic distributions
distributions: dict[str, type[TargetDistribution]] = {
    "well_tempered": WellTemperedDist,
}

__all__ = [
    "WellTemperedDist",
    "distributions",
]
