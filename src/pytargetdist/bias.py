"""
Bias owner seen by target distributions.

Target distributions that depend on the temperature or on a bias cutoff
read them from the bias they are linked to. :class:`VesBias` is the
minimal owner used by the package: it provides the inverse temperature
and the Fermi switching function of the bias cutoff.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, Field, model_validator

from pytargetdist.exceptions import TargetDistException

# largest exponent used in the Fermi function
FERMI_EXP_MAX = 100.0


class BiasOwner(Protocol):
    """Interface a target distribution needs from the bias it is linked to."""

    @property
    def beta(self) -> float: ...

    @property
    def bias_cutoff_active(self) -> bool: ...

    def bias_cutoff_switching_function(
        self, bias: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]: ...


class FermiSwitchingFunction(BaseModel):
    r"""
    Fermi switching function used for the bias cutoff.

    .. math::

        S(V) = \frac{1 + e^{-\lambda V_c}}{1 + e^{\lambda (V - V_c)}}

    normalized such that :math:`S(0) = 1`, decaying to zero for biases
    beyond the cutoff :math:`V_c`.

    Parameters:
        cutoff: The cutoff value :math:`V_c`.
        fermi_lambda: The steepness :math:`\lambda` of the switch.
    """

    cutoff: float = Field(gt=0.0)
    fermi_lambda: float = Field(default=10.0, gt=0.0)

    def __call__(
        self, bias: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Evaluate the switching function and its derivative.

        Args:
            bias: Bias values.

        Returns:
            Tuple of ``S(V)`` and ``dS/dV``.
        """
        bias = np.asarray(bias, dtype=float)
        exponent = np.minimum(self.fermi_lambda * (bias - self.cutoff), FERMI_EXP_MAX)
        expf = np.exp(exponent)
        fermi = 1.0 / (1.0 + expf)
        scale = 1.0 + np.exp(-self.fermi_lambda * self.cutoff)
        value = scale * fermi
        deriv = -self.fermi_lambda * expf * fermi * value
        return value, deriv


class VesBias(BaseModel):
    """
    Bias owner providing the temperature and the bias cutoff.

    Parameters:
        kbt: Thermal energy :math:`k_B T`.
        bias_cutoff: Cutoff value of the bias; zero disables the cutoff.
        fermi_lambda: Steepness of the cutoff switching function.
    """

    kbt: float = Field(gt=0.0)
    bias_cutoff: float = 0.0
    fermi_lambda: float = Field(default=10.0, gt=0.0)

    @model_validator(mode="after")
    def check_bias_cutoff(self) -> VesBias:
        """Validate that the bias cutoff is not negative."""
        if self.bias_cutoff < 0.0:
            msg = f"negative bias cutoff ({self.bias_cutoff}) does not make sense"
            raise ValueError(msg)
        return self

    @property
    def beta(self) -> float:
        """Inverse temperature :math:`1/k_B T`."""
        return 1.0 / self.kbt

    @property
    def bias_cutoff_active(self) -> bool:
        return self.bias_cutoff > 0.0

    @property
    def switching_function(self) -> FermiSwitchingFunction:
        if not self.bias_cutoff_active:
            msg = "the bias cutoff is not active"
            raise TargetDistException(msg)
        return FermiSwitchingFunction(
            cutoff=self.bias_cutoff, fermi_lambda=self.fermi_lambda
        )

    def bias_cutoff_switching_function(
        self, bias: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        r"""
        Switching factor and derivative factor for the given bias values.

        The derivative factor is :math:`d(V S(V))/dV = S(V) + V S'(V)`,
        the derivative of the bias with cutoff with respect to the bias
        without cutoff.

        Args:
            bias: Values of the bias without cutoff.

        Returns:
            Tuple of the switching factors and the derivative factors.
        """
        bias = np.asarray(bias, dtype=float)
        value, deriv = self.switching_function(bias)
        return value, value + bias * deriv
