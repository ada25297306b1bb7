"""
Target distribution modifiers.

Modifiers are pure post-hoc transforms ``value' = f(value, point)`` applied
to an already computed target distribution. The distribution renormalizes
after each modifier, so a chain of modifiers composes by sequential
application in registration order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, model_validator


class TargetDistModifier(BaseModel, ABC):
    """Base class for target distribution modifiers."""

    type: str

    @abstractmethod
    def modify(
        self, values: npt.NDArray[np.float64], points: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        """
        Return the modified distribution values.

        Args:
            values: Distribution values, shape ``(npoints,)``.
            points: Grid coordinates, shape ``(npoints, dimension)``.

        Returns:
            Modified values, shape ``(npoints,)``. Must not modify ``values`` in place.
        """


class WellTemperedModifier(TargetDistModifier):
    r"""
    Broaden a distribution by raising it to the power :math:`1/\gamma`.

    .. math::

        p'(s) = [p(s)]^{1/\gamma}

    Parameters:
        factor: The well-tempered factor :math:`\gamma`.
    """

    type: Literal["welltempered"] = "welltempered"
    factor: float

    @model_validator(mode="after")
    def check_factor(self) -> WellTemperedModifier:
        """Validate that the factor is positive."""
        if self.factor <= 0.0:
            msg = f"the well-tempered factor has to be positive, got {self.factor}"
            raise ValueError(msg)
        return self

    def modify(
        self, values: npt.NDArray[np.float64], points: npt.NDArray[np.float64]  # noqa: ARG002
    ) -> npt.NDArray[np.float64]:
        return np.power(values, 1.0 / self.factor)


__all__ = ["TargetDistModifier", "WellTemperedModifier"]
