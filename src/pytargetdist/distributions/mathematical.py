"""
Mathematical target distribution implementations.

Provides target distributions defined by a mathematical expression of the
CV arguments, optionally depending on the free energy surface and the
temperature.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import ClassVar, Literal

import numpy as np
import numpy.typing as npt
import sympy as sp
from pydantic import (
    ConfigDict,
    Field,
    PrivateAttr,
    model_validator,
)

from pytargetdist.distributions.core import TargetDistribution, negative_log
from pytargetdist.exceptions import (
    ExpressionParseError,
    GridError,
    NormalizationError,
)
from pytargetdist.generic_parse import (
    PYTENSOR_FUNCTIONS,
    analyze_sympy_expr,
    compile_grid_function,
    parse_expression,
)
from pytargetdist.integration import integration_weights

log = logging.getLogger(__name__)

CV_SYMBOL = re.compile(r"s([1-9][0-9]*)")
FES_SYMBOL = "FE"
KBT_SYMBOL = "kBT"
BETA_SYMBOL = "beta"


class ExpressionDist(TargetDistribution):
    """
    Target distribution given by an expression.

    The expression is evaluated on every grid point and normalized over
    the grid. It may use the symbols

    - ``s1``, ``s2``, ...: the CV arguments, numbered from one,
    - ``FE``: the free energy surface, which makes the distribution dynamic,
    - ``kBT`` and ``beta``: the temperature of the linked bias.

    Parameters:
        expression: Mathematical expression string to be evaluated

    Supported Functions:
        - Basic arithmetic: +, -, *, /, ** (or ^)
        - Trigonometric: sin, cos, tan, asin, acos, atan
        - Hyperbolic: sinh, cosh, tanh
        - Exponential/Logarithmic: exp, log
        - Other: sqrt, abs, erf, min, max, step
        - Constants: pi, e

    Examples:
        A Gaussian well in one dimension:

        >>> dist = ExpressionDist(expression="exp(-0.5*(s1-1.0)^2/0.2^2)")

        A well-tempered distribution written out:

        >>> dist = ExpressionDist(expression="exp(-beta*FE/10.0)")
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, serialize_by_alias=True)

    type: Literal["expression"] = Field(default="expression", repr=False)
    expression_str: str = Field(alias="expression")

    supported_options: ClassVar[frozenset[str]] = frozenset(
        {"bias_cutoff", "welltempered_factor", "shift_to_zero"}
    )

    _sympy_expr: sp.Expr = PrivateAttr(default=None)
    _cv_indices: list[int] = PrivateAttr(default_factory=list)
    _use_fes: bool = PrivateAttr(default=False)
    _use_kbt: bool = PrivateAttr(default=False)
    _use_beta: bool = PrivateAttr(default=False)
    _evaluate: Callable[..., npt.NDArray[np.float64]] | None = PrivateAttr(default=None)

    @model_validator(mode="after")
    def setup_expression(self) -> ExpressionDist:
        """Parse the expression and sort its symbols into CVs, free energy and temperature."""
        self._sympy_expr = parse_expression(self.expression_str)
        analysis = analyze_sympy_expr(self._sympy_expr)

        for function in analysis["dependent_vars"]:
            name = function.func.__name__
            if name not in PYTENSOR_FUNCTIONS:
                msg = f"{self.name}: problem with parsing the expression '{self.expression_str}', unknown function {name}"
                raise ExpressionParseError(msg)

        cv_indices = []
        for symbol in sorted(analysis["independent_vars"], key=str):
            name = str(symbol)
            match = CV_SYMBOL.fullmatch(name)
            if match:
                cv_indices.append(int(match.group(1)) - 1)
            elif name == FES_SYMBOL:
                self._use_fes = True
                self.set_dynamic()
                self.set_fes_grid_needed()
            elif name == KBT_SYMBOL:
                self._use_kbt = True
            elif name == BETA_SYMBOL:
                self._use_beta = True
            else:
                msg = f"{self.name}: problem with parsing the expression '{self.expression_str}', cannot recognise the variable {name}"
                raise ExpressionParseError(msg)
        self._cv_indices = sorted(cv_indices)
        return self

    @property
    def uses_temperature(self) -> bool:
        return self._use_kbt or self._use_beta

    def description(self) -> str:
        return f"{super().description()}, expression: {self.expression_str}"

    def setup_additional_grids(
        self,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None,
    ) -> None:
        if self._cv_indices and self._cv_indices[-1] >= self.dimension:
            msg = f"{self.name}: the expression '{self.expression_str}' uses s{self._cv_indices[-1] + 1} but the target distribution only has {self.dimension} arguments"
            raise GridError(msg)

    def get_value(self, point: npt.NDArray[np.float64]) -> float:
        msg = f"get_value not implemented for {self.type}"
        raise NotImplementedError(msg)

    def _evaluator(self) -> Callable[..., npt.NDArray[np.float64]]:
        if self._evaluate is None:
            vector_names = [f"s{index + 1}" for index in self._cv_indices]
            if self._use_fes:
                vector_names.append(FES_SYMBOL)
            scalar_names = [
                name
                for name, used in ((KBT_SYMBOL, self._use_kbt), (BETA_SYMBOL, self._use_beta))
                if used
            ]
            log.debug("%s: compiling expression %s", self.name, self._sympy_expr)
            self._evaluate = compile_grid_function(
                self._sympy_expr, vector_names, scalar_names
            )
        return self._evaluate

    def update_grid(self) -> None:
        evaluate = self._evaluator()
        beta = self.beta if self.uses_temperature else 1.0
        for pair in self.grid_pairs():
            grid = pair.values
            points = grid.points
            inputs = {
                f"s{index + 1}": np.ascontiguousarray(points[:, index])
                for index in self._cv_indices
            }
            if self._use_fes:
                fes = self.linked_grid("fes", reweight=pair.reweight, size=grid.size)
                inputs[FES_SYMBOL] = fes.values
            if self._use_kbt:
                inputs[KBT_SYMBOL] = 1.0 / beta
            if self._use_beta:
                inputs[BETA_SYMBOL] = beta

            values = evaluate(grid.size, **inputs)
            if np.any(values < 0.0) and not self.shift_to_zero:
                msg = f"{self.name}: the expression gives negative values on the {grid.label} grid, you should change the expression or use the shift_to_zero option"
                raise NormalizationError(msg)

            norm = float(np.dot(integration_weights(grid), values))
            grid.set_values(values)
            pair.log_values.set_values(negative_log(values))
            if norm > 0.0:
                grid.scale_all_values_and_derivatives(1.0 / norm)
            elif not self.shift_to_zero:
                msg = f"{self.name}: integrating the expression over the {grid.label} grid gives {norm}, which cannot be normalized"
                raise NormalizationError(msg)
            pair.log_values.set_min_to_zero()


# Registry of mathematical distributions
distributions: dict[str, type[TargetDistribution]] = {
    "expression": ExpressionDist,
}

__all__ = [
    "ExpressionDist",
    "distributions",
]
