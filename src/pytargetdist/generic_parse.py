from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any, cast

import numpy as np
import numpy.typing as npt
import pytensor.tensor as pt
import sympy as sp
from pytensor import function
from pytensor.tensor.type import TensorType
from sympy.parsing import sympy_parser
from sympy.parsing.sympy_parser import (
    auto_number,
    auto_symbol,
    convert_xor,
    factorial_notation,
    lambda_notation,
    repeated_decimals,
)

from pytargetdist.exceptions import ExpressionEvaluationError, ExpressionParseError

log = logging.getLogger(__name__)

TensorVariable = pt.variable.TensorVariable[TensorType, Any]

# functions an expression may call, by the name used in the expression
PYTENSOR_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "sin": pt.math.sin,
    "cos": pt.math.cos,
    "tan": pt.math.tan,
    "asin": pt.math.arcsin,
    "acos": pt.math.arccos,
    "atan": pt.math.arctan,
    "sinh": pt.math.sinh,
    "cosh": pt.math.cosh,
    "tanh": pt.math.tanh,
    "exp": pt.math.exp,
    "log": pt.math.log,
    "sqrt": pt.math.sqrt,
    "abs": pt.math.abs,
    "erf": pt.math.erf,
    "min": pt.math.minimum,
    "max": pt.math.maximum,
    "step": lambda x: pt.switch(pt.ge(x, 0.0), 1.0, 0.0),
}


def analyze_sympy_expr(sympy_expr: sp.Expr) -> dict[str, Any]:
    """
    Analyzes a SymPy expression and logs its independent variables,
    dependent variables, and structure for debugging.

    Args:
        sympy_expr: The SymPy expression to analyze.

    Returns:
        Dictionary containing analysis results with keys:
        - 'expression': The original expression
        - 'independent_vars': Set of independent variables (symbols)
        - 'dependent_vars': Set of dependent variables (functions)
    """
    independent_vars = sympy_expr.free_symbols
    dependent_vars = sympy_expr.atoms(sp.Function)

    log.debug("Expression: %s", sympy_expr)
    log.debug("Independent Variables: %s", independent_vars)
    log.debug("Dependent Variables: %s", dependent_vars)

    return {
        "expression": sympy_expr,
        "independent_vars": independent_vars,
        "dependent_vars": dependent_vars,
    }


def parse_expression(expr_str: str) -> sp.Expr:
    """
    Parse a mathematical expression string into a SymPy expression.

    Both ``**`` and ``^`` are accepted for exponentiation, ``pi`` and ``e``
    are the mathematical constants.

    Args:
        expr_str: The mathematical expression as a string.

    Returns:
        SymPy expression object.

    Raises:
        ExpressionParseError: If the expression cannot be parsed.
    """
    transformations = (
        auto_symbol,
        lambda_notation,
        repeated_decimals,
        auto_number,
        factorial_notation,
        convert_xor,
    )

    # Only the constructors and the constants pi and e are global so that
    # every other name, including ones that clash with SymPy functions such
    # as ``beta``, becomes a plain Symbol, or an undefined Function when called
    global_dict = {
        "pi": sp.pi,
        "e": sp.E,
        "Symbol": sp.Symbol,
        "Function": sp.Function,
        "Integer": sp.Integer,
        "Float": sp.Float,
        "Rational": sp.Rational,
    }

    try:
        expr = sympy_parser.parse_expr(
            expr_str,
            transformations=transformations,
            global_dict=global_dict,
        )
    except Exception as exc:
        msg = f"Failed to parse expression '{expr_str}': {exc}"
        raise ExpressionParseError(msg) from exc
    if not isinstance(expr, sp.Expr):
        msg = f"Failed to parse expression '{expr_str}': not a scalar expression"
        raise ExpressionParseError(msg)
    return expr


def sympy_to_pytensor(
    sympy_expr: sp.Expr,
    variables: Sequence[TensorVariable],
) -> TensorVariable:
    """
    Converts a SymPy expression into a PyTensor computational graph using lambdify.

    Args:
        sympy_expr: The SymPy expression object.
        variables: PyTensor variables named like the expression symbols.

    Returns:
        PyTensor expression.

    Raises:
        ExpressionEvaluationError: If the expression cannot be converted or contains unsupported operations.
    """
    try:
        sympy_vars = [sp.Symbol(var.name) for var in variables]

        analyze_sympy_expr(sympy_expr)

        # numeric function values such as exp(-1) from the constant e are
        # evaluated here so that they enter the graph in double precision
        sympy_expr = sympy_expr.xreplace(
            {atom: atom.evalf() for atom in sympy_expr.atoms(sp.Function) if atom.is_number}
        )
        pytensor_func = sp.lambdify(sympy_vars, sympy_expr, modules=PYTENSOR_FUNCTIONS)
        result = pytensor_func(*variables)

        if not isinstance(result, pt.variable.TensorVariable):
            result = pt.constant(float(result))

        return cast(TensorVariable, result)

    except Exception as exc:
        msg = f"Failed to convert expression to PyTensor: {sympy_expr}. {exc}"
        raise ExpressionEvaluationError(msg) from exc


def compile_grid_function(
    sympy_expr: sp.Expr,
    vector_names: Sequence[str],
    scalar_names: Sequence[str] = (),
) -> Callable[..., npt.NDArray[np.float64]]:
    """
    Compile an expression into a function evaluated over all grid points at once.

    Args:
        sympy_expr: The SymPy expression object.
        vector_names: Symbols taking one value per grid point.
        scalar_names: Symbols taking a single value.

    Returns:
        Callable taking keyword arguments named after the symbols (arrays for
        vector symbols, floats for scalar symbols) plus ``npoints``, returning
        an array of ``npoints`` values.

    Raises:
        ExpressionEvaluationError: If the expression cannot be compiled.
    """
    vectors = [pt.dvector(name) for name in vector_names]
    scalars = [pt.dscalar(name) for name in scalar_names]
    inputs = [*vectors, *scalars]
    output = sympy_to_pytensor(sympy_expr, inputs)
    try:
        compiled = function(inputs, output, on_unused_input="ignore")
    except Exception as exc:
        msg = f"Failed to compile expression: {sympy_expr}. {exc}"
        raise ExpressionEvaluationError(msg) from exc

    def evaluate(npoints: int, **values: npt.ArrayLike) -> npt.NDArray[np.float64]:
        args = [np.asarray(values[var.name], dtype=float) for var in inputs]
        try:
            result = compiled(*args)
        except Exception as exc:
            msg = f"Failed to evaluate expression: {sympy_expr}. {exc}"
            raise ExpressionEvaluationError(msg) from exc
        # constant or scalar-only expressions give a single value
        return np.array(np.broadcast_to(np.asarray(result, dtype=float), (npoints,)))

    return evaluate
