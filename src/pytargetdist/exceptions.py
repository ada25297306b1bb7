"""
Exception classes for pytargetdist.

Custom exception hierarchy for the fatal errors raised while configuring,
setting up, and updating target distributions.
"""

from __future__ import annotations

from typing import Any

from pydantic import (
    ValidationError,
    ValidationInfo,
    WrapValidator,
)
from pydantic_core import ErrorDetails, InitErrorDetails, PydanticCustomError


class TargetDistException(Exception):
    """
    Base exception class for all pytargetdist-related errors.

    This serves as the root exception that all other pytargetdist exceptions
    inherit from, allowing users to catch all of them with a single except clause.
    """


class ExpressionParseError(TargetDistException):
    """
    Exception raised when a target distribution expression cannot be parsed.

    This typically occurs when:
    - The expression contains invalid syntax
    - The expression uses a variable that is not a CV, free energy or temperature symbol
    """


class ExpressionEvaluationError(TargetDistException):
    """
    Exception raised when a parsed expression cannot be evaluated on a grid.

    This typically occurs when:
    - The expression uses functions without a PyTensor counterpart
    - PyTensor compilation or evaluation fails
    """


class GridError(TargetDistException):
    """
    Raised when grids are set up inconsistently or used before being set up.
    """


class NormalizationError(TargetDistException):
    """
    Raised when a target distribution grid cannot be normalized.
    """


class LinkError(TargetDistException):
    """
    Raised when an external grid or bias owner is needed but has not been linked.
    """


def custom_error_msg(custom_messages: dict[str, str]) -> Any:
    r"""
    Customize an error message for pydantic validation errors.

    See https://github.com/pydantic/pydantic/discussions/8468.

    Example:

    >>> from typing import Annotated
    >>> from pydantic import BaseModel
    >>> from pydantic.types import StringConstraints
    >>> NameString = Annotated[
    ...     str,
    ...     StringConstraints(pattern=r"^[a-zA-Z0-9]*$"),
    ...     custom_error_msg({"string_pattern_mismatch": "The field {field_name} can only contain letters and numbers."}),
    ... ]
    >>> class Model(BaseModel):
    ...     name: NameString
    >>> Model(name="dog@123")  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    ...
    pydantic_core._pydantic_core.ValidationError: 1 validation error for Model
    name
      The field name can only contain letters and numbers. ...
    """

    def _validator(v: Any, next_: Any, ctx: ValidationInfo) -> Any:
        try:
            return next_(v)
        except ValidationError as exc:
            new_errors: list[InitErrorDetails | ErrorDetails] = []
            for error in exc.errors():
                custom_message = custom_messages.get(error["type"])

                if custom_message:
                    err_ctx = error.get("ctx", {}).copy()

                    err_ctx["input"] = error["input"]
                    if ctx.data:
                        err_ctx.update(ctx.data)

                    new_error = InitErrorDetails(
                        type=PydanticCustomError(
                            error["type"], custom_message, err_ctx
                        ),
                        loc=error["loc"],
                        input=error["input"],
                    )

                    new_errors.append(new_error)
                else:
                    new_errors.append(error)

            raise ValidationError.from_exception_data(
                title=exc.title,
                line_errors=new_errors,  # type: ignore[arg-type]
            ) from None

    return WrapValidator(_validator)
