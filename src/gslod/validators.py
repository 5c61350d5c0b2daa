"""
Validation decorators for gslod builders.

Provides reusable validation logic for parameter checking on fluent setters.
Every rejected value raises InvalidConfigurationError.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Callable
from functools import wraps
from typing import Any

from gslod.errors import InvalidConfigurationError

# Python 3.12+ type alias for callables
type F = Callable[..., Any]


def _extract_value(args: tuple, kwargs: dict, param_name: str, param_index: int) -> tuple[bool, Any]:
    """Find the validated argument positionally or by keyword."""
    if len(args) > param_index:
        return True, args[param_index]
    if param_name in kwargs:
        return True, kwargs[param_name]
    return False, None


def _require_number(param_name: str, value: Any) -> None:
    # bool is an int subclass but never a meaningful LOD parameter
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidConfigurationError(
            f"{param_name} must be a number, got {type(value).__name__}. "
            f"Provide a numeric value (int or float)."
        )
    if not math.isfinite(value):
        raise InvalidConfigurationError(f"{param_name}={value} must be a finite number.")


def validate_range(
    min_val: float,
    max_val: float,
    param_name: str = "value",
    param_index: int = 1,
) -> Callable[[F], F]:
    """
    Decorator for validating numeric parameter ranges.

    Args:
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature (default: 1 = first arg after self)

    Returns:
        Decorated function with range validation

    Example:
        >>> @validate_range(0.0, 10.0, 'alpha')
        ... def diffusion_alpha(self, alpha: float) -> Self:
        ...     self._alpha = alpha
        ...     return self
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            found, value = _extract_value(args, kwargs, param_name, param_index)
            if not found:
                # No value provided, let function handle it
                return func(*args, **kwargs)

            _require_number(param_name, value)

            if not min_val <= value <= max_val:
                suggestion = ""
                if "threshold" in param_name:
                    suggestion = (
                        " Default importance scores lie in [0, 1]; "
                        "larger thresholds always trigger the top-10% fallback."
                    )
                elif "alpha" in param_name:
                    suggestion = " Use 0.0 to disable opacity compensation, 0.1 for the default."

                raise InvalidConfigurationError(
                    f"{param_name}={value} is outside valid range [{min_val}, {max_val}].{suggestion}"
                )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def validate_positive(param_name: str = "value", param_index: int = 1) -> Callable[[F], F]:
    """
    Decorator for validating positive numeric parameters.

    Args:
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature

    Returns:
        Decorated function with positive validation

    Example:
        >>> @validate_positive('focal_length')
        ... def focal_length(self, value: float) -> Self:
        ...     self._focal_length = value
        ...     return self
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            found, value = _extract_value(args, kwargs, param_name, param_index)
            if not found:
                return func(*args, **kwargs)

            _require_number(param_name, value)

            if value <= 0:
                suggestion = ""
                if "focal" in param_name:
                    suggestion = " Focal length is in pixels, typically around 1000."
                elif "steps" in param_name or "views" in param_name or "workers" in param_name:
                    suggestion = " Use an integer count of at least 1."

                raise InvalidConfigurationError(
                    f"{param_name}={value} must be positive (> 0).{suggestion}"
                )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def validate_type(
    expected_type: type | tuple[type, ...],
    param_name: str = "value",
    param_index: int = 1,
) -> Callable[[F], F]:
    """
    Decorator for validating parameter types.

    Args:
        expected_type: Expected type or tuple of types
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature

    Returns:
        Decorated function with type validation
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            found, value = _extract_value(args, kwargs, param_name, param_index)
            if not found:
                return func(*args, **kwargs)

            if not isinstance(value, expected_type) or isinstance(value, bool):
                if isinstance(expected_type, tuple):
                    type_names = ", ".join(t.__name__ for t in expected_type)
                    raise InvalidConfigurationError(
                        f"{param_name} must be one of ({type_names}), got {type(value).__name__}"
                    )
                else:
                    raise InvalidConfigurationError(
                        f"{param_name} must be {expected_type.__name__}, got {type(value).__name__}"
                    )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
