"""Exception hierarchy for default value declarations.

Configuration errors are raised while a model class is being declared,
never while records are constructed. Errors raised by a default value
computation are not wrapped: they propagate to whoever constructed the
record.

Example:
    >>> from model_defaults.exceptions import DefaultValueConfigurationError
    >>> raise DefaultValueConfigurationError(
    ...     "Unknown option", context={"model": "User", "option": "allow_nil"}
    ... )
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "DefaultValueConfigurationError",
    "MassAssignmentError",
    "ModelDefaultsError",
]


class ModelDefaultsError(Exception):
    """Base class for all model default errors.

    Attributes:
        error_code: Machine-readable error code.
        message: Human-readable error description.
        context: Structured debugging information (model, attribute, option).
    """

    error_code: str = "MODEL_DEFAULTS_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class DefaultValueConfigurationError(ModelDefaultsError):
    """Raised when a default or protection declaration is invalid.

    Covers unknown option keys, a static value given together with a
    computation, a declaration with neither, invalid attribute names and
    conflicting protection declarations.
    """

    error_code: str = "DEFAULT_VALUE_CONFIGURATION_ERROR"


class MassAssignmentError(ModelDefaultsError):
    """Raised when a protected attribute is mass-assigned under the strict sanitizer.

    Attributes:
        model: Name of the model class being constructed.
        attributes: Protected attribute names found in the constructor mapping.
    """

    error_code: str = "MASS_ASSIGNMENT_ERROR"

    def __init__(self, model: str, attributes: list[str]) -> None:
        self.model = model
        self.attributes = attributes
        message = f"Can't mass-assign protected attributes: {', '.join(attributes)}"
        super().__init__(message, {"model": model})
