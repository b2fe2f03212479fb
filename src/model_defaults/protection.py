"""Mass-assignment protection for model constructors.

A model either blacklists attributes with ``attr_protected`` or
whitelists them with ``attr_accessible``; mixing the two in one class
hierarchy is a configuration error. Protected attributes passed to a
constructor are dropped (and logged) or rejected, depending on the
configured sanitizer, and their defaults apply as if they were never
passed.

Both forms accumulate down the class hierarchy and may also be written
in the class body::

    class Account(Base):
        __attr_protected__ = ("role", "balance")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from model_defaults.exceptions import DefaultValueConfigurationError, MassAssignmentError
from model_defaults.settings import ModelDefaultsSettings, get_settings

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

PROTECTED_ATTR = "__attr_protected__"
ACCESSIBLE_ATTR = "__attr_accessible__"


def _collect(model: type, attr: str) -> frozenset[str] | None:
    """Union the names declared under ``attr`` across the MRO, or None if never declared."""
    names: set[str] = set()
    declared = False
    for klass in model.__mro__:
        own = klass.__dict__.get(attr)
        if own is None:
            continue
        if isinstance(own, str):
            msg = f"{attr} must be a sequence of attribute names, not a string"
            raise DefaultValueConfigurationError(msg, {"model": klass.__name__})
        declared = True
        names.update(own)
    return frozenset(names) if declared else None


def protected_attributes(model: type) -> frozenset[str] | None:
    return _collect(model, PROTECTED_ATTR)


def accessible_attributes(model: type) -> frozenset[str] | None:
    return _collect(model, ACCESSIBLE_ATTR)


def validate_protection(model: type) -> None:
    """Check that ``model`` does not mix blacklist and whitelist declarations.

    Raises:
        DefaultValueConfigurationError: If both forms are declared.
    """
    if protected_attributes(model) is not None and accessible_attributes(model) is not None:
        msg = "Declare either attr_protected or attr_accessible, not both"
        raise DefaultValueConfigurationError(msg, {"model": model.__name__})


def _extend(model: type, attr: str, names: tuple[str, ...]) -> None:
    for name in names:
        if not isinstance(name, str) or not name:
            msg = "Attribute name must be a non-empty string"
            raise DefaultValueConfigurationError(msg, {"model": model.__name__})
    own = tuple(model.__dict__.get(attr, ()))
    setattr(model, attr, (*own, *names))


def attr_protected(model: type, *names: str) -> None:
    """Protect ``names`` on ``model`` from mass assignment.

    Raises:
        DefaultValueConfigurationError: If the hierarchy already uses attr_accessible.
    """
    if accessible_attributes(model) is not None:
        msg = "Declare either attr_protected or attr_accessible, not both"
        raise DefaultValueConfigurationError(msg, {"model": model.__name__})
    _extend(model, PROTECTED_ATTR, names)
    logger.debug("attr_protected: model=%s attributes=%s", model.__name__, names)


def attr_accessible(model: type, *names: str) -> None:
    """Allow only ``names`` (plus those of ancestors) to be mass-assigned on ``model``.

    Raises:
        DefaultValueConfigurationError: If the hierarchy already uses attr_protected.
    """
    if protected_attributes(model) is not None:
        msg = "Declare either attr_protected or attr_accessible, not both"
        raise DefaultValueConfigurationError(msg, {"model": model.__name__})
    _extend(model, ACCESSIBLE_ATTR, names)
    logger.debug("attr_accessible: model=%s attributes=%s", model.__name__, names)


def is_protected(model: type, attribute: str) -> bool:
    """Return True if ``attribute`` may not be mass-assigned on ``model``."""
    accessible = accessible_attributes(model)
    if accessible is not None:
        return attribute not in accessible
    protected = protected_attributes(model)
    return protected is not None and attribute in protected


def sanitize(
    model: type,
    attributes: Mapping[str, Any],
    settings: ModelDefaultsSettings | None = None,
) -> dict[str, Any]:
    """Drop protected keys from a constructor mapping.

    Args:
        model: The model class being constructed.
        attributes: The constructor's initial attribute mapping.
        settings: Optional settings; loaded from the environment if omitted.

    Returns:
        A new dict holding only the mass-assignable entries.

    Raises:
        MassAssignmentError: If protected keys are present and the strict
            sanitizer is configured.
    """
    rejected = [key for key in attributes if is_protected(model, key)]
    if not rejected:
        return dict(attributes)

    if settings is None:
        settings = get_settings()
    if settings.mass_assignment_sanitizer == "strict":
        raise MassAssignmentError(model.__name__, rejected)

    logger.warning(
        "mass_assignment_rejected: model=%s attributes=%s",
        model.__name__,
        ", ".join(rejected),
    )
    return {key: value for key, value in attributes.items() if key not in rejected}
