"""Per-class registry of declared default values.

Each model class holds its declarations in a ``__default_specs__`` tuple.
Declaring on a class rebinds that class's tuple to the inherited one plus
the new spec, so a subclass keeps reading its parent's declarations until
it declares its own, and nothing declared on a parent is ever removed from
a subclass.

Usage:
    from model_defaults.registry import declare, declare_many, specs_for

    declare(User, "name", "Joe")
    declare(User, "age", 20, allows_nil=False)
    declare(User, "created_at", compute=datetime.now)
    declare_many(User, {"role": "member", "tags": Default(compute=list)})

    for spec in specs_for(User):
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from model_defaults.definitions import UNSET, VALID_OPTIONS, Default, DefaultSpec, takes_record
from model_defaults.exceptions import DefaultValueConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

SPECS_ATTR = "__default_specs__"

# Keys recognised when a bulk declaration entry is given as a plain mapping.
_MAPPING_KEYS: frozenset[str] = frozenset({"value", "compute"}) | VALID_OPTIONS


def declare(
    model: type,
    attribute: str,
    value: Any = UNSET,
    *,
    compute: Callable[..., Any] | None = None,
    **options: Any,
) -> DefaultSpec:
    """Declare a default value for ``attribute`` on ``model``.

    A callable ``value`` is treated as a computation. Computations taking
    one positional argument are called with the record being initialized.

    Args:
        model: The model class receiving the declaration.
        attribute: Name of the attribute to default.
        value: Static value, or a callable computation.
        compute: Computation producing the value. Mutually exclusive with
            a static ``value``.
        **options: Declaration options. Only ``allows_nil`` is recognised.

    Returns:
        The appended DefaultSpec.

    Raises:
        DefaultValueConfigurationError: If an option is unknown, if both a
            static value and a computation are given, if neither is given,
            or if the attribute name is invalid.
    """
    context = {"model": model.__name__, "attribute": attribute}

    if not isinstance(attribute, str) or not attribute:
        msg = "Attribute name must be a non-empty string"
        raise DefaultValueConfigurationError(msg, context)

    unknown = sorted(set(options) - VALID_OPTIONS)
    if unknown:
        msg = f"Unknown default_value_for option(s): {', '.join(unknown)}"
        raise DefaultValueConfigurationError(msg, context)

    if value is not UNSET and callable(value):
        if compute is not None:
            msg = "Give either a value or a computation, not both"
            raise DefaultValueConfigurationError(msg, context)
        compute, value = value, UNSET

    if value is not UNSET and compute is not None:
        msg = "Give either a value or a computation, not both"
        raise DefaultValueConfigurationError(msg, context)
    if value is UNSET and compute is None:
        msg = "A default value or computation is required"
        raise DefaultValueConfigurationError(msg, context)
    if compute is not None and not callable(compute):
        msg = "Computation must be callable"
        raise DefaultValueConfigurationError(msg, context)

    spec = DefaultSpec(
        attribute=attribute,
        value=value,
        compute=compute,
        allows_nil=bool(options.get("allows_nil", True)),
        takes_record=takes_record(compute) if compute is not None else False,
    )
    setattr(model, SPECS_ATTR, (*getattr(model, SPECS_ATTR, ()), spec))
    logger.debug(
        "default_value_declared: model=%s attribute=%s computed=%s allows_nil=%s",
        model.__name__,
        attribute,
        spec.is_computed,
        spec.allows_nil,
    )
    return spec


def declare_many(model: type, defaults: Mapping[str, Any]) -> list[DefaultSpec]:
    """Declare several defaults at once, in mapping order.

    Each entry value may be a ``Default``, a mapping holding a ``"value"``
    or ``"compute"`` key plus options, or a raw value.

    Args:
        model: The model class receiving the declarations.
        defaults: Mapping of attribute name to value or options.

    Returns:
        The appended DefaultSpecs.

    Raises:
        DefaultValueConfigurationError: If any entry is invalid.
    """
    specs: list[DefaultSpec] = []
    for attribute, entry in defaults.items():
        if isinstance(entry, Default):
            spec = declare(
                model,
                attribute,
                entry.value,
                compute=entry.compute,
                allows_nil=entry.allows_nil,
            )
        elif isinstance(entry, Mapping) and ("value" in entry or "compute" in entry):
            unknown = sorted(set(entry) - _MAPPING_KEYS)
            if unknown:
                msg = f"Unknown default_values option(s): {', '.join(unknown)}"
                raise DefaultValueConfigurationError(
                    msg, {"model": model.__name__, "attribute": attribute}
                )
            options = {k: v for k, v in entry.items() if k in VALID_OPTIONS}
            spec = declare(
                model,
                attribute,
                entry.get("value", UNSET),
                compute=entry.get("compute"),
                **options,
            )
        else:
            spec = declare(model, attribute, entry)
        specs.append(spec)
    return specs


def specs_for(model: type) -> tuple[DefaultSpec, ...]:
    """Return the defaults applicable to ``model``.

    Ancestor declarations come first, the model's own after. When several
    declarations target one attribute the last one wins and takes the
    position of the first.

    Args:
        model: The model class.

    Returns:
        Ordered tuple of applicable specs, one per attribute.
    """
    merged: dict[str, DefaultSpec] = {}
    for spec in getattr(model, SPECS_ATTR, ()):
        merged[spec.attribute] = spec
    return tuple(merged.values())
