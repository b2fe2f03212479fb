"""Application of declared defaults to records.

Two entry points, each a one-shot decision per record:

- ``apply_defaults_on_construct`` runs after a new record has been
  initialized from its constructor mapping.
- ``apply_defaults_on_load`` runs after a record has been loaded from
  storage and only upgrades NULLs for ``allows_nil=False`` defaults.

Records are any objects with assignable named attributes; nothing here
depends on the ORM.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from model_defaults.protection import is_protected
from model_defaults.registry import specs_for

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from model_defaults.definitions import DefaultSpec

logger = logging.getLogger(__name__)


def should_apply(
    spec: DefaultSpec,
    record: Any,
    initial_attributes: Mapping[str, Any],
) -> bool:
    """Decide whether ``spec`` applies to a newly constructed record.

    An attribute counts as explicitly provided only when it is present in
    the constructor mapping and not protected from mass assignment.
    Explicit non-None values are kept; an explicit None is replaced only
    when the spec disallows nil. Anything not explicitly provided gets the
    default.
    """
    model = type(record)
    explicit = spec.attribute in initial_attributes and not is_protected(model, spec.attribute)
    if not explicit:
        return True
    if getattr(record, spec.attribute, None) is not None:
        return False
    return not spec.allows_nil


def apply_defaults_on_construct(record: Any, initial_attributes: Mapping[str, Any]) -> None:
    """Apply declared defaults to a freshly constructed record.

    Args:
        record: The new record, already initialized from its mapping.
        initial_attributes: The mapping passed to the constructor,
            including any protected keys that were dropped.
    """
    model = type(record)
    for spec in specs_for(model):
        if not should_apply(spec, record, initial_attributes):
            continue
        setattr(record, spec.attribute, spec.evaluate(record))
        logger.debug(
            "default_value_applied: model=%s attribute=%s",
            model.__name__,
            spec.attribute,
        )


def apply_defaults_on_load(
    record: Any,
    assign: Callable[[Any, str, Any], None] = setattr,
    *,
    is_loaded: Callable[[Any, str], bool] | None = None,
) -> None:
    """Replace loaded None values for defaults that disallow nil.

    Args:
        record: The record just loaded from storage.
        assign: Writes the value; ``setattr`` unless the caller needs to
            bypass change tracking.
        is_loaded: Optional predicate; attributes it rejects are skipped.
    """
    model = type(record)
    for spec in specs_for(model):
        if spec.allows_nil:
            continue
        if is_loaded is not None and not is_loaded(record, spec.attribute):
            continue
        if getattr(record, spec.attribute, None) is not None:
            continue
        assign(record, spec.attribute, spec.evaluate(record))
        logger.debug(
            "default_value_applied_on_load: model=%s attribute=%s",
            model.__name__,
            spec.attribute,
        )
