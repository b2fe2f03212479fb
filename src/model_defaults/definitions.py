"""Default value definitions.

A ``DefaultSpec`` is one declared default: the target attribute, either a
static value or a computation, and the ``allows_nil`` option. Specs are
created once, when the model class is declared, and never change.

``Default`` is the user-facing holder used where a mapping of defaults is
declared at once (``declare_many`` and ``__default_values__``)::

    __default_values__ = {
        "name": "Joe",
        "age": Default(20, allows_nil=False),
        "token": Default(compute=lambda record: secrets.token_hex(8)),
    }
"""

from __future__ import annotations

import copy
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Callable


class _Unset:
    """Sentinel type for "no static value supplied"."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

#: Option keys accepted by a declaration besides the value itself.
VALID_OPTIONS: frozenset[str] = frozenset({"allows_nil"})


def takes_record(compute: Callable[..., Any]) -> bool:
    """Decide whether a computation is called with the record.

    A computation receives the record when it has at least one required
    positional parameter or accepts ``*args``. Callables whose signature
    cannot be inspected (some builtins and C types) are called without
    arguments.

    Args:
        compute: The computation to inspect.

    Returns:
        True if the record should be passed as the single argument.
    """
    try:
        sig = inspect.signature(compute)
    except (TypeError, ValueError):
        return False
    for p in sig.parameters.values():
        if p.kind is p.VAR_POSITIONAL:
            return True
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty:
            return True
    return False


@dataclass(frozen=True, slots=True)
class DefaultSpec:
    """One declared default for a model attribute.

    Attributes:
        attribute: Name of the target attribute.
        value: Static value, copied on every application. ``UNSET`` when
            the spec is computed.
        compute: Computation invoked on every application, or None.
        allows_nil: When False, an explicit ``None`` is overridden by the default.
        takes_record: Whether ``compute`` is invoked with the record.
    """

    attribute: str
    value: Any = UNSET
    compute: Callable[..., Any] | None = None
    allows_nil: bool = True
    takes_record: bool = False

    @property
    def is_computed(self) -> bool:
        return self.compute is not None

    def evaluate(self, record: Any) -> Any:
        """Produce the default value for ``record``.

        Computations run on every call and are not cached. Static values
        are shallow-copied: the record gets its own top-level object while
        nested structures remain shared with the spec.

        Args:
            record: The record the default is being applied to.

        Returns:
            The value to assign.
        """
        if self.compute is not None:
            if self.takes_record:
                return self.compute(record)
            return self.compute()
        return copy.copy(self.value)


@dataclass(frozen=True, slots=True)
class Default:
    """Value and options for one entry of a bulk default declaration.

    Example:
        >>> Default(20, allows_nil=False)
        >>> Default(compute=datetime.now)
    """

    value: Any = UNSET
    compute: Callable[..., Any] | None = None
    allows_nil: bool = True
