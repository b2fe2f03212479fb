"""SQLAlchemy integration for declared default values.

Mix ``DefaultValuesMixin`` into the declarative base::

    from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
    from model_defaults import Default, DefaultValuesMixin

    class Base(DefaultValuesMixin, DeclarativeBase):
        pass

    class User(Base):
        __tablename__ = "users"
        __attr_protected__ = ("role",)
        __default_values__ = {
            "name": "Joe",
            "age": Default(20, allows_nil=False),
        }

        id: Mapped[int] = mapped_column(primary_key=True)
        name: Mapped[str | None]
        age: Mapped[int | None]
        role: Mapped[str | None]

    User.default_value_for("created_at", compute=datetime.now)

The mixin supplies the model constructor, so defaults are applied to
every new record. Records loaded from the database get
``allows_nil=False`` defaults for NULL columns through the ``load``
instance event, registered once at import.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import set_committed_value

from model_defaults import protection, registry
from model_defaults.definitions import UNSET
from model_defaults.interceptor import apply_defaults_on_construct, apply_defaults_on_load
from model_defaults.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from sqlalchemy.orm import QueryContext

    from model_defaults.definitions import DefaultSpec

logger = logging.getLogger(__name__)


class DefaultValuesMixin:
    """Declarative mixin adding default values and mass-assignment protection.

    Class-body declarations:
        __default_values__: Mapping handed to ``declare_many`` when the
            class is created.
        __attr_protected__ / __attr_accessible__: Mass-assignment
            blacklist or whitelist.
    """

    def __init_subclass__(cls, **kwargs: Any) -> None:
        # reject conflicting protection before declarative maps the class
        protection.validate_protection(cls)
        super().__init_subclass__(**kwargs)
        own_defaults = cls.__dict__.get("__default_values__")
        if own_defaults is not None:
            registry.declare_many(cls, own_defaults)

    def __init__(self, **kwargs: Any) -> None:
        """Initialize from keyword arguments, then apply declared defaults.

        Only attributes of the class are accepted. Protected attributes
        are dropped (or rejected under the strict sanitizer) and default
        as if they were never passed.

        Raises:
            TypeError: If a keyword is not an attribute of the class.
            MassAssignmentError: If a protected attribute is passed under
                the strict sanitizer.
        """
        cls = type(self)
        for key in kwargs:
            if not hasattr(cls, key):
                msg = f"{key!r} is an invalid keyword argument for {cls.__name__}"
                raise TypeError(msg)
        for key, value in protection.sanitize(cls, kwargs).items():
            setattr(self, key, value)
        apply_defaults_on_construct(self, kwargs)

    @classmethod
    def default_value_for(
        cls,
        attribute: str,
        value: Any = UNSET,
        *,
        compute: Callable[..., Any] | None = None,
        **options: Any,
    ) -> DefaultSpec:
        """Declare a default for ``attribute``. See ``registry.declare``."""
        return registry.declare(cls, attribute, value, compute=compute, **options)

    @classmethod
    def default_values(cls, defaults: Mapping[str, Any]) -> list[DefaultSpec]:
        """Declare several defaults at once. See ``registry.declare_many``."""
        return registry.declare_many(cls, defaults)

    @classmethod
    def default_specs(cls) -> tuple[DefaultSpec, ...]:
        return registry.specs_for(cls)

    @classmethod
    def attr_protected(cls, *names: str) -> None:
        protection.attr_protected(cls, *names)

    @classmethod
    def attr_accessible(cls, *names: str) -> None:
        protection.attr_accessible(cls, *names)


def _apply_defaults_after_load(target: Any, context: QueryContext) -> None:
    """Fill NULL columns of a loaded record from ``allows_nil=False`` defaults.

    Mapped attributes (columns and relationships) are written with
    ``set_committed_value`` so no attribute events fire, nothing cascades
    into the session and nothing is flushed back. Attributes absent from
    the loaded state (deferred columns, unloaded relationships) are skipped
    so this listener never emits SQL.

    Args:
        target: The loaded instance.
        context: The query context (unused).
    """
    if not get_settings().apply_on_load:
        return

    state = inspect(target)
    mapper = state.mapper

    def is_loaded(record: Any, attribute: str) -> bool:
        return attribute not in mapper.attrs or attribute in state.dict

    def assign(record: Any, attribute: str, value: Any) -> None:
        # no attribute events: relationships must not cascade into the session
        if attribute in mapper.attrs:
            set_committed_value(record, attribute, value)
        else:
            setattr(record, attribute, value)

    apply_defaults_on_load(target, assign, is_loaded=is_loaded)


def register_load_listener() -> None:
    """Register the load event handler on the mixin.

    ``propagate=True`` carries the listener to every mapped subclass,
    including those mapped after registration.

    Idempotent: SQLAlchemy deduplicates identical listener registrations.
    """
    event.listen(DefaultValuesMixin, "load", _apply_defaults_after_load, propagate=True)
    logger.debug("default_values_load_listener_registered")


register_load_listener()
