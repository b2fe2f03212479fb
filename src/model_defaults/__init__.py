"""Model Defaults -- declared default attribute values for SQLAlchemy models."""

from model_defaults.definitions import UNSET, Default, DefaultSpec
from model_defaults.exceptions import (
    DefaultValueConfigurationError,
    MassAssignmentError,
    ModelDefaultsError,
)
from model_defaults.interceptor import apply_defaults_on_construct, apply_defaults_on_load
from model_defaults.orm import DefaultValuesMixin, register_load_listener
from model_defaults.protection import attr_accessible, attr_protected, is_protected
from model_defaults.registry import declare, declare_many, specs_for
from model_defaults.settings import ModelDefaultsSettings, get_settings

__all__ = [
    "UNSET",
    "Default",
    "DefaultSpec",
    "DefaultValueConfigurationError",
    "DefaultValuesMixin",
    "MassAssignmentError",
    "ModelDefaultsError",
    "ModelDefaultsSettings",
    "apply_defaults_on_construct",
    "apply_defaults_on_load",
    "attr_accessible",
    "attr_protected",
    "declare",
    "declare_many",
    "get_settings",
    "is_protected",
    "register_load_listener",
    "specs_for",
]
