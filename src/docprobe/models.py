"""Base Pydantic models for catalog, target and resolution elements.

This module defines the foundational model classes used by all structures.
Models are immutable and accept both the camelCase names used in
configuration files and statements and the snake_case attribute names.
"""

from pydantic import AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all elements.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation.
          Resolution copies rather than mutates.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in statements or catalogs.
        - camelCase wire names: fields are serialized by alias.

    All models must inherit from this class.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra='forbid',
    )


class PassthroughModel(SchemaModel):
    """Base immutable model which keeps unknown fields.

    Used for objects which are partially owned by external collaborators
    (browser options, integration settings, resolved specs and tests),
    where the known fields are validated and the rest is carried through
    as is.
    """

    model_config = ConfigDict(
        extra='allow',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    This class serves as the root for settings models resolving runtime
    configuration from keyword arguments, configuration files or
    environment variables.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows configuration files shared with other tools.
        - Settings are populated by field name, so environment variables
          keep their prefix, and serialized by their camelCase names.
    """

    model_config = SettingsConfigDict(
        alias_generator=AliasGenerator(serialization_alias=to_camel),
        frozen=True,
        extra='ignore',
    )
