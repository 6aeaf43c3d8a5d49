"""Base Pydantic models and runtime settings.

This module defines the foundational model classes used by scenario
documents, and the process-wide settings resolved from the environment.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all scenario elements.

    Design principles enforced by this model:
        - Immutability: a loaded scenario cannot be modified, so one
          compiled session may be run many times, even concurrently.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in scenario documents.

    All scenario models must inherit from this class.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class DescribedMixin(SchemaModel):
    """Mixin providing element self-documentation.

    The fields defined in this model do not affect execution semantics
    and are used purely for descriptive purposes.
    """

    title: str | None = Field(
        default=None,
        title='Title',
        description='Short human-readable title of the element.',
    )

    description: str | None = Field(
        default=None,
        title='Description',
        description='Detailed human-readable description of the element.',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored,
          so unrelated environment variables never break resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )


class EngineSettings(SettingsModel):
    """Process defaults for running sessions.

    Every field may be provided through an environment variable with
    the `LOCO_WS_` prefix, for example `LOCO_WS_TARGET`.
    """

    model_config = SettingsConfigDict(
        env_prefix='LOCO_WS_',
        frozen=True,
        extra='ignore',
    )

    target: str = Field(
        default='',
        title='Base target',
        description='Base WebSocket URL used when a scenario defines none.',
    )

    defer_connection: bool = Field(
        default=False,
        title='Deferred connection',
        description='Skip the initial connection made before the first step.',
    )

    open_timeout: float | None = Field(
        default=10.0,
        title='Open timeout',
        description='Seconds to wait for the opening handshake.',
    )

    close_timeout: float | None = Field(
        default=5.0,
        title='Close timeout',
        description='Seconds to wait for the closing handshake.',
    )

    allow_code: bool = Field(
        default=False,
        title='Allow code',
        description=(
            'Enable functions defined as code in scenario documents. '
            'Code runs in an isolated namespace but is not sandboxed '
            'against hostile input.'
        ),
    )

    log_level: str = Field(
        default='WARNING',
        title='Log level',
        description='Default logging level of the command-line interface.',
    )
