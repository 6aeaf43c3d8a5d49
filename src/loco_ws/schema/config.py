"""Scenario configuration models."""

from pydantic import AliasChoices, Field

from loco_ws.models import SchemaModel
from loco_ws.names import Variable  # noqa: TC001
from loco_ws.values import Value  # noqa: TC001


class FunctionDefinition(SchemaModel):
    """Template function defined as code.

    The code runs in a sandbox with the call arguments bound to the
    declared parameter names. The value of its trailing expression
    becomes the function result.
    """

    params: list[Variable] = Field(
        default_factory=list,
        title='Parameters',
        description='Names bound to the positional call arguments, in order.',
    )

    code: str = Field(
        title='Function body',
        description='Python code evaluated on every call.',
        examples=[
            'prefix + "-" + str(number * 2)',
        ],
    )


class EngineConfig(SchemaModel):
    """Connection and template configuration of a scenario."""

    target: str = Field(
        default='',
        title='Base target',
        description=(
            'Base WebSocket URL. Opened before the first step unless the '
            'connection is deferred, and used as prefix for connect URLs '
            'starting with `/`.'
        ),
        examples=[
            'ws://localhost:8080',
        ],
    )

    defer_connection: bool = Field(
        default=False,
        validation_alias=AliasChoices('deferConnection', 'defer_connection'),
        title='Deferred connection',
        description=(
            'Skip the initial connection. The connection is then expected '
            'from a connect step or from the caller.'
        ),
    )

    variables: dict[Variable, Value] = Field(
        default_factory=dict,
        validation_alias=AliasChoices('vars', 'variables'),
        title='Template variables',
        description='Initial variables of every session.',
    )

    functions: dict[Variable, FunctionDefinition] = Field(
        default_factory=dict,
        title='Template functions',
        description=(
            'Functions defined as code and callable from templates. '
            'Require code evaluation to be allowed.'
        ),
    )
