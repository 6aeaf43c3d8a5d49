"""Scenario step definitions.

A scenario step is a tagged variant: exactly one of `think`, `connect`
or `send` must be present in a step document. The tag is determined
once, when the document is validated, and compiled steps dispatch on
the model type rather than on field presence.
"""

from typing import Annotated, Any, ClassVar, Literal

from pydantic import Discriminator, Field, Tag

from loco_ws.models import SchemaModel
from loco_ws.values import Value  # noqa: TC001

type StepKind = Literal['think', 'connect', 'send']

#: Step document keys recognized as variant tags.
STEP_KINDS = frozenset(('think', 'connect', 'send'))


class ThinkStep(SchemaModel):
    """Pause the session without touching the network."""

    kind: ClassVar[StepKind] = 'think'

    think: float = Field(
        ge=0,
        title='Think time',
        description='Delay before the next step, in seconds.',
    )


class ConnectParams(SchemaModel):
    """Parameters of a connect step."""

    url: str = Field(
        title='Connection URL',
        description=(
            'Template of the WebSocket URL to open. '
            'URLs starting with `/` are appended to the configured target.'
        ),
        examples=[
            '/chat/{{ room }}',
            'ws://localhost:8080/',
        ],
    )


class ConnectStep(SchemaModel):
    """Open the session connection."""

    kind: ClassVar[StepKind] = 'connect'

    connect: ConnectParams = Field(
        title='Connect parameters',
        description='Parameters of the connection to open.',
    )


class JsonPayload(SchemaModel):
    """Structured payload serialized as JSON text before sending."""

    body: Value = Field(
        validation_alias='json',
        title='JSON payload',
        description=(
            'Arbitrarily nested structure. Every string inside it is '
            'resolved as a template before serialization.'
        ),
    )


class SendStep(SchemaModel):
    """Write one message to the session connection."""

    kind: ClassVar[StepKind] = 'send'

    send: str | bytes | JsonPayload = Field(
        title='Message payload',
        description=(
            'Either a raw text template, raw binary data, or a mapping '
            'with a single `json` key holding a structured payload.'
        ),
    )


def step_kind(value: Any) -> str | None:  # noqa: ANN401
    """Return the variant tag of a step document or model.

    Args:
        value: Raw step mapping or an already validated step model.

    Returns:
        The tag name, or `None` unless exactly one tag key is present.
    """
    if isinstance(value, (ThinkStep, ConnectStep, SendStep)):
        return value.kind

    if not isinstance(value, dict):
        return None

    kinds = STEP_KINDS.intersection(value)
    if len(kinds) != 1:
        return None

    return next(iter(kinds))


Step = Annotated[
    Annotated[ThinkStep, Tag('think')]
    | Annotated[ConnectStep, Tag('connect')]
    | Annotated[SendStep, Tag('send')],
    Discriminator(
        step_kind,
        custom_error_type='invalid_step',
        custom_error_message='Step must define exactly one of: connect, send, think',
    ),
]
