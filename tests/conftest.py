"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest
import yaml

from loco_ws.schema import ScenarioDocument
from loco_ws.transport import Connection, Transport

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from loco_ws.values import RuntimeValue


class RecordingEmitter:
    """Event emitter double remembering every emitted event in order."""

    def __init__(self) -> None:
        """Initialize an emitter without recorded events."""
        self.events: list[tuple[str, tuple[RuntimeValue, ...]]] = []

    def emit(self, event: str, *args: 'RuntimeValue') -> None:
        """Record an event with its payload."""
        self.events.append((event, args))

    @property
    def names(self) -> list[str]:
        """Names of recorded events in emission order."""
        return [event for event, _ in self.events]


@pytest.fixture
def loader() -> type[yaml.SafeLoader]:
    """Provide an isolated YAML SafeLoader class for tests.

    Creates a dedicated subclass of `yaml.SafeLoader` to ensure that
    YAML constructors registered during a test do not leak into other
    tests or affect global loader state.
    """
    class Loader(yaml.SafeLoader):
        pass

    return Loader


@pytest.fixture
def emitter() -> RecordingEmitter:
    """Provide an emitter recording session events."""
    return RecordingEmitter()


@pytest.fixture
def connection(mocker: 'MockerFixture') -> 'MockType':
    """Provide an open connection double with async `send` and `close`."""
    return mocker.AsyncMock(spec=Connection)


@pytest.fixture
def transport(mocker: 'MockerFixture', connection: 'MockType') -> 'MockType':
    """Provide a transport double whose `open` returns `connection`."""
    transport = mocker.AsyncMock(spec=Transport)
    transport.open.return_value = connection

    return transport


@pytest.fixture
def make_document() -> 'Callable[..., ScenarioDocument]':
    """Provide a factory of validated scenario documents.

    The factory accepts the step list and the optional configuration
    mapping, in the shape they take in YAML documents.
    """
    def make(steps: list[dict], **config: 'RuntimeValue') -> ScenarioDocument:
        return ScenarioDocument.model_validate({
            'config': config,
            'scenario': steps,
        })

    return make
