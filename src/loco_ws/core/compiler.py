"""Compilation of scenario steps into executable coroutines.

Every step model is turned into one coroutine function taking the
session context and returning it, possibly updated. Templated fields
are resolved when the step runs, not when it is compiled.
"""

import logging
from asyncio import sleep
from json import dumps
from time import perf_counter_ns
from typing import TYPE_CHECKING, NamedTuple

from loco_ws.errors import ConnectError, ConnectionMissingError, SendError
from loco_ws.events import ERROR, REQUEST, RESPONSE
from loco_ws.functions import build_functions
from loco_ws.schema import ConnectStep, JsonPayload, SendStep, ThinkStep
from loco_ws.transport import WebSocketTransport, close_quietly, error_code

from .runner import Session

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from loco_ws.context import SessionContext
    from loco_ws.events import EventEmitter
    from loco_ws.sandbox import Sandbox
    from loco_ws.schema import EngineConfig, Step
    from loco_ws.transport import Transport

logger = logging.getLogger(__name__)

#: Executable step: receives the session context and returns it.
type StepRunner = Callable[[SessionContext], Awaitable[SessionContext]]


class CompiledStep(NamedTuple):
    """Step model paired with its executable coroutine function."""

    spec: 'Step'
    run: StepRunner


class SessionCompiler:
    """Builds executable steps bound to a configuration and emitter.

    The compiler holds no per-session state: one compiled step list
    serves any number of session runs.
    """

    def __init__(self, config: 'EngineConfig', emitter: 'EventEmitter',
                 transport: 'Transport') -> None:
        """Initialize the compiler.

        Args:
            config: Scenario configuration.
            emitter: Event publish point.
            transport: Connection factory used by connect steps.
        """
        self.config = config
        self.emitter = emitter
        self.transport = transport

    def compile(self, steps: 'Sequence[Step]') -> tuple[CompiledStep, ...]:
        """Compile steps preserving their order."""
        return tuple(
            CompiledStep(step, self.compile_step(step))
            for step in steps
        )

    def compile_step(self, step: 'Step') -> StepRunner:
        """Compile a single step by dispatching on its variant."""
        match step:
            case ThinkStep():
                return self.compile_think(step)
            case ConnectStep():
                return self.compile_connect(step)
            case SendStep():
                return self.compile_send(step)

        raise TypeError(f'{step!r} is not a scenario step')  # pragma: no cover

    def compile_think(self, step: ThinkStep) -> StepRunner:
        """Compile a pause that leaves the context unchanged."""
        async def think(context: 'SessionContext') -> 'SessionContext':
            logger.debug('think %s s', step.think)
            await sleep(step.think)
            return context

        return think

    def compile_connect(self, step: ConnectStep) -> StepRunner:
        """Compile opening of the session connection.

        A connection already present in the context is closed and
        replaced by the new one.
        """
        async def connect(context: 'SessionContext') -> 'SessionContext':
            url = self.target_url(context.resolve(step.connect.url))
            logger.debug('connect %s', url)

            try:
                connection = await self.transport.open(url)

            except Exception as base:
                code = error_code(base)
                self.emitter.emit(ERROR, code)
                raise ConnectError(f'Can not connect to {url!r}: {code}', code=code) from base

            previous, context.connection = context.connection, connection
            if previous is not None:
                logger.debug('replacing the open connection with %s', url)
                await close_quietly(previous)

            return context

        return connect

    def compile_send(self, step: SendStep) -> StepRunner:
        """Compile writing of one message with latency reporting."""
        async def send(context: 'SessionContext') -> 'SessionContext':
            if context.connection is None:
                raise ConnectionMissingError('Send step requires an open connection')

            message = self.encode(step, context)
            logger.debug('send %d characters', len(message))

            self.emitter.emit(REQUEST)
            started_at = perf_counter_ns()

            try:
                await context.connection.send(message)

            except Exception as base:
                self.emitter.emit(ERROR, base)
                raise SendError(f'Can not send message: {base!r}') from base

            self.emitter.emit(RESPONSE, perf_counter_ns() - started_at, 0)
            context.pending_requests -= 1
            context.success_count += 1

            return context

        return send

    @staticmethod
    def encode(step: SendStep, context: 'SessionContext') -> str | bytes:
        """Resolve the payload of a send step into a wire message.

        JSON payloads are resolved leaf-wise and serialized; raw text is
        resolved as a template; raw binary data is sent unchanged.
        """
        match step.send:
            case JsonPayload(body=body):
                return dumps(context.resolve(body), ensure_ascii=False)
            case payload:
                return context.resolve(payload)

    def target_url(self, url: str) -> str:
        """Prefix root-relative URLs with the configured target."""
        if url.startswith('/'):
            return f'{self.config.target}{url}'

        return url


def compile_session(steps: 'Sequence[Step]', config: 'EngineConfig',
                    emitter: 'EventEmitter', *,
                    transport: 'Transport | None' = None,
                    sandbox: 'Sandbox | None' = None) -> Session:
    """Compile a scenario into a reusable session factory.

    Args:
        steps: Scenario steps in execution order.
        config: Scenario configuration.
        emitter: Event publish point shared by all runs.
        transport: Connection factory; a `WebSocketTransport` by default.
        sandbox: Sandbox capability for code functions declared in the
            configuration. Without it such declarations are rejected.

    Returns:
        A session factory; each call runs one independent session.

    Raises:
        ScenarioSchemaError: If code functions can not be built.
    """
    if transport is None:
        transport = WebSocketTransport()

    compiler = SessionCompiler(config, emitter, transport)

    return Session(
        compiler.compile(steps),
        config=config,
        emitter=emitter,
        transport=transport,
        funcs=build_functions(config.functions, sandbox),
    )
