"""Session execution.

A `Session` is the reusable product of compilation. Each call runs one
independent session: it opens the target connection (unless deferred),
executes the compiled steps strictly in order and always releases the
connection before reporting completion.
"""

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, NamedTuple

from loco_ws.context import SessionContext, TemplateContext
from loco_ws.errors import ConnectError, ErrorContext, SessionError, SessionRuntimeError
from loco_ws.events import ERROR, STARTED
from loco_ws.schema import ThinkStep
from loco_ws.transport import close_quietly, error_code

if TYPE_CHECKING:
    from collections.abc import Callable

    from loco_ws.context import FunctionBinding
    from loco_ws.errors import LocoError
    from loco_ws.events import EventEmitter
    from loco_ws.schema import EngineConfig
    from loco_ws.transport import Transport
    from loco_ws.values import RuntimeValue

if TYPE_CHECKING:
    from .compiler import CompiledStep

logger = logging.getLogger(__name__)

#: Completion callback receiving the error (if any) and the final context.
type DoneCallback = Callable[[LocoError | None, SessionContext], object]

#: Initial bindings accepted by a session call.
type InitialContext = TemplateContext | Mapping[str, RuntimeValue] | None


class SessionState(StrEnum):
    """Lifecycle states of a single session run."""

    IDLE = 'idle'
    CONNECTING = 'connecting'
    EXECUTING = 'executing'
    CLOSED = 'closed'


class SessionResult(NamedTuple):
    """Outcome of a session run."""

    error: 'LocoError | None'
    context: SessionContext

    @property
    def ok(self) -> bool:
        """Whether the session completed without an error."""
        return self.error is None


class SessionRun:
    """State machine of one session run.

    Instances are created by `Session` for every call and are never
    shared between runs.
    """

    def __init__(self, session: 'Session', context: SessionContext) -> None:
        """Initialize a run.

        Args:
            session: Compiled session being run.
            context: Fresh context owned by this run.
        """
        self.session = session
        self.context = context
        self.state = SessionState.IDLE
        self.step_num: int | None = None

    def transition(self, state: SessionState) -> None:
        """Move the run to another state."""
        logger.debug('session %s -> %s', self.state, state)
        self.state = state

    async def start(self) -> None:
        """Establish the initial connection and announce the session.

        Raises:
            ConnectError: If the target connection can not be opened.
        """
        config = self.session.config
        emitter = self.session.emitter

        if config.defer_connection:
            emitter.emit(STARTED)
            return

        self.transition(SessionState.CONNECTING)

        previous, self.context.connection = self.context.connection, None
        if previous is not None:
            logger.debug('closing connection %r before connecting', previous)
            await close_quietly(previous)

        try:
            self.context.connection = await self.session.transport.open(config.target)

        except Exception as base:
            code = error_code(base)
            emitter.emit(ERROR, code)
            raise ConnectError(
                f'Can not connect to {config.target!r}: {code}',
                code=code,
            ) from base

        emitter.emit(STARTED)

    async def run_step(self, step: 'CompiledStep', step_num: int) -> None:
        """Execute a single compiled step with unified error handling.

        Raises:
            SessionError: Step failure, enriched with the step position.
            SessionRuntimeError: Unexpected exception raised by the step.
        """
        self.step_num = step_num
        logger.debug('step %d: %s', step_num, step.spec.kind)

        try:
            self.context = await step.run(self.context)

        except SessionError as error:
            error.context = self.error_context(step, step_num, error.context)
            raise

        except Exception as base:
            raise SessionRuntimeError(
                f'{base!r}',
                context=self.error_context(step, step_num),
            ) from base

    def error_context(self, step: 'CompiledStep', step_num: int,
                      base: ErrorContext | None = None) -> ErrorContext:
        """Build an error context pointing at a failed step."""
        return ErrorContext({
            **(base or {}),
            'step_num': step_num,
            'element': step.spec.model_dump(by_alias=True, exclude_unset=True),
            'context': dict(self.context.vars),
        })

    async def execute(self) -> None:
        """Run every step strictly in order, stopping at the first failure."""
        self.transition(SessionState.EXECUTING)
        for step_num, step in enumerate(self.session.steps):
            await self.run_step(step, step_num)

    async def close(self) -> None:
        """Release the connection held by the context, if any."""
        connection, self.context.connection = self.context.connection, None
        if connection is not None:
            await close_quietly(connection)

        self.transition(SessionState.CLOSED)

    async def __call__(self) -> SessionResult:
        """Run the session to completion.

        Returns:
            The error that aborted the run, if any, and the final context.
            A failed initial connection reports an empty context.
        """
        try:
            await self.start()

        except ConnectError as error:
            self.transition(SessionState.CLOSED)
            return SessionResult(error, SessionContext())

        failure: LocoError | None = None
        try:
            await self.execute()

        except SessionError as error:
            failure = error

        finally:
            await self.close()

        return SessionResult(failure, self.context)


class Session:
    """Reusable factory of session runs.

    A session holds compiled steps and shared collaborators only; every
    call builds its own context, so concurrent runs never share state.
    """

    def __init__(self, steps: tuple['CompiledStep', ...], *,
                 config: 'EngineConfig',
                 emitter: 'EventEmitter',
                 transport: 'Transport',
                 funcs: 'Mapping[str, FunctionBinding]') -> None:
        """Initialize a session.

        Args:
            steps: Compiled steps in execution order.
            config: Scenario configuration.
            emitter: Event publish point.
            transport: Connection factory.
            funcs: Template functions bound in every run.
        """
        self.steps = steps
        self.config = config
        self.emitter = emitter
        self.transport = transport
        self.funcs = dict(funcs)
        self.last_run: SessionRun | None = None

        self.pending_requests = sum(
            1 for step in steps
            if not isinstance(step.spec, ThinkStep)
        )

    @property
    def state(self) -> SessionState:
        """State of the most recently started run."""
        if self.last_run is None:
            return SessionState.IDLE

        return self.last_run.state

    def create_context(self, initial: InitialContext = None) -> SessionContext:
        """Create a fresh context for one run.

        Configured variables and functions are overridden by the initial
        ones. A connection carried by an initial `SessionContext` is used
        as the session connection only when connecting is deferred;
        otherwise the session opens its own and the supplied one stays
        with the caller.

        Args:
            initial: Initial template context, or a mapping of variables.

        Returns:
            A new session context with bookkeeping initialized.
        """
        variables = dict(self.config.variables)
        funcs = dict(self.funcs)
        connection = None

        match initial:
            case TemplateContext():
                variables.update(initial.vars)
                funcs.update(initial.funcs)
                if self.config.defer_connection:
                    connection = getattr(initial, 'connection', None)
            case Mapping():
                variables.update(initial)

        context = SessionContext(variables, funcs, connection=connection)
        context.pending_requests = self.pending_requests

        return context

    async def __call__(self, initial: InitialContext = None,
                       on_done: 'DoneCallback | None' = None) -> SessionResult:
        """Run one session.

        Args:
            initial: Initial template context, or a mapping of variables.
            on_done: Completion callback invoked exactly once with the
                error (or `None`) and the final context, after the
                connection has been closed.

        Returns:
            The same error and context passed to the callback.
        """
        run = self.last_run = SessionRun(self, self.create_context(initial))
        result = await run()

        if result.error is not None:
            logger.debug('session failed: %s', result.error.message)

        if on_done is not None:
            on_done(*result)

        return result
