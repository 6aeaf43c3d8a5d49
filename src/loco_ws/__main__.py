"""Command-line interface of loco-ws.

Runs a single session of a scenario file against a WebSocket target
and prints the JSON Schema of scenario documents.
"""

import logging
from asyncio import run
from json import dumps
from pathlib import Path
from typing import TYPE_CHECKING

from click import BadParameter, ClickException, argument, echo, group, option
from click import Path as PathParam
from yaml import YAMLError, safe_load

from loco_ws.context import TemplateContext
from loco_ws.core import ScenarioParser, compile_session
from loco_ws.errors import LocoError
from loco_ws.events import ERROR, REQUEST, RESPONSE, STARTED, Emitter
from loco_ws.models import EngineSettings
from loco_ws.names import VARIABLE_PATTERN
from loco_ws.sandbox import Sandbox
from loco_ws.schema import ScenarioDocument
from loco_ws.transport import WebSocketTransport

if TYPE_CHECKING:
    from click import Context, Parameter

    from loco_ws.schema import EngineConfig
    from loco_ws.values import Value

logger = logging.getLogger('loco_ws')

ScenarioFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def _parse_variables(ctx: 'Context', param: 'Parameter',
                     values: tuple[str, ...]) -> dict[str, 'Value']:
    """Parse `NAME=VALUE` options into template variables.

    Values are read as YAML scalars, so `--var count=3` binds an integer.
    """
    variables: dict[str, Value] = {}
    for item in values:
        name, separator, raw = item.partition('=')
        if not separator or not VARIABLE_PATTERN.match(name):
            raise BadParameter(f'{item!r} is not a NAME=VALUE pair', ctx=ctx, param=param)

        try:
            variables[name] = safe_load(raw) if raw else ''
        except YAMLError:
            variables[name] = raw

    return variables


def _subscribe_logging(emitter: Emitter) -> Emitter:
    """Log every session event."""
    emitter.on(STARTED, lambda: logger.info('session started'))
    emitter.on(REQUEST, lambda: logger.info('request'))
    emitter.on(RESPONSE, lambda latency, status: logger.info(
        'response %s in %.3f ms', status, latency / 1_000_000,
    ))
    emitter.on(ERROR, lambda error: logger.error('error %s', error))

    return emitter


def _merge_config(config: 'EngineConfig', settings: EngineSettings, *,
                  target: str | None, defer_connection: bool) -> 'EngineConfig':
    """Apply command-line options and settings to a scenario config.

    The command-line target wins over the scenario target, which wins
    over the settings target. Deferred connection is enabled by any of
    the three sources.
    """
    return config.model_copy(update={
        'target': target or config.target or settings.target,
        'defer_connection': (
            defer_connection
            or config.defer_connection
            or settings.defer_connection
        ),
    })


@group(help='Scripted WebSocket session engine.')
def cli() -> None:
    """Root CLI group for loco-ws tools."""
    return None


@cli.command(
    name='schema',
    help='Print the scenario document JSON Schema to standard output.',
)
def print_schema() -> None:
    """Generate and print the JSON Schema."""
    echo(dumps(ScenarioDocument.model_json_schema(), ensure_ascii=False, indent=2))


@cli.command(
    name='run',
    help='Run one session of a scenario file.',
)
@option(
    '-t', '--target',
    help='Base WebSocket URL; overrides the scenario target.',
    default=None,
)
@option(
    '--defer-connection',
    is_flag=True,
    help='Do not open the target connection before the first step.',
)
@option(
    '--var', 'variables',
    multiple=True,
    metavar='NAME=VALUE',
    callback=_parse_variables,
    help='Initial template variable; may be repeated.',
)
@option(
    '--allow-code',
    is_flag=True,
    help='Enable functions defined as code in the scenario.',
)
@option(
    '-v', '--verbose',
    count=True,
    help='Increase logging verbosity.',
)
@argument(
    'scenario',
    type=ScenarioFilepath,
)
def run_scenario(scenario: Path, target: str | None, defer_connection: bool,
                 variables: dict[str, 'Value'], allow_code: bool,
                 verbose: int) -> None:
    """Run a scenario file once and report the outcome.

    Args:
        scenario: Path to the scenario file.
        target: Base WebSocket URL override.
        defer_connection: Whether to skip the initial connection.
        variables: Initial template variables.
        allow_code: Whether functions defined as code are enabled.
        verbose: Verbosity level.
    """
    settings = EngineSettings()

    level = settings.log_level
    if verbose:
        level = logging.DEBUG if verbose > 1 else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        document = ScenarioParser().parse_file(scenario)
        config = _merge_config(
            document.config,
            settings,
            target=target,
            defer_connection=defer_connection,
        )

        session = compile_session(
            document.scenario,
            config,
            _subscribe_logging(Emitter()),
            transport=WebSocketTransport(
                open_timeout=settings.open_timeout,
                close_timeout=settings.close_timeout,
            ),
            sandbox=Sandbox() if allow_code or settings.allow_code else None,
        )

    except LocoError as error:
        raise ClickException(str(error)) from error

    result = run(session(TemplateContext(vars=variables)))
    if result.error is not None:
        raise ClickException(str(result.error))

    echo(f'Session completed: {result.context.success_count} message(s) sent')


if __name__ == '__main__':
    cli()
