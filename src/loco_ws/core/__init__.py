"""Scenario compilation and session execution.

The primary public entry point is `compile_session`, which turns the
steps of a scenario into a reusable `Session`. Every call of a session
runs the steps once over its own connection and context.
"""

from .compiler import CompiledStep, SessionCompiler, compile_session
from .parser import ScenarioParser
from .runner import Session, SessionResult, SessionState

__all__ = (
    'CompiledStep',
    'ScenarioParser',
    'Session',
    'SessionCompiler',
    'SessionResult',
    'SessionState',
    'compile_session',
)
