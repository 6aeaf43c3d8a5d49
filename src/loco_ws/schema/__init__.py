"""Declarative schema of scenario documents.

Defines immutable Pydantic models describing scenario configuration and
steps. The module specifies the structural contract of scenario files
and is consumed by the session compiler and tooling.
"""

from .config import EngineConfig, FunctionDefinition
from .documents import ScenarioDocument
from .steps import ConnectParams, ConnectStep, JsonPayload, SendStep, Step, ThinkStep, step_kind

__all__ = (
    'ConnectParams',
    'ConnectStep',
    'EngineConfig',
    'FunctionDefinition',
    'JsonPayload',
    'ScenarioDocument',
    'SendStep',
    'Step',
    'ThinkStep',
    'step_kind',
)
