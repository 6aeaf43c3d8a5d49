"""Scenario document model."""

from pydantic import Field

from loco_ws.models import DescribedMixin, SchemaModel

from .config import EngineConfig
from .steps import Step  # noqa: TC001


class ScenarioDocument(DescribedMixin, SchemaModel):
    """Top-level scenario document.

    Combines the connection configuration with the ordered list of
    steps describing one simulated client session.
    """

    config: EngineConfig = Field(
        default_factory=EngineConfig,
        title='Configuration',
        description='Connection and template configuration.',
    )

    scenario: tuple[Step, ...] = Field(
        min_length=1,
        title='Scenario steps',
        description='Ordered steps executed by every session.',
    )
