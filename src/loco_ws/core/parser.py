"""YAML scenario parser.

Loads a scenario document with a safe YAML loader and validates it
against the scenario document model.
"""

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError
from yaml import SafeLoader, load
from yaml.error import MarkedYAMLError

from loco_ws.errors import LocoError, ScenarioSchemaError
from loco_ws.schema import ScenarioDocument

if TYPE_CHECKING:
    from io import TextIOBase

if TYPE_CHECKING:
    from yaml import BaseLoader


class ScenarioParser:
    """Parser of YAML scenario documents.

    A scenario document holds an optional `config` mapping and the
    `scenario` list of steps.
    """

    def __init__(self, loader: type['BaseLoader'] = SafeLoader) -> None:
        """Initialize the parser.

        Args:
            loader: YAML loader class used to read documents.
        """
        self.loader = loader

    def parse(self, content: 'TextIOBase | str', *,
              filename: str | None = None) -> ScenarioDocument:
        """Parse and validate a scenario document.

        Args:
            content: YAML content as a string or file-like object.
            filename: Source file name used in error messages.

        Returns:
            Validated scenario document.

        Raises:
            ScenarioSchemaError: If YAML parsing fails, the document is
                empty or it does not match the scenario schema.
        """
        try:
            document = load(content, Loader=self.loader)  # noqa: S506

        except MarkedYAMLError as base:
            raise ScenarioSchemaError.from_yaml_error(base, filename=filename) from base

        except LocoError:
            raise

        except Exception as base:
            raise ScenarioSchemaError('Unexpected error') from base

        if document is None:
            raise ScenarioSchemaError('Scenario document is empty')

        try:
            return ScenarioDocument.model_validate(document)

        except ValidationError as base:
            raise ScenarioSchemaError.from_pydantic_error(
                base,
                data=document,
                filename=filename,
            ) from base

    def parse_file(self, path: Path | str) -> ScenarioDocument:
        """Read and parse a scenario file.

        Args:
            path: Path to a YAML scenario file.

        Returns:
            Validated scenario document.

        Raises:
            ScenarioSchemaError: If the file is not a valid scenario.
            OSError: If the file can not be read.
        """
        path = Path(path)
        with path.open('r', encoding='utf-8') as content:
            return self.parse(content, filename=str(path))
