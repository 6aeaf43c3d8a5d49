"""Variable lookup for template interpolation.

Resolves values from nested data structures (dicts and lists) using
the dotted path notation accepted inside `{{ ... }}` markers.
"""

from typing import TYPE_CHECKING

from loco_ws.errors import TemplateError
from loco_ws.names import PATH_PATTERN

if TYPE_CHECKING:
    from collections.abc import Mapping

if TYPE_CHECKING:
    from loco_ws.values import RuntimeValue


class VariableLookup:
    """Dotted path into template variables, such as `user.tags.0`.

    Missing keys, out of range indexes and paths through scalars all
    resolve to `None`, which templates render as empty text.
    """

    def __init__(self, path: str) -> None:
        """Parse a dotted path.

        Args:
            path: Segments separated by dots. Decimal segments index
                lists and tuples, other segments are mapping keys.

        Raises:
            TemplateError: If the provided path is not valid.
        """
        path = path.strip()
        if not PATH_PATTERN.match(path):
            raise TemplateError(f'Invalid variable path {path!r}')

        self.path = path.split('.')

    def __call__(self, variables: 'Mapping[str, RuntimeValue]') -> 'RuntimeValue':
        """Resolve the variable path against template variables."""
        return self.resolve(variables)

    def resolve(self, value: 'RuntimeValue') -> 'RuntimeValue':
        """Walk the path through nested mappings and sequences.

        Args:
            value: Root value, usually the template variables.

        Returns:
            The addressed value, or `None` if any segment is missing.
        """
        for segment in self.path:
            match value:
                case dict():
                    value = value.get(segment)
                case list() | tuple() if segment.isdecimal():
                    index = int(segment)
                    value = value[index] if index < len(value) else None
                case _:
                    return None

            if value is None:
                return None

        return value
