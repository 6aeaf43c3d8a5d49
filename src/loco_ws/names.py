"""Identifier and template marker patterns.

This module defines the name rules used by scenario documents and the
two template markers recognized inside string payloads:

- variable interpolation: `{{ name }}` or `{{ name.path.0 }}`, also in
  the raw `{{{ name }}}` form;
- function calls: `{{ $name(arg1, arg2) }}`.

The rules defined here form part of the public scenario contract.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Base pattern for identifiers.
#: Identifiers must start with a letter and may contain letters, digits, or underscores
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Compiled pattern for variable identifiers
VARIABLE_PATTERN = regexp(
    rf'^(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)

#: Compiled pattern for dotted variable paths used by interpolation.
#: Segments after the first may be list indexes.
PATH_PATTERN = regexp(
    rf'^{_NAME_PATTERN}(\.[\w]+)*$',
    flags=ASCII,
)

#: Function call marker. The `$` prefix distinguishes calls from plain
#: interpolation; `call` captures the expression without the prefix.
#: Arguments end at the first closing parenthesis followed by `}}`,
#: so several calls may share one string.
FUNCTION_CALL_PATTERN = regexp(
    r'{{\s*\$(?P<call>[A-Za-z0-9_]+\s*\(.*?\))\s*}}',
)

#: Interpolation marker capturing a trimmed lookup path. The raw
#: `{{{ path }}}` form renders the same as `{{ path }}` since values are
#: never escaped.
INTERPOLATION_PATTERN = regexp(
    r'{{(?P<raw>{)?\s*(?P<path>[^{}]*?)\s*}}(?(raw)})',
)


Variable = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Variable identifier',
        description=(
            'Name of a variable or function available to templates. '
            'Identifiers must start with a letter and may contain '
            'letters, digits, or underscores. '
            'Names are restricted to ASCII characters.'
        ),
        examples=[
            'userId',
            'api_token',
            'randomString',
        ],
    ),
]
