"""Template function bindings.

Provides the builtin functions available to every session, and code
functions built from scenario definitions and evaluated in a sandbox.
"""

from random import choices, randint
from string import ascii_letters, digits
from typing import TYPE_CHECKING

from loco_ws.errors import SandboxError, ScenarioSchemaError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from loco_ws.context import FunctionBinding
    from loco_ws.sandbox import Sandbox
    from loco_ws.schema import FunctionDefinition
    from loco_ws.values import RuntimeValue

_ALPHABET = ascii_letters + digits


def random_number(low: int = 0, high: int = 10_000) -> int:
    """Return a random integer between `low` and `high` inclusive."""
    return randint(int(low), int(high))  # noqa: S311


def random_string(length: int = 10) -> str:
    """Return a random alphanumeric string of the given length."""
    return ''.join(choices(_ALPHABET, k=int(length)))  # noqa: S311


#: Functions bound in every session unless overridden.
BUILTIN_FUNCTIONS: 'dict[str, FunctionBinding]' = {
    'randomNumber': random_number,
    'randomString': random_string,
}


class CodeFunction:
    """Template function implemented as sandboxed code.

    Call arguments are bound to the declared parameter names; missing
    arguments are bound to `None` and extra ones are available through
    the `args` tuple.
    """

    def __init__(self, name: str, definition: 'FunctionDefinition', sandbox: 'Sandbox') -> None:
        """Initialize a code function.

        Args:
            name: Function name, used for diagnostics.
            definition: Parameters and code of the function.
            sandbox: Sandbox evaluating the code.
        """
        self.name = name
        self.params = tuple(definition.params)
        self.code = definition.code
        self.sandbox = sandbox

        # Syntax errors surface when the session is compiled
        sandbox.compile(self.code)

    def __call__(self, *args: 'RuntimeValue') -> 'RuntimeValue':
        """Evaluate the function body with bound arguments."""
        bindings = {
            name: args[position] if position < len(args) else None
            for position, name in enumerate(self.params)
        }
        bindings['args'] = args

        return self.sandbox.evaluate(bindings, self.code)

    def __repr__(self) -> str:
        """Short representation for logs."""
        return f'{type(self).__name__}({self.name!r})'


def build_functions(definitions: 'Mapping[str, FunctionDefinition]',
                    sandbox: 'Sandbox | None' = None) -> 'dict[str, FunctionBinding]':
    """Build the function table of a compiled session.

    Args:
        definitions: Code functions declared by the scenario.
        sandbox: Sandbox capability; required when any code function
            is declared.

    Returns:
        Builtin functions merged with the declared code functions.

    Raises:
        ScenarioSchemaError: If code functions are declared without a
            sandbox, or any function body is not valid code.
    """
    functions = dict(BUILTIN_FUNCTIONS)
    if not definitions:
        return functions

    if sandbox is None:
        raise ScenarioSchemaError('Code functions are declared but code evaluation is not allowed')

    for name, definition in definitions.items():
        try:
            functions[name] = CodeFunction(name, definition, sandbox)
        except SandboxError as base:
            raise ScenarioSchemaError(f'Invalid code of function {name!r}') from base

    return functions
