"""Isolated evaluation of user-supplied code.

The sandbox runs a code snippet with an explicit set of bindings as its
only visible state and returns the value of its trailing expression.

Notes:
    - Builtins are restricted to a small table of pure helpers.
    - This is not a security boundary. Any callable or object passed
      in the bindings can be used by the code.
    - Intended for trusted scenario authors, not for untrusted input.
"""

import ast
import builtins
from typing import TYPE_CHECKING

from loco_ws.errors import SandboxError

if TYPE_CHECKING:
    from collections.abc import Iterable, MutableMapping
    from types import CodeType

if TYPE_CHECKING:
    from loco_ws.values import RuntimeValue

#: Builtins visible to sandboxed code by default.
SAFE_BUILTINS = (
    'abs', 'all', 'any', 'bool', 'chr', 'dict', 'divmod', 'enumerate',
    'filter', 'float', 'format', 'hex', 'int', 'isinstance', 'len', 'list',
    'map', 'max', 'min', 'ord', 'pow', 'range', 'repr', 'reversed',
    'round', 'set', 'sorted', 'str', 'sum', 'tuple', 'zip',
)

_BUILTINS_KEY = '__builtins__'


class Sandbox:
    """Capability object evaluating code in an isolated namespace.

    A sandbox instance is handed to the function bindings that need to
    run ad hoc logic. Holding no reference to it means a binding can not
    evaluate code at all.
    """

    def __init__(self, allowed_builtins: 'Iterable[str]' = SAFE_BUILTINS) -> None:
        """Initialize the sandbox.

        Args:
            allowed_builtins: Names of builtins exposed to the code.
        """
        self.builtins = {
            name: getattr(builtins, name)
            for name in allowed_builtins
        }

    def evaluate(self, bindings: 'MutableMapping[str, RuntimeValue]', code: str) -> 'RuntimeValue':
        """Evaluate code against the given bindings.

        Statements run in order; if the last statement is an expression,
        its value is returned. Names assigned by the code are written
        back into `bindings`.

        Args:
            bindings: The only external state visible to the code.
            code: Source text of the snippet.

        Returns:
            Value of the trailing expression, or `None`.

        Raises:
            SandboxError: If the code is syntactically invalid or fails.
        """
        body, tail = self.compile(code)

        namespace = {**bindings, _BUILTINS_KEY: self.builtins}
        try:
            exec(body, namespace)  # noqa: S102
            if tail is None:
                return None
            return eval(tail, namespace)  # noqa: S307

        except Exception as error:
            raise SandboxError(f'Error during sandboxed code evaluation: {error!r}') from error

        finally:
            namespace.pop(_BUILTINS_KEY, None)
            bindings.update(namespace)

    @staticmethod
    def compile(code: str) -> tuple['CodeType', 'CodeType | None']:
        """Compile code into a statements block and a trailing expression.

        Args:
            code: Source text of the snippet.

        Returns:
            A tuple of compiled statements and the compiled trailing
            expression (or `None` if the code does not end with one).

        Raises:
            SandboxError: If the code is syntactically invalid.
        """
        try:
            tree = ast.parse(code, filename='<sandbox>', mode='exec')
        except SyntaxError as error:
            raise SandboxError('Invalid syntax in sandboxed code') from error

        tail = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            last = tree.body.pop()
            tail = compile(ast.Expression(body=last.value), filename='<sandbox>', mode='eval')

        return compile(tree, filename='<sandbox>', mode='exec'), tail
