"""Tests for template function bindings."""

import pytest

from loco_ws.context import TemplateContext
from loco_ws.errors import SandboxError, ScenarioSchemaError
from loco_ws.functions import BUILTIN_FUNCTIONS, CodeFunction, build_functions, random_number, random_string
from loco_ws.sandbox import Sandbox
from loco_ws.schema import FunctionDefinition


def test_random_number_bounds() -> None:
    """Return integers within inclusive bounds."""
    values = {random_number(1, 3) for _ in range(200)}

    assert values <= {1, 2, 3}
    assert random_number(5, 5) == 5


@pytest.mark.parametrize('length', (0, 1, 16))
def test_random_string_length(length: int) -> None:
    """Return alphanumeric strings of the requested length."""
    value = random_string(length)

    assert len(value) == length
    assert value.isalnum() or not value


def test_builtin_functions_in_templates() -> None:
    """Call builtin functions from templates."""
    context = TemplateContext(funcs=BUILTIN_FUNCTIONS)

    assert len(context.resolve('{{ $randomString(8) }}')) == 8
    assert context.resolve('{{ $randomNumber(7, 7) }}') == '7'


def test_code_function_binds_parameters() -> None:
    """Bind positional arguments to declared parameters."""
    definition = FunctionDefinition(params=['prefix', 'number'], code='f"{prefix}-{number * 2}"')
    function = CodeFunction('tag', definition, Sandbox())

    assert function('id', 21) == 'id-42'


def test_code_function_missing_and_extra_arguments() -> None:
    """Bind missing parameters to None and expose all arguments."""
    definition = FunctionDefinition(params=['first', 'second'], code='(first, second, len(args))')
    function = CodeFunction('inspect', definition, Sandbox())

    assert function(1) == (1, None, 1)
    assert function(1, 2, 3) == (1, 2, 3)


def test_code_function_syntax_error() -> None:
    """Reject code functions with invalid syntax at construction."""
    definition = FunctionDefinition(code='def (')

    with pytest.raises(SandboxError):
        CodeFunction('broken', definition, Sandbox())


def test_build_functions_without_definitions() -> None:
    """Return the builtin functions when nothing is declared."""
    functions = build_functions({})

    assert functions == BUILTIN_FUNCTIONS
    assert functions is not BUILTIN_FUNCTIONS


def test_build_functions_with_code() -> None:
    """Add declared code functions to the builtin ones."""
    functions = build_functions(
        {'double': FunctionDefinition(params=['value'], code='value * 2')},
        Sandbox(),
    )

    assert set(functions) == {*BUILTIN_FUNCTIONS, 'double'}
    assert TemplateContext(funcs=functions).resolve('{{ $double(21) }}') == '42'


def test_build_functions_requires_sandbox() -> None:
    """Reject declared code functions when code evaluation is not allowed."""
    with pytest.raises(ScenarioSchemaError, match='code evaluation is not allowed'):
        build_functions({'double': FunctionDefinition(code='1')})


def test_build_functions_invalid_code() -> None:
    """Report the name of a function with invalid code."""
    with pytest.raises(ScenarioSchemaError, match="Invalid code of function 'broken'"):
        build_functions({'broken': FunctionDefinition(code='def (')}, Sandbox())
