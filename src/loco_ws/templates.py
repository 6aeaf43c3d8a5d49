"""Template resolution for scenario payloads.

A template value is either a literal, a string with `{{ name }}`
interpolation markers, a string holding a `{{ $name(args) }}` function
call, or a nested container of those. Resolution happens just before a
step uses the value and is never cached, since variables may change
between steps of the same session.
"""

import ast
import logging
from functools import partial
from typing import TYPE_CHECKING, NamedTuple

from loco_ws.errors import TemplateError, TemplateSyntaxError
from loco_ws.lookups import VariableLookup
from loco_ws.names import FUNCTION_CALL_PATTERN, INTERPOLATION_PATTERN
from loco_ws.values import MAPPINGS, SEQUENCES, stringify, traverse

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from re import Match
    from typing import Protocol

    from loco_ws.values import RuntimeValue

    class Bindings(Protocol):
        """Anything exposing template variables and functions."""

        vars: Mapping[str, RuntimeValue]
        funcs: Mapping[str, Callable[..., RuntimeValue]]

logger = logging.getLogger(__name__)

#: Bare names accepted as literal function arguments.
_LITERAL_NAMES = {
    'true': True,
    'false': False,
    'null': None,
    'True': True,
    'False': False,
    'None': None,
}


class FunctionCall(NamedTuple):
    """Parsed function-call marker."""

    name: str
    args: tuple['RuntimeValue', ...]


def resolve(value: 'RuntimeValue', context: 'Bindings') -> 'RuntimeValue':
    """Resolve a template value against a context.

    Containers are rebuilt with every string leaf resolved; other leaves
    pass through unchanged.

    Args:
        value: Template value of any shape.
        context: Variables and functions available to templates.

    Returns:
        The resolved value.

    Raises:
        TemplateSyntaxError: If a function-call marker can not be parsed.
        Any exception raised by a bound function.
    """
    if isinstance(value, str):
        return resolve_string(value, context)

    if isinstance(value, (*MAPPINGS, *SEQUENCES)):
        return traverse(value, partial(_resolve_leaf, context=context))

    return value


def _resolve_leaf(value: 'RuntimeValue', context: 'Bindings') -> 'RuntimeValue':
    if isinstance(value, str):
        return resolve_string(value, context)

    return value


def resolve_string(text: str, context: 'Bindings') -> str:
    """Resolve a single template string.

    A function-call marker takes precedence over interpolation. The
    first call found is evaluated, its text result is spliced in place
    of the marker and the whole string is resolved again, so functions
    may produce further templates. Calls to unbound functions and calls
    with non-literal arguments stop resolution: the string is returned
    as it stands, including any markers after that call.

    Args:
        text: Template string.
        context: Variables and functions available to templates.

    Returns:
        The resolved string.

    Raises:
        TemplateSyntaxError: If a function-call marker can not be parsed.
    """
    match = FUNCTION_CALL_PATTERN.search(text)
    if not match:
        return interpolate(text, context.vars)

    try:
        call = parse_call(match.group('call'))

    except TemplateSyntaxError:
        raise

    except TemplateError as error:
        logger.warning('Template %r left unresolved: %s', text, error.message)
        return text

    if call is None:
        return interpolate(text, context.vars)

    function = context.funcs.get(call.name)
    if function is None:
        # NOTE: Unlike unbound variables, unbound functions keep the marker.
        logger.debug('Function %r is not bound, template left unresolved', call.name)
        return text

    result = stringify(function(*call.args))

    return resolve_string(_splice(text, match, result), context)


def _splice(text: str, match: 'Match[str]', replacement: str) -> str:
    return f'{text[:match.start()]}{replacement}{text[match.end():]}'


def parse_call(expression: str) -> FunctionCall | None:
    """Parse a function-call expression without its `$` prefix.

    Args:
        expression: Expression text such as `randomString(5)`.

    Returns:
        Parsed call, or `None` if the expression is valid syntax but
        not a single call of a plain function name.

    Raises:
        TemplateSyntaxError: If the expression is not valid syntax.
        TemplateError: If any argument is not a literal value.
    """
    try:
        tree = ast.parse(expression.strip(), filename='<template>', mode='eval')
    except SyntaxError as base:
        raise TemplateSyntaxError(f'Invalid function call {expression!r}') from base

    match tree.body:
        case ast.Call(func=ast.Name(id=name), args=args, keywords=[]):
            return FunctionCall(name, tuple(_literal(arg) for arg in args))
        case ast.Call(func=ast.Name(id=name)):
            raise TemplateError(f'Function {name!r} does not accept keyword arguments')

    return None


def _literal(node: ast.expr) -> 'RuntimeValue':  # noqa: PLR0911
    """Extract the value of a literal argument node.

    Raises:
        TemplateError: If the node is not a simple literal.
    """
    match node:
        case ast.Constant(value=bool() | None as value):
            return value
        case ast.Constant(value=str() | int() | float() as value):
            return value
        case ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=int() | float() as value)):
            return -value
        case ast.UnaryOp(op=ast.UAdd(), operand=ast.Constant(value=int() | float() as value)):
            return value
        case ast.Name(id=name) if name in _LITERAL_NAMES:
            return _LITERAL_NAMES[name]

    raise TemplateError(f'Function argument {ast.unparse(node)!r} is not a literal')


def interpolate(text: str, variables: 'Mapping[str, RuntimeValue]') -> str:
    """Substitute every `{{ path }}` marker with a variable value.

    Unbound variables and markers that are not valid variable paths
    render as empty strings.

    Args:
        text: Template string.
        variables: Template variables.

    Returns:
        The interpolated string.
    """
    return INTERPOLATION_PATTERN.sub(
        lambda match: stringify(lookup(variables, match.group('path'))),
        text,
    )


def lookup(variables: 'Mapping[str, RuntimeValue]', path: str) -> 'RuntimeValue':
    """Look up a dotted variable path, returning `None` when unbound."""
    try:
        resolver = VariableLookup(path)
    except TemplateError:
        return None

    return resolver(variables)
