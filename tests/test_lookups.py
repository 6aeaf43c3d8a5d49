"""Tests for dotted-path variable lookups."""

from typing import Any

import pytest

from loco_ws.errors import TemplateError
from loco_ws.lookups import VariableLookup


@pytest.mark.parametrize('path, variables, expected', (
    pytest.param(
        'simpleVar',
        {'simpleVar': 42},
        42,
        id='simple name',
    ),
    pytest.param(
        'objVar.field',
        {'objVar': {'field': 42}},
        42,
        id='dotted path on mapping',
    ),
    pytest.param(
        'objVar.lstField.1.field',
        {'objVar': {'lstField': ['ignore this', {'field': 42}]}},
        42,
        id='dotted path on sequence',
    ),
    pytest.param(
        '  padded  ',
        {'padded': 'value'},
        'value',
        id='surrounding whitespace',
    ),
))
def test_defined_variable_lookup(path: str, variables: dict[str, Any],
                                 expected: Any) -> None:
    """Resolve a variable using a dotted path."""
    resolver = VariableLookup(path)

    assert resolver(variables) == expected


@pytest.mark.parametrize('path', (
    pytest.param('_var', id='start with underscore'),
    pytest.param('0var', id='start with digit'),
    pytest.param('obj.lst..1', id='empty segment'),
    pytest.param('$func()', id='function call'),
    pytest.param('', id='empty'),
))
def test_invalid_path_variable_lookup(path: str) -> None:
    """Reject paths that are not dotted variable paths."""
    with pytest.raises(TemplateError, match=r'^Invalid variable path'):
        VariableLookup(path)


@pytest.mark.parametrize('path, variables', (
    pytest.param('missing', {}, id='unbound name'),
    pytest.param('obj.lst.1.var', {'obj': {'lst': ['ignore this']}}, id='index out of range'),
    pytest.param('obj.var.field', {'obj': 42}, id='scalar container'),
    pytest.param('obj.key', {'obj': ['a', 'b']}, id='key on sequence'),
    pytest.param('obj.none.field', {'obj': {'none': None}}, id='none in path'),
))
def test_undefined_variable_lookup(path: str, variables: dict[str, Any]) -> None:
    """Resolve missing values to None instead of raising."""
    resolver = VariableLookup(path)

    assert resolver(variables) is None
