"""Tests for template and session contexts."""

from loco_ws.context import SessionContext, TemplateContext


def test_template_context_copies_bindings() -> None:
    """Keep own copies of the given variables and functions."""
    variables = {'name': 'Alice'}
    funcs = {'upper': str.upper}

    context = TemplateContext(variables, funcs)
    context.vars['name'] = 'Bob'
    context.funcs.clear()

    assert variables == {'name': 'Alice'}
    assert funcs == {'upper': str.upper}


def test_template_context_defaults() -> None:
    """Start without variables and functions."""
    context = TemplateContext()

    assert context.vars == {}
    assert context.funcs == {}
    assert context.resolve('hello {{name}}') == 'hello '


def test_session_context_defaults() -> None:
    """Start disconnected with zeroed counters."""
    context = SessionContext({'name': 'Alice'})

    assert context.connection is None
    assert context.pending_requests == 0
    assert context.success_count == 0
    assert context.resolve('hello {{name}}') == 'hello Alice'
    assert repr(context) == (
        'SessionContext(connected=False, pending_requests=0, success_count=0)'
    )
