"""Runtime contexts for template resolution and session state.

This module defines the template bindings object used by the resolver
and the mutable per-session context threaded through every step.
"""

from typing import TYPE_CHECKING

from loco_ws.templates import resolve

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from loco_ws.transport import Connection
    from loco_ws.values import RuntimeValue

#: Named host computation callable from templates.
type FunctionBinding = Callable[..., RuntimeValue]


class TemplateContext:
    """Variables and functions available to templates.

    Resolution reads the bindings at call time, so updates made between
    two steps are visible to the second one.
    """

    def __init__(self, vars: 'Mapping[str, RuntimeValue] | None' = None,  # noqa: A002
                 funcs: 'Mapping[str, FunctionBinding] | None' = None) -> None:
        """Initialize template bindings.

        Args:
            vars: Template variables.
            funcs: Template functions by name, without the `$` prefix.
        """
        self.vars: dict[str, RuntimeValue] = dict(vars or {})
        self.funcs: dict[str, FunctionBinding] = dict(funcs or {})

    def resolve(self, value: 'RuntimeValue') -> 'RuntimeValue':
        """Resolve a template value against these bindings.

        Args:
            value: A template value to resolve.

        Returns:
            The resolved value.

        Raises:
            TemplateSyntaxError: If a function-call marker can not be parsed.
            Any exception raised by bound functions.
        """
        return resolve(value, self)


class SessionContext(TemplateContext):
    """Mutable state of a single session run.

    Holds the connection handle (absent until established), the number
    of steps still expected to produce traffic, the number of successful
    sends and the template bindings. A context is created fresh for each
    run and owned by that run only.
    """

    def __init__(self, vars: 'Mapping[str, RuntimeValue] | None' = None,  # noqa: A002
                 funcs: 'Mapping[str, FunctionBinding] | None' = None, *,
                 connection: 'Connection | None' = None) -> None:
        """Initialize a session context.

        Args:
            vars: Template variables.
            funcs: Template functions by name.
            connection: Connection established outside the session.
        """
        super().__init__(vars, funcs)

        self.connection = connection
        self.pending_requests = 0
        self.success_count = 0

    def __repr__(self) -> str:
        """Short representation for logs."""
        return (
            f'{type(self).__name__}('
            f'connected={self.connection is not None}, '
            f'pending_requests={self.pending_requests}, '
            f'success_count={self.success_count})'
        )
