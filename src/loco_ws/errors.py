"""Core exception hierarchy.

This module defines the error types used across the engine to report
scenario document problems, template and sandbox configuration errors,
and session failures in a structured and extensible way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import safe_dump
from yaml.error import MarkedYAMLError

from loco_ws.values import SCALARS, traverse

if TYPE_CHECKING:
    from typing import Self

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails, ValidationError

#: Placeholder rendered instead of objects that have no YAML form.
OPAQUE_PLACEHOLDER = '<runtime object>'
#: Source name used when an error has no file attached.
UNKNOWN_SOURCE = '<unicode string>'

FORMAT_INDENT = 4
SNIPPET_INDENT = 2


class ErrorContext(TypedDict, total=False):
    """Details attached to an error for display.

    Every key is optional. Positions are zero-based and rendered
    one-based.
    """

    filename: str | None
    line_num: int | None
    column_num: int | None

    #: Position of the failing scenario step.
    step_num: int | None

    #: Underlying exception; YAML errors provide their own snippet.
    error: Exception | None

    #: Template variables at the moment of failure.
    context: dict[str, Any] | None
    #: Scenario element that failed.
    element: Any


class ErrorFormatter:
    """Renders error messages with a location line and a YAML snippet.

    A formatted message looks like::

        Send step requires an open connection
            in "scenario.yaml"
            on step 2
                ...
                vars:
                  name: Alice
                ---
                send: hello
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Append location and snippet blocks to a message."""
        if not context:
            return message

        blocks = (
            cls.location(context),
            cls.snippet(context),
        )

        return linesep.join((message, *(
            _indent(block, FORMAT_INDENT * depth)
            for depth, block in enumerate(blocks, start=1)
            if block
        )))

    @staticmethod
    def location(context: ErrorContext) -> str:
        """Describe where the error happened.

        Returns:
            The source name with line and column when known, followed by
            the step number when the error is bound to a step.
        """
        where = f'in "{context.get('filename') or UNKNOWN_SOURCE}"'
        if (line_num := context.get('line_num')) is not None:
            where += f', line {line_num + 1}'
            if (column_num := context.get('column_num')) is not None:
                where += f', column {column_num + 1}'

        lines = [where]
        if (step_num := context.get('step_num')) is not None:
            lines.append(f'on step {step_num + 1}')

        return linesep.join(lines)

    @classmethod
    def snippet(cls, context: ErrorContext) -> str:
        """Render the failing element, or the YAML source excerpt.

        Returns:
            The snippet text, or an empty string when nothing can be shown.
        """
        if isinstance(error := context.get('error'), MarkedYAMLError):
            mark = error.problem_mark or error.context_mark
            return (mark.get_snippet(indent=0) if mark else None) or ''

        element = context.get('element')
        if not element:
            return ''

        parts = ['...']
        if variables := context.get('context'):
            parts += [cls.to_yaml({'vars': variables}), '---']
        parts.append(cls.to_yaml(element))

        return linesep.join(parts)

    @staticmethod
    def to_yaml(value: Any) -> str:  # noqa: ANN401
        """Dump a value as block YAML, masking opaque objects."""
        data = safe_dump(
            traverse(value, _mask_opaque),
            indent=SNIPPET_INDENT,
            sort_keys=False,
        )

        return data.rstrip()


def _mask_opaque(value: Any) -> Any:  # noqa: ANN401
    if value is None or isinstance(value, SCALARS):
        return value

    return OPAQUE_PLACEHOLDER


def _indent(text: str, width: int) -> str:
    """Indent every non-blank line of a text block."""
    prefix = ' ' * width

    return linesep.join(
        f'{prefix}{line}'
        for line in text.splitlines()
        if line.strip()
    )


class LocoError(Exception, ErrorFormatter):
    """Base exception for all loco-ws errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional runtime values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)


class ScenarioSchemaError(LocoError):
    """Error raised when a scenario document is invalid.

    Covers YAML syntax problems as well as structural violations
    reported by model validation.
    """

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError, *,
                        filename: str | None = None) -> 'Self':
        """Create a schema error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Optional override of the source file name.

        Returns:
            ScenarioSchemaError with the position of the problem.
        """
        mark = error.problem_mark or error.context_mark
        error_context = ErrorContext(
            filename=filename or (mark.name if mark else None),
            line_num=mark.line if mark else None,
            column_num=mark.column if mark else None,
            error=error,
        )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error.problem}'

        return cls(message, context=error_context)

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None) -> 'Self':
        """Create a schema error from a validation failure.

        The most specific failing element is located by walking the
        first error location path. When the path enters the `scenario`
        list, the step number is reported as well.

        Args:
            error: ValidationError raised by pydantic.
            data: Document data that failed validation.
            filename: Name of the source file.

        Returns:
            ScenarioSchemaError representing the validation failure.
        """
        error_context = ErrorContext(
            filename=filename,
            error=error,
            element=data,
        )

        if not data or not isinstance(data, dict):
            return cls('Type validation error', context=error_context)

        for item in error.errors(include_url=False, include_input=False):
            if located := cls._locate_pydantic_context(data, item):
                message, value, step_num = located
                return cls(message, context=ErrorContext({
                    **error_context,
                    'element': value,
                    'step_num': step_num,
                }))

        return cls('Validation error', context=error_context)

    @classmethod
    def _locate_pydantic_context(cls, value: Any,  # noqa: ANN401
                                 error: 'ErrorDetails') -> tuple[str, Any, int | None] | None:
        """Locate the failing element in validated data.

        Args:
            value: Root data structure being validated.
            error: Pydantic error details including location path.

        Returns:
            A tuple of (message, extracted element, step number) if a
            relevant context can be located, otherwise None.
        """
        container = last_item = value
        last_key: int | str | None = None
        step_num: int | None = None

        for key in error['loc']:
            if isinstance(last_item, (list, tuple)):
                if isinstance(key, int) and 0 <= key < len(last_item):
                    if last_key == 'scenario':
                        step_num = key
                    container = last_item
                    last_item = last_item[key]
                    last_key = key
            elif isinstance(last_item, dict):
                if key in last_item:
                    container = last_item
                    last_item = last_item[key]
                    last_key = key
            else:
                break

        message = next((
            line.strip()
            for line in (error.get('msg') or '').splitlines()
            if line.strip()
        ), None)
        if not message:
            return None

        if isinstance(container, (list, tuple)):
            return message, [last_item], step_num
        if isinstance(container, dict) and last_key is not None:
            return message, {last_key: last_item}, step_num

        return message, last_item, step_num


class TemplateError(LocoError):
    """Error raised for template configuration problems.

    Non-literal function arguments are reported with this error inside
    the resolver, which then leaves the template unresolved.
    """


class TemplateSyntaxError(TemplateError):
    """Error raised when a function-call marker cannot be parsed.

    Unlike other template errors, a parser failure is fatal to the
    resolution call.
    """


class SandboxError(LocoError):
    """Error raised when sandboxed code fails to compile or run."""


class SessionError(LocoError):
    """Base error for failures that abort a session run."""


class ConnectError(SessionError):
    """Error raised when the connection cannot be opened."""

    def __init__(self, message: str, *, code: str | None = None,
                 context: ErrorContext | None = None) -> None:
        """Initialize a connection error.

        Args:
            message: Human-readable error description.
            code: Short failure code reported by the transport.
            context: Error context containing optional runtime values.
        """
        self.code = code

        super().__init__(message, context=context)


class SendError(SessionError):
    """Error raised when a message write fails."""


class ConnectionMissingError(SessionError):
    """Error raised when a send step runs before any connection exists."""


class SessionRuntimeError(SessionError):
    """Error raised when a step fails with an unexpected exception."""
