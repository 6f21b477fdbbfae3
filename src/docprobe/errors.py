"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report catalog problems, statement parsing and validation failures,
legacy migration failures and description loading errors in a structured
and extensible way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump

from docprobe.values import MAPPINGS, SCALARS, SEQUENCES

if TYPE_CHECKING:
    from typing import Self

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Line number in the source file (zero based).
    line_num: int | None
    #: Column number in the source file (zero based).
    column_num: int | None

    #: Type of the statement being processed.
    statement: str | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting errors.

    This formatter is responsible for producing human-readable
    error messages with optional source location and YAML-based
    snippets of the failing element.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line,
            column and statement type when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        if not filename:
            filename = FORMAT_FILENAME

        message = f'{indent}in "{filename}"'
        if (line_num := context.get('line_num')) is not None:
            line_num += 1
            message += f', line {line_num}'
            if (column_num := context.get('column_num')) is not None:
                column_num += 1
                message += f', column {column_num}'
        message += linesep

        if statement := context.get('statement'):
            message += f'{indent}on {statement} statement{linesep}'

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the failing element.

        Args:
            context: Error context containing element data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (element := context.get('element')) is None:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, MAPPINGS):
            return {
                key: cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [cls._filter_unsafe(item) for item in value]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class StatementWarning(UserWarning):
    """Warning emitted for non-fatal statement issues.

    Used when a statement cannot be parsed or validated and is dropped
    while the rest of the document keeps being assembled.
    """


class DocprobeError(Exception, ErrorFormatter):
    """Base exception for all docprobe errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location and data.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)


class CatalogError(DocprobeError):
    """Error raised for an invalid pattern catalog.

    Raised when a file type references an unknown built-in entry or
    declares a pattern which is not a valid regular expression.
    """


class StatementError(DocprobeError):
    """Error raised when a statement can not be turned into a test or step.

    In the default (relaxed) mode this error is converted into
    a `StatementWarning` and the statement is dropped.
    """

    @classmethod
    def from_position(cls, message: str, *,  # noqa: PLR0913
                      content: str | None = None,
                      position: int | None = None,
                      filename: str | None = None,
                      statement: str | None = None,
                      element: Any = None,  # noqa: ANN401
                      error: Exception | None = None) -> 'Self':
        """Create a statement error located by a text offset.

        Args:
            message: Human-readable error message.
            content: Source text the position refers to.
            position: Offset of the statement in the source text.
            filename: Name of the source file.
            statement: Type of the statement.
            element: Parsed statement payload.
            error: Optional underlying exception.

        Returns:
            An initialized error with location context.
        """
        error_context = ErrorContext(
            filename=filename,
            statement=statement,
            element=element,
            error=error,
        )

        if content is not None and position is not None:
            head = content[:position]
            error_context['line_num'] = head.count('\n')
            error_context['column_num'] = position - (head.rfind('\n') + 1)

        return cls(message, context=error_context)


class MigrationError(DocprobeError):
    """Error raised when a legacy test object can not be migrated.

    Migration failures indicate a mismatch between content and the
    migrator and abort processing of the containing document.
    """


class DescriptionError(DocprobeError):
    """Error raised when an API description can not be loaded.

    The resolver catches this error, logs it and drops the description.
    """
