"""Pattern catalog models.

A pattern catalog entry (a *file type*) describes how statements are
recognized in one documentation format: which file extensions it covers,
which regular expressions mark test boundaries, ignore regions and explicit
steps, and which prose phrasing is turned into steps by markup rules.

Pattern strings are plain regular expressions; the first capturing group
is treated as the statement content.
"""

from re import compile as regexp
from re import error as RegexError  # noqa: N812
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, field_validator

from docprobe.builtins.file_types import FILE_TYPES
from docprobe.errors import CatalogError
from docprobe.models import SchemaModel
from docprobe.names import Name  # noqa: TC001
from docprobe.values import Value  # noqa: TC001

#: Boundary categories in the order they are scanned.
STATEMENT_TYPES = ('testStart', 'testEnd', 'ignoreStart', 'ignoreEnd', 'step')


def ensure_list(value: Any) -> Any:  # noqa: ANN401
    """Coerce a single string into a one-element list."""
    if isinstance(value, str):
        return [value]

    return value


def check_patterns(patterns: list[str]) -> list[str]:
    """Check that every pattern is a valid regular expression.

    Args:
        patterns: Pattern strings.

    Returns:
        The same patterns.

    Raises:
        ValueError: If a pattern can not be compiled.
    """
    for pattern in patterns:
        try:
            regexp(pattern)
        except RegexError as base:
            raise ValueError(f'Invalid pattern {pattern!r}: {base}') from base

    return patterns


#: List of regular expressions, a single string is accepted.
Patterns = Annotated[list[str], BeforeValidator(ensure_list)]

#: Action template: a bare action name or a structured step template.
ActionTemplate = str | dict[str, Value]


class InlineStatements(SchemaModel):
    """Patterns for explicit statements embedded in a document."""

    test_start: Patterns = Field(
        default_factory=list,
        title='Test start patterns',
        description=(
            'Patterns opening a test. The first group holds a JSON or YAML '
            'test object.'
        ),
    )

    test_end: Patterns = Field(
        default_factory=list,
        title='Test end patterns',
        description='Patterns closing the current test.',
    )

    ignore_start: Patterns = Field(
        default_factory=list,
        title='Ignore start patterns',
        description='Patterns opening a region whose steps are not assembled.',
    )

    ignore_end: Patterns = Field(
        default_factory=list,
        title='Ignore end patterns',
        description='Patterns closing an ignore region.',
    )

    step: Patterns = Field(
        default_factory=list,
        title='Step patterns',
        description=(
            'Patterns declaring a step. The first group holds a JSON or YAML '
            'step object.'
        ),
    )

    @field_validator('test_start', 'test_end', 'ignore_start', 'ignore_end', 'step')
    @classmethod
    def validate_patterns(cls, patterns: list[str]) -> list[str]:
        """Reject patterns which are not valid regular expressions."""
        return check_patterns(patterns)

    def patterns(self, statement_type: str) -> list[str]:
        """Return patterns of a boundary category by its statement type name."""
        return {
            'testStart': self.test_start,
            'testEnd': self.test_end,
            'ignoreStart': self.ignore_start,
            'ignoreEnd': self.ignore_end,
            'step': self.step,
        }[statement_type]


class MarkupRule(SchemaModel):
    """Prose phrasing mapped to step actions.

    Every match of a rule pattern produces one step per action template.
    """

    name: Name = Field(
        title='Rule name',
        description='Name of the rule. Overrides a rule of an extended file type.',
    )

    patterns: Patterns = Field(
        alias='regex',
        default_factory=list,
        title='Rule patterns',
        description='Regular expressions recognizing the phrasing.',
    )

    actions: list[ActionTemplate] = Field(
        default_factory=list,
        title='Action templates',
        description=(
            'Bare action names receive the first captured group. '
            'Structured templates may reference captured groups '
            'with `$<index>` tokens.'
        ),
    )

    batch_matches: bool = Field(
        default=False,
        title='Batch matches',
        description=(
            'Merge all matches of one pattern into a single statement '
            'positioned at the earliest match.'
        ),
    )

    @field_validator('patterns')
    @classmethod
    def validate_patterns(cls, patterns: list[str]) -> list[str]:
        """Reject patterns which are not valid regular expressions."""
        return check_patterns(patterns)


class FileType(SchemaModel):
    """Pattern catalog entry for one documentation format."""

    name: Name | None = Field(
        default=None,
        title='File type name',
        description=(
            'Name of the documentation format. '
            'Defaults to the name of the extended file type.'
        ),
    )

    extensions: Patterns = Field(
        default_factory=list,
        title='File extensions',
        description='File extensions (without a leading dot) of the format.',
    )

    inline_statements: InlineStatements = Field(
        default_factory=InlineStatements,
        title='Inline statements',
        description='Patterns of explicit test, ignore and step statements.',
    )

    markup: list[MarkupRule] = Field(
        default_factory=list,
        title='Markup rules',
        description='Rules detecting steps from prose.',
    )

    run_shell: str | dict[str, Value] | None = Field(
        default=None,
        title='Run shell template',
        description=(
            'Treat matching files as executables: each file becomes a single '
            'test with this `runShell` step, `$1` is replaced by the file path.'
        ),
    )

    extends: str | None = Field(
        default=None,
        title='Extended file type',
        description='Name of a built-in file type to merge into this one.',
    )

    @field_validator('extensions')
    @classmethod
    def strip_dots(cls, extensions: list[str]) -> list[str]:
        """Drop leading dots from extensions."""
        return [extension.lstrip('.') for extension in extensions]

    def accepts(self, extension: str) -> bool:
        """Check whether a file extension belongs to this format.

        Args:
            extension: File extension with or without a leading dot.

        Returns:
            True if the extension is listed.
        """
        return extension.lstrip('.') in self.extensions


def get_file_type(name: str) -> FileType:
    """Return a built-in file type by its key.

    Args:
        name: Versioned key (`markdown_1_0`) or keyword (`markdown`) of the entry.

    Returns:
        A validated file type.

    Raises:
        CatalogError: If no built-in entry has this key.
    """
    if name not in FILE_TYPES:
        raise CatalogError(f'{name!r} is not a valid file type')

    return FileType.model_validate(FILE_TYPES[name])


def extend_file_type(file_type: FileType) -> FileType:
    """Merge a file type with the built-in entry it extends.

    Extensions and inline statement patterns are unioned (base first).
    Markup rules of the base are appended unless the file type declares
    a rule with the same name.

    Args:
        file_type: File type with an `extends` key.

    Returns:
        The merged file type, or the file type itself when it extends nothing.

    Raises:
        CatalogError: If the extended entry is unknown.
    """
    if not file_type.extends:
        return file_type

    base = get_file_type(file_type.extends)

    statements = {
        statement_type: list(dict.fromkeys((
            *base.inline_statements.patterns(statement_type),
            *file_type.inline_statements.patterns(statement_type),
        )))
        for statement_type in STATEMENT_TYPES
    }

    names = {rule.name for rule in file_type.markup}
    markup = [
        *file_type.markup,
        *(rule for rule in base.markup if rule.name not in names),
    ]

    return file_type.model_copy(update={
        'name': file_type.name or base.name,
        'extensions': list(dict.fromkeys((*base.extensions, *file_type.extensions))),
        'inline_statements': InlineStatements.model_validate(statements),
        'markup': markup,
    })
