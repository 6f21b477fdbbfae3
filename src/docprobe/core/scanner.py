"""Statement scanning.

This module applies the patterns of a pattern catalog entry to document
text and produces a flat, position-ordered stream of typed matches.

Boundary categories are scanned first, in the order of
`STATEMENT_TYPES`; markup rules follow when step detection is enabled.
The resulting stream is stable-sorted by position, so matches sharing
a position keep their category precedence.
"""

from os import linesep
from re import compile as regexp
from re import error as RegexError  # noqa: N812
from typing import TYPE_CHECKING, Literal

from pydantic import Field

from docprobe.errors import CatalogError
from docprobe.models import SchemaModel
from docprobe.schema.catalog import STATEMENT_TYPES, MarkupRule

if TYPE_CHECKING:
    from re import Match as RegexMatch
    from re import Pattern

    from docprobe.schema.catalog import FileType

#: Statement types produced by the scanner.
type MatchType = Literal['testStart', 'testEnd', 'ignoreStart', 'ignoreEnd', 'step', 'detectedStep']


class Match(SchemaModel):
    """Positioned, typed result of applying one pattern to a document."""

    type: MatchType = Field(
        title='Statement type',
    )

    captures: tuple[str | None, ...] = Field(
        title='Captures',
        description=(
            'Whole match followed by the captured groups. '
            'Groups which did not participate are `None`.'
        ),
    )

    position: int = Field(
        title='Sort position',
        description='Offset of the statement in the document text.',
    )

    markup: MarkupRule | None = Field(
        default=None,
        title='Markup rule',
        description='Rule which detected the statement.',
    )

    @property
    def content(self) -> str:
        """Statement content: the first captured group or the whole match."""
        if len(self.captures) > 1 and self.captures[1]:
            return self.captures[1]

        return self.captures[0] or ''


def compile_patterns(patterns: list[str]) -> list['Pattern[str]']:
    """Compile catalog patterns.

    Raises:
        CatalogError: If a pattern is not a valid regular expression.
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(regexp(pattern))
        except RegexError as base:
            raise CatalogError(f'Invalid pattern {pattern!r}: {base}') from base

    return compiled


def get_position(match: 'RegexMatch[str]') -> int:
    """Sort position of a regular expression match.

    The end offset when the first group participated in the match,
    otherwise the start offset.
    """
    if match.re.groups and match.group(1) is not None:
        return match.end()

    return match.start()


def get_captures(match: 'RegexMatch[str]') -> tuple[str | None, ...]:
    """Whole match followed by all groups."""
    return (match.group(0), *match.groups())


class StatementScanner:
    """Statement scanner for one pattern catalog entry.

    Patterns are compiled once, so a scanner may be reused for every
    document of the same format.
    """

    def __init__(self, file_type: 'FileType', *, detect_steps: bool = True) -> None:
        """Initialize the scanner.

        Args:
            file_type: Pattern catalog entry of the document format.
            detect_steps: Whether markup rules are applied.

        Raises:
            CatalogError: If a pattern is not a valid regular expression.
        """
        self.file_type = file_type
        self.detect_steps = detect_steps

        self.statements = {
            statement_type: compile_patterns(
                file_type.inline_statements.patterns(statement_type),
            )
            for statement_type in STATEMENT_TYPES
        }

        self.markup = [
            (rule, compile_patterns(rule.patterns))
            for rule in file_type.markup
        ]

    def scan(self, content: str) -> list[Match]:
        """Scan a document.

        Args:
            content: Document text.

        Returns:
            Matches in ascending position order.
        """
        matches = self.scan_statements(content)
        if self.detect_steps:
            matches.extend(self.scan_markup(content))

        return sorted(matches, key=lambda match: match.position)

    def scan_statements(self, content: str) -> list[Match]:
        """Apply boundary and step patterns to a document."""
        matches = []

        for statement_type, patterns in self.statements.items():
            for pattern in patterns:
                matches.extend(
                    Match(
                        type=statement_type,
                        captures=get_captures(match),
                        position=get_position(match),
                    )
                    for match in pattern.finditer(content)
                )

        return matches

    def scan_markup(self, content: str) -> list[Match]:
        """Apply markup rules to a document.

        A batching rule merges all matches of one pattern into a single
        statement positioned at the earliest match start.
        """
        matches = []

        for rule, patterns in self.markup:
            for pattern in patterns:
                found = list(pattern.finditer(content))
                if not found:
                    continue

                if rule.batch_matches:
                    merged = linesep.join(
                        match.group(1) if pattern.groups and match.group(1) else match.group(0)
                        for match in found
                    )
                    matches.append(Match(
                        type='detectedStep',
                        captures=(None, merged),
                        position=min(match.start() for match in found),
                        markup=rule,
                    ))
                    continue

                matches.extend(
                    Match(
                        type='detectedStep',
                        captures=get_captures(match),
                        position=get_position(match),
                        markup=rule,
                    )
                    for match in found
                )

        return matches
