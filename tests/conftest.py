"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from docprobe.core import StatementScanner, TestAssembler
from docprobe.schema import FileType
from docprobe.schema.catalog import get_file_type
from docprobe.validation import BuiltinMigrator, BuiltinValidator

if TYPE_CHECKING:
    from collections.abc import Callable

    from docprobe.values import Value


@pytest.fixture
def validator() -> BuiltinValidator:
    """Provide the built-in schema validator."""
    return BuiltinValidator()


@pytest.fixture
def migrator(validator: BuiltinValidator) -> BuiltinMigrator:
    """Provide the built-in legacy migrator."""
    return BuiltinMigrator(validator)


@pytest.fixture
def assembler(validator: BuiltinValidator, migrator: BuiltinMigrator) -> TestAssembler:
    """Provide a relaxed test assembler without an origin."""
    return TestAssembler(validator, migrator)


@pytest.fixture
def markdown() -> FileType:
    """Provide the built-in markdown file type."""
    return get_file_type('markdown')


@pytest.fixture
def html() -> FileType:
    """Provide the built-in HTML file type."""
    return get_file_type('html')


@pytest.fixture
def assemble(assembler: TestAssembler) -> 'Callable[..., list[dict[str, Value]]]':
    """Provide a shortcut scanning and assembling a document.

    The returned callable accepts the document text and a file type,
    and optionally a custom assembler and the step detection flag.
    """
    def run(content: str, file_type: FileType, *,
            custom: TestAssembler | None = None,
            detect_steps: bool = True) -> list[dict[str, 'Value']]:
        """Scan and assemble a document.

        Args:
            content: Document text.
            file_type: File type of the document.
            custom: Assembler to use instead of the default one.
            detect_steps: Whether markup rules are applied.

        Returns:
            Assembled tests.
        """
        scanner = StatementScanner(file_type, detect_steps=detect_steps)

        return (custom or assembler).assemble(
            scanner.scan(content),
            content=content,
            filename='document',
        )

    return run
