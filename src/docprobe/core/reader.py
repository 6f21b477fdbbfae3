"""Document reading.

The reader turns input files into raw specs, one spec per file:

- JSON and YAML files hold spec objects, OpenAPI descriptions or Arazzo
  descriptions;
- files handled by a file type with a `runShell` template become a single
  test running the file;
- other files are scanned for statements with their file type patterns.

Files which do not produce a valid spec are logged and skipped.
"""

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from docprobe.names import new_id
from docprobe.validation import BuiltinMigrator, BuiltinValidator
from docprobe.values import parse_object

from .arazzo import is_arazzo, workflow_to_test
from .assembler import TestAssembler
from .migration import is_legacy_test, legacy_to_v3
from .openapi import DESCRIPTION_EXTENSIONS, is_openapi3, openapi_to_spec
from .scanner import StatementScanner
from .substitution import substitute

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docprobe.schema import Config, FileType
    from docprobe.validation import SchemaMigrator, SchemaValidator
    from docprobe.values import Step, Value

logger = getLogger(__name__)


class DocumentReader:
    """Read input files into raw specs."""

    def __init__(self, config: 'Config',
                 validator: 'SchemaValidator | None' = None,
                 migrator: 'SchemaMigrator | None' = None) -> None:
        """Initialize the reader.

        Args:
            config: Configuration providing file types and detection options.
            validator: Schema validator. Defaults to the built-in one.
            migrator: Legacy schema migrator. Defaults to the built-in one.
        """
        self.config = config
        self.validator = validator or BuiltinValidator()
        self.migrator = migrator or BuiltinMigrator(self.validator)

        self.assembler = TestAssembler(
            self.validator,
            self.migrator,
            origin=config.origin,
            strict=config.strict,
        )

    def read_all(self, paths: 'Iterable[Path | str]') -> list[dict[str, 'Value']]:
        """Read files into specs, skipping files without a valid spec."""
        specs = []
        for path in paths:
            if (spec := self.read(path)) is not None:
                specs.append(spec)

        return specs

    def read(self, path: Path | str) -> dict[str, 'Value'] | None:
        """Read a file into a spec.

        Args:
            path: File path.

        Returns:
            The validated spec, or `None` when the file holds no valid spec.

        Raises:
            OSError: If the file can not be read.
            StatementError: If a statement is invalid on strict mode.
            MigrationError: If a legacy test can not be migrated.
        """
        path = Path(path)
        logger.debug('Reading %s', path)

        if path.suffix.lower() in DESCRIPTION_EXTENSIONS:
            return self.read_object(path)

        file_type = self.config.file_type_for(path)
        if file_type is None:
            logger.debug('%s does not match any file type, skipping it', path)
            return None

        if file_type.run_shell is not None:
            return self.read_executable(path, file_type)

        content = path.read_text(encoding='utf-8')
        tests = [
            test for test in self.parse_content(content, file_type, filename=str(path))
            if test.get('steps')
        ]
        if not tests:
            logger.debug('%s has no tests, skipping it', path)
            return None

        return self.validate_spec({
            'specId': new_id(),
            'contentPath': str(path),
            'tests': tests,
        }, path)

    def parse_content(self, content: str, file_type: 'FileType',
                      filename: str | None = None) -> list[dict[str, 'Value']]:
        """Assemble the tests declared in a document.

        Args:
            content: Document text.
            file_type: Pattern catalog entry of the document format.
            filename: Document name, used in messages.

        Returns:
            Valid tests in order of appearance, possibly without steps.
        """
        scanner = StatementScanner(file_type, detect_steps=self.config.detect_steps)

        return self.assembler.assemble(
            scanner.scan(content),
            content=content,
            filename=filename,
        )

    def read_object(self, path: Path) -> dict[str, 'Value'] | None:
        """Read a JSON or YAML file into a spec."""
        try:
            content = parse_object(path.read_text(encoding='utf-8'))
        except ValueError:
            logger.warning('%s is not valid JSON or YAML, skipping it', path)
            return None

        if is_openapi3(content, path):
            return self.validate_spec(openapi_to_spec(content, path), path)

        if is_arazzo(content):
            tests = [
                workflow_to_test(content, workflow.get('workflowId'))
                for workflow in content['workflows']
                if isinstance(workflow, dict)
            ]
            return self.validate_spec({
                'specId': f'arazzo-{path.stem}',
                'contentPath': str(path),
                'tests': [test for test in tests if test],
            }, path)

        if not isinstance(content, dict) or not isinstance(content.get('tests'), list):
            logger.debug('%s is not a test specification, skipping it', path)
            return None

        content.setdefault('contentPath', str(path))
        content['tests'] = [
            legacy_to_v3(test, self.migrator)
            if isinstance(test, dict) and is_legacy_test(test) else test
            for test in content['tests']
        ]

        for test in content['tests']:
            if not isinstance(test, dict):
                continue
            for key in ('before', 'after'):
                if not test.get(key):
                    continue
                if (steps := self.read_setup_steps(path, test[key])) is None:
                    logger.warning('%s references %s %r which has no tests, skipping it',
                                   path, key, test[key])
                    return None
                own = test.get('steps') or []
                test['steps'] = [*steps, *own] if key == 'before' else [*own, *steps]

        return self.validate_spec(content, path)

    def read_setup_steps(self, path: Path, reference: 'Value') -> list['Step'] | None:
        """Read the first test steps of a spec file referenced by `before` or `after`.

        Args:
            path: Path of the referencing spec.
            reference: Spec path, relative to the referencing spec.

        Returns:
            The steps, or `None` when the file can not be read or has no tests.
        """
        location = path.parent / str(reference)

        try:
            content = parse_object(location.read_text(encoding='utf-8'))
        except (OSError, ValueError) as error:
            logger.debug('Can not read %s: %s', location, error)
            return None

        tests = content.get('tests') if isinstance(content, dict) else None
        if not tests or not isinstance(tests[0], dict):
            return None

        return list(tests[0].get('steps') or [])

    def read_executable(self, path: Path, file_type: 'FileType') -> dict[str, 'Value'] | None:
        """Build a spec running an executable file.

        `$1` tokens of the file type `runShell` template are replaced by
        the file path.
        """
        run_shell = substitute(file_type.run_shell, (str(path), str(path)))

        return self.validate_spec({
            'specId': new_id(),
            'contentPath': str(path),
            'tests': [{
                'testId': new_id(),
                'steps': [{'runShell': run_shell}],
            }],
        }, path)

    def validate_spec(self, spec: dict[str, 'Value'], path: Path) -> dict[str, 'Value'] | None:
        """Validate a spec, logging and dropping an invalid one."""
        result = self.validator.validate('spec_v3', spec)
        if not result.valid or result.object is None:
            logger.warning(
                '%s is not a valid test specification, skipping it: %s',
                path, '; '.join(result.errors),
            )
            return None

        return result.object
