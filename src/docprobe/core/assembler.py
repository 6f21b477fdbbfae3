"""Test assembly.

The assembler consumes a position-ordered match stream as a linear state
machine and builds the tests of one document:

- `testStart` opens a test, adopting its `testId` as the current one;
- `testEnd` switches to a fresh test identifier and stops ignoring;
- `ignoreStart` and `ignoreEnd` delimit regions whose steps are skipped;
- `step` appends an explicit step to the current test;
- `detectedStep` turns markup rule matches into steps.

A test is addressed by its identifier, so steps following a boundary
without an explicit test start implicitly create a test, and a test
statement naming an existing test extends it.

Invalid statements are dropped with a `StatementWarning`, or raise
`StatementError` in strict mode. Legacy migration failures always raise.
"""

from logging import getLogger
from typing import TYPE_CHECKING
from warnings import warn

from docprobe.errors import StatementError, StatementWarning
from docprobe.names import ORIGIN_ACTIONS, new_id
from docprobe.values import parse_object

from .migration import is_legacy_test, legacy_to_v3
from .substitution import normalize_step, substitute

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from docprobe.validation import SchemaMigrator, SchemaValidator
    from docprobe.values import Step, Value

    from .scanner import Match

logger = getLogger(__name__)


class AssemblyState:
    """State of one assembly run."""

    def __init__(self, content: str | None = None, filename: str | None = None) -> None:
        """Initialize an empty state.

        Args:
            content: Document text, used to locate statements in messages.
            filename: Document name, used in messages.
        """
        self.content = content
        self.filename = filename

        self.tests: list[dict[str, Value]] = []
        self.current_test_id = new_id()
        self.ignoring = False

    def find_test(self) -> dict[str, 'Value']:
        """Return the current test, creating it when absent."""
        for test in self.tests:
            if test.get('testId') == self.current_test_id:
                return test

        test: dict[str, Value] = {'testId': self.current_test_id, 'steps': []}
        self.tests.append(test)

        return test


class TestAssembler:
    """Build tests from a sorted match stream."""

    __test__ = False

    def __init__(self, validator: 'SchemaValidator', migrator: 'SchemaMigrator', *,
                 origin: str | None = None, strict: bool = False) -> None:
        """Initialize the assembler.

        Args:
            validator: Schema validator for steps and tests.
            migrator: Schema migrator for legacy test statements.
            origin: Base URL attached to detected `goTo` and `checkLink` steps.
            strict: Whether invalid statements raise instead of being dropped.
        """
        self.validator = validator
        self.migrator = migrator
        self.origin = origin
        self.strict_mode = strict

        self.handlers: dict[str, Callable[[AssemblyState, Match], None]] = {
            'testStart': self.on_test_start,
            'testEnd': self.on_test_end,
            'ignoreStart': self.on_ignore_start,
            'ignoreEnd': self.on_ignore_end,
            'step': self.on_step,
            'detectedStep': self.on_detected_step,
        }

    def assemble(self, matches: 'Iterable[Match]', *,
                 content: str | None = None,
                 filename: str | None = None) -> list[dict[str, 'Value']]:
        """Assemble tests from matches.

        Args:
            matches: Matches in ascending position order.
            content: Document text the matches were found in.
            filename: Document name.

        Returns:
            Valid tests in order of appearance.

        Raises:
            StatementError: If a statement is invalid on strict mode.
            MigrationError: If a legacy test statement can not be migrated.
        """
        state = AssemblyState(content, filename)

        for match in matches:
            self.handlers[match.type](state, match)

        tests = []
        for test in state.tests:
            result = self.validator.validate('test_v3', test)
            if not result.valid or result.object is None:
                if error := self.emit_statement_issue(
                    state, f'Test {test.get("testId")!r} is not valid, skipping it',
                    errors=result.errors,
                    element=test,
                ):
                    raise error
                continue
            tests.append(result.object)

        return tests

    def on_test_start(self, state: AssemblyState, match: 'Match') -> None:
        """Open a test, or extend the test with the same identifier."""
        try:
            test = parse_object(match.content)
        except ValueError as base:
            if error := self.emit_statement_issue(
                state, 'Test statement is not valid JSON or YAML, skipping it',
                match=match,
                base=base,
            ):
                raise error from base
            return

        if not isinstance(test, dict):
            logger.debug('Skipping test statement without an object: %r', match.content)
            return

        if is_legacy_test(test):
            test = legacy_to_v3(test, self.migrator)

        if test.get('testId'):
            state.current_test_id = str(test['testId'])

        steps = test.pop('steps', None)

        # same identifier extends the earlier test
        current = state.find_test()
        current.update(test)
        current['testId'] = state.current_test_id

        if isinstance(steps, list):
            for step in steps:
                self.append_step(state, current, step, match)

    def on_test_end(self, state: AssemblyState, match: 'Match') -> None:  # noqa: ARG002
        """Switch to a fresh test identifier."""
        state.current_test_id = new_id()
        state.ignoring = False

    def on_ignore_start(self, state: AssemblyState, match: 'Match') -> None:  # noqa: ARG002
        """Start ignoring steps."""
        state.ignoring = True

    def on_ignore_end(self, state: AssemblyState, match: 'Match') -> None:  # noqa: ARG002
        """Stop ignoring steps."""
        state.ignoring = False

    def on_step(self, state: AssemblyState, match: 'Match') -> None:
        """Append an explicit step to the current test."""
        test = state.find_test()
        if state.ignoring:
            return

        try:
            step = parse_object(match.content)
        except ValueError as base:
            if error := self.emit_statement_issue(
                state, 'Step statement is not valid JSON or YAML, skipping it',
                match=match,
                base=base,
            ):
                raise error from base
            return

        self.append_step(state, test, step, match)

    def on_detected_step(self, state: AssemblyState, match: 'Match') -> None:
        """Append steps detected by a markup rule to the current test."""
        test = state.find_test()
        if state.ignoring or test.get('detectSteps') is False or match.markup is None:
            return

        for action in match.markup.actions:
            if isinstance(action, str):
                if action == 'runCode':
                    continue
                step = self.build_step(action, match.content)
            else:
                step = substitute(action, match.captures)

            if not isinstance(step, dict):
                logger.debug('Skipping %r step with missing captures', match.markup.name)
                continue

            self.append_step(state, test, normalize_step(step), match)

    def build_step(self, action: str, value: str) -> 'Step':
        """Build a step from a bare action name and the detected value."""
        if self.origin and action in ORIGIN_ACTIONS:
            return {action: {'url': value, 'origin': self.origin}}

        return {action: value}

    def append_step(self, state: AssemblyState, test: dict[str, 'Value'],
                    step: 'Value', match: 'Match') -> None:
        """Validate a step and append it to a test.

        Raises:
            StatementError: If the step is invalid on strict mode.
        """
        result = self.validator.validate('step_v3', step)
        if not result.valid or result.object is None:
            if error := self.emit_statement_issue(
                state, 'Step is not valid, skipping it',
                match=match,
                errors=result.errors,
                element=step,
            ):
                raise error
            return

        test['steps'].append(result.object)

    def emit_statement_issue(self, state: AssemblyState, message: str, *,  # noqa: PLR0913
                             match: 'Match | None' = None,
                             errors: list[str] | None = None,
                             element: 'Value' = None,
                             base: Exception | None = None) -> StatementError | None:
        """Emit a statement warning or return the exception.

        Args:
            state: Assembly state.
            message: Issue description.
            match: Offending statement.
            errors: Validation issues.
            element: Offending element.
            base: Underlying exception.

        Returns:
            StatementError on strict mode, otherwise `None`
                with producing a StatementWarning.
        """
        if errors:
            message = f'{message}: {"; ".join(errors)}'

        error = StatementError.from_position(
            message,
            content=state.content,
            position=match.position if match else None,
            filename=state.filename,
            statement=match.type if match else None,
            element=element,
            error=base,
        )

        if self.strict_mode:
            return error

        warn(str(error), category=StatementWarning, stacklevel=3)

        return None
