"""Tests for legacy schema migration."""

from typing import TYPE_CHECKING

import pytest

from docprobe.core import legacy_to_v3
from docprobe.core.migration import is_legacy_test
from docprobe.errors import MigrationError

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from docprobe.validation import BuiltinMigrator


@pytest.mark.parametrize('test, expected', (
    pytest.param({'id': 'legacy'}, True, id='id'),
    pytest.param({'file': 'doc.md'}, True, id='file'),
    pytest.param({'setup': 'setup.json'}, True, id='setup'),
    pytest.param({'cleanup': 'cleanup.json'}, True, id='cleanup'),
    pytest.param({'testId': 'current'}, False, id='current'),
    pytest.param({'id': ''}, False, id='empty marker'),
))
def test_is_legacy_test(test: dict, expected: bool) -> None:
    """Detect legacy test objects by their marker keys."""
    assert is_legacy_test(test) is expected


def test_migrate_without_steps(migrator: 'BuiltinMigrator') -> None:
    """Migrate a legacy test without leaving the placeholder step behind."""
    legacy = {'id': 'legacy', 'description': 'Old', 'cleanup': 'cleanup.json'}

    migrated = legacy_to_v3(legacy, migrator)

    assert migrated == {
        'testId': 'legacy',
        'description': 'Old',
        'after': 'cleanup.json',
        'steps': [],
    }
    assert legacy == {'id': 'legacy', 'description': 'Old', 'cleanup': 'cleanup.json'}


def test_migrate_with_steps(migrator: 'BuiltinMigrator') -> None:
    """Migrate legacy steps along with the test."""
    legacy = {
        'id': 'legacy',
        'file': 'doc.md',
        'detectSteps': False,
        'steps': [
            {'action': 'goTo', 'url': 'https://x.com'},
            {'action': 'wait', 'duration': 500},
        ],
    }

    assert legacy_to_v3(legacy, migrator) == {
        'testId': 'legacy',
        'contentPath': 'doc.md',
        'detectSteps': False,
        'steps': [{'goTo': 'https://x.com'}, {'wait': 500}],
    }


def test_migrate_contexts(migrator: 'BuiltinMigrator') -> None:
    """Map legacy contexts onto run targets."""
    legacy = {
        'id': 'legacy',
        'contexts': [
            {'app': {'name': 'firefox', 'options': {'headless': True}}, 'platforms': ['linux']},
            {'platforms': ['mac']},
        ],
    }

    migrated = legacy_to_v3(legacy, migrator)

    assert migrated['runOn'] == [
        {'platforms': ['linux'], 'browsers': [{'name': 'firefox', 'headless': True}]},
        {'platforms': ['mac']},
    ]


def test_migrator_failure_wrapped(mocker: 'MockerFixture') -> None:
    """Wrap unexpected migrator failures into a migration error."""
    migrator = mocker.Mock()
    migrator.transform.side_effect = RuntimeError('boom')

    with pytest.raises(MigrationError, match=r'^Legacy test can not be migrated') as error:
        legacy_to_v3({'id': 'legacy'}, migrator)

    assert isinstance(error.value.__cause__, RuntimeError)
    migrator.transform.assert_called_once_with(
        {'id': 'legacy', 'steps': [{'action': 'goTo', 'url': 'https://example.com'}]},
        'test_v2',
        'test_v3',
    )


def test_migrator_error_propagated(mocker: 'MockerFixture') -> None:
    """Propagate migration errors raised by the migrator."""
    migrator = mocker.Mock()
    migrator.transform.side_effect = MigrationError('Unsupported')

    with pytest.raises(MigrationError, match=r'^Unsupported$'):
        legacy_to_v3({'id': 'legacy'}, migrator)


def test_migrator_without_result(mocker: 'MockerFixture') -> None:
    """Reject a migrator result which is not a test object."""
    migrator = mocker.Mock()
    migrator.transform.return_value = None

    with pytest.raises(MigrationError, match=r'produced no test'):
        legacy_to_v3({'id': 'legacy'}, migrator)


@pytest.mark.parametrize('step, expected', (
    pytest.param(
        {'action': 'goTo', 'url': 'https://x.com'},
        {'goTo': 'https://x.com'},
        id='go to shorthand',
    ),
    pytest.param(
        {'action': 'checkLink', 'url': 'https://x.com', 'statusCodes': [200]},
        {'checkLink': {'url': 'https://x.com', 'statusCodes': [200]}},
        id='check link object',
    ),
    pytest.param(
        {'action': 'find', 'selector': '#name', 'matchText': 'Name', 'typeKeys': 'John'},
        {'find': {'selector': '#name', 'elementText': 'Name', 'type': 'John'}},
        id='find',
    ),
    pytest.param(
        {
            'action': 'httpRequest',
            'url': 'https://x.com',
            'requestData': {'a': 1},
            'requestHeaders': {'A': '1'},
            'responseData': {'ok': True},
        },
        {
            'httpRequest': {
                'url': 'https://x.com',
                'request': {'body': {'a': 1}, 'headers': {'A': '1'}},
                'response': {'body': {'ok': True}},
            },
        },
        id='http request',
    ),
    pytest.param(
        {'action': 'setVariables', 'path': '.env'},
        {'loadVariables': '.env'},
        id='set variables',
    ),
    pytest.param(
        {'action': 'saveScreenshot'},
        {'screenshot': True},
        id='screenshot shorthand',
    ),
    pytest.param(
        {'action': 'saveScreenshot', 'path': 'shot.png'},
        {'screenshot': {'path': 'shot.png'}},
        id='screenshot object',
    ),
    pytest.param(
        {'action': 'startRecording'},
        {'record': True},
        id='start recording',
    ),
    pytest.param(
        {'action': 'stopRecording'},
        {'stopRecord': True},
        id='stop recording',
    ),
    pytest.param(
        {'action': 'typeKeys', 'keys': ['a', '$ENTER$']},
        {'type': ['a', '$ENTER$']},
        id='type shorthand',
    ),
    pytest.param(
        {'action': 'typeKeys', 'keys': 'abc', 'delay': 100},
        {'type': {'keys': 'abc', 'inputDelay': 100}},
        id='type object',
    ),
    pytest.param(
        {'action': 'wait', 'duration': 250},
        {'wait': 250},
        id='wait',
    ),
    pytest.param(
        {'action': 'runShell', 'id': 's1', 'description': 'List', 'command': 'ls'},
        {'stepId': 's1', 'description': 'List', 'runShell': {'command': 'ls'}},
        id='common fields',
    ),
))
def test_migrate_step(migrator: 'BuiltinMigrator', step: dict, expected: dict) -> None:
    """Map legacy steps onto action-keyed steps."""
    assert migrator.transform(step, 'step_v2', 'step_v3') == expected


def test_unsupported_schema_pair(migrator: 'BuiltinMigrator') -> None:
    """Reject schema pairs without a migration path."""
    with pytest.raises(MigrationError, match=r"^Can not migrate from 'spec_v2'"):
        migrator.transform({}, 'spec_v2', 'spec_v3')


def test_invalid_legacy_step(migrator: 'BuiltinMigrator') -> None:
    """Reject objects failing the legacy schema."""
    with pytest.raises(MigrationError, match=r"not a valid 'step_v2' object"):
        migrator.transform({'action': 'fly'}, 'step_v2', 'step_v3')
