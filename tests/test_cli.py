"""Tests for the command-line interface."""

import logging
from json import loads
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from docprobe.__main__ import LOG_LEVELS, cli, setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

SILENT = {'DOCPROBE_LOG_LEVEL': 'silent'}

DOCUMENT = '''\
<!-- test {"testId": "docs"} -->
Go to [the docs](https://example.com/docs).
<!-- test end -->
'''


@pytest.fixture(autouse=True)
def restore_logging() -> 'Iterator[None]':
    """Restore the root logger configured by the command."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level

    yield

    root.handlers[:] = handlers
    root.setLevel(level)
    logging.captureWarnings(False)


@pytest.fixture
def runner() -> CliRunner:
    """Provide a command runner."""
    return CliRunner()


def test_detect(runner: CliRunner, tmp_path: 'Path') -> None:
    """Print the resolution of a document as JSON."""
    document = tmp_path / 'index.md'
    document.write_text(DOCUMENT, encoding='utf-8')

    result = runner.invoke(cli, ['detect', str(document)], env=SILENT)

    assert result.exit_code == 0, result.output
    resolution = loads(result.stdout)
    assert set(resolution) == {'resolvedTestsId', 'config', 'specs'}

    test = resolution['specs'][0]['tests'][0]
    assert test['testId'] == 'docs'
    assert test['contexts'][0]['steps'] == [
        {'checkLink': 'https://example.com/docs'},
        {'goTo': 'https://example.com/docs'},
    ]


def test_detect_without_detection(runner: CliRunner, tmp_path: 'Path') -> None:
    """Disable step detection from the command line."""
    document = tmp_path / 'index.md'
    document.write_text(DOCUMENT + '<!-- step {"wait": 1} -->\n', encoding='utf-8')

    result = runner.invoke(cli, ['detect', '--no-detect-steps', str(document)], env=SILENT)

    assert result.exit_code == 0, result.output
    resolution = loads(result.stdout)
    assert resolution['config']['detectSteps'] is False
    assert [test['contexts'][0]['steps'] for test in resolution['specs'][0]['tests']] == [
        [{'wait': 1}],
    ]


def test_detect_with_config(runner: CliRunner, tmp_path: 'Path') -> None:
    """Resolve run targets and the origin from a configuration file."""
    document = tmp_path / 'index.md'
    document.write_text(DOCUMENT, encoding='utf-8')
    config = tmp_path / 'docprobe.yaml'
    config.write_text(
        'origin: https://staging.example.com\n'
        'runOn:\n'
        '  - platforms: [linux]\n'
        '    browsers: [chrome, firefox]\n',
        encoding='utf-8',
    )

    result = runner.invoke(cli, ['detect', '-c', str(config), str(document)], env=SILENT)

    assert result.exit_code == 0, result.output
    contexts = loads(result.stdout)['specs'][0]['tests'][0]['contexts']
    assert [context['browser']['name'] for context in contexts] == ['chrome', 'firefox']
    assert contexts[0]['steps'][0] == {
        'checkLink': {'url': 'https://example.com/docs', 'origin': 'https://staging.example.com'},
    }


def test_detect_skips_files(runner: CliRunner, tmp_path: 'Path') -> None:
    """Skip files without tests."""
    document = tmp_path / 'notes.txt'
    document.write_text('Nothing here', encoding='utf-8')

    result = runner.invoke(cli, ['detect', str(document)], env=SILENT)

    assert result.exit_code == 0, result.output
    assert loads(result.stdout)['specs'] == []


def test_detect_invalid_config(runner: CliRunner, tmp_path: 'Path') -> None:
    """Fail on an invalid configuration file."""
    document = tmp_path / 'index.md'
    document.write_text(DOCUMENT, encoding='utf-8')
    config = tmp_path / 'docprobe.yaml'
    config.write_text('fileTypes: [rst]\n', encoding='utf-8')

    result = runner.invoke(cli, ['detect', '--config', str(config), str(document)], env=SILENT)

    assert result.exit_code == 1
    assert 'Invalid configuration' in result.output


def test_detect_strict(runner: CliRunner, tmp_path: 'Path') -> None:
    """Fail on an invalid statement in strict mode."""
    document = tmp_path / 'index.md'
    document.write_text('<!-- step {"wait": 1, "find": "x"} -->\n', encoding='utf-8')

    result = runner.invoke(cli, ['detect', '--strict', str(document)], env=SILENT)

    assert result.exit_code == 1
    assert 'Step is not valid' in result.output


def test_detect_missing_file(runner: CliRunner, tmp_path: 'Path') -> None:
    """Reject files which do not exist."""
    result = runner.invoke(cli, ['detect', str(tmp_path / 'missing.md')], env=SILENT)

    assert result.exit_code == 2


def test_schema(runner: CliRunner) -> None:
    """Print the configuration JSON Schema."""
    result = runner.invoke(cli, ['schema'])

    assert result.exit_code == 0, result.output
    schema = loads(result.stdout)
    assert {'detectSteps', 'fileTypes', 'runOn', 'origin'} <= set(schema['properties'])


@pytest.mark.parametrize('level, expected', (
    pytest.param('debug', logging.DEBUG, id='debug'),
    pytest.param('error', logging.ERROR, id='error'),
    pytest.param('silent', logging.CRITICAL + 1, id='silent'),
))
def test_setup_logging(level: str, expected: int) -> None:
    """Configure the root logger with a single standard error handler."""
    setup_logging(level)

    root = logging.getLogger()
    assert root.level == expected == LOG_LEVELS[level]
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], logging.StreamHandler)
