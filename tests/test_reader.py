"""Tests for reading input files into specs."""

import logging
from json import dumps
from typing import TYPE_CHECKING
from uuid import UUID

import pytest

from docprobe.core import DocumentReader
from docprobe.errors import MigrationError, StatementError
from docprobe.schema import Config

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem

MARKDOWN = '''\
# Getting started

<!-- test {"testId": "start", "description": "Open the docs"} -->
Go to [the docs](https://example.com/docs).

<!-- step {"wait": 500} -->
<!-- test end -->
'''

OPENAPI = '''\
openapi: 3.0.3
info:
  title: Pets
paths:
  /pets:
    get:
      operationId: listPets
      summary: List pets
    delete:
      operationId: deletePets
'''

ARAZZO = '''\
arazzo: 1.0.0
info:
  title: Adoption
  version: 1.0.0
sourceDescriptions:
  - name: pets
    url: openapi.yaml
    type: openapi
workflows:
  - workflowId: adopt
    summary: Adopt a pet
    steps:
      - stepId: list
        operationId: listPets
        successCriteria:
          - condition: $statusCode == 200
'''


def test_read_markdown(fs: 'FakeFilesystem') -> None:
    """Read the tests declared in a markdown document."""
    fs.create_file('docs/index.md', contents=MARKDOWN)

    spec = DocumentReader(Config()).read('docs/index.md')

    assert UUID(spec['specId'])
    assert spec['contentPath'] == 'docs/index.md'
    assert spec['tests'] == [{
        'testId': 'start',
        'description': 'Open the docs',
        'steps': [
            {'checkLink': 'https://example.com/docs'},
            {'goTo': 'https://example.com/docs'},
            {'wait': 500},
        ],
    }]


def test_read_with_origin(fs: 'FakeFilesystem') -> None:
    """Attach the configured origin to detected navigation steps."""
    fs.create_file('index.md', contents='Visit [home](https://x.com/home).')

    spec = DocumentReader(Config(origin='https://staging.x.com')).read('index.md')

    assert spec['tests'][0]['steps'] == [
        {'checkLink': {'url': 'https://x.com/home', 'origin': 'https://staging.x.com'}},
        {'goTo': {'url': 'https://x.com/home', 'origin': 'https://staging.x.com'}},
    ]


def test_read_without_detection(fs: 'FakeFilesystem') -> None:
    """Read explicit steps only when detection is disabled."""
    fs.create_file('docs/index.md', contents=MARKDOWN)

    spec = DocumentReader(Config(detect_steps=False)).read('docs/index.md')

    assert spec['tests'][0]['steps'] == [{'wait': 500}]


@pytest.mark.parametrize('filename, contents', (
    pytest.param('plain.md', '# Nothing to test here\n', id='no statements'),
    pytest.param('empty.md', '<!-- test {"testId": "empty"} -->\n', id='test without steps'),
    pytest.param('notes.txt', '<!-- step {"wait": 1} -->\n', id='unknown extension'),
))
def test_read_without_spec(fs: 'FakeFilesystem', filename: str, contents: str) -> None:
    """Skip files which declare no runnable test."""
    fs.create_file(filename, contents=contents)

    assert DocumentReader(Config()).read(filename) is None


def test_read_strict(fs: 'FakeFilesystem') -> None:
    """Raise on invalid statements in strict mode."""
    fs.create_file('index.md', contents='<!-- step {"wait": 1, "find": "x"} -->\n')

    with pytest.raises(StatementError, match=r'^Step is not valid') as error:
        DocumentReader(Config(strict=True)).read('index.md')

    assert 'in "index.md", line 1' in str(error.value)


def test_read_asciidoc(fs: 'FakeFilesystem') -> None:
    """Read the tests declared in an AsciiDoc document."""
    fs.create_file('guide.adoc', contents=(
        '// (test {"testId": "guide"})\n'
        '// (step {"runShell": "echo ok"})\n'
        '// (test end)\n'
    ))

    spec = DocumentReader(Config()).read('guide.adoc')

    assert spec['tests'] == [{'testId': 'guide', 'steps': [{'runShell': 'echo ok'}]}]


def test_read_executable(fs: 'FakeFilesystem') -> None:
    """Turn a file handled by a run shell template into a single test."""
    fs.create_file('scripts/setup.sh', contents='echo setup\n')
    config = Config(file_types=[
        'markdown',
        {'name': 'shell', 'extensions': ['.sh'], 'runShell': {'command': 'bash $1'}},
    ])

    spec = DocumentReader(config).read('scripts/setup.sh')

    assert spec['contentPath'] == 'scripts/setup.sh'
    assert len(spec['tests']) == 1
    assert spec['tests'][0]['steps'] == [
        {'runShell': {'command': 'bash scripts/setup.sh'}},
    ]


def test_read_json_spec(fs: 'FakeFilesystem') -> None:
    """Read a spec object and merge its setup and cleanup steps."""
    fs.create_file('specs/spec.json', contents=dumps({
        'specId': 'spec',
        'tests': [{
            'testId': 'test',
            'before': 'setup.json',
            'after': 'cleanup.yaml',
            'steps': [{'wait': 2}],
        }],
    }))
    fs.create_file('specs/setup.json', contents=dumps({'tests': [{'steps': [{'wait': 1}]}]}))
    fs.create_file('specs/cleanup.yaml', contents='tests:\n  - steps:\n      - wait: 3\n')

    spec = DocumentReader(Config()).read('specs/spec.json')

    assert spec == {
        'specId': 'spec',
        'contentPath': 'specs/spec.json',
        'tests': [{
            'testId': 'test',
            'before': 'setup.json',
            'after': 'cleanup.yaml',
            'steps': [{'wait': 1}, {'wait': 2}, {'wait': 3}],
        }],
    }


def test_read_json_spec_missing_setup(fs: 'FakeFilesystem',
                                      caplog: pytest.LogCaptureFixture) -> None:
    """Skip a spec whose setup spec can not be read."""
    fs.create_file('spec.json', contents=dumps({
        'tests': [{'before': 'missing.json', 'steps': [{'wait': 1}]}],
    }))

    with caplog.at_level(logging.WARNING, logger='docprobe'):
        spec = DocumentReader(Config()).read('spec.json')

    assert spec is None
    assert "references before 'missing.json'" in caplog.text


def test_read_legacy_json_spec(fs: 'FakeFilesystem') -> None:
    """Migrate legacy tests of a spec object."""
    fs.create_file('legacy.json', contents=dumps({
        'tests': [{
            'id': 'legacy',
            'steps': [{'action': 'goTo', 'url': 'https://x.com'}],
        }],
    }))

    spec = DocumentReader(Config()).read('legacy.json')

    assert spec['tests'] == [{'testId': 'legacy', 'steps': [{'goTo': 'https://x.com'}]}]


def test_read_broken_legacy_json_spec(fs: 'FakeFilesystem') -> None:
    """Propagate failures of legacy test migration."""
    fs.create_file('legacy.json', contents=dumps({
        'tests': [{'id': 'legacy', 'steps': [{'action': 'teleport'}]}],
    }))

    with pytest.raises(MigrationError):
        DocumentReader(Config()).read('legacy.json')


@pytest.mark.parametrize('filename, contents, message', (
    pytest.param('broken.json', '{"tests": [', 'is not valid JSON or YAML', id='invalid json'),
    pytest.param(
        'invalid.json',
        dumps({'tests': [{'steps': [{'wait': 1, 'find': 'x'}]}]}),
        'is not a valid test specification',
        id='invalid spec',
    ),
))
def test_read_invalid_object(fs: 'FakeFilesystem', caplog: pytest.LogCaptureFixture,
                             filename: str, contents: str, message: str) -> None:
    """Skip and log JSON files which hold no valid spec."""
    fs.create_file(filename, contents=contents)

    with caplog.at_level(logging.WARNING, logger='docprobe'):
        spec = DocumentReader(Config()).read(filename)

    assert spec is None
    assert message in caplog.text


def test_read_other_object(fs: 'FakeFilesystem') -> None:
    """Skip JSON files which are not specs."""
    fs.create_file('package.json', contents=dumps({'name': 'site', 'version': '1.0.0'}))

    assert DocumentReader(Config()).read('package.json') is None


def test_read_openapi(fs: 'FakeFilesystem') -> None:
    """Synthesize a spec from an OpenAPI description."""
    fs.create_file('api/petstore.yaml', contents=OPENAPI)

    spec = DocumentReader(Config()).read('api/petstore.yaml')

    assert spec['specId'] == 'openapi-petstore'
    assert spec['openApi'][0]['name'] == 'Pets'
    assert spec['tests'] == [{
        'testId': 'listPets',
        'description': 'List pets',
        'steps': [{'httpRequest': {'openApi': {'operationId': 'listPets'}}}],
    }]


def test_read_arazzo(fs: 'FakeFilesystem') -> None:
    """Synthesize a spec from an Arazzo description."""
    fs.create_file('flows/adoption.yaml', contents=ARAZZO)

    spec = DocumentReader(Config()).read('flows/adoption.yaml')

    assert spec['specId'] == 'arazzo-adoption'
    assert spec['tests'] == [{
        'testId': 'adopt',
        'description': 'Adopt a pet',
        'openApi': [{'name': 'pets', 'descriptionPath': 'openapi.yaml'}],
        'steps': [{
            'stepId': 'list',
            'httpRequest': {
                'openApi': {'operationId': 'listPets'},
                'statusCodes': [200],
            },
        }],
    }]

def test_read_malformed_arazzo(fs: 'FakeFilesystem', caplog: pytest.LogCaptureFixture) -> None:
    """Skip malformed items of an Arazzo description."""
    fs.create_file('flows/broken.yaml', contents=(
        'arazzo: 1.0.0\n'
        'info: Broken\n'
        'sourceDescriptions: [pets]\n'
        'workflows:\n'
        '  - workflowId: adopt\n'
        '    steps:\n'
        '      - listPets\n'
        '      - stepId: list\n'
        '        operationId: listPets\n'
        '        parameters: [status]\n'
        '        successCriteria: [ok]\n'
    ))

    with caplog.at_level(logging.WARNING, logger='docprobe'):
        spec = DocumentReader(Config()).read('flows/broken.yaml')

    assert spec['tests'] == [{
        'testId': 'adopt',
        'steps': [{
            'stepId': 'list',
            'httpRequest': {'openApi': {'operationId': 'listPets'}},
        }],
    }]
    assert "Skipping workflow steps which is not an object: 'listPets'" in caplog.text
    assert "Skipping parameters which is not an object: 'status'" in caplog.text



def test_read_all(fs: 'FakeFilesystem') -> None:
    """Read specs in input order, skipping files without a spec."""
    fs.create_file('a.md', contents='<!-- step {"wait": 1} -->\n')
    fs.create_file('b.txt', contents='<!-- step {"wait": 2} -->\n')
    fs.create_file('c.md', contents='<!-- step {"wait": 3} -->\n')

    specs = DocumentReader(Config()).read_all(['c.md', 'b.txt', 'a.md'])

    assert [spec['contentPath'] for spec in specs] == ['c.md', 'a.md']
