"""OpenAPI description to spec synthesis.

An OpenAPI 3.x document found among the input files becomes a spec with
one test per operation which is safe to call automatically. Each test is
an `httpRequest` step referencing the operation, optionally surrounded
by the steps of the operations it depends on.

Operations are tuned with the `x-docprobe` extension, set on the
document root (applies to every operation) or on an operation:

    x-docprobe:
      safe: true              # override the method-based safety
      server: https://staging.example.com
      validateSchema: true
      mockResponse: false
      statusCodes: [200, 201]
      useExample: true
      exampleKey: default
      requestHeaders: {Authorization: Bearer token}
      responseHeaders: {Content-Type: application/json}
      before: [createPet]     # operationId or {path, method}
      after: [{path: /pets/{id}, method: delete}]
"""

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docprobe.values import Step, Value

logger = getLogger(__name__)

#: Extension key carrying operation options.
EXTENSION = 'x-docprobe'

#: Methods considered safe unless an operation says otherwise.
SAFE_METHODS = frozenset({'get', 'head', 'options', 'post'})

#: Path item keys which are not operations.
PATH_ITEM_FIELDS = frozenset({'description', 'parameters', 'servers', 'summary'})

#: Extension options copied into the `openApi` reference of a step.
REFERENCE_OPTIONS = (
    'server',
    'validateSchema',
    'mockResponse',
    'statusCodes',
    'useExample',
    'exampleKey',
)

#: Description file extensions.
DESCRIPTION_EXTENSIONS = ('.json', '.yaml', '.yml')


def is_openapi3(content: 'Value', path: Path | str) -> bool:
    """Check whether a parsed file is an OpenAPI 3.x description.

    Args:
        content: Parsed file content.
        path: File path.

    Returns:
        True for a JSON or YAML mapping with an `openapi: 3.x` field.
    """
    if not isinstance(content, dict):
        return False

    if Path(path).suffix.lower() not in DESCRIPTION_EXTENSIONS:
        return False

    version = content.get('openapi')

    return isinstance(version, str) and version.startswith('3.')


def extract_operations(document: dict[str, 'Value']) -> list[dict[str, 'Value']]:
    """List the operations of a description.

    Each operation is a copy carrying its `path`, its `method` and the
    root extension options merged under its own ones.
    """
    root = document.get(EXTENSION) or {}

    operations = []
    for path, item in (document.get('paths') or {}).items():
        if not isinstance(item, dict):
            continue
        for method, operation in item.items():
            if method in PATH_ITEM_FIELDS or not isinstance(operation, dict):
                continue
            operations.append({
                **operation,
                'path': path,
                'method': method,
                EXTENSION: {**root, **(operation.get(EXTENSION) or {})},
            })

    return operations


def is_operation_safe(operation: dict[str, 'Value']) -> bool:
    """Whether an operation may be called automatically."""
    options = operation.get(EXTENSION) or {}
    if options.get('safe') is not None:
        return bool(options['safe'])

    return str(operation['method']).lower() in SAFE_METHODS


def create_request_step(operation: dict[str, 'Value']) -> 'Step':
    """Build the `httpRequest` step calling an operation."""
    options = operation.get(EXTENSION) or {}

    if operation.get('operationId'):
        reference = {'operationId': operation['operationId']}
    else:
        reference = {'path': operation['path'], 'method': operation['method']}

    reference.update({
        key: options[key]
        for key in REFERENCE_OPTIONS
        if options.get(key) is not None
    })

    request: dict[str, Value] = {'openApi': reference}
    if options.get('requestHeaders'):
        request['request'] = {'headers': options['requestHeaders']}
    if options.get('responseHeaders'):
        request['response'] = {'headers': options['responseHeaders']}

    return {'httpRequest': request}


def find_operation(dependency: 'Value',
                   operations: list[dict[str, 'Value']]) -> dict[str, 'Value'] | None:
    """Find a dependency by operation identifier or by path and method."""
    if isinstance(dependency, str):
        dependency = {'operationId': dependency}

    if not isinstance(dependency, dict):
        return None

    for operation in operations:
        if dependency.get('operationId'):
            if operation.get('operationId') == dependency['operationId']:
                return operation
        elif dependency.get('path') and dependency.get('method'):
            if (operation['path'] == dependency['path']
                    and operation['method'] == str(dependency['method']).lower()):
                return operation

    return None


def create_dependency_steps(dependencies: 'Value',
                            operations: list[dict[str, 'Value']]) -> list['Step']:
    """Build the steps of dependency operations, skipping unknown ones."""
    steps = []
    for dependency in dependencies or []:
        if (operation := find_operation(dependency, operations)) is None:
            logger.warning('Unknown operation dependency %r', dependency)
            continue
        steps.append(create_request_step(operation))

    return steps


def operation_to_test(operation: dict[str, 'Value'],
                      operations: list[dict[str, 'Value']]) -> dict[str, 'Value'] | None:
    """Build the test of an operation, or `None` for an unsafe operation."""
    name = operation.get('operationId') or f'{operation["method"]}-{operation["path"]}'

    if not is_operation_safe(operation):
        logger.info('Skipping unsafe operation %s', name)
        return None

    options = operation.get(EXTENSION) or {}

    return {
        'testId': name,
        'description': (
            operation.get('summary')
            or operation.get('description')
            or f'{operation["method"]} {operation["path"]}'
        ),
        'steps': [
            *create_dependency_steps(options.get('before'), operations),
            create_request_step(operation),
            *create_dependency_steps(options.get('after'), operations),
        ],
    }


def openapi_to_spec(document: dict[str, 'Value'], path: Path | str) -> dict[str, 'Value']:
    """Synthesize a spec from an OpenAPI description.

    Args:
        document: Parsed description.
        path: Description file path.

    Returns:
        Spec with one test per safe operation. The spec references the
        description itself, so its steps can be resolved against it.
    """
    path = Path(path)
    spec_id = f'openapi-{path.stem}'

    info = document.get('info') or {}
    operations = extract_operations(document)

    tests = []
    for operation in operations:
        if (test := operation_to_test(operation, operations)) is not None:
            tests.append(test)

    return {
        'specId': spec_id,
        'contentPath': str(path),
        'openApi': [{
            'name': info.get('title') or spec_id,
            'definition': document,
        }],
        'tests': tests,
    }
