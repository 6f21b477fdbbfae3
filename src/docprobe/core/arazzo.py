"""Arazzo workflow to test synthesis.

Each workflow of an Arazzo description becomes a test made of
`httpRequest` steps. Only steps calling an operation by identifier are
supported; operation path and workflow references are skipped with
a warning. Malformed list items are skipped with a warning as well.
"""

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from docprobe.values import Step, Value

logger = getLogger(__name__)


def is_arazzo(content: 'Value') -> bool:
    """Check whether a parsed file is an Arazzo description."""
    return (
        isinstance(content, dict)
        and 'arazzo' in content
        and isinstance(content.get('workflows'), list)
    )


def iter_mappings(items: 'Value', kind: str) -> 'Iterator[dict[str, Value]]':
    """Yield mapping items of a list, skipping others with a warning.

    Args:
        items: Declared list. Anything but a list is treated as empty.
        kind: Item kind, used in warnings.
    """
    if not isinstance(items, list):
        if items is not None:
            logger.warning('Skipping %s which are not a list: %r', kind, items)
        return

    for item in items:
        if isinstance(item, dict):
            yield item
        else:
            logger.warning('Skipping %s which is not an object: %r', kind, item)


def workflow_step_to_step(workflow_step: dict[str, 'Value']) -> 'Step | None':
    """Translate an Arazzo workflow step.

    Returns:
        The `httpRequest` step, or `None` for an unsupported step.
    """
    if not workflow_step.get('operationId'):
        if workflow_step.get('operationPath'):
            logger.warning(
                'Operation path references are not supported: %s',
                workflow_step['operationPath'],
            )
        elif workflow_step.get('workflowId'):
            logger.warning(
                'Workflow references are not supported: %s',
                workflow_step['workflowId'],
            )
        else:
            logger.warning('Unsupported workflow step: %r', workflow_step)
        return None

    request: dict[str, Value] = {}
    for parameter in iter_mappings(workflow_step.get('parameters'), 'parameters'):
        location = {'query': 'parameters', 'header': 'headers'}.get(parameter.get('in'))
        if location and parameter.get('name'):
            request.setdefault(location, {})[parameter['name']] = parameter.get('value')

    if isinstance(body := workflow_step.get('requestBody'), dict) and 'payload' in body:
        request['body'] = body['payload']

    http_request: dict[str, Value] = {
        'openApi': {'operationId': workflow_step['operationId']},
    }
    if request:
        http_request['request'] = request

    response: dict[str, Value] = {}
    for criterion in iter_mappings(workflow_step.get('successCriteria'), 'success criteria'):
        condition = str(criterion.get('condition', ''))
        if condition.startswith('$statusCode'):
            _, _, code = condition.partition('==')
            if code.strip().isdigit():
                http_request['statusCodes'] = [int(code.strip())]
        elif criterion.get('context') == '$response.body':
            response[condition] = True

    if response:
        http_request['response'] = {'body': response}

    step: Step = {'httpRequest': http_request}
    if workflow_step.get('stepId'):
        step['stepId'] = workflow_step['stepId']
    if workflow_step.get('description'):
        step['description'] = workflow_step['description']

    return step


def workflow_to_test(document: dict[str, 'Value'], workflow_id: str) -> dict[str, 'Value'] | None:
    """Synthesize a test from an Arazzo workflow.

    Args:
        document: Parsed Arazzo description.
        workflow_id: Identifier of the workflow.

    Returns:
        The test, or `None` when the workflow does not exist.
    """
    workflow = next((
        item for item in iter_mappings(document.get('workflows'), 'workflows')
        if item.get('workflowId') == workflow_id
    ), None)

    if workflow is None:
        logger.warning('Workflow %s not found', workflow_id)
        return None

    info = document.get('info')
    if not isinstance(info, dict):
        info = {}

    test: dict[str, Value] = {
        'testId': workflow_id,
        'steps': [],
    }

    description = (
        workflow.get('summary')
        or workflow.get('description')
        or info.get('description')
        or info.get('summary')
        or info.get('title')
    )
    if description:
        test['description'] = description

    open_api = [
        {'name': source['name'], 'descriptionPath': source['url']}
        for source in iter_mappings(document.get('sourceDescriptions'), 'source descriptions')
        if source.get('type') == 'openapi' and source.get('name') and source.get('url')
    ]
    if open_api:
        test['openApi'] = open_api

    for workflow_step in iter_mappings(workflow.get('steps'), 'workflow steps'):
        if (step := workflow_step_to_step(workflow_step)) is not None:
            test['steps'].append(step)

    return test
