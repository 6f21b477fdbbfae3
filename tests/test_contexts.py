"""Tests for context resolution."""

import pytest

from docprobe.core import ContextResolver
from docprobe.core.contexts import requires_driver
from docprobe.schema import Browser, ExternalDoc, RunTarget

DRIVER_STEPS = [{'goTo': 'https://x.com'}, {'find': 'Welcome'}]
PLAIN_STEPS = [{'httpRequest': 'https://x.com'}, {'wait': 100}]


@pytest.mark.parametrize('steps, expected', (
    pytest.param(DRIVER_STEPS, True, id='driver'),
    pytest.param(PLAIN_STEPS, False, id='no driver'),
    pytest.param([{'wait': 1}, {'type': 'abc'}], True, id='type keys'),
    pytest.param([], False, id='no steps'),
))
def test_requires_driver(steps: list, expected: bool) -> None:
    """Detect driver-bound actions among steps."""
    assert requires_driver(steps) is expected


def test_platforms_by_browsers() -> None:
    """Pair every platform with every browser of a driver-bound test."""
    run_on = [{'platforms': ['linux', 'mac'], 'browsers': ['firefox', 'chrome']}]

    contexts = ContextResolver().resolve(DRIVER_STEPS, run_on)

    assert [(context.platform, context.browser.name) for context in contexts] == [
        ('linux', 'firefox'),
        ('linux', 'chrome'),
        ('mac', 'firefox'),
        ('mac', 'chrome'),
    ]


def test_duplicate_targets() -> None:
    """Produce one context for duplicated platform and browser pairs."""
    run_on = [
        {'platforms': 'linux', 'browsers': 'firefox'},
        {'platforms': ['linux'], 'browsers': [{'name': 'firefox'}]},
    ]

    contexts = ContextResolver().resolve(DRIVER_STEPS, run_on)

    assert len(contexts) == 1


def test_browser_options_distinguish_contexts() -> None:
    """Keep browsers differing by options as separate contexts."""
    run_on = [{
        'platforms': 'linux',
        'browsers': [{'name': 'chrome', 'headless': True}, {'name': 'chrome', 'headless': False}],
    }]

    contexts = ContextResolver().resolve(DRIVER_STEPS, run_on)

    assert [context.browser.headless for context in contexts] == [True, False]


def test_browser_alias() -> None:
    """Deduplicate browsers declared by alias and canonical name."""
    run_on = [{'platforms': 'mac', 'browsers': ['safari', 'webkit']}]

    contexts = ContextResolver().resolve(DRIVER_STEPS, run_on)

    assert len(contexts) == 1
    assert contexts[0].browser == Browser(name='webkit')


def test_targets_order_independence() -> None:
    """Produce the same pairs for reordered duplicate targets."""
    first = RunTarget(platforms=['linux'], browsers=['firefox'])
    second = RunTarget(platforms=['windows', 'linux'], browsers=['firefox'])
    resolver = ContextResolver()

    forward = resolver.get_candidates([first, second], driver=True)
    backward = resolver.get_candidates([second, first], driver=True)

    assert sorted(platform for platform, _ in forward) == ['linux', 'windows']
    assert sorted(platform for platform, _ in backward) == ['linux', 'windows']


def test_no_driver_ignores_browsers() -> None:
    """Produce one browserless context per platform without driver actions."""
    run_on = [{'platforms': ['linux', 'windows'], 'browsers': ['firefox', 'chrome']}]

    contexts = ContextResolver().resolve(PLAIN_STEPS, run_on)

    assert [(context.platform, context.browser) for context in contexts] == [
        ('linux', None),
        ('windows', None),
    ]


@pytest.mark.parametrize('steps, run_on', (
    pytest.param(PLAIN_STEPS, [], id='no targets'),
    pytest.param(DRIVER_STEPS, [], id='no targets with driver'),
    pytest.param(DRIVER_STEPS, [{'platforms': ['linux']}], id='driver without browsers'),
    pytest.param(PLAIN_STEPS, [{'browsers': ['firefox']}], id='no platforms'),
))
def test_single_empty_context(steps: list, run_on: list) -> None:
    """Produce a single context without platform and browser."""
    contexts = ContextResolver().resolve(steps, run_on)

    assert len(contexts) == 1
    assert contexts[0].platform is None
    assert contexts[0].browser is None
    assert contexts[0].steps == steps


def test_contexts_carry_test_data() -> None:
    """Propagate the unsafe flag, descriptions and steps to every context."""
    document = ExternalDoc(name='api', description_path='openapi.yaml')

    contexts = ContextResolver().resolve(
        PLAIN_STEPS,
        [{'platforms': ['linux', 'mac']}],
        unsafe=True,
        open_api=[document],
    )

    assert len(contexts) == 2
    for context in contexts:
        assert context.unsafe is True
        assert context.open_api == [document]
        assert context.steps == PLAIN_STEPS

    assert contexts[0].steps[0] is not contexts[1].steps[0]
    assert contexts[0].context_id != contexts[1].context_id


def test_context_serialization() -> None:
    """Serialize contexts with camelCase keys."""
    context = ContextResolver().resolve([{'wait': 1}], [{'platforms': 'linux'}])[0]

    assert context.model_dump(by_alias=True, exclude_none=True) == {
        'contextId': context.context_id,
        'platform': 'linux',
        'unsafe': False,
        'openApi': [],
        'steps': [{'wait': 1}],
    }
