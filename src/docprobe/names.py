"""Action names, identifiers and naming rules.

This module defines the closed sets of step actions known to the resolver
and helpers for generating identifiers of specs, tests and contexts.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated
from uuid import uuid4

from pydantic import Field

#: Actions which require an interactive driver (a browser session).
DRIVER_ACTIONS = frozenset({
    'click',
    'dragAndDrop',
    'find',
    'goTo',
    'loadCookie',
    'record',
    'saveCookie',
    'screenshot',
    'stopRecord',
    'type',
})

#: All actions a step may declare.
STEP_ACTIONS = frozenset({
    *DRIVER_ACTIONS,
    'checkLink',
    'httpRequest',
    'loadVariables',
    'runCode',
    'runShell',
    'wait',
})

#: Actions whose detected value receives the configured origin.
ORIGIN_ACTIONS = frozenset({'checkLink', 'goTo'})

#: Browser names accepted as aliases of a canonical browser.
BROWSER_ALIASES = {
    'safari': 'webkit',
}

#: Keys marking a test object written for the legacy (v2) schema.
LEGACY_TEST_MARKERS = ('id', 'file', 'setup', 'cleanup')

#: Positional capture reference inside a markup action template.
CAPTURE_PATTERN = regexp(r'\$(?P<index>[0-9]+)', flags=ASCII)

#: Environment variable reference inside a configuration value.
VARIABLE_PATTERN = regexp(r'\$(?P<name>[A-Za-z_][A-Za-z0-9_]*)', flags=ASCII)

#: Base pattern for catalog names.
_NAME_PATTERN = r'[a-zA-Z][\w.-]*'

Name = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Catalog name',
        description=(
            'Name of a file type or a markup rule. '
            'Must start with a letter and may contain letters, digits, '
            'underscores, dots and dashes.'
        ),
        examples=[
            'markdown',
            'markdown_1_0',
            'checkHyperlink',
        ],
    ),
]


def new_id() -> str:
    """Generate a random identifier for a spec, a test or a context."""
    return str(uuid4())
