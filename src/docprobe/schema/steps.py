"""Built-in schemas for steps, tests and specs.

These models back the built-in schema validator. A step is an open mapping
keyed by exactly one action name; each action accepts the shorthand and
object forms it is documented with, and the payload beyond that shape is
left to the executing runtime.

Two schema generations are described:
- `v3`: the current, action-keyed form (`{"goTo": "https://..."}`);
- `v2`: the legacy form with an `action` discriminator field
  (`{"action": "goTo", "url": "https://..."}`), kept for migration only.
"""

from typing import Any, Literal, Self

from pydantic import ConfigDict, Field, model_validator

from docprobe.models import SchemaModel
from docprobe.names import STEP_ACTIONS
from docprobe.values import Value  # noqa: TC001

from .documents import ExternalDoc  # noqa: TC001
from .targets import RunTarget  # noqa: TC001

type Options = dict[str, Value]


class StepV3(SchemaModel):
    """Current step schema: one action key with shared common fields."""

    step_id: str | None = Field(default=None, title='Step identifier')
    description: str | None = Field(default=None, title='Step description')
    unsafe: bool | None = Field(
        default=None,
        title='Unsafe flag',
        description='Marks a step which may have side effects on the host.',
    )
    outputs: Options | None = Field(default=None, title='Step outputs')
    variables: Options | None = Field(default=None, title='Step variables')
    breakpoint: bool | None = Field(default=None, title='Debug breakpoint')

    check_link: str | Options | None = Field(default=None, title='Check a link')
    click: str | bool | Options | None = Field(default=None, title='Click an element')
    drag_and_drop: Options | None = Field(default=None, title='Drag and drop')
    find: str | Options | None = Field(default=None, title='Find an element')
    go_to: str | Options | None = Field(default=None, title='Open a URL')
    http_request: str | Options | None = Field(default=None, title='Send an HTTP request')
    load_cookie: str | Options | None = Field(default=None, title='Load a cookie')
    load_variables: str | None = Field(default=None, title='Load variables from a file')
    record: bool | str | Options | None = Field(default=None, title='Start recording')
    run_code: Options | None = Field(default=None, title='Run a code snippet')
    run_shell: str | Options | None = Field(default=None, title='Run a shell command')
    save_cookie: str | Options | None = Field(default=None, title='Save a cookie')
    screenshot: bool | str | Options | None = Field(default=None, title='Take a screenshot')
    stop_record: bool | None = Field(default=None, title='Stop recording')
    type_keys: str | list[str] | Options | None = Field(
        default=None,
        alias='type',
        title='Type keys',
    )
    wait: int | float | str | bool | None = Field(default=None, title='Wait')

    @model_validator(mode='after')
    def check_single_action(self) -> Self:
        """Check that the step declares exactly one action.

        Returns:
            Self.

        Raises:
            ValueError: If no action or several actions are declared.
        """
        actions = sorted(
            field.alias or name
            for name, field in type(self).model_fields.items()
            if (field.alias or name) in STEP_ACTIONS and getattr(self, name) is not None
        )
        if len(actions) == 1:
            return self

        if not actions:
            raise ValueError('Step must declare an action')

        raise ValueError(f'Step declares several actions: {", ".join(actions)}')

    @model_validator(mode='after')
    def check_run_code(self) -> Self:
        """Check that a `runCode` step carries code."""
        if self.run_code is None or self.run_code.get('code'):
            return self

        raise ValueError('Action runCode requires a code snippet')


class TestV3(SchemaModel):
    """Current test schema."""

    __test__ = False

    test_id: str | None = Field(default=None, title='Test identifier')
    description: str | None = Field(default=None, title='Test description')
    content_path: str | None = Field(default=None, title='Source content path')
    detect_steps: bool | None = Field(
        default=None,
        title='Detect steps',
        description='Disables markup-based step detection for the test when false.',
    )
    unsafe: bool | None = Field(default=None, title='Unsafe flag')
    run_on: list[RunTarget] | None = Field(default=None, title='Run targets')
    open_api: list[ExternalDoc] | None = Field(default=None, title='API descriptions')
    before: str | None = Field(default=None, title='Setup spec path')
    after: str | None = Field(default=None, title='Cleanup spec path')

    steps: list[StepV3] = Field(
        default_factory=list,
        title='Test steps',
    )


class SpecV3(SchemaModel):
    """Current spec schema."""

    spec_id: str | None = Field(default=None, title='Spec identifier')
    description: str | None = Field(default=None, title='Spec description')
    content_path: str | None = Field(default=None, title='Source content path')
    run_on: list[RunTarget] | None = Field(default=None, title='Run targets')
    open_api: list[ExternalDoc] | None = Field(default=None, title='API descriptions')

    tests: list[TestV3] = Field(
        min_length=1,
        title='Spec tests',
    )


class StepV2(SchemaModel):
    """Legacy step schema with an `action` discriminator field."""

    model_config = ConfigDict(
        extra='allow',
    )

    action: Literal[
        'checkLink',
        'find',
        'goTo',
        'httpRequest',
        'runShell',
        'saveScreenshot',
        'setVariables',
        'startRecording',
        'stopRecording',
        'typeKeys',
        'wait',
    ] = Field(title='Step action')

    id: str | None = Field(default=None, title='Step identifier')
    description: str | None = Field(default=None, title='Step description')


class TestV2(SchemaModel):
    """Legacy test schema."""

    __test__ = False

    id: str | None = Field(default=None, title='Test identifier')
    description: str | None = Field(default=None, title='Test description')
    file: str | None = Field(default=None, title='Source file')
    detect_steps: bool | None = Field(default=None, title='Detect steps')
    contexts: list[dict[str, Any]] | None = Field(default=None, title='Legacy contexts')
    setup: str | None = Field(default=None, title='Setup spec path')
    cleanup: str | None = Field(default=None, title='Cleanup spec path')

    steps: list[StepV2] = Field(
        min_length=1,
        title='Test steps',
    )
