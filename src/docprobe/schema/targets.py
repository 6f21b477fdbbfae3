"""Run target models.

A run target declares on which platforms, and with which browsers, a test
must run. Targets are normalized on validation: single values become lists,
bare browser names become browser objects and browser aliases are replaced
by their canonical names.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field, field_validator

from docprobe.models import PassthroughModel
from docprobe.names import BROWSER_ALIASES
from docprobe.values import Value  # noqa: TC001

from .catalog import ensure_list


def ensure_browsers(value: Any) -> Any:  # noqa: ANN401
    """Coerce browser declarations into a list of browser mappings."""
    if isinstance(value, (str, dict)):
        value = [value]

    if isinstance(value, (list, tuple)):
        return [
            {'name': item} if isinstance(item, str) else item
            for item in value
        ]

    return value


class Browser(PassthroughModel):
    """Browser used by a driver-bound context.

    Options other than the declared ones are kept as is and take part
    in context deduplication.
    """

    name: str = Field(
        title='Browser name',
        description='Browser engine name. `safari` is an alias of `webkit`.',
        examples=['chrome', 'firefox', 'webkit'],
    )

    headless: bool | None = Field(
        default=None,
        title='Headless mode',
        description='Run the browser without a visible window.',
    )

    window: dict[str, Value] | None = Field(
        default=None,
        title='Window options',
        description='Window dimensions of the browser.',
    )

    viewport: dict[str, Value] | None = Field(
        default=None,
        title='Viewport options',
        description='Viewport dimensions of the browser.',
    )

    @field_validator('name')
    @classmethod
    def resolve_alias(cls, name: str) -> str:
        """Replace a browser alias by its canonical name."""
        return BROWSER_ALIASES.get(name, name)


class RunTarget(PassthroughModel):
    """Declared platforms and browsers of a test, a spec or a configuration."""

    platforms: Annotated[list[str], BeforeValidator(ensure_list)] = Field(
        default_factory=list,
        title='Platforms',
        description='Operating systems the test runs on.',
        examples=[['linux', 'mac', 'windows']],
    )

    browsers: Annotated[list[Browser], BeforeValidator(ensure_browsers)] = Field(
        default_factory=list,
        title='Browsers',
        description=(
            'Browsers the test runs with. '
            'Only used when the test contains driver-bound actions.'
        ),
    )
