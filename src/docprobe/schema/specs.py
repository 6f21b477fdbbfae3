"""Resolved output models.

The resolver turns raw specs into a tree of resolved specs, tests and
contexts. Each context is one concrete execution target carrying its own
copy of the test steps.
"""

from pydantic import Field

from docprobe.models import PassthroughModel, SchemaModel
from docprobe.values import Step  # noqa: TC001

from .config import Config  # noqa: TC001
from .documents import ExternalDoc  # noqa: TC001
from .targets import Browser, RunTarget  # noqa: TC001


class Context(SchemaModel):
    """One (platform, browser) execution target of a test."""

    context_id: str = Field(
        title='Context identifier',
        description='Unique identifier of the context.',
    )

    platform: str | None = Field(
        default=None,
        title='Platform',
        description='Platform of the context. Absent when no target was declared.',
    )

    browser: Browser | None = Field(
        default=None,
        title='Browser',
        description='Browser of the context. Only set for driver-bound tests.',
    )

    unsafe: bool = Field(
        default=False,
        title='Unsafe flag',
        description='Inherited from the test.',
    )

    open_api: list[ExternalDoc] = Field(
        default_factory=list,
        title='API descriptions',
        description='Merged descriptions of the test.',
    )

    steps: list[Step] = Field(
        default_factory=list,
        title='Context steps',
        description='Copy of the test steps.',
    )


class ResolvedTest(PassthroughModel):
    """Test with its run targets expanded into contexts."""

    __test__ = False

    test_id: str = Field(title='Test identifier')

    run_on: list[RunTarget] = Field(
        default_factory=list,
        title='Run targets',
        description='Effective run targets: own targets or the spec ones.',
    )

    open_api: list[ExternalDoc] = Field(
        default_factory=list,
        title='API descriptions',
        description='Spec descriptions merged with the test descriptions.',
    )

    contexts: list[Context] = Field(
        default_factory=list,
        title='Test contexts',
    )


class ResolvedSpec(PassthroughModel):
    """Spec with resolved tests."""

    spec_id: str = Field(title='Spec identifier')

    content_path: str | None = Field(
        default=None,
        title='Source content path',
    )

    run_on: list[RunTarget] = Field(
        default_factory=list,
        title='Run targets',
        description='Effective run targets: own targets or the configured ones.',
    )

    open_api: list[ExternalDoc] = Field(
        default_factory=list,
        title='API descriptions',
        description='Configured descriptions merged with the spec descriptions.',
    )

    tests: list[ResolvedTest] = Field(
        default_factory=list,
        title='Spec tests',
    )


class Resolution(SchemaModel):
    """Result of a resolution run."""

    resolved_tests_id: str = Field(
        title='Resolution identifier',
        description='Unique identifier of this resolution run.',
    )

    config: Config = Field(
        title='Configuration',
        description='Configuration the specs were resolved with.',
    )

    specs: list[ResolvedSpec] = Field(
        default_factory=list,
        title='Resolved specs',
    )
