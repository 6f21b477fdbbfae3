"""Spec resolution.

The resolver turns raw specs (as produced by document reading) into
resolved specs: identifiers are assigned, run targets cascade from the
configuration to specs and from specs to tests, API descriptions are
merged by name and loaded, and every test is expanded into contexts.

Resolution is sequential; the only suspension points are description
loads. A description which fails to load is logged and dropped.
"""

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from docprobe.names import new_id
from docprobe.schema import ExternalDoc, Resolution, ResolvedSpec, ResolvedTest, merge_documents
from docprobe.values import normalize

from .contexts import ContextResolver
from .descriptions import FileDescriptionLoader

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docprobe.schema import Config, RunTarget
    from docprobe.validation import DescriptionLoader
    from docprobe.values import Value

logger = getLogger(__name__)


class SpecResolver:
    """Resolve raw specs into specs, tests and contexts."""

    def __init__(self, config: 'Config',
                 loader: 'DescriptionLoader | None' = None,
                 contexts: ContextResolver | None = None) -> None:
        """Initialize the resolver.

        Args:
            config: Configuration providing default run targets and
                API descriptions.
            loader: Description loader. Defaults to a loader reading
                local files and HTTP URLs.
            contexts: Context resolver.
        """
        self.config = config
        self.loader = loader or FileDescriptionLoader()
        self.contexts = contexts or ContextResolver()

    async def resolve(self, specs: 'Iterable[dict[str, Value]]') -> Resolution:
        """Resolve specs.

        Configured descriptions are loaded once and shared by all specs.

        Args:
            specs: Raw specs in output order.

        Returns:
            The resolution carrying the configuration and resolved specs.
        """
        logger.info('Resolving test specs.')

        configured = await self.load_documents(self.config.integrations.open_api)

        resolved = []
        for spec in specs:
            resolved.append(await self.resolve_spec(spec, configured=configured))

        return Resolution(
            resolved_tests_id=new_id(),
            config=self.config,
            specs=resolved,
        )

    async def resolve_spec(self, spec: dict[str, 'Value'], *,
                           configured: list[ExternalDoc] | None = None) -> ResolvedSpec:
        """Resolve a spec and its tests.

        The spec run targets default to the configured ones, and its
        descriptions are merged over the configured ones.

        Args:
            spec: Raw spec.
            configured: Loaded configured descriptions. Loaded from the
                configuration when omitted.

        Returns:
            The resolved spec.
        """
        spec = normalize(spec)

        spec_id = str(spec.get('specId') or new_id())
        logger.debug('SPEC: %s', spec_id)

        run_on = spec.get('runOn')
        if run_on is None:
            run_on = list(self.config.run_on)

        if configured is None:
            configured = await self.load_documents(self.config.integrations.open_api)

        open_api = await self.load_documents(merge_documents(
            configured,
            self.parse_documents(spec.get('openApi')),
        ))

        tests = []
        for test in spec.get('tests') or []:
            tests.append(await self.resolve_test(test, run_on=run_on, open_api=open_api))

        return ResolvedSpec.model_validate({
            **spec,
            'specId': spec_id,
            'runOn': run_on,
            'openApi': open_api,
            'tests': tests,
        })

    async def resolve_test(self, test: dict[str, 'Value'], *,
                           run_on: 'list[RunTarget | dict[str, Value]]',
                           open_api: list[ExternalDoc]) -> ResolvedTest:
        """Resolve a test into contexts.

        Args:
            test: Raw test.
            run_on: Run targets of the spec.
            open_api: Loaded descriptions of the spec.

        Returns:
            The resolved test. Its steps only live in its contexts.
        """
        test = normalize(test)

        test_id = str(test.get('testId') or new_id())
        logger.debug('TEST: %s', test_id)

        if test.get('runOn') is not None:
            run_on = test['runOn']

        open_api = await self.load_documents(merge_documents(
            open_api,
            self.parse_documents(test.get('openApi')),
        ))

        steps = test.pop('steps', None) or []
        contexts = self.contexts.resolve(
            steps,
            run_on,
            unsafe=bool(test.get('unsafe')),
            open_api=open_api,
        )

        return ResolvedTest.model_validate({
            **test,
            'testId': test_id,
            'runOn': run_on,
            'openApi': open_api,
            'contexts': contexts,
        })

    @staticmethod
    def parse_documents(documents: 'Value') -> list[ExternalDoc]:
        """Validate declared descriptions, dropping invalid ones."""
        parsed = []
        for document in documents or []:
            try:
                parsed.append(ExternalDoc.model_validate(document))
            except ValidationError as error:
                logger.error('Invalid API description %r: %s', document, error)

        return parsed

    async def load_documents(self, documents: list[ExternalDoc]) -> list[ExternalDoc]:
        """Load descriptions which are not loaded yet.

        A description which can not be loaded is logged and dropped.
        """
        loaded = []
        for document in documents:
            if not document.requires_loading:
                loaded.append(document)
                continue

            try:
                definition = await self.loader.load(document.description_path)
            except Exception as error:  # noqa: BLE001
                logger.error('Failed to load API description %r: %s', document.name, error)
                continue

            loaded.append(document.model_copy(update={'definition': definition}))

        return loaded
