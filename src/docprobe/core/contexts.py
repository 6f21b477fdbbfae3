"""Context resolution.

A test runs once per context: a concrete (platform, browser) pair taken
from its run targets. Browsers only matter for tests with driver-bound
actions, other tests get one context per platform.
"""

from logging import getLogger
from typing import TYPE_CHECKING

from docprobe.names import DRIVER_ACTIONS, new_id
from docprobe.schema import Context, RunTarget

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docprobe.schema import Browser, ExternalDoc
    from docprobe.values import Step, Value

logger = getLogger(__name__)

#: Platform and browser of a context, either may be absent.
type Candidate = tuple[str | None, 'Browser | None']


def requires_driver(steps: 'Iterable[Step]') -> bool:
    """Check whether any step uses a driver-bound action."""
    return any(
        not DRIVER_ACTIONS.isdisjoint(step)
        for step in steps
        if isinstance(step, dict)
    )


class ContextResolver:
    """Expand run targets into deduplicated contexts."""

    @staticmethod
    def get_candidates(run_on: 'Iterable[RunTarget | dict[str, Value]]', *,
                       driver: bool) -> list[Candidate]:
        """Collect unique (platform, browser) pairs of run targets.

        Args:
            run_on: Run targets, raw mappings are normalized first.
            driver: Whether browsers take part in the pairs.

        Returns:
            Unique pairs in declaration order.
        """
        candidates: list[Candidate] = []

        for target in run_on:
            if not isinstance(target, RunTarget):
                target = RunTarget.model_validate(target)

            for platform in target.platforms:
                browsers = target.browsers if driver else [None]
                for browser in browsers:
                    if (platform, browser) not in candidates:
                        candidates.append((platform, browser))

        return candidates

    def resolve(self, steps: 'Iterable[Step]',
                run_on: 'Iterable[RunTarget | dict[str, Value]]', *,
                unsafe: bool = False,
                open_api: 'Iterable[ExternalDoc]' = ()) -> list[Context]:
        """Build the contexts of a test.

        Args:
            steps: Test steps.
            run_on: Effective run targets of the test.
            unsafe: Test unsafe flag.
            open_api: Merged API descriptions of the test.

        Returns:
            One context per unique candidate, or a single context without
            platform and browser when the run targets yield nothing.
        """
        steps = list(steps)
        open_api = list(open_api)

        candidates = self.get_candidates(run_on, driver=requires_driver(steps))
        if not candidates:
            candidates = [(None, None)]

        contexts = []
        for platform, browser in candidates:
            context = Context(
                context_id=new_id(),
                platform=platform,
                browser=browser,
                unsafe=unsafe,
                open_api=open_api,
                steps=list(steps),
            )
            logger.debug('CONTEXT: %s', context.context_id)
            contexts.append(context)

        return contexts
