"""Legacy test migration."""

from typing import TYPE_CHECKING

from docprobe.errors import MigrationError
from docprobe.names import LEGACY_TEST_MARKERS
from docprobe.values import normalize

if TYPE_CHECKING:
    from docprobe.validation import SchemaMigrator
    from docprobe.values import Value

#: Step added to a legacy test without steps so it satisfies the legacy schema.
PLACEHOLDER_STEP = {
    'action': 'goTo',
    'url': 'https://example.com',
}


def is_legacy_test(test: dict[str, 'Value']) -> bool:
    """Check whether a test object is written for the legacy schema."""
    return any(test.get(marker) for marker in LEGACY_TEST_MARKERS)


def legacy_to_v3(test: dict[str, 'Value'], migrator: 'SchemaMigrator') -> dict[str, 'Value']:
    """Migrate a legacy test object to the current schema.

    The legacy schema requires at least one step, so a test without steps
    is migrated with a placeholder step which is removed afterwards.
    The input object is never modified.

    Args:
        test: Legacy test object.
        migrator: Schema migrator.

    Returns:
        The migrated test object.

    Raises:
        MigrationError: If the migrator fails.
    """
    legacy = normalize(test)

    placeholder = not legacy.get('steps')
    if placeholder:
        legacy['steps'] = [dict(PLACEHOLDER_STEP)]

    try:
        migrated = migrator.transform(legacy, 'test_v2', 'test_v3')
    except MigrationError:
        raise
    except Exception as base:
        raise MigrationError('Legacy test can not be migrated', context={
            'element': test,
            'error': base,
        }) from base

    if not isinstance(migrated, dict):
        raise MigrationError('Legacy test migration produced no test', context={
            'element': test,
        })

    migrated = normalize(migrated)
    if placeholder:
        migrated['steps'] = []

    return migrated
