"""One-shot conversion of the legacy two-earner income record into income sources.

The migration is idempotent: it records a completion marker in the store and
never touches a household that already has income sources.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from .db import DocumentStore
from .models import DEFAULT_CHECKING_FLOOR, LegacyIncomeConfig

logger = logging.getLogger(__name__)

INCOME_SOURCES = 'incomeSources'
INCOME_CONFIG = 'incomeConfig'
APP_CONFIG = 'appConfig'
MIGRATIONS = 'migrations'
CONFIG_DOC_ID = 'config'
LEGACY_INCOME_MIGRATION_ID = 'legacy-income-sources'

SKIPPED_COMPLETED = 'skipped-completed'
SKIPPED_HAS_SOURCES = 'skipped-has-sources'
SKIPPED_NO_LEGACY = 'skipped-no-legacy'
MIGRATED = 'migrated'


@dataclass(frozen=True)
class MigrationResult:
    status: str
    created_source_ids: Tuple[str, ...] = ()

    @property
    def migrated(self) -> bool:
        return self.status == MIGRATED


def migrate_legacy_income(store: DocumentStore) -> MigrationResult:
    """Convert the legacy income record into income sources and an app config.

    Only earners with both a pay amount and a next pay date become sources.
    The app config receives the legacy checking floor (4700 when unset) and
    a ``migratedAt`` timestamp.

    Args:
        store: Document store holding the household's data

    Returns:
        What happened; ``created_source_ids`` is empty unless the status is ``migrated``
    """
    if store.get(MIGRATIONS, LEGACY_INCOME_MIGRATION_ID) is not None:
        return MigrationResult(SKIPPED_COMPLETED)

    if store.query(INCOME_SOURCES):
        return MigrationResult(SKIPPED_HAS_SOURCES)

    legacy = LegacyIncomeConfig.from_document(store.get(INCOME_CONFIG, CONFIG_DOC_ID))
    if legacy is None:
        return MigrationResult(SKIPPED_NO_LEGACY)

    logger.info("Migrating legacy income config to income sources")
    created = []
    for source in legacy.to_income_sources():
        created.append(store.create(INCOME_SOURCES, source.to_document()))

    migrated_at = datetime.now()
    store.set(APP_CONFIG, CONFIG_DOC_ID, {
        'checkingFloor': legacy.checking_floor or DEFAULT_CHECKING_FLOOR,
        'migratedAt': migrated_at,
    })
    store.set(MIGRATIONS, LEGACY_INCOME_MIGRATION_ID, {
        'completedAt': migrated_at,
        'createdSourceIds': created,
    })
    logger.info("Migration complete: created %d income source(s)", len(created))
    return MigrationResult(MIGRATED, tuple(created))
