from uniform_ops.modules.migration.duplicates import (
    DuplicateGroup,
    DuplicateResolver,
    detect_duplicates,
    natural_key_from_references,
)
from uniform_ops.modules.migration.engine import MigrationEngine
from uniform_ops.modules.migration.migration_log import MigrationLog
from uniform_ops.modules.migration.orphans import OrphanCleaner

__all__ = [
    "DuplicateGroup",
    "DuplicateResolver",
    "MigrationEngine",
    "MigrationLog",
    "OrphanCleaner",
    "detect_duplicates",
    "natural_key_from_references",
]
