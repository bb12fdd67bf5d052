"""Value objects."""

from tunemigrate.domain.value_objects.migration_options import (
    MigrationOptions,
    MigrationRequest,
)

__all__ = ["MigrationOptions", "MigrationRequest"]
