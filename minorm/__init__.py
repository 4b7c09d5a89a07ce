"""
minorm - a minimal object-relational mapping layer.

Binds application-defined row types to table columns and generates SQL for
SELECT / INSERT / UPDATE:

- Field descriptors normalized once per row type
- Hydration of row instances with optional load hooks
- Incremental, parameterized WHERE-clause building
- Insert-vs-update resolution with auto-generated key recovery

Connections come from a thin driver layer (sqlite3 or psycopg) exposing
`prepare(sql)` and `Statement.execute(*binds)`.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from minorm.config import Settings, get_settings
from minorm.core import ConditionBuilder, Model, SaveResolver, hydrate, hydrate_many
from minorm.domain import FieldDescriptor, Row, RowSchema, define_row, normalize
from minorm.errors import (
    AmbiguousPrimaryKey,
    BuilderConsumed,
    DatabaseConnectionError,
    DriverError,
    ExecuteError,
    InvalidFieldSpec,
    InvalidSaveState,
    MinormError,
    MissingFieldMetadata,
    MissingPrimaryKey,
    PrepareError,
    RequiredFieldMissing,
    UnboundRow,
)
from minorm.infrastructure import ResultSet, connect
from minorm.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Mapping
    "FieldDescriptor",
    "normalize",
    "Row",
    "RowSchema",
    "define_row",
    "hydrate",
    "hydrate_many",
    "ConditionBuilder",
    "SaveResolver",
    "Model",
    # Database
    "ResultSet",
    "connect",
    # Errors
    "MinormError",
    "InvalidFieldSpec",
    "MissingFieldMetadata",
    "AmbiguousPrimaryKey",
    "MissingPrimaryKey",
    "RequiredFieldMissing",
    "InvalidSaveState",
    "UnboundRow",
    "BuilderConsumed",
    "DriverError",
    "DatabaseConnectionError",
    "PrepareError",
    "ExecuteError",
    # Logging
    "configure_logging",
    "get_logger",
]
