"""
Exception hierarchy for minorm.

Engine errors are raised by field normalization, hydration, query building and
the save path. Driver errors are raised by the database layer in
`minorm.infrastructure` and travel through the engine untouched.
"""

from __future__ import annotations


class MinormError(Exception):
    """Base class for every error raised by minorm."""


class InvalidFieldSpec(MinormError):
    """A field declaration is neither a bare name nor a recognized options pair."""


class MissingFieldMetadata(MinormError):
    """A row type declares no field list."""


class AmbiguousPrimaryKey(InvalidFieldSpec):
    """More than one field of a row type is flagged as primary."""


class MissingPrimaryKey(MinormError):
    """A save needs a primary-key value that is neither set nor auto-generated."""


class RequiredFieldMissing(MinormError):
    """A field flagged as required has no value at save time."""


class InvalidSaveState(MinormError):
    """The extracted write set is empty or its names and values disagree."""


class UnboundRow(MinormError):
    """A row was saved without being attached to a Model."""


class BuilderConsumed(MinormError):
    """A ConditionBuilder was used again after a terminal operation."""


class DriverError(MinormError):
    """Base class for errors coming from the database layer."""


class DatabaseConnectionError(DriverError):
    """The driver could not open a connection."""


class PrepareError(DriverError):
    """A statement could not be prepared (empty or malformed SQL)."""


class ExecuteError(DriverError):
    """A prepared statement failed while executing."""


__all__ = [
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
]
