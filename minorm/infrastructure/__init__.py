"""
Infrastructure package for minorm.

Centralizes database connectivity: the driver contracts consumed by the engine
and the factory that opens concrete handles. Keep this layer focused on I/O and
resource management, decoupled from mapping logic.
"""

from minorm.infrastructure.abstract import Handle, RawRow, ResultSet, Statement
from minorm.infrastructure.db_factory import (
    DbApiHandle,
    DbApiStatement,
    available_drivers,
    connect,
)

__all__ = [
    "Handle",
    "RawRow",
    "ResultSet",
    "Statement",
    "DbApiHandle",
    "DbApiStatement",
    "available_drivers",
    "connect",
]
