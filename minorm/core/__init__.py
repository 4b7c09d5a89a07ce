"""
Core package for minorm.

Re-exports the mapping engine (hydration, query building, save resolution)
and the Model gateway that ties them to a database handle.
"""

from minorm.core.conditions import OPERATORS, ConditionBuilder
from minorm.core.mapper import hydrate, hydrate_many
from minorm.core.model import Model
from minorm.core.persistence import SaveResolver, WriteSet

__all__ = [
    "OPERATORS",
    "ConditionBuilder",
    "hydrate",
    "hydrate_many",
    "Model",
    "SaveResolver",
    "WriteSet",
]
