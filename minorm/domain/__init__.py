"""
Domain package for minorm.

Exports field descriptors and the row base class. Keep this package focused on
mapping metadata; SQL generation lives in `minorm.core`.
"""

from minorm.domain.fields import FieldDescriptor, FieldSpec, normalize
from minorm.domain.row import Row, RowSchema, define_row

__all__ = [
    "FieldDescriptor",
    "FieldSpec",
    "normalize",
    "Row",
    "RowSchema",
    "define_row",
]
