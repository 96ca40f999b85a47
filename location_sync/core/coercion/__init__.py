"""
Field and record coercion for destination inserts.
"""

from .base_coercer import BaseCoercer, CoercionError
from .field_coercers import IntegerCoercer, TextCoercer, TimestampCoercer
from .record_coercer import RecordCoercer, coerce_record

__all__ = [
    "BaseCoercer",
    "CoercionError",
    "TextCoercer",
    "IntegerCoercer",
    "TimestampCoercer",
    "RecordCoercer",
    "coerce_record",
]
