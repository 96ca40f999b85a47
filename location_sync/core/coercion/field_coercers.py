"""
Field coercers for the location table columns.
"""

import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser

from .base_coercer import BaseCoercer, CoercionError

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


class TextCoercer(BaseCoercer):
    """
    Renders scalars as text.

    Numbers are rendered with str() so coordinates keep the digits the
    source stored instead of going through a float column.
    """

    def coerce(self, value: Any) -> str:
        if isinstance(value, str):
            return value

        if isinstance(value, float) and not math.isfinite(value):
            raise CoercionError(self.field_name, f"non-finite number {value!r} is not a valid {self.target_type}")

        if isinstance(value, (int, float, Decimal)):
            return str(value)

        if isinstance(value, (dict, list, tuple, set, bytes)):
            raise CoercionError(
                self.field_name,
                f"cannot convert {type(value).__name__} to {self.target_type}",
            )

        return str(value)

    @property
    def target_type(self) -> str:
        return "text"


class IntegerCoercer(BaseCoercer):
    """
    Parses integers from ints, integral floats and digit strings.

    Fractional values and anything non-numeric are rejected rather than
    truncated.
    """

    def coerce(self, value: Any) -> int:
        if isinstance(value, int):
            return value

        if isinstance(value, float):
            if not value.is_integer():
                raise CoercionError(self.field_name, f"{value!r} is not a whole number")
            return int(value)

        if isinstance(value, Decimal):
            try:
                if value != value.to_integral_value():
                    raise CoercionError(self.field_name, f"{value!r} is not a whole number")
                return int(value)
            except InvalidOperation as e:
                raise CoercionError(self.field_name, f"cannot parse {value!r} as integer") from e

        if isinstance(value, str):
            text = value.strip()
            if not _INTEGER_PATTERN.match(text):
                raise CoercionError(self.field_name, f"cannot parse {value!r} as integer")
            return int(text)

        raise CoercionError(self.field_name, f"cannot convert {type(value).__name__} to integer")

    @property
    def target_type(self) -> str:
        return "integer"


class TimestampCoercer(BaseCoercer):
    """
    Parses timestamps into timezone-aware datetimes.

    Accepts native datetimes and dates, epoch milliseconds and date strings.
    Naive values are taken as UTC.
    """

    def coerce(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return self._ensure_aware(value)

        if isinstance(value, date):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

        if isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as e:
                raise CoercionError(self.field_name, f"epoch milliseconds {value!r} out of range") from e

        if isinstance(value, str):
            text = value.strip()
            if not text:
                raise CoercionError(self.field_name, "empty timestamp string")
            try:
                return self._ensure_aware(date_parser.parse(text))
            except (ValueError, OverflowError) as e:
                raise CoercionError(self.field_name, f"cannot parse {value!r} as timestamp") from e

        raise CoercionError(self.field_name, f"cannot convert {type(value).__name__} to timestamp")

    @staticmethod
    def _ensure_aware(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def target_type(self) -> str:
        return "timestamp"
