"""
Base coercer interface for destination field types.

All coercers inherit from BaseCoercer and implement coerce().
"""

from abc import ABC, abstractmethod
from typing import Any


class CoercionError(Exception):
    """Raised when a field value cannot be converted to its destination type."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = message
        super().__init__(f"{field_name}: {message}")


class BaseCoercer(ABC):
    """
    Abstract base class for field coercers.

    A coercer converts one raw document value into the Python type bound
    to the destination column, or raises CoercionError.
    """

    def __init__(self, field_name: str, required: bool = True):
        """
        Initialize coercer.

        Args:
            field_name: Name of the record field being coerced
            required: Whether a missing (None) value is an error
        """
        self.field_name = field_name
        self.required = required

    def __call__(self, value: Any) -> Any:
        if value is None:
            if self.required:
                raise CoercionError(self.field_name, "value is missing")
            return None
        if isinstance(value, bool):
            # bool is an int subclass; a flag is never a valid location value
            raise CoercionError(self.field_name, f"cannot convert boolean {value!r} to {self.target_type}")
        return self.coerce(value)

    @abstractmethod
    def coerce(self, value: Any) -> Any:
        """
        Convert a non-null value.

        Args:
            value: Raw value from the source document

        Returns:
            The converted value

        Raises:
            CoercionError: If conversion fails
        """
        pass

    @property
    @abstractmethod
    def target_type(self) -> str:
        """Human-readable destination type name."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, required={self.required})"
