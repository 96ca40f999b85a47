"""
Record coercion: turns extracted LocationRecords into typed LocationRows.

Coercion is pure (no I/O) and runs over a whole batch before the
destination is touched, so a single bad record stops the load before
anything is inserted.
"""

from typing import Any

from location_sync.core.models import CoercionResult, ExtractedDocument, LocationRow

from .base_coercer import BaseCoercer, CoercionError
from .field_coercers import IntegerCoercer, TextCoercer, TimestampCoercer


class RecordCoercer:
    """
    Applies one coercer per LocationRow field and collects every failure.
    """

    FIELD_COERCERS: dict[str, BaseCoercer] = {
        "user_id": TextCoercer("user_id", required=False),
        "latitude": TextCoercer("latitude"),
        "longitude": TextCoercer("longitude"),
        "address": TextCoercer("address", required=False),
        "type": TextCoercer("type", required=False),
        "timestamp": TimestampCoercer("timestamp"),
        "code": TextCoercer("code", required=False),
        "installment_number": IntegerCoercer("installment_number"),
    }

    def coerce(self, document: ExtractedDocument) -> CoercionResult:
        """
        Coerce a single extracted document.

        Args:
            document: Extracted (ref, record) pair

        Returns:
            CoercionResult carrying the row on success, or the failed
            fields and messages otherwise
        """
        values: dict[str, Any] = {}
        failed_fields = []
        error_messages = []

        for field_name, coercer in self.FIELD_COERCERS.items():
            raw_value = getattr(document.record, field_name)
            try:
                values[field_name] = coercer(raw_value)
            except CoercionError as e:
                failed_fields.append(field_name)
                error_messages.append(str(e))

        if failed_fields:
            return CoercionResult(
                document_id=document.ref.document_id,
                passed=False,
                failed_fields=failed_fields,
                error_messages=error_messages,
            )

        return CoercionResult(
            document_id=document.ref.document_id,
            passed=True,
            row=LocationRow(**values),
        )

    def coerce_batch(self, documents: list[ExtractedDocument]) -> list[CoercionResult]:
        """Coerce every document, in order."""
        return [self.coerce(document) for document in documents]


def coerce_record(document: ExtractedDocument) -> CoercionResult:
    """Module-level shortcut for RecordCoercer().coerce()."""
    return RecordCoercer().coerce(document)
