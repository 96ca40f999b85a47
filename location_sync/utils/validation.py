"""
Input validation utilities for configuration values.

Unit ids, collection names and destination table names come from
configuration files and end up in log lines, metric labels and SQL
statements, so they are checked before use.
"""

import re


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_unit_id(unit_id: str, field_name: str = "unit_id") -> str:
    """
    Validate a migration unit id.

    Unit ids must be non-empty strings containing only alphanumeric
    characters, hyphens, underscores and dots.

    Args:
        unit_id: The id to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated id (stripped of whitespace)

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_unit_id("branch-north")
        'branch-north'
        >>> validate_unit_id("branch north!")  # doctest: +SKIP
        ValidationError: unit_id contains invalid characters
    """
    if not unit_id or not isinstance(unit_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    unit_id = unit_id.strip()

    if not unit_id:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if not re.match(r'^[a-zA-Z0-9_\-\.]+$', unit_id):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "Only alphanumeric, hyphens, underscores, and dots are allowed."
        )

    if len(unit_id) > 255:
        raise ValidationError(f"{field_name} exceeds maximum length of 255 characters")

    return unit_id


def validate_collection_id(collection_id: str, field_name: str = "collection_id") -> str:
    """
    Validate a document-store collection name.

    Follows MongoDB naming restrictions: non-empty, no '$', no null bytes,
    not starting with 'system.'.

    Examples:
        >>> validate_collection_id("locations_north")
        'locations_north'
    """
    if not collection_id or not isinstance(collection_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    if collection_id != collection_id.strip():
        raise ValidationError(f"{field_name} must not have leading or trailing whitespace")

    if "$" in collection_id or "\x00" in collection_id:
        raise ValidationError(f"{field_name} contains invalid characters ('$' or null byte)")

    if collection_id.startswith("system."):
        raise ValidationError(f"{field_name} must not reference a system collection")

    return collection_id


def validate_batch_size(batch_size: int, field_name: str = "batch_size", max_size: int = 500) -> int:
    """
    Validate a delete batch size.

    Args:
        batch_size: Requested batch size
        field_name: Name of the field (for error messages)
        max_size: Upper bound imposed by the document store's batch-write limit

    Examples:
        >>> validate_batch_size(500)
        500
        >>> validate_batch_size(0)  # doctest: +SKIP
        ValidationError: batch_size must be a positive integer
    """
    if not isinstance(batch_size, int) or isinstance(batch_size, bool):
        raise ValidationError(f"{field_name} must be an integer, got {type(batch_size).__name__}")

    if batch_size <= 0:
        raise ValidationError(f"{field_name} must be a positive integer, got {batch_size}")

    if batch_size > max_size:
        raise ValidationError(f"{field_name} exceeds maximum of {max_size}")

    return batch_size


def sanitize_sql_identifier(identifier: str, field_name: str = "identifier") -> str:
    """
    Sanitize an SQL identifier (table name, column name, etc.).

    Args:
        identifier: The identifier to sanitize
        field_name: Name of the field (for error messages)

    Returns:
        The validated identifier

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> sanitize_sql_identifier("tbl_location")
        'tbl_location'
        >>> sanitize_sql_identifier("table; DROP TABLE users;")  # doctest: +SKIP
        ValidationError: identifier contains invalid characters
    """
    if not identifier or not isinstance(identifier, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    identifier = identifier.strip()

    # SQL identifiers: alphanumeric and underscores only, must start with letter or underscore
    if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', identifier):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "SQL identifiers must start with a letter or underscore and contain only "
            "alphanumeric characters and underscores."
        )

    if len(identifier) > 63:  # PostgreSQL limit
        raise ValidationError(f"{field_name} exceeds PostgreSQL maximum length of 63 characters")

    reserved_keywords = {
        "select", "insert", "update", "delete", "drop", "create", "alter",
        "table", "database", "index", "view", "user", "grant", "revoke"
    }
    if identifier.lower() in reserved_keywords:
        raise ValidationError(
            f"{field_name} '{identifier}' is a reserved SQL keyword. "
            "Please use a different name."
        )

    return identifier
