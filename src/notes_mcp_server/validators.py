"""
Input validation functions for notes-mcp-server.

Validates folder names, record ids and note content before they reach the
record model, the local store or a remote blob name.
"""

import re

# nanoid (original client) and uuid4 ids both fit this alphabet
_RECORD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Folder name")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_folder_name(
    name: str | None, max_length: int = 200
) -> tuple[bool, str]:
    """
    Validate a folder display name.

    Args:
        name: The folder name to validate

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot exceed max_length characters after trimming
    """
    if name is None or not name.strip():
        return (
            False,
            format_validation_error("Folder name", "cannot be empty"),
        )

    if len(name.strip()) > max_length:
        return (
            False,
            format_validation_error(
                "Folder name",
                f"cannot exceed {max_length} characters",
            ),
        )

    return (True, "")


def validate_record_id(record_id: str | None) -> tuple[bool, str]:
    """
    Validate a note or folder id.

    Ids end up inside remote blob names and remote query strings, so
    only the URL-safe alphabet is accepted.
    """
    if not record_id:
        return (False, format_validation_error("Id", "cannot be empty"))

    if not _RECORD_ID_PATTERN.match(record_id):
        return (
            False,
            format_validation_error(
                "Id",
                f"'{record_id}' may only contain letters, digits, '_' and '-'",
            ),
        )

    return (True, "")


def validate_content(
    content: str, max_size: int = 1_000_000
) -> tuple[bool, str]:
    """
    Validate note content.

    Args:
        content: The content to validate
        max_size: Maximum size in bytes (default: 1,000,000)

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - May be empty (new notes start empty)
        - Cannot exceed max_size bytes
    """
    content_bytes = len(content.encode("utf-8"))
    if content_bytes > max_size:
        return (
            False,
            format_validation_error(
                "Content", f"exceeds maximum size of {max_size} bytes"
            ),
        )

    return (True, "")
