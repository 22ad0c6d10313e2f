"""Literal, count-verified text replacement.

The replace tool never does fuzzy or partial matching. A replacement is
only applied when the literal ``old_string`` occurs exactly the expected
number of times; every rejection is reported as a ``ReplacementRejected``
with an error code and a stable reason.
"""

from dataclasses import dataclass
from typing import Any

from toolkernel.exceptions import ErrorCodes


class ReplacementRejected(Exception):
    """The requested replacement cannot be applied.

    Attributes:
        error: Error code for the tool result
        reason: Fine-grained reason (e.g. "STRING_NOT_FOUND")
        details: Extra diagnostic fields
    """

    def __init__(self, error: str, reason: str, message: str, **details: Any):
        self.error = error
        self.reason = reason
        self.details = details
        super().__init__(message)


@dataclass(frozen=True)
class ReplacementPlan:
    """Content to write and how it was derived."""

    current_content: str
    new_content: str
    occurrences: int
    is_new_file: bool


def normalize_line_endings(text: str) -> str:
    """Convert CRLF line endings to LF."""
    return text.replace("\r\n", "\n")


def count_occurrences(content: str, old_string: str) -> int:
    """Count non-overlapping literal occurrences of ``old_string``."""
    if not old_string:
        return 0
    return content.count(old_string)


def calculate_replacement(
    current_content: str | None,
    old_string: str,
    new_string: str,
    expected_replacements: int = 1,
) -> ReplacementPlan:
    """Work out the new file content for a replace request.

    Args:
        current_content: Existing file content, or None if the file does not exist
        old_string: Exact literal text to replace ("" creates a new file)
        new_string: Replacement text
        expected_replacements: Number of occurrences that must be present

    Returns:
        ReplacementPlan describing the write to perform

    Raises:
        ReplacementRejected: If any rule rejects the request

    Example:
        >>> plan = calculate_replacement("hello world", "world", "there")
        >>> plan.new_content, plan.occurrences
        ('hello there', 1)
    """
    if current_content is None:
        if old_string != "":
            raise ReplacementRejected(
                ErrorCodes.NOT_FOUND,
                "FILE_NOT_FOUND",
                "File not found. Cannot apply edit. Use an empty old_string to create a new file.",
            )
        return ReplacementPlan(
            current_content="", new_content=new_string, occurrences=0, is_new_file=True
        )

    current = normalize_line_endings(current_content)

    if old_string == "":
        raise ReplacementRejected(
            ErrorCodes.ALREADY_EXISTS,
            "FILE_ALREADY_EXISTS",
            "Failed to edit. Attempted to create a file that already exists.",
        )

    occurrences = count_occurrences(current, old_string)

    if occurrences == 0:
        raise ReplacementRejected(
            ErrorCodes.NOT_FOUND,
            "STRING_NOT_FOUND",
            "Failed to edit, could not find the string to replace.",
        )

    if occurrences != expected_replacements:
        raise ReplacementRejected(
            ErrorCodes.OCCURRENCE_MISMATCH,
            "OCCURRENCE_MISMATCH",
            f"Failed to edit, expected {expected_replacements} occurrence(s) but found {occurrences}.",
            expected=expected_replacements,
            found=occurrences,
        )

    if old_string == new_string:
        raise ReplacementRejected(
            ErrorCodes.NO_OP_CHANGE,
            "NO_CHANGE_NEEDED",
            "No changes to apply. The old_string and new_string are identical.",
        )

    new_content = current.replace(old_string, new_string)

    if new_content == current:
        raise ReplacementRejected(
            ErrorCodes.NO_OP_CHANGE,
            "NO_CONTENT_CHANGE",
            "No changes to apply. The new content is identical to the current content.",
        )

    return ReplacementPlan(
        current_content=current,
        new_content=new_content,
        occurrences=occurrences,
        is_new_file=False,
    )
