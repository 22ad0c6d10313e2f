"""Position-aligned diff for write and replace results.

This is deliberately not a minimal-edit (LCS) diff. Lines are compared by
index, so an insertion near the top of a file reports every following line
as changed. The output format is consumed downstream and must stay stable.
"""


def create_simple_diff(original: str, new: str, file_name: str) -> str:
    """Render the change from ``original`` to ``new``.

    Args:
        original: Previous file content ("" for a new file)
        new: New file content ("" when the file is cleared)
        file_name: Name shown in the header line

    Returns:
        Diff text

    Example:
        >>> print(create_simple_diff("a\\nb", "a\\nc", "x.txt"))
        === x.txt ===
        - b
        + c
    """
    if original == "":
        added = "\n".join(f"+ {line}" for line in new.split("\n"))
        return f"+++ New file: {file_name}\n{added}"

    if new == "":
        removed = "\n".join(f"- {line}" for line in original.split("\n"))
        return f"--- Deleted file: {file_name}\n{removed}"

    old_lines = original.split("\n")
    new_lines = new.split("\n")
    diff_lines: list[str] = []

    for i in range(max(len(old_lines), len(new_lines))):
        old_line = old_lines[i] if i < len(old_lines) else ""
        new_line = new_lines[i] if i < len(new_lines) else ""
        if old_line == new_line:
            continue
        if old_line:
            diff_lines.append(f"- {old_line}")
        if new_line:
            diff_lines.append(f"+ {new_line}")

    return f"=== {file_name} ===\n" + "\n".join(diff_lines)
