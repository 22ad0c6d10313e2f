"""Typed payloads carried in ``ToolResult.data``.

Each tool returns exactly one payload variant, tagged by ``kind`` so the
union can be validated and serialized without guessing.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from toolkernel.sandbox.base import FileEntry
from toolkernel.validation.parsers import Diagnostic
from toolkernel.validation.pipeline import ValidationReport


class DirectoryListing(BaseModel):
    """Payload of list_directory."""

    kind: Literal["directory_listing"] = "directory_listing"
    path: str
    entries: list[FileEntry] = Field(default_factory=list)
    count: int = 0
    ignored_count: int = 0
    formatted_listing: str = ""


class FileContent(BaseModel):
    """Payload of read_file."""

    kind: Literal["file_content"] = "file_content"
    content: str
    encoding: Literal["utf8", "base64"]
    mime_type: str
    file_size: int
    total_lines: int | None = None
    is_binary: bool = False
    is_truncated: bool = False
    lines_shown: tuple[int, int] | None = None
    next_offset: int | None = None


class FileWrite(BaseModel):
    """Payload of write_file."""

    kind: Literal["file_write"] = "file_write"
    file_path: str
    is_new_file: bool
    content_length: int
    line_count: int
    diff: str


class Replacement(BaseModel):
    """Payload of replace."""

    kind: Literal["replacement"] = "replacement"
    file_path: str
    is_new_file: bool
    occurrences: int
    content_length: int
    line_count: int
    diff: str


class SearchMatch(BaseModel):
    """A single matching line."""

    file_path: str
    line_number: int
    line: str


class SearchResults(BaseModel):
    """Payload of search_file_content."""

    kind: Literal["search_results"] = "search_results"
    matches: list[SearchMatch] = Field(default_factory=list)
    matches_by_file: dict[str, list[SearchMatch]] = Field(default_factory=dict)
    file_count: int = 0
    match_count: int = 0
    formatted_results: str = ""


class GlobResults(BaseModel):
    """Payload of glob."""

    kind: Literal["glob_results"] = "glob_results"
    files: list[str] = Field(default_factory=list)
    count: int = 0
    formatted_list: str = ""


class CommandOutput(BaseModel):
    """Payload of execute_command."""

    kind: Literal["command_output"] = "command_output"
    command: str
    exit_code: int | None
    stdout: str
    stderr: str
    execution_time_ms: int


class CodeValidation(BaseModel):
    """Payload of validate_code."""

    kind: Literal["code_validation"] = "code_validation"
    file_path: str
    file_type: Literal["html", "css", "script"]
    is_valid: bool
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    references_checked: int = 0


ToolData = Annotated[
    DirectoryListing
    | FileContent
    | FileWrite
    | Replacement
    | SearchResults
    | GlobResults
    | CommandOutput
    | ValidationReport
    | CodeValidation,
    Field(discriminator="kind"),
]
