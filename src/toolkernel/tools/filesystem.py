"""Filesystem tools for sandboxed file inspection and modification.

This module provides the file tools an agent uses to work on a codebase
inside its sandbox. Every tool runs the sandbox guard and the path contract
before it touches the sandbox filesystem, and converts every I/O or pattern
failure into a ``ToolResult`` rather than raising.

Key Features:
- Directory listing with single-segment ignore patterns
- Line-windowed reads with truncation and continuation hints
- Whole-file writes with a position-aligned diff
- Literal, count-verified replacement
- Recursive regex search and recency-ordered glob

Partial side effects are not rolled back: a write that fails after its
parent directory was created leaves the directory in place.
"""

import base64
import logging
import posixpath
import re
from typing import Annotated

from pydantic import Field

from toolkernel.config.constants import VCS_DIRS
from toolkernel.config.schema import KernelSettings
from toolkernel.context import SandboxContext, normalize_path
from toolkernel.exceptions import ErrorCodes, PatternError, SandboxPathError
from toolkernel.locks import PathLocks
from toolkernel.models import (
    DirectoryListing,
    FileContent,
    FileWrite,
    GlobResults,
    Replacement,
    SearchMatch,
    SearchResults,
)
from toolkernel.patterns import GlobMatcher, IgnoreRules, PathFilter, sort_by_recency
from toolkernel.sandbox.base import FileEntry, SandboxFilesystem
from toolkernel.tools.toolset import KernelToolset, ToolExample, ToolMetadata
from toolkernel.utils.diff import create_simple_diff
from toolkernel.utils.file_reading import (
    OffsetOutOfBounds,
    is_binary_path,
    mime_type_for,
    select_lines,
)
from toolkernel.utils.responses import ToolResult
from toolkernel.utils.text_replacement import ReplacementRejected, calculate_replacement

logger = logging.getLogger(__name__)

UNREADABLE_PLACEHOLDER = "[Binary or unreadable content]"


class FileSystemTools(KernelToolset):
    """File tools bound to a sandbox filesystem.

    Example:
        >>> sandbox = LocalSandbox(tmp_path)
        >>> tools = FileSystemTools(KernelSettings(), sandbox)
        >>> ctx = SandboxContext(tool_call_id="call-1", sandbox_id="sbx-1")
        >>> result = await tools.write_file(ctx, "/workspace/a.txt", "hello\\nworld")
        >>> result.data.is_new_file
        True
    """

    def __init__(
        self,
        settings: KernelSettings,
        filesystem: SandboxFilesystem,
        locks: PathLocks | None = None,
    ):
        """Initialize FileSystemTools.

        Args:
            settings: Kernel settings (read/write limits, scan rules)
            filesystem: Sandbox filesystem backend
            locks: Shared per-path locks; a private instance is used if omitted
        """
        super().__init__(settings)
        self.filesystem = filesystem
        self.locks = locks or PathLocks()

    def get_tools(self) -> list:
        """Get list of filesystem tools."""
        return [
            self.list_directory,
            self.read_file,
            self.write_file,
            self.replace,
            self.search_file_content,
            self.glob,
        ]

    def get_tool_metadata(self) -> dict[str, ToolMetadata]:
        return {
            "list_directory": ToolMetadata(
                display_name="ReadFolder",
                estimated_duration_ms=1000,
                examples=[
                    ToolExample(
                        description="List project root, hiding logs and dependencies",
                        input={"path": "/workspace", "ignore": ["*.log", "node_modules"]},
                    )
                ],
            ),
            "read_file": ToolMetadata(
                display_name="ReadFile",
                estimated_duration_ms=1000,
                examples=[
                    ToolExample(
                        description="Read a whole file",
                        input={"absolute_path": "/workspace/src/App.tsx"},
                    ),
                    ToolExample(
                        description="Read lines 101-150 of a large file",
                        input={"absolute_path": "/workspace/src/App.tsx", "offset": 100, "limit": 50},
                    ),
                ],
            ),
            "write_file": ToolMetadata(
                display_name="WriteFile",
                safety_level="potentially_destructive",
                estimated_duration_ms=1500,
                examples=[
                    ToolExample(
                        description="Create a new component",
                        input={
                            "file_path": "/workspace/src/Button.tsx",
                            "content": "export const Button = () => <button />;\n",
                        },
                    )
                ],
            ),
            "replace": ToolMetadata(
                display_name="Edit",
                safety_level="potentially_destructive",
                estimated_duration_ms=1500,
                examples=[
                    ToolExample(
                        description="Rename a function at its single definition",
                        input={
                            "file_path": "/workspace/src/utils.ts",
                            "old_string": "function oldName() {",
                            "new_string": "function newName() {",
                        },
                    ),
                    ToolExample(
                        description="Replace every occurrence of a constant",
                        input={
                            "file_path": "/workspace/src/config.ts",
                            "old_string": "API_V1",
                            "new_string": "API_V2",
                            "expected_replacements": 3,
                        },
                    ),
                ],
            ),
            "search_file_content": ToolMetadata(
                display_name="SearchText",
                estimated_duration_ms=3000,
                examples=[
                    ToolExample(
                        description="Find function definitions in TypeScript files",
                        input={
                            "pattern": r"function\s+\w+",
                            "path": "/workspace/src",
                            "include": "*.{ts,tsx}",
                        },
                    )
                ],
            ),
            "glob": ToolMetadata(
                display_name="FindFiles",
                estimated_duration_ms=2000,
                examples=[
                    ToolExample(
                        description="Find all TypeScript files",
                        input={"pattern": "**/*.ts", "path": "/workspace"},
                    ),
                    ToolExample(
                        description="Find package manifests",
                        input={"pattern": "**/package.json", "path": "/workspace"},
                    ),
                ],
            ),
        }

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _sandbox_path_error(self, path: str, error: SandboxPathError) -> ToolResult:
        return self._create_error_response(
            error=ErrorCodes.INVALID_PATH,
            message=f"Path is outside the sandbox: {path}",
            technical_details={"error": str(error), "provided_path": path},
        )

    def _io_error(self, action: str, path: str, error: OSError) -> ToolResult:
        if isinstance(error, PermissionError):
            message = f"Permission denied {action}: {path}"
        else:
            message = f"Failed {action} {path}: {error.strerror or error}"
        return self._create_error_response(
            error=ErrorCodes.IO_FAILURE,
            message=message,
            technical_details={"error": str(error), "path": path},
        )

    async def _walk(
        self, sandbox_id: str, root: str, excluded: tuple[str, ...] | list[str]
    ) -> list[tuple[FileEntry, str]]:
        """Collect files under ``root`` with their paths relative to it.

        Directories named in ``excluded`` are never descended into, and
        neither are symlinked directories, so link cycles cannot recurse.
        Unreadable directories and those resolving outside the sandbox are
        skipped.
        """
        files: list[tuple[FileEntry, str]] = []
        pending = [root]

        while pending:
            current = pending.pop()
            try:
                children = await self.filesystem.list_dir(sandbox_id, current)
            except (OSError, SandboxPathError) as e:
                logger.debug(f"Skipping unreadable directory {current}: {e}")
                continue

            for child in children:
                if child.is_directory:
                    if child.is_symlink:
                        logger.debug(f"Not following symlinked directory {child.path}")
                    elif child.name not in excluded:
                        pending.append(child.path)
                else:
                    files.append((child, posixpath.relpath(child.path, root)))

        return files

    async def _read_previous_content(self, sandbox_id: str, path: str) -> str:
        """Read existing content for a diff, falling back to a placeholder."""
        if is_binary_path(path):
            return UNREADABLE_PLACEHOLDER
        try:
            raw = await self.filesystem.read_bytes(sandbox_id, path)
            return raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read previous content of {path}: {e}")
            return UNREADABLE_PLACEHOLDER

    def _check_write_size(self, content: str) -> ToolResult | None:
        size = len(content.encode("utf-8"))
        limit = self.settings.filesystem.max_write_bytes
        if size <= limit:
            return None
        return self._create_error_response(
            error=ErrorCodes.INVALID_ARGUMENT,
            message=f"Content size ({size} bytes) exceeds max write limit ({limit} bytes)",
            technical_details={"reason": "CONTENT_TOO_LARGE", "size": size, "limit": limit},
        )

    async def _write(self, sandbox_id: str, path: str, content: str) -> ToolResult | None:
        """Create the parent directory then write; returns an error result or None."""
        parent = posixpath.dirname(normalize_path(path))
        try:
            await self.filesystem.mkdir(sandbox_id, parent)
        except OSError as e:
            return self._create_error_response(
                error=ErrorCodes.IO_FAILURE,
                message=f"Failed to create directory: {parent}. Error: {e}",
                technical_details={"error": str(e), "directory": parent},
            )

        try:
            await self.filesystem.write_bytes(sandbox_id, path, content.encode("utf-8"))
        except OSError as e:
            logger.error(f"Failed to write {sandbox_id}:{path}: {e}")
            return self._create_error_response(
                error=ErrorCodes.IO_FAILURE,
                message=f"Failed to write file: {path}. Error: {e}",
                technical_details={"error": str(e), "path": path, "directory_created": parent},
            )

        return None

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def list_directory(
        self,
        context: SandboxContext,
        path: Annotated[str, Field(description="Absolute path of the directory to list")],
        ignore: Annotated[
            list[str] | None,
            Field(description='Glob patterns of entry names to ignore (e.g., ["*.log", "node_modules"])'),
        ] = None,
    ) -> ToolResult:
        """List the files and subdirectories directly inside a directory. Directories are listed first, then files, alphabetically."""
        if error := self._guard(context, path=path):
            return error

        try:
            rules = IgnoreRules(ignore)
        except PatternError as e:
            return self._create_error_response(
                error=ErrorCodes.PATTERN_ERROR,
                message=str(e),
                technical_details={"pattern": e.pattern},
            )

        sandbox_id = context.sandbox_id
        try:
            target = await self.filesystem.stat(sandbox_id, path)
            if target is None:
                return self._create_error_response(
                    error=ErrorCodes.NOT_FOUND,
                    message=f"Directory not found or inaccessible: {path}",
                    technical_details={"error": "Directory not found", "path": path},
                )
            if not target.is_directory:
                return self._create_error_response(
                    error=ErrorCodes.NOT_A_DIRECTORY,
                    message=f"Path is not a directory: {path}",
                    technical_details={"error": "Not a directory", "path": path},
                )
            children = await self.filesystem.list_dir(sandbox_id, path)
        except SandboxPathError as e:
            return self._sandbox_path_error(path, e)
        except OSError as e:
            return self._io_error("listing directory", path, e)

        if not children:
            return self._create_success_response(
                DirectoryListing(path=path),
                f"Directory {path} is empty.",
                technical_details={"path": path, "entry_count": 0},
            )

        entries = [child for child in children if not rules.is_ignored(child.name)]
        ignored_count = len(children) - len(entries)
        entries.sort(key=lambda e: (not e.is_directory, e.name.lower(), e.name))

        formatted = "\n".join(f"{'[DIR] ' if e.is_directory else ''}{e.name}" for e in entries)

        message = f"Listed {len(entries)} item(s)."
        full_listing = f"Directory listing for {path}:\n{formatted}"
        if ignored_count:
            message += f" ({ignored_count} ignored)"
            full_listing += f"\n\n({ignored_count} ignored)"

        return self._create_success_response(
            DirectoryListing(
                path=path,
                entries=entries,
                count=len(entries),
                ignored_count=ignored_count,
                formatted_listing=formatted,
            ),
            message,
            technical_details={
                "path": path,
                "entry_count": len(entries),
                "ignored_count": ignored_count,
                "full_listing": full_listing,
            },
        )

    async def read_file(
        self,
        context: SandboxContext,
        absolute_path: Annotated[str, Field(description="Absolute path of the file to read")],
        offset: Annotated[
            int | None, Field(ge=0, description="0-based line number to start reading from")
        ] = None,
        limit: Annotated[
            int | None, Field(ge=1, description="Maximum number of lines to read")
        ] = None,
    ) -> ToolResult:
        """Read a file. Text files are returned as UTF-8 (paginated with offset/limit, truncated at 2000 lines by default); images, archives and other binary files as base64."""
        if error := self._guard(context, absolute_path=absolute_path):
            return error

        if offset is not None and offset < 0:
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message="Offset must be a non-negative number",
                technical_details={"offset": offset},
            )
        if limit is not None and limit <= 0:
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message="Limit must be a positive number",
                technical_details={"limit": limit},
            )

        sandbox_id = context.sandbox_id
        try:
            target = await self.filesystem.stat(sandbox_id, absolute_path)
            if target is None:
                return self._create_error_response(
                    error=ErrorCodes.NOT_FOUND,
                    message=f"File not found or inaccessible: {absolute_path}",
                    technical_details={"error": "File not found", "path": absolute_path},
                )
            if target.is_directory:
                return self._create_error_response(
                    error=ErrorCodes.IS_A_DIRECTORY,
                    message=f"Path is a directory, not a file: {absolute_path}",
                    technical_details={"error": "Is a directory", "path": absolute_path},
                )
            max_bytes = self.settings.filesystem.max_read_bytes
            if target.size > max_bytes:
                return self._create_error_response(
                    error=ErrorCodes.INVALID_ARGUMENT,
                    message=f"File too large: {target.size} bytes (max {max_bytes} bytes)",
                    technical_details={"reason": "FILE_TOO_LARGE", "size": target.size},
                )
            raw = await self.filesystem.read_bytes(sandbox_id, absolute_path)
        except SandboxPathError as e:
            return self._sandbox_path_error(absolute_path, e)
        except OSError as e:
            return self._io_error("reading file", absolute_path, e)

        name = posixpath.basename(absolute_path)
        mime_type = mime_type_for(absolute_path)
        file_size = len(raw)

        if is_binary_path(absolute_path):
            return self._create_success_response(
                FileContent(
                    content=base64.b64encode(raw).decode("ascii"),
                    encoding="base64",
                    mime_type=mime_type,
                    file_size=file_size,
                    is_binary=True,
                ),
                f"Successfully read binary file: {name} ({file_size} bytes, {mime_type})",
                technical_details={"path": absolute_path, "encoding": "base64"},
            )

        text = raw.decode("utf-8", errors="replace")
        try:
            window = select_lines(text, offset, limit, self.settings.filesystem.max_read_lines)
        except OffsetOutOfBounds as e:
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message=str(e),
                technical_details={
                    "reason": "OFFSET_OUT_OF_BOUNDS",
                    "offset": e.offset,
                    "total_lines": e.total_lines,
                },
            )

        start, end = window.lines_shown
        if window.is_truncated:
            message = (
                f"File content truncated. Showing lines {start}-{end} "
                f"of {window.total_lines} total lines."
            )
        else:
            message = f"Successfully read file: {name} ({window.total_lines} lines, {file_size} bytes)"

        return self._create_success_response(
            FileContent(
                content=window.render(),
                encoding="utf8",
                mime_type=mime_type,
                file_size=file_size,
                total_lines=window.total_lines,
                is_truncated=window.is_truncated,
                lines_shown=window.lines_shown,
                next_offset=window.next_offset,
            ),
            message,
            technical_details={"path": absolute_path, "encoding": "utf8"},
        )

    async def write_file(
        self,
        context: SandboxContext,
        file_path: Annotated[str, Field(description="Absolute path of the file to write")],
        content: Annotated[str, Field(description="Complete new content of the file")],
    ) -> ToolResult:
        """Write content to a file, creating it and any missing parent directories, or overwriting it if it exists. Returns a diff of the change."""
        if error := self._guard(context, file_path=file_path):
            return error
        if error := self._check_write_size(content):
            return error

        sandbox_id = context.sandbox_id
        async with self.locks.hold(sandbox_id, file_path):
            try:
                existing = await self.filesystem.stat(sandbox_id, file_path)
                if existing is not None and existing.is_directory:
                    return self._create_error_response(
                        error=ErrorCodes.IS_A_DIRECTORY,
                        message=f"Path is a directory, not a file: {file_path}",
                        technical_details={"error": "Is a directory", "path": file_path},
                    )

                is_new_file = existing is None
                original = (
                    "" if is_new_file else await self._read_previous_content(sandbox_id, file_path)
                )

                if error := await self._write(sandbox_id, file_path, content):
                    return error
            except SandboxPathError as e:
                return self._sandbox_path_error(file_path, e)
            except OSError as e:
                return self._io_error("accessing", file_path, e)

        name = posixpath.basename(file_path)
        line_count = len(content.split("\n"))
        logger.info(
            f"{'Created' if is_new_file else 'Updated'} {sandbox_id}:{file_path} ({line_count} lines)"
        )

        return self._create_success_response(
            FileWrite(
                file_path=file_path,
                is_new_file=is_new_file,
                content_length=len(content),
                line_count=line_count,
                diff=create_simple_diff(original, content, name),
            ),
            f"{'Created new file' if is_new_file else 'Updated file'}: {name} with {line_count} lines",
            preview_refresh_needed=True,
            changed_files=[file_path],
            technical_details={"path": file_path, "is_new_file": is_new_file},
        )

    async def replace(
        self,
        context: SandboxContext,
        file_path: Annotated[str, Field(description="Absolute path of the file to modify")],
        old_string: Annotated[
            str,
            Field(
                description="Exact literal text to replace, including surrounding context and whitespace. Use an empty string to create a new file."
            ),
        ],
        new_string: Annotated[str, Field(description="Exact literal text to replace it with")],
        expected_replacements: Annotated[
            int, Field(ge=1, description="Number of occurrences that must be replaced")
        ] = 1,
    ) -> ToolResult:
        """Replace exact literal text in a file. Fails unless old_string occurs exactly expected_replacements times; never does fuzzy matching."""
        if error := self._guard(context, file_path=file_path):
            return error
        if expected_replacements < 1:
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message="expected_replacements must be at least 1",
                technical_details={"expected_replacements": expected_replacements},
            )

        sandbox_id = context.sandbox_id
        async with self.locks.hold(sandbox_id, file_path):
            try:
                existing = await self.filesystem.stat(sandbox_id, file_path)
                if existing is not None and existing.is_directory:
                    return self._create_error_response(
                        error=ErrorCodes.IS_A_DIRECTORY,
                        message=f"Path is a directory, not a file: {file_path}",
                        technical_details={"error": "Is a directory", "path": file_path},
                    )

                current: str | None = None
                if existing is not None:
                    raw = await self.filesystem.read_bytes(sandbox_id, file_path)
                    try:
                        current = raw.decode("utf-8")
                    except UnicodeDecodeError:
                        return self._create_error_response(
                            error=ErrorCodes.INVALID_ARGUMENT,
                            message=f"Cannot edit binary or non UTF-8 file: {file_path}",
                            technical_details={"reason": "UNREADABLE_CONTENT", "path": file_path},
                        )

                try:
                    plan = calculate_replacement(
                        current, old_string, new_string, expected_replacements
                    )
                except ReplacementRejected as e:
                    return self._create_error_response(
                        error=e.error,
                        message=str(e),
                        technical_details={"reason": e.reason, "path": file_path, **e.details},
                    )

                if error := self._check_write_size(plan.new_content):
                    return error
                if error := await self._write(sandbox_id, file_path, plan.new_content):
                    return error
            except SandboxPathError as e:
                return self._sandbox_path_error(file_path, e)
            except OSError as e:
                return self._io_error("editing", file_path, e)

        name = posixpath.basename(file_path)
        logger.info(f"Replaced {plan.occurrences} occurrence(s) in {sandbox_id}:{file_path}")

        if plan.is_new_file:
            message = f"Created new file: {name}"
        else:
            message = f"Updated {name} with {plan.occurrences} replacement(s)"

        return self._create_success_response(
            Replacement(
                file_path=file_path,
                is_new_file=plan.is_new_file,
                occurrences=plan.occurrences,
                content_length=len(plan.new_content),
                line_count=len(plan.new_content.split("\n")),
                diff=create_simple_diff(plan.current_content, plan.new_content, name),
            ),
            message,
            preview_refresh_needed=True,
            changed_files=[file_path],
            technical_details={"path": file_path, "occurrences": plan.occurrences},
        )

    async def search_file_content(
        self,
        context: SandboxContext,
        pattern: Annotated[str, Field(description="Regular expression to search for (case-insensitive)")],
        path: Annotated[str, Field(description="Absolute path of the directory or file to search")],
        include: Annotated[
            str | None,
            Field(description="Glob filter for files to search (e.g., '*.js', '*.{ts,tsx}', 'src/**/*.tsx')"),
        ] = None,
    ) -> ToolResult:
        """Search file contents for a regular expression. Returns matching lines grouped by file, skipping binary files and dependency/build directories."""
        if error := self._guard(context, path=path):
            return error

        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            return self._create_error_response(
                error=ErrorCodes.PATTERN_ERROR,
                message=f"Invalid regular expression pattern: {pattern}. Error: {e}",
                technical_details={"error": "Invalid regex pattern", "pattern": pattern, "regex_error": str(e)},
            )

        try:
            path_filter = PathFilter(include) if include else None
        except PatternError as e:
            return self._create_error_response(
                error=ErrorCodes.PATTERN_ERROR,
                message=str(e),
                technical_details={"pattern": e.pattern},
            )

        sandbox_id = context.sandbox_id
        try:
            target = await self.filesystem.stat(sandbox_id, path)
            if target is None:
                return self._create_error_response(
                    error=ErrorCodes.NOT_FOUND,
                    message=f"Search path not found: {path}",
                    technical_details={"error": "Path not found", "path": path},
                )
            if target.is_directory:
                root = normalize_path(path)
                candidates = await self._walk(
                    sandbox_id, root, self.settings.filesystem.excluded_dirs
                )
            else:
                candidates = [(target, target.name)]
        except SandboxPathError as e:
            return self._sandbox_path_error(path, e)
        except OSError as e:
            return self._io_error("searching", path, e)

        max_bytes = self.settings.filesystem.max_read_bytes
        matches_by_file: dict[str, list[SearchMatch]] = {}

        for entry, relative in sorted(candidates, key=lambda c: c[1]):
            if is_binary_path(entry.path) or entry.size > max_bytes:
                continue
            if path_filter is not None and not path_filter.accepts(relative, entry.name):
                continue
            try:
                text = (await self.filesystem.read_bytes(sandbox_id, entry.path)).decode("utf-8")
            except UnicodeDecodeError:
                continue
            except (OSError, SandboxPathError) as e:
                logger.debug(f"Skipping unreadable file {entry.path}: {e}")
                continue

            file_matches = [
                SearchMatch(file_path=entry.path, line_number=number, line=line.strip())
                for number, line in enumerate(text.split("\n"), start=1)
                if regex.search(line)
            ]
            if file_matches:
                matches_by_file[relative] = file_matches

        filter_text = f' (filter: "{include}")' if include else ""
        if not matches_by_file:
            return self._create_success_response(
                SearchResults(),
                f'No matches found for pattern "{pattern}" in path "{path}"{filter_text}.',
                technical_details={"search_dir": path, "pattern": pattern, "include": include},
            )

        all_matches = [match for file_matches in matches_by_file.values() for match in file_matches]
        match_count = len(all_matches)
        file_count = len(matches_by_file)
        match_term = "match" if match_count == 1 else "matches"
        file_term = "file" if file_count == 1 else "files"

        blocks = [f'Found {match_count} {match_term} in {file_count} {file_term} for pattern "{pattern}":\n---']
        for relative, file_matches in matches_by_file.items():
            lines = "\n".join(f"L{m.line_number}: {m.line}" for m in file_matches)
            blocks.append(f"File: {relative}\n{lines}\n---")
        formatted = "\n".join(blocks)

        return self._create_success_response(
            SearchResults(
                matches=all_matches,
                matches_by_file=matches_by_file,
                file_count=file_count,
                match_count=match_count,
                formatted_results=formatted,
            ),
            f"Found {match_count} {match_term} in {file_count} {file_term}",
            technical_details={
                "search_dir": path,
                "pattern": pattern,
                "include": include,
                "files_with_matches": file_count,
                "total_matches": match_count,
            },
        )

    async def glob(
        self,
        context: SandboxContext,
        pattern: Annotated[str, Field(description="Glob pattern to match (e.g., '**/*.ts', 'docs/**/*.md')")],
        path: Annotated[str, Field(description="Absolute path of the directory to search within")],
        case_sensitive: Annotated[bool, Field(description="Match case-sensitively")] = False,
        respect_git_ignore: Annotated[
            bool,
            Field(description="Skip dependency and build output directories (node_modules, dist, build, .next)"),
        ] = True,
    ) -> ToolResult:
        """Find files whose path matches a glob pattern. Files modified in the last 24 hours come first (newest first), then the rest alphabetically."""
        if error := self._guard(context, path=path):
            return error

        if not pattern or not pattern.strip():
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message="The pattern parameter cannot be empty.",
                technical_details={"error": "Empty pattern"},
            )

        try:
            matcher = GlobMatcher(pattern, case_sensitive=case_sensitive)
        except PatternError as e:
            return self._create_error_response(
                error=ErrorCodes.PATTERN_ERROR,
                message=str(e),
                technical_details={"pattern": e.pattern},
            )

        excluded = self.settings.filesystem.excluded_dirs if respect_git_ignore else VCS_DIRS
        sandbox_id = context.sandbox_id
        try:
            target = await self.filesystem.stat(sandbox_id, path)
            if target is None:
                return self._create_error_response(
                    error=ErrorCodes.NOT_FOUND,
                    message=f"Search path not found: {path}",
                    technical_details={"error": "Path not found", "path": path},
                )
            if not target.is_directory:
                return self._create_error_response(
                    error=ErrorCodes.NOT_A_DIRECTORY,
                    message=f"Path is not a directory: {path}",
                    technical_details={"error": "Not a directory", "path": path},
                )
            candidates = await self._walk(sandbox_id, normalize_path(path), excluded)
        except SandboxPathError as e:
            return self._sandbox_path_error(path, e)
        except OSError as e:
            return self._io_error("searching", path, e)

        matched = [entry for entry, relative in candidates if matcher.matches(relative)]
        ordered = sort_by_recency(matched, self.settings.filesystem.recent_window_hours)
        files = [entry.path for entry in ordered]

        if not files:
            return self._create_success_response(
                GlobResults(),
                f'No files found matching pattern "{pattern}" within {path}',
                technical_details={"search_dir": path, "pattern": pattern, "file_count": 0},
            )

        formatted = "\n".join(files)
        return self._create_success_response(
            GlobResults(files=files, count=len(files), formatted_list=formatted),
            f"Found {len(files)} matching file(s)",
            technical_details={
                "search_dir": path,
                "pattern": pattern,
                "file_count": len(files),
                "full_listing": f'Found {len(files)} file(s) matching "{pattern}" within {path}:\n{formatted}',
            },
        )
