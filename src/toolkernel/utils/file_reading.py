"""File classification and line-window helpers for read_file."""

import posixpath
from dataclasses import dataclass

BINARY_EXTENSIONS = frozenset(
    {
        # Images
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".ico", ".tiff", ".tif",
        # Documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        # Archives
        ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2",
        # Executables and libraries
        ".exe", ".dll", ".so", ".dylib", ".app",
        # Media
        ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac", ".ogg", ".webm",
        # Fonts
        ".woff", ".woff2", ".ttf", ".otf", ".eot",
    }
)  # fmt: skip

MIME_TYPES = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".jsx": "application/javascript",
    ".ts": "application/typescript",
    ".tsx": "application/typescript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

TRUNCATION_NOTICE = (
    "IMPORTANT: The file content has been truncated.\n"
    "Status: Showing lines {start}-{end} of {total} total lines.\n"
    "Action: To read more of the file, you can use the 'offset' and 'limit' parameters "
    "in a subsequent 'read_file' call. For example, to read the next section of the file, "
    "use offset: {next_offset}.\n\n"
    "--- FILE CONTENT (truncated) ---\n"
)


def _extension(path: str) -> str:
    return posixpath.splitext(path)[1].lower()


def is_binary_path(path: str) -> bool:
    """Classify a file as binary by extension."""
    return _extension(path) in BINARY_EXTENSIONS


def mime_type_for(path: str) -> str:
    """Best-effort MIME type from extension."""
    return MIME_TYPES.get(_extension(path), DEFAULT_MIME_TYPE)


class OffsetOutOfBounds(ValueError):
    """Requested offset is at or past the last line."""

    def __init__(self, offset: int, total_lines: int):
        self.offset = offset
        self.total_lines = total_lines
        super().__init__(f"Offset {offset} is beyond the file length ({total_lines} lines)")


@dataclass(frozen=True)
class LineWindow:
    """A slice of a text file selected by offset/limit.

    Attributes:
        content: Selected lines joined with "\\n"
        total_lines: Line count of the whole file
        start: 0-based index of the first selected line
        end: 0-based exclusive end index
        is_truncated: True when lines remain after ``end``
    """

    content: str
    total_lines: int
    start: int
    end: int
    is_truncated: bool

    @property
    def lines_shown(self) -> tuple[int, int]:
        """1-based inclusive display range."""
        return (self.start + 1, self.end)

    @property
    def next_offset(self) -> int | None:
        return self.end if self.is_truncated else None

    def render(self) -> str:
        """Content with the continuation notice prepended when truncated."""
        if not self.is_truncated:
            return self.content
        notice = TRUNCATION_NOTICE.format(
            start=self.start + 1, end=self.end, total=self.total_lines, next_offset=self.end
        )
        return notice + self.content


def select_lines(
    text: str, offset: int | None, limit: int | None, max_lines: int
) -> LineWindow:
    """Select the line window to return for a text file.

    Without offset and limit the whole file is returned unless it exceeds
    ``max_lines``. With either given, ``offset`` is a 0-based start line and
    ``limit`` a maximum count.

    Raises:
        OffsetOutOfBounds: If ``offset`` is at or past the end of the file
    """
    lines = text.split("\n")
    total = len(lines)

    if offset is not None or limit is not None:
        start = offset or 0
        end = min(start + limit, total) if limit else total
        if start >= total:
            raise OffsetOutOfBounds(start, total)
    else:
        start = 0
        end = min(total, max_lines)

    return LineWindow(
        content="\n".join(lines[start:end]),
        total_lines=total,
        start=start,
        end=end,
        is_truncated=end < total,
    )
