"""Trace logging of tool executions.

Provides structured JSON-lines records of every registry execution (tool,
call id, sandbox, outcome, timing) for offline analysis of agent sessions.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ToolTraceLogger:
    """Logger for capturing one trace record per tool execution."""

    def __init__(self, trace_file: Path, include_input: bool = False):
        """Initialize trace logger.

        Args:
            trace_file: Path to trace log file
            include_input: Whether to include the raw tool input in traces
        """
        self.trace_file = trace_file
        self.include_input = include_input
        self._ensure_trace_file()

    def _ensure_trace_file(self) -> None:
        """Ensure trace log file and directory exist."""
        self.trace_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.trace_file.exists():
            self.trace_file.touch()
            logger.debug(f"Created trace log file: {self.trace_file}")

    def log_execution(
        self,
        *,
        tool_name: str,
        tool_call_id: str,
        sandbox_id: str | None = None,
        user_id: str | None = None,
        tool_input: dict[str, Any] | None = None,
        success: bool | None = None,
        error: str | None = None,
        error_type: str | None = None,
        changed_files: list[str] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Append one execution record.

        Args:
            tool_name: Registered tool name
            tool_call_id: Identifier of the tool call
            sandbox_id: Sandbox the call ran against
            user_id: User on whose behalf the call ran
            tool_input: Raw input (logged only if include_input=True)
            success: ToolResult.success, or None when the registry raised
            error: ToolResult error code or exception message
            error_type: Registry failure type when the registry raised
            changed_files: Files the tool reported as written
            duration_ms: Wall-clock duration in milliseconds
        """
        trace_entry: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "tool": tool_name,
            "tool_call_id": tool_call_id,
            "sandbox_id": sandbox_id,
        }

        if user_id:
            trace_entry["user_id"] = user_id

        if tool_input is not None:
            if self.include_input:
                trace_entry["input"] = tool_input
            else:
                # Include field names but not values
                trace_entry["input_fields"] = sorted(tool_input)

        if success is not None:
            trace_entry["success"] = success

        if changed_files:
            trace_entry["changed_files"] = changed_files

        if duration_ms is not None:
            trace_entry["duration_ms"] = round(duration_ms, 2)

        if error:
            trace_entry["error"] = error
        if error_type:
            trace_entry["error_type"] = error_type

        # Write to trace log file (append mode)
        try:
            with open(self.trace_file, "a") as f:
                json.dump(trace_entry, f, default=str)
                f.write("\n")
        except OSError as e:
            logger.error(f"Failed to write trace log: {e}")
