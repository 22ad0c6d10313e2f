"""Custom exceptions and error codes for the tool kernel.

Tools never raise past their own boundary: they convert failures into
``ToolResult`` values carrying one of the codes in ``ErrorCodes``. The
exception classes below are used internally (pattern compilation, sandbox
path resolution) and at the registry boundary, where the orchestrator
expects exceptions for unknown tools, invalid input and timeouts.

Exception Hierarchy:
    KernelError (base)
    ├── PatternError
    ├── SandboxPathError
    └── ToolExecutionError
        └── ToolNotFoundError
"""


class ErrorCodes:
    """Machine-readable error codes carried in ``ToolResult.error``."""

    MISSING_SANDBOX = "missing_sandbox"
    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    NOT_A_DIRECTORY = "not_a_directory"
    IS_A_DIRECTORY = "is_a_directory"
    PATTERN_ERROR = "pattern_error"
    OCCURRENCE_MISMATCH = "occurrence_mismatch"
    NO_OP_CHANGE = "no_op_change"
    IO_FAILURE = "io_failure"
    PIPELINE_FAILURE = "pipeline_failure"
    ALREADY_EXISTS = "already_exists"
    INVALID_ARGUMENT = "invalid_argument"
    COMMAND_BLOCKED = "command_blocked"
    COMMAND_FAILED = "command_failed"
    TIMEOUT = "timeout"


class ToolErrorTypes:
    """Registry-level failure types carried by ``ToolExecutionError``."""

    UNKNOWN_TOOL = "unknown_tool"
    VALIDATION_ERROR = "validation_error"
    TIMEOUT_ERROR = "timeout_error"
    EXECUTION_ERROR = "execution_error"


class KernelError(Exception):
    """Base exception for all kernel errors.

    Example:
        >>> try:
        ...     registry.get("missing")
        ... except KernelError as e:
        ...     print(f"Kernel error: {e}")
    """

    pass


class PatternError(KernelError):
    """Glob or regular expression failed to compile.

    Attributes:
        pattern: The offending pattern text
    """

    def __init__(self, pattern: str, message: str):
        self.pattern = pattern
        super().__init__(message)


class SandboxPathError(KernelError, ValueError):
    """Sandbox path resolves outside the sandbox namespace.

    Raised by sandbox backends when a path (after normalization and symlink
    resolution) would escape the directory that backs the sandbox.

    Example:
        >>> raise SandboxPathError("Path escapes sandbox: /../etc/passwd")
    """

    pass


class ToolExecutionError(KernelError):
    """Tool invocation failed at the registry boundary.

    Attributes:
        tool_name: Name of the tool that was requested
        tool_call_id: Identifier of the tool call from the context
        error_type: One of the ``ToolErrorTypes`` values
        details: Optional structured diagnostic payload
        original_error: Exception raised by the handler (optional)
    """

    def __init__(
        self,
        tool_name: str,
        tool_call_id: str,
        error_type: str,
        message: str,
        details: object | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize ToolExecutionError.

        Args:
            tool_name: Name of the tool that was requested
            tool_call_id: Identifier of the tool call from the context
            error_type: One of the ``ToolErrorTypes`` values
            message: Human-readable error message
            details: Optional structured diagnostic payload
            original_error: Exception raised by the handler
        """
        self.tool_name = tool_name
        self.tool_call_id = tool_call_id
        self.error_type = error_type
        self.details = details
        self.original_error = original_error
        super().__init__(message)


class ToolNotFoundError(ToolExecutionError):
    """Requested tool is not registered.

    Example:
        >>> raise ToolNotFoundError("nope", "call-1")
    """

    def __init__(self, tool_name: str, tool_call_id: str):
        super().__init__(
            tool_name,
            tool_call_id,
            ToolErrorTypes.UNKNOWN_TOOL,
            f"Tool '{tool_name}' is not registered",
        )
