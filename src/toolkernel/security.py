"""Command allow-lists for the sandbox shell tool.

Single source of truth for which executables, package-manager subcommands,
flags and git subcommands the agent may run inside a sandbox.
"""

import re
from collections.abc import Sequence

ALLOWED_SANDBOX_COMMANDS = frozenset(
    {
        # Package managers
        "npm",
        "npx",
        "pnpm",
        "yarn",
        "node",
        # Version control
        "git",
        # File operations
        "ls",
        "cat",
        "head",
        "tail",
        "find",
        "grep",
        "wc",
        "sort",
        "uniq",
        "mkdir",
        "rmdir",
        "rm",
        "cp",
        "mv",
        "touch",
        "chmod",
        "chown",
        "test",
        "stat",
        "tee",
        # Text processing and search
        "sed",
        "awk",
        "cut",
        "tr",
        "diff",
        "patch",
        "rg",
        # Build and development tools
        "vite",
        "tsc",
        "eslint",
        "prettier",
        # Network
        "curl",
        "wget",
        # System info
        "pwd",
        "whoami",
        "id",
        "uname",
        "date",
        "echo",
        "sh",
        # Process management
        "ps",
        "kill",
        "killall",
    }
)

PACKAGE_MANAGERS = frozenset({"npm", "pnpm", "yarn"})

SAFE_PACKAGE_SUBCOMMANDS = frozenset(
    {
        "install",
        "add",
        "remove",
        "rm",
        "run",
        "exec",
        "build",
        "dev",
        "start",
        "test",
        "lint",
        "format",
        "type-check",
        "publish",
        "list",
        "ls",
    }
)

DANGEROUS_FLAGS = frozenset(
    {
        "--global",
        "-g",
        "--unsafe-perm",
        "--registry",
        "--force",
        "--no-save",
        "--no-package-lock",
    }
)

ALLOWED_GIT_SUBCOMMANDS = frozenset(
    {
        "status",
        "add",
        "commit",
        "push",
        "pull",
        "clone",
        "init",
        "log",
        "show",
        "diff",
        "branch",
        "checkout",
        "merge",
        "rebase",
        "tag",
        "config",
    }
)

# Commands that can change files and so invalidate a live preview
FILE_MODIFYING_COMMANDS = frozenset(
    {"npm", "pnpm", "yarn", "git", "touch", "mkdir", "rm", "mv", "cp"}
)

# Applied to the whole command line, catches privileged tools smuggled through sh
BLOCKED_COMMAND_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bsudo\b",
        r"(?:^|\s)su\s",
        r"\bpasswd\b",
        r"\badduser\b",
        r"\bdeluser\b",
        r"\bu?mount\b",
        r"\biptables\b",
        r"\bnetstat\b",
        r"^ss\s",
        r"(?:^|\s)nc\s",
        r"\bnetcat\b",
        r"\btelnet\b",
        r"\bssh\b",
        r"\bscp\b",
        r"\brsync\b",
        r"\bdocker\b",
        r"\bsystemctl\b",
        r"\bcrontab\b",
        r"^at\s",
        r"\bnohup\b",
        r"\bscreen\b",
        r"\btmux\b",
        r">&",
        r"\|&",
    )
)


def validate_command(command: str, args: Sequence[str] = ()) -> str | None:
    """Check a command against the allow-lists.

    Args:
        command: Executable name
        args: Command arguments

    Returns:
        Reason the command is blocked, or None if it may run

    Example:
        >>> validate_command("pnpm", ["install", "-g", "left-pad"])
        "Flag '-g' is not allowed for security reasons"
    """
    if command not in ALLOWED_SANDBOX_COMMANDS:
        allowed = ", ".join(sorted(ALLOWED_SANDBOX_COMMANDS))
        return f"Command '{command}' is not allowed. Allowed commands: {allowed}"

    if command in PACKAGE_MANAGERS and args:
        subcommand = args[0]
        if not subcommand.startswith("-") and subcommand not in SAFE_PACKAGE_SUBCOMMANDS:
            allowed = ", ".join(sorted(SAFE_PACKAGE_SUBCOMMANDS))
            return f"Subcommand '{subcommand}' is not allowed. Allowed subcommands: {allowed}"

        for arg in args:
            if arg in DANGEROUS_FLAGS:
                return f"Flag '{arg}' is not allowed for security reasons"

    if command == "git" and args:
        subcommand = args[0]
        if not subcommand.startswith("-") and subcommand not in ALLOWED_GIT_SUBCOMMANDS:
            return f"Git subcommand '{subcommand}' is not allowed"

    command_line = " ".join([command, *args])
    for pattern in BLOCKED_COMMAND_PATTERNS:
        if pattern.search(command_line):
            return f"Command line matches blocked pattern '{pattern.pattern}'"

    return None


def may_modify_files(command: str) -> bool:
    return command in FILE_MODIFYING_COMMANDS
