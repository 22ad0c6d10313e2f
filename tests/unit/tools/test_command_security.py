"""Unit tests for the shell command allow-lists."""

import pytest

from toolkernel.security import may_modify_files, validate_command


@pytest.mark.unit
@pytest.mark.tools
class TestValidateCommand:
    """Tests for validate_command."""

    @pytest.mark.parametrize(
        "command,args",
        [
            ("pnpm", ["install"]),
            ("pnpm", ["add", "lodash"]),
            ("npm", ["run", "build"]),
            ("yarn", ["--version"]),
            ("git", ["status"]),
            ("git", ["commit", "-m", "wip"]),
            ("ls", ["-la"]),
            ("grep", ["-rn", "TODO", "src"]),
            ("node", ["--version"]),
            ("echo", ["summary"]),
        ],
    )
    def test_allowed(self, command, args):
        assert validate_command(command, args) is None

    def test_unknown_command(self):
        reason = validate_command("python", ["-c", "print(1)"])
        assert reason.startswith("Command 'python' is not allowed. Allowed commands: ")

    def test_unknown_package_subcommand(self):
        reason = validate_command("npm", ["whoami"])
        assert reason.startswith("Subcommand 'whoami' is not allowed.")

    @pytest.mark.parametrize("flag", ["-g", "--global", "--registry", "--unsafe-perm"])
    def test_dangerous_package_flags(self, flag):
        assert validate_command("pnpm", ["add", flag, "left-pad"]) == (
            f"Flag '{flag}' is not allowed for security reasons"
        )

    def test_git_subcommand(self):
        assert validate_command("git", ["filter-branch"]) == "Git subcommand 'filter-branch' is not allowed"

    @pytest.mark.parametrize(
        "args",
        [
            ["-c", "sudo rm -rf /"],
            ["-c", "ssh user@example.com"],
            ["-c", "docker ps"],
            ["-c", "ls >& out.txt"],
            ["-c", "mount /dev/sda1 /mnt"],
        ],
    )
    def test_blocked_patterns_inside_shell(self, args):
        reason = validate_command("sh", args)
        assert reason is not None
        assert reason.startswith("Command line matches blocked pattern")

    @pytest.mark.parametrize("word", ["pseudo", "documents", "sshd_config_notes", "amount"])
    def test_blocked_patterns_respect_word_boundaries(self, word):
        assert validate_command("echo", [word]) is None


@pytest.mark.unit
@pytest.mark.tools
class TestMayModifyFiles:
    """Tests for may_modify_files."""

    def test_modifying_commands(self):
        assert may_modify_files("pnpm")
        assert may_modify_files("rm")

    def test_read_only_commands(self):
        assert not may_modify_files("ls")
        assert not may_modify_files("cat")
