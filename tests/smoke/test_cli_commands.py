"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def cli_env(tmp_path):
    """Point the CLI at a throwaway database and session directory."""
    env = dict(os.environ)
    env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'tutor.db'}"
    env["SESSION_DIR"] = str(tmp_path / "sessions")
    env["LOG_LEVEL"] = "WARNING"
    return env


def run_cli_command(args: list[str], env: dict[str, str] | None = None, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m src.cli.main'
        env: Environment for the subprocess
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "src.cli.main", *args],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command(["--help"])

        assert code == 0, f"Help failed: {stderr}"
        assert "recommend" in stdout
        assert "session" in stdout

    @pytest.mark.parametrize("command", ["recommend", "plan", "path", "calibrate", "record-quiz"])
    def test_command_help(self, command):
        """Each command help should work."""
        code, stdout, stderr = run_cli_command([command, "--help"])

        assert code == 0, f"{command} help failed: {stderr}"


class TestCLIWorkflow:
    """Record a quiz, then read it back through the analysis commands."""

    @pytest.fixture
    def recorded(self, cli_env):
        code, _, stderr = run_cli_command(["db", "init"], cli_env)
        assert code == 0, f"db init failed: {stderr}"

        code, stdout, stderr = run_cli_command(
            [
                "record-quiz", "alice",
                "--domain", "Algorithms",
                "--company", "Amazon",
                "--difficulty", "Medium",
                "--correct", "3",
                "--total", "10",
            ],
            cli_env,
        )
        assert code == 0, f"record-quiz failed: {stderr}"
        assert "Quizzes" in stdout
        return cli_env

    def test_recommend(self, recorded):
        code, stdout, stderr = run_cli_command(
            ["recommend", "alice", "--domain", "Algorithms", "--company", "Amazon"], recorded
        )

        assert code == 0, f"recommend failed: {stderr}"
        assert "Recommended" in stdout

    def test_weaknesses(self, recorded):
        code, stdout, stderr = run_cli_command(["weaknesses", "alice"], recorded)

        assert code == 0, f"weaknesses failed: {stderr}"
        assert "Algorithms" in stdout

    def test_plan(self, recorded):
        code, stdout, stderr = run_cli_command(
            ["plan", "alice", "--role", "Backend Developer", "--company", "Amazon", "--weeks", "4"], recorded
        )

        assert code == 0, f"plan failed: {stderr}"
        assert "4 weeks" in stdout

    def test_invalid_difficulty_exits_nonzero(self, recorded):
        code, stdout, _ = run_cli_command(
            [
                "record-quiz", "alice",
                "--domain", "Algorithms",
                "--company", "Amazon",
                "--difficulty", "Impossible",
                "--correct", "3",
                "--total", "10",
            ],
            recorded,
        )

        assert code == 1
        assert "Unknown difficulty" in stdout


class TestCLISessions:
    def test_import_then_list(self, cli_env, tmp_path):
        export = tmp_path / "session.json"
        export.write_text(
            json.dumps(
                {
                    "id": "s1",
                    "user_id": "alice",
                    "problem": {"id": "two-sum", "title": "Two Sum"},
                    "conversation_history": [],
                    "created_at": "2026-01-15T09:00:00",
                    "last_activity": "2026-01-15T09:30:00",
                }
            ),
            encoding="utf-8",
        )

        code, stdout, stderr = run_cli_command(["session", "import", str(export)], cli_env)
        assert code == 0, f"import failed: {stderr}"

        code, stdout, stderr = run_cli_command(["session", "list"], cli_env)
        assert code == 0, f"list failed: {stderr}"
        assert "Two Sum" in stdout

    def test_import_rejects_invalid_export(self, cli_env, tmp_path):
        export = tmp_path / "broken.json"
        export.write_text("{not json", encoding="utf-8")

        code, _, _ = run_cli_command(["session", "import", str(export)], cli_env)
        assert code == 1
