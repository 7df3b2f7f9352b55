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


def run_cli_command(command: str, timeout: int = 60) -> tuple[int, str, str]:
    """
    Run a CLI command against the in-memory catalog.

    Args:
        command: The command to run (after 'python -m lsf_exercises.cli')
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m lsf_exercises.cli {command}"
    env = {**os.environ, "CONCEPT_BACKEND": "memory", "LOG_LEVEL": "WARNING"}

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "generate" in stdout
        assert "concepts" in stdout

    @pytest.mark.parametrize("command", ["generate", "concepts", "stats"])
    def test_command_help(self, command):
        """Each command has help."""
        code, stdout, stderr = run_cli_command(f"{command} --help")

        assert code == 0, f"{command} help failed: {stderr}"


class TestGenerate:
    """Test the generate command."""

    def test_generate_json(self):
        """JSON output is a valid multiple-choice exercise."""
        code, stdout, stderr = run_cli_command(
            "generate --type MultipleChoice --level A1 --difficulty 0.2 --seed 7 --json"
        )

        assert code == 0, f"generate failed: {stderr}"
        exercise = json.loads(stdout)
        assert exercise["type"] == "MultipleChoice"
        assert len(exercise["content"]["options"]) == 4

    def test_generate_with_answer(self):
        """An answer is evaluated alongside the exercise."""
        code, stdout, stderr = run_cli_command(
            "generate -t TextEntry -l A1 -c bonjour --answer Bonjour --json"
        )

        assert code == 0, f"generate failed: {stderr}"
        payload = json.loads(stdout)
        assert payload["evaluation"]["correct"] is True

    def test_generate_panel(self):
        """Default output renders a panel."""
        code, stdout, stderr = run_cli_command("generate -t SigningPractice -l A2 --hints")

        assert code == 0, f"generate failed: {stderr}"
        assert "SigningPractice" in stdout

    def test_invalid_type(self):
        """Unknown types fail with exit code 1."""
        code, stdout, stderr = run_cli_command("generate --type Crossword")

        assert code == 1
        assert "Error" in stdout


class TestCatalogCommands:
    """Test the catalog commands."""

    def test_concepts(self):
        """Concepts are listed for a level."""
        code, stdout, stderr = run_cli_command("concepts --level A1 --limit 5")

        assert code == 0, f"concepts failed: {stderr}"
        assert "5 concepts" in stdout

    def test_concepts_invalid_level(self):
        """Unknown levels fail with exit code 1."""
        code, stdout, stderr = run_cli_command("concepts --level Z9")

        assert code == 1

    def test_stats(self):
        """Statistics show the catalog size."""
        code, stdout, stderr = run_cli_command("stats")

        assert code == 0, f"stats failed: {stderr}"
        assert "37 concepts" in stdout
