"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work. Nothing
here talks to a model: the on-device model is disabled and no Groq key is
configured.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

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
    """Environment isolated from the user's preferences and keys."""
    env = dict(os.environ)
    env.update(
        {
            "GROQ_API_KEY": "",
            "LOCAL_MODEL_ENABLED": "false",
            "MODEL_PREFERENCE": "automatic",
            "PREFERENCES_PATH": str(tmp_path / "preferences.json"),
            "RATE_LIMIT_DELAY_MIN_MS": "0",
            "RATE_LIMIT_DELAY_MAX_MS": "0",
        }
    )
    return env


@pytest.fixture
def run_cli(cli_env):
    """Run a CLI command and return exit code, stdout, stderr."""

    def run(command: str, timeout: int = 30) -> tuple[int, str, str]:
        full_command = f"{sys.executable} -m learnhub {command}"

        result = subprocess.run(
            full_command,
            shell=True,
            cwd=PROJECT_ROOT,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=cli_env,
        )

        return result.returncode, result.stdout, result.stderr

    return run


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, run_cli):
        """Main help should list the command groups."""
        code, stdout, stderr = run_cli("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "learnhub" in stdout.lower()
        assert "Commands" in stdout
        for command in ("summary", "quiz", "flashcards", "chat", "vision", "topic", "settings"):
            assert command in stdout

    @pytest.mark.parametrize(
        "command",
        ["summary", "quiz", "flashcards", "convert", "chat", "vision", "prompts", "topic", "settings"],
    )
    def test_command_help(self, run_cli, command):
        """Every command should render its help."""
        code, stdout, stderr = run_cli(f"{command} --help")

        assert code == 0, f"{command} help failed: {stderr}"

    def test_topic_help_lists_subcommands(self, run_cli):
        code, stdout, stderr = run_cli("topic --help")

        assert code == 0, f"Topic help failed: {stderr}"
        assert "guide" in stdout
        assert "quiz" in stdout
        assert "flashcards" in stdout
        assert "suggest" in stdout


class TestCLIPrompts:
    """Quick prompts need no model."""

    def test_prompts_runs(self, run_cli):
        code, stdout, stderr = run_cli("prompts")

        assert code == 0, f"Prompts failed: {stderr}"
        assert "simplify" in stdout

    def test_prompts_keyword_promotion(self, run_cli):
        code, stdout, stderr = run_cli('prompts "help me memorize this"')

        assert code == 0, f"Prompts failed: {stderr}"
        assert stdout.index("mnemonic") < stdout.index("simplify")


class TestCLISettings:
    """Settings commands work against an isolated preferences file."""

    def test_settings_show(self, run_cli):
        code, stdout, stderr = run_cli("settings show")

        assert code == 0, f"Settings show failed: {stderr}"
        assert "not set" in stdout
        assert "openai/gpt-oss-20b" in stdout

    def test_preference_persists(self, run_cli):
        code, _, stderr = run_cli("settings preference cloud_only")
        assert code == 0, f"Settings preference failed: {stderr}"

        code, stdout, _ = run_cli("settings show")
        assert code == 0
        assert "Groq Only" in stdout

    def test_preview_reports_fallback(self, run_cli):
        code, stdout, stderr = run_cli("settings preview")

        assert code == 0, f"Settings preview failed: {stderr}"
        assert "On-device model unavailable" in stdout


class TestCLIErrors:
    """Failures are rendered and exit non-zero."""

    def test_missing_key_is_reported(self, run_cli, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("Photosynthesis converts light into chemical energy.", encoding="utf-8")

        code, stdout, _ = run_cli(f'summary "{notes}"')

        assert code == 1
        assert "Missing Groq API key" in stdout

    def test_empty_source_file(self, run_cli, tmp_path):
        notes = tmp_path / "blank.txt"
        notes.write_text("   ", encoding="utf-8")

        code, stdout, _ = run_cli(f'summary "{notes}"')

        assert code == 1
        assert "empty" in stdout
