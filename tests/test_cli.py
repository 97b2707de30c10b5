"""
Tests for devmind.cli - Command Line Interface
================================================

The commands are invoked through typer's CliRunner against a temporary
project directory with the mock LLM provider, so each test exercises the
whole path: option parsing → config → DevMind facade → agent → files.

All tests are synchronous; each command runs its own event loop.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from devmind import __version__
from devmind.cli import app


runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path: Path) -> None:
    """Run from tmp_path with the mock LLM and leave logging unconfigured."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DEVMIND_LLM__PROVIDER", "mock")
    monkeypatch.setattr("devmind.cli.configure_logging", lambda *args, **kwargs: None)


def _invoke(tmp_path: Path, *args: str):
    return runner.invoke(app, ["--project-dir", str(tmp_path), *args])


# =============================================================================
# Test: Global options
# =============================================================================
class TestGlobalOptions:
    """Tests for --version, --config and --help."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("architect", "component", "dashboard", "devops", "integration", "sync", "test"):
            assert command in result.output

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(tmp_path / "nope.yaml"), "architect", "Shop"])
        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_config_file_project_name(self, tmp_path: Path) -> None:
        config_path = tmp_path / "devmind.yaml"
        config_path.write_text("project_name: bookstore\nllm:\n  provider: mock\n")

        result = runner.invoke(
            app, ["--config", str(config_path), "--project-dir", str(tmp_path), "architect", "Shop"]
        )

        assert result.exit_code == 0, result.output
        document = json.loads((tmp_path / "data" / "shared-context.json").read_text(encoding="utf-8"))
        assert document["project_name"] == "bookstore"


# =============================================================================
# Test: Agent commands
# =============================================================================
class TestAgentCommands:
    """One test per agent command."""

    def test_architect(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "architect", "Online bookstore with a REST API")

        assert result.exit_code == 0, result.output
        assert (tmp_path / "docs" / "architecture.md").exists()
        assert "docs/architecture.md" in result.output

    def test_component_with_options(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "component", "Login form", "--name", "SignIn", "--styling", "scss")

        assert result.exit_code == 0, result.output
        assert (tmp_path / "components" / "SignIn" / "SignIn.tsx").exists()

    @pytest.mark.parametrize(
        "framework, main_file",
        [("vue", "LoginForm.vue"), ("angular", "LoginForm.ts"), ("svelte", "LoginForm.svelte")],
    )
    def test_component_other_frameworks(self, tmp_path: Path, framework: str, main_file: str) -> None:
        result = _invoke(tmp_path, "component", "Login form", "--framework", framework)

        assert result.exit_code == 0, result.output
        assert (tmp_path / "components" / "LoginForm" / main_file).exists()

    def test_component_invalid_framework(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "component", "Login form", "--framework", "ember")
        assert result.exit_code != 0

    def test_devops(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "devops", "ci", "Pipeline for the web app")

        assert result.exit_code == 0, result.output
        assert (tmp_path / "devops" / ".github" / "workflows" / "ci.yml").exists()
        assert (tmp_path / "devops" / "deploy.sh").exists()

    def test_devops_invalid_kind(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "devops", "serverless")
        assert result.exit_code != 0

    def test_integration_setup(self, tmp_path: Path) -> None:
        result = _invoke(
            tmp_path, "integration", "stripe", "setup", "--config", "apiKey=sk_test_1234567890", "--no-client",
        )

        assert result.exit_code == 0, result.output
        stored = json.loads((tmp_path / "data" / "integrations.json").read_text(encoding="utf-8"))
        assert stored["stripe"]["config"]["apiKey"] == "****7890"

    def test_integration_setup_then_test(self, tmp_path: Path) -> None:
        """The service settings reach the agent as its config, run after run."""
        setup = _invoke(tmp_path, "integration", "github", "--config", "token=ghp_abcdef123456", "--no-client")
        check = _invoke(tmp_path, "integration", "github", "test")

        assert setup.exit_code == 0, setup.output
        assert check.exit_code == 0, check.output
        assert "success" in check.output

    def test_integration_missing_settings(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "integration", "stripe")

        assert result.exit_code == 1
        assert "MISSING_INTEGRATION_CONFIG" in result.output

    def test_integration_bad_key_value(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "integration", "stripe", "--config", "apiKey")
        assert result.exit_code != 0

    def test_sync(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "sync", "users endpoint")

        assert result.exit_code == 0, result.output
        assert (tmp_path / "src" / "api" / "client.ts").exists()

    def test_test(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "test", "Unit tests for the sum function")

        assert result.exit_code == 0, result.output
        assert (tmp_path / "__tests__" / "unit-tests.test.js").exists()
        assert (tmp_path / "jest.config.js").exists()

    def test_dashboard_init(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "dashboard", "init")

        assert result.exit_code == 0, result.output
        assert (tmp_path / "dashboard" / "package.json").exists()
        assert (tmp_path / "dashboard" / "public" / "data" / "agent-status.json").exists()


# =============================================================================
# Test: status
# =============================================================================
class TestStatusCommand:
    """Tests for the status command."""

    def test_status_after_a_run(self, tmp_path: Path) -> None:
        _invoke(tmp_path, "architect", "Online bookstore")

        result = _invoke(tmp_path, "status")

        assert result.exit_code == 0, result.output
        assert "ArchitectAgent" in result.output
        assert "Decisions: 1" in result.output

    def test_status_of_an_empty_project(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "status")
        assert result.exit_code == 0
        assert "Decisions: 0" in result.output

    def test_status_with_corrupted_context(self, tmp_path: Path) -> None:
        data = tmp_path / "data"
        data.mkdir()
        (data / "shared-context.json").write_text("{broken")

        result = _invoke(tmp_path, "status")

        assert result.exit_code == 1
        assert "CONTEXT_CORRUPTED" in result.output
