"""
devmind.core.config - Configuration Management
================================================

This module provides the configuration system for CJ.DevMind. Configuration
can be loaded from multiple sources with the following priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with DEVMIND_)
    3. YAML configuration file (devmind.yaml)
    4. Default values defined in the models below

Architecture Context:
    The top-level DevMindConfig is created once (by the DevMind facade or the
    CLI) and passed to every agent:

        DevMindConfig
            ├── LLMConfig        → LLM Providers → Agents
            └── WorkspaceConfig  → Workspace, SharedContextStore, Agents

Usage:
    # Load from environment variables:
    config = DevMindConfig()

    # Load from YAML file:
    config = load_config("devmind.yaml")

    # Explicit overrides:
    config = DevMindConfig(log_level="DEBUG", llm=LLMConfig(provider="openai"))

Environment Variables:
    DEVMIND_LOG_LEVEL=DEBUG
    DEVMIND_LLM__PROVIDER=openai
    DEVMIND_LLM__MODEL=gpt-4o-mini
    DEVMIND_LLM__API_KEY=sk-...
    DEVMIND_WORKSPACE__PROJECT_DIR=./my-app
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from devmind.core.exceptions import ConfigurationError


# =============================================================================
# LLM Configuration
# =============================================================================
# Which Large Language Model endpoint the agents talk to. Any server that
# speaks the OpenAI chat-completions protocol works with provider="openai"
# (set api_base_url for proxies, OpenRouter, local servers, ...).
# =============================================================================
class LLMConfig(BaseModel):
    """Configuration for the Large Language Model provider.

    Supported Providers:
        - "openai":  OpenAI-compatible chat completions over HTTP
        - "mock":    Mock provider for tests and offline runs

    Attributes:
        provider: Which LLM service to use (see integrations/llm/factory.py).
        model: The model identifier sent with every request.
        api_key: Bearer token for the API. Not needed for the mock provider.
        temperature: Sampling temperature for generation.
        max_tokens: Maximum number of tokens per response.
        api_base_url: Custom endpoint (defaults to the OpenAI API).
        timeout_seconds: HTTP timeout for a single completion request.
    """

    provider: str = Field(
        default="mock",
        description="LLM provider name: 'openai' or 'mock'",
    )
    model: str = Field(
        default="gpt-4",
        description="Model identifier within the provider",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for authentication (None for mock provider)",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="LLM temperature: 0.0=deterministic, 1.0=creative",
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        le=128000,
        description="Maximum tokens per LLM response",
    )
    api_base_url: Optional[str] = Field(
        default=None,
        description="Custom API base URL (for proxies or self-hosted models)",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout in seconds for a single LLM request",
    )


# =============================================================================
# Workspace Configuration
# =============================================================================
# Where agents read project context from and write generated files to.
# All relative paths below are resolved against project_dir.
# =============================================================================
class WorkspaceConfig(BaseModel):
    """Filesystem layout of the project the agents work on.

    Attributes:
        project_dir: Root directory for every generated file.
        context_dir: Directory holding the markdown context files
            (core.md, rules.md, frontend.md, backend.md).
        shared_context_file: JSON file backing the shared context
            (decisions, resources, agent statuses).
        dashboard_dir: Directory of the generated dashboard app.
        integrations_file: JSON file with the configured integrations.
    """

    project_dir: Path = Field(
        default_factory=Path.cwd,
        description="Root directory for generated files",
    )
    context_dir: str = Field(
        default="context",
        description="Directory with markdown context files (relative to project_dir)",
    )
    shared_context_file: str = Field(
        default="data/shared-context.json",
        description="Shared context JSON file (relative to project_dir)",
    )
    dashboard_dir: str = Field(
        default="dashboard",
        description="Dashboard app directory (relative to project_dir)",
    )
    integrations_file: str = Field(
        default="data/integrations.json",
        description="Integrations JSON file (relative to project_dir)",
    )

    @property
    def context_path(self) -> Path:
        """Absolute path of the context directory."""
        return self.project_dir / self.context_dir

    @property
    def shared_context_path(self) -> Path:
        """Absolute path of the shared context JSON file."""
        return self.project_dir / self.shared_context_file

    @property
    def store_files(self) -> tuple[str, ...]:
        """Files owned by a store; agents never write them as generated output."""
        return (self.shared_context_file, self.integrations_file)


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   DEVMIND_LOG_LEVEL             → config.log_level
#   DEVMIND_ENVIRONMENT           → config.environment
#   DEVMIND_LLM__PROVIDER         → config.llm.provider
#   DEVMIND_WORKSPACE__PROJECT_DIR → config.workspace.project_dir
# =============================================================================
class DevMindConfig(BaseSettings):
    """Top-level configuration for CJ.DevMind.

    Attributes:
        project_name: Name recorded in the shared context and dashboard.
        version: Tool version reported by the CLI.
        environment: Deployment environment.
        log_level: Logging level for structlog and stdlib logging.
        llm: LLM provider configuration (see LLMConfig).
        workspace: Filesystem layout (see WorkspaceConfig).

    Example:
        >>> config = DevMindConfig(
        ...     log_level="DEBUG",
        ...     llm=LLMConfig(provider="mock"),
        ...     workspace=WorkspaceConfig(project_dir=Path("/tmp/app")),
        ... )
    """

    # -------------------------------------------------------------------------
    # General Settings
    # -------------------------------------------------------------------------
    project_name: str = Field(
        default="CJ.DevMind",
        description="Project name shown in the shared context and dashboard",
    )
    version: str = Field(
        default="0.1.0",
        description="Tool version",
    )
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment (affects defaults and verbosity)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    # -------------------------------------------------------------------------
    # Nested Configurations
    # -------------------------------------------------------------------------
    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM provider configuration",
    )
    workspace: WorkspaceConfig = Field(
        default_factory=WorkspaceConfig,
        description="Project filesystem layout",
    )

    model_config = {
        "env_prefix": "DEVMIND_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> DevMindConfig:
    """Load CJ.DevMind configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'devmind.yaml' in the current directory. If that doesn't
            exist either, uses pure defaults + environment variables.

    Returns:
        A fully validated DevMindConfig instance.

    Raises:
        ConfigurationError: If the YAML file exists but cannot be parsed
            or does not contain a mapping.
        FileNotFoundError: If an explicit path is provided but doesn't exist.

    Example:
        >>> config = load_config("devmind.yaml")
        >>> config = load_config()  # auto-detect or use defaults
    """
    if path is None:
        default_path = Path("devmind.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create a devmind.yaml or use DEVMIND_* environment variables."
            )

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    message=f"Invalid YAML in configuration file: {path}",
                    error_code="INVALID_CONFIG_FILE",
                    details={"path": str(config_path), "error": str(exc)},
                ) from exc

        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration file must contain a mapping: {path}",
                error_code="INVALID_CONFIG_FILE",
                details={"path": str(config_path), "type": type(raw_data).__name__},
            )
        yaml_data = raw_data

    return DevMindConfig(**yaml_data)


def get_default_config() -> DevMindConfig:
    """Create a DevMindConfig with all defaults.

    Returns:
        A DevMindConfig with default values (overridden by any set env vars).
    """
    return DevMindConfig()
