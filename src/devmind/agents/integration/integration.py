"""
devmind.agents.integration.integration - Integration Agent
============================================================

Connects the project to third-party services (payments, source hosting,
cloud, databases, messaging, analytics).

Actions:
    setup   Validate the config, store it, generate a client under
            integrations/<service>/ (an existing service is updated instead)
    test    Check a stored (or given) config against the service's
            required settings
    update  Merge new settings into the stored config
    delete  Forget the service

Persistence:
    data/integrations.json, one entry per service:

        {"stripe": {"config": {"apiKey": "****1234"},
                    "status": "connected",
                    "lastUpdated": "2026-01-01T00:00:00+00:00"}}

    Secret values are masked before they are stored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from devmind.agents.base import BaseAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, EventType, TaskStatus
from devmind.core.events import AgentEvent
from devmind.core.exceptions import AgentError, DevMindError
from devmind.core.models import TaskDefinition, TaskResult
from devmind.infrastructure.code_blocks import extract_code_blocks


logger = structlog.get_logger()

INTEGRATIONS_DIR = "integrations"
SUPPORTED_ACTIONS = ("setup", "test", "update", "delete")
CLIENT_LANGUAGES = ("ts", "typescript", "js", "javascript", "tsx", "jsx")

_SECRET_MARKERS = ("key", "secret", "token", "password", "sid", "connectionstring")


@dataclass(frozen=True)
class ServiceDefinition:
    """A supported service and the settings it cannot work without."""

    name: str
    display_name: str
    required: tuple[str, ...]
    category: str


SUPPORTED_SERVICES: dict[str, ServiceDefinition] = {
    s.name: s
    for s in (
        ServiceDefinition("stripe", "Stripe", ("apiKey",), "payments"),
        ServiceDefinition("paypal", "PayPal", ("clientId", "clientSecret"), "payments"),
        ServiceDefinition("github", "GitHub", ("token",), "source"),
        ServiceDefinition("aws", "AWS", ("accessKeyId", "secretAccessKey"), "cloud"),
        ServiceDefinition("azure", "Azure", ("tenantId", "clientId", "clientSecret"), "cloud"),
        ServiceDefinition("firebase", "Firebase", ("projectId", "apiKey"), "cloud"),
        ServiceDefinition("mongodb", "MongoDB", ("connectionString",), "database"),
        ServiceDefinition("postgresql", "PostgreSQL", ("host", "database", "user", "password"), "database"),
        ServiceDefinition("mysql", "MySQL", ("host", "database", "user", "password"), "database"),
        ServiceDefinition("oauth", "OAuth", ("provider", "clientId", "clientSecret"), "auth"),
        ServiceDefinition("twilio", "Twilio", ("accountSid", "authToken"), "messaging"),
        ServiceDefinition("sendgrid", "SendGrid", ("apiKey",), "messaging"),
        ServiceDefinition("slack", "Slack", ("token",), "messaging"),
        ServiceDefinition("google-analytics", "Google Analytics", ("measurementId",), "analytics"),
        ServiceDefinition("mailchimp", "Mailchimp", ("apiKey", "serverPrefix"), "marketing"),
    )
}

INTEGRATION_SYSTEM_PROMPT = (
    "You are DevMind's integration agent, an expert in third-party APIs. "
    "Write small, typed TypeScript clients. Start every code block with a "
    "comment holding the file name, e.g. // client.ts"
)


def is_secret_key(key: str) -> bool:
    lowered = key.lower().replace("_", "")
    return any(marker in lowered for marker in _SECRET_MARKERS)


def mask_secrets(config: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``config`` with secret values reduced to their last 4 chars.

    Example:
        >>> mask_secrets({"apiKey": "sk_test_123456", "sandbox": True})
        {'apiKey': '****3456', 'sandbox': True}
    """
    masked: dict[str, Any] = {}
    for key, value in config.items():
        if isinstance(value, dict):
            masked[key] = mask_secrets(value)
        elif is_secret_key(key) and isinstance(value, str) and not value.startswith("****"):
            masked[key] = "****" + value[-4:] if len(value) > 4 else "****"
        else:
            masked[key] = value
    return masked


class IntegrationAgent(BaseAgent):
    """Sets up, tests, updates and removes service integrations.

    Input Requirements (task.input_data):
        - "spec" (str): The service name ("stripe", "github", ...).
        Optional:
            - "action" (str): setup (default), test, update, delete
            - "config" (dict): Service settings
            - "generate_client" (bool): Ask the LLM for client code on setup
              (default True)

    Output Format (result.output_data):
        - "service", "action", "status", "details"
    """

    SYSTEM_PROMPT = INTEGRATION_SYSTEM_PROMPT

    def __init__(
        self,
        config: DevMindConfig,
        *,
        agent_id: str = AgentType.INTEGRATION.value,
        name: Optional[str] = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(
            agent_id=agent_id,
            agent_type=AgentType.INTEGRATION,
            config=config,
            name=name or "IntegrationAgent",
            description="Connects the project with external systems and services",
            **collaborators,
        )
        self._integrations: dict[str, dict[str, Any]] = {}
        self._integrations_file = config.workspace.integrations_file
        self._loaded = False
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=AgentType.INTEGRATION.value,
            component="integration_agent",
        )

    # =========================================================================
    # Events
    # =========================================================================

    async def _on_start(self) -> None:
        await self.load_integrations()
        await self.listen_for_event(EventType.INTEGRATION_REQUESTED, self._on_integration_requested)

    async def _on_integration_requested(self, event: AgentEvent) -> None:
        payload = event.payload
        service = str(payload.get("service", ""))
        action = str(payload.get("action", "setup"))
        try:
            result = await self.run(
                service,
                action=action,
                config=payload.get("config") or {},
                reply_to=event.source,
            )
        except DevMindError as exc:
            await self.reply(event, EventType.INTEGRATION_ERROR, {
                "service": service, "action": action, "error": exc.message,
            })
            return

        if result.succeeded:
            await self.reply(event, EventType.INTEGRATION_COMPLETED, result.output_data)
        else:
            await self.reply(event, EventType.INTEGRATION_ERROR, {
                "service": service, "action": action, "error": result.error_message,
            })

    # =========================================================================
    # Execution
    # =========================================================================

    async def _validate_task(self, task: TaskDefinition) -> bool:
        if not await super()._validate_task(task):
            return False
        config = task.input_data.get("config")
        return config is None or isinstance(config, dict)

    async def _execute(self, task: TaskDefinition) -> TaskResult:
        service = task.input_data["spec"].strip().lower()
        action = str(task.input_data.get("action") or "setup").lower()
        config: dict[str, Any] = task.input_data.get("config") or {}
        announce = not task.input_data.get("reply_to")

        try:
            output, files = await self._dispatch(task, service, action, config)
        except Exception as exc:
            if announce:
                await self.send_event(EventType.INTEGRATION_ERROR, {
                    "service": service,
                    "action": action,
                    "error": getattr(exc, "message", str(exc)),
                })
            raise

        if announce:
            await self.send_event(EventType.INTEGRATION_COMPLETED, output)
        return self._create_result(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED,
            output=output,
            files=files,
        )

    async def _dispatch(
        self,
        task: TaskDefinition,
        service: str,
        action: str,
        config: dict[str, Any],
    ) -> tuple[dict[str, Any], list[str]]:
        if service not in SUPPORTED_SERVICES:
            raise AgentError(
                message=(
                    f"Unsupported service: {service}. "
                    f"Supported services are: {', '.join(SUPPORTED_SERVICES)}"
                ),
                agent_id=self.agent_id,
                task_id=task.task_id,
                error_code="UNSUPPORTED_SERVICE",
                details={"service": service},
            )
        if action not in SUPPORTED_ACTIONS:
            raise AgentError(
                message=(
                    f"Unsupported action: {action}. "
                    f"Supported actions are: {', '.join(SUPPORTED_ACTIONS)}"
                ),
                agent_id=self.agent_id,
                task_id=task.task_id,
                error_code="UNSUPPORTED_ACTION",
                details={"action": action},
            )

        await self.load_integrations()
        definition = SUPPORTED_SERVICES[service]
        self._logger.info("integration_action_starting", service=service, action=action)

        files: list[str] = []
        if action == "setup" and service in self._integrations:
            self._logger.info("integration_exists_updating", service=service)
            action = "update"

        if action == "setup":
            self._require_settings(task, definition, config)
            details = await self._store(service, config)
            if task.input_data.get("generate_client", True):
                files = await self._generate_client(definition, config)
            status = "connected"
        elif action == "update":
            merged = {**self._stored_config(service), **config}
            self._require_settings(task, definition, merged)
            details = await self._store(service, merged)
            status = "connected"
        elif action == "test":
            candidate = config or self._stored_config(task_id=task.task_id, service=service, required=True)
            missing = [key for key in definition.required if not candidate.get(key)]
            details = {"connection": not missing, "missing": missing}
            status = "success" if not missing else "failed"
        else:
            self._stored_config(service, task_id=task.task_id, required=True)
            del self._integrations[service]
            await self._save_integrations()
            details = {}
            status = "deleted"

        await self.record_decision(
            f"Integration {definition.display_name} {action}",
            {"service": service, "action": action, "status": status},
        )
        await self.update_shared_context({
            "integrations": {service: {"status": status, "category": definition.category}}
        })
        output = {
            "service": service,
            "display_name": definition.display_name,
            "action": action,
            "status": status,
            "details": details,
        }
        return output, files

    def _require_settings(
        self,
        task: TaskDefinition,
        definition: ServiceDefinition,
        config: dict[str, Any],
    ) -> None:
        missing = [key for key in definition.required if not config.get(key)]
        if missing:
            raise AgentError(
                message=f"{definition.display_name} requires: {', '.join(missing)}",
                agent_id=self.agent_id,
                task_id=task.task_id,
                error_code="MISSING_INTEGRATION_CONFIG",
                details={"service": definition.name, "missing": missing},
            )

    def _stored_config(
        self,
        service: str,
        *,
        task_id: Optional[str] = None,
        required: bool = False,
    ) -> dict[str, Any]:
        entry = self._integrations.get(service)
        if entry is None:
            if required:
                raise AgentError(
                    message=f"No configuration found for service: {service}",
                    agent_id=self.agent_id,
                    task_id=task_id,
                    error_code="INTEGRATION_NOT_FOUND",
                    details={"service": service},
                )
            return {}
        return dict(entry.get("config", {}))

    async def _store(self, service: str, config: dict[str, Any]) -> dict[str, Any]:
        entry = {
            "config": mask_secrets(config),
            "status": "connected",
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
        self._integrations[service] = entry
        await self._save_integrations()
        return {"lastUpdated": entry["lastUpdated"], "settings": sorted(config)}

    async def _generate_client(
        self, definition: ServiceDefinition, config: dict[str, Any]
    ) -> list[str]:
        settings = ", ".join(sorted(config)) or "none"
        prompt = (
            f"Write a TypeScript client for {definition.display_name} "
            f"({definition.category}).\n"
            f"Configured settings: {settings}. Read secrets from environment "
            "variables, never hard-code them.\n"
            "Include a typed wrapper class, error handling and a health check."
        )
        answer = await self.query_llm(prompt)
        files: list[str] = []
        for index, block in enumerate(extract_code_blocks(answer, CLIENT_LANGUAGES)):
            filename = block.path or ("client.ts" if index == 0 else f"client-{index + 1}.ts")
            written = await self.write_generated_file(
                f"{INTEGRATIONS_DIR}/{definition.name}/{filename.lstrip('/')}",
                block.code,
                resource_type="integration_client",
                language=block.canonical_language or None,
                metadata={"service": definition.name},
            )
            files.append(written.path)
        return files

    # =========================================================================
    # Persistence
    # =========================================================================

    async def load_integrations(self) -> None:
        """Read data/integrations.json once."""
        if self._loaded:
            return
        raw = await self._require_workspace().read_file(self._integrations_file)
        if raw:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise AgentError(
                    message=f"Corrupted integrations file: {self._integrations_file}",
                    agent_id=self.agent_id,
                    error_code="INTEGRATIONS_CORRUPTED",
                    details={"error": str(exc)},
                ) from exc
            if not isinstance(data, dict):
                raise AgentError(
                    message=f"Corrupted integrations file: {self._integrations_file}",
                    agent_id=self.agent_id,
                    error_code="INTEGRATIONS_CORRUPTED",
                    details={"error": f"expected an object, got {type(data).__name__}"},
                )
            self._integrations = {k: v for k, v in data.items() if isinstance(v, dict)}
        self._loaded = True
        self._logger.info("integrations_loaded", services=sorted(self._integrations))

    async def _save_integrations(self) -> None:
        await self._require_workspace().write_file(
            self._integrations_file,
            json.dumps(self._integrations, indent=2) + "\n",
            agent=self.name,
            language="json",
        )

    async def get_integrations(self) -> dict[str, dict[str, Any]]:
        """Status and last update of every configured service."""
        await self.load_integrations()
        return {
            service: {"status": entry.get("status"), "lastUpdated": entry.get("lastUpdated")}
            for service, entry in self._integrations.items()
        }

    async def get_integration_config(self, service: str) -> dict[str, Any]:
        await self.load_integrations()
        normalized = service.lower()
        if normalized not in self._integrations:
            raise AgentError(
                message=f"No configuration found for service: {service}",
                agent_id=self.agent_id,
                error_code="INTEGRATION_NOT_FOUND",
                details={"service": normalized},
            )
        return dict(self._integrations[normalized])
