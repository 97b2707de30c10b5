"""
devmind.agents.devops.devops - DevOps Agent
=============================================

Generates CI/CD pipelines, container definitions, infrastructure-as-code and
monitoring configuration, plus the shell scripts that drive them.

Kind Detection:
    The spec is scored against one keyword list per kind; the highest count
    wins and ties fall back to the first kind in order (ci, cd, docker, iac,
    monitoring). A spec that names an existing workspace file is replaced by
    that file's content before scoring.

Answer Parsing:
    ```yaml Archivo: .github/workflows/ci.yml     → devops/.github/workflows/ci.yml
    ```bash Script: deploy.sh                     → devops/deploy.sh (executable)
    ## Documentation                              → devops/devops-documentation.md

    Blocks without a file hint are named from their content (GitHub
    workflow, Dockerfile, docker-compose, Terraform, Kubernetes ...).
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from devmind.agents.base import BaseAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, DevOpsKind, EventType, TaskStatus
from devmind.core.events import AgentEvent
from devmind.core.exceptions import AgentError, DevMindError
from devmind.core.models import TaskDefinition, TaskResult
from devmind.infrastructure.code_blocks import CodeBlock, extract_code_blocks, extract_section


logger = structlog.get_logger()

OUTPUT_DIR = "devops"
DOCUMENTATION_FILE = "devops-documentation.md"

CONFIG_LANGUAGES = ("yaml", "yml", "json", "hcl", "tf", "dockerfile", "toml", "ini")
SCRIPT_LANGUAGES = ("bash", "sh", "shell", "powershell", "ps1", "bat", "cmd")

KIND_KEYWORDS: dict[str, tuple[str, ...]] = {
    DevOpsKind.CI.value: (
        "ci", "continuous integration", "integración continua", "pipeline",
        "github actions", "build", "test", "lint",
    ),
    DevOpsKind.CD.value: (
        "cd", "continuous deployment", "continuous delivery", "despliegue",
        "deploy", "release", "rollout",
    ),
    DevOpsKind.DOCKER.value: (
        "docker", "container", "contenedor", "dockerfile", "compose", "image",
    ),
    DevOpsKind.IAC.value: (
        "iac", "infrastructure", "infraestructura", "terraform", "cloudformation",
        "pulumi", "aws", "azure", "gcp",
    ),
    DevOpsKind.MONITORING.value: (
        "monitoring", "monitoreo", "prometheus", "grafana", "alert", "logs",
        "metrics", "métricas",
    ),
}

KIND_GOALS = {
    DevOpsKind.CI.value: "a continuous integration pipeline (install, lint, test, build)",
    DevOpsKind.CD.value: "a continuous deployment pipeline with environments and rollbacks",
    DevOpsKind.DOCKER.value: "a Dockerfile and docker-compose setup for local and production use",
    DevOpsKind.IAC.value: "Terraform infrastructure-as-code for the application",
    DevOpsKind.MONITORING.value: "monitoring with Prometheus scrape configs, alerts and Grafana dashboards",
}

DEVOPS_SYSTEM_PROMPT = (
    "You are DevMind's devops agent, a senior DevOps engineer. Put each "
    "configuration file in a fenced block whose info string is "
    "'<language> Archivo: <path>', each script in a block whose info string is "
    "'<shell> Script: <name>', then add a '## Documentation' section."
)


def detect_devops_kind(spec: str) -> str:
    """Highest keyword score wins; "ci" when nothing matches."""
    lowered = spec.lower()
    words = set(lowered.replace("/", " ").replace(",", " ").split())
    best_kind = DevOpsKind.CI.value
    best_score = 0
    for kind, keywords in KIND_KEYWORDS.items():
        score = 0
        for keyword in keywords:
            # Short tokens ("ci", "cd") only count as whole words.
            if len(keyword) <= 3:
                score += keyword in words
            else:
                score += lowered.count(keyword)
        if score > best_score:
            best_kind, best_score = kind, score
    return best_kind


def infer_config_name(code: str) -> str:
    """File name for a configuration block that came without one."""
    if "name: ci" in code or "jobs:" in code or "on: [push" in code:
        return ".github/workflows/ci.yml"
    if "FROM " in code and "WORKDIR" in code:
        return "Dockerfile"
    if "services:" in code and "image:" in code:
        return "docker-compose.yml"
    if 'provider "aws"' in code or 'resource "' in code:
        return "main.tf"
    if "apiVersion:" in code and "kind: Deployment" in code:
        return "deployment.yaml"
    return "config.yml"


def infer_script_name(code: str) -> str:
    """File name for a script block that came without one."""
    if "docker build" in code or "docker-compose" in code or "docker compose" in code:
        return "docker-build.sh"
    if "terraform" in code:
        return "deploy-infrastructure.sh"
    if "kubectl" in code or "helm" in code:
        return "deploy-kubernetes.sh"
    if "npm" in code or "yarn" in code or "build" in code:
        return "build.sh"
    if "test" in code or "jest" in code or "pytest" in code:
        return "run-tests.sh"
    return "deploy.sh"


def _unique(path: str, taken: set[str]) -> str:
    if path not in taken:
        return path
    stem, dot, extension = path.rpartition(".")
    if not dot:
        stem, extension = path, ""
    counter = 2
    while True:
        candidate = f"{stem}-{counter}.{extension}" if extension else f"{stem}-{counter}"
        if candidate not in taken:
            return candidate
        counter += 1


class DevOpsAgent(BaseAgent):
    """Writes DevOps configuration and scripts under ``devops/``.

    Input Requirements (task.input_data):
        - "spec" (str): What to automate, or a workspace path to an existing
          config to improve.
        Optional:
            - "kind" (str): Force one of ci, cd, docker, iac, monitoring.

    Output Format (result.output_data):
        - "kind", "configs" (list[str]), "scripts" (list[str]),
          "documentation" (Optional[str])
    """

    SYSTEM_PROMPT = DEVOPS_SYSTEM_PROMPT

    def __init__(
        self,
        config: DevMindConfig,
        *,
        agent_id: str = AgentType.DEVOPS.value,
        name: Optional[str] = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(
            agent_id=agent_id,
            agent_type=AgentType.DEVOPS,
            config=config,
            name=name or "DevOpsAgent",
            description="Generates CI/CD, container, IaC and monitoring configuration",
            **collaborators,
        )
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=AgentType.DEVOPS.value,
            component="devops_agent",
        )

    async def _on_start(self) -> None:
        await self.listen_for_event(EventType.DEPLOYMENT_REQUESTED, self._on_deployment_requested)

    async def _on_deployment_requested(self, event: AgentEvent) -> None:
        spec = event.payload.get("spec", "")
        try:
            result = await self.run(spec, kind=event.payload.get("kind"))
        except DevMindError as exc:
            await self.reply(event, EventType.DEPLOYMENT_ERROR, {"error": exc.message, "spec": spec})
            return
        if result.succeeded:
            await self.reply(event, EventType.DEPLOYMENT_COMPLETED, {
                "kind": result.output_data["kind"],
                "files": result.files,
            })
        else:
            await self.reply(event, EventType.DEPLOYMENT_ERROR, {"error": result.error_message, "spec": spec})

    async def _execute(self, task: TaskDefinition) -> TaskResult:
        spec: str = task.input_data["spec"]
        source = await self.read_spec_source(spec)
        subject = source if source is not None else spec

        kind = task.input_data.get("kind") or detect_devops_kind(subject)
        kind = str(kind).lower()
        if kind not in KIND_GOALS:
            raise AgentError(
                message=f"Unknown DevOps kind: {kind}. Valid kinds: {', '.join(KIND_GOALS)}",
                agent_id=self.agent_id,
                task_id=task.task_id,
                error_code="INVALID_DEVOPS_KIND",
                details={"kind": kind},
            )

        self._logger.info("devops_generation_starting", task_id=task.task_id, kind=kind,
                          from_file=source is not None)

        core_context = await self.read_context("core.md")
        prompt = self._build_prompt(kind, spec, source, core_context)
        answer = await self.query_llm(prompt)

        taken: set[str] = set()
        configs: list[str] = []
        scripts: list[str] = []

        for block in extract_code_blocks(answer, CONFIG_LANGUAGES):
            name = _unique(block.path or infer_config_name(block.code), taken)
            taken.add(name)
            written = await self._write(name, block, "devops_config", kind)
            configs.append(written)

        for block in extract_code_blocks(answer, SCRIPT_LANGUAGES):
            name = _unique(block.path or infer_script_name(block.code), taken)
            taken.add(name)
            written = await self._write(name, block, "devops_script", kind, executable=True)
            scripts.append(written)

        documentation_path: Optional[str] = None
        documentation = extract_section(answer, "Documentation")
        if documentation:
            next_steps = extract_section(answer, "Next Steps")
            body = f"# DevOps: {kind}\n\n{documentation}\n"
            if next_steps:
                body += f"\n## Next Steps\n\n{next_steps}\n"
            documentation_path = (await self.write_generated_file(
                f"{OUTPUT_DIR}/{DOCUMENTATION_FILE}",
                body,
                resource_type="documentation",
                language="markdown",
                metadata={"kind": kind},
            )).path

        if not configs and not scripts:
            raise ValueError("The LLM answer contained no configuration or script blocks")

        await self.record_decision(
            f"DevOps {kind} configuration generated",
            {"kind": kind, "configs": configs, "scripts": scripts, "source": spec if source else None},
        )
        await self.update_shared_context({"devops": {kind: {"configs": configs, "scripts": scripts}}})

        files = configs + scripts + ([documentation_path] if documentation_path else [])
        return self._create_result(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED,
            output={
                "kind": kind,
                "configs": configs,
                "scripts": scripts,
                "documentation": documentation_path,
            },
            files=files,
        )

    async def _write(
        self,
        name: str,
        block: CodeBlock,
        resource_type: str,
        kind: str,
        executable: bool = False,
    ) -> str:
        generated = await self.write_generated_file(
            f"{OUTPUT_DIR}/{name.lstrip('/')}",
            block.code,
            resource_type=resource_type,
            language=block.canonical_language or None,
            executable=executable,
            metadata={"kind": kind},
        )
        return generated.path

    @staticmethod
    def _build_prompt(kind: str, spec: str, source: Optional[str], core_context: str) -> str:
        parts = []
        if core_context:
            parts.append(f"# Project Context\n{core_context.strip()}")
        if source is not None:
            parts.append(
                f"# Existing Configuration ({spec.strip()})\n```\n{source.rstrip()}\n```\n"
                "Improve it and keep what already works."
            )
        else:
            parts.append(f"# Requirement\n{spec.strip()}")
        parts.append(
            f"# Task\nCreate {KIND_GOALS[kind]}.\n"
            "Include every configuration file, the helper scripts, a "
            "'## Documentation' section and a '## Next Steps' list."
        )
        return "\n\n".join(parts)
