"""
devmind.agents.design.architect - Architect Agent
===================================================

Turns a product requirement into an architecture blueprint.

Inputs:
    - The requirement (task spec), e.g. "Online bookstore with a REST API".
    - ``context/core.md`` (project context) and ``context/rules.md``
      (architecture rules), when present in the workspace.

Outputs:
    - ``docs/architecture.md`` holding the full blueprint: folder
      structure, main components, module relations, key decisions.
    - Any additional fenced markdown file the model names with a path
      (ADRs, module notes), written at that path.
    - A decision in the shared log, the blueprint path in the shared data
      under "architecture", and an ``architecture_defined`` broadcast.

    ┌──────────┐   core.md    ┌───────────────┐   docs/architecture.md
    │ context/ │ ───────────→ │ ArchitectAgent │ ─────────────────────→
    │          │   rules.md   │                │   architecture_defined
    └──────────┘ ───────────→ └───────────────┘ ─────────────────────→ bus
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from devmind.agents.base import BaseAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, EventType, TaskStatus
from devmind.core.models import TaskDefinition, TaskResult
from devmind.infrastructure.code_blocks import extract_code_blocks, extract_section


logger = structlog.get_logger()

BLUEPRINT_PATH = "docs/architecture.md"
BLUEPRINT_SECTIONS = ("Folder Structure", "Main Components", "Module Relations", "Key Decisions")

ARCHITECT_SYSTEM_PROMPT = (
    "You are DevMind's architect agent, a senior software architect. "
    "Design pragmatic architectures for web projects and answer in markdown. "
    "If you propose extra documents, put each in a ```markdown block whose "
    "info string is the file path."
)


class ArchitectAgent(BaseAgent):
    """Designs the project's architecture from a requirement.

    Input Requirements (task.input_data):
        - "spec" (str): The user requirement.
        Optional:
            - "output" (str): Blueprint path (default docs/architecture.md).

    Output Format (result.output_data):
        - "blueprint" (str): The full blueprint text.
        - "blueprint_path" (str)
        - "sections" (dict): Recognised sections by title.
    """

    SYSTEM_PROMPT = ARCHITECT_SYSTEM_PROMPT

    def __init__(
        self,
        config: DevMindConfig,
        *,
        agent_id: str = AgentType.ARCHITECT.value,
        name: Optional[str] = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(
            agent_id=agent_id,
            agent_type=AgentType.ARCHITECT,
            config=config,
            name=name or "ArchitectAgent",
            description="Designs folder structure, components and module relations",
            **collaborators,
        )
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=AgentType.ARCHITECT.value,
            component="architect_agent",
        )

    async def _execute(self, task: TaskDefinition) -> TaskResult:
        requirement = task.input_data["spec"].strip()
        blueprint_path = task.input_data.get("output") or BLUEPRINT_PATH

        core_context = await self.read_context("core.md")
        rules_context = await self.read_context("rules.md")

        prompt = self._build_prompt(requirement, core_context, rules_context)
        blueprint = await self.query_llm(prompt)

        files = [
            (await self.write_generated_file(
                blueprint_path,
                blueprint,
                resource_type="architecture",
                language="markdown",
                metadata={"requirement": requirement},
            )).path
        ]

        for block in extract_code_blocks(blueprint, languages=("markdown", "md")):
            if block.path and block.path != blueprint_path:
                written = await self.write_generated_file(
                    block.path,
                    block.code,
                    resource_type="documentation",
                    language="markdown",
                )
                files.append(written.path)
                await self._require_context_store().add_dependency(written.path, blueprint_path)

        sections: dict[str, str] = {}
        for title in BLUEPRINT_SECTIONS:
            body = extract_section(blueprint, title)
            if body:
                sections[title] = body

        await self.record_decision(
            "Architecture blueprint defined",
            {
                "requirement": requirement,
                "blueprint": blueprint_path,
                "sections": sorted(sections),
                "used_core_context": bool(core_context),
                "used_rules": bool(rules_context),
            },
        )
        await self.update_shared_context(
            {"architecture": {"blueprint": blueprint_path, "requirement": requirement}}
        )
        await self.send_event(
            EventType.ARCHITECTURE_DEFINED,
            {"blueprint_path": blueprint_path, "files": files, "sections": sorted(sections)},
        )

        return self._create_result(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED,
            output={
                "blueprint": blueprint,
                "blueprint_path": blueprint_path,
                "sections": sections,
            },
            files=files,
        )

    @staticmethod
    def _build_prompt(requirement: str, core_context: str, rules_context: str) -> str:
        parts = []
        if core_context:
            parts.append(f"# Project Context\n{core_context.strip()}")
        if rules_context:
            parts.append(f"# Architecture Rules\n{rules_context.strip()}")
        sections = "\n".join(
            f"{i}. ## {title}" for i, title in enumerate(BLUEPRINT_SECTIONS, start=1)
        )
        parts.append(
            "# Task\n"
            "Design the architecture for the requirement below. Produce a "
            "detailed blueprint with these sections:\n"
            f"{sections}"
        )
        parts.append(f"# Requirement\n{requirement}")
        return "\n\n".join(parts)
