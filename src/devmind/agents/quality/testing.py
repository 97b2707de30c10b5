"""
devmind.agents.quality.testing - Testing Agent
================================================

Generates a Jest setup for the project: runner configuration, a test suite
and the mocks it needs.

Test Kind:
    Keyword counting over the spec decides between unit, integration and
    end-to-end suites. e2e must beat both others; integration must beat
    unit; unit is the fallback.

Outputs:
    jest.config.js
    __tests__/<base>.test.js      <base> = source file stem, or
    __mocks__/<base>.mock.js      "<kind>-tests" / "<kind>-mocks" for prose

Events:
    Listens for test_requested (sent by the ComponentAgent for each new
    component) and replies test_created or test_error.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Optional

import structlog

from devmind.agents.base import BaseAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, EventType, TaskStatus, TestKind
from devmind.core.events import AgentEvent
from devmind.core.exceptions import DevMindError
from devmind.core.models import TaskDefinition, TaskResult
from devmind.infrastructure.code_blocks import CodeBlock, extract_code_blocks


logger = structlog.get_logger()

JEST_CONFIG_PATH = "jest.config.js"
TESTS_DIR = "__tests__"
MOCKS_DIR = "__mocks__"
TEST_LANGUAGES = ("js", "javascript", "ts", "typescript")

UNIT_KEYWORDS = ("unitaria", "unit", "función", "function", "clase", "class", "componente", "component")
INTEGRATION_KEYWORDS = ("integración", "integration", "módulo", "module", "servicio", "service", "api")
E2E_KEYWORDS = ("e2e", "end-to-end", "flujo", "flow", "usuario", "user", "interfaz", "ui", "cypress")

KIND_LABELS = {
    TestKind.UNIT.value: "unit tests",
    TestKind.INTEGRATION.value: "integration tests",
    TestKind.E2E.value: "end-to-end tests",
}

TESTING_SYSTEM_PROMPT = (
    "You are DevMind's testing agent, a senior QA engineer. Answer with three "
    "JavaScript code blocks: the Jest config, the test suite and the mocks."
)


def determine_test_kind(spec: str) -> TestKind:
    """Pick the suite kind from how many keywords of each list occur."""
    lowered = spec.lower()
    unit = sum(1 for keyword in UNIT_KEYWORDS if keyword in lowered)
    integration = sum(1 for keyword in INTEGRATION_KEYWORDS if keyword in lowered)
    e2e = sum(1 for keyword in E2E_KEYWORDS if keyword in lowered)

    if e2e > unit and e2e > integration:
        return TestKind.E2E
    if integration > unit:
        return TestKind.INTEGRATION
    return TestKind.UNIT


def split_test_blocks(blocks: list[CodeBlock]) -> dict[str, CodeBlock]:
    """Assign blocks to "config", "test" and "mock", each at most once."""
    assigned: dict[str, CodeBlock] = {}
    remaining = list(blocks)

    def take(role: str, predicate) -> None:
        if role in assigned:
            return
        for block in remaining:
            if predicate(block.code):
                assigned[role] = block
                remaining.remove(block)
                return

    take("config", lambda code: "config" in code.lower() and "module.exports" in code)
    take("config", lambda code: "config" in code.lower())
    take("test", lambda code: "describe(" in code or "test(" in code or "it(" in code)
    take("mock", lambda code: "jest.fn" in code or "mock" in code.lower())
    if "test" not in assigned and remaining:
        assigned["test"] = remaining.pop(0)
    return assigned


class TestingAgent(BaseAgent):
    """Writes Jest configuration, test suites and mocks.

    Input Requirements (task.input_data):
        - "spec" (str): A workspace source path or a description.
        Optional: "component_name", "framework", "features" (from
        test_requested events); "kind" forces the suite kind.

    Output Format (result.output_data):
        - "test_kind", "config_path", "test_path", "mock_path"
    """

    __test__ = False  # keep pytest from collecting this class

    SYSTEM_PROMPT = TESTING_SYSTEM_PROMPT

    def __init__(
        self,
        config: DevMindConfig,
        *,
        agent_id: str = AgentType.TESTING.value,
        name: Optional[str] = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(
            agent_id=agent_id,
            agent_type=AgentType.TESTING,
            config=config,
            name=name or "TestingAgent",
            description="Generates Jest configuration, test suites and mocks",
            **collaborators,
        )
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=AgentType.TESTING.value,
            component="testing_agent",
        )

    async def _on_start(self) -> None:
        await self.listen_for_event(EventType.TEST_REQUESTED, self._on_test_requested)

    async def _on_test_requested(self, event: AgentEvent) -> None:
        payload = event.payload
        spec = payload.get("spec") or payload.get("path") or payload.get("component_name", "")
        self._logger.info("test_requested", requester=event.source, spec=spec)
        options = {
            key: payload[key]
            for key in ("component_name", "framework", "features")
            if key in payload
        }
        try:
            result = await self.run(spec, **options)
        except DevMindError as exc:
            await self.reply(event, EventType.TEST_ERROR, {"error": exc.message, "spec": spec})
            return

        if result.succeeded:
            await self.reply(event, EventType.TEST_CREATED, {
                "test_kind": result.output_data["test_kind"],
                "files": result.files,
                "component_name": payload.get("component_name"),
            })
        else:
            await self.reply(event, EventType.TEST_ERROR, {"error": result.error_message, "spec": spec})

    async def _execute(self, task: TaskDefinition) -> TaskResult:
        spec: str = task.input_data["spec"].strip()
        forced = task.input_data.get("kind")
        kind = TestKind(str(forced).lower()) if forced else determine_test_kind(spec)
        source = await self.read_spec_source(spec)

        self._logger.info("test_generation_starting", task_id=task.task_id, kind=kind.value,
                          from_file=source is not None)

        core_context = await self.read_context("core.md")
        rules_context = await self.read_context("rules.md")
        prompt = self._build_prompt(spec, kind, source, core_context, rules_context, task.input_data)
        answer = await self.query_llm(prompt)

        blocks = split_test_blocks(extract_code_blocks(answer, TEST_LANGUAGES))
        if "test" not in blocks:
            raise ValueError("The LLM answer contained no JavaScript test code")

        if source is not None:
            base = PurePosixPath(spec).stem
            test_name, mock_name = f"{base}.test.js", f"{base}.mock.js"
        else:
            test_name, mock_name = f"{kind.value}-tests.test.js", f"{kind.value}-mocks.js"

        metadata = {"test_kind": kind.value, "subject": spec}
        files: list[str] = []
        config_path: Optional[str] = None
        mock_path: Optional[str] = None

        if "config" in blocks:
            config_path = (await self.write_generated_file(
                JEST_CONFIG_PATH, blocks["config"].code,
                resource_type="test_config", language="javascript", metadata=metadata,
            )).path
            files.append(config_path)

        test_path = (await self.write_generated_file(
            f"{TESTS_DIR}/{test_name}", blocks["test"].code,
            resource_type="test", language="javascript", metadata=metadata,
        )).path
        files.append(test_path)

        if "mock" in blocks:
            mock_path = (await self.write_generated_file(
                f"{MOCKS_DIR}/{mock_name}", blocks["mock"].code,
                resource_type="test_mock", language="javascript", metadata=metadata,
            )).path
            files.append(mock_path)

        if source is not None:
            await self._require_context_store().add_dependency(test_path, spec)

        await self.record_decision(
            f"Generated {KIND_LABELS[kind.value]}",
            {"subject": spec, "test_kind": kind.value, "files": files},
        )

        return self._create_result(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED,
            output={
                "test_kind": kind.value,
                "config_path": config_path,
                "test_path": test_path,
                "mock_path": mock_path,
            },
            files=files,
        )

    @staticmethod
    def _build_prompt(
        spec: str,
        kind: TestKind,
        source: Optional[str],
        core_context: str,
        rules_context: str,
        input_data: dict[str, Any],
    ) -> str:
        parts = []
        if core_context:
            parts.append(f"# Project Context\n{core_context.strip()}")
        if rules_context:
            parts.append(f"# Architecture Rules\n{rules_context.strip()}")
        parts.append(f'# Task\nGenerate {KIND_LABELS[kind.value]} for: "{spec}"')
        if input_data.get("component_name"):
            features = ", ".join(input_data.get("features") or []) or "none"
            parts.append(
                f"Component: {input_data['component_name']} "
                f"({input_data.get('framework', 'react')}), features: {features}"
            )
        if source is not None:
            parts.append(f"# Source\n```\n{source.rstrip()}\n```")
        parts.append(
            "Produce:\n"
            "1. The Jest configuration (module.exports = {...})\n"
            "2. The test suite covering positive and negative cases\n"
            "3. The mocks and stubs the suite needs"
        )
        return "\n\n".join(parts)
