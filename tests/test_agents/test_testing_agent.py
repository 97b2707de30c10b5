"""
Tests for devmind.agents.quality.testing - TestingAgent
=========================================================

These tests verify:
    - Suite kind selection from keywords (unit, integration, e2e)
    - Splitting the answer into Jest config, test suite and mocks
    - File naming for source-file specs and for prose specs
    - test_requested handling (the ComponentAgent → TestingAgent hand-off)

All tests are async (pytest-asyncio with asyncio_mode=auto) unless they
exercise a pure helper.
"""

from __future__ import annotations

import pytest

from devmind.agents.quality.testing import (
    JEST_CONFIG_PATH,
    TestingAgent,
    determine_test_kind,
    split_test_blocks,
)
from devmind.core.enums import EventType, TaskStatus, TestKind
from devmind.core.events import AgentEvent
from devmind.infrastructure.code_blocks import CodeBlock


FENCE = "```"


# =============================================================================
# Test: Pure helpers
# =============================================================================
class TestKindSelection:
    """Tests for determine_test_kind()."""

    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("Unit tests for the sum function", TestKind.UNIT),
            ("Integration tests for the payment service API", TestKind.INTEGRATION),
            ("End-to-end checkout flow for the user with cypress", TestKind.E2E),
            ("src/sum.js", TestKind.UNIT),
        ],
    )
    def test_kind(self, spec: str, expected: TestKind) -> None:
        assert determine_test_kind(spec) == expected

    def test_ties_fall_back_to_unit(self) -> None:
        """One unit and one integration keyword: unit wins the tie."""
        assert determine_test_kind("component service") == TestKind.UNIT


class TestSplitTestBlocks:
    """Tests for split_test_blocks()."""

    def test_three_roles(self) -> None:
        blocks = [
            CodeBlock(language="js", code="// mock data\nmodule.exports = { f: jest.fn() };"),
            CodeBlock(language="js", code="describe('a', () => { test('b', () => {}); });"),
            CodeBlock(language="js", code="// jest config\nmodule.exports = {};"),
        ]
        roles = split_test_blocks(blocks)
        assert roles["config"].code.startswith("// jest config")
        assert roles["test"].code.startswith("describe(")
        assert roles["mock"].code.startswith("// mock data")

    def test_single_block_becomes_the_test(self) -> None:
        roles = split_test_blocks([CodeBlock(language="js", code="assert(sum(1, 2) === 3);")])
        assert list(roles) == ["test"]

    def test_no_blocks(self) -> None:
        assert split_test_blocks([]) == {}


# =============================================================================
# Test: Generation
# =============================================================================
class TestTestingGeneration:
    """Tests for TestingAgent.run()."""

    async def test_prose_spec_files(self, testing_agent: TestingAgent, workspace) -> None:
        result = await testing_agent.run("Unit tests for the sum function")

        assert result.status == TaskStatus.COMPLETED
        assert result.output_data == {
            "test_kind": "unit",
            "config_path": JEST_CONFIG_PATH,
            "test_path": "__tests__/unit-tests.test.js",
            "mock_path": "__mocks__/unit-mocks.js",
        }
        assert "expect(sum(1, 2)).toBe(3)" in workspace.files["__tests__/unit-tests.test.js"]
        assert "jest.fn" in workspace.files["__mocks__/unit-mocks.js"]

    async def test_source_file_spec(
        self, testing_agent: TestingAgent, workspace, mock_llm_provider, context_store
    ) -> None:
        """A spec naming a source file names the outputs after it.

        Scenario:
            1. src/sum.js exists in the workspace
            2. run("src/sum.js")
            3. __tests__/sum.test.js and __mocks__/sum.mock.js are written,
               the source is in the prompt, the test depends on the source
        """
        workspace.files["src/sum.js"] = "exports.sum = (a, b) => a + b;\n"

        result = await testing_agent.run("src/sum.js")

        assert result.output_data["test_path"] == "__tests__/sum.test.js"
        assert result.output_data["mock_path"] == "__mocks__/sum.mock.js"
        assert "exports.sum = (a, b) => a + b;" in mock_llm_provider.last_prompt
        snapshot = await context_store.get_shared_context()
        assert snapshot.dependencies["__tests__/sum.test.js"] == ["src/sum.js"]

    async def test_forced_kind(self, testing_agent: TestingAgent, mock_llm_provider) -> None:
        result = await testing_agent.run("Unit tests for sum", kind="E2E")

        assert result.output_data["test_kind"] == "e2e"
        assert "Generate end-to-end tests" in mock_llm_provider.last_prompt

    async def test_unknown_forced_kind_fails(self, testing_agent: TestingAgent) -> None:
        result = await testing_agent.run("Unit tests for sum", kind="smoke")
        assert result.status == TaskStatus.FAILED

    async def test_component_details_in_prompt(
        self, testing_agent: TestingAgent, mock_llm_provider
    ) -> None:
        await testing_agent.run(
            "components/LoginForm/LoginForm.tsx",
            component_name="LoginForm",
            framework="react",
            features=["form", "validation"],
        )
        assert "Component: LoginForm (react), features: form, validation" in mock_llm_provider.last_prompt

    async def test_only_a_test_block(self, testing_agent: TestingAgent, mock_llm_provider, workspace) -> None:
        mock_llm_provider.queue_response(f"{FENCE}js\nassert(true);\n{FENCE}\n")

        result = await testing_agent.run("Unit tests for sum")

        assert result.files == ["__tests__/unit-tests.test.js"]
        assert result.output_data["config_path"] is None
        assert JEST_CONFIG_PATH not in workspace.files

    async def test_answer_without_code_fails(self, testing_agent: TestingAgent, mock_llm_provider) -> None:
        mock_llm_provider.queue_response("Testing is important.")

        result = await testing_agent.run("Unit tests for sum")

        assert result.status == TaskStatus.FAILED
        assert "no JavaScript test code" in result.error_message

    async def test_decision_recorded(self, testing_agent: TestingAgent, context_store) -> None:
        await testing_agent.run("Integration tests for the user service API")

        decision = (await context_store.get_decisions("TestingAgent"))[0]
        assert decision.decision == "Generated integration tests"
        assert len(decision.details["files"]) == 3


# =============================================================================
# Test: Events
# =============================================================================
class TestTestingEvents:
    """Tests for test_requested handling."""

    async def test_test_requested_replies_created(
        self, testing_agent: TestingAgent, event_bus
    ) -> None:
        await testing_agent.start()
        request = AgentEvent(
            event_type=EventType.TEST_REQUESTED,
            source="ComponentAgent",
            target="testing",
            payload={
                "spec": "components/LoginForm/LoginForm.tsx",
                "component_name": "LoginForm",
                "framework": "react",
                "features": [],
            },
        )

        await event_bus.publish(request)

        replies = event_bus.get_history(EventType.TEST_CREATED)
        assert len(replies) == 1
        assert replies[0].target == "ComponentAgent"
        assert replies[0].correlation_id == request.event_id
        assert replies[0].payload["component_name"] == "LoginForm"
        assert "__tests__/unit-tests.test.js" in replies[0].payload["files"]

    async def test_test_requested_replies_error(
        self, testing_agent: TestingAgent, event_bus, mock_llm_provider
    ) -> None:
        await testing_agent.start()
        mock_llm_provider.set_should_fail(True, "LLM down")

        await event_bus.publish(AgentEvent(
            event_type=EventType.TEST_REQUESTED,
            source="ComponentAgent",
            target="TestingAgent",
            payload={"spec": "src/sum.js"},
        ))

        errors = event_bus.get_history(EventType.TEST_ERROR)
        assert len(errors) == 1
        assert errors[0].payload["error"] == "LLM down"
