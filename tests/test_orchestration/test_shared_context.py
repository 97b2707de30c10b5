"""
Tests for devmind.orchestration.shared_context
================================================

These tests verify both shared context stores:
    - InMemorySharedContextStore: decisions, resources, dependencies,
      agent statuses, metrics and the free-form data merge
    - JsonFileSharedContextStore: persistence to one JSON document,
      reload across instances, corrupted-file detection
    - deep_merge: the merge rule behind update_shared_context()

All tests are async (pytest-asyncio with asyncio_mode=auto). The JSON store
writes under pytest's tmp_path.
"""

import asyncio
import json
from pathlib import Path

import pytest

from devmind.core.enums import AgentStatus, AgentType
from devmind.core.exceptions import ContextStoreError
from devmind.core.state import AgentStatusRecord
from devmind.orchestration.shared_context import (
    InMemorySharedContextStore,
    JsonFileSharedContextStore,
    SharedContextStore,
    deep_merge,
)


# =============================================================================
# Test: deep_merge
# =============================================================================
class TestDeepMerge:
    """Tests for the recursive merge helper."""

    def test_nested_dicts_merge_key_by_key(self) -> None:
        base = {"components": {"Cart": {"framework": "vue"}}, "name": "shop"}
        merged = deep_merge(base, {"components": {"Login": {"framework": "react"}}})
        assert merged == {
            "components": {"Cart": {"framework": "vue"}, "Login": {"framework": "react"}},
            "name": "shop",
        }

    def test_non_dict_values_replace(self) -> None:
        assert deep_merge({"tags": ["a"]}, {"tags": ["b"]}) == {"tags": ["b"]}

    def test_base_is_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"c": 2}})
        assert base == {"a": {"b": 1}}


# =============================================================================
# Test: InMemorySharedContextStore
# =============================================================================
class TestInMemorySharedContextStore:
    """Tests for the in-memory store."""

    def test_is_shared_context_store(self) -> None:
        assert isinstance(InMemorySharedContextStore(), SharedContextStore)

    async def test_fresh_store(self) -> None:
        store = InMemorySharedContextStore(project_name="shop")
        snapshot = await store.load()
        assert snapshot.project_name == "shop"
        assert snapshot.version == 0

    # -------------------------------------------------------------------------
    # Test: Decisions and resources
    # -------------------------------------------------------------------------

    async def test_decisions_are_sequenced_in_order(self) -> None:
        store = InMemorySharedContextStore()
        first = await store.record_decision("ArchitectAgent", "Use a SPA", {"reason": "UX"})
        second = await store.record_decision("DevOpsAgent", "GitHub Actions for CI")

        assert (first.sequence, second.sequence) == (1, 2)
        decisions = await store.get_decisions()
        assert [d.decision for d in decisions] == ["Use a SPA", "GitHub Actions for CI"]
        assert decisions[0].details == {"reason": "UX"}

    async def test_get_decisions_filters_by_agent(self) -> None:
        store = InMemorySharedContextStore()
        await store.record_decision("ArchitectAgent", "a")
        await store.record_decision("DevOpsAgent", "b")
        await store.record_decision("ArchitectAgent", "c")

        mine = await store.get_decisions("ArchitectAgent")

        assert [d.decision for d in mine] == ["a", "c"]

    async def test_concurrent_records_get_unique_sequences(self) -> None:
        """Sequence numbers are assigned under the lock: no gaps, no repeats."""
        store = InMemorySharedContextStore()

        records = await asyncio.gather(*(
            store.record_resource("ComponentAgent", "component", f"components/C{i}")
            for i in range(20)
        ))

        assert sorted(r.sequence for r in records) == list(range(1, 21))

    async def test_get_resources_filters(self) -> None:
        store = InMemorySharedContextStore()
        await store.record_resource("ComponentAgent", "component", "components/A/A.tsx")
        await store.record_resource("ComponentAgent", "component_docs", "components/A/A.md")
        await store.record_resource("DevOpsAgent", "devops_config", "devops/ci.yml")

        assert len(await store.get_resources()) == 3
        assert len(await store.get_resources(resource_type="component")) == 1
        assert len(await store.get_resources(agent="ComponentAgent")) == 2

    async def test_returned_records_are_copies(self) -> None:
        """Mutating a returned record must not change the store."""
        store = InMemorySharedContextStore()
        record = await store.record_decision("a", "d", {"files": ["x"]})
        record.details["files"].append("y")

        stored = await store.get_decisions()
        assert stored[0].details == {"files": ["x"]}

    # -------------------------------------------------------------------------
    # Test: Dependencies, statuses, metrics, data
    # -------------------------------------------------------------------------

    async def test_add_dependency_is_idempotent(self) -> None:
        store = InMemorySharedContextStore()
        await store.add_dependency("components/A/A.md", "components/A/A.tsx")
        await store.add_dependency("components/A/A.md", "components/A/A.tsx")
        version = (await store.get_shared_context()).version

        snapshot = await store.get_shared_context()
        assert snapshot.dependencies == {"components/A/A.md": ["components/A/A.tsx"]}
        assert version == 1, "A duplicate edge must not count as a mutation"

    async def test_agent_status_last_write_wins(self) -> None:
        store = InMemorySharedContextStore()
        for status in (AgentStatus.IDLE, AgentStatus.RUNNING, AgentStatus.IDLE):
            await store.set_agent_status(
                AgentStatusRecord(agent="TestingAgent", agent_type=AgentType.TESTING, status=status)
            )

        statuses = await store.get_agent_statuses()
        assert list(statuses) == ["TestingAgent"]
        assert statuses["TestingAgent"].status == AgentStatus.IDLE

    async def test_metrics_accumulate(self) -> None:
        store = InMemorySharedContextStore()
        await store.record_llm_usage(120)
        await store.record_llm_usage(-5)
        await store.record_files_generated(3)
        await store.record_files_generated(0)

        metrics = (await store.get_shared_context()).metrics
        assert metrics.llm_calls == 2
        assert metrics.total_tokens == 120, "Negative token counts are ignored"
        assert metrics.files_generated == 3

    async def test_update_shared_context_deep_merges(self) -> None:
        store = InMemorySharedContextStore()
        await store.update_shared_context({"components": {"Cart": {"framework": "vue"}}})
        snapshot = await store.update_shared_context({"components": {"Login": {"framework": "react"}}})

        assert sorted(snapshot.data["components"]) == ["Cart", "Login"]
        assert snapshot.version == 2

    async def test_every_mutation_bumps_version(self) -> None:
        store = InMemorySharedContextStore()
        await store.record_decision("a", "d")
        await store.record_resource("a", "doc", "docs/x.md")
        await store.update_shared_context({"k": 1})
        assert (await store.get_shared_context()).version == 3


# =============================================================================
# Test: JsonFileSharedContextStore
# =============================================================================
class TestJsonFileSharedContextStore:
    """Tests for the JSON-file-backed store."""

    async def test_missing_file_loads_fresh_snapshot(self, tmp_path: Path) -> None:
        store = JsonFileSharedContextStore(tmp_path / "data" / "shared-context.json")
        snapshot = await store.load()
        assert snapshot.version == 0
        assert not store.path.exists(), "Loading must not create the file"

    async def test_mutations_are_written_to_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "data" / "shared-context.json"
        store = JsonFileSharedContextStore(path, project_name="shop")
        await store.load()

        await store.record_decision("ArchitectAgent", "Use a SPA")

        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["project_name"] == "shop"
        assert document["decisions"][0]["decision"] == "Use a SPA"
        assert not list(path.parent.glob("*.tmp")), "Temp files must not be left behind"

    async def test_state_survives_a_new_instance(self, tmp_path: Path) -> None:
        """A second store on the same file picks up the first one's history.

        Scenario:
            1. Record a decision, a resource, a dependency and data
            2. Create a new store on the same path and load()
            3. Everything is there, and new sequence numbers continue
        """
        path = tmp_path / "shared-context.json"
        first = JsonFileSharedContextStore(path)
        await first.load()
        await first.record_decision("DevOpsAgent", "Docker for local dev")
        await first.record_resource("DevOpsAgent", "devops_config", "devops/Dockerfile")
        await first.add_dependency("devops/docker-compose.yml", "devops/Dockerfile")
        await first.update_shared_context({"devops": {"docker": {"configs": 1}}})

        second = JsonFileSharedContextStore(path)
        snapshot = await second.load()

        assert len(snapshot.decisions) == 1
        assert snapshot.resources[0].path == "devops/Dockerfile"
        assert snapshot.dependencies == {"devops/docker-compose.yml": ["devops/Dockerfile"]}
        assert snapshot.data["devops"]["docker"]["configs"] == 1
        record = await second.record_decision("DevOpsAgent", "Compose for services")
        assert record.sequence == 2

    async def test_empty_file_is_treated_as_fresh(self, tmp_path: Path) -> None:
        path = tmp_path / "shared-context.json"
        path.write_text("   \n")
        snapshot = await JsonFileSharedContextStore(path).load()
        assert snapshot.decisions == []

    async def test_corrupted_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "shared-context.json"
        path.write_text("{not json")
        with pytest.raises(ContextStoreError) as exc_info:
            await JsonFileSharedContextStore(path).load()
        assert exc_info.value.error_code == "CONTEXT_CORRUPTED"

    async def test_undecodable_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "shared-context.json"
        path.write_bytes(b'{"project_name": "\xff\xfe"}')
        with pytest.raises(ContextStoreError) as exc_info:
            await JsonFileSharedContextStore(path).load()
        assert exc_info.value.error_code == "CONTEXT_CORRUPTED"

    async def test_failed_write_leaves_snapshot_unchanged(self, tmp_path: Path) -> None:
        """A mutation whose write fails is not kept in memory.

        Scenario:
            1. One decision is recorded and written
            2. The file path becomes a directory, so the atomic replace fails
            3. Every kind of mutation raises CONTEXT_WRITE_FAILED
            4. The snapshot still holds only the first decision
            5. Once writes work again, sequences continue without a gap
        """
        path = tmp_path / "shared-context.json"
        store = JsonFileSharedContextStore(path)
        await store.record_decision("ArchitectAgent", "kept")
        before = await store.get_shared_context()

        path.unlink()
        path.mkdir()
        attempts = [
            store.record_decision("ArchitectAgent", "rejected"),
            store.record_resource("ArchitectAgent", "doc", "docs/x.md"),
            store.update_shared_context({"architecture": {"style": "monolith"}}),
            store.add_dependency("a.ts", "b.ts"),
            store.record_llm_usage(10),
            store.record_files_generated(2),
        ]
        for attempt in attempts:
            with pytest.raises(ContextStoreError) as exc_info:
                await attempt
            assert exc_info.value.error_code == "CONTEXT_WRITE_FAILED"

        after = await store.get_shared_context()
        assert after.model_dump() == before.model_dump()

        path.rmdir()
        record = await store.record_decision("ArchitectAgent", "accepted")
        assert record.sequence == 2
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert [d["decision"] for d in on_disk["decisions"]] == ["kept", "accepted"]
