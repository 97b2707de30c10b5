"""
devmind.agents.monitoring.dashboard - Dashboard Agent
=======================================================

Maintains the project dashboard: a small Next.js app under ``dashboard/``
whose pages read three JSON data files the agent keeps current.

Actions (the task spec):
    init     Write the app scaffold and the first data files
    update   Refresh the data files
    status   Report what exists
    start    The dev server is not managed; report how to run it
    stop     Same
    <other>  Custom request: the LLM writes extra dashboard components

Data Files (dashboard/public/data/):
    project-graph.json   {"nodes": [...resources], "links": [...dependencies]}
    agent-status.json    {"agents": [...]} active when the last decision of
                         the agent is under an hour old, idle otherwise, plus
                         the live status every agent reports
    shared-context.json  The whole shared context snapshot

Live Refresh:
    Once the dashboard is initialized, resource_created refreshes the graph
    and task_started / task_completed refresh the agent status file.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import PurePosixPath
from typing import Any, Optional

import structlog

from devmind.agents.base import BaseAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, EventType, TaskStatus
from devmind.core.events import BROADCAST, AgentEvent
from devmind.core.models import TaskDefinition, TaskResult
from devmind.core.state import SharedContextSnapshot
from devmind.infrastructure.code_blocks import extract_code_blocks, slugify


logger = structlog.get_logger()

ACTIVE_WINDOW = timedelta(hours=1)
DATA_DIR = "public/data"
GRAPH_FILE = "project-graph.json"
AGENT_STATUS_FILE = "agent-status.json"
SHARED_CONTEXT_FILE = "shared-context.json"
BUILTIN_ACTIONS = ("init", "update", "status", "start", "stop")

DASHBOARD_SYSTEM_PROMPT = (
    "You are DevMind's dashboard agent, a frontend engineer building a "
    "Next.js + Tailwind project dashboard. The dashboard reads "
    "/data/project-graph.json, /data/agent-status.json and "
    "/data/shared-context.json. Start every code block with a comment "
    "holding its path relative to the dashboard root."
)

_PACKAGE_JSON = {
    "name": "devmind-dashboard",
    "private": True,
    "version": "0.1.0",
    "scripts": {"dev": "next dev", "build": "next build", "start": "next start"},
    "dependencies": {"next": "^14.2.0", "react": "^18.3.0", "react-dom": "^18.3.0"},
    "devDependencies": {"tailwindcss": "^3.4.0"},
}

_INDEX_PAGE = """\
import { useEffect, useState } from 'react';

function useData(name) {
  const [data, setData] = useState(null);
  useEffect(() => {
    fetch(`/data/${name}.json`).then((res) => res.json()).then(setData);
  }, [name]);
  return data;
}

export default function Dashboard() {
  const graph = useData('project-graph');
  const status = useData('agent-status');
  return (
    <main className="p-6">
      <h1 className="text-2xl font-bold">Project Dashboard</h1>
      <section>
        <h2 className="text-xl">Agents</h2>
        <ul>
          {(status?.agents ?? []).map((agent) => (
            <li key={agent.id}>{agent.name}: {agent.status}</li>
          ))}
        </ul>
      </section>
      <section>
        <h2 className="text-xl">Resources</h2>
        <p>{graph ? `${graph.nodes.length} resources, ${graph.links.length} links` : 'Loading...'}</p>
      </section>
    </main>
  );
}
"""


def build_project_graph(snapshot: SharedContextSnapshot) -> dict[str, Any]:
    """Nodes for recorded resources (one per path), links for dependencies."""
    nodes: list[dict[str, Any]] = []
    seen: set[str] = set()
    for resource in snapshot.resources:
        if resource.path in seen:
            continue
        seen.add(resource.path)
        nodes.append({
            "id": resource.path,
            "name": PurePosixPath(resource.path).name or resource.path,
            "type": resource.resource_type,
            "agent": resource.agent,
            "path": resource.path,
        })
    links = [
        {"source": source, "target": target}
        for source, targets in snapshot.dependencies.items()
        for target in targets
    ]
    return {"nodes": nodes, "links": links}


def build_agent_status(
    snapshot: SharedContextSnapshot,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Per-agent activity from the decision log merged with live statuses."""
    now = now or datetime.now(timezone.utc)
    by_agent: dict[str, list] = {}
    for decision in snapshot.decisions:
        by_agent.setdefault(decision.agent, []).append(decision)

    agents: dict[str, dict[str, Any]] = {}
    for name, decisions in by_agent.items():
        last = decisions[-1]
        agents[name] = {
            "id": slugify(name),
            "name": name,
            "status": "active" if now - last.timestamp < ACTIVE_WINDOW else "idle",
            "lastActivity": last.timestamp.isoformat(),
            "currentTask": last.decision,
            "decisions": len(decisions),
        }

    for name, record in snapshot.agent_statuses.items():
        entry = agents.setdefault(name, {
            "id": slugify(name),
            "name": name,
            "status": "idle",
            "lastActivity": record.last_activity.isoformat(),
            "currentTask": None,
            "decisions": 0,
        })
        entry["liveStatus"] = record.status.value
        entry["agentType"] = record.agent_type.value if record.agent_type else None
        if record.current_task:
            entry["currentTask"] = record.current_task

    return {"agents": list(agents.values()), "generatedAt": now.isoformat()}


class DashboardAgent(BaseAgent):
    """Scaffolds the dashboard app and keeps its data files current.

    Input Requirements (task.input_data):
        - "spec" (str): init, update, status, start, stop, or a free-text
          customisation request.

    Output Format (result.output_data):
        - "action" (str) plus action-specific keys ("data_files",
          "initialized", "managed", ...)
    """

    SYSTEM_PROMPT = DASHBOARD_SYSTEM_PROMPT

    def __init__(
        self,
        config: DevMindConfig,
        *,
        agent_id: str = AgentType.DASHBOARD.value,
        name: Optional[str] = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(
            agent_id=agent_id,
            agent_type=AgentType.DASHBOARD,
            config=config,
            name=name or "DashboardAgent",
            description="Maintains the project dashboard and its live data",
            **collaborators,
        )
        self._dashboard_dir = config.workspace.dashboard_dir.strip("/") or "dashboard"
        self._refresh_lock = asyncio.Lock()
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=AgentType.DASHBOARD.value,
            component="dashboard_agent",
        )

    @property
    def dashboard_dir(self) -> str:
        return self._dashboard_dir

    def data_path(self, filename: str) -> str:
        return f"{self._dashboard_dir}/{DATA_DIR}/{filename}"

    async def is_initialized(self) -> bool:
        return await self._require_workspace().exists(f"{self._dashboard_dir}/package.json")

    # =========================================================================
    # Events
    # =========================================================================

    async def _on_start(self) -> None:
        await self.listen_for_event(EventType.RESOURCE_CREATED, self._on_resource_created)
        await self.listen_for_event(EventType.TASK_STARTED, self._on_task_activity)
        await self.listen_for_event(EventType.TASK_COMPLETED, self._on_task_activity)

    async def _on_resource_created(self, event: AgentEvent) -> None:
        if event.source == self.name or not await self.is_initialized():
            return
        self._logger.debug("resource_detected", path=event.payload.get("path"), source=event.source)
        await self.refresh_project_graph()

    async def _on_task_activity(self, event: AgentEvent) -> None:
        if event.source == self.name or not await self.is_initialized():
            return
        self._logger.debug("agent_activity_detected", event_type=event.type_value, source=event.source)
        await self.refresh_agent_status()

    # =========================================================================
    # Execution
    # =========================================================================

    async def _execute(self, task: TaskDefinition) -> TaskResult:
        spec = task.input_data["spec"].strip()
        action = spec.lower() if spec.lower() in BUILTIN_ACTIONS else "custom"

        if action == "init":
            output, files = await self._initialize()
        elif action == "update":
            files = await self.update_data_files()
            output = {"data_files": files}
            await self.send_message(BROADCAST, EventType.DASHBOARD_UPDATED, {
                "action": "dashboard-updated",
                "data_files": files,
            })
        elif action == "status":
            output, files = await self._status(), []
        elif action in ("start", "stop"):
            output, files = self._server_not_managed(action), []
        else:
            output, files = await self._customize(spec)

        output = {"action": action, **output}
        await self.send_message(BROADCAST, EventType.AGENT_MESSAGE, {
            "action": action,
            "status": "completed",
        })
        return self._create_result(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED,
            output=output,
            files=files,
        )

    async def _initialize(self) -> tuple[dict[str, Any], list[str]]:
        if await self.is_initialized():
            self._logger.warning("dashboard_already_initialized", path=self._dashboard_dir)
            files = await self.update_data_files()
            return {"initialized": False, "already_initialized": True, "data_files": files}, files

        scaffold = {
            "package.json": json.dumps(_PACKAGE_JSON, indent=2) + "\n",
            "src/pages/index.jsx": _INDEX_PAGE,
        }
        files: list[str] = []
        for relative, content in scaffold.items():
            written = await self.write_generated_file(
                f"{self._dashboard_dir}/{relative}",
                content,
                resource_type="dashboard",
            )
            files.append(written.path)

        data_files = await self.update_data_files()
        await self.record_decision(
            "Dashboard initialized",
            {"path": self._dashboard_dir, "files": files},
        )
        return {"initialized": True, "data_files": data_files}, files + data_files

    async def _status(self) -> dict[str, Any]:
        workspace = self._require_workspace()
        data_files = {
            name: await workspace.exists(self.data_path(name))
            for name in (GRAPH_FILE, AGENT_STATUS_FILE, SHARED_CONTEXT_FILE)
        }
        snapshot = await self.get_shared_context()
        return {
            "initialized": await self.is_initialized(),
            "data_files": data_files,
            "server": "not managed",
            "resources": len(snapshot.resources),
            "decisions": len(snapshot.decisions),
        }

    def _server_not_managed(self, action: str) -> dict[str, Any]:
        self._logger.info("dashboard_server_not_managed", action=action)
        return {
            "managed": False,
            "message": (
                f"The dashboard server is not managed by DevMind. "
                f"Run 'npm install && npm run dev' in {self._dashboard_dir}/."
            ),
        }

    async def _customize(self, spec: str) -> tuple[dict[str, Any], list[str]]:
        core_context = await self.read_context("core.md")
        prompt = (
            (f"# Project Context\n{core_context.strip()}\n\n" if core_context else "")
            + f'# Task\nCustomize the project dashboard: "{spec}"\n\n'
            "Generate the React components, Tailwind styles and configuration "
            "needed. Use the JSON data files for live data."
        )
        answer = await self.query_llm(prompt)

        files: list[str] = []
        for block in extract_code_blocks(answer):
            if not block.path:
                continue
            written = await self.write_generated_file(
                f"{self._dashboard_dir}/{block.path.lstrip('/')}",
                block.code,
                resource_type="dashboard_component",
                language=block.canonical_language or None,
                metadata={"spec": spec},
            )
            files.append(written.path)

        if not files:
            raise ValueError("The LLM answer contained no dashboard files with a path")

        await self.record_decision(
            f'Customize dashboard: "{spec}"',
            {"files": files},
        )
        return {"files": files}, files

    # =========================================================================
    # Data Files
    # =========================================================================

    async def update_data_files(self) -> list[str]:
        """Rewrite all three data files."""
        return [
            await self.refresh_project_graph(),
            await self.refresh_agent_status(),
            await self.refresh_shared_context(),
        ]

    async def refresh_project_graph(self) -> str:
        snapshot = await self.get_shared_context()
        graph = build_project_graph(snapshot)
        path = await self._write_data(GRAPH_FILE, graph)
        self._logger.info("project_graph_updated", nodes=len(graph["nodes"]), links=len(graph["links"]))
        return path

    async def refresh_agent_status(self) -> str:
        snapshot = await self.get_shared_context()
        status = build_agent_status(snapshot)
        path = await self._write_data(AGENT_STATUS_FILE, status)
        self._logger.info("agent_status_updated", agents=len(status["agents"]))
        return path

    async def refresh_shared_context(self) -> str:
        snapshot = await self.get_shared_context()
        return await self._write_data(SHARED_CONTEXT_FILE, snapshot.model_dump(mode="json"))

    async def _write_data(self, filename: str, data: dict[str, Any]) -> str:
        # Data files are written directly so that refreshing them does not
        # itself announce new resources.
        async with self._refresh_lock:
            written = await self._require_workspace().write_file(
                self.data_path(filename),
                json.dumps(data, indent=2) + "\n",
                agent=self.name,
                language="json",
            )
        return written.path
