"""Monitoring agents: the project dashboard."""

from devmind.agents.monitoring.dashboard import DashboardAgent, build_agent_status, build_project_graph

__all__ = ["DashboardAgent", "build_agent_status", "build_project_graph"]
