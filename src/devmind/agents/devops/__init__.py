"""DevOps agents: pipelines, containers, infrastructure and monitoring configs."""

from devmind.agents.devops.devops import DevOpsAgent, detect_devops_kind

__all__ = ["DevOpsAgent", "detect_devops_kind"]
