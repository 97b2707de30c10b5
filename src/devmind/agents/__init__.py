"""
devmind.agents - Specialized Agent Layer
==========================================

The seven CJ.DevMind agents and the base class they share.

Architecture:
    ┌─────────────── FACADE / CLI ────────────────────────┐
    │  DevMind.run_agent(), `devmind <agent> ...`          │
    └─────────────────────┬───────────────────────────────┘
                          │ run(spec)
                          ▼
    ┌─────────────── AGENT LAYER ─────────────────────────┐
    │                                                      │
    │  BaseAgent (abstract)                                │
    │    ├── design/                                        │
    │    │   ├── ArchitectAgent     (architecture)         │
    │    │   └── ComponentAgent     (UI components)        │
    │    ├── monitoring/                                    │
    │    │   └── DashboardAgent     (project dashboard)    │
    │    ├── devops/                                        │
    │    │   └── DevOpsAgent        (CI/CD, IaC, ...)      │
    │    ├── integration/                                   │
    │    │   ├── IntegrationAgent   (third-party services) │
    │    │   └── FrontendSyncAgent  (frontend ↔ backend)   │
    │    └── quality/                                       │
    │        └── TestingAgent       (Jest suites)          │
    │                                                      │
    └──────────────────────────────────────────────────────┘
                          │ event bus, shared context,
                          ▼ LLM provider, workspace
    ┌─────────────── ORCHESTRATION / INTEGRATIONS ────────┐
    └──────────────────────────────────────────────────────┘

Usage:
    from devmind.agents import ComponentAgent
"""

from devmind.agents.base import BaseAgent
from devmind.agents.design.architect import ArchitectAgent
from devmind.agents.design.component import ComponentAgent
from devmind.agents.devops.devops import DevOpsAgent
from devmind.agents.integration.frontend_sync import FrontendSyncAgent
from devmind.agents.integration.integration import IntegrationAgent
from devmind.agents.monitoring.dashboard import DashboardAgent
from devmind.agents.quality.testing import TestingAgent

__all__ = [
    "ArchitectAgent",
    "BaseAgent",
    "ComponentAgent",
    "DashboardAgent",
    "DevOpsAgent",
    "FrontendSyncAgent",
    "IntegrationAgent",
    "TestingAgent",
]
