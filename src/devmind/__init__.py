"""
CJ.DevMind - Cooperating Code-Generation Agents
=================================================

A team of LLM-prompting agents that scaffold web projects: architecture
blueprints, UI components, dashboards, DevOps configuration, third-party
integrations, frontend/backend wiring and test suites.

    ┌───────────┐  ┌───────────┐  ┌───────────┐       ┌───────────┐
    │ Architect │  │ Component │  │  DevOps   │  ...  │  Testing  │
    └─────┬─────┘  └─────┬─────┘  └─────┬─────┘       └─────┬─────┘
          └──────────────┴──── event bus ┴───────────────────┘
                        shared context (decisions, resources,
                        dependencies, agent statuses)

Quick Start:
    >>> from devmind import DevMind
    >>> async with DevMind() as devmind:
    ...     result = await devmind.run_agent("architect", "Online bookstore")
"""

# =============================================================================
# Package Version
# =============================================================================
__version__ = "0.1.0"

from devmind.facade import DevMind

__all__ = ["DevMind", "__version__"]
