"""
CJ.DevMind Test Suite
=====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/          → Tests for devmind.core (config, events, models, state)
    ├── test_agents/        → Tests for devmind.agents (base + the seven agents)
    ├── test_orchestration/ → Tests for devmind.orchestration (event bus, shared context)
    ├── test_infrastructure/→ Tests for devmind.infrastructure (workspace, code blocks)
    ├── test_integrations/  → Tests for devmind.integrations (LLM providers)
    ├── test_integration/   → End-to-end tests through the facade
    ├── test_facade.py      → Tests for the DevMind facade
    ├── test_cli.py         → Tests for the devmind command
    └── conftest.py         → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_agents/       # Run only agent tests
    pytest tests/test_integration/  # Run only end-to-end tests
"""
