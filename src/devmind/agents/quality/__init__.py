"""Quality agents: test suite generation."""

from devmind.agents.quality.testing import TestingAgent, determine_test_kind

__all__ = ["TestingAgent", "determine_test_kind"]
