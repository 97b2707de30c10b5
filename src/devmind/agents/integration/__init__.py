"""Integration agents: third-party services and frontend/backend wiring."""

from devmind.agents.integration.frontend_sync import FrontendSyncAgent
from devmind.agents.integration.integration import SUPPORTED_SERVICES, IntegrationAgent, mask_secrets

__all__ = ["FrontendSyncAgent", "IntegrationAgent", "SUPPORTED_SERVICES", "mask_secrets"]
