"""Design agents: architecture blueprints and UI components."""

from devmind.agents.design.architect import ArchitectAgent
from devmind.agents.design.component import ComponentAgent, ComponentOptions, parse_component_spec

__all__ = ["ArchitectAgent", "ComponentAgent", "ComponentOptions", "parse_component_spec"]
