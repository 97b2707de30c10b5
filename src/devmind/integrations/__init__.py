"""
devmind.integrations - External Service Adapters
================================================

Sub-packages:
    llm/   - Large Language Model providers (OpenAI-compatible HTTP, Mock)
"""

__all__: list[str] = []
