"""
devmind.infrastructure - Files In, Files Out
============================================

    - workspace:    Confined reading/writing of project files
    - code_blocks:  Fenced code extraction from LLM answers
"""

from devmind.infrastructure.code_blocks import (
    CodeBlock,
    extract_code_blocks,
    extract_first_block,
    extract_section,
    looks_like_path,
    slugify,
    to_pascal_case,
)
from devmind.infrastructure.workspace import (
    InMemoryWorkspace,
    LocalWorkspace,
    Workspace,
    normalize_relative_path,
)

__all__ = [
    "CodeBlock",
    "extract_code_blocks",
    "extract_first_block",
    "extract_section",
    "looks_like_path",
    "slugify",
    "to_pascal_case",
    "InMemoryWorkspace",
    "LocalWorkspace",
    "Workspace",
    "normalize_relative_path",
]
