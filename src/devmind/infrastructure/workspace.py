"""
devmind.infrastructure.workspace - Project Workspace
======================================================

Where generated artifacts land. Agents write files through a Workspace so
that every write is confined to the project directory and recorded as a
``GeneratedFile``.

    ┌────────────────┐  write_file("components/Button/Button.tsx")
    │ ComponentAgent │ ────────────────────────────────────────┐
    └────────────────┘                                         ↓
    ┌────────────────┐  write_file("devops/deploy.sh",   ┌───────────────┐
    │  DevOpsAgent   │ ───────── executable=True) ─────→ │   Workspace    │
    └────────────────┘                                   │ <project_dir>/ │
                                                         └───────────────┘

Storage Implementations:
    - LocalWorkspace:     Real filesystem under a root directory
    - InMemoryWorkspace:  Dict-based, for development/testing

Usage:
    >>> workspace = LocalWorkspace("/tmp/my-app")
    >>> await workspace.write_file("docs/architecture.md", "# Architecture")
    >>> await workspace.read_file("docs/architecture.md")
    '# Architecture'
"""

from __future__ import annotations

import asyncio
import os
import stat
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path, PurePosixPath
from typing import Optional, Union

import structlog

from devmind.core.exceptions import WorkspaceError
from devmind.core.models import GeneratedFile


logger = structlog.get_logger()

DEFAULT_WRITE_LOG_LIMIT = 200


def normalize_relative_path(relative_path: str) -> str:
    """Validate a workspace-relative path and return it in POSIX form.

    Raises:
        WorkspaceError: PATH_OUTSIDE_WORKSPACE for absolute paths or paths
            that climb out of the workspace with "..". INVALID_PATH for
            empty paths.
    """
    cleaned = (relative_path or "").strip().replace("\\", "/")
    if not cleaned or cleaned in (".", "./"):
        raise WorkspaceError(
            message="Empty workspace path",
            path=relative_path,
            error_code="INVALID_PATH",
        )
    pure = PurePosixPath(cleaned)
    if pure.is_absolute() or (len(cleaned) > 1 and cleaned[1] == ":"):
        raise WorkspaceError(
            message=f"Absolute paths are not allowed: {relative_path}",
            path=relative_path,
            error_code="PATH_OUTSIDE_WORKSPACE",
        )

    parts: list[str] = []
    for part in pure.parts:
        if part == "..":
            if not parts:
                raise WorkspaceError(
                    message=f"Path escapes the workspace: {relative_path}",
                    path=relative_path,
                    error_code="PATH_OUTSIDE_WORKSPACE",
                )
            parts.pop()
        elif part != ".":
            parts.append(part)
    if not parts:
        raise WorkspaceError(
            message="Empty workspace path",
            path=relative_path,
            error_code="INVALID_PATH",
        )
    return "/".join(parts)


# =============================================================================
# Abstract Base Class
# =============================================================================
class Workspace(ABC):
    """Abstract interface for reading and writing project files.

    Methods:
        write_file(path, content): Create or overwrite a file.
        read_file(path): Read a file, None when it does not exist.
        exists(path): Check for a file.
        list_files(prefix): Relative paths of stored files.
        written_files: The most recent writes through this instance.
    """

    def __init__(self, write_log_limit: int = DEFAULT_WRITE_LOG_LIMIT) -> None:
        self._written: deque[GeneratedFile] = deque(maxlen=write_log_limit)

    @property
    def written_files(self) -> list[GeneratedFile]:
        """The last ``write_log_limit`` writes through this instance, oldest first."""
        return list(self._written)

    async def write_file(
        self,
        relative_path: str,
        content: str,
        *,
        agent: Optional[str] = None,
        language: Optional[str] = None,
        executable: bool = False,
    ) -> GeneratedFile:
        """Create or overwrite ``relative_path`` with ``content``.

        Parent directories are created as needed.

        Args:
            relative_path: Path relative to the workspace root.
            content: Full text content.
            agent: Name of the producing agent, kept on the record.
            language: Source language, kept on the record.
            executable: Mark the file executable (scripts).

        Returns:
            The GeneratedFile record.

        Raises:
            WorkspaceError: If the path leaves the workspace or the write
                fails.
        """
        path = normalize_relative_path(relative_path)
        await self._write(path, content, executable)
        generated = GeneratedFile(path=path, content=content, language=language, agent=agent)
        self._written.append(generated)
        logger.debug(
            "workspace_file_written",
            path=path,
            size=generated.size,
            agent=agent,
            executable=executable,
        )
        return generated

    @abstractmethod
    async def _write(self, path: str, content: str, executable: bool) -> None:
        """Store content at a validated relative path."""

    @abstractmethod
    async def read_file(self, relative_path: str) -> Optional[str]:
        """Return the file's text, or None when it does not exist."""

    @abstractmethod
    async def exists(self, relative_path: str) -> bool:
        """Whether ``relative_path`` names an existing file."""

    @abstractmethod
    async def list_files(self, prefix: str = "") -> list[str]:
        """Sorted relative paths of files under ``prefix``."""


# =============================================================================
# Local Filesystem Implementation
# =============================================================================
class LocalWorkspace(Workspace):
    """Workspace rooted at a directory on disk.

    Example:
        >>> workspace = LocalWorkspace(Path.cwd())
        >>> await workspace.write_file("devops/deploy.sh", "#!/bin/sh\\n", executable=True)
    """

    def __init__(
        self, root: Union[str, Path], write_log_limit: int = DEFAULT_WRITE_LOG_LIMIT
    ) -> None:
        super().__init__(write_log_limit)
        self._root = Path(root).resolve()
        self._logger = logger.bind(component="local_workspace", root=str(self._root))

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a workspace-relative one (validated)."""
        return self._root / normalize_relative_path(relative_path)

    async def _write(self, path: str, content: str, executable: bool) -> None:
        target = self._root / path
        try:
            await asyncio.to_thread(self._write_sync, target, content, executable)
        except OSError as exc:
            raise WorkspaceError(
                message=f"Failed to write {path}: {exc}",
                path=path,
                error_code="WRITE_FAILED",
            ) from exc

    @staticmethod
    def _write_sync(target: Path, content: str, executable: bool) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        if executable and os.name == "posix":
            # rwxr-xr-x
            target.chmod(
                stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH
            )

    async def read_file(self, relative_path: str) -> Optional[str]:
        target = self.resolve(relative_path)
        if not target.is_file():
            return None
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except OSError as exc:
            raise WorkspaceError(
                message=f"Failed to read {relative_path}: {exc}",
                path=relative_path,
                error_code="READ_FAILED",
            ) from exc

    async def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    async def list_files(self, prefix: str = "") -> list[str]:
        base = self.resolve(prefix) if prefix else self._root
        if not base.exists():
            return []
        if base.is_file():
            return [base.relative_to(self._root).as_posix()]
        return sorted(
            p.relative_to(self._root).as_posix() for p in base.rglob("*") if p.is_file()
        )


# =============================================================================
# In-Memory Implementation
# =============================================================================
class InMemoryWorkspace(Workspace):
    """Workspace kept in a dict. Nothing touches the disk.

    Attributes:
        files: Relative path → content.
        executables: Relative paths written with ``executable=True``.
    """

    def __init__(
        self,
        files: Optional[dict[str, str]] = None,
        write_log_limit: int = DEFAULT_WRITE_LOG_LIMIT,
    ) -> None:
        super().__init__(write_log_limit)
        self.files: dict[str, str] = {}
        self.executables: set[str] = set()
        for path, content in (files or {}).items():
            self.files[normalize_relative_path(path)] = content

    async def _write(self, path: str, content: str, executable: bool) -> None:
        self.files[path] = content
        if executable:
            self.executables.add(path)
        else:
            self.executables.discard(path)

    async def read_file(self, relative_path: str) -> Optional[str]:
        return self.files.get(normalize_relative_path(relative_path))

    async def exists(self, relative_path: str) -> bool:
        return normalize_relative_path(relative_path) in self.files

    async def list_files(self, prefix: str = "") -> list[str]:
        if not prefix:
            return sorted(self.files)
        base = normalize_relative_path(prefix)
        return sorted(
            p for p in self.files if p == base or p.startswith(base + "/")
        )
