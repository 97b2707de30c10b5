"""
devmind.infrastructure.code_blocks - Fenced Code Extraction
=============================================================

LLM answers come back as markdown. The generated artifacts live inside
triple-backtick fences; this module pulls them out.

Recognised file name hints, in order:
    1. The fence info string after the language:
           ```yaml Archivo: .github/workflows/ci.yml
           ```tsx src/App.tsx
    2. A marker on the first line of the block, which is then stripped:
           // src/api/client.ts
           # File: deploy.sh
           <!-- File: index.html -->

Usage:
    >>> blocks = extract_code_blocks(answer, languages={"ts", "tsx"})
    >>> for block in blocks:
    ...     print(block.language, block.path)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Optional

# Language, rest of the info string, body.
_FENCE_RE = re.compile(r"```([\w+#.\-]*)[ \t]*([^\n`]*)\n(.*?)```", re.DOTALL)

_MARKER_RE = re.compile(
    r"^\s*(?:(?://|#|--|;|<!--|/\*)\s*)?"
    r"(?:file|archivo|script|path|filename)\s*:\s*(\S+?)\s*(?:-->|\*/)?\s*$",
    re.IGNORECASE,
)
_COMMENT_PATH_RE = re.compile(r"^\s*(?://|#(?!!))\s*(\S+)\s*$")

_BARE_FILE_NAMES = {"Dockerfile", "Makefile", "Procfile", "Jenkinsfile", "Vagrantfile"}

# Short aliases the models use interchangeably.
_LANGUAGE_ALIASES = {
    "js": "javascript",
    "ts": "typescript",
    "yml": "yaml",
    "sh": "bash",
    "shell": "bash",
    "ps1": "powershell",
    "tf": "hcl",
    "terraform": "hcl",
    "py": "python",
}


@dataclass(frozen=True)
class CodeBlock:
    """One fenced block from an LLM answer.

    Attributes:
        language: Lower-cased fence language ("" when the fence has none).
        code: Block body without the fence and without a path marker line.
        path: File name hint, if the answer gave one.
    """

    language: str
    code: str
    path: Optional[str] = None

    @property
    def canonical_language(self) -> str:
        """Language with aliases folded ("ts" → "typescript")."""
        return _LANGUAGE_ALIASES.get(self.language, self.language)

    def matches(self, languages: Iterable[str]) -> bool:
        wanted = {_LANGUAGE_ALIASES.get(l.lower(), l.lower()) for l in languages}
        return self.canonical_language in wanted


def looks_like_path(token: str) -> bool:
    """Heuristic: a single token naming a file ("src/a.ts", "Dockerfile")."""
    if not token or any(ch.isspace() for ch in token):
        return False
    if token.startswith(("http://", "https://")):
        return False
    name = token.rstrip("/").rsplit("/", 1)[-1]
    if name in _BARE_FILE_NAMES:
        return True
    stem, dot, extension = name.rpartition(".")
    return bool(dot) and bool(extension) and extension.isalnum() and (bool(stem) or name.startswith("."))


def _path_from_info(info: str) -> Optional[str]:
    info = info.strip()
    if not info:
        return None
    marker = _MARKER_RE.match(info)
    if marker:
        return marker.group(1)
    if looks_like_path(info):
        return info
    return None


def _split_marker_line(body: str) -> tuple[Optional[str], str]:
    first, newline, rest = body.partition("\n")
    marker = _MARKER_RE.match(first)
    if marker:
        return marker.group(1), rest
    comment = _COMMENT_PATH_RE.match(first)
    if comment and looks_like_path(comment.group(1)):
        return comment.group(1), rest
    return None, body


def extract_code_blocks(
    text: str, languages: Optional[Iterable[str]] = None
) -> list[CodeBlock]:
    """Extract every fenced block from ``text``.

    Args:
        text: Markdown text (usually an LLM answer).
        languages: If given, keep only blocks in these languages. Aliases
            are folded, so {"ts"} also keeps ```typescript blocks.

    Returns:
        Blocks in the order they appear.
    """
    wanted = list(languages) if languages is not None else None
    blocks: list[CodeBlock] = []
    for match in _FENCE_RE.finditer(text or ""):
        language = match.group(1).lower()
        path = _path_from_info(match.group(2))
        body = match.group(3)
        if path is None:
            path, body = _split_marker_line(body)
        block = CodeBlock(language=language, code=body.rstrip() + "\n", path=path)
        if wanted is not None and not block.matches(wanted):
            continue
        blocks.append(block)
    return blocks


def extract_first_block(
    text: str,
    languages: Optional[Iterable[str]] = None,
    predicate: Optional[Callable[[CodeBlock], bool]] = None,
) -> Optional[CodeBlock]:
    """First block matching ``languages`` and ``predicate``, or None."""
    for block in extract_code_blocks(text, languages):
        if predicate is None or predicate(block):
            return block
    return None


def extract_section(text: str, title: str) -> str:
    """Body of the markdown section headed ``title`` (any heading level).

    The section ends at the next heading of the same or a higher level.
    Returns an empty string when the heading is absent.
    """
    lines = (text or "").splitlines()
    heading = re.compile(r"^(#{1,6})\s*(.+?)\s*#*\s*$")
    start: Optional[int] = None
    depth = 0
    in_fence = False
    for index, line in enumerate(lines):
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            continue
        found = None if in_fence else heading.match(line)
        if not found:
            continue
        if start is None:
            if found.group(2).strip().lower() == title.strip().lower():
                start = index + 1
                depth = len(found.group(1))
        elif len(found.group(1)) <= depth:
            return "\n".join(lines[start:index]).strip()
    if start is None:
        return ""
    return "\n".join(lines[start:]).strip()


def to_pascal_case(text: str) -> str:
    """Convert free text to PascalCase: "login form" becomes "LoginForm"."""
    words = re.findall(r"[A-Za-z0-9]+", text or "")
    return "".join(w[:1].upper() + w[1:] for w in words)


def slugify(text: str) -> str:
    """Lower-case, dash-separated identifier: "Stripe Payments!" becomes "stripe-payments"."""
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug or "item"
