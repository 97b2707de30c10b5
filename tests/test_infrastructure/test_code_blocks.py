"""
Tests for devmind.infrastructure.code_blocks
==============================================

Every agent turns an LLM answer into files through these helpers, so the
tests use answer shapes the models actually produce:
    - Fences with a language only
    - File names in the info string ("```yaml Archivo: ci.yml")
    - File names on the first line as a comment ("// src/api/client.ts")
    - Markdown sections around the code

All tests are synchronous unit tests.
"""

import pytest

from devmind.infrastructure.code_blocks import (
    CodeBlock,
    extract_code_blocks,
    extract_first_block,
    extract_section,
    looks_like_path,
    slugify,
    to_pascal_case,
)


FENCE = "```"


# =============================================================================
# Test: extract_code_blocks
# =============================================================================
class TestExtractCodeBlocks:
    """Tests for fenced block extraction."""

    def test_language_and_body(self) -> None:
        text = f"Intro\n\n{FENCE}tsx\nexport const A = () => null;\n{FENCE}\n"
        blocks = extract_code_blocks(text)
        assert blocks == [CodeBlock(language="tsx", code="export const A = () => null;\n")]

    def test_blocks_keep_answer_order(self) -> None:
        text = f"{FENCE}css\n.a {{}}\n{FENCE}\n{FENCE}md\n# A\n{FENCE}\n"
        assert [b.language for b in extract_code_blocks(text)] == ["css", "md"]

    def test_fence_without_language(self) -> None:
        blocks = extract_code_blocks(f"{FENCE}\nplain\n{FENCE}")
        assert blocks[0].language == ""
        assert blocks[0].path is None

    @pytest.mark.parametrize(
        "info, expected",
        [
            ("yaml Archivo: .github/workflows/ci.yml", ".github/workflows/ci.yml"),
            ("bash Script: deploy.sh", "deploy.sh"),
            ("markdown docs/adr/0001-typescript.md", "docs/adr/0001-typescript.md"),
            ("dockerfile Dockerfile", "Dockerfile"),
            ("json file: package.json", "package.json"),
        ],
    )
    def test_path_from_info_string(self, info: str, expected: str) -> None:
        blocks = extract_code_blocks(f"{FENCE}{info}\ncontent\n{FENCE}")
        assert blocks[0].path == expected
        assert blocks[0].code == "content\n"

    def test_path_from_comment_line_is_stripped(self) -> None:
        text = f"{FENCE}typescript\n// src/api/client.ts\nexport {{}};\n{FENCE}"
        block = extract_code_blocks(text)[0]
        assert block.path == "src/api/client.ts"
        assert block.code == "export {};\n", "The path comment must not end up in the file"

    def test_marker_comment_line(self) -> None:
        text = f"{FENCE}js\n// File: src/index.js\nconsole.log(1);\n{FENCE}"
        assert extract_code_blocks(text)[0].path == "src/index.js"

    def test_shebang_is_not_a_path(self) -> None:
        text = f"{FENCE}bash\n#!/usr/bin/env bash\necho hi\n{FENCE}"
        block = extract_code_blocks(text)[0]
        assert block.path is None
        assert block.code.startswith("#!/usr/bin/env bash")

    def test_prose_comment_is_not_a_path(self) -> None:
        text = f"{FENCE}javascript\n// jest config\nmodule.exports = {{}};\n{FENCE}"
        block = extract_code_blocks(text)[0]
        assert block.path is None
        assert block.code.startswith("// jest config")

    def test_language_filter_folds_aliases(self) -> None:
        """Filtering on "ts" keeps ```typescript blocks and drops the rest."""
        text = (
            f"{FENCE}typescript\nconst a = 1;\n{FENCE}\n"
            f"{FENCE}yml\nname: ci\n{FENCE}\n"
            f"{FENCE}ts\nconst b = 2;\n{FENCE}\n"
        )
        blocks = extract_code_blocks(text, ["ts"])
        assert [b.code for b in blocks] == ["const a = 1;\n", "const b = 2;\n"]
        assert extract_code_blocks(text, ["yaml"])[0].canonical_language == "yaml"

    def test_empty_text(self) -> None:
        assert extract_code_blocks("") == []
        assert extract_code_blocks(None) == []  # type: ignore[arg-type]

    def test_extract_first_block_with_predicate(self) -> None:
        text = f"{FENCE}js\nconst a = 1;\n{FENCE}\n{FENCE}js\nexpect(a).toBe(1);\n{FENCE}\n"
        block = extract_first_block(text, ["js"], lambda b: "expect(" in b.code)
        assert block is not None
        assert block.code.startswith("expect(")
        assert extract_first_block(text, ["python"]) is None


# =============================================================================
# Test: extract_section
# =============================================================================
class TestExtractSection:
    """Tests for markdown section extraction."""

    ANSWER = (
        "# Blueprint\n\n"
        "## Folder Structure\n\n- src/\n\n"
        "### Notes\n\nnested\n\n"
        "## Key Decisions\n\n- TypeScript\n"
    )

    def test_section_runs_until_same_level_heading(self) -> None:
        body = extract_section(self.ANSWER, "Folder Structure")
        assert body == "- src/\n\n### Notes\n\nnested"

    def test_last_section_runs_to_end(self) -> None:
        assert extract_section(self.ANSWER, "key decisions") == "- TypeScript"

    def test_missing_section(self) -> None:
        assert extract_section(self.ANSWER, "Deployment") == ""

    def test_headings_inside_code_fences_are_ignored(self) -> None:
        text = (
            "## Documentation\n\nRun it.\n\n"
            f"{FENCE}bash\n## not a heading\n{FENCE}\n\n"
            "## Next Steps\n\n- more\n"
        )
        body = extract_section(text, "Documentation")
        assert "## not a heading" in body
        assert "more" not in body


# =============================================================================
# Test: Small helpers
# =============================================================================
class TestHelpers:
    """Tests for looks_like_path, to_pascal_case and slugify."""

    @pytest.mark.parametrize(
        "token, expected",
        [
            ("src/a.ts", True),
            ("Dockerfile", True),
            (".env", True),
            ("deploy.sh", True),
            ("hello", False),
            ("two words.ts", False),
            ("https://example.com/a.js", False),
            ("", False),
        ],
    )
    def test_looks_like_path(self, token: str, expected: bool) -> None:
        assert looks_like_path(token) is expected

    def test_to_pascal_case(self) -> None:
        assert to_pascal_case("login form") == "LoginForm"
        assert to_pascal_case("user-profile card") == "UserProfileCard"
        assert to_pascal_case("") == ""

    def test_slugify(self) -> None:
        assert slugify("Stripe Payments!") == "stripe-payments"
        assert slugify("ComponentAgent") == "componentagent"
        assert slugify("!!!") == "item"
