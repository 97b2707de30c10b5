"""
devmind.agents.design.component - Component Agent
===================================================

Generates UI components (React, Vue, Angular, Svelte) together with their
Storybook story, unit test, documentation and stylesheet.

Spec Syntax:
    The free-text spec may carry inline options and feature keywords:

        "Login form with validation framework: vue styling: scss name: LoginForm"

    Options:  framework:/library:, styling:, output:, name:, accessibility:
    Features: accessible, responsive, animated, themed, dark-mode, i18n,
              form, validation, memoized

Generation Flow:
    ┌──────────┐ parse  ┌──────────────┐ name  ┌─────┐ prompt ┌──────────────┐
    │   spec    │ ────→ │ComponentOptions│ ────→ │ LLM │ ─────→ │ fenced blocks│
    └──────────┘        └──────────────┘        └─────┘        └──────┬───────┘
                                                                      │ classify
          components/<Name>/<Name>.tsx, .stories.tsx, .test.tsx, .md, .css
                                                                      ↓
                          component_created (broadcast) + test_requested (testing)

Events:
    Listens: component_requested → runs, replies component_created /
             component_error to the requester.
             design_system_updated → swaps the design system.
             style_applied → rewrites the stylesheet of a generated component.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from devmind.agents.base import BaseAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, EventType, Framework, TaskStatus
from devmind.core.events import AgentEvent
from devmind.core.exceptions import AgentError, DevMindError
from devmind.core.models import TaskDefinition, TaskResult
from devmind.infrastructure.code_blocks import CodeBlock, extract_code_blocks


logger = structlog.get_logger()

SUPPORTED_FRAMEWORKS = tuple(f.value for f in Framework)

FEATURE_KEYWORDS = (
    "accesible",
    "accessible",
    "responsive",
    "animated",
    "themed",
    "dark-mode",
    "i18n",
    "form",
    "validation",
    "memoized",
)

COMPONENT_KEYWORDS = (
    "Button", "Card", "Modal", "Form", "Input", "Select", "Checkbox",
    "Radio", "Toggle", "Dropdown", "Menu", "Nav", "Tab", "Panel",
    "Alert", "Toast", "Notification", "Badge", "Avatar", "Icon",
    "Spinner", "Loader", "Progress", "Slider", "Switch", "Tooltip",
)

FALLBACK_COMPONENT_NAME = "CustomComponent"
DESIGN_SYSTEM_FILE = "design-system.json"

_PASCAL_CASE_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_OPTION_PATTERNS = {
    "framework": re.compile(r"(?:framework|library):\s*([a-zA-Z0-9-]+)"),
    "styling": re.compile(r"styling:\s*([a-zA-Z0-9-]+)"),
    "output_dir": re.compile(r"output:\s*([a-zA-Z0-9_\-/\\.]+)"),
    "name": re.compile(r"name:\s*([a-zA-Z0-9]+)"),
    "accessibility": re.compile(r"accessibility:\s*([A]{1,3})"),
}

DEFAULT_DESIGN_SYSTEM: dict[str, Any] = {
    "colors": {
        "primary": "#3B82F6",
        "secondary": "#10B981",
        "accent": "#8B5CF6",
        "neutral": "#6B7280",
        "error": "#EF4444",
        "warning": "#F59E0B",
        "success": "#10B981",
    },
    "typography": {
        "fontFamily": "sans-serif",
        "fontSize": {
            "xs": "0.75rem",
            "sm": "0.875rem",
            "base": "1rem",
            "lg": "1.125rem",
            "xl": "1.25rem",
            "2xl": "1.5rem",
        },
        "fontWeight": {"normal": "400", "medium": "500", "bold": "700"},
    },
    "spacing": {"xs": "0.25rem", "sm": "0.5rem", "md": "1rem", "lg": "1.5rem", "xl": "2rem"},
    "borderRadius": {"sm": "0.125rem", "md": "0.25rem", "lg": "0.5rem", "full": "9999px"},
}

# File suffix per artifact kind and framework.
FILE_EXTENSIONS: dict[str, dict[str, str]] = {
    "component": {"react": "tsx", "vue": "vue", "angular": "ts", "svelte": "svelte"},
    "storybook": {"react": "stories.tsx", "vue": "stories.ts", "angular": "stories.ts", "svelte": "stories.js"},
    "test": {"react": "test.tsx", "vue": "spec.ts", "angular": "spec.ts", "svelte": "spec.js"},
    "docs": {"react": "md", "vue": "md", "angular": "md", "svelte": "md"},
    "styles": {"react": "css", "vue": "css", "angular": "scss", "svelte": "css"},
}

COMPONENT_SYSTEM_PROMPT = (
    "You are DevMind's component agent, a senior frontend engineer. "
    "Write production-ready, accessible UI components. Answer with one fenced "
    "code block per file: component, Storybook story, unit test, markdown "
    "documentation and stylesheet, in that order."
)


# =============================================================================
# Component Options
# =============================================================================
class ComponentOptions(BaseModel):
    """Settings parsed from a component spec.

    Attributes:
        name: Explicit component name (empty = derive it).
        framework: Target framework.
        styling: Styling method ("tailwind", "css-modules", "scss", ...).
        output_dir: Workspace-relative directory holding component folders.
        features: Feature keywords found in the spec.
        accessibility: WCAG level (A, AA, AAA).
        responsive: Generate responsive styles.
        dark_mode: Support a dark theme.
        i18n: Externalise user-facing strings.
    """

    name: str = Field(default="", description="Explicit component name")
    framework: str = Field(default=Framework.REACT.value, description="Target framework")
    styling: str = Field(default="tailwind", description="Styling method")
    output_dir: str = Field(default="components", description="Components directory")
    features: list[str] = Field(default_factory=list, description="Requested features")
    accessibility: str = Field(default="AA", description="WCAG conformance level")
    responsive: bool = Field(default=True)
    dark_mode: bool = Field(default=False)
    i18n: bool = Field(default=False)


def parse_component_spec(spec: str) -> ComponentOptions:
    """Read inline options and feature keywords from a free-text spec.

    Example:
        >>> parse_component_spec("Modal dark-mode framework: Vue").framework
        'vue'
    """
    values: dict[str, Any] = {}
    for field_name, pattern in _OPTION_PATTERNS.items():
        match = pattern.search(spec)
        if match:
            value = match.group(1)
            if field_name in ("framework", "styling"):
                value = value.lower()
            values[field_name] = value

    lowered = spec.lower()
    features = [kw for kw in FEATURE_KEYWORDS if kw in lowered]
    values["features"] = features
    if "dark-mode" in features:
        values["dark_mode"] = True
    if "i18n" in features:
        values["i18n"] = True
    if "responsive" in features:
        values["responsive"] = True
    return ComponentOptions(**values)


def fallback_component_name(spec: str) -> str:
    """Derive a name without the LLM.

    A well-known component word wins ("... a toggle switch" → "Toggle");
    otherwise the first word longer than two letters is used; otherwise
    "CustomComponent".
    """
    words = [re.sub(r"[^a-zA-Z]", "", word) for word in spec.split()]
    for word in words:
        pascal = word[:1].upper() + word[1:].lower()
        if pascal in COMPONENT_KEYWORDS:
            return pascal
    for word in words:
        if len(word) > 2:
            return word[:1].upper() + word[1:].lower()
    return FALLBACK_COMPONENT_NAME


def file_extension(kind: str, framework: str, styling: str = "") -> str:
    if kind == "styles" and framework == Framework.REACT.value and styling == "css-modules":
        return "module.css"
    return FILE_EXTENSIONS[kind].get(framework, FILE_EXTENSIONS[kind][Framework.REACT.value])


# =============================================================================
# Block Classification
# =============================================================================
def _is_storybook(code: str) -> bool:
    return "@storybook" in code or "stories" in code or "StoryObj" in code or "Story" in code


def _is_test(code: str) -> bool:
    return "expect(" in code and any(m in code for m in ("describe(", "it(", "test("))


def _is_component(code: str, framework: str) -> bool:
    if framework == Framework.REACT.value:
        return (
            ("export" in code and "function" in code)
            or "React." in code
            or "import React" in code
            or ("const" in code and "=>" in code)
            or "props" in code
            or "useState" in code
        )
    if framework == Framework.VUE.value:
        return any(m in code for m in ("<template>", "<script", "defineComponent", "setup("))
    if framework == Framework.ANGULAR.value:
        return "@Component" in code
    if framework == Framework.SVELTE.value:
        return any(m in code for m in ("<script>", "export let", "{#if", "{#each"))
    return "export" in code or "function" in code or "class" in code


def classify_component_blocks(
    blocks: list[CodeBlock], framework: str
) -> dict[str, CodeBlock]:
    """Assign answer blocks to component/storybook/test/docs/styles.

    Each block is claimed by at most one kind, and each kind takes the first
    block that fits it.
    """
    found: dict[str, CodeBlock] = {}
    for block in blocks:
        code = block.code
        if block.language in ("md", "markdown", "mdx"):
            kind = "docs"
        elif block.language in ("css", "scss", "sass", "less"):
            kind = "styles"
        elif _is_test(code):
            kind = "test"
        elif _is_storybook(code):
            kind = "storybook"
        elif _is_component(code, framework):
            kind = "component"
        else:
            continue
        found.setdefault(kind, block)
    return found


# =============================================================================
# Component Agent
# =============================================================================
class ComponentAgent(BaseAgent):
    """Generates UI components and their companion files.

    Input Requirements (task.input_data):
        - "spec" (str): Component description, optionally with inline options.
        Optional overrides: "framework", "styling", "name", "output",
        "request_tests" (bool, default True).

    Output Format (result.output_data):
        - "component_name", "framework", "styling", "features"
        - "path": Main component file.
        - "files": Kind → written path.
    """

    SYSTEM_PROMPT = COMPONENT_SYSTEM_PROMPT

    def __init__(
        self,
        config: DevMindConfig,
        *,
        agent_id: str = AgentType.COMPONENT.value,
        name: Optional[str] = None,
        design_system: Optional[dict[str, Any]] = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(
            agent_id=agent_id,
            agent_type=AgentType.COMPONENT,
            config=config,
            name=name or "ComponentAgent",
            description="Generates UI components with stories, tests and docs",
            **collaborators,
        )
        self._design_system: Optional[dict[str, Any]] = design_system
        self._generated_components: dict[str, ComponentOptions] = {}
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=AgentType.COMPONENT.value,
            component="component_agent",
        )

    @property
    def design_system(self) -> Optional[dict[str, Any]]:
        return self._design_system

    @property
    def generated_components(self) -> list[str]:
        return list(self._generated_components)

    # =========================================================================
    # Lifecycle & Events
    # =========================================================================

    async def _on_start(self) -> None:
        await self.listen_for_event(EventType.COMPONENT_REQUESTED, self._on_component_requested)
        await self.listen_for_event(EventType.DESIGN_SYSTEM_UPDATED, self._on_design_system_updated)
        await self.listen_for_event(EventType.STYLE_APPLIED, self._on_style_applied)

    async def _on_component_requested(self, event: AgentEvent) -> None:
        spec = event.payload.get("spec", "")
        self._logger.info("component_requested", requester=event.source, spec=spec)
        try:
            result = await self.run(spec, reply_to=event.source)
        except DevMindError as exc:
            await self.reply(event, EventType.COMPONENT_ERROR, {"error": exc.message, "spec": spec})
            return

        if result.succeeded:
            await self.reply(event, EventType.COMPONENT_CREATED, {
                "component_name": result.output_data["component_name"],
                "path": result.output_data["path"],
                "files": result.output_data["files"],
                "framework": result.output_data["framework"],
            })
        else:
            await self.reply(event, EventType.COMPONENT_ERROR, {
                "error": result.error_message,
                "spec": spec,
            })

    async def _on_design_system_updated(self, event: AgentEvent) -> None:
        design_system = event.payload.get("design_system")
        if isinstance(design_system, dict):
            self._design_system = design_system
            self._logger.info("design_system_updated", source=event.source)

    async def _on_style_applied(self, event: AgentEvent) -> None:
        component_name = event.payload.get("component_name")
        styles = event.payload.get("styles")
        if component_name not in self._generated_components or not isinstance(styles, str):
            return
        options = self._generated_components[component_name]
        path = self._component_path(options, component_name, "styles")
        await self.write_generated_file(path, styles, resource_type="styles",
                                        metadata={"component": component_name})
        self._logger.info("component_styles_updated", component=component_name, source=event.source)

    # =========================================================================
    # Execution
    # =========================================================================

    async def _execute(self, task: TaskDefinition) -> TaskResult:
        spec: str = task.input_data["spec"]
        options = self._resolve_options(spec, task.input_data)

        if options.framework not in SUPPORTED_FRAMEWORKS:
            raise AgentError(
                message=(
                    f"Unsupported framework: {options.framework}. "
                    f"Available frameworks: {', '.join(SUPPORTED_FRAMEWORKS)}"
                ),
                agent_id=self.agent_id,
                task_id=task.task_id,
                error_code="UNSUPPORTED_FRAMEWORK",
                details={"framework": options.framework},
            )

        design_system = await self.load_design_system()
        component_name = options.name or await self.resolve_component_name(spec, options.framework)

        self._logger.info(
            "component_generation_starting",
            task_id=task.task_id,
            component=component_name,
            framework=options.framework,
            features=options.features,
        )

        prompt = self._build_prompt(component_name, spec, options, design_system)
        answer = await self.query_llm(prompt)
        blocks = classify_component_blocks(extract_code_blocks(answer), options.framework)
        if "component" not in blocks:
            raise ValueError(f"The LLM answer contained no {options.framework} component code")

        files: dict[str, str] = {}
        for kind in ("component", "storybook", "test", "docs", "styles"):
            block = blocks.get(kind)
            if block is None:
                continue
            path = self._component_path(options, component_name, kind)
            written = await self.write_generated_file(
                path,
                block.code,
                resource_type="component" if kind == "component" else f"component_{kind}",
                language=block.language or None,
                metadata={"component": component_name, "framework": options.framework},
            )
            files[kind] = written.path

        main_path = files["component"]
        store = self._require_context_store()
        for kind, path in files.items():
            if kind != "component":
                await store.add_dependency(path, main_path)

        self._generated_components[component_name] = options
        await self.record_decision(
            f"Component {component_name} generated",
            {
                "framework": options.framework,
                "styling": options.styling,
                "features": options.features,
                "accessibility": options.accessibility,
                "files": sorted(files.values()),
            },
        )
        await self.update_shared_context({
            "components": {
                component_name: {
                    "path": main_path,
                    "framework": options.framework,
                    "features": options.features,
                }
            }
        })

        output = {
            "component_name": component_name,
            "framework": options.framework,
            "styling": options.styling,
            "features": options.features,
            "path": main_path,
            "files": files,
        }
        if not task.input_data.get("reply_to"):
            await self.send_event(EventType.COMPONENT_CREATED, {
                "component_name": component_name,
                "path": main_path,
                "files": files,
                "framework": options.framework,
            })
        if task.input_data.get("request_tests", True):
            await self.send_event(
                EventType.TEST_REQUESTED,
                {
                    "spec": main_path,
                    "component_name": component_name,
                    "framework": options.framework,
                    "features": options.features,
                },
                target=AgentType.TESTING.value,
            )

        return self._create_result(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED,
            output=output,
            files=list(files.values()),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _resolve_options(spec: str, input_data: dict[str, Any]) -> ComponentOptions:
        options = parse_component_spec(spec)
        overrides: dict[str, Any] = {}
        if input_data.get("framework"):
            overrides["framework"] = str(input_data["framework"]).lower()
        if input_data.get("styling"):
            overrides["styling"] = str(input_data["styling"]).lower()
        if input_data.get("name"):
            overrides["name"] = str(input_data["name"])
        if input_data.get("output"):
            overrides["output_dir"] = str(input_data["output"])
        return options.model_copy(update=overrides)

    def _component_path(self, options: ComponentOptions, component_name: str, kind: str) -> str:
        extension = file_extension(kind, options.framework, options.styling)
        directory = options.output_dir.strip("/") or "components"
        return f"{directory}/{component_name}/{component_name}.{extension}"

    async def load_design_system(self) -> dict[str, Any]:
        """The cached design system, design-system.json, or the default."""
        if self._design_system is not None:
            return self._design_system

        raw = await self._require_workspace().read_file(DESIGN_SYSTEM_FILE)
        if raw is not None:
            try:
                loaded = json.loads(raw)
            except json.JSONDecodeError as exc:
                self._logger.warning("design_system_invalid", error=str(exc))
            else:
                if isinstance(loaded, dict):
                    self._design_system = loaded
                    self._logger.info("design_system_loaded", path=DESIGN_SYSTEM_FILE)
                    return loaded

        self._design_system = json.loads(json.dumps(DEFAULT_DESIGN_SYSTEM))
        self._logger.info("design_system_defaulted")
        return self._design_system

    async def resolve_component_name(self, spec: str, framework: str) -> str:
        """Ask the LLM for a PascalCase name; fall back to keywords."""
        prompt = (
            f"Suggest a PascalCase name for a {framework} UI component "
            f"described as: {' '.join(spec.split())}\n"
            "Answer with the name only, no explanation or formatting."
        )
        try:
            suggestion = await self.query_llm(prompt)
        except (DevMindError, RuntimeError) as exc:
            self._logger.warning("component_name_llm_failed", error=str(exc))
        else:
            cleaned = re.sub(r"[^a-zA-Z0-9]", "", suggestion.strip())
            if _PASCAL_CASE_RE.match(cleaned):
                return cleaned
            self._logger.debug("component_name_rejected", suggestion=suggestion[:80])
        return fallback_component_name(spec)

    @staticmethod
    def _build_prompt(
        component_name: str,
        spec: str,
        options: ComponentOptions,
        design_system: dict[str, Any],
    ) -> str:
        fw = options.framework
        features = ", ".join(options.features) or "none"
        return (
            f"Create the {fw} component {component_name}.\n\n"
            f"# Specification\n{spec.strip()}\n\n"
            "# Requirements\n"
            f"- Styling method: {options.styling}\n"
            f"- Features: {features}\n"
            f"- Accessibility: WCAG {options.accessibility}\n"
            f"- Responsive: {'yes' if options.responsive else 'no'}\n"
            f"- Dark mode: {'yes' if options.dark_mode else 'no'}\n"
            f"- Internationalisation: {'yes' if options.i18n else 'no'}\n\n"
            f"# Design System\n```json\n{json.dumps(design_system, indent=2)}\n```\n\n"
            "# Files to generate\n"
            f"1. Component ({component_name}.{file_extension('component', fw)})\n"
            f"2. Storybook story ({component_name}.{file_extension('storybook', fw)})\n"
            f"3. Unit test ({component_name}.{file_extension('test', fw)})\n"
            f"4. Documentation ({component_name}.md)\n"
            f"5. Styles ({component_name}.{file_extension('styles', fw, options.styling)})\n"
        )
