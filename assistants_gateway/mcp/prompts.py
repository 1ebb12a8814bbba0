"""
Gateway MCP Prompt Registry
===========================
Ten built-in prompt templates that walk a client through common assistant
workflows.  Templates use a small substitution syntax:

  {{arg}}                  value of ``arg``
  {{arg || 'default'}}     value of ``arg`` or the literal default
  {{#if arg}}...{{/if}}    section kept only when ``arg`` is supplied
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from assistants_gateway.errors import INVALID_PARAMS, McpError

logger = logging.getLogger("Gateway.mcp.prompts")

_CONDITIONAL = re.compile(r"\{\{#if\s+(\w+)\s*\}\}(.*?)\{\{/if\}\}", re.DOTALL)
_DEFAULTED = re.compile(r"\{\{\s*(\w+)\s*\|\|\s*'([^']*)'\s*\}\}")
_PLAIN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class PromptArgument(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    required: bool = False


class PromptTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    title: str
    description: str
    template: str
    arguments: Tuple[PromptArgument, ...] = ()
    category: str = "general"
    tags: Tuple[str, ...] = Field(default_factory=tuple)

    def to_public(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "arguments": [arg.model_dump() for arg in self.arguments],
        }

    def render(self, args: Dict[str, str]) -> str:
        def present(key: str) -> bool:
            return bool(args.get(key))

        text = _CONDITIONAL.sub(lambda m: m.group(2) if present(m.group(1)) else "", self.template)
        text = _DEFAULTED.sub(lambda m: args[m.group(1)] if present(m.group(1)) else m.group(2), text)
        return _PLAIN.sub(lambda m: str(args.get(m.group(1), "")), text)


def _arg(name: str, description: str, required: bool = False) -> PromptArgument:
    return PromptArgument(name=name, description=description, required=required)


DEFAULT_PROMPTS: Tuple[PromptTemplate, ...] = (
    PromptTemplate(
        name="create-coding-assistant",
        title="Create Coding Assistant",
        description="Design a coding assistant for a programming specialization",
        arguments=(
            _arg("specialization", "Programming focus (e.g., \"Python web development\", \"DevOps\")", True),
            _arg("experience_level", "Target developer level: beginner, intermediate or expert"),
            _arg("additional_tools", "Extra tools to enable: code_interpreter, file_search"),
        ),
        template=(
            "Design a coding assistant specialized in {{specialization}} for "
            "{{experience_level || 'intermediate'}} developers, with the "
            "{{additional_tools || 'code_interpreter'}} tool enabled. Return the full assistant "
            "configuration: name, description, instructions and tools."
        ),
        category="assistant",
        tags=("coding", "development", "assistant"),
    ),
    PromptTemplate(
        name="create-data-analyst",
        title="Create Data Analyst Assistant",
        description="Design a data analysis assistant for a domain",
        arguments=(
            _arg("domain", "Analysis domain (e.g., \"marketing\", \"scientific research\")", True),
            _arg("tools_focus", "Primary tooling: python, r, sql or visualization"),
        ),
        template=(
            "Design a data analyst assistant for {{domain}} that works mainly with "
            "{{tools_focus || 'python'}}. It should explore data, build statistical models and "
            "produce visualizations. Include the tools it needs and step-by-step analysis instructions."
        ),
        category="assistant",
        tags=("data", "analytics", "statistics", "assistant"),
    ),
    PromptTemplate(
        name="create-writing-assistant",
        title="Create Writing Assistant",
        description="Design a writing assistant for content creation and editing",
        arguments=(
            _arg("writing_type", "Kind of writing (e.g., \"technical documentation\", \"marketing copy\")", True),
            _arg("tone", "Tone: professional, casual, academic or creative"),
            _arg("audience", "Intended readers"),
        ),
        template=(
            "Design a writing assistant for {{writing_type}} that writes in a "
            "{{tone || 'professional'}} tone for {{audience || 'a general audience'}}. It should draft, "
            "edit and proofread, and use file_search for research."
        ),
        category="assistant",
        tags=("writing", "content", "editing", "assistant"),
    ),
    PromptTemplate(
        name="create-conversation-thread",
        title="Create Conversation Thread",
        description="Set up a thread with initial context and metadata",
        arguments=(
            _arg("purpose", "What the conversation is for (e.g., \"code review\")", True),
            _arg("context", "Background to seed the thread with"),
            _arg("user_id", "Identifier of the user the thread belongs to"),
        ),
        template=(
            "Create a conversation thread for {{purpose}}. Set metadata user_id "
            "\"{{user_id || 'anonymous'}}\" and session_type \"{{purpose}}\".{{#if context}}\n\n"
            "Context: {{context}}{{/if}}"
        ),
        category="thread",
        tags=("thread", "conversation", "setup"),
    ),
    PromptTemplate(
        name="organize-thread-messages",
        title="Organize Thread Messages",
        description="Summarize and restructure the messages of a thread",
        arguments=(
            _arg("thread_id", "Thread to analyze", True),
            _arg("organization_type", "chronological, by_topic or by_importance"),
        ),
        template=(
            "Read the messages in thread {{thread_id}} and organize them using "
            "{{organization_type || 'chronological'}} ordering. Summarize how the conversation developed "
            "and suggest how it could be structured better."
        ),
        category="thread",
        tags=("thread", "organization", "messages"),
    ),
    PromptTemplate(
        name="explain-code",
        title="Explain Code",
        description="Walk through how a piece of code works",
        arguments=(
            _arg("code", "Code to explain", True),
            _arg("language", "Programming language"),
            _arg("detail_level", "basic, intermediate or advanced"),
        ),
        template=(
            "Explain this {{language || 'auto-detected'}} code at a {{detail_level || 'intermediate'}} "
            "level:\n\n```\n{{code}}\n```\n\nDescribe what each part does and the concepts it relies on."
        ),
        category="analysis",
        tags=("code", "explanation", "education"),
    ),
    PromptTemplate(
        name="review-code",
        title="Code Review",
        description="Review code and suggest improvements",
        arguments=(
            _arg("code", "Code to review", True),
            _arg("language", "Programming language"),
            _arg("focus_areas", "security, performance, readability or best_practices"),
        ),
        template=(
            "Review this {{language || 'auto-detected'}} code with a focus on "
            "{{focus_areas || 'all aspects'}}:\n\n```\n{{code}}\n```\n\n"
            "Report defects, risks and concrete improvements."
        ),
        category="analysis",
        tags=("code", "review", "quality"),
    ),
    PromptTemplate(
        name="configure-assistant-run",
        title="Configure Assistant Run",
        description="Choose run settings suited to a task",
        arguments=(
            _arg("task_type", "code_review, data_analysis, writing or general_qa", True),
            _arg("complexity", "simple, moderate or complex"),
            _arg("time_sensitivity", "low, medium or high"),
        ),
        template=(
            "Recommend run settings for a {{task_type}} task of {{complexity || 'moderate'}} complexity "
            "and {{time_sensitivity || 'medium'}} time sensitivity: model, temperature, token limits "
            "and tool_choice."
        ),
        category="run",
        tags=("run", "configuration", "optimization"),
    ),
    PromptTemplate(
        name="debug-run-issues",
        title="Debug Run Issues",
        description="Troubleshoot a misbehaving run",
        arguments=(
            _arg("run_id", "Run that misbehaves", True),
            _arg("issue_description", "What went wrong", True),
            _arg("run_status", "Current status (failed, cancelled, requires_action, ...)"),
        ),
        template=(
            "Investigate run {{run_id}} (status: {{run_status || 'unknown'}}). Reported problem: "
            "{{issue_description}}. Inspect its run steps, identify the failure and recommend fixes."
        ),
        category="run",
        tags=("debug", "troubleshooting", "run"),
    ),
    PromptTemplate(
        name="analyze-dataset",
        title="Analyze Dataset",
        description="Explore a dataset and report insights",
        arguments=(
            _arg("dataset_description", "What the dataset contains", True),
            _arg("analysis_goals", "Questions the analysis should answer", True),
            _arg("data_format", "CSV, JSON, database, ..."),
        ),
        template=(
            "Analyze this {{data_format || 'CSV'}} dataset: {{dataset_description}}\n\n"
            "Goals: {{analysis_goals}}\n\nRun exploratory analysis, find patterns, and support the "
            "findings with statistical summaries and charts."
        ),
        category="data",
        tags=("data", "analysis", "statistics"),
    ),
)


class PromptRegistry:
    def __init__(self, templates: Optional[Tuple[PromptTemplate, ...]] = None) -> None:
        self._templates: Dict[str, PromptTemplate] = {}
        for template in DEFAULT_PROMPTS if templates is None else templates:
            self.register(template)

    def register(self, template: PromptTemplate) -> None:
        self._templates[template.name] = template

    def has_prompt(self, name: str) -> bool:
        return name in self._templates

    def get_template(self, name: str) -> Optional[PromptTemplate]:
        return self._templates.get(name)

    def get_prompt_names(self) -> List[str]:
        return list(self._templates)

    def list_prompts(self) -> List[Dict[str, Any]]:
        return [template.to_public() for template in self._templates.values()]

    def get_prompts_by_category(self, category: str) -> List[Dict[str, Any]]:
        return [t.to_public() for t in self._templates.values() if t.category == category]

    def get_prompts_by_tag(self, tag: str) -> List[Dict[str, Any]]:
        return [t.to_public() for t in self._templates.values() if tag in t.tags]

    def search(self, query: str) -> List[Dict[str, Any]]:
        q = query.lower()
        return [
            t.to_public() for t in self._templates.values()
            if q in t.name.lower() or q in t.title.lower() or q in t.description.lower()
        ]

    def get_prompt(self, name: Any, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Render ``name`` into a ``prompts/get`` result."""
        template = self._templates.get(name) if isinstance(name, str) else None
        if template is None:
            raise McpError(
                INVALID_PARAMS,
                f"Prompt not found: {name}",
                {"promptName": name, "availablePrompts": self.get_prompt_names()},
            )
        args = arguments or {}
        if not isinstance(args, dict):
            raise McpError(INVALID_PARAMS, "Prompt arguments must be an object", {"promptName": name})

        known = {arg.name for arg in template.arguments}
        missing = [arg.name for arg in template.arguments if arg.required and not args.get(arg.name)]
        unknown = sorted(key for key in args if key not in known)
        if missing or unknown:
            problems = [f"Missing required argument: {key}" for key in missing]
            problems += [f"Unknown argument: {key}" for key in unknown]
            raise McpError(
                INVALID_PARAMS,
                f"Invalid arguments for prompt {name}: {', '.join(problems)}",
                {"promptName": name, "missingArguments": missing, "unknownArguments": unknown},
            )

        text = template.render({key: str(value) for key, value in args.items() if value is not None})
        logger.debug("Rendered prompt '%s' (%d chars)", name, len(text))
        return {
            "description": template.description,
            "messages": [{"role": "user", "content": {"type": "text", "text": text}}],
        }

    def get_stats(self) -> Dict[str, Any]:
        by_category: Dict[str, int] = {}
        tags: List[str] = []
        for template in self._templates.values():
            by_category[template.category] = by_category.get(template.category, 0) + 1
            tags.extend(tag for tag in template.tags if tag not in tags)
        return {
            "totalPrompts": len(self._templates),
            "categories": list(by_category),
            "tags": tags,
            "promptsByCategory": by_category,
        }
