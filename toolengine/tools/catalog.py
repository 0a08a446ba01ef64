"""Static catalog of the tools the model may call."""

from typing import Dict, Iterable, List, Optional, Tuple

from .models import ParamKind, ToolDefinition, ToolParameter


def _param(name, kind, description, required=False, allowed_values=None) -> ToolParameter:
    return ToolParameter(
        name=name,
        kind=kind,
        description=description,
        required=required,
        allowed_values=frozenset(allowed_values) if allowed_values else None,
    )


S, N, A = ParamKind.STRING, ParamKind.NUMBER, ParamKind.ARRAY

TOOL_DEFINITIONS: Tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="execute_python",
        description="Run Python code and return its output. numpy, pandas, matplotlib and scipy are available.",
        parameters=(_param("code", S, "The Python code to run", required=True),),
        handler_key="execute_python",
    ),
    ToolDefinition(
        name="search_documents",
        description="Search all uploaded PDF documents for relevant passages.",
        parameters=(
            _param("query", S, "The search query", required=True),
            _param("limit", N, "Maximum number of results (default: 3)"),
        ),
        handler_key="search_documents",
    ),
    ToolDefinition(
        name="analyze_image",
        description="Analyze an uploaded image and answer a question about it. Use when the user asks about image content.",
        parameters=(
            _param("question", S, 'The question about the image, e.g. "What text is visible?"', required=True),
        ),
        handler_key="analyze_image",
    ),
    ToolDefinition(
        name="create_file",
        description="Create a downloadable file (PDF, CSV, JSON, TXT, HTML, MD) for reports, tables or data exports.",
        parameters=(
            _param("type", S, "File type: pdf, csv, json, txt, html, md", required=True,
                   allowed_values=("pdf", "csv", "json", "txt", "html", "md")),
            _param("content", S, "File content", required=True),
            _param("filename", S, "File name without extension"),
        ),
        handler_key="create_file",
    ),
    ToolDefinition(
        name="web_search",
        description="Search the internet for current information via DuckDuckGo. Use for facts, news and research.",
        parameters=(
            _param("query", S, "The search query", required=True),
            _param("limit", N, "Maximum number of results (default: 5)"),
        ),
        handler_key="web_search",
    ),
    ToolDefinition(
        name="calculate",
        description="Evaluate a math expression safely. Supports +, -, *, /, ^, () and math functions like sqrt, sin, log.",
        parameters=(_param("expression", S, 'The math expression, e.g. "2^10 + 5 * 3"', required=True),),
        handler_key="calculate",
    ),
    ToolDefinition(
        name="execute_javascript",
        description="Run JavaScript code in a sandbox and return console output.",
        parameters=(_param("code", S, "The JavaScript code to run", required=True),),
        handler_key="execute_javascript",
    ),
    ToolDefinition(
        name="execute_sql",
        description="Run a SQL query against the local SQLite database. Supports CREATE, INSERT, SELECT, UPDATE, DELETE.",
        parameters=(_param("query", S, "The SQL query", required=True),),
        handler_key="execute_sql",
    ),
    ToolDefinition(
        name="read_file",
        description="Read a file from the workspace filesystem.",
        parameters=(_param("path", S, 'Path inside the workspace, e.g. "src/main.py"', required=True),),
        handler_key="read_file",
    ),
    ToolDefinition(
        name="write_file",
        description="Create or overwrite a file in the workspace filesystem.",
        parameters=(
            _param("path", S, 'Path of the file, e.g. "output/result.json"', required=True),
            _param("content", S, "File content", required=True),
        ),
        handler_key="write_file",
    ),
    ToolDefinition(
        name="list_files",
        description="List files and folders in the workspace.",
        parameters=(_param("path", S, 'Directory path (default: "/")'),),
        handler_key="list_files",
    ),
    ToolDefinition(
        name="browse_url",
        description="Visit a web page and extract its text or links. Use to read articles or collect data from URLs.",
        parameters=(
            _param("url", S, 'The page URL, e.g. "https://example.com/article"', required=True),
            _param("extract", S, 'What to extract: "text", "links" or "all"',
                   allowed_values=("text", "links", "all")),
        ),
        handler_key="browse_url",
    ),
    ToolDefinition(
        name="execute_shell",
        description="Run a shell command in the virtual computer (ls, cat, mkdir, rm, cp, mv, echo, pip install, curl, grep, ...).",
        parameters=(_param("command", S, 'The shell command, e.g. "ls -la /workspace"', required=True),),
        handler_key="execute_shell",
    ),
    ToolDefinition(
        name="update_plan",
        description=(
            'Update the agent scratchpad. target "todo" holds the task plan, "notes" observations, '
            '"context" key decisions. operation "replace" overwrites, "append" appends.'
        ),
        parameters=(
            _param("tasks", A, 'Tasks for target "todo": [{"label": "Collect data", "status": "done"}]'),
            _param("title", S, 'Optional plan title (target "todo" only)'),
            _param("target", S, 'Target file: "todo", "notes" or "context" (default: "todo")',
                   allowed_values=("todo", "notes", "context")),
            _param("operation", S, '"replace" or "append" (default: "replace")',
                   allowed_values=("replace", "append")),
            _param("content", S, 'Markdown content for target "notes" or "context"'),
        ),
        handler_key="update_plan",
    ),
    ToolDefinition(
        name="delete_file",
        description="Delete a file or an empty folder from the workspace.",
        parameters=(_param("path", S, 'Path to delete, e.g. "temp/old_data.csv"', required=True),),
        handler_key="delete_file",
    ),
    ToolDefinition(
        name="move_file",
        description="Move or rename a file in the workspace.",
        parameters=(
            _param("source", S, 'Current path, e.g. "old_name.py"', required=True),
            _param("destination", S, 'New path, e.g. "src/new_name.py"', required=True),
        ),
        handler_key="move_file",
    ),
)

# (situation, tool) pairs rendered into the prompt; tools missing from a
# catalog are skipped
ROUTING_RULES: Tuple[Tuple[str, Optional[str]], ...] = (
    ("Question / explanation / list / plan", None),
    ("Math (2+2, 100*5)", "calculate"),
    ("Internet / research / news", "web_search"),
    ("Read or analyze a website / URL", "browse_url"),
    ("Shell / terminal / pip / curl", "execute_shell"),
    ("Chart / diagram / plot", "execute_python"),
    ("Search uploaded PDFs", "search_documents"),
    ("Analyze an image", "analyze_image"),
    ("File for download", "create_file"),
    ("Delete a file", "delete_file"),
    ("Move / rename a file", "move_file"),
    ("Plan a complex task / notes / context", "update_plan"),
)

PROMPT_EXAMPLE = '```json\n{"tool": "name", "parameters": {"key": "value"}}\n```'


class Catalog:
    """Immutable, ordered table of tool definitions keyed by name."""

    def __init__(self, definitions: Iterable[ToolDefinition]):
        self._definitions: Dict[str, ToolDefinition] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                raise ValueError(f"Duplicate tool definition: {definition.name}")
            self._definitions[definition.name] = definition

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self):
        return iter(self._definitions.values())

    def lookup(self, name: str) -> Optional[ToolDefinition]:
        return self._definitions.get(name)

    def list(self) -> List[ToolDefinition]:
        return list(self._definitions.values())

    def names(self) -> List[str]:
        return list(self._definitions)

    def extended(self, definition: ToolDefinition) -> "Catalog":
        """Return a new catalog with `definition` added or replaced."""
        definitions = dict(self._definitions)
        definitions[definition.name] = definition
        return Catalog(definitions.values())

    def prompt_summary(self) -> str:
        """Render the catalog as tool instructions for the model's system prompt."""
        lines = [
            "## TOOLS",
            "",
            "Most questions need NO tool! Lists, explanations, opinions: answer directly as text.",
            "",
            "Only when a tool is really needed, call one as JSON inside a ```json block:",
            "",
        ]
        for definition in self:
            params = ", ".join(
                f"{p.name}:{p.kind.value}{'*' if p.required else ''}"
                for p in definition.parameters
            )
            lines.append(f"- {definition.name}({params}): {definition.description}")

        lines += ["", "### ROUTING RULES:"]
        for situation, tool in ROUTING_RULES:
            if tool is None:
                lines.append(f"- {situation} -> no tool (answer directly)")
            elif tool in self:
                lines.append(f"- {situation} -> {tool}")

        lines += ["", f"**Format:** {PROMPT_EXAMPLE}", ""]
        return "\n".join(lines)


DEFAULT_CATALOG = Catalog(TOOL_DEFINITIONS)
