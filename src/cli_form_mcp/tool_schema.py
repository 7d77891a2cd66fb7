"""Tool Schema 定义。

包含工具描述和参数 schema。
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "SUPPORTED_TOOLS",
    "UPDATE_ACTIONS",
    "TOOL_DESCRIPTIONS",
    "create_tool_schema",
]

# 支持的工具列表（按展示顺序）
SUPPORTED_TOOLS = [
    "list_arguments",
    "update_argument",
    "build_command",
    "run_command",
    "poll_output",
    "wait_output",
    "kill_process",
]

# update_argument 支持的编辑动作
UPDATE_ACTIONS = [
    "set_value",
    "reset_to_default",
    "set_flag",
    "set_count",
    "increment",
    "decrement",
    "select",
    "set_values",
    "append_value",
    "remove_value",
]

# 工具描述
TOOL_DESCRIPTIONS = {
    "list_arguments": """List every argument of the configured tool in command-line order.

Each entry has: name, call_name, desc, optional, use_equals, shape
(TextValue / MultiTextValue / CountValue / FlagValue / PathValue /
MultiPathValue / ChoiceValue / MultiChoiceValue), the current value(s),
possible values for choices, and the active validation error if any.""",

    "update_argument": """Edit one argument by display name.

ACTIONS BY SHAPE:
- Text/Path: set_value, reset_to_default
- MultiText/MultiPath: set_values, append_value, remove_value, reset_to_default
- Count: set_count, increment, decrement (never below 0)
- Flag: set_flag
- Choice: select ("" clears an optional choice)
- MultiChoice: set_values, append_value, remove_value

Editing an argument clears its validation error.""",

    "build_command": """Build the argument vector from the current form.

Returns the tokens, or the first invalid argument and its message
(e.g. "Name is required.").""",

    "run_command": """Build the command and start the tool as a child process.

Optionally feeds stdin (literal text or a file), overrides environment
variables and sets the working directory. A previous run still in
progress is killed first. Returns immediately; use poll_output.""",

    "poll_output": """Return the combined stdout/stderr collected so far and whether the
process is still running. Never waits for new output.""",

    "wait_output": """Wait until the process finishes or `timeout` seconds pass, then return
the same status as poll_output plus `timed_out`. The process is never
killed by a timeout.""",

    "kill_process": """Kill the running process. Output that was not yet polled is discarded.""",
}

_NAME_PROPERTY = {
    "type": "string",
    "description": "Display name of the argument as returned by list_arguments.",
}

_SCHEMAS: dict[str, dict[str, Any]] = {
    "list_arguments": {
        "type": "object",
        "properties": {},
        "required": [],
    },
    "update_argument": {
        "type": "object",
        "properties": {
            "name": _NAME_PROPERTY,
            "action": {
                "type": "string",
                "enum": UPDATE_ACTIONS,
                "description": "Edit to apply (must match the argument's shape).",
            },
            "value": {
                "type": ["string", "integer", "boolean"],
                "description": (
                    "Value for set_value/select/append_value (string), "
                    "set_count (integer) or set_flag (boolean)."
                ),
            },
            "values": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Whole list for set_values.",
            },
            "index": {
                "type": "integer",
                "minimum": 0,
                "description": "Position for remove_value.",
            },
        },
        "required": ["name", "action"],
    },
    "build_command": {
        "type": "object",
        "properties": {},
        "required": [],
    },
    "run_command": {
        "type": "object",
        "properties": {
            "stdin_text": {
                "type": "string",
                "description": "Literal text written to the tool's stdin.",
            },
            "stdin_file": {
                "type": "string",
                "description": "Path of a file streamed to the tool's stdin. Ignored if stdin_text is set.",
            },
            "env": {
                "type": "object",
                "additionalProperties": {"type": "string"},
                "default": {},
                "description": "Environment variable overrides.",
            },
            "working_dir": {
                "type": "string",
                "default": "",
                "description": "Working directory. Empty inherits the server's directory.",
            },
        },
        "required": [],
    },
    "poll_output": {
        "type": "object",
        "properties": {},
        "required": [],
    },
    "wait_output": {
        "type": "object",
        "properties": {
            "timeout": {
                "type": "number",
                "minimum": 0,
                "default": 30,
                "description": "Maximum seconds to wait.",
            },
        },
        "required": [],
    },
    "kill_process": {
        "type": "object",
        "properties": {},
        "required": [],
    },
}


def create_tool_schema(tool: str) -> dict[str, Any]:
    """创建工具的 JSON Schema。

    Raises:
        KeyError: 未知工具
    """
    return _SCHEMAS[tool]
