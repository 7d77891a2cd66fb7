"""CLI Form MCP Server。

把一个命令行工具的参数表单和运行状态暴露为 MCP 工具。

环境变量:
    CFM_SCHEMA: 参数 schema 文件
    CFM_WORKER: 执行工具的命令 (必需)
    CFM_WORKING_DIR: 子进程工作目录
    CFM_DECODE_ERRORS: 输出解码策略 (replace/skip/strict)

用法:
    uvx cli-form-mcp
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool

from .errors import CliFormError
from .handlers import handle_tool
from .session import Session
from .tool_schema import SUPPORTED_TOOLS, TOOL_DESCRIPTIONS, create_tool_schema

__all__ = ["create_server", "format_response", "format_error_response"]

logger = logging.getLogger(__name__)


def format_response(data: dict[str, Any]) -> list[TextContent]:
    """格式化成功响应为 JSON 文本。"""
    return [TextContent(type="text", text=json.dumps(data, ensure_ascii=False, default=str))]


def format_error_response(error: str) -> list[TextContent]:
    """统一的错误响应格式化函数。

    确保所有错误都以 {"success": false, "error": ...} 格式返回，
    保持 API 契约一致性。
    """
    return format_response({"success": False, "error": error})


def create_server(session: Session) -> Server:
    """创建 MCP Server 实例。

    Args:
        session: 表单会话（参数状态 + 当前子进程）
    """
    server = Server("cli-form-mcp")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """列出可用工具。"""
        tools = [
            Tool(
                name=name,
                description=TOOL_DESCRIPTIONS[name],
                inputSchema=create_tool_schema(name),
            )
            for name in SUPPORTED_TOOLS
        ]
        logger.debug(f"[MCP] list_tools called, returning {len(tools)} tools")
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """调用工具。"""
        logger.debug(
            f"[MCP] call_tool request: {name} "
            f"{json.dumps(arguments, ensure_ascii=False, default=str)}"
        )
        try:
            return format_response(await handle_tool(session, name, arguments or {}))
        except CliFormError as e:
            logger.warning(f"Tool '{name}' failed: {e}")
            return format_error_response(str(e))
        except (KeyError, ValueError, TypeError, IndexError) as e:
            logger.info(f"Tool '{name}' rejected arguments: {e}")
            message = e.args[0] if isinstance(e, KeyError) and e.args else str(e)
            return format_error_response(str(message))

    return server
