"""CLI Form MCP - 把任意命令行工具变成可编辑表单并运行。

环境变量:
    CFM_SCHEMA: 参数 schema 文件
    CFM_WORKER: 执行工具的命令 (必需)
    CFM_LOG_DEBUG: 日志调试模式 (默认 false)

用法:
    uvx cli-form-mcp
"""

__version__ = "0.1.0"

from .app import main

__all__ = ["__version__", "main"]
