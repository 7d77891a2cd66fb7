"""CLI Form MCP 入口点。

支持: python -m cli_form_mcp
"""

from .app import main

if __name__ == "__main__":
    main()
