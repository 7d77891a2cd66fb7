"""CLI Form MCP 应用入口。

包含服务器生命周期管理和主入口点。
"""

from __future__ import annotations

import asyncio
import logging
import sys

from mcp.server.stdio import stdio_server

from .config import get_config
from .errors import ConfigError
from .server import create_server
from .session import Session

__all__ = ["run_server", "main", "configure_logging"]

logger = logging.getLogger(__name__)


async def run_server() -> None:
    """运行 MCP Server（stdio transport）。

    退出时终止仍在运行的子进程。
    """
    config = get_config()
    logger.info(f"Starting CLI Form MCP Server: {config}")

    session = Session.from_config(config)
    logger.info(
        f"Loaded {len(session.model)} arguments, worker={session.worker}"
    )
    server = create_server(session)

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    except asyncio.CancelledError:
        logger.info("run_server: cancelled")
        raise
    finally:
        if session.kill():
            logger.info("run_server: killed running child on exit")
        logger.info("run_server: cleanup completed")


def configure_logging() -> None:
    """配置日志输出。

    - 默认: stderr，INFO 级别
    - CFM_LOG_DEBUG: 临时目录下的日志文件，DEBUG 级别
    """
    config = get_config()
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        # LOG_DEBUG 模式：输出到临时文件（stdout 被 MCP 协议占用）
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s [%(threadName)s]: %(message)s")
        )
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log_handlers.append(stderr_handler)
        log_level = logging.INFO

    # 配置 root logger（第三方库）为 WARNING，减少噪音
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    # 只对 cli_form_mcp 命名空间启用详细日志
    logging.getLogger("cli_form_mcp").setLevel(log_level)


def main() -> None:
    """主入口点。"""
    configure_logging()
    try:
        asyncio.run(run_server())
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        sys.exit(130)  # 128 + SIGINT(2) = 130


if __name__ == "__main__":
    main()
