"""异常类定义。

cli-form-mcp v0.1.0

三类互相独立的错误：
- ConfigError: 服务器配置无效（启动前发现，服务器不启动）
- CommandBuildError: 构建命令行时的字段级错误（可恢复，提示用户修正）
- ExecuteError: 启动子进程失败（本次启动作废，调用方不能假设进程存在）
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "CliFormError",
    "CommandBuildError",
    "ConfigError",
    "ExecuteError",
    "ExecuteErrorKind",
]


class CliFormError(Exception):
    """cli-form-mcp 基础异常。"""
    pass


class ConfigError(CliFormError):
    """配置错误。"""
    pass


class CommandBuildError(CliFormError):
    """命令构建错误。

    Attributes:
        name: 出错参数的显示名称
        message: 面向用户的错误消息
    """

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        self.message = message
        super().__init__(message)


class ExecuteErrorKind(str, Enum):
    """启动错误分类。

    - SPAWN: 操作系统拒绝创建进程
    - WORKING_DIR: 工作目录无法解析
    - STDIN: 写入/复制 stdin 失败
    - NO_STDIO: 子进程缺少 stdout/stderr 管道
    """

    SPAWN = "spawn"
    WORKING_DIR = "working_dir"
    STDIN = "stdin"
    NO_STDIO = "no_stdio"


class ExecuteError(CliFormError):
    """子进程启动错误。

    Attributes:
        kind: 错误分类
        message: 错误消息
    """

    def __init__(self, kind: ExecuteErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"[{kind.value}] {message}")
