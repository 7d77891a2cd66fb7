"""CFM 环境变量配置管理。

环境变量:
    CFM_SCHEMA: 参数 schema 的 JSON 文件路径
        - 文件内容为参数定义对象数组
        - 未设置时 MCP 服务器以空表单启动

    CFM_WORKER: 实际执行工具的命令（按 shell 规则拆分）
        - 例: "python my_tool.py" 或 "/usr/bin/rsync"
        - MCP 服务器必需，未设置时拒绝启动

    CFM_WORKING_DIR: 子进程工作目录
        - 空/未设置 = 继承当前目录

    CFM_DECODE_ERRORS: 输出行不是合法 UTF-8 时的处理方式
        - replace = 用 U+FFFD 替换非法字节 (默认)
        - skip = 记录警告并丢弃该行
        - strict = 记录错误并视为流结束

    CFM_POLL_INTERVAL: 异步 follow 的轮询间隔（秒）
        - 默认 0.1 秒，限制在 0.01-5 秒

    CFM_LOG_DEBUG: 日志调试模式
        - true/1/yes = 开启 (日志输出到临时文件)
        - false/0/no = 关闭 (默认，日志输出到 stderr)
"""

from __future__ import annotations

import os
import shlex
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .runtime.stream_reader import DecodePolicy

__all__ = ["Config", "load_config", "get_config", "reload_config"]

DEFAULT_POLL_INTERVAL = 0.1


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """解析布尔值环境变量。"""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_worker(value: str | None) -> list[str]:
    """解析 worker 命令，空值返回空列表。"""
    if not value or not value.strip():
        return []
    return shlex.split(value)


def _parse_decode_policy(value: str | None) -> DecodePolicy:
    """解析解码策略，无效值返回 REPLACE。"""
    if not value:
        return DecodePolicy.REPLACE
    return DecodePolicy.from_string(value)


def _parse_poll_interval(value: str | None) -> float:
    """解析轮询间隔环境变量。"""
    if not value:
        return DEFAULT_POLL_INTERVAL
    try:
        interval = float(value)
        return max(0.01, min(interval, 5.0))  # 限制在 0.01-5 秒范围
    except ValueError:
        return DEFAULT_POLL_INTERVAL


@dataclass
class Config:
    """CFM 配置。

    Attributes:
        schema_path: 参数 schema 文件路径
        worker: worker 命令，空列表表示未配置
        working_dir: 子进程工作目录，None 表示继承
        decode_policy: 输出解码策略
        poll_interval: 异步 follow 的轮询间隔（秒）
        log_debug: 日志调试模式（输出到临时文件）
        log_file: 日志文件路径（当 log_debug=True 时自动设置）
    """

    schema_path: Path | None = None
    worker: list[str] = field(default_factory=list)
    working_dir: str | None = None
    decode_policy: DecodePolicy = DecodePolicy.REPLACE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    log_debug: bool = False
    log_file: str | None = None

    def __repr__(self) -> str:
        worker_str = shlex.join(self.worker) if self.worker else "unset"
        return (
            f"Config(schema_path={self.schema_path}, "
            f"worker={worker_str}, "
            f"working_dir={self.working_dir}, "
            f"decode_policy={self.decode_policy.value}, "
            f"poll_interval={self.poll_interval}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def _generate_log_file_path() -> str:
    """生成日志文件路径。

    Returns:
        临时目录下的日志文件绝对路径
    """
    log_dir = Path(tempfile.gettempdir()) / "cli-form-mcp"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"cfm_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config() -> Config:
    """从环境变量加载配置。"""
    log_debug = _parse_bool(os.environ.get("CFM_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None
    schema = os.environ.get("CFM_SCHEMA", "").strip()
    working_dir = os.environ.get("CFM_WORKING_DIR", "").strip()

    return Config(
        schema_path=Path(schema).expanduser() if schema else None,
        worker=_parse_worker(os.environ.get("CFM_WORKER")),
        working_dir=working_dir or None,
        decode_policy=_parse_decode_policy(os.environ.get("CFM_DECODE_ERRORS")),
        poll_interval=_parse_poll_interval(os.environ.get("CFM_POLL_INTERVAL")),
        log_debug=log_debug,
        log_file=log_file,
    )


# 全局配置实例（延迟加载）
_config: Config | None = None


def get_config() -> Config:
    """获取全局配置实例。"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """重新加载配置（用于测试）。"""
    global _config
    _config = load_config()
    return _config
