"""Pytest 配置和 fixtures。"""

from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest

# 项目根目录
PROJECT_ROOT = Path(__file__).parent.parent

# 添加 src 目录到 Python 路径
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from cli_form_mcp.runtime import ChildProcess, WorkerTarget  # noqa: E402

# 假 CLI 脚本
FAKE_CLI = Path(__file__).parent / "fixtures" / "fake_cli.py"


@pytest.fixture
def project_root() -> Path:
    """项目根目录。"""
    return PROJECT_ROOT


@pytest.fixture
def fake_cli() -> WorkerTarget:
    """以当前解释器运行 fake_cli.py 的 worker。"""
    return WorkerTarget.executable(sys.executable, str(FAKE_CLI))


@pytest.fixture
def python_worker() -> WorkerTarget:
    """当前解释器本身（配合 -c 使用）。"""
    return WorkerTarget.executable(sys.executable)


def wait_until_finished(child: ChildProcess, timeout: float = 10.0) -> str:
    """反复轮询直到两个输出流都结束。"""
    deadline = time.monotonic() + timeout
    while child.is_running:
        child.read()
        if time.monotonic() > deadline:
            child.kill()
            pytest.fail(f"process did not finish within {timeout}s: {child.output!r}")
        time.sleep(0.01)
    return child.output


@pytest.fixture
def wait_finished():
    """返回轮询等待函数。"""
    return wait_until_finished
