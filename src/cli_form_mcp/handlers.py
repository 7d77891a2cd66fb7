"""工具处理器。

把 MCP 工具调用翻译为 Session / ArgumentModel 操作，返回可 JSON 序列化的字典。
参数错误以 ValueError/TypeError/KeyError 抛出，由 server 统一格式化。
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Union

import anyio

from .errors import CommandBuildError
from .runtime import StdinFile, StdinText, wait_finished
from .session import Session

__all__ = ["HANDLERS", "handle_tool"]

logger = logging.getLogger(__name__)

Handler = Callable[
    [Session, dict[str, Any]],
    Union[dict[str, Any], Awaitable[dict[str, Any]]],
]

DEFAULT_WAIT_TIMEOUT = 30.0


def _require(arguments: dict[str, Any], key: str) -> Any:
    if key not in arguments:
        raise ValueError(f"Missing required parameter '{key}'")
    return arguments[key]


_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def _as_bool(value: Any) -> bool:
    """解析布尔参数，拒绝无法识别的值（"false" 不是真值）。"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"Expected a boolean, got {value!r}")


def _as_int(value: Any) -> int:
    """解析整数参数，拒绝布尔值和小数。"""
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValueError(f"Expected an integer, got {value!r}") from None
    raise ValueError(f"Expected an integer, got {value!r}")


def handle_list_arguments(session: Session, arguments: dict[str, Any]) -> dict[str, Any]:
    """列出所有参数。"""
    return {"arguments": session.model.snapshot(), "running": session.is_running}


def handle_update_argument(session: Session, arguments: dict[str, Any]) -> dict[str, Any]:
    """编辑单个参数。"""
    model = session.model
    name = _require(arguments, "name")
    action = _require(arguments, "action")

    if action == "set_value":
        model.set_value(name, str(_require(arguments, "value")))
    elif action == "reset_to_default":
        model.reset_to_default(name)
    elif action == "set_flag":
        model.set_flag(name, _as_bool(_require(arguments, "value")))
    elif action == "set_count":
        model.set_count(name, _as_int(_require(arguments, "value")))
    elif action == "increment":
        model.increment(name)
    elif action == "decrement":
        model.decrement(name)
    elif action == "select":
        model.select(name, str(arguments.get("value", "")))
    elif action == "set_values":
        model.set_values(name, [str(v) for v in _require(arguments, "values")])
    elif action == "append_value":
        model.append_value(name, str(arguments.get("value", "")))
    elif action == "remove_value":
        model.remove_value(name, _as_int(_require(arguments, "index")))
    else:
        raise ValueError(f"Unknown action '{action}'")

    logger.debug(f"update_argument: {name} {action}")
    return {"argument": model.get(name).to_dict()}


def handle_build_command(session: Session, arguments: dict[str, Any]) -> dict[str, Any]:
    """构建命令行（失败时返回字段级错误，而不是异常）。"""
    try:
        args = session.model.build_command()
    except CommandBuildError as e:
        return {"success": False, "argument": e.name, "error": e.message}
    return {"success": True, "args": args, "command": session.worker.command(args)}


def handle_run_command(session: Session, arguments: dict[str, Any]) -> dict[str, Any]:
    """启动子进程。"""
    if arguments.get("stdin_text") is not None:
        session.stdin = StdinText(str(arguments["stdin_text"]))
    elif arguments.get("stdin_file"):
        session.stdin = StdinFile(str(arguments["stdin_file"]))
    else:
        session.stdin = None
    session.env = {str(k): str(v) for k, v in (arguments.get("env") or {}).items()}
    if "working_dir" in arguments:
        session.working_dir = str(arguments["working_dir"] or "")

    try:
        child = session.run()
    except CommandBuildError as e:
        return {"success": False, "argument": e.name, "error": e.message}
    return {"success": True, "pid": child.pid, "command": child.args}


def handle_poll_output(session: Session, arguments: dict[str, Any]) -> dict[str, Any]:
    """读取当前输出（不阻塞）。"""
    return session.poll().to_dict()


async def handle_wait_output(session: Session, arguments: dict[str, Any]) -> dict[str, Any]:
    """等待子进程结束（最多 timeout 秒），超时不终止进程。"""
    timeout = float(arguments.get("timeout", DEFAULT_WAIT_TIMEOUT))
    if timeout < 0:
        raise ValueError("timeout must not be negative")

    child = session.child
    timed_out = False
    if child is not None:
        with anyio.move_on_after(timeout) as scope:
            await wait_finished(child, session.poll_interval)
        timed_out = scope.cancelled_caught
        if timed_out:
            logger.debug(f"wait_output: pid={child.pid} still running after {timeout}s")

    status = session.poll().to_dict()
    status["timed_out"] = timed_out
    return status


def handle_kill_process(session: Session, arguments: dict[str, Any]) -> dict[str, Any]:
    """终止子进程。"""
    killed = session.kill()
    status = session.poll().to_dict()
    status["killed"] = killed
    return status


HANDLERS: dict[str, Handler] = {
    "list_arguments": handle_list_arguments,
    "update_argument": handle_update_argument,
    "build_command": handle_build_command,
    "run_command": handle_run_command,
    "poll_output": handle_poll_output,
    "wait_output": handle_wait_output,
    "kill_process": handle_kill_process,
}


async def handle_tool(session: Session, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """分发工具调用。

    Raises:
        KeyError: 未知工具或参数
        ValueError/TypeError: 参数无效
        ExecuteError: 子进程启动失败
    """
    try:
        handler = HANDLERS[name]
    except KeyError:
        raise KeyError(f"Unknown tool '{name}'") from None
    result = handler(session, arguments)
    if inspect.isawaitable(result):
        result = await result
    return result
