"""Tool handler tests.

Test coverage:
- Argument listing and editing through update_argument
- build_command field errors
- run/poll/wait/kill through the session
- Dispatch errors
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from cli_form_mcp.arguments import ArgumentDefinition, ArgumentModel
from cli_form_mcp.handlers import HANDLERS, handle_tool
from cli_form_mcp.runtime import WorkerTarget
from cli_form_mcp.session import Session
from cli_form_mcp.tool_schema import SUPPORTED_TOOLS


@pytest.fixture
def session(fake_cli: WorkerTarget) -> Session:
    model = ArgumentModel.from_definitions([
        ArgumentDefinition(name="lines", long="lines", takes_value=True, required=True),
        ArgumentDefinition(name="interval", long="interval", takes_value=True),
        ArgumentDefinition(name="echo_stdin", long="echo-stdin"),
        ArgumentDefinition(name="forever", long="forever"),
        ArgumentDefinition(name="print_cwd", long="print-cwd"),
        ArgumentDefinition(name="print_env", long="print-env", multiple=True, takes_value=True),
        ArgumentDefinition(name="verbose", short="v", multiple=True),
        ArgumentDefinition(
            name="mode", long="mode", takes_value=True, possible_values=("fast", "slow"),
        ),
    ])
    return Session(model=model, worker=fake_cli, poll_interval=0.01)


async def call(session: Session, tool: str, **arguments):
    return await handle_tool(session, tool, arguments)


def test_every_tool_has_handler():
    assert set(HANDLERS) == set(SUPPORTED_TOOLS)


class TestArguments:
    """Test listing and editing."""

    @pytest.mark.asyncio
    async def test_list_arguments(self, session: Session):
        result = await call(session, "list_arguments")
        assert [a["name"] for a in result["arguments"]][:2] == ["Lines", "Interval"]
        assert result["running"] is False

    @pytest.mark.asyncio
    async def test_set_value(self, session: Session):
        result = await call(session, "update_argument", name="Lines", action="set_value", value=3)
        assert result["argument"]["value"] == "3"

    @pytest.mark.asyncio
    async def test_count_actions(self, session: Session):
        await call(session, "update_argument", name="Verbose", action="increment")
        await call(session, "update_argument", name="Verbose", action="set_count", value=3)
        result = await call(session, "update_argument", name="Verbose", action="decrement")
        assert result["argument"]["value"] == 2

    @pytest.mark.asyncio
    async def test_list_actions(self, session: Session):
        await call(session, "update_argument", name="Print env", action="set_values", values=["A", "B"])
        await call(session, "update_argument", name="Print env", action="append_value", value="C")
        result = await call(session, "update_argument", name="Print env", action="remove_value", index=0)
        assert result["argument"]["values"] == ["B", "C"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value,expected", [
        (True, True), (False, False), ("true", True), ("false", False), ("0", False), (1, True),
    ])
    async def test_set_flag_values(self, session: Session, value, expected: bool):
        session.model.set_value("Lines", "1")
        result = await call(session, "update_argument", name="Forever", action="set_flag", value=value)
        assert result["argument"]["value"] is expected
        built = await call(session, "build_command")
        assert ("--forever" in built["args"]) is expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["maybe", 2, None])
    async def test_set_flag_rejects_unknown(self, session: Session, value):
        with pytest.raises(ValueError):
            await call(session, "update_argument", name="Forever", action="set_flag", value=value)
        assert session.model.get("Forever").kind.enabled is False

    @pytest.mark.asyncio
    async def test_set_count_from_string(self, session: Session):
        result = await call(session, "update_argument", name="Verbose", action="set_count", value="2")
        assert result["argument"]["value"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["abc", True, 1.5])
    async def test_set_count_rejects_non_integers(self, session: Session, value):
        with pytest.raises(ValueError):
            await call(session, "update_argument", name="Verbose", action="set_count", value=value)
        assert session.model.get("Verbose").kind.count == 0

    @pytest.mark.asyncio
    async def test_select(self, session: Session):
        result = await call(session, "update_argument", name="Mode", action="select", value="slow")
        assert result["argument"]["value"] == "slow"

    @pytest.mark.asyncio
    async def test_invalid_choice(self, session: Session):
        with pytest.raises(ValueError):
            await call(session, "update_argument", name="Mode", action="select", value="medium")

    @pytest.mark.asyncio
    async def test_unknown_action(self, session: Session):
        with pytest.raises(ValueError, match="Unknown action"):
            await call(session, "update_argument", name="Lines", action="explode")

    @pytest.mark.asyncio
    async def test_missing_parameter(self, session: Session):
        with pytest.raises(ValueError, match="'value'"):
            await call(session, "update_argument", name="Lines", action="set_value")

    @pytest.mark.asyncio
    async def test_unknown_argument(self, session: Session):
        with pytest.raises(KeyError):
            await call(session, "update_argument", name="Nope", action="increment")


class TestBuild:
    """Test build_command."""

    @pytest.mark.asyncio
    async def test_field_error(self, session: Session):
        result = await call(session, "build_command")
        assert result == {"success": False, "argument": "Lines", "error": "Lines is required."}
        listing = await call(session, "list_arguments")
        assert listing["arguments"][0]["error"] == "Lines is required."

    @pytest.mark.asyncio
    async def test_success(self, session: Session):
        session.model.set_value("Lines", "2")
        session.model.increment("Verbose")
        result = await call(session, "build_command")
        assert result["success"] is True
        assert result["args"] == ["--lines", "2", "-v"]
        assert result["command"][0] == sys.executable
        assert result["command"][-3:] == ["--lines", "2", "-v"]


class TestRun:
    """Test the process tools."""

    @pytest.mark.asyncio
    async def test_run_refused_when_invalid(self, session: Session):
        result = await call(session, "run_command")
        assert result["success"] is False
        assert session.child is None

    @pytest.mark.asyncio
    async def test_run_and_wait(self, session: Session):
        session.model.set_value("Lines", "2")
        started = await call(session, "run_command")
        assert started["success"] is True
        assert started["pid"] > 0

        result = await call(session, "wait_output", timeout=10)
        assert result["timed_out"] is False
        assert result["running"] is False
        assert result["output"] == "out 0\nout 1\n"

    @pytest.mark.asyncio
    async def test_stdin_text(self, session: Session):
        session.model.set_value("Lines", "0")
        session.model.set_flag("Echo stdin", True)
        await call(session, "run_command", stdin_text="from stdin\n")
        result = await call(session, "wait_output", timeout=10)
        assert result["output"] == "from stdin\n"

    @pytest.mark.asyncio
    async def test_stdin_file(self, session: Session, tmp_path: Path):
        source = tmp_path / "in.txt"
        source.write_text("file line\n")
        session.model.set_value("Lines", "0")
        session.model.set_flag("Echo stdin", True)
        await call(session, "run_command", stdin_file=str(source))
        result = await call(session, "wait_output", timeout=10)
        assert result["output"] == "file line\n"

    @pytest.mark.asyncio
    async def test_env_and_working_dir(self, session: Session, tmp_path: Path):
        session.model.set_value("Lines", "0")
        session.model.set_flag("Print cwd", True)
        session.model.set_values("Print env", ["CFM_HANDLER_TEST"])
        await call(
            session,
            "run_command",
            env={"CFM_HANDLER_TEST": "yes"},
            working_dir=str(tmp_path),
        )
        result = await call(session, "wait_output", timeout=10)
        assert f"cwd={tmp_path.resolve()}\n" in result["output"]
        assert "CFM_HANDLER_TEST=yes\n" in result["output"]

    @pytest.mark.asyncio
    async def test_wait_timeout_keeps_process(self, session: Session):
        session.model.set_value("Lines", "0")
        session.model.set_flag("Forever", True)
        await call(session, "run_command")
        try:
            result = await call(session, "wait_output", timeout=0.2)
            assert result["timed_out"] is True
            assert result["running"] is True
        finally:
            killed = await call(session, "kill_process")
        assert killed["killed"] is True
        assert killed["running"] is False

    @pytest.mark.asyncio
    async def test_wait_without_run(self, session: Session):
        result = await call(session, "wait_output", timeout=1)
        assert result == {
            "output": "",
            "running": False,
            "returncode": None,
            "pid": None,
            "timed_out": False,
        }

    @pytest.mark.asyncio
    async def test_negative_timeout(self, session: Session):
        with pytest.raises(ValueError):
            await call(session, "wait_output", timeout=-1)

    @pytest.mark.asyncio
    async def test_poll_output(self, session: Session):
        result = await call(session, "poll_output")
        assert result["running"] is False
        assert result["output"] == ""

    @pytest.mark.asyncio
    async def test_kill_without_run(self, session: Session):
        result = await call(session, "kill_process")
        assert result["killed"] is False


class TestDispatch:
    """Test handle_tool dispatch."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, session: Session):
        with pytest.raises(KeyError, match="Unknown tool"):
            await call(session, "format_disk")
