"""
Tests for the server lifecycle using the current interpreter as the target process.
"""

import asyncio
import socket
import sys

import pytest

from uibench.targets.base import Target, BuildFailure, ServerStartFailure, ServerTimeout
from uibench.targets.server import ServerLifecycle


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _target(tmp_path, build=(), start=(), port=None):
    return Target(
        name="fake",
        working_directory=tmp_path,
        port=port or _free_port(),
        build_command=tuple(build),
        start_command=tuple(start),
    )


def _lifecycle():
    return ServerLifecycle(host="127.0.0.1", probe_interval=0.05, grace_period=2.0)


def test_build_success(tmp_path):
    target = _target(tmp_path, build=[sys.executable, "-c", "pass"])
    asyncio.run(_lifecycle().build(target))


def test_build_nonzero_exit_raises(tmp_path):
    target = _target(tmp_path, build=[sys.executable, "-c", "raise SystemExit(3)"])
    with pytest.raises(BuildFailure, match="code 3"):
        asyncio.run(_lifecycle().build(target))


def test_build_missing_command_raises(tmp_path):
    target = _target(tmp_path, build=["definitely-not-a-real-command-xyz"])
    with pytest.raises(BuildFailure):
        asyncio.run(_lifecycle().build(target))


def test_build_skipped_without_command(tmp_path):
    asyncio.run(_lifecycle().build(_target(tmp_path)))


def test_start_missing_command_raises(tmp_path):
    target = _target(tmp_path, start=["definitely-not-a-real-command-xyz"])
    with pytest.raises(ServerStartFailure):
        asyncio.run(_lifecycle().start(target))


def test_server_ready_then_stopped(tmp_path):
    port = _free_port()
    script = (
        "import socket, time\n"
        "s = socket.socket()\n"
        "s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)\n"
        f"s.bind(('127.0.0.1', {port}))\n"
        "s.listen()\n"
        "time.sleep(60)\n"
    )
    target = _target(tmp_path, start=[sys.executable, "-c", script], port=port)
    lifecycle = _lifecycle()

    async def scenario():
        handle = await lifecycle.start(target)
        try:
            await lifecycle.await_ready(target, 10000, handle)
            assert handle.alive
        finally:
            await lifecycle.stop(handle)
        assert not handle.alive
        assert handle.process.returncode is not None
        # idempotent
        await lifecycle.stop(handle)

    asyncio.run(scenario())


def test_await_ready_times_out(tmp_path):
    target = _target(tmp_path)
    with pytest.raises(ServerTimeout):
        asyncio.run(_lifecycle().await_ready(target, 200))


def test_await_ready_fails_fast_when_process_exits(tmp_path):
    target = _target(tmp_path, start=[sys.executable, "-c", "raise SystemExit(2)"])
    lifecycle = _lifecycle()

    async def scenario():
        handle = await lifecycle.start(target)
        try:
            await handle.process.wait()
            await lifecycle.await_ready(target, 10000, handle)
        finally:
            await lifecycle.stop(handle)

    with pytest.raises(ServerStartFailure, match="code 2"):
        asyncio.run(scenario())


def test_stop_accepts_none_and_dead_process(tmp_path):
    target = _target(tmp_path, start=[sys.executable, "-c", "pass"])
    lifecycle = _lifecycle()

    async def scenario():
        await lifecycle.stop(None)
        handle = await lifecycle.start(target)
        await handle.process.wait()
        await lifecycle.stop(handle)
        await lifecycle.stop(handle)
        assert handle.stopped

    asyncio.run(scenario())
