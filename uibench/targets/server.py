"""
Server process lifecycle for benchmark targets.
Builds a target, starts its HTTP server, waits for the port and tears it down.
"""

import asyncio
import logging
import os
import signal
import time
from dataclasses import dataclass
from typing import Optional

from .base import Target, BuildFailure, ServerStartFailure, ServerTimeout

logger = logging.getLogger(__name__)


@dataclass
class ServerHandle:
    """A live server process owned by one target run."""
    target: Target
    process: asyncio.subprocess.Process
    stopped: bool = False

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def alive(self) -> bool:
        return not self.stopped and self.process.returncode is None


class ServerLifecycle:
    """
    Builds and serves one target at a time.

    Server output is inherited from the benchmark process so build and
    server logs show up on the console. On POSIX the server is started in
    its own session and stopped by signalling the whole process group, as
    ``npm start`` style commands fork the real server as a child.

    Example:
        lifecycle = ServerLifecycle()
        await lifecycle.build(target)
        handle = await lifecycle.start(target)
        try:
            await lifecycle.await_ready(target, 180000, handle)
            ...
        finally:
            await lifecycle.stop(handle)
    """

    def __init__(
        self,
        host: str = "localhost",
        probe_interval: float = 0.5,
        grace_period: float = 10.0,
    ):
        """
        Initialize server lifecycle.

        Args:
            host: Host the readiness probe connects to
            probe_interval: Seconds between connection attempts
            grace_period: Seconds to wait after SIGTERM before killing
        """
        self.host = host
        self.probe_interval = probe_interval
        self.grace_period = grace_period

    async def build(self, target: Target) -> None:
        """
        Run the target's build step to completion.

        Raises:
            BuildFailure: If the build cannot be spawned or exits non-zero
        """
        if not target.build_command:
            logger.debug(f"[{target.name}] no build command, skipping build")
            return

        logger.info(f"[{target.name}] building: {' '.join(target.build_command)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *target.build_command,
                cwd=str(target.working_directory),
            )
        except OSError as e:
            raise BuildFailure(f"[{target.name}] cannot run build command: {e}") from e

        code = await process.wait()
        if code != 0:
            raise BuildFailure(f"[{target.name}] build exited with code {code}")
        logger.info(f"[{target.name}] build complete")

    async def start(self, target: Target) -> ServerHandle:
        """
        Spawn the target's server process. Does not wait for the port.

        Raises:
            ServerStartFailure: If the start command cannot be spawned
        """
        if not target.start_command:
            raise ServerStartFailure(f"[{target.name}] no start command configured")

        logger.info(f"[{target.name}] starting server: {' '.join(target.start_command)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *target.start_command,
                cwd=str(target.working_directory),
                start_new_session=(os.name == "posix"),
            )
        except OSError as e:
            raise ServerStartFailure(f"[{target.name}] cannot run start command: {e}") from e

        return ServerHandle(target=target, process=process)

    async def await_ready(
        self,
        target: Target,
        timeout_ms: int,
        handle: Optional[ServerHandle] = None,
    ) -> None:
        """
        Poll the target's port until a connection succeeds.

        Args:
            target: Target whose port is probed
            timeout_ms: Overall deadline in milliseconds
            handle: Optional server handle; an early exit fails fast

        Raises:
            ServerTimeout: If the port never accepts a connection in time
            ServerStartFailure: If the server process exits while waiting
        """
        deadline = time.monotonic() + timeout_ms / 1000.0

        while True:
            if await self._probe(target.port):
                logger.info(f"[{target.name}] server ready on port {target.port}")
                return

            if handle is not None and handle.process.returncode is not None:
                raise ServerStartFailure(
                    f"[{target.name}] server exited with code {handle.process.returncode} "
                    f"before listening on port {target.port}"
                )

            if time.monotonic() >= deadline:
                raise ServerTimeout(
                    f"[{target.name}] timeout waiting for server on port {target.port} "
                    f"after {timeout_ms}ms"
                )

            await asyncio.sleep(self.probe_interval)

    async def _probe(self, port: int) -> bool:
        """Plain TCP connectivity check."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, port),
                timeout=max(self.probe_interval, 1.0),
            )
        except (OSError, asyncio.TimeoutError):
            return False

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def stop(self, handle: Optional[ServerHandle]) -> None:
        """Terminate the server process. Safe to call repeatedly or on a dead process."""
        if handle is None or handle.stopped:
            return

        process = handle.process
        self._signal(process, signal.SIGTERM)
        try:
            await asyncio.wait_for(process.wait(), timeout=self.grace_period)
        except asyncio.TimeoutError:
            logger.warning(f"[{handle.target.name}] server did not exit, killing")
            self._signal(process, getattr(signal, "SIGKILL", signal.SIGTERM))
            await process.wait()

        handle.stopped = True
        logger.info(f"[{handle.target.name}] server stopped")

    def _signal(self, process: asyncio.subprocess.Process, sig: int) -> None:
        try:
            if os.name == "posix":
                # Leader may already be gone while children still hold the port
                os.killpg(process.pid, sig)
            elif process.returncode is None:
                process.send_signal(sig)
        except (ProcessLookupError, PermissionError):
            pass
