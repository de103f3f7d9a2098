"""
Spawns and supervises the yt-dlp executable.

Both output streams are drained concurrently by two tasks so neither pipe can
fill up and stall the child. Events are delivered through an explicit
``asyncio.Queue`` channel, or through the ``stream()`` async iterator which
owns such a queue. Cancelling the awaiting task kills the whole process tree
and re-raises ``asyncio.CancelledError``.
"""

import asyncio
import logging
import os
import shutil
import signal
import subprocess
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import suppress
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ytdlp_runner.exceptions import (
    CommandFailedError,
    ConfigurationError,
    ExecutableNotFoundError,
    ProcessError,
)
from ytdlp_runner.models.events import CommandCompleted, ErrorLine, OutputLine, RunEvent
from ytdlp_runner.parsing.progress import ProgressParser

log = logging.getLogger(__name__)

_DONE = object()


class RunState(Enum):
    """Lifecycle of the most recent invocation started by a runner."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass
class RunResult:
    """Captured outcome of a completed process and the state it ended in."""

    exit_code: int
    state: RunState = RunState.NOT_STARTED
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        return "\n".join(self.stdout)

    @property
    def error_output(self) -> str:
        return "\n".join(self.stderr)


def resolve_executable(executable: str) -> str:
    """
    Resolves the yt-dlp executable from an explicit path or the ``PATH``.

    Raises:
        ConfigurationError: If ``executable`` is empty.
        ExecutableNotFoundError: If nothing runnable can be found.
    """
    if not executable or not executable.strip():
        raise ConfigurationError("yt-dlp path cannot be empty.")
    if Path(executable).is_file():
        return executable
    if found := shutil.which(executable):
        return found
    raise ExecutableNotFoundError(
        f"yt-dlp executable not found at {executable}. "
        "Install yt-dlp or specify a valid path."
    )


async def kill_process_tree(process: asyncio.subprocess.Process) -> None:
    """Forcefully kills ``process`` and its children; failures are ignored."""
    if process.returncode is not None:
        return
    try:
        if os.name == "nt":
            killer = await asyncio.create_subprocess_exec(
                "taskkill",
                "/F",
                "/T",
                "/PID",
                str(process.pid),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await killer.wait()
        else:
            os.killpg(process.pid, signal.SIGKILL)
        log.warning("yt-dlp process killed due to cancellation.")
    except OSError as e:
        log.debug(f"Could not kill yt-dlp process tree: {e}")
        with suppress(ProcessLookupError):
            process.kill()


class ProcessRunner:
    """
    Runs yt-dlp with a given argument list and supervises it to completion.

    ``state`` follows whichever invocation changed it last, so it is only
    meaningful for one run at a time. Runs that overlap on the same runner
    should read ``RunResult.state`` instead.
    """

    STREAM_LIMIT = 1024 * 1024  # 1 MiB per line

    def __init__(self, executable: str = "yt-dlp"):
        self.executable = resolve_executable(executable)
        self.state = RunState.NOT_STARTED

    async def _spawn(self, arguments: Sequence[str]) -> asyncio.subprocess.Process:
        platform_kwargs = {}
        if os.name == "nt":
            platform_kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        else:
            # A dedicated process group lets cancellation kill the whole tree.
            platform_kwargs["start_new_session"] = True

        log.debug(f"Running: {self.executable} {' '.join(arguments)}")
        try:
            return await asyncio.create_subprocess_exec(
                self.executable,
                *arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=self.STREAM_LIMIT,
                **platform_kwargs,
            )
        except (OSError, ValueError, TypeError) as e:
            # ValueError and TypeError come from unusable arguments, e.g. a NUL byte.
            self.state = RunState.FAILED
            message = f"Failed to start yt-dlp process: {e}"
            log.error(message)
            raise ProcessError(message) from e

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        await kill_process_tree(process)
        with suppress(ProcessLookupError):
            await process.wait()

    async def _drain(
        self,
        stream: asyncio.StreamReader,
        on_line: Callable[[str], Awaitable[None]],
    ) -> None:
        while True:
            try:
                raw = await stream.readline()
            except ValueError as e:
                log.warning(f"Discarding oversized yt-dlp output line: {e}")
                continue
            if not raw:
                return
            await on_line(raw.decode("utf-8", errors="replace").rstrip("\r\n"))

    async def run(
        self,
        arguments: Sequence[str],
        events: asyncio.Queue | None = None,
        parser: ProgressParser | None = None,
    ) -> RunResult:
        """
        Executes yt-dlp and waits for it to exit.

        Args:
            arguments: Arguments passed after the executable.
            events: Optional channel receiving every ``RunEvent`` in order.
            parser: Progress parser to use; it is reset first. A fresh parser
                is created when omitted.

        Returns:
            The captured ``RunResult`` of a successful (exit code 0) run.

        Raises:
            CommandFailedError: If yt-dlp exits with a non-zero code.
            ProcessError: If the process cannot be started or supervised.
            asyncio.CancelledError: If the awaiting task is cancelled.
        """
        parser = parser or ProgressParser()
        parser.reset()
        result = RunResult(exit_code=-1)

        async def emit(event: RunEvent) -> None:
            if events is not None:
                await events.put(event)

        async def on_stdout(line: str) -> None:
            result.stdout.append(line)
            for event in parser.parse(line):
                await emit(event)
            await emit(OutputLine(line))

        async def on_stderr(line: str) -> None:
            result.stderr.append(line)
            await emit(ErrorLine(line))
            log.warning(line)

        self.state = RunState.RUNNING
        process = await self._spawn(arguments)
        drains = [
            asyncio.create_task(self._drain(process.stdout, on_stdout)),
            asyncio.create_task(self._drain(process.stderr, on_stderr)),
        ]
        try:
            await asyncio.gather(*drains)
            result.exit_code = await process.wait()
        except asyncio.CancelledError:
            self.state = RunState.CANCELED
            await self._terminate(process)
            for task in drains:
                task.cancel()
            raise
        except Exception as e:
            self.state = RunState.FAILED
            await self._terminate(process)
            for task in drains:
                task.cancel()
            message = f"Error executing yt-dlp: {e}"
            log.error(message)
            raise ProcessError(message) from e

        if result.exit_code != 0:
            self.state = RunState.FAILED
            message = f"Process failed with exit code {result.exit_code}."
            log.error(message)
            await emit(CommandCompleted(False, result.exit_code, message))
            raise CommandFailedError(result.exit_code, result.error_output)

        self.state = result.state = RunState.SUCCEEDED
        message = "Process completed successfully."
        log.info(message)
        await emit(CommandCompleted(True, result.exit_code, message))
        return result

    async def stream(
        self, arguments: Sequence[str], parser: ProgressParser | None = None
    ) -> AsyncIterator[RunEvent]:
        """
        Runs yt-dlp and yields its events as they are produced.

        A failed run raises from the iterator after its last event has been
        yielded. Leaving the iteration early cancels the run.
        """
        queue: asyncio.Queue = asyncio.Queue()

        async def produce() -> RunResult:
            try:
                return await self.run(arguments, events=queue, parser=parser)
            finally:
                queue.put_nowait(_DONE)

        task = asyncio.create_task(produce())
        try:
            while (event := await queue.get()) is not _DONE:
                yield event
            await task
        finally:
            if not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task

    async def capture(self, arguments: Sequence[str], check: bool = True) -> RunResult:
        """
        Runs a short, one-shot command and collects its entire output.

        Raises:
            CommandFailedError: If ``check`` is set and the exit code is non-zero.
            ProcessError: If the process cannot be started or supervised.
            asyncio.CancelledError: If the awaiting task is cancelled.
        """
        self.state = RunState.RUNNING
        process = await self._spawn(arguments)
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            self.state = RunState.CANCELED
            await self._terminate(process)
            raise
        except Exception as e:
            self.state = RunState.FAILED
            await self._terminate(process)
            raise ProcessError(f"Error executing yt-dlp: {e}") from e

        result = RunResult(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace").splitlines(),
            stderr=stderr.decode("utf-8", errors="replace").splitlines(),
        )
        if result.exit_code != 0:
            self.state = result.state = RunState.FAILED
            if check:
                raise CommandFailedError(result.exit_code, result.error_output)
            return result
        self.state = result.state = RunState.SUCCEEDED
        return result
