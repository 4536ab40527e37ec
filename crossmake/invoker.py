"""Run a resolved toolchain as a child process with streamed output."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from collections import deque
from collections.abc import Callable
from pathlib import Path

import click

from crossmake.config import DEFAULT_TAIL_LINES
from crossmake.errors import BuildFailed, InvocationError
from crossmake.toolchain import BuildResult, ToolchainHandle

logger = logging.getLogger(__name__)

_POSIX = os.name == "posix"

# Seconds to wait after SIGTERM before the process group is killed outright.
_TERMINATE_GRACE = 5

# Longest chunk kept as one tail entry.
MAX_LINE_CHARS = 4096

OutputCallback = Callable[[str, str], None]


def echo_output(line: str, stream: str) -> None:
    """Default output callback: pass child output straight to the terminal."""
    click.echo(line, err=(stream == "stderr"))


def _drain(pipe, tail: deque, stream: str, callback: OutputCallback | None) -> None:
    # Drains to EOF even after the callback fails. Overlong lines arrive as
    # MAX_LINE_CHARS chunks.
    for line in iter(lambda: pipe.readline(MAX_LINE_CHARS), ""):
        line = line.rstrip("\r\n")
        tail.append(line)
        if callback is None:
            continue
        try:
            callback(line, stream)
        except Exception:
            logger.warning("Output callback failed, no longer streaming %s", stream, exc_info=True)
            callback = None


def _terminate_group(proc: subprocess.Popen) -> None:
    """Stop the child and everything it spawned, then reap it."""
    if proc.poll() is not None:
        return
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGTERM)
        else:
            proc.send_signal(signal.CTRL_BREAK_EVENT)
    except ProcessLookupError:
        pass
    try:
        proc.wait(timeout=_TERMINATE_GRACE)
        return
    except subprocess.TimeoutExpired:
        pass
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass
    proc.wait()


class BuildInvoker:
    """Executes toolchain handles one at a time.

    Output is streamed line by line to ``output_callback`` while the last
    ``tail_lines`` lines of each stream are kept for error reporting.
    """

    def __init__(
        self,
        cwd: Path | str | None = None,
        tail_lines: int = DEFAULT_TAIL_LINES,
        output_callback: OutputCallback | None = echo_output,
    ):
        self.cwd = Path(cwd) if cwd is not None else None
        self.tail_lines = tail_lines
        self.output_callback = output_callback

    def invoke(self, handle: ToolchainHandle) -> BuildResult:
        command = list(handle.command)
        logger.info("Running: %s", " ".join(command))
        if _POSIX:
            group_kwargs = {"start_new_session": True}
        else:
            group_kwargs = {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}

        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                command,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                bufsize=1,
                **group_kwargs,
            )
        except OSError as e:
            raise InvocationError(e) from e

        stdout_tail: deque[str] = deque(maxlen=self.tail_lines)
        stderr_tail: deque[str] = deque(maxlen=self.tail_lines)
        readers = [
            threading.Thread(target=_drain, args=(proc.stdout, stdout_tail, "stdout", self.output_callback), daemon=True),
            threading.Thread(target=_drain, args=(proc.stderr, stderr_tail, "stderr", self.output_callback), daemon=True),
        ]
        for reader in readers:
            reader.start()

        finished = False
        try:
            exit_code = proc.wait()
            finished = True
        except KeyboardInterrupt:
            logger.warning("Interrupted, stopping %s", command[0])
            raise InvocationError("cancelled") from None
        finally:
            if not finished:
                _terminate_group(proc)
            for reader in readers:
                reader.join()
            proc.stdout.close()
            proc.stderr.close()

        result = BuildResult(
            target=handle.target,
            exit_code=exit_code,
            duration_ms=int((time.monotonic() - start) * 1000),
            stdout_tail="\n".join(stdout_tail),
            stderr_tail="\n".join(stderr_tail),
        )
        logger.debug("%s exited with %d after %d ms", command[0], exit_code, result.duration_ms)
        if exit_code != 0:
            raise BuildFailed(result)
        return result
