"""Run the bundler as a child process and classify how it ended."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import threading
import time
from typing import Callable, List, Optional

from .command import format_command
from .errors import BuildCancelled, BuildTimeoutError, ExternalToolError
from .models import InvocationDescriptor, InvocationResult, Outcome

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05
TERMINATE_GRACE = 3.0
NOT_FOUND_EXIT_CODE = 127
READER_JOIN_TIMEOUT = 5.0

IS_WINDOWS = sys.platform.startswith("win")

OutputCallback = Callable[[str], None]


def _pump(stream, lines: List[str], on_output: Optional[OutputCallback]) -> None:
    for line in iter(stream.readline, ""):
        lines.append(line)
        if on_output is not None:
            try:
                on_output(line.rstrip("\r\n"))
            except Exception:  # pragma: no cover
                logger.exception("Output callback failed")


def _signal_group(process: subprocess.Popen, sig: int) -> None:
    # The bundler runs in its own session; signal every process in it so
    # helper processes holding the output pipe go down too.
    try:
        os.killpg(process.pid, sig)
    except (ProcessLookupError, PermissionError):
        pass


def _kill_tree(process: subprocess.Popen) -> None:
    if IS_WINDOWS:
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(process.pid)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
        process.kill()
    else:
        _signal_group(process, signal.SIGKILL)


def _stop(process: subprocess.Popen, grace: float = TERMINATE_GRACE) -> None:
    """Terminate ``process`` and its descendants, escalating to kill, and reap it."""

    if process.poll() is not None:
        # The bundler is gone but helpers it started may still be running.
        if not IS_WINDOWS:
            _signal_group(process, signal.SIGKILL)
        return
    logger.debug("Terminating bundler pid=%s", process.pid)
    if IS_WINDOWS:
        process.terminate()
    else:
        _signal_group(process, signal.SIGTERM)
    try:
        process.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        logger.warning("Bundler pid=%s ignored terminate; killing", process.pid)
        _kill_tree(process)
        process.wait()
        return
    if not IS_WINDOWS:
        _signal_group(process, signal.SIGKILL)


def _group_kwargs() -> dict:
    if IS_WINDOWS:
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def invoke(
    descriptor: InvocationDescriptor,
    *,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    on_output: Optional[OutputCallback] = None,
    check: bool = True,
) -> InvocationResult:
    """Run ``descriptor`` to completion and return its result.

    stdout and stderr are merged into ``captured_output``. When ``check`` is
    true, any outcome other than success raises the matching
    :class:`~guibundler.errors.InvocationError` subclass carrying the result.
    The child is always reaped before this function returns or raises.
    """

    if timeout is not None and timeout <= 0:
        raise ValueError("timeout must be positive")

    logger.info("Running %s", format_command(descriptor))
    lines: List[str] = []
    started = time.monotonic()
    deadline = started + timeout if timeout is not None else None
    outcome = Outcome.SUCCEEDED

    try:
        process = subprocess.Popen(
            list(descriptor.argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            **_group_kwargs(),
        )
    except OSError as exc:
        result = InvocationResult(
            exit_code=NOT_FOUND_EXIT_CODE,
            captured_output=f"{descriptor.executable}: {exc}\n",
            outcome=Outcome.FAILED,
            duration=time.monotonic() - started,
        )
        if check:
            raise ExternalToolError(f"Could not start bundler: {exc}", result) from exc
        return result

    with process:
        reader = threading.Thread(
            target=_pump,
            args=(process.stdout, lines, on_output),
            name=f"bundler-output-{process.pid}",
            daemon=True,
        )
        reader.start()
        try:
            while process.poll() is None:
                if cancel_event is not None and cancel_event.is_set():
                    outcome = Outcome.CANCELLED
                    break
                if deadline is not None and time.monotonic() >= deadline:
                    outcome = Outcome.TIMED_OUT
                    break
                time.sleep(POLL_INTERVAL)
        except KeyboardInterrupt:
            outcome = Outcome.CANCELLED
        finally:
            _stop(process)
            reader.join(READER_JOIN_TIMEOUT)
            if reader.is_alive():
                # A detached helper still holds the pipe. Closing the stream
                # here would block on the reader, so hand it over instead.
                logger.warning("Bundler output pipe still open after exit; abandoning reader")
                process.stdout = None

    if outcome is Outcome.SUCCEEDED and process.returncode != 0:
        outcome = Outcome.FAILED
    result = InvocationResult(
        exit_code=process.returncode,
        captured_output="".join(lines),
        outcome=outcome,
        pid=process.pid,
        duration=time.monotonic() - started,
    )
    logger.info(
        "Bundler pid=%s finished: %s (exit %s, %.1fs)",
        result.pid,
        result.outcome.value,
        result.exit_code,
        result.duration,
    )

    if check:
        _raise_for_outcome(result, timeout)
    return result


def _raise_for_outcome(result: InvocationResult, timeout: Optional[float]) -> None:
    if result.outcome is Outcome.CANCELLED:
        raise BuildCancelled("Build cancelled; bundler terminated.", result)
    if result.outcome is Outcome.TIMED_OUT:
        raise BuildTimeoutError(f"Bundler exceeded {timeout:g}s and was terminated.", result)
    if result.outcome is Outcome.FAILED:
        raise ExternalToolError(f"Bundler exited with status {result.exit_code}.", result)
