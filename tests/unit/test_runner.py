from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from relaunch.config.settings import RunnerSettings
from relaunch.errors import DirectoryScanError, FileListenerError, TerminalUnavailableError
from relaunch.extensions import ExtensionAllowList
from relaunch.runner import Runner
from relaunch.terminal import TerminalSession
from tests.helpers.process_test_helper import wait_for_group_exit, wait_until


def _settings(tmp_path, command=("sleep", "100"), tty_path="/dev/tty"):
    return RunnerSettings(
        command=tuple(command),
        allow_list=ExtensionAllowList.default(),
        watch_root=str(tmp_path),
        tty_path=tty_path,
        reap_timeout_seconds=5.0,
    )


def test_unopenable_terminal_fails_before_scan_or_listener(tmp_path, console):
    scanner = MagicMock()
    listener_factory = MagicMock()

    with pytest.raises(TerminalUnavailableError):
        Runner(
            _settings(tmp_path, tty_path=str(tmp_path / "no-such-tty")),
            console=console,
            terminal_factory=TerminalSession,
            listener_factory=listener_factory,
            scanner=scanner,
        )

    scanner.assert_not_called()
    listener_factory.assert_not_called()


def test_listener_construction_failure_restores_terminal(tmp_path, console, pipe_terminal):
    def broken_listener(*_args, **_kwargs):
        raise FileListenerError("cannot create file watcher")

    with pytest.raises(FileListenerError):
        Runner(
            _settings(tmp_path),
            console=console,
            terminal_factory=lambda _path: pipe_terminal,
            listener_factory=broken_listener,
        )

    assert pipe_terminal.restored


@pytest.mark.asyncio
async def test_scan_failure_aborts_before_any_child(tmp_path, console, pipe_terminal):
    def failing_scanner(root, allow_list):
        raise DirectoryScanError(root)

    runner = Runner(
        _settings(tmp_path),
        console=console,
        terminal_factory=lambda _path: pipe_terminal,
        scanner=failing_scanner,
    )

    with pytest.raises(DirectoryScanError):
        await runner.run(asyncio.Event())

    assert console.started == []
    assert pipe_terminal.restored


@pytest.mark.asyncio
async def test_run_supervises_until_shutdown(tmp_path, console, pipe_terminal):
    src = tmp_path / "src"
    src.mkdir()
    (src / "app.py").write_text("x = 1\n")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "hook.py").write_text("")

    runner = Runner(_settings(tmp_path), console=console, terminal_factory=lambda _path: pipe_terminal)
    shutdown = asyncio.Event()
    task = asyncio.create_task(runner.run(shutdown))

    assert await wait_until(lambda: runner.supervisor.handle is not None)
    first = runner.supervisor.handle
    assert runner.watch_set == (str(src),)
    assert console.usages == [[str(src)]]

    pipe_terminal.type(b" ")
    assert await wait_until(lambda: runner.supervisor.handle not in (None, first))
    second = runner.supervisor.handle
    assert second.pid != first.pid
    assert await wait_for_group_exit(first.pgid)

    (src / "app.py").write_text("x = 2\n")
    assert await wait_until(lambda: runner.supervisor.handle not in (None, second))
    assert console.modified and console.modified[0] == str(src / "app.py")

    last = runner.supervisor.handle
    shutdown.set()
    await asyncio.wait_for(task, timeout=10)

    assert runner.supervisor.handle is None
    assert last.process.returncode is not None
    assert pipe_terminal.restored
    assert console.errors == []
