import asyncio
import threading

import pytest

from relaunch.process_supervisor import ProcessSupervisor
from relaunch.restart_coordinator import RestartCoordinator
from tests.helpers.fakes import RecordingConsole
from tests.helpers.process_test_helper import wait_until


async def _start(coordinator):
    shutdown = asyncio.Event()
    task = asyncio.create_task(coordinator.run(shutdown))
    return shutdown, task


async def _settle(coordinator, supervisor, expected_minimum):
    await wait_until(lambda: supervisor.restarts >= expected_minimum and coordinator._queue.empty() and supervisor.in_flight == 0)
    # give the loop a chance to pick up anything still buffered
    await asyncio.sleep(0.05)


@pytest.mark.asyncio
async def test_initial_restart_is_issued_on_entry(fake_supervisor):
    coordinator = RestartCoordinator(fake_supervisor)
    shutdown, task = await _start(coordinator)

    await asyncio.wait_for(fake_supervisor.restarted.wait(), timeout=2)
    shutdown.set()
    await asyncio.wait_for(task, timeout=2)

    assert fake_supervisor.restarts == 1
    assert fake_supervisor.kills == 1


@pytest.mark.asyncio
async def test_burst_of_requests_is_coalesced(fake_supervisor):
    coordinator = RestartCoordinator(fake_supervisor)
    shutdown, task = await _start(coordinator)
    await asyncio.wait_for(fake_supervisor.restarted.wait(), timeout=2)
    await _settle(coordinator, fake_supervisor, 1)
    baseline = fake_supervisor.restarts

    n = 25
    for i in range(n):
        coordinator.request_restart(f"burst {i}")
    await _settle(coordinator, fake_supervisor, baseline + 1)

    executed = fake_supervisor.restarts - baseline
    assert 1 <= executed <= n
    assert fake_supervisor.max_in_flight == 1

    shutdown.set()
    await asyncio.wait_for(task, timeout=2)


@pytest.mark.asyncio
async def test_concurrent_producers_from_threads(fake_supervisor):
    coordinator = RestartCoordinator(fake_supervisor)
    shutdown, task = await _start(coordinator)
    await asyncio.wait_for(fake_supervisor.restarted.wait(), timeout=2)
    await _settle(coordinator, fake_supervisor, 1)
    baseline = fake_supervisor.restarts

    n_threads, per_thread = 4, 10
    barrier = threading.Barrier(n_threads)

    def produce():
        barrier.wait()
        for _ in range(per_thread):
            coordinator.request_restart_threadsafe("thread")

    await asyncio.gather(*(asyncio.to_thread(produce) for _ in range(n_threads)))
    await wait_until(lambda: coordinator.requested >= baseline + n_threads * per_thread)
    await _settle(coordinator, fake_supervisor, baseline + 1)

    executed = fake_supervisor.restarts - baseline
    assert 1 <= executed <= n_threads * per_thread
    assert fake_supervisor.max_in_flight == 1

    shutdown.set()
    await asyncio.wait_for(task, timeout=2)


@pytest.mark.asyncio
async def test_full_queue_drops_requests_without_blocking(fake_supervisor):
    coordinator = RestartCoordinator(fake_supervisor, capacity=3)

    results = [coordinator.request_restart("x") for _ in range(5)]

    assert results == [True, True, True, False, False]
    assert coordinator.dropped == 2
    assert coordinator.requested == 5


@pytest.mark.asyncio
async def test_in_flight_restart_completes_before_shutdown(fake_supervisor):
    fake_supervisor.gate = asyncio.Event()
    coordinator = RestartCoordinator(fake_supervisor)
    shutdown, task = await _start(coordinator)
    await wait_until(lambda: fake_supervisor.in_flight == 1)

    shutdown.set()
    await asyncio.sleep(0.05)
    assert not task.done()
    assert fake_supervisor.kills == 0

    fake_supervisor.gate.set()
    await asyncio.wait_for(task, timeout=2)

    assert fake_supervisor.restarts == 1
    assert fake_supervisor.kills == 1


@pytest.mark.asyncio
async def test_shutdown_kills_last_child_of_real_supervisor():
    supervisor = ProcessSupervisor(["sleep", "100"], RecordingConsole())
    coordinator = RestartCoordinator(supervisor)
    shutdown, task = await _start(coordinator)
    await wait_until(lambda: supervisor.handle is not None)
    handle = supervisor.handle

    shutdown.set()
    await asyncio.wait_for(task, timeout=2)

    assert supervisor.handle is None
    assert await asyncio.wait_for(handle.process.wait(), timeout=5) is not None
    await supervisor.aclose(timeout=5)


@pytest.mark.asyncio
async def test_interleaved_triggers_never_leave_two_live_children():
    supervisor = ProcessSupervisor(["sleep", "100"], RecordingConsole())
    started = []
    original_start = supervisor.start

    async def recording_start():
        handle = await original_start()
        started.append(handle)
        return handle

    supervisor.start = recording_start
    coordinator = RestartCoordinator(supervisor)
    shutdown, task = await _start(coordinator)

    for round_ in range(5):
        coordinator.request_restart(f"file {round_}")
        await asyncio.sleep(0)
        coordinator.request_restart(f"key {round_}")
        await asyncio.sleep(0.05)
    await wait_until(lambda: coordinator._queue.empty() and len(started) >= 2)
    await asyncio.sleep(0.1)

    live = started[-1]
    earlier = [h for h in started if h is not live]
    for handle in earlier:
        await asyncio.wait_for(handle.process.wait(), timeout=5)
    assert live.process.returncode is None
    assert len({h.pid for h in started}) == len(started)

    shutdown.set()
    await asyncio.wait_for(task, timeout=2)
    await asyncio.wait_for(live.process.wait(), timeout=5)
    await supervisor.aclose(timeout=5)


def test_threadsafe_request_requires_bound_loop(fake_supervisor):
    coordinator = RestartCoordinator(fake_supervisor)
    with pytest.raises(RuntimeError):
        coordinator.request_restart_threadsafe("early")
