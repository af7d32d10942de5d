from __future__ import annotations

import os

import psutil
import pytest

from transfer_queue.application.services import WorkerSupervisor


class FakeLivenessToken:
    def __init__(self, pid: int | None = None, alive: bool = False) -> None:
        self.pid = pid
        self.alive = alive
        self.cleared = 0

    def acquire(self) -> None:
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError

    def read_pid(self) -> int | None:
        return self.pid

    def is_alive(self) -> bool:
        return self.alive

    def clear_stale(self) -> bool:
        self.cleared += 1
        removed = self.pid is not None and not self.alive
        if removed:
            self.pid = None
        return removed


class FakeLauncher:
    def __init__(self) -> None:
        self.launches = 0

    def launch(self) -> int:
        self.launches += 1
        return 4242


def test_start_launches_only_when_no_worker_is_alive() -> None:
    launcher = FakeLauncher()

    assert WorkerSupervisor(FakeLivenessToken(), launcher).start_worker_if_not_running() is True
    assert (
        WorkerSupervisor(
            FakeLivenessToken(pid=os.getppid(), alive=True),
            launcher,
        ).start_worker_if_not_running()
        is False
    )
    assert launcher.launches == 1


def test_worker_pid_is_reported_only_for_live_worker() -> None:
    dead = WorkerSupervisor(FakeLivenessToken(pid=123, alive=False), FakeLauncher())
    live = WorkerSupervisor(FakeLivenessToken(pid=123, alive=True), FakeLauncher())

    assert dead.worker_pid() is None
    assert live.worker_pid() == 123


def test_stop_without_live_worker_clears_stale_token() -> None:
    token = FakeLivenessToken(pid=999999, alive=False)
    supervisor = WorkerSupervisor(token, FakeLauncher())

    assert supervisor.stop_worker() is False
    assert token.cleared == 1
    assert token.pid is None


def test_stop_terminates_live_worker(monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[str] = []

    class FakeProcess:
        def __init__(self, pid: int) -> None:
            events.append(f"attach:{pid}")

        def children(self, recursive: bool = False) -> list[object]:
            return []

        def terminate(self) -> None:
            events.append("terminate")

        def wait(self, timeout: float | None = None) -> int:
            events.append("wait")
            return 0

    monkeypatch.setattr(
        "transfer_queue.application.services.worker_supervisor.psutil.Process",
        FakeProcess,
    )
    token = FakeLivenessToken(pid=4242, alive=True)
    supervisor = WorkerSupervisor(token, FakeLauncher(), stop_timeout_seconds=0.5)

    assert supervisor.stop_worker() is True
    assert events == ["attach:4242", "terminate", "wait"]
    assert token.cleared == 1


def test_killed_worker_takes_its_transfers_down(monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[str] = []

    class FakeTransfer:
        def __init__(self, name: str, stubborn: bool) -> None:
            self.name = name
            self.stubborn = stubborn

        def is_running(self) -> bool:
            return True

        def terminate(self) -> None:
            events.append(f"terminate:{self.name}")

        def kill(self) -> None:
            events.append(f"kill:{self.name}")

    polite = FakeTransfer("rclone-1", stubborn=False)
    stubborn = FakeTransfer("rclone-2", stubborn=True)

    class HungWorker:
        def __init__(self, pid: int) -> None:
            self.pid = pid
            self.killed = False

        def children(self, recursive: bool = False) -> list[FakeTransfer]:
            assert recursive is True
            return [polite, stubborn]

        def terminate(self) -> None:
            events.append("terminate:worker")

        def kill(self) -> None:
            events.append("kill:worker")
            self.killed = True

        def wait(self, timeout: float | None = None) -> int:
            if not self.killed:
                raise psutil.TimeoutExpired(timeout, self.pid)
            return -9

    def fake_wait_procs(
        procs: list[FakeTransfer],
        timeout: float | None = None,
    ) -> tuple[list[FakeTransfer], list[FakeTransfer]]:
        events.append("wait:transfers")
        return (
            [proc for proc in procs if not proc.stubborn],
            [proc for proc in procs if proc.stubborn],
        )

    monkeypatch.setattr(psutil, "Process", HungWorker)
    monkeypatch.setattr(psutil, "wait_procs", fake_wait_procs)
    token = FakeLivenessToken(pid=4242, alive=True)
    supervisor = WorkerSupervisor(token, FakeLauncher(), stop_timeout_seconds=0.5)

    assert supervisor.stop_worker() is True
    assert events == [
        "terminate:worker",
        "kill:worker",
        "terminate:rclone-1",
        "terminate:rclone-2",
        "wait:transfers",
        "kill:rclone-2",
    ]
    assert token.cleared == 1
