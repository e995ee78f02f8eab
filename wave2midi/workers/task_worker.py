from __future__ import annotations

from typing import Any, Callable, Dict, Tuple

from PySide6.QtCore import QObject, QThread, Signal, Slot


Task = Callable[[], Any]
DoneFn = Callable[[Any], None]
FailedFn = Callable[[BaseException], None]
Runner = Callable[[Task, DoneFn, FailedFn], None]


def _ignore(_value: object) -> None:
    pass


class TaskWorker(QObject):
    finished = Signal(object)  # task result
    failed = Signal(object)  # the exception

    def __init__(self, task: Task) -> None:
        super().__init__()
        self.task = task

    @Slot()
    def run(self) -> None:
        try:
            result = self.task()
        except Exception as e:
            self.failed.emit(e)
            return
        self.finished.emit(result)


class _Relay(QObject):
    """Created on the GUI thread so worker signals are delivered there (queued)."""

    def __init__(self, runner: "ThreadRunner", key: int, on_done: DoneFn, on_failed: FailedFn) -> None:
        super().__init__()
        self.runner = runner
        self.key = key
        self.on_done = on_done
        self.on_failed = on_failed

    @Slot(object)
    def done(self, result: object) -> None:
        self.on_done(result)

    @Slot(object)
    def fail(self, error: object) -> None:
        self.on_failed(error)  # type: ignore[arg-type]

    def detach(self) -> None:
        self.on_done = _ignore
        self.on_failed = _ignore

    @Slot()
    def cleanup(self) -> None:
        self.runner._forget(self.key)


class ThreadRunner:
    """
    Runs one blocking call per QThread and hands the result (or exception) back
    on the thread that created the runner.
    """
    def __init__(self) -> None:
        self._active: Dict[int, Tuple[QThread, TaskWorker, _Relay]] = {}
        self._next_key = 0

    def __call__(self, task: Task, on_done: DoneFn, on_failed: FailedFn) -> None:
        key = self._next_key
        self._next_key += 1

        thread = QThread()
        worker = TaskWorker(task)
        worker.moveToThread(thread)
        relay = _Relay(self, key, on_done, on_failed)

        thread.started.connect(worker.run)
        worker.finished.connect(relay.done)
        worker.failed.connect(relay.fail)

        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)
        thread.finished.connect(relay.cleanup)

        # python owns all three; dropped in _forget once the thread is done
        self._active[key] = (thread, worker, relay)
        thread.start()

    def _forget(self, key: int) -> None:
        entry = self._active.pop(key, None)
        if entry is not None:
            entry[0].wait()

    @property
    def active_count(self) -> int:
        return len(self._active)

    def wait_all(self, timeout_ms: int = 30000) -> None:
        """
        Wait for running tasks. A task stuck in a blocking call cannot be
        interrupted; its thread stays referenced here until it finishes, and its
        callbacks are detached so a late result goes nowhere.
        """
        for key, (thread, _, relay) in list(self._active.items()):
            thread.quit()
            if thread.wait(timeout_ms):
                self._active.pop(key, None)
            else:
                relay.detach()
