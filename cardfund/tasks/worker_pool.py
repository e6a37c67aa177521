"""Task outcome monitoring for the worker process."""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from typing import Any

from celery.signals import task_failure, task_retry, task_success
from celery.utils.dispatch import Signal

logger = logging.getLogger(__name__)


@dataclass
class QueueStats:
    """Task outcome counters for one queue."""

    succeeded: int = 0
    failed: int = 0
    retried: int = 0


@dataclass(frozen=True)
class SignalHandle:
    """A receiver connected by ``WorkerPool.start``."""

    signal: Signal
    receiver: Callable[..., None]


class WorkerPool:
    """Counts task outcomes per queue while the worker runs.

    Queue names match the task name prefix ("billing.process_monthly_fees"
    counts towards "billing"). Tasks of other queues are ignored.
    """

    def __init__(self, queues: Iterable[str]):
        self.queues = tuple(queues)
        self._stats = {queue: QueueStats() for queue in self.queues}
        self._lock = threading.Lock()

    def start(self) -> list[SignalHandle]:
        """Connect the outcome receivers.

        Returns:
            Handles to pass to ``stop``
        """
        handles = []
        for signal, counter in (
            (task_success, "succeeded"),
            (task_failure, "failed"),
            (task_retry, "retried"),
        ):
            receiver = self._make_receiver(counter)
            signal.connect(receiver, weak=False)
            handles.append(SignalHandle(signal=signal, receiver=receiver))

        logger.info(f"Worker pool monitoring queues {', '.join(self.queues)}")
        return handles

    def stop(self, handles: Iterable[SignalHandle]) -> None:
        """Disconnect the receivers connected by ``start``."""
        for handle in handles:
            handle.signal.disconnect(handle.receiver)

    def status(self) -> dict[str, dict[str, int]]:
        """Outcome counters per queue."""
        with self._lock:
            return {queue: asdict(stats) for queue, stats in self._stats.items()}

    def _make_receiver(self, counter: str) -> Callable[..., None]:
        def receiver(sender: Any = None, **kwargs: Any) -> None:
            queue = self._queue_for(sender)
            if queue is None:
                return
            with self._lock:
                stats = self._stats[queue]
                setattr(stats, counter, getattr(stats, counter) + 1)

        return receiver

    def _queue_for(self, task: Any) -> str | None:
        name = getattr(task, "name", None)
        if not name:
            return None
        queue = name.split(".", 1)[0]
        return queue if queue in self._stats else None
