"""WorkerPool: per-queue task outcome counters driven by Celery signals."""

from types import SimpleNamespace

from celery.signals import task_failure, task_retry, task_success

from cardfund.tasks.worker_pool import WorkerPool


def task(name: str) -> SimpleNamespace:
    return SimpleNamespace(name=name)


class TestWorkerPool:
    def test_counts_outcomes_per_queue(self):
        pool = WorkerPool(["billing", "reconciliation"])
        handles = pool.start()
        try:
            task_success.send(sender=task("billing.process_monthly_fees"), result={})
            task_success.send(sender=task("billing.schedule_monthly_fees"), result={})
            task_failure.send(sender=task("reconciliation.reconcile_balances"), exception=None)
            task_retry.send(sender=task("billing.process_user_monthly_fees"), request=None)
        finally:
            pool.stop(handles)

        assert pool.status() == {
            "billing": {"succeeded": 2, "failed": 0, "retried": 1},
            "reconciliation": {"succeeded": 0, "failed": 1, "retried": 0},
        }

    def test_ignores_other_queues(self):
        pool = WorkerPool(["billing"])
        handles = pool.start()
        try:
            task_success.send(sender=task("reconciliation.reconcile_balances"), result={})
            task_success.send(sender=None, result={})
        finally:
            pool.stop(handles)

        assert pool.status() == {"billing": {"succeeded": 0, "failed": 0, "retried": 0}}

    def test_stop_disconnects_only_own_receivers(self):
        first = WorkerPool(["billing"])
        second = WorkerPool(["billing"])
        first_handles = first.start()
        second_handles = second.start()

        first.stop(first_handles)
        task_success.send(sender=task("billing.process_monthly_fees"), result={})
        second.stop(second_handles)
        task_success.send(sender=task("billing.process_monthly_fees"), result={})

        assert first.status()["billing"]["succeeded"] == 0
        assert second.status()["billing"]["succeeded"] == 1

    def test_start_returns_one_handle_per_signal(self):
        pool = WorkerPool(["billing"])
        handles = pool.start()
        pool.stop(handles)

        assert {h.signal for h in handles} == {task_success, task_failure, task_retry}
