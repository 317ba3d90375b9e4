"""
Tests for the daily sweep trigger.

The overlap tests hold a sweep open with a threading.Event so that a second
firing arrives while the first one is still running.
"""

import threading
from unittest.mock import MagicMock

import pytest

from quoteflow.scheduler import JOB_ID, SweepInProgress, SweepTrigger


def test_fire_passes_arguments_and_records_result():
    job = MagicMock(return_value=["report"])
    trigger = SweepTrigger(job)

    assert trigger.fire(today="2024-01-01") == ["report"]
    job.assert_called_once_with(today="2024-01-01")
    assert trigger.last_result == ["report"]
    assert trigger.last_error is None
    assert not trigger.running


def test_job_error_is_recorded_and_reraised():
    job = MagicMock(side_effect=RuntimeError("fetch failed"))
    trigger = SweepTrigger(job)

    with pytest.raises(RuntimeError):
        trigger.fire()

    assert isinstance(trigger.last_error, RuntimeError)
    # lock released after the failure
    assert not trigger.running


class TestOverlap:
    @pytest.fixture
    def held(self):
        started, release = threading.Event(), threading.Event()
        calls = []

        def job():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "done"

        trigger = SweepTrigger(job)
        worker = threading.Thread(target=trigger.fire)
        worker.start()
        assert started.wait(timeout=5)
        yield trigger, calls
        release.set()
        worker.join(timeout=5)

    def test_second_firing_is_skipped(self, held):
        trigger, calls = held
        assert trigger.running
        assert trigger.fire() is None
        assert calls == [1]

    def test_second_firing_can_raise(self, held):
        trigger, calls = held
        with pytest.raises(SweepInProgress):
            trigger.fire(raise_if_busy=True)
        assert calls == [1]


def test_start_registers_single_instance_cron_job():
    trigger = SweepTrigger(MagicMock(), hour=3, minute=15, timezone="UTC")
    trigger.start()
    try:
        job = trigger.scheduler.get_job(JOB_ID)
        assert job is not None
        assert job.max_instances == 1
        assert job.coalesce is True
        assert trigger.next_run_time() is not None
        assert str(job.trigger.fields[5]) == "3"   # hour
        assert str(job.trigger.fields[6]) == "15"  # minute
    finally:
        trigger.shutdown(wait=False)
    assert not trigger.scheduler.running


def test_next_run_time_before_start():
    assert SweepTrigger(MagicMock()).next_run_time() is None
