"""Tests for bounded parallel execution."""

import time

import pytest

from scenecast.utils.parallel_executor import ParallelExecutor


@pytest.fixture
def executor(settings, logger):
    return ParallelExecutor(settings.model_copy(update={"max_parallel_tts": 3}), logger)


def test_thread_pool_keeps_submission_order(executor):
    def slow(value, delay):
        def task():
            time.sleep(delay)
            return value
        return task

    results = executor.execute_batch([slow(0, 0.05), slow(1, 0.0), slow(2, 0.02)])

    assert results == [(0, None), (1, None), (2, None)]


def test_thread_pool_captures_task_errors(executor):
    def boom():
        raise RuntimeError("provider down")

    results = executor.execute_batch([lambda: 0, boom, lambda: 2], task_names=["a", "b", "c"])

    assert [value for value, _ in results] == [0, None, 2]
    assert results[0][1] is None
    assert isinstance(results[1][1], RuntimeError)
    assert results[2][1] is None


def test_sequential_when_single_worker(settings, logger):
    executor = ParallelExecutor(settings, logger)
    calls = []

    results = executor.execute_batch([lambda: calls.append("a") or "a", lambda: calls.append("b") or "b"])

    assert calls == ["a", "b"]
    assert results == [("a", None), ("b", None)]


def test_empty_batch(executor):
    assert executor.execute_batch([]) == []
