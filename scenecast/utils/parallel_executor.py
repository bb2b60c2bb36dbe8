"""Parallel Executor - bounded concurrency for per-scene service calls."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional

from scenecast.core.config import Settings


class ParallelExecutor:
    """Runs a batch of callables with a worker bound and collects every outcome."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize parallel executor.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.default_workers = max(1, settings.max_parallel_tts)

    def execute_batch(
        self,
        tasks: list[Callable[[], Any]],
        task_names: Optional[list[str]] = None,
        max_workers: Optional[int] = None,
        delay_seconds: float = 0.0,
    ) -> list[tuple[Any, Optional[Exception]]]:
        """
        Execute tasks and wait for all of them.

        With one worker the tasks run in order with ``delay_seconds`` between
        them; otherwise they run on a thread pool. Results always come back in
        submission order.

        Args:
            tasks: Zero-argument callables
            task_names: Optional names for logging
            max_workers: Worker bound (defaults to MAX_PARALLEL_TTS)
            delay_seconds: Pause between sequential tasks

        Returns:
            List of (result, exception) tuples, one per task
        """
        if not tasks:
            return []

        max_workers = max_workers or self.default_workers

        def name_of(i: int) -> str:
            return task_names[i] if task_names and i < len(task_names) else f"task_{i + 1}"

        start_time = time.time()
        results: list[tuple[Any, Optional[Exception]]] = [(None, None)] * len(tasks)

        if max_workers == 1:
            for i, task in enumerate(tasks):
                if i > 0 and delay_seconds > 0:
                    time.sleep(delay_seconds)
                try:
                    results[i] = (task(), None)
                except Exception as e:
                    self.logger.error(f"❌ {name_of(i)} failed: {e}")
                    results[i] = (None, e)
        else:
            self.logger.debug(f"Parallel execution: {len(tasks)} tasks with max {max_workers} workers")
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                future_to_index = {executor.submit(task): i for i, task in enumerate(tasks)}
                for future in as_completed(future_to_index):
                    index = future_to_index[future]
                    try:
                        results[index] = (future.result(), None)
                    except Exception as e:
                        self.logger.warning(f"❌ {name_of(index)} failed: {e}")
                        results[index] = (None, e)

        successful = sum(1 for _, error in results if error is None)
        self.logger.debug(
            f"Batch complete: {successful}/{len(tasks)} successful in {time.time() - start_time:.2f}s "
            f"(workers: {max_workers})"
        )
        return results
