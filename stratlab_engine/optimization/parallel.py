"""
Parallel execution utilities for optimization.

Provides process pool management, progress tracking and independent seed
derivation for work dispatched across families or walk-forward windows.
"""
from typing import Any, Callable, List, Optional, Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing

import numpy as np
from tqdm import tqdm

from stratlab_engine.utils.logging_config import get_optimization_logger

logger = get_optimization_logger('PARALLEL')


def spawn_seeds(seed: int, n: int) -> List[int]:
    """
    Derive ``n`` independent child seeds from one root seed.

    The same root always yields the same children, so a parallel run is as
    reproducible as a sequential one.

    Example:
        spawn_seeds(42, 3)  # three stable, statistically independent seeds
    """
    children = np.random.SeedSequence(seed).spawn(n)
    return [int(child.generate_state(1, dtype=np.uint64)[0]) for child in children]


class ParallelExecutor:
    """
    Manages parallel execution of independent evaluation tasks.

    Uses ProcessPoolExecutor for CPU-bound work. Results always come back
    in task order, whatever order workers finish in.

    Attributes:
        n_jobs: Number of parallel workers (-1 for all cores)
        show_progress: Whether to show progress bar
    """

    def __init__(self, n_jobs: int = -1, show_progress: bool = True):
        """
        Initialize parallel executor.

        Args:
            n_jobs: Number of parallel workers. -1 uses all available cores.
            show_progress: Whether to display progress bar

        Raises:
            ValueError: If n_jobs is 0 or below -1
        """
        if n_jobs == -1:
            n_jobs = multiprocessing.cpu_count()
        elif n_jobs < 1:
            raise ValueError(f"n_jobs must be -1 or positive, got {n_jobs}")

        self.n_jobs = min(n_jobs, multiprocessing.cpu_count())
        self.show_progress = show_progress

        logger.debug(
            f"ParallelExecutor initialized with {self.n_jobs} workers "
            f"(max: {multiprocessing.cpu_count()})"
        )

    def should_use_parallel(self, n_tasks: int, threshold: int = 2) -> bool:
        """
        Determine if parallel execution is beneficial.

        Args:
            n_tasks: Number of tasks to execute
            threshold: Minimum number of tasks to use parallel execution

        Returns:
            True if parallel execution is recommended
        """
        use_parallel = n_tasks >= threshold and self.n_jobs > 1

        if not use_parallel:
            logger.info(
                f"Using sequential execution ({n_tasks} tasks, threshold {threshold}, "
                f"{self.n_jobs} worker(s))"
            )
        else:
            logger.info(
                f"Using parallel execution ({n_tasks} tasks, {self.n_jobs} workers)"
            )

        return use_parallel

    def map(
        self,
        func: Callable[[Any], Any],
        tasks: Sequence[Any],
        task_description: str = "Processing",
        threshold: int = 2,
    ) -> List[Any]:
        """
        Apply ``func`` to every task, in parallel when worthwhile.

        Args:
            func: Picklable callable taking one task
            tasks: Tasks to process
            task_description: Description for progress bar
            threshold: Minimum number of tasks to go parallel

        Returns:
            Results in task order

        Raises:
            Exception: The first task failure is logged and re-raised
        """
        if self.should_use_parallel(len(tasks), threshold):
            return self.execute(func, tasks, task_description)
        return [func(task) for task in tasks]

    def execute(
        self,
        func: Callable[[Any], Any],
        tasks: Sequence[Any],
        task_description: str = "Processing",
    ) -> List[Any]:
        """
        Execute function on tasks in a process pool.

        Args:
            func: Picklable callable taking one task
            tasks: Tasks to process
            task_description: Description for progress bar

        Returns:
            Results in task order
        """
        results: List[Optional[Any]] = [None] * len(tasks)

        logger.info(f"Starting parallel execution: {len(tasks)} tasks")

        with ProcessPoolExecutor(max_workers=self.n_jobs) as executor:
            futures = {executor.submit(func, task): i for i, task in enumerate(tasks)}

            if self.show_progress:
                progress = tqdm(
                    as_completed(futures),
                    total=len(tasks),
                    desc=task_description
                )
            else:
                progress = as_completed(futures)

            for future in progress:
                index = futures[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    logger.error(f"Task {index} failed: {e}", exc_info=True)
                    for pending in futures:
                        pending.cancel()
                    raise

        logger.info(f"Parallel execution complete: {len(tasks)} tasks")

        return results
